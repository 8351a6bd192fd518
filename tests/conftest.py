"""Shared test fixtures for completion-trie."""

from __future__ import annotations

import threading
from typing import Iterator, List, Optional, Sequence, Tuple

import pytest

from completion_trie.cache import CompletionCache
from completion_trie.exceptions import CompletionError, GenerationCancelled
from completion_trie.models import CacheConfig, StreamChunk
from completion_trie.service import CompletionService
from completion_trie.trie import CompletionTrie


class ScriptedGenerator:
    """Generator replaying a fixed list of chunks.

    Args:
        chunks: Texts to stream
        done: Whether the last chunk finishes the response
        error: Exception raised after the chunks were streamed
        cancel_after: Number of chunks after which the stream is cancelled
    """

    def __init__(
        self,
        chunks: Sequence[str] = (),
        done: bool = True,
        error: Optional[CompletionError] = None,
        cancel_after: Optional[int] = None,
    ) -> None:
        self.chunks = list(chunks)
        self.done = done
        self.error = error
        self.cancel_after = cancel_after
        self.prompts: List[Tuple[str, str]] = []
        self.cancelled = False

    def generate_stream(self, model: str, prompt: str) -> Iterator[StreamChunk]:
        self.prompts.append((model, prompt))
        for i, text in enumerate(self.chunks):
            if self.cancel_after is not None and i >= self.cancel_after:
                self.cancel()
            if self.cancelled:
                raise GenerationCancelled("stream cancelled")
            yield StreamChunk(text=text, done=self.done and i == len(self.chunks) - 1)
        if self.error is not None:
            raise self.error

    def cancel(self) -> None:
        self.cancelled = True


class GatedGenerator(ScriptedGenerator):
    """Generator whose first stream pauses before its last chunk.

    The pause ends when ``release`` is set or the stream is cancelled.
    Later streams replay ``later_chunks`` without pausing.
    """

    def __init__(self, chunks: Sequence[str], later_chunks: Sequence[str] = ()) -> None:
        super().__init__(chunks)
        self.later_chunks = list(later_chunks)
        self.paused = threading.Event()
        self.release = threading.Event()
        self.cancel_count = 0

    def generate_stream(self, model: str, prompt: str) -> Iterator[StreamChunk]:
        first = not self.prompts
        self.prompts.append((model, prompt))
        self.cancelled = False
        chunks = self.chunks if first else self.later_chunks

        for i, text in enumerate(chunks):
            is_last = i == len(chunks) - 1
            if first and is_last:
                self.paused.set()
                self.release.wait(timeout=5)
                if self.cancelled:
                    raise GenerationCancelled("stream cancelled")
            yield StreamChunk(text=text, done=is_last)

    def cancel(self) -> None:
        self.cancelled = True
        self.cancel_count += 1
        self.release.set()


@pytest.fixture
def trie() -> CompletionTrie:
    """Empty completion trie with the default budget."""
    return CompletionTrie()


@pytest.fixture
def small_cache() -> CompletionCache:
    """Completion cache with small limits for testing."""
    config = CacheConfig(max_size=6, max_documents=2, model="test-model")
    return CompletionCache(config=config)


@pytest.fixture
def default_cache() -> CompletionCache:
    """Completion cache with default config."""
    return CompletionCache(config=CacheConfig(model="test-model"))


@pytest.fixture
def make_service(default_cache: CompletionCache):
    """Factory building a service around a scripted generator."""

    def _make(**kwargs) -> Tuple[CompletionService, ScriptedGenerator]:
        generator = ScriptedGenerator(**kwargs)
        return CompletionService(generator, cache=default_cache), generator

    return _make
