"""Completion service streaming generations into the completion cache."""

from __future__ import annotations

import logging
import threading
from typing import Hashable, Iterator, List, Optional, Protocol

from completion_trie.cache import CompletionCache
from completion_trie.exceptions import GenerationCancelled, GenerationError
from completion_trie.models import CacheConfig, CompletionResult, StreamChunk

logger = logging.getLogger(__name__)

# Prompts ending here are worth finishing even if the user typed on
JUNCTION_CHARS = (".", "\n", "=")
JUNCTION_MAX_DISTANCE = 10


class CompletionGenerator(Protocol):
    """Interface of a text-generation backend.

    Implementations stream the continuation of a prompt chunk by chunk.
    """

    def generate_stream(self, model: str, prompt: str) -> Iterator[StreamChunk]:
        """Stream the continuation of a prompt.

        Args:
            model: Model identifier
            prompt: Text to continue

        Yields:
            StreamChunk objects; the last one has ``done`` set if the
            response finished

        Raises:
            GenerationError: If the backend reports an error
            GenerationCancelled: If cancel() interrupted the stream
        """
        ...

    def cancel(self) -> None:
        """Interrupt the running stream, if any."""
        ...


class CompletionService:
    """Suggests completions, generating them when the cache has none.

    Complete cached completions are served directly. An incomplete cached
    completion is used as the starting point of a new generation, so that
    the new response extends it and replaces it in the cache.

    Only one stream runs at a time. A request arriving while a stream runs
    either lets it finish (see should_let_finish) or cancels it; the
    cancelled stream's partial response is still cached unless the new
    request is for another document. Only the newest waiting request gets
    to stream next; superseded requests return None.
    """

    def __init__(
        self,
        generator: CompletionGenerator,
        cache: Optional[CompletionCache] = None,
        config: Optional[CacheConfig] = None,
    ) -> None:
        """Initialize the service.

        Args:
            generator: Backend generating completions
            cache: Completion cache (created from ``config`` if not provided)
            config: Configuration (taken from ``cache`` if not provided)
        """
        if config is None:
            config = cache.config if cache is not None else CacheConfig()
        self.config = config
        self.cache = cache or CompletionCache(config=config)
        self.generator = generator

        self.active_prompt: Optional[str] = None
        self.is_response_done = False
        self._response_parts: List[str] = []
        self._streaming = False
        self._active_document: Optional[Hashable] = None
        self._active_request: Optional[object] = None
        # Guards the stream state above
        self._lock = threading.Lock()
        # Held for the whole duration of a stream
        self._stream_lock = threading.Lock()

    @property
    def response(self) -> str:
        """Text accumulated by the current or last stream."""
        return "".join(self._response_parts)

    def should_let_finish(self, prompt: str) -> bool:
        """Whether the running stream is still useful for ``prompt``.

        It is if the user typed along the streamed response, or if the
        active prompt ends at a junction and the prompts differ in length
        by less than JUNCTION_MAX_DISTANCE characters.

        Args:
            prompt: Text before the cursor of the new request

        Returns:
            True if the running stream should not be cancelled
        """
        active_prompt = self.active_prompt
        if active_prompt is None:
            return False

        if prompt.startswith(active_prompt) and self.response.startswith(
            prompt[len(active_prompt):]
        ):
            return True

        is_junction = active_prompt.endswith(JUNCTION_CHARS)
        return is_junction and abs(len(active_prompt) - len(prompt)) < JUNCTION_MAX_DISTANCE

    def suggest(self, document: Hashable, prefix: str) -> Optional[CompletionResult]:
        """Suggest a completion for the text before the cursor.

        Args:
            document: Key of the document being edited
            prefix: Text before the cursor

        Returns:
            CompletionResult after caching the generated response, or None
            if nothing is known for the prefix or a newer request took over
        """
        request = object()
        with self._lock:
            cached = self.cache.lookup(document, prefix)
            seed = ""
            if cached is not None:
                if cached.is_complete:
                    return cached
                seed = cached.completion

            had_stream = self._streaming
            if had_stream and (
                document != self._active_document
                or (not self.is_response_done and not self.should_let_finish(prefix))
            ):
                logger.debug(f"Cancelling running stream for document={document!r}")
                self.generator.cancel()

            self._active_request = request
            self._active_document = document

        with self._stream_lock:
            with self._lock:
                if self._active_request is not request:
                    logger.debug("Request superseded while waiting")
                    return None

            if had_stream:
                # The finished stream may already cover this prefix
                cached = self.cache.lookup(document, prefix)
                if cached is not None:
                    if cached.is_complete:
                        return cached
                    seed = cached.completion

            self._stream(prefix, seed)

            with self._lock:
                superseded = self._active_request is not request
                if not superseded or self._active_document == document:
                    self.cache.store(document, prefix, self.response, self.is_response_done)

        if superseded:
            return None
        return self.cache.lookup(document, prefix)

    def _stream(self, prompt: str, seed: str = "") -> bool:
        """Generate the continuation of ``prompt + seed``.

        Must be called with ``_stream_lock`` held. The response starts with
        ``seed``; errors and cancellation leave the partial response in place.

        Args:
            prompt: Text before the cursor
            seed: Already known (incomplete) part of the completion

        Returns:
            True if the generator finished the response
        """
        with self._lock:
            self.active_prompt = prompt
            self.is_response_done = False
            self._response_parts = [seed]
            self._streaming = True

        try:
            for chunk in self.generator.generate_stream(self.config.model, prompt + seed):
                with self._lock:
                    self._response_parts.append(chunk.text)
                    if chunk.done:
                        self.is_response_done = True
                if chunk.done:
                    break
        except GenerationCancelled:
            logger.info(f"Generation cancelled after {len(self.response)} chars")
        except GenerationError as exc:
            logger.warning(f"Generation failed: {exc}")
        finally:
            with self._lock:
                self._streaming = False

        logger.debug(
            f"Stream ended: chars={len(self.response)}, done={self.is_response_done}"
        )
        return self.is_response_done

    def cancel(self) -> None:
        """Cancel the running generation."""
        self.generator.cancel()
