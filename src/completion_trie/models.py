"""Data models for completion-trie."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CompletionResult:
    """Completion found for a prefix.

    Args:
        completion: Text continuing the prefix
        is_complete: Whether the completion is final or still being generated
    """

    completion: str
    is_complete: bool


@dataclass
class StreamChunk:
    """Piece of a streamed generation.

    Args:
        text: Generated text in this chunk
        done: True if the generator finished the response with this chunk
    """

    text: str = ""
    done: bool = False


@dataclass
class CacheConfig:
    """Configuration for the completion cache and service.

    Args:
        max_size: Character budget of each document's trie
        max_documents: Maximum number of documents with their own trie
        model: Model name passed to the generator
    """

    max_size: int = 1_000_000
    max_documents: int = 64
    model: str = ""

    def __post_init__(self) -> None:
        if self.max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {self.max_size}")
        if self.max_documents < 1:
            raise ValueError(f"max_documents must be >= 1, got {self.max_documents}")


@dataclass
class CacheStats:
    """Aggregated cache statistics.

    Args:
        lookups: Total number of completion lookups
        complete_hits: Lookups returning a complete completion
        partial_hits: Lookups returning an incomplete completion
        misses: Lookups with no completion
        inserts: Number of stored completions (including ignored ones)
        evictions: Completions pruned from all tries
        documents: Current number of documents with a trie
    """

    lookups: int = 0
    complete_hits: int = 0
    partial_hits: int = 0
    misses: int = 0
    inserts: int = 0
    evictions: int = 0
    documents: int = 0

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups that found any completion."""
        if self.lookups == 0:
            return 0.0
        return (self.complete_hits + self.partial_hits) / self.lookups
