"""completion-trie: Size-bounded prefix trie caching complete and incomplete text completions."""

from __future__ import annotations

__version__ = "0.1.0"
__author__ = "Rajath John"

from completion_trie.cache import CompletionCache, DocumentEntry
from completion_trie.exceptions import (
    CompletionError,
    GenerationCancelled,
    GenerationError,
)
from completion_trie.models import CacheConfig, CacheStats, CompletionResult, StreamChunk
from completion_trie.service import CompletionGenerator, CompletionService
from completion_trie.trie import CompletionTrie, Edge, TrieNode

__all__ = [
    "CacheConfig",
    "CacheStats",
    "CompletionCache",
    "CompletionError",
    "CompletionGenerator",
    "CompletionResult",
    "CompletionService",
    "CompletionTrie",
    "DocumentEntry",
    "Edge",
    "GenerationCancelled",
    "GenerationError",
    "StreamChunk",
    "TrieNode",
]
