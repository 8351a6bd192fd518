"""Per-document completion cache backed by completion tries."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Hashable, List, Optional

from completion_trie.models import CacheConfig, CacheStats, CompletionResult
from completion_trie.trie import CompletionTrie

logger = logging.getLogger(__name__)


@dataclass
class DocumentEntry:
    """A document's trie together with the lock serializing access to it.

    Args:
        trie: Completion trie of the document
        lock: Lock guarding every read and write of ``trie``
    """

    trie: CompletionTrie
    lock: threading.Lock = field(default_factory=threading.Lock)


class CompletionCache:
    """Caches completions per document, one trie each.

    Unrelated documents never share a trie, so their completions cannot
    evict each other. The number of documents is bounded; the least
    recently used document is dropped as a whole.
    """

    def __init__(self, config: Optional[CacheConfig] = None) -> None:
        """Initialize the cache.

        Args:
            config: Cache configuration (uses defaults if not provided)
        """
        self.config = config or CacheConfig()
        self._documents: OrderedDict[Hashable, DocumentEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._stats = CacheStats()
        # Evictions of tries that were dropped already
        self._dropped_evictions = 0

        logger.info(
            f"CompletionCache initialized: max_size={self.config.max_size}, "
            f"max_documents={self.config.max_documents}"
        )

    @property
    def documents(self) -> List[Hashable]:
        """Documents currently holding a trie, least recently used first."""
        with self._lock:
            return list(self._documents)

    @property
    def stats(self) -> CacheStats:
        """Get current cache statistics."""
        with self._lock:
            self._stats.documents = len(self._documents)
            self._stats.evictions = self._dropped_evictions + sum(
                entry.trie.evictions for entry in self._documents.values()
            )
        return self._stats

    def lookup(self, document: Hashable, prefix: str) -> Optional[CompletionResult]:
        """Look up the completion for a prefix within a document.

        Args:
            document: Key of the document
            prefix: Text to complete

        Returns:
            CompletionResult if known, None otherwise
        """
        entry = self._get_entry(document, create=False)
        result = None
        if entry is not None:
            with entry.lock:
                result = entry.trie.get_completion(prefix)

        with self._lock:
            self._stats.lookups += 1
            if result is None:
                self._stats.misses += 1
            elif result.is_complete:
                self._stats.complete_hits += 1
            else:
                self._stats.partial_hits += 1
        return result

    def store(
        self,
        document: Hashable,
        prefix: str,
        completion: str,
        is_complete: bool = True,
    ) -> None:
        """Store a completion for a prefix within a document.

        Args:
            document: Key of the document
            prefix: Text leading up to the completion
            completion: Completion text; empty completions are ignored
            is_complete: Whether the completion is final
        """
        if not completion:
            logger.debug(f"Skipping store: empty completion for document={document!r}")
            return

        entry = self._get_entry(document, create=True)
        assert entry is not None
        with entry.lock:
            entry.trie.insert(prefix, completion, is_complete)
            size = entry.trie.size

        with self._lock:
            self._stats.inserts += 1

        logger.debug(
            f"Stored completion: document={document!r}, chars={len(completion)}, "
            f"complete={is_complete}, trie_size={size}"
        )

    def get_trie(self, document: Hashable) -> Optional[CompletionTrie]:
        """Get a document's trie without updating its recency.

        Callers must not use the trie while other threads access the cache.

        Args:
            document: Key of the document

        Returns:
            CompletionTrie if the document has one, None otherwise
        """
        with self._lock:
            entry = self._documents.get(document)
        return entry.trie if entry is not None else None

    def drop(self, document: Hashable) -> bool:
        """Drop the trie of a document.

        Args:
            document: Key of the document

        Returns:
            True if the document had a trie, False otherwise
        """
        with self._lock:
            entry = self._documents.pop(document, None)
            if entry is None:
                return False
            self._dropped_evictions += entry.trie.evictions
        logger.debug(f"Dropped document: {document!r}")
        return True

    def clear(self) -> None:
        """Drop all documents."""
        with self._lock:
            count = len(self._documents)
            for entry in self._documents.values():
                self._dropped_evictions += entry.trie.evictions
            self._documents.clear()
        logger.info(f"Cache cleared: {count} documents removed")

    def _get_entry(self, document: Hashable, create: bool) -> Optional[DocumentEntry]:
        """Get the entry of a document, marking it as recently used.

        Args:
            document: Key of the document
            create: Whether to create a trie for an unknown document

        Returns:
            DocumentEntry, or None if unknown and ``create`` is False
        """
        with self._lock:
            entry = self._documents.get(document)
            if entry is not None:
                self._documents.move_to_end(document)
                return entry
            if not create:
                return None

            while len(self._documents) >= self.config.max_documents:
                # OrderedDict: first item is LRU
                oldest, oldest_entry = self._documents.popitem(last=False)
                self._dropped_evictions += oldest_entry.trie.evictions
                logger.debug(f"Evicted document: {oldest!r}")

            entry = DocumentEntry(trie=CompletionTrie(max_size=self.config.max_size))
            self._documents[document] = entry
            return entry
