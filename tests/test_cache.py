"""Tests for the per-document completion cache."""

from __future__ import annotations

import threading

from completion_trie.cache import CompletionCache
from completion_trie.models import CacheConfig, CompletionResult


class TestCompletionCacheLookupAndStore:
    """Tests for lookup and store operations."""

    def test_miss_on_empty_cache(self, default_cache: CompletionCache) -> None:
        """Unknown document returns a miss without creating a trie."""
        assert default_cache.lookup("doc", "Hello ") is None
        assert default_cache.documents == []
        assert default_cache.stats.misses == 1

    def test_store_and_lookup(self, default_cache: CompletionCache) -> None:
        """Stored completion is found again."""
        default_cache.store("doc", "Hello ", "World")
        assert default_cache.lookup("doc", "Hello ") == CompletionResult("World", True)
        assert default_cache.lookup("doc", "Hello Wo") == CompletionResult("rld", True)

    def test_documents_are_isolated(self, default_cache: CompletionCache) -> None:
        """Completions of one document are invisible to another."""
        default_cache.store("a.py", "import ", "os")
        assert default_cache.lookup("b.py", "import ") is None
        assert default_cache.lookup("a.py", "import ") == CompletionResult("os", True)

    def test_empty_completion_is_skipped(self, default_cache: CompletionCache) -> None:
        """Empty completions do not create a document."""
        default_cache.store("doc", "Hello ", "")
        assert default_cache.documents == []
        assert default_cache.stats.inserts == 0

    def test_stats_tracking(self, default_cache: CompletionCache) -> None:
        """Stats distinguish complete hits, partial hits and misses."""
        default_cache.store("doc", "Hello ", "World")
        default_cache.store("doc", "Bye ", "Wor", is_complete=False)

        default_cache.lookup("doc", "Hello ")
        default_cache.lookup("doc", "Bye ")
        default_cache.lookup("doc", "Nope")
        default_cache.lookup("doc", "Hello There")

        stats = default_cache.stats
        assert stats.lookups == 4
        assert stats.complete_hits == 1
        assert stats.partial_hits == 1
        assert stats.misses == 2
        assert stats.inserts == 2
        assert stats.documents == 1
        assert stats.hit_rate == 0.5

    def test_concurrent_stores(self, default_cache: CompletionCache) -> None:
        """Concurrent stores into different documents are serialized per trie."""

        def worker(document: str) -> None:
            for i in range(50):
                default_cache.store(document, f"line {i}: ", f"value {i}")

        threads = [threading.Thread(target=worker, args=(f"doc{n}",)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert default_cache.stats.inserts == 200
        for n in range(4):
            assert default_cache.lookup(f"doc{n}", "line 7: ") == CompletionResult(
                "value 7", True
            )


class TestCompletionCacheEviction:
    """Tests for eviction behavior."""

    def test_trie_budget_applies_per_document(self, small_cache: CompletionCache) -> None:
        """Each document's trie prunes its least recently used completions."""
        small_cache.store("doc", "ab", "1")
        small_cache.store("doc", "a", "2")
        small_cache.store("doc", "ac", "3")
        small_cache.lookup("doc", "ab")
        small_cache.store("doc", "d", "4")

        assert small_cache.lookup("doc", "ab") == CompletionResult("1", True)
        assert small_cache.lookup("doc", "d") == CompletionResult("4", True)
        assert small_cache.lookup("doc", "a") is None
        assert small_cache.lookup("doc", "ac") is None
        assert small_cache.stats.evictions == 2

    def test_budget_is_not_shared(self, small_cache: CompletionCache) -> None:
        """Filling one document does not prune another."""
        small_cache.store("a", "x", "12345")
        small_cache.store("b", "y", "12345")
        small_cache.store("b", "z", "12345")

        assert small_cache.lookup("a", "x") == CompletionResult("12345", True)
        assert small_cache.lookup("b", "y") is None
        assert small_cache.lookup("b", "z") == CompletionResult("12345", True)

    def test_lru_document_eviction(self, small_cache: CompletionCache) -> None:
        """The least recently used document is dropped when too many exist."""
        small_cache.store("a", "x", "1")
        small_cache.store("b", "x", "2")
        # Touch "a" so that "b" is the oldest
        small_cache.lookup("a", "x")
        small_cache.store("c", "x", "3")

        assert small_cache.documents == ["a", "c"]
        assert small_cache.lookup("b", "x") is None
        assert small_cache.lookup("a", "x") == CompletionResult("1", True)

    def test_drop_document(self, default_cache: CompletionCache) -> None:
        """Dropping a document removes its completions."""
        default_cache.store("doc", "Hello ", "World")
        assert default_cache.drop("doc") is True
        assert default_cache.drop("doc") is False
        assert default_cache.lookup("doc", "Hello ") is None

    def test_evictions_survive_drop(self) -> None:
        """Evictions of dropped tries still count."""
        cache = CompletionCache(config=CacheConfig(max_size=3))
        cache.store("doc", "a", "1")
        cache.store("doc", "b", "22")
        cache.drop("doc")
        assert cache.stats.evictions == 1

    def test_clear_cache(self, default_cache: CompletionCache) -> None:
        """Clear removes all documents."""
        default_cache.store("a", "x", "1")
        default_cache.store("b", "x", "2")
        default_cache.clear()

        assert default_cache.stats.documents == 0
        assert default_cache.lookup("a", "x") is None

    def test_get_trie_does_not_touch_recency(self, small_cache: CompletionCache) -> None:
        """Reading a trie leaves the document order unchanged."""
        small_cache.store("a", "x", "1")
        small_cache.store("b", "x", "2")

        trie = small_cache.get_trie("a")
        assert trie is not None
        assert trie.size == 2
        assert small_cache.get_trie("missing") is None
        assert small_cache.documents == ["a", "b"]
