"""Quick start example: Cache streamed completions while the user keeps typing."""

from __future__ import annotations

import logging
from typing import Iterator

from completion_trie.cache import CompletionCache
from completion_trie.models import CacheConfig, StreamChunk
from completion_trie.service import CompletionService
from completion_trie.utils import format_stats_report, render_trie

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


class CannedGenerator:
    """Stands in for a model server by streaming a fixed answer word by word."""

    def __init__(self, answer: str) -> None:
        self.answer = answer
        self.cancelled = False

    def generate_stream(self, model: str, prompt: str) -> Iterator[StreamChunk]:
        words = self.answer.split(" ")
        for i, word in enumerate(words):
            text = word if i == 0 else " " + word
            yield StreamChunk(text=text, done=i == len(words) - 1)

    def cancel(self) -> None:
        self.cancelled = True


def main() -> None:
    """Run completion caching demonstration."""
    print("=" * 70)
    print("Completion Trie - Quick Start Example")
    print("=" * 70)
    print()

    cache = CompletionCache(config=CacheConfig(max_size=200, model="demo"))
    service = CompletionService(CannedGenerator("range(10):\n    print(i)"), cache=cache)

    document = "main.py"
    typed = "for i in "

    # Phase 1: First request generates and caches the completion
    print("-" * 70)
    print("Phase 1: Generate")
    print("-" * 70)
    result = service.suggest(document, typed)
    print(f"  {typed!r} -> {(result.completion if result else None)!r}")
    print()

    # Phase 2: Typing along the suggestion is served from the cache
    print("-" * 70)
    print("Phase 2: Keep typing")
    print("-" * 70)
    for extra in ("r", "ran", "range(10)"):
        prefix = typed + extra
        result = cache.lookup(document, prefix)
        print(f"  {prefix!r} -> {(result.completion if result else None)!r}")
    print()

    # Phase 3: Show the tree and statistics
    print("-" * 70)
    print("Phase 3: Trie and statistics")
    print("-" * 70)
    trie = cache.get_trie(document)
    if trie is not None:
        print(render_trie(trie.root))
    print()
    print(format_stats_report(cache.stats))
    print()
    print("=" * 70)
    print("Example completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()
