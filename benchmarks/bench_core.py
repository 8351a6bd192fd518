"""Performance benchmarks for completion-trie components."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List, Tuple

from completion_trie.cache import CompletionCache
from completion_trie.models import CacheConfig
from completion_trie.trie import CompletionTrie

logging.basicConfig(level=logging.WARNING)

NUM_ITERATIONS = 3


@dataclass
class BenchResult:
    """Benchmark result."""

    name: str
    mean_seconds: float
    items_processed: int
    throughput_per_sec: float


def generate_pairs(
    count: int,
    prefix_length: int,
    completion_length: int,
    num_unique_prefixes: int = 10,
) -> List[Tuple[str, str]]:
    """Generate (prefix, completion) pairs with shared prefix starts.

    Args:
        count: Number of pairs to generate
        prefix_length: Length of the shared part of the prefix
        completion_length: Length of each completion
        num_unique_prefixes: Number of distinct shared prefix parts

    Returns:
        List of (prefix, completion) pairs
    """
    pairs: List[Tuple[str, str]] = []
    for i in range(count):
        shared = f"def function_{i % num_unique_prefixes}(".ljust(prefix_length, "_")
        prefix = f"{shared}arg_{i}, "
        completion = f"value_{i}".ljust(completion_length, ")")
        pairs.append((prefix, completion))
    return pairs


def _result(name: str, timings: List[float], items: int) -> BenchResult:
    mean_time = sum(timings) / len(timings)
    return BenchResult(
        name=name,
        mean_seconds=mean_time,
        items_processed=items,
        throughput_per_sec=items / mean_time,
    )


def bench_trie_insert() -> BenchResult:
    """Benchmark trie insertion speed."""
    n_entries = 20000
    pairs = generate_pairs(n_entries, prefix_length=30, completion_length=20)

    timings: List[float] = []
    for _ in range(NUM_ITERATIONS):
        trie = CompletionTrie()
        start = time.perf_counter()
        for prefix, completion in pairs:
            trie.insert(prefix, completion)
        timings.append(time.perf_counter() - start)

    return _result(f"Trie Insert ({n_entries} completions)", timings, n_entries)


def bench_trie_lookup() -> BenchResult:
    """Benchmark completion lookup speed."""
    n_entries = 10000
    pairs = generate_pairs(n_entries, prefix_length=30, completion_length=20)

    trie = CompletionTrie()
    for prefix, completion in pairs:
        trie.insert(prefix, completion)

    # Exact prefixes, prefixes typed into the completion, and misses
    queries = [prefix for prefix, _ in pairs[:4000]]
    queries += [prefix + completion[:3] for prefix, completion in pairs[4000:8000]]
    queries += [prefix + "zzz" for prefix, _ in pairs[8000:]]
    n_lookups = len(queries)

    timings: List[float] = []
    for _ in range(NUM_ITERATIONS):
        start = time.perf_counter()
        for query in queries:
            trie.get_completion(query)
        timings.append(time.perf_counter() - start)

    return _result(f"Trie Lookup ({n_lookups} queries)", timings, n_lookups)


def bench_trie_pruning() -> BenchResult:
    """Benchmark insertion under a tight character budget."""
    n_entries = 20000
    pairs = generate_pairs(n_entries, prefix_length=30, completion_length=20)

    timings: List[float] = []
    for _ in range(NUM_ITERATIONS):
        trie = CompletionTrie(max_size=5000)
        start = time.perf_counter()
        for prefix, completion in pairs:
            trie.insert(prefix, completion)
        timings.append(time.perf_counter() - start)

    return _result(f"Trie Insert + Pruning ({n_entries} completions)", timings, n_entries)


def bench_cache_store() -> BenchResult:
    """Benchmark cache store operations across documents."""
    n_entries = 10000
    pairs = generate_pairs(n_entries, prefix_length=30, completion_length=20)

    config = CacheConfig(max_documents=8)

    timings: List[float] = []
    for _ in range(NUM_ITERATIONS):
        cache = CompletionCache(config=config)
        start = time.perf_counter()
        for i, (prefix, completion) in enumerate(pairs):
            cache.store(f"doc-{i % 8}", prefix, completion)
        timings.append(time.perf_counter() - start)

    return _result(f"Cache Store ({n_entries} completions)", timings, n_entries)


def main() -> None:
    """Run all benchmarks."""
    benchmarks = [
        bench_trie_insert,
        bench_trie_lookup,
        bench_trie_pruning,
        bench_cache_store,
    ]

    results: List[BenchResult] = []
    for bench_fn in benchmarks:
        results.append(bench_fn())

    header = f"{'Benchmark':<50} {'Time (s)':>10} {'Items':>8} {'Throughput':>14}"
    sep = "-" * len(header)

    print()
    print("=" * len(header))
    print("Completion Trie - Performance Benchmarks")
    print("=" * len(header))
    print()
    print(header)
    print(sep)

    for r in results:
        print(
            f"{r.name:<50} {r.mean_seconds:>10.4f} {r.items_processed:>8} "
            f"{r.throughput_per_sec:>12.2f}/s"
        )

    print(sep)
    print()


if __name__ == "__main__":
    main()
