"""Utility functions for completion-trie."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from completion_trie.models import CacheStats

if TYPE_CHECKING:
    from completion_trie.trie import TrieNode

logger = logging.getLogger(__name__)


def common_prefix_length(text_a: str, text_b: str) -> int:
    """Find the length of the common prefix between two strings.

    Args:
        text_a: First string
        text_b: Second string

    Returns:
        Length of common prefix
    """
    length = min(len(text_a), len(text_b))
    for i in range(length):
        if text_a[i] != text_b[i]:
            return i
    return length


def count_stored_characters(node: TrieNode) -> int:
    """Sum the edge label lengths below a node by walking the tree.

    Independent of the cached ``size`` values, so it can be used to check them.

    Args:
        node: Node to start from

    Returns:
        Number of characters stored below ``node``
    """
    total = 0
    stack = [node]
    while stack:
        current = stack.pop()
        for edge in current.edges.values():
            total += len(edge.label)
            stack.append(edge.node)
    return total


def render_trie(node: TrieNode) -> str:
    """Render a trie as an indented tree.

    Completion edges are marked with ``*``, termination nodes with their
    LRU index and ``complete``/``incomplete``.

    Args:
        node: Root of the tree to render

    Returns:
        Multi-line string representation
    """
    lines = [f"<root> size={node.size}"]
    _render_edges(node, 1, lines)
    return "\n".join(lines)


def _render_edges(node: TrieNode, depth: int, lines: List[str]) -> None:
    """Append one line per edge below ``node``, depth first.

    Args:
        node: Node whose edges to render
        depth: Indentation level of the edges
        lines: List to append lines to
    """
    for key, edge in node.edges.items():
        marker = "*" if key == node.completion_key else " "
        child = edge.node
        status = ""
        if child.lru_index is not None:
            state = "complete" if child.is_complete else "incomplete"
            status = f" [lru={child.lru_index} {state}]"
        lines.append(f"{'  ' * depth}{marker}{edge.label!r}{status}")
        _render_edges(child, depth + 1, lines)


def format_stats_report(stats: CacheStats) -> str:
    """Format cache statistics as a human-readable report.

    Args:
        stats: CacheStats to format

    Returns:
        Formatted report string
    """
    lines = [
        "=== Completion Cache Statistics ===",
        f"Documents:      {stats.documents}",
        f"Lookups:        {stats.lookups}",
        f"Complete Hits:  {stats.complete_hits}",
        f"Partial Hits:   {stats.partial_hits}",
        f"Misses:         {stats.misses}",
        f"Hit Rate:       {stats.hit_rate:.1%}",
        f"Inserts:        {stats.inserts}",
        f"Evictions:      {stats.evictions}",
        "===================================",
    ]
    return "\n".join(lines)
