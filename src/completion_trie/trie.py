"""Compressed prefix trie storing completions with LRU pruning."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from completion_trie.models import CompletionResult
from completion_trie.utils import common_prefix_length

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1_000_000

# Stands in for "no LRU index anywhere below"
NO_LRU_INDEX = sys.maxsize

# Reserved LRU index marking a completion that is about to be discarded
EVICTED_LRU_INDEX = 0


@dataclass(eq=False)
class TrieNode:
    """Branch point of the trie.

    Args:
        edges: Outgoing edges keyed by the first character of their label
        size: Combined length of all edge labels below this node
        min_lru_index: Minimum LRU index of this node and its subtree
        completion_key: Key into ``edges`` of the edge continuing the
            current completion (if any)
        lru_index: Set only on termination nodes of a completion
        is_complete: Whether the completion terminating here is final;
            only meaningful when ``lru_index`` is set
    """

    edges: Dict[str, Edge] = field(default_factory=dict)
    size: int = 0
    min_lru_index: int = NO_LRU_INDEX
    completion_key: Optional[str] = None
    lru_index: Optional[int] = None
    is_complete: bool = False

    @property
    def completion_edge(self) -> Optional[Edge]:
        """Edge continuing the current completion, if it still exists."""
        if self.completion_key is None:
            return None
        return self.edges.get(self.completion_key)

    @property
    def is_terminus(self) -> bool:
        return self.lru_index is not None


@dataclass(eq=False)
class Edge:
    """Labelled edge owning its child node.

    Args:
        label: Non-empty text stored on the edge
        node: Child node the edge leads to
    """

    label: str
    node: TrieNode


class CompletionTrie:
    """Compressed prefix trie for complete and incomplete completions.

    Prefixes and completions share one tree and may even overlap. Every
    node can mark the edge that continues "its" completion; following those
    marks always ends at a termination node carrying an LRU index. Whenever
    the stored characters exceed ``max_size``, the least recently used
    completion is pruned.

    The trie is not thread-safe; callers serialize access.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        """Initialize an empty trie.

        Args:
            max_size: Character budget; exceeding it triggers pruning

        Raises:
            ValueError: If max_size is not positive
        """
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.max_size = max_size
        self.root = TrieNode()
        self.evictions = 0
        self._lru_counter = 0

    @property
    def size(self) -> int:
        """Number of characters stored in the trie."""
        return self.root.size

    def insert(
        self,
        prefix: str,
        completion: str,
        is_complete: bool = True,
    ) -> None:
        """Insert a completion for the given prefix.

        The prefix only navigates; the completion lays completion marks
        along its path. If the completion runs into an existing complete
        completion, the new one is ignored and the old one refreshed. An
        existing incomplete completion is replaced, even by an incomplete one.

        To extend an incomplete completion, keep its text in the completion
        rather than moving it into the prefix; otherwise the two do not
        overlap and a separate completion is stored.

        Args:
            prefix: Text leading up to the completion
            completion: Completion text; empty completions are ignored
            is_complete: Whether the completion is final
        """
        if not completion:
            return

        self._insert(self.root, prefix, completion, is_complete)

        while self.root.size > self.max_size:
            self._remove_least_recently_used(self.root)
            self.evictions += 1

    def get_completion(self, prefix: str) -> Optional[CompletionResult]:
        """Retrieve the completion for the given prefix if one exists.

        Refreshes the LRU indices along the accessed path on success.

        Args:
            prefix: Text to complete

        Returns:
            CompletionResult, or None if no completion is known
        """
        node = self.root
        remaining = prefix
        path: List[TrieNode] = []
        parts: List[str] = []
        # Landing on a terminus right after the prefix yields an empty
        # completion, which is useless
        directly_after_prefix = True

        # Prefix, possibly ending inside the current completion
        while remaining:
            path.append(node)
            edge = node.edges.get(remaining[0])
            if edge is None:
                return None

            if remaining.startswith(edge.label):
                node = edge.node
                remaining = remaining[len(edge.label):]
            elif edge.label.startswith(remaining) and node.completion_key == remaining[0]:
                parts.append(edge.label[len(remaining):])
                remaining = ""
                directly_after_prefix = False
                node = edge.node
            else:
                return None

        # Completion
        while True:
            path.append(node)
            if node.is_terminus and not directly_after_prefix:
                self._lru_counter += 1
                self._update_lru_for_path(path, self._lru_counter)
                return CompletionResult(
                    completion="".join(parts),
                    is_complete=node.is_complete,
                )

            edge = node.completion_edge
            if edge is None:
                return None
            directly_after_prefix = False
            parts.append(edge.label)
            node = edge.node

    @staticmethod
    def _compute_min_lru_index(node: TrieNode) -> int:
        min_lru = node.lru_index if node.lru_index is not None else NO_LRU_INDEX
        for edge in node.edges.values():
            min_lru = min(min_lru, edge.node.min_lru_index)
        return min_lru

    def _update_lru_for_path(self, path: List[TrieNode], new_lru_index: int) -> int:
        """Assign a new LRU index to the terminus at the end of ``path``.

        Recomputes ``min_lru_index`` bottom-up along the path, stopping
        early once a node's minimum cannot have come from the old index.

        Args:
            path: Nodes from some ancestor down to the terminus
            new_lru_index: LRU index to assign

        Returns:
            The replaced LRU index
        """
        assert path, "path must hold at least one node"
        terminus = path[-1]
        old_lru_index = terminus.lru_index
        assert old_lru_index is not None, "path must end at a terminus"
        terminus.lru_index = new_lru_index

        for node in reversed(path):
            if node.min_lru_index != old_lru_index and new_lru_index > old_lru_index:
                break
            node.min_lru_index = self._compute_min_lru_index(node)

        return old_lru_index

    def _insert(
        self,
        node: TrieNode,
        prefix: str,
        completion: str,
        is_complete: bool,
    ) -> int:
        """Insert below ``node`` and return the change in stored characters."""
        if not prefix and not completion:
            self._lru_counter += 1
            node.lru_index = self._lru_counter
            node.is_complete = is_complete
            node.min_lru_index = self._compute_min_lru_index(node)
            return 0

        deletion_size_change = 0
        # Running into an existing completion: a complete one wins,
        # an incomplete one makes room for the new completion
        if not prefix and node.completion_key is not None:
            path = self._get_path_to_completion(node)
            if path[-1].is_complete:
                self._lru_counter += 1
                self._update_lru_for_path(path, self._lru_counter)
                return 0

            self._update_lru_for_path(path, EVICTED_LRU_INDEX)
            old_size = node.size
            self._remove_least_recently_used(node)
            deletion_size_change = node.size - old_size
            logger.debug(
                f"Discarded incomplete completion, size change={deletion_size_change}"
            )

        to_insert = prefix or completion
        inserting_prefix = bool(prefix)
        key = to_insert[0]
        edge = node.edges.get(key)

        if edge is not None:
            common_len = common_prefix_length(to_insert, edge.label)

            if common_len < len(edge.label):
                # Partial match -- split the edge, then retry on the branch point
                self._split_edge(edge, common_len, node.completion_key == key)
                return self._insert(node, prefix, completion, is_complete) + deletion_size_change

            # Full match on the edge label -- descend
            rest = to_insert[common_len:]
            if inserting_prefix:
                size_change = self._insert(edge.node, rest, completion, is_complete)
            else:
                size_change = self._insert(edge.node, "", rest, is_complete)
                node.completion_key = key
        else:
            child = TrieNode()
            node.edges[key] = Edge(label=to_insert, node=child)
            if not inserting_prefix:
                node.completion_key = key
            size_change = len(to_insert) + self._insert(
                child, "", completion if inserting_prefix else "", is_complete
            )

        node.size += size_change
        node.min_lru_index = self._compute_min_lru_index(node)
        return size_change + deletion_size_change

    @staticmethod
    def _get_path_to_completion(start: TrieNode) -> List[TrieNode]:
        """Follow completion edges from ``start`` to the next terminus."""
        path = [start]
        node = start
        while True:
            edge = node.completion_edge
            assert edge is not None, "completion path ends without a terminus"
            node = edge.node
            path.append(node)
            if node.is_terminus:
                return path

    @staticmethod
    def _split_edge(edge: Edge, split_pos: int, is_completion_edge: bool) -> None:
        """Split ``edge`` after ``split_pos`` characters.

        The new middle node keeps the completion mark if ``edge`` carried it.
        """
        common = edge.label[:split_pos]
        suffix = edge.label[split_pos:]

        split_node = TrieNode(
            size=edge.node.size + len(suffix),
            min_lru_index=edge.node.min_lru_index,
        )
        split_node.edges[suffix[0]] = Edge(label=suffix, node=edge.node)
        if is_completion_edge:
            split_node.completion_key = suffix[0]

        edge.label = common
        edge.node = split_node
        logger.debug(f"Split edge '{common}|{suffix}'")

    def _remove_least_recently_used(self, node: TrieNode) -> None:
        """Remove the completion holding ``node.min_lru_index`` below ``node``."""
        if node.lru_index is not None and node.lru_index == node.min_lru_index:
            # Clearing an inner terminus frees no characters but may allow
            # merging on the way back up
            node.lru_index = None
            node.min_lru_index = self._compute_min_lru_index(node)
            return

        min_key = None
        for key, candidate in node.edges.items():
            if candidate.node.min_lru_index == node.min_lru_index:
                min_key = key
                break
        assert min_key is not None, "min_lru_index does not match any subtree"

        min_edge = node.edges[min_key]
        child = min_edge.node
        old_size = child.size
        child_was_terminus = child.is_terminus

        self._remove_least_recently_used(child)

        if not child.is_terminus and not child.edges:
            # Leaves without a completion hold no information
            del node.edges[min_key]
            node.size -= old_size + len(min_edge.label)
            logger.debug(f"Pruned leaf edge '{min_edge.label}'")
        elif not child.is_terminus and len(child.edges) == 1 and self._can_merge(
            node, min_key, child, child_was_terminus
        ):
            # The child only existed to host a completion mark or a split
            node.size += child.size - old_size
            (sole_edge,) = child.edges.values()
            min_edge.label += sole_edge.label
            min_edge.node = sole_edge.node
            logger.debug(f"Merged edge into '{min_edge.label}'")
        else:
            node.size += child.size - old_size

        # A completion path may not dangle into nowhere, nor run on into
        # another completion once its own terminus is gone
        completion_edge = node.completion_edge
        lost_terminus = (
            child_was_terminus
            and not child.is_terminus
            and node.completion_key == min_key
        )
        if completion_edge is None or lost_terminus or (
            not completion_edge.node.is_terminus
            and completion_edge.node.completion_edge is None
        ):
            node.completion_key = None

        node.min_lru_index = self._compute_min_lru_index(node)

    @staticmethod
    def _can_merge(
        node: TrieNode,
        key: str,
        child: TrieNode,
        child_was_terminus: bool,
    ) -> bool:
        """Whether ``child`` with its single edge can be folded into its parent edge.

        Either the child was no terminus and the parent's completion runs
        through it (the split was caused by input that is now gone), or the
        child was the removed terminus and its sole edge is no completion.
        """
        if child_was_terminus:
            return child.completion_key is None
        return child.completion_key is not None and node.completion_key == key
