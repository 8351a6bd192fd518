"""Command-line interface for completion-trie."""

from __future__ import annotations

import logging
from typing import Tuple

import click

from completion_trie.trie import DEFAULT_MAX_SIZE, CompletionTrie
from completion_trie.utils import render_trie

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

INCOMPLETE_MARKER = "~"


def parse_pair(text: str) -> Tuple[str, str, bool]:
    """Parse a ``prefix|completion`` pair.

    A trailing ``|~`` marks the completion as incomplete.

    Args:
        text: Pair to parse

    Returns:
        Tuple of (prefix, completion, is_complete)

    Raises:
        click.BadParameter: If the separator is missing
    """
    parts = text.split("|")
    if len(parts) < 2:
        raise click.BadParameter(f"expected 'prefix|completion', got '{text}'")

    is_complete = True
    if len(parts) > 2 and parts[-1] == INCOMPLETE_MARKER:
        is_complete = False
        parts = parts[:-1]
    return parts[0], "|".join(parts[1:]), is_complete


def build_trie(pairs: Tuple[str, ...], max_size: int) -> CompletionTrie:
    """Build a trie from ``prefix|completion`` pairs, inserted in order."""
    trie = CompletionTrie(max_size=max_size)
    for pair in pairs:
        prefix, completion, is_complete = parse_pair(pair)
        trie.insert(prefix, completion, is_complete)
    logger.debug(f"Built trie: size={trie.size}, evictions={trie.evictions}")
    return trie


@click.group()
@click.option("--verbose", is_flag=True, help="Log trie operations")
def main(verbose: bool) -> None:
    """Completion Trie - size-bounded cache of text completions."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@main.command()
@click.argument("pairs", nargs=-1, required=True)
@click.option("--max-size", default=DEFAULT_MAX_SIZE, help="Character budget of the trie")
@click.option("--query", "queries", multiple=True, help="Prefix to complete (repeatable)")
def demo(pairs: tuple, max_size: int, queries: tuple) -> None:
    """Insert PAIRS ('prefix|completion', '|~' suffix = incomplete) and query prefixes."""
    trie = build_trie(pairs, max_size)

    for query in queries:
        result = trie.get_completion(query)
        if result is None:
            click.echo(f"MISS: {query!r}")
        else:
            status = "complete" if result.is_complete else "incomplete"
            click.echo(f"HIT:  {query!r} -> {result.completion!r} ({status})")

    click.echo()
    click.echo(f"Size: {trie.size}/{trie.max_size} chars, evictions: {trie.evictions}")


@main.command()
@click.argument("pairs", nargs=-1, required=True)
@click.option("--max-size", default=DEFAULT_MAX_SIZE, help="Character budget of the trie")
def show(pairs: tuple, max_size: int) -> None:
    """Insert PAIRS and print the resulting tree."""
    trie = build_trie(pairs, max_size)
    click.echo(render_trie(trie.root))


if __name__ == "__main__":
    main()
