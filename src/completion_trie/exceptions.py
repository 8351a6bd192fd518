"""Custom exceptions for completion-trie."""

from __future__ import annotations


class CompletionError(Exception):
    """Base exception for all completion errors."""


class GenerationError(CompletionError):
    """Raised by a generator when the backend reports an error."""


class GenerationCancelled(CompletionError):
    """Raised by a generator when a stream was interrupted by cancel()."""
