"""
Mira - Text Utilities
======================
Helper functions for chunking ingested text and normalising user
messages.

These utilities are consumed by the ``RAGService`` and the
``QueryClassifier`` and must remain stateless and side-effect-free.
"""

from __future__ import annotations

import re

_RE_WHITESPACE = re.compile(r"\s+")

DEFAULT_MAX_CHARS = 800


def chunk_text(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> list[str]:
    """
    Split *text* into consecutive slices of at most *max_chars* characters.

    The split is purely positional (no sentence or word awareness), so
    ``"".join(chunk_text(t, m)) == t`` for every input and the number of
    chunks is ``ceil(len(t) / m)``.  Empty input yields an empty list.

    Raises:
        ValueError: If *max_chars* is not a positive integer.
    """
    if max_chars < 1:
        raise ValueError(f"max_chars must be ≥ 1, got {max_chars}")
    return [text[start : start + max_chars] for start in range(0, len(text), max_chars)]


def normalize_message(text: str) -> str:
    """Trim surrounding whitespace and lowercase."""
    return text.strip().lower()


def count_words(text: str) -> int:
    """Number of non-empty whitespace-separated tokens in *text*."""
    return len([token for token in _RE_WHITESPACE.split(text) if token])


def is_blank(value: object) -> bool:
    """True for ``None``, non-strings that stringify to blank, and whitespace-only strings."""
    if value is None:
        return True
    return not str(value).strip()
