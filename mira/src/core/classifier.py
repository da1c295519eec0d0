"""
Mira - Query Classifier
========================
One-shot gate deciding whether a message needs retrieval at all.

A message is a **greeting** when its normalised form starts with one of
the configured greeting words (followed by a word boundary) *and* it
has at most ``GREETING_MAX_WORDS`` words.  Everything else is a
**question** and goes through the full RAG pipeline.

This is a heuristic: a six-word greeting falls through to RAG, and a
short question opening with "hi" skips retrieval.  Greetings must never
pay for an embedding call plus a scan of the store.

Greeting vocabulary syntax
--------------------------
``"hi+"``           final letter may repeat (``hi``, ``hii``, ``hiiii``)
``"sup"``           literal
``"good morning"``  literal words, any whitespace run between them
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from mira.config.settings import settings
from mira.src.core.models import QueryKind
from mira.src.utils.logger import get_logger
from mira.src.utils.text_utils import count_words, normalize_message

logger = get_logger(__name__)


def _entry_to_pattern(entry: str) -> str:
    repeat_last = entry.endswith("+")
    parts = (entry[:-1] if repeat_last else entry).split()
    escaped = [re.escape(part) for part in parts]
    if repeat_last:
        last = parts[-1]
        escaped[-1] = re.escape(last[:-1]) + re.escape(last[-1]) + "+"
    return r"\s+".join(escaped)


def compile_greeting_pattern(words: Iterable[str]) -> re.Pattern[str]:
    """Build the anchored greeting regex from a vocabulary list."""
    alternatives = [_entry_to_pattern(w) for w in words if w.strip("+ ")]
    if not alternatives:
        raise ValueError("greeting vocabulary is empty")
    return re.compile(r"^(?:" + "|".join(alternatives) + r")\b")


def is_greeting(text: str, pattern: re.Pattern[str], max_words: int) -> bool:
    """Pure predicate: greeting opener *and* short enough."""
    normalised = normalize_message(text)
    return bool(pattern.match(normalised)) and count_words(normalised) <= max_words


class QueryClassifier:
    """
    Classify a message as ``QueryKind.GREETING`` or ``QueryKind.QUESTION``.

    Parameters
    ----------
    greeting_words
        Vocabulary (see module docstring).  Defaults to ``settings.GREETING_WORDS``.
    max_words
        Word-count ceiling for greetings.  Defaults to ``settings.GREETING_MAX_WORDS``.
    """

    __slots__ = ("_pattern", "_max_words")

    def __init__(self, greeting_words: Iterable[str] | None = None, max_words: int | None = None) -> None:
        self._pattern = compile_greeting_pattern(greeting_words if greeting_words is not None else settings.GREETING_WORDS)
        self._max_words = max_words if max_words is not None else settings.GREETING_MAX_WORDS


    def classify(self, message: str) -> QueryKind:
        kind = QueryKind.GREETING if is_greeting(message, self._pattern, self._max_words) else QueryKind.QUESTION
        logger.debug("[CLASSIFY] %s (%d words)", kind.value, count_words(message))
        return kind
