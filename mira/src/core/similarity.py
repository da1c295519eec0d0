"""
Mira - Similarity Ranker
=========================
Exact cosine scoring of every stored chunk against a query vector.

Scoring rules
-------------
- Only the first ``min(len(a), len(b))`` components take part; unequal
  lengths are tolerated, never padded, never an error.
- A zero norm on either side (empty or all-zero vector) scores exactly
  ``0.0``, so chunks whose embedding failed at ingestion stay eligible but
  sink to the bottom.

Ranking is a full linear scan (O(N·D) per query).  ``SimilarityRanker``
keeps the ``rank(query_vector, records, k)`` boundary so an index-backed
ranker can replace it without touching ``RAGService``.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from mira.src.core.errors import DimensionMismatchError
from mira.src.core.models import ChunkRecord, ScoredCandidate
from mira.src.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TOP_K = 5


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity over the shared prefix of *a* and *b*; 0.0 on a zero norm.

    Components are divided by their vector's norm before the dot product,
    so very large or very small magnitudes neither overflow nor underflow.
    The result is always a finite value in ``[-1.0, 1.0]``.
    """
    length = min(len(a), len(b))
    if length == 0:
        return 0.0

    a_part = a[:length]
    b_part = b[:length]
    norm_a = math.hypot(*a_part)
    norm_b = math.hypot(*b_part)
    if norm_a == 0.0 or norm_b == 0.0 or not math.isfinite(norm_a) or not math.isfinite(norm_b):
        return 0.0

    score = math.fsum((x / norm_a) * (y / norm_b) for x, y in zip(a_part, b_part))
    if not math.isfinite(score):
        return 0.0
    return max(-1.0, min(1.0, score))


class SimilarityRanker:
    """
    Score and order chunk records against a query vector.

    Parameters
    ----------
    enforce_dimension
        When True, a non-empty stored vector whose length differs from
        the query vector raises ``DimensionMismatchError`` instead of
        being scored over the shared prefix.  Empty vectors on either side
        are exempt and score 0.
    """

    __slots__ = ("_enforce_dimension",)

    def __init__(self, enforce_dimension: bool = False) -> None:
        self._enforce_dimension = enforce_dimension


    def score(self, query_vector: Sequence[float], records: Sequence[ChunkRecord]) -> list[ScoredCandidate]:
        """Score every record, preserving store order."""
        if self._enforce_dimension:
            self._check_dimensions(query_vector, records)
        return [ScoredCandidate(record=record, score=cosine_similarity(query_vector, record.embedding)) for record in records]


    def rank(self, query_vector: Sequence[float], records: Sequence[ChunkRecord], k: int = DEFAULT_TOP_K) -> list[ScoredCandidate]:
        """
        Return the ``min(k, len(records))`` best candidates, highest score first.

        ``sorted`` is stable, so equal scores keep their store order.
        """
        if k < 1:
            raise ValueError(f"k must be ≥ 1, got {k}")

        scored = self.score(query_vector, records)
        ranked = sorted(scored, key=lambda candidate: candidate.score, reverse=True)
        top = ranked[:k]

        if top:
            logger.debug("[RANK] %d record(s) scored, top score=%.3f, returning %d.", len(scored), top[0].score, len(top))
        else:
            logger.debug("[RANK] No records to score.")
        return top


    @staticmethod
    def _check_dimensions(query_vector: Sequence[float], records: Sequence[ChunkRecord]) -> None:
        expected = len(query_vector)
        if expected == 0:
            return
        mismatched = [r.id for r in records if r.embedding and len(r.embedding) != expected]
        if mismatched:
            raise DimensionMismatchError(
                f"{len(mismatched)} stored embedding(s) do not match query dimension {expected} (first id={mismatched[0]})",
            )
