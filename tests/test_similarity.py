"""Tests for cosine scoring and top-K ranking."""

import math
from datetime import datetime, timezone

import pytest

from mira.src.core.errors import DimensionMismatchError
from mira.src.core.models import ChunkRecord
from mira.src.core.similarity import SimilarityRanker, cosine_similarity

_NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _record(record_id: str, embedding: list[float]) -> ChunkRecord:
    return ChunkRecord(id=record_id, text=f"text {record_id}", embedding=embedding, created_at=_NOW)


class TestCosineSimilarity:
    def test_identical_vectors_score_one(self) -> None:
        v = [0.3, -1.2, 4.0]
        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_opposite_vectors_score_minus_one(self) -> None:
        v = [0.3, -1.2, 4.0]
        assert cosine_similarity(v, [-x for x in v]) == pytest.approx(-1.0)

    def test_orthogonal_vectors_score_zero(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 2.0]) == pytest.approx(0.0)

    @pytest.mark.parametrize("other", [[], [0.0, 0.0, 0.0]])
    def test_zero_norm_scores_exactly_zero(self, other: list[float]) -> None:
        assert cosine_similarity([1.0, 2.0, 3.0], other) == 0.0
        assert cosine_similarity(other, [1.0, 2.0, 3.0]) == 0.0

    def test_both_empty_scores_zero(self) -> None:
        assert cosine_similarity([], []) == 0.0

    def test_is_symmetric(self) -> None:
        a = [1.0, 2.0, -0.5]
        b = [0.2, -3.0, 1.5]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_unequal_lengths_use_shorter_prefix(self) -> None:
        assert cosine_similarity([1.0, 0.0, 99.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0, 5.0, 5.0]) == pytest.approx(0.0)

    def test_prefix_with_zero_norm_scores_zero(self) -> None:
        assert cosine_similarity([0.0, 0.0, 1.0], [1.0, 1.0]) == 0.0

    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ([1e200, 1e200], [1e200, 1e200], 1.0),
            ([1e200, 0.0], [-1e200, 0.0], -1.0),
            ([1e-200, 1e-200], [1e-200, 1e-200], 1.0),
            ([1e300, 1.0], [1.0, 1e300], 0.0),
        ],
    )
    def test_extreme_magnitudes_stay_finite(self, a: list[float], b: list[float], expected: float) -> None:
        score = cosine_similarity(a, b)

        assert math.isfinite(score)
        assert score == pytest.approx(expected, abs=1e-9)


class TestSimilarityRanker:
    def test_returns_at_most_k_sorted_descending(self) -> None:
        query = [1.0, 0.0]
        records = [_record(str(i), [1.0, float(i)]) for i in range(8)]

        top = SimilarityRanker().rank(query, records, k=5)

        assert len(top) == 5
        scores = [c.score for c in top]
        assert scores == sorted(scores, reverse=True)
        assert top[0].id == "0"

    def test_returns_all_when_fewer_than_k(self) -> None:
        records = [_record("a", [1.0]), _record("b", [2.0])]

        top = SimilarityRanker().rank([1.0], records, k=5)

        assert [c.id for c in top] == ["a", "b"]

    def test_ties_keep_store_order(self) -> None:
        records = [_record(rid, [1.0, 1.0]) for rid in ["first", "second", "third"]]
        records.insert(1, _record("best", [1.0, 1.01]))

        top = SimilarityRanker().rank([1.0, 1.01], records, k=5)

        assert [c.id for c in top] == ["best", "first", "second", "third"]

    def test_empty_embeddings_stay_eligible_and_rank_last(self) -> None:
        records = [_record("empty", []), _record("match", [1.0, 0.0]), _record("weak", [0.1, 1.0])]

        top = SimilarityRanker().rank([1.0, 0.0], records, k=5)

        assert [c.id for c in top] == ["match", "weak", "empty"]
        assert top[-1].score == 0.0

    def test_empty_store_returns_nothing(self) -> None:
        assert SimilarityRanker().rank([1.0], [], k=5) == []

    def test_invalid_k_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            SimilarityRanker().rank([1.0], [], k=0)

    def test_candidate_exposes_record_fields(self) -> None:
        record = ChunkRecord(id="7", text="hello", embedding=[1.0], source_type="audio", source_name="call.m4a", created_at=_NOW)

        (candidate,) = SimilarityRanker().rank([1.0], [record])

        assert (candidate.id, candidate.text, candidate.source_type, candidate.source_name) == ("7", "hello", "audio", "call.m4a")


class TestDimensionEnforcement:
    def test_permissive_by_default(self) -> None:
        records = [_record("short", [1.0]), _record("long", [1.0, 0.0, 0.0])]

        top = SimilarityRanker().rank([1.0, 0.0], records)

        assert len(top) == 2

    def test_enforced_mismatch_raises(self) -> None:
        records = [_record("ok", [1.0, 0.0]), _record("bad", [1.0, 0.0, 0.0])]

        with pytest.raises(DimensionMismatchError):
            SimilarityRanker(enforce_dimension=True).rank([1.0, 0.0], records)

    def test_enforced_check_ignores_empty_embeddings(self) -> None:
        records = [_record("ok", [1.0, 0.0]), _record("empty", [])]

        top = SimilarityRanker(enforce_dimension=True).rank([1.0, 0.0], records)

        assert [c.id for c in top] == ["ok", "empty"]

    def test_enforced_check_ignores_empty_query_vector(self) -> None:
        records = [_record("a", [1.0, 0.0]), _record("b", [0.0, 1.0, 0.0])]

        top = SimilarityRanker(enforce_dimension=True).rank([], records)

        assert [c.id for c in top] == ["a", "b"]
        assert all(c.score == 0.0 for c in top)


class TestHugeEmbeddings:
    def test_ranking_with_huge_components_keeps_finite_order(self) -> None:
        records = [_record("aside", [1e200, -1e200]), _record("aligned", [1e200, 1e200])]

        top = SimilarityRanker().rank([1e200, 1e200], records)

        assert [c.id for c in top] == ["aligned", "aside"]
        assert all(math.isfinite(c.score) for c in top)
