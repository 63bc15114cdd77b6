"""Tests for content scoring."""

from __future__ import annotations

import pytest
from fakes import unit_vector

from sitter_match.enums import EmbeddingSource
from sitter_match.matching.embedding import Embedding
from sitter_match.matching.similarity import ContentScorer, cosine_similarity


class TestCosineSimilarity:
    def test_self_similarity_is_one(self) -> None:
        v = [0.3, -1.2, 4.0, 0.01]
        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_orthogonal_is_zero(self) -> None:
        assert cosine_similarity(unit_vector(0), unit_vector(1)) == 0.0

    def test_scale_invariant(self) -> None:
        assert cosine_similarity([1.0, 2.0], [10.0, 20.0]) == pytest.approx(1.0)

    def test_opposed_vectors_clamp_to_zero(self) -> None:
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == 0.0

    def test_zero_magnitude(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
        assert cosine_similarity([1.0, 1.0], [0.0, 0.0]) == 0.0

    def test_length_mismatch_returns_zero(self) -> None:
        assert cosine_similarity([1.0, 0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_empty(self) -> None:
        assert cosine_similarity([], []) == 0.0

    def test_non_finite_components(self) -> None:
        assert cosine_similarity([float("nan"), 1.0], [1.0, 1.0]) == 0.0
        assert cosine_similarity([float("inf"), 1.0], [1.0, 1.0]) == 0.0

    def test_result_in_unit_interval(self) -> None:
        score = cosine_similarity([0.2, 0.9, 0.1], [0.8, 0.3, 0.5])
        assert 0.0 <= score <= 1.0


class TestContentScorer:
    def _embedding(self, vector: tuple[float, ...]) -> Embedding:
        return Embedding(entity_id="x", vector=vector, source=EmbeddingSource.EXTERNAL)

    def test_score_many(self) -> None:
        scorer = ContentScorer()
        requester = self._embedding(unit_vector(0))
        candidates = [self._embedding(unit_vector(0)), self._embedding(unit_vector(1))]

        assert scorer.score_many(requester, candidates) == [pytest.approx(1.0), 0.0]
