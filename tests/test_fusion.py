"""Tests for score fusion."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sitter_match.matching.fusion import FusionWeights, ScoreFusion


class TestFusionWeights:
    def test_defaults(self) -> None:
        weights = FusionWeights()
        assert (weights.content, weights.collaborative, weights.rerank) == (0.4, 0.3, 0.3)

    def test_must_sum_to_one(self) -> None:
        with pytest.raises(ValidationError, match="sum to 1.0"):
            FusionWeights(content=0.5, collaborative=0.5, rerank=0.5)

    def test_rejects_negative(self) -> None:
        with pytest.raises(ValidationError):
            FusionWeights(content=1.2, collaborative=-0.2, rerank=0.0)

    def test_tolerates_float_error(self) -> None:
        weights = FusionWeights(content=0.1, collaborative=0.2, rerank=0.7)
        assert weights.rerank == 0.7


class TestScoreFusion:
    def test_all_ones_is_exactly_one(self) -> None:
        assert ScoreFusion(FusionWeights()).fuse(1.0, 1.0, 1.0) == 1.0

    def test_all_zeros_is_zero(self) -> None:
        assert ScoreFusion(FusionWeights()).fuse(0.0, 0.0, 0.0) == 0.0

    def test_weighted_sum(self) -> None:
        fusion = ScoreFusion(FusionWeights())
        assert fusion.fuse(1.0, 0.5, 0.5) == pytest.approx(0.7)
        assert fusion.fuse(0.0, 0.5, 0.5) == pytest.approx(0.3)

    def test_out_of_range_inputs_clamped(self) -> None:
        fusion = ScoreFusion(FusionWeights())
        assert fusion.fuse(2.0, 5.0, 1.5) == 1.0
        assert fusion.fuse(-1.0, -0.5, -3.0) == 0.0

    @pytest.mark.parametrize(
        ("content", "collaborative", "rerank"),
        [(0.1, 0.9, 0.3), (0.99, 0.01, 0.5), (0.33, 0.66, 0.99)],
    )
    def test_fused_in_unit_interval(self, content: float, collaborative: float, rerank: float) -> None:
        fused = ScoreFusion(FusionWeights()).fuse(content, collaborative, rerank)
        assert 0.0 <= fused <= 1.0

    def test_custom_weights(self) -> None:
        fusion = ScoreFusion(FusionWeights(content=1.0, collaborative=0.0, rerank=0.0))
        assert fusion.fuse(0.25, 1.0, 1.0) == 0.25
