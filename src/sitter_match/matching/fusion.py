"""Weighted linear fusion of the three match signals."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sitter_match.config import settings

WEIGHT_SUM_TOLERANCE = 1e-6
FUSED_DECIMALS = 12


class FusionWeights(BaseModel):
    """Signal weights. Each is non-negative and together they sum to 1.0.

    With inputs in [0, 1], a convex combination keeps the fused score in [0, 1].
    """

    model_config = ConfigDict(frozen=True)

    content: float = Field(default=0.4, ge=0.0)
    collaborative: float = Field(default=0.3, ge=0.0)
    rerank: float = Field(default=0.3, ge=0.0)

    @model_validator(mode="after")
    def _check_sum(self) -> FusionWeights:
        total = self.content + self.collaborative + self.rerank
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            msg = f"Fusion weights must sum to 1.0, got {total:.6f}"
            raise ValueError(msg)
        return self

    @classmethod
    def from_settings(cls) -> FusionWeights:
        return cls(
            content=settings.weight_content,
            collaborative=settings.weight_collaborative,
            rerank=settings.weight_rerank,
        )


def _unit(value: float) -> float:
    return min(max(value, 0.0), 1.0)


class ScoreFusion:
    """Combines content, collaborative, and rerank scores into one ranking value."""

    def __init__(self, weights: FusionWeights | None = None) -> None:
        self._weights = weights or FusionWeights.from_settings()

    @property
    def weights(self) -> FusionWeights:
        return self._weights

    def fuse(self, content: float, collaborative: float, rerank: float) -> float:
        w = self._weights
        fused = (
            w.content * _unit(content)
            + w.collaborative * _unit(collaborative)
            + w.rerank * _unit(rerank)
        )
        # Rounding absorbs summation error (all-ones inputs fuse to exactly 1.0)
        return _unit(round(fused, FUSED_DECIMALS))
