"""Collaborative scoring via a black-box pairwise preference model."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Sequence
from typing import Protocol

from sitter_match.config import settings

logger = logging.getLogger(__name__)


class PreferenceModel(Protocol):
    """Pretrained model scoring how likely a requester is to prefer a candidate."""

    async def predict(self, requester_id: str, candidate_id: str) -> float: ...


class CollaborativeScorer:
    """Scores (requester, candidate) pairs, degrading to a fixed fallback.

    The fallback is a configurable constant, applied when the model raises,
    times out, or is not configured at all.
    """

    def __init__(
        self,
        model: PreferenceModel | None = None,
        *,
        fallback_score: float | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._model = model
        self._fallback = (
            settings.collaborative_fallback_score if fallback_score is None else fallback_score
        )
        self._timeout = (
            settings.scorer_timeout_seconds if timeout_seconds is None else timeout_seconds
        )

        if not 0.0 <= self._fallback <= 1.0:
            msg = f"Collaborative fallback must be in [0, 1], got {self._fallback}"
            raise ValueError(msg)
        if self._timeout <= 0:
            msg = f"Timeout must be positive, got {self._timeout}"
            raise ValueError(msg)

    @property
    def fallback_score(self) -> float:
        return self._fallback

    @property
    def is_configured(self) -> bool:
        return self._model is not None

    async def score(self, requester_id: str, candidate_id: str) -> float:
        if self._model is None:
            return self._fallback

        try:
            async with asyncio.timeout(self._timeout):
                raw = await self._model.predict(requester_id, candidate_id)
            score = float(raw)
        except Exception as e:
            logger.warning(
                "Preference model failed for %s × %s, using fallback %.2f: %s",
                requester_id, candidate_id, self._fallback, e,
            )
            return self._fallback

        if math.isnan(score):
            logger.warning(
                "Preference model returned NaN for %s × %s, using fallback",
                requester_id, candidate_id,
            )
            return self._fallback
        return min(max(score, 0.0), 1.0)

    async def score_many(self, requester_id: str, candidate_ids: Sequence[str]) -> list[float]:
        """Score every candidate concurrently, preserving input order."""
        return list(
            await asyncio.gather(
                *(self.score(requester_id, candidate_id) for candidate_id in candidate_ids)
            )
        )
