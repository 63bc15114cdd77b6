"""Tests for collaborative scoring and the preference model client."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from fakes import FakePreferenceModel

from sitter_match.clients.preference import PreferenceModelClient
from sitter_match.matching.collaborative import CollaborativeScorer


class SlowModel:
    async def predict(self, requester_id: str, candidate_id: str) -> float:
        await asyncio.sleep(0.5)
        return 0.9


class TestCollaborativeScorer:
    async def test_returns_model_score(self) -> None:
        scorer = CollaborativeScorer(FakePreferenceModel({"s1": 0.42}))
        assert await scorer.score("owner-1", "s1") == 0.42

    async def test_clamps_out_of_range(self) -> None:
        scorer = CollaborativeScorer(FakePreferenceModel({"hi": 1.7, "lo": -0.3}))
        assert await scorer.score("o", "hi") == 1.0
        assert await scorer.score("o", "lo") == 0.0

    async def test_nan_uses_fallback(self) -> None:
        scorer = CollaborativeScorer(
            FakePreferenceModel({"s": float("nan")}), fallback_score=0.6
        )
        assert await scorer.score("o", "s") == 0.6

    async def test_error_uses_fallback(self) -> None:
        scorer = CollaborativeScorer(
            FakePreferenceModel(fail_for={"broken"}), fallback_score=0.5
        )
        assert await scorer.score("o", "broken") == 0.5

    async def test_timeout_uses_fallback(self) -> None:
        scorer = CollaborativeScorer(SlowModel(), fallback_score=0.55, timeout_seconds=0.01)
        assert await scorer.score("o", "s") == 0.55

    async def test_unconfigured_model_uses_fallback(self) -> None:
        scorer = CollaborativeScorer(None, fallback_score=0.75)
        assert scorer.is_configured is False
        assert await scorer.score("o", "s") == 0.75

    async def test_fallback_is_deterministic(self) -> None:
        scorer = CollaborativeScorer(FakePreferenceModel(fail_for={"a", "b"}), fallback_score=0.75)
        assert await scorer.score_many("o", ["a", "b"]) == [0.75, 0.75]

    async def test_score_many_preserves_order_and_isolates_failures(self) -> None:
        model = FakePreferenceModel({"a": 0.1, "c": 0.9}, fail_for={"b"})
        scorer = CollaborativeScorer(model, fallback_score=0.5)

        assert await scorer.score_many("owner-1", ["a", "b", "c"]) == [0.1, 0.5, 0.9]
        assert ("owner-1", "b") in model.calls

    def test_rejects_zero_timeout(self) -> None:
        with pytest.raises(ValueError, match="Timeout"):
            CollaborativeScorer(None, timeout_seconds=0)

    @pytest.mark.parametrize("bad", [-0.1, 1.5])
    def test_rejects_fallback_outside_unit_interval(self, bad: float) -> None:
        with pytest.raises(ValueError):
            CollaborativeScorer(None, fallback_score=bad)


class TestPreferenceModelClient:
    def _client(self, handler) -> PreferenceModelClient:
        transport = httpx.MockTransport(handler)
        return PreferenceModelClient(
            "http://prefs.test/predict",
            http_client=httpx.AsyncClient(transport=transport),
        )

    async def test_posts_pair_and_reads_score(self) -> None:
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"score": 0.83})

        client = self._client(handler)
        assert await client.predict("owner-1", "sitter-9") == 0.83
        assert seen == [{"requester_id": "owner-1", "candidate_id": "sitter-9"}]
        await client.aclose()

    async def test_http_error_raises(self) -> None:
        client = self._client(lambda request: httpx.Response(503))
        with pytest.raises(httpx.HTTPStatusError):
            await client.predict("o", "s")
        await client.aclose()

    async def test_non_numeric_score_raises(self) -> None:
        client = self._client(lambda request: httpx.Response(200, json={"score": "high"}))
        with pytest.raises(ValueError):
            await client.predict("o", "s")
        await client.aclose()

    async def test_scorer_falls_back_on_http_error(self) -> None:
        client = self._client(lambda request: httpx.Response(500))
        scorer = CollaborativeScorer(client, fallback_score=0.75)
        assert await scorer.score("o", "s") == 0.75
        await client.aclose()
