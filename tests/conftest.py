"""Shared pytest fixtures for SitterMatch tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from fakes import TEST_DIM, FakeEmbedder, FakePreferenceModel, FakeRerankScorer

from sitter_match.matching.cache import InMemoryEmbeddingCache
from sitter_match.matching.collaborative import CollaborativeScorer
from sitter_match.matching.embedding import EmbeddingProvider
from sitter_match.matching.engine import MatchmakingEngine

MakePet = Callable[..., dict[str, Any]]
MakeSitter = Callable[..., dict[str, Any]]


@pytest.fixture
def make_pet() -> MakePet:
    """Factory fixture for pet profiles."""

    def _make(*, pet_id: str = "pet-1", owner_id: str | None = "owner-1", **fields: Any) -> dict:
        record: dict[str, Any] = {
            "id": pet_id,
            "breed": "Labrador",
            "size": "large",
            "age": 4,
            "energyLevel": "high",
            "temperament": ["friendly", "playful"],
            "trainingLevel": "intermediate",
            "socialization": "good",
            "houseTrained": True,
            "vaccinations": ["rabies", "distemper"],
        }
        if owner_id is not None:
            record["ownerId"] = owner_id
        record.update(fields)
        return record

    return _make


@pytest.fixture
def make_sitter() -> MakeSitter:
    """Factory fixture for sitter profiles."""

    def _make(sitter_id: str, **fields: Any) -> dict:
        record: dict[str, Any] = {
            "id": sitter_id,
            "name": f"Sitter {sitter_id}",
            "experience": [],
            "certifications": [],
            "ratings": {"average": 4.0, "count": 10},
        }
        record.update(fields)
        return record

    return _make


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def provider(embedder: FakeEmbedder) -> EmbeddingProvider:
    return EmbeddingProvider(
        embedder,
        InMemoryEmbeddingCache(max_entries=100),
        dim=TEST_DIM,
        timeout_seconds=1.0,
    )


@pytest.fixture
def rerank() -> FakeRerankScorer:
    return FakeRerankScorer(score=0.5)


@pytest.fixture
def engine(provider: EmbeddingProvider, rerank: FakeRerankScorer) -> MatchmakingEngine:
    """Engine with fakes for every external signal source."""
    return MatchmakingEngine(
        embeddings=provider,
        collaborative=CollaborativeScorer(FakePreferenceModel(default=0.5)),
        rerank=rerank,  # type: ignore[arg-type]
    )
