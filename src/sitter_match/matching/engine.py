"""Matchmaking engine: the caller-facing recommendation pipeline.

Pipeline for one request:
1. Validate input (the only failure the caller sees)
2. Normalize pet and sitter records into CanonicalTraits
3. Resolve all embeddings concurrently through the shared cache
4. Score content, collaborative, and rerank signals concurrently
5. Fuse, rank, truncate, explain

Every signal source degrades to its fallback on failure, so a request with
valid input always produces a ranking.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

from sitter_match.clients.preference import PreferenceModelClient
from sitter_match.config import settings
from sitter_match.enums import EntityKind
from sitter_match.inference.rerank import ExternalRerankScorer, RerankOutcome, summarize_sitter
from sitter_match.matching.collaborative import CollaborativeScorer
from sitter_match.matching.embedding import Embedding, EmbeddingProvider
from sitter_match.matching.fusion import ScoreFusion
from sitter_match.matching.ranking import (
    RankingAssembler,
    RankingResult,
    SignalScores,
)
from sitter_match.matching.similarity import ContentScorer
from sitter_match.matching.traits import TraitNormalizer

logger = logging.getLogger(__name__)


class InvalidRequestError(ValueError):
    """Recommendation request is malformed. Raised before any scorer runs."""


def entity_key(kind: EntityKind, entity_id: str) -> str:
    """Cache key for an entity. Namespaced so pet and sitter ids never collide."""
    return f"{kind.value}:{entity_id}"


def _entity_id(record: Any, what: str) -> str:
    if not isinstance(record, Mapping):
        msg = f"{what} must be an object, got {type(record).__name__}"
        raise InvalidRequestError(msg)
    raw = record.get("id")
    if raw is None or isinstance(raw, bool) or str(raw).strip() == "":
        msg = f"{what} is missing an id"
        raise InvalidRequestError(msg)
    return str(raw)


class MatchmakingEngine:
    """Ranks sitters for a pet by fusing content, collaborative, and rerank signals.

    Usage:
        engine = MatchmakingEngine()
        ranking = await engine.get_recommendations(pet, preferences, sitters, limit=5)
        for item in ranking:
            print(item.candidate["name"], item.fused_score, item.reasons)
    """

    def __init__(
        self,
        *,
        normalizer: TraitNormalizer | None = None,
        embeddings: EmbeddingProvider | None = None,
        content: ContentScorer | None = None,
        collaborative: CollaborativeScorer | None = None,
        rerank: ExternalRerankScorer | None = None,
        fusion: ScoreFusion | None = None,
        assembler: RankingAssembler | None = None,
    ) -> None:
        self._normalizer = normalizer or TraitNormalizer()
        self._embeddings = embeddings or EmbeddingProvider()
        self._content = content or ContentScorer()
        # Only a client built here is owned (and closed) by the engine
        self._preference_client: PreferenceModelClient | None = None
        if collaborative is None and settings.preference_model_url:
            self._preference_client = PreferenceModelClient(settings.preference_model_url)
        self._collaborative = collaborative or CollaborativeScorer(self._preference_client)
        self._rerank = rerank or ExternalRerankScorer()
        self._fusion = fusion or ScoreFusion()
        self._assembler = assembler or RankingAssembler()

    @property
    def embeddings(self) -> EmbeddingProvider:
        return self._embeddings

    @property
    def collaborative(self) -> CollaborativeScorer:
        return self._collaborative

    async def get_recommendations(
        self,
        pet: Mapping[str, Any],
        owner_preferences: Mapping[str, Any] | None,
        candidates: Sequence[Mapping[str, Any]],
        limit: int | None = None,
    ) -> RankingResult:
        """Return up to `limit` sitters, best match first.

        Raises:
            InvalidRequestError: Pet or a candidate lacks an id, a record is not
                an object, or limit is negative.
        """
        limit = settings.default_limit if limit is None else limit
        pet_id = _entity_id(pet, "Pet profile")
        if owner_preferences is not None and not isinstance(owner_preferences, Mapping):
            msg = "Owner preferences must be an object"
            raise InvalidRequestError(msg)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            msg = f"limit must be a non-negative integer, got {limit!r}"
            raise InvalidRequestError(msg)
        candidate_ids = [
            _entity_id(candidate, f"Candidate #{i}") for i, candidate in enumerate(candidates)
        ]

        if not candidates or limit == 0:
            return []

        start_time = time.time()
        logger.info("Getting recommendations for pet %s (%d sitters)", pet_id, len(candidates))

        # Collaborative model is keyed by the owner; fall back to the pet id
        owner_id = pet.get("ownerId", pet.get("owner_id"))
        requester_id = str(owner_id) if owner_id is not None else pet_id

        pet_traits = self._normalizer.normalize(pet, EntityKind.PET)
        sitter_traits = [
            self._normalizer.normalize(candidate, EntityKind.SITTER) for candidate in candidates
        ]

        # Collaborative and rerank do not need embeddings, so start them now
        collaborative_task = asyncio.ensure_future(
            self._collaborative.score_many(requester_id, candidate_ids)
        )
        rerank_task = asyncio.ensure_future(
            self._rerank.score_batch(
                pet,
                owner_preferences or {},
                [summarize_sitter(candidate) for candidate in candidates],
            )
        )

        try:
            pet_embedding, *sitter_embeddings = await self._embeddings.get_embeddings([
                (entity_key(EntityKind.PET, pet_id), pet_traits),
                *(
                    (entity_key(EntityKind.SITTER, cid), traits)
                    for cid, traits in zip(candidate_ids, sitter_traits, strict=True)
                ),
            ])
            content_scores = self._content_scores(pet_embedding, sitter_embeddings)
            collaborative_scores, rerank_outcome = await asyncio.gather(
                collaborative_task, rerank_task
            )
        except BaseException:
            collaborative_task.cancel()
            rerank_task.cancel()
            raise

        signals = self._fuse(content_scores, collaborative_scores, rerank_outcome)
        ranking = self._assembler.assemble(candidates, signals, limit)

        logger.info(
            "Generated %d recommendations for pet %s (%.0fms%s)",
            len(ranking),
            pet_id,
            (time.time() - start_time) * 1000,
            ", rerank fallback" if rerank_outcome.used_fallback else "",
        )
        return ranking

    def invalidate(self, kind: EntityKind, entity_id: str) -> bool:
        """Forget the cached embedding for an entity whose profile changed."""
        return self._embeddings.invalidate(entity_key(kind, entity_id))

    async def aclose(self) -> None:
        """Release HTTP connections held by clients this engine created."""
        if self._preference_client is not None:
            await self._preference_client.aclose()
            self._preference_client = None

    def _content_scores(
        self, pet_embedding: Embedding, sitter_embeddings: Sequence[Embedding]
    ) -> list[float]:
        return self._content.score_many(pet_embedding, sitter_embeddings)

    def _fuse(
        self,
        content: Sequence[float],
        collaborative: Sequence[float],
        rerank: RerankOutcome,
    ) -> list[SignalScores]:
        return [
            SignalScores(
                content=c,
                collaborative=cf,
                rerank=r,
                fused=self._fusion.fuse(c, cf, r),
            )
            for c, cf, r in zip(content, collaborative, rerank.scores, strict=True)
        ]
