"""Embedding provider with caching, fallback, and single-flight misses.

Lookup order for get_embedding(entity_id, traits):
1. Cache hit → return the cached Embedding unchanged
2. Miss → embed traits.as_text() via the external embedding service
3. Success → fit the vector to exactly D dimensions (truncate or zero-pad)
4. Failure (error, timeout, empty or non-finite vector) → deterministic local
   fallback vector, also fitted to D
5. Store in the cache, then return

Concurrent misses for the same entity_id share one in-flight computation, so a
burst of requests for an uncached sitter costs one external call.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from sitter_match.clients.embeddings import EmbeddingClient
from sitter_match.config import settings
from sitter_match.enums import EmbeddingSource
from sitter_match.matching.cache import EmbeddingCache, InMemoryEmbeddingCache
from sitter_match.matching.traits import CanonicalTraits, TraitValue

logger = logging.getLogger(__name__)


class TextEmbedder(Protocol):
    """Anything that can turn one text into a vector."""

    async def embed_one(self, text: str) -> list[float]: ...


@dataclass(frozen=True)
class Embedding:
    """A fixed-length vector representing one entity."""

    entity_id: str
    vector: tuple[float, ...]
    source: EmbeddingSource
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def dim(self) -> int:
        return len(self.vector)


def fit_dimension(vector: Iterable[float], dim: int) -> tuple[float, ...]:
    """Truncate or zero-pad a vector to exactly dim entries."""
    values = [float(v) for v in vector][:dim]
    values.extend([0.0] * (dim - len(values)))
    return tuple(values)


def stable_text_hash(text: str) -> float:
    """Map text to [0, 1) independently of PYTHONHASHSEED."""
    if not text:
        return 0.0
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return (int.from_bytes(digest[:8], "big") % 100) / 100


def _fallback_component(value: TraitValue | bool) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, int | float):
        return float(value)
    return stable_text_hash(value)


def fallback_embedding(traits: CanonicalTraits, dim: int) -> tuple[float, ...]:
    """Deterministic vector built from trait values alone.

    Numeric values pass through, booleans become 0/1, strings go through
    stable_text_hash. The result is fitted to dim.
    """
    return fit_dimension((_fallback_component(value) for value in traits.values()), dim)


class EmbeddingProvider:
    """Resolves entity embeddings through a shared cache.

    Usage:
        provider = EmbeddingProvider()
        embedding = await provider.get_embedding("sitter:42", traits)
    """

    def __init__(
        self,
        embedder: TextEmbedder | None = None,
        cache: EmbeddingCache | None = None,
        *,
        dim: int | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._embedder = embedder if embedder is not None else EmbeddingClient()
        # An empty cache is falsy (__len__), so compare with None
        self._cache: EmbeddingCache = (
            cache
            if cache is not None
            else InMemoryEmbeddingCache(
                max_entries=settings.cache_max_entries,
                ttl_seconds=settings.cache_ttl_seconds,
            )
        )
        self._dim = settings.embedding_dim if dim is None else dim
        self._timeout = (
            settings.scorer_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self._in_flight: dict[str, asyncio.Future[Embedding]] = {}

        if self._dim <= 0:
            msg = f"Embedding dimension must be positive, got {self._dim}"
            raise ValueError(msg)
        if self._timeout <= 0:
            msg = f"Timeout must be positive, got {self._timeout}"
            raise ValueError(msg)

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def cache(self) -> EmbeddingCache:
        return self._cache

    async def get_embedding(self, entity_id: str, traits: CanonicalTraits) -> Embedding:
        """Return the cached embedding for entity_id, computing it on a miss."""
        cached = self._cache.get(entity_id)
        if cached is not None:
            return cached

        pending = self._in_flight.get(entity_id)
        if pending is None:
            pending = asyncio.ensure_future(self._compute(entity_id, traits))
            self._in_flight[entity_id] = pending
            pending.add_done_callback(
                lambda done, key=entity_id: self._release(key, done)
            )
        else:
            logger.debug("Joining in-flight embedding for %s", entity_id)

        # Shield so one cancelled waiter does not cancel the shared computation
        return await asyncio.shield(pending)

    async def get_embeddings(
        self, items: Sequence[tuple[str, CanonicalTraits]]
    ) -> list[Embedding]:
        """Resolve many embeddings concurrently, preserving input order."""
        return list(
            await asyncio.gather(
                *(self.get_embedding(entity_id, traits) for entity_id, traits in items)
            )
        )

    def invalidate(self, entity_id: str) -> bool:
        return self._cache.invalidate(entity_id)

    def clear(self) -> None:
        self._cache.clear()

    def _release(self, entity_id: str, done: asyncio.Future[Embedding]) -> None:
        if self._in_flight.get(entity_id) is done:
            del self._in_flight[entity_id]

    async def _compute(self, entity_id: str, traits: CanonicalTraits) -> Embedding:
        text = traits.as_text()
        try:
            async with asyncio.timeout(self._timeout):
                raw = await self._embedder.embed_one(text)
            if not raw:
                msg = "empty vector"
                raise ValueError(msg)
            if not all(math.isfinite(v) for v in raw):
                msg = "vector has NaN or infinite components"
                raise ValueError(msg)
            embedding = Embedding(
                entity_id=entity_id,
                vector=fit_dimension(raw, self._dim),
                source=EmbeddingSource.EXTERNAL,
            )
            if len(raw) != self._dim:
                logger.debug(
                    "Fitted %d-dim embedding for %s to %d dims", len(raw), entity_id, self._dim
                )
        except Exception as e:
            logger.warning(
                "Embedding service failed for %s, using fallback: %s", entity_id, e
            )
            embedding = Embedding(
                entity_id=entity_id,
                vector=fallback_embedding(traits, self._dim),
                source=EmbeddingSource.FALLBACK,
            )

        self._cache.set(entity_id, embedding)
        return embedding
