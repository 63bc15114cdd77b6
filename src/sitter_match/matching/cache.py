"""Embedding cache abstraction.

The cache only stores derived embeddings keyed by a stable entity id. It never
owns entity identity: records are created and changed outside this engine, and
callers invalidate an entry when the underlying profile changes.

The default InMemoryEmbeddingCache evicts by two explicit policies:
- Size bound: least-recently-used entry is dropped once max_entries is exceeded
- TTL: entries older than ttl_seconds are treated as misses and removed
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from sitter_match.matching.embedding import Embedding

logger = logging.getLogger(__name__)


class EmbeddingCache(Protocol):
    """Storage contract used by EmbeddingProvider."""

    def get(self, entity_id: str) -> Embedding | None: ...

    def set(self, entity_id: str, embedding: Embedding) -> None: ...

    def invalidate(self, entity_id: str) -> bool: ...

    def clear(self) -> None: ...


@dataclass
class CacheStats:
    """Counters for cache behaviour, exposed for health checks and tests."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    size: int = 0


class InMemoryEmbeddingCache:
    """Process-local LRU cache with optional TTL.

    Args:
        max_entries: Upper bound on stored entries. None disables the bound.
        ttl_seconds: Entry lifetime. None means entries never expire.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        *,
        max_entries: int | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries is not None and max_entries <= 0:
            msg = f"max_entries must be positive, got {max_entries}"
            raise ValueError(msg)
        if ttl_seconds is not None and ttl_seconds <= 0:
            msg = f"ttl_seconds must be positive, got {ttl_seconds}"
            raise ValueError(msg)

        self._max_entries = max_entries
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Embedding]] = OrderedDict()
        self._stats = CacheStats()

    def get(self, entity_id: str) -> Embedding | None:
        entry = self._entries.get(entity_id)
        if entry is None:
            self._stats.misses += 1
            return None

        stored_at, embedding = entry
        if self._ttl_seconds is not None and self._clock() - stored_at >= self._ttl_seconds:
            del self._entries[entity_id]
            self._stats.expirations += 1
            self._stats.misses += 1
            return None

        self._entries.move_to_end(entity_id)
        self._stats.hits += 1
        return embedding

    def set(self, entity_id: str, embedding: Embedding) -> None:
        self._entries[entity_id] = (self._clock(), embedding)
        self._entries.move_to_end(entity_id)

        if self._max_entries is None:
            return
        while len(self._entries) > self._max_entries:
            evicted_id, _ = self._entries.popitem(last=False)
            self._stats.evictions += 1
            logger.debug("Evicted embedding for %s (cache full)", evicted_id)

    def invalidate(self, entity_id: str) -> bool:
        """Drop one entry. Returns True if it was present."""
        return self._entries.pop(entity_id, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entries

    @property
    def stats(self) -> CacheStats:
        self._stats.size = len(self._entries)
        return self._stats
