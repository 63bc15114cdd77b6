"""Async client wrapper for the text embedding endpoint."""

import logging
import time
from collections.abc import Sequence
from typing import Any

from openai import AsyncOpenAI

from sitter_match.config import settings

logger = logging.getLogger(__name__)


class EmbeddingClient:
    """Async client for generating text embeddings.

    Uses the OpenAI-compatible embeddings API. The native dimensionality of the
    configured model is not guaranteed to match settings.embedding_dim; callers
    fit vectors to D themselves.
    """

    # Maximum items per batch request
    DEFAULT_BATCH_SIZE = 32

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self._client = AsyncOpenAI(
            base_url=base_url or settings.llm_base_url,
            api_key=api_key or settings.llm_api_key,
        )
        self._model = model or settings.model_text_embedding
        self._batch_size = batch_size

    async def embed_text(self, texts: Sequence[str]) -> list[list[float]]:
        """Generate text embeddings.

        Args:
            texts: List of text strings to embed.

        Returns:
            List of embedding vectors, in input order.
        """
        if not texts:
            return []

        start_time = time.time()
        embeddings: list[list[float]] = []

        for batch in self._batches(list(texts)):
            response = await self._client.embeddings.create(
                model=self._model,
                input=batch,
            )
            # Results are returned in order of input
            embeddings.extend([item.embedding for item in response.data])

        if settings.log_api_calls:
            elapsed = (time.time() - start_time) * 1000  # ms
            dims = len(embeddings[0]) if embeddings else 0
            logger.info(
                "[EMBED] %s (%d texts) → %d-dim (%.0fms)",
                self._model, len(texts), dims, elapsed
            )

        return embeddings

    async def embed_one(self, text: str) -> list[float]:
        """Embed a single text. Raises ValueError if the service returns nothing."""
        vectors = await self.embed_text([text])
        if not vectors:
            msg = "Embedding service returned no vectors"
            raise ValueError(msg)
        return vectors[0]

    def _batches(self, items: list[Any]) -> list[list[Any]]:
        """Split items into batches."""
        return [items[i : i + self._batch_size] for i in range(0, len(items), self._batch_size)]
