"""HTTP client for the pretrained pairwise preference model."""

import logging
import time

import httpx

from sitter_match.config import settings

logger = logging.getLogger(__name__)


class PreferenceModelClient:
    """Async client for the collaborative filtering model service.

    Request:  POST {base_url} {"requester_id": ..., "candidate_id": ...}
    Response: {"score": float}
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._client = http_client or httpx.AsyncClient(
            timeout=(
                settings.scorer_timeout_seconds if timeout_seconds is None else timeout_seconds
            ),
        )

    async def predict(self, requester_id: str, candidate_id: str) -> float:
        """Return the model's preference score for one (requester, candidate) pair.

        Raises:
            httpx.HTTPError: Transport failure or non-2xx status.
            ValueError: Response body has no numeric "score".
        """
        start_time = time.time()
        response = await self._client.post(
            self._url,
            json={"requester_id": requester_id, "candidate_id": candidate_id},
        )
        response.raise_for_status()

        score = response.json().get("score")
        if isinstance(score, bool) or not isinstance(score, int | float):
            msg = f"Preference model returned non-numeric score: {score!r}"
            raise ValueError(msg)

        if settings.log_api_calls:
            elapsed = (time.time() - start_time) * 1000  # ms
            logger.debug(
                "[PREF] %s × %s → %.3f (%.0fms)", requester_id, candidate_id, score, elapsed
            )

        return float(score)

    async def aclose(self) -> None:
        await self._client.aclose()
