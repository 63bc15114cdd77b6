"""External rerank scoring using pydantic-ai.

One chat call per matching request: the model sees the pet profile, the owner's
preferences, and a numbered summary of every candidate, and replies with a JSON
array of {index, confidence} ordered best-first.

Failure policy (single attempt, no retry):
- Transport error, timeout, unparsable reply, or a reply that ranks no
  candidate (`[]`, only malformed or out-of-range entries) → every candidate
  gets rerank_fallback_score
- Parsed reply → out-of-range and duplicate indices are dropped; candidates the
  model left out get rerank_missing_score
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from openai import AsyncOpenAI
from pydantic_ai import Agent
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from sitter_match.config import settings
from sitter_match.inference.schemas import (
    CandidateSummary,
    ParseError,
    parse_rerank_response,
    validate_rankings,
)

logger = logging.getLogger(__name__)


RERANK_SYSTEM_PROMPT = """\
You are an expert pet sitter matchmaker. Analyze pet profiles and owner \
preferences to recommend the best sitters.

Reply with ONLY a JSON array, no prose. Each element is an object:
  {"index": <0-based candidate index>, "confidence": <number between 0 and 1>}
Order the array best match first. Use each index at most once.
"""


@dataclass
class RerankOutcome:
    """Per-candidate rerank scores, aligned with the request order."""

    scores: list[float]
    used_fallback: bool = False
    reason: str | None = None


def _join(value: Any) -> str:
    if isinstance(value, list | tuple):
        return ", ".join(str(v) for v in value) or "none"
    if value is None or value == "":
        return "not specified"
    return str(value)


def summarize_sitter(sitter: Mapping[str, Any]) -> CandidateSummary:
    """Build the one-line description of a sitter shown to the rerank model."""
    ratings = sitter.get("ratings")
    average = ratings.get("average") if isinstance(ratings, Mapping) else None
    parts = [
        str(sitter.get("name") or f"Sitter {sitter.get('id')}"),
        f"experience: {_join(sitter.get('experience'))}",
        f"certifications: {_join(sitter.get('certifications'))}",
        f"rating: {average if average is not None else 'N/A'}",
    ]
    return CandidateSummary(id=str(sitter.get("id")), summary=" - ".join(parts))


def build_rerank_prompt(
    pet: Mapping[str, Any],
    owner_preferences: Mapping[str, Any],
    candidates: Sequence[CandidateSummary],
) -> str:
    """Build the user prompt for one rerank request."""
    pref = owner_preferences
    lines = [
        "Recommend pet sitters for this pet and owner.",
        "",
        "Pet Profile:",
        f"- Breed: {_join(pet.get('breed'))}",
        f"- Size: {_join(pet.get('size'))}",
        f"- Age: {_join(pet.get('age'))} years",
        f"- Energy Level: {_join(pet.get('energyLevel', pet.get('energy_level')))}",
        f"- Temperament: {_join(pet.get('temperament'))}",
        f"- Special Needs: {_join(pet.get('specialNeeds', pet.get('special_needs')))}",
        "- Medical Conditions: "
        f"{_join(pet.get('medicalConditions', pet.get('medical_conditions')))}",
        "",
        "Owner Preferences:",
        f"- Budget: {_join(pref.get('budget'))}",
        f"- Location: {_join(pref.get('location'))}",
        f"- Schedule: {_join(pref.get('schedule'))}",
        "- Additional Requirements: "
        f"{_join(pref.get('additionalRequirements', pref.get('additional_requirements')))}",
        "",
        f"Available Sitters ({len(candidates)}):",
    ]
    lines.extend(f"[{i}] {candidate.summary}" for i, candidate in enumerate(candidates))
    lines.append("")
    lines.append(
        "Return a JSON array with sitter indices (0-based, as in the brackets above) "
        "and confidence scores (0-1), sorted by best match first."
    )
    return "\n".join(lines)


def create_rerank_agent() -> Agent[None, str]:
    """Create the rerank agent.

    The agent returns plain text; parsing and validation happen in
    parse_rerank_response so a malformed reply is a value, not an exception.
    The OpenAI client is built with max_retries=0 to keep to a single attempt.
    """
    model = OpenAIChatModel(
        settings.model_rerank,
        provider=OpenAIProvider(
            openai_client=AsyncOpenAI(
                base_url=settings.llm_base_url,
                api_key=settings.llm_api_key,
                max_retries=0,
            ),
        ),
    )

    return Agent(
        model,
        output_type=str,
        system_prompt=RERANK_SYSTEM_PROMPT,
        model_settings={"temperature": 0.3},
    )


class ExternalRerankScorer:
    """Scores a whole candidate batch with one call to the reasoning model.

    Usage:
        scorer = ExternalRerankScorer()
        outcome = await scorer.score_batch(pet, preferences, summaries)
        outcome.scores  # one float per summary, request order
    """

    def __init__(
        self,
        *,
        fallback_score: float | None = None,
        missing_score: float | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._agent = create_rerank_agent()
        self._fallback = (
            settings.rerank_fallback_score if fallback_score is None else fallback_score
        )
        self._missing = settings.rerank_missing_score if missing_score is None else missing_score
        self._timeout = (
            settings.scorer_timeout_seconds if timeout_seconds is None else timeout_seconds
        )

        for name, value in (("fallback", self._fallback), ("missing", self._missing)):
            if not 0.0 <= value <= 1.0:
                msg = f"Rerank {name} score must be in [0, 1], got {value}"
                raise ValueError(msg)
        if self._timeout <= 0:
            msg = f"Timeout must be positive, got {self._timeout}"
            raise ValueError(msg)

    @property
    def fallback_score(self) -> float:
        return self._fallback

    async def score_batch(
        self,
        pet: Mapping[str, Any],
        owner_preferences: Mapping[str, Any],
        candidates: Sequence[CandidateSummary],
    ) -> RerankOutcome:
        """Rank all candidates in one request. Never raises for service failures."""
        if not candidates:
            return RerankOutcome(scores=[])

        prompt = build_rerank_prompt(pet, owner_preferences, candidates)
        start_time = time.time()

        try:
            async with asyncio.timeout(self._timeout):
                result = await self._agent.run(prompt)
            reply = result.output
        except Exception as e:
            logger.warning("Rerank service failed, using fallback %.2f: %s", self._fallback, e)
            return self._fallback_outcome(len(candidates), f"service error: {e}")

        if not isinstance(reply, str):
            return self._fallback_outcome(len(candidates), "non-text reply")

        parsed = parse_rerank_response(reply)
        if isinstance(parsed, ParseError):
            logger.warning(
                "Rerank reply unparsable (%s), using fallback %.2f", parsed.reason, self._fallback
            )
            return self._fallback_outcome(len(candidates), parsed.reason)

        confidences = validate_rankings(parsed.items, len(candidates))
        if not confidences:
            logger.warning(
                "Rerank reply ranked no known candidate, using fallback %.2f", self._fallback
            )
            return self._fallback_outcome(len(candidates), "no in-range ranking entries")

        ignored = len(parsed.items) - len(confidences) + parsed.dropped
        if ignored:
            logger.info("Ignored %d invalid or duplicate rerank entries", ignored)

        if settings.log_api_calls:
            elapsed = (time.time() - start_time) * 1000  # ms
            logger.info(
                "[RERANK] %s (%d candidates) → %d ranked (%.0fms)",
                settings.model_rerank, len(candidates), len(confidences), elapsed,
            )

        return RerankOutcome(
            scores=[confidences.get(i, self._missing) for i in range(len(candidates))],
        )

    def _fallback_outcome(self, n_candidates: int, reason: str) -> RerankOutcome:
        return RerankOutcome(
            scores=[self._fallback] * n_candidates,
            used_fallback=True,
            reason=reason,
        )
