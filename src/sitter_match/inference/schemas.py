"""Schemas and response parsing for the rerank service.

The rerank model replies with free text that should contain a JSON array of
{"index": int, "confidence": float} objects, best match first. Parsing never
raises: parse_rerank_response returns either Parsed or ParseError, and the
caller branches on the type.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field, ValidationError


def _clamp_unit(v: Any) -> Any:
    """Clamp numeric confidences into [0, 1].

    Models occasionally answer on a 0-100 scale or overshoot slightly; the
    value is still ordinal information, so clamp rather than reject.
    """
    if isinstance(v, int | float) and not isinstance(v, bool):
        return min(max(float(v), 0.0), 1.0)
    return v


class CandidateSummary(BaseModel):
    """One candidate as presented to the rerank model."""

    id: str
    summary: str


class RerankItem(BaseModel):
    """One ranked entry in the rerank model's reply."""

    index: int = Field(description="0-based position of the candidate in the request")
    confidence: Annotated[float, BeforeValidator(_clamp_unit)] = Field(
        ge=0.0, le=1.0, allow_inf_nan=False, description="Match confidence between 0 and 1"
    )


@dataclass(frozen=True)
class Parsed:
    """Successfully parsed reply. Items keep the model's order."""

    items: list[RerankItem]
    dropped: int = 0
    """Entries skipped because they did not validate as RerankItem."""


@dataclass(frozen=True)
class ParseError:
    """Reply could not be interpreted as a ranking."""

    reason: str
    raw: str = field(default="", repr=False)


RerankParse = Parsed | ParseError

_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE.match(text)
    return match.group(1) if match else text.strip()


def parse_rerank_response(text: str) -> RerankParse:
    """Interpret a rerank reply as an ordered list of RerankItem.

    Accepts a bare JSON array, the same array inside a markdown code fence, or
    an object wrapping the array under "rankings". Individual entries that do
    not validate are dropped and counted. A reply with no usable array, or an
    array without a single valid entry (`[]` included), is a ParseError.
    """
    body = _strip_code_fence(text)
    if not body:
        return ParseError(reason="empty response", raw=text)

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        return ParseError(reason=f"invalid JSON: {e.msg}", raw=text)

    if isinstance(payload, dict):
        payload = payload.get("rankings")

    if not isinstance(payload, list):
        return ParseError(reason="expected a JSON array of rankings", raw=text)

    items: list[RerankItem] = []
    dropped = 0
    for entry in payload:
        try:
            items.append(RerankItem.model_validate(entry))
        except ValidationError:
            dropped += 1

    # A reply that ranks nobody is treated like an unreadable one
    if not items:
        return ParseError(reason="no valid ranking entries", raw=text)

    return Parsed(items=items, dropped=dropped)


def validate_rankings(items: list[RerankItem], n_candidates: int) -> dict[int, float]:
    """Keep only in-range, first-seen indices.

    Returns:
        Mapping of candidate index → confidence.
    """
    confidences: dict[int, float] = {}
    for item in items:
        if not 0 <= item.index < n_candidates:
            continue
        if item.index in confidences:
            continue
        confidences[item.index] = item.confidence
    return confidences
