"""Ranking assembly: ordering, truncation, confidence labels, and reasons.

Reasons come from fixed rules over the raw sitter record (ratings, experience,
certifications, ...). They explain what the sitter offers and are never
derived from the fused score.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

from sitter_match.config import settings
from sitter_match.enums import ConfidenceLabel

HIGH_RATING_THRESHOLD = 4.5

# Mean fused score thresholds for batch-level insights
EXCELLENT_BATCH_MEAN = 0.8
WEAK_BATCH_MEAN = 0.5


@dataclass(frozen=True)
class SignalScores:
    """Raw component scores for one candidate plus their fusion."""

    content: float
    collaborative: float
    rerank: float
    fused: float


@dataclass(frozen=True)
class ScoreSet:
    """Final, explained scores for one ranked candidate."""

    content: float
    collaborative: float
    rerank: float
    fused: float
    confidence: ConfidenceLabel
    reasons: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RankedCandidate:
    """A candidate record with its scores, as returned to callers."""

    candidate: Mapping[str, Any]
    scores: ScoreSet

    @property
    def fused_score(self) -> float:
        return self.scores.fused

    @property
    def confidence_label(self) -> ConfidenceLabel:
        return self.scores.confidence

    @property
    def reasons(self) -> list[str]:
        return self.scores.reasons

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate": dict(self.candidate),
            "fused_score": self.scores.fused,
            "confidence_label": self.scores.confidence.value,
            "reasons": list(self.scores.reasons),
            "scores": {
                k: v for k, v in asdict(self.scores).items() if k not in ("confidence", "reasons")
            },
        }


RankingResult = list[RankedCandidate]


def _non_empty(value: Any) -> bool:
    return isinstance(value, list | tuple) and len(value) > 0


def _high_ratings(sitter: Mapping[str, Any]) -> bool:
    ratings = sitter.get("ratings")
    if not isinstance(ratings, Mapping):
        return False
    average = ratings.get("average")
    return (
        isinstance(average, int | float)
        and not isinstance(average, bool)
        and average >= HIGH_RATING_THRESHOLD
    )


def _has(key: str, alt: str | None = None) -> Callable[[Mapping[str, Any]], bool]:
    def check(sitter: Mapping[str, Any]) -> bool:
        return _non_empty(sitter.get(key)) or (alt is not None and _non_empty(sitter.get(alt)))

    return check


def _flag(key: str, alt: str | None = None) -> Callable[[Mapping[str, Any]], bool]:
    def check(sitter: Mapping[str, Any]) -> bool:
        return sitter.get(key) is True or (alt is not None and sitter.get(alt) is True)

    return check


# Evaluated in order; each rule is independent of the others
REASON_RULES: list[tuple[str, Callable[[Mapping[str, Any]], bool]]] = [
    ("High ratings", _high_ratings),
    ("Experienced", _has("experience")),
    ("Certified", _has("certifications")),
    ("Specialized", _has("specializations")),
    ("Insured", _flag("insurance")),
    ("Emergency trained", _flag("emergencyTraining", "emergency_training")),
    ("First aid certified", _flag("firstAidCertified", "first_aid_certified")),
]


def match_reasons(sitter: Mapping[str, Any]) -> list[str]:
    """Human-readable reasons a sitter is a good pick, from the raw record."""
    return [label for label, rule in REASON_RULES if rule(sitter)]


def confidence_label(
    score: float,
    *,
    high: float | None = None,
    medium: float | None = None,
) -> ConfidenceLabel:
    high = settings.confidence_high if high is None else high
    medium = settings.confidence_medium if medium is None else medium
    if score >= high:
        return ConfidenceLabel.HIGH
    if score >= medium:
        return ConfidenceLabel.MEDIUM
    return ConfidenceLabel.LOW


class RankingAssembler:
    """Orders scored candidates and attaches labels and reasons.

    Usage:
        assembler = RankingAssembler()
        ranking = assembler.assemble(sitters, signal_scores, limit=10)
    """

    def __init__(self, *, high: float | None = None, medium: float | None = None) -> None:
        self._high = settings.confidence_high if high is None else high
        self._medium = settings.confidence_medium if medium is None else medium

        if self._medium > self._high:
            msg = f"Medium threshold {self._medium} exceeds high threshold {self._high}"
            raise ValueError(msg)

    def assemble(
        self,
        candidates: Sequence[Mapping[str, Any]],
        scores: Sequence[SignalScores],
        limit: int,
    ) -> RankingResult:
        if len(candidates) != len(scores):
            msg = f"Got {len(candidates)} candidates but {len(scores)} score sets"
            raise ValueError(msg)
        if limit <= 0:
            return []

        # sorted() is stable, so equal fused scores keep input order
        order = sorted(range(len(candidates)), key=lambda i: scores[i].fused, reverse=True)

        return [
            RankedCandidate(candidate=candidates[i], scores=self._explain(candidates[i], scores[i]))
            for i in order[:limit]
        ]

    def _explain(self, candidate: Mapping[str, Any], signals: SignalScores) -> ScoreSet:
        return ScoreSet(
            content=signals.content,
            collaborative=signals.collaborative,
            rerank=signals.rerank,
            fused=signals.fused,
            confidence=confidence_label(signals.fused, high=self._high, medium=self._medium),
            reasons=match_reasons(candidate),
        )


def summarize(ranking: RankingResult) -> list[str]:
    """Batch-level insights about the quality of a recommendation list."""
    if not ranking:
        return []

    mean = sum(item.fused_score for item in ranking) / len(ranking)
    if mean >= EXCELLENT_BATCH_MEAN:
        return ["Excellent match quality found"]
    if mean <= WEAK_BATCH_MEAN:
        return ["Limited high-quality matches available"]
    return []
