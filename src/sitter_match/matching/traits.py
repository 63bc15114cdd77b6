"""Trait normalization for pet and sitter records.

Turns loosely-shaped entity records (camelCase or snake_case keys, missing
fields, free-text labels) into CanonicalTraits: an ordered, immutable mapping
where every value is either a float in [0, 1] or a flattened text string.

Normalization is total. Unknown ordinal labels map to a documented default,
missing fields take the record default, and values of the wrong type are
treated as missing. Nothing here raises.

Ordinal tables:
    size:           small .25, medium .5, large .75, extra-large 1.0  (default .5)
    energy level:   low .25, medium .5, high .75, very-high 1.0       (default .5)
    training level: none 0, basic .25, intermediate .5, advanced .75,
                    expert 1.0                                        (default .25)
    socialization:  poor .25, fair .5, good .75, excellent 1.0        (default .5)
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping
from typing import Any

from sitter_match.enums import EntityKind

TraitValue = float | str

SIZE_SCALE: dict[str, float] = {
    "small": 0.25,
    "medium": 0.5,
    "large": 0.75,
    "extra-large": 1.0,
}
ENERGY_SCALE: dict[str, float] = {
    "low": 0.25,
    "medium": 0.5,
    "high": 0.75,
    "very-high": 1.0,
}
TRAINING_SCALE: dict[str, float] = {
    "none": 0.0,
    "basic": 0.25,
    "intermediate": 0.5,
    "advanced": 0.75,
    "expert": 1.0,
}
SOCIALIZATION_SCALE: dict[str, float] = {
    "poor": 0.25,
    "fair": 0.5,
    "good": 0.75,
    "excellent": 1.0,
}

DEFAULT_SIZE = 0.5
DEFAULT_ENERGY = 0.5
DEFAULT_TRAINING = 0.25
DEFAULT_SOCIALIZATION = 0.5

# Caps used to squash unbounded counts into [0, 1]
MAX_PET_AGE_YEARS = 20.0
MAX_VACCINATIONS = 10.0
MAX_RATING = 5.0
MAX_REVIEW_COUNT = 100.0
MAX_PETS_CAPACITY = 10.0

_LABEL_SEPARATORS = re.compile(r"[\s_]+")
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class CanonicalTraits(Mapping[str, TraitValue]):
    """Ordered, read-only mapping of field name to normalized value."""

    __slots__ = ("_items",)

    def __init__(self, items: tuple[tuple[str, TraitValue], ...]) -> None:
        self._items = items

    def __getitem__(self, key: str) -> TraitValue:
        for name, value in self._items:
            if name == key:
                return value
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CanonicalTraits):
            return self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"CanonicalTraits({dict(self._items)!r})"

    def as_text(self) -> str:
        """Join values in field order, the input sent to the embedding service."""
        return " ".join(_format_value(value) for _, value in self._items)


def _format_value(value: TraitValue) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    return value


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _field(record: Mapping[str, Any], key: str) -> Any:
    """Read a camelCase field, accepting its snake_case spelling too."""
    if key in record:
        return record[key]
    return record.get(_snake_case(key))


def _ordinal(value: Any, scale: Mapping[str, float], default: float) -> float:
    if not isinstance(value, str):
        return default
    label = _LABEL_SEPARATORS.sub("-", value.strip().lower())
    return scale.get(label, default)


def _flag(value: Any, default: bool = False) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    return 1.0 if default else 0.0


def _scaled(value: Any, cap: float, default: float = 0.0) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return default
    return min(max(float(value) / cap, 0.0), 1.0)


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list | tuple):
        return " ".join(str(item).strip() for item in value if item is not None)
    return ""


def _count(value: Any) -> int:
    return len(value) if isinstance(value, list | tuple) else 0


def _mapping_text(value: Any) -> str:
    if not isinstance(value, Mapping):
        return ""
    # Sorted keys keep the text (and therefore the embedding) stable
    return json.dumps(value, sort_keys=True, default=str)


def normalize_pet(record: Mapping[str, Any]) -> CanonicalTraits:
    """Normalize a pet (requester) profile."""
    breed = _field(record, "breed")
    age = _field(record, "age")
    return CanonicalTraits((
        ("breed", breed.strip().lower() if isinstance(breed, str) else ""),
        ("size", _ordinal(_field(record, "size"), SIZE_SCALE, DEFAULT_SIZE)),
        ("age", _scaled(age, MAX_PET_AGE_YEARS)),
        ("energyLevel", _ordinal(_field(record, "energyLevel"), ENERGY_SCALE, DEFAULT_ENERGY)),
        ("temperament", _text(_field(record, "temperament"))),
        ("specialNeeds", _text(_field(record, "specialNeeds"))),
        ("medicalConditions", _text(_field(record, "medicalConditions"))),
        (
            "trainingLevel",
            _ordinal(_field(record, "trainingLevel"), TRAINING_SCALE, DEFAULT_TRAINING),
        ),
        (
            "socialization",
            _ordinal(_field(record, "socialization"), SOCIALIZATION_SCALE, DEFAULT_SOCIALIZATION),
        ),
        ("separationAnxiety", _flag(_field(record, "separationAnxiety"))),
        ("aggression", _flag(_field(record, "aggression"))),
        ("houseTrained", _flag(_field(record, "houseTrained"), default=True)),
        ("microchipped", _flag(_field(record, "microchipped"))),
        ("spayedNeutered", _flag(_field(record, "spayedNeutered"))),
        ("vaccinations", _scaled(_count(_field(record, "vaccinations")), MAX_VACCINATIONS)),
    ))


def normalize_sitter(record: Mapping[str, Any]) -> CanonicalTraits:
    """Normalize a sitter (candidate) profile."""
    ratings = _field(record, "ratings")
    if not isinstance(ratings, Mapping):
        ratings = {}
    return CanonicalTraits((
        ("experience", _text(_field(record, "experience"))),
        ("specializations", _text(_field(record, "specializations"))),
        ("certifications", _text(_field(record, "certifications"))),
        ("availability", _mapping_text(_field(record, "availability"))),
        ("preferences", _mapping_text(_field(record, "preferences"))),
        ("avgRating", _scaled(ratings.get("average"), MAX_RATING)),
        ("totalReviews", _scaled(ratings.get("count"), MAX_REVIEW_COUNT)),
        ("languages", _text(_field(record, "languages"))),
        ("hasYard", _flag(_field(record, "hasYard"))),
        ("hasOtherPets", _flag(_field(record, "hasOtherPets"))),
        ("childrenAges", _text(_field(record, "childrenAges"))),
        ("maxPets", _scaled(_field(record, "maxPets"), MAX_PETS_CAPACITY, default=0.1)),
        ("services", _text(_field(record, "services"))),
        ("emergencyTraining", _flag(_field(record, "emergencyTraining"))),
        ("firstAidCertified", _flag(_field(record, "firstAidCertified"))),
        ("insurance", _flag(_field(record, "insurance"))),
    ))


class TraitNormalizer:
    """Dispatches a raw record to the normalizer for its entity kind.

    Usage:
        normalizer = TraitNormalizer()
        traits = normalizer.normalize(pet_record, EntityKind.PET)
    """

    def normalize(self, record: Mapping[str, Any], kind: EntityKind) -> CanonicalTraits:
        if kind == EntityKind.PET:
            return normalize_pet(record)
        return normalize_sitter(record)
