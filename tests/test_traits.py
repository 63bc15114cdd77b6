"""Tests for trait normalization."""

from __future__ import annotations

import pytest

from sitter_match.enums import EntityKind
from sitter_match.matching.traits import (
    DEFAULT_ENERGY,
    DEFAULT_SIZE,
    DEFAULT_SOCIALIZATION,
    DEFAULT_TRAINING,
    CanonicalTraits,
    TraitNormalizer,
    normalize_pet,
    normalize_sitter,
)


class TestOrdinalFields:
    """Categorical labels map through explicit tables."""

    @pytest.mark.parametrize(
        ("label", "expected"),
        [("small", 0.25), ("Medium", 0.5), ("LARGE", 0.75), ("extra-large", 1.0)],
    )
    def test_size(self, label: str, expected: float) -> None:
        assert normalize_pet({"size": label})["size"] == expected

    def test_separator_variants(self) -> None:
        assert normalize_pet({"size": "extra large"})["size"] == 1.0
        assert normalize_pet({"energyLevel": "very_high"})["energyLevel"] == 1.0

    def test_training_none_is_zero_not_default(self) -> None:
        assert normalize_pet({"trainingLevel": "none"})["trainingLevel"] == 0.0

    def test_unknown_labels_use_midpoint_defaults(self) -> None:
        traits = normalize_pet({
            "size": "gigantic",
            "energyLevel": "sleepy",
            "trainingLevel": "circus",
            "socialization": "???",
        })
        assert traits["size"] == DEFAULT_SIZE
        assert traits["energyLevel"] == DEFAULT_ENERGY
        assert traits["trainingLevel"] == DEFAULT_TRAINING
        assert traits["socialization"] == DEFAULT_SOCIALIZATION

    def test_non_string_label_uses_default(self) -> None:
        assert normalize_pet({"size": 3})["size"] == DEFAULT_SIZE


class TestPetNormalization:
    def test_empty_record_is_total(self) -> None:
        traits = normalize_pet({})
        assert traits["breed"] == ""
        assert traits["age"] == 0.0
        assert traits["houseTrained"] == 1.0  # defaults to house-trained
        assert traits["aggression"] == 0.0
        assert traits["temperament"] == ""

    def test_lists_flattened_to_text(self) -> None:
        traits = normalize_pet({"temperament": ["calm", "shy"], "specialNeeds": ["insulin"]})
        assert traits["temperament"] == "calm shy"
        assert traits["specialNeeds"] == "insulin"

    def test_booleans_become_zero_one(self) -> None:
        traits = normalize_pet({"separationAnxiety": True, "microchipped": False})
        assert traits["separationAnxiety"] == 1.0
        assert traits["microchipped"] == 0.0

    def test_age_scaled_and_capped(self) -> None:
        assert normalize_pet({"age": 10})["age"] == 0.5
        assert normalize_pet({"age": 35})["age"] == 1.0
        assert normalize_pet({"age": -2})["age"] == 0.0
        assert normalize_pet({"age": "old"})["age"] == 0.0

    def test_breed_lowercased(self) -> None:
        assert normalize_pet({"breed": "  Border Collie "})["breed"] == "border collie"

    def test_snake_case_keys_accepted(self) -> None:
        traits = normalize_pet({"energy_level": "low", "house_trained": False})
        assert traits["energyLevel"] == 0.25
        assert traits["houseTrained"] == 0.0

    def test_numeric_values_in_unit_interval(self) -> None:
        traits = normalize_pet({
            "size": "large",
            "age": 100,
            "vaccinations": ["a"] * 50,
            "aggression": True,
        })
        for value in traits.values():
            if isinstance(value, float):
                assert 0.0 <= value <= 1.0


class TestSitterNormalization:
    def test_ratings_scaled(self) -> None:
        traits = normalize_sitter({"ratings": {"average": 4.5, "count": 250}})
        assert traits["avgRating"] == pytest.approx(0.9)
        assert traits["totalReviews"] == 1.0

    def test_missing_ratings(self) -> None:
        traits = normalize_sitter({"ratings": "n/a"})
        assert traits["avgRating"] == 0.0
        assert traits["totalReviews"] == 0.0

    def test_mapping_fields_are_stable_text(self) -> None:
        a = normalize_sitter({"availability": {"tue": True, "mon": False}})
        b = normalize_sitter({"availability": {"mon": False, "tue": True}})
        assert a["availability"] == b["availability"]

    def test_certifications_text(self) -> None:
        traits = normalize_sitter({"certifications": ["CPR", "Pet First Aid"]})
        assert traits["certifications"] == "CPR Pet First Aid"

    def test_field_order_is_fixed(self) -> None:
        traits = normalize_sitter({"insurance": True, "experience": ["dogs"]})
        names = list(traits)
        assert names[0] == "experience"
        assert names[-1] == "insurance"


class TestCanonicalTraits:
    def test_read_only(self) -> None:
        traits = normalize_pet({})
        with pytest.raises(TypeError):
            traits["size"] = 1.0  # type: ignore[index]

    def test_equality_and_hash(self) -> None:
        assert normalize_pet({"size": "small"}) == normalize_pet({"size": "small"})
        assert hash(normalize_pet({})) == hash(normalize_pet({}))

    def test_as_text_joins_values_in_order(self) -> None:
        traits = CanonicalTraits((("breed", "pug"), ("size", 0.25), ("aggression", 0.0)))
        assert traits.as_text() == "pug 0.25 0"

    def test_missing_key(self) -> None:
        with pytest.raises(KeyError):
            normalize_pet({})["nope"]


class TestTraitNormalizer:
    def test_dispatch_by_kind(self) -> None:
        normalizer = TraitNormalizer()
        assert "breed" in normalizer.normalize({}, EntityKind.PET)
        assert "certifications" in normalizer.normalize({}, EntityKind.SITTER)
