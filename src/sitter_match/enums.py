"""Enumerations for the SitterMatch data model."""

from enum import Enum


class EntityKind(str, Enum):
    """Which side of a match an entity record describes."""

    PET = "pet"  # Requester (pet profile, owned by an owner)
    SITTER = "sitter"  # Candidate service provider


class EmbeddingSource(str, Enum):
    """Where an embedding vector came from."""

    EXTERNAL = "external"  # Embedding service
    FALLBACK = "fallback"  # Deterministic local hash vector


class ConfidenceLabel(str, Enum):
    """Coarse bucket for a fused match score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
