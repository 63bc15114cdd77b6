"""Candidate ranking for SitterMatch.

Submodules:
- traits: Raw pet/sitter records → CanonicalTraits
- cache: Embedding cache abstraction with LRU/TTL eviction
- embedding: Cached, single-flight embedding provider with local fallback
- similarity: Content scoring (cosine similarity)
- collaborative: Pairwise preference model scoring
- fusion: Weighted combination of signals
- ranking: Ordering, confidence labels, match reasons
- engine: End-to-end recommendation pipeline
"""

from sitter_match.matching.cache import EmbeddingCache, InMemoryEmbeddingCache
from sitter_match.matching.collaborative import CollaborativeScorer
from sitter_match.matching.embedding import Embedding, EmbeddingProvider
from sitter_match.matching.engine import InvalidRequestError, MatchmakingEngine
from sitter_match.matching.fusion import FusionWeights, ScoreFusion
from sitter_match.matching.ranking import RankedCandidate, RankingAssembler, ScoreSet
from sitter_match.matching.similarity import ContentScorer, cosine_similarity
from sitter_match.matching.traits import CanonicalTraits, TraitNormalizer

__all__ = [
    "CanonicalTraits",
    "CollaborativeScorer",
    "ContentScorer",
    "Embedding",
    "EmbeddingCache",
    "EmbeddingProvider",
    "FusionWeights",
    "InMemoryEmbeddingCache",
    "InvalidRequestError",
    "MatchmakingEngine",
    "RankedCandidate",
    "RankingAssembler",
    "ScoreFusion",
    "ScoreSet",
    "TraitNormalizer",
    "cosine_similarity",
]
