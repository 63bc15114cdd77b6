"""Content-based scoring: cosine similarity between entity embeddings."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from sitter_match.matching.embedding import Embedding


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors.

    Returns a value in [0, 1]. Opposed directions clamp to 0.0, as do
    zero-magnitude vectors, vectors of different lengths, and vectors with
    non-finite components.
    """
    if len(a) != len(b) or len(a) == 0:
        return 0.0

    a_np = np.asarray(a, dtype=np.float64)
    b_np = np.asarray(b, dtype=np.float64)

    norm_a = np.linalg.norm(a_np)
    norm_b = np.linalg.norm(b_np)

    if norm_a == 0 or norm_b == 0:
        return 0.0

    sim = float(np.dot(a_np, b_np) / (norm_a * norm_b))
    if not np.isfinite(sim):
        return 0.0
    # Floating point can land a hair outside [-1, 1]
    return min(max(sim, 0.0), 1.0)


class ContentScorer:
    """Scores a candidate by how closely its embedding points at the requester's."""

    def score(self, requester: Embedding, candidate: Embedding) -> float:
        return cosine_similarity(requester.vector, candidate.vector)

    def score_many(self, requester: Embedding, candidates: Sequence[Embedding]) -> list[float]:
        return [self.score(requester, candidate) for candidate in candidates]
