"""Clients for external signal sources."""

from sitter_match.clients.embeddings import EmbeddingClient
from sitter_match.clients.preference import PreferenceModelClient

__all__ = [
    "EmbeddingClient",
    "PreferenceModelClient",
]
