"""LLM-backed rerank scoring.

Submodules:
- schemas: Rerank reply schema and tagged parsing (Parsed | ParseError)
- rerank: ExternalRerankScorer, one chat call per matching request
"""

from sitter_match.inference.rerank import ExternalRerankScorer, RerankOutcome
from sitter_match.inference.schemas import (
    CandidateSummary,
    Parsed,
    ParseError,
    RerankItem,
    parse_rerank_response,
)

__all__ = [
    "CandidateSummary",
    "ExternalRerankScorer",
    "Parsed",
    "ParseError",
    "RerankItem",
    "RerankOutcome",
    "parse_rerank_response",
]
