"""Configuration settings for SitterMatch."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI-compatible gateway (embeddings + rerank chat model)
    llm_base_url: str = "https://api.openai.com/v1"
    llm_api_key: str = "dummy-key"

    # Model names
    model_text_embedding: str = "text-embedding-ada-002"  # 1536-dim
    model_rerank: str = "gpt-3.5-turbo"

    # Embedding dimension D. Every cached vector has exactly this length,
    # whether it came from the embedding service or the local fallback.
    embedding_dim: int = 1536

    # Pairwise preference model (collaborative filtering). None = not deployed,
    # every pair gets collaborative_fallback_score.
    preference_model_url: str | None = None

    # ── Score fusion ─────────────────────────────────────────────────────────
    # Must be non-negative and sum to 1.0
    weight_content: float = 0.4
    weight_collaborative: float = 0.3
    weight_rerank: float = 0.3

    # ── Fallbacks ────────────────────────────────────────────────────────────
    # Used when the preference model is down or not configured
    collaborative_fallback_score: float = 0.75

    # Every candidate gets this when the rerank call fails or is unparsable
    rerank_fallback_score: float = 0.7

    # Candidates the rerank service left out of an otherwise valid response
    rerank_missing_score: float = 0.0

    # ── Confidence labels ────────────────────────────────────────────────────
    confidence_high: float = 0.8
    confidence_medium: float = 0.6

    # ── Embedding cache ──────────────────────────────────────────────────────
    # LRU bound; None = unbounded
    cache_max_entries: int | None = 10_000

    # None = entries never expire
    cache_ttl_seconds: float | None = None

    # Per external call; a timed-out source degrades to its fallback
    scorer_timeout_seconds: float = 10.0

    default_limit: int = 10

    # Logging
    log_level: str = "INFO"
    log_api_calls: bool = True


settings = Settings()
