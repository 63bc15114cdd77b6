"""FastAPI application for SitterMatch."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from sitter_match import __version__
from sitter_match.config import settings
from sitter_match.enums import EntityKind
from sitter_match.matching.engine import InvalidRequestError, MatchmakingEngine
from sitter_match.matching.ranking import summarize


class RecommendationRequest(BaseModel):
    """Body of POST /recommendations."""

    pet: dict[str, Any]
    owner_preferences: dict[str, Any] = Field(default_factory=dict)
    sitters: list[dict[str, Any]] = Field(default_factory=list)
    limit: int = Field(default=settings.default_limit, ge=0)


class RecommendationResponse(BaseModel):
    pet_id: str
    recommendations: list[dict[str, Any]]
    insights: list[str]


@lru_cache(maxsize=1)
def get_engine() -> MatchmakingEngine:
    """Process-wide engine, so the embedding cache is shared across requests."""
    return MatchmakingEngine()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    yield
    if get_engine.cache_info().currsize:
        await get_engine().aclose()
        get_engine.cache_clear()


app = FastAPI(
    title="SitterMatch",
    description="Multi-signal pet sitter recommendation engine",
    version=__version__,
    lifespan=lifespan,
)


EngineDep = Annotated[MatchmakingEngine, Depends(get_engine)]


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": __version__,
        "collaborative_model": "configured" if settings.preference_model_url else "fallback",
    }


@app.post("/recommendations")
async def recommendations(
    request: RecommendationRequest, engine: EngineDep
) -> RecommendationResponse:
    """Rank the given sitters for a pet, best match first."""
    try:
        ranking = await engine.get_recommendations(
            request.pet,
            request.owner_preferences,
            request.sitters,
            request.limit,
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None

    return RecommendationResponse(
        pet_id=str(request.pet.get("id")),
        recommendations=[item.to_dict() for item in ranking],
        insights=summarize(ranking),
    )


@app.delete("/cache/{kind}/{entity_id}")
async def invalidate_embedding(
    kind: EntityKind, entity_id: str, engine: EngineDep
) -> dict[str, bool]:
    """Drop a cached embedding after the entity's profile changed."""
    return {"invalidated": engine.invalidate(kind, entity_id)}
