"""
Adaptive API Endpoints.

HTTP surface of the adaptive service: recommendations, challenge
generation parameters and difficulty feedback.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from app.db.database import get_db
from app.crud.stores import create_arango_stores
from app.models.challenge import ChallengeParameters, ChallengeRequestOptions
from app.models.difficulty import Difficulty
from app.models.recommendation import Recommendation
from app.services.adaptive_service import (
    AdaptiveService,
    AdaptiveServiceDependencies,
    create_adaptive_service,
)
from app.services.cache_service import create_cache_service
from app.services.personalization_service import create_personalization_service

router = APIRouter(prefix="/adaptive", tags=["adaptive"])

# Shared by every request so cached entries outlive a single call
adaptive_cache = create_cache_service()


# Request models
class DifficultyAdjustmentRequest(BaseModel):
    score: float = Field(..., description="Score achieved on the challenge (0-100)")
    challenge_id: Optional[str] = None


def get_adaptive_service() -> AdaptiveService:
    """Dependency to get an adaptive service over the ArangoDB stores."""
    db = get_db()
    stores = create_arango_stores(db)
    dependencies = AdaptiveServiceDependencies(
        **stores,
        personalization=create_personalization_service(stores["config_store"]),
        cache=adaptive_cache
    )
    return create_adaptive_service(dependencies)


@router.get("/users/{user_id}/recommendations", response_model=Recommendation)
async def get_recommendations(
    user_id: str,
    force_refresh: bool = Query(False, description="Skip cached and persisted recommendations"),
    adaptive_service: AdaptiveService = Depends(get_adaptive_service)
):
    """Get the latest personalized recommendation for a user."""
    return await adaptive_service.get_latest_recommendations(user_id, force_refresh=force_refresh)


@router.post("/users/{user_id}/challenges", response_model=ChallengeParameters)
async def generate_challenge(
    user_id: str,
    options: Optional[ChallengeRequestOptions] = None,
    adaptive_service: AdaptiveService = Depends(get_adaptive_service)
):
    """
    Resolve challenge generation parameters for a user.

    Explicitly requested focus area, challenge type, difficulty or format
    take precedence over the personalized choice when they exist.
    """
    return await adaptive_service.generate_challenge(user_id, options)


@router.post("/users/{user_id}/difficulty/adjust", response_model=Difficulty)
async def adjust_difficulty(
    user_id: str,
    request: DifficultyAdjustmentRequest,
    adaptive_service: AdaptiveService = Depends(get_adaptive_service)
):
    """Feed a challenge score back into the user's difficulty level."""
    return await adaptive_service.adjust_difficulty(user_id, request.score, request.challenge_id)


@router.get("/users/{user_id}/difficulty", response_model=Difficulty)
async def get_difficulty(
    user_id: str,
    challenge_type: Optional[str] = None,
    adaptive_service: AdaptiveService = Depends(get_adaptive_service)
):
    """Get the difficulty derived from the user's average score."""
    return await adaptive_service.calculate_difficulty(user_id, challenge_type)


@router.delete("/users/{user_id}/cache", status_code=status.HTTP_204_NO_CONTENT)
async def invalidate_cache(
    user_id: str,
    adaptive_service: AdaptiveService = Depends(get_adaptive_service)
):
    """Drop every cached adaptive entry for a user."""
    await adaptive_service.invalidate_user_caches(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
