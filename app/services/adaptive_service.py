"""
Adaptive Service.

Public entry point of the adaptive decision engine:

- get_latest_recommendations: cached latest recommendation, reusing a fresh
  persisted one or generating and saving a new one
- generate_challenge: challenge generation parameters
- adjust_difficulty: score feedback into the persisted difficulty level
- calculate_difficulty: cached difficulty from the user's average score
- invalidate_user_caches: drop everything cached for a user

All collaborators are passed in through ``AdaptiveServiceDependencies``.
Every public coroutine runs through ``service_operation`` so callers only
ever see ``AdaptiveError`` subclasses.
"""

from typing import Optional
from dataclasses import dataclass, fields
from datetime import timedelta
import asyncio
import logging
import random

from app.core.config import settings
from app.core.errors import (
    AdaptiveError,
    AdaptiveNotFoundError,
    AdaptiveProcessingError,
    AdaptiveValidationError,
    service_operation,
)
from app.models.challenge import ChallengeParameters, ChallengeRequestOptions
from app.models.difficulty import Difficulty, DifficultyLevel, validate_score
from app.models.progress import PersonalityProfile, Progress
from app.models.recommendation import Recommendation
from app.models.user import User
from app.services.cache_service import (
    difficulty_cache_key,
    recommendation_cache_key,
    user_cache_prefix,
)
from app.services.challenge_parameter_selector import create_challenge_parameter_selector
from app.services.interfaces import (
    CacheLayer,
    ChallengeConfigStore,
    PersonalityStore,
    PersonalizationHeuristics,
    ProgressStore,
    RecommendationStore,
    UserStore,
)
from app.services.recommendation_engine import create_recommendation_engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdaptiveServiceDependencies:
    """Collaborators of the adaptive service. Only ``cache`` and ``rng`` are optional."""
    progress_store: ProgressStore
    personality_store: PersonalityStore
    user_store: UserStore
    config_store: ChallengeConfigStore
    recommendation_store: RecommendationStore
    personalization: PersonalizationHeuristics
    cache: Optional[CacheLayer] = None
    rng: Optional[random.Random] = None

    def __post_init__(self):
        missing = [
            f.name for f in fields(self)
            if f.name not in ("cache", "rng") and getattr(self, f.name) is None
        ]
        if missing:
            raise TypeError(f"Missing adaptive service dependencies: {', '.join(missing)}")


class AdaptiveService:
    """Adaptive recommendations, challenge parameters and difficulty."""

    def __init__(
        self,
        dependencies: AdaptiveServiceDependencies,
        recommendation_ttl: int = settings.RECOMMENDATION_CACHE_TTL,
        difficulty_ttl: int = settings.DIFFICULTY_CACHE_TTL,
        recommendation_max_age: timedelta = timedelta(hours=settings.RECOMMENDATION_MAX_AGE_HOURS),
        strict_difficulty_persistence: bool = settings.strict_difficulty_persistence
    ):
        self.progress_store = dependencies.progress_store
        self.personality_store = dependencies.personality_store
        self.user_store = dependencies.user_store
        self.recommendation_store = dependencies.recommendation_store
        self.cache = dependencies.cache

        self.engine = create_recommendation_engine(dependencies.config_store, dependencies.personalization)
        self.selector = create_challenge_parameter_selector(
            dependencies.config_store,
            dependencies.personalization,
            dependencies.rng
        )

        self.recommendation_ttl = recommendation_ttl
        self.difficulty_ttl = difficulty_ttl
        self.recommendation_max_age = recommendation_max_age
        self.strict_difficulty_persistence = strict_difficulty_persistence

    # ========================================================================
    # RECOMMENDATIONS
    # ========================================================================

    @service_operation("get_latest_recommendations")
    async def get_latest_recommendations(self, user_id: str, force_refresh: bool = False) -> Recommendation:
        """
        Latest recommendation for a user.

        Served from cache within the TTL. On a miss the newest persisted
        recommendation is reused while younger than the configured maximum
        age, otherwise a new one is generated and saved.

        Args:
            user_id: User identifier
            force_refresh: Skip cache and persisted reuse

        Returns:
            Recommendation
        """
        self._require_user_id(user_id)
        logger.info(f"📋 Getting latest recommendations for user {user_id} (force_refresh={force_refresh})")

        async def fetch_or_generate() -> Recommendation:
            if not force_refresh:
                latest = await self._find_latest_recommendation(user_id)
                if latest and latest.is_fresh(self.recommendation_max_age):
                    logger.debug(f"♻️ Reusing recommendation {latest.id} for user {user_id}")
                    return latest
            return await self.generate_and_save_recommendations(user_id)

        if self.cache is None:
            return await fetch_or_generate()

        key = recommendation_cache_key(user_id)
        if force_refresh:
            self.cache.delete(key)
        return await self.cache.get_or_set(key, fetch_or_generate, self.recommendation_ttl)

    @service_operation("generate_and_save_recommendations")
    async def generate_and_save_recommendations(self, user_id: str) -> Recommendation:
        """Generate a new recommendation, persist it and invalidate the user's caches."""
        self._require_user_id(user_id)

        progress, personality = await asyncio.gather(
            self._load_progress(user_id),
            self._load_personality(user_id)
        )

        recommendation = await self.engine.generate(user_id, progress, personality)

        try:
            saved = await self.recommendation_store.save(recommendation)
        except Exception as e:
            logger.error(f"❌ Failed to save recommendation {recommendation.id} for user {user_id}: {e}")
            raise AdaptiveProcessingError(
                "Failed to save generated recommendation",
                details={"user_id": user_id, "recommendation_id": recommendation.id},
                cause=e
            )

        await self.invalidate_user_caches(user_id)
        logger.info(f"💾 Saved recommendation {recommendation.id} for user {user_id}")
        return saved or recommendation

    async def _find_latest_recommendation(self, user_id: str) -> Optional[Recommendation]:
        try:
            return await self.recommendation_store.find_latest_for_user(user_id)
        except Exception as e:
            logger.warning(f"⚠️ Latest recommendation lookup failed for user {user_id}, regenerating: {e}")
            return None

    # ========================================================================
    # CHALLENGE PARAMETERS
    # ========================================================================

    @service_operation("generate_challenge")
    async def generate_challenge(
        self,
        user_id: str,
        options: Optional[ChallengeRequestOptions] = None
    ) -> ChallengeParameters:
        """
        Resolve personalized challenge generation parameters.

        Progress is created on demand but the user record must already
        exist: an unknown user raises AdaptiveNotFoundError instead of
        receiving default parameters.

        Args:
            user_id: User identifier
            options: Explicit focus area / type / difficulty / format requests

        Returns:
            ChallengeParameters

        Raises:
            AdaptiveValidationError: user_id missing
            AdaptiveNotFoundError: user does not exist
            AdaptiveProcessingError: progress or user lookup failed
        """
        self._require_user_id(user_id)
        logger.info(f"🎲 Generating challenge parameters for user {user_id}")

        progress, personality, user = await asyncio.gather(
            self._load_progress(user_id),
            self._load_personality(user_id),
            self._load_user(user_id)
        )
        if user is None:
            raise AdaptiveNotFoundError(f"User {user_id} not found", details={"user_id": user_id})

        return await self.selector.select(user_id, progress, personality, user, options)

    # ========================================================================
    # DIFFICULTY
    # ========================================================================

    @service_operation("adjust_difficulty")
    async def adjust_difficulty(
        self,
        user_id: str,
        score: Optional[float],
        challenge_id: Optional[str] = None
    ) -> Difficulty:
        """
        Adjust a user's difficulty from a challenge score and persist the level.

        With the best_effort persistence policy a failed write is logged and
        the computed difficulty still returned; with strict it raises
        AdaptiveProcessingError.

        The stored level belongs to the user record, so an unknown user
        raises AdaptiveNotFoundError rather than adjusting a default.

        Args:
            user_id: User identifier
            score: Score achieved (0-100)
            challenge_id: Challenge the score belongs to (logged only)

        Returns:
            The adjusted Difficulty

        Raises:
            AdaptiveValidationError: user_id or score missing or out of range
            AdaptiveNotFoundError: user does not exist
        """
        self._require_user_id(user_id)
        value = validate_score(score)

        logger.info(f"📈 Adjusting difficulty for user {user_id}: score={value}, challenge={challenge_id}")

        user = await self._load_user(user_id)
        if user is None:
            raise AdaptiveNotFoundError(f"User {user_id} not found", details={"user_id": user_id})

        difficulty = self._current_difficulty(user)
        previous = difficulty.get_code()
        difficulty.adjust_based_on_score(value)
        new_level = difficulty.get_code()

        logger.info(
            f"📊 Difficulty for user {user_id}: {previous} -> {new_level} "
            f"({difficulty.get_percentage():.1f}%)"
        )

        try:
            await self.user_store.update_user_difficulty(user_id, new_level)
        except Exception as e:
            logger.error(f"❌ Failed to persist difficulty {new_level} for user {user_id}: {e}")
            if self.strict_difficulty_persistence:
                raise AdaptiveProcessingError(
                    "Failed to save updated difficulty",
                    details={"user_id": user_id, "level": new_level},
                    cause=e
                )
            return difficulty

        await self.invalidate_user_caches(user_id)
        return difficulty

    def _current_difficulty(self, user: User) -> Difficulty:
        if user.difficulty_level and DifficultyLevel.is_valid(user.difficulty_level):
            return Difficulty.from_level(user.difficulty_level)
        if user.difficulty_level:
            logger.warning(f"⚠️ Ignoring unknown stored difficulty {user.difficulty_level!r} for user {user.key}")
        return Difficulty()

    @service_operation("calculate_difficulty")
    async def calculate_difficulty(self, user_id: str, challenge_type: Optional[str] = None) -> Difficulty:
        """
        Difficulty derived from the user's overall average score.

        Cached per user (and per challenge type when given).
        """
        self._require_user_id(user_id)
        logger.info(f"🧮 Calculating difficulty for user {user_id} (challenge_type={challenge_type})")

        async def compute() -> Difficulty:
            progress = await self._load_progress(user_id)
            difficulty = Difficulty()
            average_score = progress.statistics.average_score
            if average_score is not None:
                difficulty.set_from_absolute_score(average_score)
            logger.debug(f"Difficulty for user {user_id}: {difficulty.get_code()} ({difficulty.get_percentage():.1f}%)")
            return difficulty

        if self.cache is None:
            return await compute()

        difficulty = await self.cache.get_or_set(
            difficulty_cache_key(user_id, challenge_type),
            compute,
            self.difficulty_ttl
        )
        # Cached instance stays untouched by callers
        return difficulty.model_copy()

    # ========================================================================
    # CACHE
    # ========================================================================

    @service_operation("invalidate_user_caches")
    async def invalidate_user_caches(self, user_id: str) -> int:
        """
        Delete every cached entry for a user.

        Returns:
            Number of entries removed (0 without a cache)
        """
        self._require_user_id(user_id)
        if self.cache is None:
            return 0

        removed = 0
        try:
            for key in self.cache.keys(user_cache_prefix(user_id)):
                if self.cache.delete(key):
                    removed += 1
        except Exception as e:
            logger.warning(f"⚠️ Cache invalidation incomplete for user {user_id}: {e}")

        logger.debug(f"🧹 Invalidated {removed} cache entries for user {user_id}")
        return removed

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    def _require_user_id(self, user_id: str) -> None:
        if not isinstance(user_id, str) or not user_id.strip():
            raise AdaptiveValidationError("User ID is required", details={"user_id": user_id})

    async def _load_progress(self, user_id: str) -> Progress:
        try:
            return await self.progress_store.get_or_create_progress(user_id)
        except AdaptiveError:
            raise
        except Exception as e:
            logger.error(f"❌ Failed to load progress for user {user_id}: {e}")
            raise AdaptiveProcessingError(
                "Could not load user progress",
                details={"user_id": user_id},
                cause=e
            )

    async def _load_personality(self, user_id: str) -> Optional[PersonalityProfile]:
        try:
            return await self.personality_store.get_profile(user_id)
        except Exception as e:
            logger.warning(f"⚠️ Personality profile unavailable for user {user_id}, continuing without: {e}")
            return None

    async def _load_user(self, user_id: str) -> Optional[User]:
        try:
            return await self.user_store.get_user_by_id(user_id)
        except AdaptiveError:
            raise
        except Exception as e:
            logger.error(f"❌ Failed to load user {user_id}: {e}")
            raise AdaptiveProcessingError(
                "Could not load user",
                details={"user_id": user_id},
                cause=e
            )


def create_adaptive_service(dependencies: AdaptiveServiceDependencies) -> AdaptiveService:
    """
    Factory function to create an AdaptiveService with settings-driven policy.

    Args:
        dependencies: Stores, heuristics and optional cache/RNG

    Returns:
        Configured AdaptiveService
    """
    if dependencies.rng is None and settings.RANDOM_SEED is not None:
        dependencies = AdaptiveServiceDependencies(
            **{f.name: getattr(dependencies, f.name) for f in fields(dependencies) if f.name != "rng"},
            rng=random.Random(settings.RANDOM_SEED)
        )
    return AdaptiveService(dependencies)
