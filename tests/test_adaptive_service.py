"""
Adaptive service tests over in-memory stores.
"""
import random
from datetime import timedelta

import pytest

from app.core.errors import (
    AdaptiveNotFoundError,
    AdaptiveProcessingError,
    AdaptiveValidationError,
)
from app.models.challenge import ChallengeRequestOptions
from app.models.progress import PersonalityProfile, Progress, ProgressStatistics
from app.models.recommendation import Recommendation, utc_now
from app.services.adaptive_service import (
    AdaptiveService,
    AdaptiveServiceDependencies,
    create_adaptive_service,
)
from app.services.cache_service import difficulty_cache_key, recommendation_cache_key


# ============================================================================
# Dependencies
# ============================================================================

class TestDependencies:

    def test_missing_required_dependency(self, progress_store, personality_store, config_store):
        with pytest.raises(TypeError) as exc_info:
            AdaptiveServiceDependencies(
                progress_store=progress_store,
                personality_store=personality_store,
                user_store=None,
                config_store=config_store,
                recommendation_store=None,
                personalization=None
            )

        assert "user_store" in str(exc_info.value)
        assert "personalization" in str(exc_info.value)

    def test_factory_builds_service(self, dependencies):
        assert isinstance(create_adaptive_service(dependencies), AdaptiveService)


# ============================================================================
# Recommendations
# ============================================================================

class TestRecommendations:

    @pytest.mark.asyncio
    async def test_generates_saves_and_caches(self, adaptive_service, recommendation_store, cache):
        first = await adaptive_service.get_latest_recommendations("u1")
        second = await adaptive_service.get_latest_recommendations("u1")

        assert first.id == second.id
        assert len(recommendation_store.saved) == 1
        assert cache.keys() == [recommendation_cache_key("u1")]

    @pytest.mark.asyncio
    async def test_reuses_fresh_persisted_recommendation(self, adaptive_service, recommendation_store):
        existing = Recommendation(user_id="u1", recommended_focus_areas=["RAG"])
        recommendation_store.saved.append(existing)

        latest = await adaptive_service.get_latest_recommendations("u1")

        assert latest.id == existing.id
        assert len(recommendation_store.saved) == 1

    @pytest.mark.asyncio
    async def test_regenerates_stale_recommendation(self, adaptive_service, recommendation_store):
        stale = Recommendation(user_id="u1", created_at=utc_now() - timedelta(days=2))
        recommendation_store.saved.append(stale)

        latest = await adaptive_service.get_latest_recommendations("u1")

        assert latest.id != stale.id
        assert len(recommendation_store.saved) == 2

    @pytest.mark.asyncio
    async def test_force_refresh_bypasses_cache_and_store(self, adaptive_service, recommendation_store):
        first = await adaptive_service.get_latest_recommendations("u1")
        refreshed = await adaptive_service.get_latest_recommendations("u1", force_refresh=True)

        assert refreshed.id != first.id
        assert len(recommendation_store.saved) == 2
        assert (await adaptive_service.get_latest_recommendations("u1")).id == refreshed.id

    @pytest.mark.asyncio
    async def test_lookup_failure_regenerates(self, adaptive_service, recommendation_store):
        recommendation_store.find_error = ConnectionError("arango down")

        latest = await adaptive_service.get_latest_recommendations("u1")

        assert recommendation_store.saved == [latest]

    @pytest.mark.asyncio
    async def test_save_failure_is_a_processing_error(self, adaptive_service, recommendation_store, cache):
        recommendation_store.save_error = ConnectionError("arango down")

        with pytest.raises(AdaptiveProcessingError):
            await adaptive_service.get_latest_recommendations("u1")

        assert cache.keys() == []

    @pytest.mark.asyncio
    async def test_progress_failure_is_a_processing_error(self, adaptive_service, progress_store):
        progress_store.error = ConnectionError("arango down")

        with pytest.raises(AdaptiveProcessingError) as exc_info:
            await adaptive_service.generate_and_save_recommendations("u1")

        assert exc_info.value.details == {"user_id": "u1"}

    @pytest.mark.asyncio
    async def test_personality_failure_is_tolerated(self, adaptive_service, personality_store):
        personality_store.error = ConnectionError("profile service down")

        recommendation = await adaptive_service.generate_and_save_recommendations("u1")

        assert recommendation.metadata["trait_factors"] == []

    @pytest.mark.asyncio
    async def test_uses_personality(self, adaptive_service, personality_store):
        personality_store.profiles["u1"] = PersonalityProfile(user_id="u1", dominant_traits=["creative"])

        recommendation = await adaptive_service.generate_and_save_recommendations("u1")

        assert recommendation.metadata["trait_factors"] == ["creative"]
        assert "Systems_Design" in recommendation.recommended_focus_areas

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", ["", "   ", None])
    async def test_user_id_is_required(self, adaptive_service, user_id):
        with pytest.raises(AdaptiveValidationError):
            await adaptive_service.get_latest_recommendations(user_id)


# ============================================================================
# Challenge parameters
# ============================================================================

class TestGenerateChallenge:

    @pytest.mark.asyncio
    async def test_unknown_user(self, adaptive_service):
        with pytest.raises(AdaptiveNotFoundError):
            await adaptive_service.generate_challenge("ghost")

    @pytest.mark.asyncio
    async def test_parameters_for_user(self, adaptive_service, user_store, progress_store):
        user_store.add("u1", difficulty_level="advanced")
        progress_store.progress["u1"] = Progress(user_id="u1", skill_levels={"rag": 20})

        parameters = await adaptive_service.generate_challenge("u1")

        assert parameters.user_id == "u1"
        assert parameters.focus_area == "RAG"
        assert parameters.difficulty == "advanced"
        assert parameters.time_allocation_seconds == 2700

    @pytest.mark.asyncio
    async def test_requested_options(self, adaptive_service, user_store):
        user_store.add("u1")

        parameters = await adaptive_service.generate_challenge(
            "u1",
            ChallengeRequestOptions(challenge_type="debugging", difficulty="beginner")
        )

        assert parameters.challenge_type == "debugging"
        assert parameters.format_type == "debug"
        assert parameters.difficulty == "beginner"


# ============================================================================
# Difficulty
# ============================================================================

class TestAdjustDifficulty:

    @pytest.mark.asyncio
    async def test_high_score_moves_up_and_persists(self, adaptive_service, user_store, cache):
        user_store.add("u1", difficulty_level="intermediate")
        cache.set(difficulty_cache_key("u1"), "stale")
        cache.set(difficulty_cache_key("u2"), "other user")

        difficulty = await adaptive_service.adjust_difficulty("u1", 100, challenge_id="c1")

        assert difficulty.get_code() == "advanced"
        assert user_store.difficulty_updates == [("u1", "advanced")]
        assert cache.keys() == [difficulty_cache_key("u2")]

    @pytest.mark.asyncio
    async def test_low_score_moves_down(self, adaptive_service, user_store):
        user_store.add("u1", difficulty_level="advanced")

        difficulty = await adaptive_service.adjust_difficulty("u1", 0)

        assert difficulty.get_code() == "intermediate"

    @pytest.mark.asyncio
    async def test_unknown_stored_level_starts_from_default(self, adaptive_service, user_store):
        user_store.add("u1", difficulty_level="legendary")

        difficulty = await adaptive_service.adjust_difficulty("u1", 62.5)

        assert difficulty.get_code() == "intermediate"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", [None, -5, 101, "high"])
    async def test_invalid_score(self, adaptive_service, user_store, score):
        user_store.add("u1")

        with pytest.raises(AdaptiveValidationError):
            await adaptive_service.adjust_difficulty("u1", score)

        assert user_store.difficulty_updates == []

    @pytest.mark.asyncio
    async def test_unknown_user(self, adaptive_service):
        with pytest.raises(AdaptiveNotFoundError):
            await adaptive_service.adjust_difficulty("ghost", 80)

    @pytest.mark.asyncio
    async def test_best_effort_persistence(self, adaptive_service, user_store):
        user_store.add("u1", difficulty_level="intermediate")
        user_store.update_error = ConnectionError("arango down")

        difficulty = await adaptive_service.adjust_difficulty("u1", 100)

        assert difficulty.get_code() == "advanced"

    @pytest.mark.asyncio
    async def test_strict_persistence(self, dependencies, user_store):
        service = AdaptiveService(dependencies, strict_difficulty_persistence=True)
        user_store.add("u1", difficulty_level="intermediate")
        user_store.update_error = ConnectionError("arango down")

        with pytest.raises(AdaptiveProcessingError) as exc_info:
            await service.adjust_difficulty("u1", 100)

        assert exc_info.value.details["level"] == "advanced"


class TestCalculateDifficulty:

    @pytest.mark.asyncio
    async def test_from_average_score(self, adaptive_service, progress_store):
        progress_store.progress["u1"] = Progress(
            user_id="u1",
            statistics=ProgressStatistics(average_score=80, total_challenges_completed=4)
        )

        difficulty = await adaptive_service.calculate_difficulty("u1")

        assert difficulty.get_code() == "expert"
        assert difficulty.get_percentage() == 87.5

    @pytest.mark.asyncio
    async def test_default_without_average(self, adaptive_service):
        difficulty = await adaptive_service.calculate_difficulty("u1")

        assert difficulty.get_code() == "intermediate"

    @pytest.mark.asyncio
    async def test_result_is_cached_per_challenge_type(self, adaptive_service, progress_store, cache):
        progress_store.progress["u1"] = Progress(
            user_id="u1",
            statistics=ProgressStatistics(average_score=10)
        )
        await adaptive_service.calculate_difficulty("u1")
        await adaptive_service.calculate_difficulty("u1", "design")

        progress_store.progress["u1"] = Progress(
            user_id="u1",
            statistics=ProgressStatistics(average_score=90)
        )

        assert (await adaptive_service.calculate_difficulty("u1")).get_code() == "beginner"
        assert sorted(cache.keys()) == [difficulty_cache_key("u1"), difficulty_cache_key("u1", "design")]

    @pytest.mark.asyncio
    async def test_callers_cannot_mutate_cached_value(self, adaptive_service):
        first = await adaptive_service.calculate_difficulty("u1")
        first.increase(50)

        second = await adaptive_service.calculate_difficulty("u1")

        assert second.get_percentage() == 37.5


# ============================================================================
# Cache
# ============================================================================

class TestInvalidation:

    @pytest.mark.asyncio
    async def test_removes_only_the_users_entries(self, adaptive_service, cache):
        cache.set(recommendation_cache_key("u1"), 1)
        cache.set(difficulty_cache_key("u1", "design"), 2)
        cache.set(recommendation_cache_key("u10"), 3)

        removed = await adaptive_service.invalidate_user_caches("u1")

        assert removed == 2
        assert cache.keys() == [recommendation_cache_key("u10")]

    @pytest.mark.asyncio
    async def test_without_cache(
        self,
        progress_store,
        personality_store,
        user_store,
        config_store,
        recommendation_store,
        personalization
    ):
        service = AdaptiveService(AdaptiveServiceDependencies(
            progress_store=progress_store,
            personality_store=personality_store,
            user_store=user_store,
            config_store=config_store,
            recommendation_store=recommendation_store,
            personalization=personalization,
            rng=random.Random(1)
        ))

        assert await service.invalidate_user_caches("u1") == 0
        first = await service.get_latest_recommendations("u1")
        assert (await service.get_latest_recommendations("u1")).id == first.id
