"""
Recommendation engine tests.
"""
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from app.models.progress import CompletedChallenge, PersonalityProfile, Progress
from app.models.recommendation import Recommendation
from app.services.recommendation_engine import (
    GENERATION_SOURCE,
    GENERIC_RESOURCE,
    TRENDING_FOCUS_AREAS,
    RecommendationEngine,
    build_learning_resources,
    top_up,
    unique,
)
from tests.conftest import InMemoryConfigStore


class FailingPersonalization:
    async def select_challenge_type(self, traits, focus_areas, candidate_codes=None):
        raise RuntimeError("personalization down")

    def determine_difficulty(self, score, completed_count):
        return "intermediate"


@pytest.fixture
def engine(config_store, personalization):
    return RecommendationEngine(config_store, personalization)


@pytest.fixture
def rich_progress():
    return Progress(
        user_id="u1",
        skill_levels={"prompting": 40, "rag": 90, "debugging": 55, "ethics": 80, "notes": "n/a"},
        focus_area="Implementation",
        completed_challenges=[
            CompletedChallenge(challenge_type="debugging", score=90),
            CompletedChallenge(challenge_type="design", score=75),
            CompletedChallenge(challenge_type="debugging", score=80),
            CompletedChallenge(challenge_type="analysis", score=50),
        ]
    )


# ============================================================================
# Helpers
# ============================================================================

class TestHelpers:

    def test_unique_keeps_first_occurrence(self):
        assert unique(["a", "b", "a", "", None, "c"]) == ["a", "b", "c"]

    def test_top_up_stops_at_limit(self):
        assert top_up(["a"], ["a", "b", "c", "d"]) == ["a", "b", "c"]

    def test_resources_fall_back_to_generic(self):
        assert build_learning_resources(["Debugging"], ["analysis"], []) == [GENERIC_RESOURCE]

    def test_single_match_gets_generic_appended(self):
        resources = build_learning_resources(["RAG"], ["implementation"], [])

        assert [r.url for r in resources] == ["/resources/rag-systems", GENERIC_RESOURCE.url]

    def test_trait_variant(self):
        resources = build_learning_resources(["AI_Ethics"], ["design"], ["Creative"])

        assert [r.type for r in resources] == ["interactive-guide", "interactive-workshop"]


# ============================================================================
# Generation
# ============================================================================

class TestGenerate:

    @pytest.mark.asyncio
    async def test_no_signals_uses_trending_and_defaults(self, engine):
        recommendation = await engine.generate("u1", None, None)

        assert recommendation.recommended_focus_areas == TRENDING_FOCUS_AREAS[:3]
        assert recommendation.recommended_challenge_types == ["implementation", "debugging", "design"]
        assert [r.type for r in recommendation.suggested_learning_resources] == [
            "interactive-guide", "workshop", "tutorial"
        ]
        assert recommendation.strengths == []
        assert recommendation.weaknesses == []
        assert recommendation.metadata["generation_source"] == GENERATION_SOURCE
        assert recommendation.metadata["based_on_skill_levels"] is False
        assert recommendation.metadata["based_on_history"] is False

    @pytest.mark.asyncio
    async def test_full_signals(self, engine, rich_progress):
        personality = PersonalityProfile(user_id="u1", dominant_traits=["analytical"])

        recommendation = await engine.generate("u1", rich_progress, personality)

        assert recommendation.recommended_focus_areas == ["Prompt_Engineering", "Debugging", "Analysis"]
        assert recommendation.recommended_challenge_types == ["debugging", "implementation", "analysis"]
        assert [(r.url, r.type) for r in recommendation.suggested_learning_resources] == [
            ("/resources/prompt-engineering", "tutorial"),
            ("/resources/llm-debugging", "troubleshooting-guide"),
        ]
        assert recommendation.strengths == ["Rag", "Ethics"]
        assert recommendation.weaknesses == ["Prompting", "Debugging"]
        assert recommendation.metadata["trait_factors"] == ["analytical"]
        assert recommendation.metadata["based_on_history"] is True

    @pytest.mark.asyncio
    async def test_progress_focus_area_fills_a_short_list(self, engine):
        progress = Progress(user_id="u1", skill_levels={"coding": 30}, focus_area="RAG")

        recommendation = await engine.generate("u1", progress, None)

        assert recommendation.recommended_focus_areas == ["Implementation", "RAG"]

    @pytest.mark.asyncio
    async def test_history_only_challenge_types(self, engine, rich_progress):
        recommendation = await engine.generate("u1", rich_progress, None)

        assert recommendation.recommended_challenge_types == ["debugging", "design"]

    @pytest.mark.asyncio
    async def test_stored_strengths_win_and_are_capped(self, engine):
        progress = Progress(
            user_id="u1",
            skill_levels={"rag": 99},
            strengths=["a", "b", "c", "d"],
            weaknesses=["w"]
        )

        recommendation = await engine.generate("u1", progress, None)

        assert recommendation.strengths == ["a", "b", "c"]
        assert recommendation.weaknesses == ["w"]

    @pytest.mark.asyncio
    async def test_unknown_mapped_focus_areas_are_dropped(self, personalization):
        store = InMemoryConfigStore(trait_mappings={"analytical": ["Nonexistent", "RAG"]})
        engine = RecommendationEngine(store, personalization)
        personality = PersonalityProfile(user_id="u1", dominant_traits=["Analytical"])

        focus_areas = await engine.recommend_focus_areas("u1", None, personality)

        assert "Nonexistent" not in focus_areas
        assert focus_areas[0] == "RAG"

    @pytest.mark.asyncio
    async def test_trait_mapping_failure_is_skipped(self, config_store, personalization):
        config_store.fail_trait_mappings = True
        engine = RecommendationEngine(config_store, personalization)
        personality = PersonalityProfile(user_id="u1", dominant_traits=["creative"])

        recommendation = await engine.generate("u1", None, personality)

        assert recommendation.recommended_focus_areas == TRENDING_FOCUS_AREAS[:3]
        assert recommendation.recommended_challenge_types[0] == "design"

    @pytest.mark.asyncio
    async def test_personalization_failure_is_skipped(self, config_store):
        engine = RecommendationEngine(config_store, FailingPersonalization())
        personality = PersonalityProfile(user_id="u1", dominant_traits=["creative"])

        recommendation = await engine.generate("u1", None, personality)

        assert recommendation.recommended_challenge_types == ["implementation", "debugging", "design"]


# ============================================================================
# Model
# ============================================================================

class TestRecommendationModel:

    def test_lists_are_capped(self):
        with pytest.raises(ValidationError):
            Recommendation(user_id="u1", recommended_focus_areas=["a", "b", "c", "d"])

    def test_codes_are_unique(self):
        with pytest.raises(ValidationError):
            Recommendation(user_id="u1", recommended_challenge_types=["design", "design"])

    def test_is_immutable(self):
        recommendation = Recommendation(user_id="u1")

        with pytest.raises(ValidationError):
            recommendation.user_id = "u2"

    def test_freshness(self):
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        recommendation = Recommendation(user_id="u1", created_at=created)

        assert recommendation.is_fresh(timedelta(hours=24), now=created + timedelta(hours=23))
        assert not recommendation.is_fresh(timedelta(hours=24), now=created + timedelta(hours=24))


class TestWeakestSkillScenario:

    @pytest.mark.asyncio
    async def test_reasoning_gap_maps_to_critical_thinking(self, engine):
        progress = Progress(user_id="u1", skill_levels={"prompting": 90, "reasoning": 35})

        recommendation = await engine.generate("u1", progress, None)

        assert recommendation.recommended_focus_areas[0] == "Critical_Thinking"
        assert len(set(recommendation.recommended_focus_areas)) == len(recommendation.recommended_focus_areas)
