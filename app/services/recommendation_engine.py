"""
Recommendation Engine.

Turns skill levels, personality traits and completion history into a bounded
Recommendation:

1. Focus areas: two weakest skills, trait-mapped areas, the current focus
   area, then trending areas to fill.
2. Challenge types: personalization match (plus related types), types of
   the most frequent high-scoring completions, then defaults to fill.
3. Learning resources: static rule table with trait-driven variants.
4. Strengths/weaknesses: taken from progress, or derived from skill levels.

Every list is deduplicated and capped at three. Failures in the optional
enrichment steps (trait mappings, personalization) are logged and skipped.
"""

from typing import Dict, List, Optional, Tuple
from collections import Counter
from dataclasses import dataclass, field
import logging

from app.models.progress import PersonalityProfile, Progress
from app.models.recommendation import (
    MAX_RECOMMENDED_ITEMS,
    LearningResource,
    Recommendation,
    utc_now,
)
from app.services.interfaces import ChallengeConfigStore, PersonalizationHeuristics
from app.utils.skills import (
    derive_strengths,
    derive_weaknesses,
    map_skills_to_focus_areas,
    weakest_skills,
)

logger = logging.getLogger(__name__)

GENERATION_SOURCE = "AdaptiveServiceDynamic"

TRENDING_FOCUS_AREAS = ["AI_Ethics", "Prompt_Engineering", "RAG", "LLM_Training"]
DEFAULT_CHALLENGE_TYPES = ["implementation", "debugging", "design", "analysis"]

# Lists shorter than this get topped up from the trending/default lists
MIN_RECOMMENDED_ITEMS = 2

SUCCESS_SCORE = 70.0
WEAKEST_SKILL_COUNT = 2
RELATED_TYPE_COUNT = 2
HISTORY_TYPE_COUNT = 2


# ============================================================================
# RESOURCE RULES
# ============================================================================

@dataclass(frozen=True)
class ResourceRule:
    """A resource plus the trait that switches it to another variant."""
    title: str
    url: str
    default_type: str
    trait_variants: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def build(self, traits: List[str]) -> LearningResource:
        lowered = {t.lower() for t in traits}
        resource_type = self.default_type
        for trait, variant in self.trait_variants:
            if trait.lower() in lowered:
                resource_type = variant
                break
        return LearningResource(title=self.title, url=self.url, type=resource_type)


FOCUS_AREA_RESOURCES: Dict[str, ResourceRule] = {
    "AI_Ethics": ResourceRule(
        "Responsible AI Development Guide", "/resources/ai-ethics-guide",
        "interactive-guide", (("Analytical", "whitepaper"),)
    ),
    "Prompt_Engineering": ResourceRule(
        "Advanced Prompt Engineering Techniques", "/resources/prompt-engineering",
        "workshop", (("Analytical", "tutorial"),)
    ),
    "RAG": ResourceRule(
        "Building Effective RAG Systems", "/resources/rag-systems", "tutorial"
    ),
    "Implementation": ResourceRule(
        "Implementation Best Practices for AI Features", "/resources/ai-implementation", "guide"
    ),
}

CHALLENGE_TYPE_RESOURCES: Dict[str, ResourceRule] = {
    "debugging": ResourceRule(
        "Common LLM Integration Bugs & Solutions", "/resources/llm-debugging", "troubleshooting-guide"
    ),
    "design": ResourceRule(
        "Designing User-Centric AI Interfaces", "/resources/ai-ux-design",
        "guide", (("Creative", "interactive-workshop"),)
    ),
    "optimization": ResourceRule(
        "Performance Optimization for AI Applications", "/resources/ai-optimization", "tutorial"
    ),
}

GENERIC_RESOURCE = LearningResource(
    title="Getting Started with AI Development",
    url="/resources/ai-development-intro",
    type="course"
)


def unique(values: List[str]) -> List[str]:
    """Drop empty values and duplicates, keeping first occurrences in order."""
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def top_up(values: List[str], fillers: List[str], limit: int = MAX_RECOMMENDED_ITEMS) -> List[str]:
    """Append fillers not already present until ``limit`` is reached."""
    result = list(values)
    for filler in fillers:
        if len(result) >= limit:
            break
        if filler not in result:
            result.append(filler)
    return result


def build_learning_resources(
    focus_areas: List[str],
    challenge_types: List[str],
    traits: List[str]
) -> List[LearningResource]:
    """
    Resources matching the recommended focus areas and challenge types.

    Focus-area rules come first, then challenge-type rules, each in table
    order. Fewer than two matches appends the generic starter resource.
    """
    resources = [
        rule.build(traits)
        for code, rule in FOCUS_AREA_RESOURCES.items()
        if code in focus_areas
    ]
    resources.extend(
        rule.build(traits)
        for code, rule in CHALLENGE_TYPE_RESOURCES.items()
        if code in challenge_types
    )

    if len(resources) < MIN_RECOMMENDED_ITEMS:
        resources.append(GENERIC_RESOURCE)

    return resources[:MAX_RECOMMENDED_ITEMS]


# ============================================================================
# ENGINE
# ============================================================================

class RecommendationEngine:
    """Builds Recommendations; persistence is the caller's job."""

    def __init__(
        self,
        config_store: ChallengeConfigStore,
        personalization: PersonalizationHeuristics
    ):
        self.config_store = config_store
        self.personalization = personalization

    async def generate(
        self,
        user_id: str,
        progress: Optional[Progress],
        personality: Optional[PersonalityProfile]
    ) -> Recommendation:
        """
        Generate a recommendation from the user's signals.

        Args:
            user_id: User the recommendation is for
            progress: Progress signals (None means no signal)
            personality: Personality profile (None means no signal)

        Returns:
            New, unsaved Recommendation
        """
        traits = list(personality.dominant_traits) if personality else []

        focus_areas = await self.recommend_focus_areas(user_id, progress, personality)
        challenge_types = await self.recommend_challenge_types(user_id, progress, personality, focus_areas)

        try:
            resources = build_learning_resources(focus_areas, challenge_types, traits)
        except Exception as e:
            logger.warning(f"⚠️ Resource rules failed for user {user_id}, using starter resource: {e}")
            resources = [GENERIC_RESOURCE]

        skill_levels = progress.skill_levels if progress else {}
        strengths = (progress.strengths if progress and progress.strengths else derive_strengths(skill_levels))
        weaknesses = (progress.weaknesses if progress and progress.weaknesses else derive_weaknesses(skill_levels))

        recommendation = Recommendation(
            user_id=user_id,
            recommended_focus_areas=focus_areas,
            recommended_challenge_types=challenge_types,
            suggested_learning_resources=resources,
            strengths=list(strengths)[:MAX_RECOMMENDED_ITEMS],
            weaknesses=list(weaknesses)[:MAX_RECOMMENDED_ITEMS],
            metadata={
                "generation_source": GENERATION_SOURCE,
                "generation_timestamp": utc_now().isoformat(),
                "trait_factors": traits,
                "based_on_skill_levels": bool(progress and progress.skill_levels),
                "based_on_history": bool(progress and progress.completed_challenges),
            }
        )

        logger.info(
            f"💡 Generated recommendation {recommendation.id} for user {user_id}: "
            f"focus_areas={focus_areas}, challenge_types={challenge_types}"
        )
        return recommendation

    async def recommend_focus_areas(
        self,
        user_id: str,
        progress: Optional[Progress],
        personality: Optional[PersonalityProfile]
    ) -> List[str]:
        candidates: List[str] = []

        # Skill gaps
        if progress and progress.skill_levels:
            weakest = weakest_skills(progress.skill_levels, WEAKEST_SKILL_COUNT)
            candidates.extend(map_skills_to_focus_areas(weakest))

        # Personality
        if personality and personality.dominant_traits:
            candidates.extend(await self._focus_areas_from_traits(user_id, personality.dominant_traits))

        # Continuity
        if progress and progress.focus_area and len(unique(candidates)) < MAX_RECOMMENDED_ITEMS:
            candidates.append(progress.focus_area)

        focus_areas = unique(candidates)
        if len(focus_areas) < MIN_RECOMMENDED_ITEMS:
            focus_areas = top_up(focus_areas, TRENDING_FOCUS_AREAS)

        return focus_areas[:MAX_RECOMMENDED_ITEMS]

    async def _focus_areas_from_traits(self, user_id: str, traits: List[str]) -> List[str]:
        try:
            all_focus_areas = await self.config_store.get_all_focus_areas()
            trait_mappings = await self.config_store.get_trait_mappings()
        except Exception as e:
            logger.warning(f"⚠️ Trait mapping lookup failed for user {user_id}: {e}")
            return []

        known_codes = {area.code for area in all_focus_areas}
        mappings = {trait.lower(): codes for trait, codes in (trait_mappings or {}).items()}

        mapped = []
        for trait in traits:
            for code in mappings.get(trait.lower(), []):
                if code in known_codes:
                    mapped.append(code)
        return unique(mapped)

    async def recommend_challenge_types(
        self,
        user_id: str,
        progress: Optional[Progress],
        personality: Optional[PersonalityProfile],
        focus_areas: List[str]
    ) -> List[str]:
        candidates: List[str] = []

        # Personality match
        if personality is not None:
            try:
                selected = await self.personalization.select_challenge_type(
                    personality.dominant_traits,
                    focus_areas[:2]
                )
                if selected:
                    candidates.append(selected.code)
                    candidates.extend(selected.related_types[:RELATED_TYPE_COUNT])
            except Exception as e:
                logger.warning(f"⚠️ Personalized type selection failed for user {user_id}: {e}")

        # History of successes
        if progress and progress.completed_challenges:
            candidates.extend(self._successful_challenge_types(progress))

        challenge_types = unique(candidates)
        if len(challenge_types) < MIN_RECOMMENDED_ITEMS:
            challenge_types = top_up(challenge_types, DEFAULT_CHALLENGE_TYPES)

        return challenge_types[:MAX_RECOMMENDED_ITEMS]

    def _successful_challenge_types(self, progress: Progress) -> List[str]:
        """Types of challenges scored >= 70, most frequent first."""
        successful = [
            c for c in progress.completed_challenges
            if c.score is not None and c.score >= SUCCESS_SCORE and c.challenge_type
        ]
        successful.sort(key=lambda c: c.score, reverse=True)

        counts = Counter(c.challenge_type for c in successful)
        # most_common keeps first-seen order for equal counts
        return [code for code, _ in counts.most_common(HISTORY_TYPE_COUNT)]


def create_recommendation_engine(
    config_store: ChallengeConfigStore,
    personalization: PersonalizationHeuristics
) -> RecommendationEngine:
    """
    Factory function to create a RecommendationEngine.

    Args:
        config_store: Challenge configuration store
        personalization: Personalization heuristics

    Returns:
        Configured RecommendationEngine
    """
    return RecommendationEngine(config_store, personalization)
