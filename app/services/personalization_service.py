"""
Challenge Personalization Service.

Trait/focus-area matching for challenge types and the score -> difficulty
mapping used by the parameter selector.
"""

from typing import List, Optional
import logging

from app.models.challenge import ChallengeType
from app.models.difficulty import DifficultyLevel
from app.services.interfaces import ChallengeConfigStore

logger = logging.getLogger(__name__)

# Leveraged traits weigh double against focus-area overlap
TRAIT_MATCH_WEIGHT = 2
FOCUS_AREA_MATCH_WEIGHT = 1

EXPERT_SCORE = 90.0
EXPERT_MIN_COMPLETED = 10
ADVANCED_SCORE = 85.0
INTERMEDIATE_SCORE = 70.0


def _lowered(values: List[str]) -> set:
    return {str(v).lower() for v in values or [] if v}


class ChallengePersonalizationService:
    """Heuristics built on the challenge configuration store."""

    def __init__(self, config_store: ChallengeConfigStore):
        self.config_store = config_store

    def score_challenge_type(
        self,
        challenge_type: ChallengeType,
        traits: List[str],
        focus_areas: List[str]
    ) -> int:
        """2 points per leveraged trait the user has, 1 per shared focus area."""
        trait_hits = len(_lowered(challenge_type.leveraged_traits) & _lowered(traits))
        area_hits = len(_lowered(challenge_type.focus_areas) & _lowered(focus_areas))
        return TRAIT_MATCH_WEIGHT * trait_hits + FOCUS_AREA_MATCH_WEIGHT * area_hits

    async def select_challenge_type(
        self,
        traits: List[str],
        focus_areas: List[str],
        candidate_codes: Optional[List[str]] = None
    ) -> Optional[ChallengeType]:
        """
        Pick the configured challenge type best matching traits and focus areas.

        Args:
            traits: Dominant personality traits
            focus_areas: Focus area codes in play
            candidate_codes: When given, only these type codes are considered

        Returns:
            Highest scoring type (configuration order breaks ties), or None
            when there is no candidate
        """
        challenge_types = await self.config_store.get_all_challenge_types()
        if candidate_codes is not None:
            allowed = set(candidate_codes)
            challenge_types = [t for t in challenge_types if t.code in allowed]

        if not challenge_types:
            return None

        best = challenge_types[0]
        best_score = self.score_challenge_type(best, traits, focus_areas)
        for challenge_type in challenge_types[1:]:
            score = self.score_challenge_type(challenge_type, traits, focus_areas)
            if score > best_score:
                best, best_score = challenge_type, score

        logger.debug(f"🧩 Personalized challenge type: {best.code} (score={best_score})")
        return best

    def determine_difficulty(self, score: float, completed_count: int) -> str:
        """
        Map an average score to a difficulty level code.

        - >= 90 with at least 10 completions: expert
        - >= 85: advanced
        - >= 70: intermediate
        - otherwise: beginner
        """
        if score >= EXPERT_SCORE and completed_count >= EXPERT_MIN_COMPLETED:
            return DifficultyLevel.EXPERT.value
        if score >= ADVANCED_SCORE:
            return DifficultyLevel.ADVANCED.value
        if score >= INTERMEDIATE_SCORE:
            return DifficultyLevel.INTERMEDIATE.value
        return DifficultyLevel.BEGINNER.value


def create_personalization_service(config_store: ChallengeConfigStore) -> ChallengePersonalizationService:
    """
    Factory function to create a ChallengePersonalizationService.

    Args:
        config_store: Challenge configuration store

    Returns:
        Configured ChallengePersonalizationService
    """
    return ChallengePersonalizationService(config_store)
