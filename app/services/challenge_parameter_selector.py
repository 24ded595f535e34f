"""
Challenge Parameter Selector.

Resolves the four parameters needed to generate one challenge. Each
parameter has an ordered priority chain: the first step that yields a usable
value wins, and a step whose lookup fails is logged and skipped.

Focus area:
    requested -> mapped weakness -> weakest skill -> less practiced area
    -> preference -> progress focus area -> personality focus area -> "general"

Challenge type:
    requested -> unused recent type (personalized, else random)
    -> preference -> personalized -> configured "implementation"
    -> built-in "implementation"

Difficulty:
    requested -> persisted level (+ personality) -> recent average score
    -> skill level -> completion count -> "intermediate"

Format type:
    requested -> preference -> challenge type default -> unused recent format
    -> trait keywords -> first configured -> built-in "code"

Anti-repetition looks at the three most recent completions and only applies
when at least four options are configured. Random picks use the injected
``random.Random``.
"""

from typing import List, Optional
from collections import Counter
import logging
import random

from app.models.challenge import (
    ChallengeParameters,
    ChallengeRequestOptions,
    ChallengeType,
    FormatType,
    RecentChallengeInfo,
    SkillLevelEntry,
    UserContext,
)
from app.models.difficulty import Difficulty, DifficultyLevel
from app.models.progress import CompletedChallenge, PersonalityProfile, Progress
from app.models.user import ChallengePreferences, User
from app.services.interfaces import ChallengeConfigStore, PersonalizationHeuristics
from app.utils.skills import (
    format_skill_name,
    map_skills_to_focus_areas,
    numeric_skill_items,
    weakest_skills,
)

logger = logging.getLogger(__name__)

DEFAULT_FOCUS_AREA = "general"
DEFAULT_CHALLENGE_TYPE = ChallengeType(code="implementation", name="Implementation")
DEFAULT_FORMAT_TYPE = FormatType(code="code", name="Code")
DEFAULT_LANGUAGES = ["javascript", "python"]

RECENT_WINDOW = 3
MIN_OPTIONS_FOR_ROTATION = 4
LESS_PRACTICED_LIMIT = 2
SUCCESS_SCORE = 70.0

# Completion count upper bounds -> level
COMPLETION_COUNT_LEVELS = [
    (3, DifficultyLevel.BEGINNER),
    (10, DifficultyLevel.INTERMEDIATE),
    (25, DifficultyLevel.ADVANCED),
]

# Trait -> preferred format codes, checked in this order
TRAIT_FORMAT_PREFERENCES = [
    ("analytical", ["code", "debug", "refactor"]),
    ("creative", ["design", "essay", "openended"]),
    ("practical", ["implementation", "example", "fix"]),
]

EXPERIENCE_LEVELS = [
    (80.0, "expert"),
    (50.0, "advanced"),
    (20.0, "intermediate"),
]


# ============================================================================
# HISTORY HELPERS
# ============================================================================

def recent_average_score(recent: List[CompletedChallenge], count: int = RECENT_WINDOW) -> Optional[float]:
    """Average of the ``count`` most recent scored challenges (input most-recent-first)."""
    scores = [c.score for c in recent if c.score is not None][:count]
    if not scores:
        return None
    return sum(scores) / len(scores)


def recent_challenge_info(recent: List[CompletedChallenge], count: int = RECENT_WINDOW) -> List[RecentChallengeInfo]:
    return [
        RecentChallengeInfo(
            type=c.challenge_type,
            focus_area=c.focus_area,
            score=c.score,
            success=c.score is not None and c.score >= SUCCESS_SCORE,
            format=c.format_type
        )
        for c in recent[:count]
    ]


def experience_level(completed_count: int, skill_values: List[float]) -> str:
    """Blend completion count (40%) and average skill (60%) into a level name."""
    average_skill = sum(skill_values) / len(skill_values) if skill_values else 0.0
    combined = completed_count * 0.4 + average_skill * 0.6
    for threshold, level in EXPERIENCE_LEVELS:
        if combined > threshold:
            return level
    return "beginner"


def level_for_completed_count(completed_count: int) -> DifficultyLevel:
    for upper_bound, level in COMPLETION_COUNT_LEVELS:
        if completed_count < upper_bound:
            return level
    return DifficultyLevel.EXPERT


# ============================================================================
# SELECTOR
# ============================================================================

class ChallengeParameterSelector:
    """Priority-chain resolution of challenge generation parameters."""

    def __init__(
        self,
        config_store: ChallengeConfigStore,
        personalization: PersonalizationHeuristics,
        rng: Optional[random.Random] = None
    ):
        self.config_store = config_store
        self.personalization = personalization
        self.rng = rng or random.Random()

    async def select(
        self,
        user_id: str,
        progress: Progress,
        personality: Optional[PersonalityProfile],
        user: Optional[User],
        options: Optional[ChallengeRequestOptions] = None
    ) -> ChallengeParameters:
        """
        Resolve focus area, challenge type, difficulty and format.

        Args:
            user_id: User the challenge is for
            progress: User progress
            personality: Personality profile, if any
            user: User record, if any
            options: Explicit requests from the caller

        Returns:
            ChallengeParameters with the user context for the generator
        """
        options = options or ChallengeRequestOptions()
        traits = list(personality.dominant_traits) if personality else []
        preferences = user.challenge_preferences() if user else ChallengePreferences()
        recent = progress.recent_challenges()

        focus_area = await self.resolve_focus_area(user_id, options, progress, personality, preferences)
        challenge_type = await self.resolve_challenge_type(
            user_id, options, traits, focus_area, recent, preferences
        )

        skill_level = progress.numeric_skill_levels().get(focus_area)
        if skill_level is None:
            skill_level = progress.statistics.average_score

        difficulty = await self.resolve_difficulty(
            user_id,
            requested=options.difficulty,
            persisted=(user.difficulty_level if user else None) or progress.current_difficulty_code,
            personality=personality,
            recent_score=recent_average_score(recent),
            skill_level=skill_level,
            completed_count=len(progress.completed_challenges)
        )

        format_type = await self.resolve_format_type(
            user_id, options, challenge_type, recent, traits, preferences
        )

        user_context = self.build_user_context(progress, traits, preferences, recent, difficulty)

        parameters = ChallengeParameters(
            user_id=user_id,
            focus_area=focus_area,
            challenge_type=challenge_type.code,
            format_type=format_type.code,
            difficulty=difficulty.get_code(),
            time_allocation_seconds=difficulty.time_allocation_seconds,
            complexity=difficulty.complexity,
            depth=difficulty.depth,
            user_context=user_context
        )

        logger.info(
            f"🎯 Challenge parameters for user {user_id}: focus={parameters.focus_area}, "
            f"type={parameters.challenge_type}, difficulty={parameters.difficulty}, "
            f"format={parameters.format_type}"
        )
        return parameters

    # ------------------------------------------------------------------
    # Focus area
    # ------------------------------------------------------------------

    async def resolve_focus_area(
        self,
        user_id: str,
        options: ChallengeRequestOptions,
        progress: Progress,
        personality: Optional[PersonalityProfile],
        preferences: ChallengePreferences
    ) -> str:
        if options.focus_area:
            logger.debug(f"Focus area for {user_id}: requested {options.focus_area}")
            return options.focus_area

        if progress.weaknesses:
            try:
                mapped = map_skills_to_focus_areas(progress.weaknesses)
                if mapped:
                    focus_area = self.rng.choice(mapped)
                    logger.debug(f"Focus area for {user_id}: weakness {focus_area}")
                    return focus_area
            except Exception as e:
                logger.warning(f"⚠️ Mapping weaknesses failed for user {user_id}: {e}")

        weakest = weakest_skills(progress.skill_levels, 1)
        if weakest:
            mapped = map_skills_to_focus_areas(weakest)
            if mapped:
                logger.debug(f"Focus area for {user_id}: weakest skill {weakest[0]} -> {mapped[0]}")
                return mapped[0]

        if progress.completed_challenges:
            try:
                focus_area = await self._less_practiced_focus_area(progress.completed_challenges)
                if focus_area:
                    logger.debug(f"Focus area for {user_id}: less practiced {focus_area}")
                    return focus_area
            except Exception as e:
                logger.warning(f"⚠️ Less-practiced focus area lookup failed for user {user_id}: {e}")

        for source, focus_area in (
            ("preference", preferences.focus_area),
            ("progress", progress.focus_area),
            ("personality", personality.focus_area if personality else None),
        ):
            if focus_area:
                logger.debug(f"Focus area for {user_id}: {source} {focus_area}")
                return focus_area

        logger.debug(f"Focus area for {user_id}: default {DEFAULT_FOCUS_AREA}")
        return DEFAULT_FOCUS_AREA

    async def _less_practiced_focus_area(self, completed: List[CompletedChallenge]) -> Optional[str]:
        all_focus_areas = await self.config_store.get_all_focus_areas()
        counts = Counter(c.focus_area for c in completed if c.focus_area)
        candidates = [area.code for area in all_focus_areas if counts[area.code] < LESS_PRACTICED_LIMIT]
        return self.rng.choice(candidates) if candidates else None

    # ------------------------------------------------------------------
    # Challenge type
    # ------------------------------------------------------------------

    async def resolve_challenge_type(
        self,
        user_id: str,
        options: ChallengeRequestOptions,
        traits: List[str],
        focus_area: str,
        recent: List[CompletedChallenge],
        preferences: ChallengePreferences
    ) -> ChallengeType:
        if options.challenge_type:
            challenge_type = await self._lookup_challenge_type(user_id, options.challenge_type, "requested")
            if challenge_type:
                return challenge_type

        recent_types = [c.challenge_type for c in recent[:RECENT_WINDOW] if c.challenge_type]
        if recent_types:
            try:
                challenge_type = await self._unused_challenge_type(user_id, traits, focus_area, recent_types)
                if challenge_type:
                    return challenge_type
            except Exception as e:
                logger.warning(f"⚠️ Challenge type rotation failed for user {user_id}: {e}")

        if preferences.preferred_challenge_type:
            challenge_type = await self._lookup_challenge_type(
                user_id, preferences.preferred_challenge_type, "preferred"
            )
            if challenge_type:
                return challenge_type

        try:
            challenge_type = await self.personalization.select_challenge_type(traits, [focus_area])
            if challenge_type:
                logger.debug(f"Challenge type for {user_id}: personalized {challenge_type.code}")
                return challenge_type
        except Exception as e:
            logger.warning(f"⚠️ Personalized challenge type failed for user {user_id}: {e}")

        challenge_type = await self._lookup_challenge_type(user_id, DEFAULT_CHALLENGE_TYPE.code, "default")
        if challenge_type:
            return challenge_type

        logger.warning(f"⚠️ Falling back to built-in challenge type for user {user_id}")
        return DEFAULT_CHALLENGE_TYPE

    async def _lookup_challenge_type(self, user_id: str, code: str, source: str) -> Optional[ChallengeType]:
        try:
            challenge_type = await self.config_store.get_challenge_type(code)
        except Exception as e:
            logger.warning(f"⚠️ {source} challenge type {code} lookup failed for user {user_id}: {e}")
            return None
        if challenge_type:
            logger.debug(f"Challenge type for {user_id}: {source} {challenge_type.code}")
        return challenge_type

    async def _unused_challenge_type(
        self,
        user_id: str,
        traits: List[str],
        focus_area: str,
        recent_types: List[str]
    ) -> Optional[ChallengeType]:
        all_types = await self.config_store.get_all_challenge_types()
        if len(all_types) < MIN_OPTIONS_FOR_ROTATION:
            return None

        unused = [t for t in all_types if t.code not in recent_types]
        if not unused:
            return None
        unused_codes = [t.code for t in unused]

        matched = None
        try:
            matched = await self.personalization.select_challenge_type(traits, [focus_area], unused_codes)
        except Exception as e:
            logger.warning(f"⚠️ Personalized rotation failed for user {user_id}: {e}")

        if matched and matched.code in unused_codes:
            logger.debug(f"Challenge type for {user_id}: unused personalized {matched.code}")
            return matched

        choice = self.rng.choice(unused)
        logger.debug(f"Challenge type for {user_id}: unused random {choice.code}")
        return choice

    # ------------------------------------------------------------------
    # Difficulty
    # ------------------------------------------------------------------

    async def resolve_difficulty(
        self,
        user_id: str,
        requested: Optional[str] = None,
        persisted: Optional[str] = None,
        personality: Optional[PersonalityProfile] = None,
        recent_score: Optional[float] = None,
        skill_level: Optional[float] = None,
        completed_count: Optional[int] = None
    ) -> Difficulty:
        """Resolve the difficulty; always returns a Difficulty."""
        if requested:
            difficulty = await self._configured_difficulty(user_id, requested, "requested")
            if difficulty:
                return difficulty

        if persisted:
            difficulty = await self._configured_difficulty(user_id, persisted, "persisted")
            if difficulty:
                if personality and personality.dominant_traits:
                    difficulty.apply_personality_modifiers(personality.trait_intensities())
                return difficulty

        if recent_score is not None:
            try:
                code = self.personalization.determine_difficulty(recent_score, completed_count or 0)
                difficulty = await self._configured_difficulty(user_id, code, "recent score")
                if difficulty:
                    return difficulty.adjust_based_on_score(recent_score)
            except Exception as e:
                logger.warning(f"⚠️ Difficulty from recent score {recent_score} failed for user {user_id}: {e}")

        if skill_level is not None:
            try:
                difficulty = Difficulty().set_from_absolute_score(skill_level)
                logger.debug(f"Difficulty for {user_id}: skill level {skill_level} -> {difficulty.get_code()}")
                return difficulty
            except Exception as e:
                logger.warning(f"⚠️ Difficulty from skill level {skill_level} failed for user {user_id}: {e}")

        if completed_count is not None:
            level = level_for_completed_count(completed_count)
            logger.debug(f"Difficulty for {user_id}: {completed_count} completed -> {level.value}")
            return Difficulty.from_level(level)

        logger.debug(f"Difficulty for {user_id}: default intermediate")
        return Difficulty.from_level(DifficultyLevel.INTERMEDIATE)

    async def _configured_difficulty(self, user_id: str, code: str, source: str) -> Optional[Difficulty]:
        """Difficulty for ``code`` if the level is configured and known."""
        try:
            level = await self.config_store.get_difficulty_level(code)
            if not level:
                return None
            difficulty = Difficulty.from_level(level.code)
        except Exception as e:
            logger.warning(f"⚠️ {source} difficulty {code} unusable for user {user_id}: {e}")
            return None

        logger.debug(f"Difficulty for {user_id}: {source} {difficulty.get_code()}")
        return difficulty

    # ------------------------------------------------------------------
    # Format type
    # ------------------------------------------------------------------

    async def resolve_format_type(
        self,
        user_id: str,
        options: ChallengeRequestOptions,
        challenge_type: ChallengeType,
        recent: List[CompletedChallenge],
        traits: List[str],
        preferences: ChallengePreferences
    ) -> FormatType:
        for source, code in (
            ("requested", options.format_type),
            ("preferred", preferences.preferred_format),
            ("challenge type default", challenge_type.default_format_type_code),
        ):
            if not code:
                continue
            format_type = await self._lookup_format_type(user_id, code, source)
            if format_type:
                return format_type

        recent_formats = [c.format_type for c in recent[:RECENT_WINDOW] if c.format_type]
        if recent_formats:
            try:
                all_formats = await self.config_store.get_all_format_types()
                if len(all_formats) >= MIN_OPTIONS_FOR_ROTATION:
                    unused = [f for f in all_formats if f.code not in recent_formats]
                    if unused:
                        choice = self.rng.choice(unused)
                        logger.debug(f"Format for {user_id}: unused {choice.code}")
                        return choice
            except Exception as e:
                logger.warning(f"⚠️ Format rotation failed for user {user_id}: {e}")

        if traits:
            try:
                format_type = self._format_for_traits(traits, await self.config_store.get_all_format_types())
                if format_type:
                    logger.debug(f"Format for {user_id}: trait match {format_type.code}")
                    return format_type
            except Exception as e:
                logger.warning(f"⚠️ Trait-based format lookup failed for user {user_id}: {e}")

        try:
            all_formats = await self.config_store.get_all_format_types()
            if all_formats:
                logger.debug(f"Format for {user_id}: first configured {all_formats[0].code}")
                return all_formats[0]
        except Exception as e:
            logger.warning(f"⚠️ Format listing failed for user {user_id}: {e}")

        logger.warning(f"⚠️ Falling back to built-in format for user {user_id}")
        return DEFAULT_FORMAT_TYPE

    async def _lookup_format_type(self, user_id: str, code: str, source: str) -> Optional[FormatType]:
        try:
            format_type = await self.config_store.get_format_type(code)
        except Exception as e:
            logger.warning(f"⚠️ {source} format {code} lookup failed for user {user_id}: {e}")
            return None
        if format_type:
            logger.debug(f"Format for {user_id}: {source} {format_type.code}")
        return format_type

    def _format_for_traits(self, traits: List[str], formats: List[FormatType]) -> Optional[FormatType]:
        lowered = {t.lower() for t in traits}
        for trait, codes in TRAIT_FORMAT_PREFERENCES:
            if trait not in lowered:
                continue
            for format_type in formats:
                if format_type.code in codes:
                    return format_type
        return None

    # ------------------------------------------------------------------
    # User context
    # ------------------------------------------------------------------

    def build_user_context(
        self,
        progress: Progress,
        traits: List[str],
        preferences: ChallengePreferences,
        recent: List[CompletedChallenge],
        difficulty: Difficulty
    ) -> UserContext:
        skills = numeric_skill_items(progress.skill_levels)
        skill_entries = sorted(
            (SkillLevelEntry(name=format_skill_name(name), level=level) for name, level in skills),
            key=lambda entry: entry.level,
            reverse=True
        )

        return UserContext(
            skill_levels=skill_entries,
            traits=traits,
            strengths=progress.strengths,
            weaknesses=progress.weaknesses,
            preferred_languages=preferences.languages or list(DEFAULT_LANGUAGES),
            experience_level=experience_level(
                len(progress.completed_challenges),
                [level for _, level in skills]
            ),
            preferred_topics=preferences.topics,
            recent_challenges=recent_challenge_info(recent),
            adaptive_factor=difficulty.adaptive_factor
        )


def create_challenge_parameter_selector(
    config_store: ChallengeConfigStore,
    personalization: PersonalizationHeuristics,
    rng: Optional[random.Random] = None
) -> ChallengeParameterSelector:
    """
    Factory function to create a ChallengeParameterSelector.

    Args:
        config_store: Challenge configuration store
        personalization: Personalization heuristics
        rng: Random source for tie-breaks (None = OS entropy)

    Returns:
        Configured ChallengeParameterSelector
    """
    return ChallengeParameterSelector(config_store, personalization, rng)
