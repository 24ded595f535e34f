"""
Difficulty Model for Adaptive Challenge Generation.

A difficulty is a level (beginner → expert) plus a continuous percentage
inside [0, 100]. The four levels divide the percentage range into equal bands,
and the level is always the band that contains the percentage:

    beginner      [0, 25)
    intermediate  [25, 50)
    advanced      [50, 75)
    expert        [75, 100]

Complexity, depth and time allocation are fixed per level. The percentage
moves through the transition methods only (score feedback, absolute score,
personality nudges); the caller persists just the level code.
"""

from typing import Any, Dict, Optional
from enum import Enum
import math

from pydantic import BaseModel, Field, computed_field, model_validator

from app.core.errors import AdaptiveValidationError


class DifficultyLevel(str, Enum):
    """Challenge difficulty levels, in ascending order."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @classmethod
    def from_code(cls, code: Any) -> "DifficultyLevel":
        """Parse a level code (case-insensitive) or raise a validation error."""
        if isinstance(code, cls):
            return code
        if isinstance(code, str):
            try:
                return cls(code.strip().lower())
            except ValueError:
                pass
        raise AdaptiveValidationError(
            f"Unknown difficulty level: {code!r}",
            details={"level": code}
        )

    @classmethod
    def is_valid(cls, code: Any) -> bool:
        try:
            cls.from_code(code)
            return True
        except AdaptiveValidationError:
            return False


# ============================================================================
# CONSTANTS
# ============================================================================

LEVEL_ORDER = list(DifficultyLevel)
BAND_WIDTH = 100.0 / len(LEVEL_ORDER)

DEFAULT_LEVEL = DifficultyLevel.INTERMEDIATE

# Score feedback thresholds
MASTERY_THRESHOLD = 85.0
STRUGGLE_THRESHOLD = 40.0
NEUTRAL_MIDPOINT = (MASTERY_THRESHOLD + STRUGGLE_THRESHOLD) / 2

# A score at the threshold moves 40% of a band, a perfect (or zero) score a full band
MIN_STEP_FRACTION = 0.4

# Largest move for scores between the thresholds
NEUTRAL_NUDGE = 2.5

TIME_ALLOCATION_SECONDS = {
    DifficultyLevel.BEGINNER: 1200,
    DifficultyLevel.INTERMEDIATE: 1800,
    DifficultyLevel.ADVANCED: 2700,
    DifficultyLevel.EXPERT: 3600,
}

COMPLEXITY = {
    DifficultyLevel.BEGINNER: 0.3,
    DifficultyLevel.INTERMEDIATE: 0.5,
    DifficultyLevel.ADVANCED: 0.7,
    DifficultyLevel.EXPERT: 0.9,
}

DEPTH = {
    DifficultyLevel.BEGINNER: 0.25,
    DifficultyLevel.INTERMEDIATE: 0.5,
    DifficultyLevel.ADVANCED: 0.75,
    DifficultyLevel.EXPERT: 0.9,
}

# Percentage points per recognized trait at intensity 100
PERSONALITY_MODIFIERS = {
    "cautious": -6.0,
    "anxious": -6.0,
    "risk_averse": -6.0,
    "careful": -4.0,
    "methodical": -3.0,
    "perfectionist": -3.0,
    "confident": 6.0,
    "adventurous": 6.0,
    "risk_taking": 5.0,
    "ambitious": 5.0,
    "competitive": 4.0,
    "curious": 3.0,
}

# Traits below this intensity are ignored
PERSONALITY_TRAIT_THRESHOLD = 60.0

# Total shift per call; smaller than a band so at most one boundary is crossed
MAX_PERSONALITY_SHIFT = 10.0


# ============================================================================
# HELPERS
# ============================================================================

def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def level_for_percentage(percentage: float) -> DifficultyLevel:
    """Return the level whose band contains ``percentage``."""
    index = int(clamp(percentage, 0.0, 100.0) // BAND_WIDTH)
    return LEVEL_ORDER[min(index, len(LEVEL_ORDER) - 1)]


def band_midpoint(level: DifficultyLevel) -> float:
    index = LEVEL_ORDER.index(level)
    return index * BAND_WIDTH + BAND_WIDTH / 2


def validate_score(score: Any, field: str = "score") -> float:
    """
    Validate a 0-100 score.

    Raises:
        AdaptiveValidationError: if the score is missing, non-numeric, NaN
            or outside [0, 100]
    """
    if score is None:
        raise AdaptiveValidationError(f"{field} is required", details={field: score})
    if isinstance(score, bool):
        raise AdaptiveValidationError(f"{field} must be a number", details={field: score})

    try:
        value = float(score)
    except (TypeError, ValueError):
        raise AdaptiveValidationError(f"{field} must be a number", details={field: score})

    if math.isnan(value) or value < 0.0 or value > 100.0:
        raise AdaptiveValidationError(
            f"{field} must be between 0 and 100",
            details={field: score}
        )
    return value


def score_to_step(score: float) -> float:
    """
    Percentage change produced by one scored challenge.

    - score >= 85: up by 40%..100% of a band, growing with the margin
    - score <= 40: down by 40%..100% of a band, growing with the margin
    - otherwise: a nudge of at most 2.5 points toward the nearer threshold
    """
    if score >= MASTERY_THRESHOLD:
        span = (100.0 - MASTERY_THRESHOLD) / (1.0 - MIN_STEP_FRACTION)
        fraction = min(1.0, MIN_STEP_FRACTION + (score - MASTERY_THRESHOLD) / span)
        return BAND_WIDTH * fraction

    if score <= STRUGGLE_THRESHOLD:
        span = STRUGGLE_THRESHOLD / (1.0 - MIN_STEP_FRACTION)
        fraction = min(1.0, MIN_STEP_FRACTION + (STRUGGLE_THRESHOLD - score) / span)
        return -BAND_WIDTH * fraction

    return NEUTRAL_NUDGE * (score - NEUTRAL_MIDPOINT) / (MASTERY_THRESHOLD - NEUTRAL_MIDPOINT)


def normalize_trait(trait: str) -> str:
    return "_".join(str(trait).strip().lower().replace("-", " ").split())


# ============================================================================
# DIFFICULTY MODEL
# ============================================================================

class Difficulty(BaseModel):
    """
    Difficulty state for one user (optionally one challenge type).

    Created on demand; only the level code is persisted on the user.
    """
    level: DifficultyLevel = Field(
        default=DEFAULT_LEVEL,
        description="Band containing the percentage"
    )
    percentage: float = Field(
        default=band_midpoint(DEFAULT_LEVEL),
        ge=0.0,
        le=100.0,
        description="Continuous position inside [0, 100]"
    )
    adaptive_factor: float = Field(
        default=0.0,
        ge=-1.0,
        le=1.0,
        description="Last score-driven move, as a signed fraction of a band"
    )

    @model_validator(mode="before")
    @classmethod
    def _default_percentage_from_level(cls, data: Any) -> Any:
        # A bare level starts at its band midpoint
        if isinstance(data, dict) and data.get("level") is not None and data.get("percentage") is None:
            data = dict(data)
            level = DifficultyLevel.from_code(data["level"])
            data["level"] = level
            data["percentage"] = band_midpoint(level)
        return data

    @model_validator(mode="after")
    def _sync_level(self) -> "Difficulty":
        self.level = level_for_percentage(self.percentage)
        return self

    @computed_field
    @property
    def complexity(self) -> float:
        return COMPLEXITY[self.level]

    @computed_field
    @property
    def depth(self) -> float:
        return DEPTH[self.level]

    @computed_field
    @property
    def time_allocation_seconds(self) -> int:
        return TIME_ALLOCATION_SECONDS[self.level]

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_level(cls, level_code: Any) -> "Difficulty":
        """Create a difficulty at the midpoint of the given level's band."""
        level = DifficultyLevel.from_code(level_code)
        return cls(level=level, percentage=band_midpoint(level))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_code(self) -> str:
        return self.level.value

    def get_percentage(self) -> float:
        return self.percentage

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _move(self, delta: float) -> None:
        self.percentage = clamp(self.percentage + delta, 0.0, 100.0)
        self.level = level_for_percentage(self.percentage)

    def increase(self, amount: float = 10.0) -> "Difficulty":
        self._move(abs(amount))
        return self

    def decrease(self, amount: float = 5.0) -> "Difficulty":
        self._move(-abs(amount))
        return self

    def adjust_based_on_score(self, score: Any) -> "Difficulty":
        """
        Move the percentage according to a challenge score.

        Args:
            score: Score achieved (0-100)

        Returns:
            self, for chaining

        Raises:
            AdaptiveValidationError: if the score is missing or out of range
        """
        value = validate_score(score)
        step = score_to_step(value)

        self.adaptive_factor = clamp(step / BAND_WIDTH, -1.0, 1.0)
        self._move(step)
        return self

    def set_from_absolute_score(self, score: Any) -> "Difficulty":
        """
        Place the difficulty at the midpoint of the band containing ``score``.

        Used when there is no prior state to adjust from.
        """
        value = validate_score(score)
        level = level_for_percentage(value)

        self.level = level
        self.percentage = band_midpoint(level)
        self.adaptive_factor = 0.0
        return self

    def apply_personality_modifiers(self, traits: Optional[Dict[str, Any]]) -> "Difficulty":
        """
        Nudge the percentage according to personality trait intensities.

        Args:
            traits: Map of trait name -> intensity (0-100). Unknown traits,
                non-numeric intensities and intensities below 60 are ignored.

        Returns:
            self, for chaining
        """
        shift = 0.0
        for trait, intensity in (traits or {}).items():
            modifier = PERSONALITY_MODIFIERS.get(normalize_trait(trait))
            if modifier is None:
                continue
            try:
                value = float(intensity)
            except (TypeError, ValueError):
                continue
            if math.isnan(value) or value < PERSONALITY_TRAIT_THRESHOLD:
                continue
            shift += modifier * min(value, 100.0) / 100.0

        shift = clamp(shift, -MAX_PERSONALITY_SHIFT, MAX_PERSONALITY_SHIFT)
        if shift:
            self._move(shift)
        return self

    def to_settings(self) -> Dict[str, Any]:
        """Plain settings payload for challenge generation."""
        return self.model_dump(mode="json")
