"""
Progress and personality signals.

Both are read-only inputs to the adaptive engine: progress carries skill
levels and completion history, the personality profile carries dominant
traits (and optionally their intensities).
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import math

from pydantic import BaseModel, Field, field_validator


# Intensity assumed for a dominant trait without an explicit value
DEFAULT_TRAIT_INTENSITY = 75.0


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def _timestamp(moment: datetime) -> float:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


class CompletedChallenge(BaseModel):
    """A challenge the user has finished."""
    challenge_id: Optional[str] = None
    challenge_type: Optional[str] = None
    focus_area: Optional[str] = None
    format_type: Optional[str] = None
    score: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    completed_at: Optional[datetime] = None

    model_config = {
        "extra": "ignore"
    }

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> Optional[float]:
        """Stored scores are clamped to 0-100; unreadable ones count as unscored."""
        if isinstance(value, str):
            try:
                value = float(value)
            except ValueError:
                return None
        if not _is_number(value) or math.isinf(value):
            return None
        return min(100.0, max(0.0, float(value)))


class ProgressStatistics(BaseModel):
    average_score: Optional[float] = None
    total_challenges_completed: int = 0

    model_config = {
        "extra": "ignore"
    }


class Progress(BaseModel):
    """User progress as tracked by the progress store."""
    user_id: str
    skill_levels: Dict[str, Any] = Field(
        default_factory=dict,
        description="Skill name -> level (0-100); non-numeric entries are ignored"
    )
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    completed_challenges: List[CompletedChallenge] = Field(default_factory=list)
    focus_area: Optional[str] = None
    current_difficulty_code: Optional[str] = None
    statistics: ProgressStatistics = Field(default_factory=ProgressStatistics)
    updated_at: Optional[datetime] = None

    model_config = {
        "extra": "ignore"
    }

    def numeric_skill_levels(self) -> Dict[str, float]:
        """Skill levels with non-numeric values dropped, in original key order."""
        return {
            name: float(value)
            for name, value in self.skill_levels.items()
            if _is_number(value)
        }

    def recent_challenges(self, limit: Optional[int] = None) -> List[CompletedChallenge]:
        """
        Completed challenges, most recent first.

        Entries without ``completed_at`` sort after every timestamped entry;
        ties keep their stored order.
        """
        ordered = sorted(
            self.completed_challenges,
            key=lambda c: (
                c.completed_at is None,
                -_timestamp(c.completed_at) if c.completed_at else 0.0
            )
        )
        return ordered if limit is None else ordered[:limit]


class PersonalityProfile(BaseModel):
    """Personality profile; ``trait_scores`` is optional enrichment."""
    user_id: str
    dominant_traits: List[str] = Field(default_factory=list)
    trait_scores: Dict[str, float] = Field(default_factory=dict)
    focus_area: Optional[str] = None

    model_config = {
        "extra": "ignore"
    }

    def trait_intensities(self) -> Dict[str, float]:
        """
        Intensity per dominant trait.

        Uses the scored intensity when the profile carries one, otherwise
        ``DEFAULT_TRAIT_INTENSITY``.
        """
        scores = {name.lower(): value for name, value in self.trait_scores.items()}
        return {
            trait.lower(): scores.get(trait.lower(), DEFAULT_TRAIT_INTENSITY)
            for trait in self.dominant_traits
        }
