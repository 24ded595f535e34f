"""
Challenge configuration entities and generation parameters.

Configuration (focus areas, challenge types, difficulty levels, format types)
comes from the challenge-configuration store. ``ChallengeParameters`` is the
transient result of parameter selection and is never persisted here.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


# ============================================================================
# CONFIGURATION ENTITIES
# ============================================================================

class FocusArea(BaseModel):
    code: str
    name: str
    description: Optional[str] = None
    is_active: bool = True

    model_config = {
        "extra": "ignore"
    }


class ChallengeType(BaseModel):
    code: str
    name: str
    description: Optional[str] = None
    default_format_type_code: Optional[str] = None
    related_types: List[str] = Field(default_factory=list)
    leveraged_traits: List[str] = Field(
        default_factory=list,
        description="Personality traits this type plays to"
    )
    focus_areas: List[str] = Field(
        default_factory=list,
        description="Focus area codes this type suits"
    )

    model_config = {
        "extra": "ignore"
    }


class DifficultyLevelConfig(BaseModel):
    code: str
    name: str
    description: Optional[str] = None
    sort_order: int = 0

    model_config = {
        "extra": "ignore"
    }


class FormatType(BaseModel):
    code: str
    name: str
    description: Optional[str] = None

    model_config = {
        "extra": "ignore"
    }


# ============================================================================
# REQUEST / RESULT
# ============================================================================

class ChallengeRequestOptions(BaseModel):
    """Explicit caller requests; each one wins its priority chain when valid."""
    focus_area: Optional[str] = None
    challenge_type: Optional[str] = None
    difficulty: Optional[str] = None
    format_type: Optional[str] = None


class SkillLevelEntry(BaseModel):
    name: str
    level: float


class RecentChallengeInfo(BaseModel):
    type: Optional[str] = None
    focus_area: Optional[str] = None
    score: Optional[float] = None
    success: bool = False
    format: Optional[str] = None


class UserContext(BaseModel):
    """Context handed to the challenge generator alongside the parameters."""
    skill_levels: List[SkillLevelEntry] = Field(default_factory=list)
    traits: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    preferred_languages: List[str] = Field(default_factory=list)
    experience_level: str = "beginner"
    preferred_topics: List[str] = Field(default_factory=list)
    recent_challenges: List[RecentChallengeInfo] = Field(default_factory=list)
    adaptive_factor: float = 0.0


class ChallengeParameters(BaseModel):
    user_id: str
    focus_area: str
    challenge_type: str
    format_type: str
    difficulty: str = Field(description="Difficulty level code")
    time_allocation_seconds: int
    complexity: float
    depth: float
    user_context: UserContext
