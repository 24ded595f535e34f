from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field


class ChallengePreferences(BaseModel):
    """Challenge preferences a user has set explicitly."""
    focus_area: Optional[str] = None
    preferred_challenge_type: Optional[str] = None
    preferred_format: Optional[str] = None
    languages: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)

    model_config = {
        "extra": "ignore"
    }


class UserPreferences(BaseModel):
    challenges: ChallengePreferences = Field(default_factory=ChallengePreferences)

    model_config = {
        "extra": "ignore"
    }


class User(BaseModel):
    key: str = Field(alias="_key", serialization_alias="key")
    name: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Persisted difficulty level code (beginner/intermediate/advanced/expert)
    difficulty_level: Optional[str] = Field(
        default=None,
        description="Current challenge difficulty level code"
    )

    preferences: UserPreferences = Field(default_factory=UserPreferences)

    model_config = {
        "populate_by_name": True,
        "extra": "ignore"
    }

    def challenge_preferences(self) -> ChallengePreferences:
        return self.preferences.challenges
