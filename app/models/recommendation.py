"""
Recommendation model.

A recommendation is immutable once created: a newer one is generated rather
than updating an old one.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

MAX_RECOMMENDED_ITEMS = 3


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LearningResource(BaseModel):
    title: str
    url: str
    type: str

    model_config = {
        "frozen": True
    }


class Recommendation(BaseModel):
    """Bounded set of learning recommendations for one user."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    created_at: datetime = Field(default_factory=utc_now)

    recommended_focus_areas: List[str] = Field(default_factory=list, max_length=MAX_RECOMMENDED_ITEMS)
    recommended_challenge_types: List[str] = Field(default_factory=list, max_length=MAX_RECOMMENDED_ITEMS)
    suggested_learning_resources: List[LearningResource] = Field(
        default_factory=list,
        max_length=MAX_RECOMMENDED_ITEMS
    )
    strengths: List[str] = Field(default_factory=list, max_length=MAX_RECOMMENDED_ITEMS)
    weaknesses: List[str] = Field(default_factory=list, max_length=MAX_RECOMMENDED_ITEMS)

    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
        "extra": "ignore"
    }

    @field_validator("recommended_focus_areas", "recommended_challenge_types")
    @classmethod
    def _unique_codes(cls, value: List[str]) -> List[str]:
        if len(set(value)) != len(value):
            raise ValueError("recommended codes must be unique")
        return value

    def age(self, now: Optional[datetime] = None) -> timedelta:
        now = now or utc_now()
        created = self.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return now - created

    def is_fresh(self, max_age: timedelta, now: Optional[datetime] = None) -> bool:
        """Whether this recommendation is younger than ``max_age``."""
        return self.age(now) < max_age
