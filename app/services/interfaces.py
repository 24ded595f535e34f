"""
Capability surface the adaptive engine consumes.

The engine depends only on these protocols; ArangoDB-backed implementations
live in ``app.crud.stores`` and tests pass in-memory fakes.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, runtime_checkable

from app.models.challenge import ChallengeType, DifficultyLevelConfig, FocusArea, FormatType
from app.models.progress import PersonalityProfile, Progress
from app.models.recommendation import Recommendation
from app.models.user import User


@runtime_checkable
class ProgressStore(Protocol):
    async def get_or_create_progress(self, user_id: str) -> Progress:
        ...


@runtime_checkable
class PersonalityStore(Protocol):
    async def get_profile(self, user_id: str) -> Optional[PersonalityProfile]:
        ...


@runtime_checkable
class UserStore(Protocol):
    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        ...

    async def update_user_difficulty(self, user_id: str, level_code: str) -> None:
        ...


@runtime_checkable
class ChallengeConfigStore(Protocol):
    async def get_all_focus_areas(self) -> List[FocusArea]:
        ...

    async def get_challenge_type(self, code: str) -> Optional[ChallengeType]:
        ...

    async def get_all_challenge_types(self) -> List[ChallengeType]:
        ...

    async def get_difficulty_level(self, code: str) -> Optional[DifficultyLevelConfig]:
        ...

    async def get_format_type(self, code: str) -> Optional[FormatType]:
        ...

    async def get_all_format_types(self) -> List[FormatType]:
        ...

    async def get_trait_mappings(self) -> Dict[str, List[str]]:
        """Trait name -> focus area codes."""
        ...


@runtime_checkable
class RecommendationStore(Protocol):
    async def save(self, recommendation: Recommendation) -> Recommendation:
        ...

    async def find_latest_for_user(self, user_id: str) -> Optional[Recommendation]:
        ...


@runtime_checkable
class PersonalizationHeuristics(Protocol):
    async def select_challenge_type(
        self,
        traits: List[str],
        focus_areas: List[str],
        candidate_codes: Optional[List[str]] = None
    ) -> Optional[ChallengeType]:
        """Best matching type; only ``candidate_codes`` are considered when given."""
        ...

    def determine_difficulty(self, score: float, completed_count: int) -> str:
        """Difficulty level code for an average score."""
        ...


@runtime_checkable
class CacheLayer(Protocol):
    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None
    ) -> Any:
        ...

    def keys(self, prefix: str = "") -> List[str]:
        ...

    def delete(self, key: str) -> bool:
        ...
