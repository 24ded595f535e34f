"""
Async store adapters over the ArangoDB CRUD classes.

python-arango is synchronous; each call runs in the default executor so the
adaptive service can await independent lookups concurrently.
"""

from typing import Any, Callable, Dict, List, Optional, TypeVar
from functools import partial
import asyncio

from arango.database import StandardDatabase

from app.crud.challenge_config import ChallengeConfigCRUD
from app.crud.progress import PersonalityCRUD, ProgressCRUD
from app.crud.recommendation import RecommendationCRUD
from app.crud.user import UserCRUD
from app.models.challenge import ChallengeType, DifficultyLevelConfig, FocusArea, FormatType
from app.models.progress import PersonalityProfile, Progress
from app.models.recommendation import Recommendation
from app.models.user import User

T = TypeVar("T")


async def run_sync(func: Callable[..., T], *args: Any) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args))


class ArangoProgressStore:
    def __init__(self, crud: ProgressCRUD):
        self.crud = crud

    async def get_or_create_progress(self, user_id: str) -> Progress:
        return await run_sync(self.crud.get_or_create_progress, user_id)


class ArangoPersonalityStore:
    def __init__(self, crud: PersonalityCRUD):
        self.crud = crud

    async def get_profile(self, user_id: str) -> Optional[PersonalityProfile]:
        return await run_sync(self.crud.get_profile, user_id)


class ArangoUserStore:
    def __init__(self, crud: UserCRUD):
        self.crud = crud

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        return await run_sync(self.crud.get_user_by_key, user_id)

    async def update_user_difficulty(self, user_id: str, level_code: str) -> None:
        await run_sync(self.crud.update_difficulty_level, user_id, level_code)


class ArangoChallengeConfigStore:
    def __init__(self, crud: ChallengeConfigCRUD):
        self.crud = crud

    async def get_all_focus_areas(self) -> List[FocusArea]:
        return await run_sync(self.crud.get_all_focus_areas)

    async def get_challenge_type(self, code: str) -> Optional[ChallengeType]:
        return await run_sync(self.crud.get_challenge_type, code)

    async def get_all_challenge_types(self) -> List[ChallengeType]:
        return await run_sync(self.crud.get_all_challenge_types)

    async def get_difficulty_level(self, code: str) -> Optional[DifficultyLevelConfig]:
        return await run_sync(self.crud.get_difficulty_level, code)

    async def get_format_type(self, code: str) -> Optional[FormatType]:
        return await run_sync(self.crud.get_format_type, code)

    async def get_all_format_types(self) -> List[FormatType]:
        return await run_sync(self.crud.get_all_format_types)

    async def get_trait_mappings(self) -> Dict[str, List[str]]:
        return await run_sync(self.crud.get_trait_mappings)


class ArangoRecommendationStore:
    def __init__(self, crud: RecommendationCRUD):
        self.crud = crud

    async def save(self, recommendation: Recommendation) -> Recommendation:
        return await run_sync(self.crud.save, recommendation)

    async def find_latest_for_user(self, user_id: str) -> Optional[Recommendation]:
        return await run_sync(self.crud.find_latest_for_user, user_id)


def create_arango_stores(db: StandardDatabase) -> Dict[str, Any]:
    """
    Build every store the adaptive service consumes over one database.

    Returns:
        Mapping of AdaptiveServiceDependencies field name -> store
    """
    return {
        "progress_store": ArangoProgressStore(ProgressCRUD(db)),
        "personality_store": ArangoPersonalityStore(PersonalityCRUD(db)),
        "user_store": ArangoUserStore(UserCRUD(db)),
        "config_store": ArangoChallengeConfigStore(ChallengeConfigCRUD(db)),
        "recommendation_store": ArangoRecommendationStore(RecommendationCRUD(db)),
    }
