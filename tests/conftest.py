"""
Shared fixtures: in-memory stores standing in for ArangoDB.
"""
import random
from typing import Dict, List, Optional

import pytest

from app.data import challenge_config as catalogue
from app.models.challenge import ChallengeType, DifficultyLevelConfig, FocusArea, FormatType
from app.models.progress import PersonalityProfile, Progress
from app.models.recommendation import Recommendation
from app.models.user import User
from app.services.adaptive_service import AdaptiveService, AdaptiveServiceDependencies
from app.services.cache_service import CacheService
from app.services.personalization_service import ChallengePersonalizationService


# ============================================================================
# In-memory stores
# ============================================================================

class InMemoryConfigStore:
    def __init__(
        self,
        focus_areas: Optional[List[FocusArea]] = None,
        challenge_types: Optional[List[ChallengeType]] = None,
        difficulty_levels: Optional[List[DifficultyLevelConfig]] = None,
        format_types: Optional[List[FormatType]] = None,
        trait_mappings: Optional[Dict[str, List[str]]] = None
    ):
        self.focus_areas = list(catalogue.FOCUS_AREAS if focus_areas is None else focus_areas)
        self.challenge_types = list(catalogue.CHALLENGE_TYPES if challenge_types is None else challenge_types)
        self.difficulty_levels = list(catalogue.DIFFICULTY_LEVELS if difficulty_levels is None else difficulty_levels)
        self.format_types = list(catalogue.FORMAT_TYPES if format_types is None else format_types)
        self.trait_mappings = dict(catalogue.TRAIT_MAPPINGS if trait_mappings is None else trait_mappings)
        self.fail_trait_mappings = False

    async def get_all_focus_areas(self):
        return [area for area in self.focus_areas if area.is_active]

    async def get_challenge_type(self, code):
        return next((t for t in self.challenge_types if t.code == code), None)

    async def get_all_challenge_types(self):
        return list(self.challenge_types)

    async def get_difficulty_level(self, code):
        return next((d for d in self.difficulty_levels if d.code == code), None)

    async def get_format_type(self, code):
        return next((f for f in self.format_types if f.code == code), None)

    async def get_all_format_types(self):
        return list(self.format_types)

    async def get_trait_mappings(self):
        if self.fail_trait_mappings:
            raise ConnectionError("trait_mappings unavailable")
        return dict(self.trait_mappings)


class InMemoryProgressStore:
    def __init__(self):
        self.progress: Dict[str, Progress] = {}
        self.error: Optional[Exception] = None

    async def get_or_create_progress(self, user_id):
        if self.error:
            raise self.error
        if user_id not in self.progress:
            self.progress[user_id] = Progress(user_id=user_id)
        return self.progress[user_id]


class InMemoryPersonalityStore:
    def __init__(self):
        self.profiles: Dict[str, PersonalityProfile] = {}
        self.error: Optional[Exception] = None

    async def get_profile(self, user_id):
        if self.error:
            raise self.error
        return self.profiles.get(user_id)


class InMemoryUserStore:
    def __init__(self):
        self.users: Dict[str, User] = {}
        self.difficulty_updates: List[tuple] = []
        self.update_error: Optional[Exception] = None

    def add(self, user_id: str, **fields) -> User:
        user = User(key=user_id, **fields)
        self.users[user_id] = user
        return user

    async def get_user_by_id(self, user_id):
        return self.users.get(user_id)

    async def update_user_difficulty(self, user_id, level_code):
        if self.update_error:
            raise self.update_error
        self.difficulty_updates.append((user_id, level_code))
        user = self.users.get(user_id)
        if user is not None:
            self.users[user_id] = user.model_copy(update={"difficulty_level": level_code})


class InMemoryRecommendationStore:
    def __init__(self):
        self.saved: List[Recommendation] = []
        self.save_error: Optional[Exception] = None
        self.find_error: Optional[Exception] = None

    async def save(self, recommendation):
        if self.save_error:
            raise self.save_error
        self.saved.append(recommendation)
        return recommendation

    async def find_latest_for_user(self, user_id):
        if self.find_error:
            raise self.find_error
        mine = [r for r in self.saved if r.user_id == user_id]
        if not mine:
            return None
        return max(mine, key=lambda r: r.created_at)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def config_store():
    return InMemoryConfigStore()


@pytest.fixture
def personalization(config_store):
    return ChallengePersonalizationService(config_store)


@pytest.fixture
def progress_store():
    return InMemoryProgressStore()


@pytest.fixture
def personality_store():
    return InMemoryPersonalityStore()


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def recommendation_store():
    return InMemoryRecommendationStore()


@pytest.fixture
def cache():
    return CacheService(default_ttl=300)


@pytest.fixture
def dependencies(
    progress_store,
    personality_store,
    user_store,
    config_store,
    recommendation_store,
    personalization,
    cache
):
    return AdaptiveServiceDependencies(
        progress_store=progress_store,
        personality_store=personality_store,
        user_store=user_store,
        config_store=config_store,
        recommendation_store=recommendation_store,
        personalization=personalization,
        cache=cache,
        rng=random.Random(7)
    )


@pytest.fixture
def adaptive_service(dependencies):
    return AdaptiveService(dependencies, strict_difficulty_persistence=False)
