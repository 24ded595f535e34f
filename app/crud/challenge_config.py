"""
Challenge configuration CRUD operations.

Focus areas, challenge types, difficulty levels and format types are keyed
by their code; trait mappings are keyed by trait name and hold a list of
focus area codes.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar
from arango.database import StandardDatabase
from pydantic import BaseModel

from app.models.challenge import ChallengeType, DifficultyLevelConfig, FocusArea, FormatType

ModelT = TypeVar("ModelT", bound=BaseModel)

FOCUS_AREAS = 'focus_areas'
CHALLENGE_TYPES = 'challenge_types'
DIFFICULTY_LEVELS = 'difficulty_levels'
FORMAT_TYPES = 'format_types'
TRAIT_MAPPINGS = 'trait_mappings'

CONFIG_COLLECTIONS = [FOCUS_AREAS, CHALLENGE_TYPES, DIFFICULTY_LEVELS, FORMAT_TYPES, TRAIT_MAPPINGS]


class ChallengeConfigCRUD:
    """Read and seed operations for challenge configuration."""

    def __init__(self, db: StandardDatabase):
        self.db = db

    # ========================================================================
    # GENERIC HELPERS
    # ========================================================================

    def _get(self, collection: str, code: str, model: Type[ModelT]) -> Optional[ModelT]:
        if not code:
            return None
        document = self.db.collection(collection).get(code)
        if not document:
            return None
        return model(**document)

    def _list(self, collection: str, model: Type[ModelT], sort_field: str = 'sort_order') -> List[ModelT]:
        # Configuration order is sort_order, then insertion (code) order
        query = f"""
        FOR doc IN {collection}
            SORT doc.{sort_field} ASC, doc._key ASC
            RETURN doc
        """
        cursor = self.db.aql.execute(query)
        return [model(**doc) for doc in cursor]

    def upsert_many(self, collection: str, documents: List[Dict[str, Any]]) -> int:
        """
        Insert or replace documents keyed by their ``code`` (or ``trait``).

        Returns:
            Number of documents written
        """
        target = self.db.collection(collection)
        written = 0
        for index, document in enumerate(documents):
            doc = dict(document)
            doc['_key'] = doc.get('code') or doc.get('trait')
            doc.setdefault('sort_order', index)
            target.insert(doc, overwrite=True)
            written += 1
        return written

    # ========================================================================
    # FOCUS AREAS
    # ========================================================================

    def get_all_focus_areas(self) -> List[FocusArea]:
        return [area for area in self._list(FOCUS_AREAS, FocusArea) if area.is_active]

    # ========================================================================
    # CHALLENGE TYPES
    # ========================================================================

    def get_all_challenge_types(self) -> List[ChallengeType]:
        return self._list(CHALLENGE_TYPES, ChallengeType)

    def get_challenge_type(self, code: str) -> Optional[ChallengeType]:
        return self._get(CHALLENGE_TYPES, code, ChallengeType)

    # ========================================================================
    # DIFFICULTY LEVELS / FORMAT TYPES
    # ========================================================================

    def get_difficulty_level(self, code: str) -> Optional[DifficultyLevelConfig]:
        return self._get(DIFFICULTY_LEVELS, code, DifficultyLevelConfig)

    def get_all_format_types(self) -> List[FormatType]:
        return self._list(FORMAT_TYPES, FormatType)

    def get_format_type(self, code: str) -> Optional[FormatType]:
        return self._get(FORMAT_TYPES, code, FormatType)

    # ========================================================================
    # TRAIT MAPPINGS
    # ========================================================================

    def get_trait_mappings(self) -> Dict[str, List[str]]:
        """Trait -> focus area codes."""
        cursor = self.db.aql.execute(
            f"FOR m IN {TRAIT_MAPPINGS} RETURN {{trait: m.trait, focus_areas: m.focus_areas}}"
        )
        return {row['trait']: list(row.get('focus_areas') or []) for row in cursor if row.get('trait')}
