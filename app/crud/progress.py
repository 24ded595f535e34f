"""
Progress and personality CRUD operations.

Progress documents are keyed by user id in ``progress``; personality
profiles live in ``personality_profiles`` and are looked up by ``user_id``.
"""

from typing import Optional
from datetime import datetime, timezone
from arango.database import StandardDatabase
from arango.exceptions import DocumentInsertError

from app.models.progress import PersonalityProfile, Progress


class ProgressCRUD:
    """Operations on user progress documents."""

    def __init__(self, db: StandardDatabase):
        self.db = db
        self.collection = db.collection('progress')

    def get_progress(self, user_id: str) -> Optional[Progress]:
        document = self.collection.get(user_id)
        if not document:
            return None
        return Progress(**{**document, "user_id": document.get("user_id", user_id)})

    def create_progress(self, user_id: str) -> Progress:
        """Insert an empty progress document for a user."""
        progress = Progress(user_id=user_id, updated_at=datetime.now(timezone.utc))
        document = progress.model_dump(mode='json')
        document['_key'] = user_id

        try:
            self.collection.insert(document)
        except DocumentInsertError:
            # Created concurrently by another request
            existing = self.get_progress(user_id)
            if existing is None:
                raise
            return existing
        return progress

    def get_or_create_progress(self, user_id: str) -> Progress:
        """Return the user's progress, creating an empty one on first access."""
        progress = self.get_progress(user_id)
        if progress is not None:
            return progress
        return self.create_progress(user_id)


class PersonalityCRUD:
    """Read access to personality profiles."""

    def __init__(self, db: StandardDatabase):
        self.db = db
        self.collection = db.collection('personality_profiles')

    def get_profile(self, user_id: str) -> Optional[PersonalityProfile]:
        query = """
        FOR p IN personality_profiles
            FILTER p.user_id == @user_id
            SORT p.updated_at DESC
            LIMIT 1
            RETURN p
        """
        cursor = self.db.aql.execute(query, bind_vars={'user_id': user_id})

        profiles = list(cursor)
        if not profiles:
            return None
        return PersonalityProfile(**profiles[0])
