from typing import Any, Dict, Optional
from datetime import datetime, timezone
from arango.database import StandardDatabase

from app.models.user import User


class UserCRUD:
    """User database operations."""

    def __init__(self, db: StandardDatabase):
        self.db = db
        self.collection = db.collection('users')

    def get_user_by_key(self, key: str) -> Optional[User]:
        """Retrieve user by document key."""
        user_data = self.collection.get(key)
        if not user_data:
            return None

        user_data = user_data.copy()
        # The _key should already be in the document, but ensure it's set
        user_data['_key'] = key
        return User(**user_data)

    def update_user_fields(self, key: str, fields: Dict[str, Any]) -> Optional[User]:
        """Update arbitrary user fields and stamp updated_at."""
        update_document = {"_key": key, "updated_at": datetime.now(timezone.utc).isoformat()}
        update_document.update(fields)

        result = self.collection.update(update_document, return_new=True)
        if result:
            return User(**result['new'])
        return None

    def update_difficulty_level(self, key: str, level_code: str) -> Optional[User]:
        """Persist the user's current difficulty level code."""
        return self.update_user_fields(key, {"difficulty_level": level_code})
