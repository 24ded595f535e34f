from typing import Optional
from arango.database import StandardDatabase

from app.models.recommendation import Recommendation


class RecommendationCRUD:
    """Recommendation persistence. Recommendations are insert-only."""

    def __init__(self, db: StandardDatabase):
        self.db = db
        self.collection = db.collection('recommendations')

    def save(self, recommendation: Recommendation) -> Recommendation:
        document = recommendation.model_dump(mode='json')
        document['_key'] = recommendation.id

        self.collection.insert(document)
        return recommendation

    def find_latest_for_user(self, user_id: str) -> Optional[Recommendation]:
        """Most recently created recommendation for a user."""
        query = """
        FOR r IN recommendations
            FILTER r.user_id == @user_id
            SORT r.created_at DESC
            LIMIT 1
            RETURN r
        """
        cursor = self.db.aql.execute(query, bind_vars={'user_id': user_id})

        results = list(cursor)
        if not results:
            return None
        return Recommendation(**results[0])

