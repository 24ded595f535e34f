"""
Script to seed the database with the challenge configuration catalogue.
Run this script to populate focus areas, challenge types, difficulty levels,
format types and trait mappings. Existing entries with the same code are
replaced.
"""

import sys
import logging
from pathlib import Path

# Add the backend directory to Python path to import app modules
backend_dir = Path(__file__).parent.parent.parent
sys.path.insert(0, str(backend_dir))

from app.db.database import get_db
from app.crud.challenge_config import (
    CHALLENGE_TYPES,
    DIFFICULTY_LEVELS,
    FOCUS_AREAS,
    FORMAT_TYPES,
    TRAIT_MAPPINGS,
    ChallengeConfigCRUD,
)
from app.data import challenge_config as catalogue

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_challenge_config() -> dict:
    """
    Seed every configuration collection.

    Returns:
        Collection name -> number of documents written
    """
    db = get_db()
    config_crud = ChallengeConfigCRUD(db)

    batches = {
        FOCUS_AREAS: [area.model_dump() for area in catalogue.FOCUS_AREAS],
        CHALLENGE_TYPES: [challenge_type.model_dump() for challenge_type in catalogue.CHALLENGE_TYPES],
        DIFFICULTY_LEVELS: [level.model_dump() for level in catalogue.DIFFICULTY_LEVELS],
        FORMAT_TYPES: [format_type.model_dump() for format_type in catalogue.FORMAT_TYPES],
        TRAIT_MAPPINGS: catalogue.get_trait_mapping_documents(),
    }

    written = {}
    for collection, documents in batches.items():
        if not db.has_collection(collection):
            db.create_collection(collection)
            logger.info(f"Created '{collection}' collection")

        written[collection] = config_crud.upsert_many(collection, documents)
        logger.info(f"🌱 Seeded {written[collection]} documents into {collection}")

    return written


if __name__ == "__main__":
    try:
        counts = seed_challenge_config()
    except Exception as e:
        logger.error(f"❌ Seeding failed: {e}")
        sys.exit(1)

    print("\nSeeding completed!")
    for collection, count in counts.items():
        print(f"  {collection}: {count}")
