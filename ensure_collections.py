#!/usr/bin/env python3
"""
Database Collection Setup Script

This script ensures all collections used by the adaptive engine exist in the
database and reports their document counts.

Usage:
    python ensure_collections.py
"""

import sys
import logging

from app.db.database import DatabaseManager, REQUIRED_COLLECTIONS
from app.crud.challenge_config import CONFIG_COLLECTIONS

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def main():
    """Ensure all database collections exist."""
    print("🔧 Database Collection Setup")
    print("=" * 40)

    try:
        # Initialize database manager (this will create collections and indexes)
        db_manager = DatabaseManager()
        db = db_manager.get_database()

        existing_names = [col['name'] for col in db.collections() if not col['name'].startswith('_')]

        print(f"\n🎯 Required collections status:")
        for name in REQUIRED_COLLECTIONS:
            if name in existing_names:
                count = db.collection(name).count()
                print(f"   ✅ {name} - {count} documents")
            else:
                print(f"   ❌ {name} - MISSING")

        empty_config = [
            name for name in CONFIG_COLLECTIONS
            if name in existing_names and db.collection(name).count() == 0
        ]

        print("\n" + "=" * 40)
        print("✅ Database setup complete!")
        if empty_config:
            print(f"\n⚠️  Empty configuration collections: {', '.join(empty_config)}")
            print("Run: python app/scripts/seed_challenge_config.py")

    except Exception as e:
        logger.error(f"❌ Error setting up database: {e}")
        print("\nTroubleshooting:")
        print("1. Make sure ArangoDB is running")
        print("2. Check ARANGO_URL / ARANGO_DATABASE in your .env")
        print("3. Verify database credentials")
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
