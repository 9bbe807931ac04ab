"""
Seed script for the CivicWatch mock DB or Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured DB: python scripts/seed_db.py --apply
  - Force mock DB even if FIREBASE configured: python scripts/seed_db.py --apply --force-mock

Behavior:
  - Writes the default authority directory if the collection is empty.
  - Creates the demo citizen / authority / admin accounts if missing.
  - Gets DB via `app.config.firebase.get_db()` which returns the mock DB or
    real Firestore depending on settings.
"""

import argparse

from app.config.firebase import get_db
from app.core.logging_config import configure_logging
from app.core.settings import settings
from app.services.authority_directory import AuthorityDirectory, DEFAULT_DIRECTORY
from app.services.user_service import DEMO_USERS, UserService


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the DB instead of dry-run")
    parser.add_argument("--force-mock", action="store_true", help="Force use of mock DB even if FIREBASE configured")
    args = parser.parse_args()

    configure_logging()

    for entry in DEFAULT_DIRECTORY:
        print(f"Preparing: authority_directory/{entry.id} ({entry.region} / {entry.category})")
    for user in DEMO_USERS:
        print(f"Preparing: users/{user['uid']} ({user['email']}, trust {user['trust_score']})")

    if not args.apply:
        print("Dry run complete. Re-run with --apply to write to DB.")
        return

    if args.force_mock:
        print("Forcing mock DB usage for this run.")
        settings.USE_MOCK_DB = True

    db = get_db()
    directory_count = AuthorityDirectory(db).seed_defaults()
    user_count = UserService(db).seed_demo_users()
    print(f"Seeding completed: {directory_count} directory entries, {user_count} users written.")


if __name__ == "__main__":
    main()
