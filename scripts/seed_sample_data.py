#!/usr/bin/env python3
"""
Seed the record store with sample users and exercises.

Creates five users (User1..User5) with ten exercises each, dated today
with random 1-60 minute durations. Optionally removes users whose
username contains "test" first, which is how stray test accounts are
cleaned up; the API itself never deletes.

Usage:
    python scripts/seed_sample_data.py
    python scripts/seed_sample_data.py --purge-test-users
    python scripts/seed_sample_data.py --mock --dry-run

Requires:
    - .env file with Snowflake credentials (unless --mock)
"""

import random
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from exercise_tracker.api.dependencies import build_snowflake_config
from exercise_tracker.config.settings import get_settings
from exercise_tracker.core.tracking import ExerciseTracker, TrackerError, User
from exercise_tracker.infrastructure.snowflake.client import (
    SnowflakeConnectionError,
    create_snowflake_connection,
)
from exercise_tracker.infrastructure.snowflake.repositories.users import UserRepository

SAMPLE_USER_COUNT = 5
EXERCISES_PER_USER = 10


def build_sample_users() -> list[dict]:
    """
    Build the sample data set without touching the store.

    Returns list of dicts with username and a list of exercise fields.
    """
    users = []
    for n in range(1, SAMPLE_USER_COUNT + 1):
        username = f"User{n}"
        exercises = [
            {
                'description': f"Exercise {i + 1} for {username}",
                'duration': random.randint(1, 60),
            }
            for i in range(EXERCISES_PER_USER)
        ]
        users.append({'username': username, 'exercises': exercises})
    return users


def seed(tracker: ExerciseTracker, sample_users: list[dict]) -> list[User]:
    """Create every sample user and log their exercises (dated today)."""
    created = []
    for sample in sample_users:
        user = tracker.create_user(sample['username'])
        for exercise in sample['exercises']:
            user, _ = tracker.add_exercise(
                user.id,
                description=exercise['description'],
                duration=exercise['duration'],
            )
        created.append(user)
        print(f"[OK] {user.username}: {len(user.log)} exercises")
    return created


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Seed the exercise tracker with sample data')
    parser.add_argument('--dry-run', action='store_true', help='Print the sample data, don\'t insert')
    parser.add_argument('--mock', action='store_true', help='Use the in-memory store instead of Snowflake')
    parser.add_argument('--purge-test-users', action='store_true',
                        help='Delete users whose username contains "test" before seeding')
    args = parser.parse_args()

    sample_users = build_sample_users()

    if args.dry_run:
        print("\n=== DRY RUN - No data will be inserted ===\n")
        for sample in sample_users:
            print(f"Would create: {sample['username']} with {len(sample['exercises'])} exercises")
        sys.exit(0)

    settings = get_settings()
    mock_mode = args.mock or settings.snowflake_mock_mode

    try:
        config = None if mock_mode else build_snowflake_config(settings)
        with create_snowflake_connection(config=config, mock_mode=mock_mode) as conn:
            repository = UserRepository(conn)

            if args.purge_test_users:
                deleted = repository.delete_users_matching("test")
                print(f"Deleted {deleted} test users")

            seed(ExerciseTracker(repository), sample_users)

    except SnowflakeConnectionError as e:
        print(f"ERROR connecting to Snowflake: {e}")
        sys.exit(1)
    except TrackerError as e:
        print(f"ERROR creating sample data: {e}")
        sys.exit(1)

    print("\nSample data created successfully.")


if __name__ == '__main__':
    main()
