#!/usr/bin/env python3
"""Seed the version_updates changelog collection.

Usage:
  python -m scripts.seed_version_updates           # dry-run
  python -m scripts.seed_version_updates --apply   # write to Firestore
"""

import argparse
from datetime import datetime, timezone

from dotenv import load_dotenv

from study_buddy.config import load_config
from study_buddy.extensions import FirebaseRuntime
from study_buddy.repositories import version_updates_repo

VERSION_UPDATES = [
    {
        "version": "1.0",
        "title": "Welcome to Study Buddy!",
        "description": (
            "The first official deployment of Study Buddy - your study companion. Upload your notes, "
            "build flashcards, and keep your course materials organized by subject."
        ),
        "features": [
            "Create and organize subjects for your courses",
            "Upload PDF notes (up to 10 per subject)",
            "Secure Firebase authentication",
            "Personalized dashboard to track your progress",
        ],
        "release_date": datetime(2024, 11, 20, tzinfo=timezone.utc),
    },
    {
        "version": "1.1",
        "title": "Mobile Improvements & Resource Limits",
        "description": "Enhanced mobile experience and enforced user resource limits to ensure optimal performance for all users.",
        "features": [
            "Enforced user upload limits: 10 subjects, 10 notes per subject, 20 flashcard sets per subject",
            "Redesigned mobile dashboard with quick stats",
            "Improved responsive design across all pages",
            "Fixed flashcard count display on subjects page",
        ],
        "release_date": datetime(2024, 11, 27, tzinfo=timezone.utc),
    },
]


def seed_version_updates(db, updates, apply_changes: bool) -> int:
    written = 0
    for update in updates:
        written += 1
        if apply_changes:
            version_updates_repo.set_doc(db, update["version"], dict(update))
    return written


def main():
    parser = argparse.ArgumentParser(description="Seed version_updates documents.")
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Apply changes. Without this flag, the script runs in dry-run mode.",
    )
    args = parser.parse_args()

    load_dotenv()
    db = FirebaseRuntime(load_config()).firestore_client()
    count = seed_version_updates(db, VERSION_UPDATES, apply_changes=args.apply)
    mode = "APPLY" if args.apply else "DRY-RUN"
    print(f"[{mode}] version_updates={count}")
    if not args.apply:
        print("No changes were written. Re-run with --apply to persist.")


if __name__ == "__main__":
    main()
