#!/usr/bin/env python3
"""
02_progress_report.py - Print a learner's level and review status.

Loads the word catalog and the learner's stored progress (settings from
the environment / .env) and prints level status, requirements and the SRS
review queue.

Usage:
  python scripts/02_progress_report.py
  python scripts/02_progress_report.py --catalog data/words.yaml --db ~/.kotoba/progress.db --student alice
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from kotoba.classroom import LevelProgressionController, SQLiteProgressStore, WordCatalog
from kotoba.config import load_settings
from kotoba.schemas import MAX_LEVEL, MIN_LEVEL

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

STATUS_MARKS = {
    "completed": "✓",
    "unlocked": "○",
    "locked": "◌",
}


def main():
    parser = argparse.ArgumentParser(
        description="Show level progress and review queue for a learner",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--catalog", type=Path, default=None, help="Word catalog file")
    parser.add_argument("--db", type=Path, default=None, help="Progress database path")
    parser.add_argument("--student", default=None, help="Student identifier")
    parser.add_argument("--env-file", type=Path, default=PROJECT_ROOT / ".env", help=".env file")

    args = parser.parse_args()

    settings = load_settings(args.env_file if args.env_file.exists() else None)
    catalog_path = args.catalog or settings.catalog_path or PROJECT_ROOT / "data" / "words.yaml"

    catalog = WordCatalog.from_file(catalog_path)
    store = SQLiteProgressStore(
        args.db or settings.progress_db,
        student_id=args.student or settings.student_id,
    )
    controller = LevelProgressionController(catalog, store, settings, autosave=False)
    progress = controller.load()

    print(f"Current level: {progress.current_level}   Total score: {progress.total_score:.1f}")
    print()
    for level in range(MIN_LEVEL, MAX_LEVEL + 1):
        status = controller.get_level_status(level)
        mastery = controller.get_word_mastery_for_level(level)
        print(
            f"  {STATUS_MARKS[status.value]} Level {level:>2}: "
            f"{mastery.mastered_words}/{mastery.total_words} mastered "
            f"({mastery.mastery_percentage:.0f}%)"
        )

    print()
    print(f"Requirements for level {progress.current_level}:")
    for req in controller.get_level_requirements(progress.current_level):
        mark = "✓" if req.completed else " "
        print(f"  [{mark}] {req.description}: {req.current}/{req.target}")
    print(f"  Can advance: {'yes' if controller.can_advance_level() else 'no'}")

    stats = controller.get_review_stats()
    print()
    print(
        f"Reviews: {stats.due_items} due of {stats.total_items} "
        f"(new {stats.new_items}, learning {stats.learning_items}, review {stats.review_items}), "
        f"retention {stats.retention_rate:.0%}"
    )


if __name__ == "__main__":
    main()
