#!/usr/bin/env python3
"""
01_build_catalog.py - Distribute a raw word list into the ten levels.

Reads a YAML/JSON list of words (level fields are ignored), assigns every
word to a level with the category rules, caps each level and writes a
catalog file the engine can load.

Usage:
  python scripts/01_build_catalog.py --input data/raw_words.yaml
  python scripts/01_build_catalog.py --input raw.json --output data/words.yaml --max-per-level 100
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import yaml

from kotoba.classroom import distribute_words, build_level_definitions, WordCatalog
from kotoba.schemas import Word
from kotoba.utils import load_data_file

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def load_raw_words(path: Path) -> list[Word]:
    """Load raw entries; missing levels default to 1 before redistribution."""
    data = load_data_file(path)
    entries = data.get("words", []) if isinstance(data, dict) else (data or [])
    words = []
    for entry in entries:
        entry = {**entry, "level": entry.get("level") or 1}
        words.append(Word.model_validate(entry))
    return words


def main():
    parser = argparse.ArgumentParser(
        description="Build a leveled word catalog from a raw word list",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Raw word list (YAML or JSON)"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=PROJECT_ROOT / "data" / "words.yaml",
        help="Output catalog path"
    )
    parser.add_argument(
        "--max-per-level",
        type=int,
        default=100,
        help="Maximum words per level"
    )

    args = parser.parse_args()

    logger.info(f"Loading raw words from {args.input}...")
    words = load_raw_words(args.input)
    logger.info(f"  Loaded {len(words)} words")

    logger.info("Distributing words into levels...")
    by_level = distribute_words(words, max_per_level=args.max_per_level)

    catalog = WordCatalog(by_level)
    definitions = build_level_definitions(catalog)

    entries = [
        word.model_dump(by_alias=True, mode="json", exclude_none=True)
        for word in catalog.all_words()
    ]
    args.output.parent.mkdir(parents=True, exist_ok=True)
    with open(args.output, "w", encoding="utf-8") as f:
        yaml.safe_dump({"words": entries}, f, allow_unicode=True, sort_keys=False)

    # Summary
    logger.info("\n" + "=" * 50)
    logger.info("CATALOG COMPLETE")
    logger.info("=" * 50)
    logger.info(f"Catalog: {args.output}")
    for level, definition in definitions.items():
        logger.info(
            f"Level {level}: {len(by_level[level])} words, "
            f"master {definition.required_word_mastery.min_words} to pass"
        )


if __name__ == "__main__":
    main()
