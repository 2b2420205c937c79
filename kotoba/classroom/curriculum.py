"""
Curriculum rules - Level distribution and level definitions.

Provides:
- The category/JLPT rules for each of the ten levels
- Rule-based distribution of a raw word list into levels
- LevelDefinition construction from a word catalog
"""

import logging
import math
from typing import TYPE_CHECKING, Iterable

from kotoba.schemas import (
    JLPTLevel,
    LevelDefinition,
    LevelRequirement,
    MAX_LEVEL,
    MIN_LEVEL,
    RequiredWordMastery,
    RequirementType,
    Word,
    difficulty_for_level,
)

if TYPE_CHECKING:
    from .catalog import WordCatalog


logger = logging.getLogger(__name__)

MAX_WORDS_PER_LEVEL = 100
MIN_MASTERED_WORDS = 20
MIN_MASTERED_FRACTION = 0.2
MASTERY_THRESHOLD = 80
REQUIRED_SCORE = 80


LEVEL_DISTRIBUTION: dict[int, dict] = {
    1: {
        "categories": ["greeting", "number", "pronoun", "question", "hiragana", "katakana"],
        "jlpt_levels": ["N5"],
        "description": "Essential Survival Japanese - Basic greetings, numbers, and everyday expressions",
    },
    2: {
        "categories": ["verb", "adjective", "adverb", "particle"],
        "jlpt_levels": ["N5", "N4"],
        "description": "Basic Communication - Common verbs, adjectives, and simple sentence patterns",
    },
    3: {
        "categories": ["time", "food", "drink", "transportation", "shopping"],
        "jlpt_levels": ["N5", "N4"],
        "description": "Daily Life Basics - Food, shopping, transportation, and time expressions",
    },
    4: {
        "categories": ["family", "emotion", "body", "health", "housing"],
        "jlpt_levels": ["N4", "N3"],
        "description": "Social Interactions - Family, relationships, and polite expressions",
    },
    5: {
        "categories": ["work", "education", "hobby", "travel", "money"],
        "jlpt_levels": ["N3"],
        "description": "Practical Japanese - Work, school, and common situations",
    },
    6: {
        "categories": ["verb", "adjective", "adverb", "conjunction"],
        "jlpt_levels": ["N3", "N2"],
        "description": "Intermediate Communication - Complex verbs, compound expressions",
    },
    7: {
        "categories": ["idiom", "proverb", "onomatopoeia"],
        "jlpt_levels": ["N2"],
        "description": "Cultural Context - Idioms, proverbs, and cultural references",
    },
    8: {
        "categories": ["technology", "business", "academic"],
        "jlpt_levels": ["N2", "N1"],
        "description": "Advanced Topics - Business, technology, and specialized vocabulary",
    },
    9: {
        "categories": ["literature", "formal", "advanced"],
        "jlpt_levels": ["N1"],
        "description": "Academic Japanese - Formal writing, literature, and complex grammar",
    },
    10: {
        "categories": ["slang", "colloquial", "nuanced"],
        "jlpt_levels": ["N1"],
        "description": "Mastery Level - Native-level expressions and nuanced vocabulary",
    },
}


def word_belongs_in_level(word: Word, level: int) -> bool:
    """Check whether a word's category is one of the level's categories."""
    rules = LEVEL_DISTRIBUTION.get(level)
    return bool(rules) and word.category in rules["categories"]


def _retag(word: Word, level: int) -> Word:
    return word.model_copy(update={"level": level, "difficulty": difficulty_for_level(level)})


def distribute_words(
    words: Iterable[Word],
    max_per_level: int = MAX_WORDS_PER_LEVEL,
) -> dict[int, list[Word]]:
    """
    Distribute words into levels by category rules.

    Each word goes to the first level whose categories include it. Levels
    keep at most max_per_level words; the overflow, together with words
    matching no level, tops up levels below the cap in level order.

    Returns:
        Dict of level -> words, each word re-tagged with its level
    """
    by_level: dict[int, list[Word]] = {level: [] for level in range(MIN_LEVEL, MAX_LEVEL + 1)}
    remaining: list[Word] = []

    for word in words:
        level = next(
            (lvl for lvl in by_level if word_belongs_in_level(word, lvl)),
            None,
        )
        if level is not None and len(by_level[level]) < max_per_level:
            by_level[level].append(_retag(word, level))
        else:
            remaining.append(word)

    for level, level_words in by_level.items():
        while len(level_words) < max_per_level and remaining:
            level_words.append(_retag(remaining.pop(0), level))

    if remaining:
        logger.warning(f"{len(remaining)} words did not fit into any level")

    for level, level_words in by_level.items():
        logger.debug(f"Level {level}: {len(level_words)} words")

    return by_level


def required_mastered_words(total_words: int) -> int:
    return max(MIN_MASTERED_WORDS, math.floor(total_words * MIN_MASTERED_FRACTION))


def build_level_definition(level: int, total_words: int) -> LevelDefinition:
    """Build the definition of one level given its word count."""
    rules = LEVEL_DISTRIBUTION[level]
    min_words = required_mastered_words(total_words)

    return LevelDefinition(
        level=level,
        required_score=0 if level == MIN_LEVEL else REQUIRED_SCORE,
        jlpt_level=JLPTLevel(rules["jlpt_levels"][0]),
        description=rules["description"],
        practice_categories=list(rules["categories"]),
        required_word_mastery=RequiredWordMastery(
            min_words=min_words,
            mastery_threshold=MASTERY_THRESHOLD,
        ),
        requirements=[
            LevelRequirement(
                type=RequirementType.QUIZ,
                target=level,
                description=f"Complete {level} quizzes with 80% or higher score",
            ),
            LevelRequirement(
                type=RequirementType.PRACTICE,
                target=min_words,
                description=f"Master {min_words} words",
            ),
            LevelRequirement(
                type=RequirementType.READING,
                target=level,
                description=f"Read and understand {level} texts",
            ),
        ],
    )


def build_level_definitions(catalog: "WordCatalog") -> dict[int, LevelDefinition]:
    """Build definitions for all ten levels from a catalog."""
    return {
        level: build_level_definition(level, len(catalog.get_words_for_level(level)))
        for level in range(MIN_LEVEL, MAX_LEVEL + 1)
    }
