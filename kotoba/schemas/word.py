"""
Word schemas for Kotoba.

Defines Pydantic models for catalog vocabulary including:
- JLPT tiers and difficulty bands
- The immutable Word record shared by catalog and engine
"""

from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field, model_validator

from .base import CamelModel


MIN_LEVEL = 1
MAX_LEVEL = 10


class JLPTLevel(str, Enum):
    N5 = "N5"
    N4 = "N4"
    N3 = "N3"
    N2 = "N2"
    N1 = "N1"


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


def difficulty_for_level(level: int) -> Difficulty:
    """Difficulty band implied by a curriculum level."""
    if level <= 3:
        return Difficulty.BEGINNER
    if level <= 6:
        return Difficulty.INTERMEDIATE
    return Difficulty.ADVANCED


def is_valid_level(level: int) -> bool:
    return MIN_LEVEL <= level <= MAX_LEVEL


class Word(CamelModel):
    """A vocabulary item from the catalog. Never modified at runtime."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    japanese: str
    english: str
    romaji: str
    level: int = Field(..., ge=MIN_LEVEL, le=MAX_LEVEL)
    category: str = "general"
    jlpt_level: Optional[JLPTLevel] = None
    difficulty: Optional[Difficulty] = None
    hiragana: Optional[str] = None
    kanji: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def fill_difficulty(cls, data):
        # Catalog entries usually omit difficulty; derive it from the level
        if isinstance(data, dict) and not data.get("difficulty"):
            level = data.get("level")
            if isinstance(level, int) and is_valid_level(level):
                data = {**data, "difficulty": difficulty_for_level(level).value}
        return data
