"""
Progress tracking schemas for Kotoba.

Defines Pydantic models for learner progress including:
- Per-word attempt counters, coarse mastery flag and SRS tier
- Per-level completion state and derived mastery status
- Quiz, JLPT and reading history
- The UserProgress aggregate and its documented default
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, computed_field

from .base import CamelModel
from .word import MAX_LEVEL, MIN_LEVEL, JLPTLevel


MAX_MASTERY_LEVEL = 5


class LevelStatus(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"  # also covers "in progress"
    COMPLETED = "completed"


class WordProgress(CamelModel):
    word_id: str
    correct_attempts: int = Field(default=0, ge=0)
    incorrect_attempts: int = Field(default=0, ge=0)
    mastered: bool = False
    mastery_level: int = Field(default=0, ge=0, le=MAX_MASTERY_LEVEL)  # SRS tier
    last_practiced: datetime
    last_reviewed: Optional[datetime] = None
    next_review_date: datetime

    @classmethod
    def new(cls, word_id: str, now: datetime) -> "WordProgress":
        """Zero-state progress for a word seen for the first time."""
        return cls(word_id=word_id, last_practiced=now, next_review_date=now)

    @computed_field
    @property
    def review_count(self) -> int:
        return self.correct_attempts + self.incorrect_attempts


class WordMasteryStatus(CamelModel):
    mastered_words: int = Field(default=0, ge=0)
    total_words: int = Field(default=0, ge=0)
    mastery_percentage: float = 0.0
    meets_requirements: bool = False


class LevelProgress(CamelModel):
    level: int = Field(..., ge=MIN_LEVEL, le=MAX_LEVEL)
    completed: bool = False
    score: float = 0.0
    words_mastered: int = 0
    total_words: int = 0
    unlocked_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    word_mastery: WordMasteryStatus = Field(default_factory=WordMasteryStatus)

    @property
    def unlocked(self) -> bool:
        return self.unlocked_at is not None

    @property
    def status(self) -> LevelStatus:
        if self.completed:
            return LevelStatus.COMPLETED
        if self.unlocked:
            return LevelStatus.UNLOCKED
        return LevelStatus.LOCKED


class QuizAttempt(CamelModel):
    level: int
    score: float
    date: datetime


class JLPTTest(CamelModel):
    level: JLPTLevel
    score: float
    date: datetime


class ReadingPractice(CamelModel):
    level: int
    completed: bool
    date: datetime


class UserProgress(CamelModel):
    """Aggregate root persisted by a progress store."""
    current_level: int = Field(default=MIN_LEVEL, ge=MIN_LEVEL, le=MAX_LEVEL)
    levels: list[LevelProgress] = []
    word_progress: dict[str, WordProgress] = {}
    quiz_history: list[QuizAttempt] = []
    jlpt_tests: list[JLPTTest] = []
    reading_practice: list[ReadingPractice] = []
    total_score: float = 0.0
    last_updated: datetime

    def get_level(self, level: int) -> Optional[LevelProgress]:
        for level_progress in self.levels:
            if level_progress.level == level:
                return level_progress
        return None

    @property
    def unlocked_levels(self) -> list[int]:
        return sorted(lp.level for lp in self.levels if lp.unlocked)


def default_user_progress(
    now: datetime,
    total_words: Optional[dict[int, int]] = None,
) -> UserProgress:
    """
    Documented starting state: level 1 unlocked, all others locked,
    every history empty.

    Args:
        now: Timestamp used for level 1's unlockedAt and lastUpdated
        total_words: Optional word count per level for the initial
            LevelProgress/WordMasteryStatus records
    """
    total_words = total_words or {}
    levels = []
    for level in range(MIN_LEVEL, MAX_LEVEL + 1):
        count = total_words.get(level, 0)
        levels.append(LevelProgress(
            level=level,
            total_words=count,
            unlocked_at=now if level == MIN_LEVEL else None,
            word_mastery=WordMasteryStatus(total_words=count),
        ))
    return UserProgress(levels=levels, last_updated=now)
