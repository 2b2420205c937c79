"""
Level schemas for Kotoba.

Defines Pydantic models for the static curriculum structure:
- Requirement types and targets
- Word mastery thresholds
- Level definitions derived from the level rules
- Evaluated requirement progress
"""

from enum import Enum

from pydantic import Field, computed_field

from .base import CamelModel
from .word import MAX_LEVEL, MIN_LEVEL, JLPTLevel


class RequirementType(str, Enum):
    QUIZ = "quiz"
    PRACTICE = "practice"
    JLPT = "jlpt"
    READING = "reading"


class LevelRequirement(CamelModel):
    type: RequirementType
    target: int = Field(..., ge=0)
    description: str = ""


class RequirementProgress(LevelRequirement):
    """A requirement together with the learner's count against it."""
    current: int = Field(default=0, ge=0)

    @computed_field
    @property
    def completed(self) -> bool:
        return self.current >= self.target


class RequiredWordMastery(CamelModel):
    min_words: int = Field(..., ge=0)
    mastery_threshold: float = Field(..., ge=0, le=100)  # percent


class LevelDefinition(CamelModel):
    """Static description of one curriculum level."""
    level: int = Field(..., ge=MIN_LEVEL, le=MAX_LEVEL)
    required_score: float = Field(default=80, ge=0, le=100)
    jlpt_level: JLPTLevel
    description: str = ""
    practice_categories: list[str] = []
    required_word_mastery: RequiredWordMastery
    requirements: list[LevelRequirement] = []
