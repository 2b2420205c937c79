"""
Kotoba Schemas - Pydantic models for the vocabulary progression engine.

This module exports all schema classes for:
- Word: catalog vocabulary items, JLPT tiers, difficulty bands
- Levels: level definitions and requirements
- Progress: word, level and learner progress
"""

# Word schemas
from .word import (
    Word,
    JLPTLevel,
    Difficulty,
    MIN_LEVEL,
    MAX_LEVEL,
    difficulty_for_level,
    is_valid_level,
)

# Level schemas
from .levels import (
    RequirementType,
    LevelRequirement,
    RequirementProgress,
    RequiredWordMastery,
    LevelDefinition,
)

# Progress schemas
from .progress import (
    LevelStatus,
    WordProgress,
    WordMasteryStatus,
    LevelProgress,
    QuizAttempt,
    JLPTTest,
    ReadingPractice,
    UserProgress,
    MAX_MASTERY_LEVEL,
    default_user_progress,
)

__all__ = [
    # Word
    'Word',
    'JLPTLevel',
    'Difficulty',
    'MIN_LEVEL',
    'MAX_LEVEL',
    'difficulty_for_level',
    'is_valid_level',
    # Levels
    'RequirementType',
    'LevelRequirement',
    'RequirementProgress',
    'RequiredWordMastery',
    'LevelDefinition',
    # Progress
    'LevelStatus',
    'WordProgress',
    'WordMasteryStatus',
    'LevelProgress',
    'QuizAttempt',
    'JLPTTest',
    'ReadingPractice',
    'UserProgress',
    'MAX_MASTERY_LEVEL',
    'default_user_progress',
]
