"""
Level requirement evaluation.

Each requirement's current count comes from the learner's history:
- quiz: quizzes for the level scoring 80 or more
- practice: the level's words with the mastered flag
- jlpt: JLPT tests at the level's JLPT tier scoring 70 or more
- reading: completed readings for the level

A level is completable when its word mastery meets the thresholds, every
requirement is met and its score reaches the required score.
"""

from dataclasses import dataclass, field
from typing import Optional

from kotoba.schemas import (
    LevelDefinition,
    RequirementProgress,
    RequirementType,
    UserProgress,
    WordMasteryStatus,
)

from .catalog import WordCatalog


QUIZ_PASS_SCORE = 80
JLPT_PASS_SCORE = 70

MASTERY_WEIGHT = 0.7
REQUIREMENT_WEIGHT = 0.3


@dataclass
class LevelEvaluation:
    """Result of evaluating one level against the learner's progress."""
    level: int
    word_mastery: WordMasteryStatus
    requirements: list[RequirementProgress] = field(default_factory=list)
    score: float = 0.0
    required_score: float = 0.0
    completable: bool = False

    @property
    def missing_requirements(self) -> list[RequirementProgress]:
        return [req for req in self.requirements if not req.completed]


def count_requirement(
    requirement_type: RequirementType,
    level: int,
    definition: LevelDefinition,
    user_progress: UserProgress,
    catalog: WordCatalog,
) -> int:
    """Current count for one requirement type."""
    if requirement_type == RequirementType.QUIZ:
        return sum(
            1 for q in user_progress.quiz_history
            if q.level == level and q.score >= QUIZ_PASS_SCORE
        )
    if requirement_type == RequirementType.PRACTICE:
        level_ids = catalog.get_word_ids_for_level(level)
        return sum(
            1 for wid, wp in user_progress.word_progress.items()
            if wp.mastered and wid in level_ids
        )
    if requirement_type == RequirementType.JLPT:
        return sum(
            1 for t in user_progress.jlpt_tests
            if t.level == definition.jlpt_level and t.score >= JLPT_PASS_SCORE
        )
    if requirement_type == RequirementType.READING:
        return sum(
            1 for r in user_progress.reading_practice
            if r.level == level and r.completed
        )
    raise ValueError(f"Unknown requirement type: {requirement_type}")


def evaluate_requirements(
    definition: Optional[LevelDefinition],
    user_progress: UserProgress,
    catalog: WordCatalog,
) -> list[RequirementProgress]:
    """Every requirement of a level with its current count."""
    if definition is None:
        return []
    return [
        RequirementProgress(
            type=req.type,
            target=req.target,
            description=req.description,
            current=count_requirement(req.type, definition.level, definition, user_progress, catalog),
        )
        for req in definition.requirements
    ]


def calculate_level_score(
    word_mastery: WordMasteryStatus,
    requirements: list[RequirementProgress],
) -> float:
    """
    Level score: 70% word mastery percentage, 30% share of met requirements.

    A level with no requirements counts its requirement share as fully met.
    """
    if requirements:
        completed = sum(1 for req in requirements if req.completed)
        requirement_pct = completed * 100 / len(requirements)
    else:
        requirement_pct = 100.0
    return MASTERY_WEIGHT * word_mastery.mastery_percentage + REQUIREMENT_WEIGHT * requirement_pct


def is_level_completable(
    word_mastery: WordMasteryStatus,
    requirements: list[RequirementProgress],
    score: float,
    required_score: float,
) -> bool:
    return (
        word_mastery.meets_requirements
        and all(req.completed for req in requirements)
        and score >= required_score
    )


def evaluate_level(
    level: int,
    definition: Optional[LevelDefinition],
    word_mastery: WordMasteryStatus,
    user_progress: UserProgress,
    catalog: WordCatalog,
) -> LevelEvaluation:
    """
    Evaluate a level given its (already computed) word mastery.

    Levels without a definition are never completable.
    """
    if definition is None:
        return LevelEvaluation(level=level, word_mastery=WordMasteryStatus())

    requirements = evaluate_requirements(definition, user_progress, catalog)
    score = calculate_level_score(word_mastery, requirements)
    return LevelEvaluation(
        level=level,
        word_mastery=word_mastery,
        requirements=requirements,
        score=score,
        required_score=definition.required_score,
        completable=is_level_completable(
            word_mastery, requirements, score, definition.required_score
        ),
    )
