"""
Kotoba Classroom - Runtime components for levels, mastery and reviews.

This module provides:
- WordCatalog: Read-only vocabulary grouped by level
- Progress stores: SQLite, JSON file and in-memory persistence
- Mastery, requirement and SRS calculations
- LevelProgressionController: Level completion, unlocking and advancement
- AchievementTracker: Event-driven achievement progress
"""

from .catalog import WordCatalog

from .curriculum import (
    LEVEL_DISTRIBUTION,
    distribute_words,
    build_level_definition,
    build_level_definitions,
    required_mastered_words,
)

from .store import (
    ProgressStore,
    SQLiteProgressStore,
    JSONFileProgressStore,
    MemoryProgressStore,
)

from .mastery import (
    calculate_word_mastery,
    level_mastery_breakdown,
    MasteryCache,
    TierBreakdown,
)

from .srs import (
    DEFAULT_INTERVALS,
    schedule_review,
    is_due,
    get_due_words,
    review_stats,
    reset_progress,
    ReviewStats,
)

from .requirements import (
    evaluate_requirements,
    evaluate_level,
    calculate_level_score,
    is_level_completable,
    LevelEvaluation,
)

from .events import (
    EventKind,
    ProgressEvent,
)

from .controller import (
    LevelProgressionController,
    record_answer,
)

from .achievements import (
    ACHIEVEMENTS,
    Achievement,
    AchievementTracker,
)

__all__ = [
    # Catalog
    "WordCatalog",
    # Curriculum
    "LEVEL_DISTRIBUTION",
    "distribute_words",
    "build_level_definition",
    "build_level_definitions",
    "required_mastered_words",
    # Stores
    "ProgressStore",
    "SQLiteProgressStore",
    "JSONFileProgressStore",
    "MemoryProgressStore",
    # Mastery
    "calculate_word_mastery",
    "level_mastery_breakdown",
    "MasteryCache",
    "TierBreakdown",
    # SRS
    "DEFAULT_INTERVALS",
    "schedule_review",
    "is_due",
    "get_due_words",
    "review_stats",
    "reset_progress",
    "ReviewStats",
    # Requirements
    "evaluate_requirements",
    "evaluate_level",
    "calculate_level_score",
    "is_level_completable",
    "LevelEvaluation",
    # Events
    "EventKind",
    "ProgressEvent",
    # Controller
    "LevelProgressionController",
    "record_answer",
    # Achievements
    "ACHIEVEMENTS",
    "Achievement",
    "AchievementTracker",
]
