"""
Achievement tracking driven by progress events.

The tracker subscribes to a LevelProgressionController and recomputes
achievement progress from each event's copy of the learner's progress. It
keeps its own state and never writes back into UserProgress.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from kotoba.schemas import UserProgress

from .events import ProgressEvent


logger = logging.getLogger(__name__)


def _words_practiced(progress: UserProgress) -> int:
    return len(progress.word_progress)


def _words_mastered(progress: UserProgress) -> int:
    return sum(1 for wp in progress.word_progress.values() if wp.mastered)


def _levels_completed(progress: UserProgress) -> int:
    return sum(1 for lp in progress.levels if lp.completed)


def _perfect_quizzes(progress: UserProgress) -> int:
    return sum(1 for q in progress.quiz_history if q.score >= 100)


def _top_tier_words(progress: UserProgress) -> int:
    return sum(1 for wp in progress.word_progress.values() if wp.mastery_level >= 5)


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    requirement: int
    metric: Callable[[UserProgress], int]


ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement("first_word", "First Word", "Practice your first word", 1, _words_practiced),
    Achievement("vocab_beginner", "Vocabulary Beginner", "Master 10 words", 10, _words_mastered),
    Achievement("vocab_intermediate", "Vocabulary Intermediate", "Master 50 words", 50, _words_mastered),
    Achievement("vocab_advanced", "Vocabulary Advanced", "Master 100 words", 100, _words_mastered),
    Achievement("perfect_quiz", "Perfect Quiz", "Score 100% on a quiz", 1, _perfect_quizzes),
    Achievement("long_memory", "Long Memory", "Bring 10 words to the top review tier", 10, _top_tier_words),
    Achievement("level_complete", "Level Up", "Complete a level", 1, _levels_completed),
    Achievement("halfway", "Halfway There", "Complete 5 levels", 5, _levels_completed),
    Achievement("curriculum_master", "Curriculum Master", "Complete all 10 levels", 10, _levels_completed),
)


@dataclass
class AchievementState:
    progress: int = 0
    unlocked_at: Optional[datetime] = None

    @property
    def unlocked(self) -> bool:
        return self.unlocked_at is not None


class AchievementTracker:
    """Event listener that keeps achievement progress up to date."""

    def __init__(self, achievements: tuple[Achievement, ...] = ACHIEVEMENTS):
        self.achievements = {a.id: a for a in achievements}
        self.states = {a.id: AchievementState() for a in achievements}
        self.newly_unlocked: list[str] = []

    def __call__(self, event: ProgressEvent):
        self.update(event.progress, event.at)

    def update(self, progress: UserProgress, now: datetime) -> list[str]:
        """
        Recompute every achievement.

        Returns:
            IDs of achievements unlocked by this update
        """
        unlocked = []
        for achievement_id, achievement in self.achievements.items():
            state = self.states[achievement_id]
            state.progress = min(achievement.metric(progress), achievement.requirement)
            if not state.unlocked and state.progress >= achievement.requirement:
                state.unlocked_at = now
                unlocked.append(achievement_id)
                logger.info(f"Achievement unlocked: {achievement.title}")
        self.newly_unlocked.extend(unlocked)
        return unlocked

    def get_progress(self, achievement_id: str) -> int:
        state = self.states.get(achievement_id)
        return state.progress if state else 0

    def is_unlocked(self, achievement_id: str) -> bool:
        state = self.states.get(achievement_id)
        return bool(state and state.unlocked)

    def unlocked_achievements(self) -> list[Achievement]:
        return [self.achievements[aid] for aid, state in self.states.items() if state.unlocked]
