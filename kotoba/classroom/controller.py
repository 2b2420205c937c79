"""
LevelProgressionController - Drives a learner through the ten levels.

Combines the WordCatalog (content), a progress store (user state), the
mastery calculator, the requirement evaluator and the SRS scheduler:
- Records word answers, SRS reviews and quiz/JLPT/reading results
- Recomputes the current level's mastery and score after every action
- Latches level completion, unlocks and advances levels
- Emits a ProgressEvent after every state transition

Per-level state is locked -> unlocked -> completed. "In progress" is not
stored; it is an unlocked level that is not completed.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from kotoba.config import EngineSettings
from kotoba.errors import ProgressNotLoadedError
from kotoba.schemas import (
    JLPTLevel,
    JLPTTest,
    LevelDefinition,
    LevelProgress,
    LevelStatus,
    MAX_LEVEL,
    MIN_LEVEL,
    QuizAttempt,
    ReadingPractice,
    RequirementProgress,
    UserProgress,
    Word,
    WordMasteryStatus,
    WordProgress,
    default_user_progress,
    is_valid_level,
)

from .catalog import WordCatalog
from .curriculum import build_level_definitions
from .events import EventBus, EventKind, Listener, ProgressEvent
from .mastery import MasteryCache, TierBreakdown, level_mastery_breakdown
from .requirements import LevelEvaluation, evaluate_level
from .srs import ReviewStats, get_due_words, review_stats, schedule_review
from .store import ProgressStore


logger = logging.getLogger(__name__)

MASTERED_CORRECT_ATTEMPTS = 5
DEMOTION_INCORRECT_ATTEMPTS = 3


def record_answer(progress: WordProgress, is_correct: bool, now: datetime) -> WordProgress:
    """
    Apply a practice answer to the coarse mastered flag.

    A correct answer sets mastered once correct attempts reach 5. An
    incorrect answer clears mastered once incorrect attempts reach 3, even
    if correct attempts are at 5 or more; a later correct answer can set it
    again. The SRS tier is not touched.
    """
    if is_correct:
        correct = progress.correct_attempts + 1
        return progress.model_copy(update={
            "correct_attempts": correct,
            "mastered": correct >= MASTERED_CORRECT_ATTEMPTS,
            "last_practiced": now,
        })

    incorrect = progress.incorrect_attempts + 1
    mastered = progress.mastered and incorrect < DEMOTION_INCORRECT_ATTEMPTS
    return progress.model_copy(update={
        "incorrect_attempts": incorrect,
        "mastered": mastered,
        "last_practiced": now,
    })


class LevelProgressionController:
    """
    Single writer for one learner's UserProgress.

    Every action is one read-compute-write transition under a lock, so
    concurrent callers are applied one after the other. Nothing can be read
    or changed until load() has run; before that every method raises
    ProgressNotLoadedError.
    """

    def __init__(
        self,
        catalog: WordCatalog,
        store: ProgressStore,
        settings: Optional[EngineSettings] = None,
        definitions: Optional[dict[int, LevelDefinition]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        autosave: bool = True,
    ):
        """
        Initialize controller.

        Args:
            catalog: WordCatalog instance for content access
            store: Progress store used by load() and save()
            settings: Engine settings (auto-unlock, SRS intervals)
            definitions: Level definitions (default: built from the catalog)
            clock: Source of the current time (default: datetime.now)
            autosave: Save to the store after every transition
        """
        self.catalog = catalog
        self.store = store
        self.settings = settings or EngineSettings()
        self.definitions = definitions if definitions is not None else build_level_definitions(catalog)
        self.autosave = autosave
        self._clock = clock or datetime.now
        self._progress: Optional[UserProgress] = None
        self._cache = MasteryCache(catalog, self.definitions)
        self._events = EventBus()
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_ready(self) -> bool:
        return self._progress is not None

    def _require(self, operation: str) -> UserProgress:
        if self._progress is None:
            raise ProgressNotLoadedError(operation)
        return self._progress

    def load(self) -> UserProgress:
        """
        Load progress from the store, falling back to the default progress
        when nothing usable is stored.

        Returns:
            A copy of the loaded progress
        """
        with self._lock:
            now = self._clock()
            progress = self.store.load()
            if progress is None:
                logger.info("No stored progress, starting from defaults")
                progress = default_user_progress(now, self.catalog.level_sizes())
            self._reconcile(progress, now)

            self._progress = progress
            self._cache.invalidate()

            events = [self._event(EventKind.LOADED, now, level=progress.current_level)]
            events.extend(self._refresh_current_level(progress, now))
            self._finish(progress, now, events, save=False)
            return progress.model_copy(deep=True)

    def _reconcile(self, progress: UserProgress, now: datetime):
        """Make stored level records match the catalog and the unlock rules."""
        sizes = self.catalog.level_sizes()
        by_level = {lp.level: lp for lp in progress.levels}

        for level in range(MIN_LEVEL, MAX_LEVEL + 1):
            if level not in by_level:
                by_level[level] = LevelProgress(
                    level=level,
                    word_mastery=WordMasteryStatus(total_words=sizes.get(level, 0)),
                )
            by_level[level].total_words = sizes.get(level, 0)

        progress.levels = [by_level[level] for level in sorted(by_level)]

        for level in (MIN_LEVEL, progress.current_level):
            level_progress = by_level[level]
            if level_progress.unlocked_at is None:
                level_progress.unlocked_at = now

    def save(self):
        """Persist the current progress to the store."""
        with self._lock:
            progress = self._require("save")
            self.store.save(progress)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a read-only listener for progress events; returns an unsubscribe function."""
        return self._events.subscribe(listener)

    # -------------------------------------------------------------------------
    # Transition helpers
    # -------------------------------------------------------------------------

    def _event(self, kind: EventKind, now: datetime, **kwargs) -> ProgressEvent:
        return ProgressEvent(kind=kind, at=now, progress=self._progress, **kwargs)

    def _evaluate(self, level: int, progress: UserProgress) -> LevelEvaluation:
        word_mastery = self._cache.get(level, progress)
        return evaluate_level(
            level, self.definitions.get(level), word_mastery, progress, self.catalog
        )

    def _snapshot_level(self, level_progress: LevelProgress, evaluation: LevelEvaluation):
        level_progress.word_mastery = evaluation.word_mastery
        level_progress.words_mastered = evaluation.word_mastery.mastered_words
        level_progress.total_words = self.catalog.level_sizes().get(level_progress.level, 0)
        level_progress.score = evaluation.score

    def _unlock(self, progress: UserProgress, level: int, now: datetime) -> bool:
        """Stamp unlockedAt if the level is still locked; returns True if it was."""
        level_progress = progress.get_level(level)
        if level_progress is None or level_progress.unlocked_at is not None:
            return False
        level_progress.unlocked_at = now
        logger.info(f"Unlocked level {level}")
        return True

    def _refresh_current_level(self, progress: UserProgress, now: datetime) -> list[ProgressEvent]:
        """
        Recompute the current level and latch completion when it is
        completable. With auto-unlock, completing a level unlocks the next one.
        """
        events: list[ProgressEvent] = []
        level = progress.current_level
        level_progress = progress.get_level(level)
        if level_progress is None:
            return events

        evaluation = self._evaluate(level, progress)
        self._snapshot_level(level_progress, evaluation)

        if evaluation.completable and not level_progress.completed:
            level_progress.completed = True
            level_progress.completed_at = now
            logger.info(f"Level {level} completed with score {evaluation.score:.1f}")
            events.append(self._event(EventKind.LEVEL_COMPLETED, now, level=level))

            next_level = level + 1
            if self.settings.auto_unlock and is_valid_level(next_level):
                if self._unlock(progress, next_level, now):
                    events.append(self._event(
                        EventKind.LEVEL_UNLOCKED, now, level=next_level,
                        details={"auto": True},
                    ))
        return events

    def _finish(
        self,
        progress: UserProgress,
        now: datetime,
        events: list[ProgressEvent],
        save: bool = True,
    ):
        progress.total_score = sum(lp.score for lp in progress.levels)
        progress.last_updated = now
        try:
            if save and self.autosave:
                self.store.save(progress)
        finally:
            for event in events:
                self._events.emit(event)

    # -------------------------------------------------------------------------
    # Word actions
    # -------------------------------------------------------------------------

    def _word_progress_for(self, progress: UserProgress, word_id: str, now: datetime) -> WordProgress:
        existing = progress.word_progress.get(word_id)
        if existing is not None:
            return existing
        if word_id not in self.catalog:
            logger.debug(f"Tracking word not in catalog: {word_id}")
        return WordProgress.new(word_id, now)

    def update_word_progress(self, word_id: str, is_correct: bool) -> WordProgress:
        """
        Record a practice answer and re-check the current level.

        Returns:
            A copy of the word's updated progress
        """
        with self._lock:
            progress = self._require("update_word_progress")
            now = self._clock()

            updated = record_answer(self._word_progress_for(progress, word_id, now), is_correct, now)
            progress.word_progress[word_id] = updated
            self._cache.invalidate()

            events = [self._event(
                EventKind.WORD_ANSWERED, now, word_id=word_id,
                level=self.catalog.level_of(word_id),
                details={"is_correct": is_correct, "mastered": updated.mastered},
            )]
            events.extend(self._refresh_current_level(progress, now))
            self._finish(progress, now, events)
            return updated.model_copy()

    def handle_review(self, word_id: str, is_correct: bool) -> WordProgress:
        """
        Record an SRS review: move the word one tier up or down and
        schedule its next review. The coarse mastered flag is unchanged.

        Returns:
            A copy of the word's updated progress
        """
        with self._lock:
            progress = self._require("handle_review")
            now = self._clock()

            current = self._word_progress_for(progress, word_id, now)
            updated = schedule_review(current, is_correct, now, self.settings.srs_intervals)
            progress.word_progress[word_id] = updated
            self._cache.invalidate()

            events = [self._event(
                EventKind.WORD_REVIEWED, now, word_id=word_id,
                level=self.catalog.level_of(word_id),
                details={
                    "is_correct": is_correct,
                    "mastery_level": updated.mastery_level,
                    "next_review_date": updated.next_review_date,
                },
            )]
            events.extend(self._refresh_current_level(progress, now))
            self._finish(progress, now, events)
            return updated.model_copy()

    # -------------------------------------------------------------------------
    # History events
    # -------------------------------------------------------------------------

    def update_quiz_progress(self, level: int, score: float, date: Optional[datetime] = None) -> QuizAttempt:
        """Append a quiz result."""
        with self._lock:
            progress = self._require("update_quiz_progress")
            now = self._clock()

            attempt = QuizAttempt(level=level, score=score, date=date or now)
            progress.quiz_history.append(attempt)

            events = [self._event(EventKind.QUIZ_RECORDED, now, level=level, details={"score": score})]
            events.extend(self._refresh_current_level(progress, now))
            self._finish(progress, now, events)
            return attempt.model_copy()

    def update_jlpt_progress(
        self,
        jlpt_level: JLPTLevel | str,
        score: float,
        date: Optional[datetime] = None,
    ) -> Optional[JLPTTest]:
        """Append a JLPT test result. Unknown JLPT tiers are ignored."""
        with self._lock:
            progress = self._require("update_jlpt_progress")
            now = self._clock()

            try:
                tier = JLPTLevel(jlpt_level)
            except ValueError:
                logger.warning(f"Ignoring JLPT result for unknown tier {jlpt_level!r}")
                return None

            test = JLPTTest(level=tier, score=score, date=date or now)
            progress.jlpt_tests.append(test)

            events = [self._event(EventKind.JLPT_RECORDED, now, details={"jlpt_level": tier.value, "score": score})]
            events.extend(self._refresh_current_level(progress, now))
            self._finish(progress, now, events)
            return test.model_copy()

    def update_reading_progress(
        self,
        level: int,
        completed: bool,
        date: Optional[datetime] = None,
    ) -> ReadingPractice:
        """Append a reading practice result."""
        with self._lock:
            progress = self._require("update_reading_progress")
            now = self._clock()

            reading = ReadingPractice(level=level, completed=completed, date=date or now)
            progress.reading_practice.append(reading)

            events = [self._event(EventKind.READING_RECORDED, now, level=level, details={"completed": completed})]
            events.extend(self._refresh_current_level(progress, now))
            self._finish(progress, now, events)
            return reading.model_copy()

    # -------------------------------------------------------------------------
    # Level actions
    # -------------------------------------------------------------------------

    def unlock_level(self, level: int) -> bool:
        """
        Unlock a level. Out-of-range levels are ignored.

        Returns:
            True if the level was locked and is now unlocked
        """
        with self._lock:
            progress = self._require("unlock_level")
            if not is_valid_level(level):
                return False

            now = self._clock()
            if not self._unlock(progress, level, now):
                return False

            events = [self._event(EventKind.LEVEL_UNLOCKED, now, level=level, details={"auto": False})]
            self._finish(progress, now, events)
            return True

    def advance_level(self) -> bool:
        """
        Move to the next level if the current one can be advanced.

        Returns:
            True if current_level was incremented
        """
        with self._lock:
            progress = self._require("advance_level")
            level = progress.current_level
            next_level = level + 1
            if not is_valid_level(next_level) or not self._evaluate(level, progress).completable:
                return False

            now = self._clock()
            events: list[ProgressEvent] = []

            level_progress = progress.get_level(level)
            if not level_progress.completed:
                level_progress.completed = True
                level_progress.completed_at = now
                events.append(self._event(EventKind.LEVEL_COMPLETED, now, level=level))

            progress.current_level = next_level
            if self._unlock(progress, next_level, now):
                events.append(self._event(
                    EventKind.LEVEL_UNLOCKED, now, level=next_level, details={"auto": False},
                ))
            logger.info(f"Advanced from level {level} to {next_level}")
            events.append(self._event(
                EventKind.LEVEL_ADVANCED, now, level=next_level, details={"from_level": level},
            ))

            # Snapshots the new level's mastery and score
            events.extend(self._refresh_current_level(progress, now))
            self._finish(progress, now, events)
            return True

    # -------------------------------------------------------------------------
    # Read-only getters
    # -------------------------------------------------------------------------

    @property
    def current_level(self) -> int:
        with self._lock:
            return self._require("current_level").current_level

    @property
    def unlocked_levels(self) -> list[int]:
        with self._lock:
            return self._require("unlocked_levels").unlocked_levels

    def snapshot(self) -> UserProgress:
        """Deep copy of the full progress."""
        with self._lock:
            return self._require("snapshot").model_copy(deep=True)

    def get_level_progress(self, level: int) -> Optional[LevelProgress]:
        with self._lock:
            level_progress = self._require("get_level_progress").get_level(level)
            return level_progress.model_copy(deep=True) if level_progress else None

    def get_level_status(self, level: int) -> LevelStatus:
        with self._lock:
            level_progress = self._require("get_level_status").get_level(level)
            return level_progress.status if level_progress else LevelStatus.LOCKED

    def get_word_progress(self, word_id: str) -> Optional[WordProgress]:
        with self._lock:
            word_progress = self._require("get_word_progress").word_progress.get(word_id)
            return word_progress.model_copy() if word_progress else None

    def get_word_mastery(self) -> WordMasteryStatus:
        """Word mastery of the current level."""
        with self._lock:
            progress = self._require("get_word_mastery")
            return self._cache.get(progress.current_level, progress)

    def get_word_mastery_for_level(self, level: int) -> WordMasteryStatus:
        with self._lock:
            progress = self._require("get_word_mastery_for_level")
            if not is_valid_level(level):
                return WordMasteryStatus()
            return self._cache.get(level, progress)

    def get_level_evaluation(self, level: int) -> LevelEvaluation:
        with self._lock:
            return self._evaluate(level, self._require("get_level_evaluation"))

    def get_level_requirements(self, level: int) -> list[RequirementProgress]:
        return self.get_level_evaluation(level).requirements

    def can_advance_to_next_level(self, level: int) -> bool:
        """Whether a level meets every completion condition."""
        return self.get_level_evaluation(level).completable

    def can_advance_level(self) -> bool:
        """Whether the current level meets every completion condition."""
        with self._lock:
            return self.can_advance_to_next_level(self._require("can_advance_level").current_level)

    def get_current_level_data(self) -> Optional[LevelDefinition]:
        with self._lock:
            definition = self.definitions.get(self._require("get_current_level_data").current_level)
            return definition.model_copy(deep=True) if definition else None

    def get_words_for_current_level(self) -> list[Word]:
        with self._lock:
            return self.catalog.get_words_for_level(self._require("get_words_for_current_level").current_level)

    def get_due_words(self, now: Optional[datetime] = None, level: Optional[int] = None) -> list[WordProgress]:
        """Words due for SRS review, optionally limited to one level."""
        with self._lock:
            progress = self._require("get_due_words")
            word_ids = self.catalog.get_word_ids_for_level(level) if level is not None else None
            due = get_due_words(progress, now or self._clock(), word_ids)
            return [p.model_copy() for p in due]

    def get_review_stats(self, now: Optional[datetime] = None) -> ReviewStats:
        with self._lock:
            return review_stats(self._require("get_review_stats"), now or self._clock())

    def get_tier_breakdown(self, level: int) -> TierBreakdown:
        with self._lock:
            return level_mastery_breakdown(level, self._require("get_tier_breakdown"), self.catalog)
