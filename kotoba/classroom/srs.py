"""
SRS scheduling - Spaced-repetition tiers and review dates.

A word's mastery_level is its SRS tier (0-5). A correct review promotes it
one tier, an incorrect review demotes it one tier, and the next review is
scheduled after the interval of the new tier.

All functions here are pure: they never modify their inputs.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from kotoba.config import DEFAULT_INTERVAL_HOURS
from kotoba.schemas import MAX_MASTERY_LEVEL, UserProgress, WordProgress


DEFAULT_INTERVALS: tuple[timedelta, ...] = tuple(
    timedelta(hours=hours) for hours in DEFAULT_INTERVAL_HOURS
)

RETENTION_WINDOW = timedelta(days=7)


def next_mastery_level(mastery_level: int, is_correct: bool) -> int:
    if is_correct:
        return min(mastery_level + 1, MAX_MASTERY_LEVEL)
    return max(mastery_level - 1, 0)


def interval_for(mastery_level: int, intervals: Sequence[timedelta] = DEFAULT_INTERVALS) -> timedelta:
    """Review interval of a tier; tiers past the table use its last entry."""
    if not intervals:
        raise ValueError("Interval table is empty")
    return intervals[min(mastery_level, len(intervals) - 1)]


def schedule_review(
    progress: WordProgress,
    is_correct: bool,
    now: datetime,
    intervals: Sequence[timedelta] = DEFAULT_INTERVALS,
) -> WordProgress:
    """
    Apply one review outcome to a word.

    Args:
        progress: Current progress of the word
        is_correct: Whether the learner recalled the word
        now: Review time
        intervals: Review interval per tier (tier 0 first)

    Returns:
        New WordProgress with updated tier, counters and next review date.
        The coarse mastered flag is carried over unchanged.
    """
    new_level = next_mastery_level(progress.mastery_level, is_correct)
    return progress.model_copy(update={
        "mastery_level": new_level,
        "next_review_date": now + interval_for(new_level, intervals),
        "correct_attempts": progress.correct_attempts + (1 if is_correct else 0),
        "incorrect_attempts": progress.incorrect_attempts + (0 if is_correct else 1),
        "last_reviewed": now,
        "last_practiced": now,
    })


def is_due(progress: WordProgress, now: datetime) -> bool:
    return progress.next_review_date <= now


def reset_progress(progress: WordProgress, now: datetime) -> WordProgress:
    """Send a word back to tier 0, due immediately. Attempt history is kept."""
    return progress.model_copy(update={
        "mastery_level": 0,
        "next_review_date": now,
    })


def get_due_words(
    user_progress: UserProgress,
    now: datetime,
    word_ids: Optional[Iterable[str]] = None,
) -> list[WordProgress]:
    """
    Words due for review, most overdue first.

    Args:
        user_progress: Learner progress
        now: Reference time
        word_ids: Optional restriction (e.g. the words of one level)
    """
    if word_ids is None:
        candidates = user_progress.word_progress.values()
    else:
        candidates = [
            user_progress.word_progress[wid] for wid in word_ids
            if wid in user_progress.word_progress
        ]
    due = [p for p in candidates if is_due(p, now)]
    return sorted(due, key=lambda p: (p.next_review_date, p.word_id))


@dataclass
class ReviewStats:
    total_items: int
    due_items: int
    new_items: int        # tier 0
    learning_items: int   # tier 1
    review_items: int     # tier 2+
    total_reviews: int
    retention_rate: float


def review_stats(user_progress: UserProgress, now: datetime) -> ReviewStats:
    """
    Summarize the learner's review queue.

    Retention rate is the fraction of words reviewed in the last seven days
    whose tier is above 0.
    """
    items = list(user_progress.word_progress.values())

    recent = [
        p for p in items
        if p.last_reviewed is not None and now - p.last_reviewed < RETENTION_WINDOW
    ]
    retained = [p for p in recent if p.mastery_level > 0]

    return ReviewStats(
        total_items=len(items),
        due_items=sum(1 for p in items if is_due(p, now)),
        new_items=sum(1 for p in items if p.mastery_level == 0),
        learning_items=sum(1 for p in items if p.mastery_level == 1),
        review_items=sum(1 for p in items if p.mastery_level >= 2),
        total_reviews=sum(p.review_count for p in items),
        retention_rate=len(retained) / len(recent) if recent else 0.0,
    )
