"""
Progress events emitted by the level progression controller.

Consumers (achievements, UI refresh) subscribe to the controller and get
one event after every state transition, with a private copy of the
resulting progress.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from kotoba.schemas import UserProgress


logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    LOADED = "loaded"
    WORD_ANSWERED = "word_answered"
    WORD_REVIEWED = "word_reviewed"
    QUIZ_RECORDED = "quiz_recorded"
    JLPT_RECORDED = "jlpt_recorded"
    READING_RECORDED = "reading_recorded"
    LEVEL_COMPLETED = "level_completed"
    LEVEL_UNLOCKED = "level_unlocked"
    LEVEL_ADVANCED = "level_advanced"


@dataclass
class ProgressEvent:
    kind: EventKind
    at: datetime
    progress: UserProgress
    level: Optional[int] = None
    word_id: Optional[str] = None
    details: dict = field(default_factory=dict)


Listener = Callable[[ProgressEvent], None]


class EventBus:
    """Synchronous fan-out to registered listeners."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: ProgressEvent):
        """Call every listener with its own copy of the event's progress."""
        for listener in list(self._listeners):
            try:
                listener(replace(event, progress=event.progress.model_copy(deep=True)))
            except Exception:
                # A broken consumer must not undo the learner's action
                logger.exception(f"Listener failed on {event.kind.value} event")

    def __len__(self) -> int:
        return len(self._listeners)
