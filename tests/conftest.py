"""Shared fixtures for Kotoba tests."""

from datetime import datetime, timedelta

import pytest

from kotoba.classroom import (
    LevelProgressionController,
    MemoryProgressStore,
    WordCatalog,
)
from kotoba.config import EngineSettings
from kotoba.schemas import (
    JLPTLevel,
    LevelDefinition,
    LevelRequirement,
    RequiredWordMastery,
    RequirementType,
    UserProgress,
    Word,
    WordProgress,
    default_user_progress,
)


BASE_TIME = datetime(2024, 1, 1, 9, 0)


class FakeClock:
    """Controllable time source."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def make_word(level: int, index: int, category: str = "greeting", jlpt: str = "N5") -> Word:
    return Word(
        id=f"L{level}-{index:03d}",
        japanese=f"語{level}-{index}",
        english=f"word {level}-{index}",
        romaji=f"go{level}-{index}",
        level=level,
        category=category,
        jlpt_level=jlpt,
    )


def make_catalog(sizes: dict[int, int]) -> WordCatalog:
    return WordCatalog.from_words(
        make_word(level, i) for level, count in sizes.items() for i in range(count)
    )


def simple_definition(
    level: int,
    min_words: int = 2,
    threshold: float = 40,
    required_score: float = 0,
    requirements: list[LevelRequirement] | None = None,
) -> LevelDefinition:
    return LevelDefinition(
        level=level,
        required_score=required_score,
        jlpt_level=JLPTLevel.N5,
        required_word_mastery=RequiredWordMastery(min_words=min_words, mastery_threshold=threshold),
        requirements=requirements if requirements is not None else [
            LevelRequirement(type=RequirementType.QUIZ, target=1),
        ],
    )


def mastered_progress(word_id: str, now: datetime = BASE_TIME) -> WordProgress:
    return WordProgress(
        word_id=word_id,
        correct_attempts=5,
        mastered=True,
        last_practiced=now,
        next_review_date=now,
    )


def progress_with_mastered(catalog: WordCatalog, level: int, count: int) -> UserProgress:
    progress = default_user_progress(BASE_TIME, catalog.level_sizes())
    for word in catalog.get_words_for_level(level)[:count]:
        progress.word_progress[word.id] = mastered_progress(word.id)
    return progress


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def small_catalog():
    """Five words in each of levels 1-3, nothing above."""
    return make_catalog({1: 5, 2: 5, 3: 5})


@pytest.fixture
def simple_definitions():
    """Levels 1-10: master 2 words (40%) and pass one quiz."""
    return {level: simple_definition(level) for level in range(1, 11)}


@pytest.fixture
def store():
    return MemoryProgressStore()


@pytest.fixture
def controller(small_catalog, simple_definitions, store, clock):
    ctrl = LevelProgressionController(
        small_catalog,
        store,
        EngineSettings(auto_unlock=True),
        definitions=simple_definitions,
        clock=clock,
    )
    ctrl.load()
    return ctrl


def answer(controller: LevelProgressionController, word_id: str, is_correct: bool, times: int = 1):
    for _ in range(times):
        controller.update_word_progress(word_id, is_correct)


def master_words(controller: LevelProgressionController, word_ids):
    for word_id in word_ids:
        answer(controller, word_id, True, times=5)
