"""Tests for LevelProgressionController."""

import threading
from datetime import timedelta

import pytest

from kotoba.classroom import (
    AchievementTracker,
    EventKind,
    LevelProgressionController,
    MemoryProgressStore,
    record_answer,
)
from kotoba.config import EngineSettings
from kotoba.errors import ProgressNotLoadedError
from kotoba.schemas import LevelStatus, RequirementType, WordProgress, default_user_progress

from conftest import BASE_TIME, answer, master_words


LEVEL_ONE = ["L1-000", "L1-001"]


def complete_level_one(controller):
    master_words(controller, LEVEL_ONE)
    controller.update_quiz_progress(1, 85)


def make_controller(catalog, definitions, store, clock, **settings):
    ctrl = LevelProgressionController(
        catalog, store, EngineSettings(**settings), definitions=definitions, clock=clock,
    )
    ctrl.load()
    return ctrl


class TestRecordAnswer:

    def test_fifth_correct_sets_mastered(self):
        progress = WordProgress.new("w1", BASE_TIME)
        for _ in range(4):
            progress = record_answer(progress, True, BASE_TIME)
        assert progress.mastered is False
        progress = record_answer(progress, True, BASE_TIME)
        assert progress.mastered is True
        assert progress.mastery_level == 0

    def test_third_incorrect_clears_mastered(self):
        progress = WordProgress(word_id="w1", correct_attempts=7, mastered=True,
                                last_practiced=BASE_TIME, next_review_date=BASE_TIME)
        progress = record_answer(progress, False, BASE_TIME)
        progress = record_answer(progress, False, BASE_TIME)
        assert progress.mastered is True
        progress = record_answer(progress, False, BASE_TIME)
        assert progress.mastered is False

        progress = record_answer(progress, True, BASE_TIME)
        assert progress.mastered is True

    def test_updates_last_practiced(self):
        later = BASE_TIME + timedelta(hours=3)
        progress = record_answer(WordProgress.new("w1", BASE_TIME), False, later)
        assert progress.last_practiced == later
        assert progress.incorrect_attempts == 1


class TestLoading:

    def test_operations_before_load_raise(self, small_catalog, simple_definitions, store, clock):
        ctrl = LevelProgressionController(small_catalog, store, definitions=simple_definitions, clock=clock)
        assert ctrl.is_ready is False
        with pytest.raises(ProgressNotLoadedError):
            ctrl.update_word_progress("L1-000", True)
        with pytest.raises(ProgressNotLoadedError):
            ctrl.advance_level()
        with pytest.raises(ProgressNotLoadedError):
            ctrl.get_level_status(1)
        with pytest.raises(ProgressNotLoadedError):
            _ = ctrl.current_level
        assert store.save_count == 0

    def test_defaults_when_store_empty(self, controller, store):
        assert controller.is_ready
        assert controller.current_level == 1
        assert controller.unlocked_levels == [1]
        assert controller.get_level_status(1) == LevelStatus.UNLOCKED
        assert controller.get_level_status(2) == LevelStatus.LOCKED
        assert controller.get_level_progress(1).total_words == 5
        assert store.save_count == 0

    def test_corrupt_store_falls_back_to_defaults(self, small_catalog, simple_definitions, clock):
        ctrl = make_controller(small_catalog, simple_definitions, MemoryProgressStore("garbage"), clock)
        assert ctrl.current_level == 1
        assert ctrl.snapshot().word_progress == {}

    def test_resumes_saved_progress(self, controller, small_catalog, simple_definitions, store, clock):
        answer(controller, "L1-000", True, times=3)
        resumed = make_controller(small_catalog, simple_definitions, store, clock)
        assert resumed.get_word_progress("L1-000").correct_attempts == 3

    def test_current_level_unlocked_on_load(self, small_catalog, simple_definitions, clock):
        stored = default_user_progress(BASE_TIME)
        stored.current_level = 3
        store = MemoryProgressStore()
        store.save(stored)

        ctrl = make_controller(small_catalog, simple_definitions, store, clock)
        assert ctrl.get_level_status(3) == LevelStatus.UNLOCKED
        assert ctrl.get_level_status(2) == LevelStatus.LOCKED


class TestWordActions:

    def test_update_word_progress(self, controller, store):
        updated = controller.update_word_progress("L1-000", True)
        assert updated.correct_attempts == 1
        assert controller.get_word_progress("L1-000").correct_attempts == 1
        assert store.save_count == 1

    def test_returned_copy_is_detached(self, controller):
        updated = controller.update_word_progress("L1-000", True)
        updated.correct_attempts = 99
        assert controller.get_word_progress("L1-000").correct_attempts == 1

    def test_unknown_word_is_tracked(self, controller):
        controller.update_word_progress("not-in-catalog", True)
        assert controller.get_word_progress("not-in-catalog").correct_attempts == 1
        assert controller.get_word_mastery().mastered_words == 0

    def test_never_seen_word(self, controller):
        assert controller.get_word_progress("L1-004") is None

    def test_mastery_tracks_answers(self, controller):
        master_words(controller, LEVEL_ONE)
        mastery = controller.get_word_mastery()
        assert mastery.mastered_words == 2
        assert mastery.total_words == 5
        assert mastery.mastery_percentage == 40
        assert mastery.meets_requirements is True
        assert controller.get_level_progress(1).words_mastered == 2

    def test_handle_review_schedules_next_review(self, controller, clock):
        updated = controller.handle_review("L1-000", True)
        assert updated.mastery_level == 1
        assert updated.next_review_date == BASE_TIME + timedelta(hours=12)
        assert updated.correct_attempts == 1
        assert controller.get_due_words() == []

        clock.advance(hours=12)
        assert [p.word_id for p in controller.get_due_words()] == ["L1-000"]
        assert controller.get_due_words(level=2) == []

    def test_handle_review_uses_configured_intervals(self, small_catalog, simple_definitions, store, clock):
        ctrl = make_controller(small_catalog, simple_definitions, store, clock,
                               srs_intervals_hours=[1, 2, 3, 4, 5, 6])
        assert ctrl.handle_review("L1-000", True).next_review_date == BASE_TIME + timedelta(hours=2)

    def test_handle_review_leaves_mastered_flag(self, controller):
        answer(controller, "L1-000", True, times=5)
        for _ in range(3):
            controller.handle_review("L1-000", False)
        assert controller.get_word_progress("L1-000").mastered is True

    def test_review_stats_and_breakdown(self, controller):
        controller.handle_review("L1-000", True)
        controller.update_word_progress("L1-001", True)
        stats = controller.get_review_stats()
        assert stats.total_items == 2
        assert stats.learning_items == 1
        assert stats.new_items == 1

        breakdown = controller.get_tier_breakdown(1)
        assert breakdown.tiers[1] == 1
        assert breakdown.tiers[0] == 4


class TestLevelCompletion:

    def test_mastery_alone_does_not_complete(self, controller):
        master_words(controller, LEVEL_ONE)
        assert controller.get_level_status(1) == LevelStatus.UNLOCKED
        assert controller.can_advance_level() is False
        [quiz] = controller.get_level_requirements(1)
        assert quiz.type == RequirementType.QUIZ
        assert quiz.completed is False

    def test_completion_auto_unlocks_next_level_only(self, controller):
        complete_level_one(controller)
        assert controller.get_level_status(1) == LevelStatus.COMPLETED
        assert controller.get_level_status(2) == LevelStatus.UNLOCKED
        assert controller.get_level_status(3) == LevelStatus.LOCKED
        assert controller.current_level == 1
        assert controller.can_advance_level() is True

        level_one = controller.get_level_progress(1)
        assert level_one.completed_at == BASE_TIME
        assert level_one.score == pytest.approx(58.0)
        assert controller.snapshot().total_score == pytest.approx(58.0)

    def test_no_auto_unlock(self, small_catalog, simple_definitions, store, clock):
        ctrl = make_controller(small_catalog, simple_definitions, store, clock, auto_unlock=False)
        complete_level_one(ctrl)
        assert ctrl.get_level_status(1) == LevelStatus.COMPLETED
        assert ctrl.unlocked_levels == [1]

        assert ctrl.advance_level() is True
        assert ctrl.unlocked_levels == [1, 2]

    def test_completion_is_latched(self, controller):
        complete_level_one(controller)
        answer(controller, "L1-000", False, times=3)
        assert controller.get_word_progress("L1-000").mastered is False
        assert controller.can_advance_level() is False
        assert controller.get_level_status(1) == LevelStatus.COMPLETED

    def test_required_score_gates_completion(self, small_catalog, simple_definitions, store, clock):
        simple_definitions[1] = simple_definitions[1].model_copy(update={"required_score": 80})
        ctrl = make_controller(small_catalog, simple_definitions, store, clock)
        complete_level_one(ctrl)
        assert ctrl.get_level_status(1) == LevelStatus.UNLOCKED

        master_words(ctrl, ["L1-002", "L1-003"])
        assert ctrl.get_level_evaluation(1).score == pytest.approx(0.7 * 80 + 30)
        assert ctrl.get_level_status(1) == LevelStatus.COMPLETED


class TestLevelActions:

    def test_advance_requires_completable_level(self, controller):
        assert controller.advance_level() is False
        assert controller.current_level == 1

    def test_advance_moves_one_level(self, controller):
        complete_level_one(controller)
        assert controller.advance_level() is True
        assert controller.current_level == 2
        assert controller.get_level_status(1) == LevelStatus.COMPLETED
        assert controller.get_level_status(2) == LevelStatus.UNLOCKED
        assert controller.get_current_level_data().level == 2
        assert [w.level for w in controller.get_words_for_current_level()] == [2] * 5

        assert controller.advance_level() is False
        assert controller.current_level == 2

    def test_advance_stops_at_last_level(self, small_catalog, simple_definitions, clock):
        stored = default_user_progress(BASE_TIME)
        stored.current_level = 10
        store = MemoryProgressStore()
        store.save(stored)

        ctrl = make_controller(small_catalog, simple_definitions, store, clock)
        assert ctrl.advance_level() is False
        assert ctrl.current_level == 10

    def test_manual_unlock(self, controller, store):
        assert controller.unlock_level(4) is True
        assert controller.get_level_status(4) == LevelStatus.UNLOCKED
        assert controller.unlock_level(4) is False
        assert controller.unlock_level(1) is False
        assert store.save_count == 1

    def test_unlocks_never_revert(self, controller):
        controller.unlock_level(3)
        answer(controller, "L1-000", False, times=4)
        controller.update_quiz_progress(1, 10)
        assert controller.unlocked_levels == [1, 3]

    def test_out_of_range_levels_are_neutral(self, controller):
        assert controller.unlock_level(0) is False
        assert controller.unlock_level(11) is False
        assert controller.get_level_progress(11) is None
        assert controller.get_level_status(11) == LevelStatus.LOCKED
        assert controller.get_word_mastery_for_level(11).total_words == 0
        assert controller.can_advance_to_next_level(0) is False

    def test_history_recording(self, controller, clock):
        controller.update_quiz_progress(1, 90)
        assert controller.update_jlpt_progress("N5", 75).level.value == "N5"
        assert controller.update_jlpt_progress("N6", 75) is None
        reading = controller.update_reading_progress(1, True, date=BASE_TIME - timedelta(days=1))
        assert reading.date == BASE_TIME - timedelta(days=1)

        snapshot = controller.snapshot()
        assert len(snapshot.quiz_history) == 1
        assert len(snapshot.jlpt_tests) == 1
        assert len(snapshot.reading_practice) == 1
        assert snapshot.quiz_history[0].date == clock.now


    def test_current_level_data_is_a_copy(self, controller):
        definition = controller.get_current_level_data()
        definition.required_score = 100
        definition.requirements.clear()

        fresh = controller.get_current_level_data()
        assert fresh.required_score == 0
        assert len(fresh.requirements) == 1
        assert controller.definitions[1].required_score == 0


class TestEvents:

    def test_completion_events(self, controller):
        kinds = []
        controller.subscribe(lambda event: kinds.append(event.kind))
        master_words(controller, LEVEL_ONE)
        kinds.clear()

        controller.update_quiz_progress(1, 85)
        assert kinds == [EventKind.QUIZ_RECORDED, EventKind.LEVEL_COMPLETED, EventKind.LEVEL_UNLOCKED]

        kinds.clear()
        controller.advance_level()
        assert kinds == [EventKind.LEVEL_ADVANCED]

    def test_listener_gets_copy_of_progress(self, controller):
        received = []
        controller.subscribe(received.append)
        controller.update_word_progress("L1-000", True)

        [event] = received
        assert event.word_id == "L1-000"
        assert event.progress.word_progress["L1-000"].correct_attempts == 1
        event.progress.current_level = 5
        assert controller.current_level == 1

    def test_unsubscribe(self, controller):
        received = []
        unsubscribe = controller.subscribe(received.append)
        unsubscribe()
        controller.update_word_progress("L1-000", True)
        assert received == []

    def test_failing_listener_does_not_abort(self, controller):
        def broken(event):
            raise RuntimeError("boom")

        received = []
        controller.subscribe(broken)
        controller.subscribe(received.append)
        controller.update_word_progress("L1-000", True)

        assert len(received) == 1
        assert controller.get_word_progress("L1-000").correct_attempts == 1

    def test_achievement_tracker(self, controller):
        tracker = AchievementTracker()
        controller.subscribe(tracker)
        complete_level_one(controller)
        controller.update_quiz_progress(1, 100)

        assert tracker.is_unlocked("first_word")
        assert tracker.is_unlocked("level_complete")
        assert tracker.is_unlocked("perfect_quiz")
        assert not tracker.is_unlocked("vocab_beginner")
        assert tracker.get_progress("vocab_beginner") == 2
        assert tracker.newly_unlocked.count("first_word") == 1


class TestPersistenceAndConcurrency:

    def test_autosave_disabled(self, small_catalog, simple_definitions, store, clock):
        ctrl = LevelProgressionController(
            small_catalog, store, definitions=simple_definitions, clock=clock, autosave=False,
        )
        ctrl.load()
        ctrl.update_word_progress("L1-000", True)
        assert store.save_count == 0
        ctrl.save()
        assert store.save_count == 1

    def test_concurrent_answers_are_all_applied(self, controller):
        def worker():
            for _ in range(25):
                controller.update_word_progress("L1-000", True)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert controller.get_word_progress("L1-000").correct_attempts == 100

    def test_listeners_notified_when_autosave_fails(self, small_catalog, simple_definitions, clock):
        class BrokenStore(MemoryProgressStore):
            def save(self, progress):
                raise OSError("disk full")

        ctrl = make_controller(small_catalog, simple_definitions, BrokenStore(), clock)
        received = []
        ctrl.subscribe(received.append)

        with pytest.raises(OSError):
            ctrl.update_word_progress("L1-000", True)

        assert [event.kind for event in received] == [EventKind.WORD_ANSWERED]
        assert received[0].progress.word_progress["L1-000"].correct_attempts == 1
