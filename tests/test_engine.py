"""
WorkoutEngine behaviour under a virtual clock.

The ManualScheduler from conftest fires timers only inside ``advance()`` and
runs sink writes only inside ``run_pending()``.
"""

import dataclasses

import pytest

from catalyft.core.cursor import CursorMove
from catalyft.core.errors import InvalidStateError, PersistenceError, SetNotFoundError
from catalyft.core.models import Exercise, Performance
from catalyft.io.serializers import session_to_dict

from conftest import make_exercise, make_session


PERF = Performance(weight=60.0, reps=8, effort_rating=7)


class TestCompleteSet:
    def test_three_set_walkthrough(self, make_engine, scheduler):
        """One exercise with three sets, completed one after another."""
        finished = []
        engine = make_engine(make_session(3), on_sequence_complete=lambda: finished.append(True))

        result = engine.complete_set("e1", 0, PERF)
        assert result.set_record.completed
        assert result.rest_started
        assert engine.rest_timer.remaining_seconds == 90
        scheduler.advance(0.5)
        assert engine.session.current_set_index == 1

        engine.complete_set("e1", 1, PERF)
        assert engine.rest_timer.remaining_seconds == 90
        scheduler.advance(0.5)
        assert engine.session.current_set_index == 2

        engine.skip_rest()
        result = engine.complete_set("e1", 2, PERF)
        assert result.is_final_set
        assert not result.rest_started
        assert not engine.rest_timer.is_active

        scheduler.advance(0.5)
        assert engine.session.current_set_index == 2
        assert finished == [True]
        assert engine.session.all_sets_completed

    def test_stores_actual_values(self, make_engine):
        engine = make_engine(make_session(2))
        engine.complete_set("e1", 1, Performance(weight=62.5, reps=6))
        first, second = engine.session.exercises[0].sets
        assert second.actual == Performance(weight=62.5, reps=6)
        assert second.completed_at is not None
        assert not first.completed
        assert first.actual is None

    def test_recompleting_overwrites(self, make_engine):
        engine = make_engine(make_session(2))
        engine.complete_set("e1", 0, PERF)
        engine.complete_set("e1", 0, Performance(weight=50.0, reps=10))
        assert engine.session.exercises[0].sets[0].actual.reps == 10

    @pytest.mark.parametrize(
        "exercise_id, set_index",
        [("e1", 3), ("e1", -1), ("missing", 0)],
    )
    def test_unknown_set_changes_nothing(self, make_engine, scheduler, sink, exercise_id, set_index):
        engine = make_engine(make_session(3))
        before = session_to_dict(engine.session)

        with pytest.raises(SetNotFoundError):
            engine.complete_set(exercise_id, set_index, PERF)

        assert session_to_dict(engine.session) == before
        assert not engine.rest_timer.is_active
        assert scheduler.pending_timers == 0
        assert not scheduler.submitted

    def test_not_found_is_a_lookup_error(self, make_engine):
        engine = make_engine(make_session(1))
        with pytest.raises(LookupError):
            engine.complete_set("e1", 9, PERF)

    def test_rest_uses_exercise_override(self, make_engine, scheduler):
        session = make_session(1)
        session.exercises.insert(0, make_exercise("row", 2, rest_seconds=45))
        engine = make_engine(session)
        engine.complete_set("row", 0, PERF)
        assert engine.rest_timer.remaining_seconds == 45

    def test_rest_decided_by_completed_set_not_cursor(self, make_engine):
        """Completing the final set early starts no rest even with the cursor elsewhere."""
        engine = make_engine(make_session(2, 2))
        result = engine.complete_set("e2", 1, PERF)
        assert result.is_final_set
        assert not engine.rest_timer.is_active

    def test_each_completion_schedules_one_advance(self, make_engine, scheduler):
        engine = make_engine(make_session(4))
        engine.complete_set("e1", 0, PERF)
        engine.complete_set("e1", 1, PERF)
        scheduler.advance(0.5)
        assert engine.session.current_set_index == 2


class TestPersistence:
    def test_write_happens_in_background(self, make_engine, scheduler, sink):
        engine = make_engine(make_session(2))
        engine.complete_set("e1", 0, PERF)

        # Visible immediately, written later
        assert engine.session.exercises[0].sets[0].completed
        assert sink.updates == []

        scheduler.run_pending()
        (session_id, payload), = sink.updates
        assert session_id == engine.session.session_id
        assert payload["exercises"][0]["sets"][0]["completed"] is True

    def test_snapshot_taken_at_completion(self, make_engine, scheduler, sink):
        engine = make_engine(make_session(3))
        engine.complete_set("e1", 0, PERF)
        engine.complete_set("e1", 1, PERF)
        scheduler.run_pending()

        first, second = (payload for _, payload in sink.updates)
        assert [s["completed"] for s in first["exercises"][0]["sets"]] == [True, False, False]
        assert [s["completed"] for s in second["exercises"][0]["sets"]] == [True, True, False]

    def test_failure_is_reported_not_rolled_back(self, make_engine, scheduler, sink):
        failures = []
        engine = make_engine(make_session(2), on_persistence_failure=failures.append)
        sink.fail = True

        engine.complete_set("e1", 0, PERF)
        scheduler.run_pending()

        assert len(failures) == 1
        error = failures[0]
        assert isinstance(error, PersistenceError)
        assert isinstance(error.__cause__, OSError)
        assert error.session_id == engine.session.session_id
        assert engine.session.exercises[0].sets[0].completed

    def test_failure_without_listener_is_logged(self, make_engine, scheduler, sink, caplog):
        engine = make_engine(make_session(2))
        sink.fail = True
        engine.complete_set("e1", 0, PERF)
        with caplog.at_level("WARNING", logger="catalyft"):
            scheduler.run_pending()
        assert "disk full" in caplog.text


class TestClock:
    def test_ticks_only_while_active(self, make_engine, scheduler):
        engine = make_engine(make_session(2))
        engine.start()
        scheduler.advance(3)
        assert engine.session.total_duration == 3

        engine.pause_workout()
        scheduler.advance(2)
        assert engine.session.total_duration == 3

        engine.resume_workout()
        scheduler.advance(1)
        assert engine.session.total_duration == 4

    def test_start_twice_keeps_one_clock(self, make_engine, scheduler):
        engine = make_engine(make_session(1))
        engine.start()
        engine.start()
        scheduler.advance(1)
        assert engine.session.total_duration == 1
        assert engine.session.status == "active"
        assert engine.session.started_at is not None

    def test_rest_keeps_running_while_paused(self, make_engine, scheduler):
        engine = make_engine(make_session(2))
        engine.start()
        engine.start_rest_timer(10)
        engine.pause_workout()
        scheduler.advance(3)
        assert engine.rest_timer.remaining_seconds == 7

    def test_rest_can_pause_with_workout(self, make_engine, scheduler, settings):
        engine = make_engine(
            make_session(2), dataclasses.replace(settings, pause_rest_with_workout=True)
        )
        engine.start()
        engine.start_rest_timer(10)
        engine.pause_workout()
        scheduler.advance(3)
        assert engine.rest_timer.remaining_seconds == 10

    def test_rest_complete_fires_once(self, make_engine, scheduler):
        done = []
        engine = make_engine(make_session(2), on_rest_complete=lambda: done.append(True))
        engine.start()
        engine.start_rest_timer(3)
        scheduler.advance(5)
        assert done == [True]
        assert not engine.rest_timer.is_active

    def test_on_tick_listener(self, make_engine, scheduler):
        ticks = []
        engine = make_engine(make_session(1), on_tick=lambda: ticks.append(1))
        engine.start()
        scheduler.advance(4)
        assert len(ticks) == 4


    def test_one_second_per_elapsed_second(self, make_engine, scheduler):
        """Both clocks move at wall-clock rate, however time is advanced."""
        engine = make_engine(make_session(2))
        engine.start()
        engine.start_rest_timer(10)
        for _ in range(10):
            scheduler.advance(0.5)
        assert engine.session.total_duration == 5
        assert engine.rest_timer.remaining_seconds == 5


class TestAddExercise:
    def test_appends_open_sets(self, make_engine, scheduler, sink):
        engine = make_engine(make_session(2))
        progress = engine.add_exercise(Exercise(exercise_id="plank", name="Plank"))

        assert engine.session.exercises[-1] is progress
        assert [s.set_number for s in progress.sets] == [1, 2, 3]
        assert all(s.reps == 0 and s.weight == 0 and not s.completed for s in progress.sets)
        assert (engine.session.current_exercise_index, engine.session.current_set_index) == (0, 0)

        scheduler.run_pending()
        (_, payload), = sink.updates
        assert payload["exercises"][-1]["exercise"]["exercise_id"] == "plank"

    def test_explicit_set_count(self, make_engine):
        engine = make_engine(make_session(1))
        progress = engine.add_exercise(Exercise(exercise_id="plank", name="Plank"), target_sets=2)
        assert len(progress.sets) == 2

    def test_cursor_crosses_into_added_exercise(self, make_engine):
        engine = make_engine(make_session(1))
        assert engine.move_to_next_set() is CursorMove.SEQUENCE_COMPLETE
        engine.add_exercise(Exercise(exercise_id="plank", name="Plank"), target_sets=1)
        assert engine.move_to_next_set() is CursorMove.MOVED
        assert engine.current_exercise.exercise.exercise_id == "plank"

    def test_last_set_is_no_longer_final(self, make_engine):
        """Once an exercise is appended, the old last set earns a rest again."""
        engine = make_engine(make_session(2))
        engine.add_exercise(Exercise(exercise_id="plank", name="Plank"), target_sets=1)
        result = engine.complete_set("e1", 1, PERF)
        assert not result.is_final_set
        assert result.rest_started

    def test_duplicate_id_rejected(self, make_engine, scheduler):
        engine = make_engine(make_session(2))
        with pytest.raises(ValueError, match="already"):
            engine.add_exercise(Exercise(exercise_id="e1", name="Again"))
        assert len(engine.session.exercises) == 1
        assert not scheduler.submitted

    def test_zero_sets_rejected(self, make_engine):
        engine = make_engine(make_session(1))
        with pytest.raises(ValueError):
            engine.add_exercise(Exercise(exercise_id="plank", name="Plank"), target_sets=0)

    def test_after_end_raises(self, make_engine):
        engine = make_engine(make_session(1))
        engine.end_workout()
        with pytest.raises(InvalidStateError):
            engine.add_exercise(Exercise(exercise_id="plank", name="Plank"))


class TestRestControls:
    def test_extend_running_rest(self, make_engine):
        engine = make_engine(make_session(2))
        engine.start_rest_timer(5)
        engine.extend_rest(30)
        assert engine.rest_timer.remaining_seconds == 35
        assert engine.rest_timer.is_active

    def test_extend_uses_default_step(self, make_engine, settings):
        engine = make_engine(make_session(2))
        engine.start_rest_timer(5)
        engine.extend_rest()
        assert engine.rest_timer.remaining_seconds == 5 + settings.rest_extend_seconds

    def test_default_rest_duration(self, make_engine):
        engine = make_engine(make_session(2))
        engine.start_rest_timer()
        assert engine.rest_timer.remaining_seconds == 90

    def test_pause_and_resume_rest(self, make_engine, scheduler):
        engine = make_engine(make_session(2))
        engine.start()
        engine.start_rest_timer(10)
        engine.pause_rest()
        scheduler.advance(2)
        assert engine.rest_timer.remaining_seconds == 10
        engine.resume_rest()
        scheduler.advance(2)
        assert engine.rest_timer.remaining_seconds == 8


class TestNavigation:
    def test_manual_moves(self, make_engine):
        engine = make_engine(make_session(1, 2))
        assert engine.move_to_previous_set() is CursorMove.AT_START
        assert engine.move_to_next_set() is CursorMove.MOVED
        assert engine.current_exercise.exercise.exercise_id == "e2"
        assert engine.move_to_next_set() is CursorMove.MOVED
        assert engine.is_last_set and engine.is_last_exercise
        assert engine.move_to_next_set() is CursorMove.SEQUENCE_COMPLETE


class TestEndWorkout:
    def test_end_stops_timers(self, make_engine, scheduler):
        engine = make_engine(make_session(3))
        engine.start()
        engine.complete_set("e1", 0, PERF)
        scheduler.advance(0.2)
        engine.end_workout()

        scheduler.advance(5)
        assert engine.session.total_duration == 0
        assert engine.session.current_set_index == 0
        assert not engine.rest_timer.is_active
        assert scheduler.pending_timers == 0

    def test_partial_status_and_summary(self, make_engine, scheduler, sink):
        engine = make_engine(make_session(2))
        engine.complete_set("e1", 0, PERF)
        future = engine.end_workout()
        scheduler.run_pending()

        assert future.done()
        assert engine.session.status == "partial"
        assert not engine.session.is_active
        (end,) = sink.ends
        assert end["status"] == "partial"
        assert end["completed_at"] == engine.session.ended_at
        assert end["payload"]["summary"]["completed_sets"] == 1
        assert end["payload"]["summary"]["total_sets"] == 2

    def test_completed_status(self, make_engine, scheduler, sink):
        engine = make_engine(make_session(1))
        engine.complete_set("e1", 0, PERF)
        engine.end_workout()
        scheduler.run_pending()
        assert sink.ends[0]["status"] == "completed"

    def test_end_failure_is_reported(self, make_engine, scheduler, sink):
        failures = []
        engine = make_engine(make_session(1), on_persistence_failure=failures.append)
        sink.fail = True
        engine.end_workout()
        scheduler.run_pending()
        assert len(failures) == 1
        assert "end the session" in str(failures[0])

    @pytest.mark.parametrize(
        "operation",
        [
            lambda e: e.complete_set("e1", 0, PERF),
            lambda e: e.move_to_next_set(),
            lambda e: e.move_to_previous_set(),
            lambda e: e.start_rest_timer(30),
            lambda e: e.skip_rest(),
            lambda e: e.extend_rest(10),
            lambda e: e.tick(),
            lambda e: e.start(),
            lambda e: e.pause_workout(),
            lambda e: e.end_workout(),
        ],
    )
    def test_operations_after_end_raise(self, make_engine, operation):
        engine = make_engine(make_session(2))
        engine.end_workout()
        with pytest.raises(InvalidStateError):
            operation(engine)
        assert engine.is_ended
