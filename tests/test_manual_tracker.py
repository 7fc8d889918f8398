"""Unit tests for ManualTimeTracker."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from pomotrack.core.manual_tracker import ManualTimeTracker, _round_minutes
from pomotrack.core.models import SessionType, Task, TaskStatus
from pomotrack.persistence.store import ProductivityStore

T0 = datetime(2025, 1, 15, 9, 0, 0)


class FakeClock:
    """Settable clock passed to the tracker."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def store():
    s = ProductivityStore(":memory:")
    s.init_db()
    s.add_task(Task(id="t1", title="Invoice client", project_id="p1", total_minutes=5))
    s.add_task(Task(id="done", title="Shipped", status=TaskStatus.COMPLETED))
    yield s
    s.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(store, clock):
    return ManualTimeTracker(store, clock=clock)


class TestStart:
    def test_start_creates_open_session(self, tracker):
        sess = tracker.start("t1")
        assert sess is not None
        assert sess.type == SessionType.MANUAL
        assert sess.project_id == "p1"
        assert sess.start_time == T0
        assert sess.end_time is None
        assert tracker.active and tracker.running

    def test_start_without_task(self, tracker):
        assert tracker.start(None) is None
        assert tracker.start("") is None
        assert not tracker.active

    def test_start_missing_task(self, tracker):
        assert tracker.start("nope") is None

    def test_start_completed_task(self, tracker):
        assert tracker.start("done") is None

    def test_only_one_session_at_a_time(self, tracker):
        first = tracker.start("t1")
        assert tracker.start("t1") is None
        assert tracker.state().session_id == first.id

    def test_session_not_logged_until_stopped(self, tracker, store):
        tracker.start("t1")
        assert store.get_sessions() == []


class TestStop:
    def test_ten_minutes_logged(self, tracker, store, clock):
        tracker.start("t1")
        clock.advance(minutes=10)
        sess = tracker.stop()
        assert sess.duration == 10
        assert sess.end_time == T0 + timedelta(minutes=10)
        [logged] = store.get_sessions()
        assert logged.type == SessionType.MANUAL
        assert logged.duration == 10
        assert not tracker.active

    def test_does_not_touch_pomodoro_count(self, tracker, store, clock):
        tracker.start("t1")
        clock.advance(minutes=30)
        tracker.stop(add_to_task=True)
        assert store.get_task("t1").pomodoro_count == 0

    def test_add_to_task_updates_minutes(self, tracker, store, clock):
        tracker.start("t1")
        clock.advance(minutes=12)
        tracker.stop(add_to_task=True)
        assert store.get_task("t1").total_minutes == 17

    def test_without_add_to_task_minutes_unchanged(self, tracker, store, clock):
        tracker.start("t1")
        clock.advance(minutes=12)
        tracker.stop()
        assert store.get_task("t1").total_minutes == 5

    def test_stop_when_idle(self, tracker):
        assert tracker.stop() is None

    def test_rounds_half_up(self, tracker, clock):
        tracker.start("t1")
        clock.advance(seconds=90)
        assert tracker.stop().duration == 2

    def test_callback_receives_session(self, store, clock):
        callback = MagicMock()
        tracker = ManualTimeTracker(store, clock=clock, on_session_complete=callback)
        tracker.start("t1")
        clock.advance(minutes=3)
        sess = tracker.stop()
        callback.assert_called_once_with(sess)


class TestPauseResume:
    def test_paused_time_excluded(self, tracker, clock):
        tracker.start("t1")
        clock.advance(minutes=10)
        assert tracker.pause() is True
        clock.advance(minutes=30)
        assert tracker.resume() is True
        clock.advance(minutes=5)
        assert tracker.stop().duration == 15

    def test_stop_while_paused(self, tracker, clock):
        tracker.start("t1")
        clock.advance(minutes=8)
        tracker.pause()
        clock.advance(hours=1)
        assert tracker.stop().duration == 8

    def test_pause_twice(self, tracker):
        tracker.start("t1")
        assert tracker.pause() is True
        assert tracker.pause() is False

    def test_resume_when_running(self, tracker):
        tracker.start("t1")
        assert tracker.resume() is False

    def test_pause_when_idle(self, tracker):
        assert tracker.pause() is False
        assert tracker.resume() is False


class TestElapsedAndState:
    def test_elapsed_minutes_while_running(self, tracker, clock):
        tracker.start("t1")
        clock.advance(minutes=7)
        assert tracker.elapsed_minutes() == 7

    def test_elapsed_zero_while_paused(self, tracker, clock):
        tracker.start("t1")
        clock.advance(minutes=7)
        tracker.pause()
        assert tracker.elapsed_minutes() == 0

    def test_elapsed_zero_when_idle(self, tracker):
        assert tracker.elapsed_minutes() == 0

    def test_state(self, tracker, clock):
        assert tracker.state() is None
        tracker.start("t1")
        clock.advance(seconds=45)
        state = tracker.state()
        assert state.task_id == "t1"
        assert state.running is True
        assert state.active_seconds == 45


@pytest.mark.parametrize("seconds,expected", [
    (0, 0), (29, 0), (30, 1), (60, 1), (89, 1), (90, 2), (600, 10),
])
def test_round_minutes(seconds, expected):
    assert _round_minutes(seconds) == expected
