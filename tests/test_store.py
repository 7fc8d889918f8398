"""Unit tests for ProductivityStore."""

import threading
from datetime import date, datetime, timedelta

import pytest

from pomotrack.core.models import (
    Priority,
    Project,
    SessionType,
    Task,
    TaskStatus,
    TimeSession,
)
from pomotrack.persistence.store import ProductivityStore


@pytest.fixture
def store():
    """Create an in-memory ProductivityStore for each test."""
    s = ProductivityStore(":memory:")
    s.init_db()
    yield s
    s.close()


def _make_session(**overrides) -> TimeSession:
    defaults = dict(
        id="s1",
        task_id="t1",
        project_id="p1",
        start_time=datetime(2025, 1, 15, 10, 0, 0),
        end_time=datetime(2025, 1, 15, 10, 25, 0),
        duration=25,
        type=SessionType.POMODORO,
    )
    defaults.update(overrides)
    return TimeSession(**defaults)


# ------------------------------------------------------------------
# Schema / init_db
# ------------------------------------------------------------------

def test_init_db_creates_tables(store: ProductivityStore):
    conn = store._get_conn()
    tables = {
        r[0]
        for r in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ).fetchall()
    }
    assert {"projects", "tasks", "time_sessions"} <= tables


def test_init_db_creates_indexes(store: ProductivityStore):
    conn = store._get_conn()
    indexes = {
        r[0]
        for r in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='index'"
        ).fetchall()
    }
    assert "idx_session_start" in indexes
    assert "idx_session_task" in indexes


def test_init_db_idempotent(store: ProductivityStore):
    """Calling init_db twice should not raise."""
    store.init_db()


# ------------------------------------------------------------------
# Projects
# ------------------------------------------------------------------

class TestProjects:
    def test_round_trip(self, store):
        project = Project(
            id="p1", name="Website", client="ACME",
            deadline=date(2025, 3, 1), active=False,
        )
        store.add_project(project)
        assert store.get_project("p1") == project

    def test_missing_project(self, store):
        assert store.get_project("nope") is None
        assert store.get_project(None) is None

    def test_list_ordered_by_name(self, store):
        store.add_project(Project(id="p2", name="Zeta"))
        store.add_project(Project(id="p1", name="Alpha"))
        assert [p.name for p in store.list_projects()] == ["Alpha", "Zeta"]


# ------------------------------------------------------------------
# Tasks
# ------------------------------------------------------------------

class TestTasks:
    def test_round_trip(self, store):
        task = Task(
            id="t1", title="Landing page", project_id="p1",
            priority=Priority.HIGH, status=TaskStatus.IN_PROGRESS,
            estimated_pomodoros=4, assigned_date=date(2025, 1, 15),
        )
        store.add_task(task)
        assert store.get_task("t1") == task

    def test_missing_task(self, store):
        assert store.get_task("missing") is None
        assert store.get_task(None) is None

    def test_list_excludes_completed(self, store):
        store.add_task(Task(id="t1", title="Open"))
        store.add_task(Task(id="t2", title="Done", status=TaskStatus.COMPLETED))
        assert [t.id for t in store.list_tasks()] == ["t1", "t2"]
        assert [t.id for t in store.list_tasks(include_completed=False)] == ["t1"]

    def test_set_task_status(self, store):
        store.add_task(Task(id="t1", title="Open"))
        assert store.set_task_status("t1", TaskStatus.COMPLETED) is True
        assert store.get_task("t1").completed
        assert store.set_task_status("missing", TaskStatus.COMPLETED) is False

    def test_delete_keeps_sessions(self, store):
        store.add_task(Task(id="t1", title="Open"))
        store.append_session(_make_session())
        store.delete_task("t1")
        assert store.get_task("t1") is None
        assert len(store.get_sessions_by_task("t1")) == 1


class TestIncrementTaskTotals:
    def test_adds_to_counters(self, store):
        store.add_task(Task(id="t1", title="Open", pomodoro_count=2, total_minutes=50))
        assert store.increment_task_totals("t1", pomodoros=1, minutes=25) is True
        task = store.get_task("t1")
        assert task.pomodoro_count == 3
        assert task.total_minutes == 75

    def test_missing_task_returns_false(self, store):
        assert store.increment_task_totals("missing", pomodoros=1) is False

    def test_negative_delta_rejected(self, store):
        store.add_task(Task(id="t1", title="Open"))
        with pytest.raises(ValueError):
            store.increment_task_totals("t1", pomodoros=-1)

    def test_concurrent_increments_are_not_lost(self, tmp_path):
        s = ProductivityStore(str(tmp_path / "test.db"))
        s.init_db()
        s.add_task(Task(id="t1", title="Open"))

        def _worker():
            for _ in range(25):
                s.increment_task_totals("t1", pomodoros=1, minutes=1)

        threads = [threading.Thread(target=_worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        task = s.get_task("t1")
        assert task.pomodoro_count == 100
        assert task.total_minutes == 100
        s.close()


# ------------------------------------------------------------------
# Session log
# ------------------------------------------------------------------

class TestSessions:
    def test_round_trip(self, store):
        sess = _make_session(description="notes")
        store.append_session(sess)
        assert store.get_session("s1") == sess

    def test_open_session_round_trip(self, store):
        sess = _make_session(end_time=None, type=SessionType.MANUAL, duration=0)
        store.append_session(sess)
        assert store.get_session("s1").end_time is None

    def test_append_never_replaces(self, store):
        store.append_session(_make_session())
        with pytest.raises(Exception):
            store.append_session(_make_session(duration=99))
        assert store.get_session("s1").duration == 25

    def test_get_sessions_range_is_half_open(self, store):
        base = datetime(2025, 1, 15, 0, 0, 0)
        store.append_session(_make_session(id="a", start_time=base - timedelta(seconds=1)))
        store.append_session(_make_session(id="b", start_time=base))
        store.append_session(_make_session(id="c", start_time=base + timedelta(hours=23)))
        store.append_session(_make_session(id="d", start_time=base + timedelta(days=1)))
        ids = [s.id for s in store.get_sessions(base, base + timedelta(days=1))]
        assert ids == ["b", "c"]

    def test_get_sessions_ordered_by_start(self, store):
        t = datetime(2025, 1, 15, 9, 0, 0)
        store.append_session(_make_session(id="late", start_time=t + timedelta(hours=2)))
        store.append_session(_make_session(id="early", start_time=t))
        assert [s.id for s in store.get_sessions()] == ["early", "late"]

    def test_missing_session(self, store):
        assert store.get_session("nope") is None
