"""SQLite-backed persistence for tasks, projects, and the time session log."""

import sqlite3
import threading
from datetime import date, datetime
from typing import Optional

from pomotrack.core.models import (
    Priority,
    Project,
    SessionType,
    Task,
    TaskStatus,
    TimeSession,
)


class ProductivityStore:
    """Read/write interface to the local SQLite database.

    Stores projects, tasks and the append-only time session log.
    Timestamps are persisted as ISO 8601 text.  Writes are serialised by a
    lock because the timer thread, the manual tracker and dashboard
    requests all share one connection; aggregate updates are additive SQL
    so concurrent writers never overwrite each other.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Connection helpers
    # ------------------------------------------------------------------

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # ------------------------------------------------------------------
    # Schema initialisation
    # ------------------------------------------------------------------

    def init_db(self) -> None:
        """Create tables and indexes if they don't already exist."""
        with self._lock:
            conn = self._get_conn()
            conn.executescript(
                """\
                CREATE TABLE IF NOT EXISTS projects (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    client TEXT NOT NULL DEFAULT '',
                    deadline TEXT,
                    active INTEGER NOT NULL DEFAULT 1
                );

                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    project_id TEXT,
                    priority TEXT NOT NULL DEFAULT 'medium',
                    status TEXT NOT NULL DEFAULT 'pending',
                    pomodoro_count INTEGER NOT NULL DEFAULT 0,
                    total_minutes INTEGER NOT NULL DEFAULT 0,
                    estimated_pomodoros INTEGER,
                    description TEXT NOT NULL DEFAULT '',
                    assigned_date TEXT
                );

                CREATE TABLE IF NOT EXISTS time_sessions (
                    id TEXT PRIMARY KEY,
                    task_id TEXT,
                    project_id TEXT,
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    duration INTEGER NOT NULL DEFAULT 0,
                    type TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT ''
                );

                CREATE INDEX IF NOT EXISTS idx_session_start
                    ON time_sessions(start_time);

                CREATE INDEX IF NOT EXISTS idx_session_task
                    ON time_sessions(task_id);

                CREATE INDEX IF NOT EXISTS idx_task_project
                    ON tasks(project_id);
                """
            )
            conn.commit()

    # ------------------------------------------------------------------
    # Project operations
    # ------------------------------------------------------------------

    def add_project(self, project: Project) -> None:
        with self._lock:
            conn = self._get_conn()
            conn.execute(
                """\
                INSERT INTO projects (id, name, description, client, deadline, active)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    project.id,
                    project.name,
                    project.description,
                    project.client,
                    project.deadline.isoformat() if project.deadline else None,
                    1 if project.active else 0,
                ),
            )
            conn.commit()

    def get_project(self, project_id: Optional[str]) -> Optional[Project]:
        """Return a single project by id, or ``None``."""
        if not project_id:
            return None
        with self._lock:
            row = self._get_conn().execute(
                "SELECT * FROM projects WHERE id = ?", (project_id,)
            ).fetchone()
        return self._row_to_project(row) if row is not None else None

    def list_projects(self) -> list[Project]:
        with self._lock:
            rows = self._get_conn().execute(
                "SELECT * FROM projects ORDER BY name"
            ).fetchall()
        return [self._row_to_project(r) for r in rows]

    # ------------------------------------------------------------------
    # Task operations
    # ------------------------------------------------------------------

    def add_task(self, task: Task) -> None:
        with self._lock:
            conn = self._get_conn()
            conn.execute(
                """\
                INSERT INTO tasks
                    (id, title, project_id, priority, status, pomodoro_count,
                     total_minutes, estimated_pomodoros, description, assigned_date)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id,
                    task.title,
                    task.project_id,
                    task.priority.value,
                    task.status.value,
                    task.pomodoro_count,
                    task.total_minutes,
                    task.estimated_pomodoros,
                    task.description,
                    task.assigned_date.isoformat() if task.assigned_date else None,
                ),
            )
            conn.commit()

    def get_task(self, task_id: Optional[str]) -> Optional[Task]:
        """Return a single task by id, or ``None`` if it does not exist."""
        if not task_id:
            return None
        with self._lock:
            row = self._get_conn().execute(
                "SELECT * FROM tasks WHERE id = ?", (task_id,)
            ).fetchone()
        return self._row_to_task(row) if row is not None else None

    def list_tasks(self, include_completed: bool = True) -> list[Task]:
        with self._lock:
            conn = self._get_conn()
            if include_completed:
                rows = conn.execute("SELECT * FROM tasks ORDER BY rowid").fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM tasks WHERE status != ? ORDER BY rowid",
                    (TaskStatus.COMPLETED.value,),
                ).fetchall()
        return [self._row_to_task(r) for r in rows]

    def set_task_status(self, task_id: str, status: TaskStatus) -> bool:
        with self._lock:
            conn = self._get_conn()
            cursor = conn.execute(
                "UPDATE tasks SET status = ? WHERE id = ?", (status.value, task_id)
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete_task(self, task_id: str) -> None:
        """Delete a task.  Sessions referencing it are kept."""
        with self._lock:
            conn = self._get_conn()
            conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()

    def increment_task_totals(self, task_id: str, pomodoros: int = 0, minutes: int = 0) -> bool:
        """Add to a task's aggregate counters.

        Returns ``False`` when the task no longer exists.  Negative deltas
        are rejected: timer accounting only ever adds.
        """
        if pomodoros < 0 or minutes < 0:
            raise ValueError("Task totals can only be incremented")
        with self._lock:
            conn = self._get_conn()
            cursor = conn.execute(
                """\
                UPDATE tasks
                SET pomodoro_count = pomodoro_count + ?,
                    total_minutes = total_minutes + ?
                WHERE id = ?
                """,
                (pomodoros, minutes, task_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Session log operations
    # ------------------------------------------------------------------

    def append_session(self, session: TimeSession) -> None:
        """Append a session to the log.  Existing entries are never replaced."""
        with self._lock:
            conn = self._get_conn()
            conn.execute(
                """\
                INSERT INTO time_sessions
                    (id, task_id, project_id, start_time, end_time, duration,
                     type, description)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.id,
                    session.task_id,
                    session.project_id,
                    session.start_time.isoformat(),
                    session.end_time.isoformat() if session.end_time else None,
                    session.duration,
                    session.type.value,
                    session.description,
                ),
            )
            conn.commit()

    def get_session(self, session_id: str) -> Optional[TimeSession]:
        with self._lock:
            row = self._get_conn().execute(
                "SELECT * FROM time_sessions WHERE id = ?", (session_id,)
            ).fetchone()
        return self._row_to_session(row) if row is not None else None

    def get_sessions(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[TimeSession]:
        """Return sessions whose start_time falls in [start, end).

        Either bound may be omitted.
        """
        clauses = []
        params: list[str] = []
        if start is not None:
            clauses.append("start_time >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("start_time < ?")
            params.append(end.isoformat())
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._lock:
            rows = self._get_conn().execute(
                f"SELECT * FROM time_sessions {where} ORDER BY start_time, rowid",
                params,
            ).fetchall()
        return [self._row_to_session(r) for r in rows]

    def get_sessions_by_task(self, task_id: str) -> list[TimeSession]:
        with self._lock:
            rows = self._get_conn().execute(
                "SELECT * FROM time_sessions WHERE task_id = ? ORDER BY start_time, rowid",
                (task_id,),
            ).fetchall()
        return [self._row_to_session(r) for r in rows]

    # ------------------------------------------------------------------
    # Row mapping helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_project(row: sqlite3.Row) -> Project:
        return Project(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            client=row["client"],
            deadline=date.fromisoformat(row["deadline"]) if row["deadline"] else None,
            active=bool(row["active"]),
        )

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            title=row["title"],
            project_id=row["project_id"],
            priority=Priority(row["priority"]),
            status=TaskStatus(row["status"]),
            pomodoro_count=row["pomodoro_count"],
            total_minutes=row["total_minutes"],
            estimated_pomodoros=row["estimated_pomodoros"],
            description=row["description"],
            assigned_date=date.fromisoformat(row["assigned_date"]) if row["assigned_date"] else None,
        )

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> TimeSession:
        return TimeSession(
            id=row["id"],
            task_id=row["task_id"],
            project_id=row["project_id"],
            start_time=datetime.fromisoformat(row["start_time"]),
            end_time=datetime.fromisoformat(row["end_time"]) if row["end_time"] else None,
            duration=row["duration"],
            type=SessionType(row["type"]),
            description=row["description"],
        )
