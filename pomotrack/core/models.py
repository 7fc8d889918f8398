"""Core data models for PomoTrack.

Defines all dataclasses and enums used across the application:
- Tasks & projects: Priority, TaskStatus, Task, Project
- Session log: SessionType, TimeSession
- Pomodoro: Phase, PomodoroSettings, TimerSnapshot, ManualSessionState
- Reporting: TaskTimeSummary, DailySummary, WeeklySummary, WeekStats,
  Insight, WeeklyComparison
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Tasks & projects
# ---------------------------------------------------------------------------

class Priority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Project:
    """A container referenced by tasks via ``project_id``."""
    id: str
    name: str
    description: str = ""
    client: str = ""
    deadline: Optional[date] = None
    active: bool = True


@dataclass
class Task:
    """A unit of work that Pomodoro and manual sessions are attributed to."""
    id: str
    title: str
    project_id: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    pomodoro_count: int = 0   # completed work intervals
    total_minutes: int = 0    # cumulative minutes of attributed work
    estimated_pomodoros: Optional[int] = None
    description: str = ""
    assigned_date: Optional[date] = None

    @property
    def completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED


# ---------------------------------------------------------------------------
# Session log
# ---------------------------------------------------------------------------

class SessionType(Enum):
    POMODORO = "pomodoro"
    MANUAL = "manual"
    BREAK = "break"


@dataclass
class TimeSession:
    """An append-only log entry for a tracked interval.

    ``task_id`` and ``project_id`` are weak references: the referent may have
    been deleted since the session was written.
    """
    id: str
    task_id: Optional[str]
    project_id: Optional[str]
    start_time: datetime
    end_time: Optional[datetime]  # None while a manual session is active
    duration: int                 # whole minutes
    type: SessionType
    description: str = ""


# ---------------------------------------------------------------------------
# Pomodoro
# ---------------------------------------------------------------------------

class Phase(Enum):
    WORK = "work"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"

    @property
    def is_break(self) -> bool:
        return self is not Phase.WORK


@dataclass(frozen=True)
class PomodoroSettings:
    """Timer configuration.  Durations are in minutes.

    Instances are immutable; use :meth:`with_updates` to derive a new value.
    Validation of user input lives in :mod:`pomotrack.core.config`.
    """
    work_duration: int = 25
    short_break_duration: int = 5
    long_break_duration: int = 15
    long_break_interval: int = 4
    auto_start_breaks: bool = True
    auto_start_pomodoros: bool = False
    sound_enabled: bool = True
    notifications_enabled: bool = True

    def duration_for(self, phase: Phase) -> int:
        """Return the configured length of *phase* in minutes."""
        if phase is Phase.SHORT_BREAK:
            return self.short_break_duration
        if phase is Phase.LONG_BREAK:
            return self.long_break_duration
        return self.work_duration

    def with_updates(self, **changes: Any) -> "PomodoroSettings":
        return replace(self, **changes)


@dataclass(frozen=True)
class TimerSnapshot:
    """Read-only view of the Pomodoro timer's runtime state."""
    phase: Phase
    remaining_seconds: int
    running: bool
    completed_cycles: int
    active_task_id: Optional[str]
    phase_duration_seconds: int

    @property
    def remaining_display(self) -> str:
        mins, secs = divmod(max(0, self.remaining_seconds), 60)
        return f"{mins:02d}:{secs:02d}"

    @property
    def progress(self) -> float:
        """Fraction of the current phase already elapsed, 0.0 – 1.0."""
        if self.phase_duration_seconds <= 0:
            return 0.0
        elapsed = self.phase_duration_seconds - self.remaining_seconds
        return min(1.0, max(0.0, elapsed / self.phase_duration_seconds))


@dataclass(frozen=True)
class ManualSessionState:
    """Read-only view of the active manual tracking session."""
    session_id: str
    task_id: str
    project_id: Optional[str]
    start_time: datetime
    running: bool
    active_seconds: float


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

@dataclass
class TaskTimeSummary:
    """Aggregated session time for a single task."""
    task_id: Optional[str]
    title: str
    project_name: str = ""
    total_minutes: int = 0
    pomodoros: int = 0
    session_count: int = 0


@dataclass
class DailySummary:
    """Tracked time for a single day."""
    date: date
    tasks: list[TaskTimeSummary] = field(default_factory=list)  # sorted by minutes descending
    total_minutes: int = 0
    pomodoros: int = 0


@dataclass
class WeeklySummary:
    """Tracked time for a 7-day period."""
    start_date: date
    end_date: date
    daily_breakdowns: list[DailySummary] = field(default_factory=list)
    tasks: list[TaskTimeSummary] = field(default_factory=list)
    total_minutes: int = 0
    pomodoros: int = 0
    goal_minutes: int = 0

    @property
    def goal_progress(self) -> float:
        if self.goal_minutes <= 0:
            return 0.0
        return self.total_minutes / self.goal_minutes


@dataclass
class WeekStats:
    """Activity counts for one rolling week window."""
    tasks: int = 0
    completed_tasks: int = 0
    minutes: int = 0
    pomodoros: int = 0


@dataclass
class Insight:
    kind: str   # "success" | "info" | "warning"
    title: str
    message: str


@dataclass
class WeeklyComparison:
    """This week compared with the previous one."""
    this_week: WeekStats
    last_week: WeekStats
    insights: list[Insight] = field(default_factory=list)

    @property
    def task_trend(self) -> int:
        return self.this_week.tasks - self.last_week.tasks

    @property
    def completion_trend(self) -> int:
        return self.this_week.completed_tasks - self.last_week.completed_tasks

    @property
    def time_trend(self) -> int:
        return self.this_week.minutes - self.last_week.minutes

    @property
    def pomodoro_trend(self) -> int:
        return self.this_week.pomodoros - self.last_week.pomodoros

    @property
    def completion_rate(self) -> float:
        if self.this_week.tasks == 0:
            return 0.0
        return self.this_week.completed_tasks / self.this_week.tasks
