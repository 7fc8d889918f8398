"""Manual time tracker: start/pause/stop logging of untimed work.

Runs independently of the Pomodoro timer; the only thing the two share is
the append-only session log in the store.
"""

import logging
import math
import threading
import uuid
from datetime import datetime
from typing import Callable, Optional

from pomotrack.core.models import ManualSessionState, SessionType, TimeSession
from pomotrack.persistence.store import ProductivityStore

logger = logging.getLogger(__name__)


class ManualTimeTracker:
    """Tracks one manual work session at a time.

    Only time spent running counts toward the final duration: pausing
    freezes the accumulated active time until :meth:`resume`.
    """

    def __init__(
        self,
        store: ProductivityStore,
        clock: Callable[[], datetime] = datetime.now,
        on_session_complete: Optional[Callable[[TimeSession], None]] = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.on_session_complete = on_session_complete
        self._lock = threading.Lock()
        self._session: Optional[TimeSession] = None
        self._running = False
        self._active_seconds = 0.0
        self._resumed_at: Optional[datetime] = None

    @property
    def active(self) -> bool:
        return self._session is not None

    @property
    def running(self) -> bool:
        return self._running

    def start(self, task_id: Optional[str]) -> Optional[TimeSession]:
        """Begin tracking *task_id*.

        Returns ``None`` without side effects when no task is given, a
        manual session is already active, or the task is missing or
        already completed.
        """
        if not task_id:
            return None
        with self._lock:
            if self._session is not None:
                logger.info("Manual session already active for %s", self._session.task_id)
                return None
            task = self.store.get_task(task_id)
            if task is None or task.completed:
                logger.info("Cannot track task %s: missing or completed", task_id)
                return None

            now = self.clock()
            self._session = TimeSession(
                id=str(uuid.uuid4()),
                task_id=task.id,
                project_id=task.project_id,
                start_time=now,
                end_time=None,
                duration=0,
                type=SessionType.MANUAL,
            )
            self._running = True
            self._active_seconds = 0.0
            self._resumed_at = now
            return self._session

    def pause(self) -> bool:
        with self._lock:
            if self._session is None or not self._running:
                return False
            self._active_seconds += self._since_resume(self.clock())
            self._running = False
            self._resumed_at = None
            return True

    def resume(self) -> bool:
        with self._lock:
            if self._session is None or self._running:
                return False
            self._running = True
            self._resumed_at = self.clock()
            return True

    def elapsed_minutes(self) -> int:
        """Live active minutes for display; 0 while paused or idle."""
        with self._lock:
            if self._session is None or not self._running:
                return 0
            return _round_minutes(self._active_seconds + self._since_resume(self.clock()))

    def state(self) -> Optional[ManualSessionState]:
        with self._lock:
            if self._session is None:
                return None
            active = self._active_seconds
            if self._running:
                active += self._since_resume(self.clock())
            return ManualSessionState(
                session_id=self._session.id,
                task_id=self._session.task_id,
                project_id=self._session.project_id,
                start_time=self._session.start_time,
                running=self._running,
                active_seconds=active,
            )

    def stop(self, add_to_task: bool = False) -> Optional[TimeSession]:
        """Finish the active session and append it to the log.

        Manual sessions never count as pomodoros.  When *add_to_task* is
        set, the duration is also added to the task's ``total_minutes``.
        """
        with self._lock:
            if self._session is None:
                return None
            now = self.clock()
            active = self._active_seconds
            if self._running:
                active += self._since_resume(now)

            session = self._session
            session.end_time = now
            session.duration = _round_minutes(active)

            self._session = None
            self._running = False
            self._active_seconds = 0.0
            self._resumed_at = None

        self.store.append_session(session)
        if add_to_task and session.task_id and session.duration > 0:
            self.store.increment_task_totals(session.task_id, minutes=session.duration)
        logger.info("Manual session for %s: %d min", session.task_id, session.duration)

        if self.on_session_complete is not None:
            self.on_session_complete(session)
        return session

    def _since_resume(self, now: datetime) -> float:
        if self._resumed_at is None:
            return 0.0
        return max(0.0, (now - self._resumed_at).total_seconds())


def _round_minutes(seconds: float) -> int:
    """Round seconds to whole minutes, halves rounding up."""
    return int(math.floor(seconds / 60 + 0.5))
