"""Session Recorder: credits completed Pomodoro work intervals."""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable

from pomotrack.core.models import SessionType, TimeSession
from pomotrack.persistence.store import ProductivityStore

logger = logging.getLogger(__name__)


class SessionRecorder:
    """Appends pomodoro sessions to the log and updates task aggregates."""

    def __init__(
        self,
        store: ProductivityStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.clock = clock

    def record_completion(self, task_id: str, work_minutes: int) -> TimeSession:
        """Record one completed work interval for *task_id*.

        The task may have been deleted in the meantime: the session is still
        logged (with no project) but no aggregate is touched.
        """
        now = self.clock()
        task = self.store.get_task(task_id)

        if task is not None:
            self.store.increment_task_totals(task_id, pomodoros=1, minutes=work_minutes)
        else:
            logger.info("Task %s no longer exists; logging session only", task_id)

        session = TimeSession(
            id=str(uuid.uuid4()),
            task_id=task_id,
            project_id=task.project_id if task is not None else None,
            start_time=now - timedelta(minutes=work_minutes),
            end_time=now,
            duration=work_minutes,
            type=SessionType.POMODORO,
        )
        self.store.append_session(session)
        logger.debug("Recorded %d-minute pomodoro for task %s", work_minutes, task_id)
        return session
