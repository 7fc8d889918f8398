"""Pomodoro timer for PomoTrack.

A countdown state machine cycling between work intervals and short/long
breaks.  The timer owns its :class:`Ticker`; every run-state or phase
transition tears the ticker down before arming it again, so two tick
chains can never decrement the same countdown.
"""

import logging
import threading
from typing import Any, Callable, Mapping, Optional

from pomotrack.core.alerts import AlertDispatcher
from pomotrack.core.config import settings_from_dict
from pomotrack.core.models import Phase, PomodoroSettings, TimerSnapshot
from pomotrack.core.recorder import SessionRecorder
from pomotrack.core.ticker import Ticker

logger = logging.getLogger(__name__)


class PomodoroTimer:
    """Work/break countdown with session accounting.

    The phase (work, short break, long break) is orthogonal to the
    ``running`` flag: Idle and Paused are both ``running == False``.
    All public methods are safe to call from any thread.
    """

    def __init__(
        self,
        settings: PomodoroSettings,
        ticker: Ticker,
        recorder: Optional[SessionRecorder] = None,
        alerts: Optional[AlertDispatcher] = None,
        on_stop: Optional[Callable[[], None]] = None,
    ) -> None:
        self._settings = settings
        self._ticker = ticker
        self.recorder = recorder
        self.alerts = alerts
        self.on_stop = on_stop

        self._lock = threading.RLock()
        self._phase = Phase.WORK
        self._remaining = settings.work_duration * 60
        self._running = False
        self._completed_cycles = 0
        self._active_task_id: Optional[str] = None
        self._active_task_title: Optional[str] = None
        self._generation = 0  # bumped on every arm/cancel; stale ticks are dropped

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def settings(self) -> PomodoroSettings:
        return self._settings

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def running(self) -> bool:
        return self._running

    @property
    def completed_cycles(self) -> int:
        return self._completed_cycles

    @property
    def active_task_id(self) -> Optional[str]:
        return self._active_task_id

    def phase_duration_seconds(self) -> int:
        return self._settings.duration_for(self._phase) * 60

    def next_break_phase(self) -> Phase:
        """Break tier that follows the work interval after *completed_cycles*."""
        return self._break_for(self._completed_cycles + 1)

    def snapshot(self) -> TimerSnapshot:
        with self._lock:
            return TimerSnapshot(
                phase=self._phase,
                remaining_seconds=self._remaining,
                running=self._running,
                completed_cycles=self._completed_cycles,
                active_task_id=self._active_task_id,
                phase_duration_seconds=self.phase_duration_seconds(),
            )

    # ------------------------------------------------------------------
    # Task binding
    # ------------------------------------------------------------------

    def bind_task(self, task_id: Optional[str], title: Optional[str] = None) -> None:
        """Attribute future work completions to *task_id* (``None`` unbinds)."""
        with self._lock:
            self._active_task_id = task_id or None
            self._active_task_title = title if task_id else None

    def clear_task(self) -> None:
        self.bind_task(None)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Start or resume the countdown.

        Returns ``False`` (and changes nothing) when already running, or
        when a work phase has no task bound.  Breaks may run without one.
        """
        with self._lock:
            if self._running:
                return False
            if self._phase is Phase.WORK and self._active_task_id is None:
                logger.info("Refusing to start a work interval without a task")
                return False
            if self.alerts is not None and self._settings.notifications_enabled:
                self.alerts.request_permission()
            self._running = True
            self._arm()
            logger.debug("Timer started (%s, %ds left)", self._phase.value, self._remaining)
            return True

    def pause(self) -> bool:
        """Freeze the countdown.  Returns ``False`` if it was not running."""
        with self._lock:
            if not self._running:
                return False
            self._disarm()
            self._running = False
            logger.debug("Timer paused (%s, %ds left)", self._phase.value, self._remaining)
            return True

    def stop(self) -> None:
        """Abandon the current interval and return to an idle work phase.

        Partial progress is discarded and the task binding is cleared;
        ``on_stop`` lets the host clear its own task selection.
        """
        with self._lock:
            self._disarm()
            self._running = False
            self._phase = Phase.WORK
            self._remaining = self._settings.work_duration * 60
            self._active_task_id = None
            self._active_task_title = None
        logger.debug("Timer stopped")
        if self.on_stop is not None:
            self.on_stop()

    def reset(self) -> None:
        """Restore the full duration of the current phase and freeze it."""
        with self._lock:
            self._disarm()
            self._running = False
            self._remaining = self.phase_duration_seconds()

    def skip(self) -> list[str]:
        """End the current phase as if the countdown ran out.

        A running phase completes immediately.  An idle or paused phase
        only drops to zero; it completes on the first tick after
        :meth:`start`, so a work interval still needs a bound task.
        """
        with self._lock:
            self._remaining = 0
            if not self._running:
                return []
            self._disarm()
            events, alert = self._complete_phase()
        self._alert(*alert)
        return events

    def tick(self) -> list[str]:
        """Advance the countdown by one second.

        Returns a list of event strings:
        - ``'work_completed'`` / ``'break_completed'`` – the phase ran out
        - ``'break_started'`` / ``'work_started'`` – the next phase is running
        """
        return self._advance(None)

    def update_settings(self, changes: Mapping[str, Any]) -> PomodoroSettings:
        """Apply a partial settings update and return the new settings.

        Invalid values keep their previous setting.  While idle or paused
        the countdown is reset to the new length of the current phase; a
        running countdown is left untouched.
        """
        with self._lock:
            self._settings = settings_from_dict(changes, previous=self._settings)
            if not self._running:
                self._remaining = self.phase_duration_seconds()
            return self._settings

    def request_auto_start(self) -> bool:
        """Handle an external request to begin work immediately.

        Starts the timer when idle in a work phase with a task bound and
        returns ``True`` so the caller can drop its request.  Otherwise
        returns ``False`` and the request stays pending with the caller.
        """
        with self._lock:
            if self._running or self._phase is not Phase.WORK:
                return False
            if self._active_task_id is None:
                return False
            return self.start()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _break_for(self, cycles: int) -> Phase:
        interval = self._settings.long_break_interval
        if cycles > 0 and interval > 0 and cycles % interval == 0:
            return Phase.LONG_BREAK
        return Phase.SHORT_BREAK

    def _advance(self, generation: Optional[int]) -> list[str]:
        with self._lock:
            if generation is not None and generation != self._generation:
                return []
            if not self._running:
                return []
            if self._remaining > 0:
                self._remaining -= 1
            if self._remaining > 0:
                return []
            self._disarm()
            events, alert = self._complete_phase()
        self._alert(*alert)
        return events

    def _alert(
        self, finished: Phase, settings: PomodoroSettings, task_title: Optional[str]
    ) -> None:
        # Runs outside the lock: backends may block on subprocesses.
        if self.alerts is not None:
            self.alerts.phase_completed(finished, settings, task_title)

    def _complete_phase(
        self,
    ) -> tuple[list[str], tuple[Phase, PomodoroSettings, Optional[str]]]:
        """Run completion for the phase that just reached zero.

        Must be called with the lock held.  Returns the events together
        with the arguments for the completion alert.
        """
        finished = self._phase
        settings = self._settings
        title = self._active_task_title
        events: list[str] = []

        if finished is Phase.WORK:
            if self._active_task_id is not None and self.recorder is not None:
                try:
                    self.recorder.record_completion(
                        self._active_task_id, settings.work_duration
                    )
                except Exception:
                    logger.exception("Failed to record pomodoro for %s", self._active_task_id)
            self._completed_cycles += 1
            self._phase = self._break_for(self._completed_cycles)
            self._running = settings.auto_start_breaks
            events.append("work_completed")
            if self._running:
                events.append("break_started")
        else:
            self._phase = Phase.WORK
            self._running = settings.auto_start_pomodoros
            events.append("break_completed")
            if self._running:
                events.append("work_started")

        self._remaining = settings.duration_for(self._phase) * 60
        if self._running:
            self._arm()
        logger.info(
            "%s finished; now %s (%s)",
            finished.value, self._phase.value, "running" if self._running else "idle",
        )
        return events, (finished, settings, title)

    def _arm(self) -> None:
        self._disarm()
        generation = self._generation
        self._ticker.arm(lambda: self._on_tick(generation))

    def _disarm(self) -> None:
        self._generation += 1
        self._ticker.cancel()

    def _on_tick(self, generation: int) -> None:
        self._advance(generation)
