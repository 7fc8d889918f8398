"""Tick sources that drive the Pomodoro countdown.

A ticker is owned by exactly one timer.  Arming always replaces the previous
arming, so at most one callback chain is live at any time.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Ticker:
    """Common interface for 1 Hz tick sources."""

    def arm(self, callback: Callable[[], object]) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        raise NotImplementedError

    @property
    def armed(self) -> bool:
        raise NotImplementedError


class ThreadingTicker(Ticker):
    """Calls the armed callback once per *interval* from a daemon thread."""

    def __init__(self, interval: float = 1.0) -> None:
        self.interval = interval
        self._lock = threading.Lock()
        self._stop: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._stop is not None

    def arm(self, callback: Callable[[], object]) -> None:
        with self._lock:
            self._cancel_locked()
            stop = threading.Event()
            self._stop = stop
            self._thread = threading.Thread(
                target=self._run, args=(stop, callback),
                daemon=True, name="pomotrack-ticker",
            )
            self._thread.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._stop is not None:
            self._stop.set()
        self._stop = None
        self._thread = None

    def _run(self, stop: threading.Event, callback: Callable[[], object]) -> None:
        while not stop.wait(self.interval):
            # A cancel/re-arm may have raced with the wait.
            with self._lock:
                if self._stop is not stop:
                    return
            try:
                callback()
            except Exception:
                logger.exception("Tick callback failed")


class ManualTicker(Ticker):
    """Ticker fired explicitly by the host, e.g. from its own event loop."""

    def __init__(self) -> None:
        self._callback: Optional[Callable[[], object]] = None
        self.arm_count = 0

    @property
    def armed(self) -> bool:
        return self._callback is not None

    def arm(self, callback: Callable[[], object]) -> None:
        self._callback = callback
        self.arm_count += 1

    def cancel(self) -> None:
        self._callback = None

    def fire(self, times: int = 1) -> int:
        """Deliver up to *times* ticks; stops early once disarmed.

        Returns the number of ticks delivered.
        """
        delivered = 0
        for _ in range(times):
            callback = self._callback
            if callback is None:
                break
            callback()
            delivered += 1
        return delivered
