"""Phase-completion alerts.

Wraps a platform :class:`AlertBackend` so that sound and notification
failures can never interrupt a timer transition.
"""

import logging
from typing import Optional

from pomotrack.core.models import Phase, PomodoroSettings
from pomotrack.platform.base import AlertBackend

logger = logging.getLogger(__name__)


class AlertDispatcher:
    """Fires audible and visual alerts when a timer phase completes."""

    def __init__(self, backend: AlertBackend) -> None:
        self.backend = backend
        self._permission: Optional[bool] = None

    @property
    def permission_granted(self) -> bool:
        return bool(self._permission)

    def request_permission(self) -> bool:
        """Ask the backend for notification permission once.

        Later calls return the cached answer.  A failing backend counts as
        permission denied.
        """
        if self._permission is None:
            try:
                self._permission = bool(self.backend.request_permission())
            except Exception:
                logger.debug("Notification permission request failed", exc_info=True)
                self._permission = False
        return self._permission

    def phase_completed(
        self,
        phase: Phase,
        settings: PomodoroSettings,
        task_title: Optional[str] = None,
    ) -> None:
        """Alert that *phase* has just finished."""
        if settings.sound_enabled:
            try:
                self.backend.play_sound()
            except Exception:
                logger.debug("Sound alert failed", exc_info=True)

        if settings.notifications_enabled and self.permission_granted:
            title, body = _notification_text(phase, task_title)
            try:
                self.backend.show_notification(title, body)
            except Exception:
                logger.debug("Desktop notification failed", exc_info=True)


def _notification_text(phase: Phase, task_title: Optional[str]) -> tuple[str, str]:
    if phase.is_break:
        return "Break is over!", "Time to get back to work."
    if task_title:
        return "Pomodoro complete!", f'You completed a pomodoro on "{task_title}".'
    return "Pomodoro complete!", "You completed a pomodoro."
