"""Windows alert backend using winsound."""

import logging

from pomotrack.platform.base import AlertBackend

logger = logging.getLogger(__name__)


class WindowsAlertBackend(AlertBackend):
    """Play the system asterisk sound; notifications are logged only."""

    def request_permission(self) -> bool:
        return False

    def play_sound(self) -> None:
        import winsound
        winsound.MessageBeep(winsound.MB_ICONASTERISK)

    def show_notification(self, title: str, body: str) -> None:
        logger.info("%s: %s", title, body)
