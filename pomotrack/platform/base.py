"""Abstract base class for platform-specific alert backends."""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class AlertBackend(ABC):
    """Common interface for audible and visual phase-completion alerts.

    Each supported platform provides a concrete implementation that uses
    OS-specific tools behind this interface.  Implementations may raise;
    callers are expected to contain failures.
    """

    @abstractmethod
    def request_permission(self) -> bool:
        """Return True if desktop notifications can be shown."""
        pass

    @abstractmethod
    def play_sound(self) -> None:
        """Play a short completion sound."""
        pass

    @abstractmethod
    def show_notification(self, title: str, body: str) -> None:
        """Show a desktop notification."""
        pass


class NullAlertBackend(AlertBackend):
    """Backend for platforms without alert support; only logs."""

    def request_permission(self) -> bool:
        return False

    def play_sound(self) -> None:
        logger.debug("Sound alerts not supported on this platform")

    def show_notification(self, title: str, body: str) -> None:
        logger.info("%s: %s", title, body)
