"""Factory for creating the appropriate AlertBackend for the current OS."""

import logging
import sys

from pomotrack.platform.base import AlertBackend, NullAlertBackend

logger = logging.getLogger(__name__)


def create_alert_backend() -> AlertBackend:
    """Detect the current OS and return the matching AlertBackend.

    Uses lazy imports so platform-specific modules are only loaded on
    the OS where they are actually needed.  Unknown platforms get a
    :class:`NullAlertBackend` that only logs.
    """
    if sys.platform == "darwin":
        from pomotrack.platform.macos import MacOSAlertBackend
        return MacOSAlertBackend()

    if sys.platform == "win32":
        from pomotrack.platform.windows import WindowsAlertBackend
        return WindowsAlertBackend()

    if sys.platform.startswith("linux"):
        from pomotrack.platform.linux import LinuxAlertBackend
        return LinuxAlertBackend()

    logger.info("No alert backend for platform %r; alerts will be logged", sys.platform)
    return NullAlertBackend()
