"""macOS alert backend using AppleScript (osascript) and afplay."""

import logging
import shutil
import subprocess

from pomotrack.platform.base import AlertBackend

logger = logging.getLogger(__name__)

_DEFAULT_SOUND = "/System/Library/Sounds/Glass.aiff"


class MacOSAlertBackend(AlertBackend):
    """Show notifications with ``osascript`` and play sounds with ``afplay``."""

    def __init__(self, sound_path: str = _DEFAULT_SOUND) -> None:
        self.sound_path = sound_path

    def request_permission(self) -> bool:
        return shutil.which("osascript") is not None

    def play_sound(self) -> None:
        subprocess.Popen(
            ["afplay", self.sound_path],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def show_notification(self, title: str, body: str) -> None:
        script = (
            f'display notification "{_escape(body)}" '
            f'with title "{_escape(title)}"'
        )
        result = subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode != 0:
            logger.debug(
                "osascript returned %d: %s", result.returncode, result.stderr.strip()
            )


def _escape(text: str) -> str:
    """Escape backslashes and double quotes for AppleScript strings."""
    return text.replace("\\", "\\\\").replace('"', '\\"')
