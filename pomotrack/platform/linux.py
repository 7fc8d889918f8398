"""Linux alert backend using notify-send and the freedesktop sound tools."""

import logging
import shutil
import subprocess
from typing import Optional

from pomotrack.platform.base import AlertBackend

logger = logging.getLogger(__name__)

_SOUND_COMMANDS = (
    ["canberra-gtk-play", "-i", "complete"],
    ["paplay", "/usr/share/sounds/freedesktop/stereo/complete.oga"],
)


class LinuxAlertBackend(AlertBackend):
    """Show notifications with ``notify-send``; play sounds when a player exists."""

    def request_permission(self) -> bool:
        return shutil.which("notify-send") is not None

    def play_sound(self) -> None:
        command = self._sound_command()
        if command is None:
            logger.debug("No sound player found; skipping sound alert")
            return
        subprocess.Popen(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)

    def show_notification(self, title: str, body: str) -> None:
        subprocess.run(
            ["notify-send", "--app-name=PomoTrack", title, body],
            capture_output=True,
            timeout=5,
            check=True,
        )

    @staticmethod
    def _sound_command() -> Optional[list[str]]:
        for command in _SOUND_COMMANDS:
            if shutil.which(command[0]) is not None:
                return command
        return None
