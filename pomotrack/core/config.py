"""Configuration loader for PomoTrack.

Handles loading, saving, and default creation of config.json, and the
validation of Pomodoro settings coming from the user.
Resolves platform-appropriate data directories:
  - macOS:   ~/Library/Application Support/PomoTrack
  - Windows: %APPDATA%/PomoTrack
  - Other:   ~/.pomotrack
"""

import json
import logging
import os
import sys
from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping, Optional

from pomotrack.core.models import PomodoroSettings

logger = logging.getLogger(__name__)

# snake_case field -> persisted camelCase key
_SETTINGS_KEYS = {
    "work_duration": "workDuration",
    "short_break_duration": "shortBreakDuration",
    "long_break_duration": "longBreakDuration",
    "long_break_interval": "longBreakInterval",
    "auto_start_breaks": "autoStartBreaks",
    "auto_start_pomodoros": "autoStartPomodoros",
    "sound_enabled": "soundEnabled",
    "notifications_enabled": "notificationsEnabled",
}

# Inclusive bounds for the integer settings.
SETTINGS_LIMITS = {
    "work_duration": (1, 60),
    "short_break_duration": (1, 30),
    "long_break_duration": (1, 60),
    "long_break_interval": (2, 10),
}


def get_data_directory() -> Path:
    """Return the platform-appropriate data directory for PomoTrack."""
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    elif sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    else:
        base = Path.home()
        return base / ".pomotrack"
    return base / "PomoTrack"


def get_default_config() -> dict[str, Any]:
    """Return the default configuration dictionary."""
    data_dir = get_data_directory()
    return {
        "pomodoro": settings_to_dict(PomodoroSettings()),
        "database_path": str(data_dir / "pomotrack.db"),
        "dashboard_port": 5556,
        "weekly_goal_hours": 40,
        "report": {
            "user_name": "",
            "output_directory": "~/pomotrack-reports",
        },
    }


def get_default_config_path() -> Path:
    """Return the default path for config.json."""
    return get_data_directory() / "config.json"


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from a JSON file.

    If *path* is ``None``, the platform default location is used.
    When the file does not exist, a default configuration is created,
    written to disk, and returned.  If the file exists but is invalid
    JSON, the error is logged and defaults are returned.
    """
    config_path = Path(path) if path is not None else get_default_config_path()

    if not config_path.exists():
        logger.info("Config file not found at %s, creating defaults.", config_path)
        defaults = get_default_config()
        save_config(defaults, config_path)
        return defaults

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError("Top-level JSON value must be an object")
        return data
    except (json.JSONDecodeError, ValueError, OSError) as exc:
        logger.error("Failed to load config from %s: %s, using defaults.", config_path, exc)
        return get_default_config()


def save_config(config: dict[str, Any], path: str | Path | None = None) -> None:
    """Write *config* to a JSON file.

    If *path* is ``None``, the platform default location is used.
    Parent directories are created automatically.
    """
    config_path = Path(path) if path is not None else get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)
        fh.write("\n")


# ---------------------------------------------------------------------------
# Pomodoro settings
# ---------------------------------------------------------------------------

def settings_to_dict(settings: PomodoroSettings) -> dict[str, Any]:
    """Return *settings* in the persisted camelCase shape."""
    return {camel: getattr(settings, name) for name, camel in _SETTINGS_KEYS.items()}


def settings_from_dict(
    data: Optional[Mapping[str, Any]],
    previous: Optional[PomodoroSettings] = None,
) -> PomodoroSettings:
    """Build settings from user-supplied *data*.

    Keys may be camelCase (persisted shape) or snake_case.  Missing keys keep
    the value from *previous* (or the defaults).  Each invalid value is
    logged and replaced by the previous valid value, so a bad field never
    affects the others and this function never raises.
    """
    base = previous if previous is not None else PomodoroSettings()
    if not isinstance(data, Mapping):
        if data is not None:
            logger.warning("Ignoring non-mapping settings payload: %r", data)
        return base

    changes: dict[str, Any] = {}
    for f in fields(PomodoroSettings):
        camel = _SETTINGS_KEYS[f.name]
        if camel in data:
            raw = data[camel]
        elif f.name in data:
            raw = data[f.name]
        else:
            continue

        current = getattr(base, f.name)
        if f.name in SETTINGS_LIMITS:
            value = _coerce_minutes(raw, *SETTINGS_LIMITS[f.name])
        else:
            value = _coerce_bool(raw)

        if value is None:
            logger.warning(
                "Invalid value %r for %s; keeping %r", raw, camel, current
            )
            continue
        changes[f.name] = value

    return base.with_updates(**changes) if changes else base


def _coerce_minutes(raw: Any, low: int, high: int) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return None
    if number != number or not number.is_integer():  # NaN or fractional
        return None
    value = int(number)
    if value < low or value > high:
        return None
    return value


def _coerce_bool(raw: Any) -> Optional[bool]:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    return None
