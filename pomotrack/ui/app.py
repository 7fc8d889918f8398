"""System tray application for PomoTrack.

Provides a pystray-based system tray icon with menu items for controlling
the Pomodoro timer, viewing summaries, opening the dashboard, and quitting.
The timer counts down on its own ticker thread and the dashboard runs in a
daemon thread, so the tray icon remains responsive.
"""

import logging
import os
import sys
import webbrowser
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Mapping, Optional

from pomotrack.core.alerts import AlertDispatcher
from pomotrack.core.config import load_config, save_config, settings_from_dict, settings_to_dict
from pomotrack.core.manual_tracker import ManualTimeTracker
from pomotrack.core.models import PomodoroSettings
from pomotrack.core.pomodoro import PomodoroTimer
from pomotrack.core.recorder import SessionRecorder
from pomotrack.core.ticker import ThreadingTicker
from pomotrack.persistence.store import ProductivityStore
from pomotrack.platform.factory import create_alert_backend
from pomotrack.reporting.formatter import TextFormatter
from pomotrack.reporting.summary import StatsGenerator

logger = logging.getLogger(__name__)


def _create_default_icon():
    """Create a simple default icon image using PIL, or load from assets."""
    try:
        from PIL import Image, ImageDraw
    except ImportError:
        return None

    assets_dir = Path(__file__).resolve().parent.parent.parent / "assets"
    icon_path = assets_dir / "icon.png"
    if icon_path.exists():
        try:
            return Image.open(str(icon_path))
        except Exception:
            logger.debug("Could not load icon from %s, creating default", icon_path)

    # Fallback: a tomato-red disc on a transparent 64x64 canvas
    img = Image.new("RGBA", (64, 64), color=(0, 0, 0, 0))
    ImageDraw.Draw(img).ellipse((6, 8, 58, 60), fill=(232, 114, 74, 255))
    return img


class PomoTrackApp:
    """Main application class that runs PomoTrack as a system tray app."""

    def __init__(self, config_path: str) -> None:
        self.config_path = config_path
        self.config = load_config(config_path)
        self.tray_icon = None
        self._store: Optional[ProductivityStore] = None
        self._timer: Optional[PomodoroTimer] = None
        self._manual_tracker: Optional[ManualTimeTracker] = None
        self._stats: Optional[StatsGenerator] = None
        self._dashboard_port = int(self.config.get("dashboard_port", 5556))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Initialize all components, start the dashboard, and display the
        system tray icon."""
        self._init_components()
        self._start_dashboard()
        self._run_tray()

    def start_headless(self) -> None:
        """Run only the dashboard, blocking until interrupted."""
        self._init_components()
        thread = self._start_dashboard()
        if thread is None:
            self.stop()
            return
        try:
            while thread.is_alive():
                thread.join(timeout=1.0)
        except KeyboardInterrupt:
            logger.info("Interrupted; shutting down")
        finally:
            self.stop()

    def stop(self) -> None:
        """Stop the timer and clean up resources."""
        if self._timer is not None:
            self._timer.pause()
        if self._manual_tracker is not None and self._manual_tracker.active:
            self._manual_tracker.stop()
        if self._store is not None:
            self._store.close()
            self._store = None
        if self.tray_icon is not None:
            try:
                self.tray_icon.stop()
            except Exception:
                logger.debug("Tray icon already stopped")
            self.tray_icon = None

    def update_settings(self, changes: Mapping[str, Any]) -> PomodoroSettings:
        """Apply a partial settings update and persist it to the config file."""
        if self._timer is None:
            raise RuntimeError("Timer not initialized")
        settings = self._timer.update_settings(changes)
        self.config["pomodoro"] = settings_to_dict(settings)
        try:
            save_config(self.config, self.config_path)
        except OSError:
            logger.exception("Failed to save settings to %s", self.config_path)
        return settings

    def toggle_timer(self) -> None:
        """Start the timer if it is stopped, pause it otherwise."""
        if self._timer is None:
            return
        if self._timer.running:
            self._timer.pause()
        elif not self._timer.start():
            self._show_popup("PomoTrack", "Select a task in the dashboard before starting.")

    def show_daily_summary(self) -> None:
        """Display today's summary in a popup window."""
        if self._stats is None:
            logger.warning("Stats generator not initialized")
            return

        try:
            summary = self._stats.daily_summary(date.today())
            text = TextFormatter.format_daily(summary)
            self._show_popup("Daily Summary", text)
        except Exception:
            logger.exception("Failed to generate daily summary")

    def show_weekly_summary(self) -> None:
        """Generate and display the weekly summary."""
        if self._stats is None:
            logger.warning("Stats generator not initialized")
            return

        try:
            start_date = date.today() - timedelta(days=date.today().weekday())
            summary = self._stats.weekly_summary(start_date)
            text = TextFormatter.format_weekly(summary)
            self._show_popup("Weekly Summary", text)
        except Exception:
            logger.exception("Failed to generate weekly summary")

    # ------------------------------------------------------------------
    # Component initialization
    # ------------------------------------------------------------------

    def _init_components(self) -> None:
        """Wire up all PomoTrack components from config."""
        config = self.config

        # Database
        db_path = config.get("database_path", "~/.pomotrack/pomotrack.db")
        db_path = os.path.expanduser(db_path)
        parent_dir = os.path.dirname(db_path)
        if parent_dir:
            os.makedirs(parent_dir, exist_ok=True)
        self._store = ProductivityStore(db_path)
        self._store.init_db()

        # Pomodoro timer
        settings = settings_from_dict(config.get("pomodoro", {}))
        self._timer = PomodoroTimer(
            settings,
            ThreadingTicker(),
            recorder=SessionRecorder(self._store),
            alerts=AlertDispatcher(create_alert_backend()),
            on_stop=self._on_timer_stop,
        )

        # Manual tracker
        self._manual_tracker = ManualTimeTracker(self._store)

        # Stats
        goal_hours = config.get("weekly_goal_hours", 40)
        self._stats = StatsGenerator(self._store, int(goal_hours * 60))

    def _on_timer_stop(self) -> None:
        if self.tray_icon is not None:
            try:
                self.tray_icon.update_menu()
            except Exception:
                logger.debug("Could not refresh tray menu")

    # ------------------------------------------------------------------
    # System tray
    # ------------------------------------------------------------------

    def _run_tray(self) -> None:
        """Create and run the pystray system tray icon."""
        try:
            import pystray
            from pystray import MenuItem, Menu
        except ImportError:
            logger.warning(
                "pystray not available; running without system tray. "
                "Install pystray for tray icon support."
            )
            return

        icon_image = _create_default_icon()
        if icon_image is None:
            logger.warning("Could not create tray icon image; skipping tray")
            return

        def _timer_label(item):
            return "Pause" if self._timer is not None and self._timer.running else "Start"

        menu = Menu(
            MenuItem(_timer_label, lambda: self.toggle_timer()),
            MenuItem("Skip", lambda: self._timer.skip()),
            MenuItem("Stop", lambda: self._timer.stop()),
            Menu.SEPARATOR,
            MenuItem("Dashboard", lambda: self._open_dashboard()),
            MenuItem("Daily Summary", lambda: self.show_daily_summary()),
            MenuItem("Weekly Report", lambda: self.show_weekly_summary()),
            Menu.SEPARATOR,
            MenuItem("Quit", lambda: self._quit()),
        )

        self.tray_icon = pystray.Icon("PomoTrack", icon_image, "PomoTrack", menu)
        self.tray_icon.run()

    def _quit(self) -> None:
        """Quit the application cleanly."""
        self.stop()

    # ------------------------------------------------------------------
    # Web dashboard
    # ------------------------------------------------------------------

    def _start_dashboard(self):
        """Start the web dashboard in a background thread."""
        try:
            from pomotrack.ui.web import start_dashboard
            return start_dashboard(self, port=self._dashboard_port)
        except Exception:
            logger.exception("Failed to start web dashboard")
            return None

    def _open_dashboard(self) -> None:
        """Open the dashboard in the default browser."""
        url = f"http://127.0.0.1:{self._dashboard_port}"
        if not webbrowser.open(url):
            logger.info("Dashboard available at %s", url)

    # ------------------------------------------------------------------
    # UI helpers
    # ------------------------------------------------------------------

    def _show_popup(self, title: str, message: str) -> None:
        """Show a popup with the given message, natively on macOS."""
        if sys.platform == "darwin":
            self._osascript_display(title, message)
        else:
            logger.info("%s:\n%s", title, message)

    def _osascript_display(self, title: str, message: str) -> None:
        """Display text via a native macOS dialog."""
        import subprocess
        escaped = message.replace("\\", "\\\\").replace('"', '\\"')
        script = (
            f'display dialog "{escaped}" '
            f'with title "{title}" '
            f'buttons {{"OK"}} default button "OK"'
        )
        try:
            subprocess.Popen(
                ["osascript", "-e", script],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError:
            logger.info("%s:\n%s", title, message)
