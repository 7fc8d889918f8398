"""PomoTrack application entry point.

Supports these modes:
  - GUI mode (default): launches the system tray application
  - Headless mode: serves only the web dashboard in the foreground
  - CLI mode: prints a daily or weekly summary to stdout, or exports
    the weekly report as a Word document

Usage:
    python -m pomotrack.main                         # GUI mode
    python -m pomotrack.main --headless              # dashboard only
    python -m pomotrack.main --daily                 # print today's summary
    python -m pomotrack.main --weekly                # print this week's summary
    python -m pomotrack.main --export-weekly out.docx
"""

import argparse
import logging
import os
from datetime import date, timedelta

from pomotrack.core.config import get_default_config_path, load_config
from pomotrack.persistence.store import ProductivityStore
from pomotrack.reporting.formatter import TextFormatter
from pomotrack.reporting.summary import StatsGenerator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="pomotrack",
        description="PomoTrack: Pomodoro timer and time tracker",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config.json (defaults to the platform data directory)",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--daily",
        action="store_true",
        help="Print today's daily summary and exit",
    )
    group.add_argument(
        "--weekly",
        action="store_true",
        help="Print this week's weekly summary and exit",
    )
    group.add_argument(
        "--export-weekly",
        metavar="PATH",
        help="Write this week's report to a .docx file and exit",
    )
    group.add_argument(
        "--headless",
        action="store_true",
        help="Run the web dashboard without a tray icon",
    )
    return parser


def _open_stats(config: dict) -> tuple[ProductivityStore, StatsGenerator]:
    db_path = os.path.expanduser(config.get("database_path", "~/.pomotrack/pomotrack.db"))
    parent_dir = os.path.dirname(db_path)
    if parent_dir:
        os.makedirs(parent_dir, exist_ok=True)
    store = ProductivityStore(db_path)
    store.init_db()
    goal_minutes = int(config.get("weekly_goal_hours", 40) * 60)
    return store, StatsGenerator(store, goal_minutes)


def _week_start() -> date:
    today = date.today()
    return today - timedelta(days=today.weekday())


def _print_daily_summary(config: dict) -> None:
    """Create a store and stats generator, then print today's summary."""
    store, stats = _open_stats(config)
    try:
        print(TextFormatter.format_daily(stats.daily_summary(date.today())))
    finally:
        store.close()


def _print_weekly_summary(config: dict) -> None:
    """Create a store and stats generator, then print this week's summary."""
    store, stats = _open_stats(config)
    try:
        print(TextFormatter.format_weekly(stats.weekly_summary(_week_start())))
    finally:
        store.close()


def _export_weekly_report(config: dict, output_path: str) -> None:
    from pomotrack.reporting.exporter import ReportExporter

    store, stats = _open_stats(config)
    try:
        summary = stats.weekly_summary(_week_start())
        user_name = config.get("report", {}).get("user_name", "")
        path = ReportExporter().export_weekly(summary, user_name, os.path.expanduser(output_path))
        print(f"Report written to {path}")
    finally:
        store.close()


def main(args: list[str] | None = None) -> None:
    """Entry point for PomoTrack.

    When *args* is ``None`` the arguments are read from ``sys.argv``.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = build_parser()
    parsed = parser.parse_args(args)

    config_path = parsed.config or str(get_default_config_path())
    config = load_config(config_path)

    if parsed.daily:
        _print_daily_summary(config)
    elif parsed.weekly:
        _print_weekly_summary(config)
    elif parsed.export_weekly:
        _export_weekly_report(config, parsed.export_weekly)
    else:
        # Import here to avoid pulling in pystray/flask for CLI usage
        from pomotrack.ui.app import PomoTrackApp

        app = PomoTrackApp(config_path)
        if parsed.headless:
            app.start_headless()
        else:
            app.start()


if __name__ == "__main__":
    main()
