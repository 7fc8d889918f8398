"""Text formatter for PomoTrack summaries.

Renders DailySummary and WeeklySummary as aligned plain-text reports,
and provides the clock/duration strings shown by the timer UI.
"""

from datetime import timedelta

from pomotrack.core.models import DailySummary, TaskTimeSummary, WeeklySummary


class TextFormatter:
    """Formats timer and summary data as human-readable plain text."""

    @staticmethod
    def format_clock(seconds: int) -> str:
        """Format a countdown as 'mm:ss' (minutes are not wrapped at 60)."""
        seconds = max(0, int(seconds))
        mins, secs = divmod(seconds, 60)
        return f"{mins:02d}:{secs:02d}"

    @staticmethod
    def format_minutes(minutes: int) -> str:
        """Format whole minutes as 'Xh Ym', or 'Ym' below one hour."""
        minutes = max(0, int(minutes))
        hours, mins = divmod(minutes, 60)
        if hours == 0:
            return f"{mins}m"
        return f"{hours}h {mins}m"

    @staticmethod
    def format_duration(duration: timedelta) -> str:
        """Format a timedelta as 'Xh Ym', truncated to whole minutes."""
        return TextFormatter.format_minutes(int(duration.total_seconds()) // 60)

    @staticmethod
    def _format_task_table(
        tasks: list[TaskTimeSummary],
        total_minutes: int,
        pomodoros: int,
    ) -> str:
        """Render a task table with aligned columns.

        Returns lines like:
          Task                Time   Pomodoros
          ─────────────────────────────────────
          Landing page      2h 15m           5
          Invoice client       45m           0
          ─────────────────────────────────────
          Total             3h 0m            5
        """
        if not tasks:
            return "  No time recorded.\n"

        labels = [
            f"{t.title} ({t.project_name})" if t.project_name else t.title
            for t in tasks
        ]
        name_width = max(len(s) for s in labels + ["Task", "Total"])

        dur_strs = [TextFormatter.format_minutes(t.total_minutes) for t in tasks]
        total_dur_str = TextFormatter.format_minutes(total_minutes)
        dur_width = max(len(s) for s in dur_strs + [total_dur_str, "Time"])

        pomo_strs = [str(t.pomodoros) for t in tasks]
        total_pomo_str = str(pomodoros)
        pomo_width = max(len(s) for s in pomo_strs + [total_pomo_str, "Pomodoros"])

        header = (
            f"  {'Task':<{name_width}}  "
            f"{'Time':>{dur_width}}  "
            f"{'Pomodoros':>{pomo_width}}"
        )
        separator = "  " + "─" * (len(header) - 2)

        lines = [header, separator]
        for label, dur_str, pomo_str in zip(labels, dur_strs, pomo_strs):
            lines.append(
                f"  {label:<{name_width}}  "
                f"{dur_str:>{dur_width}}  "
                f"{pomo_str:>{pomo_width}}"
            )
        lines.append(separator)
        lines.append(
            f"  {'Total':<{name_width}}  "
            f"{total_dur_str:>{dur_width}}  "
            f"{total_pomo_str:>{pomo_width}}"
        )
        return "\n".join(lines) + "\n"

    @staticmethod
    def format_daily(summary: DailySummary) -> str:
        """Render a daily summary as aligned plain text."""
        header = f"Daily Summary: {summary.date.strftime('%A, %B %d, %Y')}\n"
        body = TextFormatter._format_task_table(
            summary.tasks, summary.total_minutes, summary.pomodoros
        )
        return header + "\n" + body

    @staticmethod
    def format_weekly(summary: WeeklySummary) -> str:
        """Render a weekly summary as aligned plain text."""
        start_str = summary.start_date.strftime("%B %d, %Y")
        end_str = summary.end_date.strftime("%B %d, %Y")
        parts: list[str] = [f"Weekly Summary: {start_str} - {end_str}\n"]

        parts.append("\nWeekly Totals:\n")
        parts.append(
            TextFormatter._format_task_table(
                summary.tasks, summary.total_minutes, summary.pomodoros
            )
        )
        if summary.goal_minutes > 0:
            parts.append(
                f"\n  Goal: {TextFormatter.format_minutes(summary.total_minutes)}"
                f" of {TextFormatter.format_minutes(summary.goal_minutes)}"
                f" ({round(summary.goal_progress * 100)}%)\n"
            )

        parts.append("\nDaily Breakdown:\n")
        for daily in summary.daily_breakdowns:
            day_label = daily.date.strftime("%A, %B %d")
            if not daily.tasks:
                parts.append(f"\n  {day_label}: No time recorded\n")
            else:
                parts.append(f"\n  {day_label}:\n")
                parts.append(
                    TextFormatter._format_task_table(
                        daily.tasks, daily.total_minutes, daily.pomodoros
                    )
                )

        return "".join(parts)
