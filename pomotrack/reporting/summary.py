"""Statistics over the session log: daily, weekly and trend summaries."""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from pomotrack.core.models import (
    DailySummary,
    Insight,
    SessionType,
    Task,
    TaskTimeSummary,
    TimeSession,
    WeekStats,
    WeeklyComparison,
    WeeklySummary,
)
from pomotrack.persistence.store import ProductivityStore

DELETED_TASK_LABEL = "(deleted task)"
UNASSIGNED_LABEL = "(no task)"


class StatsGenerator:
    """Produces summaries from persisted sessions and tasks.

    Break sessions are never counted as work time or pomodoros.  Sessions
    whose task has been deleted are reported under a placeholder title.
    """

    def __init__(self, store: ProductivityStore, weekly_goal_minutes: int = 40 * 60) -> None:
        self.store = store
        self.weekly_goal_minutes = weekly_goal_minutes

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def daily_summary(self, target_date: date) -> DailySummary:
        """Build a summary for *target_date*, midnight to midnight."""
        start = datetime(target_date.year, target_date.month, target_date.day)
        end = start + timedelta(days=1)
        sessions = self.store.get_sessions(start, end)
        tasks = self._aggregate(sessions)
        return DailySummary(
            date=target_date,
            tasks=tasks,
            total_minutes=sum(t.total_minutes for t in tasks),
            pomodoros=sum(t.pomodoros for t in tasks),
        )

    def weekly_summary(self, start_date: date) -> WeeklySummary:
        """Build a 7-day summary starting from *start_date*."""
        daily = [self.daily_summary(start_date + timedelta(days=i)) for i in range(7)]
        start = datetime(start_date.year, start_date.month, start_date.day)
        sessions = self.store.get_sessions(start, start + timedelta(days=7))
        tasks = self._aggregate(sessions)
        return WeeklySummary(
            start_date=start_date,
            end_date=start_date + timedelta(days=6),
            daily_breakdowns=daily,
            tasks=tasks,
            total_minutes=sum(d.total_minutes for d in daily),
            pomodoros=sum(d.pomodoros for d in daily),
            goal_minutes=self.weekly_goal_minutes,
        )

    def task_summaries(self) -> list[TaskTimeSummary]:
        """Total logged time per task across the whole session log."""
        return self._aggregate(self.store.get_sessions())

    def weekly_comparison(self, now: Optional[datetime] = None) -> WeeklyComparison:
        """Compare the last 7 days with the 7 days before them."""
        now = now or datetime.now()
        tasks = self.store.list_tasks(include_completed=True)
        this_week = self._week_stats(tasks, now - timedelta(days=7), now)
        last_week = self._week_stats(tasks, now - timedelta(days=14), now - timedelta(days=7))
        comparison = WeeklyComparison(this_week=this_week, last_week=last_week)
        comparison.insights = _insights(comparison)
        return comparison

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _aggregate(self, sessions: Iterable[TimeSession]) -> list[TaskTimeSummary]:
        by_task: dict[Optional[str], TaskTimeSummary] = {}
        for sess in sessions:
            if sess.type == SessionType.BREAK:
                continue
            summary = by_task.get(sess.task_id)
            if summary is None:
                summary = self._describe(sess)
                by_task[sess.task_id] = summary
            summary.total_minutes += sess.duration
            summary.session_count += 1
            if sess.type == SessionType.POMODORO:
                summary.pomodoros += 1
        return sorted(by_task.values(), key=lambda s: s.total_minutes, reverse=True)

    def _describe(self, sess: TimeSession) -> TaskTimeSummary:
        if sess.task_id is None:
            return TaskTimeSummary(task_id=None, title=UNASSIGNED_LABEL)
        task = self.store.get_task(sess.task_id)
        project = self.store.get_project(task.project_id if task else sess.project_id)
        return TaskTimeSummary(
            task_id=sess.task_id,
            title=task.title if task else DELETED_TASK_LABEL,
            project_name=project.name if project else "",
        )

    def _week_stats(self, tasks: list[Task], start: datetime, end: datetime) -> WeekStats:
        stats = WeekStats()
        for task in tasks:
            if task.assigned_date is None:
                continue
            assigned = datetime(task.assigned_date.year, task.assigned_date.month, task.assigned_date.day)
            if start <= assigned < end:
                stats.tasks += 1
                if task.completed:
                    stats.completed_tasks += 1
        for sess in self.store.get_sessions(start, end):
            if sess.type == SessionType.BREAK:
                continue
            stats.minutes += sess.duration
            if sess.type == SessionType.POMODORO:
                stats.pomodoros += 1
        return stats


def _insights(comparison: WeeklyComparison) -> list[Insight]:
    insights: list[Insight] = []
    if comparison.completion_trend > 0:
        insights.append(Insight(
            kind="success",
            title="Improving!",
            message=f"You completed {comparison.completion_trend} more tasks than last week.",
        ))
    if comparison.time_trend > 60:
        insights.append(Insight(
            kind="info",
            title="More time invested",
            message=f"You worked {round(comparison.time_trend / 60)} more hours this week.",
        ))
    if comparison.pomodoro_trend < -5:
        insights.append(Insight(
            kind="warning",
            title="Fewer pomodoros",
            message="Consider using the Pomodoro technique more to stay focused.",
        ))
    return insights
