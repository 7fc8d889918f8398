"""Tests for the ReportExporter class."""

import os
from datetime import date

from docx import Document

from pomotrack.core.models import DailySummary, TaskTimeSummary, WeeklySummary
from pomotrack.reporting.exporter import ReportExporter


def _make_task(title: str, project: str, minutes: int, pomodoros: int) -> TaskTimeSummary:
    return TaskTimeSummary(
        task_id=title.lower(),
        title=title,
        project_name=project,
        total_minutes=minutes,
        pomodoros=pomodoros,
        session_count=pomodoros,
    )


def _make_weekly_summary() -> WeeklySummary:
    """Build a realistic weekly summary for testing."""
    start = date(2025, 1, 6)  # Monday
    end = date(2025, 1, 12)   # Sunday

    daily_breakdowns = []
    for i in range(7):
        d = date(2025, 1, 6 + i)
        if i < 5:  # weekdays have sessions
            daily_breakdowns.append(
                DailySummary(
                    date=d,
                    tasks=[
                        _make_task("Landing page", "Website", 100, 4),
                        _make_task("Invoice", "", 20, 0),
                    ],
                    total_minutes=120,
                    pomodoros=4,
                )
            )
        else:
            daily_breakdowns.append(DailySummary(date=d))

    return WeeklySummary(
        start_date=start,
        end_date=end,
        daily_breakdowns=daily_breakdowns,
        tasks=[
            _make_task("Landing page", "Website", 500, 20),
            _make_task("Invoice", "", 100, 0),
        ],
        total_minutes=600,
        pomodoros=20,
        goal_minutes=2400,
    )


def _all_text(path: str) -> str:
    return "\n".join(p.text for p in Document(path).paragraphs)


class TestReportExporter:
    """Tests for ReportExporter.export_weekly."""

    def test_creates_docx_file(self, tmp_path):
        out = str(tmp_path / "report.docx")
        result = ReportExporter().export_weekly(_make_weekly_summary(), "Alice", out)
        assert result == out
        assert os.path.isfile(out)

    def test_creates_parent_directories(self, tmp_path):
        out = str(tmp_path / "nested" / "dir" / "report.docx")
        ReportExporter().export_weekly(_make_weekly_summary(), "Bob", out)
        assert os.path.isfile(out)

    def test_title_page_content(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_weekly(_make_weekly_summary(), "Alice Smith", out)
        text = _all_text(out)
        assert "PomoTrack Weekly Report" in text
        assert "January 06, 2025" in text
        assert "January 12, 2025" in text
        assert "Prepared for: Alice Smith" in text

    def test_title_page_no_user_name(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_weekly(_make_weekly_summary(), "", out)
        assert "Prepared for:" not in _all_text(out)

    def test_weekly_task_table(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_weekly(_make_weekly_summary(), "Alice", out)
        table = Document(out).tables[0]

        assert [c.text for c in table.rows[0].cells] == ["Task", "Project", "Time", "Pomodoros"]
        assert [c.text for c in table.rows[1].cells] == ["Landing page", "Website", "8h 20m", "20"]
        assert [c.text for c in table.rows[2].cells] == ["Invoice", "", "1h 40m", "0"]
        last = table.rows[-1].cells
        assert last[0].text == "Total"
        assert last[2].text == "10h 0m"
        assert last[3].text == "20"

    def test_goal_paragraph(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_weekly(_make_weekly_summary(), "Alice", out)
        assert "Weekly goal: 10h 0m of 40h 0m (25%)" in _all_text(out)

    def test_daily_breakdown_sections(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_weekly(_make_weekly_summary(), "Alice", out)
        text = _all_text(out)
        assert "Monday, January 06, 2025" in text
        assert "Sunday, January 12, 2025" in text
        assert "No time recorded." in text

    def test_daily_tables_present(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_weekly(_make_weekly_summary(), "Alice", out)
        # 1 weekly table + 5 weekday tables
        assert len(Document(out).tables) == 6

    def test_headings_present(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_weekly(_make_weekly_summary(), "Alice", out)
        headings = [
            p.text for p in Document(out).paragraphs if p.style.name.startswith("Heading")
        ]
        assert "Weekly Summary" in headings
        assert "Daily Breakdown" in headings

    def test_empty_weekly_summary(self, tmp_path):
        summary = WeeklySummary(
            start_date=date(2025, 1, 6),
            end_date=date(2025, 1, 12),
            daily_breakdowns=[DailySummary(date=date(2025, 1, 6 + i)) for i in range(7)],
        )
        out = str(tmp_path / "report.docx")
        ReportExporter().export_weekly(summary, "Alice", out)
        doc = Document(out)
        assert len(doc.tables) == 1
        assert "Weekly goal" not in _all_text(out)
