"""Report exporter for PomoTrack.

Generates Word (.docx) documents from weekly summary data using python-docx.
"""

import logging
import os

from pomotrack.core.models import TaskTimeSummary, WeeklySummary
from pomotrack.reporting.formatter import TextFormatter

logger = logging.getLogger(__name__)


class ReportExporter:
    """Exports weekly summary data to a formatted Word document (.docx)."""

    def export_weekly(
        self, summary: WeeklySummary, user_name: str, output_path: str
    ) -> str:
        """Generate a .docx file from weekly summary data.

        Args:
            summary: The weekly summary to export.
            user_name: The user's configured display name.
            output_path: File path for the generated .docx file.

        Returns:
            The path to the generated file.
        """
        from docx import Document

        parent_dir = os.path.dirname(output_path)
        if parent_dir:
            os.makedirs(parent_dir, exist_ok=True)

        doc = Document()

        self._add_title_page(doc, summary, user_name)

        doc.add_heading("Weekly Summary", level=1)
        self._add_task_table(doc, summary.tasks, summary.total_minutes, summary.pomodoros)
        if summary.goal_minutes > 0:
            doc.add_paragraph(
                f"Weekly goal: {TextFormatter.format_minutes(summary.total_minutes)} of "
                f"{TextFormatter.format_minutes(summary.goal_minutes)} "
                f"({round(summary.goal_progress * 100)}%)"
            )

        doc.add_heading("Daily Breakdown", level=1)
        for daily in summary.daily_breakdowns:
            doc.add_heading(daily.date.strftime("%A, %B %d, %Y"), level=2)
            if not daily.tasks:
                doc.add_paragraph("No time recorded.")
            else:
                self._add_task_table(doc, daily.tasks, daily.total_minutes, daily.pomodoros)

        doc.save(output_path)
        logger.info("Weekly report written to %s", output_path)
        return output_path

    def _add_title_page(self, doc, summary: WeeklySummary, user_name: str) -> None:
        """Add a title page with report title, date range, and user name."""
        from docx.enum.text import WD_ALIGN_PARAGRAPH
        from docx.shared import Pt

        title_para = doc.add_paragraph()
        title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = title_para.add_run("PomoTrack Weekly Report")
        run.bold = True
        run.font.size = Pt(24)

        start_str = summary.start_date.strftime("%B %d, %Y")
        end_str = summary.end_date.strftime("%B %d, %Y")
        date_para = doc.add_paragraph()
        date_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = date_para.add_run(f"{start_str} - {end_str}")
        run.font.size = Pt(14)

        if user_name:
            name_para = doc.add_paragraph()
            name_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
            run = name_para.add_run(f"Prepared for: {user_name}")
            run.font.size = Pt(12)

        doc.add_page_break()

    def _add_task_table(
        self,
        doc,
        tasks: list[TaskTimeSummary],
        total_minutes: int,
        pomodoros: int,
    ) -> None:
        """Add a task summary table: header, one row per task, total row."""
        table = doc.add_table(rows=1 + len(tasks) + 1, cols=4)
        table.style = "Light Grid Accent 1"

        header_cells = table.rows[0].cells
        header_cells[0].text = "Task"
        header_cells[1].text = "Project"
        header_cells[2].text = "Time"
        header_cells[3].text = "Pomodoros"

        for i, task in enumerate(tasks, start=1):
            row_cells = table.rows[i].cells
            row_cells[0].text = task.title
            row_cells[1].text = task.project_name
            row_cells[2].text = TextFormatter.format_minutes(task.total_minutes)
            row_cells[3].text = str(task.pomodoros)

        total_row = table.rows[-1].cells
        total_row[0].text = "Total"
        total_row[2].text = TextFormatter.format_minutes(total_minutes)
        total_row[3].text = str(pomodoros)

        for row in (table.rows[0], table.rows[-1]):
            for cell in row.cells:
                for paragraph in cell.paragraphs:
                    for run in paragraph.runs:
                        run.bold = True

        doc.add_paragraph()
