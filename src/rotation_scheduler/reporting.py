"""
Reporting and Export Module for the Rotation Scheduler

Handles PDF, Excel, and CSV export of a generated month together with
the per-worker statistics summary.
"""

import pandas as pd
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, PageBreak
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from datetime import datetime
import calendar
from pathlib import Path
from typing import Dict, List, Optional
import logging

from .calendar_partition import DAY_NAMES, day_of_week, days_in_month
from .data_manager import SHIFTS, get_shift
from .scheduler_logic import ScheduleResult
from .worker_stats import count_weeks, team_totals

logger = logging.getLogger(__name__)


SHIFT_COLORS = {
    7: colors.HexColor("#DBEAFE"),
    9: colors.HexColor("#DCFCE7"),
    13: colors.HexColor("#FEF3C7"),
}
OFF_COLOR = colors.HexColor("#F3F4F6")


def shift_heading(shift_id: int) -> str:
    shift = get_shift(shift_id)
    return f"{shift.label} ({shift.time_window})"


def day_row(result: ScheduleResult, day: int) -> Dict[str, str]:
    """Names per shift and the off worker for one day"""
    entry = result.schedule[day]
    row = {}
    for shift in SHIFTS:
        worker = entry.worker_for_shift(shift.id)
        row[shift.id] = result.request.display_name(worker) if worker is not None else ""
    row["off"] = result.request.display_name(entry.off)
    return row


class ReportGenerator:
    """Main class for generating reports and exports"""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom report styles"""
        self.styles.add(ParagraphStyle(
            name='CustomTitle',
            parent=self.styles['Heading1'],
            fontSize=18,
            spaceAfter=20,
            alignment=1  # Center alignment
        ))

        self.styles.add(ParagraphStyle(
            name='CustomHeading',
            parent=self.styles['Heading2'],
            fontSize=14,
            spaceAfter=12
        ))

        self.styles.add(ParagraphStyle(
            name='CellText',
            parent=self.styles['Normal'],
            fontSize=7,
            leading=9
        ))

    def export_calendar_pdf(self, result: ScheduleResult, output_path: str) -> bool:
        """Export the monthly calendar and statistics to PDF"""
        try:
            request = result.request
            doc = SimpleDocTemplate(
                output_path,
                pagesize=landscape(A4),
                rightMargin=0.5*inch,
                leftMargin=0.5*inch,
                topMargin=0.5*inch,
                bottomMargin=0.5*inch
            )

            story = []

            month_name = calendar.month_name[request.month]
            title = Paragraph(f"Duty Roster - {month_name} {request.year}", self.styles['CustomTitle'])
            story.append(title)

            story.append(self._create_calendar_table(result))
            story.append(Spacer(1, 15))
            story.append(self._create_legend())

            story.append(PageBreak())
            story.extend(self._create_statistics_content(result))

            doc.build(story)
            logger.info(f"PDF exported to {output_path}")
            return True

        except Exception as e:
            logger.error(f"Error creating PDF: {e}", exc_info=True)
            return False

    def _create_calendar_table(self, result: ScheduleResult) -> Table:
        """Create a Sunday-first calendar grid for PDF"""
        year, month = result.request.year, result.request.month

        data = [list(DAY_NAMES)]
        week = [''] * day_of_week(year, month, 1)
        for day in range(1, days_in_month(year, month) + 1):
            week.append(self._format_calendar_cell(result, day))
            if len(week) == 7:
                data.append(week)
                week = []
        if week:
            data.append(week + [''] * (7 - len(week)))

        table = Table(data, colWidths=[1.5*inch]*7,
                      rowHeights=[0.3*inch] + [0.95*inch]*(len(data) - 1))

        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('TEXTCOLOR', (0, 0), (0, 0), colors.pink),
            ('TEXTCOLOR', (6, 0), (6, 0), colors.lightblue),
            ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 10),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))

        return table

    def _format_calendar_cell(self, result: ScheduleResult, day: int) -> Paragraph:
        """One line per worker, ordered by shift start with the off worker last"""
        entry = result.schedule[day]
        request = result.request

        lines = [f"<b>{day}</b>"]
        for worker in sorted(entry.shifts, key=entry.shift_for):
            shift = get_shift(entry.shift_for(worker))
            lines.append(f"{shift.label}: {request.display_name(worker)}")
        lines.append(f"Off: {request.display_name(entry.off)}")

        return Paragraph("<br/>".join(lines), self.styles['CellText'])

    def _create_legend(self) -> Table:
        """Create legend for PDF"""
        legend_data = [['Legend']]
        for shift in SHIFTS:
            legend_data.append([f"{shift.label}  {shift.time_window}"])
        legend_data.append(['Off  Rest day'])

        legend_table = Table(legend_data, colWidths=[3*inch])
        style = [
            ('BACKGROUND', (0, 0), (-1, 0), colors.lightgrey),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
            ('BACKGROUND', (0, len(legend_data) - 1), (-1, len(legend_data) - 1), OFF_COLOR),
        ]
        for row, shift in enumerate(SHIFTS, 1):
            style.append(('BACKGROUND', (0, row), (-1, row), SHIFT_COLORS[shift.id]))
        legend_table.setStyle(TableStyle(style))

        return legend_table

    def _create_statistics_content(self, result: ScheduleResult) -> List:
        """Create statistics content for PDF"""
        content = []

        content.append(Paragraph("Schedule Statistics", self.styles['CustomTitle']))
        content.append(Spacer(1, 10))

        content.append(Paragraph("Team Summary", self.styles['CustomHeading']))
        totals = team_totals(result.statistics)
        weeks = count_weeks(result.request.year, result.request.month)
        team_data = [
            ['Metric', 'Value'],
            ['Workers', str(totals['total_workers'])],
            ['Weeks in Month', str(weeks)],
            ['Total Work Days', str(totals['total_work_days'])],
            ['Total Hours', str(totals['total_hours'])],
            ['Hours Spread (max - min)', str(totals['hours_spread'])],
        ]

        team_table = Table(team_data, colWidths=[3*inch, 2*inch])
        team_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
        ]))
        content.append(team_table)
        content.append(Spacer(1, 20))

        content.append(Paragraph("Individual Worker Statistics", self.styles['CustomHeading']))
        header = ['Worker', 'Work Days', 'Off Days', 'Hours', 'Weekly Avg',
                  'Max Off Streak', '2+ Day Rests'] + [shift.label for shift in SHIFTS]
        emp_data = [header]
        for stats in result.statistics.values():
            emp_data.append([
                stats['name'],
                str(stats['work_days']),
                str(stats['off_days']),
                str(stats['total_hours']),
                f"~{stats['weekly_average_hours']:.0f}",
                str(stats['max_off_streak']),
                str(stats['off_blocks_2plus']),
            ] + [str(stats[f"shift_{shift.id}"]) for shift in SHIFTS])

        emp_table = Table(emp_data, colWidths=[1.4*inch] + [0.9*inch]*(len(header) - 1))
        emp_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ]))
        content.append(emp_table)

        return content

    def export_schedule_excel(self, result: ScheduleResult, output_path: str) -> bool:
        """Export the duty roster and statistics to an Excel workbook"""
        try:
            with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
                roster_df = self._create_roster_dataframe(result)
                roster_df.to_excel(writer, sheet_name='Duty Roster', index=False, header=False)

                stats_df = self._create_statistics_dataframe(result)
                stats_df.to_excel(writer, sheet_name='Statistics', index=False)

                self._format_excel_worksheets(writer)

            logger.info(f"Excel workbook exported to {output_path}")
            return True

        except Exception as e:
            logger.error(f"Error exporting to Excel: {e}", exc_info=True)
            return False

    def _create_roster_dataframe(self, result: ScheduleResult) -> pd.DataFrame:
        """
        Build the printed duty roster: a title row, a blank spacer, two header
        rows (shift time windows over worker/signature pairs) and one row per
        day. Header cells are merged later in _format_excel_worksheets.
        """
        year, month = result.request.year, result.request.month
        last_day = days_in_month(year, month)

        rows = [
            [f"Duty Roster {calendar.month_name[month]} {year}", '', '', '', '', '',
             f"{month}/1 - {month}/{last_day}", '', '', ''],
            [''] * 10,
            ['Date', 'Day'] + [x for shift in SHIFTS for x in (shift_heading(shift.id), '')] + ['Off', 'Remarks'],
            ['', ''] + ['Worker', 'Signature'] * len(SHIFTS) + ['', ''],
        ]

        for day in range(1, last_day + 1):
            names = day_row(result, day)
            row = [day, DAY_NAMES[day_of_week(year, month, day)]]
            for shift in SHIFTS:
                row.extend([names[shift.id], ''])
            row.extend([names['off'], ''])
            rows.append(row)

        return pd.DataFrame(rows)

    def _create_statistics_dataframe(self, result: ScheduleResult) -> pd.DataFrame:
        data = []
        for stats in result.statistics.values():
            row = {
                'Worker': stats['name'],
                'Work_Days': stats['work_days'],
                'Off_Days': stats['off_days'],
                'Total_Hours': stats['total_hours'],
            }
            for shift in SHIFTS:
                row[f"{shift.label}_Shifts"] = stats[f"shift_{shift.id}"]
            data.append(row)
        return pd.DataFrame(data)

    def _format_excel_worksheets(self, writer):
        """Merge roster headers, style them and set column widths"""
        roster_ws = writer.sheets['Duty Roster']

        # Title and date range across the first row
        roster_ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=6)
        roster_ws.merge_cells(start_row=1, start_column=7, end_row=1, end_column=10)
        # Shift headers span worker + signature columns
        for i in range(len(SHIFTS)):
            col = 3 + i * 2
            roster_ws.merge_cells(start_row=3, start_column=col, end_row=3, end_column=col + 1)
        # Date, Day, Off and Remarks span both header rows
        for col in (1, 2, 9, 10):
            roster_ws.merge_cells(start_row=3, start_column=col, end_row=4, end_column=col)

        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(color="FFFFFF", bold=True)
        roster_ws.cell(row=1, column=1).font = Font(size=14, bold=True)
        for row in (3, 4):
            for cell in roster_ws[row]:
                cell.fill = header_fill
                cell.font = header_font
                cell.alignment = Alignment(horizontal="center", vertical="center")

        for index, width in enumerate([6, 5, 10, 8, 10, 8, 10, 8, 10, 12], 1):
            roster_ws.column_dimensions[get_column_letter(index)].width = width

        stats_ws = writer.sheets['Statistics']
        for cell in stats_ws[1]:
            cell.fill = header_fill
            cell.font = header_font
        for index, width in enumerate([12, 10, 10, 12, 10, 10, 10], 1):
            stats_ws.column_dimensions[get_column_letter(index)].width = width

    def export_schedule_csv(self, result: ScheduleResult, output_path: str) -> bool:
        """Export one row per day to CSV"""
        try:
            self._create_daily_dataframe(result).to_csv(output_path, index=False)
            logger.info(f"CSV exported to {output_path}")
            return True

        except Exception as e:
            logger.error(f"Error exporting to CSV: {e}", exc_info=True)
            return False

    def _create_daily_dataframe(self, result: ScheduleResult) -> pd.DataFrame:
        """Tabular view: one row per day with a column per shift and an off column"""
        year, month = result.request.year, result.request.month
        data = []
        for day in sorted(result.schedule):
            names = day_row(result, day)
            row = {
                'Date': f"{year}-{month:02d}-{day:02d}",
                'Day': DAY_NAMES[day_of_week(year, month, day)],
            }
            for shift in SHIFTS:
                row[shift_heading(shift.id)] = names[shift.id]
            row['Off'] = names['off']
            data.append(row)
        return pd.DataFrame(data)

    def create_dashboard_summary(self, result: ScheduleResult) -> str:
        """Create text summary for dashboard display"""
        request = result.request
        totals = team_totals(result.statistics)

        lines = [
            f"SCHEDULE SUMMARY - {calendar.month_name[request.month]} {request.year}",
            f"Status: {'OK' if result.success else 'INVALID'} - {result.message}",
            "",
            f"Total hours: {totals['total_hours']} (spread {totals['hours_spread']}h)",
            "",
        ]
        for stats in result.statistics.values():
            shift_counts = " / ".join(str(stats[f"shift_{shift.id}"]) for shift in SHIFTS)
            lines.append(
                f"• {stats['name']}: {stats['work_days']} work, {stats['off_days']} off, "
                f"{stats['total_hours']}h (~{stats['weekly_average_hours']:.0f}h/week), "
                f"max rest {stats['max_off_streak']} days, shifts {shift_counts}"
            )

        if result.violations:
            lines.append("")
            lines.append("VIOLATIONS:")
            lines.extend(f"• {violation}" for violation in result.violations)

        return "\n".join(lines)


class ExportManager:
    """Manager class for handling all export operations"""

    def __init__(self):
        self.report_generator = ReportGenerator()

    def export(self, result: ScheduleResult, format_type: str, output_path: str) -> bool:
        """Export a generated month in the given format"""
        if format_type.lower() == 'pdf':
            return self.report_generator.export_calendar_pdf(result, output_path)
        elif format_type.lower() == 'excel':
            return self.report_generator.export_schedule_excel(result, output_path)
        elif format_type.lower() == 'csv':
            return self.report_generator.export_schedule_csv(result, output_path)
        else:
            raise ValueError(f"Unsupported format: {format_type}")

    def get_default_filename(self, result: ScheduleResult, format_type: str) -> str:
        """Generate default filename for export"""
        month_name = calendar.month_name[result.request.month].lower()
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        extension = 'xlsx' if format_type.lower() == 'excel' else format_type.lower()

        return f"duty_roster_{month_name}_{result.request.year}_{timestamp}.{extension}"

    def batch_export(self, result: ScheduleResult, output_dir: str,
                     formats: Optional[List[str]] = None) -> Dict[str, bool]:
        """Export the schedule in multiple formats"""
        if formats is None:
            formats = ['pdf', 'excel', 'csv']

        results = {}
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        for format_type in formats:
            file_path = output_path / self.get_default_filename(result, format_type)
            try:
                results[format_type] = self.export(result, format_type, str(file_path))
            except ValueError as e:
                logger.error(f"Error exporting {format_type}: {e}")
                results[format_type] = False

        return results
