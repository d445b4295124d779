"""
User Interface for the Rotation Scheduler

CustomTkinter-based window with month navigation, worker name entry,
a Sunday-first calendar of the generated rotation and a summary panel.
"""

import customtkinter as ctk
from tkinter import messagebox, filedialog
import calendar
from typing import Dict, List, Optional
import logging

from .calendar_partition import DAY_NAMES, SUNDAY, SATURDAY, day_of_week, days_in_month
from .data_manager import DataManager, DataValidationError, DaySchedule, ScheduleRequest, WORKER_COUNT, get_shift
from .scheduler_logic import RotationScheduler, ScheduleResult
from .reporting import ExportManager

logger = logging.getLogger(__name__)


# Configure CustomTkinter
ctk.set_appearance_mode("light")
ctk.set_default_color_theme("blue")

SHIFT_FG_COLORS = {7: "#2563eb", 9: "#16a34a", 13: "#d97706"}
OFF_FG_COLOR = "#6b7280"


class CalendarCell(ctk.CTkFrame):
    """One day of the calendar grid, listing workers by shift start with the off worker last"""

    def __init__(self, parent, day: int, dow: int):
        super().__init__(parent, corner_radius=5)
        self.day = day

        text_color = "red" if dow == SUNDAY else "blue" if dow == SATURDAY else None
        ctk.CTkLabel(
            self,
            text=str(day),
            font=ctk.CTkFont(weight="bold"),
            text_color=text_color
        ).pack(anchor="w", padx=5, pady=(3, 0))

        self.entries_frame = ctk.CTkFrame(self, fg_color="transparent")
        self.entries_frame.pack(fill="both", expand=True, padx=3, pady=(0, 3))

    def show(self, entry: Optional[DaySchedule], request: ScheduleRequest):
        for widget in self.entries_frame.winfo_children():
            widget.destroy()
        if entry is None:
            return

        for worker in sorted(entry.shifts, key=entry.shift_for):
            shift_id = entry.shift_for(worker)
            ctk.CTkLabel(
                self.entries_frame,
                text=f"{get_shift(shift_id).label}  {request.display_name(worker)}",
                text_color=SHIFT_FG_COLORS[shift_id],
                font=ctk.CTkFont(size=11),
                anchor="w"
            ).pack(fill="x")
        ctk.CTkLabel(
            self.entries_frame,
            text=f"Off  {request.display_name(entry.off)}",
            text_color=OFF_FG_COLOR,
            font=ctk.CTkFont(size=11),
            anchor="w"
        ).pack(fill="x")


class CalendarView(ctk.CTkScrollableFrame):
    """Monthly calendar view of the generated schedule"""

    def __init__(self, parent):
        super().__init__(parent)
        self.cells: Dict[int, CalendarCell] = {}

    def set_month(self, year: int, month: int):
        for widget in self.winfo_children():
            widget.destroy()
        self.cells = {}

        for i, name in enumerate(DAY_NAMES):
            ctk.CTkLabel(
                self,
                text=name,
                font=ctk.CTkFont(weight="bold"),
                text_color="red" if i == SUNDAY else "blue" if i == SATURDAY else None
            ).grid(row=0, column=i, padx=2, pady=2, sticky="nsew")
            self.columnconfigure(i, weight=1)

        offset = day_of_week(year, month, 1)
        for day in range(1, days_in_month(year, month) + 1):
            position = offset + day - 1
            dow = position % 7
            cell = CalendarCell(self, day, dow)
            cell.grid(row=position // 7 + 1, column=dow, padx=2, pady=2, sticky="nsew")
            self.cells[day] = cell

    def show_result(self, result: ScheduleResult):
        for day, cell in self.cells.items():
            cell.show(result.schedule.get(day), result.request)


class SummaryPanel(ctk.CTkFrame):
    """Per-worker statistics for the generated month"""

    def __init__(self, parent):
        super().__init__(parent, width=320)

        ctk.CTkLabel(
            self,
            text="Summary",
            font=ctk.CTkFont(size=18, weight="bold")
        ).pack(pady=(10, 10))

        self.stats_frame = ctk.CTkScrollableFrame(self, width=300)
        self.stats_frame.pack(fill="both", expand=True, padx=10, pady=10)

    def clear(self):
        for widget in self.stats_frame.winfo_children():
            widget.destroy()

    def update_summary(self, result: ScheduleResult):
        self.clear()
        for stats in result.statistics.values():
            emp_frame = ctk.CTkFrame(self.stats_frame)
            emp_frame.pack(fill="x", pady=3)

            ctk.CTkLabel(
                emp_frame,
                text=stats["name"],
                font=ctk.CTkFont(weight="bold")
            ).pack(anchor="w", padx=10, pady=2)

            stats_text = (
                f"Work days: {stats['work_days']}   Off days: {stats['off_days']}\n"
                f"Hours: {stats['total_hours']}   Weekly avg: ~{stats['weekly_average_hours']:.0f}h\n"
                f"Longest rest: {stats['max_off_streak']} days   2+ day rests: {stats['off_blocks_2plus']}\n"
                f"7AM / 9AM / 1PM: {stats['shift_7']} / {stats['shift_9']} / {stats['shift_13']}"
            )
            ctk.CTkLabel(emp_frame, text=stats_text, justify="left").pack(anchor="w", padx=20, pady=2)


class MainWindow(ctk.CTk):
    """Main application window"""

    def __init__(self, data_manager: DataManager, scheduler: RotationScheduler,
                 export_manager: ExportManager):
        super().__init__()

        self.title("Rotation Scheduler")
        self.geometry("1400x900")

        self.data_manager = data_manager
        self.scheduler = scheduler
        self.export_manager = export_manager

        self.request = data_manager.build_request()
        self.schedule_result: Optional[ScheduleResult] = None

        self._create_widgets()
        self._show_month()

    def _create_widgets(self):
        # Top control panel
        control_frame = ctk.CTkFrame(self, height=80)
        control_frame.pack(fill="x", padx=10, pady=10)

        ctk.CTkButton(control_frame, text="<", width=30, command=lambda: self._change_month(-1)).pack(side="left", padx=5)
        self.month_label = ctk.CTkLabel(control_frame, text="", width=160, font=ctk.CTkFont(size=18, weight="bold"))
        self.month_label.pack(side="left", padx=5)
        ctk.CTkButton(control_frame, text=">", width=30, command=lambda: self._change_month(1)).pack(side="left", padx=5)

        self.name_entries: List[ctk.CTkEntry] = []
        for worker in range(WORKER_COUNT):
            entry = ctk.CTkEntry(control_frame, width=110)
            entry.insert(0, self.request.display_name(worker))
            entry.pack(side="left", padx=4)
            self.name_entries.append(entry)

        ctk.CTkButton(
            control_frame,
            text="Generate Schedule",
            command=self._generate_schedule,
            width=150
        ).pack(side="left", padx=20)

        ctk.CTkButton(
            control_frame,
            text="Export",
            command=self._export_schedule,
            width=100
        ).pack(side="left", padx=10)

        content_frame = ctk.CTkFrame(self)
        content_frame.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        self.calendar_view = CalendarView(content_frame)
        self.calendar_view.pack(side="left", fill="both", expand=True, padx=(0, 5))

        self.summary_panel = SummaryPanel(content_frame)
        self.summary_panel.pack(side="right", fill="y", padx=(5, 0))

        self.status_var = ctk.StringVar(value="Ready")
        ctk.CTkLabel(self, textvariable=self.status_var).pack(side="bottom", fill="x", padx=10, pady=5)

    def _show_month(self):
        self.month_label.configure(text=f"{calendar.month_name[self.request.month]} {self.request.year}")
        self.calendar_view.set_month(self.request.year, self.request.month)
        self.summary_panel.clear()
        self.schedule_result = None

    def _change_month(self, delta: int):
        self.request = self.request.shifted(delta)
        self.data_manager.set_last_month(self.request.year, self.request.month)
        self._show_month()
        self.status_var.set(f"Selected {self.request.month_key}")

    def _read_names(self) -> bool:
        try:
            self.data_manager.set_names([entry.get() for entry in self.name_entries])
        except DataValidationError as e:
            messagebox.showerror("Invalid Names", str(e))
            return False
        self.request = self.data_manager.build_request(self.request.year, self.request.month)
        return True

    def _generate_schedule(self):
        """Generate and display the rotation for the selected month"""
        if not self._read_names():
            return

        result = self.scheduler.generate(self.request)
        self.schedule_result = result
        self.calendar_view.show_result(result)
        self.summary_panel.update_summary(result)

        if result.success:
            self.status_var.set(result.message)
        else:
            self.status_var.set(f"Generation produced an invalid schedule: {result.message}")
            messagebox.showerror("Schedule Invalid", "\n".join(result.violations[:5]))

    def _export_schedule(self):
        """Export current schedule to PDF, Excel, or CSV."""
        if self.schedule_result is None:
            messagebox.showwarning("Nothing to Export", "Generate a schedule first.")
            return

        try:
            month_name = calendar.month_name[self.request.month].lower()
            output_path = filedialog.asksaveasfilename(
                initialfile=f"duty_roster_{month_name}_{self.request.year}",
                defaultextension=".xlsx",
                filetypes=[
                    ("Excel files", "*.xlsx"),
                    ("PDF files", "*.pdf"),
                    ("CSV files", "*.csv"),
                    ("All files", "*.*")
                ],
                title="Export Schedule"
            )

            if not output_path:
                return  # User cancelled

            file_extension = output_path.split('.')[-1].lower()
            if file_extension == "pdf":
                format_type = "pdf"
            elif file_extension == "csv":
                format_type = "csv"
            else:
                format_type = "excel"

            if self.export_manager.export(self.schedule_result, format_type, output_path):
                messagebox.showinfo("Export Successful", f"Schedule exported successfully to:\n{output_path}")
            else:
                messagebox.showerror("Export Failed", "Failed to export schedule. Please check the file path and try again.")

        except Exception as e:
            logger.error(f"Export error: {e}", exc_info=True)
            messagebox.showerror("Export Error", f"An error occurred during export:\n{str(e)}")
