import pytest
import sys
from pathlib import Path
import tempfile
import os

import pandas as pd
from openpyxl import load_workbook

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rotation_scheduler.data_manager import ScheduleRequest
from rotation_scheduler.scheduler_logic import RotationScheduler
from rotation_scheduler.reporting import ExportManager, ReportGenerator


@pytest.fixture
def schedule_result():
    """A generated February 2026 with custom display names."""
    request = ScheduleRequest(2026, 2, names=("Ann", "Ben", "Cho", "Dee"))
    return RotationScheduler().generate(request)


@pytest.fixture
def export_manager():
    return ExportManager()


@pytest.fixture
def output_file(request):
    """Temp file path with the suffix given via parametrize/indirect or .tmp."""
    suffix = getattr(request, "param", ".tmp")
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmpfile:
        output_path = tmpfile.name
    yield output_path
    if os.path.exists(output_path):
        os.unlink(output_path)


@pytest.mark.parametrize("output_file", [".pdf"], indirect=True)
def test_pdf_export_basic(export_manager, schedule_result, output_file):
    success = export_manager.export(schedule_result, "pdf", output_file)
    assert success
    assert os.path.getsize(output_file) > 1000


def test_pdf_export_bad_path(export_manager, schedule_result):
    """Export failure on an unwritable path returns False instead of raising."""
    result = export_manager.export(
        schedule_result, "pdf", "/not_a_dir/this_file_should_fail.pdf"
    )
    assert result is False


@pytest.mark.parametrize("output_file", [".xlsx"], indirect=True)
def test_excel_export_layout(export_manager, schedule_result, output_file):
    """
    Why this is important: the roster sheet is printed and signed on paper,
    so its header layout (merged shift headers, one row per day) must hold.
    """
    assert export_manager.export(schedule_result, "excel", output_file)

    workbook = load_workbook(output_file)
    assert workbook.sheetnames == ["Duty Roster", "Statistics"]

    roster = workbook["Duty Roster"]
    merged = {str(r) for r in roster.merged_cells.ranges}
    assert {"A1:F1", "G1:J1", "C3:D3", "E3:F3", "G3:H3", "A3:A4", "I3:I4"} <= merged
    assert roster["C3"].value == "7AM (07:00-15:00)"
    assert roster["C4"].value == "Worker"
    assert roster["A5"].value == 1
    assert roster["B5"].value == "Sun"
    # Feb 1 2026: Ben on 7AM, Cho on 9AM, Dee on 1PM, Ann off
    assert [roster["C5"].value, roster["E5"].value, roster["G5"].value, roster["I5"].value] == [
        "Ben", "Cho", "Dee", "Ann"
    ]
    assert roster.cell(row=4 + 28, column=1).value == 28

    stats = workbook["Statistics"]
    assert stats["A1"].value == "Worker"
    assert stats["A2"].value == "Ann"
    assert stats["B2"].value == 21
    assert stats["D2"].value == 168


@pytest.mark.parametrize("output_file", [".csv"], indirect=True)
def test_csv_export_rows(export_manager, schedule_result, output_file):
    assert export_manager.export(schedule_result, "csv", output_file)

    df = pd.read_csv(output_file)
    assert len(df) == 28
    assert list(df.columns) == [
        "Date", "Day", "7AM (07:00-15:00)", "9AM (09:00-17:00)", "1PM (13:00-21:00)", "Off"
    ]
    assert df.loc[0, "Date"] == "2026-02-01"
    assert df.loc[0, "Off"] == "Ann"
    assert df.loc[6, "Off"] == "Dee"


def test_unsupported_format_raises(export_manager, schedule_result):
    with pytest.raises(ValueError):
        export_manager.export(schedule_result, "docx", "out.docx")


def test_default_filename(export_manager, schedule_result):
    name = export_manager.get_default_filename(schedule_result, "excel")
    assert name.startswith("duty_roster_february_2026_")
    assert name.endswith(".xlsx")


def test_batch_export(export_manager, schedule_result):
    with tempfile.TemporaryDirectory() as output_dir:
        results = export_manager.batch_export(schedule_result, output_dir)
        assert results == {"pdf": True, "excel": True, "csv": True}
        assert len(os.listdir(output_dir)) == 3


def test_dashboard_summary(schedule_result):
    summary = ReportGenerator().create_dashboard_summary(schedule_result)
    assert summary.startswith("SCHEDULE SUMMARY - February 2026")
    assert "Ann: 21 work, 7 off, 168h" in summary
    assert "VIOLATIONS" not in summary
