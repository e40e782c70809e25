from datetime import date

from openpyxl import load_workbook

from analytics.export import export_overtime_to_excel
from analytics.overtime import compute_weekly_overtime, overtime_to_frame


def _overtime_frame():
    return overtime_to_frame(compute_weekly_overtime([
        {'member': "Smith, Jo", 'date': date(2024, 3, 5), 'hours': 9,
         'productivity': "Productive", 'work_type': "Project Management"},
        {'member': "Amy", 'date': date(2024, 3, 9), 'hours': 2,
         'productivity': "Productive", 'work_type': "Project Management"},
    ]))


def test_export_writes_header_rows_and_totals():
    workbook = load_workbook(export_overtime_to_excel(_overtime_frame()))
    sheet = workbook["Overtime"]

    rows = list(sheet.iter_rows(values_only=True))

    assert rows[0] == (
        "Member", "ISO Week", "Daily Weekday OT", "Weekly Overflow OT", "Weekend/Holiday OT", "Total OT",
    )
    assert rows[1] == ("Amy", "2024-W10", 0, 0, 2, 2)
    assert rows[2] == ("Jo Smith", "2024-W10", 1.5, 0, 0, 1.5)
    assert rows[3] == ("Total", None, 1.5, 0, 2, 3.5)
    assert sheet.cell(1, 1).font.bold


def test_export_empty_frame_still_has_totals():
    workbook = load_workbook(export_overtime_to_excel(overtime_to_frame([])))
    rows = list(workbook["Overtime"].iter_rows(values_only=True))

    assert len(rows) == 2
    assert rows[1] == ("Total", None, 0, 0, 0, 0)
