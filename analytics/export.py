"""
Excel export of the weekly overtime table.
"""

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from analytics.logger import get_logger

logger = get_logger(__name__)

OVERTIME_HEADERS = [
    ('member', "Member"),
    ('iso_week', "ISO Week"),
    ('daily_weekday', "Daily Weekday OT"),
    ('weekly_overflow', "Weekly Overflow OT"),
    ('weekend_holiday', "Weekend/Holiday OT"),
    ('total', "Total OT"),
]

HOUR_COLUMNS = ['daily_weekday', 'weekly_overflow', 'weekend_holiday', 'total']

HEADER_FILL = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")


def export_overtime_to_excel(overtime_df):
    """
    Write the overtime frame to an .xlsx workbook.

    Args:
        overtime_df: DataFrame from overtime_to_frame

    Returns:
        BytesIO positioned at the start of the workbook
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Overtime"

    write_overtime_sheet(ws, overtime_df)

    excel_file = BytesIO()
    wb.save(excel_file)
    excel_file.seek(0)

    logger.info(f"Exported {len(overtime_df)} member-weeks to Excel")
    return excel_file


def write_overtime_sheet(ws, overtime_df):
    """Header row, one row per member-week, then a totals row"""
    for col, (_, label) in enumerate(OVERTIME_HEADERS, start=1):
        cell = ws.cell(1, col, label)
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")

    row = 2
    for _, record in overtime_df.iterrows():
        for col, (key, _) in enumerate(OVERTIME_HEADERS, start=1):
            value = record[key]
            ws.cell(row, col, float(value) if key in HOUR_COLUMNS else str(value))
        row += 1

    ws.cell(row, 1, "Total").font = Font(bold=True)
    for col, (key, _) in enumerate(OVERTIME_HEADERS, start=1):
        if key in HOUR_COLUMNS:
            total = float(overtime_df[key].sum()) if not overtime_df.empty else 0.0
            ws.cell(row, col, total).font = Font(bold=True)

    ws.column_dimensions['A'].width = 28
    ws.column_dimensions['B'].width = 12
    for letter in ('C', 'D', 'E', 'F'):
        ws.column_dimensions[letter].width = 20
