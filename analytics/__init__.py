# Analytics package initialization
from .csv_importer import TimesheetCSVImporter, parse_csv_to_rows, rows_to_frame
from .data_processor import DataProcessor
from .overtime import compute_weekly_overtime

__all__ = [
    'TimesheetCSVImporter',
    'parse_csv_to_rows',
    'rows_to_frame',
    'DataProcessor',
    'compute_weekly_overtime',
]
