"""
CSV Timesheet Importer
Parses timesheet exports (Member, Date, Hours, ...) into NormalizedRow records
"""

import io
import math
import os
import re
from dataclasses import fields
from datetime import date, datetime

import pandas as pd

from analytics.logger import get_logger
from analytics.mapping import (
    CANONICAL_HEADERS,
    DEFAULTED_FIELDS,
    EXCLUDED_ROLES,
    LEGACY_COLUMN_MAPPING,
    PRODUCTIVE,
    TEXT_FIELDS,
    UNKNOWN,
    is_internal_work,
    map_work_type_to_board,
)
from analytics.models import NormalizedRow

logger = get_logger(__name__)

# UK day-first formats, matched strictly in this order
DATE_FORMATS = ['DD/MM/YYYY', 'D/M/YYYY', 'DD/MM/YY']

# format -> (strptime pattern, canonical rendering used for the strict check)
_DATE_PATTERNS = {
    'DD/MM/YYYY': ('%d/%m/%Y', '{d.day:02d}/{d.month:02d}/{d.year:04d}'),
    'D/M/YYYY': ('%d/%m/%Y', '{d.day}/{d.month}/{d.year:04d}'),
    'DD/MM/YY': ('%d/%m/%y', '{d.day:02d}/{d.month:02d}/{yy:02d}'),
}

ROW_COLUMNS = [f.name for f in fields(NormalizedRow)]


class MissingHeadersError(ValueError):
    """Raised when a canonical header has neither a direct nor a legacy column"""

    def __init__(self, missing_headers, available_headers=None):
        self.missing_headers = list(missing_headers)
        self.available_headers = list(available_headers or [])
        super().__init__(f"Missing required headers: {', '.join(self.missing_headers)}")


class InvalidDateError(ValueError):
    """Raised when one of the sampled leading rows has an unparseable date"""

    def __init__(self, row_number, value):
        self.row_number = row_number
        self.value = value
        super().__init__(
            f'Invalid date format in row {row_number}: "{value}". Expected DD/MM/YYYY format.'
        )


def parse_date(value):
    """
    Parse a UK day-first date string.

    Accepts DD/MM/YYYY, D/M/YYYY and DD/MM/YY. A string only matches a
    format if it renders back to exactly the same text, so mixed padding
    such as "5/03/2024" is rejected, as are impossible dates like 31/02/2024.
    date and datetime values pass through as dates.

    Returns:
        datetime.date or None when no format matches
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None

    text = str(value).strip()
    if not text:
        return None

    for name in DATE_FORMATS:
        pattern, rendering = _DATE_PATTERNS[name]
        try:
            parsed = datetime.strptime(text, pattern).date()
        except ValueError:
            continue
        if rendering.format(d=parsed, yy=parsed.year % 100) == text:
            return parsed

    return None


# Leading decimal number of an hours cell, e.g. "7.5h" -> "7.5"
_LEADING_NUMBER = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')


def safe_float(value):
    """
    Convert an hours cell to float.

    Commas are stripped and the leading number is used, so "7.5h" reads as
    7.5. Cells with no leading number become 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(',', '')
        match = _LEADING_NUMBER.match(text)
        if match is None:
            return 0.0
        if match.end() != len(text):
            logger.debug(f"Hours {value!r} read as {match.group()}")
        number = float(match.group())
    return number if math.isfinite(number) else 0.0


def get_fiscal_year(d):
    """April-start fiscal year label, e.g. 2024-05-01 -> "FY24", 2025-02-01 -> "FY24" """
    year = d.year if d.month >= 4 else d.year - 1
    return f"FY{year % 100:02d}"


def get_fiscal_month(d):
    """Fiscal month label where April is month 01, e.g. 2025-02-01 -> "FY24-11" """
    fiscal_month = d.month - 3 if d.month >= 4 else d.month + 9
    return f"{get_fiscal_year(d)}-{fiscal_month:02d}"


def get_iso_week(d):
    """ISO-8601 week id using the ISO week-numbering year, e.g. "2024-W10" """
    iso_year, iso_week, _ = d.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def _open_source(source):
    """Accept CSV text, bytes, a path, or a file-like object (e.g. a Streamlit upload)"""
    if isinstance(source, bytes):
        return io.BytesIO(source)
    if isinstance(source, str) and not os.path.exists(source) and (
        '\n' in source or ',' in source or not source.strip()
    ):
        return io.StringIO(source.lstrip('\ufeff'))
    return source


def missing_canonical_headers(columns):
    """Canonical headers with no direct column and no legacy alias among `columns`"""
    available = set(columns)
    missing = []
    for canonical in CANONICAL_HEADERS:
        has_direct_match = canonical in available
        has_legacy_match = any(
            legacy in available and target == canonical
            for legacy, target in LEGACY_COLUMN_MAPPING.items()
        )
        if not has_direct_match and not has_legacy_match:
            missing.append(canonical)
    return missing


def resolve_legacy_columns(df):
    """
    Copy legacy columns onto their canonical names.

    Legacy columns are kept. Where both a canonical and a legacy column
    exist, the canonical value wins unless its cell is blank.
    """
    df = df.copy()
    for legacy, canonical in LEGACY_COLUMN_MAPPING.items():
        if legacy not in df.columns:
            continue
        if canonical in df.columns:
            df[canonical] = df[canonical].where(df[canonical].str.strip() != '', df[legacy])
        else:
            df[canonical] = df[legacy]
    return df


def build_row(values, hours, row_date):
    """Build a NormalizedRow from cleaned canonical text values"""
    day_of_week = row_date.isoweekday()
    return NormalizedRow(
        member=values['member'],
        date=row_date,
        hours=hours,
        ticket=values['ticket'],
        work_role=values['work_role'],
        work_type=values['work_type'],
        company=values['company'],
        project=values['project'],
        project_type=values['project_type'],
        role=values['role'],
        productivity=values['productivity'],
        calendar_month=row_date.strftime('%Y-%m'),
        fiscal_year=get_fiscal_year(row_date),
        fiscal_month=get_fiscal_month(row_date),
        iso_week=get_iso_week(row_date),
        day_of_week=day_of_week,
        is_weekend=day_of_week >= 6,
        is_internal=is_internal_work(values['company'], values['project_type']),
        is_billable=values['productivity'] == PRODUCTIVE,
        board_work_type=map_work_type_to_board(values['work_type']),
    )


class TimesheetCSVImporter:
    """
    Imports timesheet data from CSV files with format:
    Member, Date, Ticket, Work Role, Work Type, Company, Hours, Project/Ticket,
    Project Type, Role, Productivity

    Older exports may use Team, Project/Ticket/Worktype and
    "Date  (dd/MM/yyyy)" instead; see LEGACY_COLUMN_MAPPING.
    """

    def __init__(self, source, sample_size=3):
        """
        Args:
            source: CSV text, bytes, a file path or a file-like object
            sample_size: leading rows whose dates must parse or the import
                fails outright (0 disables the check)
        """
        self.source = source
        self.sample_size = sample_size
        self.df = None
        self.rows = []

    def parse_csv(self):
        """Read the CSV, check headers and resolve legacy column names"""
        try:
            df = pd.read_csv(
                _open_source(self.source),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding='utf-8-sig',
                on_bad_lines='warn',
            )
        except pd.errors.EmptyDataError:
            logger.warning("CSV is empty")
            df = pd.DataFrame()

        df.columns = [str(col).strip() for col in df.columns]
        df = df.fillna('')
        logger.info(f"Parsed {len(df)} raw rows from CSV")

        if df.empty:
            self.df = df
            return self

        logger.debug(f"Available CSV headers: {list(df.columns)}")
        missing = missing_canonical_headers(df.columns)
        if missing:
            logger.error(f"Missing required headers: {missing}; available: {list(df.columns)}")
            raise MissingHeadersError(missing, df.columns)

        self.df = resolve_legacy_columns(df)
        self._check_sample_dates()

        return self

    def _check_sample_dates(self):
        """Fail fast when the leading rows do not use a supported date format"""
        for position in range(min(self.sample_size, len(self.df))):
            value = self.df.iloc[position]['Date']
            if parse_date(value) is None:
                logger.error(f"Invalid date in row {position + 1}: {value!r}")
                raise InvalidDateError(position + 1, value)

    def extract_rows(self):
        """Turn each CSV line into a NormalizedRow, skipping lines that fail validation"""
        self.rows = []
        if self.df is None or self.df.empty:
            return self

        for idx, row in self.df.iterrows():
            hours = safe_float(row['Hours'])
            if hours <= 0:
                logger.debug(f"Row {idx + 1} filtered: Hours <= 0 ({hours})")
                continue

            values = {field: str(row.get(header, '')).strip() for header, field in TEXT_FIELDS.items()}

            if values['role'] in EXCLUDED_ROLES:
                logger.debug(f"Row {idx + 1} filtered: Role is {values['role']}")
                continue

            row_date = parse_date(row['Date'])
            if row_date is None:
                logger.debug(f"Row {idx + 1} filtered: Invalid date {row['Date']!r}")
                continue

            for field in DEFAULTED_FIELDS:
                values[field] = values[field] or UNKNOWN

            self.rows.append(build_row(values, hours, row_date))

        filtered = len(self.df) - len(self.rows)
        logger.info(f"Processed {len(self.rows)} clean rows after filtering ({filtered} filtered out)")
        if not self.rows:
            logger.warning("All rows were filtered out of the CSV")

        return self

    def get_summary(self):
        """Get summary statistics of the import"""
        if self.df is None:
            return {}

        date_range = None
        if self.rows:
            dates = [r.date for r in self.rows]
            date_range = (min(dates), max(dates))

        return {
            'total_rows': len(self.df),
            'clean_rows': len(self.rows),
            'filtered_rows': len(self.df) - len(self.rows),
            'unique_members': len({r.member for r in self.rows}),
            'date_range': date_range,
            'total_hours': sum(r.hours for r in self.rows),
        }

    def import_all(self):
        """
        Parse CSV and build all rows
        Returns: (rows, summary)
        """
        self.parse_csv()
        self.extract_rows()

        return self.rows, self.get_summary()


def parse_csv_to_rows(source, sample_size=3):
    """Parse a timesheet CSV into an ordered list of NormalizedRow"""
    rows, _ = TimesheetCSVImporter(source, sample_size=sample_size).import_all()
    return rows


def rows_to_frame(rows):
    """One DataFrame column per NormalizedRow field; `date` becomes datetime64"""
    frame = pd.DataFrame([row.to_dict() for row in rows], columns=ROW_COLUMNS)
    frame['date'] = pd.to_datetime(frame['date'])
    frame['hours'] = frame['hours'].astype(float)
    return frame
