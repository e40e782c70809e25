"""
Dashboard filters applied to the normalised row frame.
"""

from datetime import timedelta

import pandas as pd
from dateutil.relativedelta import relativedelta

from analytics.logger import get_logger
from analytics.mapping import PRODUCTIVE, UNPRODUCTIVE

logger = get_logger(__name__)

ALL = "ALL"

PERIOD_OPTIONS = ["Month", "Quarter", "FY", "Custom"]
PRODUCTIVITY_OPTIONS = ["All", PRODUCTIVE, UNPRODUCTIVE]

FILTER_DEFAULTS = {
    'period': "Month",
    'month': None,  # latest month in the data, set once rows are loaded
    'quarter': None,
    'fy': None,
    'from_date': None,  # Custom period only
    'to_date': None,
    'roles': ["Cloud", "Network", "PM"],
    'members': ALL,
    'companies': ALL,
    'project_types': ALL,
    'work_types_board': [
        "Tech Delivery",
        "PM Delivery",
        "Internal Admin",
        "Leave/Bank Holiday",
        "Sick Leave",
        "Training",
        "Other",
    ],
    'productivity': "All",
}


def quarter_from_month(calendar_month):
    """'2024-05' -> '2024-Q2'"""
    year, month = calendar_month.split('-')
    quarter = (int(month) - 1) // 3 + 1
    return f"{year}-Q{quarter}"


def derive_period_defaults(month):
    """Quarter and fiscal year containing a YYYY-MM month"""
    if not month:
        return {'quarter': None, 'fy': None}

    year, month_num = (int(part) for part in month.split('-'))
    fy_year = year if month_num >= 4 else year - 1
    return {
        'quarter': quarter_from_month(month),
        'fy': f"FY{fy_year % 100:02d}",
    }


def default_filters(frame):
    """FILTER_DEFAULTS with the period pinned to the latest month in the data"""
    filters = dict(FILTER_DEFAULTS)
    month = get_latest_month(frame)
    filters['month'] = month
    filters.update(derive_period_defaults(month))
    return filters


def _selection_mask(frame, column, selected):
    """Empty selections and "ALL" leave the column unfiltered"""
    if selected == ALL or not selected:
        return pd.Series(True, index=frame.index)
    return frame[column].isin(list(selected))


def _period_mask(frame, filters):
    period = filters.get('period')
    everything = pd.Series(True, index=frame.index)

    if period == "Month" and filters.get('month'):
        return frame['calendar_month'] == filters['month']
    if period == "Quarter" and filters.get('quarter'):
        return frame['calendar_month'].map(quarter_from_month) == filters['quarter']
    if period == "FY" and filters.get('fy'):
        return frame['fiscal_year'] == filters['fy']
    if period == "Custom":
        mask = everything
        if filters.get('from_date'):
            mask = mask & (frame['date'] >= pd.Timestamp(filters['from_date']).normalize())
        if filters.get('to_date'):
            mask = mask & (frame['date'] <= pd.Timestamp(filters['to_date']).normalize())
        return mask

    return everything


def apply_filters(frame, filters):
    """
    Subset the row frame by the dashboard filter state.

    Args:
        frame: DataFrame from rows_to_frame
        filters: dict shaped like FILTER_DEFAULTS (missing keys use the defaults)

    Returns:
        Filtered copy of the frame
    """
    if frame.empty:
        return frame.copy()

    filters = {**FILTER_DEFAULTS, **(filters or {})}

    mask = _period_mask(frame, filters)
    mask &= _selection_mask(frame, 'role', filters['roles'])
    mask &= _selection_mask(frame, 'member', filters['members'])
    mask &= _selection_mask(frame, 'company', filters['companies'])
    mask &= _selection_mask(frame, 'project_type', filters['project_types'])
    mask &= _selection_mask(frame, 'board_work_type', filters['work_types_board'])

    if filters['productivity'] == PRODUCTIVE:
        mask &= frame['is_billable']
    elif filters['productivity'] == UNPRODUCTIVE:
        mask &= ~frame['is_billable']

    filtered = frame[mask].copy()
    logger.info(f"Filters kept {len(filtered)} of {len(frame)} rows")
    return filtered


def _distinct(frame, column):
    values = frame[column].dropna()
    return sorted(v for v in values.unique() if v != '')


def get_distinct_values(frame):
    """Options for each sidebar filter, sorted"""
    if frame.empty:
        return {
            'roles': [], 'members': [], 'companies': [], 'project_types': [],
            'work_types_board': [], 'calendar_months': [], 'quarters': [], 'fiscal_years': [],
        }

    calendar_months = _distinct(frame, 'calendar_month')
    return {
        'roles': _distinct(frame, 'role'),
        'members': _distinct(frame, 'member'),
        'companies': _distinct(frame, 'company'),
        'project_types': _distinct(frame, 'project_type'),
        'work_types_board': _distinct(frame, 'board_work_type'),
        'calendar_months': calendar_months,
        'quarters': sorted({quarter_from_month(m) for m in calendar_months}),
        'fiscal_years': _distinct(frame, 'fiscal_year'),
    }


def get_latest_month(frame):
    """Latest calendar month (YYYY-MM) present, or None"""
    if frame.empty:
        return None
    return frame['calendar_month'].max()


def recent_weeks(frame, weeks=6):
    """
    Rows from the Monday `weeks` weeks before the latest date in the frame
    up to and including that latest date.
    """
    if frame.empty:
        return frame.copy()

    latest = frame['date'].max().to_pydatetime()
    start = latest - relativedelta(weeks=weeks)
    start = start - timedelta(days=start.weekday())

    window = frame[(frame['date'] >= pd.Timestamp(start)) & (frame['date'] <= pd.Timestamp(latest))]
    return window.copy()
