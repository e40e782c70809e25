"""
Weekly overtime per member.

Each member-week is split into three categories:

- daily weekday overtime: productive hours above the member's baseline on an
  ordinary weekday
- weekly overflow: base-portion hours that no longer fit in the week once
  leave, sickness and training have reduced its capacity
- weekend/holiday overtime: every productive hour on a weekend or on a day
  booked as Bank/Holiday Leave

Values accumulate unrounded and are rounded to the quarter hour at the end.
"""

import math
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

import pandas as pd

from analytics.csv_importer import get_iso_week, parse_date, safe_float
from analytics.logger import get_logger
from analytics.mapping import (
    BANK_HOLIDAY_WORK_TYPE,
    DAY_HOURS,
    NON_WORKING_WORK_TYPES,
    PRODUCTIVE,
    UNKNOWN,
    WEEK_HOURS,
)
from analytics.models import MemberWeekOvertime, NormalizedRow, OvertimeBreakdown

logger = get_logger(__name__)

# Normalised member name -> ISO weekday (1=Mon..5=Fri) -> contracted hours
BASELINE_EXCEPTIONS = {
    'Mark Bolton': {1: 8.25, 2: 8.25, 3: 8.25, 4: 8.25, 5: 4.5},
}

OVERTIME_COLUMNS = ['member', 'iso_week', 'daily_weekday', 'weekly_overflow', 'weekend_holiday', 'total']


def normalize_member_name(member_name):
    """
    "Bolton, Mark" -> "Mark Bolton"; names without a comma are only trimmed.
    Blank names become "Unknown".
    """
    if member_name is None or (isinstance(member_name, float) and math.isnan(member_name)):
        return UNKNOWN
    name = str(member_name)
    if not name.strip():
        return UNKNOWN

    if ',' in name:
        parts = [part.strip() for part in name.split(',')]
        return f"{parts[1]} {parts[0]}".strip()

    return name.strip()


def daily_baseline_for(member_name, day, schedules=None):
    """Contracted hours for a member on a given date (0 at weekends)"""
    schedules = BASELINE_EXCEPTIONS if schedules is None else schedules
    weekday = day.isoweekday()
    if weekday >= 6:
        return 0.0

    schedule = schedules.get(normalize_member_name(member_name))
    if schedule and weekday in schedule:
        return float(schedule[weekday])

    return DAY_HOURS


def round_to_quarter(hours):
    """Round half-up to the nearest 0.25 hour"""
    return math.floor(hours * 4 + 0.5) / 4


def _entry_fields(entry):
    """
    Pull (member, date, hours, productivity, work type) out of an entry.

    Entries are NormalizedRow records or mappings keyed either by field
    name (member, date, ...) or by CSV header (Member, Date, ...).
    """
    if isinstance(entry, NormalizedRow):
        return entry.member, entry.date, entry.hours, entry.productivity, entry.work_type

    def pick(*keys):
        for key in keys:
            value = entry.get(key)
            if value is not None:
                return value
        return None

    return (
        pick('member', 'Member'),
        pick('date', 'Date'),
        pick('hours', 'Hours'),
        pick('productivity', 'Productivity'),
        pick('work_type', 'Work Type'),
    )


def _to_date(value) -> Optional[date]:
    if isinstance(value, datetime):
        if pd.isna(value):
            return None
        return value.date()
    return parse_date(value)


def _new_day(member, day, schedules):
    return {
        'productive_hours': 0.0,
        'non_working_hours': 0.0,
        'is_weekend': day.isoweekday() >= 6,
        'is_bank_holiday': False,
        'daily_baseline': daily_baseline_for(member, day, schedules),
    }


def _week_overtime(days: Dict[date, Dict]) -> OvertimeBreakdown:
    daily_weekday = 0.0
    weekend_holiday = 0.0
    baseline_pool = 0.0
    non_working_weekday_hours = 0.0

    for day in days.values():
        if day['is_weekend']:
            weekend_holiday += day['productive_hours']
        elif day['is_bank_holiday']:
            # Capped at a standard day regardless of the member's schedule
            non_working_weekday_hours += min(day['non_working_hours'], DAY_HOURS)
            weekend_holiday += day['productive_hours']
        else:
            baseline = day['daily_baseline']
            non_working_weekday_hours += min(day['non_working_hours'], baseline)
            baseline_pool += min(day['productive_hours'], baseline)
            daily_weekday += max(0.0, day['productive_hours'] - baseline)

    weekly_capacity = max(0.0, WEEK_HOURS - non_working_weekday_hours)
    weekly_overflow = max(0.0, baseline_pool - weekly_capacity)

    return OvertimeBreakdown(
        daily_weekday=round_to_quarter(daily_weekday),
        weekly_overflow=round_to_quarter(weekly_overflow),
        weekend_holiday=round_to_quarter(weekend_holiday),
        total=round_to_quarter(daily_weekday + weekly_overflow + weekend_holiday),
    )


def compute_weekly_overtime(entries: Iterable, schedules: Optional[Dict] = None) -> List[MemberWeekOvertime]:
    """
    Compute overtime for every (member, ISO week) present in `entries`.

    Args:
        entries: NormalizedRow records, or mappings with member, date, hours,
            productivity and work type (field names or CSV headers)
        schedules: baseline exceptions, defaults to BASELINE_EXCEPTIONS

    Returns:
        MemberWeekOvertime records in first-seen member/week order
    """
    # member -> iso week -> date -> day bucket
    groups = defaultdict(dict)
    skipped = 0

    for entry in entries or []:
        member_raw, date_raw, hours_raw, productivity, work_type = _entry_fields(entry)
        day = _to_date(date_raw)
        if day is None:
            skipped += 1
            continue

        member = normalize_member_name(member_raw)
        week_key = get_iso_week(day)

        week = groups[member].setdefault(week_key, {})
        if day not in week:
            week[day] = _new_day(member, day, schedules)
        bucket = week[day]

        hours = safe_float(hours_raw)
        if hours <= 0:
            continue

        if work_type == BANK_HOLIDAY_WORK_TYPE:
            bucket['is_bank_holiday'] = True
            bucket['non_working_hours'] += hours
        elif work_type in NON_WORKING_WORK_TYPES:
            bucket['non_working_hours'] += hours
        elif productivity == PRODUCTIVE:
            bucket['productive_hours'] += hours

    if skipped:
        logger.debug(f"Skipped {skipped} overtime entries without a valid date")

    results = []
    for member, weeks in groups.items():
        for week_key, days in weeks.items():
            results.append(MemberWeekOvertime(
                member=member,
                iso_week=week_key,
                overtime=_week_overtime(days),
            ))

    logger.info(f"Computed overtime for {len(results)} member-weeks")
    return results


def overtime_to_frame(results: Iterable[MemberWeekOvertime]) -> pd.DataFrame:
    """Flatten overtime records into a DataFrame sorted by week then member"""
    frame = pd.DataFrame([result.to_dict() for result in results], columns=OVERTIME_COLUMNS)
    if frame.empty:
        return frame
    return frame.sort_values(['iso_week', 'member']).reset_index(drop=True)
