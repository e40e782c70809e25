"""Typed records produced by the import and overtime stages."""

from dataclasses import asdict, dataclass
from datetime import date
from typing import Dict


@dataclass(frozen=True)
class NormalizedRow:
    """One validated timesheet line with its derived calendar and classification fields"""

    member: str
    date: date
    hours: float
    ticket: str
    work_role: str
    work_type: str
    company: str
    project: str
    project_type: str
    role: str
    productivity: str
    calendar_month: str
    fiscal_year: str
    fiscal_month: str
    iso_week: str
    day_of_week: int
    is_weekend: bool
    is_internal: bool
    is_billable: bool
    board_work_type: str

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class OvertimeBreakdown:
    daily_weekday: float
    weekly_overflow: float
    weekend_holiday: float
    total: float


@dataclass(frozen=True)
class MemberWeekOvertime:
    """Overtime for one member in one ISO week"""

    member: str
    iso_week: str
    overtime: OvertimeBreakdown

    def to_dict(self) -> Dict:
        """Flat record for tables and export"""
        return {
            'member': self.member,
            'iso_week': self.iso_week,
            'daily_weekday': self.overtime.daily_weekday,
            'weekly_overflow': self.overtime.weekly_overflow,
            'weekend_holiday': self.overtime.weekend_holiday,
            'total': self.overtime.total,
        }
