import calendar
from datetime import date
from typing import Dict

import numpy as np
import pandas as pd

from analytics.logger import get_logger
from analytics.mapping import (
    DAY_HOURS,
    INTERNAL_COMPANIES,
    OUTLIER_DAILY_THRESHOLD,
    PRODUCTIVE,
    ROLE_TARGETS,
    UNKNOWN,
)
from analytics.overtime import OVERTIME_COLUMNS, compute_weekly_overtime, overtime_to_frame, round_to_quarter

logger = get_logger(__name__)


def _round_quarter_series(series: pd.Series) -> pd.Series:
    return np.floor(series * 4 + 0.5) / 4


class DataProcessor:
    """Aggregations over the normalised row frame, shared by every dashboard view"""

    @staticmethod
    def calculate_working_days(calendar_month: str) -> int:
        """Monday-Friday days in a YYYY-MM month"""
        year, month = (int(part) for part in calendar_month.split('-'))
        days_in_month = calendar.monthrange(year, month)[1]
        return sum(1 for day in range(1, days_in_month + 1) if date(year, month, day).weekday() < 5)

    @staticmethod
    def calculate_role_utilisation(rows_df: pd.DataFrame) -> pd.DataFrame:
        """
        Billable (Productive) hours over all logged hours, per role.

        Returns DataFrame with columns: role, billable_hours, worked_hours, utilisation
        """
        columns = ['role', 'billable_hours', 'worked_hours', 'utilisation']
        if rows_df.empty:
            return pd.DataFrame(columns=columns)

        frame = rows_df.assign(
            billable_hours=rows_df['hours'].where(rows_df['productivity'].str.strip() == PRODUCTIVE, 0.0)
        )
        grouped = frame.groupby('role').agg(
            billable_hours=('billable_hours', 'sum'),
            worked_hours=('hours', 'sum'),
        ).reset_index()

        grouped['utilisation'] = np.where(
            grouped['worked_hours'] > 0,
            grouped['billable_hours'] / grouped['worked_hours'],
            0.0
        )
        return grouped[columns]

    @staticmethod
    def calculate_kpis(rows_df: pd.DataFrame) -> Dict:
        """
        Headline tiles: department utilisation, billable hours, internal share
        and Cloud / Network / PM utilisation. Ratios are fractions (0.75 = 75%).
        """
        kpis = {
            'dept_util': 0.0,
            'billable_hours': 0.0,
            'internal_share': 0.0,
            'cloud_util': 0.0,
            'network_util': 0.0,
            'pm_util': 0.0,
        }
        if rows_df.empty:
            return kpis

        role_util = DataProcessor.calculate_role_utilisation(rows_df)
        worked = role_util['worked_hours'].sum()
        if worked > 0:
            kpis['dept_util'] = float(role_util['billable_hours'].sum() / worked)

        kpis['billable_hours'] = round_to_quarter(float(rows_df.loc[rows_df['is_billable'], 'hours'].sum()))

        total_hours = rows_df['hours'].sum()
        if total_hours > 0:
            kpis['internal_share'] = float(rows_df.loc[rows_df['is_internal'], 'hours'].sum() / total_hours)

        by_role = role_util.set_index('role')['utilisation']
        kpis['cloud_util'] = float(by_role.get('Cloud', 0.0))
        kpis['network_util'] = float(by_role.get('Network', 0.0))
        kpis['pm_util'] = float(by_role.get('PM', 0.0))

        return kpis

    @staticmethod
    def calculate_role_utilisation_trend(rows_df: pd.DataFrame) -> pd.DataFrame:
        """
        Monthly billable utilisation % per target role against contract hours.

        Contract hours = distinct members x working days in month x DAY_HOURS.
        Roles without a target are ignored.

        Returns DataFrame with columns: month, role, billable_hours, contract_hours, utilisation, target
        """
        columns = ['month', 'role', 'billable_hours', 'contract_hours', 'utilisation', 'target']
        if rows_df.empty:
            return pd.DataFrame(columns=columns)

        frame = rows_df[rows_df['role'].isin(ROLE_TARGETS.keys())]
        if frame.empty:
            return pd.DataFrame(columns=columns)

        frame = frame.assign(billable_hours=frame['hours'].where(frame['is_billable'], 0.0))
        trend = frame.groupby(['calendar_month', 'role']).agg(
            billable_hours=('billable_hours', 'sum'),
            members=('member', 'nunique'),
        ).reset_index().rename(columns={'calendar_month': 'month'})

        working_days = trend['month'].map(DataProcessor.calculate_working_days)
        trend['contract_hours'] = trend['members'] * working_days * DAY_HOURS
        trend['utilisation'] = np.where(
            trend['contract_hours'] > 0,
            (trend['billable_hours'] / trend['contract_hours'] * 100).round(1),
            0.0
        )
        trend['target'] = trend['role'].map(ROLE_TARGETS) * 100

        return trend.sort_values(['month', 'role']).reset_index(drop=True)[columns]

    @staticmethod
    def calculate_hours_by_person(rows_df: pd.DataFrame) -> pd.DataFrame:
        """Total hours per member, largest first"""
        if rows_df.empty:
            return pd.DataFrame(columns=['member', 'hours'])

        hours = rows_df.groupby('member')['hours'].sum().reset_index()
        hours['hours'] = _round_quarter_series(hours['hours'])
        return hours.sort_values('hours', ascending=False, kind='stable').reset_index(drop=True)

    @staticmethod
    def calculate_billable_trend(rows_df: pd.DataFrame) -> pd.DataFrame:
        """Billable vs non-billable hours per calendar month"""
        columns = ['month', 'billable_hours', 'non_billable_hours']
        if rows_df.empty:
            return pd.DataFrame(columns=columns)

        frame = rows_df.assign(
            billable_hours=rows_df['hours'].where(rows_df['is_billable'], 0.0),
            non_billable_hours=rows_df['hours'].where(~rows_df['is_billable'], 0.0),
        )
        trend = frame.groupby('calendar_month')[['billable_hours', 'non_billable_hours']].sum().reset_index()
        trend = trend.rename(columns={'calendar_month': 'month'})
        trend['billable_hours'] = _round_quarter_series(trend['billable_hours'])
        trend['non_billable_hours'] = _round_quarter_series(trend['non_billable_hours'])
        return trend.sort_values('month').reset_index(drop=True)[columns]

    @staticmethod
    def calculate_client_pareto(rows_df: pd.DataFrame, top_n: int = 20) -> pd.DataFrame:
        """
        Billable hours per external company with cumulative share.

        Internal companies are excluded. The cumulative percentage is taken
        over all external companies before truncating to `top_n`.

        Returns DataFrame with columns: company, hours, cumulative_percent, rank
        """
        columns = ['company', 'hours', 'cumulative_percent', 'rank']
        if rows_df.empty:
            return pd.DataFrame(columns=columns)

        billable = rows_df[rows_df['is_billable'] & ~rows_df['company'].isin(INTERNAL_COMPANIES)]
        if billable.empty:
            return pd.DataFrame(columns=columns)

        pareto = billable.groupby('company')['hours'].sum().reset_index()
        pareto['hours'] = _round_quarter_series(pareto['hours'])
        pareto = pareto.sort_values('hours', ascending=False, kind='stable').reset_index(drop=True)

        total = pareto['hours'].sum()
        pareto['cumulative_percent'] = (
            (pareto['hours'].cumsum() / total * 100).round(1) if total > 0 else 0.0
        )
        pareto['rank'] = pareto.index + 1

        return pareto.head(top_n)[columns]

    @staticmethod
    def calculate_outlier_days(rows_df: pd.DataFrame, threshold: float = OUTLIER_DAILY_THRESHOLD) -> pd.DataFrame:
        """
        Member-days whose total hours exceed `threshold`, most recent first.

        The dominant project/company is the single entry with the most hours.
        """
        columns = ['member', 'date', 'hours', 'project', 'company', 'entry_count']
        if rows_df.empty:
            return pd.DataFrame(columns=columns)

        outliers = []
        for (member, day), group in rows_df.groupby(['member', 'date'], sort=False):
            total = group['hours'].sum()
            if total <= threshold:
                continue

            dominant = group.loc[group['hours'].idxmax()]
            outliers.append({
                'member': member or UNKNOWN,
                'date': pd.Timestamp(day).date(),
                'hours': round_to_quarter(float(total)),
                'project': dominant['project'],
                'company': dominant['company'],
                'entry_count': len(group),
            })

        if not outliers:
            return pd.DataFrame(columns=columns)

        result = pd.DataFrame(outliers, columns=columns)
        return result.sort_values('date', ascending=False, kind='stable').reset_index(drop=True)

    @staticmethod
    def calculate_daily_hours(rows_df: pd.DataFrame) -> pd.DataFrame:
        """Total hours per calendar date, for the calendar heatmap"""
        columns = ['date', 'hours', 'day_of_week', 'iso_week']
        if rows_df.empty:
            return pd.DataFrame(columns=columns)

        daily = rows_df.groupby('date').agg(
            hours=('hours', 'sum'),
            day_of_week=('day_of_week', 'first'),
            iso_week=('iso_week', 'first'),
        ).reset_index()
        daily['hours'] = _round_quarter_series(daily['hours'])
        return daily.sort_values('date').reset_index(drop=True)[columns]

    @staticmethod
    def calculate_weekly_overtime(rows_df: pd.DataFrame, schedules: Dict = None) -> pd.DataFrame:
        """Weekly overtime per member for the rows in the frame"""
        if rows_df.empty:
            return pd.DataFrame(columns=OVERTIME_COLUMNS)

        results = compute_weekly_overtime(rows_df.to_dict('records'), schedules=schedules)
        return overtime_to_frame(results)
