from datetime import date, datetime

import pytest

from analytics.csv_importer import parse_csv_to_rows
from analytics.overtime import (
    compute_weekly_overtime,
    daily_baseline_for,
    normalize_member_name,
    overtime_to_frame,
    round_to_quarter,
)
from conftest import entry, make_csv


def work(day, hours, productivity="Productive", work_type="Project Management", member="Jo Smith"):
    return {
        'member': member,
        'date': day,
        'hours': hours,
        'productivity': productivity,
        'work_type': work_type,
    }


def full_week(hours=7.5, member="Jo Smith"):
    """Monday 4 March to Friday 8 March 2024"""
    return [work(date(2024, 3, d), hours, member=member) for d in range(4, 9)]


def single(results):
    assert len(results) == 1
    return results[0].overtime


def test_weekend_hours_are_weekend_overtime():
    overtime = single(compute_weekly_overtime([work(date(2024, 3, 9), 5)]))

    assert overtime.weekend_holiday == 5
    assert overtime.daily_weekday == 0
    assert overtime.weekly_overflow == 0
    assert overtime.total == 5


def test_hours_above_baseline_are_daily_overtime():
    overtime = single(compute_weekly_overtime([work(date(2024, 3, 5), 9)]))

    assert overtime.daily_weekday == 1.5
    assert overtime.weekly_overflow == 0
    assert overtime.total == 1.5


def test_full_week_has_no_overtime():
    overtime = single(compute_weekly_overtime(full_week()))

    assert overtime.total == 0


def test_sick_leave_reduces_weekly_capacity():
    entries = full_week() + [work(date(2024, 3, 6), 7.5, productivity="Unproductive", work_type="Sick Leave")]

    overtime = single(compute_weekly_overtime(entries))

    assert overtime.weekly_overflow == 7.5
    assert overtime.daily_weekday == 0
    assert overtime.weekend_holiday == 0
    assert overtime.total == 7.5


def test_training_reduces_weekly_capacity():
    entries = full_week() + [work(date(2024, 3, 7), 3.75, productivity="Unproductive", work_type="Training")]

    overtime = single(compute_weekly_overtime(entries))

    assert overtime.weekly_overflow == 3.75


def test_worked_bank_holiday_is_holiday_overtime():
    entries = full_week() + [work(date(2024, 3, 6), 7.5, productivity="Unproductive", work_type="Bank/Holiday Leave")]

    overtime = single(compute_weekly_overtime(entries))

    assert overtime.weekend_holiday == 7.5
    assert overtime.weekly_overflow == 0
    assert overtime.total == 7.5


def test_productive_hours_on_bank_holiday():
    entries = [
        work(date(2024, 3, 4), 7.5, productivity="Unproductive", work_type="Bank/Holiday Leave"),
        work(date(2024, 3, 4), 3),
    ]

    overtime = single(compute_weekly_overtime(entries))

    assert overtime.weekend_holiday == 3
    assert overtime.daily_weekday == 0


def test_non_working_hours_are_capped_at_the_day():
    entries = [work(date(2024, 3, 4), 10, productivity="Unproductive", work_type="Sick Leave")]
    entries += [work(date(2024, 3, d), 7.5) for d in range(5, 9)]

    overtime = single(compute_weekly_overtime(entries))

    assert overtime.weekly_overflow == 0
    assert overtime.total == 0


def test_weekend_beats_bank_holiday():
    entries = [
        work(date(2024, 3, 9), 7.5, productivity="Unproductive", work_type="Bank/Holiday Leave"),
        work(date(2024, 3, 9), 2),
    ]

    overtime = single(compute_weekly_overtime(entries))

    assert overtime.weekend_holiday == 2


def test_unproductive_hours_are_not_overtime():
    entries = [work(date(2024, 3, 5), 9, productivity="Unproductive", work_type="Admin")]

    assert single(compute_weekly_overtime(entries)).total == 0


def test_zero_hour_entries_still_register_the_week():
    results = compute_weekly_overtime([work(date(2024, 3, 5), 0)])

    assert len(results) == 1
    assert results[0].iso_week == "2024-W10"
    assert results[0].overtime.total == 0


def test_entries_without_a_date_are_skipped():
    results = compute_weekly_overtime([work("not a date", 9), work(None, 3)])

    assert results == []


def test_empty_input():
    assert compute_weekly_overtime([]) == []
    assert compute_weekly_overtime(None) == []


def test_compressed_schedule_baseline():
    entries = [work(date(2024, 3, d), 8.25, member="Bolton, Mark") for d in range(4, 8)]
    entries.append(work(date(2024, 3, 8), 6, member="Bolton, Mark"))

    results = compute_weekly_overtime(entries)

    assert results[0].member == "Mark Bolton"
    assert results[0].overtime.daily_weekday == 1.5
    assert results[0].overtime.weekly_overflow == 0


def test_custom_schedules_override_defaults():
    schedules = {'Jo Smith': {2: 6.0}}

    overtime = single(compute_weekly_overtime([work(date(2024, 3, 5), 7)], schedules=schedules))

    assert overtime.daily_weekday == 1


def test_weeks_are_split_by_iso_week():
    results = compute_weekly_overtime([
        work(date(2024, 3, 10), 2),
        work(date(2024, 3, 11), 9),
    ])

    assert [(r.iso_week, r.overtime.total) for r in results] == [("2024-W10", 2), ("2024-W11", 1.5)]


def test_year_end_week_uses_iso_year():
    results = compute_weekly_overtime([
        work(date(2024, 12, 30), 9),
        work(date(2025, 1, 2), 9),
    ])

    assert len(results) == 1
    assert results[0].iso_week == "2025-W01"
    assert results[0].overtime.daily_weekday == 3


def test_rounding_happens_on_weekly_totals():
    entries = [work(date(2024, 3, 4), 7.6), work(date(2024, 3, 5), 7.6)]

    overtime = single(compute_weekly_overtime(entries))

    assert overtime.daily_weekday == 0.25


def test_csv_rows_end_to_end():
    rows = parse_csv_to_rows(make_csv([
        entry(Hours="4"),
        entry(Hours="4"),
        entry(Hours="2"),
    ]))

    results = compute_weekly_overtime(rows)

    assert len(results) == 1
    assert results[0].member == "Jo Smith"
    assert results[0].iso_week == "2024-W10"
    assert results[0].overtime.daily_weekday == 2.5
    assert results[0].overtime.total == 2.5


def test_csv_header_keys_and_timestamps_are_accepted():
    entries = [{
        'Member': "Smith, Jo",
        'Date': datetime(2024, 3, 9, 0, 0),
        'Hours': "1.5",
        'Productivity': "Productive",
        'Work Type': "Project Management",
    }]

    overtime = single(compute_weekly_overtime(entries))

    assert overtime.weekend_holiday == 1.5


def test_overtime_to_frame_sorted_by_week_then_member():
    results = compute_weekly_overtime([
        work(date(2024, 3, 12), 9, member="Zoe"),
        work(date(2024, 3, 5), 9, member="Zoe"),
        work(date(2024, 3, 5), 8, member="Amy"),
    ])

    frame = overtime_to_frame(results)

    assert list(frame.columns) == ['member', 'iso_week', 'daily_weekday', 'weekly_overflow', 'weekend_holiday', 'total']
    assert list(zip(frame['iso_week'], frame['member'])) == [
        ("2024-W10", "Amy"), ("2024-W10", "Zoe"), ("2024-W11", "Zoe"),
    ]
    assert list(frame['total']) == [0.5, 1.5, 1.5]


def test_overtime_to_frame_empty():
    frame = overtime_to_frame([])

    assert frame.empty
    assert 'total' in frame.columns


@pytest.mark.parametrize("raw, expected", [
    ("Bolton, Mark", "Mark Bolton"),
    ("  Smith ,  Jo ", "Jo Smith"),
    ("Jo Smith", "Jo Smith"),
    ("", "Unknown"),
    (None, "Unknown"),
])
def test_normalize_member_name(raw, expected):
    assert normalize_member_name(raw) == expected


def test_daily_baseline():
    assert daily_baseline_for("Jo Smith", date(2024, 3, 4)) == 7.5
    assert daily_baseline_for("Jo Smith", date(2024, 3, 9)) == 0
    assert daily_baseline_for("Bolton, Mark", date(2024, 3, 4)) == 8.25
    assert daily_baseline_for("Mark Bolton", date(2024, 3, 8)) == 4.5


@pytest.mark.parametrize("hours, expected", [
    (0.1, 0.0),
    (0.125, 0.25),
    (1.3, 1.25),
    (1.38, 1.5),
    (7.5, 7.5),
])
def test_round_to_quarter(hours, expected):
    assert round_to_quarter(hours) == expected


def test_round_to_quarter_is_idempotent_and_moves_at_most_an_eighth():
    for i in range(0, 100000, 7):
        hours = i / 997
        rounded = round_to_quarter(hours)

        assert round_to_quarter(rounded) == rounded
        assert abs(rounded - hours) <= 0.125 + 1e-9
        assert rounded * 4 == int(rounded * 4)
