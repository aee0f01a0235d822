"""
Tests for the recurrence engine: pattern parsing and occurrence calculation.
"""

import pytest
from django.utils import timezone

from apps.tasks.recurrence import (
    INTERVAL_UNITS,
    DetailedRecurrence,
    RecurrenceInterval,
    calculate_next_occurrence,
    calculate_scheduled_dates,
    get_recurrence_label,
    is_valid_recurrence_pattern,
    parse_recurrence_pattern,
    resolve_interval,
)

from conftest import local


def local_dates(dates):
    return [timezone.localtime(value).date() for value in dates]


# =============================================================================
# Pattern parsing
# =============================================================================

class TestParseRecurrencePattern:

    def test_generic_pattern(self):
        assert parse_recurrence_pattern('3_months') == RecurrenceInterval(3, 'months')

    @pytest.mark.parametrize('unit', INTERVAL_UNITS)
    @pytest.mark.parametrize('count', [1, 2, 12])
    def test_reconstructs_same_interval(self, count, unit):
        interval = RecurrenceInterval(count, unit)
        assert parse_recurrence_pattern(str(interval)) == interval

    @pytest.mark.parametrize('pattern', [
        'once', 'daily', 'weekly', 'monthly', 'yearly',
    ])
    def test_canonical_patterns_are_not_generic(self, pattern):
        assert parse_recurrence_pattern(pattern) is None

    @pytest.mark.parametrize('pattern', [
        '0_days', '-1_days', '2_hours', 'x_weeks', '1_2_days', 'days', '', None,
    ])
    def test_malformed_patterns_fail_soft(self, pattern):
        assert parse_recurrence_pattern(pattern) is None

    def test_canonical_patterns_resolve_to_one_unit(self):
        assert resolve_interval('weekly') == RecurrenceInterval(1, 'weeks')
        assert resolve_interval('once') is None
        assert resolve_interval('fortnightly') is None

    def test_validity(self):
        assert is_valid_recurrence_pattern('daily')
        assert is_valid_recurrence_pattern('5_days')
        assert not is_valid_recurrence_pattern('5_hours')

    def test_labels(self):
        assert get_recurrence_label('once') == 'Once'
        assert get_recurrence_label('1_weeks') == 'Weekly'
        assert get_recurrence_label('3_months') == 'Every 3 months'


class TestDetailedRecurrence:

    def test_build_normalizes_values(self):
        details = DetailedRecurrence.build(
            week_days=[3, 1, 1, 9, 'x', True],
            month_days=[31, 0, 15, 15],
            year_dates=[{'month': 12, 'day': 25}, {'month': 13, 'day': 1}, 'bad'],
        )

        assert details.week_days == (1, 3)
        assert details.month_days == (15, 31)
        assert details.year_dates == ((12, 25),)

    def test_default_execution_time(self):
        details = DetailedRecurrence.build()
        assert (details.hour, details.minute) == (9, 0)

        details = DetailedRecurrence.build(execution_hour=7, execution_minute=30)
        assert (details.hour, details.minute) == (7, 30)


# =============================================================================
# Occurrence calculation
# =============================================================================

class TestCalculateScheduledDates:

    @pytest.mark.parametrize('pattern', [
        'daily', 'weekly', 'monthly', 'yearly', '5_days', '2_weeks', '3_months', '2_years',
    ])
    def test_strictly_after_now_and_ascending(self, pattern, now):
        dates = calculate_scheduled_dates(now, pattern, max_count=8, now=now)

        assert len(dates) == 8
        assert all(value > now for value in dates)
        assert all(earlier < later for earlier, later in zip(dates, dates[1:]))

    def test_respects_max_count(self, now):
        assert calculate_scheduled_dates(now, 'daily', max_count=0, now=now) == []
        assert len(calculate_scheduled_dates(now, 'daily', max_count=3, now=now)) == 3

    def test_daily_keeps_time_of_day_without_execution_time(self, now):
        dates = calculate_scheduled_dates(now, 'daily', max_count=3, now=now)

        assert dates == [local(2024, 1, 8, 8, 0), local(2024, 1, 9, 8, 0), local(2024, 1, 10, 8, 0)]

    def test_execution_time_applied_to_every_date(self, now):
        details = DetailedRecurrence.build(execution_hour=7, execution_minute=30)

        dates = calculate_scheduled_dates(now, 'daily', details, max_count=3, now=now)

        # 07:30 today is already past
        assert dates == [local(2024, 1, 8, 7, 30), local(2024, 1, 9, 7, 30), local(2024, 1, 10, 7, 30)]

    def test_past_start_date_begins_at_now(self, now):
        dates = calculate_scheduled_dates(local(2023, 6, 1, 8, 0), 'weekly', max_count=2, now=now)

        assert dates == [local(2024, 1, 14, 8, 0), local(2024, 1, 21, 8, 0)]

    def test_future_start_date_is_first_occurrence(self, now):
        start = local(2024, 2, 1, 10, 0)

        dates = calculate_scheduled_dates(start, 'weekly', max_count=2, now=now)

        assert dates == [start, local(2024, 2, 8, 10, 0)]

    def test_weekly_monday_wednesday_scenario(self, now):
        start = local(2024, 1, 7, 9, 0)  # Sunday
        details = DetailedRecurrence.build(week_days=[1, 3])

        dates = calculate_scheduled_dates(start, 'weekly', details, max_count=8, now=now)

        assert local_dates(dates) == [
            local(2024, 1, day).date() for day in (8, 10, 15, 17, 22, 24, 29, 31)
        ]
        assert [value.isoweekday() for value in map(timezone.localtime, dates)] == [1, 3] * 4
        assert all(timezone.localtime(value).hour == 9 for value in dates)

    def test_week_days_include_start_day(self):
        now = local(2024, 1, 8, 6, 0)  # Monday morning
        details = DetailedRecurrence.build(week_days=[1])

        dates = calculate_scheduled_dates(now, '1_weeks', details, max_count=2, now=now)

        assert dates == [local(2024, 1, 8, 9, 0), local(2024, 1, 15, 9, 0)]

    def test_three_months_with_month_day(self):
        now = local(2024, 1, 10, 8, 0)
        details = DetailedRecurrence.build(month_days=[15])

        dates = calculate_scheduled_dates(now, '3_months', details, max_count=4, now=now)

        assert local_dates(dates) == [
            local(2024, 1, 15).date(),
            local(2024, 4, 15).date(),
            local(2024, 7, 15).date(),
            local(2024, 10, 15).date(),
        ]
        # Summer time does not shift the wall-clock execution time
        assert all(timezone.localtime(value).hour == 9 for value in dates)

    def test_month_day_31_clamps_to_month_end(self):
        now = local(2024, 4, 1, 8, 0)
        details = DetailedRecurrence.build(month_days=[31])

        dates = calculate_scheduled_dates(now, 'monthly', details, max_count=3, now=now)

        assert local_dates(dates) == [
            local(2024, 4, 30).date(),
            local(2024, 5, 31).date(),
            local(2024, 6, 30).date(),
        ]

    def test_clamped_month_days_do_not_duplicate(self):
        now = local(2024, 2, 1, 8, 0)
        details = DetailedRecurrence.build(month_days=[29, 30, 31])

        dates = calculate_scheduled_dates(now, 'monthly', details, max_count=4, now=now)

        assert local_dates(dates) == [
            local(2024, 2, 29).date(),
            local(2024, 3, 29).date(),
            local(2024, 3, 30).date(),
            local(2024, 3, 31).date(),
        ]

    def test_year_dates_in_calendar_order(self):
        now = local(2024, 7, 1, 8, 0)
        details = DetailedRecurrence.build(
            year_dates=[{'month': 12, 'day': 25}, {'month': 6, 'day': 1}]
        )

        dates = calculate_scheduled_dates(now, 'yearly', details, max_count=3, now=now)

        assert local_dates(dates) == [
            local(2024, 12, 25).date(),
            local(2025, 6, 1).date(),
            local(2025, 12, 25).date(),
        ]

    def test_leap_day_year_date_rolls_to_feb_28(self):
        now = local(2024, 3, 1, 8, 0)
        details = DetailedRecurrence.build(year_dates=[{'month': 2, 'day': 29}])

        dates = calculate_scheduled_dates(now, 'yearly', details, max_count=4, now=now)

        assert local_dates(dates) == [
            local(2025, 2, 28).date(),
            local(2026, 2, 28).date(),
            local(2027, 2, 28).date(),
            local(2028, 2, 29).date(),
        ]

    def test_leap_day_simple_stepping_does_not_drift(self):
        start = local(2024, 2, 29, 9, 0)
        now = local(2024, 2, 29, 8, 0)

        dates = calculate_scheduled_dates(start, 'yearly', max_count=5, now=now)

        assert local_dates(dates) == [
            local(2024, 2, 29).date(),
            local(2025, 2, 28).date(),
            local(2026, 2, 28).date(),
            local(2027, 2, 28).date(),
            local(2028, 2, 29).date(),
        ]

    def test_month_end_simple_stepping_does_not_drift(self):
        start = local(2024, 1, 31, 10, 0)
        now = local(2024, 1, 31, 9, 0)

        dates = calculate_scheduled_dates(start, 'monthly', max_count=3, now=now)

        assert dates == [
            local(2024, 1, 31, 10, 0),
            local(2024, 2, 29, 10, 0),
            local(2024, 3, 31, 10, 0),
        ]

    def test_mismatched_unit_falls_back_to_interval(self, now):
        details = DetailedRecurrence.build(month_days=[15])

        dates = calculate_scheduled_dates(now, 'weekly', details, max_count=2, now=now)

        assert dates == [local(2024, 1, 14, 8, 0), local(2024, 1, 21, 8, 0)]

    def test_once_returns_future_start_only(self, now):
        future = local(2024, 1, 20, 9, 0)

        assert calculate_scheduled_dates(future, 'once', max_count=8, now=now) == [future]
        assert calculate_scheduled_dates(local(2024, 1, 1, 9, 0), 'once', max_count=8, now=now) == []

    def test_is_deterministic_for_fixed_now(self, now):
        details = DetailedRecurrence.build(week_days=[2, 5])

        first = calculate_scheduled_dates(now, 'weekly', details, max_count=8, now=now)
        second = calculate_scheduled_dates(now, 'weekly', details, max_count=8, now=now)

        assert first == second


class TestCalculateNextOccurrence:

    def test_once_is_unchanged(self):
        current = local(2024, 1, 8, 9, 0)
        assert calculate_next_occurrence(current, 'once') == current

    def test_single_interval_step_keeps_time(self):
        current = local(2024, 1, 8, 10, 15)
        assert calculate_next_occurrence(current, '2_weeks') == local(2024, 1, 22, 10, 15)

    def test_uses_detailed_schedule(self, now):
        details = DetailedRecurrence.build(week_days=[1, 3])
        current = local(2024, 1, 8, 9, 0)  # Monday

        assert calculate_next_occurrence(current, 'weekly', details, now=now) == local(2024, 1, 10, 9, 0)
