"""
Recurrence engine for recurring task templates.

Recurrence patterns:
- "once", "daily", "weekly", "monthly", "yearly" = canonical cadences
  (daily/weekly/monthly/yearly behave as an interval of one unit)
- "<count>_<unit>" = generic interval, unit in days/weeks/months/years

Detailed recurrence narrows an interval of the matching unit:
- weeks + week days: every listed weekday (0 = Sunday ... 6 = Saturday)
- months + month days: listed days of every <count>-th month
- years + year dates: listed {month, day} pairs of every year

All wall-clock arithmetic happens in the configured local time zone.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import NamedTuple, Optional

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.utils import timezone

CANONICAL_PATTERNS = ('once', 'daily', 'weekly', 'monthly', 'yearly')
INTERVAL_UNITS = ('days', 'weeks', 'months', 'years')

# Search horizons for detailed recurrence
YEAR_SEARCH_HORIZON = 5
MONTH_SEARCH_HORIZON = 12
WEEK_DAY_SEARCH_HORIZON = 60


class RecurrenceInterval(NamedTuple):
    """A generic interval such as ``3_months``."""

    count: int
    unit: str

    def __str__(self):
        return f'{self.count}_{self.unit}'


_CANONICAL_INTERVALS = {
    'daily': RecurrenceInterval(1, 'days'),
    'weekly': RecurrenceInterval(1, 'weeks'),
    'monthly': RecurrenceInterval(1, 'months'),
    'yearly': RecurrenceInterval(1, 'years'),
}


def parse_recurrence_pattern(pattern) -> Optional[RecurrenceInterval]:
    """
    Parse a generic "<count>_<unit>" pattern.

    Returns None for canonical patterns and for anything malformed
    (wrong token count, non-positive count, unknown unit); callers fall
    back to canonical handling.
    """
    if not pattern or pattern in CANONICAL_PATTERNS:
        return None

    parts = str(pattern).split('_')
    if len(parts) != 2:
        return None

    count_text, unit = parts
    if not (count_text.isascii() and count_text.isdigit()):
        return None

    count = int(count_text)
    if count <= 0 or unit not in INTERVAL_UNITS:
        return None

    return RecurrenceInterval(count, unit)


def resolve_interval(pattern) -> Optional[RecurrenceInterval]:
    """Interval driving the schedule; None for "once" and unknown patterns."""
    interval = parse_recurrence_pattern(pattern)
    if interval is None:
        interval = _CANONICAL_INTERVALS.get(pattern)
    return interval


def is_valid_recurrence_pattern(pattern):
    return pattern in CANONICAL_PATTERNS or parse_recurrence_pattern(pattern) is not None


def get_recurrence_label(pattern):
    """Human-readable label for a recurrence pattern."""
    labels = {
        'once': 'Once',
        'daily': 'Daily',
        'weekly': 'Weekly',
        'monthly': 'Monthly',
        'yearly': 'Yearly',
    }
    if pattern in labels:
        return labels[pattern]

    interval = parse_recurrence_pattern(pattern)
    if interval is None:
        return str(pattern)

    if interval.count == 1:
        return {
            'days': 'Daily',
            'weeks': 'Weekly',
            'months': 'Monthly',
            'years': 'Yearly',
        }[interval.unit]
    return f'Every {interval.count} {interval.unit}'


@dataclass(frozen=True)
class DetailedRecurrence:
    """Explicit weekday / month-day / year-date constraints plus execution time."""

    week_days: tuple = ()
    month_days: tuple = ()
    year_dates: tuple = ()
    execution_hour: Optional[int] = None
    execution_minute: Optional[int] = None

    @classmethod
    def build(cls, week_days=None, month_days=None, year_dates=None,
              execution_hour=None, execution_minute=None):
        """Normalize raw values: drop out-of-range entries, dedupe and sort."""
        return cls(
            week_days=tuple(sorted({
                int(day) for day in (week_days or [])
                if _is_int(day) and 0 <= int(day) <= 6
            })),
            month_days=tuple(sorted({
                int(day) for day in (month_days or [])
                if _is_int(day) and 1 <= int(day) <= 31
            })),
            year_dates=tuple(sorted({
                (int(entry['month']), int(entry['day']))
                for entry in (year_dates or [])
                if _is_year_date(entry)
            })),
            execution_hour=execution_hour,
            execution_minute=execution_minute,
        )

    @classmethod
    def from_task(cls, task):
        return cls.build(
            week_days=task.recurrence_week_days,
            month_days=task.recurrence_month_days,
            year_dates=task.recurrence_year_dates,
            execution_hour=task.execution_hour,
            execution_minute=task.execution_minute,
        )

    @property
    def hour(self):
        if self.execution_hour is None:
            return settings.RECURRING_TASK_DEFAULT_EXECUTION_HOUR
        return self.execution_hour

    @property
    def minute(self):
        if self.execution_minute is None:
            return settings.RECURRING_TASK_DEFAULT_EXECUTION_MINUTE
        return self.execution_minute


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _is_year_date(entry):
    if not isinstance(entry, dict):
        return False
    month, day = entry.get('month'), entry.get('day')
    return _is_int(month) and _is_int(day) and 1 <= month <= 12 and 1 <= day <= 31


# =============================================================================
# Local time helpers
# =============================================================================

def _to_local_naive(value):
    return timezone.localtime(value).replace(tzinfo=None)


def _make_local(year, month, day, hour, minute):
    """Aware datetime for a local wall-clock time; day clamped to the month."""
    safe_day = min(day, calendar.monthrange(year, month)[1])
    return timezone.make_aware(datetime(year, month, safe_day, hour, minute))


def _apply_execution_time(local_naive, hour=None, minute=None):
    """Override hour/minute when configured; seconds are always dropped."""
    result = local_naive.replace(second=0, microsecond=0)
    if hour is not None:
        result = result.replace(hour=hour)
    if minute is not None:
        result = result.replace(minute=minute)
    return timezone.make_aware(result)


def _shift(local_naive, interval, steps):
    amount = interval.count * steps
    if interval.unit == 'days':
        return local_naive + timedelta(days=amount)
    if interval.unit == 'weeks':
        return local_naive + timedelta(weeks=amount)
    if interval.unit == 'months':
        # relativedelta clamps the day to the target month length
        return local_naive + relativedelta(months=amount)
    # Feb 29 rolls to Feb 28 in non-leap years
    return local_naive + relativedelta(years=amount)


# =============================================================================
# Occurrence calculation
# =============================================================================

def calculate_scheduled_dates(start_date, pattern, details=None, max_count=8, now=None):
    """
    Calculate the upcoming scheduled dates of a recurring task.

    Args:
        start_date: Recurrence start; the search begins at max(start_date, now)
        pattern: Recurrence pattern (canonical or "<count>_<unit>")
        details: Optional DetailedRecurrence
        max_count: Maximum number of dates to return
        now: Reference "now" (defaults to the current time)

    Returns:
        Ascending list of aware datetimes, each strictly after ``now`` and
        not before ``max(start_date, now)``
    """
    if max_count <= 0:
        return []

    now = now or timezone.now()
    details = details or DetailedRecurrence()
    base = max(start_date, now) if start_date else now
    interval = resolve_interval(pattern)

    if interval is not None:
        if interval.unit == 'years' and details.year_dates:
            return _year_date_occurrences(base, details, max_count, now)
        if interval.unit == 'months' and details.month_days:
            return _month_day_occurrences(base, interval, details, max_count, now)
        if interval.unit == 'weeks' and details.week_days:
            return _week_day_occurrences(base, details, max_count, now)

    return _interval_occurrences(base, interval, details, max_count, now)


def _interval_occurrences(base, interval, details, max_count, now):
    """Simple stepping: base + k * interval, with the execution time applied."""
    dates = []
    anchor = _to_local_naive(base)

    # Only the first step can land at or before now, hence one extra step
    for step in range(max_count + 1):
        if step > 0 and interval is None:
            break  # "once" never advances

        candidate = _shift(anchor, interval, step) if step else anchor
        scheduled = _apply_execution_time(
            candidate, details.execution_hour, details.execution_minute
        )
        if scheduled > now and scheduled >= base and (not dates or scheduled > dates[-1]):
            dates.append(scheduled)
        if len(dates) >= max_count:
            break

    return dates


def _year_date_occurrences(base, details, max_count, now):
    dates = []
    start_year = _to_local_naive(base).year

    for year_offset in range(YEAR_SEARCH_HORIZON):
        year = start_year + year_offset
        for month, day in details.year_dates:
            scheduled = _make_local(year, month, day, details.hour, details.minute)
            if scheduled > now and scheduled >= base and (not dates or scheduled > dates[-1]):
                dates.append(scheduled)
            if len(dates) >= max_count:
                return dates

    return dates


def _month_day_occurrences(base, interval, details, max_count, now):
    dates = []
    base_local = _to_local_naive(base)
    first_of_month = date(base_local.year, base_local.month, 1)

    for step in range(MONTH_SEARCH_HORIZON):
        month_start = first_of_month + relativedelta(months=step * interval.count)
        for day in details.month_days:
            scheduled = _make_local(
                month_start.year, month_start.month, day, details.hour, details.minute
            )
            # Clamping can map several configured days onto the last day
            if scheduled > now and scheduled >= base and (not dates or scheduled > dates[-1]):
                dates.append(scheduled)
            if len(dates) >= max_count:
                return dates

    return dates


def _week_day_occurrences(base, details, max_count, now):
    dates = []
    start_day = _to_local_naive(base).date()

    for offset in range(WEEK_DAY_SEARCH_HORIZON):
        day = start_day + timedelta(days=offset)
        # isoweekday: Monday=1 ... Sunday=7; stored numbers use Sunday=0
        if day.isoweekday() % 7 not in details.week_days:
            continue
        scheduled = _make_local(day.year, day.month, day.day, details.hour, details.minute)
        if scheduled > now and scheduled >= base:
            dates.append(scheduled)
        if len(dates) >= max_count:
            break

    return dates


def calculate_next_occurrence(current_date, pattern, details=None, now=None):
    """
    Next occurrence after ``current_date``.

    Uses the detailed schedule when details are given, falling back to a
    single interval step. "once" (and unknown patterns) return the date
    unchanged.
    """
    if details is not None:
        for scheduled in calculate_scheduled_dates(current_date, pattern, details, 2, now=now):
            if scheduled > current_date:
                return scheduled

    interval = resolve_interval(pattern)
    if interval is None:
        return current_date
    return timezone.make_aware(_shift(_to_local_naive(current_date), interval, 1))
