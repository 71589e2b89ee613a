"""Date helpers shared by the schedulers.

Weekdays use the numbering stored in blocked_dates.blocked_day_of_week:
0 = Sunday, 1 = Monday, ... 6 = Saturday.
"""

from datetime import date, datetime, timedelta

DAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]


def normalize_date(value: date | datetime) -> date:
    """Drop any time-of-day component.

    Raises:
        TypeError: If value is not a date or datetime
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")


def day_of_week(d: date | datetime) -> int:
    """Return the weekday of d with Sunday as 0."""
    return normalize_date(d).isoweekday() % 7


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def next_weekday_on_or_after(start: date, weekday: int) -> date:
    """Return the first date >= start falling on weekday (0 = Sunday)."""
    return start + timedelta(days=(weekday - day_of_week(start)) % 7)
