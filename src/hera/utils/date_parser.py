"""Date parsing utilities for CLI options."""

from datetime import date, timedelta

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def _start_of(period: str, today: date) -> date:
    if period == "week":
        return today - timedelta(days=today.weekday())
    if period == "month":
        return today.replace(day=1)
    if period == "quarter":
        return today.replace(month=3 * ((today.month - 1) // 3) + 1, day=1)
    if period == "year":
        return today.replace(month=1, day=1)
    raise ValueError(f"Unknown period '{period}'")


_PERIOD_STEP = {
    "week": relativedelta(weeks=1),
    "month": relativedelta(months=1),
    "quarter": relativedelta(months=3),
    "year": relativedelta(years=1),
}


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports:
    - Absolute dates: "2024-01-15", "15 Jan 2024", etc.
    - Relative days: "today", "yesterday", "tomorrow", "3 days ago"
    - Period starts: "this month", "last quarter", "next year", "last friday"

    Args:
        date_str: Date string

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = date.today()

    relative_days = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in relative_days:
        return relative_days[text]

    if text.endswith(" days ago"):
        count = text[: -len(" days ago")].strip()
        if count.isdigit():
            return today - timedelta(days=int(count))

    for prefix, direction in (("last ", -1), ("this ", 0), ("next ", 1)):
        if not text.startswith(prefix):
            continue
        period = text[len(prefix):]
        if period in _PERIOD_STEP:
            return _start_of(period, today) + direction * _PERIOD_STEP[period]
        if period in WEEKDAYS and direction == -1:
            days_ago = (today.weekday() - WEEKDAYS.index(period)) % 7 or 7
            return today - timedelta(days=days_ago)

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Args:
        period: this-week, this-month, this-quarter, this-year or the last-*
            variant of each. "this" periods end today, "last" periods end on
            their final day.

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        ValueError: If period string is not recognized
    """
    key = period.strip().lower()
    today = date.today()
    which, _, unit = key.partition("-")

    if which in ("this", "last") and unit in _PERIOD_STEP:
        start = _start_of(unit, today)
        if which == "this":
            return (start, today)
        return (start - _PERIOD_STEP[unit], start - timedelta(days=1))

    supported = ", ".join(f"{w}-{u}" for w in ("this", "last") for u in _PERIOD_STEP)
    raise ValueError(f"Unknown period: '{period}'. Supported periods: {supported}")
