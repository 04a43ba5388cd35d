"""Date manipulation utilities"""

import calendar
import re
from datetime import date, timedelta
from typing import List

from kakeibo_engine.domain.exceptions import InvalidMonthError

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """
    Build a date, pulling the day back to the month's last day if it overflows.

    Shared by billing due dates and monthly recurrence: a "31st" in February
    becomes the 28th/29th instead of an invalid date.
    """
    return date(year, month, max(1, min(day, last_day_of_month(year, month))))


def add_months(d: date, months: int) -> date:
    """Add calendar months, keeping the day-of-month where the target month allows"""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    return clamp_day(year, month + 1, d.day)


def month_key(d: date) -> str:
    """yyyy-MM key for a date"""
    return f"{d.year:04d}-{d.month:02d}"


def parse_month(month: str) -> date:
    """
    Parse a yyyy-MM string into the first day of that month.

    Raises:
        InvalidMonthError: If the string is not a valid yyyy-MM month
    """
    match = _MONTH_PATTERN.match(month or "")
    if not match:
        raise InvalidMonthError(f"Invalid month format: {month!r} (expected yyyy-MM)")
    year, mon = int(match.group(1)), int(match.group(2))
    if not 1 <= mon <= 12:
        raise InvalidMonthError(f"Invalid month number in {month!r}")
    return date(year, mon, 1)


def next_month(month: str) -> str:
    return month_key(add_months(parse_month(month), 1))


def prev_month(month: str) -> str:
    return month_key(add_months(parse_month(month), -1))


def months_between(start: str, end: str) -> int:
    """Signed number of months from start to end"""
    s, e = parse_month(start), parse_month(end)
    return (e.year - s.year) * 12 + (e.month - s.month)


def months_in_range(start: str, end: str) -> List[str]:
    """All yyyy-MM months from start to end (inclusive); empty if start > end"""
    first = parse_month(start)
    count = months_between(start, end) + 1
    return [month_key(add_months(first, i)) for i in range(max(count, 0))]
