"""Calendar arithmetic shared by the query compiler and the analytics reports.

All functions take the reference date explicitly and return naive datetimes,
inclusive on both ends.
"""

import calendar
from datetime import date, datetime, time, timedelta

Period = tuple[datetime, datetime]


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Move ``offset`` months from (year, month), rolling over year boundaries.

    Args:
        year: Calendar year
        month: Calendar month (1-12)
        offset: Months to move, negative for the past

    Returns:
        (year, month) tuple
    """
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def month_period(year: int, month: int) -> Period:
    """First instant to last instant of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return start_of_day(date(year, month, 1)), end_of_day(date(year, month, last_day))


def year_period(year: int) -> Period:
    return start_of_day(date(year, 1, 1)), end_of_day(date(year, 12, 31))


def this_month(today: date) -> Period:
    return month_period(today.year, today.month)


def last_month(today: date) -> Period:
    return month_period(*shift_month(today.year, today.month, -1))


def this_year(today: date) -> Period:
    return year_period(today.year)


def last_year(today: date) -> Period:
    return year_period(today.year - 1)


def last_week(today: date) -> Period:
    """Most recently completed Monday..Saturday span.

    Days are counted back from a Sunday-first weekday index, so on a Sunday
    the span ends yesterday and on a Saturday it ends a week ago.

    Args:
        today: Reference date

    Returns:
        (Monday 00:00, Saturday end-of-day)
    """
    sunday_first_index = (today.weekday() + 1) % 7
    saturday = today - timedelta(days=sunday_first_index + 1)
    monday = saturday - timedelta(days=5)
    return start_of_day(monday), end_of_day(saturday)


def first_quarter(year: int) -> Period:
    """Calendar Q1 window, Jan 1 00:00:00 through Mar 31 23:59:59."""
    return datetime(year, 1, 1), datetime(year, 3, 31, 23, 59, 59)


def within(moment: datetime | None, period: Period) -> bool:
    if moment is None:
        return False
    start, end = period
    return start <= moment <= end
