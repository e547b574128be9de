"""
Temporal Range Resolver

Turns a (period, which) pair plus a reference instant into concrete,
calendar-aligned bounds.

DESIGN DECISION: This module is the ONLY place date bounds are computed.
The query executor, the forecasting engine and the trend analyzer all ask
here instead of doing their own calendar arithmetic. Every function is
pure: the reference instant is always passed in, never read from a clock.
"""

import calendar
from datetime import datetime, timedelta
from typing import Union

from kharcha.models.expense import Period, PeriodRange, Which


PeriodLike = Union[Period, str]
WhichLike = Union[Which, str]


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    """23:59:59.999 of the same day."""
    return moment.replace(hour=23, minute=59, second=59, microsecond=999000)


def days_in_month(moment: datetime) -> int:
    return calendar.monthrange(moment.year, moment.month)[1]


def month_range(year: int, month: int, tzinfo=None) -> tuple[datetime, datetime]:
    """First and last instant of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=tzinfo)
    end = end_of_day(datetime(year, month, last_day, tzinfo=tzinfo))
    return start, end


def months_back(now: datetime, months: int) -> datetime:
    """
    First instant of the month `months` calendar months before `now`.

    months_back(now, 0) is the start of the current month.
    """
    index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(index, 12)
    return datetime(year, month + 1, 1, tzinfo=now.tzinfo)


def month_to_date(now: datetime) -> tuple[datetime, datetime]:
    return months_back(now, 0), now


def year_to_date(now: datetime) -> tuple[datetime, datetime]:
    return datetime(now.year, 1, 1, tzinfo=now.tzinfo), now


def trailing_days(now: datetime, days: int) -> tuple[datetime, datetime]:
    """From midnight `days` days ago up to `now`."""
    return start_of_day(now - timedelta(days=days)), now


def range_length_days(period_range: PeriodRange) -> int:
    """Number of calendar days a range touches, both ends included."""
    return (period_range.end.date() - period_range.start.date()).days + 1


def resolve(period: PeriodLike, which: WhichLike, now: datetime) -> PeriodRange:
    """
    Resolve a relative period into calendar-aligned bounds.

    Args:
        period: today, yesterday, week, month or year
        which: this or last
        now: Reference instant. Bounds depend on nothing else.

    Returns:
        PeriodRange with inclusive start and end

    Raises:
        ValueError: If period or which is not a known value
    """
    period = Period(period)
    which = Which(which)

    if period is Period.TODAY:
        base = now - timedelta(days=1) if which is Which.LAST else now
        start, end = start_of_day(base), end_of_day(base)

    elif period is Period.YESTERDAY:
        base = now - timedelta(days=1)
        start, end = start_of_day(base), end_of_day(base)

    elif period is Period.WEEK:
        monday = start_of_day(now - timedelta(days=now.weekday()))
        if which is Which.LAST:
            monday -= timedelta(days=7)
        start, end = monday, end_of_day(monday + timedelta(days=6))

    elif period is Period.YEAR:
        year = now.year - 1 if which is Which.LAST else now.year
        start = datetime(year, 1, 1, tzinfo=now.tzinfo)
        end = end_of_day(datetime(year, 12, 31, tzinfo=now.tzinfo))

    else:
        first = months_back(now, 1 if which is Which.LAST else 0)
        start, end = month_range(first.year, first.month, tzinfo=now.tzinfo)

    return PeriodRange(period=period, which=which, start=start, end=end)
