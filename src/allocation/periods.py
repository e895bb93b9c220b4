"""
Calendar month helpers for report windows.
"""

import logging
from datetime import date, datetime
from typing import Iterator, List, Optional, Union

import pandas as pd

from .errors import InvalidPeriodError

logger = logging.getLogger(__name__)

DEFAULT_FROM_DATE = date(2017, 1, 1)
EARLIEST_FROM_DATE = date(2010, 1, 1)
MAX_YEARS_AHEAD = 2

DateLike = Union[date, datetime, str, pd.Timestamp]


def as_date(value: DateLike) -> date:
    """Coerce a date, datetime, Timestamp or ISO string into a ``date``."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def month_start(value: DateLike) -> date:
    return as_date(value).replace(day=1)


def add_months(value: date, months: int) -> date:
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


class MonthPeriod:
    """
    The first-of-month dates in ``[from_date, to_date)``.

    ``from_date`` is normalized to day 1. A ``to_date`` inside a month is
    moved to the first day of the following month, so every month the period
    yields is covered in full. Iterating yields a fresh generator each time,
    so a period can be walked as often as needed.
    """

    def __init__(self, from_date: DateLike, to_date: DateLike):
        self.from_date = month_start(from_date)
        end = as_date(to_date)
        self.to_date = end if end.day == 1 else add_months(month_start(end), 1)

    def __iter__(self) -> Iterator[date]:
        cursor = self.from_date
        while cursor < self.to_date:
            yield cursor
            cursor = add_months(cursor, 1)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __contains__(self, value: DateLike) -> bool:
        month = month_start(value)
        return self.from_date <= month < self.to_date

    def __repr__(self) -> str:
        return f"MonthPeriod({self.from_date.isoformat()}, {self.to_date.isoformat()})"

    def months(self) -> List[date]:
        return list(self)


def resolve_period(from_date: Optional[DateLike] = None,
                   to_date: Optional[DateLike] = None,
                   today: Optional[date] = None) -> MonthPeriod:
    """
    Build a validated report window from caller-supplied bounds.

    ``from_date`` defaults to 2017-01-01. ``to_date`` names the last month to
    include (defaults to the current month) and becomes the first day of the
    following month.

    Raises:
        InvalidPeriodError: if the window is reversed, starts before 2010 or
            ends more than two years ahead.
    """
    today = today or date.today()
    start = month_start(from_date) if from_date is not None else DEFAULT_FROM_DATE
    last = month_start(to_date) if to_date is not None else today.replace(day=1)
    end = add_months(last, 1)
    validate_period(start, end, today)
    return MonthPeriod(start, end)


def validate_period(from_date: date, to_date: date, today: Optional[date] = None) -> None:
    today = today or date.today()
    if from_date > to_date:
        logger.warning(f"Rejected period: from {from_date} is after to {to_date}")
        raise InvalidPeriodError("From date must be before or equal to to date")
    if from_date < EARLIEST_FROM_DATE:
        logger.warning(f"Rejected period: from {from_date} is before {EARLIEST_FROM_DATE}")
        raise InvalidPeriodError(f"From date cannot be before {EARLIEST_FROM_DATE.isoformat()}")
    limit = (pd.Timestamp(today) + pd.DateOffset(years=MAX_YEARS_AHEAD)).date()
    if to_date > limit:
        logger.warning(f"Rejected period: to {to_date} is more than {MAX_YEARS_AHEAD} years ahead")
        raise InvalidPeriodError(f"To date cannot be more than {MAX_YEARS_AHEAD} years in the future")
