from datetime import date, datetime

import pytest

from src.allocation.errors import AllocationError, InvalidPeriodError
from src.allocation.periods import (
    DEFAULT_FROM_DATE, MonthPeriod, add_months, as_date, month_start,
    resolve_period, validate_period
)

TODAY = date(2024, 10, 15)


def test_as_date_accepts_strings_and_datetimes():
    assert as_date('2024-10-17') == date(2024, 10, 17)
    assert as_date(datetime(2024, 10, 17, 13, 45)) == date(2024, 10, 17)
    assert month_start('2024-10-17') == date(2024, 10, 1)


def test_add_months_rolls_over_year_end():
    assert add_months(date(2024, 12, 1), 1) == date(2025, 1, 1)
    assert add_months(date(2024, 1, 1), -1) == date(2023, 12, 1)
    assert add_months(date(2024, 3, 1), 14) == date(2025, 5, 1)


def test_month_period_is_half_open_and_restartable():
    period = MonthPeriod(date(2024, 1, 17), date(2025, 1, 1))

    assert period.from_date == date(2024, 1, 1)
    assert len(period) == 12
    assert list(period) == list(period)
    assert period.months()[-1] == date(2024, 12, 1)
    assert date(2024, 12, 31) in period
    assert date(2025, 1, 1) not in period


def test_empty_period_has_no_months():
    period = MonthPeriod(date(2024, 10, 1), date(2024, 10, 1))
    assert len(period) == 0
    assert period.months() == []


def test_resolve_period_defaults():
    period = resolve_period(today=TODAY)
    assert period.from_date == DEFAULT_FROM_DATE
    assert period.to_date == date(2024, 11, 1)


def test_resolve_period_includes_the_last_month():
    period = resolve_period('2024-01-10', '2024-03-31', today=TODAY)
    assert period.months() == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)]


def test_resolve_period_rejects_reversed_window():
    with pytest.raises(InvalidPeriodError, match="before or equal"):
        resolve_period('2024-12-01', '2024-10-01', today=TODAY)


def test_resolve_period_rejects_start_before_2010():
    with pytest.raises(InvalidPeriodError, match="2010-01-01"):
        resolve_period('2009-12-01', '2010-03-01', today=TODAY)


def test_resolve_period_rejects_end_too_far_ahead():
    with pytest.raises(InvalidPeriodError, match="2 years"):
        resolve_period('2024-01-01', '2027-01-01', today=TODAY)


def test_validate_period_accepts_end_exactly_two_years_ahead():
    validate_period(date(2024, 1, 1), date(2026, 10, 15), today=TODAY)


def test_invalid_period_is_both_allocation_and_value_error():
    with pytest.raises(AllocationError):
        validate_period(date(2024, 2, 1), date(2024, 1, 1), today=TODAY)
    with pytest.raises(ValueError):
        validate_period(date(2024, 2, 1), date(2024, 1, 1), today=TODAY)


def test_mid_month_end_covers_the_whole_month():
    period = MonthPeriod('2024-10-01', '2024-10-15')

    assert period.to_date == date(2024, 11, 1)
    assert period.months() == [date(2024, 10, 1)]
    assert MonthPeriod('2024-10-01', '2024-11-01').to_date == date(2024, 11, 1)
