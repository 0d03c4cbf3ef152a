"""
Cadence table.

Maps a payment or compounding cadence to the number of periods in a year.
"""

import calendar
from datetime import date, timedelta
from decimal import Decimal
from typing import Union

from finance_engine.errors import ConfigurationError
from finance_engine.models.records import Frequency


PERIODS_PER_YEAR: dict[Frequency, Decimal] = {
    Frequency.DAILY: Decimal(365),
    Frequency.WEEKLY: Decimal(52),
    Frequency.BIWEEKLY: Decimal(26),
    Frequency.TRIWEEKLY: Decimal(52) / Decimal(3),
    Frequency.MONTHLY: Decimal(12),
    Frequency.BIMONTHLY: Decimal(6),
    Frequency.TRIMONTHLY: Decimal(4),
    Frequency.QUARTERLY: Decimal(4),
    Frequency.ANNUALLY: Decimal(1),
}


def as_frequency(frequency: Union[Frequency, str]) -> Frequency:
    """Resolve a cadence label, raising ConfigurationError for unknown ones."""
    if isinstance(frequency, Frequency):
        return frequency
    try:
        return Frequency(str(frequency).strip().lower())
    except ValueError:
        valid = ", ".join(f.value for f in Frequency)
        raise ConfigurationError(
            f"Unknown frequency '{frequency}'. Expected one of: {valid}"
        ) from None


def periods_per_year(frequency: Union[Frequency, str]) -> Decimal:
    return PERIODS_PER_YEAR[as_frequency(frequency)]


def months_to_periods(term_months: Union[int, Decimal], frequency: Union[Frequency, str]) -> Decimal:
    """Express a term given in months in units of the given cadence."""
    return Decimal(term_months) / Decimal(12) * periods_per_year(frequency)


# Calendar step of one period: (days, months)
_PERIOD_STEP: dict[Frequency, tuple[int, int]] = {
    Frequency.DAILY: (1, 0),
    Frequency.WEEKLY: (7, 0),
    Frequency.BIWEEKLY: (14, 0),
    Frequency.TRIWEEKLY: (21, 0),
    Frequency.MONTHLY: (0, 1),
    Frequency.BIMONTHLY: (0, 2),
    Frequency.TRIMONTHLY: (0, 3),
    Frequency.QUARTERLY: (0, 3),
    Frequency.ANNUALLY: (0, 12),
}


def add_months(start: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def advance(start: date, frequency: Union[Frequency, str], count: int) -> date:
    """Date reached after count periods of the given cadence."""
    days, months = _PERIOD_STEP[as_frequency(frequency)]
    if months:
        return add_months(start, months * count)
    return start + timedelta(days=days * count)
