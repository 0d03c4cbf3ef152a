"""
Interest Model

Simple interest, non-amortized compound interest and the amortized
payment formula. Annual rates are given in percent (12 means 12 % a year).

All arithmetic is Decimal inside decimal_context(); nothing is rounded here.
"""

from decimal import Decimal
from typing import Any, Optional, Union

from finance_engine.engine.frequency import as_frequency, months_to_periods, periods_per_year
from finance_engine.engine.money import HUNDRED, ZERO, decimal_context
from finance_engine.errors import ValidationError
from finance_engine.models.records import Frequency
from finance_engine.validation.validator import require_non_negative, require_positive


def periodic_rate(annual_rate: Any, frequency: Union[Frequency, str]) -> Decimal:
    """Nominal rate per period of the given cadence, as a fraction."""
    rate = require_non_negative("annual_rate", annual_rate)
    with decimal_context():
        return rate / HUNDRED / periods_per_year(frequency)


def effective_periodic_rate(
    annual_rate: Any,
    interest_freq: Union[Frequency, str],
    payment_freq: Union[Frequency, str],
) -> Decimal:
    """
    Interest accrued over one repayment period, as a fraction.

    When compounding and repayment cadences match this is the nominal
    periodic rate. Otherwise the compounding rate is applied for the number
    of compounding periods that fit in one repayment period:
    (1 + i_c) ** (m_c / m_p) - 1.
    """
    interest_freq = as_frequency(interest_freq)
    payment_freq = as_frequency(payment_freq)
    if interest_freq == payment_freq:
        return periodic_rate(annual_rate, payment_freq)

    compounding_rate = periodic_rate(annual_rate, interest_freq)
    with decimal_context():
        if compounding_rate == 0:
            return ZERO
        exponent = periods_per_year(interest_freq) / periods_per_year(payment_freq)
        return (1 + compounding_rate) ** exponent - 1


def simple_interest(principal: Any, annual_rate: Any, term_months: Optional[Any]) -> Decimal:
    """
    Total simple interest: principal x rate x years.

    A term is required; without one total interest is undefined.
    """
    principal = require_non_negative("principal", principal)
    rate = require_non_negative("annual_rate", annual_rate)
    if term_months is None:
        raise ValidationError(
            "term_months", "a loan term is required to compute simple interest"
        )
    months = require_non_negative("term_months", term_months)
    with decimal_context():
        return principal * rate / HUNDRED * months / Decimal(12)


def compound_amount(
    principal: Any,
    annual_rate: Any,
    term_months: Optional[Any],
    compounding: Union[Frequency, str] = Frequency.MONTHLY,
) -> Decimal:
    """Principal grown at compound interest over the term: P (1 + r/m) ** periods."""
    principal = require_non_negative("principal", principal)
    if term_months is None:
        raise ValidationError(
            "term_months", "a loan term is required to compute compound interest"
        )
    months = require_non_negative("term_months", term_months)
    rate = periodic_rate(annual_rate, compounding)
    with decimal_context():
        periods = months_to_periods(months, compounding)
        return principal * (1 + rate) ** periods


def compound_interest(
    principal: Any,
    annual_rate: Any,
    term_months: Optional[Any],
    compounding: Union[Frequency, str] = Frequency.MONTHLY,
) -> Decimal:
    """Total interest of a non-amortized compound loan."""
    principal = require_non_negative("principal", principal)
    amount = compound_amount(principal, annual_rate, term_months, compounding)
    with decimal_context():
        return amount - principal


def amortized_payment(
    principal: Any,
    annual_rate: Any,
    periods: Any,
    payment_freq: Union[Frequency, str] = Frequency.MONTHLY,
    interest_freq: Optional[Union[Frequency, str]] = None,
) -> Decimal:
    """
    Fixed payment that retires principal over the given number of
    repayment periods: P i (1+i)^n / ((1+i)^n - 1).

    i is the effective rate per repayment period. A zero rate degenerates
    to P / n.
    """
    principal = require_non_negative("principal", principal)
    n = require_positive("periods", periods)
    i = effective_periodic_rate(annual_rate, interest_freq or payment_freq, payment_freq)
    with decimal_context():
        if i == 0:
            return principal / n
        growth = (1 + i) ** n
        return principal * i * growth / (growth - 1)


def amortized_interest(
    principal: Any,
    annual_rate: Any,
    term_months: Any,
    payment_freq: Union[Frequency, str] = Frequency.MONTHLY,
    interest_freq: Optional[Union[Frequency, str]] = None,
) -> Decimal:
    """Total interest paid over an amortization schedule."""
    principal = require_non_negative("principal", principal)
    months = require_positive("term_months", term_months)
    with decimal_context():
        n = months_to_periods(months, payment_freq)
        payment = amortized_payment(principal, annual_rate, n, payment_freq, interest_freq)
        return payment * n - principal
