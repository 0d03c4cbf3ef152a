"""
Amortization Solver

Two directions, kept consistent with each other:

- payment -> periods until the balance reaches zero
- periods -> payment that retires the balance in exactly that many periods

Compound loans whose compounding and repayment cadences match use the
closed form. When the cadences differ the balance is simulated period by
period using the effective rate per repayment period, up to a configured
iteration cap. Simple-interest loans reduce principal by
payment - periodic interest each period.
"""

import math
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from finance_engine.config import get_settings
from finance_engine.engine.frequency import advance, as_frequency
from finance_engine.engine.interest import amortized_payment, effective_periodic_rate, periodic_rate
from finance_engine.engine.money import ZERO, decimal_context
from finance_engine.errors import ConfigurationError, PayoffUnreachable
from finance_engine.models.records import Frequency, InterestType
from finance_engine.models.results import PayoffEstimate
from finance_engine.validation.validator import require_non_negative, require_positive


# Remaining balance below this share of the opening balance counts as settled
SETTLE_TOLERANCE = Decimal("1e-12")

# Closed-form period counts this close above a whole number round down to it
PERIOD_TOLERANCE = Decimal("1e-9")


def as_interest_type(interest_type: Union[InterestType, str]) -> InterestType:
    if isinstance(interest_type, InterestType):
        return interest_type
    try:
        return InterestType(str(interest_type).strip().lower())
    except ValueError:
        raise ConfigurationError(
            f"Unknown interest type '{interest_type}'. Expected 'simple' or 'compound'"
        ) from None


def whole_periods(periods: Decimal) -> int:
    """Closed-form period count rounded up to whole repayment periods."""
    with decimal_context():
        return max(0, math.ceil(periods - PERIOD_TOLERANCE))


def _within_cap(
    periods: Decimal,
    balance: Decimal,
    payment: Decimal,
    periodic_interest: Decimal,
    entity: Optional[str],
) -> Decimal:
    """Closed-form counts beyond the simulation cap are unreachable too."""
    if whole_periods(periods) > get_settings().engine.payoff_max_periods:
        raise PayoffUnreachable(
            balance, payment, periodic_interest,
            reason=PayoffUnreachable.ITERATION_CAP, entity=entity,
        )
    return periods


def simulate_payoff_periods(
    balance: Any,
    payment: Any,
    annual_rate: Any,
    interest_freq: Union[Frequency, str],
    payment_freq: Union[Frequency, str],
    max_periods: Optional[int] = None,
    entity: Optional[str] = None,
) -> int:
    """
    Count repayment periods until a compound balance reaches zero.

    Each period the balance grows by the effective per-repayment rate,
    then the payment is subtracted and the balance floored at zero.
    """
    balance = require_non_negative("balance", balance, entity)
    payment = require_non_negative("payment", payment, entity)
    if max_periods is None:
        max_periods = get_settings().engine.payoff_max_periods
    rate = effective_periodic_rate(annual_rate, interest_freq, payment_freq)

    with decimal_context():
        if balance == 0:
            return 0
        opening_interest = balance * rate
        if payment <= opening_interest:
            raise PayoffUnreachable(balance, payment, opening_interest, entity=entity)

        tolerance = balance * SETTLE_TOLERANCE
        remaining = balance
        for period in range(1, max_periods + 1):
            remaining = max(ZERO, remaining * (1 + rate) - payment)
            if remaining <= tolerance:
                return period

    raise PayoffUnreachable(
        balance, payment, opening_interest,
        reason=PayoffUnreachable.ITERATION_CAP, entity=entity,
    )


def calculate_payoff_periods(
    balance: Any,
    payment: Any,
    annual_rate: Any,
    interest_type: Union[InterestType, str] = InterestType.COMPOUND,
    interest_freq: Union[Frequency, str] = Frequency.MONTHLY,
    payment_freq: Union[Frequency, str] = Frequency.MONTHLY,
    entity: Optional[str] = None,
) -> Decimal:
    """
    Number of repayment periods until the balance is paid off.

    The closed form may return a fractional period count; the simulated
    path returns whole periods.

    Raises:
        ValidationError: negative balance, payment or rate
        PayoffUnreachable: the payment never retires the balance
        ConfigurationError: unknown interest type or cadence
    """
    interest_type = as_interest_type(interest_type)
    interest_freq = as_frequency(interest_freq)
    payment_freq = as_frequency(payment_freq)
    balance = require_non_negative("balance", balance, entity)
    payment = require_non_negative("payment", payment, entity)
    require_non_negative("annual_rate", annual_rate, entity)

    if balance == 0:
        return ZERO

    if interest_type == InterestType.SIMPLE:
        charge_rate = periodic_rate(annual_rate, payment_freq)
        with decimal_context():
            charge = balance * charge_rate
            reduction = payment - charge
            if reduction <= 0:
                raise PayoffUnreachable(balance, payment, charge, entity=entity)
            periods = balance / reduction
        return _within_cap(periods, balance, payment, charge, entity)

    if interest_freq != payment_freq:
        return Decimal(simulate_payoff_periods(
            balance, payment, annual_rate, interest_freq, payment_freq, entity=entity
        ))

    rate = periodic_rate(annual_rate, payment_freq)
    with decimal_context():
        if rate == 0:
            if payment == 0:
                raise PayoffUnreachable(balance, payment, ZERO, entity=entity)
            return _within_cap(balance / payment, balance, payment, ZERO, entity)
        interest = balance * rate
        if payment <= interest:
            raise PayoffUnreachable(balance, payment, interest, entity=entity)
        periods = -(1 - interest / payment).ln() / (1 + rate).ln()
    return _within_cap(periods, balance, payment, interest, entity)


def calculate_required_payment(
    balance: Any,
    annual_rate: Any,
    periods: Any,
    interest_type: Union[InterestType, str] = InterestType.COMPOUND,
    interest_freq: Union[Frequency, str] = Frequency.MONTHLY,
    payment_freq: Union[Frequency, str] = Frequency.MONTHLY,
    entity: Optional[str] = None,
) -> Decimal:
    """
    Payment per repayment period that retires the balance in periods.

    Compound loans use the amortized payment formula; simple-interest
    loans pay principal / n plus total interest / n.
    """
    interest_type = as_interest_type(interest_type)
    interest_freq = as_frequency(interest_freq)
    payment_freq = as_frequency(payment_freq)
    balance = require_non_negative("balance", balance, entity)
    n = require_positive("periods", periods, entity)

    if interest_type == InterestType.SIMPLE:
        rate = periodic_rate(annual_rate, payment_freq)
        with decimal_context():
            total_interest = balance * rate * n
            return balance / n + total_interest / n

    return amortized_payment(balance, annual_rate, n, payment_freq, interest_freq)


def describe_payoff(
    balance: Any,
    payment: Any,
    annual_rate: Any,
    interest_type: Union[InterestType, str] = InterestType.COMPOUND,
    interest_freq: Union[Frequency, str] = Frequency.MONTHLY,
    payment_freq: Union[Frequency, str] = Frequency.MONTHLY,
    start_date: Optional[date] = None,
    entity: Optional[str] = None,
) -> PayoffEstimate:
    """Payoff horizon with whole periods and, given a start date, the payoff date."""
    periods = calculate_payoff_periods(
        balance, payment, annual_rate, interest_type, interest_freq, payment_freq, entity
    )
    whole = whole_periods(periods)
    payoff_date = advance(start_date, payment_freq, whole) if start_date else None
    return PayoffEstimate(
        periods=periods,
        whole_periods=whole,
        payment_frequency=as_frequency(payment_freq).value,
        payoff_date=payoff_date,
    )

