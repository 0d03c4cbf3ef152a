"""
Decimal context and presentation helpers.

All computation runs inside decimal_context(); rounding to minor units
happens only in quantize_money(), at presentation time.
"""

from contextlib import contextmanager
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterator, Optional

from finance_engine.config import get_settings


ZERO = Decimal("0")
HUNDRED = Decimal("100")


@contextmanager
def decimal_context() -> Iterator[None]:
    """Run a block with the configured decimal precision."""
    with localcontext() as ctx:
        ctx.prec = get_settings().engine.decimal_precision
        yield


def quantize_money(value: Decimal, places: Optional[int] = None) -> Decimal:
    """Round to minor units (half up), e.g. Decimal('43478.26')."""
    if places is None:
        places = get_settings().engine.money_places
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def money_str(value: Decimal, places: Optional[int] = None) -> str:
    """Exact decimal string of a rounded amount."""
    return str(quantize_money(value, places))


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole as a percentage; 0 when whole is 0."""
    if whole == 0:
        return ZERO
    return part / whole * HUNDRED


def clamp(value: Decimal, low: Decimal = ZERO, high: Decimal = HUNDRED) -> Decimal:
    return max(low, min(high, value))
