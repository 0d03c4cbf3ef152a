"""
Payment Allocator

Splits payments into principal and interest.

- Simple interest (and non-amortized compound): flat split in the ratio
  principal : total interest of the whole term. The ratio does not change
  over the life of the loan.
- Amortized compound: principal paid is what the tracked balance says has
  been retired; the rest of the payments went to interest.

Both strategies return portions that are non-negative and add up to the
payment exactly; the interest portion is always derived as
payment - principal portion.
"""

from typing import Any, Iterable

from finance_engine.engine.money import ZERO, decimal_context
from finance_engine.models.results import PaymentSplit
from finance_engine.validation.validator import require_non_negative


def split_simple_payment(payment: Any, principal: Any, total_interest: Any) -> PaymentSplit:
    """Proportional split by principal / (principal + total interest)."""
    payment = require_non_negative("payment", payment)
    principal = require_non_negative("principal", principal)
    total_interest = require_non_negative("total_interest", total_interest)

    with decimal_context():
        amount_due = principal + total_interest
        if amount_due == 0:
            principal_portion = payment
        else:
            principal_portion = payment * principal / amount_due
        return PaymentSplit(
            payment=payment,
            principal_portion=principal_portion,
            interest_portion=payment - principal_portion,
        )


def split_simple_payments(
    payments: Iterable[Any], principal: Any, total_interest: Any
) -> list[PaymentSplit]:
    """Split each payment of a sequence with the same flat ratio."""
    return [split_simple_payment(p, principal, total_interest) for p in payments]


def split_amortized_payments(
    total_payments: Any, original_principal: Any, current_balance: Any
) -> PaymentSplit:
    """
    Split the aggregate of payments on an amortized loan.

    Principal paid is original principal - current balance, bounded to
    [0, total payments] so the interest portion cannot go negative.
    """
    total_payments = require_non_negative("total_payments", total_payments)
    original_principal = require_non_negative("original_principal", original_principal)
    current_balance = require_non_negative("current_balance", current_balance)

    with decimal_context():
        retired = max(ZERO, original_principal - current_balance)
        principal_portion = min(retired, total_payments)
        return PaymentSplit(
            payment=total_payments,
            principal_portion=principal_portion,
            interest_portion=total_payments - principal_portion,
        )
