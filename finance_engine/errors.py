"""Exceptions raised by the computation engine."""

from decimal import Decimal
from typing import Any, Optional


class EngineError(Exception):
    """Base exception for the computation engine."""
    pass


class ValidationError(EngineError, ValueError):
    """
    An input value cannot enter a computation.

    Always names the offending field, and the record it belongs to when
    there is one.
    """

    def __init__(
        self,
        field: str,
        message: str,
        value: Any = None,
        entity: Optional[str] = None,
    ):
        self.field = field
        self.detail = message
        self.value = value
        self.entity = entity
        prefix = f"{entity}: " if entity else ""
        super().__init__(f"{prefix}invalid {field}: {message}")


class PayoffUnreachable(EngineError):
    """
    The payment never retires the balance.

    reason is "payment_not_above_interest" when the payment does not
    exceed the periodic interest charge, or "iteration_cap" when the
    simulation hit its period limit.
    """

    PAYMENT_NOT_ABOVE_INTEREST = "payment_not_above_interest"
    ITERATION_CAP = "iteration_cap"

    def __init__(
        self,
        balance: Decimal,
        payment: Decimal,
        periodic_interest: Decimal,
        reason: str = PAYMENT_NOT_ABOVE_INTEREST,
        entity: Optional[str] = None,
    ):
        self.balance = balance
        self.payment = payment
        self.periodic_interest = periodic_interest
        self.reason = reason
        self.entity = entity
        prefix = f"{entity}: " if entity else ""
        if reason == self.ITERATION_CAP:
            detail = (
                f"payment {payment} does not retire balance {balance} "
                f"within the simulation limit"
            )
        else:
            detail = (
                f"payment {payment} does not exceed the periodic interest "
                f"charge {periodic_interest} on balance {balance}"
            )
        super().__init__(f"{prefix}payoff not reachable: {detail}")


class ConfigurationError(EngineError):
    """A caller passed a value outside a closed set (a bug, not user data)."""
    pass
