"""Validation package."""

from finance_engine.validation.validator import (
    AllocationRequestValidator,
    require_non_negative,
    require_positive,
    to_decimal,
)

__all__ = [
    "AllocationRequestValidator",
    "require_non_negative",
    "require_positive",
    "to_decimal",
]
