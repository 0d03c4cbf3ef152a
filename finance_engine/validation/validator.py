"""
Input Validation

DESIGN DECISION: Validation happens before any number enters a solver.

STAGE 1 - NUMERIC COERCION:
- Every raw input is turned into a Decimal or rejected
- Binary floats, booleans, NaN and infinities are rejected
- Negative values are rejected where the field cannot be negative

STAGE 2 - REQUEST VALIDATION:
- An allocation request is checked as a whole (income, selection,
  percentages, period window) and every problem is reported

IMPORTANT: Validation NEVER silently fixes issues. Nothing is coerced
to zero; the caller is told which field is wrong.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from finance_engine.errors import ValidationError
from finance_engine.models.results import (
    BudgetAllocation,
    PeriodWindow,
    ValidationIssue,
    ValidationResult,
)
from finance_engine.models.records import BudgetPeriod


# Commas are accepted only as thousands separators: "1,234.50"
THOUSANDS_PATTERN = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$")


# Longest sensible window per period type, in days
MAX_WINDOW_DAYS = {
    BudgetPeriod.WEEKLY: 7,
    BudgetPeriod.MONTHLY: 31,
    BudgetPeriod.YEARLY: 366,
}


def to_decimal(field: str, value: Any, entity: Optional[str] = None) -> Decimal:
    """
    Coerce a raw numeric input to Decimal.

    Accepts Decimal, int and decimal strings such as "1500.50" or
    "1,500.50". A comma anywhere but between thousands groups is rejected.
    """
    if value is None:
        raise ValidationError(field, "a value is required", value, entity)
    if isinstance(value, bool):
        raise ValidationError(field, "booleans are not numbers", value, entity)
    if isinstance(value, float):
        raise ValidationError(
            field, "pass an exact decimal string instead of a binary float", value, entity
        )
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        text = value.strip()
        if "," in text:
            if not THOUSANDS_PATTERN.match(text):
                raise ValidationError(
                    field, f"'{value}' is not a number (commas only separate thousands)",
                    value, entity,
                )
            text = text.replace(",", "")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValidationError(field, f"'{value}' is not a number", value, entity) from None
    else:
        raise ValidationError(field, f"unsupported type {type(value).__name__}", value, entity)

    if not result.is_finite():
        raise ValidationError(field, "must be a finite number", value, entity)
    return result


def require_non_negative(field: str, value: Any, entity: Optional[str] = None) -> Decimal:
    result = to_decimal(field, value, entity)
    if result < 0:
        raise ValidationError(field, "cannot be negative", value, entity)
    return result


def require_positive(field: str, value: Any, entity: Optional[str] = None) -> Decimal:
    result = to_decimal(field, value, entity)
    if result <= 0:
        raise ValidationError(field, "must be greater than zero", value, entity)
    return result


class AllocationRequestValidator:
    """
    Validates an allocation request before budgets are drafted.

    Errors block drafting; warnings are shown but do not block.
    """

    def validate(
        self,
        total_income: Any,
        allocations: Sequence[BudgetAllocation],
        window: PeriodWindow,
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []

        try:
            require_positive("total_income", total_income)
        except ValidationError as e:
            issues.append(ValidationIssue(
                field="total_income",
                issue_type="invalid_value",
                message=e.detail,
                severity="error",
                suggested_fix="Enter a total income greater than zero",
            ))

        enabled = [a for a in allocations if a.enabled]
        if not any(a.amount > 0 for a in enabled):
            issues.append(ValidationIssue(
                field="allocations",
                issue_type="empty_selection",
                message="No enabled category has an amount greater than zero",
                severity="error",
                suggested_fix="Enable at least one budget category",
            ))

        total_percentage = sum((a.percentage for a in enabled), Decimal("0"))
        if total_percentage > 100:
            issues.append(ValidationIssue(
                field="allocations",
                issue_type="over_allocated",
                message=f"Enabled categories add up to {total_percentage}% of income",
                severity="error",
                suggested_fix="Lower some category percentages",
            ))
        elif total_percentage < 100 and enabled:
            issues.append(ValidationIssue(
                field="allocations",
                issue_type="under_allocated",
                message=f"Only {total_percentage}% of income is allocated",
                severity="warning",
            ))

        window_days = (window.end_date - window.start_date).days + 1
        if window_days > MAX_WINDOW_DAYS[window.period]:
            issues.append(ValidationIssue(
                field="window",
                issue_type="suspicious_value",
                message=(
                    f"A {window.period.value} budget spanning {window_days} days "
                    f"({window.start_date.isoformat()} to {window.end_date.isoformat()})"
                ),
                severity="warning",
                suggested_fix="Check the period type and the end date",
            ))

        has_errors = any(issue.severity == "error" for issue in issues)
        return ValidationResult(
            is_valid=not has_errors,
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
        )
