"""
Result Models for Finance Engine

Everything the engine computes is returned as one of these frozen models.
Decimal fields serialize to exact strings in JSON mode, so money never
crosses the boundary as a binary float.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from finance_engine.models.records import BudgetPeriod, Money, normalize_category


# =============================================================================
# LOANS
# =============================================================================

class PaymentSplit(BaseModel):
    """A payment (or an aggregate of payments) split into its components."""
    model_config = ConfigDict(frozen=True)

    payment: Decimal
    principal_portion: Decimal = Field(ge=0)
    interest_portion: Decimal = Field(ge=0)


class LoanProgress(BaseModel):
    """
    Repayment progress of one loan.

    Percentages are clamped to [0, 100] even when the loan is overpaid.
    """
    model_config = ConfigDict(frozen=True)

    loan_id: int
    principal_amount: Decimal
    total_interest: Decimal
    total_amount_due: Decimal
    total_payments_made: Decimal
    principal_paid: Decimal
    principal_remaining: Decimal
    interest_paid: Decimal
    interest_remaining: Decimal
    total_remaining: Decimal
    principal_progress_pct: Decimal = Field(ge=0, le=100)
    interest_progress_pct: Decimal = Field(ge=0, le=100)
    total_progress_pct: Decimal = Field(ge=0, le=100)


class PayoffEstimate(BaseModel):
    """Payoff horizon of a loan under a given payment."""
    model_config = ConfigDict(frozen=True)

    periods: Decimal = Field(ge=0)
    whole_periods: int = Field(ge=0)
    payment_frequency: str
    payoff_date: Optional[dt.date] = None


# =============================================================================
# GOALS AND BUDGETS
# =============================================================================

class GoalProgress(BaseModel):
    """
    Current savings of one goal.

    percent_complete may exceed 100 (goal overshot) but never drops
    below 0.
    """
    model_config = ConfigDict(frozen=True)

    goal_id: int
    total: Decimal
    starting_amount: Decimal
    transaction_amount: Decimal
    target_amount: Decimal
    percent_complete: Decimal = Field(ge=0)

    @property
    def is_complete(self) -> bool:
        return self.target_amount > 0 and self.total >= self.target_amount


class BudgetStatus(str, Enum):
    """How close a budget is to its limit."""
    ON_TRACK = "on_track"
    WARNING = "warning"
    OVER_BUDGET = "over_budget"


class BudgetProgress(BaseModel):
    """Spending against one budget inside its date window."""
    model_config = ConfigDict(frozen=True)

    budget_id: int
    category: str
    amount: Decimal
    spent: Decimal
    remaining: Decimal
    over_budget: bool
    percent_used: Decimal = Field(ge=0)
    status: BudgetStatus


# =============================================================================
# BUDGET ALLOCATION
# =============================================================================

class RuleBucket(BaseModel):
    """One bucket of an allocation rule, e.g. needs at 50 %."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    percentage: Decimal = Field(ge=0, le=100)
    categories: tuple[str, ...] = Field(..., min_length=1)

    @field_validator('categories')
    @classmethod
    def clean_categories(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(normalize_category(c) for c in v)


class AllocationRule(BaseModel):
    """A set of buckets whose percentages add up to at most 100."""
    model_config = ConfigDict(frozen=True)

    name: str
    buckets: tuple[RuleBucket, ...]

    @model_validator(mode='after')
    def validate_buckets(self) -> 'AllocationRule':
        if sum((b.percentage for b in self.buckets), Decimal("0")) > 100:
            raise ValueError("Rule bucket percentages cannot exceed 100")
        seen: set[str] = set()
        for bucket in self.buckets:
            for category in bucket.categories:
                if category in seen:
                    raise ValueError(f"Category '{category}' appears in more than one bucket")
                seen.add(category)
        return self

    def bucket_for(self, category: str) -> Optional[RuleBucket]:
        category = normalize_category(category)
        for bucket in self.buckets:
            if category in bucket.categories:
                return bucket
        return None


class BudgetAllocation(BaseModel):
    """Planned share of income for one category."""
    model_config = ConfigDict(frozen=True)

    category: str
    icon: str = "📝"
    bucket: Optional[str] = None
    percentage: Decimal = Field(ge=0, le=100)
    amount: Decimal = Field(ge=0)
    enabled: bool = True


class AllocationSummary(BaseModel):
    """Totals over the enabled allocations."""
    model_config = ConfigDict(frozen=True)

    total_percentage: Decimal
    total_amount: Decimal
    unallocated_percentage: Decimal
    enabled_count: int


class PeriodWindow(BaseModel):
    """Period type and inclusive date range proposed for new budgets."""
    model_config = ConfigDict(frozen=True)

    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: dt.date
    end_date: dt.date

    @model_validator(mode='after')
    def validate_dates(self) -> 'PeriodWindow':
        if self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self

    def overlaps(self, start_date: dt.date, end_date: dt.date) -> bool:
        """Inclusive interval overlap."""
        return self.start_date <= end_date and start_date <= self.end_date


class BudgetConflict(BaseModel):
    """An existing budget that blocks a proposed allocation."""
    model_config = ConfigDict(frozen=True)

    category: str
    budget_id: int
    period: BudgetPeriod
    existing_start: dt.date
    existing_end: dt.date
    proposed_start: dt.date
    proposed_end: dt.date

    @property
    def message(self) -> str:
        return (
            f"Category '{self.category}' already has a {self.period.value} budget "
            f"(id={self.budget_id}) from {self.existing_start.isoformat()} to "
            f"{self.existing_end.isoformat()}, overlapping the proposed "
            f"{self.proposed_start.isoformat()} to {self.proposed_end.isoformat()}"
        )


# =============================================================================
# SUMMARIES
# =============================================================================

class CategorySpending(BaseModel):
    """Expense total of one category and its share of all spending."""
    model_config = ConfigDict(frozen=True)

    category: str
    amount: Money
    share_pct: Decimal = Field(ge=0, le=100)


class FinancialSummary(BaseModel):
    """Headline numbers of the dashboard."""
    model_config = ConfigDict(frozen=True)

    month_start: dt.date
    month_end: dt.date
    monthly_income: Decimal
    monthly_expenses: Decimal
    total_savings: Decimal
    total_debt: Decimal
    net_worth: Decimal


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'invalid_value', 'empty_selection')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Outcome of validating a request as a whole."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
