"""
Budget Allocator

Plans a split of income across budget categories from a rule such as
50/30/20 (needs / wants / savings), and checks the plan against existing
budgets before anything is created.

DESIGN DECISION: Each bucket's percentage is divided evenly over the
bucket's category list. Disabling a category drops its share without
redistributing it, so the enabled total can be below 100 %. That gap is
reported by summarize_allocations(), never corrected.

Categories outside every bucket are planned at 0 %.

Conflicts (same category, same period type, overlapping dates) are
returned as data. Callers must not create budgets while any exist.
"""

from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence, Union

from finance_engine.engine.categories import CategoryInfo, CategoryRegistry
from finance_engine.engine.money import HUNDRED, ZERO, decimal_context, quantize_money
from finance_engine.errors import ValidationError
from finance_engine.models.records import Budget, BudgetDraft, normalize_category
from finance_engine.models.results import (
    AllocationRule,
    AllocationSummary,
    BudgetAllocation,
    BudgetConflict,
    PeriodWindow,
    RuleBucket,
)
from finance_engine.validation.validator import require_non_negative, to_decimal


FIFTY_THIRTY_TWENTY = AllocationRule(
    name="50/30/20",
    buckets=(
        RuleBucket(
            name="needs",
            percentage=Decimal("50"),
            categories=("food", "transportation", "bills", "healthcare", "housing"),
        ),
        RuleBucket(
            name="wants",
            percentage=Decimal("30"),
            categories=("entertainment", "shopping", "dining", "hobbies", "cosmetics"),
        ),
        RuleBucket(
            name="savings",
            percentage=Decimal("20"),
            categories=("savings", "investment", "emergency", "debt"),
        ),
    ),
)

ALLOCATOR_DESCRIPTION = "Budget allocated via Budget Allocator - {percentage}% of income"


def format_percentage(value: Decimal) -> str:
    """10.00 -> '10', 33.3333 -> '33.33'"""
    text = f"{value.quantize(Decimal('0.01')):f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def _category_value(category: Union[str, CategoryInfo]) -> str:
    if isinstance(category, CategoryInfo):
        return category.value
    return normalize_category(category)


def _with_amount(allocation: BudgetAllocation, income: Decimal) -> BudgetAllocation:
    with decimal_context():
        amount = allocation.percentage / HUNDRED * income
    return allocation.model_copy(update={"amount": amount})


def rule_percentage(rule: AllocationRule, category: str) -> tuple[Optional[str], Decimal]:
    """Bucket name and per-category percentage the rule gives a category."""
    bucket = rule.bucket_for(category)
    if bucket is None:
        return None, ZERO
    with decimal_context():
        return bucket.name, bucket.percentage / len(bucket.categories)


def plan_allocation(
    total_income: Any,
    categories: Iterable[Union[str, CategoryInfo]],
    rule: AllocationRule = FIFTY_THIRTY_TWENTY,
    registry: Optional[CategoryRegistry] = None,
) -> list[BudgetAllocation]:
    """
    Allocate income over categories according to the rule.

    Every category starts enabled; duplicates are dropped, order is kept.
    """
    income = require_non_negative("total_income", total_income)
    registry = registry or CategoryRegistry()

    allocations: list[BudgetAllocation] = []
    seen: set[str] = set()
    for category in categories:
        value = _category_value(category)
        if not value or value in seen:
            continue
        seen.add(value)
        bucket, percentage = rule_percentage(rule, value)
        icon = category.icon if isinstance(category, CategoryInfo) else registry.icon_for(value)
        allocations.append(_with_amount(
            BudgetAllocation(
                category=value,
                icon=icon,
                bucket=bucket,
                percentage=percentage,
                amount=ZERO,
            ),
            income,
        ))
    return allocations


def _find(allocations: Sequence[BudgetAllocation], category: str) -> int:
    value = normalize_category(category)
    for index, allocation in enumerate(allocations):
        if allocation.category == value:
            return index
    raise ValidationError("category", f"'{category}' is not part of this allocation", category)


def set_allocation_percentage(
    allocations: Sequence[BudgetAllocation],
    category: str,
    percentage: Any,
    total_income: Any,
) -> list[BudgetAllocation]:
    """Return a new plan with one category's percentage changed."""
    value = to_decimal("percentage", percentage)
    if value < 0 or value > 100:
        raise ValidationError("percentage", "must be between 0 and 100", percentage)
    income = require_non_negative("total_income", total_income)
    index = _find(allocations, category)

    updated = list(allocations)
    updated[index] = _with_amount(
        allocations[index].model_copy(update={"percentage": value}), income
    )
    return updated


def toggle_allocation(
    allocations: Sequence[BudgetAllocation], category: str
) -> list[BudgetAllocation]:
    """Return a new plan with one category enabled or disabled."""
    index = _find(allocations, category)
    updated = list(allocations)
    current = allocations[index]
    updated[index] = current.model_copy(update={"enabled": not current.enabled})
    return updated


def reset_allocations(
    allocations: Sequence[BudgetAllocation],
    total_income: Any,
    rule: AllocationRule = FIFTY_THIRTY_TWENTY,
) -> list[BudgetAllocation]:
    """Back to the rule's percentages, every category enabled."""
    income = require_non_negative("total_income", total_income)
    reset = []
    for allocation in allocations:
        bucket, percentage = rule_percentage(rule, allocation.category)
        reset.append(_with_amount(
            allocation.model_copy(
                update={"bucket": bucket, "percentage": percentage, "enabled": True}
            ),
            income,
        ))
    return reset


def summarize_allocations(allocations: Iterable[BudgetAllocation]) -> AllocationSummary:
    """Totals of the enabled allocations and the share left unallocated."""
    enabled = [a for a in allocations if a.enabled]
    with decimal_context():
        total_percentage = sum((a.percentage for a in enabled), ZERO)
        total_amount = sum((a.amount for a in enabled), ZERO)
        return AllocationSummary(
            total_percentage=total_percentage,
            total_amount=total_amount,
            unallocated_percentage=HUNDRED - total_percentage,
            enabled_count=len(enabled),
        )


def find_conflicts(
    allocations: Iterable[BudgetAllocation],
    existing_budgets: Iterable[Budget],
    window: PeriodWindow,
) -> list[BudgetConflict]:
    """
    Existing budgets that block the enabled allocations.

    A budget conflicts when it has the same category and period type and
    its [start_date, end_date] overlaps the proposed window (inclusive).
    """
    budgets = list(existing_budgets)
    conflicts: list[BudgetConflict] = []
    for allocation in allocations:
        if not allocation.enabled:
            continue
        for budget in budgets:
            if (
                budget.category == allocation.category
                and budget.period == window.period
                and window.overlaps(budget.start_date, budget.end_date)
            ):
                conflicts.append(BudgetConflict(
                    category=allocation.category,
                    budget_id=budget.id,
                    period=budget.period,
                    existing_start=budget.start_date,
                    existing_end=budget.end_date,
                    proposed_start=window.start_date,
                    proposed_end=window.end_date,
                ))
    return conflicts


def conflict_categories(conflicts: Iterable[BudgetConflict]) -> list[str]:
    """Categories in conflict, in plan order, each listed once."""
    categories: list[str] = []
    for conflict in conflicts:
        if conflict.category not in categories:
            categories.append(conflict.category)
    return categories


def detect_conflicts(
    allocations: Iterable[BudgetAllocation],
    existing_budgets: Iterable[Budget],
    window: PeriodWindow,
) -> list[str]:
    """Names of the enabled categories that clash with an existing budget."""
    return conflict_categories(find_conflicts(allocations, existing_budgets, window))


def build_budget_drafts(
    allocations: Iterable[BudgetAllocation],
    window: PeriodWindow,
) -> list[BudgetDraft]:
    """
    Create payloads for every enabled allocation with a positive amount.

    Amounts are rounded to minor units here, since drafts leave the engine.
    """
    drafts = [
        BudgetDraft(
            category=allocation.category,
            amount=quantize_money(allocation.amount),
            period=window.period,
            start_date=window.start_date,
            end_date=window.end_date,
            icon=allocation.icon,
            description=ALLOCATOR_DESCRIPTION.format(
                percentage=format_percentage(allocation.percentage)
            ),
        )
        for allocation in allocations
        if allocation.enabled and allocation.amount > 0
    ]
    if not drafts:
        raise ValidationError(
            "allocations", "enable at least one budget category with an amount above zero"
        )
    return drafts
