"""
Computation Engine Package

Pure, synchronous functions over read-only record snapshots.
"""

from finance_engine.engine.allocation import (
    split_amortized_payments,
    split_simple_payment,
    split_simple_payments,
)
from finance_engine.engine.amortization import (
    calculate_payoff_periods,
    calculate_required_payment,
    describe_payoff,
    simulate_payoff_periods,
)
from finance_engine.engine.budget_allocator import (
    FIFTY_THIRTY_TWENTY,
    build_budget_drafts,
    conflict_categories,
    detect_conflicts,
    find_conflicts,
    plan_allocation,
    reset_allocations,
    set_allocation_percentage,
    summarize_allocations,
    toggle_allocation,
)
from finance_engine.engine.categories import (
    BUILTIN_CATEGORIES,
    CategoryInfo,
    CategoryRegistry,
)
from finance_engine.engine.frequency import periods_per_year
from finance_engine.engine.interest import (
    amortized_payment,
    compound_interest,
    simple_interest,
)
from finance_engine.engine.loan_progress import (
    calculate_loan_progress,
    calculate_total_interest,
    scheduled_payment,
)
from finance_engine.engine.money import quantize_money
from finance_engine.engine.progress import (
    calculate_budget_progress,
    calculate_budget_spent,
    calculate_goal_progress,
)
from finance_engine.engine.summary import (
    calculate_financial_summary,
    spending_by_category,
)

__all__ = [
    # Payment allocation
    "split_amortized_payments",
    "split_simple_payment",
    "split_simple_payments",
    # Amortization
    "calculate_payoff_periods",
    "calculate_required_payment",
    "describe_payoff",
    "simulate_payoff_periods",
    # Budget allocation
    "FIFTY_THIRTY_TWENTY",
    "build_budget_drafts",
    "conflict_categories",
    "detect_conflicts",
    "find_conflicts",
    "plan_allocation",
    "reset_allocations",
    "set_allocation_percentage",
    "summarize_allocations",
    "toggle_allocation",
    # Categories
    "BUILTIN_CATEGORIES",
    "CategoryInfo",
    "CategoryRegistry",
    # Interest
    "amortized_payment",
    "compound_interest",
    "periods_per_year",
    "simple_interest",
    # Progress
    "calculate_budget_progress",
    "calculate_budget_spent",
    "calculate_goal_progress",
    "calculate_loan_progress",
    "calculate_total_interest",
    "scheduled_payment",
    # Summaries
    "calculate_financial_summary",
    "quantize_money",
    "spending_by_category",
]
