"""
Goal and budget progress.

Pure aggregation over the ledger. Stored "spent" or "current amount"
fields are never trusted; every number is recomputed from transactions.
"""

from decimal import Decimal
from typing import Iterable, Optional

from finance_engine.config import get_settings
from finance_engine.engine.money import ZERO, decimal_context, percent_of
from finance_engine.models.records import Budget, SavingsGoal, Transaction, TransactionType
from finance_engine.models.results import BudgetProgress, BudgetStatus, GoalProgress


def goal_transaction_total(goal: SavingsGoal, transactions: Iterable[Transaction]) -> Decimal:
    """Linked deposits minus linked withdrawals."""
    total = ZERO
    for t in transactions:
        if t.savings_goal_id != goal.id:
            continue
        if t.type == TransactionType.SAVINGS_DEPOSIT:
            total += t.amount
        elif t.type == TransactionType.SAVINGS_WITHDRAWAL:
            total -= t.amount
    return total


def calculate_goal_progress(goal: SavingsGoal, transactions: Iterable[Transaction]) -> GoalProgress:
    """
    Current savings of a goal.

    total = starting savings + deposits - withdrawals. The percentage is
    0 for a zero target and never negative, but can exceed 100.
    """
    with decimal_context():
        transaction_amount = goal_transaction_total(goal, transactions)
        total = goal.starting_savings + transaction_amount
        return GoalProgress(
            goal_id=goal.id,
            total=total,
            starting_amount=goal.starting_savings,
            transaction_amount=transaction_amount,
            target_amount=goal.target_amount,
            percent_complete=max(ZERO, percent_of(total, goal.target_amount)),
        )


def is_budget_expense(budget: Budget, transaction: Transaction) -> bool:
    return (
        transaction.type == TransactionType.EXPENSE
        and transaction.category == budget.category
        and budget.start_date <= transaction.date <= budget.end_date
    )


def calculate_budget_spent(budget: Budget, transactions: Iterable[Transaction]) -> Decimal:
    """Expenses of the budget's category dated inside [start_date, end_date]."""
    return sum((t.amount for t in transactions if is_budget_expense(budget, t)), ZERO)


def calculate_budget_progress(
    budget: Budget,
    transactions: Iterable[Transaction],
    warning_percent: Optional[int] = None,
) -> BudgetProgress:
    """Spent, remaining and status of a budget."""
    if warning_percent is None:
        warning_percent = get_settings().engine.budget_warning_percent

    with decimal_context():
        spent = calculate_budget_spent(budget, transactions)
        percent_used = percent_of(spent, budget.amount)
        over_budget = spent > budget.amount
        if over_budget:
            status = BudgetStatus.OVER_BUDGET
        elif percent_used > warning_percent:
            status = BudgetStatus.WARNING
        else:
            status = BudgetStatus.ON_TRACK

        return BudgetProgress(
            budget_id=budget.id,
            category=budget.category,
            amount=budget.amount,
            spent=spent,
            remaining=budget.amount - spent,
            over_budget=over_budget,
            percent_used=percent_used,
            status=status,
        )
