"""
Dashboard summaries: monthly cash flow, savings, debt and spending by
category.
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from finance_engine.engine.loan_progress import calculate_loan_progress
from finance_engine.engine.money import ZERO, decimal_context, percent_of
from finance_engine.engine.progress import calculate_goal_progress
from finance_engine.errors import ValidationError
from finance_engine.models.records import Loan, SavingsGoal, Transaction, TransactionType
from finance_engine.models.results import CategorySpending, FinancialSummary


def month_bounds(as_of: date) -> tuple[date, date]:
    """First and last day of the month containing as_of."""
    last_day = calendar.monthrange(as_of.year, as_of.month)[1]
    return as_of.replace(day=1), as_of.replace(day=last_day)


def _in_window(t: Transaction, start: Optional[date], end: Optional[date]) -> bool:
    if start and t.date < start:
        return False
    if end and t.date > end:
        return False
    return True


def total_by_type(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Decimal:
    return sum(
        (t.amount for t in transactions
         if t.type == transaction_type and _in_window(t, start, end)),
        ZERO,
    )


def loan_debt(loan: Loan, transactions: Iterable[Transaction]) -> Decimal:
    """
    Outstanding amount of a loan.

    Uses the remaining amount due when the loan has a term, otherwise the
    balance tracked by storage.
    """
    try:
        return calculate_loan_progress(loan, transactions).total_remaining
    except ValidationError:
        return loan.balance


def spending_by_category(
    transactions: Iterable[Transaction],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[CategorySpending]:
    """Expense totals per category, largest first."""
    totals: dict[str, Decimal] = {}
    for t in transactions:
        if t.type == TransactionType.EXPENSE and _in_window(t, start, end):
            totals[t.category] = totals.get(t.category, ZERO) + t.amount

    with decimal_context():
        grand_total = sum(totals.values(), ZERO)
        rows = [
            CategorySpending(
                category=category,
                amount=amount,
                share_pct=percent_of(amount, grand_total),
            )
            for category, amount in totals.items()
        ]
    return sorted(rows, key=lambda row: (-row.amount, row.category))


def calculate_financial_summary(
    transactions: Iterable[Transaction],
    goals: Iterable[SavingsGoal],
    loans: Iterable[Loan],
    as_of: date,
) -> FinancialSummary:
    """
    Headline numbers for the month containing as_of.

    Net worth is total savings across goals minus total debt across loans;
    income and expenses do not enter it.
    """
    ledger = list(transactions)
    month_start, month_end = month_bounds(as_of)

    with decimal_context():
        total_savings = sum(
            (calculate_goal_progress(goal, ledger).total for goal in goals), ZERO
        )
        total_debt = sum((loan_debt(loan, ledger) for loan in loans), ZERO)
        return FinancialSummary(
            month_start=month_start,
            month_end=month_end,
            monthly_income=total_by_type(ledger, TransactionType.INCOME, month_start, month_end),
            monthly_expenses=total_by_type(ledger, TransactionType.EXPENSE, month_start, month_end),
            total_savings=total_savings,
            total_debt=total_debt,
            net_worth=total_savings - total_debt,
        )
