"""Shared record builders for the finance engine tests."""

from datetime import date
from decimal import Decimal
from itertools import count

import pytest

from finance_engine.config import get_settings
from finance_engine.models import (
    AmortizedCompoundTerms,
    Budget,
    BudgetPeriod,
    CompoundTerms,
    Loan,
    SavingsGoal,
    SimpleInterestTerms,
    Transaction,
    TransactionType,
)


OWNER = "user-1"


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; every test starts from the environment it sets."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_transaction():
    ids = count(1)

    def build(amount, kind=TransactionType.EXPENSE, category="food",
              on=date(2024, 3, 10), **fields):
        return Transaction(
            id=next(ids),
            owner_id=fields.pop("owner_id", OWNER),
            amount=Decimal(amount),
            category=category,
            type=kind,
            date=on,
            **fields,
        )

    return build


@pytest.fixture
def make_budget():
    ids = count(1)

    def build(category="food", amount="1000", start=date(2024, 3, 1),
              end=date(2024, 3, 31), period=BudgetPeriod.MONTHLY, **fields):
        return Budget(
            id=fields.pop("id", next(ids)),
            owner_id=fields.pop("owner_id", OWNER),
            category=category,
            amount=Decimal(amount),
            period=period,
            start_date=start,
            end_date=end,
            **fields,
        )

    return build


@pytest.fixture
def make_goal():
    def build(target="500000", starting="0", goal_id=1, **fields):
        return SavingsGoal(
            id=goal_id,
            owner_id=fields.pop("owner_id", OWNER),
            name=fields.pop("name", "Emergency fund"),
            target_amount=Decimal(target),
            starting_savings=Decimal(starting),
            start_date=fields.pop("start_date", date(2024, 1, 1)),
            **fields,
        )

    return build


@pytest.fixture
def make_loan():
    def build(terms, principal="500000", balance=None, rate="15", loan_id=1, **fields):
        return Loan(
            id=loan_id,
            owner_id=fields.pop("owner_id", OWNER),
            name=fields.pop("name", "Car loan"),
            principal_amount=Decimal(principal),
            balance=Decimal(balance if balance is not None else principal),
            interest_rate=Decimal(rate),
            terms=terms,
            start_date=fields.pop("start_date", date(2024, 1, 1)),
            **fields,
        )

    return build


@pytest.fixture
def simple_terms():
    def build(term_months=12, current_repayment="0", **fields):
        return SimpleInterestTerms(
            term_months=term_months,
            current_repayment=Decimal(current_repayment),
            **fields,
        )

    return build


@pytest.fixture
def amortized_terms():
    def build(term_months=12, **fields):
        return AmortizedCompoundTerms(term_months=term_months, **fields)

    return build


@pytest.fixture
def compound_terms():
    def build(term_months=12, **fields):
        return CompoundTerms(term_months=term_months, **fields)

    return build
