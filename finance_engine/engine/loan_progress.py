"""
Loan Progress Tracker

Combines the interest model, the payment allocator and the ledger into a
LoanProgress for one loan.
"""

from decimal import Decimal
from typing import Iterable

from finance_engine.engine.allocation import split_amortized_payments, split_simple_payment
from finance_engine.engine.frequency import months_to_periods
from finance_engine.engine.interest import amortized_payment, compound_interest, simple_interest
from finance_engine.engine.money import ZERO, clamp, decimal_context, percent_of
from finance_engine.errors import ValidationError
from finance_engine.models.records import (
    AmortizedCompoundTerms,
    CompoundTerms,
    Loan,
    SimpleInterestTerms,
    Transaction,
    TransactionType,
)
from finance_engine.models.results import LoanProgress


def loan_payments(loan: Loan, transactions: Iterable[Transaction]) -> Decimal:
    """Sum of ledger loan_payment transactions linked to the loan."""
    return sum(
        (t.amount for t in transactions
         if t.type == TransactionType.LOAN_PAYMENT and t.loan_id == loan.id),
        ZERO,
    )


def scheduled_payment(loan: Loan) -> Decimal:
    """Fixed payment per repayment period of an amortized loan."""
    terms = loan.terms
    if not isinstance(terms, AmortizedCompoundTerms):
        raise ValidationError(
            "terms", "only amortized compound loans have a scheduled payment",
            entity=loan.describe(),
        )
    with decimal_context():
        periods = months_to_periods(terms.term_months, terms.repayment_frequency)
        return amortized_payment(
            loan.principal_amount,
            loan.interest_rate,
            periods,
            terms.repayment_frequency,
            terms.interest_period,
        )


def calculate_total_interest(loan: Loan) -> Decimal:
    """
    Interest owed over the full term under the loan's configured terms.

    Raises ValidationError naming the loan when no term is set.
    """
    terms = loan.terms
    if terms.term_months is None:
        raise ValidationError(
            "term_months", "a loan term is required to compute total interest",
            entity=loan.describe(),
        )

    if isinstance(terms, SimpleInterestTerms):
        return simple_interest(loan.principal_amount, loan.interest_rate, terms.term_months)

    if isinstance(terms, CompoundTerms):
        return compound_interest(
            loan.principal_amount, loan.interest_rate, terms.term_months, terms.interest_period
        )

    payment = scheduled_payment(loan)
    with decimal_context():
        periods = months_to_periods(terms.term_months, terms.repayment_frequency)
        return max(ZERO, payment * periods - loan.principal_amount)


def calculate_loan_progress(loan: Loan, transactions: Iterable[Transaction]) -> LoanProgress:
    """
    Repayment progress of a loan from its ledger payments.

    Simple-interest loans also count the manually entered current
    repayment. Amortized loans take principal paid from the tracked
    balance; the other kinds use the flat principal : interest split.
    """
    total_interest = calculate_total_interest(loan)
    ledger_payments = loan_payments(loan, transactions)

    with decimal_context():
        principal = loan.principal_amount
        total_payments = ledger_payments
        if isinstance(loan.terms, SimpleInterestTerms):
            total_payments += loan.terms.current_repayment

        if isinstance(loan.terms, AmortizedCompoundTerms):
            split = split_amortized_payments(total_payments, principal, loan.balance)
        else:
            split = split_simple_payment(total_payments, principal, total_interest)

        amount_due = principal + total_interest
        principal_paid = split.principal_portion
        interest_paid = split.interest_portion

        return LoanProgress(
            loan_id=loan.id,
            principal_amount=principal,
            total_interest=total_interest,
            total_amount_due=amount_due,
            total_payments_made=total_payments,
            principal_paid=principal_paid,
            principal_remaining=max(ZERO, principal - principal_paid),
            interest_paid=interest_paid,
            interest_remaining=max(ZERO, total_interest - interest_paid),
            total_remaining=max(ZERO, amount_due - total_payments),
            principal_progress_pct=clamp(percent_of(principal_paid, principal)),
            interest_progress_pct=clamp(percent_of(interest_paid, total_interest)),
            total_progress_pct=clamp(percent_of(total_payments, amount_due)),
        )
