"""
Data Models Package

This package contains all Pydantic models used by the Finance Engine.
Records come in from storage, results go out to callers.
"""

from finance_engine.models.records import (
    AmortizedCompoundTerms,
    Budget,
    BudgetDraft,
    BudgetPeriod,
    CompoundTerms,
    Frequency,
    InterestType,
    Loan,
    LoanTerms,
    Money,
    Rate,
    SavingsGoal,
    SimpleInterestTerms,
    Transaction,
    TransactionType,
    normalize_category,
)
from finance_engine.models.results import (
    AllocationRule,
    AllocationSummary,
    BudgetAllocation,
    BudgetConflict,
    BudgetProgress,
    BudgetStatus,
    CategorySpending,
    FinancialSummary,
    GoalProgress,
    LoanProgress,
    PaymentSplit,
    PayoffEstimate,
    PeriodWindow,
    RuleBucket,
    ValidationIssue,
    ValidationResult,
)
from finance_engine.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "AmortizedCompoundTerms",
    "Budget",
    "BudgetDraft",
    "BudgetPeriod",
    "CompoundTerms",
    "Frequency",
    "InterestType",
    "Loan",
    "LoanTerms",
    "Money",
    "Rate",
    "SavingsGoal",
    "SimpleInterestTerms",
    "Transaction",
    "TransactionType",
    "normalize_category",
    # Result models
    "AllocationRule",
    "AllocationSummary",
    "BudgetAllocation",
    "BudgetConflict",
    "BudgetProgress",
    "BudgetStatus",
    "CategorySpending",
    "FinancialSummary",
    "GoalProgress",
    "LoanProgress",
    "PaymentSplit",
    "PayoffEstimate",
    "PeriodWindow",
    "RuleBucket",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
