"""
Record Models for Finance Engine

These are the records the storage collaborator hands to the engine.
They are designed to:
1. Enforce type safety at runtime
2. Make invalid field combinations unrepresentable
3. Keep money exact (Decimal, never binary float)
4. Be read-only snapshots (frozen) once loaded

DESIGN DECISION: Loan terms are a discriminated union. A simple-interest
loan cannot carry a compounding cadence, and only amortized compound
loans carry a repayment schedule with a required term.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def _reject_binary_float(value: Any) -> Any:
    """Money must arrive as Decimal, int or a decimal string."""
    if isinstance(value, bool):
        raise ValueError("booleans are not monetary values")
    if isinstance(value, float):
        raise ValueError(
            "monetary values must be given as decimal strings, not binary floats"
        )
    return value


Money = Annotated[Decimal, BeforeValidator(_reject_binary_float), Field(ge=0)]

# Annual interest rate in percent (12 means 12 % per year)
Rate = Annotated[Decimal, BeforeValidator(_reject_binary_float), Field(ge=0)]


def normalize_category(value: str) -> str:
    """Category identifiers are lower-case with underscores."""
    return "_".join(value.strip().lower().split())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a transaction.

    Amounts are always non-negative; the type carries the sign.
    """
    INCOME = "income"
    EXPENSE = "expense"
    SAVINGS_DEPOSIT = "savings_deposit"
    SAVINGS_WITHDRAWAL = "savings_withdrawal"
    LOAN_PAYMENT = "loan_payment"
    LOAN_RECEIVED = "loan_received"


class Frequency(str, Enum):
    """Payment or compounding cadence."""
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    TRIWEEKLY = "triweekly"
    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    TRIMONTHLY = "trimonthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"


class BudgetPeriod(str, Enum):
    """Budget period type."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class InterestType(str, Enum):
    """How interest accrues on a loan."""
    SIMPLE = "simple"
    COMPOUND = "compound"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger entry.

    Linked to a savings goal through savings_goal_id and to a loan
    through loan_id.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: int
    owner_id: str = Field(..., min_length=1)
    amount: Money
    category: str = Field(..., min_length=1, max_length=50)
    type: TransactionType
    date: dt.date
    time: Optional[dt.time] = None
    description: Optional[str] = Field(default=None, max_length=500)
    savings_goal_id: Optional[int] = None
    loan_id: Optional[int] = None

    @field_validator('category')
    @classmethod
    def clean_category(cls, v: str) -> str:
        return normalize_category(v)


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetDraft(BaseModel):
    """
    A budget that has not been stored yet.

    This is the create payload the allocator hands to storage.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    category: str = Field(..., min_length=1, max_length=50)
    amount: Money
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: dt.date
    end_date: dt.date
    icon: str = Field(default="📝", max_length=16)
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator('category')
    @classmethod
    def clean_category(cls, v: str) -> str:
        return normalize_category(v)

    @model_validator(mode='after')
    def validate_dates(self) -> 'BudgetDraft':
        if self.end_date < self.start_date:
            raise ValueError("Budget end date cannot be before start date")
        return self


class Budget(BudgetDraft):
    """A stored budget."""

    id: int
    owner_id: Optional[str] = None


# =============================================================================
# SAVINGS GOALS
# =============================================================================

class SavingsGoal(BaseModel):
    """A savings target fed by linked deposits and withdrawals."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: int
    owner_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: Money
    starting_savings: Money = Decimal("0")
    start_date: dt.date
    deadline: Optional[dt.date] = None
    icon: str = Field(default="🎯", max_length=16)
    color: str = Field(default="blue", max_length=32)

    @model_validator(mode='after')
    def validate_dates(self) -> 'SavingsGoal':
        if self.deadline and self.deadline < self.start_date:
            raise ValueError("Goal deadline cannot be before start date")
        return self


# =============================================================================
# LOANS
# =============================================================================

class SimpleInterestTerms(BaseModel):
    """
    Simple interest on the original principal.

    current_repayment is an amount repaid outside the ledger, entered by
    hand before any loan_payment transactions existed.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["simple"] = "simple"
    term_months: Optional[int] = Field(default=None, ge=0)
    repayment_frequency: Frequency = Frequency.MONTHLY
    current_repayment: Money = Decimal("0")


class AmortizedCompoundTerms(BaseModel):
    """Compound interest repaid on a fixed amortization schedule."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["amortized_compound"] = "amortized_compound"
    interest_period: Frequency = Frequency.MONTHLY
    repayment_frequency: Frequency = Frequency.MONTHLY
    term_months: int = Field(..., gt=0)
    calculated_payment: Optional[Money] = None


class CompoundTerms(BaseModel):
    """Compound interest without an amortization schedule."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["compound"] = "compound"
    interest_period: Frequency = Frequency.MONTHLY
    repayment_frequency: Frequency = Frequency.MONTHLY
    term_months: Optional[int] = Field(default=None, ge=0)


LoanTerms = Annotated[
    Union[SimpleInterestTerms, AmortizedCompoundTerms, CompoundTerms],
    Field(discriminator="kind"),
]


class Loan(BaseModel):
    """
    A loan and its repayment terms.

    balance is tracked by storage independently of the ledger; it may
    exceed principal_amount when extra charges were added.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: int
    owner_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    principal_amount: Money
    balance: Money
    interest_rate: Rate = Field(..., description="Annual rate in percent")
    terms: LoanTerms
    start_date: dt.date
    next_payment_date: Optional[dt.date] = None
    icon: str = Field(default="🏛️", max_length=16)
    color: str = Field(default="red", max_length=32)

    @property
    def interest_type(self) -> InterestType:
        if isinstance(self.terms, SimpleInterestTerms):
            return InterestType.SIMPLE
        return InterestType.COMPOUND

    @property
    def is_amortized(self) -> bool:
        return isinstance(self.terms, AmortizedCompoundTerms)

    @property
    def interest_period(self) -> Frequency:
        """Compounding cadence; simple loans accrue per repayment period."""
        if isinstance(self.terms, SimpleInterestTerms):
            return self.terms.repayment_frequency
        return self.terms.interest_period

    @property
    def repayment_frequency(self) -> Frequency:
        return self.terms.repayment_frequency

    @property
    def term_months(self) -> Optional[int]:
        return self.terms.term_months

    def describe(self) -> str:
        """Identify the loan in user-facing messages."""
        return f"loan '{self.name}' (id={self.id})"

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> 'Loan':
        """
        Build a Loan from the flat row shape storage keeps.

        Flat keys: interest_type, is_amortized, interest_period,
        repayment_frequency, loan_term_months, calculated_payment,
        current_repayment. Combinations that have no meaning are rejected.
        """
        data = dict(record)
        interest_type = InterestType(data.pop("interest_type", InterestType.SIMPLE))
        is_amortized = bool(data.pop("is_amortized", False))
        interest_period = data.pop("interest_period", None) or Frequency.MONTHLY
        repayment_frequency = data.pop("repayment_frequency", None) or Frequency.MONTHLY
        term_months = data.pop("loan_term_months", None)
        calculated_payment = data.pop("calculated_payment", None)
        current_repayment = data.pop("current_repayment", None)

        if interest_type == InterestType.SIMPLE:
            if is_amortized:
                raise ValueError("Amortization is only supported for compound-interest loans")
            terms: dict[str, Any] = {
                "kind": "simple",
                "term_months": term_months,
                "repayment_frequency": repayment_frequency,
            }
            if current_repayment is not None:
                terms["current_repayment"] = current_repayment
        else:
            if current_repayment:
                raise ValueError("A manual current repayment only applies to simple-interest loans")
            terms = {
                "kind": "amortized_compound" if is_amortized else "compound",
                "interest_period": interest_period,
                "repayment_frequency": repayment_frequency,
                "term_months": term_months,
            }
            if is_amortized and calculated_payment is not None:
                terms["calculated_payment"] = calculated_payment

        data["terms"] = terms
        return cls.model_validate(data)
