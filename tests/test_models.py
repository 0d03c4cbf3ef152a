"""
Tests for Finance Engine models

Test strategy:
1. Unit tests for record, result and audit models
2. Engine and flow behaviour is covered in the other test modules
3. No external services in tests (in-memory storage only)
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError as ModelValidationError

from finance_engine.models import (
    AmortizedCompoundTerms,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Budget,
    BudgetConflict,
    BudgetPeriod,
    CompoundTerms,
    Frequency,
    InterestType,
    Loan,
    PeriodWindow,
    SavingsGoal,
    SimpleInterestTerms,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)


class TestTransaction:
    """Tests for the Transaction model."""

    def test_creation(self):
        """Test Transaction model creation."""
        t = Transaction(
            id=1, owner_id="u", amount="12.50", category="Food",
            type=TransactionType.EXPENSE, date=date(2024, 3, 1),
        )
        assert t.amount == Decimal("12.50")
        assert t.category == "food"
        assert t.time is None

    def test_category_is_normalised(self):
        """Test free text categories become identifiers."""
        t = Transaction(
            id=1, owner_id="u", amount="1", category="  Car   Repairs ",
            type="expense", date=date(2024, 3, 1),
        )
        assert t.category == "car_repairs"

    def test_rejects_binary_float(self):
        """Test money cannot be a float."""
        with pytest.raises(ModelValidationError, match="decimal strings"):
            Transaction(
                id=1, owner_id="u", amount=12.5, category="food",
                type=TransactionType.EXPENSE, date=date(2024, 3, 1),
            )

    def test_rejects_negative_amount(self):
        """Test the sign is carried by the type, never the amount."""
        with pytest.raises(ModelValidationError):
            Transaction(
                id=1, owner_id="u", amount="-5", category="food",
                type=TransactionType.EXPENSE, date=date(2024, 3, 1),
            )

    def test_rejects_unknown_type(self):
        """Test transaction types are a closed set."""
        with pytest.raises(ModelValidationError):
            Transaction(
                id=1, owner_id="u", amount="5", category="food",
                type="refund", date=date(2024, 3, 1),
            )

    def test_is_frozen(self):
        """Test records cannot be changed after loading."""
        t = Transaction(
            id=1, owner_id="u", amount="5", category="food",
            type=TransactionType.EXPENSE, date=date(2024, 3, 1),
        )
        with pytest.raises(ModelValidationError):
            t.amount = Decimal("6")


class TestBudgetAndGoal:
    """Tests for budget and goal models."""

    def test_budget_date_validation(self):
        """Test end date cannot be before start date."""
        with pytest.raises(ValueError, match="Budget end date cannot be before start date"):
            Budget(
                id=1, category="food", amount="100",
                start_date=date(2024, 3, 31), end_date=date(2024, 3, 1),
            )

    def test_budget_defaults(self):
        """Test a budget is monthly unless told otherwise."""
        budget = Budget(
            id=1, category="food", amount="100",
            start_date=date(2024, 3, 1), end_date=date(2024, 3, 31),
        )
        assert budget.period == BudgetPeriod.MONTHLY
        assert budget.icon == "📝"

    def test_goal_deadline_validation(self):
        """Test a deadline cannot precede the start."""
        with pytest.raises(ValueError, match="Goal deadline cannot be before start date"):
            SavingsGoal(
                id=1, name="Trip", target_amount="1000",
                start_date=date(2024, 3, 1), deadline=date(2024, 1, 1),
            )

    def test_period_window_validation(self):
        """Test a proposed window must run forwards."""
        with pytest.raises(ValueError):
            PeriodWindow(start_date=date(2024, 3, 2), end_date=date(2024, 3, 1))


class TestLoan:
    """Tests for the Loan model and its terms."""

    def loan_record(self, **fields):
        record = {
            "id": 1,
            "name": "Car loan",
            "principal_amount": "10000",
            "balance": "8000",
            "interest_rate": "12",
            "start_date": date(2024, 1, 1),
        }
        record.update(fields)
        return record

    def test_terms_from_discriminator(self):
        """Test terms are parsed by kind."""
        loan = Loan.model_validate(self.loan_record(
            terms={"kind": "amortized_compound", "term_months": 24},
        ))
        assert isinstance(loan.terms, AmortizedCompoundTerms)
        assert loan.is_amortized is True
        assert loan.interest_type == InterestType.COMPOUND

    def test_amortized_terms_need_a_term(self):
        """Test an amortization schedule cannot be open-ended."""
        with pytest.raises(ModelValidationError):
            Loan.model_validate(self.loan_record(terms={"kind": "amortized_compound"}))

    def test_simple_terms_cannot_compound(self):
        """Test a simple loan has no compounding cadence."""
        loan = Loan.model_validate(self.loan_record(
            terms={"kind": "simple", "repayment_frequency": "weekly"},
        ))
        assert loan.interest_period == Frequency.WEEKLY
        assert loan.term_months is None

    def test_from_simple_record(self):
        """Test the flat storage shape of a simple loan."""
        loan = Loan.from_record(self.loan_record(
            interest_type="simple", loan_term_months=12, current_repayment="500",
        ))
        assert isinstance(loan.terms, SimpleInterestTerms)
        assert loan.terms.current_repayment == Decimal("500")

    def test_from_compound_record(self):
        """Test the flat storage shape of compound loans."""
        amortized = Loan.from_record(self.loan_record(
            interest_type="compound", is_amortized=True, loan_term_months=24,
            interest_period="quarterly", repayment_frequency="monthly",
        ))
        plain = Loan.from_record(self.loan_record(interest_type="compound"))

        assert isinstance(amortized.terms, AmortizedCompoundTerms)
        assert amortized.interest_period == Frequency.QUARTERLY
        assert isinstance(plain.terms, CompoundTerms)

    def test_amortized_simple_record_is_rejected(self):
        """Test amortization only applies to compound interest."""
        with pytest.raises(ValueError, match="only supported for compound"):
            Loan.from_record(self.loan_record(interest_type="simple", is_amortized=True))

    def test_compound_repayment_record_is_rejected(self):
        """Test a manual repayment only applies to simple interest."""
        with pytest.raises(ValueError, match="simple-interest"):
            Loan.from_record(self.loan_record(
                interest_type="compound", current_repayment="100",
            ))

    def test_describe(self):
        """Test the loan is named in user-facing messages."""
        loan = Loan.from_record(self.loan_record(interest_type="simple"))
        assert loan.describe() == "loan 'Car loan' (id=1)"


class TestBudgetConflict:
    """Tests for the conflict message."""

    def test_message_names_budget_and_dates(self):
        """Test the conflict says which budget and which dates."""
        conflict = BudgetConflict(
            category="food", budget_id=4, period=BudgetPeriod.MONTHLY,
            existing_start=date(2024, 3, 1), existing_end=date(2024, 3, 31),
            proposed_start=date(2024, 3, 15), proposed_end=date(2024, 4, 14),
        )
        assert conflict.message == (
            "Category 'food' already has a monthly budget (id=4) from 2024-03-01 "
            "to 2024-03-31, overlapping the proposed 2024-03-15 to 2024-04-14"
        )


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            description="Snapshot loaded",
        )
        assert event.event_type == AuditEventType.SNAPSHOT_LOADED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_CREATED,
            description="Budget created",
            details={"category": "food", "amount": "1000.00"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "budget_created"
        assert log_dict["details"]["category"] == "food"

    def test_builder_storage_error(self):
        """Test a failed storage call names the operation."""
        correlation_id = uuid4()
        event = AuditEventBuilder.storage_error(
            operation="list_budgets", error_message="timeout",
            owner_id="u", correlation_id=correlation_id,
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "storage_error"
        assert log_dict["severity"] == "error"
        assert log_dict["details"] == {"operation": "list_budgets"}
        assert log_dict["correlation_id"] == str(correlation_id)

    def test_builder_budget_created(self):
        """Test AuditEventBuilder.budget_created."""
        correlation_id = uuid4()
        event = AuditEventBuilder.budget_created(
            owner_id="u", budget_id=9, category="food", amount="1000.00",
            correlation_id=correlation_id,
        )
        assert event.entity_type == "budget"
        assert event.entity_id == "9"
        assert event.correlation_id == correlation_id

    def test_builder_batch_completed_with_failures(self):
        """Test partial failures raise the severity."""
        event = AuditEventBuilder.batch_completed(
            owner_id="u", created=2, failed=1, correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.details == {"created": 2, "failed": 1}

    def test_builder_payoff_unreachable(self):
        """Test the reason is kept as the error code."""
        event = AuditEventBuilder.payoff_unreachable(
            owner_id="u", loan_id=3, reason="iteration_cap", error_message="boom",
        )
        assert event.error_code == "iteration_cap"
        assert event.entity_id == "3"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="total_income",
                    issue_type="invalid_value",
                    message="Total income required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="allocations",
                    issue_type="under_allocated",
                    message="Only 90% allocated",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_severity_is_a_closed_set(self):
        """Test unknown severities are rejected."""
        with pytest.raises(ModelValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
