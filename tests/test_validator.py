"""Tests for input validation."""

from datetime import date
from decimal import Decimal

import pytest

from finance_engine.engine.budget_allocator import (
    plan_allocation,
    set_allocation_percentage,
    toggle_allocation,
)
from finance_engine.errors import ValidationError
from finance_engine.models import BudgetPeriod, PeriodWindow
from finance_engine.validation import (
    AllocationRequestValidator,
    require_non_negative,
    require_positive,
    to_decimal,
)


MARCH = PeriodWindow(start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))


class TestNumericCoercion:
    """Tests for to_decimal and the sign checks."""

    @pytest.mark.parametrize("value, expected", [
        (Decimal("1.10"), Decimal("1.10")),
        (5, Decimal("5")),
        ("1500.50", Decimal("1500.50")),
        (" 1,234.5 ", Decimal("1234.5")),
        ("1,000,000", Decimal("1000000")),
    ])
    def test_accepted(self, value, expected):
        """Test exact inputs become Decimals."""
        assert to_decimal("amount", value) == expected

    @pytest.mark.parametrize("value", [None, True, 1.5, "abc", "NaN", "Infinity", [1]])
    def test_rejected(self, value):
        """Test inexact, non-numeric and non-finite inputs."""
        with pytest.raises(ValidationError) as exc_info:
            to_decimal("amount", value)
        assert exc_info.value.field == "amount"

    @pytest.mark.parametrize("value", ["12,00", "1,2,3", "1234,5", ",100", "1,000.5,0"])
    def test_misplaced_commas_are_rejected(self, value):
        """Test commas are never dropped unless they separate thousands."""
        with pytest.raises(ValidationError, match="commas only separate thousands"):
            to_decimal("amount", value)

    def test_is_a_value_error(self):
        """Test callers can catch it as a ValueError."""
        with pytest.raises(ValueError):
            to_decimal("amount", "abc")

    def test_entity_in_message(self):
        """Test the record is named in the message."""
        with pytest.raises(ValidationError, match="^budget 'food': invalid amount"):
            require_non_negative("amount", "-1", entity="budget 'food'")

    def test_non_negative(self):
        """Test zero passes the non-negative check."""
        assert require_non_negative("amount", "0") == 0

    def test_positive(self):
        """Test zero fails the positive check."""
        with pytest.raises(ValidationError, match="greater than zero"):
            require_positive("periods", 0)


class TestAllocationRequestValidator:
    """Tests for validating an allocation request as a whole."""

    def setup_method(self):
        self.validator = AllocationRequestValidator()

    def test_valid_request(self):
        """Test a full plan for a month passes cleanly."""
        plan = plan_allocation(Decimal("10000"), [
            "food", "transportation", "bills", "healthcare", "housing",
            "entertainment", "shopping", "dining", "hobbies", "cosmetics",
            "savings", "investment", "emergency", "debt",
        ])
        result = self.validator.validate(Decimal("10000"), plan, MARCH)
        assert result.is_valid is True
        assert result.issues == []

    def test_zero_income(self):
        """Test zero income is an error."""
        plan = plan_allocation(Decimal("0"), ["food"])
        result = self.validator.validate(Decimal("0"), plan, MARCH)
        assert result.is_valid is False
        assert {i.field for i in result.issues if i.severity == "error"} == {
            "total_income", "allocations",
        }

    def test_empty_selection(self):
        """Test nothing enabled is an error."""
        plan = toggle_allocation(plan_allocation(Decimal("1000"), ["food"]), "food")
        result = self.validator.validate(Decimal("1000"), plan, MARCH)
        assert result.has_errors
        assert result.issues[0].issue_type == "empty_selection"

    def test_under_allocated_is_a_warning(self):
        """Test a partial plan is allowed but flagged."""
        plan = plan_allocation(Decimal("1000"), ["food"])
        result = self.validator.validate(Decimal("1000"), plan, MARCH)
        assert result.is_valid is True
        assert len(result.warnings) == 1
        assert "10" in result.warnings[0]

    def test_over_allocated(self):
        """Test more than 100 % enabled is an error."""
        plan = plan_allocation(Decimal("1000"), ["food", "bills"])
        plan = set_allocation_percentage(plan, "food", "80", Decimal("1000"))
        plan = set_allocation_percentage(plan, "bills", "30", Decimal("1000"))
        result = self.validator.validate(Decimal("1000"), plan, MARCH)
        assert result.error_count == 1
        assert result.issues[0].issue_type == "over_allocated"

    def test_long_window_is_a_warning(self):
        """Test a weekly budget spanning a month is flagged."""
        window = PeriodWindow(
            period=BudgetPeriod.WEEKLY, start_date=date(2024, 3, 1), end_date=date(2024, 3, 31),
        )
        plan = plan_allocation(Decimal("1000"), ["food"])
        result = self.validator.validate(Decimal("1000"), plan, window)
        assert result.is_valid is True
        assert any(i.field == "window" for i in result.issues)
