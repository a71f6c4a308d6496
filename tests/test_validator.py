"""
Tests for expense input validation.
"""

import pytest
from decimal import Decimal

from expense_ledger.config import AppSettings
from expense_ledger.validation import (
    ExpenseValidationError,
    ExpenseValidator,
    parse_amount,
)


@pytest.fixture
def validator():
    return ExpenseValidator(AppSettings(max_expense_amount=1000))


class TestParseAmount:
    """Tests for amount text parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("12.50", Decimal("12.50")),
        (" 7 ", Decimal("7")),
        ("-3", Decimal("-3")),
        ("0", Decimal("0")),
    ])
    def test_numbers(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "abc", "1,5", "NaN", "inf", "12.5.1"])
    def test_not_a_number(self, text):
        assert parse_amount(text) is None

    def test_none_text(self):
        assert parse_amount(None) is None


class TestExpenseValidator:
    """Tests for ExpenseValidator."""

    def test_valid_input(self, validator):
        result = validator.validate("Lunch", "Food", "12.50")
        assert result.is_valid
        assert result.issues == []
        assert result.amount == Decimal("12.50")

    def test_empty_name(self, validator):
        result = validator.validate("   ", "Food", "10")
        assert result.has_errors
        assert result.errors[0].field == "name"
        assert result.errors[0].message == "Expense name cannot be empty"

    def test_empty_category(self, validator):
        result = validator.validate("Lunch", "", "10")
        assert result.errors[0].message == "Select a category"

    @pytest.mark.parametrize("amount_text,issue_type", [
        ("abc", "not_a_number"),
        ("", "not_a_number"),
        ("0", "not_positive"),
        ("-4.20", "not_positive"),
    ])
    def test_bad_amounts(self, validator, amount_text, issue_type):
        result = validator.validate("Lunch", "Food", amount_text)
        assert [i.issue_type for i in result.errors] == [issue_type]
        assert result.errors[0].message == "Enter a valid amount greater than 0"

    def test_too_long_name(self, validator):
        result = validator.validate("x" * 201, "Food", "1")
        assert result.errors[0].issue_type == "too_long"

    def test_too_long_note(self, validator):
        result = validator.validate("Lunch", "Food", "1", note="n" * 1001)
        assert result.errors[0].field == "note"

    def test_errors_in_form_order(self, validator):
        result = validator.validate("", "", "abc")
        assert [i.field for i in result.errors] == ["name", "category", "amount"]

    def test_large_amount_is_only_a_warning(self, validator):
        result = validator.validate("Laptop", "Technology", "2500")
        assert result.is_valid
        assert len(result.warnings) == 1
        assert "unusually high" in result.warnings[0]

    @pytest.mark.parametrize("amount_text", ["1E+1000000", "1e12", "1000000000000"])
    def test_oversized_amount_rejected(self, validator, amount_text):
        """Huge amounts are errors, not warnings, and are never formatted."""
        result = validator.validate("Lunch", "Food", amount_text)
        assert [i.issue_type for i in result.errors] == ["too_large"]
        assert result.errors[0].message == "Amount is too large"
        assert result.warnings == []

    def test_amount_just_below_limit_is_a_warning(self, validator):
        result = validator.validate("House", "Home", "999999999999.99")
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_require_valid_raises_first_error(self, validator):
        with pytest.raises(ExpenseValidationError) as exc_info:
            validator.require_valid("", "", "abc")
        assert str(exc_info.value) == "Expense name cannot be empty"
        assert len(exc_info.value.issues) == 3

    def test_require_valid_returns_result(self, validator):
        result = validator.require_valid("Bus", "Transport", "2.40")
        assert result.amount == Decimal("2.40")

    def test_validation_error_is_value_error(self, validator):
        with pytest.raises(ValueError):
            validator.require_valid("Bus", "Transport", "-1")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
