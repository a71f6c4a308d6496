"""Input validation package."""

from expense_ledger.validation.validator import (
    ExpenseValidationError,
    ExpenseValidator,
    parse_amount,
)

__all__ = ["ExpenseValidationError", "ExpenseValidator", "parse_amount"]
