"""
Expense Input Validation

Validation runs before any remote call is made. A failed validation leaves
the ledger untouched and never reaches the remote ledger.

Two severities, as everywhere else in this codebase:
- error: blocks the intent (empty name, empty category, bad or oversized amount)
- warning: logged only (amount above the configured sanity ceiling)

Validation NEVER silently fixes input beyond trimming whitespace.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

from expense_ledger.config import AppSettings, get_settings
from expense_ledger.models.expense import (
    AMOUNT_LIMIT,
    ValidationIssue,
    ValidationResult,
)


MAX_NAME_LENGTH = 200
MAX_CATEGORY_LENGTH = 100
MAX_NOTE_LENGTH = 1000


class ExpenseValidationError(ValueError):
    """User input rejected before any mutation was attempted."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        message = issues[0].message if issues else "Invalid expense"
        super().__init__(message)


def parse_amount(amount_text: str) -> Optional[Decimal]:
    """
    Parse user-typed amount text.

    Returns None for anything that is not a finite number.
    """
    try:
        amount = Decimal((amount_text or "").strip())
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


class ExpenseValidator:
    """Checks add and edit form input before anything is sent remotely."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def validate(
        self,
        name: str,
        category: str,
        amount_text: str,
        note: str = "",
    ) -> ValidationResult:
        """
        Validate one add or edit form.

        Issues come back in form order, so the first error is the one the
        user should fix first.
        """
        issues = []

        if not (name or "").strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Expense name cannot be empty",
                severity="error",
            ))
        elif len(name.strip()) > MAX_NAME_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Expense name cannot be longer than {MAX_NAME_LENGTH} characters",
                severity="error",
            ))

        if not (category or "").strip():
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Select a category",
                severity="error",
            ))
        elif len(category.strip()) > MAX_CATEGORY_LENGTH:
            issues.append(ValidationIssue(
                field="category",
                issue_type="too_long",
                message=f"Category cannot be longer than {MAX_CATEGORY_LENGTH} characters",
                severity="error",
            ))

        amount = parse_amount(amount_text)
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="not_a_number",
                message="Enter a valid amount greater than 0",
                severity="error",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="not_positive",
                message="Enter a valid amount greater than 0",
                severity="error",
            ))
        elif amount >= AMOUNT_LIMIT:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="too_large",
                message="Amount is too large",
                severity="error",
            ))
        elif amount > Decimal(str(self._settings.max_expense_amount)):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
            ))

        if len((note or "").strip()) > MAX_NOTE_LENGTH:
            issues.append(ValidationIssue(
                field="note",
                issue_type="too_long",
                message=f"Note cannot be longer than {MAX_NOTE_LENGTH} characters",
                severity="error",
            ))

        return ValidationResult(issues=issues, amount=amount)

    def require_valid(
        self,
        name: str,
        category: str,
        amount_text: str,
        note: str = "",
    ) -> ValidationResult:
        """Like validate(), but raises ExpenseValidationError on any error."""
        result = self.validate(name, category, amount_text, note)
        if result.has_errors:
            raise ExpenseValidationError(result.errors)
        return result
