"""
Core Data Models for Expense Ledger

These models define the schemas for every expense flowing through the system:
what the user typed (after validation), what the remote ledger stores, and
what the aggregator derives for display.

Records are frozen. Local mutations produce new instances via model_copy,
so a published snapshot can never change underneath a subscriber.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# Exclusive upper bound for one amount; sums stay inside the default Decimal context
AMOUNT_LIMIT = Decimal("1E+12")


# =============================================================================
# EXPENSES
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    An expense that passed validation but has no id yet.

    This is what gets sent to the remote ledger's create call.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display label"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category label (free text, usually a suggested one)"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        lt=AMOUNT_LIMIT,
        description="Amount spent, always positive"
    )
    occurred_at: datetime = Field(
        default_factory=datetime.now,
        description="When the expense happened (local time)"
    )
    note: str = Field(
        default="",
        max_length=1000,
        description="Optional free text"
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the expense was first persisted"
    )


class ExpenseRecord(ExpenseDraft):
    """
    A persisted expense.

    `occurred_at` and `created_at` are fixed once the record exists;
    edits only ever touch name, category, amount and note.
    """

    id: str = Field(
        default="",
        description="Identifier assigned by the remote ledger (empty if unsaved)"
    )

    @classmethod
    def from_draft(cls, expense_id: str, draft: ExpenseDraft) -> "ExpenseRecord":
        return cls(id=expense_id, **draft.model_dump())

    @property
    def is_persisted(self) -> bool:
        return bool(self.id)


class ExpensePatch(BaseModel):
    """Fields an edit may change. Unset (None) fields are left alone."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(default=None, gt=0, lt=AMOUNT_LIMIT)
    note: Optional[str] = Field(default=None, max_length=1000)

    def changes(self) -> dict[str, Any]:
        """Only the fields that were actually provided."""
        return self.model_dump(exclude_none=True)

    def apply_to(self, record: ExpenseRecord) -> ExpenseRecord:
        return record.model_copy(update=self.changes())


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class CategoryStat(BaseModel):
    """Per-category totals for the loaded period. Never persisted."""
    model_config = ConfigDict(frozen=True)

    category: str
    total: Decimal
    count: int = Field(ge=0)
    percentage: float = Field(
        ...,
        description="Share of the period's grand total, 0-100"
    )


# =============================================================================
# STATUS SIGNAL
# =============================================================================

class StatusKind(str, Enum):
    """What the UI should show besides the data itself."""
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    INFO = "info"


class Status(BaseModel):
    """Status signal published alongside every snapshot."""
    model_config = ConfigDict(frozen=True)

    kind: StatusKind = StatusKind.IDLE
    message: Optional[str] = None

    @classmethod
    def idle(cls) -> "Status":
        return cls(kind=StatusKind.IDLE)

    @classmethod
    def loading(cls) -> "Status":
        return cls(kind=StatusKind.LOADING)

    @classmethod
    def error(cls, message: str) -> "Status":
        return cls(kind=StatusKind.ERROR, message=message)

    @classmethod
    def info(cls, message: str) -> "Status":
        return cls(kind=StatusKind.INFO, message=message)

    @property
    def is_error(self) -> bool:
        return self.kind == StatusKind.ERROR


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g. 'missing', 'not_a_number', 'not_positive')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Errors block the intent, warnings are only logged"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one add or edit intent."""

    issues: list[ValidationIssue] = Field(default_factory=list)
    amount: Optional[Decimal] = Field(
        default=None,
        description="Parsed amount when the amount text was a number"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
