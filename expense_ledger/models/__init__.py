"""
Data Models Package

This package contains all Pydantic models used in Expense Ledger.
All data flowing through the system must conform to these schemas.
"""

from expense_ledger.models.expense import (
    AMOUNT_LIMIT,
    CategoryStat,
    ExpenseDraft,
    ExpensePatch,
    ExpenseRecord,
    Status,
    StatusKind,
    ValidationIssue,
    ValidationResult,
)
from expense_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "AMOUNT_LIMIT",
    "CategoryStat",
    "ExpenseDraft",
    "ExpensePatch",
    "ExpenseRecord",
    "Status",
    "StatusKind",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
