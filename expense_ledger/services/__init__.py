"""Services package."""

from expense_ledger.services.storage import (
    ConnectionError,
    ExpenseStorageInterface,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    InMemoryExpenseStorage,
    NotFoundError,
    StorageError,
)

__all__ = [
    "ConnectionError",
    "ExpenseStorageInterface",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStorage",
    "InMemoryExpenseStorage",
    "NotFoundError",
    "StorageError",
]
