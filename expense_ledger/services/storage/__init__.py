"""
Storage Services Package

Provides the abstract remote ledger interface and its implementations:
Google Sheets for real use, in-memory for tests and offline development.
"""

from expense_ledger.services.storage.interface import (
    ConnectionError,
    ExpenseStorageInterface,
    NotFoundError,
    StorageError,
)
from expense_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
)
from expense_ledger.services.storage.memory import InMemoryExpenseStorage

__all__ = [
    # Interfaces
    "ExpenseStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStorage",
    "InMemoryExpenseStorage",
]
