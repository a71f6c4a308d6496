"""
Abstract Storage Interface

The remote ledger is defined here as an abstract interface. This lets us:
1. Swap the Google Sheets backend for any other document store
2. Use in-memory storage for testing
3. Keep session logic decoupled from storage implementation

Every call is keyed by the signed-in user's id. Records of one user are
never visible through another user's id.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from expense_ledger.models.expense import (
    ExpenseDraft,
    ExpensePatch,
    ExpenseRecord,
)


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for the remote expense ledger.

    Any storage implementation (Google Sheets, a document database, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def load_period(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
    ) -> list[ExpenseRecord]:
        """
        Load a user's expenses with start <= occurred_at <= end.

        Args:
            user_id: Owner of the expenses
            start: Inclusive lower bound
            end: Inclusive upper bound

        Returns:
            Matching expenses, newest first

        Raises:
            StorageError: If the load fails
        """
        pass

    @abstractmethod
    async def create(self, user_id: str, draft: ExpenseDraft) -> str:
        """
        Persist a new expense.

        Args:
            user_id: Owner of the expense
            draft: The validated expense without an id

        Returns:
            The id assigned to the new expense

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update(
        self,
        user_id: str,
        expense_id: str,
        patch: ExpensePatch,
    ) -> bool:
        """
        Apply an edit to an existing expense.

        Only name, category, amount and note can change.

        Returns:
            True if updated successfully

        Raises:
            StorageError: If update fails
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str, expense_id: str) -> bool:
        """
        Delete an expense by id.

        Returns:
            True if a row was deleted, False if nothing matched

        Raises:
            StorageError: If delete fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
