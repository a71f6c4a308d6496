"""
In-Memory Storage Implementation

Keeps expenses in per-user dictionaries. Used by the test suite and for
running the session without any Google credentials.

Failures can be injected per operation to exercise error handling:

    storage.fail_next("create", StorageError("quota exceeded"))
"""

import asyncio
from datetime import datetime
from typing import Optional
from uuid import uuid4

from expense_ledger.models.expense import (
    ExpenseDraft,
    ExpensePatch,
    ExpenseRecord,
)
from expense_ledger.services.storage.interface import (
    ExpenseStorageInterface,
    NotFoundError,
    StorageError,
)


OPERATIONS = ("load_period", "create", "update", "delete")


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """Dictionary-backed ledger keyed by user id, then expense id."""

    def __init__(self, latency: float = 0.0):
        self._expenses: dict[str, dict[str, ExpenseRecord]] = {}
        self._failures: dict[str, StorageError] = {}
        self._latency = latency
        self.calls: list[tuple[str, str]] = []

    def fail_next(self, operation: str, error: Optional[StorageError] = None) -> None:
        """Make the next call to `operation` raise `error`."""
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown operation: {operation}")
        self._failures[operation] = error or StorageError(f"{operation} failed")

    def seed(self, user_id: str, records: list[ExpenseRecord]) -> None:
        """Store records directly, keeping their ids."""
        bucket = self._expenses.setdefault(user_id, {})
        for record in records:
            bucket[record.id] = record

    def all_for(self, user_id: str) -> list[ExpenseRecord]:
        return list(self._expenses.get(user_id, {}).values())

    async def _enter(self, operation: str, user_id: str) -> None:
        self.calls.append((operation, user_id))
        if self._latency:
            await asyncio.sleep(self._latency)
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    async def load_period(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
    ) -> list[ExpenseRecord]:
        await self._enter("load_period", user_id)
        records = [
            record
            for record in self._expenses.get(user_id, {}).values()
            if start <= record.occurred_at <= end
        ]
        records.sort(key=lambda r: r.occurred_at, reverse=True)
        return records

    async def create(self, user_id: str, draft: ExpenseDraft) -> str:
        await self._enter("create", user_id)
        expense_id = uuid4().hex
        self._expenses.setdefault(user_id, {})[expense_id] = ExpenseRecord.from_draft(
            expense_id, draft
        )
        return expense_id

    async def update(
        self,
        user_id: str,
        expense_id: str,
        patch: ExpensePatch,
    ) -> bool:
        await self._enter("update", user_id)
        bucket = self._expenses.get(user_id, {})
        if expense_id not in bucket:
            raise NotFoundError(f"Expense not found: {expense_id}")
        bucket[expense_id] = patch.apply_to(bucket[expense_id])
        return True

    async def delete(self, user_id: str, expense_id: str) -> bool:
        await self._enter("delete", user_id)
        return self._expenses.get(user_id, {}).pop(expense_id, None) is not None
