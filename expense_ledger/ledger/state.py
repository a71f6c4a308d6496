"""
Ledger State

The in-memory list of expenses for the month currently in view. One
instance belongs to one session; nothing else mutates it.

Callers validate before mutating. This class only keeps the list sorted
and scoped to its period; it never re-checks amounts or names.
"""

from collections.abc import Iterable
from typing import Optional

from expense_ledger.ledger.periods import Period
from expense_ledger.models.expense import ExpensePatch, ExpenseRecord


def _newest_first(records: Iterable[ExpenseRecord]) -> list[ExpenseRecord]:
    # occurred_at descending, id ascending among equal timestamps
    ordered = sorted(records, key=lambda r: r.id)
    ordered.sort(key=lambda r: r.occurred_at, reverse=True)
    return ordered


class LedgerState:
    """Expenses for one loaded period, newest first."""

    def __init__(self, period: Optional[Period] = None):
        self._period = period
        self._records: list[ExpenseRecord] = []

    @property
    def period(self) -> Optional[Period]:
        return self._period

    @property
    def records(self) -> tuple[ExpenseRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def find(self, expense_id: str) -> Optional[ExpenseRecord]:
        for record in self._records:
            if record.id == expense_id:
                return record
        return None

    def load(
        self,
        records: Iterable[ExpenseRecord],
        period: Optional[Period] = None,
    ) -> None:
        """Replace the whole set, optionally moving to a new period."""
        if period is not None:
            self._period = period
        self._records = _newest_first(records)

    def insert_local(self, record: ExpenseRecord) -> bool:
        """
        Add a freshly created record if it belongs to the loaded period.

        Returns True when the record became visible. A record dated outside
        the period is still saved remotely; it shows up once its month is
        loaded.
        """
        if self._period is None or not self._period.contains(record.occurred_at):
            return False
        self._records = _newest_first([*self._records, record])
        return True

    def update_local(self, expense_id: str, patch: ExpensePatch) -> bool:
        """Apply an edit in place. Returns False (no-op) if the id is unknown."""
        for index, record in enumerate(self._records):
            if record.id == expense_id:
                self._records[index] = patch.apply_to(record)
                return True
        return False

    def delete_local(self, expense_id: str) -> bool:
        """Remove a record. Returns False (no-op) if the id is unknown."""
        remaining = [r for r in self._records if r.id != expense_id]
        removed = len(remaining) != len(self._records)
        self._records = remaining
        return removed

    def clear(self) -> None:
        self._records = []
        self._period = None
