"""
Tests for the storage backends.

The Google Sheets backend is tested against a mocked worksheet; no
network calls are made.
"""

import asyncio
import time

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock, call

from expense_ledger.models.expense import ExpenseDraft, ExpensePatch, ExpenseRecord
from expense_ledger.services.storage import (
    GoogleSheetsExpenseStorage,
    InMemoryExpenseStorage,
    NotFoundError,
    StorageError,
)
from expense_ledger.services.storage import google_sheets
from expense_ledger.services.storage.google_sheets import EXPENSE_COLUMNS


MARCH_START = datetime(2024, 3, 1)
MARCH_END = datetime(2024, 3, 31, 23, 59, 59, 999000)


def make_expense(expense_id: str, occurred_at: datetime, amount: str = "10") -> ExpenseRecord:
    return ExpenseRecord(
        id=expense_id,
        name=f"Expense {expense_id}",
        category="Food",
        amount=Decimal(amount),
        occurred_at=occurred_at,
        created_at=occurred_at,
    )


def sheet_row(expense_id, user_id, occurred_at, amount="10.00", name="Lunch"):
    return [
        expense_id,
        user_id,
        name,
        "Food",
        amount,
        occurred_at,
        "",
        occurred_at,
        occurred_at,
    ]


class TestInMemoryStorage:
    """Tests for InMemoryExpenseStorage."""

    @pytest.mark.asyncio
    async def test_load_period_is_inclusive_and_scoped(self):
        storage = InMemoryExpenseStorage()
        storage.seed("u1", [
            make_expense("first", MARCH_START),
            make_expense("last", MARCH_END),
            make_expense("april", datetime(2024, 4, 1)),
        ])
        storage.seed("u2", [make_expense("other", datetime(2024, 3, 10))])

        records = await storage.load_period("u1", MARCH_START, MARCH_END)
        assert [r.id for r in records] == ["last", "first"]

    @pytest.mark.asyncio
    async def test_create_assigns_id(self):
        storage = InMemoryExpenseStorage()
        draft = ExpenseDraft(name="Bus", category="Transport", amount=Decimal("2"))
        expense_id = await storage.create("u1", draft)
        assert expense_id
        assert storage.all_for("u1")[0].id == expense_id
        assert storage.all_for("u2") == []

    @pytest.mark.asyncio
    async def test_update_unknown_raises(self):
        storage = InMemoryExpenseStorage()
        with pytest.raises(NotFoundError):
            await storage.update("u1", "missing", ExpensePatch(name="X"))

    @pytest.mark.asyncio
    async def test_update_is_scoped_to_user(self):
        storage = InMemoryExpenseStorage()
        storage.seed("u1", [make_expense("e1", MARCH_START)])
        with pytest.raises(NotFoundError):
            await storage.update("u2", "e1", ExpensePatch(name="X"))

    @pytest.mark.asyncio
    async def test_delete_reports_existence(self):
        storage = InMemoryExpenseStorage()
        storage.seed("u1", [make_expense("e1", MARCH_START)])
        assert await storage.delete("u1", "e1") is True
        assert await storage.delete("u1", "e1") is False

    @pytest.mark.asyncio
    async def test_injected_failure_fires_once(self):
        storage = InMemoryExpenseStorage()
        storage.fail_next("load_period", StorageError("offline"))
        with pytest.raises(StorageError, match="offline"):
            await storage.load_period("u1", MARCH_START, MARCH_END)
        assert await storage.load_period("u1", MARCH_START, MARCH_END) == []
        assert storage.calls == [("load_period", "u1"), ("load_period", "u1")]

    def test_unknown_operation_rejected(self):
        with pytest.raises(ValueError):
            InMemoryExpenseStorage().fail_next("truncate")


class TestGoogleSheetsStorage:
    """Tests for GoogleSheetsExpenseStorage with a mocked worksheet."""

    @pytest.fixture
    def sheet(self):
        return MagicMock()

    @pytest.fixture
    def storage(self, sheet):
        client = MagicMock()
        client.get_expenses_sheet.return_value = sheet
        return GoogleSheetsExpenseStorage(client=client)

    @pytest.mark.asyncio
    async def test_load_filters_user_and_range(self, storage, sheet):
        sheet.get_all_values.return_value = [
            EXPENSE_COLUMNS,
            sheet_row("a", "u1", "2024-03-02T08:00:00", "30"),
            sheet_row("b", "u1", "2024-03-15T13:00:00", "20.50"),
            sheet_row("c", "u2", "2024-03-09T18:30:00"),
            sheet_row("d", "u1", "2024-04-01T00:00:00"),
            sheet_row("e", "u1", "not a date"),
            ["", "u1"],
        ]

        records = await storage.load_period("u1", MARCH_START, MARCH_END)

        assert [r.id for r in records] == ["b", "a"]
        assert records[0].amount == Decimal("20.50")
        assert records[0].occurred_at == datetime(2024, 3, 15, 13, 0)

    @pytest.mark.asyncio
    async def test_malformed_rows_are_logged(self, storage, sheet, monkeypatch):
        """Rows that can't be parsed are skipped with a warning, not silently."""
        fake_logger = MagicMock()
        monkeypatch.setattr(google_sheets, "logger", fake_logger)
        sheet.get_all_values.return_value = [
            EXPENSE_COLUMNS,
            sheet_row("ok", "u1", "2024-03-02T08:00:00"),
            sheet_row("bad-date", "u1", "yesterday"),
            sheet_row("huge", "u1", "2024-03-03T08:00:00", "1E+1000000"),
        ]

        records = await storage.load_period("u1", MARCH_START, MARCH_END)

        assert [r.id for r in records] == ["ok"]
        logged = [c.kwargs for c in fake_logger.warning.call_args_list]
        assert [(entry["row"], entry["expense_id"]) for entry in logged] == [
            (3, "bad-date"),
            (4, "huge"),
        ]
        assert fake_logger.warning.call_args.args == ("malformed_expense_row",)

    @pytest.mark.asyncio
    async def test_slow_sheet_does_not_block_event_loop(self, storage, sheet):
        """Other coroutines keep running while a sheet call is in flight."""
        def slow_read():
            time.sleep(0.3)
            return [EXPENSE_COLUMNS]

        sheet.get_all_values.side_effect = slow_read
        ticks = []

        async def ticker():
            for _ in range(5):
                await asyncio.sleep(0.02)
                ticks.append(time.monotonic())

        started = time.monotonic()
        records, _ = await asyncio.gather(
            storage.load_period("u1", MARCH_START, MARCH_END),
            ticker(),
        )

        assert records == []
        assert len(ticks) == 5
        assert ticks[0] - started < 0.2

    @pytest.mark.asyncio
    async def test_load_wraps_sheet_errors(self, storage, sheet):
        sheet.get_all_values.side_effect = RuntimeError("quota exceeded")
        with pytest.raises(StorageError, match="quota exceeded"):
            await storage.load_period("u1", MARCH_START, MARCH_END)

    @pytest.mark.asyncio
    async def test_create_appends_row(self, storage, sheet):
        ts = datetime(2024, 3, 5, 9, 30)
        draft = ExpenseDraft(
            name="Bus",
            category="Transport",
            amount=Decimal("2.40"),
            occurred_at=ts,
            created_at=ts,
        )

        expense_id = await storage.create("u1", draft)

        row = sheet.append_row.call_args.args[0]
        assert row[0] == expense_id
        assert row[1:6] == ["u1", "Bus", "Transport", "2.40", ts.isoformat()]
        assert sheet.append_row.call_args.kwargs == {"value_input_option": "RAW"}

    @pytest.mark.asyncio
    async def test_create_failure_raises_storage_error(self, storage, sheet):
        sheet.append_row.side_effect = RuntimeError("permission denied")
        draft = ExpenseDraft(name="Bus", category="Transport", amount=Decimal("2"))
        with pytest.raises(StorageError):
            await storage.create("u1", draft)

    @pytest.mark.asyncio
    async def test_update_writes_changed_cells(self, storage, sheet):
        sheet.get_all_values.return_value = [
            EXPENSE_COLUMNS,
            sheet_row("e1", "u1", "2024-03-02T08:00:00"),
        ]

        patch = ExpensePatch(name="Dinner", amount=Decimal("20"))
        assert await storage.update("u1", "e1", patch) is True

        calls = sheet.update_cell.call_args_list
        assert calls[0] == call(2, 3, "Dinner")
        assert calls[1] == call(2, 5, "20")
        assert calls[2].args[:2] == (2, 9)
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_update_other_users_row_not_found(self, storage, sheet):
        sheet.get_all_values.return_value = [
            EXPENSE_COLUMNS,
            sheet_row("e1", "u2", "2024-03-02T08:00:00"),
        ]
        with pytest.raises(NotFoundError):
            await storage.update("u1", "e1", ExpensePatch(name="Dinner"))
        sheet.update_cell.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_row(self, storage, sheet):
        sheet.get_all_values.return_value = [
            EXPENSE_COLUMNS,
            sheet_row("e1", "u1", "2024-03-02T08:00:00"),
            sheet_row("e2", "u1", "2024-03-03T08:00:00"),
        ]
        assert await storage.delete("u1", "e2") is True
        sheet.delete_rows.assert_called_once_with(3)

    @pytest.mark.asyncio
    async def test_delete_missing_row(self, storage, sheet):
        sheet.get_all_values.return_value = [EXPENSE_COLUMNS]
        assert await storage.delete("u1", "e1") is False
        sheet.delete_rows.assert_not_called()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
