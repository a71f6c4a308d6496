"""
Google Sheets Storage Implementation

Google Sheets is the remote ledger backend because:
1. Users can view and export their expenses directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (fine for personal expenses)
- No transactions
- Limited query capabilities (we filter in Python)

All users share one worksheet; the user_id column scopes every read and
write. Only the connection handshake is retried. Writes are not, because a
retried append could create the same expense twice.

gspread is synchronous. Every sheet call runs in a worker thread via
asyncio.to_thread so the event loop keeps serving other intents.
"""

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from expense_ledger.config import GoogleSheetsSettings, get_settings
from expense_ledger.models.expense import (
    ExpenseDraft,
    ExpensePatch,
    ExpenseRecord,
)
from expense_ledger.services.storage.interface import (
    ConnectionError,
    ExpenseStorageInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)

# Column mappings for the Expenses sheet
EXPENSE_COLUMNS = [
    "id",
    "user_id",
    "name",
    "category",
    "amount",
    "occurred_at",
    "note",
    "created_at",
    "updated_at",
]

# Fields an edit may write, mapped to 1-based sheet columns
EDITABLE_COLUMNS = {
    field: EXPENSE_COLUMNS.index(field) + 1
    for field in ("name", "category", "amount", "note")
}
UPDATED_AT_COLUMN = EXPENSE_COLUMNS.index("updated_at") + 1


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.expenses_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.expenses_sheet_name,
                rows=1000,
                cols=len(EXPENSE_COLUMNS),
            )
            sheet.append_row(EXPENSE_COLUMNS)
        return sheet


class GoogleSheetsExpenseStorage(ExpenseStorageInterface):
    """
    Google Sheets implementation of the remote ledger.

    Expenses are stored one per row. Timestamps are ISO strings, amounts
    are Decimal strings so no precision is lost.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _expense_to_row(self, user_id: str, record: ExpenseRecord) -> list:
        """Convert an ExpenseRecord to a spreadsheet row."""
        return [
            record.id,
            user_id,
            record.name,
            record.category,
            str(record.amount),
            record.occurred_at.isoformat(),
            record.note,
            record.created_at.isoformat(),
            datetime.now().isoformat(),
        ]

    def _row_to_expense(self, row: list) -> ExpenseRecord:
        """Convert a spreadsheet row to an ExpenseRecord."""
        # Handle missing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return ExpenseRecord(
            id=safe_get(0),
            name=safe_get(2),
            category=safe_get(3),
            amount=Decimal(safe_get(4)),
            occurred_at=datetime.fromisoformat(safe_get(5)),
            note=safe_get(6),
            created_at=datetime.fromisoformat(safe_get(7)),
        )

    def _find_row(self, rows: list[list], user_id: str, expense_id: str) -> Optional[int]:
        """1-based sheet row index of an expense, skipping the header."""
        for idx, row in enumerate(rows[1:], start=2):
            if len(row) > 1 and row[0] == expense_id and row[1] == user_id:
                return idx
        return None

    def _read_rows(self) -> list[list]:
        return self._client.get_expenses_sheet().get_all_values()

    def _append_row(self, row: list) -> None:
        sheet = self._client.get_expenses_sheet()
        sheet.append_row(row, value_input_option="RAW")

    def _update_row(self, user_id: str, expense_id: str, patch: ExpensePatch) -> None:
        sheet = self._client.get_expenses_sheet()
        row_idx = self._find_row(sheet.get_all_values(), user_id, expense_id)
        if row_idx is None:
            raise NotFoundError(f"Expense not found: {expense_id}")

        for field, value in patch.changes().items():
            sheet.update_cell(row_idx, EDITABLE_COLUMNS[field], str(value))
        sheet.update_cell(row_idx, UPDATED_AT_COLUMN, datetime.now().isoformat())

    def _delete_row(self, user_id: str, expense_id: str) -> bool:
        sheet = self._client.get_expenses_sheet()
        row_idx = self._find_row(sheet.get_all_values(), user_id, expense_id)
        if row_idx is None:
            return False
        sheet.delete_rows(row_idx)
        return True

    async def load_period(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
    ) -> list[ExpenseRecord]:
        """Load a user's expenses inside [start, end]."""
        try:
            all_rows = (await asyncio.to_thread(self._read_rows))[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load expenses: {e}")

        expenses = []
        for row_idx, row in enumerate(all_rows, start=2):
            if len(row) < 2 or not row[0] or row[1] != user_id:
                continue

            try:
                expense = self._row_to_expense(row)
            except Exception as e:
                logger.warning(
                    "malformed_expense_row",
                    row=row_idx,
                    expense_id=row[0],
                    error=str(e),
                )
                continue

            if start <= expense.occurred_at <= end:
                expenses.append(expense)

        # Sort by date descending (newest first)
        expenses.sort(key=lambda e: e.occurred_at, reverse=True)
        return expenses

    async def create(self, user_id: str, draft: ExpenseDraft) -> str:
        """Append a new expense row and return its id."""
        record = ExpenseRecord.from_draft(uuid4().hex, draft)
        try:
            await asyncio.to_thread(
                self._append_row, self._expense_to_row(user_id, record)
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}")
        return record.id

    async def update(
        self,
        user_id: str,
        expense_id: str,
        patch: ExpensePatch,
    ) -> bool:
        """Rewrite the editable cells of an existing expense."""
        try:
            await asyncio.to_thread(self._update_row, user_id, expense_id, patch)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update expense: {e}")

    async def delete(self, user_id: str, expense_id: str) -> bool:
        """Delete an expense row by id."""
        try:
            return await asyncio.to_thread(self._delete_row, user_id, expense_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete expense: {e}")
