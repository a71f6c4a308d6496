"""
Expense Session

Ties together validation, the remote ledger, the in-memory ledger state and
the aggregator for ONE signed-in user.

The session enforces these rules:
- Input is validated before anything is sent to the remote ledger
- Local state changes only after the remote ledger confirmed the write
- A load result is applied only if it is still the latest request for the
  session that issued it
- After sign_out the instance is dead; a new user gets a new session

All state changes happen between awaits on a single event loop, so every
remote completion is applied in full before the next one is looked at.
Subscribers receive an immutable LedgerSnapshot after every change.
"""

from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal
from typing import NamedTuple, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, Field

from expense_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from expense_ledger.config import AppSettings, get_settings
from expense_ledger.ledger import (
    FilterSelection,
    LedgerState,
    Period,
    category_stats,
    distinct_categories,
    filter_by_category,
    grand_total,
)
from expense_ledger.models.expense import (
    CategoryStat,
    ExpenseDraft,
    ExpensePatch,
    ExpenseRecord,
    Status,
)
from expense_ledger.services.storage import (
    ExpenseStorageInterface,
    GoogleSheetsExpenseStorage,
    InMemoryExpenseStorage,
    StorageError,
)
from expense_ledger.validation import ExpenseValidationError, ExpenseValidator


class SessionContext(BaseModel):
    """Identity the session acts for, handed over by whatever signed the user in."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    user_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    display_name: Optional[str] = None


class LedgerSnapshot(BaseModel):
    """Everything a UI needs to render the expenses screen."""
    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    period: Optional[Period] = None
    expenses: tuple[ExpenseRecord, ...] = ()
    visible_expenses: tuple[ExpenseRecord, ...] = ()
    grand_total: Decimal = Decimal(0)
    category_stats: tuple[CategoryStat, ...] = ()
    categories: tuple[str, ...] = ()
    active_filter: Optional[str] = None
    status: Status = Field(default_factory=Status.idle)

    @property
    def is_filtered(self) -> bool:
        return self.active_filter is not None


class _LoadTicket(NamedTuple):
    generation: int
    period: Period
    seq: int
    correlation_id: UUID


Subscriber = Callable[[LedgerSnapshot], None]


class ExpenseSession:
    """
    Single owner of one user's ledger state.

    UI intents map 1:1 onto the public methods. Remote failures never
    escape as exceptions; they become an Error status.
    """

    def __init__(
        self,
        context: SessionContext,
        storage: ExpenseStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._context = context
        self._storage = storage
        self._settings = settings or get_settings().app
        self._validator = validator or ExpenseValidator(self._settings)
        self._audit_logger = audit_logger or AuditLogger()
        self._logger = structlog.get_logger("expense_ledger.session").bind(
            user_id=context.user_id
        )

        self._ledger = LedgerState()
        self._filter = FilterSelection()
        self._status = Status.idle()
        self._subscribers: list[Subscriber] = []
        self._snapshot = LedgerSnapshot(user_id=context.user_id)

        self._active = True
        self._generation = 0
        self._load_seq = 0
        self._requested_period: Optional[Period] = None

        self._audit_logger.log_session_started(context.user_id)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def user_id(self) -> str:
        return self._context.user_id

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def status(self) -> Status:
        return self._status

    @property
    def requested_period(self) -> Optional[Period]:
        """Last period the user asked for; may still be loading."""
        return self._requested_period

    @property
    def suggested_categories(self) -> list[str]:
        return self._settings.suggested_categories_list

    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register for snapshots. The current snapshot is delivered at once.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)
        self._deliver(callback)

        def unsubscribe() -> None:
            self.unsubscribe(callback)

        return unsubscribe

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def format_timestamp(self, ts: datetime) -> str:
        return ts.strftime(self._settings.timestamp_format)

    # ------------------------------------------------------------------
    # Period intents
    # ------------------------------------------------------------------

    async def select_month(self, year: int, month: int) -> bool:
        """
        Load a month. Returns True if its records were applied.

        Raises:
            ValueError: If month is outside 1-12.
        """
        if not self._ensure_active("select_month"):
            return False
        period = Period(year=year, month=month)
        self._requested_period = period
        return await self._load(period)

    async def load_current_month(self, today: Optional[date] = None) -> bool:
        current = Period.current(today)
        return await self.select_month(current.year, current.month)

    async def previous_month(self) -> bool:
        return await self._step_month("previous")

    async def next_month(self) -> bool:
        return await self._step_month("next")

    async def _step_month(self, direction: str) -> bool:
        """Move one month back or forward. Stays put at the calendar's edges."""
        base = self._requested_period or Period.current()
        try:
            target = base.previous() if direction == "previous" else base.next()
        except ValueError:
            self._logger.warning(
                "period_out_of_range", period=base.label, direction=direction
            )
            return False
        return await self.select_month(target.year, target.month)

    async def reload(self) -> bool:
        """Fetch the requested month again (user-initiated retry)."""
        if not self._ensure_active("reload"):
            return False
        if self._requested_period is None:
            return await self.load_current_month()
        return await self._load(self._requested_period)

    async def _load(self, period: Period) -> bool:
        self._load_seq += 1
        ticket = _LoadTicket(
            generation=self._generation,
            period=period,
            seq=self._load_seq,
            correlation_id=create_correlation_id(),
        )
        self._audit_logger.log_load_requested(
            self.user_id, period.label, ticket.seq, ticket.correlation_id
        )
        self._set_status(Status.loading())

        start, end = period.range
        try:
            records = await self._storage.load_period(self.user_id, start, end)
        except StorageError as e:
            if not self._is_current(ticket):
                self._audit_logger.log_stale_load(
                    self.user_id, period.label, ticket.seq, ticket.correlation_id
                )
                return False
            self._audit_logger.log_remote_failure(
                self.user_id, "load_period", str(e), ticket.correlation_id
            )
            # Previous records stay on screen
            self._set_status(Status.error(f"Could not load: {e}"))
            return False

        if not self._is_current(ticket):
            self._audit_logger.log_stale_load(
                self.user_id, period.label, ticket.seq, ticket.correlation_id
            )
            return False

        if self._ledger.period != period:
            self._filter.reset()
        self._ledger.load(records, period=period)
        self._audit_logger.log_period_loaded(
            self.user_id, period.label, len(self._ledger), ticket.correlation_id
        )
        self._set_status(Status.idle())
        return True

    def _is_current(self, ticket: _LoadTicket) -> bool:
        return (
            self._active
            and ticket.generation == self._generation
            and ticket.seq == self._load_seq
        )

    # ------------------------------------------------------------------
    # Write intents
    # ------------------------------------------------------------------

    async def add_expense(
        self,
        name: str,
        category: str,
        amount_text: str,
        note: str = "",
    ) -> Optional[ExpenseRecord]:
        """
        Create an expense dated now.

        Returns the stored record, or None if validation or the remote
        ledger rejected it. The record shows up locally only if it falls
        inside the loaded month.
        """
        if not self._ensure_active("add_expense"):
            return None
        correlation_id = create_correlation_id()

        try:
            result = self._validator.require_valid(name, category, amount_text, note)
        except ExpenseValidationError as e:
            self._reject("add_expense", e, correlation_id)
            return None
        self._log_warnings("add_expense", result.warnings, correlation_id)

        now = datetime.now()
        draft = ExpenseDraft(
            name=name,
            category=category,
            amount=result.amount,
            occurred_at=now,
            note=note or "",
            created_at=now,
        )

        generation = self._generation
        self._set_status(Status.loading())
        try:
            expense_id = await self._storage.create(self.user_id, draft)
        except StorageError as e:
            self._remote_failed(generation, "create", e, correlation_id, "Could not save")
            return None
        if generation != self._generation:
            return None

        record = ExpenseRecord.from_draft(expense_id, draft)
        visible = self._ledger.insert_local(record)
        self._audit_logger.log_expense_created(
            user_id=self.user_id,
            expense_id=expense_id,
            category=record.category,
            amount=str(record.amount),
            visible=visible,
            correlation_id=correlation_id,
        )
        self._set_status(Status.info("Expense added"))
        return record

    async def edit_expense(
        self,
        expense_id: str,
        name: str,
        category: str,
        amount_text: str,
        note: str = "",
    ) -> bool:
        """
        Change name, category, amount and note of an expense.

        The date and creation time are kept. The remote call is made even if
        the id is not in the loaded month.
        """
        if not self._ensure_active("edit_expense"):
            return False
        correlation_id = create_correlation_id()

        try:
            result = self._validator.require_valid(name, category, amount_text, note)
        except ExpenseValidationError as e:
            self._reject("edit_expense", e, correlation_id)
            return False
        self._log_warnings("edit_expense", result.warnings, correlation_id)

        patch = ExpensePatch(
            name=name,
            category=category,
            amount=result.amount,
            note=note or "",
        )

        generation = self._generation
        self._set_status(Status.loading())
        try:
            await self._storage.update(self.user_id, expense_id, patch)
        except StorageError as e:
            self._remote_failed(
                generation, "update", e, correlation_id, "Could not update", expense_id
            )
            return False
        if generation != self._generation:
            return False

        found = self._ledger.update_local(expense_id, patch)
        self._audit_logger.log_expense_updated(
            user_id=self.user_id,
            expense_id=expense_id,
            changed_fields=sorted(patch.changes()),
            found_locally=found,
            correlation_id=correlation_id,
        )
        self._set_status(Status.info("Expense updated"))
        return True

    async def delete_expense(self, expense_id: str) -> bool:
        """Delete an expense remotely, then drop it from the loaded month."""
        if not self._ensure_active("delete_expense"):
            return False
        correlation_id = create_correlation_id()

        generation = self._generation
        self._set_status(Status.loading())
        try:
            await self._storage.delete(self.user_id, expense_id)
        except StorageError as e:
            self._remote_failed(
                generation, "delete", e, correlation_id, "Could not delete", expense_id
            )
            return False
        if generation != self._generation:
            return False

        found = self._ledger.delete_local(expense_id)
        self._audit_logger.log_expense_deleted(
            user_id=self.user_id,
            expense_id=expense_id,
            found_locally=found,
            correlation_id=correlation_id,
        )
        self._set_status(Status.info("Expense deleted"))
        return True

    # ------------------------------------------------------------------
    # View intents
    # ------------------------------------------------------------------

    def set_filter(self, category: Optional[str]) -> Optional[str]:
        """Toggle the category filter. Returns the active category."""
        if not self._ensure_active("set_filter"):
            return None
        active = self._filter.set_filter(category)
        self._audit_logger.log_filter_changed(self.user_id, active)
        self._publish()
        return active

    def clear_status(self) -> None:
        if not self._ensure_active("clear_status"):
            return
        self._set_status(Status.idle())

    def sign_out(self) -> None:
        """
        Discard everything this session holds.

        Any load or write still in flight is ignored when it completes.
        """
        if not self._active:
            return
        discarded = len(self._ledger)
        self._active = False
        self._generation += 1
        self._ledger.clear()
        self._filter.reset()
        self._requested_period = None
        self._status = Status.idle()
        self._publish()
        self._subscribers.clear()
        self._audit_logger.log_session_ended(self.user_id, discarded)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_active(self, intent: str) -> bool:
        if not self._active:
            self._logger.warning("intent_ignored_after_sign_out", intent=intent)
        return self._active

    def _reject(
        self,
        intent: str,
        error: ExpenseValidationError,
        correlation_id: UUID,
    ) -> None:
        self._audit_logger.log_validation_failed(
            user_id=self.user_id,
            intent=intent,
            issues=[
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in error.issues
            ],
            correlation_id=correlation_id,
        )
        self._set_status(Status.error(str(error)))

    def _log_warnings(
        self,
        intent: str,
        warnings: list[str],
        correlation_id: UUID,
    ) -> None:
        for warning in warnings:
            self._logger.warning(
                "expense_input_warning",
                intent=intent,
                warning=warning,
                correlation_id=str(correlation_id),
            )

    def _remote_failed(
        self,
        generation: int,
        operation: str,
        error: StorageError,
        correlation_id: UUID,
        prefix: str,
        expense_id: Optional[str] = None,
    ) -> None:
        if generation != self._generation:
            return
        self._audit_logger.log_remote_failure(
            user_id=self.user_id,
            operation=operation,
            error_message=str(error),
            correlation_id=correlation_id,
            expense_id=expense_id,
        )
        self._set_status(Status.error(f"{prefix}: {error}"))

    def _set_status(self, status: Status) -> None:
        self._status = status
        self._publish()

    def _publish(self) -> None:
        records = self._ledger.records
        visible = filter_by_category(records, self._filter.category)
        self._snapshot = LedgerSnapshot(
            user_id=self.user_id,
            period=self._ledger.period,
            expenses=records,
            visible_expenses=tuple(visible),
            grand_total=grand_total(records),
            category_stats=tuple(category_stats(records)),
            categories=tuple(distinct_categories(records)),
            active_filter=self._filter.category,
            status=self._status,
        )
        for callback in list(self._subscribers):
            self._deliver(callback)

    def _deliver(self, callback: Subscriber) -> None:
        try:
            callback(self._snapshot)
        except Exception:
            self._logger.exception("subscriber_failed")


def create_session(
    context: SessionContext,
    use_storage: bool = True,
) -> ExpenseSession:
    """
    Factory function to create a session with its collaborators.

    Args:
        context: The signed-in identity
        use_storage: Whether to use Google Sheets storage.
                    Set to False to run against in-memory storage.

    Returns:
        A fresh ExpenseSession; never reuse one across identities
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)
    logger = structlog.get_logger("expense_ledger.session")

    storage: ExpenseStorageInterface
    if use_storage:
        try:
            storage = GoogleSheetsExpenseStorage()
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            storage = InMemoryExpenseStorage()
    else:
        storage = InMemoryExpenseStorage()

    return ExpenseSession(
        context=context,
        storage=storage,
        audit_logger=AuditLogger(),
        settings=settings.app,
    )
