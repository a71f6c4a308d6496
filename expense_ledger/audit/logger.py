"""
Audit Logger

Every significant session action is logged. This provides:
1. Traceability of what the user did and what the remote ledger answered
2. Debugging capability for discarded loads and failed writes

The audit logger never raises: a logging problem must not break an intent.
Correlation IDs tie together the events of one intent (e.g. one add).
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


_STDLIB_LEVELS = {
    AuditSeverity.DEBUG: logging.DEBUG,
    AuditSeverity.INFO: logging.INFO,
    AuditSeverity.WARNING: logging.WARNING,
    AuditSeverity.ERROR: logging.ERROR,
}


# Configure structlog to render through stdlib logging as JSON lines
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """
    Install a stdlib handler and set the package log level.

    Applications call this once at startup; importing the package never does.
    """
    logging.basicConfig(format="%(message)s", level=log_level)
    logging.getLogger("expense_ledger").setLevel(log_level)


class AuditLogger:
    """
    Central audit logging service.

    Writes structured events to the "expense_ledger.audit" logger and keeps
    the most recent ones in memory so a session can show its own history.
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("expense_ledger.audit")
        self._history: list[AuditEvent] = []
        self._history_size = history_size

    @property
    def history(self) -> list[AuditEvent]:
        """Recent events, oldest first."""
        return list(self._history)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        self._history.append(event)
        if len(self._history) > self._history_size:
            del self._history[: len(self._history) - self._history_size]

        try:
            self._logger.log(
                _STDLIB_LEVELS[event.severity],
                "audit_event",
                **event.to_log_dict(),
            )
        except Exception as e:
            # Log failure but don't raise
            logging.getLogger("expense_ledger.audit").error(
                "audit_log_failed: %s (event_id=%s)", e, event.event_id
            )

    def log_session_started(self, user_id: str) -> None:
        self.log(AuditEventBuilder.session_started(user_id))

    def log_session_ended(self, user_id: str, discarded_records: int) -> None:
        self.log(AuditEventBuilder.session_ended(user_id, discarded_records))

    def log_load_requested(
        self,
        user_id: str,
        period_label: str,
        request_seq: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.period_load_requested(
            user_id=user_id,
            period_label=period_label,
            request_seq=request_seq,
            correlation_id=correlation_id,
        ))

    def log_period_loaded(
        self,
        user_id: str,
        period_label: str,
        record_count: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.period_loaded(
            user_id=user_id,
            period_label=period_label,
            record_count=record_count,
            correlation_id=correlation_id,
        ))

    def log_stale_load(
        self,
        user_id: str,
        period_label: str,
        request_seq: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.stale_load_discarded(
            user_id=user_id,
            period_label=period_label,
            request_seq=request_seq,
            correlation_id=correlation_id,
        ))

    def log_expense_created(
        self,
        user_id: str,
        expense_id: str,
        category: str,
        amount: str,
        visible: bool,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.expense_created(
            user_id=user_id,
            expense_id=expense_id,
            category=category,
            amount=amount,
            visible=visible,
            correlation_id=correlation_id,
        ))

    def log_expense_updated(
        self,
        user_id: str,
        expense_id: str,
        changed_fields: list[str],
        found_locally: bool,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.expense_updated(
            user_id=user_id,
            expense_id=expense_id,
            changed_fields=changed_fields,
            found_locally=found_locally,
            correlation_id=correlation_id,
        ))

    def log_expense_deleted(
        self,
        user_id: str,
        expense_id: str,
        found_locally: bool,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.expense_deleted(
            user_id=user_id,
            expense_id=expense_id,
            found_locally=found_locally,
            correlation_id=correlation_id,
        ))

    def log_filter_changed(self, user_id: str, category: Optional[str]) -> None:
        self.log(AuditEventBuilder.filter_changed(user_id, category))

    def log_validation_failed(
        self,
        user_id: str,
        intent: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.validation_failed(
            user_id=user_id,
            intent=intent,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_remote_failure(
        self,
        user_id: str,
        operation: str,
        error_message: str,
        correlation_id: UUID,
        expense_id: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.remote_failure(
            user_id=user_id,
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
            expense_id=expense_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of each user intent and pass it through
    every event that intent produces.
    """
    return uuid4()
