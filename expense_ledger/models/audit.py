"""
Audit Models for Expense Ledger

Every significant session action is logged for audit purposes:
loads, writes, validation failures and remote failures. This gives
a trace of what the user did and what the remote ledger answered.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session lifecycle
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"

    # Loading
    PERIOD_LOAD_REQUESTED = "period_load_requested"
    PERIOD_LOADED = "period_loaded"
    STALE_LOAD_DISCARDED = "stale_load_discarded"

    # Writes
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # View changes
    FILTER_CHANGED = "filter_changed"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    REMOTE_FAILURE = "remote_failure"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context
    user_id: Optional[str] = Field(
        default=None,
        description="Identity the session belongs to"
    )
    expense_id: Optional[str] = Field(
        default=None,
        description="Expense this event relates to, if any"
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g. one add intent)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user intent?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "expense_id": self.expense_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(user_id, expense_id, ...)
        event = AuditEventBuilder.remote_failure(user_id, "delete", ...)
    """

    @staticmethod
    def session_started(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_STARTED,
            user_id=user_id,
            description="Expense session started",
        )

    @staticmethod
    def session_ended(user_id: str, discarded_records: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_ENDED,
            user_id=user_id,
            description="User signed out, session state discarded",
            details={"discarded_records": discarded_records},
            is_user_action=True,
        )

    @staticmethod
    def period_load_requested(
        user_id: str,
        period_label: str,
        request_seq: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERIOD_LOAD_REQUESTED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Loading expenses for {period_label}",
            details={"period": period_label, "request_seq": request_seq},
        )

    @staticmethod
    def period_loaded(
        user_id: str,
        period_label: str,
        record_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERIOD_LOADED,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Loaded {record_count} expenses for {period_label}",
            details={"period": period_label, "record_count": record_count},
        )

    @staticmethod
    def stale_load_discarded(
        user_id: str,
        period_label: str,
        request_seq: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_LOAD_DISCARDED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Discarded superseded load for {period_label}",
            details={"period": period_label, "request_seq": request_seq},
        )

    @staticmethod
    def expense_created(
        user_id: str,
        expense_id: str,
        category: str,
        amount: str,
        visible: bool,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            user_id=user_id,
            expense_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense created: {category} - {amount}",
            details={
                "category": category,
                "amount": amount,
                "visible_in_period": visible,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        user_id: str,
        expense_id: str,
        changed_fields: list[str],
        found_locally: bool,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            user_id=user_id,
            expense_id=expense_id,
            correlation_id=correlation_id,
            description="Expense updated",
            details={
                "changed_fields": changed_fields,
                "found_locally": found_locally,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        user_id: str,
        expense_id: str,
        found_locally: bool,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            user_id=user_id,
            expense_id=expense_id,
            correlation_id=correlation_id,
            description="Expense deleted",
            details={"found_locally": found_locally},
            is_user_action=True,
        )

    @staticmethod
    def filter_changed(
        user_id: str,
        category: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FILTER_CHANGED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            description=f"Filter set to {category!r}" if category else "Filter cleared",
            details={"category": category},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        user_id: str,
        intent: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Validation failed for {intent} with {len(issues)} issues",
            details={"intent": intent, "issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def remote_failure(
        user_id: str,
        operation: str,
        error_message: str,
        correlation_id: UUID,
        expense_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_FAILURE,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            expense_id=expense_id,
            correlation_id=correlation_id,
            description=f"Remote ledger call failed: {operation}",
            error_message=error_message,
            details={"operation": operation},
        )
