"""
Audit Models for Kharcha

Every command the engine handles leaves a trail of audit events.
This provides:
1. Traceability from transcript to stored record
2. Debugging information when a phrase is misunderstood
3. A record of classifier corrections

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step of the command pipeline has its own event type.
    """
    # Command intake
    COMMAND_RECEIVED = "command_received"
    COMMAND_REJECTED = "command_rejected"
    INTENT_PARSED = "intent_parsed"
    INTENT_UNKNOWN = "intent_unknown"

    # Execution
    EXPENSE_ADDED = "expense_added"
    QUERY_EXECUTED = "query_executed"
    QUERY_FAILED = "query_failed"

    # Forecasting
    FORECAST_GENERATED = "forecast_generated"
    FORECAST_DEGRADED = "forecast_degraded"

    # Classifier
    LEXICON_UPDATED = "lexicon_updated"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Events sharing a correlation_id belong to the same command.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    user_id: Optional[str] = Field(
        default=None,
        description="User the command was issued for"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'intent', 'forecast')"
    )
    entity_id: Optional[UUID] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by every event of one command"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered directly by the user?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row for the audit worksheet.

        Columns: [event_id, timestamp, event_type, severity, user_id,
        entity_type, entity_id, correlation_id, description, details_json,
        error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.command_received(user_id, transcript, correlation_id)
        event = AuditEventBuilder.expense_added(user_id, expense_id, ...)
    """

    @staticmethod
    def command_received(
        user_id: str,
        transcript: str,
        language: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_RECEIVED,
            user_id=user_id,
            entity_type="command",
            correlation_id=correlation_id,
            description=f"Command received ({language})",
            details={
                "transcript": transcript,
                "language": language,
            },
            is_user_action=True,
        )

    @staticmethod
    def command_rejected(
        user_id: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_REJECTED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="command",
            correlation_id=correlation_id,
            description="Command rejected before parsing",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def intent_parsed(
        user_id: str,
        action: str,
        slots: dict,
        correlation_id: UUID
    ) -> AuditEvent:
        unknown = action == "unknown"
        return AuditEvent(
            event_type=(
                AuditEventType.INTENT_UNKNOWN
                if unknown
                else AuditEventType.INTENT_PARSED
            ),
            severity=AuditSeverity.WARNING if unknown else AuditSeverity.INFO,
            user_id=user_id,
            entity_type="intent",
            correlation_id=correlation_id,
            description=f"Intent recognised: {action}",
            details={
                "action": action,
                "slots": slots,
            },
        )

    @staticmethod
    def expense_added(
        user_id: str,
        expense_id: UUID,
        amount: str,
        category: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            user_id=user_id,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense added: ₹{amount} ({category})",
            details={
                "amount": amount,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def query_executed(
        user_id: str,
        action: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUERY_EXECUTED,
            user_id=user_id,
            entity_type="query",
            correlation_id=correlation_id,
            description=f"Query executed: {action}",
            details={"action": action},
        )

    @staticmethod
    def query_failed(
        user_id: str,
        action: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUERY_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type="query",
            correlation_id=correlation_id,
            description=f"Query failed: {action}",
            error_message=error_message,
            details={"action": action},
        )

    @staticmethod
    def forecast_generated(
        user_id: str,
        record_count: int,
        confidence: str,
        total: int,
        degraded: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.FORECAST_DEGRADED
                if degraded
                else AuditEventType.FORECAST_GENERATED
            ),
            user_id=user_id,
            entity_type="forecast",
            correlation_id=correlation_id,
            description=f"Forecast from {record_count} records ({confidence} confidence)",
            details={
                "record_count": record_count,
                "confidence": confidence,
                "total": total,
            },
        )

    @staticmethod
    def lexicon_updated(
        category: str,
        keywords: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEXICON_UPDATED,
            entity_type="lexicon",
            description=f"Lexicon learned {len(keywords)} keyword(s) for {category}",
            details={
                "category": category,
                "keywords": keywords,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
