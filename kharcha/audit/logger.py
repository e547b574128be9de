"""
Audit Logger

DESIGN DECISION: Every significant step of a command is logged.
This provides:
1. Complete traceability from transcript to reply
2. Debugging capability when a phrase is misunderstood
3. A persistent trail when an audit store is configured

The audit logger:
- Always writes a structured local log line
- Persists to an AuditStorageInterface when one is given
- Never lets a persistence failure break the command
- Supports correlation IDs to trace the events of one command
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from kharcha.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from kharcha.services.storage import AuditStorageInterface


# Configure structlog for local logging
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
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog's stdlib loggers to stdout at the given level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit store, if configured (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("kharcha.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity is AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Logged, not raised: auditing must not break the command
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_command_received(
        self,
        user_id: str,
        transcript: str,
        language: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.command_received(
            user_id=user_id,
            transcript=transcript,
            language=language,
            correlation_id=correlation_id,
        ))

    async def log_command_rejected(
        self,
        user_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.command_rejected(
            user_id=user_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_intent_parsed(
        self,
        user_id: str,
        action: str,
        slots: dict,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.intent_parsed(
            user_id=user_id,
            action=action,
            slots=slots,
            correlation_id=correlation_id,
        ))

    async def log_expense_added(
        self,
        user_id: str,
        expense_id: UUID,
        amount: str,
        category: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_added(
            user_id=user_id,
            expense_id=expense_id,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_query_executed(
        self,
        user_id: str,
        action: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.query_executed(
            user_id=user_id,
            action=action,
            correlation_id=correlation_id,
        ))

    async def log_query_failed(
        self,
        user_id: str,
        action: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.query_failed(
            user_id=user_id,
            action=action,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_forecast(
        self,
        user_id: str,
        record_count: int,
        confidence: str,
        total: int,
        degraded: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.forecast_generated(
            user_id=user_id,
            record_count=record_count,
            confidence=confidence,
            total=total,
            degraded=degraded,
            correlation_id=correlation_id,
        ))

    async def log_lexicon_updated(
        self,
        category: str,
        keywords: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.lexicon_updated(
            category=category,
            keywords=keywords,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of each command and pass it through
    every subsequent audit call.
    """
    return uuid4()
