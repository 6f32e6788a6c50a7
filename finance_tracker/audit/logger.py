"""
Audit Logger

Every write the domain core performs is logged. The audit logger:
- Writes a structured JSON log line for every event
- Persists the event to the audit store when one is configured
- Never lets an audit storage failure break the main flow
- Supports correlation IDs to trace the events of one request
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finance_tracker.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging and structlog to emit JSON lines."""
    logging.basicConfig(format="%(message)s")
    logging.getLogger().setLevel(level.upper())

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


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit store (for persistence), if configured
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
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transfer_created(
        self,
        transfer_id: str,
        from_account: str,
        to_account: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a newly created two-leg transfer."""
        await self.log(AuditEventBuilder.transfer_created(
            transfer_id=transfer_id,
            from_account=from_account,
            to_account=to_account,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_transaction_converted(
        self,
        transfer_id: str,
        account: str,
        transaction_id: str,
        to_account: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log promotion of a transaction to an outgoing transfer leg."""
        await self.log(AuditEventBuilder.transaction_converted(
            transfer_id=transfer_id,
            account=account,
            transaction_id=transaction_id,
            to_account=to_account,
            correlation_id=correlation_id,
        ))

    async def log_transfer_failed(
        self,
        transfer_id: str,
        operation: str,
        error_message: str,
        compensated: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a transfer write failure and whether it was rolled back."""
        await self.log(AuditEventBuilder.transfer_failed(
            transfer_id=transfer_id,
            operation=operation,
            error_message=error_message,
            compensated=compensated,
            correlation_id=correlation_id,
        ))

    async def log_bulk_recategorized(
        self,
        account: str,
        description: str,
        new_category: str,
        updated_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a completed bulk recategorization."""
        await self.log(AuditEventBuilder.bulk_recategorized(
            account=account,
            description=description,
            new_category=new_category,
            updated_count=updated_count,
            correlation_id=correlation_id,
        ))

    async def log_bulk_recategorize_failed(
        self,
        account: str,
        updated_count: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a bulk recategorization that stopped part-way."""
        await self.log(AuditEventBuilder.bulk_recategorize_failed(
            account=account,
            updated_count=updated_count,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_record_changed(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a plain create/update/delete of an account, category or transaction."""
        await self.log(AuditEventBuilder.record_changed(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed store call."""
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through all
    subsequent operations.
    """
    return uuid4()
