"""
Audit Models for Finance Tracker

Every write the domain core performs is recorded as an AuditEvent:
transfers, conversions, bulk recategorizations, plain CRUD and store
failures. Audit logs are append-only.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finance_tracker.models.common import utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Transfers
    TRANSFER_CREATED = "transfer_created"
    TRANSACTION_CONVERTED = "transaction_converted"
    TRANSFER_FAILED = "transfer_failed"
    TRANSFER_COMPENSATED = "transfer_compensated"
    TRANSFER_ORPHANED = "transfer_orphaned"

    # Bulk recategorization
    BULK_RECATEGORIZED = "bulk_recategorized"
    BULK_RECATEGORIZE_FAILED = "bulk_recategorize_failed"

    # Reference data
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"
    CATEGORY_CREATED = "category_created"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"

    # System events
    SYSTEM_ERROR = "system_error"
    STORAGE_ERROR = "storage_error"


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

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
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

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'transfer', 'account')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one request)"
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

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transfer_created(transfer_id, ...)
        event = AuditEventBuilder.bulk_recategorized(account, ...)
    """

    @staticmethod
    def transfer_created(
        transfer_id: str,
        from_account: str,
        to_account: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_CREATED,
            entity_type="transfer",
            entity_id=transfer_id,
            correlation_id=correlation_id,
            description=f"Transfer created: {from_account} -> {to_account} ({amount})",
            details={
                "from_account": from_account,
                "to_account": to_account,
                "amount": amount,
            },
        )

    @staticmethod
    def transaction_converted(
        transfer_id: str,
        account: str,
        transaction_id: str,
        to_account: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CONVERTED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction {transaction_id} in {account} converted to transfer to {to_account}",
            details={
                "transfer_id": transfer_id,
                "account": account,
                "to_account": to_account,
            },
        )

    @staticmethod
    def transfer_failed(
        transfer_id: str,
        operation: str,
        error_message: str,
        compensated: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.TRANSFER_COMPENSATED
                if compensated
                else AuditEventType.TRANSFER_ORPHANED
            ),
            severity=AuditSeverity.WARNING if compensated else AuditSeverity.CRITICAL,
            entity_type="transfer",
            entity_id=transfer_id,
            correlation_id=correlation_id,
            description=(
                f"{operation} failed and was rolled back"
                if compensated
                else f"{operation} failed leaving an orphaned leg"
            ),
            error_message=error_message,
            details={
                "operation": operation,
                "compensated": compensated,
            },
        )

    @staticmethod
    def bulk_recategorized(
        account: str,
        description: str,
        new_category: str,
        updated_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BULK_RECATEGORIZED,
            entity_type="account",
            entity_id=account,
            correlation_id=correlation_id,
            description=f"Recategorized {updated_count} transactions to {new_category}",
            details={
                "description": description,
                "new_category": new_category,
                "updated_count": updated_count,
            },
        )

    @staticmethod
    def bulk_recategorize_failed(
        account: str,
        updated_count: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BULK_RECATEGORIZE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="account",
            entity_id=account,
            correlation_id=correlation_id,
            description=f"Bulk recategorization failed after {updated_count} updates",
            error_message=error_message,
            details={
                "updated_count": updated_count,
            },
        )

    @staticmethod
    def record_changed(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        verb = event_type.value.rsplit("_", 1)[-1]
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} {verb}: {entity_id}",
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )
