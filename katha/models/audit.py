"""
Audit Models for Katha

Every mutation of the transaction store is logged for audit purposes.
This provides:
1. Traceability of adds, deletes and imports
2. Debugging information when an import drops records
3. A way to reconstruct what happened to the list

DESIGN DECISION: Audit events describe what happened; they never
carry enough to rebuild the store. The persisted blob is the only
source of truth.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from katha.models.transaction import RejectedRecord, Transaction


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    STORE_LOADED = "store_loaded"

    # Store mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    DELETE_NOT_FOUND = "delete_not_found"
    TRANSACTIONS_REPLACED = "transactions_replaced"

    # Import / export
    IMPORT_COMPLETED = "import_completed"
    IMPORT_FAILED = "import_failed"
    RECORD_REJECTED = "record_rejected"
    EXPORT_COMPLETED = "export_completed"

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

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
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
        description="Type of entity (e.g., 'transaction', 'store', 'file')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
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

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
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
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(transaction)
        event = AuditEventBuilder.import_failed("Invalid file format")
    """

    @staticmethod
    def store_loaded(
        count: int,
        rejected_count: int,
        found: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            severity=AuditSeverity.WARNING if rejected_count else AuditSeverity.INFO,
            entity_type="store",
            description=(
                f"Store loaded with {count} transactions"
                if found
                else "No saved transactions, starting empty"
            ),
            details={
                "transaction_count": count,
                "rejected_count": rejected_count,
                "blob_found": found,
            },
        )

    @staticmethod
    def transaction_added(transaction: Transaction) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction.id,
            description=(
                f"Transaction added: {transaction.type.value} "
                f"{transaction.amount} on {transaction.date.isoformat()}"
            ),
            details={
                "date": transaction.date.isoformat(),
                "type": transaction.type.value,
                "amount": transaction.amount,
                "category": transaction.category,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def delete_not_found(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETE_NOT_FOUND,
            severity=AuditSeverity.DEBUG,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Delete ignored, no transaction with that id",
            is_user_action=True,
        )

    @staticmethod
    def transactions_replaced(previous_count: int, count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_REPLACED,
            entity_type="store",
            description=f"Replaced {previous_count} transactions with {count}",
            details={
                "previous_count": previous_count,
                "transaction_count": count,
            },
        )

    @staticmethod
    def import_completed(
        accepted_count: int,
        rejected_count: int,
        source: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            severity=AuditSeverity.WARNING if rejected_count else AuditSeverity.INFO,
            entity_type="file",
            entity_id=source,
            description=(
                f"Imported {accepted_count} transactions"
                + (f", dropped {rejected_count} invalid records" if rejected_count else "")
            ),
            details={
                "accepted_count": accepted_count,
                "rejected_count": rejected_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def import_failed(
        error_message: str,
        source: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="file",
            entity_id=source,
            description="Import rejected: invalid file format",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def record_rejected(rejected: RejectedRecord, stage: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="record",
            description=f"Record {rejected.index} dropped during {stage}",
            details={
                "stage": stage,
                "index": rejected.index,
                "issues": [
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in rejected.issues
                ],
            },
        )

    @staticmethod
    def export_completed(filename: str, count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_COMPLETED,
            entity_type="file",
            entity_id=filename,
            description=f"Exported {count} transactions",
            details={
                "transaction_count": count,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
