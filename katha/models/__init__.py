"""
Data Models Package

This package contains all Pydantic models used in Katha.
Everything that enters or leaves the store conforms to these schemas.
"""

from katha.models.transaction import (
    DailyLedgerEntry,
    ImportResult,
    MonthlyStats,
    RejectedRecord,
    Transaction,
    TransactionCandidate,
    TransactionType,
    ValidationIssue,
    dump_transactions,
    parse_calendar_date,
)
from katha.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "DailyLedgerEntry",
    "ImportResult",
    "MonthlyStats",
    "RejectedRecord",
    "Transaction",
    "TransactionCandidate",
    "TransactionType",
    "ValidationIssue",
    "dump_transactions",
    "parse_calendar_date",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
