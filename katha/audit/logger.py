"""
Audit Logger

DESIGN DECISION: Every mutation of the store is logged.
This provides:
1. Traceability of what changed the transaction list
2. Debugging capability when an import drops records
3. A record of exports

The audit logger:
- Is synchronous, like the store it reports on
- Never raises into the caller, whether building or writing an event fails
- Writes structured JSON lines through structlog
"""

import logging
import sys
from typing import Any, Callable, Optional

import structlog

from katha.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from katha.models.transaction import RejectedRecord, Transaction


def configure_logging(level: str = "INFO") -> None:
    """
    Configure stdlib logging and structlog for JSON output.

    Call once at process start (the Streamlit app does this).
    Library code only asks for loggers.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )
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


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured local log at the level matching
    their severity.
    """

    def __init__(self, logger_name: str = "katha.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        try:
            log_dict = event.to_log_dict()
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Report on stderr but don't raise
            print(f"audit logging failed for {event.event_id}: {e}", file=sys.stderr)
            return False

        return True

    def _build_and_log(
        self,
        build: Callable[..., AuditEvent],
        *args: Any,
        **kwargs: Any,
    ) -> bool:
        """Build an event and log it; a builder failure is reported, not raised."""
        try:
            event = build(*args, **kwargs)
        except Exception as e:
            print(f"audit event {build.__name__} could not be built: {e}", file=sys.stderr)
            return False
        return self.log(event)

    def log_store_loaded(
        self,
        count: int,
        rejected: list[RejectedRecord],
        found: bool,
    ) -> None:
        """Log session start and any records dropped while loading."""
        for record in rejected:
            self._build_and_log(AuditEventBuilder.record_rejected, record, stage="load")
        self._build_and_log(AuditEventBuilder.store_loaded, count, len(rejected), found)

    def log_transaction_added(self, transaction: Transaction) -> None:
        self._build_and_log(AuditEventBuilder.transaction_added, transaction)

    def log_transaction_deleted(self, transaction_id: str, found: bool) -> None:
        """Log a delete, including deletes of unknown ids."""
        if found:
            self._build_and_log(AuditEventBuilder.transaction_deleted, transaction_id)
        else:
            self._build_and_log(AuditEventBuilder.delete_not_found, transaction_id)

    def log_transactions_replaced(self, previous_count: int, count: int) -> None:
        self._build_and_log(AuditEventBuilder.transactions_replaced, previous_count, count)

    def log_import_completed(
        self,
        accepted_count: int,
        rejected: list[RejectedRecord],
        source: Optional[str] = None,
    ) -> None:
        """Log a successful import and each record it dropped."""
        for record in rejected:
            self._build_and_log(AuditEventBuilder.record_rejected, record, stage="import")
        self._build_and_log(
            AuditEventBuilder.import_completed, accepted_count, len(rejected), source
        )

    def log_import_failed(
        self,
        error_message: str,
        source: Optional[str] = None,
    ) -> None:
        self._build_and_log(AuditEventBuilder.import_failed, error_message, source)

    def log_export_completed(self, filename: str, count: int) -> None:
        self._build_and_log(AuditEventBuilder.export_completed, filename, count)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self._build_and_log(
            AuditEventBuilder.system_error,
            error_type=error_type,
            error_message=error_message,
            details=details,
        )
