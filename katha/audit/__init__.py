"""Audit logging package."""

from katha.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
