"""
Audit logging for shellgate.

This package records gateway decisions and command outcomes as JSON Lines.
"""

from shellgate.audit.logger import (
    AuditEventType,
    AuditLogger,
    get_audit_logger,
    reset_audit_logger,
)

__all__ = ["AuditEventType", "AuditLogger", "get_audit_logger", "reset_audit_logger"]
