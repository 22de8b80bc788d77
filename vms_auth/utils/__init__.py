"""Shared utilities for the VMS auth package."""

from vms_auth.utils.audit import AuditEvent, log_audit_event

__all__ = [
    "AuditEvent",
    "log_audit_event",
]
