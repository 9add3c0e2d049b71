"""Audit logging module."""
from .logger import AuditAction, AuditEvent, AuditLogger, get_audit_logger

__all__ = ["AuditLogger", "AuditEvent", "AuditAction", "get_audit_logger"]
