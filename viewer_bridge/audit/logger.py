"""
Structured audit logging for viewer-token activity.

Events are emitted through the ``viewer_bridge.audit`` logger as structured
fields (rendered as JSON by the configured formatter) with:
- No token values (only the file id the token is bound to)
- No file contents
- Correlation IDs for tracing
"""
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class AuditAction(str, Enum):
    """Audit action types."""
    TOKEN_MINTED = "audit.token.minted"
    TOKEN_REJECTED = "audit.token.rejected"
    FILE_SERVED = "audit.file.served"
    VIEWER_RENDERED = "audit.viewer.rendered"
    FILE_UPLOADED = "audit.file.uploaded"
    ORIGIN_REJECTED = "audit.origin.rejected"


@dataclass
class AuditEvent:
    """
    Structured audit event.

    All fields are safe for logging.
    """
    action: str
    endpoint: str
    allow: bool
    timestamp: str
    correlation_id: Optional[str] = None

    file_id: Optional[str] = None
    contact_id: Optional[str] = None
    reason: Optional[str] = None
    bytes_sent: Optional[int] = None
    token_count: Optional[int] = None

    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_extra(self) -> Dict[str, Any]:
        """Convert to ``logging`` extra fields, dropping empty values."""
        data = asdict(self)
        data = {k: v for k, v in data.items() if v is not None and v != {}}
        data["event_type"] = data.pop("action")
        return data

    @classmethod
    def create(
        cls,
        action: AuditAction,
        endpoint: str,
        allow: bool,
        **kwargs
    ) -> "AuditEvent":
        return cls(
            action=action.value,
            endpoint=endpoint,
            allow=allow,
            timestamp=datetime.now(timezone.utc).isoformat(),
            **kwargs
        )


class AuditLogger:
    """Writes audit events to the ``viewer_bridge.audit`` logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("viewer_bridge.audit")

    def log(self, event: AuditEvent):
        level = logging.INFO if event.allow else logging.WARNING
        self._logger.log(level, event.action, extra=event.to_extra())

    def log_token_minted(
        self,
        endpoint: str,
        correlation_id: Optional[str] = None,
        file_id: Optional[str] = None,
        contact_id: Optional[str] = None,
        token_count: int = 1,
    ):
        """Log one or more tokens minted by a request."""
        self.log(AuditEvent.create(
            action=AuditAction.TOKEN_MINTED,
            endpoint=endpoint,
            allow=True,
            correlation_id=correlation_id,
            file_id=file_id,
            contact_id=contact_id,
            token_count=token_count,
        ))

    def log_token_rejected(
        self,
        endpoint: str,
        reason: str,
        correlation_id: Optional[str] = None,
        file_id: Optional[str] = None,
    ):
        """Log a failed token validation (reason code only)."""
        self.log(AuditEvent.create(
            action=AuditAction.TOKEN_REJECTED,
            endpoint=endpoint,
            allow=False,
            correlation_id=correlation_id,
            file_id=file_id,
            reason=reason,
        ))

    def log_file_served(
        self,
        endpoint: str,
        file_id: str,
        bytes_sent: int,
        correlation_id: Optional[str] = None,
    ):
        self.log(AuditEvent.create(
            action=AuditAction.FILE_SERVED,
            endpoint=endpoint,
            allow=True,
            correlation_id=correlation_id,
            file_id=file_id,
            bytes_sent=bytes_sent,
        ))

    def log_viewer_rendered(
        self,
        endpoint: str,
        file_id: str,
        correlation_id: Optional[str] = None,
    ):
        self.log(AuditEvent.create(
            action=AuditAction.VIEWER_RENDERED,
            endpoint=endpoint,
            allow=True,
            correlation_id=correlation_id,
            file_id=file_id,
        ))

    def log_file_uploaded(
        self,
        endpoint: str,
        file_id: str,
        replaced: bool,
        correlation_id: Optional[str] = None,
    ):
        self.log(AuditEvent.create(
            action=AuditAction.FILE_UPLOADED,
            endpoint=endpoint,
            allow=True,
            correlation_id=correlation_id,
            file_id=file_id,
            metadata={"replaced": replaced},
        ))

    def log_origin_rejected(
        self,
        endpoint: str,
        origin: str,
        correlation_id: Optional[str] = None,
    ):
        self.log(AuditEvent.create(
            action=AuditAction.ORIGIN_REJECTED,
            endpoint=endpoint,
            allow=False,
            correlation_id=correlation_id,
            reason="ORIGIN_NOT_HUBSPOT",
            metadata={"origin": origin},
        ))


# Singleton instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get the audit logger singleton."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger
