"""Audit domain models and value objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Dict, Optional, Union


class AuditAction(StrEnum):
    """Canonical audit actions for access-control mutations."""

    CREATE_ROLE = "CREATE_ROLE"
    UPDATE_ROLE = "UPDATE_ROLE"
    DELETE_ROLE = "DELETE_ROLE"
    CREATE_PERMISSION = "CREATE_PERMISSION"
    UPDATE_PERMISSION = "UPDATE_PERMISSION"
    DELETE_PERMISSION = "DELETE_PERMISSION"
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"
    ASSIGN_ROLE = "ASSIGN_ROLE"
    REVOKE_ROLE = "REVOKE_ROLE"
    LOGIN = "LOGIN"
    FAILED_LOGIN = "FAILED_LOGIN"


class AuditEntity(StrEnum):
    """Entity identifiers captured by audit events."""

    ROLE = "Role"
    PERMISSION = "Permission"
    USER = "User"


AuditActionLike = Union[AuditAction, str]


@dataclass(slots=True)
class AuditEvent:
    """Representation of an audit event prior to persistence."""

    action: AuditActionLike
    entity: Optional[str] = None
    entity_id: Optional[int] = None
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def action_value(self) -> str:
        return str(self.action)

    def to_record(self) -> Dict[str, Any]:
        """Materialize the event into a serializable dictionary."""

        new_value: Optional[Dict[str, Any]] = dict(self.new_value) if self.new_value else None
        if self.metadata:
            new_value = dict(new_value or {})
            new_value.setdefault("meta", self.metadata)
        return {
            "action": self.action_value(),
            "entity": str(self.entity) if self.entity is not None else None,
            "entity_id": self.entity_id,
            "old_value": dict(self.old_value) if self.old_value else None,
            "new_value": new_value,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "timestamp": self.timestamp,
        }


def request_ip(request: Any) -> Optional[str]:
    """Client address, preferring the first X-Forwarded-For hop."""
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


async def log_audit_event(
    audit_repo,
    actor_id: Optional[int],
    action: AuditAction,
    entity: AuditEntity,
    entity_id: Optional[int] = None,
    old_value: Optional[dict] = None,
    new_value: Optional[dict] = None,
    request: Optional[Any] = None,
):
    """Helper to log audit events with consistent formatting.

    Audit is best-effort: failures are logged and never propagate to the
    mutation that triggered them.

    Args:
        audit_repo: Audit repository instance (can be None, will skip logging)
        actor_id: ID of the user performing the action
        action: AuditAction enum value
        entity: AuditEntity enum value
        entity_id: ID of the affected record
        old_value: Snapshot before the change
        new_value: Snapshot after the change
        request: Optional FastAPI Request for IP/user-agent extraction
    """
    if audit_repo is None:
        return

    try:
        event = AuditEvent(
            action=action,
            entity=entity,
            entity_id=entity_id,
            old_value=old_value,
            new_value=new_value,
            ip_address=request_ip(request),
            user_agent=request.headers.get("user-agent") if request is not None else None,
        )
        await audit_repo.log_event(actor_id, event)

        try:
            from ..metrics import AUDIT_EVENTS

            if AUDIT_EVENTS is not None:
                AUDIT_EVENTS.labels(action=str(action), entity=str(entity)).inc()
        except Exception:
            pass  # Don't fail audit on metrics errors
    except Exception as e:
        from ..logging_config import get_logger

        get_logger(__name__).warning("audit_log_failed", action=str(action), error=str(e))


__all__ = [
    "AuditAction",
    "AuditEntity",
    "AuditEvent",
    "AuditActionLike",
    "log_audit_event",
    "request_ip",
]
