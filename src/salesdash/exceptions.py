"""Error taxonomy for the access-control core.

Callers branch on the exception type, never on message text. The HTTP layer
maps each family to a status code in ``wiring.create_app``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .domain.permission import PermissionRequirement


class AccessControlError(Exception):
    """Base class for every error raised by the access-control core."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message}


class AuthenticationError(AccessControlError):
    """No (valid) identity is attached to the request."""

    status_code = 401


class AuthorizationDenied(AccessControlError):
    """The acting user lacks the required permission(s)."""

    status_code = 403

    def __init__(self, requirement: "PermissionRequirement", user_id: Optional[int] = None):
        super().__init__(f"Forbidden: {requirement.describe()}")
        self.requirement = requirement
        self.user_id = user_id

    @property
    def required(self) -> list[str]:
        return list(self.requirement.slugs)

    @property
    def mode(self) -> str:
        return self.requirement.mode

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["required"] = self.required
        data["mode"] = self.mode
        return data


class NotFoundError(AccessControlError):
    """A referenced user, role or permission does not exist."""

    status_code = 404


class ValidationError(AccessControlError):
    """Input rejected before touching the store (bad module, missing field)."""

    status_code = 400


class ConflictError(AccessControlError):
    """The mutation would break an invariant; nothing was committed."""

    status_code = 409


class DuplicateError(ConflictError):
    """Unique slug, role name or email already taken."""


class SystemRecordError(ConflictError):
    """Attempt to modify or delete a system-flagged role or permission."""


class ReferencedRecordError(ConflictError):
    """Record is still referenced (permission by roles, role by users)."""

    def __init__(self, message: str, references: int):
        super().__init__(message)
        self.references = references


class StoreUnavailableError(AccessControlError):
    """The data-access collaborator failed (connection error, timeout)."""

    status_code = 503


class PermissionResolutionError(StoreUnavailableError):
    """The resolver could not compute an effective permission set."""

    def __init__(self, user_id: int, message: str = ""):
        super().__init__(message or f"Unable to resolve permissions for user {user_id}")
        self.user_id = user_id


__all__ = [
    "AccessControlError",
    "AuthenticationError",
    "AuthorizationDenied",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "SystemRecordError",
    "ReferencedRecordError",
    "StoreUnavailableError",
    "PermissionResolutionError",
]
