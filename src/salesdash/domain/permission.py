from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Iterable, List, Optional, Protocol, Sequence

from ..exceptions import PermissionResolutionError, ValidationError


class PermissionModule(StrEnum):
    """Closed set of categories used to group permissions in the admin UI."""

    DASHBOARD = "DASHBOARD"
    UPLOAD = "UPLOAD"
    SETTINGS = "SETTINGS"
    AUDIT = "AUDIT"
    EXPORT = "EXPORT"

    @classmethod
    def parse(cls, value: object) -> "PermissionModule":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            raise ValidationError("Invalid module") from None


def normalize_slug(slug: str) -> str:
    return slug.strip().lower()


def normalize_role_name(name: str) -> str:
    return name.strip().upper()


@dataclass
class Permission:
    id: Optional[int]
    slug: str
    name: str
    module: PermissionModule
    description: str = ""
    is_system: bool = False
    role_count: int = 0
    created_at: Optional[datetime.datetime] = None


@dataclass
class Role:
    id: Optional[int]
    name: str
    description: Optional[str] = None
    is_active: bool = True
    is_system: bool = False
    permissions: List[Permission] = field(default_factory=list)
    user_count: int = 0
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    @property
    def permission_slugs(self) -> List[str]:
        return [p.slug for p in self.permissions]


@dataclass
class UserAccess:
    """A user together with every role assignment and the roles' permissions."""

    user_id: int
    is_active: bool = True
    roles: List[Role] = field(default_factory=list)


@dataclass(frozen=True)
class PermissionRequirement:
    """What a guard or gate demands: one slug, any of several, or all of several.

    ``mode`` is ``"single"``, ``"any"``, ``"all"`` or ``"none"``; the latter
    allows unconditionally.
    """

    mode: str = "none"
    slugs: tuple[str, ...] = ()

    @classmethod
    def single(cls, slug: str) -> "PermissionRequirement":
        return cls("single", (slug,))

    @classmethod
    def any_of(cls, slugs: Iterable[str]) -> "PermissionRequirement":
        return cls("any", tuple(slugs))

    @classmethod
    def all_of(cls, slugs: Iterable[str]) -> "PermissionRequirement":
        return cls("all", tuple(slugs))

    @classmethod
    def from_options(
        cls,
        permission: Optional[str] = None,
        any_permissions: Optional[Sequence[str]] = None,
        all_permissions: Optional[Sequence[str]] = None,
    ) -> "PermissionRequirement":
        """Build a requirement from gate-style keyword options.

        At most one option may be supplied. Empty lists count as not supplied.
        """
        supplied = [
            opt for opt in (permission, any_permissions, all_permissions) if opt
        ]
        if len(supplied) > 1:
            raise ValueError("configure only one of permission, any_permissions, all_permissions")
        if permission:
            return cls.single(permission)
        if any_permissions:
            return cls.any_of(any_permissions)
        if all_permissions:
            return cls.all_of(all_permissions)
        return cls()

    @property
    def is_pass_through(self) -> bool:
        return self.mode == "none"

    def is_satisfied_by(self, granted: Iterable[str]) -> bool:
        have = granted if isinstance(granted, (set, frozenset)) else set(granted)
        if self.mode == "single":
            return self.slugs[0] in have
        if self.mode == "any":
            return any(s in have for s in self.slugs)
        if self.mode == "all":
            return all(s in have for s in self.slugs)
        return True

    def describe(self) -> str:
        if self.mode == "single":
            return f"Permission '{self.slugs[0]}' required"
        if self.mode == "any":
            return f"At least one of these permissions required: {', '.join(self.slugs)}"
        if self.mode == "all":
            return f"All of these permissions required: {', '.join(self.slugs)}"
        return "No permission required"


class UserAccessPort(Protocol):
    async def find_user_with_roles_and_permissions(self, user_id: int) -> Optional[UserAccess]: ...


class PermissionResolver:
    """Compute the authoritative effective permission set straight from the store.

    The result is the union of permission slugs over every role assigned to the
    user. Missing users and users without roles resolve to the empty set.
    """

    def __init__(self, port: UserAccessPort):
        self.port = port

    async def resolve(self, user_id: int) -> frozenset[str]:
        try:
            access = await self.port.find_user_with_roles_and_permissions(user_id)
        except PermissionResolutionError:
            raise
        except Exception as e:
            raise PermissionResolutionError(user_id) from e
        if access is None:
            return frozenset()
        return frozenset(slug for role in access.roles for slug in role.permission_slugs)


__all__ = [
    "PermissionModule",
    "Permission",
    "Role",
    "UserAccess",
    "PermissionRequirement",
    "PermissionResolver",
    "normalize_slug",
    "normalize_role_name",
]
