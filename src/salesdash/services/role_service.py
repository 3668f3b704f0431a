from typing import Any, Dict, List, Optional

from ..domain.audit import AuditAction, AuditEntity, log_audit_event
from ..domain.permission import Role, normalize_role_name
from ..exceptions import (
    DuplicateError,
    NotFoundError,
    ReferencedRecordError,
    SystemRecordError,
    ValidationError,
)
from ..logging_config import get_logger
from ..ports.audit import AuditRepository
from ..ports.repositories import PermissionStore
from .transactions import unit_of_work

logger = get_logger(__name__)


def role_snapshot(role: Role) -> Dict[str, Any]:
    return {
        "id": role.id,
        "name": role.name,
        "description": role.description,
        "isActive": role.is_active,
        "permissions": role.permission_slugs,
    }


class RoleService:
    """Role administration. Every mutation commits or rolls back as a whole."""

    def __init__(self, store: PermissionStore, audit_repo: Optional[AuditRepository] = None):
        self.store = store
        self.audit_repo = audit_repo

    async def list_roles(self) -> List[Role]:
        return await self.store.list_roles()

    async def get_role(self, role_id: int) -> Role:
        role = await self.store.get_role(role_id)
        if role is None:
            raise NotFoundError("Role not found")
        return role

    async def _validate_permission_ids(self, permission_ids: List[int]) -> List[int]:
        unique_ids = list(dict.fromkeys(int(pid) for pid in permission_ids))
        found = {p.id for p in await self.store.get_permissions_by_ids(unique_ids)}
        missing = [pid for pid in unique_ids if pid not in found]
        if missing:
            raise ValidationError(f"Unknown permission id(s): {', '.join(map(str, missing))}")
        return unique_ids

    async def create_role(
        self,
        name: str,
        description: Optional[str] = None,
        permission_ids: Optional[List[int]] = None,
        actor_id: Optional[int] = None,
        request: Any = None,
    ) -> Role:
        if not name or not name.strip():
            raise ValidationError("Role name is required")
        normalized = normalize_role_name(name)

        async with unit_of_work(self.store):
            if await self.store.get_role_by_name(normalized) is not None:
                raise DuplicateError("Role name already in use")
            ids = await self._validate_permission_ids(permission_ids or [])
            created = await self.store.create_role(normalized, description, is_system=False)
            for pid in ids:
                await self.store.create_role_permission(created.id, pid)

        role = await self.get_role(created.id)
        logger.info("role_created", extra={"role_id": role.id, "name": role.name})
        await log_audit_event(
            self.audit_repo,
            actor_id,
            AuditAction.CREATE_ROLE,
            AuditEntity.ROLE,
            entity_id=role.id,
            new_value=role_snapshot(role),
            request=request,
        )
        return role

    async def update_role(
        self,
        role_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
        permission_ids: Optional[List[int]] = None,
        actor_id: Optional[int] = None,
        request: Any = None,
    ) -> Role:
        """Update a non-system role.

        ``permission_ids`` replaces the role's whole permission set when given.
        """
        existing = await self.get_role(role_id)
        if existing.is_system:
            raise SystemRecordError("System role cannot be modified")

        fields: Dict[str, Any] = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Role name is required")
            fields["name"] = normalize_role_name(name)
        if description is not None:
            fields["description"] = description
        if is_active is not None:
            fields["is_active"] = bool(is_active)

        async with unit_of_work(self.store):
            new_name = fields.get("name")
            if new_name is not None and new_name != existing.name:
                if await self.store.get_role_by_name(new_name) is not None:
                    raise DuplicateError("Role name already in use")
            if fields:
                await self.store.update_role(role_id, **fields)
            if permission_ids is not None:
                ids = await self._validate_permission_ids(permission_ids)
                await self.store.replace_role_permissions(role_id, ids)

        role = await self.get_role(role_id)
        logger.info("role_updated", extra={"role_id": role_id, "fields": sorted(fields)})
        await log_audit_event(
            self.audit_repo,
            actor_id,
            AuditAction.UPDATE_ROLE,
            AuditEntity.ROLE,
            entity_id=role_id,
            old_value=role_snapshot(existing),
            new_value=role_snapshot(role),
            request=request,
        )
        return role

    async def delete_role(
        self, role_id: int, actor_id: Optional[int] = None, request: Any = None
    ) -> None:
        existing = await self.get_role(role_id)
        if existing.is_system:
            raise SystemRecordError("System role cannot be deleted")

        async with unit_of_work(self.store):
            users = await self.store.count_users_with_role(role_id)
            if users > 0:
                raise ReferencedRecordError(
                    f"Role is still assigned to {users} user(s). Remove the assignments first.",
                    references=users,
                )
            await self.store.delete_role(role_id)

        logger.info("role_deleted", extra={"role_id": role_id, "name": existing.name})
        await log_audit_event(
            self.audit_repo,
            actor_id,
            AuditAction.DELETE_ROLE,
            AuditEntity.ROLE,
            entity_id=role_id,
            old_value=role_snapshot(existing),
            request=request,
        )
