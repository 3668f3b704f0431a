from typing import Any, Dict, List, Optional

from ..domain.audit import AuditAction, AuditEntity, log_audit_event
from ..domain.permission import Permission, PermissionModule, normalize_slug
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


def permission_snapshot(permission: Permission) -> Dict[str, Any]:
    return {
        "id": permission.id,
        "slug": permission.slug,
        "name": permission.name,
        "description": permission.description,
        "module": str(permission.module),
    }


class PermissionService:
    def __init__(self, store: PermissionStore, audit_repo: Optional[AuditRepository] = None):
        self.store = store
        self.audit_repo = audit_repo

    async def list_grouped(self) -> Dict[PermissionModule, List[Permission]]:
        return await self.store.find_permissions_by_module()

    async def get_permission(self, permission_id: int) -> Permission:
        permission = await self.store.get_permission(permission_id)
        if permission is None:
            raise NotFoundError("Permission not found")
        return permission

    @staticmethod
    def _validate(slug: str, name: str, module: Any) -> tuple[str, str, PermissionModule]:
        if not slug or not slug.strip() or not name or not name.strip() or not module:
            raise ValidationError("Slug, name, and module are required")
        return normalize_slug(slug), name.strip(), PermissionModule.parse(module)

    async def create_permission(
        self,
        slug: str,
        name: str,
        module: Any,
        description: str = "",
        actor_id: Optional[int] = None,
        request: Any = None,
    ) -> Permission:
        slug, name, parsed_module = self._validate(slug, name, module)

        async with unit_of_work(self.store):
            if await self.store.get_permission_by_slug(slug) is not None:
                raise DuplicateError("Permission slug already exists")
            # custom permissions are never system
            created = await self.store.create_permission(
                slug, name, parsed_module, description=description or "", is_system=False
            )

        logger.info("permission_created", extra={"permission_id": created.id, "slug": slug})
        await log_audit_event(
            self.audit_repo,
            actor_id,
            AuditAction.CREATE_PERMISSION,
            AuditEntity.PERMISSION,
            entity_id=created.id,
            new_value=permission_snapshot(created),
            request=request,
        )
        return created

    async def update_permission(
        self,
        permission_id: int,
        slug: str,
        name: str,
        module: Any,
        description: Optional[str] = None,
        actor_id: Optional[int] = None,
        request: Any = None,
    ) -> Permission:
        existing = await self.get_permission(permission_id)
        if existing.is_system:
            raise SystemRecordError("Cannot update system permission")
        slug, name, parsed_module = self._validate(slug, name, module)

        fields: Dict[str, Any] = {"slug": slug, "name": name, "module": parsed_module}
        if description is not None:
            fields["description"] = description

        async with unit_of_work(self.store):
            if slug != existing.slug and await self.store.get_permission_by_slug(slug) is not None:
                raise DuplicateError("Permission slug already exists")
            updated = await self.store.update_permission(permission_id, **fields)

        logger.info("permission_updated", extra={"permission_id": permission_id, "slug": slug})
        await log_audit_event(
            self.audit_repo,
            actor_id,
            AuditAction.UPDATE_PERMISSION,
            AuditEntity.PERMISSION,
            entity_id=permission_id,
            old_value=permission_snapshot(existing),
            new_value=permission_snapshot(updated),
            request=request,
        )
        return updated

    async def delete_permission(
        self, permission_id: int, actor_id: Optional[int] = None, request: Any = None
    ) -> None:
        existing = await self.get_permission(permission_id)
        if existing.is_system:
            raise SystemRecordError("Cannot delete system permission")

        async with unit_of_work(self.store):
            refs = await self.store.count_roles_referencing_permission(permission_id)
            if refs > 0:
                raise ReferencedRecordError(
                    f"Cannot delete permission. It is assigned to {refs} role(s)",
                    references=refs,
                )
            await self.store.delete_permission(permission_id)

        logger.info("permission_deleted", extra={"permission_id": permission_id})
        await log_audit_event(
            self.audit_repo,
            actor_id,
            AuditAction.DELETE_PERMISSION,
            AuditEntity.PERMISSION,
            entity_id=permission_id,
            old_value=permission_snapshot(existing),
            request=request,
        )
