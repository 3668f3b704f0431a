from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ...domain.permission import Permission, PermissionModule, Role, UserAccess
from ...logging_config import get_logger
from ..db import models
from .errors import translate_db_errors

logger = get_logger(__name__)

_ROLE_FIELDS = {"name", "description", "is_active"}
_PERMISSION_FIELDS = {"slug", "name", "description", "module"}


def _to_permission(m: Any, role_count: int = 0) -> Permission:
    return Permission(
        id=int(m.id),
        slug=m.slug,
        name=m.name,
        module=PermissionModule(m.module),
        description=m.description or "",
        is_system=bool(m.is_system),
        role_count=int(role_count),
        created_at=m.created_at,
    )


def _to_role(m: Any, user_count: int = 0) -> Role:
    return Role(
        id=int(m.id),
        name=m.name,
        description=m.description,
        is_active=bool(m.is_active),
        is_system=bool(m.is_system),
        permissions=[_to_permission(p) for p in m.permissions],
        user_count=int(user_count),
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


class SqlAlchemyPermissionStore:
    """RBAC tables behind the ``PermissionStore`` port.

    Mutations only flush; ``commit``/``rollback`` close the unit of work.
    Reads use ``populate_existing`` so role/permission collections reflect
    link rows written earlier in the same session.
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    # -- reads -----------------------------------------------------------------

    @translate_db_errors
    async def find_user_with_roles_and_permissions(self, user_id: int) -> Optional[UserAccess]:
        q = await self.db_session.execute(
            select(models.UserModel)
            .where(models.UserModel.id == user_id)
            .options(selectinload(models.UserModel.roles).selectinload(models.RoleModel.permissions))
            .execution_options(populate_existing=True)
        )
        u = q.scalars().first()
        if not u:
            return None
        return UserAccess(
            user_id=int(u.id),
            is_active=bool(u.is_active),
            roles=[_to_role(r) for r in u.roles],
        )

    @translate_db_errors
    async def find_permissions_by_module(self) -> Dict[PermissionModule, List[Permission]]:
        rp = models.role_permissions
        q = await self.db_session.execute(
            select(models.PermissionModel, func.count(rp.c.role_id))
            .outerjoin(rp, rp.c.permission_id == models.PermissionModel.id)
            .group_by(models.PermissionModel.id)
            .order_by(models.PermissionModel.module, models.PermissionModel.slug)
        )
        grouped: Dict[PermissionModule, List[Permission]] = {}
        for m, role_count in q.all():
            perm = _to_permission(m, role_count)
            grouped.setdefault(perm.module, []).append(perm)
        # keep the enum's declaration order for stable output
        return {mod: grouped[mod] for mod in PermissionModule if mod in grouped}

    async def _user_counts(self, role_ids: List[int]) -> Dict[int, int]:
        if not role_ids:
            return {}
        ur = models.user_roles
        q = await self.db_session.execute(
            select(ur.c.role_id, func.count(ur.c.user_id))
            .where(ur.c.role_id.in_(role_ids))
            .group_by(ur.c.role_id)
        )
        return {int(role_id): int(n) for role_id, n in q.all()}

    async def _load_role(self, *criteria) -> Optional[Any]:
        q = await self.db_session.execute(
            select(models.RoleModel)
            .where(*criteria)
            .options(selectinload(models.RoleModel.permissions))
            .execution_options(populate_existing=True)
        )
        return q.scalars().first()

    @translate_db_errors
    async def get_role(self, role_id: int) -> Optional[Role]:
        m = await self._load_role(models.RoleModel.id == role_id)
        if not m:
            return None
        counts = await self._user_counts([int(m.id)])
        return _to_role(m, counts.get(int(m.id), 0))

    @translate_db_errors
    async def get_role_by_name(self, name: str) -> Optional[Role]:
        m = await self._load_role(models.RoleModel.name == name)
        if not m:
            return None
        counts = await self._user_counts([int(m.id)])
        return _to_role(m, counts.get(int(m.id), 0))

    @translate_db_errors
    async def list_roles(self) -> List[Role]:
        q = await self.db_session.execute(
            select(models.RoleModel)
            .options(selectinload(models.RoleModel.permissions))
            .order_by(models.RoleModel.is_system.desc(), models.RoleModel.name)
            .execution_options(populate_existing=True)
        )
        rows = q.scalars().all()
        counts = await self._user_counts([int(r.id) for r in rows])
        return [_to_role(r, counts.get(int(r.id), 0)) for r in rows]

    @translate_db_errors
    async def count_users_with_role(self, role_id: int) -> int:
        ur = models.user_roles
        q = await self.db_session.execute(
            select(func.count()).select_from(ur).where(ur.c.role_id == role_id)
        )
        return int(q.scalar_one())

    @translate_db_errors
    async def get_permission(self, permission_id: int) -> Optional[Permission]:
        m = await self.db_session.get(models.PermissionModel, permission_id)
        if not m:
            return None
        return _to_permission(m, await self.count_roles_referencing_permission(permission_id))

    @translate_db_errors
    async def get_permission_by_slug(self, slug: str) -> Optional[Permission]:
        q = await self.db_session.execute(
            select(models.PermissionModel).where(models.PermissionModel.slug == slug)
        )
        m = q.scalars().first()
        return _to_permission(m) if m else None

    @translate_db_errors
    async def get_permissions_by_ids(self, permission_ids: List[int]) -> List[Permission]:
        """Bulk fetch permissions by id to avoid N+1 queries."""
        if not permission_ids:
            return []
        q = await self.db_session.execute(
            select(models.PermissionModel).where(models.PermissionModel.id.in_(permission_ids))
        )
        return [_to_permission(m) for m in q.scalars().all()]

    @translate_db_errors
    async def count_roles_referencing_permission(self, permission_id: int) -> int:
        rp = models.role_permissions
        q = await self.db_session.execute(
            select(func.count()).select_from(rp).where(rp.c.permission_id == permission_id)
        )
        return int(q.scalar_one())

    @translate_db_errors
    async def list_user_role_ids(self, user_id: int) -> List[int]:
        ur = models.user_roles
        q = await self.db_session.execute(
            select(ur.c.role_id).where(ur.c.user_id == user_id).order_by(ur.c.role_id)
        )
        return [int(r[0]) for r in q.all()]

    # -- roles -----------------------------------------------------------------

    @translate_db_errors
    async def create_role(
        self, name: str, description: Optional[str] = None, is_system: bool = False
    ) -> Role:
        m = models.RoleModel(name=name, description=description, is_system=is_system)
        self.db_session.add(m)
        await self.db_session.flush()
        logger.debug("role_created", extra={"role_id": m.id, "name": name})
        return Role(
            id=int(m.id),
            name=m.name,
            description=m.description,
            is_active=bool(m.is_active),
            is_system=bool(m.is_system),
            created_at=m.created_at,
            updated_at=m.updated_at,
        )

    @translate_db_errors
    async def update_role(self, role_id: int, **fields) -> Optional[Role]:
        m = await self.db_session.get(models.RoleModel, role_id)
        if not m:
            return None
        for key, value in fields.items():
            if key not in _ROLE_FIELDS:
                raise TypeError(f"unknown role field: {key}")
            setattr(m, key, value)
        await self.db_session.flush()
        return await self.get_role(role_id)

    @translate_db_errors
    async def delete_role(self, role_id: int) -> None:
        # link rows go first so SQLite without FK enforcement stays consistent too
        await self.db_session.execute(
            delete(models.user_roles).where(models.user_roles.c.role_id == role_id)
        )
        await self.db_session.execute(
            delete(models.role_permissions).where(models.role_permissions.c.role_id == role_id)
        )
        m = await self.db_session.get(models.RoleModel, role_id)
        if m is not None:
            await self.db_session.delete(m)
        await self.db_session.flush()

    # -- permissions -----------------------------------------------------------

    @translate_db_errors
    async def create_permission(
        self,
        slug: str,
        name: str,
        module: PermissionModule,
        description: str = "",
        is_system: bool = False,
    ) -> Permission:
        m = models.PermissionModel(
            slug=slug,
            name=name,
            module=str(module),
            description=description,
            is_system=is_system,
        )
        self.db_session.add(m)
        await self.db_session.flush()
        logger.debug("permission_created", extra={"permission_id": m.id, "slug": slug})
        return _to_permission(m)

    @translate_db_errors
    async def update_permission(self, permission_id: int, **fields) -> Optional[Permission]:
        m = await self.db_session.get(models.PermissionModel, permission_id)
        if not m:
            return None
        for key, value in fields.items():
            if key not in _PERMISSION_FIELDS:
                raise TypeError(f"unknown permission field: {key}")
            setattr(m, key, str(value) if key == "module" else value)
        await self.db_session.flush()
        return _to_permission(m, await self.count_roles_referencing_permission(permission_id))

    @translate_db_errors
    async def delete_permission(self, permission_id: int) -> None:
        rp = models.role_permissions
        await self.db_session.execute(delete(rp).where(rp.c.permission_id == permission_id))
        m = await self.db_session.get(models.PermissionModel, permission_id)
        if m is not None:
            await self.db_session.delete(m)
        await self.db_session.flush()

    # -- links -----------------------------------------------------------------

    @translate_db_errors
    async def create_user_role(self, user_id: int, role_id: int) -> None:
        ur = models.user_roles
        q = await self.db_session.execute(
            select(ur.c.id).where(ur.c.user_id == user_id, ur.c.role_id == role_id)
        )
        if q.first():
            return
        await self.db_session.execute(insert(ur).values(user_id=user_id, role_id=role_id))
        await self.db_session.flush()

    @translate_db_errors
    async def delete_user_role(self, user_id: int, role_id: int) -> None:
        ur = models.user_roles
        await self.db_session.execute(
            delete(ur).where(ur.c.user_id == user_id, ur.c.role_id == role_id)
        )
        await self.db_session.flush()

    @translate_db_errors
    async def create_role_permission(self, role_id: int, permission_id: int) -> None:
        rp = models.role_permissions
        q = await self.db_session.execute(
            select(rp.c.id).where(rp.c.role_id == role_id, rp.c.permission_id == permission_id)
        )
        if q.first():
            return
        await self.db_session.execute(
            insert(rp).values(role_id=role_id, permission_id=permission_id)
        )
        await self.db_session.flush()

    @translate_db_errors
    async def delete_role_permission(self, role_id: int, permission_id: int) -> None:
        rp = models.role_permissions
        await self.db_session.execute(
            delete(rp).where(rp.c.role_id == role_id, rp.c.permission_id == permission_id)
        )
        await self.db_session.flush()

    @translate_db_errors
    async def replace_role_permissions(self, role_id: int, permission_ids: List[int]) -> None:
        """Swap the role's whole permission set in one statement pair."""
        rp = models.role_permissions
        await self.db_session.execute(delete(rp).where(rp.c.role_id == role_id))
        unique_ids = list(dict.fromkeys(permission_ids))
        if unique_ids:
            await self.db_session.execute(
                insert(rp).values([{"role_id": role_id, "permission_id": pid} for pid in unique_ids])
            )
        await self.db_session.flush()

    # -- unit of work ----------------------------------------------------------

    @translate_db_errors
    async def commit(self) -> None:
        await self.db_session.commit()

    async def rollback(self) -> None:
        await self.db_session.rollback()
