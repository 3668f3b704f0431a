from typing import Any, List, Optional, cast

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ...domain.permission import Role
from ...domain.user import User as DomainUser
from ...logging_config import get_logger
from ..db import models
from .errors import translate_db_errors

logger = get_logger(__name__)

_USER_FIELDS = {"email", "name", "hashed_password", "is_active"}


def _to_user(row: Any, with_roles: bool = True) -> DomainUser:
    roles = []
    if with_roles:
        roles = [
            Role(
                id=int(r.id),
                name=r.name,
                description=r.description,
                is_active=bool(r.is_active),
                is_system=bool(r.is_system),
            )
            for r in row.roles
        ]
    return DomainUser(
        id=int(row.id),
        email=cast(Any, row.email),
        name=cast(Any, row.name),
        hashed_password=cast(Any, row.hashed_password),
        is_active=bool(row.is_active),
        roles=roles,
        created_at=cast(Any, row.created_at),
        updated_at=cast(Any, row.updated_at),
    )


class SqlAlchemyUserRepository:
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    def _select_with_roles(self):
        return (
            select(models.UserModel)
            .options(selectinload(models.UserModel.roles))
            .execution_options(populate_existing=True)
        )

    @translate_db_errors
    async def create(self, user: DomainUser) -> DomainUser:
        logger.debug("creating_user", extra={"email": user.email})
        m = models.UserModel(
            email=user.email,
            name=user.name,
            hashed_password=user.hashed_password,
            is_active=user.is_active,
        )
        self.db_session.add(m)
        await self.db_session.flush()
        return _to_user(m, with_roles=False)

    @translate_db_errors
    async def get_by_id(self, id: int) -> Optional[DomainUser]:
        q = await self.db_session.execute(
            self._select_with_roles().where(models.UserModel.id == id)
        )
        row = q.scalars().first()
        return _to_user(row) if row else None

    @translate_db_errors
    async def get_by_email(self, email: str) -> Optional[DomainUser]:
        q = await self.db_session.execute(
            self._select_with_roles().where(models.UserModel.email == email)
        )
        row = q.scalars().first()
        return _to_user(row) if row else None

    @translate_db_errors
    async def list(self) -> List[DomainUser]:
        q = await self.db_session.execute(
            self._select_with_roles().order_by(models.UserModel.created_at.desc(), models.UserModel.id.desc())
        )
        return [_to_user(r) for r in q.scalars().all()]

    @translate_db_errors
    async def update(self, id: int, **fields) -> Optional[DomainUser]:
        m = await self.db_session.get(models.UserModel, id)
        if not m:
            return None
        for key, value in fields.items():
            if key not in _USER_FIELDS:
                raise TypeError(f"unknown user field: {key}")
            setattr(m, key, value)
        await self.db_session.flush()
        return await self.get_by_id(id)

    @translate_db_errors
    async def delete(self, id: int) -> None:
        ur = models.user_roles
        await self.db_session.execute(delete(ur).where(ur.c.user_id == id))
        m = await self.db_session.get(models.UserModel, id)
        if m is not None:
            await self.db_session.delete(m)
        await self.db_session.flush()
        logger.info("user_deleted", extra={"user_id": id})
