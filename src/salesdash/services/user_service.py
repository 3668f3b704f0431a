import re
from typing import Any, Dict, List, Optional

from passlib.context import CryptContext

from ..domain.audit import AuditAction, AuditEntity, log_audit_event
from ..domain.user import User
from ..exceptions import DuplicateError, NotFoundError, ValidationError
from ..logging_config import get_logger
from ..ports.audit import AuditRepository
from ..ports.repositories import PermissionStore, UserRepository
from .transactions import unit_of_work

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def user_snapshot(user: User) -> Dict[str, Any]:
    # never include the password hash
    return {
        "email": user.email,
        "name": user.name,
        "isActive": user.is_active,
        "roles": user.role_names,
    }


class UserService:
    """User administration and credential checks.

    Role links are written through the permission store so that a caching
    store invalidates the user's cached permission set on commit.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        store: PermissionStore,
        audit_repo: Optional[AuditRepository] = None,
    ):
        self.user_repo = user_repo
        self.store = store
        self.audit_repo = audit_repo

    async def list_users(self) -> List[User]:
        return await self.user_repo.list()

    async def get_user(self, user_id: int) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def _validate_email(self, email: str, current_id: Optional[int] = None) -> str:
        normalized = normalize_email(email)
        if not EMAIL_RE.match(normalized):
            raise ValidationError("Invalid email format")
        existing = await self.user_repo.get_by_email(normalized)
        if existing is not None and existing.id != current_id:
            raise DuplicateError("Email already exists")
        return normalized

    async def _ensure_roles_exist(self, role_ids: List[int]) -> List[int]:
        unique_ids = list(dict.fromkeys(int(r) for r in role_ids))
        for role_id in unique_ids:
            if await self.store.get_role(role_id) is None:
                raise NotFoundError("Role not found")
        return unique_ids

    async def create_user(
        self,
        email: str,
        name: str,
        password: str,
        role_ids: List[int],
        is_active: bool = True,
        actor_id: Optional[int] = None,
        request: Any = None,
    ) -> User:
        if not email or not name or not name.strip() or not password or not role_ids:
            raise ValidationError("Email, name, password, and role are required")

        async with unit_of_work(self.store):
            normalized = await self._validate_email(email)
            ids = await self._ensure_roles_exist(role_ids)
            created = await self.user_repo.create(
                User(
                    id=None,
                    email=normalized,
                    name=name.strip(),
                    hashed_password=pwd_context.hash(password),
                    is_active=is_active,
                )
            )
            for role_id in ids:
                await self.store.create_user_role(created.id, role_id)

        user = await self.get_user(created.id)
        logger.info("user_created", extra={"user_id": user.id, "email": user.email})
        await log_audit_event(
            self.audit_repo,
            actor_id,
            AuditAction.CREATE_USER,
            AuditEntity.USER,
            entity_id=user.id,
            new_value={"id": user.id, **user_snapshot(user)},
            request=request,
        )
        return user

    async def update_user(
        self,
        user_id: int,
        email: Optional[str] = None,
        name: Optional[str] = None,
        password: Optional[str] = None,
        is_active: Optional[bool] = None,
        role_ids: Optional[List[int]] = None,
        actor_id: Optional[int] = None,
        request: Any = None,
    ) -> User:
        """Update profile fields; ``role_ids`` replaces every role assignment."""
        existing = await self.get_user(user_id)

        async with unit_of_work(self.store):
            fields: Dict[str, Any] = {}
            if email and normalize_email(email) != existing.email:
                fields["email"] = await self._validate_email(email, current_id=user_id)
            if name:
                fields["name"] = name.strip()
            if password:
                fields["hashed_password"] = pwd_context.hash(password)
            if is_active is not None:
                fields["is_active"] = bool(is_active)
            if fields:
                await self.user_repo.update(user_id, **fields)

            if role_ids is not None:
                wanted = await self._ensure_roles_exist(role_ids)
                current = await self.store.list_user_role_ids(user_id)
                for role_id in current:
                    if role_id not in wanted:
                        await self.store.delete_user_role(user_id, role_id)
                for role_id in wanted:
                    if role_id not in current:
                        await self.store.create_user_role(user_id, role_id)

        user = await self.get_user(user_id)
        logger.info("user_updated", extra={"user_id": user_id})
        await log_audit_event(
            self.audit_repo,
            actor_id,
            AuditAction.UPDATE_USER,
            AuditEntity.USER,
            entity_id=user_id,
            old_value=user_snapshot(existing),
            new_value=user_snapshot(user),
            request=request,
        )
        return user

    async def delete_user(
        self, user_id: int, actor_id: Optional[int] = None, request: Any = None
    ) -> None:
        if actor_id is not None and int(user_id) == int(actor_id):
            raise ValidationError("Cannot delete your own account")
        existing = await self.get_user(user_id)

        async with unit_of_work(self.store):
            for role_id in await self.store.list_user_role_ids(user_id):
                await self.store.delete_user_role(user_id, role_id)
            await self.user_repo.delete(user_id)

        logger.info("user_deleted", extra={"user_id": user_id})
        await log_audit_event(
            self.audit_repo,
            actor_id,
            AuditAction.DELETE_USER,
            AuditEntity.USER,
            entity_id=user_id,
            old_value=user_snapshot(existing),
            request=request,
        )

    async def assign_role(
        self, user_id: int, role_id: int, actor_id: Optional[int] = None, request: Any = None
    ) -> User:
        await self.get_user(user_id)
        async with unit_of_work(self.store):
            await self._ensure_roles_exist([role_id])
            await self.store.create_user_role(user_id, role_id)

        user = await self.get_user(user_id)
        await log_audit_event(
            self.audit_repo,
            actor_id,
            AuditAction.ASSIGN_ROLE,
            AuditEntity.USER,
            entity_id=user_id,
            new_value={"roleId": role_id, "roles": user.role_names},
            request=request,
        )
        return user

    async def revoke_role(
        self, user_id: int, role_id: int, actor_id: Optional[int] = None, request: Any = None
    ) -> User:
        await self.get_user(user_id)
        async with unit_of_work(self.store):
            await self._ensure_roles_exist([role_id])
            await self.store.delete_user_role(user_id, role_id)

        user = await self.get_user(user_id)
        await log_audit_event(
            self.audit_repo,
            actor_id,
            AuditAction.REVOKE_ROLE,
            AuditEntity.USER,
            entity_id=user_id,
            old_value={"roleId": role_id},
            new_value={"roles": user.role_names},
            request=request,
        )
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user when the credentials match an active account."""
        user = await self.user_repo.get_by_email(normalize_email(email))
        logger.debug("authenticate_lookup", extra={"email": email, "user_found": bool(user)})
        if not user:
            return None
        # Ensure the user account is active before verifying password
        if not user.is_active:
            return None
        if not pwd_context.verify(password, user.hashed_password):
            logger.debug("password_verify_failed", extra={"email": email})
            return None
        return user
