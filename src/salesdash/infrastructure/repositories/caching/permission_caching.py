"""Caching decorator for the permission store.

Keys:
  perm:user:{user_id}  -> sorted list of permission slugs
"""

from typing import Iterable, List, Optional, Set

from ....logging_config import get_logger
from ....ports.cache import CacheClient

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 300


def _record_invalidation(scope: str) -> None:
    try:
        from ....metrics import CACHE_INVALIDATIONS

        if CACHE_INVALIDATIONS is not None:
            CACHE_INVALIDATIONS.labels(scope=scope).inc()
    except Exception:
        pass


class PermissionCache:
    """Per-user effective permission sets with a TTL.

    Read and write failures degrade to a miss; the cache never decides an
    authorization outcome on its own.
    """

    KEY_PREFIX = "perm:user:"

    def __init__(self, cache: CacheClient, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.cache = cache
        self.ttl = int(ttl_seconds)

    def key(self, user_id: int) -> str:
        return f"{self.KEY_PREFIX}{user_id}"

    async def get(self, user_id: int) -> Optional[List[str]]:
        try:
            v = await self.cache.get(self.key(user_id))
        except Exception as e:
            logger.debug("user_perm_cache_get_failed", extra={"user_id": user_id, "error": str(e)})
            return None
        if not isinstance(v, list):
            return None
        return [str(s) for s in v]

    async def set(
        self, user_id: int, slugs: Iterable[str], ttl_seconds: Optional[int] = None
    ) -> None:
        ttl = self.ttl if ttl_seconds is None else int(ttl_seconds)
        try:
            await self.cache.set(self.key(user_id), sorted(set(slugs)), ex=ttl)
        except Exception as e:
            logger.debug("user_perm_cache_set_failed", extra={"user_id": user_id, "error": str(e)})

    async def invalidate(self, user_id: int) -> None:
        try:
            await self.cache.delete(self.key(user_id))
            _record_invalidation("user")
        except Exception as e:
            logger.warning(
                "user_perm_cache_invalidate_failed", extra={"user_id": user_id, "error": str(e)}
            )

    async def invalidate_all(self) -> None:
        try:
            removed = await self.cache.delete_pattern(f"{self.KEY_PREFIX}*")
            _record_invalidation("all")
            logger.debug("perm_cache_invalidated_all", extra={"removed": removed})
        except Exception as e:
            logger.warning("perm_cache_invalidate_all_failed", extra={"error": str(e)})


class CachingPermissionStore:
    """Wrap a ``PermissionStore`` and invalidate cached sets after commit.

    Mutations record which cached entries they can affect. The entries are
    dropped only once ``commit()`` succeeds; ``rollback()`` forgets them.
    Link changes for a user touch that user's entry alone; anything that
    edits a role or permission definition clears every entry.
    """

    def __init__(self, inner, permission_cache: PermissionCache):
        self.inner = inner
        self.permission_cache = permission_cache
        self._pending_users: Set[int] = set()
        self._pending_all = False

    # user-role links

    async def create_user_role(self, user_id: int, role_id: int) -> None:
        await self.inner.create_user_role(user_id, role_id)
        self._pending_users.add(int(user_id))

    async def delete_user_role(self, user_id: int, role_id: int) -> None:
        await self.inner.delete_user_role(user_id, role_id)
        self._pending_users.add(int(user_id))

    # role / permission definitions

    async def create_role(self, *args, **kwargs):
        res = await self.inner.create_role(*args, **kwargs)
        self._pending_all = True
        return res

    async def update_role(self, role_id: int, **fields):
        res = await self.inner.update_role(role_id, **fields)
        self._pending_all = True
        return res

    async def delete_role(self, role_id: int) -> None:
        await self.inner.delete_role(role_id)
        self._pending_all = True

    async def create_permission(self, *args, **kwargs):
        res = await self.inner.create_permission(*args, **kwargs)
        self._pending_all = True
        return res

    async def update_permission(self, permission_id: int, **fields):
        res = await self.inner.update_permission(permission_id, **fields)
        self._pending_all = True
        return res

    async def delete_permission(self, permission_id: int) -> None:
        await self.inner.delete_permission(permission_id)
        self._pending_all = True

    async def create_role_permission(self, role_id: int, permission_id: int) -> None:
        await self.inner.create_role_permission(role_id, permission_id)
        self._pending_all = True

    async def delete_role_permission(self, role_id: int, permission_id: int) -> None:
        await self.inner.delete_role_permission(role_id, permission_id)
        self._pending_all = True

    async def replace_role_permissions(self, role_id: int, permission_ids: List[int]) -> None:
        await self.inner.replace_role_permissions(role_id, permission_ids)
        self._pending_all = True

    # unit of work

    async def commit(self) -> None:
        pending_all, pending_users = self._pending_all, self._pending_users
        self._pending_all, self._pending_users = False, set()
        await self.inner.commit()
        if pending_all:
            await self.permission_cache.invalidate_all()
            return
        for user_id in sorted(pending_users):
            await self.permission_cache.invalidate(user_id)

    async def rollback(self) -> None:
        self._pending_all, self._pending_users = False, set()
        await self.inner.rollback()

    def __getattr__(self, name):
        """Delegate reads to the inner store."""
        return getattr(self.inner, name)
