"""Authorization guard: cache-first permission checks for request handlers."""

from typing import Iterable, List, Optional

from ..domain.permission import PermissionRequirement, PermissionResolver
from ..exceptions import AuthorizationDenied, PermissionResolutionError
from ..infrastructure.repositories.caching import PermissionCache
from ..logging_config import get_logger
from ..metrics import PERMISSION_RESOLUTIONS, record_permission_check

logger = get_logger(__name__)


class AuthorizationGuard:
    """Answer "may user U do X?" from the cached effective permission set.

    ``has_*`` checks fail closed: a resolution error yields ``False``.
    ``require_*`` checks raise ``AuthorizationDenied`` on a negative decision
    and let ``PermissionResolutionError`` propagate, so a store outage is
    never reported as an allow.
    """

    def __init__(self, resolver: PermissionResolver, cache: Optional[PermissionCache] = None):
        self.resolver = resolver
        self.cache = cache

    async def get_user_permissions(self, user_id: int) -> List[str]:
        if self.cache is not None:
            cached = await self.cache.get(user_id)
            if cached is not None:
                return sorted(cached)

        try:
            slugs = await self.resolver.resolve(user_id)
        except PermissionResolutionError:
            _record_resolution("failure")
            logger.warning("permission_resolution_failed", extra={"user_id": user_id})
            raise
        _record_resolution("success")

        if self.cache is not None:
            await self.cache.set(user_id, slugs)
        return sorted(slugs)

    async def _granted(self, user_id: int, requirement: PermissionRequirement) -> bool:
        if requirement.is_pass_through:
            return True
        try:
            granted = set(await self.get_user_permissions(user_id))
        except PermissionResolutionError:
            record_permission_check(_label(requirement), "error")
            raise
        allowed = requirement.is_satisfied_by(granted)
        record_permission_check(_label(requirement), "granted" if allowed else "denied")
        return allowed

    async def check(self, user_id: int, requirement: PermissionRequirement) -> bool:
        """Evaluate ``requirement`` for the user; resolution errors yield False."""
        try:
            return await self._granted(user_id, requirement)
        except PermissionResolutionError:
            return False

    async def has_permission(self, user_id: int, slug: str) -> bool:
        return await self.check(user_id, PermissionRequirement.single(slug))

    async def has_any(self, user_id: int, slugs: Iterable[str]) -> bool:
        return await self.check(user_id, PermissionRequirement.any_of(slugs))

    async def has_all(self, user_id: int, slugs: Iterable[str]) -> bool:
        return await self.check(user_id, PermissionRequirement.all_of(slugs))

    async def enforce(self, user_id: int, requirement: PermissionRequirement) -> None:
        if not await self._granted(user_id, requirement):
            logger.info(
                "permission_denied",
                extra={"user_id": user_id, "mode": requirement.mode, "required": list(requirement.slugs)},
            )
            raise AuthorizationDenied(requirement, user_id=user_id)

    async def require_permission(self, user_id: int, slug: str) -> None:
        await self.enforce(user_id, PermissionRequirement.single(slug))

    async def require_any(self, user_id: int, slugs: Iterable[str]) -> None:
        await self.enforce(user_id, PermissionRequirement.any_of(slugs))

    async def require_all(self, user_id: int, slugs: Iterable[str]) -> None:
        await self.enforce(user_id, PermissionRequirement.all_of(slugs))


def _label(requirement: PermissionRequirement) -> str:
    if requirement.mode == "single":
        return requirement.slugs[0]
    return f"{requirement.mode}:{','.join(requirement.slugs)}"


def _record_resolution(result: str) -> None:
    try:
        if PERMISSION_RESOLUTIONS is not None:
            PERMISSION_RESOLUTIONS.labels(result=result).inc()
    except Exception:
        pass
