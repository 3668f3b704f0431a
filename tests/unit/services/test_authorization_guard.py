import pytest

from salesdash.domain.permission import (
    Permission,
    PermissionModule,
    PermissionRequirement,
    PermissionResolver,
    Role,
    UserAccess,
)
from salesdash.exceptions import AuthorizationDenied, PermissionResolutionError
from salesdash.infrastructure.cache.redis_client import InMemoryCache
from salesdash.infrastructure.repositories.caching import PermissionCache
from salesdash.services.authorization import AuthorizationGuard


class FakePort:
    def __init__(self, slugs=(), fail=False):
        self.slugs = list(slugs)
        self.fail = fail
        self.calls = 0

    async def find_user_with_roles_and_permissions(self, user_id):
        self.calls += 1
        if self.fail:
            raise ConnectionError("db down")
        perms = [Permission(id=None, slug=s, name=s, module=PermissionModule.DASHBOARD) for s in self.slugs]
        return UserAccess(user_id=user_id, roles=[Role(id=1, name="R", permissions=perms)])


class WriteOnlyBrokenCache(InMemoryCache):
    async def set(self, key, value, ex=None):
        raise ConnectionError("cache down")


def _guard(port, cache=None):
    return AuthorizationGuard(PermissionResolver(port), cache)


@pytest.mark.asyncio
async def test_cold_cache_resolves_and_populates():
    port = FakePort(["view_dashboard", "export_dashboard"])
    pc = PermissionCache(InMemoryCache())
    guard = _guard(port, pc)

    assert await guard.get_user_permissions(1) == ["export_dashboard", "view_dashboard"]
    assert port.calls == 1
    assert await pc.get(1) == ["export_dashboard", "view_dashboard"]


@pytest.mark.asyncio
async def test_warm_cache_skips_store():
    port = FakePort(["view_dashboard"])
    pc = PermissionCache(InMemoryCache())
    await pc.set(1, ["upload_omzet"])
    guard = _guard(port, pc)

    assert await guard.has_permission(1, "upload_omzet")
    assert not await guard.has_permission(1, "view_dashboard")
    assert port.calls == 0


@pytest.mark.asyncio
async def test_any_and_all_semantics():
    guard = _guard(FakePort(["upload_omzet", "view_upload_history"]))

    assert await guard.has_any(1, ["upload_retur", "upload_omzet"])
    assert not await guard.has_any(1, ["manage_users", "manage_roles"])
    assert await guard.has_all(1, ["upload_omzet", "view_upload_history"])
    assert not await guard.has_all(1, ["upload_omzet", "upload_retur"])


@pytest.mark.asyncio
async def test_user_without_permissions_is_denied_everything():
    guard = _guard(FakePort([]))
    assert not await guard.has_permission(1, "view_dashboard")
    with pytest.raises(AuthorizationDenied):
        await guard.require_permission(1, "view_dashboard")


@pytest.mark.asyncio
async def test_require_raises_denial_with_mode_and_slugs():
    guard = _guard(FakePort(["manage_users"]))

    await guard.require_permission(1, "manage_users")
    await guard.require_any(1, ["manage_roles", "manage_users"])

    with pytest.raises(AuthorizationDenied) as info:
        await guard.require_all(1, ["manage_users", "manage_roles"])
    assert info.value.mode == "all"
    assert info.value.required == ["manage_users", "manage_roles"]


@pytest.mark.asyncio
async def test_resolution_failure_fails_closed():
    guard = _guard(FakePort(fail=True), PermissionCache(InMemoryCache()))

    assert await guard.has_permission(1, "view_dashboard") is False
    assert await guard.has_any(1, ["view_dashboard"]) is False
    assert await guard.check(1, PermissionRequirement.all_of(["a"])) is False

    with pytest.raises(PermissionResolutionError):
        await guard.require_permission(1, "view_dashboard")


@pytest.mark.asyncio
async def test_cache_write_failure_still_answers():
    port = FakePort(["view_dashboard"])
    guard = _guard(port, PermissionCache(WriteOnlyBrokenCache()))

    assert await guard.has_permission(1, "view_dashboard")
    assert await guard.has_permission(1, "view_dashboard")
    # nothing was cached, so each check went to the store
    assert port.calls == 2


@pytest.mark.asyncio
async def test_pass_through_needs_no_lookup():
    port = FakePort(fail=True)
    guard = _guard(port)
    assert await guard.check(1, PermissionRequirement())
    assert port.calls == 0
