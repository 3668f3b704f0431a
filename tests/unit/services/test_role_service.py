import pytest

from salesdash.exceptions import (
    DuplicateError,
    NotFoundError,
    ReferencedRecordError,
    SystemRecordError,
    ValidationError,
)
from salesdash.infrastructure.repositories import get_repositories
from salesdash.services.role_service import RoleService

from tests.helpers import create_user_with_roles


@pytest.fixture
async def role_env(session_factory, seeded, permission_cache):
    async with session_factory() as session:
        repos = get_repositories(session, permission_cache=permission_cache)
        yield RoleService(repos["permissions"], repos["audit"]), repos, seeded


@pytest.mark.asyncio
async def test_create_role_upper_cases_and_links_permissions(role_env):
    svc, repos, seeded = role_env
    perm_ids = [seeded["permissions"]["view_dashboard"], seeded["permissions"]["upload_omzet"]]

    role = await svc.create_role(" sales lead ", "Leads", perm_ids, actor_id=seeded["admin_id"])

    assert role.name == "SALES LEAD"
    assert role.is_system is False
    assert sorted(role.permission_slugs) == ["upload_omzet", "view_dashboard"]
    logs = await repos["audit"].list_events(entity="Role", entity_id=role.id)
    assert logs[0]["action"] == "CREATE_ROLE"


@pytest.mark.asyncio
async def test_create_role_rejects_duplicate_and_unknown_permissions(role_env):
    svc, _, _ = role_env
    with pytest.raises(DuplicateError):
        await svc.create_role("manager")
    with pytest.raises(ValidationError):
        await svc.create_role("AUDITOR", permission_ids=[999999])
    with pytest.raises(ValidationError):
        await svc.create_role("   ")
    # nothing half-created
    assert await svc.store.get_role_by_name("AUDITOR") is None


@pytest.mark.asyncio
async def test_list_roles_puts_system_roles_first(role_env):
    svc, _, _ = role_env
    await svc.create_role("AAA CUSTOM")
    roles = await svc.list_roles()
    assert roles[-1].name == "AAA CUSTOM"
    assert all(r.is_system for r in roles[:-1])


@pytest.mark.asyncio
async def test_system_roles_are_immutable(role_env):
    svc, _, seeded = role_env
    admin_role = seeded["roles"]["ADMINISTRATOR"]
    before = await svc.get_role(admin_role)

    with pytest.raises(SystemRecordError):
        await svc.update_role(admin_role, permission_ids=[])
    with pytest.raises(SystemRecordError):
        await svc.delete_role(admin_role)

    after = await svc.get_role(admin_role)
    assert sorted(after.permission_slugs) == sorted(before.permission_slugs)


@pytest.mark.asyncio
async def test_update_role_replaces_permission_set(role_env):
    svc, _, seeded = role_env
    perms = seeded["permissions"]
    role = await svc.create_role("ANALYST", permission_ids=[perms["view_dashboard"]])

    updated = await svc.update_role(
        role.id, description="Reads exports", permission_ids=[perms["export_dashboard"]]
    )

    assert updated.description == "Reads exports"
    assert updated.permission_slugs == ["export_dashboard"]


@pytest.mark.asyncio
async def test_update_role_rejects_taken_name(role_env):
    svc, _, _ = role_env
    role = await svc.create_role("ANALYST")
    with pytest.raises(DuplicateError):
        await svc.update_role(role.id, name="uploader")


@pytest.mark.asyncio
async def test_delete_role_refused_while_assigned(role_env, session_factory):
    svc, _, _ = role_env
    role = await svc.create_role("TEMP")
    await create_user_with_roles(session_factory, "temp@example.com", [role.id])

    with pytest.raises(ReferencedRecordError) as info:
        await svc.delete_role(role.id)
    assert info.value.references == 1
    assert "1 user(s)" in info.value.message
    assert (await svc.get_role(role.id)).user_count == 1


@pytest.mark.asyncio
async def test_delete_unassigned_role(role_env):
    svc, _, _ = role_env
    role = await svc.create_role("TEMP")
    await svc.delete_role(role.id)
    with pytest.raises(NotFoundError):
        await svc.get_role(role.id)
