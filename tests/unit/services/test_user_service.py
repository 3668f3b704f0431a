import pytest

from salesdash.exceptions import DuplicateError, NotFoundError, ValidationError
from salesdash.infrastructure.repositories import get_repositories
from salesdash.services.user_service import UserService, pwd_context

from tests.helpers import ADMIN_EMAIL, TEST_PASSWORD


@pytest.fixture
async def user_env(session_factory, seeded, permission_cache):
    async with session_factory() as session:
        repos = get_repositories(session, permission_cache=permission_cache)
        yield UserService(repos["users"], repos["permissions"], repos["audit"]), repos, seeded


@pytest.mark.asyncio
async def test_create_user_hashes_password_and_assigns_roles(user_env):
    svc, repos, seeded = user_env
    user = await svc.create_user(
        " Budi@Example.com ", "Budi", TEST_PASSWORD, [seeded["roles"]["UPLOADER"]]
    )

    assert user.email == "budi@example.com"
    assert user.role_names == ["UPLOADER"]
    assert user.hashed_password != TEST_PASSWORD
    assert pwd_context.verify(TEST_PASSWORD, user.hashed_password)

    logs = await repos["audit"].list_events(entity="User", entity_id=user.id)
    assert logs[0]["action"] == "CREATE_USER"
    assert "hashed_password" not in (logs[0]["new_value"] or {})


@pytest.mark.asyncio
async def test_create_user_validation(user_env):
    svc, _, seeded = user_env
    role = seeded["roles"]["UPLOADER"]
    with pytest.raises(ValidationError):
        await svc.create_user("a@example.com", "A", TEST_PASSWORD, [])
    with pytest.raises(ValidationError):
        await svc.create_user("not-an-email", "A", TEST_PASSWORD, [role])
    with pytest.raises(DuplicateError):
        await svc.create_user(ADMIN_EMAIL.upper(), "A", TEST_PASSWORD, [role])
    with pytest.raises(NotFoundError):
        await svc.create_user("b@example.com", "B", TEST_PASSWORD, [999999])
    assert await svc.user_repo.get_by_email("b@example.com") is None


@pytest.mark.asyncio
async def test_update_user_replaces_roles(user_env):
    svc, _, seeded = user_env
    roles = seeded["roles"]
    user = await svc.create_user("c@example.com", "C", TEST_PASSWORD, [roles["UPLOADER"]])

    updated = await svc.update_user(
        user.id, name="Citra", role_ids=[roles["MANAGER"], roles["DIREKTUR"]]
    )

    assert updated.name == "Citra"
    assert sorted(updated.role_names) == ["DIREKTUR", "MANAGER"]


@pytest.mark.asyncio
async def test_assign_and_revoke_role(user_env):
    svc, _, seeded = user_env
    roles = seeded["roles"]
    user = await svc.create_user("d@example.com", "D", TEST_PASSWORD, [roles["UPLOADER"]])

    user = await svc.assign_role(user.id, roles["MANAGER"])
    assert sorted(user.role_names) == ["MANAGER", "UPLOADER"]
    # assigning twice keeps one link
    user = await svc.assign_role(user.id, roles["MANAGER"])
    assert sorted(user.role_names) == ["MANAGER", "UPLOADER"]

    user = await svc.revoke_role(user.id, roles["UPLOADER"])
    assert user.role_names == ["MANAGER"]


@pytest.mark.asyncio
async def test_cannot_delete_own_account(user_env):
    svc, _, seeded = user_env
    with pytest.raises(ValidationError):
        await svc.delete_user(seeded["admin_id"], actor_id=seeded["admin_id"])
    assert await svc.get_user(seeded["admin_id"])


@pytest.mark.asyncio
async def test_delete_user(user_env):
    svc, _, seeded = user_env
    user = await svc.create_user("e@example.com", "E", TEST_PASSWORD, [seeded["roles"]["UPLOADER"]])
    await svc.delete_user(user.id, actor_id=seeded["admin_id"])
    with pytest.raises(NotFoundError):
        await svc.get_user(user.id)


@pytest.mark.asyncio
async def test_authenticate(user_env):
    svc, _, seeded = user_env
    assert (await svc.authenticate(ADMIN_EMAIL, TEST_PASSWORD)).id == seeded["admin_id"]
    assert await svc.authenticate(ADMIN_EMAIL, "wrong") is None
    assert await svc.authenticate("nobody@example.com", TEST_PASSWORD) is None

    user = await svc.create_user("f@example.com", "F", TEST_PASSWORD, [seeded["roles"]["UPLOADER"]])
    await svc.update_user(user.id, is_active=False)
    assert await svc.authenticate("f@example.com", TEST_PASSWORD) is None


@pytest.mark.asyncio
async def test_revoke_unknown_role_is_not_found_and_not_audited(user_env):
    svc, repos, seeded = user_env
    user = await svc.create_user("g@example.com", "G", TEST_PASSWORD, [seeded["roles"]["UPLOADER"]])

    with pytest.raises(NotFoundError):
        await svc.revoke_role(user.id, 999999)

    logs = await repos["audit"].list_events(entity="User", entity_id=user.id)
    assert [log["action"] for log in logs] == ["CREATE_USER"]
    assert (await svc.get_user(user.id)).role_names == ["UPLOADER"]
