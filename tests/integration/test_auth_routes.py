import pytest

from salesdash.domain.user import User
from salesdash.infrastructure.repositories import get_repositories

from tests.helpers import ADMIN_EMAIL, TEST_PASSWORD, create_user_with_roles, login


async def _user_without_roles(session_factory, email):
    async with session_factory() as session:
        repos = get_repositories(session)
        user = await repos["users"].create(User(id=None, email=email, name="No Roles", hashed_password="x"))
        await session.commit()
        return user.id


@pytest.mark.asyncio
async def test_login_returns_token_and_sets_cookie(client, seeded):
    resp = await client.post("/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": TEST_PASSWORD})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["access_token"]
    assert "auth_token" in resp.cookies


@pytest.mark.asyncio
async def test_bad_credentials_are_401_and_audited(client, seeded, session_factory):
    resp = await client.post("/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Invalid email or password"}

    async with session_factory() as session:
        logs = await get_repositories(session)["audit"].list_events()
    assert logs[0]["action"] == "FAILED_LOGIN"


@pytest.mark.asyncio
async def test_inactive_user_cannot_log_in(client, seeded, session_factory):
    uid = await create_user_with_roles(session_factory, "idle@example.com", [seeded["roles"]["UPLOADER"]])
    async with session_factory() as session:
        await get_repositories(session)["users"].update(uid, is_active=False)
        await session.commit()

    resp = await client.post("/api/v1/auth/login", json={"email": "idle@example.com", "password": TEST_PASSWORD})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_and_permissions(client, seeded, session_factory):
    await create_user_with_roles(session_factory, "uploader@example.com", [seeded["roles"]["UPLOADER"]])
    headers = await login(client, "uploader@example.com")

    me = await client.get("/api/v1/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["roles"] == ["UPLOADER"]

    perms = await client.get("/api/v1/auth/permissions", headers=headers)
    assert perms.status_code == 200
    assert perms.json()["permissions"] == [
        "upload_gross_margin",
        "upload_omzet",
        "upload_retur",
        "view_upload_history",
    ]


@pytest.mark.asyncio
async def test_missing_or_invalid_token_is_401(client, seeded):
    assert (await client.get("/api/v1/auth/permissions")).status_code == 401
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_cookie_session_is_accepted(client, seeded):
    await client.post("/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": TEST_PASSWORD})
    # no Authorization header; the login cookie identifies the session
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 200
    assert resp.json()["email"] == ADMIN_EMAIL

    await client.post("/api/v1/auth/logout")
    client.cookies.clear()
    assert (await client.get("/api/v1/auth/me")).status_code == 401


@pytest.mark.asyncio
async def test_landing_page_follows_priority(client, seeded, session_factory):
    roles = seeded["roles"]
    await create_user_with_roles(session_factory, "up@example.com", [roles["UPLOADER"]])
    no_roles_id = await _user_without_roles(session_factory, "none@example.com")

    admin = await login(client, ADMIN_EMAIL)
    uploader = await login(client, "up@example.com")

    resp = await client.get("/api/v1/auth/landing-page", headers=admin)
    assert resp.json()["landing_page"] == "/dashboard"
    resp = await client.get("/api/v1/auth/landing-page", headers=uploader)
    assert resp.json()["landing_page"] == "/upload"

    from salesdash.deps.providers import get_auth_service

    token = get_auth_service().create_access_token({"sub": str(no_roles_id)})
    resp = await client.get("/api/v1/auth/landing-page", headers={"Authorization": f"Bearer {token}"})
    assert resp.json()["landing_page"] == "/access-denied"
