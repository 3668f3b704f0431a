import pytest

from salesdash.deps.injection import get_permission_store
from salesdash.exceptions import StoreUnavailableError

from tests.helpers import ADMIN_EMAIL, create_user_with_roles, login


@pytest.mark.asyncio
async def test_anonymous_visitor_goes_to_login(client, seeded):
    resp = await client.get("/dashboard")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_denied_page_redirects_before_rendering(client, seeded, session_factory):
    await create_user_with_roles(session_factory, "up@example.com", [seeded["roles"]["UPLOADER"]])
    headers = await login(client, "up@example.com")

    resp = await client.get("/dashboard", headers=headers)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/access-denied"
    assert "Dashboard" not in resp.text

    resp = await client.get("/upload", headers=headers)
    assert resp.status_code == 200
    assert "Upload" in resp.text


@pytest.mark.asyncio
async def test_admin_sees_every_page_via_cookie(client, seeded):
    await client.post("/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": "SecurePass123!"})
    for path in ("/dashboard", "/upload", "/admin/roles"):
        resp = await client.get(path)
        assert resp.status_code == 200, path


@pytest.mark.asyncio
async def test_access_denied_page(client):
    resp = await client.get("/access-denied")
    assert resp.status_code == 403
    assert "Access denied" in resp.text


class UnavailableStore:
    async def find_user_with_roles_and_permissions(self, user_id):
        raise StoreUnavailableError("Data store unavailable")


@pytest.mark.asyncio
async def test_store_outage_redirects(client, app, seeded):
    headers = await login(client, ADMIN_EMAIL)
    app.dependency_overrides[get_permission_store] = lambda: UnavailableStore()
    try:
        resp = await client.get("/dashboard", headers=headers)
    finally:
        app.dependency_overrides.pop(get_permission_store, None)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/access-denied"
