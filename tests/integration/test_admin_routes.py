import pytest

from salesdash.deps.injection import get_permission_store
from salesdash.exceptions import StoreUnavailableError

from tests.helpers import ADMIN_EMAIL, create_user_with_roles, login


@pytest.fixture
async def admin_headers(client, seeded):
    return await login(client, ADMIN_EMAIL)


@pytest.fixture
async def uploader_headers(client, seeded, session_factory):
    await create_user_with_roles(session_factory, "uploader@example.com", [seeded["roles"]["UPLOADER"]])
    return await login(client, "uploader@example.com")


@pytest.mark.asyncio
async def test_unauthenticated_is_401(client, seeded):
    resp = await client.get("/api/v1/admin/roles")
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Unauthorized"}


@pytest.mark.asyncio
async def test_forbidden_carries_requirement(client, uploader_headers):
    resp = await client.get("/api/v1/admin/roles", headers=uploader_headers)
    assert resp.status_code == 403
    body = resp.json()
    assert body["success"] is False
    assert body["required"] == ["manage_roles"]
    assert body["mode"] == "single"


@pytest.mark.asyncio
async def test_role_crud(client, admin_headers, seeded):
    perms = seeded["permissions"]
    resp = await client.post(
        "/api/v1/admin/roles",
        json={"name": "editor", "description": "Edits", "permission_ids": [perms["upload_omzet"]]},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    role = resp.json()["role"]
    assert role["name"] == "EDITOR"
    assert [p["slug"] for p in role["permissions"]] == ["upload_omzet"]

    resp = await client.put(
        f"/api/v1/admin/roles/{role['id']}",
        json={"permission_ids": [perms["view_dashboard"], perms["export_dashboard"]]},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert sorted(p["slug"] for p in resp.json()["role"]["permissions"]) == [
        "export_dashboard",
        "view_dashboard",
    ]

    listed = await client.get("/api/v1/admin/roles", headers=admin_headers)
    assert "EDITOR" in [r["name"] for r in listed.json()["roles"]]

    resp = await client.delete(f"/api/v1/admin/roles/{role['id']}", headers=admin_headers)
    assert resp.status_code == 200
    resp = await client.get(f"/api/v1/admin/roles/{role['id']}", headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_role_conflicts(client, admin_headers, seeded, session_factory):
    resp = await client.post("/api/v1/admin/roles", json={"name": "Manager"}, headers=admin_headers)
    assert resp.status_code == 409

    resp = await client.delete(f"/api/v1/admin/roles/{seeded['roles']['UPLOADER']}", headers=admin_headers)
    assert resp.status_code == 409

    resp = await client.post("/api/v1/admin/roles", json={"name": "TEMP"}, headers=admin_headers)
    temp_id = resp.json()["role"]["id"]
    await create_user_with_roles(session_factory, "temp@example.com", [temp_id])
    resp = await client.delete(f"/api/v1/admin/roles/{temp_id}", headers=admin_headers)
    assert resp.status_code == 409
    assert "1 user(s)" in resp.json()["message"]


@pytest.mark.asyncio
async def test_permission_routes(client, admin_headers, seeded):
    resp = await client.get("/api/v1/admin/permissions", headers=admin_headers)
    assert resp.status_code == 200
    assert "UPLOAD" in resp.json()["permissions"]

    resp = await client.post(
        "/api/v1/admin/permissions",
        json={"slug": "Export_Raw", "name": "Export raw", "module": "EXPORT"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    created = resp.json()["permission"]
    assert created["slug"] == "export_raw"
    assert created["is_system"] is False

    resp = await client.post(
        "/api/v1/admin/permissions",
        json={"slug": "x", "name": "X", "module": "REPORTS"},
        headers=admin_headers,
    )
    assert resp.status_code == 400

    resp = await client.post(
        "/api/v1/admin/permissions",
        json={"slug": "export_raw", "name": "Again", "module": "EXPORT"},
        headers=admin_headers,
    )
    assert resp.status_code == 409

    system_id = seeded["permissions"]["manage_users"]
    resp = await client.delete(f"/api/v1/admin/permissions/{system_id}", headers=admin_headers)
    assert resp.status_code == 409

    resp = await client.delete(f"/api/v1/admin/permissions/{created['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert (await client.get("/api/v1/admin/permissions/999999", headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
async def test_user_routes(client, admin_headers, seeded):
    roles = seeded["roles"]
    resp = await client.post(
        "/api/v1/admin/users",
        json={"email": "New@Example.com", "name": "New", "password": "pw123456", "role_id": roles["UPLOADER"]},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    user = resp.json()["user"]
    assert user["email"] == "new@example.com"
    assert [r["name"] for r in user["roles"]] == ["UPLOADER"]

    resp = await client.post(f"/api/v1/admin/users/{user['id']}/roles/{roles['MANAGER']}", headers=admin_headers)
    assert sorted(r["name"] for r in resp.json()["user"]["roles"]) == ["MANAGER", "UPLOADER"]

    resp = await client.delete(f"/api/v1/admin/users/{user['id']}/roles/{roles['UPLOADER']}", headers=admin_headers)
    assert [r["name"] for r in resp.json()["user"]["roles"]] == ["MANAGER"]

    resp = await client.put(f"/api/v1/admin/users/{user['id']}", json={"is_active": False}, headers=admin_headers)
    assert resp.json()["user"]["is_active"] is False

    resp = await client.post(
        "/api/v1/admin/users",
        json={"email": "new@example.com", "name": "Dup", "password": "pw123456", "role_ids": [roles["UPLOADER"]]},
        headers=admin_headers,
    )
    assert resp.status_code == 409

    resp = await client.delete(f"/api/v1/admin/users/{seeded['admin_id']}", headers=admin_headers)
    assert resp.status_code == 400

    resp = await client.delete(f"/api/v1/admin/users/{user['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert (await client.get(f"/api/v1/admin/users/{user['id']}", headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
async def test_audit_log_route(client, admin_headers, uploader_headers):
    await client.post("/api/v1/admin/roles", json={"name": "AUDITED"}, headers=admin_headers)

    resp = await client.get("/api/v1/admin/audit-logs", params={"entity": "Role"}, headers=admin_headers)
    assert resp.status_code == 200
    logs = resp.json()["logs"]
    assert logs[0]["action"] == "CREATE_ROLE"
    assert logs[0]["new_value"]["name"] == "AUDITED"

    assert (await client.get("/api/v1/admin/audit-logs", headers=uploader_headers)).status_code == 403


class UnavailableStore:
    async def find_user_with_roles_and_permissions(self, user_id):
        raise StoreUnavailableError("Data store unavailable")


@pytest.mark.asyncio
async def test_store_outage_is_503_not_allow(client, app, admin_headers):
    app.dependency_overrides[get_permission_store] = lambda: UnavailableStore()
    try:
        resp = await client.get("/api/v1/admin/roles", headers=admin_headers)
    finally:
        app.dependency_overrides.pop(get_permission_store, None)
    assert resp.status_code == 503
    assert resp.json()["success"] is False
