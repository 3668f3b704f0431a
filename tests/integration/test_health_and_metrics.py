import pytest

from tests.helpers import ADMIN_EMAIL, login


@pytest.mark.asyncio
async def test_health(client, session_factory):
    assert (await client.get("/health")).json() == {"status": "ok"}
    resp = await client.get("/health/ready")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_metrics_expose_permission_checks(client, seeded):
    headers = await login(client, ADMIN_EMAIL)
    await client.get("/api/v1/admin/roles", headers=headers)

    resp = await client.get("/metrics")
    assert resp.status_code == 200
    assert "permission_checks_total" in resp.text
    assert "http_requests_total" in resp.text
