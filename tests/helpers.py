"""Shared helpers for tests that need real users and sessions."""

from salesdash.infrastructure.repositories import get_repositories

TEST_PASSWORD = "SecurePass123!"
ADMIN_EMAIL = "admin@example.com"


async def create_user_with_roles(
    session_factory, email, role_ids, password=TEST_PASSWORD, name="Test User"
):
    """Create a user directly through UserService and return its id."""
    from salesdash.services.user_service import UserService

    async with session_factory() as session:
        repos = get_repositories(session)
        svc = UserService(repos["users"], repos["permissions"], None)
        user = await svc.create_user(email, name, password, list(role_ids))
        return int(user.id)


async def login(client, email, password=TEST_PASSWORD):
    """Log in and return bearer headers for the session."""
    resp = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
