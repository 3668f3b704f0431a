import os
import sys
from pathlib import Path

# Ensure the project's src directory is on sys.path for tests
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))
sys.path.insert(0, str(ROOT))

# Set before any salesdash import so the module-level Settings never points
# at the default postgres host.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from salesdash import db as db_mod  # noqa: E402
from salesdash.config import Settings  # noqa: E402
from salesdash.infrastructure.cache.redis_client import InMemoryCache  # noqa: E402
from salesdash.infrastructure.repositories import get_repositories  # noqa: E402
from salesdash.infrastructure.repositories.caching import PermissionCache  # noqa: E402
from salesdash.seed import seed_access_control  # noqa: E402
from salesdash.setup_db import create_all, drop_all  # noqa: E402

from tests.helpers import ADMIN_EMAIL, TEST_PASSWORD  # noqa: E402


@pytest.fixture
def database_url(tmp_path):
    """Return a sqlite+aiosqlite URL backed by a per-test file in pytest's tmp_path."""
    db_file = tmp_path / "test.db"
    # Use POSIX path so SQLAlchemy parses correctly on Windows
    return f"sqlite+aiosqlite:///{db_file.as_posix()}"


@pytest.fixture
async def engine(database_url):
    engine = db_mod.create_engine(Settings(database_url=database_url))
    await create_all(engine=engine)
    try:
        yield engine
    finally:
        await drop_all(engine)
        await engine.dispose()


@pytest.fixture
def session_factory(engine):
    # also registers the factory that deps.get_db reads per request
    return db_mod.create_sessionmaker(engine)


@pytest.fixture
def cache():
    """Return an explicit InMemoryCache instance for tests."""
    return InMemoryCache()


@pytest.fixture
def permission_cache(cache):
    return PermissionCache(cache, ttl_seconds=300)


@pytest.fixture
async def seeded(session_factory):
    """Seed system permissions/roles plus an administrator account.

    Returns a dict with ``roles`` (name -> id), ``permissions`` (slug -> id)
    and ``admin_id``.
    """
    async with session_factory() as session:
        repos = get_repositories(session)
        await seed_access_control(
            repos["permissions"],
            repos["users"],
            admin_email=ADMIN_EMAIL,
            admin_password=TEST_PASSWORD,
        )

    async with session_factory() as session:
        repos = get_repositories(session)
        roles = await repos["permissions"].list_roles()
        grouped = await repos["permissions"].find_permissions_by_module()
        admin = await repos["users"].get_by_email(ADMIN_EMAIL)
    return {
        "roles": {r.name: r.id for r in roles},
        "permissions": {p.slug: p.id for perms in grouped.values() for p in perms},
        "admin_id": admin.id,
    }


@pytest.fixture
def app(session_factory, cache, permission_cache):
    from salesdash.wiring import create_app

    app = create_app(Settings(database_url="sqlite+aiosqlite:///:memory:"))
    app.state.cache_client = cache
    app.state.permission_cache = permission_cache
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as aclient:
        yield aclient

