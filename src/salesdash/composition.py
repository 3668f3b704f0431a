from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI

from . import db as db_mod
from .config import Settings
from .infrastructure.cache.redis_client import AioredisClient, InMemoryCache
from .infrastructure.repositories import get_repositories
from .infrastructure.repositories.caching import PermissionCache
from .logging_config import get_logger
from .seed import seed_access_control
from .setup_db import create_all

logger = get_logger(__name__)


@dataclass
class WireResult:
    app: Any
    engine: Any
    sessionmaker: Any
    teardown: Any


async def wire_app(app: FastAPI, settings: Settings | None = None) -> WireResult:
    """Runtime wiring for the application.

    Builds the cache client and the shared PermissionCache, creates the DB
    engine and session factory, ensures tables exist and seeds the system
    permissions and roles.

    IMPORTANT: This function creates the DB engine, so it MUST NOT be called
    at module import time. Tests rely on setting DATABASE_URL before any
    engines are created.
    """
    if settings is None:
        settings = Settings()  # type: ignore[call-arg]

    cache_client: Any = InMemoryCache()
    if settings.redis_url:
        cache_client = AioredisClient(settings.redis_url)
        logger.info("initialized redis cache client", redis_url=settings.redis_url)

    app.state.cache_client = cache_client
    app.state.permission_cache = PermissionCache(
        cache_client, settings.permission_cache_ttl_seconds
    )

    db_engine = db_mod.create_engine(settings)
    session_factory = db_mod.create_sessionmaker(db_engine)
    await create_all(engine=db_engine)

    if settings.seed_on_startup:
        async with session_factory() as db_session:
            repos = get_repositories(db_session)
            await seed_access_control(
                repos["permissions"],
                repos["users"],
                admin_email=settings.admin_email,
                admin_password=settings.admin_password,
                admin_name=settings.admin_name,
            )

    async def _teardown():
        try:
            await cache_client.close()
        except Exception as e:
            logger.debug("cache_client_close_failed", extra={"error": str(e)})
        try:
            await db_engine.dispose()
        except Exception as e:
            logger.debug("engine_dispose_failed", extra={"error": str(e)})

    logger.info("wiring_complete", extra={"cache": type(cache_client).__name__})
    return WireResult(
        app=app,
        engine=db_engine,
        sessionmaker=session_factory,
        teardown=_teardown,
    )
