from typing import Any, Optional, cast

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings

# Database engine and session factory for transaction management
engine: Optional[Any] = None
AsyncDbSessionFactory: Any = None


def _database_url(settings: Settings) -> str:
    # Allow a full DATABASE URL override (useful for tests)
    if settings.database_url:
        return settings.database_url
    return (
        f"postgresql+asyncpg://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(settings: Settings) -> Any:
    """Create an async engine for the given settings and register it on the module.

    Connection Pool Configuration (PostgreSQL only):
    - pool_size: Number of connections to maintain (default: 20)
    - max_overflow: Additional connections when pool exhausted (default: 30)
    - pool_recycle: Recycle connections after N seconds (prevents stale connections)
    - pool_pre_ping: Test connection health before use (auto-reconnect on failure)
    - command_timeout: 30-second query timeout

    SQLite URLs get foreign key enforcement so link rows cascade like they do
    on PostgreSQL. In-memory SQLite shares a single connection.
    """
    global engine
    database_url = _database_url(settings)

    kwargs: dict[str, Any] = {"echo": False}
    if database_url.startswith("sqlite"):
        if ":memory:" in database_url or database_url.endswith("://"):
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=settings.db_pool_pre_ping,
        )
        if "postgresql" in database_url:
            kwargs["connect_args"] = {"command_timeout": 30}

    engine = create_async_engine(database_url, **kwargs)
    if database_url.startswith("sqlite"):
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_sessionmaker(bind_engine: Any) -> Any:
    """Create and register an AsyncSession factory bound to the provided engine."""
    global AsyncDbSessionFactory
    AsyncDbSessionFactory = cast(
        Any, sessionmaker(bind=bind_engine, expire_on_commit=False, class_=AsyncSession)
    )  # type: ignore[call-overload]
    return AsyncDbSessionFactory

