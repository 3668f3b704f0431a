from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from .config import Settings
from .exceptions import AccessControlError
from .gates.server import GateRedirect
from .infrastructure.cache.redis_client import InMemoryCache
from .infrastructure.repositories.caching import PermissionCache
from .logging_config import get_logger
from .metrics import metrics_response

logger = get_logger(__name__)


def _create_minimal_app(settings: Settings) -> FastAPI:
    """Create the FastAPI app object without running side-effectful wiring.
    Tests can import and call this to create fresh apps.
    """
    app = FastAPI(title="Sales Dashboard - Access Control")

    # process-local defaults; wire_app() swaps in redis when configured
    app.state.cache_client = InMemoryCache()
    app.state.permission_cache = PermissionCache(
        app.state.cache_client, settings.permission_cache_ttl_seconds
    )
    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Map the access-control error families to HTTP statuses.

    Every family carries its own ``status_code``; the body is the
    ``{success, message}`` envelope (plus ``required``/``mode`` on 403).
    """

    @app.exception_handler(AccessControlError)
    async def _access_control_error_handler(request: Request, exc: AccessControlError):
        if exc.status_code >= 500:
            logger.warning(
                "request_failed",
                extra={"path": request.url.path, "error": type(exc).__name__, "message": exc.message},
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(GateRedirect)
    async def _gate_redirect_handler(request: Request, exc: GateRedirect):
        return RedirectResponse(exc.location, status_code=exc.status_code)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a fully routed app (routers + middleware + error mapping).

    Engine creation, table creation and seeding are left to the
    composition root (``composition.wire_app``).
    """
    if settings is None:
        settings = Settings()

    app = _create_minimal_app(settings)

    from .middleware.current_user import CurrentUserMiddleware
    from .middleware.metrics_middleware import MetricsMiddleware
    from .routers import (
        admin_permissions,
        admin_roles,
        admin_users,
        audit,
        auth,
        health,
        pages,
    )

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(admin_roles.router)
    app.include_router(admin_permissions.router)
    app.include_router(admin_users.router)
    app.include_router(audit.router)
    app.include_router(pages.router)

    app.add_middleware(CurrentUserMiddleware)
    app.add_middleware(MetricsMiddleware)

    register_exception_handlers(app)

    @app.get("/metrics", include_in_schema=False)
    async def _metrics():
        data, content_type = metrics_response()
        return Response(content=data, media_type=content_type)

    return app


__all__ = ["create_app", "register_exception_handlers"]
