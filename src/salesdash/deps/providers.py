"""Singleton providers for application-wide services and clients.

Settings and AuthService are created lazily on first use. The cache client
and the permission cache are built by the composition root and read from
``app.state``.
"""

from typing import Any

from fastapi import Request

from ..config import Settings
from ..infrastructure.repositories.caching import PermissionCache
from ..services.auth_service import AuthService

# Lazy singletons to avoid import-time side-effects
_settings: Settings | None = None
_auth_service: AuthService | None = None


def get_settings() -> Settings:
    """Get or create singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def get_auth_service() -> AuthService:
    """Get or create singleton AuthService instance."""
    global _auth_service
    if _auth_service is None:
        s = get_settings()
        _auth_service = AuthService(s.jwt_secret, s.access_token_ttl_seconds)
    return _auth_service


def get_cache_client(request: Request) -> Any:
    cache = getattr(request.app.state, "cache_client", None)
    if cache is None:
        raise RuntimeError("Cache client not initialized. Call wire_app() during startup.")
    return cache


def get_permission_cache(request: Request) -> PermissionCache:
    """Permission cache shared by every request of this app."""
    pc = getattr(request.app.state, "permission_cache", None)
    if pc is None:
        pc = PermissionCache(get_cache_client(request), get_settings().permission_cache_ttl_seconds)
        request.app.state.permission_cache = pc
    return pc
