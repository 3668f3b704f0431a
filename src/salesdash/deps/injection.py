"""Dependency injection functions for FastAPI.

This module provides FastAPI Depends() functions for repositories, services,
database sessions, and the authenticated identity.
"""

from typing import Any, AsyncGenerator, Dict

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.auth import TokenClaims
from ..domain.permission import PermissionResolver
from ..exceptions import AuthenticationError
from ..infrastructure.repositories.caching import PermissionCache
from ..services.authorization import AuthorizationGuard
from .providers import get_permission_cache


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Import the db module at call time so a factory rebound by tests or by
    the composition root is respected.
    """
    from .. import db as db_mod

    factory = db_mod.AsyncDbSessionFactory
    if factory is None:
        raise RuntimeError(
            "Database session factory not initialized. Call create_engine()/create_sessionmaker() in your application startup."
        )
    async with factory() as db_session:
        yield db_session


async def get_repos(
    db_session: AsyncSession = Depends(get_db),
    permission_cache: PermissionCache = Depends(get_permission_cache),
) -> Dict[str, Any]:
    """Repositories sharing the request's database session (resolved once per request)."""
    from ..infrastructure.repositories import get_repositories

    return get_repositories(db_session, permission_cache=permission_cache)


async def get_permission_store(repos: Dict[str, Any] = Depends(get_repos)):
    """Permission store wrapped so commits invalidate cached permission sets."""
    return repos["permissions"]


async def get_user_repo(repos: Dict[str, Any] = Depends(get_repos)):
    return repos["users"]


async def get_audit_repo(repos: Dict[str, Any] = Depends(get_repos)):
    return repos["audit"]


async def get_authorization_guard(
    store=Depends(get_permission_store),
    permission_cache: PermissionCache = Depends(get_permission_cache),
) -> AuthorizationGuard:
    return AuthorizationGuard(PermissionResolver(store), permission_cache)


async def get_role_service(
    store=Depends(get_permission_store), audit_repo=Depends(get_audit_repo)
) -> Any:
    """Get RoleService instance."""
    from ..services.role_service import RoleService

    return RoleService(store, audit_repo)


async def get_permission_service(
    store=Depends(get_permission_store), audit_repo=Depends(get_audit_repo)
) -> Any:
    """Get PermissionService instance."""
    from ..services.permission_service import PermissionService

    return PermissionService(store, audit_repo)


async def get_user_service(
    user_repo=Depends(get_user_repo),
    store=Depends(get_permission_store),
    audit_repo=Depends(get_audit_repo),
) -> Any:
    """Get UserService instance."""
    from ..services.user_service import UserService

    return UserService(user_repo, store, audit_repo)


async def get_current_user(request: Request) -> TokenClaims:
    """Return the TokenClaims resolved by CurrentUserMiddleware.

    Raises AuthenticationError (401) when the request carries no valid token.
    """
    claims = getattr(request.state, "current_user", None)
    if claims is None:
        raise AuthenticationError("Unauthorized")
    return claims
