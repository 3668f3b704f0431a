"""Permission-guard dependencies for FastAPI endpoints.

Each factory returns a dependency that resolves the current user, runs the
AuthorizationGuard and yields the user's TokenClaims. Denials raise
AuthorizationDenied (403); store outages raise PermissionResolutionError (503).
"""

from typing import Sequence

from fastapi import Depends

from ..domain.auth import TokenClaims
from ..domain.permission import PermissionRequirement
from ..services.authorization import AuthorizationGuard
from .injection import get_authorization_guard, get_current_user


def _guarded(requirement: PermissionRequirement):
    async def dependency(
        current_user: TokenClaims = Depends(get_current_user),
        guard: AuthorizationGuard = Depends(get_authorization_guard),
    ) -> TokenClaims:
        await guard.enforce(current_user.user_id, requirement)
        return current_user

    return dependency


def require_permission(permission_name: str):
    """Dependency that ensures the current user has the specified permission."""
    return _guarded(PermissionRequirement.single(permission_name))


def require_any_permission(permission_names: Sequence[str]):
    """Dependency that ensures the current user has at least one of the permissions."""
    return _guarded(PermissionRequirement.any_of(permission_names))


def require_all_permissions(permission_names: Sequence[str]):
    """Dependency that ensures the current user has every listed permission."""
    return _guarded(PermissionRequirement.all_of(permission_names))
