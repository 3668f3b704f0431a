"""FastAPI dependency providers.

Re-exports the commonly used dependencies so routers can import from
``salesdash.deps`` directly.
"""

from .auth import require_all_permissions, require_any_permission, require_permission
from .injection import (
    get_audit_repo,
    get_authorization_guard,
    get_current_user,
    get_db,
    get_permission_service,
    get_permission_store,
    get_repos,
    get_role_service,
    get_user_repo,
    get_user_service,
)
from .providers import get_auth_service, get_cache_client, get_permission_cache, get_settings

__all__ = [
    "get_audit_repo",
    "get_auth_service",
    "get_authorization_guard",
    "get_cache_client",
    "get_current_user",
    "get_db",
    "get_permission_cache",
    "get_permission_service",
    "get_permission_store",
    "get_repos",
    "get_role_service",
    "get_settings",
    "get_user_repo",
    "get_user_service",
    "require_all_permissions",
    "require_any_permission",
    "require_permission",
]
