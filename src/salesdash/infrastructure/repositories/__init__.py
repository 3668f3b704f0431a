"""Repository adapters package: explicit public exports.

Call `get_repositories(db_session, permission_cache=None)` to obtain repository instances.
"""


def get_repositories(db_session, permission_cache=None):
    """Return a container of repository instances wired to the given db_session.

    When a ``PermissionCache`` is supplied the permission store is wrapped so
    committed mutations invalidate the affected cached permission sets.
    """
    # import concrete implementations lazily so callers obtain repositories
    # only via the factory API (get_repositories) rather than top-level imports
    from .audit_repository import SqlAlchemyAuditRepository
    from .permissions_repository import SqlAlchemyPermissionStore
    from .users_repository import SqlAlchemyUserRepository

    users = SqlAlchemyUserRepository(db_session)
    audit = SqlAlchemyAuditRepository(db_session)
    permissions = SqlAlchemyPermissionStore(db_session)

    if permission_cache is not None:
        from .caching import CachingPermissionStore

        permissions = CachingPermissionStore(permissions, permission_cache)  # type: ignore[assignment]

    return {
        "users": users,
        "permissions": permissions,
        "audit": audit,
    }


__all__ = ["get_repositories"]
