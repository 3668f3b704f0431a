"""Repository protocols for data access layer abstraction."""

from .permission import PermissionStore
from .user import UserRepository

__all__ = [
    "PermissionStore",
    "UserRepository",
]
