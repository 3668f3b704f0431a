"""Ports package - defines interfaces for external dependencies.

Exports repository protocols and service interfaces for dependency inversion.
"""

from .audit import AuditRepository
from .cache import CacheClient
from .repositories import PermissionStore, UserRepository

__all__ = [
    # Repository protocols
    "PermissionStore",
    "UserRepository",
    "AuditRepository",
    # Infrastructure clients
    "CacheClient",
]
