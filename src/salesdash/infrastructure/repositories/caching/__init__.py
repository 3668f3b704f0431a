"""Cache-aside layer for effective permission sets."""

from .permission_caching import CachingPermissionStore, PermissionCache

__all__ = ["CachingPermissionStore", "PermissionCache"]
