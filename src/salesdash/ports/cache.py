from typing import Any, Optional, Protocol


class CacheClient(Protocol):
    """Minimal async key-value cache used by the caching layer."""

    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any, ex: Optional[int] = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def delete_pattern(self, pattern: str) -> int: ...
