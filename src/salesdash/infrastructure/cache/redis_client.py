import asyncio
import fnmatch
import json
import time
from typing import Any, Optional

import redis.asyncio as redis_asyncio

from ...logging_config import get_logger

logger = get_logger(__name__)


def _record_cache_operation(
    operation: str,
    cache_type: str,
    duration: float | None = None,
    hit: bool | None = None,
    key: str | None = None,
):
    """Record cache metrics (lazy import to avoid circular dependency)."""
    try:
        from ...metrics import CACHE_HITS, CACHE_MISSES, CACHE_OPERATION_DURATION, CACHE_OPERATIONS

        if CACHE_OPERATIONS is not None:
            CACHE_OPERATIONS.labels(operation=operation, cache_type=cache_type).inc()

        if duration is not None and CACHE_OPERATION_DURATION is not None:
            CACHE_OPERATION_DURATION.labels(operation=operation, cache_type=cache_type).observe(
                duration
            )

        if hit is not None and key is not None:
            # Extract key pattern (e.g., "perm:user:*")
            key_pattern = ":".join(key.split(":")[:2]) + ":*" if ":" in key else "other"
            counter = CACHE_HITS if hit else CACHE_MISSES
            if counter is not None:
                counter.labels(cache_type=cache_type, key_pattern=key_pattern).inc()
    except Exception:
        # Silently ignore metrics errors to not break cache operations
        pass


class InMemoryCache:
    """Process-local cache with logical expiry checked on read.

    All access goes through a single asyncio lock, so readers never observe a
    half-written entry and concurrent invalidations are safe.
    """

    def __init__(self, clock=time.time):
        # store: key -> (value: Any, expire_at: Optional[float])
        self.store: dict[str, tuple[Any, Optional[float]]] = {}
        self.lock = asyncio.Lock()
        self.clock = clock

    async def get(self, key: str) -> Optional[Any]:
        start = time.time()
        async with self.lock:
            entry = self.store.get(key)
            if not entry:
                _record_cache_operation("get", "in_memory", time.time() - start, hit=False, key=key)
                return None
            value, expire_at = entry
            if expire_at is not None and self.clock() >= expire_at:
                # expired; remove and return None
                self.store.pop(key, None)
                _record_cache_operation("get", "in_memory", time.time() - start, hit=False, key=key)
                return None
            _record_cache_operation("get", "in_memory", time.time() - start, hit=True, key=key)
            return value

    async def set(self, key: str, value: Any, ex: Optional[int] = None) -> None:
        start = time.time()
        expire_at = None
        if ex is not None:
            expire_at = self.clock() + int(ex)
        async with self.lock:
            self.store[key] = (value, expire_at)
        _record_cache_operation("set", "in_memory", time.time() - start)

    async def delete(self, key: str) -> None:
        start = time.time()
        async with self.lock:
            self.store.pop(key, None)
        _record_cache_operation("delete", "in_memory", time.time() - start)

    async def delete_pattern(self, pattern: str) -> int:
        start = time.time()
        async with self.lock:
            doomed = [k for k in self.store if fnmatch.fnmatchcase(k, pattern)]
            for k in doomed:
                del self.store[k]
        _record_cache_operation("delete_pattern", "in_memory", time.time() - start)
        return len(doomed)

    async def close(self) -> None:
        async with self.lock:
            self.store.clear()


class AioredisClient:
    """Shared cache backed by redis.asyncio; values are stored as JSON."""

    def __init__(self, url: str, client: Any = None):
        self.client = client if client is not None else redis_asyncio.from_url(
            url, decode_responses=False
        )

    async def get(self, key: str) -> Optional[Any]:
        start = time.time()
        v = await self.client.get(key)
        hit = v is not None
        _record_cache_operation("get", "redis", time.time() - start, hit=hit, key=key)
        if v is None:
            return None
        text = v.decode() if isinstance(v, bytes) else v
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug("redis_json_decode_failed", extra={"key": key, "error": str(e)})
            return text

    async def set(self, key: str, value: Any, ex: Optional[int] = None) -> None:
        start = time.time()
        await self.client.set(key, json.dumps(value), ex=ex)
        _record_cache_operation("set", "redis", time.time() - start)

    async def delete(self, key: str) -> None:
        start = time.time()
        await self.client.delete(key)
        _record_cache_operation("delete", "redis", time.time() - start)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching ``pattern`` using SCAN, never KEYS."""
        start = time.time()
        removed = 0
        batch: list[Any] = []
        async for key in self.client.scan_iter(match=pattern, count=500):
            batch.append(key)
            if len(batch) >= 500:
                removed += await self.client.delete(*batch)
                batch = []
        if batch:
            removed += await self.client.delete(*batch)
        _record_cache_operation("delete_pattern", "redis", time.time() - start)
        return int(removed)

    async def close(self) -> None:
        await self.client.aclose()
