from .redis_client import AioredisClient, InMemoryCache

__all__ = ["AioredisClient", "InMemoryCache"]
