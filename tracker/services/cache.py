"""Read-through cache for progress reads.

  GET  /v1/progress/me/{c} → cache → hit: return
                          → miss: snapshot store → populate → return
  POST /v1/events         → append + recompute → delete cache key

The cache is never allowed to fail a request: the module-level helpers
at the bottom log a broken backend and fall back to a miss or a no-op.
Invalidation runs after the request has committed, so a concurrent read
cannot re-cache the snapshot that was just replaced.

Two invalidation mechanisms cover each other:

  1. TTL: every entry expires after PROGRESS_CACHE_TTL seconds, so a
     missed invalidation can only serve stale data for that long.
  2. Explicit delete: ingestion and manual recompute drop the key for the
     (user, course) pair they touched, so the common case is fresh
     immediately.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from tracker.db.redis import redis_pool

logger = logging.getLogger(__name__)


def progress_cache_key(user_id: str, course_id: str) -> str:
    return f"progress:{user_id}:{course_id}"


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None:
        """Fetch a cached value.  Returns None on cache miss."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value with a TTL (time to live)."""
        ...

    async def delete(self, key: str) -> None:
        """Explicitly invalidate a cached entry."""
        ...


class InMemoryCacheService:
    """In-memory cache for dev and tests; TTL is not enforced."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)


class RedisCacheService:
    """Redis-backed cache, shared across API instances."""

    _PREFIX = "cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        return await self._redis.get(f"{self._PREFIX}{key}")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(f"{self._PREFIX}{key}")


if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()


async def read_cached(key: str) -> str | None:
    """cache_service.get, with a backend failure treated as a miss."""
    try:
        return await cache_service.get(key)
    except Exception:
        logger.warning("Cache read failed key=%s, using store", key, exc_info=True)
        return None


async def write_cached(key: str, value: str, ttl_seconds: int) -> None:
    try:
        await cache_service.set(key, value, ttl_seconds)
    except Exception:
        logger.warning("Cache write failed key=%s", key, exc_info=True)


async def invalidate(key: str) -> None:
    """Drop a cached entry; on failure the TTL bounds how long it stays stale."""
    try:
        await cache_service.delete(key)
    except Exception:
        logger.warning("Cache invalidation failed key=%s", key, exc_info=True)
