"""
Pantry API — Cache Store Backends
==================================

What:  The key/value store behind the response cache, with two interchangeable backends.
Why:   A single worker in development needs nothing but memory; several workers
       or instances must share one store so an eviction on one is seen by all.
How:   Both backends implement the CacheStore protocol below. `create_cache_store`
       picks one from settings; main.create_app owns the single instance.

Backends:
    MemoryCacheStore → cachetools.TLRUCache, per-entry TTL, LRU beyond max entries
    RedisCacheStore  → redis.asyncio, JSON values, TTL via SET ... PX <ms>

Contract shared by both:
    get(key)               → stored value, or None when absent or expired
    set(key, value, ttl_ms)→ ttl_ms=None means no expiry (subject to eviction)
    delete(key)            → no error when the key is absent
"""

import json
import logging
import math
import time
from typing import Any, Callable, Optional, Protocol, Tuple

import redis.asyncio as redis
from cachetools import TLRUCache

from pantry_api.config import Settings

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    """Minimal async key/value interface used by the cache layer."""

    backend: str

    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> None: ...

    async def close(self) -> None: ...


# ══════════════════════════════════════════════════════════════════════════
# In-process store
# ══════════════════════════════════════════════════════════════════════════

def _entry_expiry(key: str, entry: Tuple[Any, Optional[float]], now: float) -> float:
    """TLRUCache time-to-use callback: entries carry their own TTL in seconds."""
    _, ttl_seconds = entry
    if ttl_seconds is None:
        return math.inf
    return now + ttl_seconds


class MemoryCacheStore:
    """
    Per-process TTL cache built on cachetools.TLRUCache.

    Each entry is stored as (value, ttl_seconds) so the time-to-use callback
    can give every key its own expiry. Expired entries are dropped lazily on
    access and eagerly when the cache needs room.
    """

    backend = "memory"

    def __init__(self, max_entries: int = 1000, timer: Callable[[], float] = time.monotonic):
        self._cache: TLRUCache = TLRUCache(maxsize=max_entries, ttu=_entry_expiry, timer=timer)

    async def get(self, key: str) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        return entry[0]

    async def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        ttl_seconds = ttl_ms / 1000 if ttl_ms is not None else None
        self._cache[key] = (value, ttl_seconds)

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    async def clear(self) -> None:
        self._cache.clear()

    async def close(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


# ══════════════════════════════════════════════════════════════════════════
# Redis store
# ══════════════════════════════════════════════════════════════════════════

class RedisCacheStore:
    """
    Shared cache backed by Redis.

    Values are JSON documents (the response cache only ever stores
    jsonable_encoder output). Keys are namespaced with `prefix` so `clear()`
    can remove this application's keys without FLUSHDB.
    """

    backend = "redis"

    def __init__(self, client: "redis.Redis", prefix: str = ""):
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "") -> "RedisCacheStore":
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        return cls(client, prefix=prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        payload = json.dumps(value)
        if ttl_ms:
            await self._client.set(self._key(key), payload, px=ttl_ms)
        else:
            await self._client.set(self._key(key), payload)

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def clear(self) -> None:
        batch = []
        async for key in self._client.scan_iter(match=f"{self._prefix}*"):
            batch.append(key)
            if len(batch) >= 500:
                await self._client.delete(*batch)
                batch = []
        if batch:
            await self._client.delete(*batch)

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()


def create_cache_store(settings: Settings) -> CacheStore:
    """Build the configured backend. Connections are opened lazily on first use."""
    if settings.cache_backend == "redis":
        logger.info("Response cache backend: redis (%s)", settings.redis_url.split("@")[-1])
        return RedisCacheStore.from_url(settings.redis_url, prefix=settings.cache_key_prefix)
    logger.info("Response cache backend: memory (max %d entries)", settings.cache_max_entries)
    return MemoryCacheStore(max_entries=settings.cache_max_entries)
