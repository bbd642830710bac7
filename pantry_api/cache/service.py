"""
Pantry API — Cache Service
===========================

What:  Programmatic access to the shared cache store for code that is not a route.
Why:   Services and the health check occasionally need the cache directly
       (read-through helpers, explicit invalidation, connectivity probes).
How:   Thin wrapper over a CacheStore. Every operation logs store failures and
       carries on; a broken cache degrades to "always miss", never to a 500.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from pantry_api.cache.store import CacheStore

logger = logging.getLogger(__name__)

HEALTH_CHECK_KEY = "__cache_health_check__"


class CacheService:
    """Error-tolerant helper around the application's cache store."""

    def __init__(self, store: CacheStore):
        self.store = store

    async def get(self, key: str) -> Optional[Any]:
        try:
            value = await self.store.get(key)
        except Exception as e:
            logger.error("Cache get error for key %s: %s", key, e)
            return None
        if value is not None:
            logger.debug("Cache hit for key: %s", key)
        else:
            logger.debug("Cache miss for key: %s", key)
        return value

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl_ms = ttl_seconds * 1000 if ttl_seconds else None
        try:
            await self.store.set(key, value, ttl_ms)
            logger.debug("Cache set for key: %s (ttl_ms=%s)", key, ttl_ms)
        except Exception as e:
            logger.error("Cache set error for key %s: %s", key, e)

    async def delete(self, key: str) -> None:
        try:
            await self.store.delete(key)
            logger.debug("Cache deleted for key: %s", key)
        except Exception as e:
            logger.error("Cache delete error for key %s: %s", key, e)

    async def delete_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            await self.delete(key)

    async def reset(self) -> None:
        try:
            await self.store.clear()
            logger.info("Cache reset")
        except Exception as e:
            logger.error("Cache reset error: %s", e)

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[int] = None,
    ) -> Any:
        """Return the cached value, or await `factory`, store its result and return it."""
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await factory()
        if value is not None:
            await self.set(key, value, ttl_seconds)
        return value

    @staticmethod
    def generate_key(prefix: str, *parts: Any) -> str:
        return ":".join([prefix, *(str(part) for part in parts)])

    @staticmethod
    def generate_invalidation_keys(pattern: str, id: Optional[str] = None) -> List[str]:
        keys = [f"{pattern}:list", f"{pattern}:count"]
        if id:
            keys.append(f"{pattern}:{id}")
        return keys

    async def get_stats(self) -> Dict[str, Any]:
        """
        Probe the store with a short-lived write/read/delete round trip.

        Returns {"connected": bool, "backend": str}.
        """
        backend = getattr(self.store, "backend", "unknown")
        try:
            await self.store.set(HEALTH_CHECK_KEY, "ok", 1000)
            value = await self.store.get(HEALTH_CHECK_KEY)
            await self.store.delete(HEALTH_CHECK_KEY)
        except Exception as e:
            logger.error("Cache health check failed: %s", e)
            return {"connected": False, "backend": backend}
        return {"connected": value == "ok", "backend": backend}

    async def is_available(self) -> bool:
        stats = await self.get_stats()
        return stats["connected"]
