"""Response caching: key derivation, stores, the per-request cache and invalidator, route decorators."""

from pantry_api.cache.decorators import cache_evict, cacheable
from pantry_api.cache.response_cache import (
    CacheContext,
    CacheEvict,
    CacheInvalidator,
    Cacheable,
    ResponseCache,
)
from pantry_api.cache.service import CacheService
from pantry_api.cache.store import CacheStore, MemoryCacheStore, RedisCacheStore, create_cache_store

__all__ = [
    "CacheContext",
    "CacheEvict",
    "CacheInvalidator",
    "CacheService",
    "CacheStore",
    "Cacheable",
    "MemoryCacheStore",
    "RedisCacheStore",
    "ResponseCache",
    "cache_evict",
    "cacheable",
    "create_cache_store",
]
