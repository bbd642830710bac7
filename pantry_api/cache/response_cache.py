"""
Pantry API — Response Cache and Cache Invalidator
==================================================

What:  The two request-scoped cache behaviours a route can declare.
Why:   Read endpoints (food detail, profile, lists) are hit far more often than
       the rows behind them change; mutations must drop the affected entries.
How:   Routes declare an explicit, immutable config object when they are
       registered (Cacheable / CacheEvict). At request time the shared
       ResponseCache / CacheInvalidator receive that config, a CacheContext
       describing the request, and the handler to run.

Response cache, per request:

    method != GET ──────────────────────────────┐
    no Cacheable ───────────────────────────────┤──▶ run handler (bypass)
    store.get raises ───── log error ───────────┘
    hit (value is not None) ──────────────────────▶ return cached value
    miss ──▶ run handler ──▶ result has no `error` ──▶ store.set(key, result, ttl_ms)
                         └─▶ result has `error` ─────▶ return uncached
                         └─▶ handler raises ─────────▶ propagate, nothing cached

Invalidator, per request:

    run handler ──▶ raises ──────────────▶ propagate, nothing deleted
                └─▶ result has `error` ──▶ return, nothing deleted
                └─▶ otherwise ───────────▶ for each template (in order):
                                              resolve placeholders, store.delete
                                              (each delete isolated, failures logged)

Neither component adds locking: two concurrent misses for the same key both
run the handler and both write.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from pantry_api.cache.keys import Param, build_cache_key, resolve_eviction_key
from pantry_api.cache.store import CacheStore

logger = logging.getLogger(__name__)

Handler = Callable[[], Awaitable[Any]]


# ══════════════════════════════════════════════════════════════════════════
# Route declarations
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Cacheable:
    """Marks a GET route as cacheable under `key`; ttl_seconds=None caches without expiry."""

    key: str
    ttl_seconds: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Cacheable key must be a non-empty string")
        if self.ttl_seconds is not None and self.ttl_seconds < 0:
            raise ValueError("Cacheable ttl_seconds must be >= 0")

    @property
    def ttl_ms(self) -> Optional[int]:
        if not self.ttl_seconds:
            return None
        return self.ttl_seconds * 1000


@dataclass(frozen=True)
class CacheEvict:
    """Marks a mutating route; the listed key templates are deleted after it succeeds."""

    templates: Tuple[str, ...]

    def __init__(self, templates: Sequence[str]):
        object.__setattr__(self, "templates", tuple(templates))


@dataclass
class CacheContext:
    """
    Everything the cache layer needs to know about one request.

    Attributes:
        method:       HTTP method, upper-case.
        user_id:      Internal id of the authenticated user, None if anonymous.
        subject:      Identity-provider subject ("sub" claim), None if anonymous.
        route_params: Path parameters in route declaration order.
        query_params: Query parameters in received order (repeats preserved).
    """

    method: str = "GET"
    user_id: Optional[str] = None
    subject: Optional[str] = None
    route_params: List[Param] = field(default_factory=list)
    query_params: List[Param] = field(default_factory=list)

    @property
    def route_param_map(self) -> Dict[str, str]:
        return dict(self.route_params)


def carries_error(result: Any) -> bool:
    """True when a handler result signals an application-level error via an `error` field."""
    if isinstance(result, dict):
        return bool(result.get("error"))
    return bool(getattr(result, "error", None))


# ══════════════════════════════════════════════════════════════════════════
# Response cache
# ══════════════════════════════════════════════════════════════════════════

class ResponseCache:
    """Short-circuits GET handlers with a stored response, or runs and memoizes them."""

    def __init__(self, store: CacheStore):
        self.store = store

    def key_for(self, config: Cacheable, context: CacheContext) -> str:
        return build_cache_key(
            config.key,
            context.user_id,
            context.route_params,
            context.query_params,
        )

    async def execute(
        self,
        config: Optional[Cacheable],
        context: CacheContext,
        handler: Handler,
    ) -> Any:
        if context.method.upper() != "GET" or config is None:
            return await handler()

        key = self.key_for(config, context)

        try:
            cached = await self.store.get(key)
        except Exception as e:
            logger.error("Cache lookup failed for key %s: %s", key, e)
            return await handler()

        if cached is not None:
            logger.debug("Serving cached response for key: %s", key)
            return cached

        result = await handler()

        if result is not None and not carries_error(result):
            try:
                await self.store.set(key, result, config.ttl_ms)
                logger.debug("Cached response for key: %s (ttl_ms=%s)", key, config.ttl_ms)
            except Exception as e:
                logger.error("Cache store failed for key %s: %s", key, e)

        return result


# ══════════════════════════════════════════════════════════════════════════
# Invalidator
# ══════════════════════════════════════════════════════════════════════════

class CacheInvalidator:
    """Deletes templated keys after a mutating handler succeeds (best-effort)."""

    def __init__(self, store: CacheStore):
        self.store = store

    def resolve(self, template: str, context: CacheContext) -> str:
        return resolve_eviction_key(
            template,
            user_id=context.user_id,
            route_params=context.route_param_map,
            subject=context.subject,
        )

    async def evict(self, templates: Sequence[str], context: CacheContext) -> List[str]:
        """Delete each resolved key independently; returns the keys actually deleted."""
        evicted: List[str] = []
        for template in templates:
            key = template
            try:
                key = self.resolve(template, context)
                await self.store.delete(key)
                evicted.append(key)
                logger.debug("Evicted cache key: %s", key)
            except Exception as e:
                logger.error("Error evicting cache key %s: %s", key, e)
        return evicted

    async def execute(
        self,
        config: Optional[CacheEvict],
        context: CacheContext,
        handler: Handler,
    ) -> Any:
        result = await handler()

        if config is None or not config.templates:
            return result
        if carries_error(result):
            return result

        await self.evict(config.templates, context)
        return result
