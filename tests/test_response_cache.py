"""
Pantry API — Response Cache and Invalidator Unit Tests
=======================================================

What:  ResponseCache (GET memoization) and CacheInvalidator (post-mutation eviction).
How:   A real MemoryCacheStore on a fake clock, plus AsyncMock stores for the
       failure paths. No HTTP involved.

What we test:
    ✅ miss → handler runs once and the result is stored with the declared TTL
    ✅ hit → handler never runs
    ✅ non-GET and undeclared routes pass straight through
    ✅ None and error-shaped results are never stored
    ✅ store failures degrade to "no cache", never to an error
    ✅ eviction runs only after success, one failing key does not stop the rest
"""

from unittest.mock import AsyncMock

import pytest

from pantry_api.cache import CacheContext, CacheEvict, CacheInvalidator, Cacheable, ResponseCache


def counting_handler(value):
    handler = AsyncMock(return_value=value)
    return handler


class TestCacheableDeclaration:

    def test_ttl_converted_to_milliseconds(self):
        assert Cacheable("food", ttl_seconds=300).ttl_ms == 300_000

    def test_zero_or_missing_ttl_means_no_expiry(self):
        assert Cacheable("food").ttl_ms is None
        assert Cacheable("food", ttl_seconds=0).ttl_ms is None

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            Cacheable("")

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValueError):
            Cacheable("food", ttl_seconds=-1)

    def test_evict_templates_are_frozen(self):
        config = CacheEvict(["a", "b"])
        assert config.templates == ("a", "b")


class TestResponseCache:

    def setup_method(self):
        self.context = CacheContext(method="GET", user_id="user123", route_params=[("id", "food-1")])

    @pytest.mark.asyncio
    async def test_miss_runs_handler_and_stores(self, memory_store):
        cache = ResponseCache(memory_store)
        handler = counting_handler({"id": "food-1"})

        result = await cache.execute(Cacheable("food", 300), self.context, handler)

        assert result == {"id": "food-1"}
        handler.assert_awaited_once()
        assert await memory_store.get("food:user123:id:food-1") == {"id": "food-1"}

    @pytest.mark.asyncio
    async def test_hit_skips_handler(self, memory_store):
        await memory_store.set("food:user123:id:food-1", {"id": "cached"})
        cache = ResponseCache(memory_store)
        handler = counting_handler({"id": "fresh"})

        result = await cache.execute(Cacheable("food", 300), self.context, handler)

        assert result == {"id": "cached"}
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, memory_store, fake_timer):
        cache = ResponseCache(memory_store)
        config = Cacheable("food", ttl_seconds=60)

        await cache.execute(config, self.context, counting_handler({"v": 1}))
        fake_timer.advance(59)
        assert await cache.execute(config, self.context, counting_handler({"v": 2})) == {"v": 1}

        fake_timer.advance(2)
        assert await cache.execute(config, self.context, counting_handler({"v": 3})) == {"v": 3}

    @pytest.mark.asyncio
    async def test_users_do_not_share_entries(self, memory_store):
        cache = ResponseCache(memory_store)
        config = Cacheable("pantries", 300)

        await cache.execute(config, CacheContext(user_id="a"), counting_handler(["a's pantry"]))
        result = await cache.execute(config, CacheContext(user_id="b"), counting_handler(["b's pantry"]))

        assert result == ["b's pantry"]

    @pytest.mark.asyncio
    async def test_non_get_passes_through(self, memory_store):
        cache = ResponseCache(memory_store)
        context = CacheContext(method="POST", user_id="user123")
        handler = counting_handler({"created": True})

        await cache.execute(Cacheable("food", 300), context, handler)
        await cache.execute(Cacheable("food", 300), context, handler)

        assert handler.await_count == 2
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_no_declaration_passes_through(self, memory_store):
        cache = ResponseCache(memory_store)
        handler = counting_handler({"x": 1})

        await cache.execute(None, self.context, handler)

        handler.assert_awaited_once()
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_none_result_not_stored(self, memory_store):
        cache = ResponseCache(memory_store)
        handler = counting_handler(None)

        assert await cache.execute(Cacheable("food:off", 600), self.context, handler) is None
        await cache.execute(Cacheable("food:off", 600), self.context, handler)

        assert handler.await_count == 2

    @pytest.mark.asyncio
    async def test_error_result_not_stored(self, memory_store):
        cache = ResponseCache(memory_store)

        result = await cache.execute(
            Cacheable("food", 300), self.context, counting_handler({"error": "boom"})
        )

        assert result == {"error": "boom"}
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_falsy_results_are_cached(self, memory_store):
        cache = ResponseCache(memory_store)
        await cache.execute(Cacheable("groups", 120), self.context, counting_handler([]))

        handler = counting_handler(["new"])
        assert await cache.execute(Cacheable("groups", 120), self.context, handler) == []
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookup_failure_falls_back_to_handler(self):
        store = AsyncMock()
        store.get.side_effect = ConnectionError("redis down")
        cache = ResponseCache(store)
        handler = counting_handler({"id": "food-1"})

        result = await cache.execute(Cacheable("food", 300), self.context, handler)

        assert result == {"id": "food-1"}
        handler.assert_awaited_once()
        store.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_still_returns_result(self):
        store = AsyncMock()
        store.get.return_value = None
        store.set.side_effect = ConnectionError("redis down")
        cache = ResponseCache(store)

        result = await cache.execute(Cacheable("food", 300), self.context, counting_handler({"id": 1}))

        assert result == {"id": 1}

    @pytest.mark.asyncio
    async def test_handler_errors_propagate_and_nothing_is_stored(self, memory_store):
        cache = ResponseCache(memory_store)
        handler = AsyncMock(side_effect=RuntimeError("handler failed"))

        with pytest.raises(RuntimeError):
            await cache.execute(Cacheable("food", 300), self.context, handler)
        assert len(memory_store) == 0


class TestCacheInvalidator:

    def setup_method(self):
        self.context = CacheContext(
            method="PATCH",
            user_id="user123",
            subject="kc-123",
            route_params=[("id", "food-1")],
        )

    @pytest.mark.asyncio
    async def test_evicts_resolved_keys_after_success(self, memory_store):
        await memory_store.set("food:user123:id:food-1", {"stale": True})
        await memory_store.set("foods:list", {"stale": True})
        invalidator = CacheInvalidator(memory_store)

        result = await invalidator.execute(
            CacheEvict(["food:{userId}:id:{id}", "foods:list"]),
            self.context,
            counting_handler({"id": "food-1"}),
        )

        assert result == {"id": "food-1"}
        assert await memory_store.get("food:user123:id:food-1") is None
        assert await memory_store.get("foods:list") is None

    @pytest.mark.asyncio
    async def test_handler_failure_evicts_nothing(self, memory_store):
        await memory_store.set("foods:list", {"kept": True})
        invalidator = CacheInvalidator(memory_store)

        with pytest.raises(ValueError):
            await invalidator.execute(
                CacheEvict(["foods:list"]),
                self.context,
                AsyncMock(side_effect=ValueError("invalid")),
            )

        assert await memory_store.get("foods:list") == {"kept": True}

    @pytest.mark.asyncio
    async def test_error_shaped_result_evicts_nothing(self, memory_store):
        await memory_store.set("foods:list", {"kept": True})
        invalidator = CacheInvalidator(memory_store)

        await invalidator.execute(
            CacheEvict(["foods:list"]), self.context, counting_handler({"error": "conflict"})
        )

        assert await memory_store.get("foods:list") == {"kept": True}

    @pytest.mark.asyncio
    async def test_none_result_still_evicts(self, memory_store):
        await memory_store.set("food:food-1", {"stale": True})
        invalidator = CacheInvalidator(memory_store)

        await invalidator.execute(CacheEvict(["food:{id}"]), self.context, counting_handler(None))

        assert await memory_store.get("food:food-1") is None

    @pytest.mark.asyncio
    async def test_one_failing_key_does_not_stop_the_rest(self):
        store = AsyncMock()
        store.delete.side_effect = [ConnectionError("first fails"), None]
        invalidator = CacheInvalidator(store)

        evicted = await invalidator.evict(["user_profile:{userId}", "user_profile:{keycloakId}"], self.context)

        assert evicted == ["user_profile:kc-123"]
        assert store.delete.await_count == 2

    @pytest.mark.asyncio
    async def test_no_declaration_just_runs_handler(self, memory_store):
        invalidator = CacheInvalidator(memory_store)
        handler = counting_handler({"ok": True})

        assert await invalidator.execute(None, self.context, handler) == {"ok": True}
        handler.assert_awaited_once()
