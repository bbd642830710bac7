"""
Pantry API — HTTP Route Tests
==============================

What:  End-to-end request handling through the real middleware stack, cache
       decorators and exception handlers.
How:   HTTPX AsyncClient over ASGITransport; services are patched at the route
       module so no database is touched. The app's cache store is the
       `memory_store` fixture, so tests can inspect exactly what was cached.

What we test:
    ✅ Second identical GET is served from the cache (service called once)
    ✅ Cache keys separate users and query strings
    ✅ Successful writes evict the keys the next read would use
    ✅ Errors are never cached and share one JSON shape
    ✅ 401 for anonymous callers, 403 for missing roles
    ✅ Admin user listing, preferences readable only by their owner or an admin
    ✅ X-Request-ID round trip, /health
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from helpers import result_with
from pantry_api.exceptions import NotFoundError
from pantry_api.models.user import User
from pantry_api.schemas.food import FoodResponse
from pantry_api.schemas.user import UserPreferences

FOODS = "pantry_api.routes.foods.food_service"
PROFILE = "pantry_api.routes.profile.user_service"
USERS = "pantry_api.routes.users.user_service"


def food_response(now, **overrides):
    fields = dict(
        id="food-1",
        name="Nutella",
        barcode="3017620422003",
        created_by="user-1",
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return FoodResponse(**fields)


def profile(now, **overrides):
    fields = dict(
        id="user-1",
        keycloak_id="kc-sub-1",
        email="ada@example.com",
        first_name="Ada",
        last_name="Lovelace",
        should_auto_add_to_pantry=False,
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return User(**fields)


class TestResponseCaching:

    @pytest.mark.asyncio
    async def test_second_get_is_served_from_cache(self, test_client, auth, regular_user, now):
        auth.user = regular_user
        with patch(FOODS) as mock_service:
            mock_service.find_one = AsyncMock(return_value=food_response(now))

            first = await test_client.get("/foods/food-1")
            second = await test_client.get("/foods/food-1")

        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()
        assert first.json()["name"] == "Nutella"
        mock_service.find_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_key_matches_documented_format(self, test_client, memory_store, auth, regular_user, now):
        auth.user = regular_user
        with patch(FOODS) as mock_service:
            mock_service.find_one = AsyncMock(return_value=food_response(now))
            await test_client.get("/foods/food-1", params={"includeOpenFoodFacts": "true"})

        cached = await memory_store.get("food:user-1:id:food-1:aW5jbHVkZU9wZW5Gb29kRmFjdHM9dHJ1ZQ==")
        assert cached["id"] == "food-1"

    @pytest.mark.asyncio
    async def test_anonymous_and_authenticated_callers_do_not_share(self, test_client, auth, regular_user, now):
        with patch(FOODS) as mock_service:
            mock_service.find_one = AsyncMock(return_value=food_response(now))

            await test_client.get("/foods/food-1")
            auth.user = regular_user
            await test_client.get("/foods/food-1")

        assert mock_service.find_one.await_count == 2

    @pytest.mark.asyncio
    async def test_query_string_is_part_of_the_key(self, test_client, auth, regular_user, now):
        auth.user = regular_user
        with patch(FOODS) as mock_service:
            mock_service.find_one = AsyncMock(return_value=food_response(now))

            await test_client.get("/foods/food-1")
            await test_client.get("/foods/food-1", params={"includeOpenFoodFacts": "true"})

        assert mock_service.find_one.await_count == 2

    @pytest.mark.asyncio
    async def test_errors_are_not_cached(self, test_client, auth, regular_user):
        auth.user = regular_user
        with patch(FOODS) as mock_service:
            mock_service.find_one = AsyncMock(
                side_effect=NotFoundError(resource="food", message="Food not found")
            )

            first = await test_client.get("/foods/missing")
            second = await test_client.get("/foods/missing")

        assert first.status_code == second.status_code == 404
        assert mock_service.find_one.await_count == 2

    @pytest.mark.asyncio
    async def test_patch_evicts_the_cached_food(self, test_client, auth, regular_user, now):
        auth.user = regular_user
        with patch(FOODS) as mock_service:
            mock_service.find_one = AsyncMock(
                side_effect=[food_response(now), food_response(now, name="Nutella B-ready")]
            )
            mock_service.update = AsyncMock(return_value=food_response(now, name="Nutella B-ready"))

            await test_client.get("/foods/food-1")
            patched = await test_client.patch("/foods/food-1", json={"name": "Nutella B-ready"})
            after = await test_client.get("/foods/food-1")

        assert patched.status_code == 200
        assert after.json()["name"] == "Nutella B-ready"
        assert mock_service.find_one.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_write_keeps_the_cache(self, test_client, memory_store, auth, regular_user, now):
        auth.user = regular_user
        await memory_store.set("food:user-1:id:food-1", {"stale": True})
        with patch(FOODS) as mock_service:
            mock_service.update = AsyncMock(side_effect=NotFoundError(message="Food not found"))
            response = await test_client.patch("/foods/food-1", json={"name": "x"})

        assert response.status_code == 404
        assert await memory_store.get("food:user-1:id:food-1") == {"stale": True}

    @pytest.mark.asyncio
    async def test_write_is_committed_before_eviction(
        self, test_client, memory_store, mock_db_session, auth, regular_user, now
    ):
        auth.user = regular_user
        events = []
        mock_db_session.commit.side_effect = lambda: events.append("commit")
        real_delete = memory_store.delete

        async def recording_delete(key):
            events.append(f"del:{key}")
            await real_delete(key)

        memory_store.delete = recording_delete
        with patch(FOODS) as mock_service:
            mock_service.update = AsyncMock(return_value=food_response(now, name="Nutella B-ready"))
            response = await test_client.patch("/foods/food-1", json={"name": "Nutella B-ready"})

        assert response.status_code == 200
        assert events[0] == "commit"
        assert "del:food:user-1:id:food-1" in events

    @pytest.mark.asyncio
    async def test_failed_commit_evicts_nothing(
        self, test_client, memory_store, mock_db_session, auth, regular_user, now
    ):
        auth.user = regular_user
        await memory_store.set("food:user-1:id:food-1", {"stale": True})
        mock_db_session.commit.side_effect = IntegrityError(
            "UPDATE foods", {}, Exception("duplicate key value violates unique constraint")
        )
        with patch(FOODS) as mock_service:
            mock_service.update = AsyncMock(return_value=food_response(now))
            response = await test_client.patch("/foods/food-1", json={"name": "x"})

        assert response.status_code == 409
        assert await memory_store.get("food:user-1:id:food-1") == {"stale": True}

    @pytest.mark.asyncio
    async def test_profile_update_evicts_both_profile_keys(self, test_client, memory_store, auth, regular_user, now):
        auth.user = regular_user
        await memory_store.set("user_profile:kc-sub-1", {"stale": True})
        with patch(PROFILE) as mock_service:
            mock_service.get_profile = AsyncMock(return_value=profile(now))
            mock_service.update_profile = AsyncMock(return_value=profile(now, first_name="Augusta"))

            await test_client.get("/profile/me")
            assert await memory_store.get("user_profile:user-1") is not None

            response = await test_client.patch("/profile", json={"first_name": "Augusta"})

        assert response.status_code == 200
        assert response.json()["first_name"] == "Augusta"
        assert await memory_store.get("user_profile:user-1") is None
        assert await memory_store.get("user_profile:kc-sub-1") is None

    @pytest.mark.asyncio
    async def test_create_evicts_food_lists(self, test_client, memory_store, auth, regular_user, now):
        auth.user = regular_user
        await memory_store.set("foods:list:anonymous", {"stale": True})
        await memory_store.set("foods:list:user-1", {"stale": True})
        with patch(FOODS) as mock_service:
            mock_service.create = AsyncMock(return_value=food_response(now, name="Apple"))
            response = await test_client.post("/foods", json={"name": "Apple"})

        assert response.status_code == 201
        assert await memory_store.get("foods:list:anonymous") is None
        assert await memory_store.get("foods:list:user-1") is None


class TestAuthAndErrors:

    @pytest.mark.asyncio
    async def test_anonymous_profile_is_401(self, test_client):
        response = await test_client.get("/profile/me")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_delete_requires_admin(self, test_client, auth, regular_user):
        auth.user = regular_user
        with patch(FOODS) as mock_service:
            mock_service.remove = AsyncMock()
            response = await test_client.delete("/foods/food-1")

        assert response.status_code == 403
        mock_service.remove.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_can_delete(self, test_client, auth, admin_user):
        auth.user = admin_user
        with patch(FOODS) as mock_service:
            mock_service.remove = AsyncMock()
            response = await test_client.delete("/foods/food-1")

        assert response.status_code == 204
        mock_service.remove.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_error_body_shape(self, test_client, auth, regular_user):
        auth.user = regular_user
        with patch(FOODS) as mock_service:
            mock_service.find_one = AsyncMock(
                side_effect=NotFoundError(resource="food", message="Food not found")
            )
            response = await test_client.get("/foods/missing", headers={"X-Request-ID": "req-42"})

        body = response.json()
        assert set(body) == {"error", "message", "details", "request_id"}
        assert body["error"] == "not_found"
        assert body["message"] == "Food not found"
        assert body["request_id"] == "req-42"

    @pytest.mark.asyncio
    async def test_request_id_generated_when_absent(self, test_client):
        response = await test_client.get("/profile/me")
        assert response.headers["X-Request-ID"]


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        with patch("pantry_api.routes.health.openfoodfacts_service") as mock_off:
            mock_off.circuit_breaker = MagicMock(state="closed")
            mock_off.health_check = AsyncMock(return_value=True)
            response = await test_client.get("/health")

        body = response.json()
        assert body["database"] == "connected"
        assert body["cache"] == "connected"
        assert body["cache_backend"] == "memory"
        assert body["status"] == "healthy"
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_open_circuit_degrades(self, test_client):
        with patch("pantry_api.routes.health.openfoodfacts_service") as mock_off:
            mock_off.circuit_breaker = MagicMock(state="open")
            mock_off.health_check = AsyncMock()
            response = await test_client.get("/health")

        assert response.json()["openfoodfacts"] == "circuit_open"
        assert response.json()["status"] == "degraded"
        mock_off.health_check.assert_not_awaited()


class TestUserAdministration:

    @pytest.mark.asyncio
    async def test_admin_list_is_cached(self, test_client, memory_store, auth, admin_user, now):
        auth.user = admin_user
        with patch(USERS) as mock_service:
            mock_service.list_users = AsyncMock(return_value=[profile(now)])

            first = await test_client.get("/users")
            second = await test_client.get("/users")

        assert first.status_code == second.status_code == 200
        assert first.json()[0]["email"] == "ada@example.com"
        assert await memory_store.get("users_list:admin-1") is not None
        mock_service.list_users.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_list_requires_admin(self, test_client, auth, regular_user):
        auth.user = regular_user
        with patch(USERS) as mock_service:
            mock_service.list_users = AsyncMock()
            response = await test_client.get("/users")

        assert response.status_code == 403
        mock_service.list_users.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_evicts_the_users_profile(self, test_client, memory_store, auth, admin_user):
        auth.user = admin_user
        await memory_store.set("users_list:admin-1", {"stale": True})
        await memory_store.set("user_profile:user-1", {"stale": True})
        with patch(USERS) as mock_service:
            mock_service.remove = AsyncMock()
            response = await test_client.delete("/users/user-1")

        assert response.status_code == 204
        assert await memory_store.get("users_list:admin-1") is None
        assert await memory_store.get("user_profile:user-1") is None

    @pytest.mark.asyncio
    async def test_own_preferences(self, test_client, mock_db_session, auth, regular_user, now):
        auth.user = regular_user
        user = profile(now, preferences={"allergies": ["peanuts"]})
        mock_db_session.execute.return_value = result_with(scalar=user)

        response = await test_client.get("/users/user-1/preferences")

        assert response.status_code == 200
        assert response.json() == {
            "dietary_restrictions": [],
            "allergies": ["peanuts"],
            "preferred_categories": [],
        }

    @pytest.mark.asyncio
    async def test_someone_elses_preferences_are_forbidden(self, test_client, mock_db_session, auth, regular_user):
        auth.user = regular_user

        response = await test_client.get("/users/user-2/preferences")

        assert response.status_code == 403
        assert response.json()["message"] == "You can only access your own preferences"
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_preferences_update_evicts_the_cached_read(self, test_client, memory_store, auth, regular_user):
        auth.user = regular_user
        await memory_store.set("user_preferences:user-1:id:user-1", {"stale": True})
        with patch(USERS) as mock_service:
            mock_service.update_preferences = AsyncMock(
                return_value=UserPreferences(allergies=["gluten"])
            )
            response = await test_client.patch(
                "/users/user-1/preferences", json={"allergies": ["gluten"]}
            )

        assert response.status_code == 200
        assert response.json()["allergies"] == ["gluten"]
        assert await memory_store.get("user_preferences:user-1:id:user-1") is None
