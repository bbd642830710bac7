"""
Pantry API — Dish and Meal Log Service Unit Tests
==================================================

What:  Ownership and defaulting rules for dishes and meal logs.
How:   Mock DB session; MealLogService's dish lookup is patched at its import site.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from helpers import flush_assigns_defaults, result_with
from pantry_api.exceptions import ConflictError, NotFoundError
from pantry_api.models.meal import Dish, MealLog, TypeOfMeal
from pantry_api.schemas.meal import (
    CreateDishRequest,
    CreateMealLogRequest,
    DishQuery,
    UpdateDishRequest,
    UpdateMealLogRequest,
)
from pantry_api.services.dish_service import DishService
from pantry_api.services.meal_log_service import MealLogService

MODULE = "pantry_api.services.meal_log_service"


class TestDishService:

    def setup_method(self):
        self.service = DishService()

    @pytest.mark.asyncio
    async def test_create(self, mock_db_session):
        flush_assigns_defaults(mock_db_session)

        dish = await self.service.create(
            mock_db_session, CreateDishRequest(name="Carbonara", calories=650), "user-1"
        )

        assert dish.name == "Carbonara"
        assert dish.user_id == "user-1"
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_barcode(self, mock_db_session):
        mock_db_session.execute.return_value = result_with(scalar="dish-2")

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create(
                mock_db_session, CreateDishRequest(name="Carbonara", barcode="123"), "user-1"
            )

        assert exc_info.value.message == "Dish with this barcode already exists"

    @pytest.mark.asyncio
    async def test_foreign_dish_is_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = result_with(scalar=None)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.find_one(mock_db_session, "dish-1", "user-2")

        assert exc_info.value.message == "Dish not found"

    @pytest.mark.asyncio
    async def test_update_keeps_name_on_null(self, mock_db_session):
        dish = Dish(id="dish-1", name="Carbonara", user_id="user-1")
        mock_db_session.execute.return_value = result_with(scalar=dish)

        result = await self.service.update(
            mock_db_session, "dish-1", UpdateDishRequest(name=None, calories=700), "user-1"
        )

        assert result.name == "Carbonara"
        assert result.calories == 700

    @pytest.mark.asyncio
    async def test_find_all_empty(self, mock_db_session):
        mock_db_session.execute.side_effect = [result_with(scalars=[]), result_with(count=0)]

        result = await self.service.find_all(mock_db_session, "user-1", DishQuery())

        assert result.data == []
        assert result.total == 0
        assert result.total_pages == 0


class TestMealLogService:

    def setup_method(self):
        self.service = MealLogService()

    @pytest.mark.asyncio
    async def test_defaults_from_dish(self, mock_db_session):
        flush_assigns_defaults(mock_db_session)
        dish = Dish(id="dish-1", name="Leftovers", user_id="user-1", pantry_item_id="item-1")

        with patch(f"{MODULE}.dish_service") as mock_dishes:
            mock_dishes.get_owned = AsyncMock(return_value=dish)
            meal_log = await self.service.create(
                mock_db_session,
                CreateMealLogRequest(dish_id="dish-1", type_of_meal=TypeOfMeal.DINNER),
                "user-1",
            )

        assert meal_log.meal_from_pantry is True
        assert meal_log.eaten_out is False
        assert meal_log.timestamp is not None
        assert meal_log.user_id == "user-1"

    @pytest.mark.asyncio
    async def test_explicit_values_win(self, mock_db_session, now):
        flush_assigns_defaults(mock_db_session)
        dish = Dish(id="dish-1", name="Leftovers", user_id="user-1", pantry_item_id="item-1")

        with patch(f"{MODULE}.dish_service") as mock_dishes:
            mock_dishes.get_owned = AsyncMock(return_value=dish)
            meal_log = await self.service.create(
                mock_db_session,
                CreateMealLogRequest(
                    dish_id="dish-1",
                    type_of_meal=TypeOfMeal.LUNCH,
                    timestamp=now,
                    meal_from_pantry=False,
                    eaten_out=True,
                ),
                "user-1",
            )

        assert meal_log.meal_from_pantry is False
        assert meal_log.eaten_out is True
        assert meal_log.timestamp == now

    @pytest.mark.asyncio
    async def test_dish_without_pantry_item(self, mock_db_session):
        flush_assigns_defaults(mock_db_session)
        dish = Dish(id="dish-2", name="Takeaway", user_id="user-1")

        with patch(f"{MODULE}.dish_service") as mock_dishes:
            mock_dishes.get_owned = AsyncMock(return_value=dish)
            meal_log = await self.service.create(
                mock_db_session,
                CreateMealLogRequest(dish_id="dish-2", type_of_meal=TypeOfMeal.SNACK),
                "user-1",
            )

        assert meal_log.meal_from_pantry is False

    @pytest.mark.asyncio
    async def test_foreign_dish_rejected(self, mock_db_session):
        with patch(f"{MODULE}.dish_service") as mock_dishes:
            mock_dishes.get_owned = AsyncMock(side_effect=NotFoundError(message="Dish not found"))
            with pytest.raises(NotFoundError):
                await self.service.create(
                    mock_db_session,
                    CreateMealLogRequest(dish_id="dish-9", type_of_meal=TypeOfMeal.LUNCH),
                    "user-1",
                )

        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_log(self, mock_db_session):
        mock_db_session.execute.return_value = result_with(scalar=None)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.find_one(mock_db_session, "log-1", "user-1")

        assert exc_info.value.message == "Meal log not found"

    @pytest.mark.asyncio
    async def test_update_revalidates_changed_dish(self, mock_db_session):
        meal_log = MealLog(
            id="log-1",
            user_id="user-1",
            dish_id="dish-1",
            type_of_meal=TypeOfMeal.LUNCH,
            timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
            meal_from_pantry=False,
            eaten_out=False,
        )
        mock_db_session.execute.return_value = result_with(scalar=meal_log)

        with patch(f"{MODULE}.dish_service") as mock_dishes:
            mock_dishes.get_owned = AsyncMock()
            result = await self.service.update(
                mock_db_session, "log-1", UpdateMealLogRequest(dish_id="dish-2"), "user-1"
            )

        mock_dishes.get_owned.assert_awaited_once_with(mock_db_session, "dish-2", "user-1")
        assert result.dish_id == "dish-2"
