"""
Pantry API — Pantry and Pantry Item Service Unit Tests
=======================================================

What:  Ownership, uniqueness and defaulting rules of PantryService / PantryItemService.
How:   Mock DB session; PantryItemService's pantry lookup is patched at its import site.
"""

from unittest.mock import AsyncMock, patch

import pytest

from helpers import flush_assigns_defaults, result_with
from pantry_api.exceptions import ConflictError, ForbiddenError, NotFoundError
from pantry_api.models.pantry import Pantry, PantryItem, Unit
from pantry_api.schemas.pantry import (
    CreatePantryItemRequest,
    CreatePantryRequest,
    UpdatePantryItemRequest,
)
from pantry_api.services.pantry_item_service import PantryItemService
from pantry_api.services.pantry_service import DEFAULT_PANTRY_TITLE, PantryService


class TestPantryService:

    def setup_method(self):
        self.service = PantryService()

    @pytest.mark.asyncio
    async def test_create(self, mock_db_session):
        flush_assigns_defaults(mock_db_session)
        mock_db_session.execute.return_value = result_with(scalar=None)

        pantry = await self.service.create(mock_db_session, CreatePantryRequest(title="Kitchen"), "user-1")

        assert pantry.title == "Kitchen"
        assert pantry.user_id == "user-1"
        assert pantry.id

    @pytest.mark.asyncio
    async def test_duplicate_title(self, mock_db_session):
        mock_db_session.execute.return_value = result_with(scalar="pantry-1")

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create(mock_db_session, CreatePantryRequest(title="Kitchen"), "user-1")

        assert exc_info.value.message == "Pantry with this title already exists"

    @pytest.mark.asyncio
    async def test_find_by_id_absent(self, mock_db_session):
        mock_db_session.execute.return_value = result_with(scalar=None)

        with pytest.raises(NotFoundError):
            await self.service.find_by_id(mock_db_session, "pantry-x", "user-1")

    @pytest.mark.asyncio
    async def test_find_by_id_foreign(self, mock_db_session):
        mock_db_session.execute.return_value = result_with(
            scalar=Pantry(id="pantry-1", title="Theirs", user_id="user-2")
        )

        with pytest.raises(ForbiddenError):
            await self.service.find_by_id(mock_db_session, "pantry-1", "user-1")

    @pytest.mark.asyncio
    async def test_validate_pantry_exists_returns_first(self, mock_db_session):
        existing = Pantry(id="pantry-1", title="Kitchen", user_id="user-1")
        mock_db_session.execute.return_value = result_with(scalar=existing)

        assert await self.service.validate_pantry_exists(mock_db_session, "user-1") is existing
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_validate_pantry_exists_creates_default(self, mock_db_session):
        flush_assigns_defaults(mock_db_session)
        mock_db_session.execute.side_effect = [
            result_with(scalar=None),
            result_with(scalar=None),
        ]

        pantry = await self.service.validate_pantry_exists(mock_db_session, "user-1")

        assert pantry.title == DEFAULT_PANTRY_TITLE == "My Pantry"
        assert pantry.user_id == "user-1"


class TestPantryItemService:

    def setup_method(self):
        self.service = PantryItemService()
        self.dto = CreatePantryItemRequest(
            pantry_id="pantry-1", food_id="food-1", quantity=2, unit=Unit.KG
        )

    @pytest.mark.asyncio
    async def test_create(self, mock_db_session):
        flush_assigns_defaults(mock_db_session)
        mock_db_session.execute.side_effect = [
            result_with(scalar="food-1"),
            result_with(scalar=None),
        ]

        with patch("pantry_api.services.pantry_item_service.pantry_service") as mock_pantries:
            mock_pantries.find_by_id = AsyncMock()
            item = await self.service.create(mock_db_session, self.dto, "user-1")

        assert item.pantry_id == "pantry-1"
        assert item.quantity == 2
        assert item.unit == Unit.KG
        mock_pantries.find_by_id.assert_awaited_once_with(mock_db_session, "pantry-1", "user-1")

    @pytest.mark.asyncio
    async def test_create_without_pantry_uses_default(self, mock_db_session):
        flush_assigns_defaults(mock_db_session)
        mock_db_session.execute.side_effect = [
            result_with(scalar="food-1"),
            result_with(scalar=None),
        ]
        dto = CreatePantryItemRequest(food_id="food-1", quantity=1, unit=Unit.L)

        with patch("pantry_api.services.pantry_item_service.pantry_service") as mock_pantries:
            mock_pantries.validate_pantry_exists = AsyncMock(
                return_value=Pantry(id="pantry-default", title="My Pantry", user_id="user-1")
            )
            mock_pantries.find_by_id = AsyncMock()
            item = await self.service.create(mock_db_session, dto, "user-1")

        assert item.pantry_id == "pantry-default"
        mock_pantries.validate_pantry_exists.assert_awaited_once_with(mock_db_session, "user-1")
        mock_pantries.find_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_food(self, mock_db_session):
        mock_db_session.execute.return_value = result_with(scalar=None)

        with patch("pantry_api.services.pantry_item_service.pantry_service") as mock_pantries:
            mock_pantries.find_by_id = AsyncMock()
            with pytest.raises(NotFoundError) as exc_info:
                await self.service.create(mock_db_session, self.dto, "user-1")

        assert exc_info.value.message == "Food not found"

    @pytest.mark.asyncio
    async def test_food_already_stocked(self, mock_db_session):
        mock_db_session.execute.side_effect = [
            result_with(scalar="food-1"),
            result_with(scalar="item-1"),
        ]

        with patch("pantry_api.services.pantry_item_service.pantry_service") as mock_pantries:
            mock_pantries.find_by_id = AsyncMock()
            with pytest.raises(ConflictError):
                await self.service.create(mock_db_session, self.dto, "user-1")

    @pytest.mark.asyncio
    async def test_foreign_pantry_stops_before_food_lookup(self, mock_db_session):
        with patch("pantry_api.services.pantry_item_service.pantry_service") as mock_pantries:
            mock_pantries.find_by_id = AsyncMock(side_effect=ForbiddenError())
            with pytest.raises(ForbiddenError):
                await self.service.create(mock_db_session, self.dto, "user-1")

        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_from_shopping_list_defaults(self, mock_db_session):
        flush_assigns_defaults(mock_db_session)
        mock_db_session.execute.side_effect = [
            result_with(scalar="food-1"),
            result_with(scalar=None),
        ]

        with patch("pantry_api.services.pantry_item_service.pantry_service") as mock_pantries:
            mock_pantries.find_by_id = AsyncMock()
            item = await self.service.create_from_shopping_list(
                mock_db_session,
                food_id="food-1",
                quantity=3,
                unit=None,
                user_id="user-1",
                pantry_id="pantry-1",
            )

        assert item.unit == Unit.PIECES
        assert item.notes == "Added from shopping list"

    @pytest.mark.asyncio
    async def test_find_by_id_foreign(self, mock_db_session):
        item = PantryItem(id="item-1", pantry_id="pantry-1", food_id="food-1", quantity=1, unit=Unit.G)
        mock_db_session.execute.return_value = result_with(one=(item, "user-2"))

        with pytest.raises(ForbiddenError):
            await self.service.find_by_id(mock_db_session, "item-1", "user-1")

    @pytest.mark.asyncio
    async def test_update_applies_changes(self, mock_db_session):
        item = PantryItem(id="item-1", pantry_id="pantry-1", food_id="food-1", quantity=1, unit=Unit.G)
        mock_db_session.execute.return_value = result_with(one=(item, "user-1"))

        result = await self.service.update(
            mock_db_session, "item-1", UpdatePantryItemRequest(quantity=5), "user-1"
        )

        assert result.quantity == 5
        assert result.unit == Unit.G
