"""
Pantry API — Shopping List Item Service
========================================

What:  Items on a shopping list, including check/uncheck and bulk clearing.
Why:   Checking an item off can feed the user's pantry automatically
       (User.should_auto_add_to_pantry), which ties lists and pantries together.

Validation order on create:
    1. list accessible      → 404 "Shopping list not found" / 403
    2. food exists          → 404 "Food item not found"
    3. not already on list  → 409 "This food item is already in the shopping list"

Auto-add on toggle (unchecked → checked only):
    user.should_auto_add_to_pantry
        └─ first pantry exists?  no  → warning logged, toggle still succeeds
                                 yes → PantryItemService.create_from_shopping_list
                                       (any failure logged, toggle still succeeds)
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.exceptions import ConflictError, ForbiddenError, NotFoundError
from pantry_api.models.food import Food
from pantry_api.models.shopping_list import ShoppingList, ShoppingListItem
from pantry_api.models.user import User
from pantry_api.schemas.shopping_list import (
    CreateShoppingListItemRequest,
    UpdateShoppingListItemRequest,
)
from pantry_api.services.pantry_item_service import pantry_item_service
from pantry_api.services.pantry_service import pantry_service
from pantry_api.services.shopping_list_service import shopping_list_service

logger = logging.getLogger(__name__)


class ShoppingListItemService:

    # ── Validation helpers ────────────────────────────────────────────────

    async def _ensure_food_exists(self, db: AsyncSession, food_id: str) -> None:
        result = await db.execute(select(Food.id).where(Food.id == food_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(resource="food", message="Food item not found")

    async def _ensure_not_listed(
        self,
        db: AsyncSession,
        list_id: str,
        food_id: str,
        exclude_id: Optional[str] = None,
    ) -> None:
        query = select(ShoppingListItem.id).where(
            ShoppingListItem.shopping_list_id == list_id,
            ShoppingListItem.food_id == food_id,
        )
        if exclude_id:
            query = query.where(ShoppingListItem.id != exclude_id)
        if (await db.execute(query)).scalar_one_or_none() is not None:
            raise ConflictError(message="This food item is already in the shopping list")

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def create(
        self, db: AsyncSession, dto: CreateShoppingListItemRequest, user_id: str
    ) -> ShoppingListItem:
        await shopping_list_service.find_by_id(db, dto.shopping_list_id, user_id)
        await self._ensure_food_exists(db, dto.food_id)
        await self._ensure_not_listed(db, dto.shopping_list_id, dto.food_id)

        item = ShoppingListItem(**dto.model_dump())
        db.add(item)
        await db.flush()
        logger.info("Shopping list item %s added to list %s", item.id, dto.shopping_list_id)
        return item

    async def find_by_shopping_list(
        self, db: AsyncSession, list_id: str, user_id: str
    ) -> List[ShoppingListItem]:
        await shopping_list_service.find_by_id(db, list_id, user_id)
        result = await db.execute(
            select(ShoppingListItem)
            .where(ShoppingListItem.shopping_list_id == list_id)
            .order_by(ShoppingListItem.checked, ShoppingListItem.created_at)
        )
        return list(result.scalars().all())

    async def find_by_id(self, db: AsyncSession, item_id: str, user_id: str) -> ShoppingListItem:
        result = await db.execute(
            select(ShoppingListItem, ShoppingList.user_id)
            .join(ShoppingList, ShoppingList.id == ShoppingListItem.shopping_list_id)
            .where(ShoppingListItem.id == item_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError(resource="shopping list item", message="Shopping list item not found")
        item, owner_id = row
        if owner_id != user_id:
            raise ForbiddenError(message="You do not have access to this shopping list")
        return item

    async def update(
        self,
        db: AsyncSession,
        item_id: str,
        dto: UpdateShoppingListItemRequest,
        user_id: str,
    ) -> ShoppingListItem:
        item = await self.find_by_id(db, item_id, user_id)
        changes = dto.model_dump(exclude_unset=True)

        target_list = changes.get("shopping_list_id") or item.shopping_list_id
        target_food = changes.get("food_id") or item.food_id

        if target_list != item.shopping_list_id:
            await shopping_list_service.find_by_id(db, target_list, user_id)
        if target_food != item.food_id:
            await self._ensure_food_exists(db, target_food)
        if target_list != item.shopping_list_id or target_food != item.food_id:
            await self._ensure_not_listed(db, target_list, target_food, exclude_id=item_id)

        if changes.get("checked") is True and item.checked:
            raise ConflictError(message="Item is already checked")

        for field, value in changes.items():
            if value is not None or field in ("unit", "notes"):
                setattr(item, field, value)
        await db.flush()
        return item

    async def toggle_checked(self, db: AsyncSession, item_id: str, user_id: str) -> ShoppingListItem:
        item = await self.find_by_id(db, item_id, user_id)
        item.checked = not item.checked
        await db.flush()
        logger.info("Shopping list item %s checked=%s", item_id, item.checked)

        if item.checked:
            await self._auto_add_to_pantry(db, item, user_id)
        return item

    async def _auto_add_to_pantry(
        self, db: AsyncSession, item: ShoppingListItem, user_id: str
    ) -> None:
        try:
            result = await db.execute(select(User.should_auto_add_to_pantry).where(User.id == user_id))
            if not result.scalar_one_or_none():
                return

            pantries = await pantry_service.find_all_by_user(db, user_id)
            if not pantries:
                logger.warning(
                    "Auto-add skipped for item %s: user %s has no pantry", item.id, user_id
                )
                return

            # Savepoint: a failed insert rolls back alone, the toggle still commits
            async with db.begin_nested():
                await pantry_item_service.create_from_shopping_list(
                    db,
                    food_id=item.food_id,
                    quantity=item.quantity,
                    unit=item.unit,
                    user_id=user_id,
                    pantry_id=pantries[0].id,
                )
            logger.info("Checked item %s copied into pantry %s", item.id, pantries[0].id)
        except Exception as e:
            logger.error("Auto-add to pantry failed for item %s: %s", item.id, e)

    async def remove(self, db: AsyncSession, item_id: str, user_id: str) -> None:
        item = await self.find_by_id(db, item_id, user_id)
        await db.delete(item)
        await db.flush()

    async def clear_checked_items(self, db: AsyncSession, list_id: str, user_id: str) -> int:
        """Delete every checked item of the list; returns how many were removed."""
        await shopping_list_service.find_by_id(db, list_id, user_id)
        result = await db.execute(
            delete(ShoppingListItem).where(
                ShoppingListItem.shopping_list_id == list_id,
                ShoppingListItem.checked.is_(True),
            )
        )
        deleted = result.rowcount or 0
        logger.info("Cleared %d checked items from list %s", deleted, list_id)
        return deleted


# ── Singleton Instance ────────────────────────────────────────────────────
shopping_list_item_service = ShoppingListItemService()
