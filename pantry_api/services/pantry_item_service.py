"""
Pantry API — Pantry Item Service
=================================

What:  Stock entries inside a pantry (food + quantity + unit).
Rules:
    - the pantry must belong to the caller (404 absent, 403 foreign); without a
      pantry id the caller's first pantry is used, "My Pantry" if they have none
    - the food must exist (404 "Food not found")
    - a food appears at most once per pantry (409)
Who:   Pantry item routes, and ShoppingListItemService when a checked item is
       copied into the pantry.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.exceptions import ConflictError, ForbiddenError, NotFoundError
from pantry_api.models.food import Food
from pantry_api.models.pantry import Pantry, PantryItem, Unit
from pantry_api.schemas.pantry import CreatePantryItemRequest, UpdatePantryItemRequest
from pantry_api.services.pantry_service import pantry_service

logger = logging.getLogger(__name__)


class PantryItemService:

    async def _ensure_food_exists(self, db: AsyncSession, food_id: str) -> None:
        result = await db.execute(select(Food.id).where(Food.id == food_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(resource="food", message="Food not found")

    async def _ensure_not_stocked(self, db: AsyncSession, pantry_id: str, food_id: str) -> None:
        result = await db.execute(
            select(PantryItem.id).where(
                PantryItem.pantry_id == pantry_id,
                PantryItem.food_id == food_id,
            )
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictError(message="This food item is already in the pantry")

    async def _add(
        self,
        db: AsyncSession,
        user_id: str,
        pantry_id: Optional[str],
        food_id: str,
        quantity: float,
        unit: Unit,
        notes: Optional[str] = None,
        expiry_date: Optional[date] = None,
    ) -> PantryItem:
        if pantry_id is None:
            pantry_id = (await pantry_service.validate_pantry_exists(db, user_id)).id
        else:
            await pantry_service.find_by_id(db, pantry_id, user_id)
        await self._ensure_food_exists(db, food_id)
        await self._ensure_not_stocked(db, pantry_id, food_id)

        item = PantryItem(
            pantry_id=pantry_id,
            food_id=food_id,
            quantity=quantity,
            unit=unit,
            notes=notes,
            expiry_date=expiry_date,
        )
        db.add(item)
        await db.flush()
        logger.info("Pantry item %s added to pantry %s", item.id, pantry_id)
        return item

    async def create(self, db: AsyncSession, dto: CreatePantryItemRequest, user_id: str) -> PantryItem:
        return await self._add(db, user_id, **dto.model_dump())

    async def create_from_shopping_list(
        self,
        db: AsyncSession,
        food_id: str,
        quantity: float,
        unit: Optional[Unit],
        user_id: str,
        pantry_id: Optional[str] = None,
    ) -> PantryItem:
        return await self._add(
            db,
            user_id,
            pantry_id=pantry_id,
            food_id=food_id,
            quantity=quantity,
            unit=unit or Unit.PIECES,
            notes="Added from shopping list",
        )

    async def find_all(
        self, db: AsyncSession, user_id: str, pantry_id: Optional[str] = None
    ) -> List[PantryItem]:
        if pantry_id:
            await pantry_service.find_by_id(db, pantry_id, user_id)
        query = (
            select(PantryItem)
            .join(Pantry, Pantry.id == PantryItem.pantry_id)
            .where(Pantry.user_id == user_id)
            .order_by(PantryItem.created_at)
        )
        if pantry_id:
            query = query.where(PantryItem.pantry_id == pantry_id)
        return list((await db.execute(query)).scalars().all())

    async def find_by_id(self, db: AsyncSession, item_id: str, user_id: str) -> PantryItem:
        result = await db.execute(
            select(PantryItem, Pantry.user_id)
            .join(Pantry, Pantry.id == PantryItem.pantry_id)
            .where(PantryItem.id == item_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError(resource="pantry item", message="Pantry item not found")
        item, owner_id = row
        if owner_id != user_id:
            raise ForbiddenError(message="You do not have access to this pantry item")
        return item

    async def update(
        self, db: AsyncSession, item_id: str, dto: UpdatePantryItemRequest, user_id: str
    ) -> PantryItem:
        item = await self.find_by_id(db, item_id, user_id)
        for field, value in dto.model_dump(exclude_unset=True).items():
            setattr(item, field, value)
        await db.flush()
        return item

    async def remove(self, db: AsyncSession, item_id: str, user_id: str) -> None:
        item = await self.find_by_id(db, item_id, user_id)
        await db.delete(item)
        await db.flush()
        logger.info("Pantry item deleted: %s", item_id)


# ── Singleton Instance ────────────────────────────────────────────────────
pantry_item_service = PantryItemService()
