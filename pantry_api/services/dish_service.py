"""
Pantry API — Dish Service
==========================

What:  Private dish catalog per user.
Rules:
    - a dish someone else owns is reported exactly like a missing one
      (404 "Dish not found"), so ids cannot be probed
    - dish barcodes are unique (409)
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.exceptions import ConflictError, NotFoundError
from pantry_api.models.meal import Dish
from pantry_api.schemas.common import total_pages
from pantry_api.schemas.meal import (
    CreateDishRequest,
    DishListResponse,
    DishQuery,
    DishResponse,
    UpdateDishRequest,
)

logger = logging.getLogger(__name__)


class DishService:

    async def _ensure_barcode_free(
        self, db: AsyncSession, barcode: Optional[str], exclude_id: Optional[str] = None
    ) -> None:
        if not barcode:
            return
        query = select(Dish.id).where(Dish.barcode == barcode)
        if exclude_id:
            query = query.where(Dish.id != exclude_id)
        if (await db.execute(query)).scalar_one_or_none() is not None:
            raise ConflictError(message="Dish with this barcode already exists")

    async def get_owned(self, db: AsyncSession, dish_id: str, user_id: str) -> Dish:
        result = await db.execute(select(Dish).where(Dish.id == dish_id, Dish.user_id == user_id))
        dish = result.scalar_one_or_none()
        if dish is None:
            raise NotFoundError(resource="dish", message="Dish not found")
        return dish

    async def create(self, db: AsyncSession, dto: CreateDishRequest, user_id: str) -> Dish:
        await self._ensure_barcode_free(db, dto.barcode)
        dish = Dish(user_id=user_id, **dto.model_dump())
        db.add(dish)
        await db.flush()
        logger.info("Dish created: %s for user %s", dish.id, user_id)
        return dish

    async def find_all(self, db: AsyncSession, user_id: str, query: DishQuery) -> DishListResponse:
        conditions = [Dish.user_id == user_id]
        if query.meal_type is not None:
            conditions.append(Dish.meal_type == query.meal_type)
        if query.search:
            conditions.append(func.lower(Dish.name).like(f"%{query.search.lower()}%"))

        dishes = (
            await db.execute(
                select(Dish)
                .where(*conditions)
                .order_by(Dish.created_at.desc())
                .offset(query.offset)
                .limit(query.limit)
            )
        ).scalars().all()
        total = (await db.execute(select(func.count(Dish.id)).where(*conditions))).scalar() or 0

        return DishListResponse(
            data=[DishResponse.model_validate(dish) for dish in dishes],
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=total_pages(total, query.limit),
        )

    async def find_one(self, db: AsyncSession, dish_id: str, user_id: str) -> Dish:
        return await self.get_owned(db, dish_id, user_id)

    async def update(
        self, db: AsyncSession, dish_id: str, dto: UpdateDishRequest, user_id: str
    ) -> Dish:
        dish = await self.get_owned(db, dish_id, user_id)
        changes = dto.model_dump(exclude_unset=True)
        await self._ensure_barcode_free(db, changes.get("barcode"), exclude_id=dish_id)
        for field, value in changes.items():
            if value is None and field == "name":
                continue
            setattr(dish, field, value)
        await db.flush()
        return dish

    async def remove(self, db: AsyncSession, dish_id: str, user_id: str) -> None:
        dish = await self.get_owned(db, dish_id, user_id)
        await db.delete(dish)
        await db.flush()
        logger.info("Dish deleted: %s", dish_id)


# ── Singleton Instance ────────────────────────────────────────────────────
dish_service = DishService()
