"""Pantry API — Shopping List Service: per-user lists with unique titles."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.exceptions import ConflictError, ForbiddenError, NotFoundError
from pantry_api.models.shopping_list import ShoppingList
from pantry_api.schemas.shopping_list import CreateShoppingListRequest, UpdateShoppingListRequest

logger = logging.getLogger(__name__)


class ShoppingListService:

    async def _ensure_title_free(
        self, db: AsyncSession, user_id: str, title: str, exclude_id: Optional[str] = None
    ) -> None:
        query = select(ShoppingList.id).where(
            ShoppingList.user_id == user_id,
            ShoppingList.title == title,
        )
        if exclude_id:
            query = query.where(ShoppingList.id != exclude_id)
        if (await db.execute(query)).scalar_one_or_none() is not None:
            raise ConflictError(message="Shopping list with this title already exists")

    async def create(
        self, db: AsyncSession, dto: CreateShoppingListRequest, user_id: str
    ) -> ShoppingList:
        await self._ensure_title_free(db, user_id, dto.title)
        shopping_list = ShoppingList(title=dto.title, user_id=user_id)
        db.add(shopping_list)
        await db.flush()
        logger.info("Shopping list created: %s for user %s", shopping_list.id, user_id)
        return shopping_list

    async def find_all(self, db: AsyncSession, user_id: str) -> List[ShoppingList]:
        result = await db.execute(
            select(ShoppingList)
            .where(ShoppingList.user_id == user_id)
            .order_by(ShoppingList.created_at.desc())
        )
        return list(result.scalars().all())

    async def find_by_id(self, db: AsyncSession, list_id: str, user_id: str) -> ShoppingList:
        """404 "Shopping list not found", then 403 when the list is someone else's."""
        result = await db.execute(select(ShoppingList).where(ShoppingList.id == list_id))
        shopping_list = result.scalar_one_or_none()
        if shopping_list is None:
            raise NotFoundError(resource="shopping list", message="Shopping list not found")
        if shopping_list.user_id != user_id:
            raise ForbiddenError(message="You do not have access to this shopping list")
        return shopping_list

    async def update(
        self, db: AsyncSession, list_id: str, dto: UpdateShoppingListRequest, user_id: str
    ) -> ShoppingList:
        shopping_list = await self.find_by_id(db, list_id, user_id)
        if dto.title is not None and dto.title != shopping_list.title:
            await self._ensure_title_free(db, user_id, dto.title, exclude_id=list_id)
            shopping_list.title = dto.title
        await db.flush()
        return shopping_list

    async def remove(self, db: AsyncSession, list_id: str, user_id: str) -> None:
        shopping_list = await self.find_by_id(db, list_id, user_id)
        await db.delete(shopping_list)
        await db.flush()
        logger.info("Shopping list deleted: %s", list_id)


# ── Singleton Instance ────────────────────────────────────────────────────
shopping_list_service = ShoppingListService()
