"""
Pantry API — Pantry Service
============================

What:  CRUD for a user's pantries.
Rules:
    - titles are unique per user (409 on duplicates)
    - lookups by id answer 404 when absent and 403 when owned by someone else
    - validate_pantry_exists returns the user's first pantry, creating
      "My Pantry" when the user has none
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.exceptions import ConflictError, ForbiddenError, NotFoundError
from pantry_api.models.pantry import Pantry
from pantry_api.schemas.pantry import CreatePantryRequest, UpdatePantryRequest

logger = logging.getLogger(__name__)

DEFAULT_PANTRY_TITLE = "My Pantry"


class PantryService:

    async def _ensure_title_free(
        self, db: AsyncSession, user_id: str, title: str, exclude_id: Optional[str] = None
    ) -> None:
        query = select(Pantry.id).where(Pantry.user_id == user_id, Pantry.title == title)
        if exclude_id:
            query = query.where(Pantry.id != exclude_id)
        if (await db.execute(query)).scalar_one_or_none() is not None:
            raise ConflictError(message="Pantry with this title already exists")

    async def create(self, db: AsyncSession, dto: CreatePantryRequest, user_id: str) -> Pantry:
        await self._ensure_title_free(db, user_id, dto.title)
        pantry = Pantry(title=dto.title, user_id=user_id)
        db.add(pantry)
        await db.flush()
        logger.info("Pantry created: %s for user %s", pantry.id, user_id)
        return pantry

    async def find_all_by_user(self, db: AsyncSession, user_id: str) -> List[Pantry]:
        result = await db.execute(
            select(Pantry).where(Pantry.user_id == user_id).order_by(Pantry.created_at)
        )
        return list(result.scalars().all())

    async def find_by_id(self, db: AsyncSession, pantry_id: str, user_id: str) -> Pantry:
        result = await db.execute(select(Pantry).where(Pantry.id == pantry_id))
        pantry = result.scalar_one_or_none()
        if pantry is None:
            raise NotFoundError(resource="pantry", message="Pantry not found")
        if pantry.user_id != user_id:
            raise ForbiddenError(message="You do not have access to this pantry")
        return pantry

    async def update(
        self, db: AsyncSession, pantry_id: str, dto: UpdatePantryRequest, user_id: str
    ) -> Pantry:
        pantry = await self.find_by_id(db, pantry_id, user_id)
        if dto.title is not None and dto.title != pantry.title:
            await self._ensure_title_free(db, user_id, dto.title, exclude_id=pantry_id)
            pantry.title = dto.title
        await db.flush()
        return pantry

    async def remove(self, db: AsyncSession, pantry_id: str, user_id: str) -> None:
        pantry = await self.find_by_id(db, pantry_id, user_id)
        await db.delete(pantry)
        await db.flush()
        logger.info("Pantry deleted: %s", pantry_id)

    async def validate_pantry_exists(self, db: AsyncSession, user_id: str) -> Pantry:
        """The user's first pantry, auto-created when missing."""
        result = await db.execute(
            select(Pantry)
            .where(Pantry.user_id == user_id)
            .order_by(Pantry.created_at)
            .limit(1)
        )
        pantry = result.scalar_one_or_none()
        if pantry is not None:
            return pantry

        logger.info("User %s has no pantry; creating '%s'", user_id, DEFAULT_PANTRY_TITLE)
        return await self.create(db, CreatePantryRequest(title=DEFAULT_PANTRY_TITLE), user_id)


# ── Singleton Instance ────────────────────────────────────────────────────
pantry_service = PantryService()
