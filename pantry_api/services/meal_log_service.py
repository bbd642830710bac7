"""
Pantry API — Meal Log Service
==============================

What:  Records of which dish a user ate, when, and where it came from.
Rules:
    - the dish must belong to the caller (404 "Dish not found")
    - meal_from_pantry defaults to whether the dish references a pantry item
    - timestamp defaults to now
    - another user's log is reported as missing (404 "Meal log not found")

Query plan (history):
    SELECT meal_logs.* FROM meal_logs [JOIN dishes ON ... when filtering meal_type]
    WHERE user_id = :uid [AND timestamp BETWEEN ...] ORDER BY timestamp DESC
    → idx_meal_logs_user_timestamp
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.database import utc_now
from pantry_api.exceptions import NotFoundError
from pantry_api.models.meal import Dish, MealLog
from pantry_api.schemas.common import total_pages
from pantry_api.schemas.meal import (
    CreateMealLogRequest,
    MealLogListResponse,
    MealLogQuery,
    MealLogResponse,
    UpdateMealLogRequest,
)
from pantry_api.services.dish_service import dish_service

logger = logging.getLogger(__name__)


class MealLogService:

    async def _get_owned(self, db: AsyncSession, log_id: str, user_id: str) -> MealLog:
        result = await db.execute(
            select(MealLog).where(MealLog.id == log_id, MealLog.user_id == user_id)
        )
        meal_log = result.scalar_one_or_none()
        if meal_log is None:
            raise NotFoundError(resource="meal log", message="Meal log not found")
        return meal_log

    async def create(self, db: AsyncSession, dto: CreateMealLogRequest, user_id: str) -> MealLog:
        dish = await dish_service.get_owned(db, dto.dish_id, user_id)

        meal_from_pantry = dto.meal_from_pantry
        if meal_from_pantry is None:
            meal_from_pantry = bool(dish.pantry_item_id)

        meal_log = MealLog(
            user_id=user_id,
            dish_id=dish.id,
            type_of_meal=dto.type_of_meal,
            timestamp=dto.timestamp or utc_now(),
            meal_from_pantry=meal_from_pantry,
            eaten_out=dto.eaten_out,
        )
        db.add(meal_log)
        await db.flush()
        logger.info("Meal logged: %s (dish %s) for user %s", meal_log.id, dish.id, user_id)
        return meal_log

    async def find_all(
        self, db: AsyncSession, user_id: str, query: MealLogQuery
    ) -> MealLogListResponse:
        conditions = [MealLog.user_id == user_id]
        if query.date_from is not None:
            conditions.append(MealLog.timestamp >= query.date_from)
        if query.date_to is not None:
            conditions.append(MealLog.timestamp <= query.date_to)
        if query.type_of_meal is not None:
            conditions.append(MealLog.type_of_meal == query.type_of_meal)
        if query.meal_from_pantry is not None:
            conditions.append(MealLog.meal_from_pantry == query.meal_from_pantry)
        if query.eaten_out is not None:
            conditions.append(MealLog.eaten_out == query.eaten_out)

        statement = select(MealLog)
        count_statement = select(func.count(MealLog.id))
        if query.meal_type is not None:
            statement = statement.join(Dish, Dish.id == MealLog.dish_id)
            count_statement = count_statement.join(Dish, Dish.id == MealLog.dish_id)
            conditions.append(Dish.meal_type == query.meal_type)

        logs = (
            await db.execute(
                statement.where(*conditions)
                .order_by(MealLog.timestamp.desc())
                .offset(query.offset)
                .limit(query.limit)
            )
        ).scalars().all()
        total = (await db.execute(count_statement.where(*conditions))).scalar() or 0

        return MealLogListResponse(
            data=[MealLogResponse.model_validate(log) for log in logs],
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=total_pages(total, query.limit),
        )

    async def find_one(self, db: AsyncSession, log_id: str, user_id: str) -> MealLog:
        return await self._get_owned(db, log_id, user_id)

    async def update(
        self, db: AsyncSession, log_id: str, dto: UpdateMealLogRequest, user_id: str
    ) -> MealLog:
        meal_log = await self._get_owned(db, log_id, user_id)
        changes = dto.model_dump(exclude_unset=True)

        if changes.get("dish_id") and changes["dish_id"] != meal_log.dish_id:
            await dish_service.get_owned(db, changes["dish_id"], user_id)

        for field, value in changes.items():
            if value is not None:
                setattr(meal_log, field, value)
        await db.flush()
        return meal_log

    async def remove(self, db: AsyncSession, log_id: str, user_id: str) -> None:
        meal_log = await self._get_owned(db, log_id, user_id)
        await db.delete(meal_log)
        await db.flush()


# ── Singleton Instance ────────────────────────────────────────────────────
meal_log_service = MealLogService()
