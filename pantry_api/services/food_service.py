"""
Pantry API — Food Service (Catalog + OpenFoodFacts)
====================================================

What:  Business rules for the shared food catalog.
Why:   Keeps uniqueness checks, pagination and OpenFoodFacts enrichment out of
       the HTTP layer.
How:   Stateless singleton; each call receives the request's AsyncSession.

Rules:
    - barcode and open_food_facts_id are unique across the catalog
      (checked before the write, excluding the food being updated)
    - enrichment never fails a request: any OpenFoodFacts error → no info
    - import: existing barcode → 409, unknown product → 404

Query plan (list):
    SELECT * FROM foods [WHERE lower(name) LIKE :search] [AND barcode = :barcode]
    ORDER BY :sort_by :sort_order LIMIT :limit OFFSET :offset
    → idx_foods_name serves the name filter and sort
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import asc, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.exceptions import ConflictError, DatabaseError, NotFoundError
from pantry_api.models.food import Food
from pantry_api.schemas.common import total_pages
from pantry_api.schemas.food import (
    CreateFoodRequest,
    FoodListResponse,
    FoodQuery,
    FoodResponse,
    ProductInfo,
    ProductSearchResponse,
    UpdateFoodRequest,
)
from pantry_api.services.openfoodfacts_service import (
    OpenFoodFactsService,
    openfoodfacts_service,
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Food.name,
    "created_at": Food.created_at,
    "updated_at": Food.updated_at,
}


class FoodService:
    """
    Responsibilities:
        - create / update / remove with uniqueness checks
        - find_all with filtering, sorting and pagination
        - OpenFoodFacts search, import and per-food enrichment
    """

    def __init__(self, off: Optional[OpenFoodFactsService] = None):
        self.off = off or openfoodfacts_service

    # ── Lookups ───────────────────────────────────────────────────────────

    async def _get(self, db: AsyncSession, food_id: str) -> Food:
        result = await db.execute(select(Food).where(Food.id == food_id))
        food = result.scalar_one_or_none()
        if food is None:
            raise NotFoundError(resource="food", message="Food not found")
        return food

    async def _ensure_unique(
        self,
        db: AsyncSession,
        barcode: Optional[str],
        open_food_facts_id: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> None:
        if barcode:
            query = select(Food.id).where(Food.barcode == barcode)
            if exclude_id:
                query = query.where(Food.id != exclude_id)
            if (await db.execute(query)).scalar_one_or_none() is not None:
                raise ConflictError(message="Food with this barcode already exists")

        if open_food_facts_id:
            query = select(Food.id).where(Food.open_food_facts_id == open_food_facts_id)
            if exclude_id:
                query = query.where(Food.id != exclude_id)
            if (await db.execute(query)).scalar_one_or_none() is not None:
                raise ConflictError(message="Food with this OpenFoodFacts ID already exists")

    async def exists(self, db: AsyncSession, food_id: str) -> bool:
        result = await db.execute(select(Food.id).where(Food.id == food_id))
        return result.scalar_one_or_none() is not None

    # ── Enrichment ────────────────────────────────────────────────────────

    async def get_open_food_facts_info(self, barcode: str) -> Optional[ProductInfo]:
        """Best-effort enrichment: any upstream error is logged and yields None."""
        try:
            product = await self.off.get_product_by_barcode(barcode)
        except Exception as e:
            logger.warning("OpenFoodFacts enrichment failed for barcode %s: %s", barcode, e)
            return None
        return ProductInfo.model_validate(product) if product else None

    async def _to_response(self, food: Food, include_open_food_facts: bool) -> FoodResponse:
        response = FoodResponse.model_validate(food)
        if include_open_food_facts and food.barcode:
            response.open_food_facts_info = await self.get_open_food_facts_info(food.barcode)
        return response

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def create(self, db: AsyncSession, dto: CreateFoodRequest, created_by: str) -> FoodResponse:
        await self._ensure_unique(db, dto.barcode, dto.open_food_facts_id)
        try:
            food = Food(**dto.model_dump(), created_by=created_by)
            db.add(food)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating food: %s", e)
            raise DatabaseError(
                message="Could not create the food. Please try again.",
                context={"error_type": type(e).__name__},
            )
        logger.info("Food created: %s (%s)", food.id, food.name)
        return FoodResponse.model_validate(food)

    async def find_all(self, db: AsyncSession, query: FoodQuery) -> FoodListResponse:
        try:
            statement = select(Food)
            count_statement = select(func.count(Food.id))

            if query.search:
                pattern = f"%{query.search.lower()}%"
                statement = statement.where(func.lower(Food.name).like(pattern))
                count_statement = count_statement.where(func.lower(Food.name).like(pattern))
            if query.barcode:
                statement = statement.where(Food.barcode == query.barcode)
                count_statement = count_statement.where(Food.barcode == query.barcode)

            order = asc if query.sort_order == "asc" else desc
            statement = (
                statement.order_by(order(SORT_COLUMNS[query.sort_by]))
                .offset(query.offset)
                .limit(query.limit)
            )

            foods = list((await db.execute(statement)).scalars().all())
            total = (await db.execute(count_statement)).scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error listing foods: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not retrieve foods. Please try again.",
                context={"error_type": type(e).__name__},
            )

        data = [await self._to_response(food, query.include_open_food_facts) for food in foods]
        return FoodListResponse(
            data=data,
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=total_pages(total, query.limit),
        )

    async def find_one(
        self, db: AsyncSession, food_id: str, include_open_food_facts: bool = False
    ) -> FoodResponse:
        food = await self._get(db, food_id)
        return await self._to_response(food, include_open_food_facts)

    async def find_by_barcode(
        self, db: AsyncSession, barcode: str, include_open_food_facts: bool = False
    ) -> FoodResponse:
        result = await db.execute(select(Food).where(Food.barcode == barcode))
        food = result.scalar_one_or_none()
        if food is None:
            raise NotFoundError(resource="food", message="Food not found")
        return await self._to_response(food, include_open_food_facts)

    async def update(self, db: AsyncSession, food_id: str, dto: UpdateFoodRequest) -> FoodResponse:
        food = await self._get(db, food_id)
        changes = dto.model_dump(exclude_unset=True)
        await self._ensure_unique(
            db,
            changes.get("barcode"),
            changes.get("open_food_facts_id"),
            exclude_id=food_id,
        )
        for field, value in changes.items():
            setattr(food, field, value)
        await db.flush()
        logger.info("Food updated: %s", food_id)
        return FoodResponse.model_validate(food)

    async def remove(self, db: AsyncSession, food_id: str) -> None:
        food = await self._get(db, food_id)
        await db.delete(food)
        await db.flush()
        logger.info("Food deleted: %s", food_id)

    # ── OpenFoodFacts ─────────────────────────────────────────────────────

    async def search_open_food_facts(
        self,
        query: Optional[str] = None,
        category: Optional[str] = None,
        brand: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ProductSearchResponse:
        result: Dict[str, Any] = await self.off.search_products(
            query=query,
            categories=[category] if category else None,
            brands=[brand] if brand else None,
            page=page,
            page_size=limit,
        )
        return ProductSearchResponse.model_validate(result)

    async def import_from_open_food_facts(
        self, db: AsyncSession, barcode: str, created_by: str
    ) -> FoodResponse:
        existing = await db.execute(select(Food.id).where(Food.barcode == barcode))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(message="Food with this barcode already exists")

        product = await self.off.get_product_by_barcode(barcode)
        if not product:
            raise NotFoundError(resource="product", message="Product not found in OpenFoodFacts")

        food = Food(
            name=product["name"],
            description=product.get("generic_name"),
            barcode=barcode,
            open_food_facts_id=barcode,
            created_by=created_by,
        )
        db.add(food)
        await db.flush()
        logger.info("Imported food %s from OpenFoodFacts barcode %s", food.id, barcode)

        response = FoodResponse.model_validate(food)
        response.open_food_facts_info = ProductInfo.model_validate(product)
        return response


# ── Singleton Instance ────────────────────────────────────────────────────
food_service = FoodService()
