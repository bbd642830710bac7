"""
Pantry API — Food Route Handlers
=================================

What:  The shared food catalog: CRUD, barcode lookup and OpenFoodFacts
       search / import.
Who:   Read routes are public (a token is optional); writes need the
       `user` or `admin` role and deletion needs `admin`.

Caching Strategy:
    GET  /foods                          foods:list    5 min
    GET  /foods/search/openfoodfacts     foods:search  3 min
    GET  /foods/barcode/{barcode}        food_barcode  10 min
    GET  /foods/{id}                     food          5 min
    GET  /foods/{id}/openfoodfacts       food:off      10 min
    Writes evict the matching list and item keys after they succeed.

Keys are per caller identity, so a write only evicts the writer's own
entries plus the anonymous list; other users read stale lists until TTL.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.auth import CurrentUser, get_optional_user, require_roles
from pantry_api.cache import CacheEvict, Cacheable, cache_evict, cacheable
from pantry_api.database import get_db_session
from pantry_api.schemas.common import ErrorResponse
from pantry_api.schemas.food import (
    CreateFoodRequest,
    FoodListResponse,
    FoodQuery,
    FoodResponse,
    ProductInfo,
    ProductSearchResponse,
    UpdateFoodRequest,
)
from pantry_api.services.food_service import food_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/foods", tags=["Foods"])

_ERRORS = {
    404: {"description": "Food not found", "model": ErrorResponse},
    503: {"description": "OpenFoodFacts unavailable", "model": ErrorResponse},
}

LIST_KEYS = ["foods:list", "foods:count", "foods:list:anonymous", "foods:list:{userId}"]


# ═══════════════════════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════════════════════

@router.get(
    "",
    response_model=FoodListResponse,
    summary="List foods with pagination, search and sorting",
)
@cacheable(Cacheable("foods:list", ttl_seconds=300))
async def list_foods(
    query: FoodQuery = Depends(),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodListResponse:
    return await food_service.find_all(db, query)


@router.get(
    "/search/openfoodfacts",
    response_model=ProductSearchResponse,
    responses=_ERRORS,
    summary="Search the OpenFoodFacts product database",
)
@cacheable(Cacheable("foods:search", ttl_seconds=180))
async def search_open_food_facts(
    query: Optional[str] = Query(default=None, description="Free-text search terms"),
    category: Optional[str] = Query(default=None),
    brand: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: Optional[CurrentUser] = Depends(get_optional_user),
) -> ProductSearchResponse:
    return await food_service.search_open_food_facts(
        query=query, category=category, brand=brand, page=page, limit=limit
    )


@router.get(
    "/barcode/{barcode}",
    response_model=FoodResponse,
    responses=_ERRORS,
    summary="Find a catalog food by barcode",
)
@cacheable(Cacheable("food_barcode", ttl_seconds=600))
async def get_food_by_barcode(
    barcode: str,
    include_open_food_facts: bool = Query(default=False, alias="includeOpenFoodFacts"),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodResponse:
    return await food_service.find_by_barcode(db, barcode, include_open_food_facts)


@router.get(
    "/{id}",
    response_model=FoodResponse,
    responses=_ERRORS,
    summary="Get a single food",
)
@cacheable(Cacheable("food", ttl_seconds=300))
async def get_food(
    id: str,
    include_open_food_facts: bool = Query(default=False, alias="includeOpenFoodFacts"),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodResponse:
    return await food_service.find_one(db, id, include_open_food_facts)


@router.get(
    "/{id}/openfoodfacts",
    response_model=Optional[ProductInfo],
    responses=_ERRORS,
    summary="OpenFoodFacts data for a catalog food",
    description="Returns null when the food has no barcode or the product is unknown upstream.",
)
@cacheable(Cacheable("food:off", ttl_seconds=600))
async def get_food_open_food_facts(
    id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[ProductInfo]:
    food = await food_service.find_one(db, id)
    if not food.barcode:
        return None
    return await food_service.get_open_food_facts_info(food.barcode)


# ═══════════════════════════════════════════════════════════════════════════
# Writes
# ═══════════════════════════════════════════════════════════════════════════

@router.post(
    "",
    response_model=FoodResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Duplicate barcode or OpenFoodFacts id", "model": ErrorResponse}},
    summary="Add a food to the catalog",
)
@cache_evict(CacheEvict(LIST_KEYS))
async def create_food(
    dto: CreateFoodRequest,
    user: CurrentUser = Depends(require_roles("user", "admin")),
    db: AsyncSession = Depends(get_db_session),
) -> FoodResponse:
    return await food_service.create(db, dto, created_by=user.id)


@router.post(
    "/import/openfoodfacts/{barcode}",
    response_model=FoodResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Import a product from OpenFoodFacts into the catalog",
)
@cache_evict(CacheEvict(LIST_KEYS + ["food_barcode:{userId}:barcode:{barcode}"]))
async def import_from_open_food_facts(
    barcode: str,
    user: CurrentUser = Depends(require_roles("user", "admin")),
    db: AsyncSession = Depends(get_db_session),
) -> FoodResponse:
    return await food_service.import_from_open_food_facts(db, barcode, created_by=user.id)


@router.patch(
    "/{id}",
    response_model=FoodResponse,
    responses=_ERRORS,
    summary="Update a catalog food",
)
@cache_evict(CacheEvict(["food:{id}", "food:{userId}:id:{id}"] + LIST_KEYS))
async def update_food(
    id: str,
    dto: UpdateFoodRequest,
    user: CurrentUser = Depends(require_roles("user", "admin")),
    db: AsyncSession = Depends(get_db_session),
) -> FoodResponse:
    return await food_service.update(db, id, dto)


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Food not found", "model": ErrorResponse}},
    summary="Delete a catalog food (admin only)",
)
@cache_evict(CacheEvict(["food:{id}", "food:{userId}:id:{id}"] + LIST_KEYS))
async def delete_food(
    id: str,
    user: CurrentUser = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await food_service.remove(db, id)
    logger.info("Food %s deleted by %s", id, user.id)
