"""
Pantry API — Pantry Route Handlers
===================================

What:  CRUD for the caller's pantries.
Caching: GET /pantries is cached per user for 5 minutes and GET /pantries/{id}
         likewise; every mutation evicts both for the caller.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.auth import CurrentUser, get_current_user
from pantry_api.cache import CacheEvict, Cacheable, cache_evict, cacheable
from pantry_api.database import get_db_session
from pantry_api.schemas.common import ErrorResponse
from pantry_api.schemas.pantry import CreatePantryRequest, PantryResponse, UpdatePantryRequest
from pantry_api.services.pantry_service import pantry_service

router = APIRouter(prefix="/pantries", tags=["Pantries"])

_ERRORS = {
    403: {"description": "Pantry belongs to another user", "model": ErrorResponse},
    404: {"description": "Pantry not found", "model": ErrorResponse},
}

_EVICT = CacheEvict(["pantries:{userId}", "pantry:{userId}:id:{id}"])


@router.get("", response_model=List[PantryResponse], summary="List the caller's pantries")
@cacheable(Cacheable("pantries", ttl_seconds=300))
async def list_pantries(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PantryResponse]:
    pantries = await pantry_service.find_all_by_user(db, user.id)
    return [PantryResponse.model_validate(pantry) for pantry in pantries]


@router.post(
    "",
    response_model=PantryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Title already used", "model": ErrorResponse}},
    summary="Create a pantry",
)
@cache_evict(_EVICT)
async def create_pantry(
    dto: CreatePantryRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PantryResponse:
    return PantryResponse.model_validate(await pantry_service.create(db, dto, user.id))


@router.get("/{id}", response_model=PantryResponse, responses=_ERRORS, summary="Get a pantry")
@cacheable(Cacheable("pantry", ttl_seconds=300))
async def get_pantry(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PantryResponse:
    return PantryResponse.model_validate(await pantry_service.find_by_id(db, id, user.id))


@router.patch("/{id}", response_model=PantryResponse, responses=_ERRORS, summary="Rename a pantry")
@cache_evict(_EVICT)
async def update_pantry(
    id: str,
    dto: UpdatePantryRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PantryResponse:
    return PantryResponse.model_validate(await pantry_service.update(db, id, dto, user.id))


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERRORS,
    summary="Delete a pantry and its items",
)
@cache_evict(_EVICT)
async def delete_pantry(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await pantry_service.remove(db, id, user.id)
