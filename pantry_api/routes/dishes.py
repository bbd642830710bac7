"""Pantry API — Dish Route Handlers: the caller's private dish catalog."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.auth import CurrentUser, get_current_user
from pantry_api.database import get_db_session
from pantry_api.schemas.common import ErrorResponse
from pantry_api.schemas.meal import (
    CreateDishRequest,
    DishListResponse,
    DishQuery,
    DishResponse,
    UpdateDishRequest,
)
from pantry_api.services.dish_service import dish_service

router = APIRouter(prefix="/dishes", tags=["Dishes"])

_NOT_FOUND = {404: {"description": "Dish not found", "model": ErrorResponse}}


@router.get("", response_model=DishListResponse, summary="List dishes with filters")
async def list_dishes(
    response: Response,
    query: DishQuery = Depends(),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DishListResponse:
    result = await dish_service.find_all(db, user.id, query)
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.post(
    "",
    response_model=DishResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Barcode already used", "model": ErrorResponse}},
    summary="Create a dish",
)
async def create_dish(
    dto: CreateDishRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DishResponse:
    return DishResponse.model_validate(await dish_service.create(db, dto, user.id))


@router.get("/{id}", response_model=DishResponse, responses=_NOT_FOUND, summary="Get a dish")
async def get_dish(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DishResponse:
    return DishResponse.model_validate(await dish_service.find_one(db, id, user.id))


@router.patch("/{id}", response_model=DishResponse, responses=_NOT_FOUND, summary="Update a dish")
async def update_dish(
    id: str,
    dto: UpdateDishRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DishResponse:
    return DishResponse.model_validate(await dish_service.update(db, id, dto, user.id))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, responses=_NOT_FOUND, summary="Delete a dish")
async def delete_dish(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await dish_service.remove(db, id, user.id)
