"""Pantry API — Pantry Item Route Handlers (not cached)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.auth import CurrentUser, get_current_user
from pantry_api.database import get_db_session
from pantry_api.schemas.common import ErrorResponse
from pantry_api.schemas.pantry import (
    CreatePantryItemRequest,
    PantryItemListResponse,
    PantryItemResponse,
    UpdatePantryItemRequest,
)
from pantry_api.services.pantry_item_service import pantry_item_service

router = APIRouter(prefix="/pantry-items", tags=["Pantry Items"])

_ERRORS = {
    403: {"description": "Item belongs to another user's pantry", "model": ErrorResponse},
    404: {"description": "Pantry item not found", "model": ErrorResponse},
}


@router.get("", response_model=PantryItemListResponse, summary="List pantry items")
async def list_pantry_items(
    response: Response,
    pantry_id: Optional[str] = Query(default=None, description="Restrict to one pantry"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PantryItemListResponse:
    items = await pantry_item_service.find_all(db, user.id, pantry_id)
    response.headers["X-Total-Count"] = str(len(items))
    return PantryItemListResponse(
        data=[PantryItemResponse.model_validate(item) for item in items],
        total=len(items),
    )


@router.post(
    "",
    response_model=PantryItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Pantry or food not found", "model": ErrorResponse},
        409: {"description": "Food already stocked in this pantry", "model": ErrorResponse},
    },
    summary="Stock a food in a pantry",
)
async def create_pantry_item(
    dto: CreatePantryItemRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PantryItemResponse:
    return PantryItemResponse.model_validate(await pantry_item_service.create(db, dto, user.id))


@router.get("/{id}", response_model=PantryItemResponse, responses=_ERRORS, summary="Get a pantry item")
async def get_pantry_item(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PantryItemResponse:
    return PantryItemResponse.model_validate(await pantry_item_service.find_by_id(db, id, user.id))


@router.patch("/{id}", response_model=PantryItemResponse, responses=_ERRORS, summary="Update a pantry item")
async def update_pantry_item(
    id: str,
    dto: UpdatePantryItemRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PantryItemResponse:
    item = await pantry_item_service.update(db, id, dto, user.id)
    return PantryItemResponse.model_validate(item)


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERRORS,
    summary="Remove a pantry item",
)
async def delete_pantry_item(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await pantry_item_service.remove(db, id, user.id)
