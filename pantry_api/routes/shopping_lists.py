"""Pantry API — Shopping List Route Handlers."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.auth import CurrentUser, get_current_user
from pantry_api.database import get_db_session
from pantry_api.schemas.common import ErrorResponse
from pantry_api.schemas.shopping_list import (
    CreateShoppingListRequest,
    ShoppingListResponse,
    UpdateShoppingListRequest,
)
from pantry_api.services.shopping_list_service import shopping_list_service

router = APIRouter(prefix="/shopping-lists", tags=["Shopping Lists"])

_ERRORS = {
    403: {"description": "List belongs to another user", "model": ErrorResponse},
    404: {"description": "Shopping list not found", "model": ErrorResponse},
}


@router.get("", response_model=List[ShoppingListResponse], summary="List the caller's shopping lists")
async def list_shopping_lists(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ShoppingListResponse]:
    lists = await shopping_list_service.find_all(db, user.id)
    return [ShoppingListResponse.model_validate(item) for item in lists]


@router.post(
    "",
    response_model=ShoppingListResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Title already used", "model": ErrorResponse}},
    summary="Create a shopping list",
)
async def create_shopping_list(
    dto: CreateShoppingListRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ShoppingListResponse:
    return ShoppingListResponse.model_validate(await shopping_list_service.create(db, dto, user.id))


@router.get("/{id}", response_model=ShoppingListResponse, responses=_ERRORS, summary="Get a shopping list")
async def get_shopping_list(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ShoppingListResponse:
    return ShoppingListResponse.model_validate(await shopping_list_service.find_by_id(db, id, user.id))


@router.patch("/{id}", response_model=ShoppingListResponse, responses=_ERRORS, summary="Rename a shopping list")
async def update_shopping_list(
    id: str,
    dto: UpdateShoppingListRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ShoppingListResponse:
    shopping_list = await shopping_list_service.update(db, id, dto, user.id)
    return ShoppingListResponse.model_validate(shopping_list)


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERRORS,
    summary="Delete a shopping list and its items",
)
async def delete_shopping_list(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await shopping_list_service.remove(db, id, user.id)
