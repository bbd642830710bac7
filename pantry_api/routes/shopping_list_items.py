"""
Pantry API — Shopping List Item Route Handlers
===============================================

What:  Items on shopping lists, check/uncheck, and clearing checked items.
Who:   Toggling an item to checked may copy it into the caller's first pantry
       when the profile has auto-add enabled.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.auth import CurrentUser, get_current_user
from pantry_api.database import get_db_session
from pantry_api.schemas.common import ErrorResponse
from pantry_api.schemas.shopping_list import (
    ClearCheckedResponse,
    CreateShoppingListItemRequest,
    ShoppingListItemResponse,
    UpdateShoppingListItemRequest,
)
from pantry_api.services.shopping_list_item_service import shopping_list_item_service

router = APIRouter(prefix="/shopping-list-items", tags=["Shopping List Items"])

_ERRORS = {
    403: {"description": "Item belongs to another user's list", "model": ErrorResponse},
    404: {"description": "Shopping list item not found", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=ShoppingListItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Shopping list or food not found", "model": ErrorResponse},
        409: {"description": "Food already on this list", "model": ErrorResponse},
    },
    summary="Add a food to a shopping list",
)
async def create_item(
    dto: CreateShoppingListItemRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ShoppingListItemResponse:
    item = await shopping_list_item_service.create(db, dto, user.id)
    return ShoppingListItemResponse.model_validate(item)


@router.get(
    "",
    response_model=List[ShoppingListItemResponse],
    summary="Items of one shopping list, unchecked first",
)
async def list_items(
    shopping_list_id: str = Query(..., description="The list to read"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ShoppingListItemResponse]:
    items = await shopping_list_item_service.find_by_shopping_list(db, shopping_list_id, user.id)
    return [ShoppingListItemResponse.model_validate(item) for item in items]


@router.get(
    "/item/{id}",
    response_model=ShoppingListItemResponse,
    responses=_ERRORS,
    summary="Get a shopping list item",
)
async def get_item(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ShoppingListItemResponse:
    item = await shopping_list_item_service.find_by_id(db, id, user.id)
    return ShoppingListItemResponse.model_validate(item)


@router.patch(
    "/{id}",
    response_model=ShoppingListItemResponse,
    responses={**_ERRORS, 409: {"description": "Duplicate food or already checked", "model": ErrorResponse}},
    summary="Update a shopping list item",
)
async def update_item(
    id: str,
    dto: UpdateShoppingListItemRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ShoppingListItemResponse:
    item = await shopping_list_item_service.update(db, id, dto, user.id)
    return ShoppingListItemResponse.model_validate(item)


@router.patch(
    "/{id}/toggle-checked",
    response_model=ShoppingListItemResponse,
    responses=_ERRORS,
    summary="Flip the checked flag of an item",
)
async def toggle_checked(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ShoppingListItemResponse:
    item = await shopping_list_item_service.toggle_checked(db, id, user.id)
    return ShoppingListItemResponse.model_validate(item)


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERRORS,
    summary="Remove an item from its list",
)
async def delete_item(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await shopping_list_item_service.remove(db, id, user.id)


@router.delete(
    "/{shopping_list_id}/clear-checked",
    response_model=ClearCheckedResponse,
    responses={
        403: {"description": "List belongs to another user", "model": ErrorResponse},
        404: {"description": "Shopping list not found", "model": ErrorResponse},
    },
    summary="Delete every checked item of a list",
)
async def clear_checked(
    shopping_list_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ClearCheckedResponse:
    deleted = await shopping_list_item_service.clear_checked_items(db, shopping_list_id, user.id)
    return ClearCheckedResponse(deleted=deleted)
