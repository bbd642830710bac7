"""
Pantry API — Meal Log Route Handlers
=====================================

What:  Meal history of the caller.
How:   GET /meal-logs is paginated newest first and filterable by date range,
       meal slot, dish meal type, pantry origin and eaten-out flag; the total
       is mirrored in the X-Total-Count header.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.auth import CurrentUser, get_current_user
from pantry_api.database import get_db_session
from pantry_api.schemas.common import ErrorResponse
from pantry_api.schemas.meal import (
    CreateMealLogRequest,
    MealLogListResponse,
    MealLogQuery,
    MealLogResponse,
    UpdateMealLogRequest,
)
from pantry_api.services.meal_log_service import meal_log_service

router = APIRouter(prefix="/meal-logs", tags=["Meal Logs"])

_NOT_FOUND = {404: {"description": "Meal log or dish not found", "model": ErrorResponse}}


@router.get("", response_model=MealLogListResponse, summary="Meal history")
async def list_meal_logs(
    response: Response,
    query: MealLogQuery = Depends(),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MealLogListResponse:
    result = await meal_log_service.find_all(db, user.id, query)
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.post(
    "",
    response_model=MealLogResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_NOT_FOUND,
    summary="Log a meal",
)
async def create_meal_log(
    dto: CreateMealLogRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MealLogResponse:
    return MealLogResponse.model_validate(await meal_log_service.create(db, dto, user.id))


@router.get("/{id}", response_model=MealLogResponse, responses=_NOT_FOUND, summary="Get a meal log")
async def get_meal_log(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MealLogResponse:
    return MealLogResponse.model_validate(await meal_log_service.find_one(db, id, user.id))


@router.patch("/{id}", response_model=MealLogResponse, responses=_NOT_FOUND, summary="Update a meal log")
async def update_meal_log(
    id: str,
    dto: UpdateMealLogRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MealLogResponse:
    return MealLogResponse.model_validate(await meal_log_service.update(db, id, dto, user.id))


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
    summary="Delete a meal log",
)
async def delete_meal_log(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await meal_log_service.remove(db, id, user.id)
