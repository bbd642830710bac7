"""Pantry API — Recipe Route Handlers: how to cook the caller's dishes."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.auth import CurrentUser, require_roles
from pantry_api.database import get_db_session
from pantry_api.schemas.common import ErrorResponse
from pantry_api.schemas.recipe import (
    CreateRecipeRequest,
    RecipeListResponse,
    RecipeQuery,
    RecipeResponse,
    UpdateRecipeRequest,
)
from pantry_api.services.recipe_service import recipe_service

router = APIRouter(prefix="/recipes", tags=["Recipes"])

_ERRORS = {
    403: {"description": "Recipe or dish belongs to someone else", "model": ErrorResponse},
    404: {"description": "Recipe or dish not found", "model": ErrorResponse},
}

member = require_roles("user", "admin")


@router.post(
    "",
    response_model=RecipeResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Create a recipe for one of your dishes",
)
async def create_recipe(
    dto: CreateRecipeRequest,
    user: CurrentUser = Depends(member),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeResponse:
    return RecipeResponse.model_validate(await recipe_service.create(db, dto, user.id))


@router.get("", response_model=RecipeListResponse, summary="List recipes with filters")
async def list_recipes(
    response: Response,
    query: RecipeQuery = Depends(),
    user: CurrentUser = Depends(member),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeListResponse:
    result = await recipe_service.find_all(db, user.id, query)
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get("/{id}", response_model=RecipeResponse, responses=_ERRORS, summary="Get a recipe")
async def get_recipe(
    id: str,
    user: CurrentUser = Depends(member),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeResponse:
    return RecipeResponse.model_validate(await recipe_service.find_one(db, id, user.id))


@router.patch("/{id}", response_model=RecipeResponse, responses=_ERRORS, summary="Update a recipe")
async def update_recipe(
    id: str,
    dto: UpdateRecipeRequest,
    user: CurrentUser = Depends(member),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeResponse:
    return RecipeResponse.model_validate(await recipe_service.update(db, id, dto, user.id))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, responses=_ERRORS, summary="Delete a recipe")
async def delete_recipe(
    id: str,
    user: CurrentUser = Depends(member),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await recipe_service.remove(db, id, user.id)
