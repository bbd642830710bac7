"""
Pantry API — Recipe Service
============================

What:  The caller's recipes, each attached to one of the caller's dishes.
Rules:
    - a missing recipe or dish is 404 ("Recipe not found" / "Dish not found")
    - someone else's recipe or dish is 403; unlike dishes, recipes report
      foreign ids as forbidden rather than hiding them
    - moving a recipe to another dish re-checks that dish
Filters:
    meal_type (via the dish), tags / allergens (any overlap), difficulty,
    search (case-insensitive title substring); newest first, paginated.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.exceptions import ForbiddenError, NotFoundError
from pantry_api.models.meal import Dish
from pantry_api.models.recipe import Recipe
from pantry_api.schemas.common import total_pages
from pantry_api.schemas.recipe import (
    CreateRecipeRequest,
    RecipeListResponse,
    RecipeQuery,
    RecipeResponse,
    UpdateRecipeRequest,
)

logger = logging.getLogger(__name__)

NO_PERMISSION = "No permission to access this resource"


class RecipeService:

    def _ensure_ownership(self, owner_id: str, user_id: str) -> None:
        if owner_id != user_id:
            raise ForbiddenError(message=NO_PERMISSION)

    async def _check_dish(self, db: AsyncSession, dish_id: str, user_id: str) -> None:
        result = await db.execute(select(Dish.user_id).where(Dish.id == dish_id))
        owner_id = result.scalar_one_or_none()
        if owner_id is None:
            raise NotFoundError(resource="dish", message="Dish not found")
        self._ensure_ownership(owner_id, user_id)

    async def get_owned(self, db: AsyncSession, recipe_id: str, user_id: str) -> Recipe:
        result = await db.execute(select(Recipe).where(Recipe.id == recipe_id))
        recipe = result.scalar_one_or_none()
        if recipe is None:
            raise NotFoundError(resource="recipe", message="Recipe not found")
        self._ensure_ownership(recipe.user_id, user_id)
        return recipe

    async def create(self, db: AsyncSession, dto: CreateRecipeRequest, user_id: str) -> Recipe:
        logger.info("Creating recipe '%s' for %s", dto.title, user_id)
        await self._check_dish(db, dto.dish_id, user_id)

        recipe = Recipe(user_id=user_id, **dto.model_dump())
        db.add(recipe)
        await db.flush()
        return recipe

    async def find_all(self, db: AsyncSession, user_id: str, query: RecipeQuery) -> RecipeListResponse:
        conditions = [Recipe.user_id == user_id]
        if query.difficulty:
            conditions.append(Recipe.difficulty == query.difficulty.strip())
        if query.tag_list:
            conditions.append(Recipe.tags.overlap(query.tag_list))
        if query.allergen_list:
            conditions.append(Recipe.allergens.overlap(query.allergen_list))
        if query.search:
            conditions.append(func.lower(Recipe.title).like(f"%{query.search.strip().lower()}%"))
        if query.meal_type is not None:
            conditions.append(
                Recipe.dish_id.in_(select(Dish.id).where(Dish.meal_type == query.meal_type))
            )

        recipes = (
            await db.execute(
                select(Recipe)
                .where(*conditions)
                .order_by(Recipe.created_at.desc())
                .offset(query.offset)
                .limit(query.limit)
            )
        ).scalars().all()
        total = (await db.execute(select(func.count(Recipe.id)).where(*conditions))).scalar() or 0

        return RecipeListResponse(
            data=[RecipeResponse.model_validate(recipe) for recipe in recipes],
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=total_pages(total, query.limit),
        )

    async def find_one(self, db: AsyncSession, recipe_id: str, user_id: str) -> Recipe:
        return await self.get_owned(db, recipe_id, user_id)

    async def update(
        self, db: AsyncSession, recipe_id: str, dto: UpdateRecipeRequest, user_id: str
    ) -> Recipe:
        recipe = await self.get_owned(db, recipe_id, user_id)
        changes = dto.model_dump(exclude_unset=True)

        new_dish = changes.get("dish_id")
        if new_dish and new_dish != recipe.dish_id:
            await self._check_dish(db, new_dish, user_id)

        for field, value in changes.items():
            # title, dish and the array columns are NOT NULL
            if value is None and field in ("title", "dish_id", "tags", "allergens"):
                continue
            setattr(recipe, field, value)
        await db.flush()
        return recipe

    async def remove(self, db: AsyncSession, recipe_id: str, user_id: str) -> None:
        recipe = await self.get_owned(db, recipe_id, user_id)
        await db.delete(recipe)
        await db.flush()
        logger.info("Recipe deleted: %s", recipe_id)


# ── Singleton Instance ────────────────────────────────────────────────────
recipe_service = RecipeService()
