"""Pantry API — Recipe Schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from pantry_api.models.meal import MealType
from pantry_api.schemas.common import PaginationQuery


def split_csv(value: Optional[str]) -> List[str]:
    """"vegan, quick,," → ["vegan", "quick"]"""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class RecipeFields(BaseModel):
    description: Optional[str] = None
    instructions: Optional[str] = None
    prep_time: Optional[int] = Field(default=None, ge=0, description="Minutes")
    cook_time: Optional[int] = Field(default=None, ge=0, description="Minutes")
    servings: Optional[int] = Field(default=None, ge=1)
    difficulty: Optional[str] = Field(default=None, max_length=50)
    nutritional_info: Optional[Dict[str, Any]] = None
    sustainability_score: Optional[float] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)


class CreateRecipeRequest(RecipeFields):
    dish_id: str
    title: str = Field(min_length=1, max_length=255)
    tags: List[str] = Field(default_factory=list)
    allergens: List[str] = Field(default_factory=list)


class UpdateRecipeRequest(RecipeFields):
    dish_id: Optional[str] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    tags: Optional[List[str]] = None
    allergens: Optional[List[str]] = None


class RecipeResponse(RecipeFields):
    id: str
    user_id: str
    dish_id: str
    title: str
    tags: List[str]
    allergens: List[str]
    rating: float
    rating_count: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RecipeListResponse(BaseModel):
    data: List[RecipeResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class RecipeQuery(PaginationQuery):
    meal_type: Optional[MealType] = Field(default=None, description="Meal type of the recipe's dish")
    tags: Optional[str] = Field(default=None, description="Comma-separated; any match")
    allergens: Optional[str] = Field(default=None, description="Comma-separated; any match")
    difficulty: Optional[str] = None
    search: Optional[str] = Field(default=None, description="Case-insensitive title substring")

    @property
    def tag_list(self) -> List[str]:
        return split_csv(self.tags)

    @property
    def allergen_list(self) -> List[str]:
        return split_csv(self.allergens)
