"""Pantry API — Dish and Meal Log Schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from pantry_api.models.meal import MealType, TypeOfMeal
from pantry_api.schemas.common import PaginationQuery


# ══════════════════════════════════════════════════════════════════════════
# Dishes
# ══════════════════════════════════════════════════════════════════════════


class DishFields(BaseModel):
    meal_type: Optional[MealType] = None
    calories: Optional[float] = Field(default=None, ge=0)
    proteins: Optional[float] = Field(default=None, ge=0)
    sustainability_score: Optional[float] = Field(default=None, ge=0, le=100)
    nutritional_info: Optional[Dict[str, Any]] = None
    pantry_item_id: Optional[str] = None
    barcode: Optional[str] = Field(default=None, max_length=50)


class CreateDishRequest(DishFields):
    name: str = Field(min_length=1, max_length=255)


class UpdateDishRequest(DishFields):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)


class DishResponse(DishFields):
    id: str
    name: str
    user_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DishListResponse(BaseModel):
    data: List[DishResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class DishQuery(PaginationQuery):
    meal_type: Optional[MealType] = None
    search: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Meal logs
# ══════════════════════════════════════════════════════════════════════════


class CreateMealLogRequest(BaseModel):
    dish_id: str
    type_of_meal: TypeOfMeal
    timestamp: Optional[datetime] = Field(default=None, description="Defaults to now")
    meal_from_pantry: Optional[bool] = Field(
        default=None,
        description="Defaults to true when the dish was made from a pantry item",
    )
    eaten_out: bool = False


class UpdateMealLogRequest(BaseModel):
    dish_id: Optional[str] = None
    type_of_meal: Optional[TypeOfMeal] = None
    timestamp: Optional[datetime] = None
    meal_from_pantry: Optional[bool] = None
    eaten_out: Optional[bool] = None


class MealLogResponse(BaseModel):
    id: str
    user_id: str
    dish_id: str
    type_of_meal: TypeOfMeal
    timestamp: datetime
    meal_from_pantry: bool
    eaten_out: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MealLogListResponse(BaseModel):
    data: List[MealLogResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class MealLogQuery(PaginationQuery):
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    type_of_meal: Optional[TypeOfMeal] = None
    meal_type: Optional[MealType] = None
    meal_from_pantry: Optional[bool] = None
    eaten_out: Optional[bool] = None
