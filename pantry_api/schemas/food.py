"""
Pantry API — Food Schemas
==========================

What:  Request/response models for the food catalog and OpenFoodFacts data.
Why:   API contracts change independently of the `foods` table; OpenFoodFacts
       enrichment is a computed field that never touches the database.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from pantry_api.schemas.common import PaginationQuery


# ══════════════════════════════════════════════════════════════════════════
# OpenFoodFacts product data
# ══════════════════════════════════════════════════════════════════════════


class NutritionalInfo(BaseModel):
    """Values per 100g (energy in kcal/kJ, masses in g unless noted)."""
    energy_kcal: Optional[float] = None
    energy_kj: Optional[float] = None
    fat: Optional[float] = None
    saturated_fat: Optional[float] = None
    trans_fat: Optional[float] = None
    cholesterol: Optional[float] = None
    carbohydrates: Optional[float] = None
    sugars: Optional[float] = None
    fiber: Optional[float] = None
    proteins: Optional[float] = None
    salt: Optional[float] = None
    sodium: Optional[float] = None
    vitamin_a: Optional[float] = None
    vitamin_c: Optional[float] = None
    calcium: Optional[float] = None
    iron: Optional[float] = None


class ProductInfo(BaseModel):
    barcode: str
    name: str
    generic_name: Optional[str] = None
    brands: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    quantity: Optional[str] = None
    serving_size: Optional[str] = None
    ingredients: Optional[str] = None
    allergens: List[str] = Field(default_factory=list)
    traces: List[str] = Field(default_factory=list)
    nutrition_grade: Optional[str] = Field(default=None, description="Nutri-Score grade (a-e)")
    nova_group: Optional[int] = Field(default=None, description="NOVA processing group (1-4)")
    ecoscore_grade: Optional[str] = None
    image_url: Optional[str] = None
    image_front_url: Optional[str] = None
    nutritional_info: Optional[NutritionalInfo] = None
    countries: List[str] = Field(default_factory=list)
    completeness: Optional[float] = Field(default=None, description="Data completeness (0-1)")


class ProductSearchResponse(BaseModel):
    products: List[ProductInfo]
    total_count: int
    page: int
    page_size: int
    total_pages: int


# ══════════════════════════════════════════════════════════════════════════
# Food catalog
# ══════════════════════════════════════════════════════════════════════════


class CreateFoodRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255, description="The name of the food item")
    description: Optional[str] = Field(default=None, max_length=1000)
    barcode: Optional[str] = Field(default=None, max_length=50, description="EAN / UPC barcode")
    open_food_facts_id: Optional[str] = Field(default=None, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped


class UpdateFoodRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    barcode: Optional[str] = Field(default=None, max_length=50)
    open_food_facts_id: Optional[str] = Field(default=None, max_length=100)


class FoodResponse(BaseModel):
    id: str = Field(description="Unique identifier for the food item")
    name: str
    description: Optional[str] = None
    barcode: Optional[str] = None
    open_food_facts_id: Optional[str] = None
    open_food_facts_info: Optional[ProductInfo] = Field(
        default=None,
        description="Additional information from OpenFoodFacts (only when requested)",
    )
    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FoodListResponse(BaseModel):
    data: List[FoodResponse]
    total: int = Field(description="Total number of food items matching the query")
    page: int
    limit: int
    total_pages: int


class FoodQuery(PaginationQuery):
    """Filters for GET /foods. Sorting is restricted to indexed / audit columns."""
    search: Optional[str] = None
    barcode: Optional[str] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"
    include_open_food_facts: bool = False

    @field_validator("sort_by")
    @classmethod
    def validate_sort_by(cls, v: str) -> str:
        valid = {"name", "created_at", "updated_at"}
        if v not in valid:
            raise ValueError(f"Invalid sort_by '{v}'. Must be one of: {sorted(valid)}")
        return v

    @field_validator("sort_order")
    @classmethod
    def validate_sort_order(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"asc", "desc"}:
            raise ValueError(f"Invalid sort_order '{v}'. Must be 'asc' or 'desc'")
        return lower
