"""Pantry API — Pantry and Pantry Item Schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pantry_api.models.pantry import Unit


class CreatePantryRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255, description="Pantry name, unique per user")


class UpdatePantryRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)


class PantryResponse(BaseModel):
    id: str
    title: str
    user_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CreatePantryItemRequest(BaseModel):
    pantry_id: Optional[str] = None
    food_id: str
    quantity: float = Field(gt=0)
    unit: Unit
    notes: Optional[str] = Field(default=None, max_length=1000)
    expiry_date: Optional[date] = None


class UpdatePantryItemRequest(BaseModel):
    quantity: Optional[float] = Field(default=None, gt=0)
    unit: Optional[Unit] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    expiry_date: Optional[date] = None


class PantryItemResponse(BaseModel):
    id: str
    pantry_id: str
    food_id: str
    quantity: float
    unit: Unit
    notes: Optional[str] = None
    expiry_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PantryItemListResponse(BaseModel):
    data: List[PantryItemResponse]
    total: int
