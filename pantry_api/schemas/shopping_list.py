"""Pantry API — Shopping List and Shopping List Item Schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from pantry_api.models.pantry import Unit


class CreateShoppingListRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)


class UpdateShoppingListRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)


class ShoppingListResponse(BaseModel):
    id: str
    title: str
    user_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CreateShoppingListItemRequest(BaseModel):
    shopping_list_id: str
    food_id: str
    quantity: float = Field(default=1, gt=0)
    unit: Optional[Unit] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    checked: bool = False


class UpdateShoppingListItemRequest(BaseModel):
    shopping_list_id: Optional[str] = None
    food_id: Optional[str] = None
    quantity: Optional[float] = Field(default=None, gt=0)
    unit: Optional[Unit] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    checked: Optional[bool] = None


class ShoppingListItemResponse(BaseModel):
    id: str
    shopping_list_id: str
    food_id: str
    quantity: float
    unit: Optional[Unit] = None
    notes: Optional[str] = None
    checked: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ClearCheckedResponse(BaseModel):
    deleted: int = Field(description="Number of checked items removed")
