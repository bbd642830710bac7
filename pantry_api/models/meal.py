"""
Pantry API — Dish and Meal Log Models
======================================

What:  ORM models for `dishes` and `meal_logs`.
Why:   Users describe dishes once and log each time they eat one.

Query Patterns:
    - Meal history: WHERE user_id = :uid ORDER BY timestamp DESC
      → idx_meal_logs_user_timestamp
    - Dishes are private to their owner; every lookup filters on user_id
"""

import enum
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    TIMESTAMP,
    Boolean,
    Enum,
    Float,
    ForeignKey,
    Index,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from pantry_api.database import Base, utc_now
from pantry_api.models.base import created_at_column, id_column, updated_at_column


class MealType(str, enum.Enum):
    SALAD = "SALAD"
    MEAT = "MEAT"
    PASTA = "PASTA"
    RICE = "RICE"
    VEGAN = "VEGAN"


class TypeOfMeal(str, enum.Enum):
    BREAKFAST = "BREAKFAST"
    LUNCH = "LUNCH"
    DINNER = "DINNER"
    SNACK = "SNACK"
    SPECIAL_DRINKS = "SPECIAL_DRINKS"


class Dish(Base):
    __tablename__ = "dishes"

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    meal_type: Mapped[Optional[MealType]] = mapped_column(
        Enum(MealType, name="meal_type"), nullable=True
    )
    calories: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    proteins: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    sustainability_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    nutritional_info: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    # Loose reference: the pantry item may be consumed and deleted later
    pantry_item_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, unique=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    def __repr__(self) -> str:
        return f"<Dish(id={self.id}, name='{self.name}')>"


class MealLog(Base):
    __tablename__ = "meal_logs"

    id: Mapped[str] = id_column()
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    dish_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("dishes.id", ondelete="CASCADE"), nullable=False
    )
    type_of_meal: Mapped[TypeOfMeal] = mapped_column(
        Enum(TypeOfMeal, name="type_of_meal"), nullable=False
    )
    timestamp: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utc_now
    )
    meal_from_pantry: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    eaten_out: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (Index("idx_meal_logs_user_timestamp", "user_id", "timestamp"),)
