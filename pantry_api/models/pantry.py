"""
Pantry API — Pantry and Pantry Item Models
===========================================

What:  ORM models for `pantries` and `pantry_items`.
Why:   A user keeps one or more named pantries; each holds at most one row per food.

Constraints:
    pantries       UNIQUE (user_id, title)
    pantry_items   UNIQUE (pantry_id, food_id), ON DELETE CASCADE from pantries
"""

import enum
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, Enum, Float, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from pantry_api.database import Base
from pantry_api.models.base import created_at_column, id_column, updated_at_column


class Unit(str, enum.Enum):
    PIECES = "PIECES"
    G = "G"
    KG = "KG"
    ML = "ML"
    L = "L"
    CUPS = "CUPS"


class Pantry(Base):
    __tablename__ = "pantries"

    id: Mapped[str] = id_column()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (UniqueConstraint("user_id", "title", name="uq_pantries_user_title"),)

    def __repr__(self) -> str:
        return f"<Pantry(id={self.id}, title='{self.title}', user_id={self.user_id})>"


class PantryItem(Base):
    __tablename__ = "pantry_items"

    id: Mapped[str] = id_column()
    pantry_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pantries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    food_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("foods.id", ondelete="CASCADE"), nullable=False
    )
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[Unit] = mapped_column(Enum(Unit, name="unit"), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (
        UniqueConstraint("pantry_id", "food_id", name="uq_pantry_items_pantry_food"),
    )

    def __repr__(self) -> str:
        return f"<PantryItem(id={self.id}, pantry_id={self.pantry_id}, food_id={self.food_id})>"
