"""
Pantry API — Food SQLAlchemy Model
===================================

What:  ORM model for the shared `foods` catalog.
Why:   Pantry items, shopping list items and dishes all reference one catalog
       entry per product instead of free text.

Table Design Rationale:
    - barcode UNIQUE (nullable): one catalog row per EAN/UPC; home-made foods have none
    - open_food_facts_id UNIQUE (nullable): set when imported from OpenFoodFacts
    - created_by: internal id of the creating user, kept as plain text so a
      deleted account does not cascade into the shared catalog
    - Index on name: the list endpoint filters with a case-insensitive substring
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pantry_api.database import Base
from pantry_api.models.base import created_at_column, id_column, updated_at_column


class Food(Base):
    __tablename__ = "foods"

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, unique=True)
    open_food_facts_id: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, unique=True
    )
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (Index("idx_foods_name", "name"),)

    def __repr__(self) -> str:
        return f"<Food(id={self.id}, name='{self.name}', barcode={self.barcode})>"
