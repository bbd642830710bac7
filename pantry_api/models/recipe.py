"""
Pantry API — Recipe Model
==========================

What:  ORM model for `recipes`: how to cook one of the caller's dishes.
Why:   A dish says what was eaten; a recipe says how it is prepared. A dish
       can carry several recipes.

Query Patterns:
    - Recipe list: WHERE user_id = :uid ORDER BY created_at DESC
      → index on user_id
    - Tag / allergen filters use array overlap (tags && :tags), which is why
      both columns are native PostgreSQL arrays rather than JSON
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Float, ForeignKey, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from pantry_api.database import Base
from pantry_api.models.base import created_at_column, id_column, updated_at_column


class Recipe(Base):
    __tablename__ = "recipes"

    id: Mapped[str] = id_column()
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # RESTRICT: a dish with recipes cannot be deleted out from under them
    dish_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("dishes.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # ── Content ───────────────────────────────────────────────────────────
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    prep_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cook_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    servings: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    difficulty: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # ── Classification ────────────────────────────────────────────────────
    tags: Mapped[List[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    allergens: Mapped[List[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    nutritional_info: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    sustainability_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # ── Ratings ───────────────────────────────────────────────────────────
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default=text("0"))
    rating_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, title='{self.title}')>"
