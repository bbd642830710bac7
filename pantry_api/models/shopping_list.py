"""
Pantry API — Shopping List Models
==================================

What:  ORM models for `shopping_lists` and `shopping_list_items`.

Constraints:
    shopping_lists        UNIQUE (user_id, title)
    shopping_list_items   UNIQUE (shopping_list_id, food_id), cascade from the list
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Enum, Float, ForeignKey, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from pantry_api.database import Base
from pantry_api.models.base import created_at_column, id_column, updated_at_column
from pantry_api.models.pantry import Unit


class ShoppingList(Base):
    __tablename__ = "shopping_lists"

    id: Mapped[str] = id_column()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (
        UniqueConstraint("user_id", "title", name="uq_shopping_lists_user_title"),
    )


class ShoppingListItem(Base):
    __tablename__ = "shopping_list_items"

    id: Mapped[str] = id_column()
    shopping_list_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("shopping_lists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    food_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("foods.id", ondelete="CASCADE"), nullable=False
    )
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=1)
    unit: Mapped[Optional[Unit]] = mapped_column(Enum(Unit, name="unit"), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    checked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (
        UniqueConstraint("shopping_list_id", "food_id", name="uq_shopping_list_items_list_food"),
    )

    def __repr__(self) -> str:
        return (
            f"<ShoppingListItem(id={self.id}, shopping_list_id={self.shopping_list_id}, "
            f"checked={self.checked})>"
        )
