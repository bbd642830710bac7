"""
Pantry API — User SQLAlchemy Model
===================================

What:  ORM model for the `users` table.
Why:   Accounts live in the identity provider (Keycloak); this table maps the
       token's `sub` claim to an internal id and stores profile preferences.
How:   Rows are created lazily on the first authenticated request
       (UserService.get_or_create_from_claims).

Table Design Rationale:
    - keycloak_id UNIQUE: one internal user per identity-provider subject
    - should_auto_add_to_pantry: checked shopping-list items are copied into
      the user's first pantry when set
    - preferences: free-form JSON (dietary restrictions, allergies, categories)
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, String, text
from sqlalchemy.orm import Mapped, mapped_column

from pantry_api.database import Base
from pantry_api.models.base import created_at_column, id_column, updated_at_column


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = id_column()

    # ── Identity ──────────────────────────────────────────────────────────
    keycloak_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Profile ───────────────────────────────────────────────────────────
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    should_auto_add_to_pantry: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    # {"dietary_restrictions": [...], "allergies": [...], "preferred_categories": [...]}
    preferences: Mapped[Dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict, server_default=text("'{}'")
    )

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, keycloak_id='{self.keycloak_id}')>"
