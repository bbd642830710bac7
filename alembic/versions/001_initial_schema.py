"""Initial schema

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates every table of the pantry domain: users, foods, pantries,
       pantry_items, shopping_lists, shopping_list_items, user_groups,
       group_memberships, virtual_members, dishes, meal_logs.
How:   PostgreSQL enum types are created once up front and referenced with
       create_type=False; `unit` is shared by pantry and shopping list items.

Rollback: downgrade() drops the tables in reverse dependency order, then the
enum types (destructive, all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUMS = {
    "unit": ("PIECES", "G", "KG", "ML", "L", "CUPS"),
    "group_role": ("ADMIN", "MEMBER"),
    "gender": ("MALE", "FEMALE", "OTHER", "PREFER_NOT_TO_SAY"),
    "activity_level": ("SEDENTARY", "LIGHT", "MODERATE", "ACTIVE", "VERY_ACTIVE"),
    "annual_income_level": (
        "BELOW_10000",
        "FROM_10000_TO_19999",
        "FROM_20000_TO_34999",
        "FROM_35000_TO_49999",
        "FROM_50000_TO_74999",
        "FROM_75000_TO_99999",
        "ABOVE_100000",
    ),
    "meal_type": ("SALAD", "MEAT", "PASTA", "RICE", "VEGAN"),
    "type_of_meal": ("BREAKFAST", "LUNCH", "DINNER", "SNACK", "SPECIAL_DRINKS"),
}


def enum_column_type(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def id_column() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def user_fk(name: str = "user_id", index: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=index,
    )


def timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    # ── Accounts and catalog ──────────────────────────────────────────────
    op.create_table(
        "users",
        id_column(),
        sa.Column("keycloak_id", sa.String(255), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column(
            "should_auto_add_to_pantry", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        *timestamps(),
    )

    op.create_table(
        "foods",
        id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("barcode", sa.String(64), nullable=True, unique=True),
        sa.Column("open_food_facts_id", sa.String(64), nullable=True, unique=True),
        sa.Column("created_by", sa.String(36), nullable=False),
        *timestamps(),
    )
    op.create_index("idx_foods_name", "foods", ["name"])

    # ── Pantries ──────────────────────────────────────────────────────────
    op.create_table(
        "pantries",
        id_column(),
        sa.Column("title", sa.String(255), nullable=False),
        user_fk(index=True),
        *timestamps(),
        sa.UniqueConstraint("user_id", "title", name="uq_pantries_user_title"),
    )

    op.create_table(
        "pantry_items",
        id_column(),
        sa.Column(
            "pantry_id",
            sa.String(36),
            sa.ForeignKey("pantries.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("food_id", sa.String(36), sa.ForeignKey("foods.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("unit", enum_column_type("unit"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        *timestamps(),
        sa.UniqueConstraint("pantry_id", "food_id", name="uq_pantry_items_pantry_food"),
    )

    # ── Shopping lists ────────────────────────────────────────────────────
    op.create_table(
        "shopping_lists",
        id_column(),
        sa.Column("title", sa.String(255), nullable=False),
        user_fk(index=True),
        *timestamps(),
        sa.UniqueConstraint("user_id", "title", name="uq_shopping_lists_user_title"),
    )

    op.create_table(
        "shopping_list_items",
        id_column(),
        sa.Column(
            "shopping_list_id",
            sa.String(36),
            sa.ForeignKey("shopping_lists.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("food_id", sa.String(36), sa.ForeignKey("foods.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False, server_default=sa.text("1")),
        sa.Column("unit", enum_column_type("unit"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("checked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *timestamps(),
        sa.UniqueConstraint("shopping_list_id", "food_id", name="uq_shopping_list_items_list_food"),
    )

    # ── Groups ────────────────────────────────────────────────────────────
    op.create_table(
        "user_groups",
        id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("invite_code", sa.String(32), nullable=False, unique=True),
        sa.Column("created_by", sa.String(36), nullable=False),
        *timestamps(),
    )

    op.create_table(
        "group_memberships",
        id_column(),
        user_fk(),
        sa.Column(
            "group_id",
            sa.String(36),
            sa.ForeignKey("user_groups.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("role", enum_column_type("group_role"), nullable=False),
        sa.Column(
            "joined_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint("user_id", "group_id", name="uq_group_memberships_user_group"),
    )

    op.create_table(
        "virtual_members",
        id_column(),
        sa.Column(
            "group_id",
            sa.String(36),
            sa.ForeignKey("user_groups.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("nickname", sa.String(100), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("gender", enum_column_type("gender"), nullable=True),
        sa.Column("activity_level", enum_column_type("activity_level"), nullable=True),
        sa.Column("annual_income", enum_column_type("annual_income_level"), nullable=True),
        sa.Column("preferences", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=False),
        *timestamps(),
    )

    # ── Meals ─────────────────────────────────────────────────────────────
    op.create_table(
        "dishes",
        id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("meal_type", enum_column_type("meal_type"), nullable=True),
        sa.Column("calories", sa.Float(), nullable=True),
        sa.Column("proteins", sa.Float(), nullable=True),
        sa.Column("sustainability_score", sa.Float(), nullable=True),
        sa.Column("nutritional_info", sa.JSON(), nullable=True),
        sa.Column("pantry_item_id", sa.String(36), nullable=True),
        sa.Column("barcode", sa.String(64), nullable=True, unique=True),
        user_fk(index=True),
        *timestamps(),
    )

    op.create_table(
        "meal_logs",
        id_column(),
        user_fk(),
        sa.Column("dish_id", sa.String(36), sa.ForeignKey("dishes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type_of_meal", enum_column_type("type_of_meal"), nullable=False),
        sa.Column("timestamp", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("meal_from_pantry", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("eaten_out", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *timestamps(),
    )
    op.create_index("idx_meal_logs_user_timestamp", "meal_logs", ["user_id", "timestamp"])


def downgrade() -> None:
    op.drop_index("idx_meal_logs_user_timestamp", table_name="meal_logs")
    for table in (
        "meal_logs",
        "dishes",
        "virtual_members",
        "group_memberships",
        "user_groups",
        "shopping_list_items",
        "shopping_lists",
        "pantry_items",
        "pantries",
        "foods",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
