"""
Pantry API — User Group Models
===============================

What:  ORM models for `user_groups`, `group_memberships` and `virtual_members`.
Why:   Households share a group. Real members have accounts; virtual members
       (children, guests) are profiles without one.

Membership rules enforced by GroupService, not the schema:
    - the creator is the first ADMIN
    - a group always keeps at least one ADMIN while it has members
    - the last member leaving deletes the group
"""

import enum
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from pantry_api.database import Base
from pantry_api.models.base import created_at_column, id_column, updated_at_column


class GroupRole(str, enum.Enum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"
    PREFER_NOT_TO_SAY = "PREFER_NOT_TO_SAY"


class ActivityLevel(str, enum.Enum):
    SEDENTARY = "SEDENTARY"
    LIGHT = "LIGHT"
    MODERATE = "MODERATE"
    ACTIVE = "ACTIVE"
    VERY_ACTIVE = "VERY_ACTIVE"


class AnnualIncomeLevel(str, enum.Enum):
    BELOW_10000 = "BELOW_10000"
    FROM_10000_TO_19999 = "FROM_10000_TO_19999"
    FROM_20000_TO_34999 = "FROM_20000_TO_34999"
    FROM_35000_TO_49999 = "FROM_35000_TO_49999"
    FROM_50000_TO_74999 = "FROM_50000_TO_74999"
    FROM_75000_TO_99999 = "FROM_75000_TO_99999"
    ABOVE_100000 = "ABOVE_100000"


class UserGroup(Base):
    __tablename__ = "user_groups"

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    invite_code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    def __repr__(self) -> str:
        return f"<UserGroup(id={self.id}, name='{self.name}')>"


class GroupMembership(Base):
    __tablename__ = "group_memberships"

    id: Mapped[str] = id_column()
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[GroupRole] = mapped_column(
        Enum(GroupRole, name="group_role"), nullable=False, default=GroupRole.MEMBER
    )
    joined_at: Mapped[datetime] = created_at_column()

    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="uq_group_memberships_user_group"),
    )


class VirtualMember(Base):
    __tablename__ = "virtual_members"

    id: Mapped[str] = id_column()
    group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    nickname: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gender: Mapped[Optional[Gender]] = mapped_column(Enum(Gender, name="gender"), nullable=True)
    activity_level: Mapped[Optional[ActivityLevel]] = mapped_column(
        Enum(ActivityLevel, name="activity_level"), nullable=True
    )
    annual_income: Mapped[Optional[AnnualIncomeLevel]] = mapped_column(
        Enum(AnnualIncomeLevel, name="annual_income_level"), nullable=True
    )
    preferences: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()
