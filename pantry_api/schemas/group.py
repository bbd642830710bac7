"""
Pantry API — User Group Schemas
================================

What:  Request/response models for groups, memberships and virtual members.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from pantry_api.models.group import ActivityLevel, AnnualIncomeLevel, Gender, GroupRole


class CreateGroupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)


class UpdateGroupRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)


class JoinGroupRequest(BaseModel):
    invite_code: str = Field(min_length=1, max_length=32)


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    role: Optional[GroupRole] = Field(default=None, description="The caller's role in this group")
    member_count: Optional[int] = None

    model_config = {"from_attributes": True}


class InviteCodeResponse(BaseModel):
    invite_code: str


class GroupMemberResponse(BaseModel):
    id: str = Field(description="Membership id (used by remove / make-admin)")
    user_id: str
    role: GroupRole
    joined_at: datetime
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class VirtualMemberBase(BaseModel):
    age: Optional[int] = Field(default=None, ge=0, le=150)
    gender: Optional[Gender] = None
    activity_level: Optional[ActivityLevel] = None
    annual_income: Optional[AnnualIncomeLevel] = None


class CreateVirtualMemberRequest(VirtualMemberBase):
    nickname: str = Field(min_length=1, max_length=100)
    preferences: Dict[str, Any] = Field(default_factory=dict)


class UpdateVirtualMemberRequest(VirtualMemberBase):
    nickname: Optional[str] = Field(default=None, min_length=1, max_length=100)
    preferences: Optional[Dict[str, Any]] = None


class VirtualMemberResponse(VirtualMemberBase):
    id: str
    group_id: str
    nickname: str
    preferences: Dict[str, Any] = Field(default_factory=dict)
    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class GroupMembersResponse(BaseModel):
    members: List[GroupMemberResponse]
    virtual_members: List[VirtualMemberResponse]


class LeaveGroupResponse(BaseModel):
    group_deleted: bool = Field(description="True when the caller was the last member")
