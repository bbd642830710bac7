"""Pantry API — User Profile Schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class UserProfileResponse(BaseModel):
    id: str
    keycloak_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    should_auto_add_to_pantry: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UpdateProfileRequest(BaseModel):
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    should_auto_add_to_pantry: Optional[bool] = Field(
        default=None,
        description="Copy checked shopping list items into the first pantry",
    )


class ProfileCompleteResponse(BaseModel):
    complete: bool = Field(description="First name, last name and email are all set")


class UserPreferences(BaseModel):
    dietary_restrictions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    preferred_categories: List[str] = Field(default_factory=list)


class UpdatePreferencesRequest(BaseModel):
    """Replaces the stored preferences; omitted lists become empty."""

    dietary_restrictions: Optional[List[str]] = None
    allergies: Optional[List[str]] = None
    preferred_categories: Optional[List[str]] = None
