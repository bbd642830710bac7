"""
Pantry API — User Administration Route Handlers
================================================

What:  Admin views of all users, plus per-user preferences.
Who:   Listing, reading and deleting users need the `admin` role.
       Preferences are open to the user themselves and to admins.

Caching Strategy:
    GET /users                    users_list        5 min
    GET /users/{id}               user_profile      15 min
    GET /users/{id}/preferences   user_preferences  10 min

Keys carry the caller's identity, so the eviction templates name the caller's
own entries ({userId}) plus the target's /profile/me entry (user_profile:{id}).
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.auth import CurrentUser, require_roles
from pantry_api.cache import CacheEvict, Cacheable, cache_evict, cacheable
from pantry_api.database import get_db_session
from pantry_api.schemas.common import ErrorResponse
from pantry_api.schemas.user import (
    UpdatePreferencesRequest,
    UserPreferences,
    UserProfileResponse,
)
from pantry_api.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["Users"])

_ERRORS = {
    403: {"description": "Not allowed", "model": ErrorResponse},
    404: {"description": "User not found", "model": ErrorResponse},
}

admin = require_roles("admin")
member = require_roles("user", "admin")


@router.get("", response_model=List[UserProfileResponse], summary="List all users (admin only)")
@cacheable(Cacheable("users_list", ttl_seconds=300))
async def list_users(
    user: CurrentUser = Depends(admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserProfileResponse]:
    return [UserProfileResponse.model_validate(u) for u in await user_service.list_users(db)]


@router.get("/{id}", response_model=UserProfileResponse, responses=_ERRORS, summary="Get a user (admin only)")
@cacheable(Cacheable("user_profile", ttl_seconds=900))
async def get_user(
    id: str,
    user: CurrentUser = Depends(admin),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfileResponse:
    return UserProfileResponse.model_validate(await user_service.get_by_id(db, id))


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERRORS,
    summary="Delete a user and everything they own (admin only)",
)
@cache_evict(
    CacheEvict(
        [
            "users_list:{userId}",
            "user_profile:{userId}:id:{id}",
            "user_profile:{id}",
            "user_preferences:{userId}:id:{id}",
        ]
    )
)
async def delete_user(
    id: str,
    user: CurrentUser = Depends(admin),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await user_service.remove(db, id)


@router.get(
    "/{id}/preferences",
    response_model=UserPreferences,
    responses=_ERRORS,
    summary="Dietary restrictions, allergies and preferred categories",
)
@cacheable(Cacheable("user_preferences", ttl_seconds=600))
async def get_preferences(
    id: str,
    user: CurrentUser = Depends(member),
    db: AsyncSession = Depends(get_db_session),
) -> UserPreferences:
    return await user_service.get_preferences(db, id, user)


@router.patch(
    "/{id}/preferences",
    response_model=UserPreferences,
    responses=_ERRORS,
    summary="Replace a user's preferences",
)
@cache_evict(CacheEvict(["user_preferences:{userId}:id:{id}"]))
async def update_preferences(
    id: str,
    dto: UpdatePreferencesRequest,
    user: CurrentUser = Depends(member),
    db: AsyncSession = Depends(get_db_session),
) -> UserPreferences:
    return await user_service.update_preferences(db, id, dto, user)
