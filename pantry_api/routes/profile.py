"""
Pantry API — Profile Route Handlers
====================================

What:  The caller's own profile.
Caching: GET /profile/me is cached for 15 minutes under user_profile:{userId};
         PATCH /profile evicts it together with the subject-keyed variant.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.auth import CurrentUser, get_current_user
from pantry_api.cache import CacheEvict, Cacheable, cache_evict, cacheable
from pantry_api.database import get_db_session
from pantry_api.schemas.user import (
    ProfileCompleteResponse,
    UpdateProfileRequest,
    UserProfileResponse,
)
from pantry_api.services.user_service import user_service

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("/me", response_model=UserProfileResponse, summary="The caller's profile")
@cacheable(Cacheable("user_profile", ttl_seconds=900))
async def get_my_profile(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfileResponse:
    return UserProfileResponse.model_validate(await user_service.get_profile(db, user.id))


@router.patch("", response_model=UserProfileResponse, summary="Update the caller's profile")
@cache_evict(CacheEvict(["user_profile:{userId}", "user_profile:{keycloakId}"]))
async def update_my_profile(
    dto: UpdateProfileRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfileResponse:
    profile = await user_service.update_profile(db, user.id, dto)
    return UserProfileResponse.model_validate(profile)


@router.get(
    "/complete",
    response_model=ProfileCompleteResponse,
    summary="Whether first name, last name and email are filled in",
)
async def is_profile_complete(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileCompleteResponse:
    return ProfileCompleteResponse(complete=await user_service.is_profile_complete(db, user.id))
