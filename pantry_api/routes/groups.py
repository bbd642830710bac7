"""
Pantry API — Group Route Handlers
==================================

What:  Household groups: membership, invite codes, admin transfer and
       virtual members (people without an account).
Who:   Any member may read a group and manage virtual members; renaming,
       deleting, invite codes and member management need the admin role.

Caching Strategy:
    GET /groups       groups:{userId}          2 min
    GET /groups/{id}  group:{userId}:id:{id}   2 min
    Every mutation evicts both keys for the caller. Other members see their
    cached copies until the TTL expires.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.auth import CurrentUser, get_current_user
from pantry_api.cache import CacheEvict, Cacheable, cache_evict, cacheable
from pantry_api.database import get_db_session
from pantry_api.schemas.common import ErrorResponse
from pantry_api.schemas.group import (
    CreateGroupRequest,
    CreateVirtualMemberRequest,
    GroupMemberResponse,
    GroupMembersResponse,
    GroupResponse,
    InviteCodeResponse,
    JoinGroupRequest,
    LeaveGroupResponse,
    UpdateGroupRequest,
    UpdateVirtualMemberRequest,
    VirtualMemberResponse,
)
from pantry_api.services.group_service import group_service

router = APIRouter(prefix="/groups", tags=["Groups"])

_ERRORS = {
    400: {"description": "Membership rule violated", "model": ErrorResponse},
    403: {"description": "Not a member, or admin role required", "model": ErrorResponse},
    404: {"description": "Group or member not found", "model": ErrorResponse},
}

_EVICT = CacheEvict(["groups:{userId}", "group:{userId}:id:{id}"])


# ── Groups ────────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=GroupResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Group name already used by the caller", "model": ErrorResponse}},
    summary="Create a group; the creator becomes its admin",
)
@cache_evict(_EVICT)
async def create_group(
    dto: CreateGroupRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupResponse:
    return await group_service.create(db, dto, user.id)


@router.get("", response_model=List[GroupResponse], summary="Groups the caller belongs to")
@cacheable(Cacheable("groups", ttl_seconds=120))
async def list_groups(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[GroupResponse]:
    return await group_service.find_all_by_user(db, user.id)


@router.post(
    "/join",
    response_model=GroupResponse,
    responses={**_ERRORS, 409: {"description": "Already a member", "model": ErrorResponse}},
    summary="Join a group with an invite code",
)
@cache_evict(CacheEvict(["groups:{userId}"]))
async def join_group(
    dto: JoinGroupRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupResponse:
    return await group_service.join_by_invite_code(db, dto.invite_code, user.id)


@router.get("/{id}", response_model=GroupResponse, responses=_ERRORS, summary="Get a group")
@cacheable(Cacheable("group", ttl_seconds=120))
async def get_group(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupResponse:
    return await group_service.find_by_id(db, id, user.id)


@router.patch("/{id}", response_model=GroupResponse, responses=_ERRORS, summary="Update a group")
@cache_evict(_EVICT)
async def update_group(
    id: str,
    dto: UpdateGroupRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupResponse:
    return await group_service.update(db, id, dto, user.id)


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERRORS,
    summary="Delete a group with its members and virtual members",
)
@cache_evict(_EVICT)
async def delete_group(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await group_service.remove(db, id, user.id)


@router.post("/{id}/leave", response_model=LeaveGroupResponse, responses=_ERRORS, summary="Leave a group")
@cache_evict(_EVICT)
async def leave_group(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LeaveGroupResponse:
    group_deleted = await group_service.leave(db, id, user.id)
    return LeaveGroupResponse(group_deleted=group_deleted)


# ── Invite codes ──────────────────────────────────────────────────────────

@router.get("/{id}/invite-code", response_model=InviteCodeResponse, responses=_ERRORS)
async def get_invite_code(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InviteCodeResponse:
    return InviteCodeResponse(invite_code=await group_service.get_invite_code(db, id, user.id))


@router.post("/{id}/regenerate-code", response_model=InviteCodeResponse, responses=_ERRORS)
async def regenerate_invite_code(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InviteCodeResponse:
    code = await group_service.regenerate_invite_code(db, id, user.id)
    return InviteCodeResponse(invite_code=code)


# ── Members ───────────────────────────────────────────────────────────────

@router.get("/{id}/members", response_model=GroupMembersResponse, responses=_ERRORS)
async def get_members(
    id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupMembersResponse:
    return await group_service.get_members(db, id, user.id)


@router.delete(
    "/{id}/members/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERRORS,
    summary="Remove a member (admin only)",
)
@cache_evict(_EVICT)
async def remove_member(
    id: str,
    member_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await group_service.remove_member(db, id, member_id, user.id)


@router.post(
    "/{id}/members/{member_id}/make-admin",
    response_model=GroupMemberResponse,
    responses=_ERRORS,
    summary="Hand the admin role to another member",
)
@cache_evict(_EVICT)
async def make_admin(
    id: str,
    member_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupMemberResponse:
    return await group_service.transfer_admin(db, id, member_id, user.id)


# ── Virtual members ───────────────────────────────────────────────────────

@router.post(
    "/{id}/virtual-members",
    response_model=VirtualMemberResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
async def add_virtual_member(
    id: str,
    dto: CreateVirtualMemberRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VirtualMemberResponse:
    virtual_member = await group_service.add_virtual_member(db, id, dto, user.id)
    return VirtualMemberResponse.model_validate(virtual_member)


@router.patch("/{id}/virtual-members/{vm_id}", response_model=VirtualMemberResponse, responses=_ERRORS)
async def update_virtual_member(
    id: str,
    vm_id: str,
    dto: UpdateVirtualMemberRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VirtualMemberResponse:
    virtual_member = await group_service.update_virtual_member(db, id, vm_id, dto, user.id)
    return VirtualMemberResponse.model_validate(virtual_member)


@router.delete(
    "/{id}/virtual-members/{vm_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERRORS,
)
async def remove_virtual_member(
    id: str,
    vm_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    await group_service.remove_virtual_member(db, id, vm_id, user.id)
