"""
Pantry API — User Group Service
================================

What:  Household groups: membership, roles, invite codes and virtual members.
Why:   Several accounts (plus account-less virtual members) share one household.
How:   Stateless singleton over group_memberships / user_groups / virtual_members.

Membership State Machine (per user, per group):

    (none) ──create──▶ ADMIN
    (none) ──join by invite code──▶ MEMBER
    MEMBER ──make-admin (by an ADMIN)──▶ ADMIN
    any    ──leave / removed by ADMIN──▶ (none)

Leave rules, checked in order:
    1. not a member                       → 404 "You are not a member of this group"
    2. member count ≤ 1                   → group deleted (last one out)
    3. ADMIN and admin count ≤ 1          → 400 "Cannot leave: you are the last admin..."
    4. otherwise                          → membership removed

Access levels:
    _require_member → 404 "Group not found" / 403 "You are not a member of this group"
    _require_admin  → as above, then 403 "Admin privileges required"
"""

import logging
import secrets
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from pantry_api.models.group import GroupMembership, GroupRole, UserGroup, VirtualMember
from pantry_api.models.user import User
from pantry_api.schemas.group import (
    CreateGroupRequest,
    CreateVirtualMemberRequest,
    GroupMemberResponse,
    GroupMembersResponse,
    GroupResponse,
    UpdateGroupRequest,
    UpdateVirtualMemberRequest,
    VirtualMemberResponse,
)

logger = logging.getLogger(__name__)

LAST_ADMIN_MESSAGE = (
    "Cannot leave: you are the last admin. Transfer admin rights to another member first."
)


def generate_invite_code() -> str:
    return secrets.token_urlsafe(12)


class GroupService:

    # ── Access helpers ────────────────────────────────────────────────────

    async def _get_group(self, db: AsyncSession, group_id: str) -> UserGroup:
        result = await db.execute(select(UserGroup).where(UserGroup.id == group_id))
        group = result.scalar_one_or_none()
        if group is None:
            raise NotFoundError(resource="group", message="Group not found")
        return group

    async def _get_membership(
        self, db: AsyncSession, user_id: str, group_id: str
    ) -> Optional[GroupMembership]:
        result = await db.execute(
            select(GroupMembership).where(
                GroupMembership.user_id == user_id,
                GroupMembership.group_id == group_id,
            )
        )
        return result.scalar_one_or_none()

    async def _require_member(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> Tuple[UserGroup, GroupMembership]:
        group = await self._get_group(db, group_id)
        membership = await self._get_membership(db, user_id, group_id)
        if membership is None:
            raise ForbiddenError(message="You are not a member of this group")
        return group, membership

    async def _require_admin(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> Tuple[UserGroup, GroupMembership]:
        group, membership = await self._require_member(db, group_id, user_id)
        if membership.role != GroupRole.ADMIN:
            raise ForbiddenError(message="Admin privileges required")
        return group, membership

    async def _count_members(
        self, db: AsyncSession, group_id: str, role: Optional[GroupRole] = None
    ) -> int:
        query = select(func.count(GroupMembership.id)).where(GroupMembership.group_id == group_id)
        if role is not None:
            query = query.where(GroupMembership.role == role)
        return (await db.execute(query)).scalar() or 0

    async def _delete_group(self, db: AsyncSession, group: UserGroup) -> None:
        await db.execute(delete(VirtualMember).where(VirtualMember.group_id == group.id))
        await db.execute(delete(GroupMembership).where(GroupMembership.group_id == group.id))
        await db.delete(group)
        await db.flush()

    async def _to_response(
        self, db: AsyncSession, group: UserGroup, role: Optional[GroupRole]
    ) -> GroupResponse:
        response = GroupResponse.model_validate(group)
        response.role = role
        response.member_count = await self._count_members(db, group.id)
        return response

    # ── Group CRUD ────────────────────────────────────────────────────────

    async def create(self, db: AsyncSession, dto: CreateGroupRequest, user_id: str) -> GroupResponse:
        duplicate = await db.execute(
            select(UserGroup.id).where(UserGroup.created_by == user_id, UserGroup.name == dto.name)
        )
        if duplicate.scalar_one_or_none() is not None:
            raise ConflictError(message="You already created a group with this name")

        group = UserGroup(
            name=dto.name,
            description=dto.description,
            invite_code=generate_invite_code(),
            created_by=user_id,
        )
        db.add(group)
        await db.flush()
        db.add(GroupMembership(user_id=user_id, group_id=group.id, role=GroupRole.ADMIN))
        await db.flush()
        logger.info("Group %s created by %s", group.id, user_id)
        return await self._to_response(db, group, GroupRole.ADMIN)

    async def find_by_id(self, db: AsyncSession, group_id: str, user_id: str) -> GroupResponse:
        group, membership = await self._require_member(db, group_id, user_id)
        return await self._to_response(db, group, membership.role)

    async def find_all_by_user(self, db: AsyncSession, user_id: str) -> List[GroupResponse]:
        result = await db.execute(
            select(UserGroup, GroupMembership.role)
            .join(GroupMembership, GroupMembership.group_id == UserGroup.id)
            .where(GroupMembership.user_id == user_id)
            .order_by(UserGroup.created_at)
        )
        return [await self._to_response(db, group, role) for group, role in result.all()]

    async def update(
        self, db: AsyncSession, group_id: str, dto: UpdateGroupRequest, user_id: str
    ) -> GroupResponse:
        group, membership = await self._require_admin(db, group_id, user_id)
        for field, value in dto.model_dump(exclude_unset=True).items():
            if value is not None or field == "description":
                setattr(group, field, value)
        await db.flush()
        return await self._to_response(db, group, membership.role)

    async def remove(self, db: AsyncSession, group_id: str, user_id: str) -> None:
        group, _ = await self._require_admin(db, group_id, user_id)
        await self._delete_group(db, group)
        logger.info("Group %s deleted by %s", group_id, user_id)

    # ── Invite codes ──────────────────────────────────────────────────────

    async def join_by_invite_code(self, db: AsyncSession, code: str, user_id: str) -> GroupResponse:
        result = await db.execute(select(UserGroup).where(UserGroup.invite_code == code))
        group = result.scalar_one_or_none()
        if group is None:
            raise NotFoundError(resource="group", message="Invalid invite code")

        if await self._get_membership(db, user_id, group.id) is not None:
            raise ConflictError(message="You are already a member of this group")

        db.add(GroupMembership(user_id=user_id, group_id=group.id, role=GroupRole.MEMBER))
        await db.flush()
        logger.info("User %s joined group %s", user_id, group.id)
        return await self._to_response(db, group, GroupRole.MEMBER)

    async def get_invite_code(self, db: AsyncSession, group_id: str, user_id: str) -> str:
        group, _ = await self._require_admin(db, group_id, user_id)
        return group.invite_code

    async def regenerate_invite_code(self, db: AsyncSession, group_id: str, user_id: str) -> str:
        group, _ = await self._require_admin(db, group_id, user_id)
        group.invite_code = generate_invite_code()
        await db.flush()
        logger.info("Invite code regenerated for group %s", group_id)
        return group.invite_code

    # ── Membership ────────────────────────────────────────────────────────

    async def leave(self, db: AsyncSession, group_id: str, user_id: str) -> bool:
        """Returns True when the caller was the last member and the group was deleted."""
        membership = await self._get_membership(db, user_id, group_id)
        if membership is None:
            raise NotFoundError(resource="membership", message="You are not a member of this group")

        if await self._count_members(db, group_id) <= 1:
            group = await self._get_group(db, group_id)
            await self._delete_group(db, group)
            logger.info("Last member %s left; group %s deleted", user_id, group_id)
            return True

        if membership.role == GroupRole.ADMIN:
            if await self._count_members(db, group_id, GroupRole.ADMIN) <= 1:
                raise ValidationError(message=LAST_ADMIN_MESSAGE)

        await db.delete(membership)
        await db.flush()
        logger.info("User %s left group %s", user_id, group_id)
        return False

    async def get_members(self, db: AsyncSession, group_id: str, user_id: str) -> GroupMembersResponse:
        await self._require_member(db, group_id, user_id)

        rows = await db.execute(
            select(GroupMembership, User)
            .join(User, User.id == GroupMembership.user_id)
            .where(GroupMembership.group_id == group_id)
            .order_by(GroupMembership.joined_at)
        )
        members = [
            GroupMemberResponse(
                id=membership.id,
                user_id=membership.user_id,
                role=membership.role,
                joined_at=membership.joined_at,
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
            )
            for membership, user in rows.all()
        ]

        virtual = await db.execute(
            select(VirtualMember)
            .where(VirtualMember.group_id == group_id)
            .order_by(VirtualMember.created_at)
        )
        return GroupMembersResponse(
            members=members,
            virtual_members=[VirtualMemberResponse.model_validate(vm) for vm in virtual.scalars().all()],
        )

    async def _get_group_membership(
        self, db: AsyncSession, group_id: str, membership_id: str
    ) -> Optional[GroupMembership]:
        result = await db.execute(
            select(GroupMembership).where(
                GroupMembership.id == membership_id,
                GroupMembership.group_id == group_id,
            )
        )
        return result.scalar_one_or_none()

    async def remove_member(
        self, db: AsyncSession, group_id: str, membership_id: str, user_id: str
    ) -> None:
        await self._require_admin(db, group_id, user_id)

        target = await self._get_group_membership(db, group_id, membership_id)
        if target is None:
            raise NotFoundError(resource="membership", message="Membership not found")
        if target.user_id == user_id:
            raise ValidationError(message="Use leave endpoint to leave the group")

        await db.delete(target)
        await db.flush()
        logger.info("Membership %s removed from group %s by %s", membership_id, group_id, user_id)

    async def transfer_admin(
        self, db: AsyncSession, group_id: str, membership_id: str, user_id: str
    ) -> GroupMemberResponse:
        await self._require_admin(db, group_id, user_id)

        target = await self._get_group_membership(db, group_id, membership_id)
        if target is None:
            raise NotFoundError(resource="membership", message="Target member not found in this group")
        if target.role == GroupRole.ADMIN:
            raise ValidationError(message="Target is already an admin")

        target.role = GroupRole.ADMIN
        await db.flush()
        logger.info("Membership %s promoted to ADMIN in group %s", membership_id, group_id)
        return GroupMemberResponse(
            id=target.id,
            user_id=target.user_id,
            role=target.role,
            joined_at=target.joined_at,
        )

    # ── Virtual members ───────────────────────────────────────────────────

    async def _get_virtual_member(
        self, db: AsyncSession, group_id: str, virtual_member_id: str
    ) -> VirtualMember:
        result = await db.execute(
            select(VirtualMember).where(
                VirtualMember.id == virtual_member_id,
                VirtualMember.group_id == group_id,
            )
        )
        virtual_member = result.scalar_one_or_none()
        if virtual_member is None:
            raise NotFoundError(resource="virtual member", message="Virtual member not found")
        return virtual_member

    async def add_virtual_member(
        self, db: AsyncSession, group_id: str, dto: CreateVirtualMemberRequest, user_id: str
    ) -> VirtualMember:
        await self._require_member(db, group_id, user_id)
        virtual_member = VirtualMember(group_id=group_id, created_by=user_id, **dto.model_dump())
        db.add(virtual_member)
        await db.flush()
        logger.info("Virtual member %s added to group %s", virtual_member.id, group_id)
        return virtual_member

    async def update_virtual_member(
        self,
        db: AsyncSession,
        group_id: str,
        virtual_member_id: str,
        dto: UpdateVirtualMemberRequest,
        user_id: str,
    ) -> VirtualMember:
        await self._require_member(db, group_id, user_id)
        virtual_member = await self._get_virtual_member(db, group_id, virtual_member_id)
        for field, value in dto.model_dump(exclude_unset=True).items():
            if value is None and field in ("nickname", "preferences"):
                continue
            setattr(virtual_member, field, value)
        await db.flush()
        return virtual_member

    async def remove_virtual_member(
        self, db: AsyncSession, group_id: str, virtual_member_id: str, user_id: str
    ) -> None:
        await self._require_member(db, group_id, user_id)
        virtual_member = await self._get_virtual_member(db, group_id, virtual_member_id)
        await db.delete(virtual_member)
        await db.flush()


# ── Singleton Instance ────────────────────────────────────────────────────
group_service = GroupService()
