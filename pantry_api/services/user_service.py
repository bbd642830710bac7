"""
Pantry API — User Service
==========================

What:  Maps identity-provider subjects to internal users and manages profiles.
Why:   Every owned row references an internal user id; tokens only carry `sub`.
How:   get_or_create_from_claims runs on each authenticated request (via the
       auth dependency). Profile reads and writes go through the same session.
       Preferences are readable and writable by their owner or an admin;
       listing and deleting users is admin-only (enforced by the route).
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.exceptions import DatabaseError, ForbiddenError, NotFoundError, UnauthorizedError
from pantry_api.models.user import User
from pantry_api.schemas.user import UpdatePreferencesRequest, UpdateProfileRequest, UserPreferences

if TYPE_CHECKING:
    from pantry_api.auth import CurrentUser

logger = logging.getLogger(__name__)


class UserService:
    """Stateless; receives the request's session on every call."""

    async def get_by_id(self, db: AsyncSession, user_id: str) -> User:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", message="User not found")
        return user

    async def get_or_create_from_claims(self, db: AsyncSession, claims: Dict[str, Any]) -> User:
        """
        Find the user whose keycloak_id equals the token's `sub`, creating it on first sight.

        Raises:
            UnauthorizedError: the claims carry no subject
            DatabaseError:     the lookup or insert failed
        """
        subject = claims.get("sub")
        if not subject:
            raise UnauthorizedError(message="Token is missing the subject claim")

        try:
            result = await db.execute(select(User).where(User.keycloak_id == subject))
            user = result.scalar_one_or_none()
            if user is not None:
                return user

            user = User(
                keycloak_id=subject,
                email=claims.get("email"),
                first_name=claims.get("given_name"),
                last_name=claims.get("family_name"),
            )
            db.add(user)
            await db.flush()
            logger.info("Created user %s for subject %s", user.id, subject)
            return user

        except IntegrityError:
            # Two first requests for the same subject raced; the other insert won
            await db.rollback()
            result = await db.execute(select(User).where(User.keycloak_id == subject))
            user = result.scalar_one_or_none()
            if user is None:
                raise DatabaseError(context={"subject": subject})
            return user
        except SQLAlchemyError as e:
            logger.error("Database error resolving user for subject %s: %s", subject, e)
            raise DatabaseError(
                message="Could not resolve the current user. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_profile(self, db: AsyncSession, user_id: str) -> User:
        return await self.get_by_id(db, user_id)

    async def update_profile(
        self, db: AsyncSession, user_id: str, dto: UpdateProfileRequest
    ) -> User:
        user = await self.get_by_id(db, user_id)
        for field, value in dto.model_dump(exclude_unset=True).items():
            if value is None and field == "should_auto_add_to_pantry":
                continue
            setattr(user, field, value)
        await db.flush()
        logger.info("Profile updated for user %s", user_id)
        return user

    async def is_profile_complete(self, db: AsyncSession, user_id: str) -> bool:
        user = await self.get_by_id(db, user_id)
        return all(
            (value or "").strip()
            for value in (user.first_name, user.last_name, user.email)
        )

    # ── Administration and preferences ────────────────────────────────────

    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def remove(self, db: AsyncSession, user_id: str) -> None:
        user = await self.get_by_id(db, user_id)
        await db.delete(user)
        await db.flush()
        logger.info("User deleted: %s", user_id)

    def _ensure_self_or_admin(self, target_id: str, requester: "CurrentUser") -> None:
        if requester.id != target_id and not requester.has_any_role("admin"):
            raise ForbiddenError(message="You can only access your own preferences")

    async def get_preferences(
        self, db: AsyncSession, target_id: str, requester: "CurrentUser"
    ) -> UserPreferences:
        self._ensure_self_or_admin(target_id, requester)
        user = await self.get_by_id(db, target_id)
        return UserPreferences.model_validate(user.preferences or {})

    async def update_preferences(
        self,
        db: AsyncSession,
        target_id: str,
        dto: UpdatePreferencesRequest,
        requester: "CurrentUser",
    ) -> UserPreferences:
        self._ensure_self_or_admin(target_id, requester)
        user = await self.get_by_id(db, target_id)
        preferences = UserPreferences(
            dietary_restrictions=dto.dietary_restrictions or [],
            allergies=dto.allergies or [],
            preferred_categories=dto.preferred_categories or [],
        )
        user.preferences = preferences.model_dump()
        await db.flush()
        logger.info("Preferences updated for user %s by %s", target_id, requester.id)
        return preferences


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
