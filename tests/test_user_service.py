"""Pantry API — User Service Unit Tests: administration and preferences."""

import pytest

from helpers import result_with
from pantry_api.auth import CurrentUser
from pantry_api.exceptions import ForbiddenError, NotFoundError
from pantry_api.models.user import User
from pantry_api.schemas.user import UpdatePreferencesRequest
from pantry_api.services.user_service import UserService


def make_user(**overrides) -> User:
    fields = dict(id="user-1", keycloak_id="kc-sub-1", email="ada@example.com", preferences={})
    fields.update(overrides)
    return User(**fields)


class TestPreferences:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_update_replaces_the_stored_object(self, mock_db_session, regular_user):
        user = make_user(preferences={"allergies": ["peanuts"], "preferred_categories": ["dairy"]})
        mock_db_session.execute.return_value = result_with(scalar=user)

        result = await self.service.update_preferences(
            mock_db_session,
            "user-1",
            UpdatePreferencesRequest(dietary_restrictions=["vegetarian"]),
            regular_user,
        )

        assert result.dietary_restrictions == ["vegetarian"]
        assert user.preferences == {
            "dietary_restrictions": ["vegetarian"],
            "allergies": [],
            "preferred_categories": [],
        }
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_admin_reads_anyones_preferences(self, mock_db_session, admin_user):
        mock_db_session.execute.return_value = result_with(scalar=make_user(preferences={"allergies": ["soy"]}))

        result = await self.service.get_preferences(mock_db_session, "user-1", admin_user)

        assert result.allergies == ["soy"]

    @pytest.mark.asyncio
    async def test_other_users_cannot_write(self, mock_db_session):
        stranger = CurrentUser(id="user-2", sub="kc-sub-2", roles=frozenset({"user"}))

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.update_preferences(
                mock_db_session, "user-1", UpdatePreferencesRequest(), stranger
            )

        assert exc_info.value.message == "You can only access your own preferences"
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_user(self, mock_db_session, admin_user):
        mock_db_session.execute.return_value = result_with(scalar=None)

        with pytest.raises(NotFoundError):
            await self.service.get_preferences(mock_db_session, "user-9", admin_user)


class TestAdministration:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_list_users(self, mock_db_session):
        users = [make_user(), make_user(id="user-2", keycloak_id="kc-sub-2")]
        mock_db_session.execute.return_value = result_with(scalars=users)

        assert await self.service.list_users(mock_db_session) == users

    @pytest.mark.asyncio
    async def test_remove(self, mock_db_session):
        user = make_user()
        mock_db_session.execute.return_value = result_with(scalar=user)

        await self.service.remove(mock_db_session, "user-1")

        mock_db_session.delete.assert_awaited_once_with(user)
