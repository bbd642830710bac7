"""
Pantry API — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock standing in for AsyncSession
    ├── fake_timer:      manually advanced clock for TTL tests
    ├── memory_store:    MemoryCacheStore driven by fake_timer
    ├── regular_user / admin_user: CurrentUser values
    ├── app:             fresh create_app() with DB and auth dependencies overridden
    └── test_client:     HTTPX AsyncClient talking to `app` through ASGITransport
"""

import os

# Override settings for testing BEFORE any pantry_api imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["KEYCLOAK_URL"] = "http://keycloak.test"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timezone  # noqa: E402
from typing import Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import Request  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from pantry_api.auth import CurrentUser, get_current_user, get_optional_user  # noqa: E402
from pantry_api.cache import MemoryCacheStore  # noqa: E402
from pantry_api.database import get_db_session  # noqa: E402
from pantry_api.exceptions import UnauthorizedError  # noqa: E402
from helpers import FakeTimer  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value = result_with(scalar=pantry)
        result = await pantry_service.find_by_id(mock_db_session, "p-1", "user-1")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    session.begin_nested = MagicMock()
    return session


@pytest.fixture
def fake_timer():
    return FakeTimer()


@pytest.fixture
def memory_store(fake_timer):
    return MemoryCacheStore(max_entries=100, timer=fake_timer)


@pytest.fixture
def now():
    return datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def regular_user():
    return CurrentUser(id="user-1", sub="kc-sub-1", roles=frozenset({"user"}), email="ada@example.com")


@pytest.fixture
def admin_user():
    return CurrentUser(id="admin-1", sub="kc-sub-admin", roles=frozenset({"admin"}))


class AuthState:
    """Who the overridden auth dependencies report as the caller; None is anonymous."""

    def __init__(self):
        self.user: Optional[CurrentUser] = None


@pytest.fixture
def auth():
    return AuthState()


@pytest.fixture
def app(memory_store, mock_db_session, auth):
    """
    A fresh application per test.

    The auth overrides set request.state.user exactly like the real
    dependencies, because the cache decorators key on it.
    """
    from pantry_api.main import create_app

    application = create_app(cache_store=memory_store)

    async def override_db():
        yield mock_db_session

    async def override_optional_user(request: Request) -> Optional[CurrentUser]:
        request.state.user = auth.user
        return auth.user

    async def override_current_user(request: Request) -> CurrentUser:
        if auth.user is None:
            raise UnauthorizedError()
        request.state.user = auth.user
        return auth.user

    application.dependency_overrides[get_db_session] = override_db
    application.dependency_overrides[get_optional_user] = override_optional_user
    application.dependency_overrides[get_current_user] = override_current_user
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the ASGI app (no server).

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
