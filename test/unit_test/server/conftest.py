from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.entities.identity import User
from boardmgmt.core.models.domain.permissions import AppRoles


@pytest_asyncio.fixture(name="client")
async def client_fixture(seeded: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app with the database session overridden."""
    from boardmgmt.core.database import get_session
    from boardmgmt.server.main import app

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield seeded

    app.dependency_overrides[get_session] = get_session_override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin(seeded, make_user) -> User:
    return await make_user("root@board.local", roles=[AppRoles.admin], first_name="Ada", last_name="Admin")


@pytest_asyncio.fixture
async def member(seeded, make_user) -> User:
    return await make_user("member@board.local", roles=[AppRoles.board_member], first_name="Bob", last_name="Member")


@pytest_asyncio.fixture
async def outsider(seeded, make_user) -> User:
    """User without any role."""
    return await make_user("outsider@board.local", first_name="Olive", last_name="Outsider")
