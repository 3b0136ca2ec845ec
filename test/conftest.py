from __future__ import annotations

import os
import tempfile
from typing import AsyncGenerator, Iterable, Sequence

# Configure the application before anything imports boardmgmt settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT__PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("UPLOADS_ROOT", tempfile.mkdtemp(prefix="boardmgmt-uploads-"))
os.environ.setdefault("EMAIL__PROVIDER", "none")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("SEED_ON_STARTUP", "false")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel.pool import StaticPool

from boardmgmt.core.database.entities.identity import Role, User
from boardmgmt.core.database.repositories import RoleRepository, UserRepository
from boardmgmt.core.database.utils import create_all, create_sessionmaker
from boardmgmt.server.services.file_storage import FileStorage
from boardmgmt.server.services.realtime import RealtimeHub
from boardmgmt.server.services.security import JwtTokenService, PasswordHasher
from boardmgmt.server.services.seeding import seed_defaults

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
DEFAULT_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    allowed_prefixes: Iterable[str] = (
        "http://mock",
        "https://mock",
        "http://localhost",
        "http://127.0.0.1",
        "http://testserver",
        "ws://testserver",
        "/",  # Allow relative paths (used by ASGI transport)
    )

    orig_sync = httpx._client.Client.request
    orig_async = httpx._client.AsyncClient.request

    def _is_allowed(url_str: str) -> bool:
        return any(url_str.startswith(p) for p in allowed_prefixes)

    def offline_sync(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return orig_sync(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard: {url_str}")

    async def offline_async(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return await orig_async(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard (async): {url_str}")

    monkeypatch.setattr(httpx._client.Client, "request", offline_sync, raising=True)
    monkeypatch.setattr(httpx._client.AsyncClient, "request", offline_async, raising=True)


@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine with every table created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(test_engine)() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session: AsyncSession) -> AsyncSession:
    """Session with the built-in roles, permissions, admin, folders and departments."""
    await seed_defaults(session)
    return session


@pytest.fixture
def storage(tmp_path) -> FileStorage:
    return FileStorage(tmp_path / "uploads")


@pytest.fixture
def hub() -> RealtimeHub:
    return RealtimeHub()


@pytest.fixture
def make_user(session: AsyncSession):
    """Factory creating a committed user holding the given role names."""
    hasher = PasswordHasher(rounds=4)

    async def _make(
        email: str,
        roles: Sequence[str] = (),
        first_name: str = "Test",
        last_name: str = "User",
        password: str = DEFAULT_PASSWORD,
        is_active: bool = True,
    ) -> User:
        users = UserRepository(session)
        role_repo = RoleRepository(session)
        user = await users.create(
            User(
                email=email,
                password_hash=hasher.hash(password),
                first_name=first_name,
                last_name=last_name,
                is_active=is_active,
            )
        )
        for name in roles:
            role = await role_repo.get_by_name(name) or await role_repo.create(Role(name=name))
            await users.add_role(user.id, role.id)
        await session.commit()
        return user

    return _make


@pytest.fixture
def token_for():
    tokens = JwtTokenService()

    def _token(user: User) -> str:
        return tokens.create_token(user, [], [])

    return _token


@pytest.fixture
def auth_headers(token_for):
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {token_for(user)}"}

    return _headers
