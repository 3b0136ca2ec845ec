"""Unit tests for request dependencies.

Covers the Annotated dependency aliases, token resolution and the permission
guard factory used by the routers.
"""

import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from boardmgmt.core.database import get_session
from boardmgmt.core.exceptions import UnauthorizedError
from boardmgmt.core.models.domain.permissions import AppModule, AppRoles, Permission
from boardmgmt.server.services.deps import (
    CurrentUserDep,
    SessionDep,
    get_current_user,
    read_uploads,
    require_permission,
    user_from_token,
)
from boardmgmt.server.services.security import JwtTokenService


class TestDependencyAliases:
    def test_session_dep_uses_get_session(self):
        depends_obj = SessionDep.__metadata__[0]
        assert depends_obj.dependency == get_session

    def test_current_user_dep_uses_get_current_user(self):
        depends_obj = CurrentUserDep.__metadata__[0]
        assert depends_obj.dependency == get_current_user

    def test_guard_name_mentions_module_and_mask(self):
        guard = require_permission(AppModule.documents, Permission.update)
        assert guard.__name__ == "require_documents_4"


@pytest.mark.asyncio
class TestUserFromToken:
    async def test_resolves_active_user(self, seeded, make_user):
        user = await make_user("token@board.local")
        tokens = JwtTokenService()
        resolved = await user_from_token(seeded, tokens, tokens.create_token(user, [], []))
        assert resolved.id == user.id

    async def test_inactive_user_is_rejected(self, seeded, make_user):
        user = await make_user("inactive@board.local", is_active=False)
        tokens = JwtTokenService()
        with pytest.raises(UnauthorizedError):
            await user_from_token(seeded, tokens, tokens.create_token(user, [], []))

    async def test_garbage_token_is_rejected(self, seeded):
        with pytest.raises(UnauthorizedError, match="Invalid token"):
            await user_from_token(seeded, JwtTokenService(), "not-a-jwt")

    async def test_missing_user_raises_unauthorized(self):
        with pytest.raises(UnauthorizedError):
            await get_current_user(None)


@pytest.mark.asyncio
class TestRequirePermission:
    async def test_guard_returns_user_when_allowed(self, seeded, make_user):
        user = await make_user("secretary@board.local", roles=[AppRoles.secretary])
        guard = require_permission(AppModule.meetings, Permission.update)
        assert (await guard(seeded, user)).id == user.id

    async def test_guard_raises_when_denied(self, seeded, make_user):
        user = await make_user("observer@board.local", roles=[AppRoles.observer])
        guard = require_permission(AppModule.documents, Permission.view)
        with pytest.raises(UnauthorizedError):
            await guard(seeded, user)


@pytest.mark.asyncio
async def test_read_uploads_copies_name_content_and_type():
    upload = UploadFile(
        io.BytesIO(b"minutes"),
        filename="minutes.txt",
        headers=Headers({"content-type": "text/plain"}),
    )
    [uploaded] = await read_uploads([upload])
    assert uploaded.file_name == "minutes.txt"
    assert uploaded.content == b"minutes"
    assert uploaded.content_type == "text/plain"
