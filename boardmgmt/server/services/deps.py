"""
Request dependencies.

Database session, the authenticated user and permission guards for API endpoints.
Authentication is a Bearer JWT issued by ``/api/v1/auth/login``.
"""

from typing import Annotated, List, Optional, Sequence

from fastapi import Depends, UploadFile
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database import get_session
from boardmgmt.core.database.entities.identity import User
from boardmgmt.core.database.repositories import UserRepository
from boardmgmt.core.exceptions import UnauthorizedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.permissions import AppModule, Permission

from .file_storage import UploadedFile
from .permissions import PermissionService
from .security import JwtTokenService, get_token_service

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[AsyncSession, Depends(get_session)]
TokenServiceDep = Annotated[JwtTokenService, Depends(get_token_service)]


async def user_from_token(session: AsyncSession, tokens: JwtTokenService, token: str) -> User:
    """Resolve an access token to an active user or raise ``UnauthorizedError``."""
    claims = tokens.decode_token(token)
    user = await UserRepository(session).get_by_id(claims["sub"])
    if user is None or not user.is_active:
        raise UnauthorizedError("User account is missing or disabled.")
    return user


async def get_optional_user(
    session: SessionDep,
    tokens: TokenServiceDep,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None
    return await user_from_token(session, tokens, credentials.credentials)


async def get_current_user(user: Annotated[Optional[User], Depends(get_optional_user)]) -> User:
    if user is None:
        raise UnauthorizedError()
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[Optional[User], Depends(get_optional_user)]


def require_permission(module: AppModule, needed: Permission):
    """
    Build a dependency that requires ``needed`` on ``module`` for the current user.

    Usage:
        @router.get("", dependencies=[Depends(require_permission(AppModule.users, Permission.view))])
    """

    async def _guard(session: SessionDep, user: CurrentUserDep) -> User:
        await PermissionService(session, user.id).ensure_mine(module, needed)
        return user

    _guard.__name__ = f"require_{module.name}_{int(needed)}"
    return _guard


async def read_uploads(files: Sequence[UploadFile]) -> List[UploadedFile]:
    """Read multipart uploads into framework-independent ``UploadedFile`` objects."""
    uploads = []
    for upload in files:
        uploads.append(
            UploadedFile(file_name=upload.filename or "", content=await upload.read(), content_type=upload.content_type)
        )
    return uploads
