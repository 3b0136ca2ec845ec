"""
Authentication use cases.

Registration, login and the signed-in user's profile.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.entities.identity import User
from boardmgmt.core.database.repositories import RoleRepository, UserRepository
from boardmgmt.core.exceptions import NotFoundError, UnauthorizedError, ValidationFailedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.permissions import AppRoles, format_permission_claims
from boardmgmt.core.models.io.auth import AuthUser, LoginResponse, MeResponse

from .permissions import aggregate_permissions
from .security import JwtTokenService, PasswordHasher, get_password_hasher, get_token_service

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."


class AuthService:
    """Register users, issue tokens and describe the current user."""

    def __init__(
        self,
        session: AsyncSession,
        hasher: Optional[PasswordHasher] = None,
        tokens: Optional[JwtTokenService] = None,
    ) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.roles = RoleRepository(session)
        self.hasher = hasher or get_password_hasher()
        self.tokens = tokens or get_token_service()

    async def register(
        self,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
        role: str = AppRoles.board_member,
    ) -> User:
        """
        Create an account holding exactly one existing role.

        Public sign-up always uses the default BoardMember role; other roles are
        granted through user administration.
        """
        email = (email or "").strip()
        if not email or "@" not in email:
            raise ValidationFailedError.for_field("email", "A valid email address is required.")
        if not password:
            raise ValidationFailedError.for_field("password", "Password is required.")
        if await self.users.get_by_email(email) is not None:
            raise ValidationFailedError.for_field("email", "Email is already registered.")
        granted = await self.roles.get_by_name(role or "")
        if granted is None:
            raise ValidationFailedError.for_field("role", f"Role '{role}' does not exist.")

        user = await self.users.create(
            User(
                email=email,
                password_hash=self.hasher.hash(password),
                first_name=(first_name or "").strip(),
                last_name=(last_name or "").strip(),
            )
        )
        await self.users.add_role(user.id, granted.id)

        await self.session.commit()
        logger.info(f"Registered user {user.id} ({email})")
        return user

    async def login(self, email: str, password: str) -> LoginResponse:
        user = await self.users.get_by_email(email or "")
        if user is None or not user.is_active or not self.hasher.verify(password, user.password_hash):
            logger.info(f"Failed login for {email!r}")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        role_names = await self.users.role_names(user.id)
        matrix = await aggregate_permissions(self.roles, await self.users.role_ids(user.id))
        token = self.tokens.create_token(user, role_names, format_permission_claims(matrix))
        logger.info(f"User {user.id} logged in")
        return LoginResponse(
            token=token,
            user=AuthUser.model_validate(user),
            roles=role_names,
            permissions=matrix,
        )

    async def me(self, user_id: str) -> MeResponse:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return MeResponse(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            display_name=user.display_name,
            name=user.name,
            department_id=user.department_id,
            roles=await self.users.role_names(user.id),
            permissions=await aggregate_permissions(self.roles, await self.users.role_ids(user.id)),
        )
