"""
User administration.

Listing, lookup, profile edits, activation and deletion of user accounts.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.entities.identity import User
from boardmgmt.core.database.repositories import DepartmentRepository, RoleRepository, UserRepository
from boardmgmt.core.exceptions import NotFoundError, ValidationFailedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.io.common import MinimalUser, Page
from boardmgmt.core.models.io.users import UserCreate, UserRead, UserTypeaheadItem

from .auth import AuthService
from .security import PasswordHasher, get_password_hasher

logger = get_logger(__name__)

MAX_PAGE_SIZE = 500


def to_user_read(user: User, roles: Sequence[str]) -> UserRead:
    return UserRead(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        display_name=user.display_name,
        name=user.name,
        is_active=user.is_active,
        department_id=user.department_id,
        roles=list(roles),
        created_at=user.created_at,
    )


class UserService:
    """User account administration."""

    def __init__(self, session: AsyncSession, hasher: Optional[PasswordHasher] = None) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.roles = RoleRepository(session)
        self.departments = DepartmentRepository(session)
        self.hasher = hasher or get_password_hasher()

    async def _require(self, user_id: str) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    async def list(
        self,
        q: Optional[str] = None,
        active_only: bool = False,
        roles: Optional[Sequence[str]] = None,
        department_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Page[UserRead]:
        page = max(page, 1)
        page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
        users, total = await self.users.search(
            q=q,
            active_only=active_only,
            role_names=roles,
            department_id=department_id,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        role_names = await self.users.role_names_for([user.id for user in users])
        return Page[UserRead](
            items=[to_user_read(user, role_names.get(user.id, [])) for user in users],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def get(self, user_id: str) -> UserRead:
        user = await self._require(user_id)
        return to_user_read(user, await self.users.role_names(user.id))

    async def create(self, payload: UserCreate) -> UserRead:
        """Create an account with an administrator-chosen role."""
        if payload.department_id and await self.departments.get_by_id(payload.department_id) is None:
            raise ValidationFailedError.for_field("department_id", "Department does not exist.")
        user = await AuthService(self.session, hasher=self.hasher).register(
            payload.email, payload.password, payload.first_name, payload.last_name, role=payload.role
        )
        if payload.department_id:
            user.department_id = payload.department_id
            await self.users.update(user)
            await self.session.commit()
        return to_user_read(user, await self.users.role_names(user.id))

    async def update(
        self,
        user_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        display_name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[str] = None,
        department_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> UserRead:
        user = await self._require(user_id)

        if email is not None and email.strip().lower() != user.email.lower():
            email = email.strip()
            if not email or "@" not in email:
                raise ValidationFailedError.for_field("email", "A valid email address is required.")
            clash = await self.users.get_by_email(email)
            if clash is not None and clash.id != user.id:
                raise ValidationFailedError.for_field("email", "Email is already in use.")
            user.email = email
        if first_name is not None:
            user.first_name = first_name.strip()
        if last_name is not None:
            user.last_name = last_name.strip()
        if display_name is not None:
            user.display_name = display_name.strip() or None
        if password:
            user.password_hash = self.hasher.hash(password)
        if department_id is not None:
            if department_id and await self.departments.get_by_id(department_id) is None:
                raise ValidationFailedError.for_field("department_id", "Department does not exist.")
            user.department_id = department_id or None
        if is_active is not None:
            user.is_active = is_active
        await self.users.update(user)

        if role is not None and role.strip():
            found = await self.roles.get_by_name(role)
            if found is None:
                raise ValidationFailedError.for_field("role", f"Role '{role}' does not exist.")
            await self.users.set_roles(user.id, [found.id])

        await self.session.commit()
        logger.info(f"Updated user {user.id}")
        return to_user_read(user, await self.users.role_names(user.id))

    async def set_active(self, user_id: str, is_active: bool) -> None:
        user = await self._require(user_id)
        user.is_active = is_active
        await self.users.update(user)
        await self.session.commit()
        logger.info(f"User {user_id} active={is_active}")

    async def delete(self, user_id: str) -> None:
        user = await self._require(user_id)
        await self.users.remove_all_roles(user.id)
        await self.session.delete(user)
        await self.session.commit()
        logger.info(f"Deleted user {user_id}")

    async def typeahead(self, q: Optional[str], take: int = 10) -> List[UserTypeaheadItem]:
        take = min(max(take, 1), 50)
        users, _ = await self.users.search(q=q, active_only=True, limit=take)
        return [UserTypeaheadItem(id=user.id, name=user.name, email=user.email) for user in users]

    async def active_count(self) -> int:
        return await self.users.count_active()


def to_minimal_user(user: Optional[User], user_id: Optional[str] = None) -> MinimalUser:
    """Compact user reference named "First Last", falling back to the email."""
    if user is None:
        return MinimalUser(id=user_id or "", name="", email=None)
    return MinimalUser(id=user.id, name=user.full_name or user.email, email=user.email)
