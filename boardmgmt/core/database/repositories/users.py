"""
User repository.

Data access for users and their role memberships.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.identity import Role, User, UserRole
from .base import QueryBuilder, SQLModelRepository


class UserRepository(SQLModelRepository[User]):
    """Repository for users and user-role membership."""

    order_by = (User.first_name, User.last_name, User.email)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, User]:
        ids = {uid for uid in user_ids if uid}
        if not ids:
            return {}
        result = await self.session.execute(select(User).where(User.id.in_(ids)))
        return {user.id: user for user in result.scalars().all()}

    async def role_ids(self, user_id: str) -> List[str]:
        stmt = select(UserRole.role_id).where(UserRole.user_id == user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def role_names(self, user_id: str) -> List[str]:
        stmt = (
            select(Role.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def role_names_for(self, user_ids: Sequence[str]) -> Dict[str, List[str]]:
        if not user_ids:
            return {}
        stmt = (
            select(UserRole.user_id, Role.name)
            .join(Role, Role.id == UserRole.role_id)
            .where(UserRole.user_id.in_(list(user_ids)))
            .order_by(Role.name)
        )
        result = await self.session.execute(stmt)
        names: Dict[str, List[str]] = {}
        for user_id, role_name in result.all():
            names.setdefault(user_id, []).append(role_name)
        return names

    async def set_roles(self, user_id: str, role_ids: Iterable[str]) -> None:
        """Replace the user's role memberships."""
        wanted = list(dict.fromkeys(role_ids))
        result = await self.session.execute(select(UserRole).where(UserRole.user_id == user_id))
        current = {membership.role_id: membership for membership in result.scalars().all()}
        for role_id, membership in current.items():
            if role_id not in wanted:
                await self.session.delete(membership)
        self.session.add_all([UserRole(user_id=user_id, role_id=rid) for rid in wanted if rid not in current])
        await self.session.flush()

    async def remove_all_roles(self, user_id: str) -> None:
        await self.session.execute(delete(UserRole).where(UserRole.user_id == user_id))

    async def add_role(self, user_id: str, role_id: str) -> None:
        existing = await self.session.get(UserRole, (user_id, role_id))
        if existing is None:
            self.session.add(UserRole(user_id=user_id, role_id=role_id))
            await self.session.flush()

    async def search(
        self,
        q: Optional[str] = None,
        active_only: bool = False,
        role_names: Optional[Sequence[str]] = None,
        department_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[User], int]:
        """Filtered, paged user listing sorted by full name then email.

        Returns:
            Tuple of (page of users, total matching count)
        """
        stmt = select(User)
        if q and q.strip():
            stmt = stmt.where(
                or_(
                    QueryBuilder.contains(User.email, q),
                    QueryBuilder.contains(User.first_name, q),
                    QueryBuilder.contains(User.last_name, q),
                    QueryBuilder.contains(func.coalesce(User.display_name, ""), q),
                )
            )
        if active_only:
            stmt = stmt.where(User.is_active.is_(True))
        if department_id:
            stmt = stmt.where(User.department_id == department_id)
        if role_names:
            wanted = [name.lower() for name in role_names if name and name.strip()]
            if wanted:
                members = (
                    select(UserRole.user_id)
                    .join(Role, Role.id == UserRole.role_id)
                    .where(func.lower(Role.name).in_(wanted))
                )
                stmt = stmt.where(User.id.in_(members))

        total_result = await self.session.execute(select(func.count()).select_from(stmt.subquery()))
        total = int(total_result.scalar_one())

        stmt = stmt.order_by(User.first_name, User.last_name, User.email)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def count_active(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(User).where(User.is_active.is_(True)))
        return int(result.scalar_one())

    async def count_in_department(self, department_id: str) -> int:
        stmt = select(func.count()).select_from(User).where(User.department_id == department_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
