"""Department repository."""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.departments import Department
from ..entities.identity import User
from .base import QueryBuilder, SQLModelRepository


class DepartmentRepository(SQLModelRepository[Department]):
    """Repository for departments."""

    order_by = (Department.name,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Department)

    async def get_by_name(self, name: str) -> Optional[Department]:
        stmt = select(Department).where(func.lower(Department.name) == name.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def search(self, q: Optional[str] = None, active_only: bool = False) -> List[Department]:
        stmt = select(Department)
        if q and q.strip():
            stmt = stmt.where(
                or_(
                    QueryBuilder.contains(Department.name, q),
                    QueryBuilder.contains(func.coalesce(Department.description, ""), q),
                )
            )
        if active_only:
            stmt = stmt.where(Department.is_active.is_(True))
        result = await self.session.execute(stmt.order_by(Department.name))
        return list(result.scalars().all())

    async def user_counts(self) -> Dict[str, int]:
        stmt = (
            select(User.department_id, func.count())
            .where(User.department_id.is_not(None))
            .group_by(User.department_id)
        )
        result = await self.session.execute(stmt)
        return {department_id: int(count) for department_id, count in result.all()}
