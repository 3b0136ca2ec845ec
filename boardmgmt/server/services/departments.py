"""Department administration."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.entities.departments import Department
from boardmgmt.core.database.repositories import DepartmentRepository, UserRepository
from boardmgmt.core.exceptions import InvalidOperationError, NotFoundError, ValidationFailedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.io.departments import DepartmentRead

logger = get_logger(__name__)


class DepartmentService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.departments = DepartmentRepository(session)
        self.users = UserRepository(session)

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationFailedError.for_field("name", "Name is required.")
        if len(name) > 100:
            raise ValidationFailedError.for_field("name", "Name must be at most 100 characters.")
        return name

    async def list(self, q: Optional[str] = None, active_only: bool = False) -> List[DepartmentRead]:
        counts = await self.departments.user_counts()
        return [
            DepartmentRead(
                id=department.id,
                name=department.name,
                description=department.description,
                is_active=department.is_active,
                user_count=counts.get(department.id, 0),
            )
            for department in await self.departments.search(q=q, active_only=active_only)
        ]

    async def create(self, name: str, description: Optional[str] = None, is_active: bool = True) -> DepartmentRead:
        name = self._clean_name(name)
        if await self.departments.get_by_name(name) is not None:
            raise ValidationFailedError.for_field("name", "A department with this name already exists.")
        department = await self.departments.create(
            Department(name=name, description=(description or "").strip() or None, is_active=is_active)
        )
        await self.session.commit()
        logger.info(f"Created department {department.id} ({name})")
        return DepartmentRead.model_validate(department)

    async def update(
        self,
        department_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> DepartmentRead:
        department = await self.departments.get_by_id(department_id)
        if department is None:
            raise NotFoundError("Department not found.")
        if name is not None:
            name = self._clean_name(name)
            clash = await self.departments.get_by_name(name)
            if clash is not None and clash.id != department.id:
                raise ValidationFailedError.for_field("name", "A department with this name already exists.")
            department.name = name
        if description is not None:
            department.description = description.strip() or None
        if is_active is not None:
            department.is_active = is_active
        await self.departments.update(department)
        await self.session.commit()
        return DepartmentRead(
            id=department.id,
            name=department.name,
            description=department.description,
            is_active=department.is_active,
            user_count=await self.users.count_in_department(department.id),
        )

    async def delete(self, department_id: str) -> None:
        department = await self.departments.get_by_id(department_id)
        if department is None:
            raise NotFoundError("Department not found.")
        if await self.users.count_in_department(department_id) > 0:
            raise InvalidOperationError("Cannot delete a department that still has users assigned.")
        await self.session.delete(department)
        await self.session.commit()
        logger.info(f"Deleted department {department_id}")
