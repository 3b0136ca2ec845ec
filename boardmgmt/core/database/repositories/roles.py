"""
Role repository.

Data access for roles and the per-module permission masks attached to them.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.documents import DocumentRoleAccess
from ..entities.identity import Role, RolePermission, UserRole
from .base import SQLModelRepository


class RoleRepository(SQLModelRepository[Role]):
    """Repository for roles and role permissions."""

    order_by = (Role.name,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Role)

    async def get_by_name(self, name: str) -> Optional[Role]:
        stmt = select(Role).where(func.lower(Role.name) == name.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_names(self, names: Iterable[str]) -> List[Role]:
        wanted = [name.strip().lower() for name in names if name and name.strip()]
        if not wanted:
            return []
        result = await self.session.execute(select(Role).where(func.lower(Role.name).in_(wanted)))
        return list(result.scalars().all())

    async def existing_ids(self, role_ids: Iterable[str]) -> List[str]:
        ids = [rid for rid in dict.fromkeys(role_ids) if rid]
        if not ids:
            return []
        result = await self.session.execute(select(Role.id).where(Role.id.in_(ids)))
        found = set(result.scalars().all())
        return [rid for rid in ids if rid in found]

    async def permissions(self, role_id: str) -> Dict[int, int]:
        """Module → mask for one role."""
        stmt = select(RolePermission).where(RolePermission.role_id == role_id).order_by(RolePermission.module)
        result = await self.session.execute(stmt)
        return {row.module: row.allowed for row in result.scalars().all()}

    async def permissions_by_role(self) -> Dict[str, Dict[int, int]]:
        """Role id → (module → mask) for every role."""
        result = await self.session.execute(select(RolePermission).order_by(RolePermission.module))
        matrix: Dict[str, Dict[int, int]] = {}
        for row in result.scalars().all():
            matrix.setdefault(row.role_id, {})[row.module] = row.allowed
        return matrix

    async def allowed_masks(self, role_ids: Iterable[str], module: Optional[int] = None) -> List[RolePermission]:
        ids = list(role_ids)
        if not ids:
            return []
        stmt = select(RolePermission).where(RolePermission.role_id.in_(ids))
        if module is not None:
            stmt = stmt.where(RolePermission.module == int(module))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_permissions(self, role_id: str, matrix: Dict[int, int]) -> None:
        """Replace every permission row of a role with ``matrix`` (already normalized)."""
        await self.delete_permissions(role_id)
        self.session.add_all(
            [RolePermission(role_id=role_id, module=int(module), allowed=int(mask)) for module, mask in matrix.items()]
        )
        await self.session.flush()

    async def delete_permissions(self, role_id: str) -> None:
        await self.session.execute(delete(RolePermission).where(RolePermission.role_id == role_id))

    async def delete_memberships(self, role_id: str) -> None:
        await self.session.execute(delete(UserRole).where(UserRole.role_id == role_id))

    async def delete_document_access(self, role_id: str) -> None:
        await self.session.execute(delete(DocumentRoleAccess).where(DocumentRoleAccess.role_id == role_id))
