"""
Role administration.

Roles carry one permission mask per application module. Masks are normalized to the
defined permission bits and empty masks are not stored.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.entities.identity import Role
from boardmgmt.core.database.repositories import RoleRepository, UserRepository
from boardmgmt.core.exceptions import NotFoundError, ValidationFailedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.permissions import Permission
from boardmgmt.core.models.io.roles import RoleRead

logger = get_logger(__name__)


def _normalize_matrix(permissions: Dict[int, int]) -> Dict[int, int]:
    matrix: Dict[int, int] = {}
    for module, mask in (permissions or {}).items():
        normalized = Permission.normalize(mask)
        if normalized:
            matrix[int(module)] = normalized
    return matrix


class RoleService:
    """CRUD for roles and their permission matrix."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.roles = RoleRepository(session)
        self.users = UserRepository(session)

    async def _require(self, role_id: str) -> Role:
        role = await self.roles.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role not found.")
        return role

    @staticmethod
    def _clean_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationFailedError.for_field("name", "Role name is required.")
        if len(name) > 100:
            raise ValidationFailedError.for_field("name", "Role name must be at most 100 characters.")
        return name

    async def get_roles(self) -> List[RoleRead]:
        matrix = await self.roles.permissions_by_role()
        return [
            RoleRead(id=role.id, name=role.name, permissions=matrix.get(role.id, {}))
            for role in await self.roles.list()
        ]

    async def get_role_names(self) -> List[str]:
        return [role.name for role in await self.roles.list()]

    async def create(self, name: str) -> str:
        """Create a role; an existing role with the same name is returned instead."""
        name = self._clean_name(name)
        existing = await self.roles.get_by_name(name)
        if existing is not None:
            return existing.id
        role = await self.roles.create(Role(name=name))
        await self.session.commit()
        logger.info(f"Created role {role.id} ({name})")
        return role.id

    async def rename(self, role_id: str, name: str) -> None:
        name = self._clean_name(name)
        role = await self._require(role_id)
        clash = await self.roles.get_by_name(name)
        if clash is not None and clash.id != role.id:
            raise ValidationFailedError.for_field("name", "A role with this name already exists.")
        role.name = name
        await self.roles.update(role)
        await self.session.commit()

    async def delete(self, role_id: str) -> None:
        role = await self._require(role_id)
        await self.roles.delete_permissions(role.id)
        await self.roles.delete_memberships(role.id)
        await self.roles.delete_document_access(role.id)
        await self.session.delete(role)
        await self.session.commit()
        logger.info(f"Deleted role {role_id}")

    async def get_role_permissions(self, role_id: str) -> Dict[int, int]:
        await self._require(role_id)
        return await self.roles.permissions(role_id)

    async def set_role_permissions(self, role_id: str, permissions: Dict[int, int]) -> None:
        await self._require(role_id)
        await self.roles.replace_permissions(role_id, _normalize_matrix(permissions))
        await self.session.commit()

    async def rename_with_permissions(
        self, role_id: str, name: str, permissions: Optional[Dict[int, int]] = None
    ) -> None:
        """Rename a role and replace its permissions in one transaction."""
        name = self._clean_name(name)
        role = await self._require(role_id)
        clash = await self.roles.get_by_name(name)
        if clash is not None and clash.id != role.id:
            raise ValidationFailedError.for_field("name", "A role with this name already exists.")
        role.name = name
        await self.roles.update(role)
        if permissions is not None:
            await self.roles.replace_permissions(role_id, _normalize_matrix(permissions))
        await self.session.commit()

    async def assign_role(self, user_id: str, role_name: str) -> None:
        """Make ``role_name`` the user's only role."""
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        role = await self.roles.get_by_name(role_name or "")
        if role is None:
            raise ValidationFailedError.for_field("role", f"Role '{role_name}' does not exist.")
        await self.users.set_roles(user_id, [role.id])
        await self.session.commit()
        logger.info(f"Assigned role {role.name} to user {user_id}")
