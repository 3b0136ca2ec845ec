"""
Permission evaluation.

A user's effective mask for a module is the bitwise OR of ``RolePermission.allowed``
across all of the user's roles.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.repositories import RoleRepository, UserRepository
from boardmgmt.core.exceptions import UnauthorizedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.permissions import AppModule, Permission

logger = get_logger(__name__)


async def aggregate_permissions(roles: RoleRepository, role_ids: Iterable[str]) -> Dict[int, int]:
    """Module → OR of masks over ``role_ids``; modules with an empty mask are omitted."""
    matrix: Dict[int, int] = {}
    for row in await roles.allowed_masks(role_ids):
        matrix[row.module] = matrix.get(row.module, 0) | Permission.normalize(row.allowed)
    return {module: mask for module, mask in sorted(matrix.items()) if mask}


class PermissionService:
    """Permission checks for one (possibly anonymous) user."""

    def __init__(self, session: AsyncSession, user_id: Optional[str]) -> None:
        self.session = session
        self.user_id = user_id
        self.users = UserRepository(session)
        self.roles = RoleRepository(session)
        self._role_ids: Optional[List[str]] = None

    async def role_ids(self) -> List[str]:
        if self._role_ids is None:
            self._role_ids = await self.users.role_ids(self.user_id) if self.user_id else []
        return self._role_ids

    async def get_mine(self, module: AppModule | int) -> int:
        role_ids = await self.role_ids()
        if not role_ids:
            return 0
        mask = 0
        for row in await self.roles.allowed_masks(role_ids, module=int(module)):
            mask |= row.allowed
        return Permission.normalize(mask)

    async def has_mine(self, module: AppModule | int, needed: Permission | int) -> bool:
        needed = int(needed)
        return (await self.get_mine(module) & needed) == needed

    async def ensure_mine(self, module: AppModule | int, needed: Permission | int) -> None:
        if not await self.has_mine(module, needed):
            logger.info(f"Permission denied: user={self.user_id} module={int(module)} needed={int(needed)}")
            raise UnauthorizedError("You do not have permission to perform this action.")

    async def get_matrix(self) -> Dict[int, int]:
        return await aggregate_permissions(self.roles, await self.role_ids())
