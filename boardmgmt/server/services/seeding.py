"""
Default data.

Seeds the built-in roles with their permission matrix, the administrator account,
the default document folders and departments. Every step only inserts what is
missing, so running it repeatedly is safe.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.entities.departments import Department
from boardmgmt.core.database.entities.documents import Folder
from boardmgmt.core.database.entities.identity import Role, RolePermission, User
from boardmgmt.core.database.repositories import (
    DepartmentRepository,
    FolderRepository,
    RoleRepository,
    UserRepository,
)
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.permissions import DEFAULT_ROLE_PERMISSIONS, AppRoles
from boardmgmt.server.core.config import settings

from .security import get_password_hasher

logger = get_logger(__name__)

DEFAULT_FOLDERS: List[Tuple[str, str]] = [
    ("Board Meetings", "board-meetings"),
    ("Financial Reports", "financial"),
    ("Legal Documents", "legal"),
    ("Policies", "policies"),
]

DEFAULT_DEPARTMENTS: List[Tuple[str, str]] = [
    ("Executive", "Executive leadership"),
    ("Finance", "Finance & accounting"),
    ("Legal", "Legal & compliance"),
    ("Operations", "Operations & IT"),
    ("Human Resources", "HR"),
    ("Marketing", "Marketing & comms"),
]


async def seed_roles(session: AsyncSession) -> Dict[str, Role]:
    """Create missing built-in roles and any permission rows they lack."""
    roles = RoleRepository(session)
    seeded: Dict[str, Role] = {}
    for name in AppRoles.all():
        role = await roles.get_by_name(name)
        if role is None:
            role = await roles.create(Role(name=name))
            logger.info(f"Seeded role {name}")
        seeded[name] = role

        existing = await roles.permissions(role.id)
        missing = [
            RolePermission(role_id=role.id, module=int(module), allowed=mask)
            for module, mask in DEFAULT_ROLE_PERMISSIONS.get(name, {}).items()
            if int(module) not in existing and mask
        ]
        if missing:
            await roles.add_all(missing)
    return seeded


async def seed_admin(session: AsyncSession, admin_role: Role) -> User:
    users = UserRepository(session)
    admin = await users.get_by_email(settings.seed.admin_email)
    if admin is None:
        admin = await users.create(
            User(
                email=settings.seed.admin_email,
                password_hash=get_password_hasher().hash(settings.seed.admin_password),
                first_name="System",
                last_name="Administrator",
                display_name="Administrator",
            )
        )
        logger.info(f"Seeded administrator {admin.email}")
    await users.add_role(admin.id, admin_role.id)
    return admin


async def seed_folders(session: AsyncSession) -> None:
    folders = FolderRepository(session)
    for name, slug in DEFAULT_FOLDERS:
        if not await folders.slug_exists(slug):
            await folders.create(Folder(name=name, slug=slug))


async def seed_departments(session: AsyncSession) -> None:
    departments = DepartmentRepository(session)
    for name, description in DEFAULT_DEPARTMENTS:
        if await departments.get_by_name(name) is None:
            await departments.create(Department(name=name, description=description))


async def seed_defaults(session: AsyncSession) -> None:
    """Seed everything and commit once."""
    roles = await seed_roles(session)
    await seed_admin(session, roles[AppRoles.admin])
    await seed_folders(session)
    await seed_departments(session)
    await session.commit()
    logger.info("Default data seeded")
