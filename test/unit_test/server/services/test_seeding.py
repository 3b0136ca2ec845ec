"""Unit tests for default data seeding."""

import pytest
from sqlmodel import select

from boardmgmt.core.database.entities.departments import Department
from boardmgmt.core.database.entities.documents import Folder
from boardmgmt.core.database.entities.identity import Role, RolePermission, User
from boardmgmt.core.database.repositories import UserRepository
from boardmgmt.core.models.domain.permissions import AppRoles
from boardmgmt.server.core.config import settings
from boardmgmt.server.services.seeding import DEFAULT_DEPARTMENTS, DEFAULT_FOLDERS, seed_defaults

pytestmark = pytest.mark.asyncio


async def _count(session, model) -> int:
    return len((await session.execute(select(model))).scalars().all())


async def test_seeding_twice_inserts_nothing_new(session):
    await seed_defaults(session)
    counts = [await _count(session, model) for model in (Role, RolePermission, User, Folder, Department)]

    await seed_defaults(session)
    assert [await _count(session, model) for model in (Role, RolePermission, User, Folder, Department)] == counts
    assert counts[0] == len(AppRoles.all())
    assert counts[3] == len(DEFAULT_FOLDERS)
    assert counts[4] == len(DEFAULT_DEPARTMENTS)


async def test_admin_account_holds_admin_role(seeded):
    users = UserRepository(seeded)
    admin = await users.get_by_email(settings.seed.admin_email)
    assert admin is not None
    assert AppRoles.admin in await users.role_names(admin.id)
