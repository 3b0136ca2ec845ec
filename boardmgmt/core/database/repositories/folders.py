"""Folder repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.documents import Folder
from .base import SQLModelRepository


class FolderRepository(SQLModelRepository[Folder]):
    """Repository for document folders."""

    order_by = (Folder.name,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Folder)

    async def get_by_slug(self, slug: str) -> Optional[Folder]:
        result = await self.session.execute(select(Folder).where(Folder.slug == slug))
        return result.scalars().first()

    async def slug_exists(self, slug: str) -> bool:
        return await self.get_by_slug(slug) is not None
