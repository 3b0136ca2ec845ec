"""Generated report repository."""

from __future__ import annotations

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.reports import GeneratedReport
from .base import SQLModelRepository


class ReportRepository(SQLModelRepository[GeneratedReport]):
    """Repository for generated report records."""

    order_by = (GeneratedReport.generated_at.desc(),)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, GeneratedReport)

    async def recent(self, limit: int = 10) -> List[GeneratedReport]:
        stmt = select(GeneratedReport).order_by(GeneratedReport.generated_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
