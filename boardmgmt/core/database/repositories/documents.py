"""
Document repository.

Data access for documents and their role-based visibility.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.documents import Document, DocumentRoleAccess
from .base import QueryBuilder, SQLModelRepository

# Content-type fragments per document type filter
DOCUMENT_TYPE_PATTERNS: Dict[str, Sequence[str]] = {
    "pdf": ("pdf",),
    "powerpoint": ("presentation", "powerpoint"),
    "excel": ("spreadsheet", "excel"),
    "word": ("wordprocessing", "msword"),
}


def visible_to(role_ids: Sequence[str]):
    """Criterion: document has no access rows, or one of them matches ``role_ids``."""
    any_access = exists().where(DocumentRoleAccess.document_id == Document.id)
    if not role_ids:
        return ~any_access
    matching = exists().where(
        DocumentRoleAccess.document_id == Document.id,
        DocumentRoleAccess.role_id.in_(list(role_ids)),
    )
    return or_(~any_access, matching)


class DocumentRepository(SQLModelRepository[Document]):
    """Repository for documents and document role access."""

    order_by = (Document.uploaded_at.desc(),)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Document)

    async def search_visible(
        self,
        role_ids: Sequence[str],
        folder_slug: Optional[str] = None,
        doc_type: Optional[str] = None,
        search: Optional[str] = None,
        uploaded_from: Optional[datetime] = None,
        meeting_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Document]:
        stmt = select(Document).where(visible_to(role_ids))
        if folder_slug:
            stmt = stmt.where(Document.folder_slug == folder_slug)
        if meeting_id:
            stmt = stmt.where(Document.meeting_id == meeting_id)
        if doc_type:
            patterns = DOCUMENT_TYPE_PATTERNS.get(doc_type.strip().lower())
            if patterns:
                stmt = stmt.where(or_(*[QueryBuilder.contains(Document.content_type, p) for p in patterns]))
        if search and search.strip():
            stmt = stmt.where(
                or_(
                    QueryBuilder.contains(Document.original_name, search),
                    QueryBuilder.contains(func.coalesce(Document.description, ""), search),
                )
            )
        if uploaded_from is not None:
            stmt = stmt.where(Document.uploaded_at >= uploaded_from)
        stmt = stmt.order_by(Document.uploaded_at.desc())
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_visible(self, role_ids: Sequence[str]) -> int:
        result = await self.session.execute(select(func.count()).select_from(Document).where(visible_to(role_ids)))
        return int(result.scalar_one())

    async def is_visible(self, document_id: str, role_ids: Sequence[str]) -> bool:
        stmt = select(func.count()).select_from(Document).where(Document.id == document_id, visible_to(role_ids))
        result = await self.session.execute(stmt)
        return int(result.scalar_one()) > 0

    async def count_visible_by_folder(self, role_ids: Sequence[str]) -> Dict[str, int]:
        stmt = (
            select(Document.folder_slug, func.count())
            .where(visible_to(role_ids))
            .group_by(Document.folder_slug)
        )
        result = await self.session.execute(stmt)
        return {slug: int(count) for slug, count in result.all()}

    async def count_in_folder(self, folder_slug: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Document).where(Document.folder_slug == folder_slug)
        )
        return int(result.scalar_one())

    async def access_role_ids(self, document_id: str) -> List[str]:
        stmt = select(DocumentRoleAccess.role_id).where(DocumentRoleAccess.document_id == document_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def access_role_ids_for(self, document_ids: Sequence[str]) -> Dict[str, List[str]]:
        if not document_ids:
            return {}
        stmt = select(DocumentRoleAccess.document_id, DocumentRoleAccess.role_id).where(
            DocumentRoleAccess.document_id.in_(list(document_ids))
        )
        result = await self.session.execute(stmt)
        grouped: Dict[str, List[str]] = {}
        for document_id, role_id in result.all():
            grouped.setdefault(document_id, []).append(role_id)
        return grouped

    async def set_access(self, document_id: str, role_ids: Iterable[str]) -> None:
        """Replace the roles allowed to see a document."""
        wanted = list(dict.fromkeys(role_ids))
        result = await self.session.execute(
            select(DocumentRoleAccess).where(DocumentRoleAccess.document_id == document_id)
        )
        current = {row.role_id: row for row in result.scalars().all()}
        for role_id, row in current.items():
            if role_id not in wanted:
                await self.session.delete(row)
        self.session.add_all(
            [DocumentRoleAccess(document_id=document_id, role_id=rid) for rid in wanted if rid not in current]
        )
        await self.session.flush()

    async def clear_access(self, document_id: str) -> None:
        await self.session.execute(delete(DocumentRoleAccess).where(DocumentRoleAccess.document_id == document_id))

    async def detach_meeting(self, meeting_id: str) -> None:
        await self.session.execute(
            update(Document).where(Document.meeting_id == meeting_id).values(meeting_id=None)
        )

    async def totals_since(self, start: datetime) -> List[Document]:
        result = await self.session.execute(select(Document).where(Document.uploaded_at >= start))
        return list(result.scalars().all())
