"""
Meeting repository.

Data access for meetings, attendees and agenda items, including the
row-version guarded attendee update.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.models.domain.enums import MeetingStatus

from ..entities.meetings import AgendaItem, Meeting, MeetingAttendee
from .base import QueryBuilder, SQLModelRepository


class MeetingRepository(SQLModelRepository[Meeting]):
    """Repository for meetings and their child rows."""

    order_by = (Meeting.scheduled_at,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Meeting)

    async def search(
        self,
        status: Optional[MeetingStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
        descending: bool = False,
    ) -> List[Meeting]:
        stmt = select(Meeting)
        if status is not None:
            stmt = stmt.where(Meeting.status == int(status))
        if start is not None:
            stmt = stmt.where(Meeting.scheduled_at >= start)
        if end is not None:
            stmt = stmt.where(Meeting.scheduled_at < end)
        stmt = stmt.order_by(Meeting.scheduled_at.desc() if descending else Meeting.scheduled_at)
        stmt = QueryBuilder.apply_pagination(stmt, limit, None)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def upcoming(self, now: datetime, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Meeting]:
        stmt = (
            select(Meeting)
            .where(Meeting.scheduled_at >= now, Meeting.status != int(MeetingStatus.cancelled))
            .order_by(Meeting.scheduled_at)
        )
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def with_external_events(self, provider: str) -> List[Meeting]:
        stmt = select(Meeting).where(Meeting.external_calendar == provider, Meeting.external_event_id.is_not(None))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_upcoming(self, now: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(Meeting)
            .where(Meeting.scheduled_at >= now, Meeting.status != int(MeetingStatus.cancelled))
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def recent_created(self, limit: int) -> List[Meeting]:
        result = await self.session.execute(select(Meeting).order_by(Meeting.created_at.desc()).limit(limit))
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Attendees
    # ------------------------------------------------------------------

    async def attendees(self, meeting_id: str) -> List[MeetingAttendee]:
        stmt = select(MeetingAttendee).where(MeetingAttendee.meeting_id == meeting_id).order_by(MeetingAttendee.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def attendees_for(self, meeting_ids: Sequence[str]) -> Dict[str, List[MeetingAttendee]]:
        if not meeting_ids:
            return {}
        stmt = select(MeetingAttendee).where(MeetingAttendee.meeting_id.in_(list(meeting_ids)))
        result = await self.session.execute(stmt)
        grouped: Dict[str, List[MeetingAttendee]] = {}
        for attendee in result.scalars().all():
            grouped.setdefault(attendee.meeting_id, []).append(attendee)
        return grouped

    async def get_attendee(self, meeting_id: str, attendee_id: str) -> Optional[MeetingAttendee]:
        stmt = select(MeetingAttendee).where(
            MeetingAttendee.id == attendee_id, MeetingAttendee.meeting_id == meeting_id
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def is_attendee(self, meeting_id: str, user_id: str) -> bool:
        stmt = (
            select(func.count())
            .select_from(MeetingAttendee)
            .where(MeetingAttendee.meeting_id == meeting_id, MeetingAttendee.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one()) > 0

    async def meeting_ids_attended_by(self, user_id: str) -> List[str]:
        stmt = select(MeetingAttendee.meeting_id).where(MeetingAttendee.user_id == user_id).distinct()
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_attendees(self, meeting_id: str, attendees: Sequence[MeetingAttendee]) -> None:
        await self.session.execute(delete(MeetingAttendee).where(MeetingAttendee.meeting_id == meeting_id))
        for attendee in attendees:
            attendee.meeting_id = meeting_id
        self.session.add_all(list(attendees))
        await self.session.flush()

    async def update_attendee_versioned(
        self, attendee_id: str, expected_version: int, values: Dict[str, Any]
    ) -> bool:
        """Apply ``values`` only if the stored row version matches; bumps the version.

        Returns:
            True when exactly one row was updated, False on a version mismatch
        """
        stmt = (
            update(MeetingAttendee)
            .where(MeetingAttendee.id == attendee_id, MeetingAttendee.row_version == expected_version)
            .values(**values, row_version=MeetingAttendee.row_version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    # ------------------------------------------------------------------
    # Agenda items
    # ------------------------------------------------------------------

    async def agenda_items(self, meeting_id: str) -> List[AgendaItem]:
        stmt = select(AgendaItem).where(AgendaItem.meeting_id == meeting_id).order_by(AgendaItem.order)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def agenda_items_for(self, meeting_ids: Sequence[str]) -> List[AgendaItem]:
        if not meeting_ids:
            return []
        result = await self.session.execute(select(AgendaItem).where(AgendaItem.meeting_id.in_(list(meeting_ids))))
        return list(result.scalars().all())

    async def get_agenda_item(self, meeting_id: str, item_id: str) -> Optional[AgendaItem]:
        stmt = select(AgendaItem).where(AgendaItem.id == item_id, AgendaItem.meeting_id == meeting_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def next_agenda_order(self, meeting_id: str) -> int:
        stmt = select(func.max(AgendaItem.order)).where(AgendaItem.meeting_id == meeting_id)
        result = await self.session.execute(stmt)
        current = result.scalar_one_or_none()
        return 1 if current is None else int(current) + 1

    async def delete_children(self, meeting_id: str) -> None:
        await self.session.execute(delete(MeetingAttendee).where(MeetingAttendee.meeting_id == meeting_id))
        await self.session.execute(delete(AgendaItem).where(AgendaItem.meeting_id == meeting_id))
