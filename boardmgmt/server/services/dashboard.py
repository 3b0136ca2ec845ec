"""Dashboard counters and activity feed."""

from __future__ import annotations

from pathlib import PurePath
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.base import as_utc, utc_now
from boardmgmt.core.database.entities.votes import VotePoll
from boardmgmt.core.database.repositories import (
    DocumentRepository,
    MeetingRepository,
    MessageRepository,
    UserRepository,
    VoteRepository,
)
from boardmgmt.core.database.repositories.documents import DOCUMENT_TYPE_PATTERNS
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.enums import MeetingStatus, StatsKind
from boardmgmt.core.models.io.common import Page
from boardmgmt.core.models.io.dashboard import (
    ActivityItem,
    DashboardStats,
    RecentDocument,
    RecentMeeting,
    StatsDetailItem,
)

from .permissions import PermissionService
from .votes import VoteService

logger = get_logger(__name__)

MAX_DETAIL_PAGE_SIZE = 100

_EXTENSION_KINDS = {
    ".pdf": "pdf",
    ".doc": "word",
    ".docx": "word",
    ".xls": "excel",
    ".xlsx": "excel",
    ".ppt": "powerpoint",
    ".pptx": "powerpoint",
}


def _meeting_label(status: MeetingStatus) -> str:
    return "Upcoming" if status == MeetingStatus.scheduled else status.name.title()


class DashboardService:
    def __init__(self, session: AsyncSession, user_id: Optional[str]) -> None:
        self.session = session
        self.user_id = user_id
        self.meetings = MeetingRepository(session)
        self.documents = DocumentRepository(session)
        self.votes = VoteRepository(session)
        self.messages = MessageRepository(session)
        self.users = UserRepository(session)
        self.permissions = PermissionService(session, user_id)

    async def stats(self) -> DashboardStats:
        now = utc_now()
        return DashboardStats(
            upcoming_meetings=await self.meetings.count_upcoming(now),
            active_documents=await self.documents.count(),
            pending_votes=len(await self._pending_polls()),
            unread_messages=await self.messages.count_unread(self.user_id) if self.user_id else 0,
        )

    async def _pending_polls(self) -> List[VotePoll]:
        """Open polls the user is eligible for and has not voted in yet, soonest deadline first."""
        if not self.user_id:
            return []
        voting = VoteService(self.session)
        attended = await self.meetings.meeting_ids_attended_by(self.user_id)
        polls = await self.votes.visible_polls(self.user_id, attended, open_at=utc_now())
        voted = set(await self.votes.voted_poll_ids(self.user_id, [p.id for p in polls]))
        pending = []
        for poll in polls:
            if poll.id not in voted and await voting.is_eligible(poll, self.user_id):
                pending.append(poll)
        return pending

    async def recent_meetings(self, take: int = 5) -> List[RecentMeeting]:
        meetings = await self.meetings.upcoming(utc_now(), limit=take)
        attendees = await self.meetings.attendees_for([m.id for m in meetings])
        return [
            RecentMeeting(
                id=m.id,
                title=m.title,
                scheduled_at=as_utc(m.scheduled_at),
                location=m.location,
                status=MeetingStatus(m.status),
                attendee_count=len(attendees.get(m.id, [])),
            )
            for m in meetings
        ]

    async def recent_documents(self, take: int = 5) -> List[RecentDocument]:
        documents = await self.documents.search_visible(await self.permissions.role_ids(), limit=take)
        return [
            RecentDocument(
                id=d.id,
                original_name=d.original_name,
                folder_slug=d.folder_slug,
                content_type=d.content_type,
                size_bytes=d.size_bytes,
                url=d.url,
                uploaded_at=as_utc(d.uploaded_at),
            )
            for d in documents
        ]

    async def recent_activity(self, take: int = 10) -> List[ActivityItem]:
        """Newest document uploads, meetings, polls and sent messages merged into one feed."""
        items: List[ActivityItem] = []
        for document in await self.documents.search_visible(await self.permissions.role_ids(), limit=take):
            items.append(
                ActivityItem(
                    type="document",
                    id=document.id,
                    title=document.original_name,
                    description=f"Uploaded to {document.folder_slug}",
                    occurred_at=as_utc(document.uploaded_at),
                )
            )
        for meeting in await self.meetings.recent_created(take):
            items.append(
                ActivityItem(
                    type="meeting",
                    id=meeting.id,
                    title=meeting.title,
                    description=f"Scheduled for {as_utc(meeting.scheduled_at):%Y-%m-%d %H:%M} UTC",
                    occurred_at=as_utc(meeting.created_at),
                )
            )
        for poll in await self.votes.recent_created(take):
            items.append(
                ActivityItem(
                    type="vote",
                    id=poll.id,
                    title=poll.title,
                    description=f"Voting closes {as_utc(poll.deadline):%Y-%m-%d %H:%M} UTC",
                    occurred_at=as_utc(poll.created_at),
                )
            )
        messages = await self.messages.recent_sent(take)
        senders = await self.users.get_many({m.sender_id for m in messages})
        for message in messages:
            sender = senders.get(message.sender_id)
            items.append(
                ActivityItem(
                    type="message",
                    id=message.id,
                    title=message.subject or "(no subject)",
                    description=f"Sent by {sender.name}" if sender else None,
                    occurred_at=as_utc(message.sent_at or message.created_at),
                )
            )
        items.sort(key=lambda item: item.occurred_at, reverse=True)
        return items[:take]

    async def active_user_count(self) -> int:
        return await self.users.count_active()

    async def stats_detail(self, kind: StatsKind, page: int = 1, page_size: int = 10) -> Page[StatsDetailItem]:
        """
        Page through the rows behind one of the :meth:`stats` counters.

        Meetings are the upcoming ones, documents those the caller's roles may see,
        votes the caller's pending polls and messages the caller's unread inbox.
        """
        page = max(page, 1)
        page_size = min(max(page_size, 1), MAX_DETAIL_PAGE_SIZE)
        offset = (page - 1) * page_size
        now = utc_now()

        if kind == StatsKind.meetings:
            total = await self.meetings.count_upcoming(now)
            items = [
                StatsDetailItem(
                    id=m.id,
                    title=m.title,
                    subtitle=m.location,
                    at=as_utc(m.scheduled_at),
                    status=_meeting_label(MeetingStatus(m.status)),
                )
                for m in await self.meetings.upcoming(now, limit=page_size, offset=offset)
            ]
        elif kind == StatsKind.documents:
            role_ids = await self.permissions.role_ids()
            total = await self.documents.count_visible(role_ids)
            items = [
                StatsDetailItem(
                    id=d.id,
                    title=d.original_name,
                    subtitle=d.folder_slug,
                    at=as_utc(d.uploaded_at),
                    status=document_kind(d.content_type, d.original_name),
                )
                for d in await self.documents.search_visible(role_ids, limit=page_size, offset=offset)
            ]
        elif kind == StatsKind.votes:
            pending = await self._pending_polls()
            total = len(pending)
            items = [
                StatsDetailItem(id=p.id, title=p.title, at=as_utc(p.deadline), status="Open")
                for p in pending[offset : offset + page_size]
            ]
        else:
            total = await self.messages.count_unread(self.user_id) if self.user_id else 0
            messages = await self.messages.unread_for(self.user_id, page_size, offset) if self.user_id else []
            senders = await self.users.get_many({m.sender_id for m in messages})
            items = [
                StatsDetailItem(
                    id=m.id,
                    title=m.subject or "(no subject)",
                    subtitle=senders[m.sender_id].name if m.sender_id in senders else None,
                    at=as_utc(m.sent_at or m.created_at),
                    status="Unread",
                )
                for m in messages
            ]
        return Page[StatsDetailItem](items=items, total=total, page=page, page_size=page_size)


def document_kind(content_type: Optional[str], file_name: str) -> str:
    """Document type filter name (pdf, word, excel, powerpoint) for a file, or ``file``."""
    content_type = (content_type or "").lower()
    for kind, markers in DOCUMENT_TYPE_PATTERNS.items():
        if any(marker in content_type for marker in markers):
            return kind
    return _EXTENSION_KINDS.get(PurePath(file_name).suffix.lower(), "file")
