"""
Meeting use cases.

Meetings own their attendees and agenda items. When a meeting names an external
calendar provider, the event is mirrored there; provider failures are logged and
never fail the local change.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.base import as_utc, utc_now
from boardmgmt.core.database.entities.meetings import AgendaItem, Meeting, MeetingAttendee
from boardmgmt.core.database.repositories import (
    DocumentRepository,
    MeetingRepository,
    TranscriptRepository,
    UserRepository,
    VoteRepository,
)
from boardmgmt.core.exceptions import (
    ConcurrencyConflictError,
    ExternalServiceError,
    InvalidOperationError,
    NotFoundError,
    ValidationFailedError,
)
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.calendars import CalendarProviders, MailboxIdentifier
from boardmgmt.core.models.domain.enums import MeetingStatus
from boardmgmt.core.models.io.calendar import CalendarAttendeeWrite, CalendarEvent, CalendarEventCreate
from boardmgmt.core.models.io.meetings import (
    AgendaItemRead,
    AttendeeRead,
    MeetingRead,
    MeetingSelectItem,
    MeetingWrite,
)

from .calendars import CalendarServiceSelector, get_calendar_selector

logger = get_logger(__name__)


def parse_attendee(raw: str) -> MeetingAttendee:
    """Free-text attendee ``"Name (Role)"``; the role part is optional."""
    full = raw.strip()
    name, role = full, None
    open_idx, close_idx = full.find("("), full.find(")")
    if open_idx > 0 and close_idx > open_idx:
        name = full[:open_idx].strip()
        role = full[open_idx + 1 : close_idx].strip() or None
    return MeetingAttendee(name=name, role=role, is_required=True, is_confirmed=False)


def to_meeting_read(
    meeting: Meeting,
    attendees: Sequence[MeetingAttendee] = (),
    agenda_items: Sequence[AgendaItem] = (),
    include_children: bool = True,
) -> MeetingRead:
    read = MeetingRead.model_validate(meeting)
    read.attendee_count = len(attendees)
    if include_children:
        read.attendees = [AttendeeRead.model_validate(attendee) for attendee in attendees]
        read.agenda_items = [AgendaItemRead.model_validate(item) for item in agenda_items]
    return read


class MeetingService:
    """Meetings, attendees, agenda items and calendar mirroring."""

    def __init__(self, session: AsyncSession, calendars: Optional[CalendarServiceSelector] = None) -> None:
        self.session = session
        self.meetings = MeetingRepository(session)
        self.users = UserRepository(session)
        self.documents = DocumentRepository(session)
        self.votes = VoteRepository(session)
        self.transcripts = TranscriptRepository(session)
        self.calendars = calendars or get_calendar_selector()

    async def _require(self, meeting_id: str) -> Meeting:
        meeting = await self.meetings.get_by_id(meeting_id)
        if meeting is None:
            raise NotFoundError("Meeting not found.")
        return meeting

    @staticmethod
    def _validate(data: MeetingWrite) -> None:
        errors = {}
        if not (data.title or "").strip():
            errors["title"] = ["Title is required."]
        elif len(data.title.strip()) > 200:
            errors["title"] = ["Title must be at most 200 characters."]
        if data.end_at is not None and as_utc(data.end_at) <= as_utc(data.scheduled_at):
            errors["end_at"] = ["End time must be after the start time."]
        if data.location and len(data.location.strip()) > 500:
            errors["location"] = ["Location must be at most 500 characters."]
        if data.external_calendar and not CalendarProviders.is_supported(data.external_calendar):
            errors["external_calendar"] = [f"Unknown calendar provider: '{data.external_calendar}'."]
        if errors:
            raise ValidationFailedError(errors=errors)

    @staticmethod
    def _apply(meeting: Meeting, data: MeetingWrite) -> None:
        meeting.title = data.title.strip()
        meeting.description = (data.description or "").strip() or None
        meeting.type = data.type
        meeting.scheduled_at = as_utc(data.scheduled_at)
        meeting.end_at = as_utc(data.end_at)
        meeting.location = (data.location or "").strip() or "TBD"
        if data.status is not None:
            meeting.status = data.status
        meeting.external_calendar = data.external_calendar or None
        mailbox = (data.external_calendar_mailbox or "").strip() or None
        if data.external_calendar == CalendarProviders.microsoft365:
            mailbox = MailboxIdentifier.normalize(mailbox)
        meeting.external_calendar_mailbox = mailbox
        meeting.host_identity = mailbox

    async def _build_attendees(self, data: MeetingWrite) -> List[MeetingAttendee]:
        if data.attendee_user_ids:
            users = await self.users.get_many(data.attendee_user_ids)
            return [
                MeetingAttendee(
                    user_id=users[uid].id,
                    name=users[uid].name,
                    email=users[uid].email,
                    is_required=True,
                    is_confirmed=False,
                )
                for uid in dict.fromkeys(data.attendee_user_ids)
                if uid in users
            ]
        return [parse_attendee(raw) for raw in data.attendees if raw and raw.strip()]

    async def _sync_calendar(self, meeting: Meeting, attendees: Sequence[MeetingAttendee], create: bool) -> None:
        if not meeting.external_calendar:
            return
        try:
            service = self.calendars.for_provider(meeting.external_calendar)
            if create or not meeting.external_event_id:
                event = await service.create_event(meeting, attendees)
            else:
                event = await service.update_event(meeting, attendees)
        except ExternalServiceError as e:
            logger.warning(f"Calendar sync failed for meeting {meeting.id}: {e.message}", exc_info=True)
            return
        if event.event_id:
            meeting.external_event_id = event.event_id
        if event.join_url:
            meeting.online_join_url = event.join_url
        if event.mailbox and not meeting.external_calendar_mailbox:
            meeting.external_calendar_mailbox = event.mailbox

    async def create(self, data: MeetingWrite) -> MeetingRead:
        self._validate(data)
        attendees = await self._build_attendees(data)
        return to_meeting_read(await self._create(data, attendees), attendees, [])

    async def _create(self, data: MeetingWrite, attendees: List[MeetingAttendee]) -> Meeting:
        meeting = Meeting(title=data.title.strip(), scheduled_at=as_utc(data.scheduled_at))
        self._apply(meeting, data)

        await self.meetings.create(meeting)
        await self.meetings.replace_attendees(meeting.id, attendees)
        await self._sync_calendar(meeting, attendees, create=True)
        await self.meetings.update(meeting)
        await self.session.commit()
        logger.info(f"Created meeting {meeting.id} ({meeting.title}) with {len(attendees)} attendee(s)")
        return meeting

    async def update(self, meeting_id: str, data: MeetingWrite) -> MeetingRead:
        self._validate(data)
        meeting = await self._require(meeting_id)
        self._apply(meeting, data)
        attendees = await self._build_attendees(data)

        await self.meetings.replace_attendees(meeting.id, attendees)
        await self._sync_calendar(meeting, attendees, create=False)
        await self.meetings.update(meeting)
        await self.session.commit()
        logger.info(f"Updated meeting {meeting.id}")
        return to_meeting_read(meeting, attendees, await self.meetings.agenda_items(meeting.id))

    async def _cancel_external(self, meeting: Meeting) -> None:
        if not (meeting.external_calendar and meeting.external_event_id):
            return
        try:
            service = self.calendars.for_provider(meeting.external_calendar)
            await service.cancel_event(meeting.external_event_id, meeting.external_calendar_mailbox)
        except ExternalServiceError as e:
            logger.warning(f"Cancelling external event of meeting {meeting.id} failed: {e.message}")

    async def delete(self, meeting_id: str) -> None:
        meeting = await self._require(meeting_id)
        await self._cancel_external(meeting)

        agenda_ids = [item.id for item in await self.meetings.agenda_items(meeting.id)]
        await self.transcripts.delete_for_meeting(meeting.id)
        await self.votes.detach_meeting(meeting.id, agenda_ids)
        await self.documents.detach_meeting(meeting.id)
        await self.meetings.delete_children(meeting.id)
        await self.session.delete(meeting)
        await self.session.commit()
        logger.info(f"Deleted meeting {meeting_id}")

    async def get(self, meeting_id: str) -> MeetingRead:
        meeting = await self._require(meeting_id)
        return to_meeting_read(
            meeting, await self.meetings.attendees(meeting.id), await self.meetings.agenda_items(meeting.id)
        )

    async def list(
        self,
        status: Optional[MeetingStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        take: Optional[int] = None,
    ) -> List[MeetingRead]:
        meetings = await self.meetings.search(status=status, start=start, end=end, limit=take)
        attendees = await self.meetings.attendees_for([meeting.id for meeting in meetings])
        return [
            to_meeting_read(meeting, attendees.get(meeting.id, []), include_children=False) for meeting in meetings
        ]

    async def select_list(self) -> List[MeetingSelectItem]:
        return [MeetingSelectItem.model_validate(meeting) for meeting in await self.meetings.search(descending=True)]

    @staticmethod
    def _to_event(meeting: Meeting) -> CalendarEvent:
        return CalendarEvent(
            id=meeting.id,
            meeting_id=meeting.id,
            title=meeting.title,
            start=as_utc(meeting.scheduled_at),
            end=as_utc(meeting.end_at),
            location=meeting.location,
            join_url=meeting.online_join_url,
            source=meeting.external_calendar or "local",
        )

    async def _merge_provider_events(
        self, events: List[CalendarEvent], provider: Optional[str], fetch
    ) -> List[CalendarEvent]:
        """Add a provider's own events that are not mirrors of local meetings; failures keep the local list."""
        if not provider:
            return events
        service = self.calendars.for_provider(provider)
        try:
            external = await fetch(service)
        except ExternalServiceError as e:
            logger.warning(f"Listing {service.provider} events failed: {e.message}")
            return events
        mirrored = {m.external_event_id for m in await self.meetings.with_external_events(service.provider)}
        events = events + [
            CalendarEvent(
                id=f"{item.provider}:{item.id}",
                title=item.subject,
                start=item.start,
                end=item.end,
                join_url=item.join_url,
                source=item.provider,
            )
            for item in external
            if item.start is not None and item.id not in mirrored
        ]
        return sorted(events, key=lambda event: event.start)

    async def calendar_range(
        self, start: datetime, end: datetime, provider: Optional[str] = None
    ) -> List[CalendarEvent]:
        if as_utc(end) <= as_utc(start):
            raise ValidationFailedError.for_field("end", "End must be after start.")
        events = [
            self._to_event(meeting)
            for meeting in await self.meetings.search(start=as_utc(start), end=as_utc(end))
            if meeting.status != MeetingStatus.cancelled
        ]
        return await self._merge_provider_events(
            events, provider, lambda service: service.list_range(as_utc(start), as_utc(end))
        )

    async def upcoming(self, take: int = 20, provider: Optional[str] = None) -> List[CalendarEvent]:
        events = [self._to_event(meeting) for meeting in await self.meetings.upcoming(utc_now(), limit=take)]
        merged = await self._merge_provider_events(events, provider, lambda service: service.list_upcoming(take))
        return merged[:take]

    async def _attendees_from_emails(self, entries: Sequence[CalendarAttendeeWrite]) -> List[MeetingAttendee]:
        attendees: Dict[str, MeetingAttendee] = {}
        for entry in entries:
            email = (entry.email or "").strip()
            if not email or email.lower() in attendees:
                continue
            user = await self.users.get_by_email(email)
            attendees[email.lower()] = MeetingAttendee(
                user_id=user.id if user else None,
                name=(entry.name or "").strip() or (user.name if user else email),
                email=email,
                is_required=entry.is_required,
                is_confirmed=False,
            )
        return list(attendees.values())

    async def book(self, data: CalendarEventCreate) -> CalendarEvent:
        """Create a scheduled meeting from the calendar and mirror it to ``data.provider``."""
        write = MeetingWrite(
            title=data.title,
            description=data.description,
            scheduled_at=data.starts_at,
            end_at=data.ends_at,
            location=data.location,
            status=MeetingStatus.scheduled,
            external_calendar=data.provider,
            external_calendar_mailbox=data.mailbox,
        )
        self._validate(write)
        meeting = await self._create(write, await self._attendees_from_emails(data.attendees))
        return self._to_event(meeting)

    async def cancel(self, meeting_id: str) -> None:
        """Cancel the external event and mark the meeting cancelled; the meeting itself is kept."""
        meeting = await self._require(meeting_id)
        if meeting.status == MeetingStatus.cancelled:
            return
        await self._cancel_external(meeting)
        meeting.status = MeetingStatus.cancelled
        meeting.external_event_id = None
        await self.meetings.update(meeting)
        await self.session.commit()
        logger.info(f"Cancelled meeting {meeting_id}")

    async def move(self, meeting_id: str, starts_at: datetime, ends_at: Optional[datetime] = None) -> CalendarEvent:
        """
        Reschedule a meeting and push the new slot to its external event.

        Without ``ends_at`` the meeting keeps its current duration.
        """
        starts_at = as_utc(starts_at)
        if ends_at is not None and as_utc(ends_at) <= starts_at:
            raise ValidationFailedError.for_field("ends_at", "End time must be after the start time.")
        meeting = await self._require(meeting_id)
        if meeting.status == MeetingStatus.cancelled:
            raise InvalidOperationError("Cancelled meetings cannot be moved.")

        if ends_at is None and meeting.end_at is not None:
            ends_at = starts_at + (as_utc(meeting.end_at) - as_utc(meeting.scheduled_at))
        meeting.scheduled_at = starts_at
        meeting.end_at = as_utc(ends_at)
        await self._sync_calendar(meeting, await self.meetings.attendees(meeting.id), create=False)
        await self.meetings.update(meeting)
        await self.session.commit()
        logger.info(f"Moved meeting {meeting.id} to {starts_at:%Y-%m-%d %H:%M} UTC")
        return self._to_event(meeting)

    # ------------------------------------------------------------------
    # Attendees
    # ------------------------------------------------------------------

    async def update_attendee(
        self,
        meeting_id: str,
        attendee_id: str,
        row_version: int,
        is_confirmed: Optional[bool] = None,
        is_required: Optional[bool] = None,
        role: Optional[str] = None,
    ) -> AttendeeRead:
        """Update one attendee if ``row_version`` still matches the stored version."""
        attendee = await self.meetings.get_attendee(meeting_id, attendee_id)
        if attendee is None:
            raise NotFoundError("Attendee not found.")

        values = {}
        if is_confirmed is not None:
            values["is_confirmed"] = is_confirmed
        if is_required is not None:
            values["is_required"] = is_required
        if role is not None:
            values["role"] = role.strip() or None

        if not await self.meetings.update_attendee_versioned(attendee.id, row_version, values):
            await self.session.rollback()
            raise ConcurrencyConflictError("The attendee was modified by someone else. Reload and try again.")
        await self.session.commit()
        await self.session.refresh(attendee)
        return AttendeeRead.model_validate(attendee)

    # ------------------------------------------------------------------
    # Agenda
    # ------------------------------------------------------------------

    async def list_agenda_items(self, meeting_id: str) -> List[AgendaItemRead]:
        await self._require(meeting_id)
        return [AgendaItemRead.model_validate(item) for item in await self.meetings.agenda_items(meeting_id)]

    async def add_agenda_item(
        self, meeting_id: str, title: str, description: Optional[str] = None, order: Optional[int] = None
    ) -> AgendaItemRead:
        await self._require(meeting_id)
        title = (title or "").strip()
        if not title:
            raise ValidationFailedError.for_field("title", "Title is required.")
        if len(title) > 200:
            raise ValidationFailedError.for_field("title", "Title must be at most 200 characters.")
        if order is None:
            order = await self.meetings.next_agenda_order(meeting_id)
        item = AgendaItem(
            meeting_id=meeting_id, title=title, description=(description or "").strip() or None, order=order
        )
        await self.meetings.add_all([item])
        await self.session.commit()
        return AgendaItemRead.model_validate(item)

    async def delete_agenda_item(self, meeting_id: str, item_id: str) -> None:
        item = await self.meetings.get_agenda_item(meeting_id, item_id)
        if item is None:
            raise NotFoundError("Agenda item not found.")
        await self.votes.detach_agenda_item(item.id)
        await self.session.delete(item)
        await self.session.commit()
