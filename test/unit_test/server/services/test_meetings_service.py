"""Unit tests for meeting calendar mirroring and provider event merging."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import httpx
import pytest

from boardmgmt.core.database.repositories import MeetingRepository
from boardmgmt.core.exceptions import ExternalServiceError, InvalidOperationError, ValidationFailedError
from boardmgmt.core.models.domain.calendars import CalendarProviders
from boardmgmt.core.models.domain.enums import MeetingStatus
from boardmgmt.core.models.io.calendar import CalendarAttendeeWrite, CalendarEventCreate
from boardmgmt.core.models.io.meetings import MeetingWrite
from boardmgmt.server.core.config import GraphConfig
from boardmgmt.server.services.calendars import (
    CalendarServiceSelector,
    ExternalEvent,
    GraphCalendarService,
    ProviderEvent,
)
from boardmgmt.server.services.meetings import MeetingService
from boardmgmt.server.services.oauth import GraphTokenProvider

pytestmark = pytest.mark.asyncio


def _soon(days: int = 2) -> datetime:
    return (datetime.now(timezone.utc) + timedelta(days=days)).replace(microsecond=0)


class FakeCalendar:
    provider = CalendarProviders.zoom

    def __init__(self, fail: bool = False, events: Optional[List[ProviderEvent]] = None) -> None:
        self.fail = fail
        self.events = events or []
        self.created: List[str] = []
        self.updated: List[str] = []
        self.cancelled: List[str] = []

    def _check(self) -> None:
        if self.fail:
            raise ExternalServiceError("Zoom request failed.")

    async def create_event(self, meeting, attendees) -> ExternalEvent:
        self._check()
        self.created.append(meeting.id)
        return ExternalEvent(event_id="zoom-1", join_url="https://zoom/j/1", mailbox="host@corp.com")

    async def update_event(self, meeting, attendees) -> ExternalEvent:
        self._check()
        self.updated.append(meeting.external_event_id)
        return ExternalEvent(event_id=meeting.external_event_id, join_url="https://zoom/j/2")

    async def cancel_event(self, event_id, mailbox=None) -> None:
        self._check()
        self.cancelled.append(event_id)

    async def list_upcoming(self, take: int = 20) -> List[ProviderEvent]:
        self._check()
        return self.events[:take]

    async def list_range(self, start, end) -> List[ProviderEvent]:
        self._check()
        return [e for e in self.events if start <= e.start < end]


class StaticGraphTokens(GraphTokenProvider):
    async def get_token(self) -> str:
        return "graph-token"


def _service(session, calendar: FakeCalendar) -> MeetingService:
    return MeetingService(session, CalendarServiceSelector({CalendarProviders.zoom: calendar}))


def _write(**overrides) -> MeetingWrite:
    values = dict(title="Budget review", scheduled_at=_soon(), external_calendar=CalendarProviders.zoom)
    values.update(overrides)
    return MeetingWrite(**values)


async def test_create_mirrors_meeting_to_provider(seeded):
    calendar = FakeCalendar()
    meeting = await _service(seeded, calendar).create(_write())

    assert calendar.created == [meeting.id]
    assert meeting.external_event_id == "zoom-1"
    assert meeting.online_join_url == "https://zoom/j/1"
    assert meeting.external_calendar_mailbox == "host@corp.com"


async def test_update_uses_existing_external_event(seeded):
    calendar = FakeCalendar()
    service = _service(seeded, calendar)
    meeting = await service.create(_write())

    updated = await service.update(meeting.id, _write(title="Budget review (moved)"))
    assert calendar.updated == ["zoom-1"]
    assert updated.online_join_url == "https://zoom/j/2"


async def test_provider_failure_keeps_local_meeting(seeded):
    meeting = await _service(seeded, FakeCalendar(fail=True)).create(_write())
    assert meeting.id
    assert meeting.external_event_id is None


async def test_delete_cancels_external_event(seeded):
    calendar = FakeCalendar()
    service = _service(seeded, calendar)
    meeting = await service.create(_write())

    await service.delete(meeting.id)
    assert calendar.cancelled == ["zoom-1"]


async def test_upcoming_merges_provider_events_without_mirrors(seeded):
    calendar = FakeCalendar()
    service = _service(seeded, calendar)
    local = await service.create(_write(scheduled_at=_soon(3)))
    calendar.events = [
        ProviderEvent(id="zoom-1", subject="Mirror", start=_soon(3), end=None, join_url=None, provider="Zoom"),
        ProviderEvent(id="zoom-7", subject="Zoom only", start=_soon(1), end=None, join_url=None, provider="Zoom"),
    ]

    events = await service.upcoming(10, provider=CalendarProviders.zoom)
    assert [e.title for e in events] == ["Zoom only", local.title]
    assert events[0].id == "Zoom:zoom-7"
    assert events[0].source == "Zoom"
    assert events[1].source == "Zoom"


async def test_calendar_range_ignores_provider_failures(seeded):
    calendar = FakeCalendar()
    service = _service(seeded, calendar)
    await service.create(_write())
    calendar.fail = True

    events = await service.calendar_range(_soon(0), _soon(5), provider=CalendarProviders.zoom)
    assert [e.title for e in events] == ["Budget review"]


async def test_unknown_provider_in_calendar_query(seeded):
    with pytest.raises(ValidationFailedError):
        await _service(seeded, FakeCalendar()).upcoming(5, provider="Google")


async def test_garbled_provider_reply_keeps_local_meeting(seeded):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>proxy</html>")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    config = GraphConfig(base_url="http://mock-graph/v1.0", mailbox_address="organizer@corp.com")
    graph = GraphCalendarService(config, client, StaticGraphTokens(config, client))
    service = MeetingService(seeded, CalendarServiceSelector({CalendarProviders.microsoft365: graph}))

    meeting = await service.create(_write(external_calendar=CalendarProviders.microsoft365))
    assert meeting.id
    assert meeting.external_event_id is None


async def test_book_creates_meeting_and_links_known_attendees(seeded, make_user):
    known = await make_user("treasurer@board.local", first_name="Tess", last_name="Treasurer")
    calendar = FakeCalendar()
    booking = CalendarEventCreate(
        title="Audit committee",
        starts_at=_soon(),
        provider=CalendarProviders.zoom,
        attendees=[
            CalendarAttendeeWrite(email="treasurer@board.local"),
            CalendarAttendeeWrite(email="TREASURER@board.local"),
            CalendarAttendeeWrite(email="guest@corp.com", name="Guest", is_required=False),
        ],
    )

    event = await _service(seeded, calendar).book(booking)

    assert calendar.created == [event.meeting_id]
    assert event.source == CalendarProviders.zoom
    assert event.join_url == "https://zoom/j/1"
    attendees = await MeetingRepository(seeded).attendees(event.meeting_id)
    assert sorted((a.name, a.user_id, a.is_required) for a in attendees) == [
        ("Guest", None, False),
        ("Tess Treasurer", known.id, True),
    ]


async def test_book_rejects_unknown_provider(seeded):
    booking = CalendarEventCreate(title="Offsite", starts_at=_soon(), provider="Google")
    with pytest.raises(ValidationFailedError):
        await _service(seeded, FakeCalendar()).book(booking)


async def test_move_keeps_duration_and_updates_external_event(seeded):
    calendar = FakeCalendar()
    service = _service(seeded, calendar)
    start = _soon()
    meeting = await service.create(_write(scheduled_at=start, end_at=start + timedelta(hours=2)))

    moved = await service.move(meeting.id, start + timedelta(days=1))

    assert moved.start == start + timedelta(days=1)
    assert moved.end == start + timedelta(days=1, hours=2)
    assert calendar.updated == ["zoom-1"]


async def test_move_rejects_end_before_start(seeded):
    service = _service(seeded, FakeCalendar())
    meeting = await service.create(_write())

    with pytest.raises(ValidationFailedError):
        await service.move(meeting.id, _soon(3), _soon(2))


async def test_move_provider_failure_keeps_new_slot(seeded):
    calendar = FakeCalendar()
    service = _service(seeded, calendar)
    meeting = await service.create(_write())
    calendar.fail = True

    moved = await service.move(meeting.id, _soon(4))
    assert (await service.get(meeting.id)).scheduled_at == moved.start


async def test_cancel_marks_meeting_and_cancels_external_event(seeded):
    calendar = FakeCalendar()
    service = _service(seeded, calendar)
    meeting = await service.create(_write())

    await service.cancel(meeting.id)
    await service.cancel(meeting.id)

    stored = await service.get(meeting.id)
    assert stored.status == MeetingStatus.cancelled
    assert stored.external_event_id is None
    assert calendar.cancelled == ["zoom-1"]
    with pytest.raises(InvalidOperationError):
        await service.move(meeting.id, _soon(5))
