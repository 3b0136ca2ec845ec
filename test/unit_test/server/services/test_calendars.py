"""Unit tests for the Microsoft 365 and Zoom calendar services.

Outbound calls go to an injected ``httpx.AsyncClient`` backed by
``httpx.MockTransport``; token providers are replaced with a static stub.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import List

import httpx
import pytest

from boardmgmt.core.database.entities.meetings import Meeting, MeetingAttendee
from boardmgmt.core.exceptions import ExternalServiceError, ValidationFailedError
from boardmgmt.core.models.domain.calendars import CalendarProviders
from boardmgmt.server.core.config import GraphConfig, ZoomConfig
from boardmgmt.server.services.calendars import (
    CalendarServiceSelector,
    GraphCalendarService,
    ZoomCalendarService,
)
from boardmgmt.server.services.oauth import OAuthTokenProvider

START = datetime(2030, 5, 1, 9, 0, tzinfo=timezone.utc)


class StaticTokens(OAuthTokenProvider):
    """Token provider that never calls out."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        super().__init__(5.0, client)

    async def _request_token(self, client: httpx.AsyncClient) -> httpx.Response:
        raise AssertionError("static tokens never request a token")

    async def get_token(self) -> str:
        return "static-token"


class Recorder:
    def __init__(self, responses) -> None:
        self.responses = responses
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses(request)


def _meeting(**overrides) -> Meeting:
    values = dict(
        id="m-1",
        title="Board meeting",
        description="<p>Quarterly</p>",
        scheduled_at=START,
        end_at=START + timedelta(hours=2),
        location="HQ",
    )
    values.update(overrides)
    return Meeting(**values)


def _attendees() -> List[MeetingAttendee]:
    return [
        MeetingAttendee(meeting_id="m-1", name="Ada", email="ada@corp.com", is_required=True),
        MeetingAttendee(meeting_id="m-1", name="Bob", email="bob@corp.com", is_required=False),
        MeetingAttendee(meeting_id="m-1", name="Guest without email"),
    ]


def _graph(recorder: Recorder, mailbox="organizer@corp.com") -> GraphCalendarService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    config = GraphConfig(base_url="http://mock-graph/v1.0", mailbox_address=mailbox)
    return GraphCalendarService(config, client, StaticTokens(client))


def _zoom(recorder: Recorder) -> ZoomCalendarService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    config = ZoomConfig(base_url="http://mock-zoom/v2", host_user="host@corp.com")
    return ZoomCalendarService(config, client, StaticTokens(client))


class TestGraphCalendarService:
    async def test_create_event_posts_teams_meeting(self):
        recorder = Recorder(
            lambda r: httpx.Response(201, json={"id": "evt-1", "onlineMeeting": {"joinUrl": "https://teams/j"}})
        )
        created = await _graph(recorder).create_event(_meeting(), _attendees())

        assert created.event_id == "evt-1"
        assert created.join_url == "https://teams/j"
        assert created.mailbox == "organizer@corp.com"
        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1.0/users/organizer@corp.com/events"
        assert request.headers["authorization"] == "Bearer static-token"
        body = json.loads(request.content)
        assert body["isOnlineMeeting"] is True
        assert body["start"] == {"dateTime": "2030-05-01T09:00:00", "timeZone": "UTC"}
        assert [a["type"] for a in body["attendees"]] == ["required", "optional"]

    async def test_meeting_mailbox_overrides_configured_one(self):
        recorder = Recorder(lambda r: httpx.Response(201, json={"id": "evt-2"}))
        created = await _graph(recorder).create_event(
            _meeting(external_calendar_mailbox="Jane <jane@corp.com>"), []
        )
        assert created.mailbox == "jane@corp.com"

    async def test_missing_mailbox_is_an_external_error(self):
        recorder = Recorder(lambda r: httpx.Response(201, json={"id": "evt"}))
        with pytest.raises(ExternalServiceError, match="mailbox"):
            await _graph(recorder, mailbox=None).create_event(_meeting(), [])
        assert recorder.requests == []

    async def test_create_without_id_fails(self):
        recorder = Recorder(lambda r: httpx.Response(201, json={}))
        with pytest.raises(ExternalServiceError):
            await _graph(recorder).create_event(_meeting(), [])

    async def test_http_failure_is_wrapped(self):
        recorder = Recorder(lambda r: httpx.Response(500, json={"error": "boom"}))
        with pytest.raises(ExternalServiceError, match="Microsoft 365"):
            await _graph(recorder).create_event(_meeting(), [])

    async def test_non_json_success_reply_is_wrapped(self):
        recorder = Recorder(lambda r: httpx.Response(200, text="<html>proxy</html>"))
        with pytest.raises(ExternalServiceError, match="Microsoft 365"):
            await _graph(recorder).create_event(_meeting(), [])

    async def test_calendar_view_skips_malformed_items(self):
        recorder = Recorder(
            lambda r: httpx.Response(200, json={"value": ["junk", {"id": "e1", "subject": "Ok", "start": None}]})
        )
        events = await _graph(recorder).list_upcoming()
        assert [e.id for e in events] == ["e1"]

    async def test_update_patches_with_if_match(self):
        recorder = Recorder(lambda r: httpx.Response(200, json={}))
        meeting = _meeting(external_event_id="evt-1", online_join_url="https://teams/old")
        updated = await _graph(recorder).update_event(meeting, [])
        assert updated.event_id == "evt-1"
        assert updated.join_url == "https://teams/old"
        assert recorder.requests[0].method == "PATCH"
        assert recorder.requests[0].headers["if-match"] == "*"

    async def test_update_without_event_is_a_no_op(self):
        recorder = Recorder(lambda r: httpx.Response(200))
        assert (await _graph(recorder).update_event(_meeting(), [])).event_id is None
        assert recorder.requests == []

    async def test_cancel_deletes_event(self):
        recorder = Recorder(lambda r: httpx.Response(204))
        await _graph(recorder).cancel_event("evt-1")
        assert recorder.requests[0].method == "DELETE"
        assert recorder.requests[0].url.path.endswith("/events/evt-1")

    async def test_list_range_reads_calendar_view(self):
        recorder = Recorder(
            lambda r: httpx.Response(
                200,
                json={
                    "value": [
                        {
                            "id": "evt-9",
                            "subject": "Audit",
                            "start": {"dateTime": "2030-05-02T10:00:00.0000000"},
                            "end": {"dateTime": "2030-05-02T11:00:00"},
                            "onlineMeeting": {"joinUrl": "https://teams/a"},
                        },
                        {"id": "evt-10", "subject": None, "start": {}, "end": {}},
                    ]
                },
            )
        )
        events = await _graph(recorder).list_range(START, START + timedelta(days=7))

        assert [e.id for e in events] == ["evt-9", "evt-10"]
        assert events[0].start == datetime(2030, 5, 2, 10, 0, tzinfo=timezone.utc)
        assert events[0].provider == CalendarProviders.microsoft365
        assert events[1].subject == "(no subject)"
        assert events[1].start is None
        request = recorder.requests[0]
        assert request.url.path.endswith("/calendarView")
        assert request.url.params["$top"] == "100"

    async def test_list_upcoming_limits_results(self):
        recorder = Recorder(lambda r: httpx.Response(200, json={"value": []}))
        assert await _graph(recorder).list_upcoming(5) == []
        assert recorder.requests[0].url.params["$top"] == "5"


class TestZoomCalendarService:
    async def test_create_schedules_meeting_for_host(self):
        recorder = Recorder(lambda r: httpx.Response(201, json={"id": 123456, "join_url": "https://zoom/j/1"}))
        created = await _zoom(recorder).create_event(_meeting(), [])

        assert created.event_id == "123456"
        assert created.join_url == "https://zoom/j/1"
        assert created.mailbox == "host@corp.com"
        body = json.loads(recorder.requests[0].content)
        assert body["type"] == 2
        assert body["duration"] == 120
        assert body["start_time"] == "2030-05-01T09:00:00Z"

    async def test_short_meetings_use_minimum_duration(self):
        recorder = Recorder(lambda r: httpx.Response(201, json={"id": 1}))
        await _zoom(recorder).create_event(_meeting(end_at=START + timedelta(minutes=5)), [])
        assert json.loads(recorder.requests[0].content)["duration"] == 15

    async def test_update_patches_then_reads_join_url(self):
        def responses(request: httpx.Request) -> httpx.Response:
            if request.method == "PATCH":
                return httpx.Response(204)
            return httpx.Response(200, json={"join_url": "https://zoom/j/new"})

        recorder = Recorder(responses)
        updated = await _zoom(recorder).update_event(_meeting(external_event_id="99"), [])
        assert [r.method for r in recorder.requests] == ["PATCH", "GET"]
        assert updated.join_url == "https://zoom/j/new"

    async def test_list_range_filters_by_start(self):
        recorder = Recorder(
            lambda r: httpx.Response(
                200,
                json={
                    "meetings": [
                        {"id": 1, "topic": "Inside", "start_time": "2030-05-02T09:00:00Z", "duration": 30},
                        {"id": 2, "topic": "Outside", "start_time": "2031-01-01T09:00:00Z", "duration": 30},
                        {"id": 3, "topic": "Recurring without start"},
                    ]
                },
            )
        )
        events = await _zoom(recorder).list_range(START, START + timedelta(days=7))
        assert [e.subject for e in events] == ["Inside"]
        assert events[0].end - events[0].start == timedelta(minutes=30)
        assert recorder.requests[0].url.params["type"] == "scheduled"

    async def test_list_reply_that_is_not_an_object_is_wrapped(self):
        recorder = Recorder(lambda r: httpx.Response(200, json=[{"id": 1}]))
        with pytest.raises(ExternalServiceError, match="Zoom"):
            await _zoom(recorder).list_upcoming()

    async def test_list_upcoming(self):
        recorder = Recorder(lambda r: httpx.Response(200, json={"meetings": [{"id": 7, "topic": "Next"}]}))
        events = await _zoom(recorder).list_upcoming(3)
        assert events[0].id == "7"
        assert events[0].provider == CalendarProviders.zoom
        assert recorder.requests[0].url.params["page_size"] == "3"


class TestCalendarServiceSelector:
    def test_returns_injected_service(self):
        service = object()
        assert CalendarServiceSelector({"Zoom": service}).for_provider("Zoom") is service

    def test_builds_default_services(self):
        selector = CalendarServiceSelector()
        assert isinstance(selector.for_provider("Microsoft365"), GraphCalendarService)
        assert isinstance(selector.for_provider("Zoom"), ZoomCalendarService)

    @pytest.mark.parametrize("provider", [None, "", "Google"])
    def test_unknown_provider(self, provider):
        with pytest.raises(ValidationFailedError):
            CalendarServiceSelector().for_provider(provider)
