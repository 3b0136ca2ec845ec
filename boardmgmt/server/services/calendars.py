"""
External calendar integration.

Meetings can be mirrored to Microsoft 365 (Graph events with a Teams online meeting)
or to Zoom (scheduled meetings). ``CalendarServiceSelector`` returns the
implementation for a provider name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Protocol, Sequence
from urllib.parse import quote

import httpx

from boardmgmt.core.database.base import as_utc
from boardmgmt.core.database.entities.meetings import Meeting, MeetingAttendee
from boardmgmt.core.exceptions import ExternalServiceError, ValidationFailedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.calendars import CalendarProviders, MailboxIdentifier
from boardmgmt.server.core.config import GraphConfig, ZoomConfig, settings

from .oauth import GraphTokenProvider, ZoomTokenProvider

logger = get_logger(__name__)

DEFAULT_MEETING_LENGTH = timedelta(hours=1)
MIN_ZOOM_DURATION_MINUTES = 15


@dataclass
class ExternalEvent:
    """Result of creating or updating an external calendar entry."""

    event_id: Optional[str]
    join_url: Optional[str] = None
    mailbox: Optional[str] = None


@dataclass
class ProviderEvent:
    id: str
    subject: str
    start: Optional[datetime]
    end: Optional[datetime]
    join_url: Optional[str]
    provider: str


class CalendarService(Protocol):
    provider: str

    async def create_event(self, meeting: Meeting, attendees: Sequence[MeetingAttendee]) -> ExternalEvent: ...

    async def update_event(self, meeting: Meeting, attendees: Sequence[MeetingAttendee]) -> ExternalEvent: ...

    async def cancel_event(self, event_id: str, mailbox: Optional[str] = None) -> None: ...

    async def list_upcoming(self, take: int = 20) -> List[ProviderEvent]: ...

    async def list_range(self, start: datetime, end: datetime) -> List[ProviderEvent]: ...


def _utc_iso(value: datetime) -> str:
    return as_utc(value).strftime("%Y-%m-%dT%H:%M:%S")


def _end_of(meeting: Meeting) -> datetime:
    return meeting.end_at or as_utc(meeting.scheduled_at) + DEFAULT_MEETING_LENGTH


# Graph returns seven fractional digits; fromisoformat accepts at most six
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(_EXCESS_FRACTION.sub(r"\1", value.replace("Z", "+00:00")))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _json_object(response: httpx.Response) -> Dict[str, Any]:
    """Decode a provider reply; an empty body is an empty object."""
    if not response.content:
        return {}
    payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def _json_items(payload: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    items = payload.get(key) or []
    return [item for item in items if isinstance(item, dict)] if isinstance(items, list) else []


class GraphCalendarService:
    """Microsoft 365 calendar events through Microsoft Graph."""

    provider = CalendarProviders.microsoft365

    def __init__(
        self,
        config: Optional[GraphConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        tokens: Optional[GraphTokenProvider] = None,
    ) -> None:
        self.config = config or settings.graph
        self.tokens = tokens or GraphTokenProvider(self.config, client)

    def _mailbox(self, meeting_mailbox: Optional[str] = None) -> str:
        mailbox = MailboxIdentifier.normalize(meeting_mailbox) or MailboxIdentifier.normalize(
            self.config.mailbox_address
        )
        if not mailbox:
            raise ExternalServiceError("No Microsoft 365 mailbox is configured for calendar events.")
        return mailbox

    def _event_body(self, meeting: Meeting, attendees: Sequence[MeetingAttendee]) -> Dict[str, Any]:
        return {
            "subject": meeting.title,
            "body": {"contentType": "HTML", "content": meeting.description or ""},
            "start": {"dateTime": _utc_iso(meeting.scheduled_at), "timeZone": "UTC"},
            "end": {"dateTime": _utc_iso(_end_of(meeting)), "timeZone": "UTC"},
            "location": {"displayName": meeting.location or "TBD"},
            "isOnlineMeeting": True,
            "onlineMeetingProvider": "teamsForBusiness",
            "attendees": [
                {
                    "type": "required" if attendee.is_required else "optional",
                    "emailAddress": {"address": attendee.email or "", "name": attendee.name},
                }
                for attendee in attendees
                if attendee.email
            ],
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {await self.tokens.get_token()}"}
        headers.update(kwargs.pop("headers", {}))
        try:
            async with self.tokens.client_context() as client:
                response = await client.request(method, f"{self.config.base_url}{path}", headers=headers, **kwargs)
                response.raise_for_status()
                return _json_object(response)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Graph {method} {path} failed: {e}", exc_info=True)
            raise ExternalServiceError("Microsoft 365 calendar request failed.") from e

    async def create_event(self, meeting: Meeting, attendees: Sequence[MeetingAttendee]) -> ExternalEvent:
        mailbox = self._mailbox(meeting.external_calendar_mailbox)
        created = await self._request(
            "POST", f"/users/{quote(mailbox)}/events", json=self._event_body(meeting, attendees)
        )
        event_id = created.get("id")
        if not event_id:
            raise ExternalServiceError("Microsoft Graph did not return an event id.")
        join_url = (created.get("onlineMeeting") or {}).get("joinUrl")
        logger.info(f"Created Graph event {event_id} for meeting {meeting.id}")
        return ExternalEvent(event_id=event_id, join_url=join_url, mailbox=mailbox)

    async def update_event(self, meeting: Meeting, attendees: Sequence[MeetingAttendee]) -> ExternalEvent:
        if not meeting.external_event_id:
            return ExternalEvent(event_id=None)
        mailbox = self._mailbox(meeting.external_calendar_mailbox)
        path = f"/users/{quote(mailbox)}/events/{quote(meeting.external_event_id)}"
        updated = await self._request(
            "PATCH", path, json=self._event_body(meeting, attendees), headers={"If-Match": "*"}
        )
        join_url = (updated.get("onlineMeeting") or {}).get("joinUrl") or meeting.online_join_url
        return ExternalEvent(event_id=meeting.external_event_id, join_url=join_url, mailbox=mailbox)

    async def cancel_event(self, event_id: str, mailbox: Optional[str] = None) -> None:
        if not event_id:
            return
        await self._request("DELETE", f"/users/{quote(self._mailbox(mailbox))}/events/{quote(event_id)}")
        logger.info(f"Cancelled Graph event {event_id}")

    async def _calendar_view(self, start: datetime, end: datetime, top: int) -> List[ProviderEvent]:
        payload = await self._request(
            "GET",
            f"/users/{quote(self._mailbox())}/calendarView",
            params={
                "startDateTime": as_utc(start).isoformat(),
                "endDateTime": as_utc(end).isoformat(),
                "$top": top,
                "$orderby": "start/dateTime",
                "$select": "id,subject,start,end,onlineMeeting",
            },
        )
        return [
            ProviderEvent(
                id=str(item.get("id", "")),
                subject=item.get("subject") or "(no subject)",
                start=_parse_datetime((item.get("start") or {}).get("dateTime")),
                end=_parse_datetime((item.get("end") or {}).get("dateTime")),
                join_url=(item.get("onlineMeeting") or {}).get("joinUrl"),
                provider=self.provider,
            )
            for item in _json_items(payload, "value")
        ]

    async def list_upcoming(self, take: int = 20) -> List[ProviderEvent]:
        now = datetime.now(timezone.utc)
        return await self._calendar_view(now, now + timedelta(days=30), take)

    async def list_range(self, start: datetime, end: datetime) -> List[ProviderEvent]:
        return await self._calendar_view(start, end, 100)


class ZoomCalendarService:
    """Zoom scheduled meetings."""

    provider = CalendarProviders.zoom

    def __init__(
        self,
        config: Optional[ZoomConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        tokens: Optional[ZoomTokenProvider] = None,
    ) -> None:
        self.config = config or settings.zoom
        self.tokens = tokens or ZoomTokenProvider(self.config, client)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {await self.tokens.get_token()}"}
        try:
            async with self.tokens.client_context() as client:
                response = await client.request(method, f"{self.config.base_url}{path}", headers=headers, **kwargs)
                response.raise_for_status()
                return _json_object(response)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Zoom {method} {path} failed: {e}", exc_info=True)
            raise ExternalServiceError("Zoom request failed.") from e

    @staticmethod
    def _duration_minutes(meeting: Meeting) -> int:
        minutes = (as_utc(_end_of(meeting)) - as_utc(meeting.scheduled_at)).total_seconds() / 60
        return int(max(MIN_ZOOM_DURATION_MINUTES, minutes))

    def _payload(self, meeting: Meeting) -> Dict[str, Any]:
        return {
            "topic": meeting.title,
            "start_time": _utc_iso(meeting.scheduled_at) + "Z",
            "duration": self._duration_minutes(meeting),
            "timezone": "UTC",
            "agenda": meeting.description,
        }

    async def create_event(self, meeting: Meeting, attendees: Sequence[MeetingAttendee]) -> ExternalEvent:
        host = meeting.external_calendar_mailbox or self.config.host_user
        payload = self._payload(meeting)
        payload.update(
            {
                "type": 2,
                "settings": {
                    "host_video": True,
                    "participant_video": False,
                    "waiting_room": True,
                    "join_before_host": False,
                    "approval_type": 2,
                    "mute_upon_entry": True,
                    "auto_recording": "none",
                },
            }
        )
        created = await self._request("POST", f"/users/{quote(host)}/meetings", json=payload)
        if not created.get("id"):
            raise ExternalServiceError("Zoom did not return a meeting id.")
        logger.info(f"Created Zoom meeting {created['id']} for meeting {meeting.id}")
        return ExternalEvent(event_id=str(created["id"]), join_url=created.get("join_url"), mailbox=host)

    async def update_event(self, meeting: Meeting, attendees: Sequence[MeetingAttendee]) -> ExternalEvent:
        if not meeting.external_event_id:
            return ExternalEvent(event_id=None)
        path = f"/meetings/{quote(meeting.external_event_id)}"
        await self._request("PATCH", path, json=self._payload(meeting))
        refreshed = await self._request("GET", path)
        return ExternalEvent(
            event_id=meeting.external_event_id,
            join_url=refreshed.get("join_url") or meeting.online_join_url,
            mailbox=meeting.external_calendar_mailbox,
        )

    async def cancel_event(self, event_id: str, mailbox: Optional[str] = None) -> None:
        if not event_id:
            return
        await self._request("DELETE", f"/meetings/{quote(event_id)}")
        logger.info(f"Cancelled Zoom meeting {event_id}")

    def _to_events(self, meetings: List[Dict[str, Any]]) -> List[ProviderEvent]:
        events = []
        for item in meetings:
            start = _parse_datetime(item.get("start_time"))
            try:
                minutes = int(item.get("duration") or 0)
            except (TypeError, ValueError):
                minutes = 0
            events.append(
                ProviderEvent(
                    id=str(item.get("id", "")),
                    subject=item.get("topic") or "(no subject)",
                    start=start,
                    end=start + timedelta(minutes=minutes) if start else None,
                    join_url=item.get("join_url"),
                    provider=self.provider,
                )
            )
        return events

    async def list_upcoming(self, take: int = 20) -> List[ProviderEvent]:
        payload = await self._request(
            "GET", f"/users/{quote(self.config.host_user)}/meetings", params={"type": "upcoming", "page_size": take}
        )
        return self._to_events(_json_items(payload, "meetings"))

    async def list_range(self, start: datetime, end: datetime) -> List[ProviderEvent]:
        payload = await self._request(
            "GET",
            f"/users/{quote(self.config.host_user)}/meetings",
            params={"type": "scheduled", "page_size": 300},
        )
        return [
            event
            for event in self._to_events(_json_items(payload, "meetings"))
            if event.start is not None and as_utc(start) <= event.start < as_utc(end)
        ]


class CalendarServiceSelector:
    """Pick the calendar service for a provider name."""

    def __init__(self, services: Optional[Dict[str, CalendarService]] = None) -> None:
        self._services: Dict[str, CalendarService] = {
            name.lower(): service for name, service in (services or {}).items()
        }

    def for_provider(self, provider: Optional[str]) -> CalendarService:
        if not CalendarProviders.is_supported(provider):
            raise ValidationFailedError.for_field("external_calendar", f"Unknown calendar provider: '{provider}'.")
        service = self._services.get(provider.lower())
        if service is None:
            service = GraphCalendarService() if provider == CalendarProviders.microsoft365 else ZoomCalendarService()
            self._services[provider.lower()] = service
        return service


_selector = CalendarServiceSelector()


def get_calendar_selector() -> CalendarServiceSelector:
    return _selector
