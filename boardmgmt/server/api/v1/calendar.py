"""
Calendar Endpoints.

Meetings projected as calendar events for the calendar and upcoming widgets,
optionally merged with the events of a connected calendar provider, plus
booking, cancelling and dragging meetings straight from the calendar.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.calendar import CalendarEvent, CalendarEventCreate, CalendarEventMove
from boardmgmt.server.services.deps import SessionDep, require_permission
from boardmgmt.server.services.meetings import MeetingService

router = APIRouter(dependencies=[Depends(require_permission(AppModule.meetings, Permission.view))])

can_create = Depends(require_permission(AppModule.meetings, Permission.create))
can_update = Depends(require_permission(AppModule.meetings, Permission.update))
can_delete = Depends(require_permission(AppModule.meetings, Permission.delete))

ProviderQuery = Query(
    default=None,
    description="Also include events from this provider (Microsoft365 or Zoom). Provider failures are ignored.",
)


@router.get(
    "/range",
    response_model=List[CalendarEvent],
    summary="Events In Range",
    description="Non-cancelled meetings starting inside [start, end).",
)
async def calendar_range(
    session: SessionDep, start: datetime, end: datetime, provider: Optional[str] = ProviderQuery
) -> List[CalendarEvent]:
    return await MeetingService(session).calendar_range(start, end, provider)


@router.get(
    "/upcoming",
    response_model=List[CalendarEvent],
    summary="Upcoming Events",
    description="The next non-cancelled meetings from now on.",
)
async def upcoming(
    session: SessionDep, take: int = Query(default=20, ge=1, le=200), provider: Optional[str] = ProviderQuery
) -> List[CalendarEvent]:
    return await MeetingService(session).upcoming(take, provider)


@router.post(
    "/events",
    response_model=CalendarEvent,
    status_code=status.HTTP_201_CREATED,
    dependencies=[can_create],
    summary="Book Event",
    description="Create a scheduled meeting and its event in the chosen provider. "
    "Provider failures are logged and the local meeting is kept.",
)
async def create_event(payload: CalendarEventCreate, session: SessionDep) -> CalendarEvent:
    return await MeetingService(session).book(payload)


@router.patch(
    "/events/{meeting_id}/move",
    response_model=CalendarEvent,
    dependencies=[can_update],
    summary="Move Event",
    description="Reschedule a meeting and its external event. Without ends_at the duration is kept.",
)
async def move_event(meeting_id: str, payload: CalendarEventMove, session: SessionDep) -> CalendarEvent:
    return await MeetingService(session).move(meeting_id, payload.starts_at, payload.ends_at)


@router.delete(
    "/events/{meeting_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[can_delete],
    summary="Cancel Event",
    description="Cancel the external event and mark the meeting cancelled.",
)
async def cancel_event(meeting_id: str, session: SessionDep) -> None:
    await MeetingService(session).cancel(meeting_id)
