"""
Meeting Management Endpoints.

CRUD for board meetings plus attendees, agenda items and transcripts. Meetings
flagged with an external calendar are mirrored to Microsoft 365 or Zoom on
create, update and delete; mirroring failures are logged and never fail the request.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from boardmgmt.core.models.domain.enums import MeetingStatus
from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.common import ErrorResponse
from boardmgmt.core.models.io.meetings import (
    AgendaItemCreate,
    AgendaItemRead,
    AttendeeRead,
    AttendeeUpdate,
    MeetingRead,
    MeetingSelectItem,
    MeetingWrite,
    TranscriptIngest,
    TranscriptRead,
)
from boardmgmt.server.services.deps import SessionDep, require_permission
from boardmgmt.server.services.meetings import MeetingService
from boardmgmt.server.services.transcripts import TranscriptService

router = APIRouter()

can_view = Depends(require_permission(AppModule.meetings, Permission.view))
can_create = Depends(require_permission(AppModule.meetings, Permission.create))
can_update = Depends(require_permission(AppModule.meetings, Permission.update))
can_delete = Depends(require_permission(AppModule.meetings, Permission.delete))


@router.get(
    "",
    response_model=List[MeetingRead],
    dependencies=[can_view],
    summary="List Meetings",
    description="Meetings ordered by start time, optionally filtered by status and time window.",
    response_description="Meetings with attendees and agenda items.",
)
async def list_meetings(
    session: SessionDep,
    status_filter: Optional[MeetingStatus] = Query(default=None, alias="status"),
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    take: Optional[int] = Query(default=None, ge=1, le=500),
) -> List[MeetingRead]:
    return await MeetingService(session).list(status=status_filter, start=start, end=end, take=take)


@router.get(
    "/select-list",
    response_model=List[MeetingSelectItem],
    dependencies=[can_view],
    summary="Meeting Picker",
    description="Id, title and start of every meeting for selection widgets.",
)
async def select_list(session: SessionDep) -> List[MeetingSelectItem]:
    return await MeetingService(session).select_list()


@router.get(
    "/{meeting_id}",
    response_model=MeetingRead,
    dependencies=[can_view],
    summary="Get Meeting",
    responses={404: {"model": ErrorResponse, "description": "Meeting not found"}},
)
async def get_meeting(meeting_id: str, session: SessionDep) -> MeetingRead:
    return await MeetingService(session).get(meeting_id)


@router.post(
    "",
    response_model=MeetingRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[can_create],
    summary="Create Meeting",
    description="Schedule a meeting and, when requested, mirror it to an external calendar.",
    response_description="The created meeting.",
    responses={400: {"model": ErrorResponse, "description": "Invalid meeting data"}},
)
async def create_meeting(payload: MeetingWrite, session: SessionDep) -> MeetingRead:
    """
    Create a meeting.

    - **attendee_user_ids**: Registered users to invite
    - **attendees**: Free-form guests as `"Name <email>"` or a bare email
    - **external_calendar**: `Microsoft365` or `Zoom` to mirror the event
    """
    return await MeetingService(session).create(payload)


@router.put(
    "/{meeting_id}",
    response_model=MeetingRead,
    dependencies=[can_update],
    summary="Update Meeting",
    description="Replace the meeting's fields and attendee list.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid meeting data"},
        404: {"model": ErrorResponse, "description": "Meeting not found"},
    },
)
async def update_meeting(meeting_id: str, payload: MeetingWrite, session: SessionDep) -> MeetingRead:
    return await MeetingService(session).update(meeting_id, payload)


@router.delete(
    "/{meeting_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[can_delete],
    summary="Delete Meeting",
    description="Delete a meeting. Linked polls and documents are kept and detached from it.",
)
async def delete_meeting(meeting_id: str, session: SessionDep) -> None:
    await MeetingService(session).delete(meeting_id)


@router.patch(
    "/{meeting_id}/attendees/{attendee_id}",
    response_model=AttendeeRead,
    dependencies=[can_update],
    summary="Update Attendee",
    description="Confirm an attendee or change their role. Requires the attendee's current row_version.",
    response_description="The attendee with its new row_version.",
    responses={
        404: {"model": ErrorResponse, "description": "Meeting or attendee not found"},
        409: {"model": ErrorResponse, "description": "Attendee was modified concurrently"},
    },
)
async def update_attendee(
    meeting_id: str, attendee_id: str, payload: AttendeeUpdate, session: SessionDep
) -> AttendeeRead:
    """
    Update an attendee with optimistic concurrency.

    A stale **row_version** is rejected with `409 concurrency_conflict`; reload and retry.
    """
    return await MeetingService(session).update_attendee(
        meeting_id,
        attendee_id,
        payload.row_version,
        is_confirmed=payload.is_confirmed,
        is_required=payload.is_required,
        role=payload.role,
    )


@router.get(
    "/{meeting_id}/agenda-items",
    response_model=List[AgendaItemRead],
    dependencies=[can_view],
    summary="List Agenda Items",
)
async def list_agenda_items(meeting_id: str, session: SessionDep) -> List[AgendaItemRead]:
    return await MeetingService(session).list_agenda_items(meeting_id)


@router.post(
    "/{meeting_id}/agenda-items",
    response_model=AgendaItemRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[can_update],
    summary="Add Agenda Item",
)
async def add_agenda_item(meeting_id: str, payload: AgendaItemCreate, session: SessionDep) -> AgendaItemRead:
    return await MeetingService(session).add_agenda_item(
        meeting_id, payload.title, payload.description, payload.order
    )


@router.delete(
    "/{meeting_id}/agenda-items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[can_update],
    summary="Delete Agenda Item",
)
async def delete_agenda_item(meeting_id: str, item_id: str, session: SessionDep) -> None:
    await MeetingService(session).delete_agenda_item(meeting_id, item_id)


@router.get(
    "/{meeting_id}/transcripts",
    response_model=List[TranscriptRead],
    dependencies=[can_view],
    summary="List Transcripts",
    description="Ingested transcripts of the meeting with their utterances.",
)
async def list_transcripts(meeting_id: str, session: SessionDep) -> List[TranscriptRead]:
    return await TranscriptService(session).list_transcripts(meeting_id)


@router.post(
    "/{meeting_id}/transcripts",
    response_model=TranscriptRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[can_update],
    summary="Ingest Transcript",
    description="Store a WebVTT transcript fetched from the meeting provider.",
    response_description="The stored transcript.",
)
async def ingest_transcript(meeting_id: str, payload: TranscriptIngest, session: SessionDep) -> TranscriptRead:
    """
    Ingest a transcript.

    Speakers are matched to users by email first and by attendee name second.
    Re-sending the same provider transcript id replaces the earlier utterances.
    """
    return await TranscriptService(session).ingest_vtt(
        meeting_id, payload.provider, payload.provider_transcript_id, payload.vtt
    )
