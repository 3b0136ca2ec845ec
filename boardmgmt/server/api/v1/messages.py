"""
Internal Message Endpoints.

Board mail: drafts, sending, read receipts, attachments and subject threads.
Recipients of a sent message are notified over the realtime hub.
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from boardmgmt.core.models.domain.enums import MessagePriority, MessageStatus
from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.common import ErrorResponse
from boardmgmt.core.models.io.messages import (
    MessageAttachmentRead,
    MessageCreate,
    MessageListResponse,
    MessageRead,
    MessageThread,
    MessageUpdate,
)
from boardmgmt.server.services.deps import CurrentUserDep, SessionDep, read_uploads, require_permission
from boardmgmt.server.services.messages import MAX_PAGE_SIZE, MessageService

router = APIRouter()

can_view = Depends(require_permission(AppModule.messages, Permission.view))
can_create = Depends(require_permission(AppModule.messages, Permission.create))
can_update = Depends(require_permission(AppModule.messages, Permission.update))
can_delete = Depends(require_permission(AppModule.messages, Permission.delete))


@router.get(
    "",
    response_model=MessageListResponse,
    dependencies=[can_view],
    summary="List Messages",
    description="Search messages, newest first. Use **box** to restrict to the caller's inbox or sent items.",
    response_description="One page of messages and the total count.",
)
async def list_messages(
    session: SessionDep,
    user: CurrentUserDep,
    q: Optional[str] = None,
    box: Optional[Literal["inbox", "sent"]] = None,
    status_filter: Optional[MessageStatus] = Query(default=None, alias="status"),
    priority: Optional[MessagePriority] = None,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
) -> MessageListResponse:
    """
    List messages.

    - **box**: `inbox` for messages addressed to the caller, `sent` for messages the caller wrote
    - **q**: Matches subject or body
    """
    return await MessageService(session).list(
        q=q,
        status=status_filter,
        priority=priority,
        for_user_id=user.id if box == "inbox" else None,
        sent_by_user_id=user.id if box == "sent" else None,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{message_id}",
    response_model=MessageRead,
    dependencies=[can_view],
    summary="Get Message",
    responses={404: {"model": ErrorResponse, "description": "Message not found"}},
)
async def get_message(message_id: str, session: SessionDep) -> MessageRead:
    return await MessageService(session).get(message_id)


@router.get(
    "/{message_id}/thread",
    response_model=MessageThread,
    dependencies=[can_view],
    summary="Get Conversation Thread",
    description="Messages with the same subject exchanged between the caller and the other participants.",
)
async def get_thread(message_id: str, session: SessionDep, user: CurrentUserDep) -> MessageThread:
    return await MessageService(session).thread(message_id, user.id)


@router.post(
    "",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[can_create],
    summary="Compose Message",
    description="Save a draft or send a message immediately.",
    responses={400: {"model": ErrorResponse, "description": "A sent message needs at least one recipient"}},
)
async def create_message(payload: MessageCreate, session: SessionDep, user: CurrentUserDep) -> MessageRead:
    return await MessageService(session).create(user.id, payload)


@router.put(
    "/{message_id}",
    response_model=MessageRead,
    dependencies=[can_update],
    summary="Edit Draft",
    responses={409: {"model": ErrorResponse, "description": "Sent messages cannot be edited"}},
)
async def update_message(message_id: str, payload: MessageUpdate, session: SessionDep) -> MessageRead:
    return await MessageService(session).update(message_id, payload)


@router.post(
    "/{message_id}/send",
    response_model=MessageRead,
    dependencies=[can_create],
    summary="Send Draft",
    responses={409: {"model": ErrorResponse, "description": "Message has already been sent"}},
)
async def send_message(message_id: str, session: SessionDep) -> MessageRead:
    return await MessageService(session).send(message_id)


@router.post(
    "/{message_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[can_view],
    summary="Mark As Read",
    responses={404: {"model": ErrorResponse, "description": "Caller is not a recipient"}},
)
async def mark_read(message_id: str, session: SessionDep, user: CurrentUserDep) -> None:
    await MessageService(session).mark_read(message_id, user.id)


@router.post(
    "/{message_id}/attachments",
    response_model=List[MessageAttachmentRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[can_update],
    summary="Attach Files",
)
async def add_attachments(
    message_id: str, session: SessionDep, files: List[UploadFile] = File(...)
) -> List[MessageAttachmentRead]:
    return await MessageService(session).add_attachments(message_id, await read_uploads(files))


@router.delete(
    "/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[can_delete],
    summary="Delete Message",
)
async def delete_message(message_id: str, session: SessionDep) -> None:
    await MessageService(session).delete(message_id)
