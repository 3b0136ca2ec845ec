"""
Chat Endpoints.

Channels and direct conversations with threaded messages, reactions, read
markers and typing indicators. Changes are pushed to ``conv:{id}`` groups on the
realtime hub. All routes require the Messages view permission.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.common import ErrorResponse
from boardmgmt.core.models.io.chat import (
    ChannelCreate,
    ChatMessageCreate,
    ChatMessageEdit,
    ChatMessageRead,
    ConversationDetail,
    ConversationSummary,
    DirectCreate,
    MarkReadRequest,
    ReactionRequest,
    ReactionSummary,
    TypingRequest,
)
from boardmgmt.server.services.chat import ChatService
from boardmgmt.server.services.deps import CurrentUserDep, SessionDep, read_uploads, require_permission

router = APIRouter(dependencies=[Depends(require_permission(AppModule.messages, Permission.view))])


@router.get(
    "/conversations",
    response_model=List[ConversationSummary],
    summary="My Conversations",
    description="Conversations the caller belongs to with unread counts, most recently active first.",
)
async def list_conversations(session: SessionDep, user: CurrentUserDep) -> List[ConversationSummary]:
    return await ChatService(session).list_conversations(user.id)


@router.get(
    "/conversations/{conversation_id}",
    response_model=ConversationDetail,
    summary="Get Conversation",
    responses={401: {"model": ErrorResponse, "description": "Caller is not a member"}},
)
async def get_conversation(conversation_id: str, session: SessionDep, user: CurrentUserDep) -> ConversationDetail:
    return await ChatService(session).get_conversation(conversation_id, user.id)


@router.post(
    "/channels",
    response_model=ConversationDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create Channel",
    description="Create a channel; the caller becomes its admin.",
)
async def create_channel(payload: ChannelCreate, session: SessionDep, user: CurrentUserDep) -> ConversationDetail:
    return await ChatService(session).create_channel(user.id, payload.name, payload.is_private, payload.member_ids)


@router.post(
    "/direct",
    response_model=ConversationDetail,
    summary="Open Direct Conversation",
    description="Return the direct conversation with another user, creating it on first use.",
    responses={400: {"model": ErrorResponse, "description": "Cannot open a conversation with yourself"}},
)
async def open_direct(payload: DirectCreate, session: SessionDep, user: CurrentUserDep) -> ConversationDetail:
    return await ChatService(session).create_or_get_direct(user.id, payload.user_id)


@router.post(
    "/conversations/{conversation_id}/join",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Join Channel",
    responses={401: {"model": ErrorResponse, "description": "Channel is private"}},
)
async def join(conversation_id: str, session: SessionDep, user: CurrentUserDep) -> None:
    await ChatService(session).join(conversation_id, user.id)


@router.post(
    "/conversations/{conversation_id}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave Conversation",
)
async def leave(conversation_id: str, session: SessionDep, user: CurrentUserDep) -> None:
    await ChatService(session).leave(conversation_id, user.id)


@router.post(
    "/conversations/{conversation_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark Conversation Read",
    description="Move the caller's read marker forward; it never moves back.",
)
async def mark_read(
    conversation_id: str, session: SessionDep, user: CurrentUserDep, payload: Optional[MarkReadRequest] = None
) -> None:
    await ChatService(session).mark_read(conversation_id, user.id, payload.at if payload else None)


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=List[ChatMessageRead],
    summary="Message History",
    description="Messages before a cursor in ascending order. Pass **thread_root_id** for the replies of one thread.",
)
async def history(
    conversation_id: str,
    session: SessionDep,
    user: CurrentUserDep,
    before: Optional[datetime] = None,
    take: int = Query(default=50, ge=1, le=200),
    thread_root_id: Optional[str] = None,
) -> List[ChatMessageRead]:
    return await ChatService(session).history(conversation_id, user.id, before, take, thread_root_id)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=ChatMessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send Message",
    responses={401: {"model": ErrorResponse, "description": "Caller is not a member"}},
)
async def send_message(
    conversation_id: str, payload: ChatMessageCreate, session: SessionDep, user: CurrentUserDep
) -> ChatMessageRead:
    return await ChatService(session).send(conversation_id, user.id, payload.body_html, payload.thread_root_id)


@router.post(
    "/conversations/{conversation_id}/messages/upload",
    response_model=ChatMessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send Message With Files",
    description="Multipart variant of sending a message that carries attachments.",
)
async def send_message_with_files(
    conversation_id: str,
    session: SessionDep,
    user: CurrentUserDep,
    body_html: str = Form(...),
    thread_root_id: Optional[str] = Form(default=None),
    files: List[UploadFile] = File(...),
) -> ChatMessageRead:
    return await ChatService(session).send(
        conversation_id, user.id, body_html, thread_root_id, attachments=await read_uploads(files)
    )


@router.put(
    "/messages/{message_id}",
    response_model=ChatMessageRead,
    summary="Edit Message",
    responses={401: {"model": ErrorResponse, "description": "Only the sender can edit"}},
)
async def edit_message(
    message_id: str, payload: ChatMessageEdit, session: SessionDep, user: CurrentUserDep
) -> ChatMessageRead:
    return await ChatService(session).edit(message_id, user.id, payload.body_html)


@router.delete(
    "/messages/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Message",
    description="Soft-delete a message; it disappears from history and search.",
)
async def delete_message(message_id: str, session: SessionDep, user: CurrentUserDep) -> None:
    await ChatService(session).delete(message_id, user.id)


@router.post(
    "/messages/{message_id}/reactions",
    response_model=List[ReactionSummary],
    summary="Add Reaction",
)
async def add_reaction(
    message_id: str, payload: ReactionRequest, session: SessionDep, user: CurrentUserDep
) -> List[ReactionSummary]:
    return await ChatService(session).add_reaction(message_id, user.id, payload.emoji)


@router.delete(
    "/messages/{message_id}/reactions",
    response_model=List[ReactionSummary],
    summary="Remove Reaction",
)
async def remove_reaction(
    message_id: str, session: SessionDep, user: CurrentUserDep, emoji: str = Query(min_length=1, max_length=32)
) -> List[ReactionSummary]:
    return await ChatService(session).remove_reaction(message_id, user.id, emoji)


@router.get(
    "/search",
    response_model=List[ChatMessageRead],
    summary="Search Messages",
    description="Full-text match within the caller's conversations.",
    responses={400: {"model": ErrorResponse, "description": "Search term shorter than two characters"}},
)
async def search(
    session: SessionDep, user: CurrentUserDep, q: str = "", take: int = Query(default=50, ge=1, le=200)
) -> List[ChatMessageRead]:
    return await ChatService(session).search(user.id, q, take)


@router.post(
    "/conversations/{conversation_id}/typing",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Typing Indicator",
)
async def typing(conversation_id: str, payload: TypingRequest, session: SessionDep, user: CurrentUserDep) -> None:
    await ChatService(session).typing(conversation_id, user.id, payload.is_typing)
