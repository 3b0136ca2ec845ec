"""
Chat I/O models.

Schemas for conversations, members, messages, reactions and the realtime payloads
derived from them.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from boardmgmt.core.models.domain.enums import ConversationMemberRole, ConversationType

from .common import MinimalUser


class ChannelCreate(BaseModel):
    name: str = Field(max_length=120)
    is_private: bool = False
    member_ids: List[str] = Field(default_factory=list)


class DirectCreate(BaseModel):
    user_id: str = Field(description="The other participant")


class ConversationMemberRead(BaseModel):
    user_id: str
    name: str
    email: Optional[str] = None
    role: ConversationMemberRole
    joined_at: datetime
    last_read_at: Optional[datetime] = None


class ConversationSummary(BaseModel):
    """Conversation as listed in the sidebar."""

    id: str
    type: ConversationType
    name: str
    is_private: bool
    member_count: int = 0
    unread_count: int = 0
    last_message_at: Optional[datetime] = None
    updated_at: datetime


class ConversationDetail(ConversationSummary):
    members: List[ConversationMemberRead] = Field(default_factory=list)


class ReactionSummary(BaseModel):
    emoji: str
    count: int
    reacted_by_me: bool = False


class ChatAttachmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    file_name: str
    content_type: str
    file_size: int
    url: str = Field(validation_alias="storage_path")


class ChatMessageRead(BaseModel):
    id: str
    conversation_id: str
    thread_root_id: Optional[str] = None
    body_html: str
    created_at: datetime
    edited_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    sender: MinimalUser
    reactions: List[ReactionSummary] = Field(default_factory=list)
    thread_reply_count: int = 0
    attachments: List[ChatAttachmentRead] = Field(default_factory=list)


class ChatMessageCreate(BaseModel):
    body_html: str = Field(min_length=1)
    thread_root_id: Optional[str] = None


class ChatMessageEdit(BaseModel):
    body_html: str = Field(min_length=1)


class ReactionRequest(BaseModel):
    emoji: str = Field(min_length=1, max_length=32)


class MarkReadRequest(BaseModel):
    at: Optional[datetime] = Field(default=None, description="Defaults to now")


class TypingRequest(BaseModel):
    is_typing: bool = True
