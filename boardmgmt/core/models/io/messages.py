"""Internal message I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from boardmgmt.core.models.domain.enums import MessagePriority, MessageStatus

from .common import MinimalUser


class MessageCreate(BaseModel):
    """Schema for composing a message; sent immediately unless ``as_draft``."""

    subject: str = Field(default="", max_length=300)
    body: str = ""
    priority: MessagePriority = MessagePriority.normal
    read_receipt_requested: bool = False
    is_confidential: bool = False
    recipient_ids: List[str] = Field(default_factory=list)
    as_draft: bool = False


class MessageUpdate(BaseModel):
    """Edit a draft; omitted fields keep their value."""

    subject: Optional[str] = Field(default=None, max_length=300)
    body: Optional[str] = None
    priority: Optional[MessagePriority] = None
    read_receipt_requested: Optional[bool] = None
    is_confidential: Optional[bool] = None
    recipient_ids: Optional[List[str]] = None


class MessageRecipientRead(BaseModel):
    user_id: str
    name: str
    email: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None


class MessageAttachmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    file_name: str
    content_type: str
    file_size: int
    url: str = Field(validation_alias="storage_path")


class MessageListItem(BaseModel):
    id: str
    subject: str
    sender_id: str
    sender_name: str
    priority: MessagePriority
    status: MessageStatus
    is_confidential: bool
    sent_at: Optional[datetime] = None
    updated_at: datetime
    recipient_count: int = 0
    is_read: bool = False
    has_attachments: bool = False


class MessageListResponse(BaseModel):
    items: List[MessageListItem]
    total: int


class MessageRead(BaseModel):
    """Full message with recipients and attachments."""

    id: str
    subject: str
    body: str
    sender_id: str
    sender_name: str
    priority: MessagePriority
    status: MessageStatus
    read_receipt_requested: bool
    is_confidential: bool
    sent_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    recipients: List[MessageRecipientRead] = Field(default_factory=list)
    attachments: List[MessageAttachmentRead] = Field(default_factory=list)


class MessageBubble(BaseModel):
    id: str
    sender: MinimalUser
    body: str
    created_at: datetime
    attachments: List[MessageAttachmentRead] = Field(default_factory=list)


class MessageThread(BaseModel):
    """Conversation view of messages sharing a subject between the same participants."""

    anchor_message_id: str
    subject: str
    participants: List[MinimalUser]
    items: List[MessageBubble]
