"""Internal message (mail-style) entity models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Integer, Text, UniqueConstraint
from sqlmodel import Field

from boardmgmt.core.models.domain.enums import MessagePriority, MessageStatus

from ..base import Base, created_at_field, datetime_field, id_field


class Message(Base, table=True):
    """Message written by a user, either a draft or sent.

    Table: messages
    """

    __tablename__ = "messages"

    id: str = id_field()
    sender_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    subject: str = Field(default="", max_length=300)
    body: str = Field(default="", sa_type=Text)
    priority: MessagePriority = Field(default=MessagePriority.normal, sa_type=Integer)
    read_receipt_requested: bool = Field(default=False)
    is_confidential: bool = Field(default=False)
    status: MessageStatus = Field(default=MessageStatus.draft, sa_type=Integer, index=True)
    sent_at: Optional[datetime] = datetime_field(index=True)
    created_at: datetime = created_at_field()
    updated_at: datetime = created_at_field()


class MessageRecipient(Base, table=True):
    """Delivery of a message to one user.

    Table: message_recipients
    """

    __tablename__ = "message_recipients"
    __table_args__ = (UniqueConstraint("message_id", "user_id", name="uq_message_recipients_message_user"),)

    id: str = id_field()
    message_id: str = Field(foreign_key="messages.id", index=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    is_read: bool = Field(default=False)
    read_at: Optional[datetime] = datetime_field()


class MessageAttachment(Base, table=True):
    """File attached to a message.

    Table: message_attachments
    """

    __tablename__ = "message_attachments"

    id: str = id_field()
    message_id: str = Field(foreign_key="messages.id", index=True, max_length=36)
    file_name: str = Field(max_length=260)
    content_type: str = Field(default="application/octet-stream", max_length=200)
    file_size: int = Field(default=0, sa_type=BigInteger)
    storage_path: str = Field(max_length=1024)
