"""
Chat entity models.

Conversations are either channels (named, optionally private) or direct
conversations between two users. Messages may form threads through
``thread_root_id`` and are soft-deleted by setting ``deleted_at``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Index, String, Text, UniqueConstraint
from sqlmodel import Field

from boardmgmt.core.models.domain.enums import ConversationMemberRole, ConversationType

from ..base import Base, created_at_field, datetime_field, id_field, utc_now


class Conversation(Base, table=True):
    """Chat channel or direct conversation.

    Table: conversations
    """

    __tablename__ = "conversations"

    id: str = id_field()
    type: ConversationType = Field(default=ConversationType.channel, sa_type=String(16))
    name: Optional[str] = Field(default=None, max_length=120)
    is_private: bool = Field(default=False)
    created_at: datetime = created_at_field()
    updated_at: datetime = created_at_field()


class ConversationMember(Base, table=True):
    """Membership of a user in a conversation with their read marker.

    Table: conversation_members
    """

    __tablename__ = "conversation_members"
    __table_args__ = (UniqueConstraint("conversation_id", "user_id", name="uq_conversation_members_conv_user"),)

    id: str = id_field()
    conversation_id: str = Field(foreign_key="conversations.id", index=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    role: ConversationMemberRole = Field(default=ConversationMemberRole.member, sa_type=String(16))
    joined_at: datetime = created_at_field()
    last_read_at: Optional[datetime] = datetime_field()


class ChatMessage(Base, table=True):
    """Message posted in a conversation.

    Table: chat_messages
    """

    __tablename__ = "chat_messages"
    __table_args__ = (Index("ix_chat_messages_conv_created", "conversation_id", "created_at"),)

    id: str = id_field()
    conversation_id: str = Field(foreign_key="conversations.id", max_length=36)
    sender_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    thread_root_id: Optional[str] = Field(default=None, index=True, max_length=36)
    body_html: str = Field(default="", sa_type=Text)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    edited_at: Optional[datetime] = datetime_field()
    deleted_at: Optional[datetime] = datetime_field()


class ChatAttachment(Base, table=True):
    """File attached to a chat message.

    Table: chat_attachments
    """

    __tablename__ = "chat_attachments"

    id: str = id_field()
    message_id: str = Field(foreign_key="chat_messages.id", index=True, max_length=36)
    file_name: str = Field(max_length=260)
    content_type: str = Field(default="application/octet-stream", max_length=200)
    file_size: int = Field(default=0, sa_type=BigInteger)
    storage_path: str = Field(max_length=1024)


class ChatReaction(Base, table=True):
    """Emoji reaction of a user on a chat message.

    Table: chat_reactions
    """

    __tablename__ = "chat_reactions"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", "emoji", name="uq_chat_reactions_message_user_emoji"),
    )

    id: str = id_field()
    message_id: str = Field(foreign_key="chat_messages.id", index=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", max_length=36)
    emoji: str = Field(max_length=32)
    created_at: datetime = created_at_field()
