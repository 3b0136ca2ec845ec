"""
Chat use cases.

Channels (public or private) and direct conversations between two users. Message
changes are broadcast to the ``conv:{id}`` realtime group so open clients update
without polling.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.base import as_utc, utc_now
from boardmgmt.core.database.entities.chat import (
    ChatAttachment,
    ChatMessage,
    ChatReaction,
    Conversation,
    ConversationMember,
)
from boardmgmt.core.database.entities.identity import User
from boardmgmt.core.database.repositories import ChatMessageRepository, ConversationRepository, UserRepository
from boardmgmt.core.exceptions import NotFoundError, UnauthorizedError, ValidationFailedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.enums import ConversationMemberRole, ConversationType
from boardmgmt.core.models.io.chat import (
    ChatAttachmentRead,
    ChatMessageRead,
    ConversationDetail,
    ConversationMemberRead,
    ConversationSummary,
    ReactionSummary,
)

from .file_storage import FileStorage, UploadedFile, get_file_storage
from .realtime import (
    MESSAGE_CREATED,
    MESSAGE_DELETED,
    MESSAGE_EDITED,
    REACTION_UPDATED,
    TYPING,
    RealtimeHub,
    conversation_group,
    get_realtime_hub,
)
from .users import to_minimal_user

logger = get_logger(__name__)

MAX_CHANNEL_NAME_LENGTH = 120
MAX_EMOJI_LENGTH = 32
MIN_SEARCH_LENGTH = 2


class ChatService:
    """Conversations, messages, reactions and read markers."""

    def __init__(
        self,
        session: AsyncSession,
        hub: Optional[RealtimeHub] = None,
        storage: Optional[FileStorage] = None,
    ) -> None:
        self.session = session
        self.conversations = ConversationRepository(session)
        self.messages = ChatMessageRepository(session)
        self.users = UserRepository(session)
        self.hub = hub or get_realtime_hub()
        self.storage = storage or get_file_storage()

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def _get_conversation(self, conversation_id: str) -> Conversation:
        conversation = await self.conversations.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found.")
        return conversation

    async def _require_member(self, conversation_id: str, user_id: str) -> ConversationMember:
        member = await self.conversations.get_member(conversation_id, user_id)
        if member is None:
            raise UnauthorizedError("You are not a member of this conversation.")
        return member

    async def is_member(self, conversation_id: str, user_id: str) -> bool:
        return await self.conversations.get_member(conversation_id, user_id) is not None

    async def create_channel(
        self, creator_id: str, name: str, is_private: bool = False, member_ids: Sequence[str] = ()
    ) -> ConversationDetail:
        clean = (name or "").strip()
        if not clean:
            raise ValidationFailedError.for_field("name", "Channel name is required.")
        if len(clean) > MAX_CHANNEL_NAME_LENGTH:
            raise ValidationFailedError.for_field(
                "name", f"Channel name must be at most {MAX_CHANNEL_NAME_LENGTH} characters."
            )

        conversation = await self.conversations.create(
            Conversation(type=ConversationType.channel.value, name=clean, is_private=is_private)
        )
        others = [uid for uid in dict.fromkeys(member_ids) if uid and uid != creator_id]
        known = await self.users.get_many(others)
        members = [
            ConversationMember(
                conversation_id=conversation.id, user_id=creator_id, role=ConversationMemberRole.admin.value
            )
        ]
        members.extend(
            ConversationMember(conversation_id=conversation.id, user_id=uid, role=ConversationMemberRole.member.value)
            for uid in others
            if uid in known
        )
        await self.conversations.add_all(members)
        await self.session.commit()
        logger.info(f"Channel '{clean}' ({conversation.id}) created by {creator_id} with {len(members)} member(s)")
        return await self.get_conversation(conversation.id, creator_id)

    async def create_or_get_direct(self, user_id: str, other_user_id: str) -> ConversationDetail:
        if not other_user_id or other_user_id == user_id:
            raise ValidationFailedError.for_field("user_id", "Cannot start a direct conversation with yourself.")
        if await self.users.get_by_id(other_user_id) is None:
            raise NotFoundError("User not found.")

        existing = await self.conversations.find_direct(user_id, other_user_id)
        if existing is not None:
            return await self.get_conversation(existing.id, user_id)

        conversation = await self.conversations.create(
            Conversation(type=ConversationType.direct.value, name=None, is_private=True)
        )
        await self.conversations.add_all(
            [
                ConversationMember(
                    conversation_id=conversation.id, user_id=uid, role=ConversationMemberRole.member.value
                )
                for uid in (user_id, other_user_id)
            ]
        )
        await self.session.commit()
        logger.info(f"Direct conversation {conversation.id} opened between {user_id} and {other_user_id}")
        return await self.get_conversation(conversation.id, user_id)

    async def join(self, conversation_id: str, user_id: str) -> None:
        conversation = await self._get_conversation(conversation_id)
        if await self.is_member(conversation_id, user_id):
            return
        if conversation.is_private or ConversationType(conversation.type) == ConversationType.direct:
            raise UnauthorizedError("This conversation is private.")
        await self.conversations.add_all(
            [
                ConversationMember(
                    conversation_id=conversation_id, user_id=user_id, role=ConversationMemberRole.member.value
                )
            ]
        )
        await self.session.commit()

    async def leave(self, conversation_id: str, user_id: str) -> None:
        await self._get_conversation(conversation_id)
        member = await self.conversations.get_member(conversation_id, user_id)
        if member is None:
            return
        await self.session.delete(member)
        await self.session.commit()
        await self.hub.leave_user(user_id, conversation_group(conversation_id))

    async def mark_read(self, conversation_id: str, user_id: str, at: Optional[datetime] = None) -> None:
        """Move the read marker forward; an older timestamp is ignored."""
        member = await self._require_member(conversation_id, user_id)
        at = as_utc(at) or utc_now()
        if member.last_read_at is not None and as_utc(member.last_read_at) >= at:
            return
        member.last_read_at = at
        self.session.add(member)
        await self.session.commit()

    @staticmethod
    def _display_name(
        conversation: Conversation, members: Sequence[ConversationMember], users: Dict[str, User], user_id: str
    ) -> str:
        if ConversationType(conversation.type) == ConversationType.direct:
            other = next((m for m in members if m.user_id != user_id), None)
            user: Optional[User] = users.get(other.user_id) if other else None
            return (user.full_name or user.email) if user else "Direct message"
        return conversation.name or ""

    async def list_conversations(self, user_id: str) -> List[ConversationSummary]:
        memberships = await self.conversations.memberships(user_id)
        ids = [conversation.id for conversation, _ in memberships]
        members = await self.conversations.members_for(ids)
        users = await self.users.get_many({m.user_id for group in members.values() for m in group})
        unread = await self.conversations.unread_counts(user_id)
        last = await self.conversations.last_message_times(ids)

        summaries = []
        for conversation, _ in memberships:
            group = members.get(conversation.id, [])
            summaries.append(
                ConversationSummary(
                    id=conversation.id,
                    type=ConversationType(conversation.type),
                    name=self._display_name(conversation, group, users, user_id),
                    is_private=conversation.is_private,
                    member_count=len(group),
                    unread_count=unread.get(conversation.id, 0),
                    last_message_at=as_utc(last.get(conversation.id)),
                    updated_at=as_utc(conversation.updated_at),
                )
            )
        summaries.sort(key=lambda s: s.last_message_at or s.updated_at, reverse=True)
        return summaries

    async def get_conversation(self, conversation_id: str, user_id: str) -> ConversationDetail:
        conversation = await self._get_conversation(conversation_id)
        await self._require_member(conversation_id, user_id)
        members = await self.conversations.members(conversation_id)
        users = await self.users.get_many([m.user_id for m in members])
        unread = await self.conversations.unread_counts(user_id)
        last = await self.conversations.last_message_times([conversation_id])
        return ConversationDetail(
            id=conversation.id,
            type=ConversationType(conversation.type),
            name=self._display_name(conversation, members, users, user_id),
            is_private=conversation.is_private,
            member_count=len(members),
            unread_count=unread.get(conversation.id, 0),
            last_message_at=as_utc(last.get(conversation.id)),
            updated_at=as_utc(conversation.updated_at),
            members=[
                ConversationMemberRead(
                    user_id=m.user_id,
                    name=to_minimal_user(users.get(m.user_id), m.user_id).name,
                    email=users[m.user_id].email if m.user_id in users else None,
                    role=ConversationMemberRole(m.role),
                    joined_at=as_utc(m.joined_at),
                    last_read_at=as_utc(m.last_read_at),
                )
                for m in members
            ],
        )

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def _get_message(self, message_id: str) -> ChatMessage:
        message = await self.messages.get_by_id(message_id)
        if message is None or message.deleted_at is not None:
            raise NotFoundError("Message not found.")
        return message

    async def send(
        self,
        conversation_id: str,
        user_id: str,
        body_html: str,
        thread_root_id: Optional[str] = None,
        attachments: Sequence[UploadedFile] = (),
    ) -> ChatMessageRead:
        conversation = await self._get_conversation(conversation_id)
        await self._require_member(conversation_id, user_id)
        if not (body_html or "").strip() and not attachments:
            raise ValidationFailedError.for_field("body_html", "Message body is required.")
        if thread_root_id:
            root = await self.messages.get_by_id(thread_root_id)
            if root is None or root.conversation_id != conversation_id:
                raise ValidationFailedError.for_field("thread_root_id", "Thread root is not in this conversation.")

        message = await self.messages.create(
            ChatMessage(
                conversation_id=conversation_id,
                sender_id=user_id,
                thread_root_id=thread_root_id or None,
                body_html=body_html or "",
            )
        )
        stored = []
        for upload in attachments:
            saved = await self.storage.save(upload)
            stored.append(
                ChatAttachment(
                    message_id=message.id,
                    file_name=upload.file_name,
                    content_type=saved.content_type,
                    file_size=saved.size,
                    storage_path=saved.url,
                )
            )
        if stored:
            await self.messages.add_all(stored)
        conversation.updated_at = utc_now()
        self.session.add(conversation)
        await self.session.commit()

        read = (await self._to_reads([message], user_id))[0]
        await self.hub.emit(conversation_group(conversation_id), MESSAGE_CREATED, read)
        return read

    async def edit(self, message_id: str, user_id: str, body_html: str) -> ChatMessageRead:
        message = await self._get_message(message_id)
        if message.sender_id != user_id:
            raise UnauthorizedError("Only the sender can edit this message.")
        if not (body_html or "").strip():
            raise ValidationFailedError.for_field("body_html", "Message body is required.")
        message.body_html = body_html
        message.edited_at = utc_now()
        self.session.add(message)
        await self.session.commit()

        read = (await self._to_reads([message], user_id))[0]
        await self.hub.emit(conversation_group(message.conversation_id), MESSAGE_EDITED, read)
        return read

    async def delete(self, message_id: str, user_id: str) -> None:
        message = await self._get_message(message_id)
        if message.sender_id != user_id:
            raise UnauthorizedError("Only the sender can delete this message.")
        message.body_html = ""
        message.deleted_at = utc_now()
        self.session.add(message)
        await self.session.commit()
        await self.hub.emit(
            conversation_group(message.conversation_id),
            MESSAGE_DELETED,
            {"id": message.id, "conversation_id": message.conversation_id, "thread_root_id": message.thread_root_id},
        )

    async def add_reaction(self, message_id: str, user_id: str, emoji: str) -> List[ReactionSummary]:
        message = await self._get_message(message_id)
        await self._require_member(message.conversation_id, user_id)
        emoji = self._clean_emoji(emoji)
        if await self.messages.get_reaction(message_id, user_id, emoji) is None:
            self.session.add(ChatReaction(message_id=message_id, user_id=user_id, emoji=emoji))
            await self.session.commit()
        return await self._broadcast_reactions(message, user_id)

    async def remove_reaction(self, message_id: str, user_id: str, emoji: str) -> List[ReactionSummary]:
        message = await self._get_message(message_id)
        await self._require_member(message.conversation_id, user_id)
        reaction = await self.messages.get_reaction(message_id, user_id, self._clean_emoji(emoji))
        if reaction is not None:
            await self.session.delete(reaction)
            await self.session.commit()
        return await self._broadcast_reactions(message, user_id)

    @staticmethod
    def _clean_emoji(emoji: str) -> str:
        clean = (emoji or "").strip()
        if not clean or len(clean) > MAX_EMOJI_LENGTH:
            raise ValidationFailedError.for_field("emoji", f"Emoji must be 1 to {MAX_EMOJI_LENGTH} characters.")
        return clean

    async def _broadcast_reactions(self, message: ChatMessage, user_id: str) -> List[ReactionSummary]:
        reactions = (await self.messages.reactions_for([message.id])).get(message.id, [])
        await self.hub.emit(
            conversation_group(message.conversation_id),
            REACTION_UPDATED,
            {"message_id": message.id, "reactions": self._group_reactions(reactions, None)},
        )
        return self._group_reactions(reactions, user_id)

    @staticmethod
    def _group_reactions(reactions: Sequence[ChatReaction], user_id: Optional[str]) -> List[ReactionSummary]:
        grouped: Dict[str, ReactionSummary] = {}
        for reaction in reactions:
            summary = grouped.setdefault(reaction.emoji, ReactionSummary(emoji=reaction.emoji, count=0))
            summary.count += 1
            if user_id and reaction.user_id == user_id:
                summary.reacted_by_me = True
        return list(grouped.values())

    async def history(
        self,
        conversation_id: str,
        user_id: str,
        before: Optional[datetime] = None,
        take: int = 50,
        thread_root_id: Optional[str] = None,
    ) -> List[ChatMessageRead]:
        await self._get_conversation(conversation_id)
        await self._require_member(conversation_id, user_id)
        take = min(max(take, 1), 200)
        messages = await self.messages.history(conversation_id, before=before, take=take, thread_root_id=thread_root_id)
        return await self._to_reads(messages, user_id)

    async def search(self, user_id: str, term: str, take: int = 50) -> List[ChatMessageRead]:
        clean = (term or "").strip()
        if len(clean) < MIN_SEARCH_LENGTH:
            raise ValidationFailedError.for_field("q", f"Search term must be at least {MIN_SEARCH_LENGTH} characters.")
        conversation_ids = await self.conversations.conversation_ids_for(user_id)
        messages = await self.messages.search(conversation_ids, clean, take=min(max(take, 1), 200))
        return await self._to_reads(messages, user_id)

    async def typing(self, conversation_id: str, user_id: str, is_typing: bool = True) -> None:
        await self._require_member(conversation_id, user_id)
        user = await self.users.get_by_id(user_id)
        await self.hub.emit(
            conversation_group(conversation_id),
            TYPING,
            {
                "conversation_id": conversation_id,
                "user": to_minimal_user(user, user_id),
                "is_typing": is_typing,
            },
        )

    async def _to_reads(self, messages: Sequence[ChatMessage], user_id: Optional[str]) -> List[ChatMessageRead]:
        ids = [m.id for m in messages]
        senders = await self.users.get_many({m.sender_id for m in messages})
        reactions = await self.messages.reactions_for(ids)
        replies = await self.messages.thread_reply_counts(ids)
        attachments = await self.messages.attachments_for(ids)
        return [
            ChatMessageRead(
                id=m.id,
                conversation_id=m.conversation_id,
                thread_root_id=m.thread_root_id,
                body_html=m.body_html,
                created_at=as_utc(m.created_at),
                edited_at=as_utc(m.edited_at),
                deleted_at=as_utc(m.deleted_at),
                sender=to_minimal_user(senders.get(m.sender_id), m.sender_id),
                reactions=self._group_reactions(reactions.get(m.id, []), user_id),
                thread_reply_count=replies.get(m.id, 0),
                attachments=[ChatAttachmentRead.model_validate(a) for a in attachments.get(m.id, [])],
            )
            for m in messages
        ]
