"""
Chat repositories.

Data access for conversations, memberships, chat messages, reactions and
attachments.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.models.domain.enums import ConversationType

from ..entities.chat import ChatAttachment, ChatMessage, ChatReaction, Conversation, ConversationMember
from .base import QueryBuilder, SQLModelRepository


class ConversationRepository(SQLModelRepository[Conversation]):
    """Repository for conversations and their members."""

    order_by = (Conversation.updated_at.desc(),)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Conversation)

    async def members(self, conversation_id: str) -> List[ConversationMember]:
        stmt = (
            select(ConversationMember)
            .where(ConversationMember.conversation_id == conversation_id)
            .order_by(ConversationMember.joined_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def members_for(self, conversation_ids: Sequence[str]) -> Dict[str, List[ConversationMember]]:
        if not conversation_ids:
            return {}
        stmt = select(ConversationMember).where(ConversationMember.conversation_id.in_(list(conversation_ids)))
        result = await self.session.execute(stmt)
        grouped: Dict[str, List[ConversationMember]] = {}
        for member in result.scalars().all():
            grouped.setdefault(member.conversation_id, []).append(member)
        return grouped

    async def get_member(self, conversation_id: str, user_id: str) -> Optional[ConversationMember]:
        stmt = select(ConversationMember).where(
            ConversationMember.conversation_id == conversation_id, ConversationMember.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def memberships(self, user_id: str) -> List[Tuple[Conversation, ConversationMember]]:
        stmt = (
            select(Conversation, ConversationMember)
            .join(ConversationMember, ConversationMember.conversation_id == Conversation.id)
            .where(ConversationMember.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return [(conversation, member) for conversation, member in result.all()]

    async def conversation_ids_for(self, user_id: str) -> List[str]:
        stmt = select(ConversationMember.conversation_id).where(ConversationMember.user_id == user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_direct(self, user_a: str, user_b: str) -> Optional[Conversation]:
        """Direct conversation whose members are exactly ``user_a`` and ``user_b``."""
        with_a = select(ConversationMember.conversation_id).where(ConversationMember.user_id == user_a)
        with_b = select(ConversationMember.conversation_id).where(ConversationMember.user_id == user_b)
        pairs = (
            select(ConversationMember.conversation_id)
            .group_by(ConversationMember.conversation_id)
            .having(func.count() == 2)
        )
        stmt = select(Conversation).where(
            Conversation.type == ConversationType.direct.value,
            Conversation.id.in_(with_a),
            Conversation.id.in_(with_b),
            Conversation.id.in_(pairs),
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def unread_counts(self, user_id: str) -> Dict[str, int]:
        """Per conversation: messages after the user's read marker, not sent by them, not deleted."""
        stmt = (
            select(ChatMessage.conversation_id, func.count())
            .join(
                ConversationMember,
                and_(
                    ConversationMember.conversation_id == ChatMessage.conversation_id,
                    ConversationMember.user_id == user_id,
                ),
            )
            .where(
                ChatMessage.sender_id != user_id,
                ChatMessage.deleted_at.is_(None),
                or_(ConversationMember.last_read_at.is_(None), ChatMessage.created_at > ConversationMember.last_read_at),
            )
            .group_by(ChatMessage.conversation_id)
        )
        result = await self.session.execute(stmt)
        return {conversation_id: int(count) for conversation_id, count in result.all()}

    async def last_message_times(self, conversation_ids: Sequence[str]) -> Dict[str, datetime]:
        if not conversation_ids:
            return {}
        stmt = (
            select(ChatMessage.conversation_id, func.max(ChatMessage.created_at))
            .where(ChatMessage.conversation_id.in_(list(conversation_ids)), ChatMessage.deleted_at.is_(None))
            .group_by(ChatMessage.conversation_id)
        )
        result = await self.session.execute(stmt)
        return {conversation_id: last for conversation_id, last in result.all() if last is not None}


class ChatMessageRepository(SQLModelRepository[ChatMessage]):
    """Repository for chat messages with their reactions and attachments."""

    order_by = (ChatMessage.created_at,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ChatMessage)

    async def history(
        self,
        conversation_id: str,
        before: Optional[datetime] = None,
        take: int = 50,
        thread_root_id: Optional[str] = None,
    ) -> List[ChatMessage]:
        """Page of live messages before ``before``, returned oldest first.

        Without ``thread_root_id`` only thread roots are returned; with it only that
        thread's replies.
        """
        stmt = select(ChatMessage).where(
            ChatMessage.conversation_id == conversation_id, ChatMessage.deleted_at.is_(None)
        )
        if thread_root_id:
            stmt = stmt.where(ChatMessage.thread_root_id == thread_root_id)
        else:
            stmt = stmt.where(ChatMessage.thread_root_id.is_(None))
        if before is not None:
            stmt = stmt.where(ChatMessage.created_at < before)
        stmt = stmt.order_by(ChatMessage.created_at.desc()).limit(take)
        result = await self.session.execute(stmt)
        return list(reversed(result.scalars().all()))

    async def search(self, conversation_ids: Sequence[str], term: str, take: int = 50) -> List[ChatMessage]:
        if not conversation_ids:
            return []
        stmt = (
            select(ChatMessage)
            .where(
                ChatMessage.conversation_id.in_(list(conversation_ids)),
                ChatMessage.deleted_at.is_(None),
                QueryBuilder.contains(ChatMessage.body_html, term),
            )
            .order_by(ChatMessage.created_at.desc())
            .limit(take)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def thread_reply_counts(self, message_ids: Sequence[str]) -> Dict[str, int]:
        if not message_ids:
            return {}
        stmt = (
            select(ChatMessage.thread_root_id, func.count())
            .where(ChatMessage.thread_root_id.in_(list(message_ids)), ChatMessage.deleted_at.is_(None))
            .group_by(ChatMessage.thread_root_id)
        )
        result = await self.session.execute(stmt)
        return {root_id: int(count) for root_id, count in result.all()}

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    async def reactions_for(self, message_ids: Sequence[str]) -> Dict[str, List[ChatReaction]]:
        if not message_ids:
            return {}
        stmt = (
            select(ChatReaction)
            .where(ChatReaction.message_id.in_(list(message_ids)))
            .order_by(ChatReaction.created_at)
        )
        result = await self.session.execute(stmt)
        grouped: Dict[str, List[ChatReaction]] = {}
        for reaction in result.scalars().all():
            grouped.setdefault(reaction.message_id, []).append(reaction)
        return grouped

    async def get_reaction(self, message_id: str, user_id: str, emoji: str) -> Optional[ChatReaction]:
        stmt = select(ChatReaction).where(
            ChatReaction.message_id == message_id, ChatReaction.user_id == user_id, ChatReaction.emoji == emoji
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    async def attachments_for(self, message_ids: Sequence[str]) -> Dict[str, List[ChatAttachment]]:
        if not message_ids:
            return {}
        stmt = select(ChatAttachment).where(ChatAttachment.message_id.in_(list(message_ids)))
        result = await self.session.execute(stmt)
        grouped: Dict[str, List[ChatAttachment]] = {}
        for attachment in result.scalars().all():
            grouped.setdefault(attachment.message_id, []).append(attachment)
        return grouped
