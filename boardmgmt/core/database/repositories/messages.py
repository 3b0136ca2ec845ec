"""
Message repository.

Data access for internal messages, their recipients and attachments.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.models.domain.enums import MessagePriority, MessageStatus

from ..entities.messages import Message, MessageAttachment, MessageRecipient
from .base import QueryBuilder, SQLModelRepository


def _activity_time():
    return func.coalesce(Message.sent_at, Message.updated_at)


class MessageRepository(SQLModelRepository[Message]):
    """Repository for messages, recipients and attachments."""

    order_by = (_activity_time().desc(),)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Message)

    async def search(
        self,
        q: Optional[str] = None,
        status: Optional[MessageStatus] = None,
        priority: Optional[MessagePriority] = None,
        for_user_id: Optional[str] = None,
        sent_by_user_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[Message], int]:
        """Filtered, paged message listing, most recent activity first.

        Returns:
            Tuple of (page of messages, total matching count)
        """
        stmt = select(Message)
        if q and q.strip():
            stmt = stmt.where(
                or_(QueryBuilder.contains(Message.subject, q), QueryBuilder.contains(Message.body, q))
            )
        if status is not None:
            stmt = stmt.where(Message.status == int(status))
        if priority is not None:
            stmt = stmt.where(Message.priority == int(priority))
        if for_user_id:
            received = select(MessageRecipient.message_id).where(MessageRecipient.user_id == for_user_id)
            # Drafts never reach an inbox
            stmt = stmt.where(Message.id.in_(received), Message.status == int(MessageStatus.sent))
        if sent_by_user_id:
            stmt = stmt.where(Message.sender_id == sent_by_user_id)

        total_result = await self.session.execute(select(func.count()).select_from(stmt.subquery()))
        total = int(total_result.scalar_one())

        stmt = stmt.order_by(_activity_time().desc())
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def between(self, user_a: str, user_b: str) -> List[Message]:
        """Sent messages exchanged between two users in either direction, oldest first."""
        a_to_b = and_(
            Message.sender_id == user_a,
            Message.id.in_(select(MessageRecipient.message_id).where(MessageRecipient.user_id == user_b)),
        )
        b_to_a = and_(
            Message.sender_id == user_b,
            Message.id.in_(select(MessageRecipient.message_id).where(MessageRecipient.user_id == user_a)),
        )
        stmt = (
            select(Message)
            .where(Message.status == int(MessageStatus.sent), or_(a_to_b, b_to_a))
            .order_by(_activity_time())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def recent_sent(self, limit: int) -> List[Message]:
        stmt = (
            select(Message)
            .where(Message.status == int(MessageStatus.sent))
            .order_by(Message.sent_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Recipients
    # ------------------------------------------------------------------

    async def recipients(self, message_id: str) -> List[MessageRecipient]:
        result = await self.session.execute(select(MessageRecipient).where(MessageRecipient.message_id == message_id))
        return list(result.scalars().all())

    async def recipient_ids(self, message_id: str) -> List[str]:
        stmt = select(MessageRecipient.user_id).where(MessageRecipient.message_id == message_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_recipient(self, message_id: str, user_id: str) -> Optional[MessageRecipient]:
        stmt = select(MessageRecipient).where(
            MessageRecipient.message_id == message_id, MessageRecipient.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def recipient_counts(self, message_ids: Sequence[str]) -> Dict[str, int]:
        if not message_ids:
            return {}
        stmt = (
            select(MessageRecipient.message_id, func.count())
            .where(MessageRecipient.message_id.in_(list(message_ids)))
            .group_by(MessageRecipient.message_id)
        )
        result = await self.session.execute(stmt)
        return {message_id: int(count) for message_id, count in result.all()}

    async def read_flags(self, message_ids: Sequence[str], user_id: str) -> Dict[str, bool]:
        if not message_ids:
            return {}
        stmt = select(MessageRecipient.message_id, MessageRecipient.is_read).where(
            MessageRecipient.message_id.in_(list(message_ids)), MessageRecipient.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return {message_id: bool(is_read) for message_id, is_read in result.all()}

    async def sync_recipients(self, message_id: str, user_ids: Iterable[str]) -> None:
        """Make the recipient set equal to ``user_ids``, keeping read state of retained rows."""
        wanted = list(dict.fromkeys(uid for uid in user_ids if uid))
        current = {row.user_id: row for row in await self.recipients(message_id)}
        for user_id, row in current.items():
            if user_id not in wanted:
                await self.session.delete(row)
        self.session.add_all(
            [MessageRecipient(message_id=message_id, user_id=uid) for uid in wanted if uid not in current]
        )
        await self.session.flush()

    async def count_unread(self, user_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(MessageRecipient)
            .join(Message, Message.id == MessageRecipient.message_id)
            .where(
                MessageRecipient.user_id == user_id,
                MessageRecipient.is_read.is_(False),
                Message.status == int(MessageStatus.sent),
            )
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def unread_for(
        self, user_id: str, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> List[Message]:
        """Sent messages ``user_id`` has not read yet, newest first."""
        stmt = (
            select(Message)
            .join(MessageRecipient, Message.id == MessageRecipient.message_id)
            .where(
                MessageRecipient.user_id == user_id,
                MessageRecipient.is_read.is_(False),
                Message.status == int(MessageStatus.sent),
            )
            .order_by(Message.sent_at.desc())
        )
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    async def attachments(self, message_id: str) -> List[MessageAttachment]:
        stmt = select(MessageAttachment).where(MessageAttachment.message_id == message_id)
        result = await self.session.execute(stmt.order_by(MessageAttachment.file_name))
        return list(result.scalars().all())

    async def ids_with_attachments(self, message_ids: Sequence[str]) -> List[str]:
        if not message_ids:
            return []
        stmt = (
            select(MessageAttachment.message_id)
            .where(MessageAttachment.message_id.in_(list(message_ids)))
            .distinct()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_children(self, message_id: str) -> None:
        await self.session.execute(delete(MessageRecipient).where(MessageRecipient.message_id == message_id))
        await self.session.execute(delete(MessageAttachment).where(MessageAttachment.message_id == message_id))
