"""
Internal messages.

Messages start as drafts or are sent straight away. Sending notifies every
recipient on their realtime user group and, when an email provider is configured,
by email. Sent messages are immutable.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.base import as_utc, utc_now
from boardmgmt.core.database.entities.messages import Message, MessageAttachment
from boardmgmt.core.database.repositories import MessageRepository, UserRepository
from boardmgmt.core.exceptions import ExternalServiceError, InvalidOperationError, NotFoundError, ValidationFailedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.enums import MessagePriority, MessageStatus
from boardmgmt.core.models.domain.text import normalize_subject
from boardmgmt.core.models.io.messages import (
    MessageAttachmentRead,
    MessageBubble,
    MessageCreate,
    MessageListItem,
    MessageListResponse,
    MessageRead,
    MessageRecipientRead,
    MessageThread,
    MessageUpdate,
)
from boardmgmt.server.core.config import settings

from .email import EmailSender, get_email_sender
from .file_storage import FileStorage, UploadedFile, get_file_storage
from .realtime import INBOX_MESSAGE, READ_RECEIPT, RealtimeHub, get_realtime_hub, user_group
from .users import to_minimal_user

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


class MessageService:
    """Compose, send and read internal messages."""

    def __init__(
        self,
        session: AsyncSession,
        hub: Optional[RealtimeHub] = None,
        email: Optional[EmailSender] = None,
        storage: Optional[FileStorage] = None,
    ) -> None:
        self.session = session
        self.messages = MessageRepository(session)
        self.users = UserRepository(session)
        self.hub = hub or get_realtime_hub()
        self.email = email or get_email_sender()
        self.storage = storage or get_file_storage()

    async def _get(self, message_id: str) -> Message:
        message = await self.messages.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message not found.")
        return message

    @staticmethod
    def _require_recipients(recipient_ids: Sequence[str]) -> None:
        if not recipient_ids:
            raise ValidationFailedError.for_field("recipient_ids", "At least one recipient is required.")

    async def create(self, sender_id: str, payload: MessageCreate) -> MessageRead:
        recipient_ids = list(dict.fromkeys(uid for uid in payload.recipient_ids if uid))
        if not payload.as_draft:
            self._require_recipients(recipient_ids)

        now = utc_now()
        message = await self.messages.create(
            Message(
                sender_id=sender_id,
                subject=payload.subject.strip(),
                body=payload.body,
                priority=payload.priority,
                read_receipt_requested=payload.read_receipt_requested,
                is_confidential=payload.is_confidential,
                status=MessageStatus.draft if payload.as_draft else MessageStatus.sent,
                sent_at=None if payload.as_draft else now,
                created_at=now,
                updated_at=now,
            )
        )
        await self.messages.sync_recipients(message.id, recipient_ids)
        await self.session.commit()
        logger.info(f"Message {message.id} {'drafted' if payload.as_draft else 'sent'} by {sender_id}")

        if not payload.as_draft:
            await self._notify(message, recipient_ids)
        return await self.get(message.id)

    async def send(self, message_id: str) -> MessageRead:
        message = await self._get(message_id)
        if MessageStatus(message.status) == MessageStatus.sent:
            raise InvalidOperationError("Message has already been sent.")
        recipient_ids = await self.messages.recipient_ids(message.id)
        self._require_recipients(recipient_ids)

        message.status = MessageStatus.sent
        message.sent_at = utc_now()
        await self.messages.update(message)
        await self.session.commit()
        logger.info(f"Draft {message.id} sent to {len(recipient_ids)} recipient(s)")
        await self._notify(message, recipient_ids)
        return await self.get(message.id)

    async def update(self, message_id: str, payload: MessageUpdate) -> MessageRead:
        message = await self._get(message_id)
        if MessageStatus(message.status) == MessageStatus.sent:
            raise InvalidOperationError("Sent messages cannot be edited.")

        if payload.subject is not None:
            message.subject = payload.subject.strip()
        if payload.body is not None:
            message.body = payload.body
        if payload.priority is not None:
            message.priority = payload.priority
        if payload.read_receipt_requested is not None:
            message.read_receipt_requested = payload.read_receipt_requested
        if payload.is_confidential is not None:
            message.is_confidential = payload.is_confidential
        await self.messages.update(message)
        if payload.recipient_ids is not None:
            await self.messages.sync_recipients(message.id, payload.recipient_ids)
        await self.session.commit()
        return await self.get(message.id)

    async def delete(self, message_id: str) -> None:
        message = await self._get(message_id)
        urls = [a.storage_path for a in await self.messages.attachments(message.id)]
        await self.messages.delete_children(message.id)
        await self.messages.delete(message.id)
        await self.session.commit()
        for url in urls:
            await self.storage.delete(url)
        logger.info(f"Message {message_id} deleted")

    async def mark_read(self, message_id: str, user_id: str) -> None:
        """
        Mark the message read for ``user_id`` and publish a read receipt.

        The reader's own connections always get the receipt so other tabs can drop
        the unread badge. The sender gets it only when a receipt was requested.
        """
        message = await self._get(message_id)
        recipient = await self.messages.get_recipient(message_id, user_id)
        if recipient is None:
            raise NotFoundError("You are not a recipient of this message.")
        if recipient.is_read:
            return
        recipient.is_read = True
        recipient.read_at = utc_now()
        self.session.add(recipient)
        await self.session.commit()

        payload = {"message_id": message.id, "user_id": user_id, "read_at": recipient.read_at}
        await self.hub.emit(user_group(user_id), READ_RECEIPT, payload)
        if message.read_receipt_requested and message.sender_id != user_id:
            await self.hub.emit(user_group(message.sender_id), READ_RECEIPT, payload)

    async def add_attachments(self, message_id: str, files: Sequence[UploadedFile]) -> List[MessageAttachmentRead]:
        message = await self._get(message_id)
        if not files:
            raise ValidationFailedError.for_field("files", "At least one file is required.")
        attachments = []
        for upload in files:
            stored = await self.storage.save(upload)
            attachments.append(
                MessageAttachment(
                    message_id=message.id,
                    file_name=upload.file_name,
                    content_type=stored.content_type,
                    file_size=stored.size,
                    storage_path=stored.url,
                )
            )
        await self.messages.add_all(attachments)
        message.updated_at = utc_now()
        self.session.add(message)
        await self.session.commit()
        return [MessageAttachmentRead.model_validate(a) for a in attachments]

    async def list(
        self,
        q: Optional[str] = None,
        status: Optional[MessageStatus] = None,
        priority: Optional[MessagePriority] = None,
        for_user_id: Optional[str] = None,
        sent_by_user_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> MessageListResponse:
        page = max(page, 1)
        page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
        messages, total = await self.messages.search(
            q=q,
            status=status,
            priority=priority,
            for_user_id=for_user_id,
            sent_by_user_id=sent_by_user_id,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        ids = [m.id for m in messages]
        senders = await self.users.get_many({m.sender_id for m in messages})
        counts = await self.messages.recipient_counts(ids)
        read = await self.messages.read_flags(ids, for_user_id) if for_user_id else {}
        with_files = set(await self.messages.ids_with_attachments(ids))

        items = [
            MessageListItem(
                id=m.id,
                subject=m.subject,
                sender_id=m.sender_id,
                sender_name=senders[m.sender_id].name if m.sender_id in senders else "",
                priority=MessagePriority(m.priority),
                status=MessageStatus(m.status),
                is_confidential=m.is_confidential,
                sent_at=m.sent_at,
                updated_at=m.updated_at,
                recipient_count=counts.get(m.id, 0),
                is_read=read.get(m.id, False),
                has_attachments=m.id in with_files,
            )
            for m in messages
        ]
        return MessageListResponse(items=items, total=total)

    async def get(self, message_id: str) -> MessageRead:
        message = await self._get(message_id)
        recipients = await self.messages.recipients(message.id)
        users = await self.users.get_many({message.sender_id, *(r.user_id for r in recipients)})
        sender = users.get(message.sender_id)
        return MessageRead(
            id=message.id,
            subject=message.subject,
            body=message.body,
            sender_id=message.sender_id,
            sender_name=sender.name if sender else "",
            priority=MessagePriority(message.priority),
            status=MessageStatus(message.status),
            read_receipt_requested=message.read_receipt_requested,
            is_confidential=message.is_confidential,
            sent_at=message.sent_at,
            created_at=message.created_at,
            updated_at=message.updated_at,
            recipients=[
                MessageRecipientRead(
                    user_id=r.user_id,
                    name=users[r.user_id].name if r.user_id in users else "",
                    email=users[r.user_id].email if r.user_id in users else None,
                    is_read=r.is_read,
                    read_at=r.read_at,
                )
                for r in recipients
            ],
            attachments=[MessageAttachmentRead.model_validate(a) for a in await self.messages.attachments(message.id)],
        )

    async def thread(self, message_id: str, user_id: str) -> MessageThread:
        """Messages with the anchor's subject exchanged between the caller and its other participants."""
        anchor = await self._get(message_id)
        others = set(await self.messages.recipient_ids(anchor.id))
        if anchor.sender_id != user_id:
            others.add(anchor.sender_id)
        others.discard(user_id)

        key = normalize_subject(anchor.subject)
        collected: Dict[str, Message] = {}
        for other_id in others:
            for message in await self.messages.between(user_id, other_id):
                if normalize_subject(message.subject) == key:
                    collected[message.id] = message
        ordered = sorted(collected.values(), key=lambda m: as_utc(m.sent_at or m.created_at))

        users = await self.users.get_many({user_id, *others, *(m.sender_id for m in ordered)})
        items = []
        for message in ordered:
            attachments = await self.messages.attachments(message.id)
            items.append(
                MessageBubble(
                    id=message.id,
                    sender=to_minimal_user(users.get(message.sender_id), message.sender_id),
                    body=message.body,
                    created_at=message.sent_at or message.created_at,
                    attachments=[MessageAttachmentRead.model_validate(a) for a in attachments],
                )
            )
        participants = [to_minimal_user(users.get(uid), uid) for uid in [user_id, *sorted(others)]]
        return MessageThread(anchor_message_id=anchor.id, subject=anchor.subject, participants=participants, items=items)

    async def _notify(self, message: Message, recipient_ids: Sequence[str]) -> None:
        payload = {
            "id": message.id,
            "subject": message.subject,
            "sender_id": message.sender_id,
            "priority": int(message.priority),
            "sent_at": message.sent_at,
        }
        for recipient_id in recipient_ids:
            await self.hub.emit(user_group(recipient_id), INBOX_MESSAGE, payload)

        if not settings.email.notify_on_message:
            return
        recipients = await self.users.get_many(recipient_ids)
        addresses = [u.email for u in recipients.values() if u.email]
        if not addresses:
            return
        try:
            await self.email.send(addresses, message.subject or "(no subject)", message.body)
        except ExternalServiceError as e:
            logger.warning(f"Email notification for message {message.id} failed: {e}")
