"""
Message store.

Owns message persistence and the derived conversation view: conversation
summaries with unread counts, paginated thread history (which marks the
thread read for the viewer), message creation and single-message read
receipts.
"""

from typing import Dict, Iterable, List, Optional

import structlog

from ..domain.models import (
    Conversation,
    Message,
    MessageType,
    MessageView,
    ServiceRequestPayload,
    UserSummary,
    utcnow,
)
from ..errors import NotFoundError, ValidationError
from ..repositories.base import Repository

logger = structlog.get_logger()

MAX_CONTENT_LENGTH = 1000


def _recency(message: Message):
    # createdAt ties fall back to the message id so ordering never depends on storage order
    return (message.created_at, message.id)


class MessageStore:
    """Message persistence and conversation aggregation over a repository."""

    def __init__(self, repository: Repository) -> None:
        self.repository = repository

    async def _summaries(self, user_ids: Iterable[str]) -> Dict[str, UserSummary]:
        users = await self.repository.get_users(user_ids)
        return {uid: UserSummary.from_user(user) for uid, user in users.items()}

    async def _views(self, messages: List[Message]) -> List[MessageView]:
        ids = {m.sender for m in messages} | {m.receiver for m in messages}
        summaries = await self._summaries(ids)
        return [
            MessageView.build(m, summaries.get(m.sender), summaries.get(m.receiver))
            for m in messages
        ]

    async def list_conversations(
        self, user_id: str, page: int = 1, limit: int = 20
    ) -> List[Conversation]:
        """One entry per counterpart, most recently active first."""
        messages = await self.repository.find_user_messages(user_id)

        last: Dict[str, Message] = {}
        unread: Dict[str, int] = {}
        for message in messages:
            other = message.counterpart(user_id)
            current = last.get(other)
            if current is None or _recency(message) > _recency(current):
                last[other] = message
            if message.receiver == user_id and not message.is_read:
                unread[other] = unread.get(other, 0) + 1
            else:
                unread.setdefault(other, 0)

        summaries = await self._summaries(last.keys())
        conversations = [
            Conversation(
                id=other,
                user=summaries[other],
                last_message=message,
                unread_count=unread[other],
            )
            for other, message in last.items()
            # counterparts whose account is gone drop out of the list
            if other in summaries
        ]
        conversations.sort(key=lambda c: _recency(c.last_message), reverse=True)

        offset = (page - 1) * limit
        logger.debug("conversations_listed", user_id=user_id, total=len(conversations))
        return conversations[offset : offset + limit]

    async def list_messages(
        self, user_id: str, other_user_id: str, page: int = 1, page_size: int = 50
    ) -> List[MessageView]:
        """Return a page of the thread in chronological order.

        Viewing a thread marks everything the counterpart sent to the viewer as
        read; this happens before the fetch so the page reflects it.
        """
        await self.repository.mark_read_between(other_user_id, user_id, utcnow())

        offset = (page - 1) * page_size
        newest_first = await self.repository.find_messages_between(
            user_id, other_user_id, limit=page_size, offset=offset
        )
        return await self._views(list(reversed(newest_first)))

    async def create_message(
        self,
        sender: str,
        receiver: str,
        content: str,
        message_type: MessageType = MessageType.TEXT,
        service_request_payload: Optional[ServiceRequestPayload] = None,
    ) -> MessageView:
        message_type = MessageType(message_type)
        if service_request_payload is not None and message_type is not MessageType.SERVICE_REQUEST:
            raise ValidationError("Only service request messages can carry service request details")

        content = (content or "").strip()
        if service_request_payload is not None:
            # generated from the service title and case details; the case details carry the cap
            if not content or len(service_request_payload.case_details) > MAX_CONTENT_LENGTH:
                raise ValidationError(
                    f"Case details must be at most {MAX_CONTENT_LENGTH} characters"
                )
        elif not 1 <= len(content) <= MAX_CONTENT_LENGTH:
            raise ValidationError(
                f"Message content must be between 1 and {MAX_CONTENT_LENGTH} characters"
            )

        summaries = await self._summaries([sender, receiver])
        if receiver not in summaries:
            raise NotFoundError("Receiver not found")

        message = await self.repository.create_message(
            Message(
                sender=sender,
                receiver=receiver,
                content=content,
                message_type=message_type,
                service_request_payload=service_request_payload,
            )
        )
        logger.info(
            "message_created",
            message_id=message.id,
            sender=sender,
            receiver=receiver,
            message_type=message_type.value,
        )
        return MessageView.build(message, summaries.get(sender), summaries.get(receiver))

    async def mark_read(self, message_id: str, user_id: str) -> Message:
        """Mark a message addressed to `user_id` as read; re-marking is a no-op."""
        message = await self.repository.mark_message_read(message_id, user_id, utcnow())
        if message is None:
            raise NotFoundError("Message not found")
        return message
