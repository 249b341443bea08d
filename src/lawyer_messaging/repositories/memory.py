"""In-memory repository implementation."""

import asyncio
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import structlog

from ..domain.models import Message, Service, ServiceRequest, User
from .base import Repository

logger = structlog.get_logger()


class InMemoryRepository(Repository):
    """Event-loop-safe in-memory document store.

    Messages are kept in insertion order, which plays the part of a document
    store's natural order.
    """

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._services: Dict[str, Service] = {}
        self._messages: Dict[str, Message] = {}
        self._service_requests: Dict[str, ServiceRequest] = {}
        self._lock = asyncio.Lock()
        logger.info("repository_initialized")

    async def add_user(self, user: User) -> User:
        """Seed a user record (owned by the account service)."""
        async with self._lock:
            self._users[user.id] = user
            return user

    async def add_service(self, service: Service) -> Service:
        """Seed a service listing (owned by the service catalogue)."""
        async with self._lock:
            self._services[service.id] = service
            return service

    async def get_user(self, user_id: str) -> Optional[User]:
        async with self._lock:
            return self._users.get(user_id)

    async def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        async with self._lock:
            return {uid: self._users[uid] for uid in set(user_ids) if uid in self._users}

    async def get_service(self, service_id: str) -> Optional[Service]:
        async with self._lock:
            service = self._services.get(service_id)
            if service is None:
                logger.warning("service_not_found", service_id=service_id)
            return service

    async def create_message(self, message: Message) -> Message:
        async with self._lock:
            if message.id in self._messages:
                raise ValueError(f"Message {message.id} already exists")
            self._messages[message.id] = message
            logger.info(
                "message_stored",
                message_id=message.id,
                message_type=message.message_type.value,
            )
            return message

    async def get_message(self, message_id: str) -> Optional[Message]:
        async with self._lock:
            return self._messages.get(message_id)

    async def find_user_messages(self, user_id: str) -> List[Message]:
        async with self._lock:
            return [
                m for m in self._messages.values()
                if m.sender == user_id or m.receiver == user_id
            ]

    async def find_messages_between(
        self, user_a: str, user_b: str, limit: int = 50, offset: int = 0
    ) -> List[Message]:
        pairs = {(user_a, user_b), (user_b, user_a)}
        async with self._lock:
            messages = [m for m in self._messages.values() if (m.sender, m.receiver) in pairs]
        messages.sort(key=lambda m: (m.created_at, m.id), reverse=True)
        return messages[offset : offset + limit]

    async def mark_read_between(self, sender: str, receiver: str, read_at: datetime) -> int:
        changed = 0
        async with self._lock:
            for message_id, message in self._messages.items():
                if message.sender == sender and message.receiver == receiver and not message.is_read:
                    self._messages[message_id] = message.mark_read(read_at)
                    changed += 1
        if changed:
            logger.info("messages_marked_read", sender=sender, receiver=receiver, count=changed)
        return changed

    async def mark_message_read(
        self, message_id: str, receiver: str, read_at: datetime
    ) -> Optional[Message]:
        async with self._lock:
            message = self._messages.get(message_id)
            if message is None or message.receiver != receiver:
                logger.warning("message_not_found", message_id=message_id, receiver=receiver)
                return None
            updated = message.mark_read(read_at)
            self._messages[message_id] = updated
            return updated

    async def create_service_request(self, service_request: ServiceRequest) -> ServiceRequest:
        async with self._lock:
            self._service_requests[service_request.id] = service_request
            logger.info(
                "service_request_stored",
                service_request_id=service_request.id,
                service_id=service_request.service,
            )
            return service_request

    async def get_service_request(self, request_id: str) -> Optional[ServiceRequest]:
        async with self._lock:
            return self._service_requests.get(request_id)

    async def delete_service_request(self, request_id: str) -> bool:
        async with self._lock:
            removed = self._service_requests.pop(request_id, None)
            if removed is not None:
                logger.info("service_request_deleted", service_request_id=request_id)
            return removed is not None
