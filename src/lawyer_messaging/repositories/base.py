"""Base repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..domain.models import Message, Service, ServiceRequest, User


class Repository(ABC):
    """Abstract document store for users, services, messages and service requests.

    Every write is atomic for a single document (or a single bulk update);
    nothing spans documents.
    """

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        """Retrieve a user by ID."""
        pass

    @abstractmethod
    async def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        """Retrieve the users that exist among the given IDs, keyed by ID."""
        pass

    @abstractmethod
    async def get_service(self, service_id: str) -> Optional[Service]:
        """Retrieve a service listing by ID."""
        pass

    @abstractmethod
    async def create_message(self, message: Message) -> Message:
        """Persist a new message."""
        pass

    @abstractmethod
    async def get_message(self, message_id: str) -> Optional[Message]:
        """Retrieve a message by ID."""
        pass

    @abstractmethod
    async def find_user_messages(self, user_id: str) -> List[Message]:
        """All messages the user sent or received, in insertion order."""
        pass

    @abstractmethod
    async def find_messages_between(
        self, user_a: str, user_b: str, limit: int = 50, offset: int = 0
    ) -> List[Message]:
        """Messages exchanged by the pair, newest first."""
        pass

    @abstractmethod
    async def mark_read_between(self, sender: str, receiver: str, read_at: datetime) -> int:
        """Mark every unread sender->receiver message as read; returns how many changed."""
        pass

    @abstractmethod
    async def mark_message_read(
        self, message_id: str, receiver: str, read_at: datetime
    ) -> Optional[Message]:
        """Mark one message addressed to `receiver` as read.

        Returns None when no such message exists for that receiver.
        """
        pass

    @abstractmethod
    async def create_service_request(self, service_request: ServiceRequest) -> ServiceRequest:
        """Persist a new service request."""
        pass

    @abstractmethod
    async def get_service_request(self, request_id: str) -> Optional[ServiceRequest]:
        """Retrieve a service request by ID."""
        pass

    @abstractmethod
    async def delete_service_request(self, request_id: str) -> bool:
        """Remove a service request; returns False when it did not exist."""
        pass
