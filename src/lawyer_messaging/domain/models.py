"""Domain models for the messaging service."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Mongo ObjectIds, uuid hex strings and short ids all fit. No underscore: it
# separates the two ids in a conversation room name.
ID_PATTERN = r"^[A-Za-z0-9-]{1,64}$"


def new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    USER = "user"
    LAWYER = "lawyer"


class MessageType(str, Enum):
    TEXT = "text"
    SERVICE_REQUEST = "service_request"
    CONSULTATION_REQUEST = "consultation_request"


class ServiceRequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ServiceRequestPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(CamelModel):
    """User record owned by the account service."""

    id: str = Field(default_factory=new_id)
    name: str
    avatar: Optional[str] = None
    role: UserRole = UserRole.USER
    email: Optional[str] = None


class UserSummary(CamelModel):
    """Display identity attached to messages and conversations."""

    id: str
    name: str
    avatar: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, name=user.name, avatar=user.avatar)


class Service(CamelModel):
    """Lawyer service listing, owned by the service catalogue."""

    id: str = Field(default_factory=new_id)
    title: str
    lawyer: str
    category: str = "Other"
    is_active: bool = True


class ServiceRequestPayload(CamelModel):
    """Snapshot of a service request taken when its message is sent."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    service_id: str
    case_details: str
    status: ServiceRequestStatus = ServiceRequestStatus.PENDING


class ServiceRequest(CamelModel):
    """Service request record created alongside a service-request message."""

    id: str = Field(default_factory=new_id)
    user: str
    lawyer: str
    service: str
    case_details: str = Field(max_length=1000)
    status: ServiceRequestStatus = ServiceRequestStatus.PENDING
    priority: ServiceRequestPriority = ServiceRequestPriority.MEDIUM
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Message(CamelModel):
    """Direct message between two users.

    Messages are frozen; the only change a message ever sees is the read
    transition, applied through `mark_read` which returns a new copy.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=new_id)
    sender: str
    receiver: str
    content: str = Field(min_length=1)
    message_type: MessageType = MessageType.TEXT
    is_read: bool = False
    read_at: Optional[datetime] = None
    service_request_payload: Optional[ServiceRequestPayload] = None
    created_at: datetime = Field(default_factory=utcnow)

    def mark_read(self, at: Optional[datetime] = None) -> "Message":
        """Return the read copy of this message; already-read messages are returned as-is."""
        if self.is_read:
            return self
        read_at = max(at or utcnow(), self.created_at)
        return self.model_copy(update={"is_read": True, "read_at": read_at})

    def counterpart(self, user_id: str) -> str:
        return self.receiver if self.sender == user_id else self.sender


class MessageView(CamelModel):
    """Message with sender and receiver resolved to display identities.

    A party whose account no longer exists resolves to None.
    """

    id: str
    sender: Optional[UserSummary]
    receiver: Optional[UserSummary]
    content: str
    message_type: MessageType
    is_read: bool
    read_at: Optional[datetime] = None
    service_request_payload: Optional[ServiceRequestPayload] = None
    created_at: datetime

    @classmethod
    def build(
        cls,
        message: Message,
        sender: Optional[UserSummary],
        receiver: Optional[UserSummary],
    ) -> "MessageView":
        return cls(
            id=message.id,
            sender=sender,
            receiver=receiver,
            content=message.content,
            message_type=message.message_type,
            is_read=message.is_read,
            read_at=message.read_at,
            service_request_payload=message.service_request_payload,
            created_at=message.created_at,
        )


class Conversation(CamelModel):
    """Derived summary of all messages between the requester and one counterpart."""

    id: str
    user: UserSummary
    last_message: Message
    unread_count: int = 0
