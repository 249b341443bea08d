"""
Socket event schemas.

Inbound events form a discriminated union keyed on the event name, so every
payload is checked against the schema of the event it arrived on before any
handler sees it. Outbound payloads are plain models serialised with camelCase
keys.
"""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from ..domain.models import ID_PATTERN, CamelModel, utcnow

UserId = Annotated[str, Field(pattern=ID_PATTERN)]


class JoinConversation(CamelModel):
    event: Literal["join_conversation"]
    other_user_id: UserId


class LeaveConversation(CamelModel):
    event: Literal["leave_conversation"]
    other_user_id: UserId


class SendMessage(CamelModel):
    event: Literal["send_message"]
    recipient_id: UserId
    content: str = Field(min_length=1, max_length=1000)
    message_id: str = Field(min_length=1)


class MarkMessageRead(CamelModel):
    event: Literal["mark_message_read"]
    message_id: str = Field(min_length=1)
    sender_id: UserId


class TypingStart(CamelModel):
    event: Literal["typing_start"]
    recipient_id: UserId


class TypingStop(CamelModel):
    event: Literal["typing_stop"]
    recipient_id: UserId


class UserOnline(CamelModel):
    event: Literal["user_online"]


InboundEvent = Annotated[
    Union[
        JoinConversation,
        LeaveConversation,
        SendMessage,
        MarkMessageRead,
        TypingStart,
        TypingStop,
        UserOnline,
    ],
    Field(discriminator="event"),
]

INBOUND_EVENTS = (
    "join_conversation",
    "leave_conversation",
    "send_message",
    "mark_message_read",
    "typing_start",
    "typing_stop",
    "user_online",
)

_inbound = TypeAdapter(InboundEvent)


def parse_event(name: str, data) -> InboundEvent:
    """Validate a raw payload for the named event.

    Raises pydantic.ValidationError for unknown events, non-object payloads and
    schema violations.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        data = {"payload": data}
    return _inbound.validate_python({**data, "event": name})


class NewMessage(CamelModel):
    id: str
    sender_id: str
    recipient_id: str
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    is_read: bool = False


class MessageNotification(CamelModel):
    sender_id: str
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class MessageRead(CamelModel):
    message_id: str
    read_by: str
    timestamp: datetime = Field(default_factory=utcnow)


class UserTyping(CamelModel):
    user_id: str
    is_typing: bool


class UserStatus(CamelModel):
    user_id: str
    status: Literal["online", "offline"]
    timestamp: datetime = Field(default_factory=utcnow)


class ErrorEvent(CamelModel):
    message: str


def dump(payload: CamelModel) -> dict:
    """Serialise an outbound payload for the wire."""
    return payload.model_dump(by_alias=True, mode="json")
