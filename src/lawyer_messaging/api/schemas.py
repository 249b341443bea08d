"""Request bodies for the messaging routes."""

from typing import Annotated

from pydantic import Field, StringConstraints

from ..domain.models import ID_PATTERN, CamelModel, MessageType

ObjectId = Annotated[str, Field(pattern=ID_PATTERN)]


class MessageCreate(CamelModel):
    """Body of POST /api/messages"""

    receiver_id: ObjectId
    content: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)]
    message_type: MessageType = MessageType.TEXT


class ServiceRequestCreate(CamelModel):
    """Body of POST /api/messages/service-request"""

    service_id: ObjectId
    case_details: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=10, max_length=1000)
    ]
