"""
Messaging Router
Conversation list, thread history, sending and read receipts.
"""

from typing import Any, Awaitable, Callable, List

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel
from structlog import get_logger

from ..config import get_settings
from ..domain.models import ID_PATTERN, User
from ..errors import MessagingError, StoreError
from ..metrics import MESSAGES_SENT
from ..services.conversations import ConversationService
from .dependencies import get_conversation_service, require_auth
from .schemas import MessageCreate, ServiceRequestCreate

logger = get_logger()
settings = get_settings()

router = APIRouter()


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    return value


async def _run(operation: str, error_message: str, call: Callable[[], Awaitable[Any]], **context) -> Any:
    """Run a service call, turning unexpected failures into a StoreError."""
    try:
        return await call()
    except MessagingError:
        raise
    except Exception as e:
        logger.error(f"{operation}_error", error=str(e), **context)
        raise StoreError(error_message, error=str(e)) from e


@router.get("")
@router.get("/", include_in_schema=False)
async def list_conversations(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.conversation_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    """Gets the caller's conversations, most recently active first"""
    conversations: List = await _run(
        "list_conversations",
        "Error retrieving conversations",
        lambda: service.list_conversations(current_user.id, page=page, limit=limit),
        user_id=current_user.id,
    )
    return {"success": True, "data": _dump(conversations)}


@router.get("/{user_id}")
async def get_messages(
    user_id: str = Path(..., pattern=ID_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    """Gets a page of the thread with another user, oldest first, and marks it read"""
    messages = await _run(
        "get_messages",
        "Error retrieving messages",
        lambda: service.get_thread(current_user.id, user_id, page=page, limit=limit),
        user_id=current_user.id,
        other_user_id=user_id,
    )
    return {"success": True, "data": _dump(messages)}


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def send_message(
    body: MessageCreate,
    current_user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    """Sends a direct message"""
    message = await _run(
        "send_message",
        "Error sending message",
        lambda: service.send_message(
            current_user.id, body.receiver_id, body.content, body.message_type
        ),
        sender=current_user.id,
        receiver=body.receiver_id,
    )
    MESSAGES_SENT.labels(message_type=message.message_type.value).inc()
    return {"success": True, "message": "Message sent successfully", "data": _dump(message)}


@router.post("/service-request", status_code=status.HTTP_201_CREATED)
async def send_service_request(
    body: ServiceRequestCreate,
    current_user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    """Opens a service request with the service's lawyer and messages them about it"""
    result = await _run(
        "send_service_request",
        "Error sending service request",
        lambda: service.send_service_request_message(
            current_user.id, body.service_id, body.case_details
        ),
        user_id=current_user.id,
        service_id=body.service_id,
    )
    MESSAGES_SENT.labels(message_type="service_request").inc()
    return {
        "success": True,
        "message": "Service request sent successfully",
        "data": _dump(result),
    }


@router.put("/mark-read/{message_id}")
async def mark_as_read(
    message_id: str,
    current_user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    """Marks a message addressed to the caller as read"""
    await _run(
        "mark_as_read",
        "Error marking message as read",
        lambda: service.mark_read(message_id, current_user.id),
        message_id=message_id,
        user_id=current_user.id,
    )
    return {"success": True, "message": "Message marked as read"}
