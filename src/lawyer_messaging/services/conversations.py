"""Conversation service: request-scoped orchestration over the message store."""

from typing import Dict, List, Optional

import structlog

from ..domain.models import (
    Conversation,
    Message,
    MessageType,
    MessageView,
    ServiceRequest,
    ServiceRequestPayload,
    ServiceRequestStatus,
)
from ..errors import MessagingError, NotFoundError, StoreError
from ..repositories.base import Repository
from .messages import MessageStore

logger = structlog.get_logger()

SERVICE_REQUEST_TEMPLATE = "Service Request: {title}\n\nCase Details: {case_details}"


class ConversationService:
    """Entry point used by the HTTP routes."""

    def __init__(self, repository: Repository, store: Optional[MessageStore] = None) -> None:
        self.repository = repository
        self.store = store or MessageStore(repository)

    async def list_conversations(self, user_id: str, page: int = 1, limit: int = 20) -> List[Conversation]:
        return await self.store.list_conversations(user_id, page=page, limit=limit)

    async def get_thread(
        self, user_id: str, other_user_id: str, page: int = 1, limit: int = 50
    ) -> List[MessageView]:
        return await self.store.list_messages(user_id, other_user_id, page=page, page_size=limit)

    async def send_message(
        self,
        sender_id: str,
        receiver_id: str,
        content: str,
        message_type: MessageType = MessageType.TEXT,
    ) -> MessageView:
        return await self.store.create_message(sender_id, receiver_id, content, message_type)

    async def mark_read(self, message_id: str, user_id: str) -> Message:
        return await self.store.mark_read(message_id, user_id)

    async def send_service_request_message(
        self, user_id: str, service_id: str, case_details: str
    ) -> Dict[str, object]:
        """Open a pending service request and announce it to the lawyer.

        The request and its message are two separate writes. If the message
        cannot be written the request is deleted again, so a failure never
        leaves a request the lawyer was not told about.
        """
        service = await self.repository.get_service(service_id)
        if service is None:
            raise NotFoundError("Service not found")

        case_details = case_details.strip()
        service_request = await self.repository.create_service_request(
            ServiceRequest(
                user=user_id,
                lawyer=service.lawyer,
                service=service.id,
                case_details=case_details,
                status=ServiceRequestStatus.PENDING,
            )
        )

        try:
            message = await self.store.create_message(
                user_id,
                service.lawyer,
                SERVICE_REQUEST_TEMPLATE.format(title=service.title, case_details=case_details),
                MessageType.SERVICE_REQUEST,
                ServiceRequestPayload(
                    service_id=service.id,
                    case_details=case_details,
                    status=ServiceRequestStatus.PENDING,
                ),
            )
        except Exception as e:
            await self._rollback_service_request(service_request.id)
            logger.error(
                "service_request_message_failed",
                service_request_id=service_request.id,
                service_id=service_id,
                error=str(e),
            )
            if isinstance(e, MessagingError):
                raise
            raise StoreError("Error sending service request", error=str(e)) from e

        logger.info(
            "service_request_sent",
            service_request_id=service_request.id,
            message_id=message.id,
            lawyer=service.lawyer,
        )
        return {"message": message, "serviceRequest": service_request}

    async def _rollback_service_request(self, request_id: str) -> None:
        try:
            await self.repository.delete_service_request(request_id)
        except Exception as e:
            logger.error("service_request_rollback_failed", service_request_id=request_id, error=str(e))
