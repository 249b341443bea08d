"""Test suite for the conversation service."""

import pytest

from lawyer_messaging.domain.models import MessageType, ServiceRequestStatus
from lawyer_messaging.errors import NotFoundError, StoreError
from lawyer_messaging.services.conversations import ConversationService


class FailingMessageRepository:
    """Wraps a repository and fails every message write."""

    def __init__(self, inner):
        self.inner = inner

    def __getattr__(self, name):
        return getattr(self.inner, name)

    async def create_message(self, message):
        raise RuntimeError("write concern timeout")


@pytest.mark.asyncio
async def test_service_request_creates_request_and_message(repository):
    service = ConversationService(repository)
    result = await service.send_service_request_message(
        "u1", "svc1", "  I need help with my divorce case  "
    )

    request = result["serviceRequest"]
    message = result["message"]

    assert request.status is ServiceRequestStatus.PENDING
    assert request.user == "u1"
    assert request.lawyer == "lawyer1"
    assert request.service == "svc1"
    assert await repository.get_service_request(request.id) == request

    assert message.sender.id == "u1"
    assert message.receiver.id == "lawyer1"
    assert message.message_type is MessageType.SERVICE_REQUEST
    assert message.content == (
        "Service Request: Divorce Consultation\n\nCase Details: I need help with my divorce case"
    )
    assert message.service_request_payload.service_id == "svc1"
    assert message.service_request_payload.case_details == "I need help with my divorce case"
    assert message.service_request_payload.status is ServiceRequestStatus.PENDING


@pytest.mark.asyncio
async def test_service_request_unknown_service(repository):
    service = ConversationService(repository)
    with pytest.raises(NotFoundError) as exc_info:
        await service.send_service_request_message("u1", "nope", "I need help with my case")
    assert exc_info.value.message == "Service not found"


@pytest.mark.asyncio
async def test_service_request_rolled_back_when_message_fails(repository):
    """A failed message write removes the request it was announcing."""
    created = []
    original_create = repository.create_service_request

    async def tracking_create(service_request):
        created.append(service_request.id)
        return await original_create(service_request)

    repository.create_service_request = tracking_create
    service = ConversationService(FailingMessageRepository(repository))

    with pytest.raises(StoreError) as exc_info:
        await service.send_service_request_message("u1", "svc1", "I need help with my case")

    assert exc_info.value.error == "write concern timeout"
    assert len(created) == 1
    assert await repository.get_service_request(created[0]) is None
    assert await repository.find_user_messages("u1") == []


@pytest.mark.asyncio
async def test_sent_message_surfaces_as_last_message_for_both(repository):
    service = ConversationService(repository)
    sent = await service.send_message("u1", "u2", "Hello")

    for user_id, counterpart in (("u1", "u2"), ("u2", "u1")):
        (conversation,) = await service.list_conversations(user_id)
        assert conversation.id == counterpart
        assert conversation.last_message.id == sent.id


@pytest.mark.asyncio
async def test_thread_view_marks_read_for_sender_view(repository):
    service = ConversationService(repository)
    sent = await service.send_message("u1", "u2", "Hello")

    await service.get_thread("u2", "u1")
    (message,) = await service.get_thread("u1", "u2")
    assert message.id == sent.id
    assert message.is_read is True
