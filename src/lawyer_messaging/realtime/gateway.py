"""
Realtime gateway.

Socket.IO event handling for live message delivery, read receipts, typing
indicators and presence. The gateway is a relay: nothing received here is
persisted, the HTTP routes own persistence. Clients that are offline when an
event is relayed never see it and catch up through the HTTP fetch path.

Connections authenticate at handshake with `auth.token`. Once authenticated a
connection sits in its personal room (`user_{id}`), lawyers additionally in
`lawyers`, and joins conversation rooms on request.
"""

from typing import Any, Awaitable, Callable, Dict, Optional, Union

import socketio
from socketio.exceptions import ConnectionRefusedError as HandshakeRefused
import structlog
from pydantic import ValidationError as PydanticValidationError

from ..domain.models import UserRole
from ..errors import AuthError
from ..metrics import SOCKET_CONNECTIONS, SOCKET_EVENTS
from ..services.auth import AuthService
from .events import (
    INBOUND_EVENTS,
    ErrorEvent,
    JoinConversation,
    LeaveConversation,
    MarkMessageRead,
    MessageNotification,
    MessageRead,
    NewMessage,
    SendMessage,
    TypingStart,
    TypingStop,
    UserOnline,
    UserStatus,
    UserTyping,
    dump,
    parse_event,
)
from .registry import (
    LAWYERS_ROOM,
    ConnectionRegistry,
    Session,
    conversation_room,
    personal_room,
)

logger = structlog.get_logger()

# Error messages reported back to the originating connection
EVENT_ERRORS: Dict[str, str] = {
    "join_conversation": "Failed to join conversation",
    "leave_conversation": "Failed to leave conversation",
    "send_message": "Failed to send message",
    "mark_message_read": "Failed to mark message as read",
    "typing_start": "Failed to send typing indicator",
    "typing_stop": "Failed to send typing indicator",
    "user_online": "Failed to update status",
}


class Gateway:
    """Binds the messaging socket protocol onto a Socket.IO server."""

    def __init__(
        self,
        sio: socketio.AsyncServer,
        auth: AuthService,
        registry: Optional[ConnectionRegistry] = None,
    ) -> None:
        self.sio = sio
        self.auth = auth
        self.registry = registry or ConnectionRegistry()
        self._handlers: Dict[str, Callable[[Session, Any], Awaitable[None]]] = {
            "join_conversation": self._join_conversation,
            "leave_conversation": self._leave_conversation,
            "send_message": self._send_message,
            "mark_message_read": self._mark_message_read,
            "typing_start": self._typing,
            "typing_stop": self._typing,
            "user_online": self._user_online,
        }

    def attach(self) -> "Gateway":
        """Register every handler on the server."""
        self.sio.on("connect", handler=self.connect)
        self.sio.on("disconnect", handler=self.disconnect)
        for event in INBOUND_EVENTS:
            self.sio.on(event, handler=self._bind(event))
        return self

    def _bind(self, event: str):
        async def handler(sid: str, data: Any = None) -> None:
            await self.handle(event, sid, data)

        handler.__name__ = event
        return handler

    async def connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
        token = auth.get("token") if isinstance(auth, dict) else None
        try:
            identity = self.auth.authenticate(token)
        except AuthError as e:
            SOCKET_CONNECTIONS.labels(outcome="rejected").inc()
            logger.warning("socket_auth_rejected", sid=sid, reason=e.message)
            raise HandshakeRefused(f"Authentication error: {e.message}")

        self.registry.register(sid, identity.user_id, identity.role)
        await self._enter(sid, personal_room(identity.user_id))
        if identity.role is UserRole.LAWYER:
            await self._enter(sid, LAWYERS_ROOM)

        SOCKET_CONNECTIONS.labels(outcome="accepted").inc()
        logger.info("socket_connected", sid=sid, user_id=identity.user_id, role=identity.role.value)

    async def disconnect(self, sid: str, reason: Any = None) -> None:
        session = self.registry.unregister(sid)
        if session is None:
            return
        logger.info("socket_disconnected", sid=sid, user_id=session.user_id, reason=str(reason))
        if self.registry.is_online(session.user_id):
            # another connection of this user is still live
            return
        await self.sio.emit(
            "user_status",
            dump(UserStatus(user_id=session.user_id, status="offline")),
            skip_sid=sid,
        )

    async def handle(self, event: str, sid: str, data: Any) -> None:
        """Validate and dispatch one inbound event.

        Failures are reported to the originating connection only and never
        leave this method.
        """
        session = self.registry.get(sid)
        if session is None:
            SOCKET_EVENTS.labels(event=event, outcome="unauthenticated").inc()
            await self._error(sid, "Not authenticated")
            return

        try:
            payload = parse_event(event, data)
        except PydanticValidationError as e:
            SOCKET_EVENTS.labels(event=event, outcome="invalid").inc()
            logger.warning("socket_event_invalid", sid=sid, socket_event=event, errors=e.error_count())
            await self._error(sid, f"Invalid {event} payload")
            return

        try:
            await self._handlers[event](session, payload)
        except Exception as e:
            SOCKET_EVENTS.labels(event=event, outcome="failed").inc()
            logger.error("socket_event_failed", sid=sid, socket_event=event, error=str(e))
            await self._error(sid, EVENT_ERRORS[event])
            return

        SOCKET_EVENTS.labels(event=event, outcome="ok").inc()

    async def _enter(self, sid: str, room: str) -> None:
        self.registry.join(sid, room)
        await self.sio.enter_room(sid, room)

    async def _exit(self, sid: str, room: str) -> None:
        self.registry.leave(sid, room)
        await self.sio.leave_room(sid, room)

    async def _error(self, sid: str, message: str) -> None:
        try:
            await self.sio.emit("error", dump(ErrorEvent(message=message)), to=sid)
        except Exception as e:
            logger.error("socket_error_emit_failed", sid=sid, error=str(e))

    async def _join_conversation(self, session: Session, payload: JoinConversation) -> None:
        room = conversation_room(session.user_id, payload.other_user_id)
        await self._enter(session.sid, room)
        logger.info("conversation_joined", user_id=session.user_id, room=room)

    async def _leave_conversation(self, session: Session, payload: LeaveConversation) -> None:
        room = conversation_room(session.user_id, payload.other_user_id)
        await self._exit(session.sid, room)
        logger.info("conversation_left", user_id=session.user_id, room=room)

    async def _send_message(self, session: Session, payload: SendMessage) -> None:
        room = conversation_room(session.user_id, payload.recipient_id)
        await self.sio.emit(
            "new_message",
            dump(
                NewMessage(
                    id=payload.message_id,
                    sender_id=session.user_id,
                    recipient_id=payload.recipient_id,
                    content=payload.content,
                )
            ),
            to=room,
        )
        # reaches the recipient even when they have not joined the conversation room
        await self.sio.emit(
            "message_notification",
            dump(MessageNotification(sender_id=session.user_id, content=payload.content)),
            to=personal_room(payload.recipient_id),
            skip_sid=session.sid,
        )
        logger.info("message_relayed", sender=session.user_id, recipient=payload.recipient_id)

    async def _mark_message_read(self, session: Session, payload: MarkMessageRead) -> None:
        await self.sio.emit(
            "message_read",
            dump(MessageRead(message_id=payload.message_id, read_by=session.user_id)),
            to=personal_room(payload.sender_id),
            skip_sid=session.sid,
        )
        logger.info("message_read_relayed", message_id=payload.message_id, read_by=session.user_id)

    async def _typing(self, session: Session, payload: Union[TypingStart, TypingStop]) -> None:
        await self.sio.emit(
            "user_typing",
            dump(UserTyping(user_id=session.user_id, is_typing=isinstance(payload, TypingStart))),
            to=conversation_room(session.user_id, payload.recipient_id),
            skip_sid=session.sid,
        )

    async def _user_online(self, session: Session, payload: UserOnline) -> None:
        await self.sio.emit(
            "user_status",
            dump(UserStatus(user_id=session.user_id, status="online")),
            skip_sid=session.sid,
        )


def create_gateway(auth: AuthService, cors_origins=None) -> Gateway:
    """Build an ASGI-mode Socket.IO server with the gateway attached."""
    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=cors_origins if cors_origins is not None else [],
        logger=False,
        engineio_logger=False,
    )
    return Gateway(sio, auth).attach()
