"""In-memory registry of authenticated socket sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Set

import structlog

from ..domain.models import UserRole, utcnow

logger = structlog.get_logger()

LAWYERS_ROOM = "lawyers"
ROOM_SEPARATOR = "_"


def personal_room(user_id: str) -> str:
    return f"user_{user_id}"


def conversation_room(user_a: str, user_b: str) -> str:
    """Room shared by two participants; both sides compute the same name."""
    return ROOM_SEPARATOR.join(sorted((user_a, user_b)))


@dataclass
class Session:
    """One authenticated connection."""

    sid: str
    user_id: str
    role: UserRole
    rooms: Set[str] = field(default_factory=set)
    connected_at: datetime = field(default_factory=utcnow)


class ConnectionRegistry:
    """Sessions by connection id, and connection ids by user.

    Owned by the event loop: no method awaits, so each mutation completes
    before any other handler runs.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._by_user: Dict[str, Set[str]] = {}

    def register(self, sid: str, user_id: str, role: UserRole) -> Session:
        session = Session(sid=sid, user_id=user_id, role=role)
        self._sessions[sid] = session
        self._by_user.setdefault(user_id, set()).add(sid)
        logger.debug("session_registered", sid=sid, user_id=user_id, role=role.value)
        return session

    def unregister(self, sid: str) -> Optional[Session]:
        session = self._sessions.pop(sid, None)
        if session is None:
            return None
        sids = self._by_user.get(session.user_id)
        if sids is not None:
            sids.discard(sid)
            if not sids:
                del self._by_user[session.user_id]
        logger.debug("session_unregistered", sid=sid, user_id=session.user_id)
        return session

    def get(self, sid: str) -> Optional[Session]:
        return self._sessions.get(sid)

    def join(self, sid: str, room: str) -> None:
        session = self._sessions.get(sid)
        if session is None:
            raise KeyError(sid)
        session.rooms.add(room)

    def leave(self, sid: str, room: str) -> None:
        session = self._sessions.get(sid)
        if session is not None:
            session.rooms.discard(room)

    def is_online(self, user_id: str) -> bool:
        """True while the user has at least one live connection."""
        return bool(self._by_user.get(user_id))

    def __len__(self) -> int:
        return len(self._sessions)
