"""Test suite for the gateway mounted on the real Socket.IO server."""

import asyncio
import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from lawyer_messaging.api.app import asgi_app, gateway
from lawyer_messaging.domain.models import UserRole
from lawyer_messaging.services.auth import AuthService

SOCKET_PATH = "/socket.io/"
RECORD_SEPARATOR = "\x1e"


class PollingConnection:
    """Engine.IO long-polling client exchanging raw Socket.IO packets."""

    def __init__(self, http: AsyncClient):
        self.http = http
        self.eio_sid = None

    def _params(self) -> dict:
        params = {"EIO": "4", "transport": "polling"}
        if self.eio_sid:
            params["sid"] = self.eio_sid
        return params

    async def open(self) -> None:
        response = await self.http.get(SOCKET_PATH, params=self._params())
        assert response.status_code == 200
        assert response.text.startswith("0")
        self.eio_sid = json.loads(response.text[1:])["sid"]

    async def send(self, packet: str) -> None:
        response = await self.http.post(SOCKET_PATH, params=self._params(), content=packet)
        assert response.status_code == 200

    async def receive(self, timeout: float = 5) -> list:
        response = await asyncio.wait_for(
            self.http.get(SOCKET_PATH, params=self._params()), timeout
        )
        return response.text.split(RECORD_SEPARATOR)

    async def connect(self, auth: dict) -> str:
        """Open the transport and send the namespace CONNECT; returns the reply packet."""
        await self.open()
        await self.send("40" + json.dumps(auth))
        (reply,) = [p for p in await self.receive() if p.startswith("4")]
        return reply

    async def close(self) -> None:
        await self.send("1")


@pytest_asyncio.fixture
async def http():
    async with AsyncClient(transport=ASGITransport(app=asgi_app), base_url="http://test") as client:
        yield client


@pytest.fixture
def auth():
    return AuthService()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "auth_payload, reason",
    [
        ({}, "Authentication error: No token provided"),
        ({"token": "garbage"}, "Authentication error: Invalid token"),
    ],
)
async def test_handshake_refused(http, auth_payload, reason):
    sessions_before = len(gateway.registry)
    connection = PollingConnection(http)

    reply = await connection.connect(auth_payload)

    assert reply.startswith("44")
    assert json.loads(reply[2:])["message"] == reason
    assert len(gateway.registry) == sessions_before


@pytest.mark.asyncio
async def test_handshake_accepted_joins_rooms(http, auth):
    connection = PollingConnection(http)
    reply = await connection.connect(
        {"token": auth.generate_token("lawyer7", UserRole.LAWYER)}
    )

    assert reply.startswith("40")
    sid = json.loads(reply[2:])["sid"]
    try:
        session = gateway.registry.get(sid)
        assert session.user_id == "lawyer7"
        rooms = gateway.sio.manager.get_rooms(sid, "/")
        assert "user_lawyer7" in rooms
        assert "lawyers" in rooms
    finally:
        await connection.close()


@pytest.mark.asyncio
async def test_presence_reaches_other_connections(http, auth):
    alice = PollingConnection(http)
    bob = PollingConnection(http)
    assert (await alice.connect({"token": auth.generate_token("alice9")})).startswith("40")
    assert (await bob.connect({"token": auth.generate_token("bob9")})).startswith("40")

    try:
        await alice.send('42["user_online"]')
        packets = [p for p in await bob.receive() if p.startswith("42")]
        event, payload = json.loads(packets[0][2:])
        assert event == "user_status"
        assert payload["userId"] == "alice9"
        assert payload["status"] == "online"
    finally:
        await bob.close()
        await alice.close()
