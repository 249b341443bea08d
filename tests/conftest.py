"""Shared fixtures: a fresh store per test, seeded users and tokens."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from lawyer_messaging.api.app import app
from lawyer_messaging.api.dependencies import get_auth_service, get_repository
from lawyer_messaging.domain.models import Message, Service, User, UserRole
from lawyer_messaging.repositories.memory import InMemoryRepository

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def repository():
    """In-memory store seeded with two clients and a lawyer with one service."""
    repo = InMemoryRepository()
    await repo.add_user(User(id="u1", name="Alice", avatar="alice.png"))
    await repo.add_user(User(id="u2", name="Bob"))
    await repo.add_user(User(id="u3", name="Carol"))
    await repo.add_user(User(id="lawyer1", name="Saul Goodman", role=UserRole.LAWYER))
    await repo.add_service(
        Service(id="svc1", title="Divorce Consultation", lawyer="lawyer1", category="Family Law")
    )
    app.dependency_overrides[get_repository] = lambda: repo
    yield repo
    app.dependency_overrides.pop(get_repository, None)


@pytest.fixture
def token():
    """Returns a function minting a bearer token for a user id."""
    auth = get_auth_service()

    def _token(user_id: str, role: UserRole = UserRole.USER) -> str:
        return auth.generate_token(user_id, role)

    return _token


@pytest.fixture
def headers(token):
    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {token(user_id)}"}

    return _headers


@pytest_asyncio.fixture
async def client(repository):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def seed_message(repo: InMemoryRepository, sender: str, receiver: str, minutes: int, **kwargs) -> Message:
    """Store a message created `minutes` after BASE_TIME."""
    return await repo.create_message(
        Message(
            sender=sender,
            receiver=receiver,
            content=kwargs.pop("content", f"{sender} to {receiver} at {minutes}"),
            created_at=BASE_TIME + timedelta(minutes=minutes),
            **kwargs,
        )
    )


@pytest.fixture
def seed(repository):
    """Returns a coroutine function storing a message at a fixed offset from BASE_TIME."""

    async def _seed(sender: str, receiver: str, minutes: int, **kwargs) -> Message:
        return await seed_message(repository, sender, receiver, minutes, **kwargs)

    return _seed
