"""Test suite for concurrent operations."""

import asyncio

import pytest


@pytest.mark.asyncio
async def test_concurrent_sends_between_pair(client, headers):
    """Messages sent concurrently in both directions are all stored."""
    responses = await asyncio.gather(
        *[
            client.post(
                "/api/messages",
                json={"receiverId": receiver, "content": f"Message {i}"},
                headers=headers(sender),
            )
            for i, (sender, receiver) in enumerate([("u1", "u2"), ("u2", "u1")] * 5)
        ]
    )
    assert all(r.status_code == 201 for r in responses)
    assert len({r.json()["data"]["id"] for r in responses}) == 10

    response = await client.get("/api/messages/u2", headers=headers("u1"))
    contents = [m["content"] for m in response.json()["data"]]
    assert sorted(contents) == sorted(f"Message {i}" for i in range(10))


@pytest.mark.asyncio
async def test_unread_count_under_concurrent_sends(client, headers):
    """Unread counts equal the number of unread incoming messages per sender."""
    senders = ["u2", "u3", "lawyer1"]
    await asyncio.gather(
        *[
            client.post(
                "/api/messages",
                json={"receiverId": "u1", "content": f"From {sender} #{i}"},
                headers=headers(sender),
            )
            for sender in senders
            for i in range(senders.index(sender) + 1)
        ]
    )

    response = await client.get("/api/messages", headers=headers("u1"))
    counts = {c["id"]: c["unreadCount"] for c in response.json()["data"]}
    assert counts == {"u2": 1, "u3": 2, "lawyer1": 3}


@pytest.mark.asyncio
async def test_concurrent_thread_reads_mark_once(client, headers, repository):
    """Concurrent fetches of the same thread settle on one read time per message."""
    for i in range(5):
        await client.post(
            "/api/messages",
            json={"receiverId": "u1", "content": f"Ping {i}"},
            headers=headers("u2"),
        )

    responses = await asyncio.gather(
        *[client.get("/api/messages/u2", headers=headers("u1")) for _ in range(5)]
    )
    assert all(r.status_code == 200 for r in responses)

    stored = await repository.find_messages_between("u1", "u2")
    assert all(m.is_read for m in stored)
    read_times = {m.id: m.read_at for m in stored}
    for response in responses:
        for message in response.json()["data"]:
            assert message["isRead"] is True

    await client.get("/api/messages/u2", headers=headers("u1"))
    again = await repository.find_messages_between("u1", "u2")
    assert {m.id: m.read_at for m in again} == read_times


@pytest.mark.asyncio
async def test_concurrent_error_handling(client, headers):
    """Missing messages fail independently under concurrent load."""
    responses = await asyncio.gather(
        *[
            client.put(f"/api/messages/mark-read/missing-{i}", headers=headers("u1"))
            for i in range(5)
        ]
    )
    assert all(r.status_code == 404 for r in responses)
