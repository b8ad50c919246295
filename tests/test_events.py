# =============================================================================
# tests/test_events.py - Event Fan-out Tests
# =============================================================================
# Unit tests for ConnectionManager and EventPublisher:
# - Messages reach only the target user's room
# - A failing socket is dropped without affecting the others
# - Publish failures never raise
#
# Run with: poetry run pytest tests/test_events.py -v
# =============================================================================

from unittest.mock import AsyncMock

import pytest

from app.websocket.broadcast import EventPublisher
from app.websocket.manager import ConnectionManager, user_room
from tests.conftest import FakeWebSocket


class TestConnectionManager:
    """Tests for the room registry."""

    @pytest.mark.asyncio
    async def test_connect_accepts_and_joins(self):
        manager = ConnectionManager()
        socket = FakeWebSocket()

        await manager.connect(user_room("u1"), socket)

        assert socket.accepted
        assert manager.get_connection_count("user:u1") == 1
        assert list(manager.connections) == ["user:u1"]

    @pytest.mark.asyncio
    async def test_broadcast_reaches_every_session_of_user(self):
        manager = ConnectionManager()
        phone, laptop, stranger = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
        manager.join(user_room("u1"), phone)
        manager.join(user_room("u1"), laptop)
        manager.join(user_room("u2"), stranger)

        sent = await manager.broadcast(user_room("u1"), {"type": "product:updated", "payload": {}})

        assert sent == 2
        assert len(phone.sent) == len(laptop.sent) == 1
        assert stranger.sent == []

    @pytest.mark.asyncio
    async def test_dead_socket_is_dropped(self):
        manager = ConnectionManager()
        alive, dead = FakeWebSocket(), FakeWebSocket(fail=True)
        manager.join(user_room("u1"), alive)
        manager.join(user_room("u1"), dead)

        sent = await manager.broadcast(user_room("u1"), {"type": "x", "payload": {}})

        assert sent == 1
        assert alive.sent
        assert manager.get_connection_count(user_room("u1")) == 1

    def test_disconnect_removes_empty_room(self):
        manager = ConnectionManager()
        socket = FakeWebSocket()
        manager.join(user_room("u1"), socket)

        manager.disconnect(user_room("u1"), socket)
        manager.disconnect(user_room("u1"), socket)

        assert manager.connections == {}
        assert manager.get_connection_count() == 0

    @pytest.mark.asyncio
    async def test_broadcast_to_empty_room(self):
        assert await ConnectionManager().broadcast(user_room("nobody"), {"type": "x"}) == 0


class TestEventPublisher:
    """Tests for typed event publishing."""

    @pytest.mark.asyncio
    async def test_message_shape(self):
        manager = ConnectionManager()
        socket = FakeWebSocket()
        manager.join(user_room("u1"), socket)
        events = EventPublisher(manager)

        await events.product_created("u1", {"id": "p1", "businessId": "b1", "status": "pending"})
        await events.product_deleted("u1", "b1", "p1")
        await events.business_deleted("u1", "b1")

        assert socket.sent == [
            {"type": "product:created", "payload": {"id": "p1", "businessId": "b1", "status": "pending"}},
            {"type": "product:deleted", "payload": {"id": "p1", "businessId": "b1"}},
            {"type": "business:deleted", "payload": {"businessId": "b1"}},
        ]

    @pytest.mark.asyncio
    async def test_missing_ids_are_not_published(self):
        manager = ConnectionManager()
        socket = FakeWebSocket()
        manager.join(user_room("u1"), socket)
        events = EventPublisher(manager)

        assert await events.product_updated("u1", {"name": "no id"}) == 0
        assert await events.business_updated("u1", {"name": "no id"}) == 0
        assert await events.publish("", "product:updated", {"id": "p1"}) == 0
        assert socket.sent == []

    @pytest.mark.asyncio
    async def test_publish_failure_is_swallowed(self):
        manager = ConnectionManager()
        manager.broadcast = AsyncMock(side_effect=RuntimeError("registry broken"))
        events = EventPublisher(manager)

        assert await events.product_updated("u1", {"id": "p1"}) == 0
