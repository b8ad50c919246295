# =============================================================================
# app/websocket/manager.py - WebSocket Connection Manager
# =============================================================================
# Manages WebSocket connections per room and handles broadcasting.
# Every user has one room, "user:{uid}", holding all of that user's open
# sessions (browser tabs, devices).
#
# Usage:
#   manager = ConnectionManager()
#
#   # Connect a client
#   await manager.connect(user_room(uid), websocket)
#
#   # Broadcast to every session of that user
#   await manager.broadcast(user_room(uid), {"type": "product:updated", ...})
#
#   # Disconnect a client
#   manager.disconnect(user_room(uid), websocket)
# =============================================================================

import logging
from typing import Dict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def user_room(uid: str) -> str:
    """Name of the room holding all connections of one user."""
    return f"user:{uid}"


class ConnectionManager:
    """
    Manages WebSocket connections organized by room.

    Only connect/disconnect mutate the registry; broadcast reads a snapshot
    of a room, so a socket leaving mid-broadcast is harmless. Everything
    runs on the event loop, so no locking is needed.
    """

    def __init__(self):
        # room -> set of WebSocket connections
        self.connections: Dict[str, Set[WebSocket]] = {}
        # Track connection count for logging
        self._total_connections = 0

    async def connect(self, room: str, websocket: WebSocket) -> None:
        """
        Accept a new WebSocket connection and join it to a room.

        Args:
            room: The room this connection listens to
            websocket: The WebSocket connection
        """
        await websocket.accept()
        self.join(room, websocket)

    def join(self, room: str, websocket: WebSocket) -> None:
        """Track an already-accepted connection."""
        self.connections.setdefault(room, set()).add(websocket)
        self._total_connections += 1

        logger.info(
            f"WebSocket joined {room}. "
            f"Total connections: {self._total_connections}"
        )

    def disconnect(self, room: str, websocket: WebSocket) -> None:
        """
        Remove a WebSocket connection from tracking.

        Args:
            room: The room this connection was in
            websocket: The WebSocket connection to remove
        """
        members = self.connections.get(room)
        if members and websocket in members:
            members.discard(websocket)
            self._total_connections -= 1

            # Clean up empty rooms
            if not members:
                del self.connections[room]

        logger.info(
            f"WebSocket left {room}. "
            f"Total connections: {self._total_connections}"
        )

    async def broadcast(self, room: str, message: dict) -> int:
        """
        Send a message to every connection in a room.

        A connection that fails to receive is dropped; the others still get
        the message.

        Args:
            room: The room to broadcast to
            message: The message dict to send (will be JSON encoded)

        Returns:
            int: Number of clients the message was sent to
        """
        members = self.connections.get(room)
        if not members:
            logger.debug(f"No connections in {room}, skipping broadcast")
            return 0

        dead_connections: Set[WebSocket] = set()
        sent_count = 0

        for websocket in list(members):
            try:
                await websocket.send_json(message)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Failed to send to WebSocket in {room}: {e}")
                dead_connections.add(websocket)

        for ws in dead_connections:
            self.disconnect(room, ws)

        if dead_connections:
            logger.info(f"Cleaned up {len(dead_connections)} dead connections")

        logger.debug(
            f"Broadcast to {room}: "
            f"type={message.get('type')}, sent to {sent_count} clients"
        )

        return sent_count

    def get_connection_count(self, room: str | None = None) -> int:
        """
        Get the number of active connections.

        Args:
            room: If provided, count for that room. Otherwise total.
        """
        if room:
            return len(self.connections.get(room, set()))
        return self._total_connections
