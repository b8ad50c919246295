# =============================================================================
# app/websocket/routes.py - WebSocket Routes
# =============================================================================
# WebSocket endpoint for real-time product and business updates.
#
# Connect: ws://host/ws?token={jwt}
#
# Events:
#   - {"type": "product:created", "payload": {...product}}
#   - {"type": "product:updated", "payload": {...product}}
#   - {"type": "product:deleted", "payload": {"id": "...", "businessId": "..."}}
#   - {"type": "business:created" | "business:updated", "payload": {...business}}
#   - {"type": "business:deleted", "payload": {"businessId": "..."}}
# =============================================================================

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from app.auth.dependencies import CurrentUser, authenticate_token
from app.dependencies import ContextDep
from app.websocket.manager import user_room

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def user_websocket(
    websocket: WebSocket,
    context: ContextDep,
    token: str | None = Query(default=None, description="JWT token for authentication"),
):
    """
    WebSocket endpoint for real-time updates of the caller's own data.

    The token is verified before the connection joins any room; the room
    is always derived from the verified user id, never from the client.

    Connection URL:
        ws://localhost:3000/ws?token={jwt}

    Example event:
        {
            "type": "product:updated",
            "payload": {"id": "a1b2", "businessId": "biz-1", "status": "enriched", ...}
        }
    """
    # 1. Verify JWT token
    try:
        user = await asyncio.to_thread(authenticate_token, token)
    except HTTPException as e:
        logger.warning(f"WebSocket auth failed: {e.detail}")
        await websocket.close(code=4001, reason="Unauthorized")
        return

    # 2. Accept connection and join the user's room
    room = user_room(user.id)
    manager = context.connections
    await manager.connect(room, websocket)

    try:
        # Send welcome message
        await websocket.send_json({
            "type": "connected",
            "payload": {"uid": user.id, "room": room},
        })

        # Keep connection alive and handle incoming messages
        while True:
            data = await websocket.receive_text()

            # Handle ping/pong for keepalive
            if data == "ping":
                await websocket.send_text("pong")
            else:
                logger.debug(f"WebSocket received: {data[:100]}")

    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected from {room}")
    finally:
        manager.disconnect(room, websocket)


@router.get("/ws/status")
async def websocket_status(user: CurrentUser, context: ContextDep):
    """
    Get the caller's own WebSocket connection count.

    Returns:
        dict: The caller's room and how many sockets are joined to it
    """
    room = user_room(user.id)
    return {
        "success": True,
        "room": room,
        "connections": context.connections.get_connection_count(room),
    }
