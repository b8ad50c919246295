# =============================================================================
# app/websocket/__init__.py - WebSocket Module
# =============================================================================
# Provides real-time product and business updates, one room per user.
#
# Usage:
#   # Publish after a committed write (from a service)
#   await context.events.product_updated(uid, product)
#
#   # Clients connect with their access token
#   ws://host/ws?token={jwt}
# =============================================================================

from app.websocket.manager import ConnectionManager, user_room
from app.websocket.broadcast import (
    EventPublisher,
    PRODUCT_CREATED,
    PRODUCT_UPDATED,
    PRODUCT_DELETED,
    BUSINESS_CREATED,
    BUSINESS_UPDATED,
    BUSINESS_DELETED,
)

__all__ = [
    "ConnectionManager",
    "user_room",
    "EventPublisher",
    "PRODUCT_CREATED",
    "PRODUCT_UPDATED",
    "PRODUCT_DELETED",
    "BUSINESS_CREATED",
    "BUSINESS_UPDATED",
    "BUSINESS_DELETED",
]
