# =============================================================================
# app/websocket/broadcast.py - Event Fan-out
# =============================================================================
# Publishes committed changes to the owning user's room so every open
# session of that user converges without polling.
#
# Contract:
# - Called only after the database write succeeded
# - Fire-and-forget: a failed publish is logged, never raised, never retried
# - Delivered only to "user:{uid}", never broadcast globally
#
# Events:
#   - product:created   payload: full product document
#   - product:updated   payload: full product document
#   - product:deleted   payload: {"id", "businessId"}
#   - business:created  payload: full business document
#   - business:updated  payload: full business document
#   - business:deleted  payload: {"businessId"}
# =============================================================================

import logging
from typing import Any

from app.websocket.manager import ConnectionManager, user_room

logger = logging.getLogger(__name__)

PRODUCT_CREATED = "product:created"
PRODUCT_UPDATED = "product:updated"
PRODUCT_DELETED = "product:deleted"
BUSINESS_CREATED = "business:created"
BUSINESS_UPDATED = "business:updated"
BUSINESS_DELETED = "business:deleted"


class EventPublisher:
    """
    Publishes typed events to per-user rooms.

    Example:
        events = EventPublisher(manager)
        await events.product_updated(uid, product)
    """

    def __init__(self, manager: ConnectionManager):
        self._manager = manager

    async def publish(self, uid: str, event_type: str, payload: dict[str, Any]) -> int:
        """
        Publish one event to the user's room.

        Args:
            uid: Owning user (verified identity, never client-supplied)
            event_type: One of the event names above
            payload: Event body

        Returns:
            int: Number of sessions reached (0 on any failure)
        """
        if not uid:
            logger.warning(f"Cannot emit {event_type}: user id is missing")
            return 0

        room = user_room(uid)

        try:
            sent = await self._manager.broadcast(room, {"type": event_type, "payload": payload})
        except Exception as e:
            logger.error(f"Failed to emit {event_type} to {room}: {e}")
            return 0

        logger.debug(f"Emitted {event_type} to {room} ({sent} sessions)")
        return sent

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    async def product_created(self, uid: str, product: dict[str, Any]) -> int:
        if not product.get("id"):
            logger.warning(f"Cannot emit {PRODUCT_CREATED}: product id is missing")
            return 0
        return await self.publish(uid, PRODUCT_CREATED, product)

    async def product_updated(self, uid: str, product: dict[str, Any]) -> int:
        if not product.get("id"):
            logger.warning(f"Cannot emit {PRODUCT_UPDATED}: product id is missing")
            return 0
        logger.info(
            f"Emitting {PRODUCT_UPDATED} | Product={product['id']} | "
            f"Status={product.get('status', 'unknown')} | Business={product.get('businessId', 'unknown')}"
        )
        return await self.publish(uid, PRODUCT_UPDATED, product)

    async def product_deleted(self, uid: str, business_id: str, product_id: str) -> int:
        return await self.publish(uid, PRODUCT_DELETED, {"id": product_id, "businessId": business_id})

    # -------------------------------------------------------------------------
    # Businesses
    # -------------------------------------------------------------------------

    async def business_created(self, uid: str, business: dict[str, Any]) -> int:
        if not business.get("businessId"):
            logger.warning(f"Cannot emit {BUSINESS_CREATED}: businessId is missing")
            return 0
        return await self.publish(uid, BUSINESS_CREATED, business)

    async def business_updated(self, uid: str, business: dict[str, Any]) -> int:
        if not business.get("businessId"):
            logger.warning(f"Cannot emit {BUSINESS_UPDATED}: businessId is missing")
            return 0
        return await self.publish(uid, BUSINESS_UPDATED, business)

    async def business_deleted(self, uid: str, business_id: str) -> int:
        return await self.publish(uid, BUSINESS_DELETED, {"businessId": business_id})
