# =============================================================================
# core/services/business_service.py - Business Business Logic
# =============================================================================
# Handles business CRUD under users/{uid}/businesses.
# Deleting a business cascades to its products and their stored images.
# =============================================================================

import logging
import uuid
from typing import Any

from app.exceptions import BusinessNotFoundError, ValidationFailedError
from app.websocket.broadcast import EventPublisher
from core.models.business import Business, BusinessCreate, BusinessInfo
from core.services.storage_service import StorageService, business_folder
from lib.document_store import (
    DocumentStore,
    business_path,
    businesses_collection,
    product_path,
    products_collection,
)
from lib.utils import utc_timestamp

logger = logging.getLogger(__name__)


class BusinessService:
    """
    Service for business management operations.

    Every method takes the verified user id first; paths are always built
    from it.
    """

    def __init__(self, store: DocumentStore, storage: StorageService, events: EventPublisher):
        self.store = store
        self.storage = storage
        self.events = events

    async def get_business(self, uid: str, business_id: str) -> dict[str, Any]:
        """
        Get a business by ID.

        Raises:
            BusinessNotFoundError: If the business doesn't exist for this user
        """
        business = await self.store.get(business_path(uid, business_id))
        if business is None:
            raise BusinessNotFoundError(business_id)
        return business

    async def list_businesses(self, uid: str) -> list[dict[str, Any]]:
        return await self.store.query(businesses_collection(uid))

    async def get_business_with_products(self, uid: str, business_id: str) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        business = await self.get_business(uid, business_id)
        products = await self.store.query(products_collection(uid, business_id))
        return business, products

    async def create_business(
        self,
        uid: str,
        data: BusinessCreate,
        business_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a new business with default branding values.

        Args:
            uid: Owning user
            data: Name plus any descriptive fields
            business_id: Id to use; a random hex id when omitted

        Returns:
            Created business document
        """
        business_id = business_id or uuid.uuid4().hex
        now = utc_timestamp()

        business = Business(
            **data.model_dump(exclude_unset=True, exclude_none=True),
            business_id=business_id,
            created_at=now,
            updated_at=now,
        ).model_dump(mode="json", by_alias=True)

        await self.store.set(business_path(uid, business_id), business)
        logger.info(f"Created business {business_id} for user {uid}")

        await self.events.business_created(uid, business)
        return business

    async def update_business(self, uid: str, business_id: str, info: BusinessInfo) -> dict[str, Any]:
        """
        Merge provided fields into an existing business.

        Raises:
            ValidationFailedError: If no fields were provided
            BusinessNotFoundError: If the business doesn't exist
        """
        patch = info.to_patch()
        if not patch:
            raise ValidationFailedError("No update fields provided")

        await self.get_business(uid, business_id)

        patch["updatedAt"] = utc_timestamp()
        merged = await self.store.merge(business_path(uid, business_id), patch)
        if merged is None:
            raise BusinessNotFoundError(business_id)

        logger.info(f"Updated business {business_id}: {sorted(patch)}")
        await self.events.business_updated(uid, merged)
        return merged

    async def upsert_business_info(
        self,
        uid: str,
        business_id: str,
        info: BusinessInfo | None,
    ) -> dict[str, Any]:
        """
        Create the business if missing, otherwise merge `info` into it.

        Used by batch import, where the business may not exist yet.
        """
        existing = await self.store.get(business_path(uid, business_id))

        if existing is None:
            data = info.model_dump(exclude_unset=True, exclude_none=True) if info else {}
            business = Business(business_id=business_id, **data)
            now = utc_timestamp()
            document = business.model_dump(mode="json", by_alias=True)
            document["createdAt"] = now
            document["updatedAt"] = now

            await self.store.set(business_path(uid, business_id), document)
            await self.events.business_created(uid, document)
            return document

        patch = info.to_patch() if info else {}
        if not patch:
            return existing

        return await self.update_business(uid, business_id, info)

    async def delete_business(self, uid: str, business_id: str) -> int:
        """
        Delete a business together with all of its products.

        Documents go in one delete; stored images are removed best-effort
        afterwards. One product:deleted event is published per product,
        then business:deleted.

        Returns:
            Number of products removed

        Raises:
            BusinessNotFoundError: If the business doesn't exist
        """
        await self.get_business(uid, business_id)

        products = await self.store.query(products_collection(uid, business_id))
        product_ids = [p["id"] for p in products if p.get("id")]

        paths = [product_path(uid, business_id, pid) for pid in product_ids]
        paths.append(business_path(uid, business_id))
        await self.store.delete_many(paths)

        await self.storage.delete_folder(business_folder(uid, business_id))
        logger.info(f"Deleted business {business_id} with {len(product_ids)} products")

        for product_id in product_ids:
            await self.events.product_deleted(uid, business_id, product_id)
        await self.events.business_deleted(uid, business_id)

        return len(product_ids)
