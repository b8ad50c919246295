# =============================================================================
# core/services/product_service.py - Product Business Logic
# =============================================================================
# Handles product CRUD under users/{uid}/businesses/{businessId}/products.
# Status changes go through core.services.lifecycle; every committed write
# is published to the owner's room after it succeeded.
# =============================================================================

import json
import logging
from typing import Any

from app.exceptions import (
    NoPendingProductsError,
    ProductAlreadyExistsError,
    ProductNotFoundError,
    ValidationFailedError,
)
from app.websocket.broadcast import EventPublisher
from core.models.business import BusinessInfo
from core.models.product import (
    ProductCreate,
    ProductImportRequest,
    ProductStatus,
    ProductUpdate,
)
from core.services import lifecycle
from core.services.business_service import BusinessService
from core.services.storage_service import StorageService, product_folder
from lib.document_store import (
    DocumentStore,
    product_path,
    products_collection,
    validate_identifier,
)
from lib.utils import product_id_from_name

logger = logging.getLogger(__name__)


class ProductService:
    """
    Service for product management operations.

    Example:
        service = ProductService(store, storage, events, businesses)
        product = await service.create_product(uid, "biz-1", ProductCreate(name="Lamp", price=20))
    """

    def __init__(
        self,
        store: DocumentStore,
        storage: StorageService,
        events: EventPublisher,
        businesses: BusinessService,
    ):
        self.store = store
        self.storage = storage
        self.events = events
        self.businesses = businesses

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_product(self, uid: str, business_id: str, product_id: str) -> dict[str, Any]:
        """
        Get a product by ID.

        Raises:
            ProductNotFoundError: If the product doesn't exist
        """
        product = await self.store.get(product_path(uid, business_id, product_id))
        if product is None:
            raise ProductNotFoundError(business_id, product_id)
        return product

    async def list_products(
        self,
        uid: str,
        business_id: str,
        status: ProductStatus | None = None,
    ) -> list[dict[str, Any]]:
        """List a business's products, optionally only those in one status."""
        await self.businesses.get_business(uid, business_id)
        where = {"status": status.value} if status else None
        return await self.store.query(products_collection(uid, business_id), where=where)

    async def next_pending(self, uid: str, business_id: str) -> dict[str, Any]:
        """
        Oldest product still waiting for enrichment.

        Raises:
            NoPendingProductsError: If nothing is pending
        """
        products = await self.store.query(
            products_collection(uid, business_id),
            where={"status": ProductStatus.PENDING.value},
            limit=1,
        )
        if not products:
            raise NoPendingProductsError(business_id)
        return products[0]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create_product(self, uid: str, business_id: str, data: ProductCreate) -> dict[str, Any]:
        """
        Create one product in status "pending".

        Raises:
            BusinessNotFoundError: If the business doesn't exist
            ProductAlreadyExistsError: If a client-chosen id is taken
            ValidationFailedError: If a non-pending status was requested
        """
        await self.businesses.get_business(uid, business_id)

        product_id = data.id
        if product_id is not None:
            path = product_path(uid, business_id, product_id)
            if await self.store.get(path) is not None:
                raise ProductAlreadyExistsError(business_id, product_id)

        fields = data.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude={"id"})
        document = lifecycle.new_product_document(business_id, fields, product_id=product_id)

        await self.store.set(product_path(uid, business_id, document["id"]), document)
        logger.info(f"Created product {document['id']} in business {business_id}")

        await self.events.product_created(uid, document)
        return document

    async def import_products(self, uid: str, request: ProductImportRequest) -> list[dict[str, Any]]:
        """
        Save a batch of products for one business in a single write.

        The business is created if missing and `businessInfo` is merged into
        it. Products without an id get one derived from their name, so
        importing the same list twice updates rather than duplicates. Every
        imported product (re)enters the pipeline as pending.

        Returns:
            The saved product documents
        """
        business_id = validate_identifier(request.business_id, "businessId")
        items = request.product_list()
        if not items:
            raise ValidationFailedError("Missing businessId or products")

        await self.businesses.upsert_business_info(uid, business_id, _business_info(request.business_info))

        # Items sharing an id (same name, or no name at all) fold into one
        # document, later items merged over earlier ones
        documents: dict[str, dict[str, Any]] = {}
        created: set[str] = set()

        for item in items:
            fields = item.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude={"id", "legacy_name"})
            if not fields.get("name") and item.legacy_name:
                fields["name"] = item.legacy_name

            product_id = item.id or product_id_from_name(fields.get("name"))
            path = product_path(uid, business_id, product_id)

            if path in documents:
                existing = documents[path]
            else:
                existing = await self.store.get(path)
                if existing is None:
                    created.add(path)

            documents[path] = lifecycle.imported_product_document(business_id, product_id, fields, existing=existing)

        await self.store.set_many(list(documents.items()))
        logger.info(f"Saved {len(documents)} products for user {uid}, business {business_id}")

        for path, document in documents.items():
            if path in created:
                await self.events.product_created(uid, document)
            else:
                await self.events.product_updated(uid, document)

        return list(documents.values())

    async def update_product(
        self,
        uid: str,
        business_id: str,
        product_id: str,
        updates: ProductUpdate,
    ) -> dict[str, Any]:
        """
        Merge a partial update into a product.

        Raises:
            ProductNotFoundError: If the product doesn't exist (no event)
            ValidationFailedError: If the update is empty
            InvalidStatusTransitionError: If the status change is illegal
        """
        path = product_path(uid, business_id, product_id)
        existing = await self.get_product(uid, business_id, product_id)

        patch = lifecycle.manual_update_patch(existing, updates.to_patch())
        merged = await self.store.merge(path, patch)
        if merged is None:
            raise ProductNotFoundError(business_id, product_id)

        await self.events.product_updated(uid, merged)
        return merged

    async def upload_image(
        self,
        uid: str,
        business_id: str,
        product_id: str,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> dict[str, Any]:
        """
        Store a source photo for the product and point imageUrl at it.

        Raises:
            ProductNotFoundError: If the product doesn't exist
            StorageUploadError: If the upload fails
        """
        path = product_path(uid, business_id, product_id)
        await self.get_product(uid, business_id, product_id)

        folder = f"{product_folder(uid, business_id, product_id)}/original"
        storage_path = await self.storage.upload_image(folder, content, filename, content_type)
        url = await self.storage.get_url(storage_path)

        patch = lifecycle.manual_update_patch({}, {"imageUrl": url})
        merged = await self.store.merge(path, patch)
        if merged is None:
            raise ProductNotFoundError(business_id, product_id)

        await self.events.product_updated(uid, merged)
        return merged

    async def delete_product(self, uid: str, business_id: str, product_id: str) -> None:
        """
        Delete a product and, best effort, its stored images.

        Raises:
            ProductNotFoundError: If the product doesn't exist (no event)
        """
        path = product_path(uid, business_id, product_id)
        await self.get_product(uid, business_id, product_id)

        if not await self.store.delete(path):
            raise ProductNotFoundError(business_id, product_id)

        await self.storage.delete_folder(product_folder(uid, business_id, product_id))
        logger.info(f"Deleted product {product_id} from business {business_id}")

        await self.events.product_deleted(uid, business_id, product_id)


def _business_info(value: BusinessInfo | str | None) -> BusinessInfo | None:
    """Imports may send businessInfo as a JSON string; unreadable strings are ignored."""
    if value is None or isinstance(value, BusinessInfo):
        return value

    try:
        parsed = json.loads(value)
    except ValueError:
        logger.warning("Could not parse businessInfo string, ignoring it")
        return None

    if not isinstance(parsed, dict):
        return None
    return BusinessInfo.model_validate(parsed)
