# =============================================================================
# core/services/generation_service.py - Advertisement Image Generation Flow
# =============================================================================
# Drives one product through generation:
#
#   1. Read the product (404 if missing)
#   2. Check preconditions: imageUrl + imagePrompt, status pending|failed
#   3. Commit "processing" and publish it
#   4. Generate (with timeout), upload to .../products/{id}/generated/
#   5. Commit "enriched" with the signed URL and publish it
#
# Any failure after step 2 commits "failed" with an errorMessage and
# publishes it, so a product never stays in "processing". A product deleted
# mid-run is not recreated: the caller gets 404 and the generated image is
# removed again.
# =============================================================================

import asyncio
import logging
from typing import Any

from app.exceptions import GenerationFailedError, ProductNotFoundError
from app.websocket.broadcast import EventPublisher
from core.services import lifecycle
from core.services.storage_service import StorageService, product_folder
from lib.document_store import DocumentStore, product_path
from lib.image_generator import ImageGenerator

logger = logging.getLogger(__name__)


class GenerationService:
    """
    Runs image generation for a product and records the outcome.

    Args:
        store: Document store
        storage: Blob storage for the generated image
        generator: Image generation backend
        events: Publisher for product:updated
        timeout: Seconds before a generation attempt counts as failed
    """

    def __init__(
        self,
        store: DocumentStore,
        storage: StorageService,
        generator: ImageGenerator,
        events: EventPublisher,
        timeout: float = 120.0,
    ):
        self.store = store
        self.storage = storage
        self.generator = generator
        self.events = events
        self.timeout = timeout

    async def generate_ad_image(self, uid: str, business_id: str, product_id: str) -> dict[str, Any]:
        """
        Generate the advertisement image for one product.

        Returns:
            The enriched product document

        Raises:
            ProductNotFoundError: Product doesn't exist, or was deleted mid-run
            GenerationPreconditionError: Missing imageUrl/imagePrompt (nothing written)
            InvalidStatusTransitionError: Product not pending or failed (nothing written)
            GenerationFailedError: Generation failed; product was marked failed
        """
        path = product_path(uid, business_id, product_id)

        product = await self.store.get(path)
        if product is None:
            raise ProductNotFoundError(business_id, product_id)

        lifecycle.check_generation_preconditions(product_id, product)

        try:
            processing = await self._commit(path, business_id, product_id, lifecycle.generation_started_patch())
            await self.events.product_updated(uid, processing)

            image = await asyncio.wait_for(
                self.generator.generate(product["imageUrl"], product["imagePrompt"]),
                timeout=self.timeout,
            )

            folder = f"{product_folder(uid, business_id, product_id)}/generated"
            storage_path = await self.storage.upload_image(folder, image, "generated.png", "image/png")
            url = await self.storage.get_url(storage_path)

            enriched = await self._commit(path, business_id, product_id, lifecycle.generation_succeeded_patch(url))

        except ProductNotFoundError:
            logger.warning(f"Product {product_id} was deleted during generation")
            await self.storage.delete_folder(product_folder(uid, business_id, product_id))
            raise

        except asyncio.TimeoutError as e:
            message = f"Image generation timed out after {self.timeout:g}s"
            await self._record_failure(uid, path, product_id, message)
            raise GenerationFailedError(product_id, message) from e

        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"Generation failed for product {product_id}: {message}")
            await self._record_failure(uid, path, product_id, message)
            raise GenerationFailedError(product_id, message) from e

        logger.info(f"Product {product_id} enriched")
        await self.events.product_updated(uid, enriched)
        return enriched

    async def _commit(self, path: str, business_id: str, product_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        merged = await self.store.merge(path, patch)
        if merged is None:
            # Deleted while generating
            raise ProductNotFoundError(business_id, product_id)
        return merged

    async def _record_failure(self, uid: str, path: str, product_id: str, message: str) -> None:
        """Mark the product failed and publish it. Never raises."""
        try:
            failed = await self.store.merge(path, lifecycle.generation_failed_patch(message))
        except Exception:
            logger.exception(f"Could not mark product {product_id} as failed")
            return

        if failed is None:
            logger.warning(f"Product {product_id} vanished before it could be marked failed")
            return

        await self.events.product_updated(uid, failed)
