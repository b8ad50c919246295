# =============================================================================
# core/context.py - Application Context
# =============================================================================
# Everything a request needs, constructed once at startup and passed in:
# the document store, blob storage, image generator and the websocket
# connection registry, plus the services built on top of them.
#
# There is no module-level database or socket handle anywhere else; tests
# build an AppContext from in-memory fakes and inject it instead.
#
# Usage:
#   context = AppContext.create(settings)
#   ...
#   await context.aclose()
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.config import Settings
from app.websocket.broadcast import EventPublisher
from app.websocket.manager import ConnectionManager
from core.services.business_service import BusinessService
from core.services.generation_service import GenerationService
from core.services.product_service import ProductService
from core.services.storage_service import StorageService
from core.services.user_service import UserService
from lib.document_store import DocumentStore, SupabaseDocumentStore
from lib.image_generator import ImageGenerator, OpenAIImageGenerator
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """
    Collaborators shared by all requests.

    Only the four leaf collaborators are passed in; the event publisher and
    services are derived from them.
    """

    settings: Settings
    store: DocumentStore
    storage: StorageService
    generator: ImageGenerator
    connections: ConnectionManager = field(default_factory=ConnectionManager)

    def __post_init__(self) -> None:
        self.events = EventPublisher(self.connections)
        self.businesses = BusinessService(self.store, self.storage, self.events)
        self.products = ProductService(self.store, self.storage, self.events, self.businesses)
        self.users = UserService(self.store, self.businesses, self.products)
        self.generation = GenerationService(
            self.store,
            self.storage,
            self.generator,
            self.events,
            timeout=self.settings.IMAGE_GENERATION_TIMEOUT_SECONDS,
        )

    @classmethod
    def create(cls, settings: Settings) -> AppContext:
        """Build the production context (Supabase + OpenAI)."""
        client = SupabaseClient.get_client()

        context = cls(
            settings=settings,
            store=SupabaseDocumentStore(client, table=settings.DOCUMENTS_TABLE),
            storage=StorageService(
                client,
                bucket=settings.STORAGE_BUCKET,
                signed_url_expires_in=settings.SIGNED_URL_EXPIRES_IN,
            ),
            generator=OpenAIImageGenerator(
                api_key=settings.OPENAI_API_KEY,
                organization=settings.OPENAI_ORG_ID,
                model=settings.IMAGE_MODEL,
                size=settings.IMAGE_SIZE,
                download_timeout=settings.IMAGE_DOWNLOAD_TIMEOUT_SECONDS,
            ),
        )
        logger.info("Application context created")
        return context

    async def aclose(self) -> None:
        """Release network clients."""
        await self.generator.aclose()
        SupabaseClient.reset()
        logger.info("Application context closed")
