# =============================================================================
# core/models/product.py - Product Schemas
# =============================================================================
# These models define the product document and the API contract for
# product operations:
# - ProductStatus: the lifecycle states
# - Product: the stored document (camelCase JSON)
# - ProductCreate / ProductUpdate / ProductImportRequest: request bodies
# - GenerateAdImageRequest: body of POST /ai/generate-ad-image
#
# A product always belongs to one business, which belongs to one user.
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .business import BusinessInfo


class ProductStatus(str, Enum):
    """
    Lifecycle of a product's advertisement.

    - pending: newly created, waiting for enrichment
    - processing: image generation in progress
    - enriched: generated image (and ad text) ready to post
    - posted: advertisement published
    - failed: generation failed, see errorMessage

    Flow: pending -> processing -> enriched -> posted
                               \\-> failed -> pending (retry)
    """
    PENDING = "pending"
    PROCESSING = "processing"
    ENRICHED = "enriched"
    POSTED = "posted"
    FAILED = "failed"


class CamelModel(BaseModel):
    """Base for models whose JSON form uses camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductContent(CamelModel):
    """
    Client-writable product fields.

    The AI configuration fields are passed through to the generation
    workflow untouched.
    """

    name: str | None = None
    price: float | None = Field(default=None, ge=0)
    description: str | None = None
    image_url: str | None = None
    generated_image_url: str | None = None
    advertisement_text: str | None = None
    image_prompt: str | None = None

    # AI configuration
    product_type: str | None = None
    product_category: str | None = None
    marketing_goal: str | None = None
    visual_mood: str | None = None
    photo_style: str | None = None
    background_style: str | None = None
    target_audience: str | None = None
    include_price_in_ad: bool = True
    emphasize_brand_identity: bool = False
    preserve_original_product: bool = True
    aspect_ratio: str = "1:1"
    tone_of_voice: str | None = None
    secondary_language: str | None = None


class Product(ProductContent):
    """
    Stored product document.

    Returned by every product endpoint and carried in product events.

    Example:
        {
            "id": "a1b2c3",
            "businessId": "biz-1",
            "name": "Lamp",
            "price": 20,
            "status": "pending",
            "createdAt": "2025-03-01T12:30:05.123456Z",
            "updatedAt": "2025-03-01T12:30:05.123456Z",
            ...
        }
    """

    id: str
    business_id: str
    status: ProductStatus = ProductStatus.PENDING
    error_message: str | None = None
    post_date: str | None = None
    failed_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class ProductCreate(ProductContent):
    """
    Body of POST /products/{businessId}.

    `id` is optional; a random id is assigned when omitted. `status` may be
    omitted or "pending" - new products always start pending.
    """

    model_config = ConfigDict(extra="forbid")

    id: str | None = Field(default=None, description="Optional client-chosen product id")
    status: ProductStatus | None = None


class ProductImportItem(ProductContent):
    """
    One product in a batch import.

    Unknown keys are tolerated (imports come from spreadsheets and
    automation tools) but dropped. `Name` is accepted as a legacy spelling
    of `name`.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    legacy_name: str | None = Field(default=None, alias="Name")


class ProductImportRequest(CamelModel):
    """
    Body of POST /products/upload.

    `products` may be a single object or a list; `businessInfo` may be an
    object or a JSON string.
    """

    business_id: str
    business_info: BusinessInfo | str | None = None
    products: list[ProductImportItem] | ProductImportItem

    def product_list(self) -> list[ProductImportItem]:
        return self.products if isinstance(self.products, list) else [self.products]


class ProductUpdate(CamelModel):
    """
    Body of PATCH /products/update/{businessId}/{productId}.

    Every field is optional; only the fields present in the request are
    merged. Server-managed fields are not accepted.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: str | None = None
    price: float | None = Field(default=None, ge=0)
    description: str | None = None
    image_url: str | None = None
    generated_image_url: str | None = None
    advertisement_text: str | None = None
    image_prompt: str | None = None
    status: ProductStatus | None = None
    error_message: str | None = None

    product_type: str | None = None
    product_category: str | None = None
    marketing_goal: str | None = None
    visual_mood: str | None = None
    photo_style: str | None = None
    background_style: str | None = None
    target_audience: str | None = None
    include_price_in_ad: bool | None = None
    emphasize_brand_identity: bool | None = None
    preserve_original_product: bool | None = None
    aspect_ratio: str | None = None
    tone_of_voice: str | None = None
    secondary_language: str | None = None

    def to_patch(self) -> dict[str, Any]:
        """Fields the client actually sent, as camelCase JSON."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class GenerateAdImageRequest(CamelModel):
    """Body of POST /ai/generate-ad-image."""

    business_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
