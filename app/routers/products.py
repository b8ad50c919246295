# =============================================================================
# app/routers/products.py - Product Endpoints
# =============================================================================
# Handles product import, CRUD and source image upload.
# All endpoints require authentication.
#
# Route order matters: the fixed segments (/upload, /next, /update) are
# declared before the {businessId}/{productId} patterns they would
# otherwise match.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, File, Path, Query, UploadFile

from app.auth import CurrentUser
from app.config import settings
from app.dependencies import ContextDep
from app.exceptions import FileTooLargeError, InvalidFileTypeError
from core.models.product import (
    ProductCreate,
    ProductImportRequest,
    ProductStatus,
    ProductUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()

BusinessIdPath = Annotated[str, Path(description="Business id")]
ProductIdPath = Annotated[str, Path(description="Product id")]


# =============================================================================
# Batch / Automation
# =============================================================================

@router.post("/upload")
async def import_products(request: ProductImportRequest, user: CurrentUser, context: ContextDep):
    """
    Save a batch of products for one business.

    Creates the business if needed and merges `businessInfo` into it.
    Every imported product is (re)set to pending.
    """
    products = await context.products.import_products(user.id, request)
    return {
        "success": True,
        "message": f"Saved {len(products)} products for user {user.id}, business {request.business_id}",
        "businessId": request.business_id,
        "savedCount": len(products),
        "products": products,
    }


@router.get("/next/{business_id}")
async def next_pending_product(business_id: BusinessIdPath, user: CurrentUser, context: ContextDep):
    """Get the next product waiting for enrichment, or 404 if none is pending."""
    product = await context.products.next_pending(user.id, business_id)
    return {"success": True, "businessId": business_id, "productId": product["id"], **product}


@router.patch("/update/{business_id}/{product_id}")
async def update_product(
    business_id: BusinessIdPath,
    product_id: ProductIdPath,
    request: ProductUpdate,
    user: CurrentUser,
    context: ContextDep,
):
    """
    Update any product field(s).

    Only provided fields are merged. A `status` change must follow the
    product lifecycle (409 otherwise).
    """
    product = await context.products.update_product(user.id, business_id, product_id, request)
    return {
        "success": True,
        "message": f"Product {product_id} updated successfully",
        "product": product,
    }


# =============================================================================
# CRUD
# =============================================================================

@router.get("/{business_id}")
async def list_products(
    business_id: BusinessIdPath,
    user: CurrentUser,
    context: ContextDep,
    status: Annotated[ProductStatus | None, Query(description="Filter by status")] = None,
):
    """List a business's products."""
    products = await context.products.list_products(user.id, business_id, status=status)
    return {"success": True, "businessId": business_id, "products": products, "total": len(products)}


@router.post("/{business_id}", status_code=201)
async def create_product(
    business_id: BusinessIdPath,
    request: ProductCreate,
    user: CurrentUser,
    context: ContextDep,
):
    """
    Create a product.

    New products always start as pending.
    """
    product = await context.products.create_product(user.id, business_id, request)
    return {"success": True, "productId": product["id"], "product": product}


@router.get("/{business_id}/{product_id}")
async def get_product(
    business_id: BusinessIdPath,
    product_id: ProductIdPath,
    user: CurrentUser,
    context: ContextDep,
):
    """Get a product."""
    product = await context.products.get_product(user.id, business_id, product_id)
    return {"success": True, "product": product}


@router.post("/{business_id}/{product_id}/image")
async def upload_product_image(
    business_id: BusinessIdPath,
    product_id: ProductIdPath,
    file: Annotated[UploadFile, File(description="Product photo (PNG, JPEG or WebP)")],
    user: CurrentUser,
    context: ContextDep,
):
    """
    Upload the product's source photo.

    The photo is stored under the product's folder and imageUrl is set to
    a signed URL for it.
    """
    filename = file.filename or "image"
    allowed = settings.allowed_image_types_list

    content_type = (file.content_type or "").lower()
    if content_type not in allowed:
        raise InvalidFileTypeError(filename, file.content_type, allowed)

    content = await file.read()
    if len(content) > settings.max_upload_size_bytes:
        raise FileTooLargeError(len(content) / (1024 * 1024), settings.MAX_UPLOAD_SIZE_MB)

    product = await context.products.upload_image(
        user.id,
        business_id,
        product_id,
        content,
        filename,
        content_type,
    )
    return {"success": True, "imageUrl": product.get("imageUrl"), "product": product}


@router.delete("/{business_id}/{product_id}")
async def delete_product(
    business_id: BusinessIdPath,
    product_id: ProductIdPath,
    user: CurrentUser,
    context: ContextDep,
):
    """Delete a product and its stored images."""
    await context.products.delete_product(user.id, business_id, product_id)
    return {
        "success": True,
        "id": product_id,
        "businessId": business_id,
        "message": f"Product {product_id} deleted",
    }
