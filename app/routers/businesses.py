# =============================================================================
# app/routers/businesses.py - Business CRUD Endpoints
# =============================================================================
# Handles business creation and management.
# All endpoints require authentication and only ever touch the caller's
# own businesses.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path

from app.auth import CurrentUser
from app.dependencies import ContextDep
from core.models.business import BusinessCreate, BusinessInfo

router = APIRouter()

BusinessIdPath = Annotated[str, Path(description="Business id")]


@router.post("", status_code=201)
async def create_business(
    request: BusinessCreate,
    user: CurrentUser,
    context: ContextDep,
):
    """
    Create a new business.

    Branding fields that are not provided get their defaults
    (preferredStyle "realistic", languages ["hebrew"]).
    """
    business = await context.businesses.create_business(user.id, request)
    return {"success": True, "businessId": business["businessId"], "business": business}


@router.get("")
async def list_businesses(user: CurrentUser, context: ContextDep):
    """List the caller's businesses."""
    businesses = await context.businesses.list_businesses(user.id)
    return {"success": True, "businesses": businesses, "total": len(businesses)}


@router.get("/{business_id}")
async def get_business(business_id: BusinessIdPath, user: CurrentUser, context: ContextDep):
    """Get a business together with all of its products."""
    business, products = await context.businesses.get_business_with_products(user.id, business_id)
    return {"success": True, "business": business, "products": products}


@router.patch("/{business_id}")
async def update_business(
    business_id: BusinessIdPath,
    request: BusinessInfo,
    user: CurrentUser,
    context: ContextDep,
):
    """
    Update business fields.

    Only the provided fields are changed; nested objects (address, owner,
    businessPersona) are replaced as a whole.
    """
    business = await context.businesses.update_business(user.id, business_id, request)
    return {"success": True, "business": business}


@router.delete("/{business_id}")
async def delete_business(business_id: BusinessIdPath, user: CurrentUser, context: ContextDep):
    """
    Delete a business.

    Also deletes all of its products and their stored images.
    """
    deleted_products = await context.businesses.delete_business(user.id, business_id)
    return {
        "success": True,
        "businessId": business_id,
        "deletedProducts": deleted_products,
        "message": f"Business {business_id} deleted",
    }
