# =============================================================================
# app/routers/ai.py - AI Generation Endpoints
# =============================================================================
# Triggers advertisement image generation for a product.
# =============================================================================

from fastapi import APIRouter

from app.auth import CurrentUser
from app.dependencies import ContextDep
from core.models.product import GenerateAdImageRequest

router = APIRouter()


@router.post("/generate-ad-image")
async def generate_ad_image(request: GenerateAdImageRequest, user: CurrentUser, context: ContextDep):
    """
    Generate an advertisement image from the product photo and prompt.

    The product goes to "processing" while the image is generated, then to
    "enriched" (with generatedImageUrl) or "failed" (with errorMessage).
    Each change is pushed to the caller's open websocket sessions.

    Errors:
        400: Product has no imageUrl or imagePrompt
        404: Product not found
        409: Product is not pending or failed
        500: Generation failed (product is now "failed")
    """
    product = await context.generation.generate_ad_image(user.id, request.business_id, request.product_id)
    return {
        "success": True,
        "productId": request.product_id,
        "generatedImageUrl": product.get("generatedImageUrl"),
        "product": product,
    }
