# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - businesses.py: Business CRUD endpoints
# - products.py: Product import, CRUD and image upload endpoints
# - ai.py: Advertisement image generation endpoint
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import businesses
from . import products
from . import ai

__all__ = [
    "health",
    "businesses",
    "products",
    "ai",
]
