# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .storage_service import StorageService
from .business_service import BusinessService
from .product_service import ProductService
from .generation_service import GenerationService
from .user_service import UserService

__all__ = [
    "StorageService",
    "BusinessService",
    "ProductService",
    "GenerationService",
    "UserService",
]
