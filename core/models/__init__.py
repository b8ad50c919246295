# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - product.py: Product document, lifecycle status, request bodies
# - business.py: Business document and descriptive fields
# - user.py: User profile document
#
# Documents use camelCase keys on the wire and in the database; the Python
# attributes are snake_case.
# =============================================================================

from .business import (
    Address,
    Business,
    BusinessCreate,
    BusinessInfo,
    BusinessPersona,
    Owner,
)
from .product import (
    GenerateAdImageRequest,
    Product,
    ProductContent,
    ProductCreate,
    ProductImportItem,
    ProductImportRequest,
    ProductStatus,
    ProductUpdate,
)
from .user import User

__all__ = [
    # Business
    "Address",
    "Business",
    "BusinessCreate",
    "BusinessInfo",
    "BusinessPersona",
    "Owner",
    # Product
    "GenerateAdImageRequest",
    "Product",
    "ProductContent",
    "ProductCreate",
    "ProductImportItem",
    "ProductImportRequest",
    "ProductStatus",
    "ProductUpdate",
    # User
    "User",
]
