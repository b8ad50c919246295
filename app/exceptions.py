# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error response carries "success": false, a human-readable "error",
# a machine-readable "code" and, where possible, a suggestion on how to fix it.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class AutoAdException(Exception):
    """
    Base exception for the Auto-Advertisement API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "AUTOAD_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Not Found
# =============================================================================

class UserNotFoundError(AutoAdException):
    """Raised when the authenticated user has no profile document yet."""

    def __init__(self, uid: str):
        super().__init__(
            message=f"User not found: {uid}",
            code="USER_NOT_FOUND",
            status_code=404,
            suggestion="Call POST /auth/login once to create your account",
            details={"uid": uid}
        )


class BusinessNotFoundError(AutoAdException):
    """Raised when a business ID doesn't exist under the current user."""

    def __init__(self, business_id: str):
        super().__init__(
            message=f"Business not found: {business_id}",
            code="BUSINESS_NOT_FOUND",
            status_code=404,
            suggestion="Check that the businessId is correct and belongs to your account",
            details={"businessId": business_id}
        )


class ProductNotFoundError(AutoAdException):
    """Raised when a product ID doesn't exist under the given business."""

    def __init__(self, business_id: str, product_id: str):
        super().__init__(
            message=f"Product not found: {product_id}",
            code="PRODUCT_NOT_FOUND",
            status_code=404,
            suggestion="Check that the productId is correct for this business",
            details={"businessId": business_id, "productId": product_id}
        )


class ProductAlreadyExistsError(AutoAdException):
    """Raised when creating a product with an id that is already taken."""

    def __init__(self, business_id: str, product_id: str):
        super().__init__(
            message=f"Product already exists: {product_id}",
            code="PRODUCT_ALREADY_EXISTS",
            status_code=409,
            suggestion="Omit id to get a generated one, or use PATCH to change the existing product",
            details={"businessId": business_id, "productId": product_id}
        )


class NoPendingProductsError(AutoAdException):
    """Raised when a business has no product waiting for enrichment."""

    def __init__(self, business_id: str):
        super().__init__(
            message="No pending products",
            code="NO_PENDING_PRODUCTS",
            status_code=404,
            suggestion="Import or create products, or retry failed ones by setting status to pending",
            details={"businessId": business_id}
        )


# =============================================================================
# Validation
# =============================================================================

class ValidationFailedError(AutoAdException):
    """Raised when a request is missing required fields or has bad values."""

    def __init__(self, message: str, suggestion: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            suggestion=suggestion,
            details=details,
        )


class InvalidIdentifierError(ValidationFailedError):
    """Raised when an id would not form a safe document path segment."""

    def __init__(self, kind: str, value: str):
        super().__init__(
            message=f"Invalid {kind}: {value!r}",
            suggestion="Identifiers may contain only letters, digits, '-' and '_' (max 128 characters)",
            details={"kind": kind, "value": value},
        )


class InvalidStatusTransitionError(AutoAdException):
    """Raised when a status change is not an edge of the lifecycle table."""

    def __init__(self, current: str, target: str, allowed: list[str]):
        allowed_text = ", ".join(allowed) if allowed else "none"
        super().__init__(
            message=f"Cannot change status from '{current}' to '{target}'",
            code="INVALID_STATUS_TRANSITION",
            status_code=409,
            suggestion=f"From '{current}' the allowed next statuses are: {allowed_text}",
            details={"current": current, "target": target, "allowed": allowed},
        )


class GenerationPreconditionError(AutoAdException):
    """Raised before generation when the product lacks an image or prompt."""

    def __init__(self, product_id: str, missing: list[str]):
        super().__init__(
            message=f"Missing {' or '.join(missing)}",
            code="GENERATION_PRECONDITION_FAILED",
            status_code=400,
            suggestion="Upload a product image and set imagePrompt before generating",
            details={"productId": product_id, "missing": missing},
        )


# =============================================================================
# Upstream Failures
# =============================================================================

class GenerationFailedError(AutoAdException):
    """Raised after a generation attempt failed and the product was marked failed."""

    def __init__(self, product_id: str, error: str):
        super().__init__(
            message="Internal server error",
            code="GENERATION_FAILED",
            status_code=500,
            suggestion="The product was marked failed; set its status back to pending to retry",
            details={"productId": product_id, "error": error},
        )


class EntityStoreError(AutoAdException):
    """Raised when a document read or write fails."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            message=f"Database operation failed: {operation}",
            code="ENTITY_STORE_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"operation": operation, "error": error},
        )


class StorageUploadError(AutoAdException):
    """Raised when an image upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload image to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


class InvalidFileTypeError(AutoAdException):
    """Raised when an uploaded image has a disallowed content type."""

    def __init__(self, filename: str, content_type: str | None, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {filename}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these image types are supported: {', '.join(allowed)}",
            details={"filename": filename, "contentType": content_type, "allowedTypes": allowed}
        )


class FileTooLargeError(AutoAdException):
    """Raised when an uploaded image exceeds the size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload an image smaller than {max_mb}MB",
            details={"sizeMb": size_mb, "maxMb": max_mb}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def autoad_exception_handler(
    request: Request,
    exc: AutoAdException
) -> JSONResponse:
    """
    Convert AutoAdException to JSON response.

    Returns structured error with:
    - success: always false
    - error: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """Render HTTP errors (e.g. 401 from auth) in the common envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": str(exc.detail),
            "code": "UNAUTHORIZED" if exc.status_code == 401 else "HTTP_ERROR",
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors to user-friendly messages.
    """
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Validation error",
            "code": "VALIDATION_ERROR",
            "details": {"errors": jsonable_encoder(exc.errors())},
        }
    )
