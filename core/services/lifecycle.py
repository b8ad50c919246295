# =============================================================================
# core/services/lifecycle.py - Product Lifecycle Controller
# =============================================================================
# Owns the product `status` state machine. Every mutation path asks this
# module for the patch to commit:
#
#   create            -> new_product_document()        status = pending
#   batch import      -> imported_product_document()   status = pending
#   manual update     -> manual_update_patch()         table-checked
#   generation start  -> generation_started_patch()    pending|failed -> processing
#   generation ok     -> generation_succeeded_patch()  -> enriched
#   generation error  -> generation_failed_patch()     -> failed
#
# Transition table:
#
#   pending    -> processing
#   processing -> enriched | failed
#   enriched   -> posted
#   failed     -> pending            (retry)
#   posted     -> (terminal)
#
# The functions here are pure: they read a document dict and return the
# camelCase patch to merge. They never touch the store.
# =============================================================================

import logging
import uuid
from typing import Any

from app.exceptions import (
    GenerationPreconditionError,
    InvalidStatusTransitionError,
    ValidationFailedError,
)
from core.models.product import Product, ProductStatus
from lib.utils import utc_timestamp

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: dict[ProductStatus, frozenset[ProductStatus]] = {
    ProductStatus.PENDING: frozenset({ProductStatus.PROCESSING}),
    ProductStatus.PROCESSING: frozenset({ProductStatus.ENRICHED, ProductStatus.FAILED}),
    ProductStatus.ENRICHED: frozenset({ProductStatus.POSTED}),
    ProductStatus.FAILED: frozenset({ProductStatus.PENDING}),
    ProductStatus.POSTED: frozenset(),
}

# Generation may start fresh or retry a failure (failed -> pending -> processing)
GENERATION_START_STATES = frozenset({ProductStatus.PENDING, ProductStatus.FAILED})

# Set by the server only
SERVER_MANAGED_FIELDS = frozenset({
    "id",
    "businessId",
    "createdAt",
    "updatedAt",
    "postDate",
    "failedAt",
})

REQUIRED_FOR_GENERATION = ("imageUrl", "imagePrompt")


# =============================================================================
# Transition Table
# =============================================================================

def status_of(document: dict[str, Any]) -> ProductStatus:
    """
    Read the lifecycle status of a stored product.

    Documents written before the status field existed count as pending.
    """
    value = document.get("status")
    if not value:
        return ProductStatus.PENDING
    try:
        return ProductStatus(value)
    except ValueError:
        logger.warning(f"Unknown product status {value!r} on {document.get('id')}, treating as pending")
        return ProductStatus.PENDING


def allowed_next(current: ProductStatus) -> list[str]:
    """Statuses reachable from `current` in one step, sorted for display."""
    return sorted(status.value for status in ALLOWED_TRANSITIONS[current])


def can_transition(current: ProductStatus, target: ProductStatus) -> bool:
    """Setting the current status again is a no-op and always allowed."""
    return current == target or target in ALLOWED_TRANSITIONS[current]


def validate_transition(current: ProductStatus, target: ProductStatus) -> None:
    """
    Raise unless current -> target is an edge of the transition table.

    Raises:
        InvalidStatusTransitionError: For any other edge
    """
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(current.value, target.value, allowed_next(current))


def _parse_status(value: Any) -> ProductStatus:
    if value is None:
        raise ValidationFailedError("status cannot be null")
    try:
        return ProductStatus(value)
    except ValueError:
        raise ValidationFailedError(
            f"Unknown status: {value!r}",
            suggestion=f"Use one of: {', '.join(s.value for s in ProductStatus)}",
        )


# =============================================================================
# Creation
# =============================================================================

def new_product_document(
    business_id: str,
    fields: dict[str, Any],
    product_id: str | None = None,
    now: str | None = None,
) -> dict[str, Any]:
    """
    Build the document for a newly created product.

    Args:
        business_id: Owning business
        fields: Client fields (camelCase or snake_case); may include "status"
        product_id: Id to use; a random hex id when omitted
        now: Timestamp override

    Returns:
        Full product document with status "pending"

    Raises:
        ValidationFailedError: If a status other than pending was requested
    """
    fields = dict(fields)
    requested = fields.pop("status", None)
    if requested is not None and _parse_status(requested) != ProductStatus.PENDING:
        raise ValidationFailedError(
            f"New products start as 'pending', not {requested!r}",
            suggestion="Omit status when creating a product",
        )

    for key in SERVER_MANAGED_FIELDS | {"business_id", "errorMessage", "error_message"}:
        fields.pop(key, None)

    now = now or utc_timestamp()
    product = Product(
        **fields,
        id=product_id or uuid.uuid4().hex,
        business_id=business_id,
        status=ProductStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    return product.model_dump(mode="json", by_alias=True)


def imported_product_document(
    business_id: str,
    product_id: str,
    fields: dict[str, Any],
    existing: dict[str, Any] | None = None,
    now: str | None = None,
) -> dict[str, Any]:
    """
    Build the document for a product arriving through batch import.

    Imports always (re)enter the pipeline as pending. Re-importing an
    existing product merges the imported fields over the stored ones and
    keeps its original createdAt.
    """
    fields = {key: value for key, value in fields.items() if key != "status"}
    if existing is None:
        return new_product_document(business_id, fields, product_id=product_id, now=now)

    now = now or utc_timestamp()
    document = {**existing}
    document.update({key: value for key, value in fields.items() if key not in SERVER_MANAGED_FIELDS})
    document.update({
        "id": product_id,
        "businessId": business_id,
        "status": ProductStatus.PENDING.value,
        "errorMessage": None,
        "failedAt": None,
        "updatedAt": now,
    })
    document.setdefault("createdAt", now)
    return document


# =============================================================================
# Manual Update
# =============================================================================

def _entering(target: ProductStatus, current: ProductStatus, now: str) -> dict[str, Any]:
    """Fields that change as a side effect of entering `target`."""
    if target == ProductStatus.POSTED:
        return {"postDate": now}
    if target == ProductStatus.FAILED:
        return {"failedAt": now}
    if target == ProductStatus.PENDING and current == ProductStatus.FAILED:
        return {"errorMessage": None, "failedAt": None}
    return {}


def manual_update_patch(
    existing: dict[str, Any],
    updates: dict[str, Any],
    now: str | None = None,
) -> dict[str, Any]:
    """
    Turn a client partial update into the patch to merge.

    Non-status fields pass through as-is. A status change must be an edge
    of the transition table. `updatedAt` is always refreshed.

    Raises:
        ValidationFailedError: Empty update, server-managed field, bad status
        InvalidStatusTransitionError: Illegal status edge
    """
    if not updates:
        raise ValidationFailedError(
            "No update fields provided",
            suggestion="Send at least one product field to change",
        )

    protected = sorted(set(updates) & SERVER_MANAGED_FIELDS)
    if protected:
        raise ValidationFailedError(
            f"Fields are managed by the server: {', '.join(protected)}",
            details={"fields": protected},
        )

    now = now or utc_timestamp()
    patch: dict[str, Any] = {}

    if "status" in updates:
        current = status_of(existing)
        target = _parse_status(updates["status"])
        validate_transition(current, target)
        if target != current:
            patch.update(_entering(target, current, now))
            logger.info(f"Product {existing.get('id')} status: {current.value} -> {target.value}")

    patch.update(updates)
    if "status" in patch:
        patch["status"] = _parse_status(patch["status"]).value
    patch["updatedAt"] = now
    return patch


# =============================================================================
# Image Generation Outcomes
# =============================================================================

def check_generation_preconditions(product_id: str, document: dict[str, Any]) -> None:
    """
    Fail fast before any write or external call.

    Raises:
        GenerationPreconditionError: Missing source image or prompt
        InvalidStatusTransitionError: Product is not pending or failed
    """
    missing = [field for field in REQUIRED_FOR_GENERATION if not document.get(field)]
    if missing:
        raise GenerationPreconditionError(product_id, missing)

    current = status_of(document)
    if current not in GENERATION_START_STATES:
        raise InvalidStatusTransitionError(
            current.value,
            ProductStatus.PROCESSING.value,
            allowed_next(current),
        )


def generation_started_patch(now: str | None = None) -> dict[str, Any]:
    return {
        "status": ProductStatus.PROCESSING.value,
        "errorMessage": None,
        "failedAt": None,
        "updatedAt": now or utc_timestamp(),
    }


def generation_succeeded_patch(generated_image_url: str, now: str | None = None) -> dict[str, Any]:
    return {
        "generatedImageUrl": generated_image_url,
        "status": ProductStatus.ENRICHED.value,
        "errorMessage": None,
        "updatedAt": now or utc_timestamp(),
    }


def generation_failed_patch(error_message: str | None, now: str | None = None) -> dict[str, Any]:
    now = now or utc_timestamp()
    return {
        "status": ProductStatus.FAILED.value,
        "errorMessage": error_message or "AI generation failed",
        "failedAt": now,
        "updatedAt": now,
    }
