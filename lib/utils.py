# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import hashlib
from datetime import datetime, timezone


# =============================================================================
# Timestamps
# =============================================================================

def utc_timestamp() -> str:
    """
    Current UTC time as a fixed-width ISO-8601 string.

    Always carries microseconds and a trailing "Z", so two timestamps compare
    correctly as plain strings as well as parsed datetimes.

    Example:
        utc_timestamp()  # "2025-03-01T12:30:05.123456Z"
    """
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse a timestamp written by utc_timestamp()."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# =============================================================================
# Identifiers
# =============================================================================

def product_id_from_name(name: str | None) -> str:
    """
    Derive a stable product id from its name.

    Imports without explicit ids land on the same document when the same
    product is imported again.

    Example:
        product_id_from_name("Lamp")  # "1d5a5b8e..."
    """
    return hashlib.md5((name or "unnamed").encode("utf-8")).hexdigest()
