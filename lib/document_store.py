# =============================================================================
# lib/document_store.py - Path-Addressed Document Store
# =============================================================================
# Users, businesses and products live in one hierarchy of JSON documents:
#
#   users/{uid}
#   users/{uid}/businesses/{businessId}
#   users/{uid}/businesses/{businessId}/products/{productId}
#
# Every path is built from the verified user id, so a request can only ever
# address its own subtree. Client-supplied ids are only used for the leaf
# segments and must be plain identifiers.
#
# The Supabase implementation keeps each document as one row of the
# `documents` table (see supabase/migrations). Partial updates go through the
# `merge_document` function so a merge is a single atomic statement.
#
# Usage:
#   from lib.document_store import product_path, SupabaseDocumentStore
#   store = SupabaseDocumentStore(SupabaseClient.get_client())
#   doc = await store.get(product_path(uid, business_id, product_id))
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from supabase import Client

from app.exceptions import InvalidIdentifierError
from lib.supabase_client import SupabaseClientError

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


# =============================================================================
# Paths
# =============================================================================

def validate_identifier(value: str, kind: str = "identifier") -> str:
    """Return value unchanged if it is a safe path segment, else raise."""
    if not isinstance(value, str) or not IDENTIFIER_PATTERN.match(value):
        raise InvalidIdentifierError(kind, str(value))
    return value


def user_path(uid: str) -> str:
    return f"users/{validate_identifier(uid, 'uid')}"


def businesses_collection(uid: str) -> str:
    return f"{user_path(uid)}/businesses"


def business_path(uid: str, business_id: str) -> str:
    return f"{businesses_collection(uid)}/{validate_identifier(business_id, 'businessId')}"


def products_collection(uid: str, business_id: str) -> str:
    return f"{business_path(uid, business_id)}/products"


def product_path(uid: str, business_id: str, product_id: str) -> str:
    return f"{products_collection(uid, business_id)}/{validate_identifier(product_id, 'productId')}"


def split_path(path: str) -> tuple[str, str]:
    """Split a document path into (collection path, document id)."""
    collection, _, doc_id = path.rpartition("/")
    return collection, doc_id



# =============================================================================
# Store Interface
# =============================================================================

class DocumentStore(ABC):
    """
    Minimal document API the services depend on.

    Reads return plain dicts (the stored JSON). Writes take JSON-ready dicts.
    Every method is a coroutine; the request suspends while the database
    round-trip is in flight.
    """

    @abstractmethod
    async def get(self, path: str) -> dict[str, Any] | None:
        """Fetch one document, or None if it does not exist."""

    @abstractmethod
    async def set(self, path: str, data: dict[str, Any]) -> dict[str, Any]:
        """Create or fully replace a document."""

    @abstractmethod
    async def set_many(self, documents: list[tuple[str, dict[str, Any]]]) -> None:
        """
        Create or replace several documents in one write.

        Paths must be distinct; callers fold repeated paths together first.
        """

    @abstractmethod
    async def merge(self, path: str, patch: dict[str, Any]) -> dict[str, Any] | None:
        """
        Shallow-merge patch into an existing document.

        Returns the merged document, or None if the document does not exist
        (a merge never creates a document).
        """

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Delete one document. Returns False if nothing was deleted."""

    @abstractmethod
    async def delete_many(self, paths: list[str]) -> int:
        """Delete several documents by exact path. Returns the count deleted."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        where: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """List documents of one collection, filtered by field equality."""

    @abstractmethod
    async def ping(self) -> None:
        """Raise if the backing database is unreachable."""


# =============================================================================
# Supabase Implementation
# =============================================================================

class SupabaseDocumentStore(DocumentStore):
    """
    DocumentStore backed by a Supabase (PostgREST) table.

    supabase-py's client is synchronous, so each request is built on the
    event loop and executed in a worker thread.

    Table layout:
        path        text primary key
        collection  text not null
        doc_id      text not null
        data        jsonb not null
        created_at  timestamptz default now()
    """

    def __init__(self, client: Client, table: str = "documents"):
        self._client = client
        self._table = table

    def _rows(self):
        return self._client.table(self._table)

    def _row(self, path: str, data: dict[str, Any]) -> dict[str, Any]:
        collection, doc_id = split_path(path)
        return {"path": path, "collection": collection, "doc_id": doc_id, "data": data}

    async def _execute(self, request, action: str, code: str, details: dict[str, Any]):
        """Run a prepared request off the event loop, wrapping any failure."""
        try:
            return await asyncio.to_thread(request.execute)
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to {action}: {e}",
                code=code,
                details=details,
            )

    async def get(self, path: str) -> dict[str, Any] | None:
        request = self._rows().select("data").eq("path", path).limit(1)
        response = await self._execute(request, "fetch document", "FETCH_DOCUMENT_FAILED", {"path": path})

        rows = response.data or []
        return rows[0]["data"] if rows else None

    async def set(self, path: str, data: dict[str, Any]) -> dict[str, Any]:
        request = self._rows().upsert(self._row(path, data), on_conflict="path")
        await self._execute(request, "write document", "WRITE_DOCUMENT_FAILED", {"path": path})

        logger.debug(f"Wrote document {path}")
        return data

    async def set_many(self, documents: list[tuple[str, dict[str, Any]]]) -> None:
        if not documents:
            return

        rows = [self._row(path, data) for path, data in documents]

        # One request, one statement: the batch commits or fails as a whole
        request = self._rows().upsert(rows, on_conflict="path")
        await self._execute(request, "write documents", "WRITE_BATCH_FAILED", {"count": len(rows)})

        logger.debug(f"Wrote {len(rows)} documents in one batch")

    async def merge(self, path: str, patch: dict[str, Any]) -> dict[str, Any] | None:
        request = self._client.rpc("merge_document", {"p_path": path, "p_patch": patch})
        response = await self._execute(
            request,
            "merge document",
            "MERGE_DOCUMENT_FAILED",
            {"path": path, "fields": sorted(patch)},
        )
        return response.data or None

    async def delete(self, path: str) -> bool:
        request = self._rows().delete().eq("path", path)
        response = await self._execute(request, "delete document", "DELETE_DOCUMENT_FAILED", {"path": path})
        return bool(response.data)

    async def delete_many(self, paths: list[str]) -> int:
        if not paths:
            return 0

        request = self._rows().delete().in_("path", paths)
        response = await self._execute(request, "delete documents", "DELETE_BATCH_FAILED", {"count": len(paths)})
        return len(response.data or [])

    async def query(
        self,
        collection: str,
        where: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        request = self._rows().select("data").eq("collection", collection)

        for field, value in (where or {}).items():
            # ->> compares the JSON field as text
            text = str(value).lower() if isinstance(value, bool) else str(value)
            request = request.eq(f"data->>{field}", text)

        request = request.order("created_at")
        if limit:
            request = request.limit(limit)

        response = await self._execute(
            request,
            "query documents",
            "QUERY_DOCUMENTS_FAILED",
            {"collection": collection, "where": where or {}},
        )
        return [row["data"] for row in response.data or []]

    async def ping(self) -> None:
        await asyncio.to_thread(self._rows().select("path").limit(1).execute)
