# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles image upload, signed URLs and folder cleanup in Supabase Storage.
#
# Layout mirrors the document hierarchy:
#   users/{uid}/businesses/{businessId}/products/{productId}/original/...
#   users/{uid}/businesses/{businessId}/products/{productId}/generated/...
# =============================================================================

import asyncio
import logging
import time

from supabase import Client

from app.exceptions import StorageUploadError

logger = logging.getLogger(__name__)

# Page size for folder listings
LIST_PAGE_SIZE = 100


def product_folder(uid: str, business_id: str, product_id: str) -> str:
    return f"users/{uid}/businesses/{business_id}/products/{product_id}"


def business_folder(uid: str, business_id: str) -> str:
    return f"users/{uid}/businesses/{business_id}"


class StorageService:
    """
    Service for Supabase Storage operations.

    Handles uploading images and cleaning up a product's folder when the
    product is deleted. The Storage API calls are blocking, so each one runs
    in a worker thread.
    """

    def __init__(self, client: Client, bucket: str, signed_url_expires_in: int):
        self._client = client
        self._bucket = bucket
        self._expires_in = signed_url_expires_in

    def _files(self):
        return self._client.storage.from_(self._bucket)

    async def upload_image(
        self,
        folder: str,
        content: bytes,
        filename: str,
        content_type: str = "image/png",
    ) -> str:
        """
        Upload image bytes under a folder.

        The object name is prefixed with a millisecond timestamp so repeated
        uploads never overwrite each other.

        Args:
            folder: Storage folder (see product_folder)
            content: Image bytes
            filename: Original or generated filename
            content_type: MIME type stored with the object

        Returns:
            Storage path of the uploaded object

        Raises:
            StorageUploadError: If upload fails
        """
        safe_name = filename.replace("/", "_").replace("\\", "_") or "image.png"
        path = f"{folder}/{int(time.time() * 1000)}-{safe_name}"

        try:
            await asyncio.to_thread(
                self._files().upload,
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"},
            )
            logger.info(f"Uploaded image to storage: {path} ({len(content)} bytes)")
            return path

        except Exception as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(str(e))

    async def get_url(self, storage_path: str) -> str:
        """
        Get a signed, time-limited read URL for a stored object.

        Raises:
            StorageUploadError: If the URL cannot be created
        """
        try:
            result = await asyncio.to_thread(self._files().create_signed_url, storage_path, self._expires_in)
        except Exception as e:
            logger.error(f"Failed to sign URL for {storage_path}: {e}")
            raise StorageUploadError(str(e))

        url = result.get("signedURL") or result.get("signedUrl")
        if not url:
            raise StorageUploadError(f"No signed URL returned for {storage_path}")
        return url

    def _walk(self, folder: str) -> list[str]:
        """All object paths below a folder (recursive)."""
        paths: list[str] = []
        offset = 0

        while True:
            entries = self._files().list(
                folder,
                {"limit": LIST_PAGE_SIZE, "offset": offset},
            ) or []

            for entry in entries:
                child = f"{folder}/{entry['name']}"
                # Folders come back without an object id
                if entry.get("id") is None:
                    paths.extend(self._walk(child))
                else:
                    paths.append(child)

            if len(entries) < LIST_PAGE_SIZE:
                return paths
            offset += LIST_PAGE_SIZE

    async def delete_folder(self, folder: str) -> int:
        """
        Delete every object below a folder.

        Best effort: failures are logged and reported as 0 deleted, never
        raised.

        Returns:
            Number of objects removed
        """
        try:
            paths = await asyncio.to_thread(self._walk, folder)
            if paths:
                await asyncio.to_thread(self._files().remove, paths)
            logger.info(f"Deleted {len(paths)} objects under {folder}")
            return len(paths)

        except Exception as e:
            logger.error(f"Failed to delete storage folder {folder}: {e}")
            return 0

    async def ping(self) -> None:
        """Raise if storage is unreachable."""
        await asyncio.to_thread(self._client.storage.list_buckets)
