# =============================================================================
# lib/image_generator.py - Advertisement Image Generation
# =============================================================================
# Wraps the OpenAI Images "edit" call: the product's source photo plus a
# text prompt in, one generated advertisement image out.
#
# Steps:
# 1. Download the source image (httpx)
# 2. Re-encode it as PNG (Pillow) - the edit endpoint rejects other formats
# 3. Call images.edit and decode the base64 result
#
# Usage:
#   generator = OpenAIImageGenerator(api_key=settings.OPENAI_API_KEY)
#   png_bytes = await generator.generate(image_url, prompt)
# =============================================================================

from __future__ import annotations

import asyncio
import base64
import io
import logging
from abc import ABC, abstractmethod

import httpx
from openai import AsyncOpenAI
from PIL import Image

logger = logging.getLogger(__name__)


class ImageGenerationError(Exception):
    """The image service answered, but without a usable image."""


class ImageGenerator(ABC):
    """Opaque image + prompt -> image collaborator."""

    @abstractmethod
    async def generate(self, source_image_url: str, prompt: str) -> bytes:
        """Return the generated image as PNG bytes, or raise."""

    async def aclose(self) -> None:
        """Release network resources."""


def to_png(data: bytes) -> bytes:
    """Re-encode any Pillow-readable image as PNG."""
    with Image.open(io.BytesIO(data)) as image:
        if image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGBA")
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()


class OpenAIImageGenerator(ImageGenerator):
    """ImageGenerator backed by the OpenAI Images API."""

    def __init__(
        self,
        api_key: str,
        organization: str | None = None,
        model: str = "gpt-image-1",
        size: str = "1024x1024",
        download_timeout: float = 30.0,
    ):
        self._client = AsyncOpenAI(api_key=api_key, organization=organization)
        self._http = httpx.AsyncClient(timeout=download_timeout, follow_redirects=True)
        self._model = model
        self._size = size

    async def _download(self, url: str) -> bytes:
        response = await self._http.get(url)
        response.raise_for_status()
        return response.content

    async def generate(self, source_image_url: str, prompt: str) -> bytes:
        source = await self._download(source_image_url)
        png = await asyncio.to_thread(to_png, source)
        logger.debug(f"Source image ready ({len(png)} bytes PNG), calling {self._model}")

        result = await self._client.images.edit(
            model=self._model,
            image=("source.png", png, "image/png"),
            prompt=prompt,
            size=self._size,
        )

        b64 = result.data[0].b64_json if result.data else None
        if not b64:
            raise ImageGenerationError("OpenAI did not return valid image data")

        return base64.b64decode(b64)

    async def aclose(self) -> None:
        await self._http.aclose()
        await self._client.close()
