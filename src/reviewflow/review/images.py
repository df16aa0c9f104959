"""Image blob cleanup for checklist answers.

When an answer write drops image references, the dropped blobs are
deleted from the external image service in the background. Deletion is
best-effort: failures are logged and never reach the answer write.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Protocol

import httpx

from reviewflow.config import ImageStoreConfig
from reviewflow.logging import get_logger

logger = get_logger(__name__)


class ImageStore(Protocol):
    """External blob store that checklist images live in."""

    async def delete_images(self, ids: list[str]) -> None:
        """Delete the given blobs. Must not raise for missing blobs."""
        ...


class NullImageStore:
    """Image store used when no blob service is configured."""

    async def delete_images(self, ids: list[str]) -> None:
        logger.debug("image_delete_skipped", image_ids=ids, reason="no_image_store")


class HttpImageStore:
    """Client for the external image service.

    Each blob is deleted with ``DELETE {base_url}/images/file/{id}``. A 404
    means the blob is already gone and counts as success.
    """

    def __init__(self, base_url: str, timeout_seconds: int = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_seconds)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def delete_image(self, image_id: str) -> bool:
        """Delete one blob.

        Returns:
            True if the blob is gone afterwards, False otherwise.
        """
        try:
            client = await self._get_client()
            response = await client.delete(f"{self.base_url}/images/file/{image_id}")
        except httpx.RequestError as e:
            logger.warning("image_delete_error", image_id=image_id, error=str(e))
            return False

        if response.is_success or response.status_code == 404:
            logger.debug("image_deleted", image_id=image_id, status_code=response.status_code)
            return True

        logger.warning(
            "image_delete_failed",
            image_id=image_id,
            status_code=response.status_code,
            response_text=response.text[:200],
        )
        return False

    async def delete_images(self, ids: list[str]) -> None:
        for image_id in ids:
            await self.delete_image(image_id)


def create_image_store(config: ImageStoreConfig) -> ImageStore:
    """Build the image store described by the configuration."""
    if config.base_url:
        return HttpImageStore(config.base_url, config.timeout_seconds)
    return NullImageStore()


class ImageJanitor:
    """Schedules fire-and-forget blob deletions.

    Attributes:
        store: Image store deletions are sent to.
    """

    def __init__(self, store: ImageStore) -> None:
        self.store = store
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of deletions still in flight."""
        return len(self._tasks)

    def schedule(self, ids: Iterable[str]) -> None:
        """Start deleting the given blobs in the background and return at once."""
        image_ids = [image_id for image_id in ids if image_id]
        if not image_ids:
            return
        task = asyncio.get_running_loop().create_task(self._run(image_ids))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, image_ids: list[str]) -> None:
        try:
            await self.store.delete_images(image_ids)
        except Exception as e:
            logger.warning("image_cleanup_failed", image_ids=image_ids, error=str(e))

    async def drain(self) -> None:
        """Wait for every scheduled deletion to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        """Drain outstanding deletions and release the store's client."""
        await self.drain()
        close = getattr(self.store, "close", None)
        if close is not None:
            await close()
