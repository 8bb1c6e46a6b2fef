"""Object storage client for project media.

Uploads and signed URLs are handled by the storage service directly with
the browser; this service only removes objects when their registry row is
deleted.
"""

from __future__ import annotations

import httpx

from geodesk.config import StorageConfig
from geodesk.errors import DependencyError
from geodesk.logging import get_logger

logger = get_logger(__name__)


class ObjectStorage:
    """Client for the object storage REST API."""

    def __init__(self, config: StorageConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def remove(self, paths: list[str], bucket: str | None = None) -> None:
        """Delete objects from a bucket.

        Args:
            paths: Object paths within the bucket.
            bucket: Bucket name; defaults to the media bucket.

        Raises:
            DependencyError: If the storage service rejects the request or
                cannot be reached.
        """
        if not paths:
            return
        bucket = bucket or self.config.media_bucket
        url = f"{self.config.url.rstrip('/')}/object/{bucket}"
        headers = {"Authorization": f"Bearer {self.config.service_key}"}

        try:
            client = await self._get_client()
            response = await client.request("DELETE", url, json={"prefixes": paths}, headers=headers)
        except httpx.RequestError as e:
            logger.error("storage_remove_error", bucket=bucket, paths=paths, error=str(e))
            raise DependencyError("Storage service unavailable") from e

        if not response.is_success:
            logger.error(
                "storage_remove_failed",
                bucket=bucket,
                paths=paths,
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise DependencyError("Failed to remove stored object", status=response.status_code)

        logger.info("storage_objects_removed", bucket=bucket, count=len(paths))
