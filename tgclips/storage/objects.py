"""Object store client for uploaded video files."""

import logging
import time
from urllib.parse import unquote, urlsplit

import httpx

from tgclips.api.middleware.prometheus import record_store_operation
from tgclips.core.exceptions import InvalidRequestError, ObjectStoreError
from tgclips.core.logging_config import log_store_event
from tgclips.storage.records import upstream_message

logger = logging.getLogger(__name__)


class ObjectStore:
    """Upload, remove and resolve video blobs in one storage bucket."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        storage_url: str,
        api_key: str,
        bucket: str = "videos",
    ) -> None:
        self.client = client
        self.storage_url = storage_url.rstrip("/")
        self.bucket = bucket
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
        }

    def public_url(self, key: str) -> str:
        """Public URL of an object in the bucket."""
        return f"{self.storage_url}/object/public/{self.bucket}/{key}"

    def key_from_url(self, url: str) -> str:
        """Recover the object key from a public URL of this bucket.

        Raises:
            InvalidRequestError: If ``url`` is not a public URL of this bucket
        """
        prefix = self.public_url("")
        parts = urlsplit(url)
        base = f"{parts.scheme}://{parts.netloc}{parts.path}"
        key = unquote(base[len(prefix):]) if base.startswith(prefix) else ""
        if not key or key.startswith("/") or ".." in key.split("/"):
            raise InvalidRequestError(
                "Video url does not point into the video bucket",
                error_code="FOREIGN_VIDEO_URL",
                details={"url": url},
            )
        return key

    async def _send(self, operation: str, request: httpx.Request, stream: bool = False) -> httpx.Response:
        start = time.perf_counter()
        error: str | None = None
        try:
            response = await self.client.send(request, stream=stream)
            if response.is_error:
                if stream:
                    await response.aread()
                    await response.aclose()
                error = upstream_message(response)
                raise ObjectStoreError(
                    f"Object store {operation} failed",
                    details={"upstream": error, "status": response.status_code},
                )
            return response
        except httpx.HTTPError as e:
            error = str(e) or type(e).__name__
            raise ObjectStoreError(
                f"Object store {operation} failed",
                details={"upstream": error},
            ) from e
        finally:
            duration = time.perf_counter() - start
            record_store_operation(
                store="objects",
                operation=operation,
                duration_seconds=duration,
                status="error" if error else "success",
            )
            log_store_event(logger, "objects", operation, self.bucket, duration * 1000, error=error)

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store a blob under ``key``.

        Args:
            key: Object key inside the bucket
            data: File content
            content_type: MIME type recorded with the object

        Returns:
            Public URL of the stored object

        Raises:
            ObjectStoreError: If the upload is refused or the store is unreachable
        """
        request = self.client.build_request(
            "POST",
            f"{self.storage_url}/object/{self.bucket}/{key}",
            content=data,
            headers={**self._headers, "Content-Type": content_type, "x-upsert": "false"},
        )
        await self._send("upload", request)
        return self.public_url(key)

    async def remove(self, key: str) -> None:
        """Remove a blob from the bucket."""
        request = self.client.build_request(
            "DELETE",
            f"{self.storage_url}/object/{self.bucket}",
            json={"prefixes": [key]},
            headers=self._headers,
        )
        await self._send("remove", request)

    async def create_signed_url(self, key: str, expires_in: int) -> str:
        """Create a time-limited download URL.

        Args:
            key: Object key inside the bucket
            expires_in: Validity in seconds

        Returns:
            Absolute signed URL
        """
        request = self.client.build_request(
            "POST",
            f"{self.storage_url}/object/sign/{self.bucket}/{key}",
            json={"expiresIn": expires_in},
            headers=self._headers,
        )
        response = await self._send("sign", request)
        try:
            payload = response.json()
        except ValueError as e:
            raise ObjectStoreError(
                "Object store sign failed",
                details={"upstream": "response was not JSON"},
            ) from e
        signed = None
        if isinstance(payload, dict):
            signed = payload.get("signedURL") or payload.get("signedUrl")
        if not signed:
            raise ObjectStoreError(
                "Object store sign failed",
                details={"upstream": "response carried no signed URL"},
            )
        if signed.startswith("http"):
            return signed
        return f"{self.storage_url}/{signed.lstrip('/')}"

    async def open_download(self, key: str) -> httpx.Response:
        """Open a streaming GET for the object stored under ``key``.

        The caller must close the returned response.
        """
        request = self.client.build_request("GET", self.public_url(key))
        return await self._send("download", request, stream=True)
