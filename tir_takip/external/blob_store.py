"""
Blob store adapter.

Document bytes live in Cloudinary; the metadata store only keeps the returned
URL and public id. The Cloudinary SDK is blocking, so calls run in a worker
thread with a timeout and behind a circuit breaker.
"""
import asyncio
import io
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, NamedTuple, Optional
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from tir_takip.config import settings
from tir_takip.core.circuit_breaker import CircuitBreaker, blob_store_circuit_breaker
from tir_takip.core.logging_utils import sanitize_log_message

logger = logging.getLogger(__name__)


class BlobUploadResult(NamedTuple):
    url: str
    public_id: str


class BlobStoreError(Exception):
    """Raised when the blob store rejects or fails an operation."""

    def __init__(self, message: str = "Blob store operation failed"):
        self.message = message
        super().__init__(self.message)


class BlobStore(ABC):
    """Opaque object store: upload bytes, delete by handle."""

    @abstractmethod
    async def upload(self, content: bytes, *, folder: str, public_id: str) -> BlobUploadResult:
        """Store ``content`` and return its public URL and handle."""

    @abstractmethod
    async def delete(self, public_id: str) -> None:
        """Delete the blob identified by ``public_id``."""


class CloudinaryBlobStore(BlobStore):
    """Cloudinary-backed blob store."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        timeout: float = 60,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self.configured = bool(cloud_name and api_key and api_secret)
        self.timeout = timeout
        self.circuit_breaker = circuit_breaker or blob_store_circuit_breaker
        if self.configured:
            cloudinary.config(
                cloud_name=cloud_name,
                api_key=api_key,
                api_secret=api_secret,
                secure=True,
            )
        else:
            logger.warning("Cloudinary credentials missing: document uploads will fail")

    def _ensure_configured(self) -> None:
        if not self.configured:
            raise BlobStoreError("Cloudinary credentials are not configured")

    async def _run(self, func: Callable[..., Dict[str, Any]], *args, **kwargs) -> Dict[str, Any]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args, **kwargs),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise BlobStoreError(f"Cloudinary call timed out after {self.timeout} seconds") from e
        except CloudinaryError as e:
            raise BlobStoreError(f"Cloudinary error: {e}") from e

    async def upload(self, content: bytes, *, folder: str, public_id: str) -> BlobUploadResult:
        self._ensure_configured()
        result = await self.circuit_breaker.call(
            self._run,
            cloudinary.uploader.upload,
            io.BytesIO(content),
            folder=folder,
            public_id=public_id,
            resource_type="auto",
        )

        url = result.get("secure_url") or ""
        returned_id = result.get("public_id") or ""
        logger.info(
            sanitize_log_message(
                "Blob uploaded",
                PublicId=returned_id,
                Bytes=len(content),
                ResourceType=result.get("resource_type")
            )
        )
        return BlobUploadResult(url=url, public_id=returned_id)

    async def delete(self, public_id: str) -> None:
        self._ensure_configured()
        result = await self.circuit_breaker.call(
            self._run,
            cloudinary.uploader.destroy,
            public_id,
        )

        outcome = result.get("result")
        if outcome == "not found":
            logger.warning(sanitize_log_message("Blob already gone", PublicId=public_id))
        elif outcome != "ok":
            raise BlobStoreError(f"Cloudinary destroy returned {outcome!r}")


def create_blob_store() -> BlobStore:
    """Build the Cloudinary adapter from settings."""
    return CloudinaryBlobStore(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        timeout=settings.BLOB_OPERATION_TIMEOUT,
    )
