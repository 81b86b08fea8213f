import os
import re
import logging
import secrets
from typing import List, Optional
from fastapi import UploadFile
from pydantic import ValidationError
from tir_takip.config import settings
from tir_takip.core.circuit_breaker import CircuitBreakerOpenException
from tir_takip.core.exceptions import (
    BlobStorageException,
    DocumentUploadException,
    TirNotFoundException,
    ValidationFailedException,
)
from tir_takip.core.logging_utils import sanitize_log_message
from tir_takip.external.blob_store import BlobStore, BlobStoreError
from tir_takip.models.document import FileType
from tir_takip.schemas.base import validation_issues
from tir_takip.schemas.document import Document, DocumentCreate
from tir_takip.services.tir_service import TirService

logger = logging.getLogger(__name__)

FILE_TYPE_MESSAGE = "Sadece PDF ve resim dosyaları (JPG, JPEG, PNG) yüklenebilir."
FILE_SIZE_MESSAGE = "Dosya boyutu 10 MB sınırını aşıyor"
FILE_REQUIRED_MESSAGE = "Dosya gereklidir"


def coerce_file_type(value: Optional[str]) -> FileType:
    """Map the multipart ``fileType`` field to a category; unknown or missing means Other."""
    if not value:
        return FileType.OTHER
    try:
        return FileType(value)
    except ValueError:
        return FileType.OTHER


class DocumentService:
    """Upload pipeline: file checks, blob upload, metadata persistence."""

    def __init__(self, tir_service: TirService, blob_store: BlobStore):
        self.tir_service = tir_service
        self.blob_store = blob_store
        self.allowed_extensions: List[str] = [ext.lower() for ext in settings.ALLOWED_FILE_EXTENSIONS]
        self.max_file_size = settings.MAX_FILE_SIZE
        self._mime_pattern = re.compile("|".join(map(re.escape, self.allowed_extensions)), re.IGNORECASE)

    @staticmethod
    def _sanitize_filename(original_filename: Optional[str]) -> str:
        """
        Display name for a client-supplied filename.

        Path components and control characters are removed and the result
        is capped at 255 characters.
        """
        if not original_filename:
            return "unnamed"

        clean_name = os.path.basename(original_filename.replace("\\", "/"))
        clean_name = re.sub(r'[\x00-\x1f\x7f]', '', clean_name).strip()
        return clean_name[:255] or "unnamed"

    def _validate_file(self, filename: Optional[str], content_type: Optional[str]) -> None:
        """
        Check extension and MIME type.

        Raises:
            DocumentUploadException if either does not match the allowed set
        """
        _, ext = os.path.splitext(filename or "")
        ext_ok = ext.lstrip(".").lower() in self.allowed_extensions
        mime_ok = bool(content_type) and self._mime_pattern.search(content_type) is not None

        if not (ext_ok and mime_ok):
            logger.warning(
                sanitize_log_message(
                    "Rejected upload file type",
                    filename=filename,
                    content_type=content_type
                )
            )
            raise DocumentUploadException(detail=FILE_TYPE_MESSAGE)

    async def _discard_blob(self, public_id: str) -> None:
        """Compensating delete for a blob whose metadata row was never written."""
        try:
            await self.blob_store.delete(public_id)
        except (BlobStoreError, CircuitBreakerOpenException) as e:
            logger.error(
                sanitize_log_message(
                    "Compensating blob delete failed, blob is orphaned",
                    public_id=public_id,
                    Error=str(e)
                )
            )

    async def upload_document(
        self,
        tir_id: str,
        file: Optional[UploadFile],
        file_type: Optional[str] = None
    ) -> Document:
        """
        Upload a file for a TIR and persist its metadata.

        A metadata row never points at a deleted blob: the blob is discarded
        only while no row exists for it.

        Args:
            tir_id: Parent TIR id (path parameter)
            file: Multipart ``file`` field
            file_type: Multipart ``fileType`` field

        Returns:
            Created Document

        Raises:
            DocumentUploadException for a missing, oversized or disallowed file
            TirNotFoundException if the TIR does not exist
            BlobStorageException if the blob upload fails
            ValidationFailedException if the metadata does not validate
            StoreError if persisting the row or bumping the TIR fails
        """
        if file is None or not file.filename:
            raise DocumentUploadException(detail=FILE_REQUIRED_MESSAGE)

        self._validate_file(file.filename, file.content_type)

        content = await file.read()
        if len(content) > self.max_file_size:
            raise DocumentUploadException(detail=FILE_SIZE_MESSAGE)

        tir = await self.tir_service.get_tir(tir_id)
        if tir is None:
            raise TirNotFoundException()

        try:
            blob = await self.blob_store.upload(
                content,
                folder=settings.CLOUDINARY_FOLDER,
                public_id=f"{tir_id}_{secrets.token_urlsafe(24)}",
            )
        except (BlobStoreError, CircuitBreakerOpenException) as e:
            logger.error(
                sanitize_log_message(
                    "Blob upload failed",
                    tir_id=tir_id,
                    Error=e.message
                )
            )
            raise BlobStorageException() from e

        try:
            data = DocumentCreate.model_validate({
                "tirId": tir_id,
                "fileName": self._sanitize_filename(file.filename),
                "fileType": coerce_file_type(file_type),
                "cloudinaryUrl": blob.url,
                "cloudinaryPublicId": blob.public_id,
                "fileSize": len(content),
                "mimeType": file.content_type,
            })
        except ValidationError as e:
            if blob.public_id:
                await self._discard_blob(blob.public_id)
            raise ValidationFailedException(
                detail="Geçersiz belge bilgileri",
                errors=validation_issues(e)
            ) from e

        try:
            document = await self.tir_service.add_document(data)
        except Exception:
            await self._discard_blob(blob.public_id)
            raise

        await self.tir_service.touch_tir(tir_id)
        return document
