import logging
from functools import wraps
from typing import Any, Callable, Dict, List, Optional
from fastapi import HTTPException, status
from tir_takip.core.logging_utils import sanitize_log_message

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised by a metadata store when its backend fails."""

    def __init__(self, message: str = "Metadata store failure"):
        self.message = message
        super().__init__(self.message)


class DuplicateTokenError(StoreError):
    """Raised when a share link token collides with an existing one."""

    def __init__(self, message: str = "Share link token already exists"):
        super().__init__(message)


class ValidationFailedException(HTTPException):
    """Exception raised when a payload does not match its schema."""

    def __init__(
        self,
        detail: str = "Geçersiz istek",
        errors: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )
        self.errors = errors or []


class TirNotFoundException(HTTPException):
    """Exception raised when a TIR does not exist."""

    def __init__(self, detail: str = "TIR bulunamadı"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class DocumentNotFoundException(HTTPException):
    """Exception raised when a document does not exist."""

    def __init__(self, detail: str = "Belge bulunamadı"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class ShareLinkNotFoundException(HTTPException):
    """Exception raised when a share link id is unknown (admin side)."""

    def __init__(self, detail: str = "Paylaşım linki bulunamadı"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class ShareLinkInvalidException(HTTPException):
    """Exception raised when a share token is unknown, inactive or of the wrong type."""

    def __init__(self, detail: str = "Geçersiz veya pasif paylaşım linki"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class ShareLinkExpiredException(HTTPException):
    """Exception raised when a share token is past its expiry date."""

    def __init__(self, detail: str = "Paylaşım linkinin süresi dolmuş"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class DocumentUploadException(HTTPException):
    """Exception raised when an uploaded file is rejected."""

    def __init__(self, detail: str = "Dosya yüklenemedi"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


class BlobStorageException(HTTPException):
    """Exception raised when the blob store fails during an upload."""

    def __init__(self, detail: str = "Belge yüklenirken hata oluştu"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail
        )


class InternalErrorException(HTTPException):
    """Exception raised for unexpected failures behind an endpoint."""

    def __init__(self, detail: str = "Sunucu hatası"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail
        )


class AdminAuthException(HTTPException):
    """Exception raised when the admin API key is missing or wrong."""

    def __init__(self, detail: str = "Yetkisiz erişim"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "ApiKey"},
        )


def failure_message(message: str) -> Callable:
    """
    Attach a fixed operator-facing message to an endpoint.

    HTTP exceptions pass through untouched. Any other error is logged and
    turned into a 500 carrying ``message``.

    Usage:
        @router.get("")
        @failure_message("TIR listesi alınırken hata oluştu")
        async def list_tirs(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as e:
                logger.exception(
                    sanitize_log_message(
                        message,
                        Endpoint=func.__name__,
                        ExceptionType=type(e).__name__,
                        ExceptionMessage=str(e)
                    )
                )
                raise InternalErrorException(detail=message) from e
        return wrapper
    return decorator
