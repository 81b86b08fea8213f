from functools import lru_cache
from typing import Any, Optional, Type, TypeVar
from fastapi import Depends
from pydantic import BaseModel, ValidationError
from tir_takip.core.exceptions import ValidationFailedException
from tir_takip.external.blob_store import BlobStore, create_blob_store
from tir_takip.schemas.base import validation_issues
from tir_takip.services.document_service import DocumentService
from tir_takip.services.share_service import ShareService
from tir_takip.services.tir_service import TirService
from tir_takip.storage.base import BaseStore
from tir_takip.storage.bootstrap import get_active_store


def get_store() -> BaseStore:
    """Get the metadata store installed at startup."""
    return get_active_store()


@lru_cache
def get_blob_store() -> BlobStore:
    """Get the process-wide blob store adapter."""
    return create_blob_store()


# Service Dependencies for Dependency Injection
def get_tir_service(
    store: BaseStore = Depends(get_store),
    blob_store: BlobStore = Depends(get_blob_store),
) -> TirService:
    return TirService(store, blob_store)


def get_document_service(
    tir_service: TirService = Depends(get_tir_service),
    blob_store: BlobStore = Depends(get_blob_store),
) -> DocumentService:
    return DocumentService(tir_service, blob_store)


def get_share_service(store: BaseStore = Depends(get_store)) -> ShareService:
    return ShareService(store)


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(model: Type[ModelT], payload: Optional[Any], message: str) -> ModelT:
    """
    Validate a raw JSON body against ``model``.

    Raises:
        ValidationFailedException carrying ``message`` and the field issues
    """
    try:
        return model.model_validate(payload if payload is not None else {})
    except ValidationError as e:
        raise ValidationFailedException(detail=message, errors=validation_issues(e)) from e
