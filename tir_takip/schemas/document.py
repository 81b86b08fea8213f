from typing import Optional
from datetime import datetime
from pydantic import Field
from tir_takip.models.document import FileType
from tir_takip.schemas.base import CamelModel


class DocumentCreate(CamelModel):
    """Document metadata as built by the upload pipeline (insertDocument)."""
    tir_id: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    file_type: FileType = FileType.OTHER
    cloudinary_url: str = Field(..., min_length=1)
    cloudinary_public_id: str = Field(..., min_length=1)
    file_size: Optional[int] = Field(default=None, ge=0)
    mime_type: Optional[str] = None


class Document(CamelModel):
    """Stored document."""
    id: str
    tir_id: str
    file_name: str
    file_type: FileType
    cloudinary_url: str
    cloudinary_public_id: str
    upload_date: datetime
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
