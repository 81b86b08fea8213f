from typing import Annotated, Dict, List, Optional, Any
from datetime import datetime
from pydantic import AfterValidator, field_validator
from pydantic_core import PydanticCustomError
from tir_takip.models.document import FileType
from tir_takip.schemas.base import CamelModel
from tir_takip.schemas.document import Document


def _require_phone(value: str) -> str:
    if len(value) == 0:
        raise PydanticCustomError("phone_required", "Telefon numarası gereklidir")
    return value


Phone = Annotated[str, AfterValidator(_require_phone)]


class TirCreate(CamelModel):
    """Request schema for creating a TIR (insertTruck)."""
    phone: Phone
    plate: str = ""
    trailer_plate: str = ""
    location: str = ""


class TirUpdate(CamelModel):
    """Partial TIR update; only fields sent by the client are applied."""
    phone: Optional[Phone] = None
    plate: Optional[str] = None
    trailer_plate: Optional[str] = None
    location: Optional[str] = None

    @field_validator("phone", "plate", "trailer_plate", "location", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise PydanticCustomError("null_not_allowed", "Alan boş (null) olamaz")
        return value

    def to_changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class Tir(CamelModel):
    """Stored TIR profile."""
    id: str
    phone: str
    plate: str = ""
    trailer_plate: str = ""
    location: str = ""
    last_updated: datetime


class TirListItem(Tir):
    """TIR with its document count (admin list)."""
    document_count: int


class TirDetailResponse(Tir):
    """TIR with documents, count and per-category grouping."""
    documents: List[Document]
    document_count: int
    documents_by_type: Dict[FileType, List[Document]]


class PublicTirSummary(CamelModel):
    """Reduced TIR row exposed through a list share link."""
    id: str
    phone: str
    plate: str = ""
    location: str = ""
    last_updated: datetime
