from typing import Optional, Dict, Any
from datetime import datetime
from pydantic import Field, field_validator, model_validator
from tir_takip.core.time_utils import ensure_utc, utc_now
from tir_takip.models.share_link import ShareLinkType
from tir_takip.schemas.base import CamelModel

SHARE_TOKEN_LENGTH = 32


class ShareLinkCreate(CamelModel):
    """Share link as issued by the service (insertShareLink)."""
    type: ShareLinkType
    tir_id: Optional[str] = None
    token: str = Field(..., min_length=SHARE_TOKEN_LENGTH, max_length=SHARE_TOKEN_LENGTH)
    active: bool = True
    expiry_date: Optional[datetime] = None

    @field_validator("expiry_date")
    @classmethod
    def normalize_expiry(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_tir_reference(self) -> "ShareLinkCreate":
        if self.type == ShareLinkType.TIR and not self.tir_id:
            raise ValueError("tir share links require a tirId")
        if self.type == ShareLinkType.LIST and self.tir_id:
            raise ValueError("list share links cannot reference a tirId")
        return self


class ShareLinkRequest(CamelModel):
    """Body of the share-issuing endpoints."""
    expiry_date: Optional[datetime] = None

    @field_validator("expiry_date")
    @classmethod
    def normalize_expiry(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class ShareLinkUpdate(CamelModel):
    """Mutable share link fields. Everything else is read-only."""
    active: Optional[bool] = None
    expiry_date: Optional[datetime] = None

    @field_validator("expiry_date")
    @classmethod
    def normalize_expiry(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    def to_changes(self) -> Dict[str, Any]:
        # expiryDate: null clears the expiry, active: null is ignored
        changes = self.model_dump(exclude_unset=True)
        if changes.get("active") is None:
            changes.pop("active", None)
        return changes


class ShareLink(CamelModel):
    """Stored share link."""
    id: str
    type: ShareLinkType
    tir_id: Optional[str] = None
    token: str
    active: bool = True
    expiry_date: Optional[datetime] = None
    last_accessed: Optional[datetime] = None
    access_count: int = 0
    created_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Expired means an expiry date exists and lies strictly in the past."""
        if self.expiry_date is None:
            return False
        return ensure_utc(self.expiry_date) < (now or utc_now())
