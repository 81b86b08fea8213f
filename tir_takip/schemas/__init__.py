"""Pydantic schemas for request/response contracts."""
from tir_takip.schemas.base import MessageResponse, validation_issues
from tir_takip.schemas.document import Document, DocumentCreate
from tir_takip.schemas.tir import (
    Tir,
    TirCreate,
    TirUpdate,
    TirListItem,
    TirDetailResponse,
    PublicTirSummary,
)
from tir_takip.schemas.share_link import (
    ShareLink,
    ShareLinkCreate,
    ShareLinkRequest,
    ShareLinkUpdate,
    SHARE_TOKEN_LENGTH,
)

__all__ = [
    "MessageResponse",
    "validation_issues",
    "Document",
    "DocumentCreate",
    "Tir",
    "TirCreate",
    "TirUpdate",
    "TirListItem",
    "TirDetailResponse",
    "PublicTirSummary",
    "ShareLink",
    "ShareLinkCreate",
    "ShareLinkRequest",
    "ShareLinkUpdate",
    "SHARE_TOKEN_LENGTH",
]
