"""Database models."""
from tir_takip.models.tir import TirRecord
from tir_takip.models.document import DocumentRecord, FileType
from tir_takip.models.share_link import ShareLinkRecord, ShareLinkType

__all__ = [
    "TirRecord",
    "DocumentRecord",
    "FileType",
    "ShareLinkRecord",
    "ShareLinkType",
]
