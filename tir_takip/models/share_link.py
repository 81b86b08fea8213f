from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum as SQLEnum
import enum
from tir_takip.database import Base


class ShareLinkType(str, enum.Enum):
    """What a share link exposes."""
    TIR = "tir"  # one truck dossier
    LIST = "list"  # summary list of all trucks


class ShareLinkRecord(Base):
    """Share link model - read-only capability token for public views."""

    __tablename__ = "share_links"

    id = Column(String(32), primary_key=True)
    type = Column(SQLEnum(ShareLinkType), nullable=False, index=True)
    tir_id = Column(String(32), nullable=True, index=True)  # Only for tir type
    token = Column(String(64), unique=True, nullable=False, index=True)
    active = Column(Boolean, default=True, nullable=False)
    expiry_date = Column(DateTime(timezone=True), nullable=True)  # None = never expires
    last_accessed = Column(DateTime(timezone=True), nullable=True)
    access_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
