from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from tir_takip.database import Base


class FileType(str, enum.Enum):
    """Document category enumeration."""
    T1 = "T1"  # transit declaration
    CMR = "CMR"  # consignment note
    INVOICE = "Invoice"
    DOCTOR = "Doctor"  # health papers
    TURKISH_INVOICE = "TurkishInvoice"
    OTHER = "Other"


class DocumentRecord(Base):
    """Document model - metadata of a file stored in the blob store."""

    __tablename__ = "documents"

    id = Column(String(32), primary_key=True)
    tir_id = Column(String(32), ForeignKey("tirs.id"), nullable=False, index=True)
    file_name = Column(String, nullable=False)
    file_type = Column(SQLEnum(FileType), nullable=False, default=FileType.OTHER)
    cloudinary_url = Column(String, nullable=False)
    cloudinary_public_id = Column(String, nullable=False)
    upload_date = Column(DateTime(timezone=True), nullable=False, index=True)
    file_size = Column(Integer, nullable=True)  # Size in bytes
    mime_type = Column(String, nullable=True)

    # Relationships
    tir = relationship("TirRecord", back_populates="documents")
