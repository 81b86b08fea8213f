from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from tir_takip.database import Base


class TirRecord(Base):
    """TIR profile - one tracked truck."""

    __tablename__ = "tirs"

    id = Column(String(32), primary_key=True)
    phone = Column(String, nullable=False)
    plate = Column(String, nullable=False, default="")
    trailer_plate = Column(String, nullable=False, default="")
    location = Column(String, nullable=False, default="")
    last_updated = Column(DateTime(timezone=True), nullable=False, index=True)

    # Cascades are issued explicitly by the store; no ORM-level delete cascade
    documents = relationship("DocumentRecord", back_populates="tir", passive_deletes=True)
