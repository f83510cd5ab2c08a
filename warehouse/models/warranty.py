from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from warehouse.database.base import Base


class Warranty(Base):
    __tablename__ = "warranties"

    id = Column(Integer, primary_key=True)
    stock_in_id = Column(
        Integer,
        ForeignKey("stock_ins.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    sparepart_id = Column(Integer, ForeignKey("spareparts.id"), nullable=False)

    expiry_date = Column(Date, nullable=False)
    claim_status = Column(String(20), nullable=False, default="active")
    claim_date = Column(DateTime(timezone=True))
    claim_notes = Column(String(500))

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    stock_in = relationship("StockIn", back_populates="warranty")
    sparepart = relationship("Sparepart", lazy="joined")

    __table_args__ = (
        Index("idx_warranties_expiry", "expiry_date"),
    )


__all__ = ["Warranty"]
