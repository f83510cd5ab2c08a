from datetime import date, datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from warehouse.database.base import Base


class StockOpname(Base):
    __tablename__ = "stock_opnames"

    id = Column(Integer, primary_key=True)
    opname_date = Column(Date, nullable=False, default=date.today)
    notes = Column(String(500))
    status = Column(String(20), nullable=False, default="COMPLETED")
    created_by = Column(String(100))

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "StockOpnameItem",
        back_populates="opname",
        cascade="all, delete-orphan",
        order_by="StockOpnameItem.id",
    )


class StockOpnameItem(Base):
    __tablename__ = "stock_opname_items"

    id = Column(Integer, primary_key=True)
    opname_id = Column(Integer, ForeignKey("stock_opnames.id", ondelete="CASCADE"), nullable=False)
    sparepart_id = Column(Integer, ForeignKey("spareparts.id"), nullable=False)

    system_stock = Column(Integer, nullable=False)
    physical_stock = Column(Integer, nullable=False)
    difference = Column(Integer, nullable=False)
    notes = Column(String(500))

    opname = relationship("StockOpname", back_populates="items")
    sparepart = relationship("Sparepart", lazy="joined")

    __table_args__ = (
        Index("idx_stock_opname_items_opname", "opname_id"),
    )


__all__ = ["StockOpname", "StockOpnameItem"]
