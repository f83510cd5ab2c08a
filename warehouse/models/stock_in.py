from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from warehouse.database.base import Base


class StockIn(Base):
    __tablename__ = "stock_ins"

    id = Column(Integer, primary_key=True)
    sparepart_id = Column(Integer, ForeignKey("spareparts.id"), nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"))

    quantity = Column(Integer, nullable=False)
    invoice_number = Column(String(100))
    purchase_price = Column(Float)
    warranty_expiry = Column(Date)
    notes = Column(String(500))

    source = Column(String(20), nullable=False, default="manual")
    opname_id = Column(Integer, ForeignKey("stock_opnames.id"))
    created_by = Column(String(100))

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    sparepart = relationship("Sparepart", lazy="joined")
    supplier = relationship("Supplier", lazy="joined")
    warranty = relationship(
        "Warranty",
        back_populates="stock_in",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_ins_quantity_positive"),
        Index("idx_stock_ins_sparepart", "sparepart_id"),
        Index("idx_stock_ins_created_at", "created_at"),
    )


__all__ = ["StockIn"]
