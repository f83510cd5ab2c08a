from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from warehouse.database.base import Base


class StockOut(Base):
    __tablename__ = "stock_outs"

    id = Column(Integer, primary_key=True)
    sparepart_id = Column(Integer, ForeignKey("spareparts.id"), nullable=False)
    # Null for opname adjustments, required for requests.
    equipment_id = Column(Integer, ForeignKey("heavy_equipment.id"))
    employee_id = Column(Integer, ForeignKey("employees.id"))

    quantity = Column(Integer, nullable=False)
    purpose = Column(String(500))
    scanned_barcode = Column(String(100))

    status = Column(String(20), nullable=False, default="pending")
    rejected_reason = Column(String(500))
    approved_at = Column(DateTime(timezone=True))
    approved_by = Column(String(100))

    source = Column(String(20), nullable=False, default="request")
    opname_id = Column(Integer, ForeignKey("stock_opnames.id"))
    created_by = Column(String(100))

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    sparepart = relationship("Sparepart", lazy="joined")
    equipment = relationship("HeavyEquipment", lazy="joined")
    employee = relationship("Employee", lazy="joined")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_outs_quantity_positive"),
        Index("idx_stock_outs_status", "status"),
        Index("idx_stock_outs_sparepart", "sparepart_id"),
        Index("idx_stock_outs_equipment", "equipment_id"),
        Index("idx_stock_outs_created_at", "created_at"),
    )


__all__ = ["StockOut"]
