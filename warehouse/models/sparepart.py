from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from warehouse.database.base import Base


class Sparepart(Base):
    __tablename__ = "spareparts"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)

    brand = Column(String(50))
    unit = Column(String(20), nullable=False)
    min_stock = Column(Integer, nullable=False, default=0)
    rack_location = Column(String(50))
    current_stock = Column(Integer, nullable=False, default=0)

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

    category = relationship("Category", lazy="joined")

    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_spareparts_current_stock_non_negative"),
        CheckConstraint("min_stock >= 0", name="ck_spareparts_min_stock_non_negative"),
        Index("idx_spareparts_name", "name"),
        Index("idx_spareparts_category", "category_id"),
    )


__all__ = ["Sparepart"]
