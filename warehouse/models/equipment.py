from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, String

from warehouse.database.base import Base


class HeavyEquipment(Base):
    __tablename__ = "heavy_equipment"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    type = Column(String(50), nullable=False)
    brand = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer)
    site = Column(String(100))
    status = Column(String(20), nullable=False, default="active")

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_heavy_equipment_status", "status"),
    )


__all__ = ["HeavyEquipment"]
