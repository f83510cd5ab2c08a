from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from warehouse.database.base import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True)
    nik = Column(String(50), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    position = Column(String(100), nullable=False)
    department = Column(String(100))
    phone = Column(String(20))
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


__all__ = ["Employee"]
