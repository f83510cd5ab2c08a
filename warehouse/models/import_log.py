from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String

from warehouse.database.base import Base


class ImportLog(Base):
    __tablename__ = "import_logs"

    id = Column(Integer, primary_key=True)
    type = Column(String(30), nullable=False)
    filename = Column(String(255))
    total_rows = Column(Integer, nullable=False, default=0)
    success_rows = Column(Integer, nullable=False, default=0)
    skipped_rows = Column(Integer, nullable=False, default=0)
    failed_rows = Column(Integer, nullable=False, default=0)
    errors = Column(JSON)
    created_by = Column(String(100))

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


__all__ = ["ImportLog"]
