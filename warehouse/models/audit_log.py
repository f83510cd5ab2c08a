from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String

from warehouse.database.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    actor = Column(String(100), nullable=False)
    action = Column(String(20), nullable=False)
    table_name = Column(String(50), nullable=False)
    record_id = Column(Integer)
    data_before = Column(JSON)
    data_after = Column(JSON)
    description = Column(String(500), nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_audit_logs_table", "table_name", "record_id"),
        Index("idx_audit_logs_created_at", "created_at"),
    )


__all__ = ["AuditLog"]
