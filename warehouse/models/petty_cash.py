from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from warehouse.database.base import Base


class PettyCashCategory(Base):
    __tablename__ = "petty_cash_categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)


class PettyCash(Base):
    __tablename__ = "petty_cash"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    type = Column(String(3), nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(String(500), nullable=False)
    category_id = Column(Integer, ForeignKey("petty_cash_categories.id"))
    receipt = Column(String(255))
    created_by = Column(String(100))

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    category = relationship("PettyCashCategory", lazy="joined")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_petty_cash_amount_positive"),
        CheckConstraint("type IN ('in', 'out')", name="ck_petty_cash_type"),
        Index("idx_petty_cash_date", "date"),
        Index("idx_petty_cash_type_date", "type", "date"),
    )


__all__ = ["PettyCash", "PettyCashCategory"]
