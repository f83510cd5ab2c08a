"""Row-level adjustments of ``Sparepart.current_stock``.

All changes go through SQL-side arithmetic so concurrent writers never lose
updates, and decrements carry a ``current_stock >= qty`` guard so the on-hand
quantity cannot go negative even when two approvals race.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from warehouse.core.errors import InsufficientStock, NotFound
from warehouse.models.sparepart import Sparepart


def get_part(db: Session, part_id: int, *, lock: bool = False) -> Sparepart:
    stmt = select(Sparepart).where(Sparepart.id == part_id)
    if lock:
        stmt = stmt.with_for_update(of=Sparepart).execution_options(populate_existing=True)
    part = db.execute(stmt).scalars().first()
    if part is None:
        raise NotFound(f"Sparepart {part_id} not found")
    return part


def increment_stock(db: Session, part: Sparepart, quantity: int) -> None:
    db.execute(
        update(Sparepart)
        .where(Sparepart.id == part.id)
        .values(current_stock=Sparepart.current_stock + quantity)
        .execution_options(synchronize_session=False)
    )
    db.refresh(part, attribute_names=["current_stock"])


def decrement_stock(db: Session, part: Sparepart, quantity: int) -> None:
    result = db.execute(
        update(Sparepart)
        .where(Sparepart.id == part.id, Sparepart.current_stock >= quantity)
        .values(current_stock=Sparepart.current_stock - quantity)
        .execution_options(synchronize_session=False)
    )
    db.refresh(part, attribute_names=["current_stock"])
    if result.rowcount == 0:
        raise InsufficientStock(part.current_stock, quantity, part.unit)


def overwrite_stock(db: Session, part: Sparepart, quantity: int) -> None:
    db.execute(
        update(Sparepart)
        .where(Sparepart.id == part.id)
        .values(current_stock=quantity)
        .execution_options(synchronize_session=False)
    )
    db.refresh(part, attribute_names=["current_stock"])
