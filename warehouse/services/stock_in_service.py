import logging
import math
from datetime import date
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from warehouse.core.constants import WARRANTY_ACTIVE
from warehouse.core.dates import day_bounds
from warehouse.core.errors import NotFound, ValidationError
from warehouse.core.security import Actor
from warehouse.database.session import atomic
from warehouse.models.sparepart import Sparepart
from warehouse.models.stock_in import StockIn
from warehouse.models.supplier import Supplier
from warehouse.models.warranty import Warranty
from warehouse.schemas.stock import StockInCreate
from warehouse.services import stock_ledger
from warehouse.services.audit_service import record_audit
from warehouse.services.pagination import contains, paginate

logger = logging.getLogger(__name__)


def _snapshot(record: StockIn) -> dict:
    return {
        "sparepart_id": record.sparepart_id,
        "supplier_id": record.supplier_id,
        "quantity": record.quantity,
        "invoice_number": record.invoice_number,
        "purchase_price": record.purchase_price,
        "warranty_expiry": record.warranty_expiry,
        "source": record.source,
    }


def get_stock_in(db: Session, stock_in_id: int) -> StockIn:
    record = db.get(StockIn, stock_in_id)
    if record is None:
        raise NotFound(f"Stock-in {stock_in_id} not found")
    return record


def list_stock_ins(
    db: Session,
    *,
    search: Optional[str] = None,
    supplier_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = 1,
    limit: Optional[int] = None,
):
    stmt = select(StockIn).join(Sparepart, StockIn.sparepart_id == Sparepart.id)
    if search:
        pattern = contains(search)
        stmt = stmt.where(
            or_(
                StockIn.invoice_number.ilike(pattern, escape="\\"),
                Sparepart.code.ilike(pattern, escape="\\"),
                Sparepart.name.ilike(pattern, escape="\\"),
            )
        )
    if supplier_id:
        stmt = stmt.where(StockIn.supplier_id == supplier_id)
    if date_from:
        stmt = stmt.where(StockIn.created_at >= day_bounds(date_from)[0])
    if date_to:
        stmt = stmt.where(StockIn.created_at < day_bounds(date_to)[1])
    stmt = stmt.order_by(StockIn.created_at.desc(), StockIn.id.desc())
    return paginate(db, stmt, page, limit)


def create_stock_in(db: Session, payload: StockInCreate, actor: Actor) -> StockIn:
    """Record a receipt, raise the part's stock and open a warranty if one is given."""
    if payload.quantity <= 0:
        raise ValidationError("quantity must be a positive integer")
    if payload.purchase_price is not None:
        if not math.isfinite(payload.purchase_price):
            raise ValidationError("purchase_price must be a finite number")
        if payload.purchase_price < 0:
            raise ValidationError("purchase_price must not be negative")

    part = stock_ledger.get_part(db, payload.part_id)
    if payload.supplier_id is not None and db.get(Supplier, payload.supplier_id) is None:
        raise NotFound(f"Supplier {payload.supplier_id} not found")

    with atomic(db):
        record = StockIn(
            sparepart_id=part.id,
            supplier_id=payload.supplier_id,
            quantity=payload.quantity,
            invoice_number=payload.invoice_number,
            purchase_price=payload.purchase_price,
            warranty_expiry=payload.warranty_expiry,
            notes=payload.notes,
            source="manual",
            created_by=actor.name,
        )
        db.add(record)
        db.flush()

        stock_ledger.increment_stock(db, part, payload.quantity)

        if payload.warranty_expiry is not None:
            db.add(
                Warranty(
                    stock_in_id=record.id,
                    sparepart_id=part.id,
                    expiry_date=payload.warranty_expiry,
                    claim_status=WARRANTY_ACTIVE,
                )
            )

        record_audit(
            db,
            actor,
            "CREATE",
            "StockIn",
            record.id,
            f"Stock in {part.code}: +{payload.quantity} {part.unit}",
            data_after=_snapshot(record),
        )

    db.refresh(record)
    logger.info(
        "Stock in recorded for %s (+%s, now %s)",
        part.code,
        payload.quantity,
        part.current_stock,
        extra={"actor": actor.name, "stock_in_id": record.id, "sparepart_id": part.id},
    )
    return record


def delete_stock_in(db: Session, stock_in_id: int, actor: Actor) -> None:
    """Reverse a receipt: take its quantity back off the part and drop its warranty."""
    record = get_stock_in(db, stock_in_id)
    part = stock_ledger.get_part(db, record.sparepart_id, lock=True)

    with atomic(db):
        stock_ledger.decrement_stock(db, part, record.quantity)
        record_audit(
            db,
            actor,
            "DELETE",
            "StockIn",
            record.id,
            f"Deleted stock in {part.code}: -{record.quantity} {part.unit}",
            data_before=_snapshot(record),
        )
        db.delete(record)

    logger.info(
        "Stock in %s reversed for %s (now %s)",
        stock_in_id,
        part.code,
        part.current_stock,
        extra={"actor": actor.name, "stock_in_id": stock_in_id, "sparepart_id": part.id},
    )
