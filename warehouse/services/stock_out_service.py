"""Stock-out requests and their ``pending -> approved | rejected`` lifecycle."""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from warehouse.core.constants import (
    STOCK_OUT_APPROVED,
    STOCK_OUT_PENDING,
    STOCK_OUT_REJECTED,
    STOCK_OUT_STATUSES,
)
from warehouse.core.dates import day_bounds, utcnow
from warehouse.core.errors import InsufficientStock, InvalidStateTransition, NotFound, ValidationError
from warehouse.core.security import Actor
from warehouse.database.session import atomic
from warehouse.models.employee import Employee
from warehouse.models.equipment import HeavyEquipment
from warehouse.models.sparepart import Sparepart
from warehouse.models.stock_out import StockOut
from warehouse.schemas.stock import ApprovalStats, StockOutCreate
from warehouse.services import stock_ledger
from warehouse.services.audit_service import record_audit
from warehouse.services.pagination import contains, paginate

logger = logging.getLogger(__name__)

REJECT_REASON_MAX_LENGTH = 500


def get_stock_out(db: Session, stock_out_id: int) -> StockOut:
    record = db.get(StockOut, stock_out_id)
    if record is None:
        raise NotFound(f"Stock-out request {stock_out_id} not found")
    return record


def _require_pending(record: StockOut, action: str) -> None:
    if record.status != STOCK_OUT_PENDING:
        logger.warning(
            "Refused to %s stock-out %s in state %s",
            action,
            record.id,
            record.status,
            extra={"stock_out_id": record.id},
        )
        raise InvalidStateTransition(
            f"Cannot {action} stock-out request {record.id}: status is {record.status}, expected pending"
        )


def list_stock_outs(
    db: Session,
    *,
    search: Optional[str] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = 1,
    limit: Optional[int] = None,
):
    stmt = (
        select(StockOut)
        .join(Sparepart, StockOut.sparepart_id == Sparepart.id)
        .outerjoin(Employee, StockOut.employee_id == Employee.id)
    )
    if search:
        pattern = contains(search)
        stmt = stmt.where(
            or_(
                Sparepart.code.ilike(pattern, escape="\\"),
                Sparepart.name.ilike(pattern, escape="\\"),
                Employee.name.ilike(pattern, escape="\\"),
            )
        )
    if status and status != "all":
        if status not in STOCK_OUT_STATUSES:
            raise ValidationError(f"status must be one of: all, {', '.join(STOCK_OUT_STATUSES)}")
        stmt = stmt.where(StockOut.status == status)
    if date_from:
        stmt = stmt.where(StockOut.created_at >= day_bounds(date_from)[0])
    if date_to:
        stmt = stmt.where(StockOut.created_at < day_bounds(date_to)[1])
    stmt = stmt.order_by(StockOut.created_at.desc(), StockOut.id.desc())
    return paginate(db, stmt, page, limit)


def create_stock_out(db: Session, payload: StockOutCreate, actor: Actor) -> StockOut:
    if payload.quantity <= 0:
        raise ValidationError("quantity must be a positive integer")

    part = stock_ledger.get_part(db, payload.part_id)
    if db.get(HeavyEquipment, payload.equipment_id) is None:
        raise NotFound(f"Heavy equipment {payload.equipment_id} not found")
    if db.get(Employee, payload.employee_id) is None:
        raise NotFound(f"Employee {payload.employee_id} not found")

    # Stock is not reserved here; approval checks it again.
    if payload.quantity > part.current_stock:
        raise InsufficientStock(part.current_stock, payload.quantity, part.unit)

    with atomic(db):
        record = StockOut(
            sparepart_id=part.id,
            equipment_id=payload.equipment_id,
            employee_id=payload.employee_id,
            quantity=payload.quantity,
            purpose=payload.purpose,
            scanned_barcode=payload.scanned_barcode,
            status=STOCK_OUT_PENDING,
            source="request",
            created_by=actor.name,
        )
        db.add(record)
        db.flush()
        record_audit(
            db,
            actor,
            "CREATE",
            "StockOut",
            record.id,
            f"Stock out request {part.code}: {payload.quantity} {part.unit}",
            data_after={"sparepart_id": part.id, "quantity": payload.quantity, "status": STOCK_OUT_PENDING},
        )

    db.refresh(record)
    logger.info(
        "Stock-out request created for %s (%s)",
        part.code,
        payload.quantity,
        extra={"actor": actor.name, "stock_out_id": record.id, "sparepart_id": part.id},
    )
    return record


def approve_stock_out(db: Session, stock_out_id: int, actor: Actor) -> StockOut:
    """Approve a pending request and take its quantity off the part.

    Sufficiency is checked against the stock at approval time. The part row
    is locked and the decrement is conditional on enough stock remaining, so
    two approvals racing for the same part cannot oversell it.
    """
    record = get_stock_out(db, stock_out_id)
    _require_pending(record, "approve")

    try:
        with atomic(db):
            part = stock_ledger.get_part(db, record.sparepart_id, lock=True)
            # Re-read under the lock in case another approver got here first.
            db.refresh(record, attribute_names=["status"])
            _require_pending(record, "approve")
            stock_ledger.decrement_stock(db, part, record.quantity)
            record.status = STOCK_OUT_APPROVED
            record.approved_at = utcnow()
            record.approved_by = actor.name
            record_audit(
                db,
                actor,
                "APPROVE",
                "StockOut",
                record.id,
                f"Approved stock out {part.code}: -{record.quantity} {part.unit}",
                data_before={"status": STOCK_OUT_PENDING},
                data_after={"status": STOCK_OUT_APPROVED, "current_stock": part.current_stock},
            )
    except InsufficientStock:
        logger.warning(
            "Approval refused for stock-out %s: insufficient stock",
            stock_out_id,
            extra={"actor": actor.name, "stock_out_id": stock_out_id, "sparepart_id": record.sparepart_id},
        )
        raise

    db.refresh(record)
    logger.info(
        "Stock-out %s approved (%s now %s)",
        record.id,
        part.code,
        part.current_stock,
        extra={"actor": actor.name, "stock_out_id": record.id, "sparepart_id": part.id},
    )
    return record


def reject_stock_out(db: Session, stock_out_id: int, reason: Optional[str], actor: Actor) -> StockOut:
    record = get_stock_out(db, stock_out_id)
    _require_pending(record, "reject")

    reason_text = (reason or "").strip()
    if not reason_text:
        raise ValidationError("A rejection reason is required")
    if len(reason_text) > REJECT_REASON_MAX_LENGTH:
        raise ValidationError(f"Rejection reason must be at most {REJECT_REASON_MAX_LENGTH} characters")

    with atomic(db):
        record.status = STOCK_OUT_REJECTED
        record.rejected_reason = reason_text
        record_audit(
            db,
            actor,
            "REJECT",
            "StockOut",
            record.id,
            f"Rejected stock out {record.sparepart.code}: {reason_text}",
            data_before={"status": STOCK_OUT_PENDING},
            data_after={"status": STOCK_OUT_REJECTED, "rejected_reason": reason_text},
        )

    db.refresh(record)
    logger.info(
        "Stock-out %s rejected",
        record.id,
        extra={"actor": actor.name, "stock_out_id": record.id},
    )
    return record


def delete_stock_out(db: Session, stock_out_id: int, actor: Actor) -> None:
    record = get_stock_out(db, stock_out_id)
    _require_pending(record, "delete")

    with atomic(db):
        record_audit(
            db,
            actor,
            "DELETE",
            "StockOut",
            record.id,
            f"Deleted pending stock out request {record.id}",
            data_before={"sparepart_id": record.sparepart_id, "quantity": record.quantity},
        )
        db.delete(record)

    logger.info("Stock-out %s deleted", stock_out_id, extra={"actor": actor.name, "stock_out_id": stock_out_id})


def approval_stats(db: Session, today: Optional[date] = None) -> ApprovalStats:
    start, end = day_bounds(today or utcnow().date())

    def _count(*clauses) -> int:
        return db.scalar(select(func.count(StockOut.id)).where(*clauses)) or 0

    return ApprovalStats(
        total_pending=_count(StockOut.status == STOCK_OUT_PENDING),
        approved_today=_count(
            StockOut.status == STOCK_OUT_APPROVED,
            StockOut.source == "request",
            StockOut.approved_at >= start,
            StockOut.approved_at < end,
        ),
        rejected_today=_count(
            StockOut.status == STOCK_OUT_REJECTED,
            StockOut.updated_at >= start,
            StockOut.updated_at < end,
        ),
    )
