"""Physical stock count reconciliation (stock opname)."""

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from warehouse.core.constants import OPNAME_COMPLETED, STOCK_OUT_APPROVED
from warehouse.core.dates import utcnow
from warehouse.core.errors import NotFound, NothingToReconcile, ValidationError
from warehouse.core.security import Actor
from warehouse.database.session import atomic
from warehouse.models.category import Category
from warehouse.models.opname import StockOpname, StockOpnameItem
from warehouse.models.sparepart import Sparepart
from warehouse.models.stock_in import StockIn
from warehouse.models.stock_out import StockOut
from warehouse.schemas.opname import (
    OpnameCandidate,
    OpnameDetail,
    OpnameItemRead,
    OpnameRequest,
    OpnameResult,
    OpnameSummary,
)
from warehouse.services import stock_ledger
from warehouse.services.audit_service import record_audit
from warehouse.services.pagination import contains, paginate

logger = logging.getLogger(__name__)


def list_opname_candidates(
    db: Session,
    *,
    category_id: Optional[int] = None,
    search: Optional[str] = None,
) -> list[OpnameCandidate]:
    stmt = select(Sparepart, Category.name).outerjoin(Category, Sparepart.category_id == Category.id)
    if category_id:
        stmt = stmt.where(Sparepart.category_id == category_id)
    if search:
        pattern = contains(search)
        stmt = stmt.where(
            or_(Sparepart.code.ilike(pattern, escape="\\"), Sparepart.name.ilike(pattern, escape="\\"))
        )
    stmt = stmt.order_by(Sparepart.code.asc())
    return [
        OpnameCandidate(
            id=part.id,
            code=part.code,
            name=part.name,
            unit=part.unit,
            current_stock=part.current_stock,
            rack_location=part.rack_location,
            category_name=category_name,
        )
        for part, category_name in db.execute(stmt).unique().all()
    ]


def _adjustment_note(opname_id: int, item_note: Optional[str]) -> str:
    note = f"Stock opname adjustment (#{opname_id})"
    if item_note and item_note.strip():
        note = f"{note}: {item_note.strip()}"
    return note[:500]


def _validate_items(db: Session, payload: OpnameRequest) -> dict[int, Sparepart]:
    if not payload.items:
        raise ValidationError("At least one opname item is required")

    parts: dict[int, Sparepart] = {}
    for index, item in enumerate(payload.items, start=1):
        if item.physical_stock < 0:
            raise ValidationError(f"Item {index}: physical_stock must not be negative")
        if item.system_stock < 0:
            raise ValidationError(f"Item {index}: system_stock must not be negative")
        if item.part_id in parts:
            raise ValidationError(f"Item {index}: sparepart {item.part_id} appears more than once")
        parts[item.part_id] = stock_ledger.get_part(db, item.part_id)
    return parts


def reconcile(db: Session, payload: OpnameRequest, actor: Actor) -> OpnameResult:
    """Post adjustments so each counted part's stock equals its physical count.

    Items whose counted quantity matches the recorded one are skipped. A
    surplus becomes a stock-in and a deficit an approved stock-out, both tagged
    with the opname id; the part's stock is then set to the counted value.
    """
    parts = _validate_items(db, payload)
    differing = [item for item in payload.items if item.physical_stock != item.system_stock]
    if not differing:
        logger.warning("Opname refused: no item differs from the recorded stock", extra={"actor": actor.name})
        raise NothingToReconcile("No stock differences to reconcile")

    stock_in_created = 0
    stock_out_created = 0
    with atomic(db):
        opname = StockOpname(
            opname_date=utcnow().date(),
            notes=payload.notes,
            status=OPNAME_COMPLETED,
            created_by=actor.name,
        )
        db.add(opname)
        db.flush()

        for item in differing:
            part = parts[item.part_id]
            difference = item.physical_stock - item.system_stock
            db.add(
                StockOpnameItem(
                    opname_id=opname.id,
                    sparepart_id=part.id,
                    system_stock=item.system_stock,
                    physical_stock=item.physical_stock,
                    difference=difference,
                    notes=item.notes,
                )
            )
            note = _adjustment_note(opname.id, item.notes)
            if difference > 0:
                db.add(
                    StockIn(
                        sparepart_id=part.id,
                        quantity=difference,
                        notes=note,
                        source="opname",
                        opname_id=opname.id,
                        created_by=actor.name,
                    )
                )
                stock_in_created += 1
            else:
                db.add(
                    StockOut(
                        sparepart_id=part.id,
                        quantity=abs(difference),
                        purpose=note,
                        status=STOCK_OUT_APPROVED,
                        approved_at=utcnow(),
                        approved_by=actor.name,
                        source="opname",
                        opname_id=opname.id,
                        created_by=actor.name,
                    )
                )
                stock_out_created += 1
            stock_ledger.overwrite_stock(db, part, item.physical_stock)

        record_audit(
            db,
            actor,
            "CREATE",
            "StockOpname",
            opname.id,
            f"Stock opname #{opname.id}: {len(differing)} item(s) adjusted",
            data_after={
                "items": [
                    {
                        "sparepart_id": item.part_id,
                        "system_stock": item.system_stock,
                        "physical_stock": item.physical_stock,
                    }
                    for item in differing
                ]
            },
        )

    logger.info(
        "Opname %s posted: %s adjusted (%s in, %s out)",
        opname.id,
        len(differing),
        stock_in_created,
        stock_out_created,
        extra={"actor": actor.name, "opname_id": opname.id},
    )
    return OpnameResult(
        opname_id=opname.id,
        adjusted_count=len(differing),
        stock_in_created=stock_in_created,
        stock_out_created=stock_out_created,
    )


def _totals(items) -> dict:
    return {
        "total_items": len(items),
        "total_difference": sum(abs(item.difference) for item in items),
        "total_plus": sum(item.difference for item in items if item.difference > 0),
        "total_minus": sum(abs(item.difference) for item in items if item.difference < 0),
    }


def _summary_fields(opname: StockOpname) -> dict:
    return {
        "id": opname.id,
        "opname_date": opname.opname_date,
        "notes": opname.notes,
        "status": opname.status,
        "created_by": opname.created_by,
        "created_at": opname.created_at,
        **_totals(opname.items),
    }


def opname_history(db: Session, *, page: int = 1, limit: Optional[int] = None):
    stmt = (
        select(StockOpname)
        .options(selectinload(StockOpname.items))
        .order_by(StockOpname.created_at.desc(), StockOpname.id.desc())
    )
    rows, meta = paginate(db, stmt, page, limit)
    return [OpnameSummary(**_summary_fields(opname)) for opname in rows], meta


def opname_detail(db: Session, opname_id: int) -> OpnameDetail:
    opname = db.execute(
        select(StockOpname)
        .options(selectinload(StockOpname.items))
        .where(StockOpname.id == opname_id)
    ).scalars().first()
    if opname is None:
        raise NotFound(f"Stock opname {opname_id} not found")
    items = [
        OpnameItemRead(
            id=item.id,
            sparepart_id=item.sparepart_id,
            part_code=item.sparepart.code if item.sparepart else None,
            part_name=item.sparepart.name if item.sparepart else None,
            system_stock=item.system_stock,
            physical_stock=item.physical_stock,
            difference=item.difference,
            notes=item.notes,
        )
        for item in opname.items
    ]
    return OpnameDetail(items=items, **_summary_fields(opname))
