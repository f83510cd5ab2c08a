"""Read-only aggregations: stock valuation, movement reports, equipment usage and the dashboard."""

from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from warehouse.config import get_settings
from warehouse.core.constants import (
    STOCK_OUT_APPROVED,
    STOCK_OUT_PENDING,
    STOCK_OUT_REJECTED,
    STOCK_OUT_STATUSES,
    STOCK_STATUSES,
    WARRANTY_CLAIMED,
)
from warehouse.core.dates import day_bounds, utcnow
from warehouse.core.errors import NotFound, ValidationError
from warehouse.models.equipment import HeavyEquipment
from warehouse.models.sparepart import Sparepart
from warehouse.models.stock_in import StockIn
from warehouse.models.stock_out import StockOut
from warehouse.models.warranty import Warranty
from warehouse.schemas.master import CategoryRead, EquipmentRead
from warehouse.schemas.report import (
    DashboardSummary,
    EquipmentUsageReport,
    EquipmentUsageRow,
    EquipmentUsageSummary,
    ExpiringWarrantyRow,
    LowStockRow,
    StockInReport,
    StockInReportRow,
    StockInReportSummary,
    StockOutReport,
    StockOutReportRow,
    StockOutReportSummary,
    StockReport,
    StockReportRow,
    StockReportSummary,
)
from warehouse.services.master_service import classify_stock, stock_status_clause
from warehouse.services.petty_cash_service import current_balance


def latest_prices(db: Session, part_ids=None) -> dict[int, float]:
    """Most recent non-null purchase price per part."""
    latest = (
        select(StockIn.sparepart_id, func.max(StockIn.id).label("stock_in_id"))
        .where(StockIn.purchase_price.is_not(None))
        .group_by(StockIn.sparepart_id)
    )
    if part_ids is not None:
        latest = latest.where(StockIn.sparepart_id.in_(list(part_ids)))
    latest = latest.subquery()
    rows = db.execute(
        select(StockIn.sparepart_id, StockIn.purchase_price).join(
            latest, StockIn.id == latest.c.stock_in_id
        )
    ).all()
    return {part_id: float(price or 0) for part_id, price in rows}


def stock_report(
    db: Session,
    *,
    category_id: Optional[int] = None,
    stock_status: str = "all",
) -> StockReport:
    stmt = select(Sparepart)
    if category_id:
        stmt = stmt.where(Sparepart.category_id == category_id)
    if stock_status and stock_status != "all":
        if stock_status not in STOCK_STATUSES:
            raise ValidationError(f"stock_status must be one of: all, {', '.join(STOCK_STATUSES)}")
        stmt = stmt.where(stock_status_clause(stock_status))
    parts = db.execute(stmt.order_by(Sparepart.code.asc())).scalars().unique().all()
    prices = latest_prices(db, [part.id for part in parts])

    rows = []
    counts = {status: 0 for status in STOCK_STATUSES}
    total_value = 0.0
    for part in parts:
        status = classify_stock(part.current_stock, part.min_stock)
        price = prices.get(part.id, 0.0)
        value = part.current_stock * price
        counts[status] += 1
        total_value += value
        rows.append(
            StockReportRow(
                id=part.id,
                code=part.code,
                name=part.name,
                unit=part.unit,
                current_stock=part.current_stock,
                min_stock=part.min_stock,
                category=CategoryRead.model_validate(part.category) if part.category else None,
                price=price,
                status=status,
                value=value,
            )
        )

    summary = StockReportSummary(
        total_items=len(rows),
        total_normal=counts["normal"],
        total_low=counts["low"],
        total_empty=counts["empty"],
        total_value=total_value,
    )
    return StockReport(data=rows, summary=summary)


def _check_period(date_from: Optional[date], date_to: Optional[date]) -> None:
    if date_from and date_to and date_from > date_to:
        raise ValidationError("date_from must not be after date_to")


def stock_in_report(
    db: Session,
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> StockInReport:
    """Every receipt in the period, newest first, with quantity and value totals."""
    _check_period(date_from, date_to)
    stmt = select(StockIn)
    if date_from:
        stmt = stmt.where(StockIn.created_at >= day_bounds(date_from)[0])
    if date_to:
        stmt = stmt.where(StockIn.created_at < day_bounds(date_to)[1])
    records = db.execute(stmt.order_by(StockIn.created_at.desc(), StockIn.id.desc())).scalars().unique().all()

    rows = []
    for record in records:
        price = float(record.purchase_price or 0)
        rows.append(
            StockInReportRow(
                id=record.id,
                date=record.created_at,
                part_code=record.sparepart.code,
                part_name=record.sparepart.name,
                unit=record.sparepart.unit,
                quantity=record.quantity,
                supplier_name=record.supplier.name if record.supplier else None,
                invoice_number=record.invoice_number,
                purchase_price=price,
                total_price=price * record.quantity,
                source=record.source,
                notes=record.notes,
            )
        )

    summary = StockInReportSummary(
        total_transactions=len(rows),
        total_quantity=sum(row.quantity for row in rows),
        total_value=sum(row.total_price for row in rows),
    )
    return StockInReport(data=rows, summary=summary)


def stock_out_report(
    db: Session,
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    status: str = "all",
) -> StockOutReport:
    """Stock-out requests raised in the period, newest first, with per-status counts."""
    _check_period(date_from, date_to)
    stmt = select(StockOut)
    if status and status != "all":
        if status not in STOCK_OUT_STATUSES:
            raise ValidationError(f"status must be one of: all, {', '.join(STOCK_OUT_STATUSES)}")
        stmt = stmt.where(StockOut.status == status)
    if date_from:
        stmt = stmt.where(StockOut.created_at >= day_bounds(date_from)[0])
    if date_to:
        stmt = stmt.where(StockOut.created_at < day_bounds(date_to)[1])
    records = db.execute(stmt.order_by(StockOut.created_at.desc(), StockOut.id.desc())).scalars().unique().all()

    rows = [
        StockOutReportRow(
            id=record.id,
            date=record.created_at,
            part_code=record.sparepart.code,
            part_name=record.sparepart.name,
            unit=record.sparepart.unit,
            quantity=record.quantity,
            equipment_code=record.equipment.code if record.equipment else None,
            equipment_name=record.equipment.name if record.equipment else None,
            employee_name=record.employee.name if record.employee else None,
            employee_position=record.employee.position if record.employee else None,
            purpose=record.purpose,
            status=record.status,
            approved_at=record.approved_at,
        )
        for record in records
    ]

    summary = StockOutReportSummary(
        total_transactions=len(rows),
        total_quantity=sum(row.quantity for row in rows),
        pending=sum(1 for row in rows if row.status == STOCK_OUT_PENDING),
        approved=sum(1 for row in rows if row.status == STOCK_OUT_APPROVED),
        rejected=sum(1 for row in rows if row.status == STOCK_OUT_REJECTED),
    )
    return StockOutReport(data=rows, summary=summary)


def equipment_usage_report(
    db: Session,
    equipment_id: int,
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> EquipmentUsageReport:
    equipment = db.get(HeavyEquipment, equipment_id)
    if equipment is None:
        raise NotFound(f"Heavy equipment {equipment_id} not found")

    stmt = select(StockOut).where(
        StockOut.equipment_id == equipment_id,
        StockOut.status == STOCK_OUT_APPROVED,
    )
    if date_from:
        stmt = stmt.where(StockOut.approved_at >= day_bounds(date_from)[0])
    if date_to:
        stmt = stmt.where(StockOut.approved_at < day_bounds(date_to)[1])
    records = db.execute(stmt.order_by(StockOut.approved_at.desc(), StockOut.id.desc())).scalars().unique().all()
    prices = latest_prices(db, {record.sparepart_id for record in records})

    history = []
    for record in records:
        price = prices.get(record.sparepart_id, 0.0)
        history.append(
            EquipmentUsageRow(
                id=record.id,
                date=record.approved_at,
                part_code=record.sparepart.code,
                part_name=record.sparepart.name,
                price=price,
                quantity=record.quantity,
                employee_name=record.employee.name if record.employee else None,
                purpose=record.purpose,
                cost=price * record.quantity,
            )
        )

    summary = EquipmentUsageSummary(
        total_transactions=len(history),
        total_quantity=sum(row.quantity for row in history),
        total_cost=sum(row.cost for row in history),
    )
    return EquipmentUsageReport(
        equipment=EquipmentRead.model_validate(equipment),
        history=history,
        summary=summary,
    )


def dashboard_summary(db: Session, today: Optional[date] = None) -> DashboardSummary:
    settings = get_settings()
    today = today or utcnow().date()
    start, end = day_bounds(today)
    window_end = today + timedelta(days=settings.WARRANTY_EXPIRING_DAYS)

    low_stock = db.execute(
        select(Sparepart)
        .where(Sparepart.current_stock <= Sparepart.min_stock)
        .order_by(Sparepart.current_stock.asc(), Sparepart.code.asc())
        .limit(settings.LOW_STOCK_ALERT_LIMIT)
    ).scalars().unique().all()

    expiring = db.execute(
        select(Warranty)
        .where(
            Warranty.claim_status != WARRANTY_CLAIMED,
            Warranty.expiry_date >= today,
            Warranty.expiry_date <= window_end,
        )
        .order_by(Warranty.expiry_date.asc())
    ).scalars().unique().all()

    return DashboardSummary(
        total_spareparts=db.scalar(select(func.count(Sparepart.id))) or 0,
        active_equipment=db.scalar(
            select(func.count(HeavyEquipment.id)).where(HeavyEquipment.status == "active")
        ) or 0,
        today_stock_in=db.scalar(
            select(func.count(StockIn.id)).where(StockIn.created_at >= start, StockIn.created_at < end)
        ) or 0,
        today_stock_out=db.scalar(
            select(func.count(StockOut.id)).where(
                StockOut.status == STOCK_OUT_APPROVED,
                StockOut.approved_at >= start,
                StockOut.approved_at < end,
            )
        ) or 0,
        pending_requests=db.scalar(
            select(func.count(StockOut.id)).where(StockOut.status == STOCK_OUT_PENDING)
        ) or 0,
        petty_cash_balance=current_balance(db),
        low_stock=[
            LowStockRow(
                id=part.id,
                code=part.code,
                name=part.name,
                unit=part.unit,
                current_stock=part.current_stock,
                min_stock=part.min_stock,
            )
            for part in low_stock
        ],
        expiring_warranties=[
            ExpiringWarrantyRow(
                id=warranty.id,
                part_code=warranty.sparepart.code,
                part_name=warranty.sparepart.name,
                expiry_date=warranty.expiry_date,
            )
            for warranty in expiring
        ],
    )
