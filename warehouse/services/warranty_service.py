import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from warehouse.config import get_settings
from warehouse.core.constants import WARRANTY_ACTIVE, WARRANTY_CLAIMED, WARRANTY_REPORT_STATUSES
from warehouse.core.dates import utcnow
from warehouse.core.errors import InvalidStateTransition, NotFound, ValidationError
from warehouse.core.security import Actor
from warehouse.database.session import atomic
from warehouse.models.warranty import Warranty
from warehouse.schemas.stock import WarrantyCounts, WarrantyRead, WarrantyReport, WarrantyReportRow
from warehouse.services.audit_service import record_audit

logger = logging.getLogger(__name__)


def _status_clause(status: str, today: date, window_end: date):
    if status == "claimed":
        return Warranty.claim_status == WARRANTY_CLAIMED
    unclaimed = Warranty.claim_status != WARRANTY_CLAIMED
    if status == "expired":
        return unclaimed & (Warranty.expiry_date < today)
    if status == "expiring":
        return unclaimed & (Warranty.expiry_date >= today) & (Warranty.expiry_date <= window_end)
    return unclaimed & (Warranty.expiry_date > window_end)


def derive_warranty_status(warranty: Warranty, today: date, window_end: date) -> str:
    if warranty.claim_status == WARRANTY_CLAIMED:
        return "claimed"
    if warranty.expiry_date < today:
        return "expired"
    if warranty.expiry_date <= window_end:
        return "expiring"
    return "active"


def warranty_report(db: Session, status: str = "active", today: Optional[date] = None) -> WarrantyReport:
    """Warranties grouped into active, expiring, expired and claimed tabs."""
    if status not in WARRANTY_REPORT_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(WARRANTY_REPORT_STATUSES)}")
    today = today or utcnow().date()
    window_end = today + timedelta(days=get_settings().WARRANTY_EXPIRING_DAYS)

    warranties = db.execute(
        select(Warranty)
        .where(_status_clause(status, today, window_end))
        .order_by(Warranty.expiry_date.asc(), Warranty.id.asc())
    ).scalars().unique().all()

    rows = []
    for warranty in warranties:
        base = WarrantyRead.model_validate(warranty)
        rows.append(
            WarrantyReportRow(
                **base.model_dump(by_alias=False),
                days_remaining=(warranty.expiry_date - today).days,
                warranty_status=derive_warranty_status(warranty, today, window_end),
            )
        )

    counts = {
        tab: db.scalar(select(func.count(Warranty.id)).where(_status_clause(tab, today, window_end))) or 0
        for tab in WARRANTY_REPORT_STATUSES
    }
    return WarrantyReport(data=rows, counts=WarrantyCounts(**counts))


def claim_warranty(db: Session, warranty_id: int, notes: Optional[str], actor: Actor) -> Warranty:
    warranty = db.get(Warranty, warranty_id)
    if warranty is None:
        raise NotFound(f"Warranty {warranty_id} not found")
    if warranty.claim_status == WARRANTY_CLAIMED:
        raise InvalidStateTransition(f"Warranty {warranty_id} has already been claimed")

    claim_notes = (notes or "").strip() or None
    with atomic(db):
        warranty.claim_status = WARRANTY_CLAIMED
        warranty.claim_date = utcnow()
        warranty.claim_notes = claim_notes
        record_audit(
            db,
            actor,
            "CLAIM",
            "Warranty",
            warranty.id,
            f"Warranty claimed for {warranty.sparepart.code}",
            data_before={"claim_status": WARRANTY_ACTIVE},
            data_after={"claim_status": WARRANTY_CLAIMED, "claim_notes": claim_notes},
        )

    logger.info("Warranty %s claimed", warranty.id, extra={"actor": actor.name, "sparepart_id": warranty.sparepart_id})
    return warranty
