from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from warehouse.core.security import Actor
from warehouse.dependencies import get_db, require_auth
from warehouse.schemas.report import (
    DashboardSummary,
    EquipmentUsageReport,
    StockInReport,
    StockOutReport,
    StockReport,
)
from warehouse.schemas.stock import WarrantyClaimRequest, WarrantyRead, WarrantyReport
from warehouse.services import report_service, warranty_service

router = APIRouter(tags=["Reports"])


@router.get("/reports/stock", response_model=StockReport)
def stock_report(
    category_id: Optional[int] = None,
    stock_status: str = "all",
    db: Session = Depends(get_db),
):
    return report_service.stock_report(db, category_id=category_id, stock_status=stock_status)


@router.get("/reports/stock-in", response_model=StockInReport)
def stock_in_report(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: Session = Depends(get_db),
):
    return report_service.stock_in_report(db, date_from=date_from, date_to=date_to)


@router.get("/reports/stock-out", response_model=StockOutReport)
def stock_out_report(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    status: str = "all",
    db: Session = Depends(get_db),
):
    return report_service.stock_out_report(db, date_from=date_from, date_to=date_to, status=status)


@router.get("/reports/equipment/{equipment_id}", response_model=EquipmentUsageReport)
def equipment_usage(
    equipment_id: int,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: Session = Depends(get_db),
):
    return report_service.equipment_usage_report(db, equipment_id, date_from=date_from, date_to=date_to)


@router.get("/reports/warranties", response_model=WarrantyReport)
def warranty_report(status: str = "active", db: Session = Depends(get_db)):
    return warranty_service.warranty_report(db, status)


@router.post("/reports/warranties/{warranty_id}/claim", response_model=WarrantyRead)
def claim_warranty(
    warranty_id: int,
    payload: WarrantyClaimRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return warranty_service.claim_warranty(db, warranty_id, payload.claim_notes, actor)


@router.get("/dashboard", response_model=DashboardSummary)
def dashboard(db: Session = Depends(get_db)):
    return report_service.dashboard_summary(db)


__all__ = ["router"]
