from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from warehouse.core.dates import utcnow
from warehouse.core.security import Actor
from warehouse.dependencies import get_db, require_auth
from warehouse.schemas.attendance import (
    AttendanceCreate,
    AttendanceRead,
    AttendanceRecap,
    BulkAttendanceCreate,
    BulkAttendanceResult,
)
from warehouse.schemas.common import Page
from warehouse.services import attendance_service

router = APIRouter(prefix="/attendance", tags=["Attendance"])


@router.get("", response_model=Page[AttendanceRead])
def list_attendance(
    on_date: Optional[date] = Query(None, alias="date"),
    employee_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    rows, meta = attendance_service.list_attendance(
        db, on_date=on_date, employee_id=employee_id, page=page, limit=limit
    )
    return {"data": rows, "meta": meta}


@router.post("", response_model=AttendanceRead, status_code=201)
def record_attendance(
    payload: AttendanceCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return attendance_service.record_attendance(db, payload, actor)


@router.post("/bulk", response_model=BulkAttendanceResult)
def record_bulk_attendance(
    payload: BulkAttendanceCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return attendance_service.record_bulk_attendance(db, payload, actor)


@router.get("/recap", response_model=AttendanceRecap)
def attendance_recap(
    month: Optional[int] = None,
    year: Optional[int] = None,
    employee_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    today = utcnow().date()
    return attendance_service.attendance_recap(
        db, month or today.month, year or today.year, employee_id=employee_id
    )


__all__ = ["router"]
