import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from warehouse.core.constants import ATTENDANCE_STATUSES, WORK_START_TIME
from warehouse.core.dates import month_bounds, parse_clock
from warehouse.core.errors import Conflict, NotFound, ValidationError
from warehouse.core.security import Actor
from warehouse.database.session import atomic
from warehouse.models.attendance import Attendance
from warehouse.models.employee import Employee
from warehouse.schemas.attendance import (
    AttendanceCreate,
    AttendanceEntry,
    AttendanceRecap,
    BulkAttendanceCreate,
    BulkAttendanceResult,
    DailyAttendance,
    EmployeeRecap,
    RecapSummary,
)
from warehouse.services.audit_service import record_audit
from warehouse.services.pagination import paginate

logger = logging.getLogger(__name__)


def derive_status(clock_in: Optional[datetime]) -> str:
    """``absent`` without a clock-in, ``late`` after the work start, else ``present``."""
    if clock_in is None:
        return "absent"
    if clock_in.time().replace(second=0, microsecond=0) > WORK_START_TIME:
        return "late"
    return "present"


def _entry_values(entry: AttendanceEntry, on_date: date) -> dict:
    try:
        clock_in = parse_clock(entry.clock_in, on_date)
        clock_out = parse_clock(entry.clock_out, on_date)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    if clock_in and clock_out and clock_out < clock_in:
        raise ValidationError("clock_out must not be before clock_in")
    return {
        "clock_in": clock_in,
        "clock_out": clock_out,
        "status": entry.status,
        "overtime_hours": entry.overtime_hours,
        "notes": entry.notes,
    }


def _find(db: Session, employee_id: int, on_date: date) -> Optional[Attendance]:
    return db.execute(
        select(Attendance).where(Attendance.employee_id == employee_id, Attendance.date == on_date)
    ).scalars().first()


def record_attendance(db: Session, payload: AttendanceCreate, actor: Actor) -> Attendance:
    if db.get(Employee, payload.employee_id) is None:
        raise NotFound(f"Employee {payload.employee_id} not found")
    if _find(db, payload.employee_id, payload.date) is not None:
        raise Conflict(f"Attendance for employee {payload.employee_id} on {payload.date} already exists")
    values = _entry_values(payload, payload.date)

    with atomic(db):
        record = Attendance(employee_id=payload.employee_id, date=payload.date, **values)
        db.add(record)
        db.flush()
        record_audit(
            db,
            actor,
            "CREATE",
            "Attendance",
            record.id,
            f"Attendance {payload.status} for employee {payload.employee_id} on {payload.date}",
        )
    return record


def record_bulk_attendance(db: Session, payload: BulkAttendanceCreate, actor: Actor) -> BulkAttendanceResult:
    """Upsert one attendance row per entry; a bad entry is counted, not raised."""
    success = 0
    failed = 0
    for entry in payload.entries:
        try:
            if db.get(Employee, entry.employee_id) is None:
                raise NotFound(f"Employee {entry.employee_id} not found")
            values = _entry_values(entry, payload.date)
            with atomic(db):
                record = _find(db, entry.employee_id, payload.date)
                if record is None:
                    record = Attendance(employee_id=entry.employee_id, date=payload.date)
                    db.add(record)
                for key, value in values.items():
                    setattr(record, key, value)
        except (NotFound, ValidationError) as exc:
            failed += 1
            logger.warning(
                "Bulk attendance entry skipped for employee %s: %s",
                entry.employee_id,
                exc.detail,
                extra={"actor": actor.name},
            )
            continue
        success += 1

    if success:
        with atomic(db):
            record_audit(
                db,
                actor,
                "CREATE",
                "Attendance",
                None,
                f"Bulk attendance for {payload.date}: {success} saved, {failed} failed",
            )
    logger.info("Bulk attendance for %s: %s saved, %s failed", payload.date, success, failed)
    return BulkAttendanceResult(success=success, error=failed)


def list_attendance(
    db: Session,
    *,
    on_date: Optional[date] = None,
    employee_id: Optional[int] = None,
    page: int = 1,
    limit: Optional[int] = None,
):
    stmt = select(Attendance)
    if on_date:
        stmt = stmt.where(Attendance.date == on_date)
    if employee_id:
        stmt = stmt.where(Attendance.employee_id == employee_id)
    stmt = stmt.order_by(Attendance.date.desc(), Attendance.employee_id.asc())
    return paginate(db, stmt, page, limit)


def attendance_recap(
    db: Session,
    month: int,
    year: int,
    employee_id: Optional[int] = None,
) -> AttendanceRecap:
    """Monthly per-employee status counts with a per-day series."""
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    first, last = month_bounds(year, month)

    employee_stmt = select(Employee).where(Employee.is_active.is_(True)).order_by(Employee.name.asc())
    if employee_id:
        employee_stmt = employee_stmt.where(Employee.id == employee_id)
    employees = db.execute(employee_stmt).scalars().all()

    record_stmt = select(Attendance).where(Attendance.date >= first, Attendance.date <= last)
    if employee_id:
        record_stmt = record_stmt.where(Attendance.employee_id == employee_id)
    records = db.execute(record_stmt).scalars().unique().all()

    recaps = {
        employee.id: EmployeeRecap(
            id=employee.id,
            nik=employee.nik,
            name=employee.name,
            position=employee.position,
        )
        for employee in employees
    }
    daily = {day: {"present": 0, "absent": 0, "late": 0} for day in range(1, last.day + 1)}

    for record in records:
        if record.status in daily[record.date.day]:
            daily[record.date.day][record.status] += 1
        recap = recaps.get(record.employee_id)
        if recap is None:
            continue
        if record.status in ATTENDANCE_STATUSES:
            setattr(recap, record.status, getattr(recap, record.status) + 1)
        recap.total_overtime += record.overtime_hours or 0
        recap.total_days += 1

    rows = list(recaps.values())
    summary = RecapSummary(
        total_employees=len(rows),
        total_present=sum(row.present for row in rows),
        total_absent=sum(row.absent for row in rows),
        total_late=sum(row.late for row in rows),
        total_leave=sum(row.leave for row in rows),
        total_sick=sum(row.sick for row in rows),
        total_overtime=sum(row.total_overtime for row in rows),
    )
    return AttendanceRecap(
        month=month,
        year=year,
        recap=rows,
        summary=summary,
        daily=[DailyAttendance(day=day, **counts) for day, counts in daily.items()],
    )
