import datetime as dt
from typing import Annotated, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from warehouse.schemas.common import BlankToNone

AttendanceStatus = Literal["present", "absent", "late", "leave", "sick"]


class AttendanceEntry(BaseModel):
    employee_id: int = Field(validation_alias=AliasChoices("employee_id", "employeeId"))
    clock_in: Annotated[Optional[str], BlankToNone] = Field(
        default=None,
        validation_alias=AliasChoices("clock_in", "clockIn"),
    )
    clock_out: Annotated[Optional[str], BlankToNone] = Field(
        default=None,
        validation_alias=AliasChoices("clock_out", "clockOut"),
    )
    status: AttendanceStatus
    overtime_hours: Optional[float] = Field(
        default=None,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("overtime_hours", "overtimeHours"),
    )
    notes: Annotated[Optional[str], BlankToNone] = Field(default=None, max_length=500)

    model_config = ConfigDict(populate_by_name=True)


class AttendanceCreate(AttendanceEntry):
    date: dt.date


class BulkAttendanceCreate(BaseModel):
    date: dt.date
    entries: List[AttendanceEntry]


class BulkAttendanceResult(BaseModel):
    success: int
    error: int


class AttendanceRead(BaseModel):
    id: int
    employee_id: int
    date: dt.date
    clock_in: Optional[dt.datetime] = None
    clock_out: Optional[dt.datetime] = None
    status: str
    overtime_hours: Optional[float] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class EmployeeRecap(BaseModel):
    id: int
    nik: str
    name: str
    position: str
    present: int = 0
    absent: int = 0
    late: int = 0
    leave: int = 0
    sick: int = 0
    total_overtime: float = 0.0
    total_days: int = 0


class RecapSummary(BaseModel):
    total_employees: int
    total_present: int
    total_absent: int
    total_late: int
    total_leave: int
    total_sick: int
    total_overtime: float


class DailyAttendance(BaseModel):
    day: int
    present: int
    absent: int
    late: int


class AttendanceRecap(BaseModel):
    month: int
    year: int
    recap: List[EmployeeRecap]
    summary: RecapSummary
    daily: List[DailyAttendance]
