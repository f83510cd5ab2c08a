"""Bulk master-data, opening-stock and attendance import from Excel workbooks."""

import logging
import math
import re
import zipfile
from datetime import date, datetime, time, timezone
from io import BytesIO
from pathlib import Path

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from warehouse.config import get_settings
from warehouse.core.constants import ATTENDANCE_STATUSES, EQUIPMENT_STATUSES, IMPORT_KINDS
from warehouse.core.dates import normalize_date, parse_clock
from warehouse.core.errors import ValidationError
from warehouse.core.security import Actor
from warehouse.models.attendance import Attendance
from warehouse.models.category import Category
from warehouse.models.employee import Employee
from warehouse.models.equipment import HeavyEquipment
from warehouse.models.import_log import ImportLog
from warehouse.models.sparepart import Sparepart
from warehouse.models.stock_in import StockIn
from warehouse.models.supplier import Supplier
from warehouse.schemas.audit import ImportResult, ImportRowError
from warehouse.services import stock_ledger
from warehouse.services.attendance_service import derive_status
from warehouse.services.audit_service import record_audit
from warehouse.services.pagination import paginate

logger = logging.getLogger(__name__)

_ALIAS_TABLE = (
    (("category", "name"), "category"),
    (("kategori",), "category"),
    (("supplier", "name"), "name"),
    (("part", "code"), "code"),
    (("sparepart", "code"), "sparepart_code"),
    (("kode", "sparepart"), "sparepart_code"),
    (("part", "name"), "name"),
    (("min", "stock"), "min_stock"),
    (("minimum", "stock"), "min_stock"),
    (("rack",), "rack_location"),
    (("location",), "rack_location"),
    (("rack", "location"), "rack_location"),
    (("qty",), "quantity"),
    (("stock",), "quantity"),
    (("initial", "stock"), "quantity"),
    (("phone", "number"), "phone"),
    (("e", "mail"), "email"),
    (("is", "active"), "is_active"),
    (("active",), "is_active"),
    (("employee", "id"), "nik"),
    (("tanggal",), "date"),
    (("clock", "in"), "clock_in"),
    (("clock", "out"), "clock_out"),
    (("jam", "masuk"), "clock_in"),
    (("jam", "keluar"), "clock_out"),
    (("overtime",), "overtime_hours"),
)

HEADER_ALIASES = {"".join(parts): target for parts, target in _ALIAS_TABLE}

REQUIRED_COLUMNS = {
    "categories": {"name"},
    "suppliers": {"name"},
    "spareparts": {"code", "name", "category", "unit"},
    "equipment": {"code", "name", "type", "brand", "model"},
    "employees": {"nik", "name", "position"},
    "initial_stock": {"sparepart_code", "quantity"},
    "attendance": {"nik", "date"},
}

TEMPLATE_COLUMNS = {
    "categories": ["name"],
    "suppliers": ["name", "phone", "email", "address"],
    "spareparts": ["code", "name", "category", "brand", "unit", "min_stock", "rack_location"],
    "equipment": ["code", "name", "type", "brand", "model", "year", "site", "status"],
    "employees": ["nik", "name", "position", "department", "phone", "is_active"],
    "initial_stock": ["sparepart_code", "quantity", "notes"],
    "attendance": ["nik", "date", "clock_in", "clock_out", "status", "overtime_hours", "notes"],
}

_PLACEHOLDER_VALUES = {"none", "null", "na", "n/a", "nan", "-", "--"}
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_TRUE_VALUES = {"1", "true", "yes", "y", "active", "aktif"}
_FALSE_VALUES = {"0", "false", "no", "n", "inactive", "nonaktif"}


class RowSkipped(Exception):
    """The row's natural key already exists."""


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _clean_text(value):
    if _is_blank(value):
        return None
    # Numeric cells such as NIK 1001 arrive as 1001.0.
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    if text.lower() in _PLACEHOLDER_VALUES:
        return None
    return text


def normalize_header(value):
    if value is None:
        return ""
    value_text = str(value).strip().lower()
    if not value_text:
        return ""
    value_text = value_text.rstrip("*").strip()
    for char in (" ", "-", ".", "/"):
        value_text = value_text.replace(char, "_")
    value_text = "_".join(part for part in value_text.split("_") if part)
    alias = HEADER_ALIASES.get(value_text)
    if alias:
        return alias
    alias = HEADER_ALIASES.get(value_text.replace("_", ""))
    if alias:
        return alias
    return value_text


def to_str(value, field, required=True, max_length=None):
    text = _clean_text(value)
    if text is None:
        if required:
            raise ValueError(f"{field} is required")
        return None
    if max_length is not None and len(text) > max_length:
        raise ValueError(f"{field} must be at most {max_length} characters")
    return text


def to_int(value, field, required=True):
    if _is_blank(value):
        if required:
            raise ValueError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"{field} must be an integer")
    if isinstance(value, str):
        value_text = value.strip()
        try:
            return int(value_text)
        except ValueError:
            try:
                numeric = float(value_text)
            except ValueError:
                raise ValueError(f"{field} must be an integer") from None
            if not numeric.is_integer():
                raise ValueError(f"{field} must be an integer")
            return int(numeric)
    return int(value)


def to_float(value, field, required=True):
    if _is_blank(value):
        if required:
            raise ValueError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a number") from None
    if not math.isfinite(number):
        raise ValueError(f"{field} must be a finite number")
    return number


def to_date(value, field, required=True):
    if _is_blank(value):
        if required:
            raise ValueError(f"{field} is required")
        return None
    parsed = normalize_date(value)
    if parsed is None:
        raise ValueError(f"{field} must be a date (YYYY-MM-DD or DD/MM/YYYY)")
    return parsed


def to_clock(value, field, on_date):
    """Time cells arrive as ``time``/``datetime``; text cells as ``HH:MM``."""
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        value = value.time()
    if isinstance(value, time):
        return datetime.combine(on_date, value.replace(second=0, microsecond=0), tzinfo=timezone.utc)
    try:
        return parse_clock(value, on_date)
    except ValueError as exc:
        raise ValueError(f"{field}: {exc}") from None


def to_bool(value, field, default=True):
    if _is_blank(value):
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"{field} must be yes or no")


def _jsonable_cell(value):
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    return value


def load_sheet_rows(worksheet, header_row=1):
    """Return ``[(row_number, record)]`` and the set of normalised columns."""
    rows_iter = worksheet.iter_rows(min_row=header_row, values_only=True)
    headers = next(rows_iter, None)
    if not headers:
        return [], set()
    header_keys = [normalize_header(header) for header in headers]
    indices = [(idx, key) for idx, key in enumerate(header_keys) if key]
    columns = {key for key in header_keys if key}

    rows = []
    for row_number, row in enumerate(rows_iter, start=header_row + 1):
        if row is None or all(_is_blank(value) for value in row):
            continue
        record = {key: row[idx] if idx < len(row) else None for idx, key in indices}
        rows.append((row_number, record))
    return rows, columns


def validate_columns(kind, columns):
    missing = sorted(REQUIRED_COLUMNS[kind] - columns)
    if missing:
        missing_text = ", ".join(missing)
        raise ValidationError(f"{kind} sheet missing columns: {missing_text}")


class _RowImporter:
    """Per-kind row handlers sharing lookups and the in-file duplicate set."""

    def __init__(self, db: Session, kind: str, actor: Actor):
        self.db = db
        self.kind = kind
        self.actor = actor
        self.seen: set[str] = set()

    def _claim_key(self, key: str, label: str) -> None:
        normalized = key.lower()
        if normalized in self.seen:
            raise ValueError(f"{label} {key!r} is duplicated in the file")
        self.seen.add(normalized)

    def _exists(self, column, value) -> bool:
        return self.db.scalar(select(func.count()).where(func.lower(column) == value.lower())) > 0

    def import_row(self, row):
        handler = getattr(self, f"_import_{self.kind}")
        handler(row)

    def _import_categories(self, row):
        name = to_str(row.get("name"), "name", max_length=100)
        self._claim_key(name, "Category")
        if self._exists(Category.name, name):
            raise RowSkipped(name)
        self.db.add(Category(name=name))

    def _import_suppliers(self, row):
        name = to_str(row.get("name"), "name", max_length=200)
        email = to_str(row.get("email"), "email", required=False, max_length=100)
        if email and not _EMAIL_PATTERN.match(email):
            raise ValueError("email is not a valid address")
        self._claim_key(name, "Supplier")
        if self._exists(Supplier.name, name):
            raise RowSkipped(name)
        self.db.add(
            Supplier(
                name=name,
                phone=to_str(row.get("phone"), "phone", required=False, max_length=20),
                email=email.lower() if email else None,
                address=to_str(row.get("address"), "address", required=False, max_length=500),
            )
        )

    def _import_spareparts(self, row):
        code = to_str(row.get("code"), "code", max_length=50).upper()
        name = to_str(row.get("name"), "name", max_length=200)
        category_name = to_str(row.get("category"), "category")
        unit = to_str(row.get("unit"), "unit", max_length=20).lower()
        min_stock = to_int(row.get("min_stock"), "min_stock", required=False) or 0
        if min_stock < 0:
            raise ValueError("min_stock must not be negative")
        self._claim_key(code, "Sparepart code")
        if self._exists(Sparepart.code, code):
            raise RowSkipped(code)
        category_id = self.db.scalar(
            select(Category.id).where(func.lower(Category.name) == category_name.lower())
        )
        if category_id is None:
            raise ValueError(f"Category {category_name!r} not found")
        self.db.add(
            Sparepart(
                code=code,
                name=name,
                category_id=category_id,
                brand=to_str(row.get("brand"), "brand", required=False, max_length=50),
                unit=unit,
                min_stock=min_stock,
                rack_location=to_str(row.get("rack_location"), "rack_location", required=False, max_length=50),
                current_stock=0,
            )
        )

    def _import_equipment(self, row):
        code = to_str(row.get("code"), "code", max_length=50).upper()
        year = to_int(row.get("year"), "year", required=False)
        if year is not None and not 1900 <= year <= date.today().year + 1:
            raise ValueError(f"year must be between 1900 and {date.today().year + 1}")
        status = (to_str(row.get("status"), "status", required=False) or "active").lower()
        if status not in EQUIPMENT_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(EQUIPMENT_STATUSES)}")
        values = {
            "name": to_str(row.get("name"), "name", max_length=200),
            "type": to_str(row.get("type"), "type", max_length=50),
            "brand": to_str(row.get("brand"), "brand", max_length=100),
            "model": to_str(row.get("model"), "model", max_length=100),
            "site": to_str(row.get("site"), "site", required=False, max_length=100),
        }
        self._claim_key(code, "Equipment code")
        if self._exists(HeavyEquipment.code, code):
            raise RowSkipped(code)
        self.db.add(HeavyEquipment(code=code, year=year, status=status, **values))

    def _import_employees(self, row):
        nik = to_str(row.get("nik"), "nik", max_length=50)
        values = {
            "name": to_str(row.get("name"), "name", max_length=200),
            "position": to_str(row.get("position"), "position", max_length=100),
            "department": to_str(row.get("department"), "department", required=False, max_length=100),
            "phone": to_str(row.get("phone"), "phone", required=False, max_length=20),
            "is_active": to_bool(row.get("is_active"), "is_active"),
        }
        self._claim_key(nik, "NIK")
        if self._exists(Employee.nik, nik):
            raise RowSkipped(nik)
        self.db.add(Employee(nik=nik, **values))

    def _import_initial_stock(self, row):
        code = to_str(row.get("sparepart_code"), "sparepart_code").upper()
        quantity = to_int(row.get("quantity"), "quantity")
        if quantity < 0:
            raise ValueError("quantity must be zero or more")
        notes = to_str(row.get("notes"), "notes", required=False, max_length=400)
        self._claim_key(code, "Sparepart code")
        part = self.db.execute(select(Sparepart).where(Sparepart.code == code)).scalars().first()
        if part is None:
            raise ValueError(f"Sparepart {code!r} not found")
        if quantity == 0:
            raise RowSkipped(code)
        self.db.add(
            StockIn(
                sparepart_id=part.id,
                quantity=quantity,
                notes=f"Initial stock: {notes}" if notes else "Initial stock",
                source="initial_stock",
                created_by=self.actor.name,
            )
        )
        stock_ledger.increment_stock(self.db, part, quantity)

    def _import_attendance(self, row):
        nik = to_str(row.get("nik"), "nik", max_length=50)
        on_date = to_date(row.get("date"), "date")
        clock_in = to_clock(row.get("clock_in"), "clock_in", on_date)
        clock_out = to_clock(row.get("clock_out"), "clock_out", on_date)
        if clock_in and clock_out and clock_out < clock_in:
            raise ValueError("clock_out must not be before clock_in")
        status = to_str(row.get("status"), "status", required=False)
        status = status.lower() if status else derive_status(clock_in)
        if status not in ATTENDANCE_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(ATTENDANCE_STATUSES)}")
        overtime = to_float(row.get("overtime_hours"), "overtime_hours", required=False)
        if overtime is not None and overtime < 0:
            raise ValueError("overtime_hours must not be negative")
        notes = to_str(row.get("notes"), "notes", required=False, max_length=500)

        self._claim_key(f"{nik} on {on_date.isoformat()}", "Attendance for")
        employee_id = self.db.scalar(select(Employee.id).where(func.lower(Employee.nik) == nik.lower()))
        if employee_id is None:
            raise ValueError(f"Employee with NIK {nik!r} not found")

        record = self.db.execute(
            select(Attendance).where(Attendance.employee_id == employee_id, Attendance.date == on_date)
        ).scalars().first()
        if record is None:
            record = Attendance(employee_id=employee_id, date=on_date)
            self.db.add(record)
        record.clock_in = clock_in
        record.clock_out = clock_out
        record.status = status
        record.overtime_hours = overtime
        record.notes = notes


def _open_workbook(source):
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        if path.suffix.lower() != ".xlsx":
            raise ValidationError("Only .xlsx files are supported.")
        return load_workbook(path, data_only=True, read_only=True), path.name
    if isinstance(source, bytes):
        source = BytesIO(source)
    try:
        return load_workbook(source, data_only=True, read_only=True), None
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError) as exc:
        raise ValidationError(f"Could not read workbook: {exc}") from exc


def import_workbook(db: Session, source, kind: str, actor: Actor, *, filename=None, dry_run=False) -> ImportResult:
    """Import the first sheet of ``source`` as rows of ``kind``.

    Rows are validated one at a time; invalid rows are reported and skipped,
    rows whose key already exists are counted as skipped. Accepted rows and
    the import log are committed together.
    """
    if kind not in IMPORT_KINDS:
        raise ValidationError(f"Unsupported import kind: {kind}")
    settings = get_settings()
    workbook, source_name = _open_workbook(source)
    try:
        rows, columns = load_sheet_rows(workbook.worksheets[0], settings.EXCEL_TEMPLATE_HEADER_ROW)
    finally:
        workbook.close()
    validate_columns(kind, columns)
    if not rows:
        raise ValidationError("The workbook has no data rows")

    importer = _RowImporter(db, kind, actor)
    success = 0
    skipped = 0
    row_errors: list[ImportRowError] = []

    try:
        for row_number, record in rows:
            try:
                importer.import_row(record)
            except RowSkipped:
                skipped += 1
                continue
            except ValueError as exc:
                row_errors.append(
                    ImportRowError(
                        row=row_number,
                        data={key: _jsonable_cell(value) for key, value in record.items()},
                        errors=[str(exc)],
                    )
                )
                continue
            db.flush()
            success += 1

        db.add(
            ImportLog(
                type=kind,
                filename=filename or source_name,
                total_rows=len(rows),
                success_rows=success,
                skipped_rows=skipped,
                failed_rows=len(row_errors),
                errors=[error.model_dump() for error in row_errors[: settings.IMPORT_ERROR_LOG_LIMIT]] or None,
                created_by=actor.name,
            )
        )
        record_audit(
            db,
            actor,
            "IMPORT",
            kind,
            None,
            f"Imported {kind}: {success} added, {skipped} skipped, {len(row_errors)} failed",
        )
        if dry_run:
            db.rollback()
        else:
            db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Import of %s finished: %s added, %s skipped, %s failed",
        kind,
        success,
        skipped,
        len(row_errors),
        extra={"actor": actor.name, "import_kind": kind},
    )
    return ImportResult(
        kind=kind,
        success=success,
        skipped=skipped,
        failed=len(row_errors),
        total=len(rows),
        errors=row_errors[: settings.IMPORT_ERROR_RESPONSE_LIMIT],
    )


def build_template(kind: str) -> bytes:
    """An empty ``.xlsx`` workbook carrying the header row for ``kind``."""
    if kind not in IMPORT_KINDS:
        raise ValidationError(f"Unsupported import kind: {kind}")
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = kind
    required = REQUIRED_COLUMNS[kind]
    worksheet.append([f"{column}*" if column in required else column for column in TEMPLATE_COLUMNS[kind]])
    for idx, column in enumerate(TEMPLATE_COLUMNS[kind], start=1):
        worksheet.column_dimensions[worksheet.cell(row=1, column=idx).column_letter].width = max(14, len(column) + 4)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def list_import_logs(db: Session, *, kind=None, page: int = 1, limit=None):
    stmt = select(ImportLog)
    if kind:
        stmt = stmt.where(ImportLog.type == kind)
    stmt = stmt.order_by(ImportLog.created_at.desc(), ImportLog.id.desc())
    return paginate(db, stmt, page, limit)


def summarize_result(result: ImportResult) -> str:
    return (
        f"{result.kind}: {result.success} added, {result.skipped} skipped, "
        f"{result.failed} failed of {result.total} rows"
    )
