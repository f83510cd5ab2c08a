import unittest
from datetime import date, datetime, time, timezone
from io import BytesIO

from openpyxl import Workbook, load_workbook
from sqlalchemy import select

from factories import ACTOR, add_category, add_employee, add_part, make_session_factory
from warehouse.core.errors import ValidationError
from warehouse.models.attendance import Attendance
from warehouse.models.category import Category
from warehouse.models.import_log import ImportLog
from warehouse.models.sparepart import Sparepart
from warehouse.models.stock_in import StockIn
from warehouse.services.attendance_service import derive_status
from warehouse.services.ingestion_service import (
    build_template,
    import_workbook,
    load_sheet_rows,
    normalize_header,
    validate_columns,
)


def _workbook_bytes(rows):
    workbook = Workbook()
    worksheet = workbook.active
    for row in rows:
        worksheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class IngestionHelpersTest(unittest.TestCase):
    def test_header_aliases(self):
        self.assertEqual(normalize_header("Category Name"), "category")
        self.assertEqual(normalize_header("Min Stock*"), "min_stock")
        self.assertEqual(normalize_header("Sparepart-Code"), "sparepart_code")
        self.assertEqual(normalize_header("Qty"), "quantity")
        self.assertEqual(normalize_header(" Rack Location "), "rack_location")

    def test_load_sheet_rows_skips_blank_rows(self):
        workbook = Workbook()
        worksheet = workbook.active
        worksheet.append(["Name", "Phone"])
        worksheet.append(["PT Satu", "0211"])
        worksheet.append([None, "  "])
        worksheet.append(["PT Dua", None])

        rows, columns = load_sheet_rows(worksheet)

        self.assertEqual(columns, {"name", "phone"})
        self.assertEqual([number for number, _ in rows], [2, 4])
        self.assertEqual(rows[1][1]["name"], "PT Dua")

    def test_validate_columns_lists_missing(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_columns("spareparts", {"code", "name"})
        self.assertIn("category, unit", ctx.exception.detail)

    def test_template_has_header_row(self):
        workbook = load_workbook(BytesIO(build_template("initial_stock")))
        header = [cell.value for cell in workbook.active[1]]
        self.assertEqual(header, ["sparepart_code*", "quantity*", "notes"])
        with self.assertRaises(ValidationError):
            build_template("invoices")

    def test_attendance_template_and_status_rule(self):
        header = [cell.value for cell in load_workbook(BytesIO(build_template("attendance"))).active[1]]
        self.assertEqual(header[:4], ["nik*", "date*", "clock_in", "clock_out"])
        self.assertEqual(normalize_header("Clock In"), "clock_in")
        self.assertEqual(normalize_header("Tanggal"), "date")

        on_time = datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc)
        self.assertEqual(derive_status(on_time), "present")
        self.assertEqual(derive_status(on_time.replace(minute=1)), "late")
        self.assertEqual(derive_status(None), "absent")


class ImportWorkbookTest(unittest.TestCase):
    def setUp(self):
        self.engine, Session = make_session_factory()
        self.db = Session()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_spareparts_rows_are_validated_independently(self):
        category = add_category(self.db, name="Filter")
        add_part(self.db, category, code="EXIST-1")
        content = _workbook_bytes(
            [
                ["Code", "Name", "Category", "Unit", "Min Stock", "Rack"],
                ["new-1", "Oil Filter", "filter", "pcs", 3, "A-1"],
                ["EXIST-1", "Already there", "Filter", "pcs", None, None],
                ["NEW-2", "Air Filter", "Unknown", "pcs", None, None],
                ["NEW-3", None, "Filter", "pcs", None, None],
                ["NEW-1", "Duplicate in file", "Filter", "pcs", None, None],
            ]
        )

        result = import_workbook(self.db, content, "spareparts", ACTOR, filename="parts.xlsx")

        self.assertEqual(result.total, 5)
        self.assertEqual(result.success, 1)
        self.assertEqual(result.skipped, 1)
        self.assertEqual(result.failed, 3)
        self.assertEqual([error.row for error in result.errors], [4, 5, 6])
        created = self.db.execute(select(Sparepart).where(Sparepart.code == "NEW-1")).scalars().one()
        self.assertEqual(created.min_stock, 3)
        self.assertEqual(created.current_stock, 0)

        log = self.db.execute(select(ImportLog)).scalars().one()
        self.assertEqual(log.filename, "parts.xlsx")
        self.assertEqual(log.failed_rows, 3)
        self.assertEqual(len(log.errors), 3)

    def test_initial_stock_creates_stock_in_and_increments(self):
        category = add_category(self.db)
        part = add_part(self.db, category, code="FLT-1", current_stock=2)
        content = _workbook_bytes(
            [
                ["Sparepart Code", "Quantity", "Notes"],
                ["flt-1", 8, "Migrated"],
                ["FLT-1", 1, None],
                ["MISSING", 5, None],
                ["FLT-1", -1, None],
            ]
        )

        result = import_workbook(self.db, content, "initial_stock", ACTOR)

        self.assertEqual(result.success, 1)
        self.assertEqual(result.failed, 3)
        self.db.refresh(part)
        self.assertEqual(part.current_stock, 10)
        stock_in = self.db.execute(select(StockIn)).scalars().one()
        self.assertEqual(stock_in.source, "initial_stock")
        self.assertEqual(stock_in.notes, "Initial stock: Migrated")

    def test_dry_run_commits_nothing(self):
        content = _workbook_bytes([["Name"], ["Filter"], ["Hydraulic"]])
        result = import_workbook(self.db, content, "categories", ACTOR, dry_run=True)
        self.assertEqual(result.success, 2)
        self.assertEqual(self.db.execute(select(Category)).scalars().all(), [])
        self.assertEqual(self.db.execute(select(ImportLog)).scalars().all(), [])

    def test_missing_columns_and_unknown_kind(self):
        content = _workbook_bytes([["Name"], ["x"]])
        with self.assertRaises(ValidationError):
            import_workbook(self.db, content, "equipment", ACTOR)
        with self.assertRaises(ValidationError):
            import_workbook(self.db, content, "invoices", ACTOR)
        with self.assertRaises(ValidationError):
            import_workbook(self.db, b"not a workbook", "categories", ACTOR)

    def test_employees_and_equipment(self):
        employees = _workbook_bytes(
            [
                ["NIK", "Name", "Position", "Active"],
                ["001", "Ani", "Admin", "yes"],
                ["002", "Budi", "Mechanic", "no"],
                ["003", "Citra", "Driver", "maybe"],
            ]
        )
        result = import_workbook(self.db, employees, "employees", ACTOR)
        self.assertEqual((result.success, result.failed), (2, 1))

        equipment = _workbook_bytes(
            [
                ["Code", "Name", "Type", "Brand", "Model", "Year", "Status"],
                ["exc-01", "Excavator", "Excavator", "Komatsu", "PC200", 2018, "Maintenance"],
                ["EXC-02", "Dozer", "Dozer", "CAT", "D6", 1800, None],
            ]
        )
        result = import_workbook(self.db, equipment, "equipment", ACTOR)
        self.assertEqual((result.success, result.failed), (1, 1))

    def test_attendance_rows_upsert_by_employee_and_date(self):
        ani = add_employee(self.db, nik="EMP-001", name="Ani")
        budi = add_employee(self.db, nik="EMP-002", name="Budi")
        self.db.add(Attendance(employee_id=budi.id, date=date(2026, 10, 1), status="absent"))
        self.db.commit()
        content = _workbook_bytes(
            [
                ["NIK", "Date", "Clock In", "Clock Out", "Status", "Overtime", "Notes"],
                ["EMP-001", "01/10/2026", "07:55", "17:00", None, None, None],
                ["EMP-001", date(2026, 10, 2), time(8, 30), None, None, None, None],
                ["emp-002", "2026-10-01", None, None, "Sick", None, "Flu"],
                ["EMP-001", "2026-10-03", None, None, None, 2, None],
                ["UNKNOWN", "2026-10-01", "08:00", None, None, None, None],
                ["EMP-001", "31/02/2026", "08:00", None, None, None, None],
                ["EMP-001", "2026-10-04", "17:00", "08:00", None, None, None],
                ["EMP-001", "2026-10-01", "09:00", None, None, None, None],
            ]
        )

        result = import_workbook(self.db, content, "attendance", ACTOR, filename="absensi.xlsx")

        self.assertEqual((result.success, result.skipped, result.failed), (4, 0, 4))
        self.assertEqual([error.row for error in result.errors], [6, 7, 8, 9])
        self.assertIn("not found", result.errors[0].errors[0])
        self.assertIn("duplicated", result.errors[3].errors[0])

        records = {
            (record.employee_id, record.date): record
            for record in self.db.execute(select(Attendance)).scalars().all()
        }
        self.assertEqual(len(records), 4)
        first_day = records[(ani.id, date(2026, 10, 1))]
        self.assertEqual(first_day.status, "present")
        self.assertEqual((first_day.clock_in.hour, first_day.clock_in.minute), (7, 55))
        self.assertEqual(records[(ani.id, date(2026, 10, 2))].status, "late")
        self.assertEqual(records[(ani.id, date(2026, 10, 3))].status, "absent")
        self.assertEqual(records[(ani.id, date(2026, 10, 3))].overtime_hours, 2.0)
        updated = records[(budi.id, date(2026, 10, 1))]
        self.assertEqual(updated.status, "sick")
        self.assertEqual(updated.notes, "Flu")

        log = self.db.execute(select(ImportLog)).scalars().one()
        self.assertEqual(log.type, "attendance")
        self.assertEqual(log.failed_rows, 4)


if __name__ == "__main__":
    unittest.main()
