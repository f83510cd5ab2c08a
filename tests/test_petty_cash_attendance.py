import unittest
from datetime import date

from factories import ACTOR, add_employee, make_session_factory
from warehouse.core.errors import Conflict, NotFound, ValidationError
from warehouse.schemas.attendance import AttendanceCreate, BulkAttendanceCreate
from warehouse.schemas.petty_cash import (
    PettyCashCategoryCreate,
    PettyCashExpenseCreate,
    PettyCashIncomeCreate,
)
from warehouse.services import attendance_service, petty_cash_service


class PettyCashServiceTest(unittest.TestCase):
    def setUp(self):
        self.engine, Session = make_session_factory()
        self.db = Session()
        self.fuel = petty_cash_service.create_category(self.db, PettyCashCategoryCreate(name="Fuel"), ACTOR)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _income(self, day, amount):
        return petty_cash_service.record_income(
            self.db, PettyCashIncomeCreate(date=day, amount=amount, description="Top up"), ACTOR
        )

    def _expense(self, day, amount):
        return petty_cash_service.record_expense(
            self.db,
            PettyCashExpenseCreate(date=day, categoryId=self.fuel.id, amount=amount, description="Diesel"),
            ACTOR,
        )

    def test_amount_and_category_are_validated(self):
        with self.assertRaises(ValidationError):
            self._income(date(2026, 3, 1), 0)
        with self.assertRaises(NotFound):
            petty_cash_service.record_expense(
                self.db,
                PettyCashExpenseCreate(date=date(2026, 3, 1), category_id=99, amount=10, description="x"),
                ACTOR,
            )
        with self.assertRaises(Conflict):
            petty_cash_service.create_category(self.db, PettyCashCategoryCreate(name="fuel"), ACTOR)

    def test_report_carries_opening_balance_and_running_total(self):
        self._income(date(2026, 2, 20), 1000)
        self._expense(date(2026, 2, 25), 300)
        self._income(date(2026, 3, 1), 500)
        self._expense(date(2026, 3, 2), 200)
        self._expense(date(2026, 3, 10), 50)

        report = petty_cash_service.petty_cash_report(self.db, month=3, year=2026)
        self.assertEqual(report.opening_balance, 700)
        self.assertEqual(report.total_income, 500)
        self.assertEqual(report.total_expense, 250)
        self.assertEqual(report.closing_balance, 950)
        self.assertEqual([row.running_balance for row in report.transactions], [1200, 1000, 950])
        self.assertEqual(report.expense_by_category[0].name, "Fuel")
        self.assertEqual(report.expense_by_category[0].value, 250)
        self.assertEqual(report.period.date_to, date(2026, 3, 31))

    def test_listing_and_delete(self):
        self._income(date(2026, 3, 1), 100)
        expense = self._expense(date(2026, 3, 2), 40)

        rows, balance, meta = petty_cash_service.list_entries(self.db, "out")
        self.assertEqual(meta.total, 1)
        self.assertEqual(balance, 60)

        petty_cash_service.delete_entry(self.db, expense.id, ACTOR)
        self.assertEqual(petty_cash_service.current_balance(self.db), 100)
        with self.assertRaises(NotFound):
            petty_cash_service.delete_entry(self.db, expense.id, ACTOR)


class AttendanceServiceTest(unittest.TestCase):
    def setUp(self):
        self.engine, Session = make_session_factory()
        self.db = Session()
        self.ani = add_employee(self.db, nik="001", name="Ani")
        self.budi = add_employee(self.db, nik="002", name="Budi")

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_single_entry_parses_clock_and_rejects_duplicates(self):
        record = attendance_service.record_attendance(
            self.db,
            AttendanceCreate(date=date(2026, 3, 2), employeeId=self.ani.id, clockIn="07:55", status="present"),
            ACTOR,
        )
        self.assertEqual(record.clock_in.hour, 7)
        self.assertEqual(record.clock_in.minute, 55)

        with self.assertRaises(Conflict):
            attendance_service.record_attendance(
                self.db,
                AttendanceCreate(date=date(2026, 3, 2), employee_id=self.ani.id, status="late"),
                ACTOR,
            )
        with self.assertRaises(ValidationError):
            attendance_service.record_attendance(
                self.db,
                AttendanceCreate(date=date(2026, 3, 3), employee_id=self.ani.id, clock_in="7am", status="present"),
                ACTOR,
            )

    def test_bulk_upserts_and_counts_failures(self):
        day = date(2026, 3, 2)
        attendance_service.record_attendance(
            self.db, AttendanceCreate(date=day, employee_id=self.ani.id, status="absent"), ACTOR
        )
        result = attendance_service.record_bulk_attendance(
            self.db,
            BulkAttendanceCreate(
                date=day,
                entries=[
                    {"employeeId": self.ani.id, "status": "present"},
                    {"employeeId": self.budi.id, "status": "late", "overtimeHours": 2},
                    {"employeeId": 999, "status": "present"},
                ],
            ),
            ACTOR,
        )
        self.assertEqual(result.success, 2)
        self.assertEqual(result.error, 1)

        rows, meta = attendance_service.list_attendance(self.db, on_date=day)
        self.assertEqual(meta.total, 2)
        statuses = {row.employee_id: row.status for row in rows}
        self.assertEqual(statuses[self.ani.id], "present")

    def test_monthly_recap(self):
        for day, status in ((2, "present"), (3, "late"), (4, "sick")):
            attendance_service.record_attendance(
                self.db,
                AttendanceCreate(date=date(2026, 3, day), employee_id=self.ani.id, status=status, overtime_hours=1.5),
                ACTOR,
            )

        recap = attendance_service.attendance_recap(self.db, 3, 2026)
        by_name = {row.name: row for row in recap.recap}
        self.assertEqual(by_name["Ani"].present, 1)
        self.assertEqual(by_name["Ani"].late, 1)
        self.assertEqual(by_name["Ani"].sick, 1)
        self.assertEqual(by_name["Ani"].total_overtime, 4.5)
        self.assertEqual(by_name["Budi"].total_days, 0)
        self.assertEqual(recap.summary.total_employees, 2)
        self.assertEqual(len(recap.daily), 31)
        self.assertEqual(recap.daily[2].late, 1)

        with self.assertRaises(ValidationError):
            attendance_service.attendance_recap(self.db, 13, 2026)


if __name__ == "__main__":
    unittest.main()
