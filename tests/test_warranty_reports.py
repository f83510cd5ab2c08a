import unittest
from datetime import date, datetime, timedelta, timezone

from factories import (
    ACTOR,
    APPROVER,
    add_category,
    add_employee,
    add_equipment,
    add_part,
    add_supplier,
    make_session_factory,
)
from warehouse.core.errors import InvalidStateTransition, NotFound, ValidationError
from warehouse.models.petty_cash import PettyCash
from warehouse.schemas.stock import StockInCreate, StockOutCreate
from warehouse.services.report_service import (
    dashboard_summary,
    equipment_usage_report,
    stock_in_report,
    stock_out_report,
    stock_report,
)
from warehouse.services.stock_in_service import create_stock_in
from warehouse.services.stock_out_service import approve_stock_out, create_stock_out, reject_stock_out
from warehouse.services.warranty_service import claim_warranty, warranty_report


class WarrantyServiceTest(unittest.TestCase):
    def setUp(self):
        self.engine, Session = make_session_factory()
        self.db = Session()
        self.part = add_part(self.db, add_category(self.db))
        self.today = date.today()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _receive(self, expiry):
        record = create_stock_in(
            self.db,
            StockInCreate(part_id=self.part.id, quantity=1, warranty_expiry=expiry),
            ACTOR,
        )
        return record.warranty

    def test_report_tabs_and_counts(self):
        active = self._receive(self.today + timedelta(days=120))
        expiring = self._receive(self.today + timedelta(days=5))
        expired = self._receive(self.today - timedelta(days=1))
        claimed = self._receive(self.today + timedelta(days=200))
        claim_warranty(self.db, claimed.id, "Cracked housing", ACTOR)

        report = warranty_report(self.db, "expiring", today=self.today)
        self.assertEqual([row.id for row in report.data], [expiring.id])
        self.assertEqual(report.data[0].days_remaining, 5)
        self.assertEqual(report.data[0].warranty_status, "expiring")
        self.assertEqual(report.counts.model_dump(), {"active": 1, "expiring": 1, "expired": 1, "claimed": 1})

        self.assertEqual([row.id for row in warranty_report(self.db, "active", today=self.today).data], [active.id])
        self.assertEqual([row.id for row in warranty_report(self.db, "expired", today=self.today).data], [expired.id])
        claimed_rows = warranty_report(self.db, "claimed", today=self.today).data
        self.assertEqual(claimed_rows[0].claim_notes, "Cracked housing")

        with self.assertRaises(ValidationError):
            warranty_report(self.db, "void")

    def test_claim_only_once(self):
        warranty = self._receive(self.today + timedelta(days=60))
        claimed = claim_warranty(self.db, warranty.id, None, ACTOR)
        self.assertEqual(claimed.claim_status, "claimed")
        self.assertIsNotNone(claimed.claim_date)

        with self.assertRaises(InvalidStateTransition):
            claim_warranty(self.db, warranty.id, "again", ACTOR)
        with self.assertRaises(NotFound):
            claim_warranty(self.db, 999, None, ACTOR)


class ReportServiceTest(unittest.TestCase):
    def setUp(self):
        self.engine, Session = make_session_factory()
        self.db = Session()
        category = add_category(self.db)
        self.supplier = add_supplier(self.db)
        self.normal = add_part(self.db, category, code="AAA-001", min_stock=2)
        self.low = add_part(self.db, category, code="BBB-002", min_stock=5)
        self.empty = add_part(self.db, category, code="CCC-003", min_stock=1)
        self.equipment = add_equipment(self.db)
        self.employee = add_employee(self.db)

        create_stock_in(
            self.db,
            StockInCreate(part_id=self.normal.id, quantity=4, purchase_price=100.0, supplier_id=self.supplier.id),
            ACTOR,
        )
        create_stock_in(self.db, StockInCreate(part_id=self.normal.id, quantity=6, purchase_price=150.0), ACTOR)
        create_stock_in(self.db, StockInCreate(part_id=self.low.id, quantity=3, purchase_price=20.0), ACTOR)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_stock_report_uses_latest_price(self):
        report = stock_report(self.db)
        by_code = {row.code: row for row in report.data}

        self.assertEqual(by_code["AAA-001"].status, "normal")
        self.assertEqual(by_code["AAA-001"].price, 150.0)
        self.assertEqual(by_code["AAA-001"].value, 1500.0)
        self.assertEqual(by_code["BBB-002"].status, "low")
        self.assertEqual(by_code["CCC-003"].status, "empty")
        self.assertEqual(by_code["CCC-003"].value, 0.0)
        self.assertEqual(report.summary.total_items, 3)
        self.assertEqual(report.summary.total_value, 1560.0)

        low_only = stock_report(self.db, stock_status="low")
        self.assertEqual([row.code for row in low_only.data], ["BBB-002"])

    def test_equipment_usage_counts_approved_only(self):
        approved = create_stock_out(
            self.db,
            StockOutCreate(
                part_id=self.normal.id,
                equipment_id=self.equipment.id,
                employee_id=self.employee.id,
                quantity=2,
            ),
            ACTOR,
        )
        approve_stock_out(self.db, approved.id, APPROVER)
        create_stock_out(
            self.db,
            StockOutCreate(
                part_id=self.normal.id,
                equipment_id=self.equipment.id,
                employee_id=self.employee.id,
                quantity=1,
            ),
            ACTOR,
        )

        report = equipment_usage_report(self.db, self.equipment.id)
        self.assertEqual(report.summary.total_transactions, 1)
        self.assertEqual(report.summary.total_quantity, 2)
        self.assertEqual(report.summary.total_cost, 300.0)
        self.assertEqual(report.history[0].employee_name, "Budi")

        with self.assertRaises(NotFound):
            equipment_usage_report(self.db, 999)

    def _request(self, quantity):
        return create_stock_out(
            self.db,
            StockOutCreate(
                part_id=self.normal.id,
                equipment_id=self.equipment.id,
                employee_id=self.employee.id,
                quantity=quantity,
            ),
            ACTOR,
        )

    def test_stock_in_report_totals_for_period(self):
        today = datetime.now(timezone.utc).date()
        report = stock_in_report(self.db, date_from=today, date_to=today)

        self.assertEqual(report.summary.total_transactions, 3)
        self.assertEqual(report.summary.total_quantity, 13)
        self.assertEqual(report.summary.total_value, 1360.0)
        first_receipt = report.data[-1]
        self.assertEqual(first_receipt.part_code, "AAA-001")
        self.assertEqual(first_receipt.supplier_name, "PT Sumber Teknik")
        self.assertEqual(first_receipt.total_price, 400.0)

        later = stock_in_report(self.db, date_from=today + timedelta(days=1))
        self.assertEqual(later.summary.total_transactions, 0)
        self.assertEqual(later.summary.total_value, 0)
        with self.assertRaises(ValidationError):
            stock_in_report(self.db, date_from=today, date_to=today - timedelta(days=1))

    def test_stock_out_report_counts_by_status(self):
        approve_stock_out(self.db, self._request(2).id, APPROVER)
        reject_stock_out(self.db, self._request(1).id, "Not needed", APPROVER)
        self._request(3)

        report = stock_out_report(self.db)
        self.assertEqual(report.summary.total_transactions, 3)
        self.assertEqual(report.summary.total_quantity, 6)
        self.assertEqual(
            (report.summary.pending, report.summary.approved, report.summary.rejected),
            (1, 1, 1),
        )
        self.assertEqual(report.data[0].equipment_code, "EXC-001")
        self.assertEqual(report.data[0].employee_name, "Budi")

        approved = stock_out_report(self.db, status="approved")
        self.assertEqual([row.quantity for row in approved.data], [2])
        self.assertIsNotNone(approved.data[0].approved_at)
        with self.assertRaises(ValidationError):
            stock_out_report(self.db, status="cancelled")

    def test_dashboard(self):
        self.db.add(PettyCash(date=date.today(), type="in", amount=500.0, description="Top up"))
        self.db.add(PettyCash(date=date.today(), type="out", amount=120.0, description="Fuel"))
        self.db.commit()

        summary = dashboard_summary(self.db, today=datetime.now(timezone.utc).date())
        self.assertEqual(summary.total_spareparts, 3)
        self.assertEqual(summary.active_equipment, 1)
        self.assertEqual(summary.today_stock_in, 3)
        self.assertEqual(summary.pending_requests, 0)
        self.assertEqual(summary.petty_cash_balance, 380.0)
        self.assertEqual({row.code for row in summary.low_stock}, {"BBB-002", "CCC-003"})


if __name__ == "__main__":
    unittest.main()
