import unittest

from sqlalchemy import select

from factories import (
    ACTOR,
    APPROVER,
    add_category,
    add_employee,
    add_equipment,
    add_part,
    make_session_factory,
)
from warehouse.core.errors import InsufficientStock, InvalidStateTransition, NotFound, ValidationError
from warehouse.models.audit_log import AuditLog
from warehouse.models.stock_out import StockOut
from warehouse.schemas.stock import StockOutCreate
from warehouse.services.stock_out_service import (
    approval_stats,
    approve_stock_out,
    create_stock_out,
    delete_stock_out,
    list_stock_outs,
    reject_stock_out,
)


class StockOutServiceTest(unittest.TestCase):
    def setUp(self):
        self.engine, Session = make_session_factory()
        self.db = Session()
        category = add_category(self.db)
        self.part = add_part(self.db, category, current_stock=5)
        self.equipment = add_equipment(self.db)
        self.employee = add_employee(self.db)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _request(self, quantity, part=None):
        return create_stock_out(
            self.db,
            StockOutCreate(
                partId=(part or self.part).id,
                equipmentId=self.equipment.id,
                employeeId=self.employee.id,
                quantity=quantity,
                purpose="Scheduled service",
            ),
            ACTOR,
        )

    def test_request_approve_then_second_approve_fails(self):
        request = self._request(3)
        self.assertEqual(request.status, "pending")
        self.db.refresh(self.part)
        self.assertEqual(self.part.current_stock, 5)

        approved = approve_stock_out(self.db, request.id, APPROVER)
        self.assertEqual(approved.status, "approved")
        self.assertEqual(approved.approved_by, "approver")
        self.assertIsNotNone(approved.approved_at)
        self.db.refresh(self.part)
        self.assertEqual(self.part.current_stock, 2)

        with self.assertRaises(InvalidStateTransition):
            approve_stock_out(self.db, request.id, APPROVER)
        self.db.refresh(self.part)
        self.assertEqual(self.part.current_stock, 2)

    def test_create_checks_current_stock(self):
        with self.assertRaises(InsufficientStock) as ctx:
            self._request(6)
        self.assertEqual(ctx.exception.available, 5)
        self.assertEqual(ctx.exception.requested, 6)
        self.assertIn("Available: 5 pcs", ctx.exception.detail)

    def test_create_validates_references(self):
        with self.assertRaises(NotFound):
            create_stock_out(
                self.db,
                StockOutCreate(part_id=self.part.id, equipment_id=99, employee_id=self.employee.id, quantity=1),
                ACTOR,
            )
        with self.assertRaises(NotFound):
            create_stock_out(
                self.db,
                StockOutCreate(part_id=self.part.id, equipment_id=self.equipment.id, employee_id=99, quantity=1),
                ACTOR,
            )
        with self.assertRaises(ValidationError):
            self._request(0)

    def test_approve_rechecks_stock_at_approval_time(self):
        first = self._request(4)
        second = self._request(3)

        approve_stock_out(self.db, first.id, APPROVER)
        with self.assertRaises(InsufficientStock):
            approve_stock_out(self.db, second.id, APPROVER)

        self.db.refresh(second)
        self.db.refresh(self.part)
        self.assertEqual(second.status, "pending")
        self.assertIsNone(second.approved_at)
        self.assertEqual(self.part.current_stock, 1)

    def test_reject_requires_reason_and_pending_state(self):
        request = self._request(2)
        with self.assertRaises(ValidationError):
            reject_stock_out(self.db, request.id, "   ", APPROVER)
        with self.assertRaises(ValidationError):
            reject_stock_out(self.db, request.id, "x" * 501, APPROVER)

        rejected = reject_stock_out(self.db, request.id, "  Wrong part number  ", APPROVER)
        self.assertEqual(rejected.status, "rejected")
        self.assertEqual(rejected.rejected_reason, "Wrong part number")

        with self.assertRaises(InvalidStateTransition):
            reject_stock_out(self.db, request.id, "again", APPROVER)
        with self.assertRaises(InvalidStateTransition):
            approve_stock_out(self.db, request.id, APPROVER)
        self.db.refresh(self.part)
        self.assertEqual(self.part.current_stock, 5)

    def test_reject_reports_missing_or_closed_request_before_reason(self):
        with self.assertRaises(NotFound):
            reject_stock_out(self.db, 404, "", APPROVER)

        request = self._request(1)
        approve_stock_out(self.db, request.id, APPROVER)
        with self.assertRaises(InvalidStateTransition):
            reject_stock_out(self.db, request.id, None, APPROVER)

    def test_delete_only_while_pending(self):
        pending = self._request(1)
        delete_stock_out(self.db, pending.id, ACTOR)
        self.assertIsNone(self.db.get(StockOut, pending.id))

        approved = self._request(1)
        approve_stock_out(self.db, approved.id, APPROVER)
        with self.assertRaises(InvalidStateTransition):
            delete_stock_out(self.db, approved.id, ACTOR)

        with self.assertRaises(NotFound):
            delete_stock_out(self.db, 404, ACTOR)

    def test_approval_writes_audit_entry(self):
        request = self._request(1)
        approve_stock_out(self.db, request.id, APPROVER)
        entry = self.db.execute(select(AuditLog).where(AuditLog.action == "APPROVE")).scalars().one()
        self.assertEqual(entry.actor, "approver")
        self.assertEqual(entry.record_id, request.id)
        self.assertEqual(entry.data_after["status"], "approved")

    def test_stats_and_status_filter(self):
        approve_stock_out(self.db, self._request(1).id, APPROVER)
        reject_stock_out(self.db, self._request(1).id, "Not needed", APPROVER)
        self._request(1)

        stats = approval_stats(self.db)
        self.assertEqual(stats.total_pending, 1)
        self.assertEqual(stats.approved_today, 1)
        self.assertEqual(stats.rejected_today, 1)

        rows, meta = list_stock_outs(self.db, status="pending")
        self.assertEqual(meta.total, 1)
        rows, meta = list_stock_outs(self.db, search="budi")
        self.assertEqual(meta.total, 3)
        with self.assertRaises(ValidationError):
            list_stock_outs(self.db, status="cancelled")


if __name__ == "__main__":
    unittest.main()
