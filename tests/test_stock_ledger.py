import unittest

from sqlalchemy import func, select

from factories import (
    ACTOR,
    APPROVER,
    add_category,
    add_employee,
    add_equipment,
    add_part,
    make_session_factory,
)
from warehouse.models.stock_in import StockIn
from warehouse.models.stock_out import StockOut
from warehouse.schemas.opname import OpnameRequest
from warehouse.schemas.stock import StockInCreate, StockOutCreate
from warehouse.services.opname_service import reconcile
from warehouse.services.stock_in_service import create_stock_in, delete_stock_in
from warehouse.services.stock_out_service import approve_stock_out, create_stock_out, reject_stock_out


class StockLedgerConsistencyTest(unittest.TestCase):
    """Current stock always equals receipts minus approved withdrawals."""

    def setUp(self):
        self.engine, Session = make_session_factory()
        self.db = Session()
        self.part = add_part(self.db, add_category(self.db), current_stock=0)
        self.equipment = add_equipment(self.db)
        self.employee = add_employee(self.db)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _receive(self, quantity):
        return create_stock_in(self.db, StockInCreate(part_id=self.part.id, quantity=quantity), ACTOR)

    def _request(self, quantity):
        return create_stock_out(
            self.db,
            StockOutCreate(
                part_id=self.part.id,
                equipment_id=self.equipment.id,
                employee_id=self.employee.id,
                quantity=quantity,
            ),
            ACTOR,
        )

    def _received(self, *clauses):
        return self.db.scalar(
            select(func.coalesce(func.sum(StockIn.quantity), 0)).where(StockIn.sparepart_id == self.part.id, *clauses)
        )

    def _withdrawn(self, *clauses):
        return self.db.scalar(
            select(func.coalesce(func.sum(StockOut.quantity), 0)).where(
                StockOut.sparepart_id == self.part.id,
                StockOut.status == "approved",
                *clauses,
            )
        )

    def _assert_ledger_balanced(self):
        self.db.refresh(self.part)
        self.assertEqual(self.part.current_stock, self._received() - self._withdrawn())

    def test_mixed_sequence_keeps_stock_equal_to_ledger(self):
        self._receive(5)
        self._assert_ledger_balanced()
        self._receive(3)
        self._assert_ledger_balanced()

        approve_stock_out(self.db, self._request(2).id, APPROVER)
        self._assert_ledger_balanced()
        reject_stock_out(self.db, self._request(1).id, "Wrong unit", APPROVER)
        pending = self._request(1)
        self._assert_ledger_balanced()
        self.assertEqual(self.part.current_stock, 6)

        result = reconcile(
            self.db,
            OpnameRequest(items=[{"partId": self.part.id, "systemStock": 6, "physicalStock": 4}]),
            ACTOR,
        )
        self._assert_ledger_balanced()
        self.assertEqual(self.part.current_stock, 4)

        extra = self._receive(2)
        self._receive(6)
        approve_stock_out(self.db, pending.id, APPROVER)
        delete_stock_in(self.db, extra.id, ACTOR)
        self._assert_ledger_balanced()

        # The count resets the balance; later movements apply on top of the physical figure.
        after_count_in = self._received(StockIn.id >= extra.id)
        after_count_out = self._withdrawn(StockOut.id == pending.id)
        self.assertEqual(self.part.current_stock, 4 + after_count_in - after_count_out)
        self.assertEqual(self.part.current_stock, 9)
        self.assertIsNotNone(result.opname_id)


if __name__ == "__main__":
    unittest.main()
