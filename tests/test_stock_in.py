import unittest
from datetime import date, timedelta

from pydantic import ValidationError as SchemaError
from sqlalchemy import func, select

from factories import ACTOR, add_category, add_part, add_supplier, make_session_factory
from warehouse.core.errors import InsufficientStock, NotFound, ValidationError
from warehouse.models.audit_log import AuditLog
from warehouse.models.stock_in import StockIn
from warehouse.models.warranty import Warranty
from warehouse.schemas.stock import StockInCreate
from warehouse.services.stock_in_service import create_stock_in, delete_stock_in, list_stock_ins


class StockInServiceTest(unittest.TestCase):
    def setUp(self):
        self.engine, Session = make_session_factory()
        self.db = Session()
        self.category = add_category(self.db)
        self.part = add_part(self.db, self.category, current_stock=3)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_create_increments_stock_and_opens_warranty(self):
        supplier = add_supplier(self.db)
        expiry = date.today() + timedelta(days=90)
        record = create_stock_in(
            self.db,
            StockInCreate(
                partId=self.part.id,
                quantity=7,
                supplierId=supplier.id,
                purchasePrice=150000,
                warrantyExpiry=expiry.isoformat(),
            ),
            ACTOR,
        )

        self.db.refresh(self.part)
        self.assertEqual(self.part.current_stock, 10)
        self.assertEqual(record.source, "manual")
        self.assertEqual(record.created_by, "tester")
        self.assertIsNotNone(record.warranty)
        self.assertEqual(record.warranty.claim_status, "active")
        self.assertEqual(record.warranty.expiry_date, expiry)
        audit = self.db.execute(select(AuditLog).where(AuditLog.table_name == "StockIn")).scalars().one()
        self.assertEqual(audit.action, "CREATE")
        self.assertEqual(audit.actor, "tester")

    def test_create_without_warranty(self):
        record = create_stock_in(self.db, StockInCreate(part_id=self.part.id, quantity=1), ACTOR)
        self.assertIsNone(record.warranty)
        self.assertEqual(self.db.scalar(select(func.count(Warranty.id))), 0)

    def test_rejects_non_positive_quantity(self):
        for quantity in (0, -4):
            with self.assertRaises(ValidationError):
                create_stock_in(self.db, StockInCreate(part_id=self.part.id, quantity=quantity), ACTOR)
        self.db.refresh(self.part)
        self.assertEqual(self.part.current_stock, 3)

    def test_rejects_non_finite_price(self):
        for price in ("NaN", "inf", float("nan")):
            with self.assertRaises(SchemaError):
                StockInCreate(part_id=self.part.id, quantity=1, purchase_price=price)

        unchecked = StockInCreate.model_construct(part_id=self.part.id, quantity=1, purchase_price=float("nan"))
        with self.assertRaises(ValidationError):
            create_stock_in(self.db, unchecked, ACTOR)
        self.assertEqual(self.db.scalar(select(func.count(StockIn.id))), 0)

    def test_quantity_must_be_a_real_integer(self):
        for quantity in (True, "3", 2.0):
            with self.assertRaises(SchemaError):
                StockInCreate(part_id=self.part.id, quantity=quantity)

    def test_unknown_part_or_supplier(self):
        with self.assertRaises(NotFound):
            create_stock_in(self.db, StockInCreate(part_id=999, quantity=1), ACTOR)
        with self.assertRaises(NotFound):
            create_stock_in(self.db, StockInCreate(part_id=self.part.id, quantity=1, supplier_id=42), ACTOR)
        self.assertEqual(self.db.scalar(select(func.count(StockIn.id))), 0)

    def test_blank_optional_fields_become_none(self):
        record = create_stock_in(
            self.db,
            StockInCreate(partId=self.part.id, quantity=2, invoiceNumber="", warrantyExpiry="", notes="  "),
            ACTOR,
        )
        self.assertIsNone(record.invoice_number)
        self.assertIsNone(record.warranty_expiry)
        self.assertIsNone(record.notes)

    def test_delete_restores_stock_and_cascades_warranty(self):
        record = create_stock_in(
            self.db,
            StockInCreate(
                part_id=self.part.id,
                quantity=5,
                warranty_expiry=date.today() + timedelta(days=10),
            ),
            ACTOR,
        )
        delete_stock_in(self.db, record.id, ACTOR)

        self.db.refresh(self.part)
        self.assertEqual(self.part.current_stock, 3)
        self.assertEqual(self.db.scalar(select(func.count(StockIn.id))), 0)
        self.assertEqual(self.db.scalar(select(func.count(Warranty.id))), 0)

    def test_delete_refused_when_stock_already_consumed(self):
        record = create_stock_in(self.db, StockInCreate(part_id=self.part.id, quantity=5), ACTOR)
        self.part.current_stock = 2
        self.db.commit()

        with self.assertRaises(InsufficientStock):
            delete_stock_in(self.db, record.id, ACTOR)

        self.db.refresh(self.part)
        self.assertEqual(self.part.current_stock, 2)
        self.assertIsNotNone(self.db.get(StockIn, record.id))

    def test_delete_unknown(self):
        with self.assertRaises(NotFound):
            delete_stock_in(self.db, 123, ACTOR)

    def test_list_searches_part_code_and_paginates(self):
        other = add_part(self.db, self.category, code="HYD-777")
        for _ in range(3):
            create_stock_in(self.db, StockInCreate(part_id=self.part.id, quantity=1), ACTOR)
        create_stock_in(self.db, StockInCreate(part_id=other.id, quantity=1, invoice_number="INV-9"), ACTOR)

        rows, meta = list_stock_ins(self.db, search="flt", page=1, limit=2)
        self.assertEqual(meta.total, 3)
        self.assertEqual(meta.total_pages, 2)
        self.assertEqual(len(rows), 2)

        rows, meta = list_stock_ins(self.db, search="INV-9")
        self.assertEqual([row.sparepart_id for row in rows], [other.id])


if __name__ == "__main__":
    unittest.main()
