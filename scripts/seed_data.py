import argparse
import sys
from datetime import date, timedelta
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy import select

from warehouse.core.logging import setup_logging
from warehouse.core.security import SYSTEM_ACTOR
from warehouse.database import SessionLocal, init_db
from warehouse.models.category import Category
from warehouse.schemas.master import CategoryCreate, EmployeeCreate, EquipmentCreate, SparepartCreate, SupplierCreate
from warehouse.schemas.stock import StockInCreate
from warehouse.services import master_service, stock_in_service


def parse_args():
    parser = argparse.ArgumentParser(description="Seed sample warehouse data.")
    parser.add_argument(
        "--with-stock",
        action="store_true",
        help="Also record an opening stock-in for each sample part.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    init_db()

    db = SessionLocal()
    try:
        if db.execute(select(Category.id).limit(1)).first():
            print("Seed skipped: categories already exist.")
            return

        actor = SYSTEM_ACTOR
        filters = master_service.create_category(db, CategoryCreate(name="Filter"), actor)
        hydraulic = master_service.create_category(db, CategoryCreate(name="Hydraulic"), actor)

        supplier = master_service.create_supplier(
            db,
            SupplierCreate(name="PT Sumber Teknik", phone="0211234567", email="sales@sumberteknik.co.id"),
            actor,
        )
        master_service.create_equipment(
            db,
            EquipmentCreate(
                code="EXC-001",
                name="Excavator PC200",
                type="Excavator",
                brand="Komatsu",
                model="PC200-8",
                year=2019,
                site="Site A",
            ),
            actor,
        )
        master_service.create_employee(
            db,
            EmployeeCreate(nik="EMP-001", name="Budi Santoso", position="Mechanic", department="Maintenance"),
            actor,
        )

        parts = [
            master_service.create_sparepart(
                db,
                SparepartCreate(
                    code="FLT-OIL-01",
                    name="Engine Oil Filter",
                    category_id=filters.id,
                    brand="Sakura",
                    unit="pcs",
                    min_stock=5,
                    rack_location="A-01",
                ),
                actor,
            ),
            master_service.create_sparepart(
                db,
                SparepartCreate(
                    code="HYD-HOSE-12",
                    name="Hydraulic Hose 1/2in",
                    category_id=hydraulic.id,
                    brand="Parker",
                    unit="meter",
                    min_stock=10,
                    rack_location="B-03",
                ),
                actor,
            ),
        ]

        if args.with_stock:
            for part in parts:
                stock_in_service.create_stock_in(
                    db,
                    StockInCreate(
                        part_id=part.id,
                        quantity=20,
                        supplier_id=supplier.id,
                        purchase_price=125000.0,
                        warranty_expiry=date.today() + timedelta(days=180),
                    ),
                    actor,
                )

        print(f"Seeded {len(parts)} spareparts.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
