import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError

from warehouse.core.constants import IMPORT_KINDS
from warehouse.core.errors import WarehouseError
from warehouse.core.logging import setup_logging
from warehouse.core.security import SYSTEM_ACTOR
from warehouse.database import SessionLocal, init_db
from warehouse.services.ingestion_service import import_workbook, summarize_result


def parse_args():
    parser = argparse.ArgumentParser(
        description="Import master data or opening stock from an Excel workbook."
    )
    parser.add_argument("--kind", required=True, choices=IMPORT_KINDS, help="What the workbook contains.")
    parser.add_argument("--path", required=True, help="Path to .xlsx workbook.")
    parser.add_argument("--dry-run", action="store_true", help="Validate without saving.")
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    init_db()

    db = SessionLocal()
    try:
        result = import_workbook(db, args.path, args.kind, SYSTEM_ACTOR, dry_run=args.dry_run)
    except (OSError, WarehouseError, SQLAlchemyError, InvalidFileException) as exc:
        raise SystemExit(f"Import failed: {exc}") from exc
    finally:
        db.close()

    print(summarize_result(result))
    for error in result.errors:
        print(f"  row {error.row}: {'; '.join(error.errors)}")

    if args.dry_run:
        print("Dry run complete, no changes committed.")
    else:
        print("Import complete.")


if __name__ == "__main__":
    main()
