from warehouse.services.ingestion_service import import_workbook
from warehouse.services.opname_service import reconcile
from warehouse.services.stock_in_service import create_stock_in, delete_stock_in
from warehouse.services.stock_out_service import approve_stock_out, create_stock_out, reject_stock_out

__all__ = [
    "approve_stock_out",
    "create_stock_in",
    "create_stock_out",
    "delete_stock_in",
    "import_workbook",
    "reconcile",
    "reject_stock_out",
]
