from warehouse.routers.attendance import router as attendance_router
from warehouse.routers.audit import router as audit_router
from warehouse.routers.health import router as health_router
from warehouse.routers.ingest import router as ingest_router
from warehouse.routers.master import router as master_router
from warehouse.routers.opname import router as opname_router
from warehouse.routers.petty_cash import router as petty_cash_router
from warehouse.routers.reports import router as reports_router
from warehouse.routers.stock_in import router as stock_in_router
from warehouse.routers.stock_out import router as stock_out_router

__all__ = [
    "attendance_router",
    "audit_router",
    "health_router",
    "ingest_router",
    "master_router",
    "opname_router",
    "petty_cash_router",
    "reports_router",
    "stock_in_router",
    "stock_out_router",
]
