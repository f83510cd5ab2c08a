import importlib

from warehouse.models.attendance import Attendance
from warehouse.models.audit_log import AuditLog
from warehouse.models.category import Category
from warehouse.models.employee import Employee
from warehouse.models.equipment import HeavyEquipment
from warehouse.models.import_log import ImportLog
from warehouse.models.opname import StockOpname, StockOpnameItem
from warehouse.models.petty_cash import PettyCash, PettyCashCategory
from warehouse.models.sparepart import Sparepart
from warehouse.models.stock_in import StockIn
from warehouse.models.stock_out import StockOut
from warehouse.models.supplier import Supplier
from warehouse.models.warranty import Warranty


def import_all_models() -> None:
    for module_name in (
        "warehouse.models.attendance",
        "warehouse.models.audit_log",
        "warehouse.models.category",
        "warehouse.models.employee",
        "warehouse.models.equipment",
        "warehouse.models.import_log",
        "warehouse.models.opname",
        "warehouse.models.petty_cash",
        "warehouse.models.sparepart",
        "warehouse.models.stock_in",
        "warehouse.models.stock_out",
        "warehouse.models.supplier",
        "warehouse.models.warranty",
    ):
        importlib.import_module(module_name)


__all__ = [
    "Attendance",
    "AuditLog",
    "Category",
    "Employee",
    "HeavyEquipment",
    "ImportLog",
    "PettyCash",
    "PettyCashCategory",
    "Sparepart",
    "StockIn",
    "StockOpname",
    "StockOpnameItem",
    "StockOut",
    "Supplier",
    "Warranty",
    "import_all_models",
]
