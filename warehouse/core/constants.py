from datetime import time

STOCK_OUT_PENDING = "pending"
STOCK_OUT_APPROVED = "approved"
STOCK_OUT_REJECTED = "rejected"
STOCK_OUT_STATUSES = (STOCK_OUT_PENDING, STOCK_OUT_APPROVED, STOCK_OUT_REJECTED)

STOCK_IN_SOURCES = ("manual", "opname", "initial_stock")
STOCK_OUT_SOURCES = ("request", "opname")

WARRANTY_ACTIVE = "active"
WARRANTY_CLAIMED = "claimed"
WARRANTY_REPORT_STATUSES = ("active", "expiring", "expired", "claimed")

OPNAME_COMPLETED = "COMPLETED"

STOCK_STATUSES = ("normal", "low", "empty")

EQUIPMENT_STATUSES = ("active", "maintenance", "inactive")

UNIT_OPTIONS = ("pcs", "liter", "set", "meter", "kg", "box", "roll", "sheet", "unit")

PETTY_CASH_IN = "in"
PETTY_CASH_OUT = "out"

ATTENDANCE_STATUSES = ("present", "absent", "late", "leave", "sick")

# Clock-ins after this wall-clock time count as late.
WORK_START_TIME = time(8, 0)

AUDIT_ACTIONS = ("CREATE", "UPDATE", "DELETE", "APPROVE", "REJECT", "IMPORT", "CLAIM")

IMPORT_KINDS = ("categories", "suppliers", "spareparts", "equipment", "employees", "initial_stock", "attendance")
