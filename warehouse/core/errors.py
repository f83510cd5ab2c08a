"""Domain errors raised by the service layer.

Every error carries the HTTP status and machine-readable code it is rendered
with, so routers never translate them by hand.
"""

from __future__ import annotations


class WarehouseError(Exception):
    status_code = 400
    code = "warehouse_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_payload(self) -> dict[str, str]:
        return {"code": self.code, "detail": self.detail}


class ValidationError(WarehouseError):
    status_code = 400
    code = "validation_error"


class NotFound(WarehouseError):
    status_code = 404
    code = "not_found"


class Conflict(WarehouseError):
    status_code = 409
    code = "conflict"


class InsufficientStock(WarehouseError):
    status_code = 409
    code = "insufficient_stock"

    def __init__(self, available: int, requested: int, unit: str = ""):
        unit_text = f" {unit}" if unit else ""
        super().__init__(
            f"Insufficient stock. Available: {available}{unit_text}, requested: {requested}{unit_text}"
        )
        self.available = available
        self.requested = requested


class InvalidStateTransition(WarehouseError):
    status_code = 409
    code = "invalid_state_transition"


class NothingToReconcile(WarehouseError):
    status_code = 400
    code = "nothing_to_reconcile"


__all__ = [
    "Conflict",
    "InsufficientStock",
    "InvalidStateTransition",
    "NotFound",
    "NothingToReconcile",
    "ValidationError",
    "WarehouseError",
]
