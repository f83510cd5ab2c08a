from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel

from warehouse.schemas.master import CategoryRead, EquipmentRead


class StockReportRow(BaseModel):
    id: int
    code: str
    name: str
    unit: str
    current_stock: int
    min_stock: int
    category: Optional[CategoryRead] = None
    price: float
    status: str
    value: float


class StockReportSummary(BaseModel):
    total_items: int
    total_normal: int
    total_low: int
    total_empty: int
    total_value: float


class StockReport(BaseModel):
    data: List[StockReportRow]
    summary: StockReportSummary


class EquipmentUsageRow(BaseModel):
    id: int
    date: Optional[datetime] = None
    part_code: str
    part_name: str
    price: float
    quantity: int
    employee_name: Optional[str] = None
    purpose: Optional[str] = None
    cost: float


class EquipmentUsageSummary(BaseModel):
    total_transactions: int
    total_quantity: int
    total_cost: float


class EquipmentUsageReport(BaseModel):
    equipment: EquipmentRead
    history: List[EquipmentUsageRow]
    summary: EquipmentUsageSummary


class LowStockRow(BaseModel):
    id: int
    code: str
    name: str
    unit: str
    current_stock: int
    min_stock: int


class ExpiringWarrantyRow(BaseModel):
    id: int
    part_code: str
    part_name: str
    expiry_date: date


class DashboardSummary(BaseModel):
    total_spareparts: int
    active_equipment: int
    today_stock_in: int
    today_stock_out: int
    pending_requests: int
    petty_cash_balance: float
    low_stock: List[LowStockRow]
    expiring_warranties: List[ExpiringWarrantyRow]


class StockInReportRow(BaseModel):
    id: int
    date: datetime
    part_code: str
    part_name: str
    unit: str
    quantity: int
    supplier_name: Optional[str] = None
    invoice_number: Optional[str] = None
    purchase_price: float
    total_price: float
    source: str
    notes: Optional[str] = None


class StockInReportSummary(BaseModel):
    total_transactions: int
    total_quantity: int
    total_value: float


class StockInReport(BaseModel):
    data: List[StockInReportRow]
    summary: StockInReportSummary


class StockOutReportRow(BaseModel):
    id: int
    date: datetime
    part_code: str
    part_name: str
    unit: str
    quantity: int
    equipment_code: Optional[str] = None
    equipment_name: Optional[str] = None
    employee_name: Optional[str] = None
    employee_position: Optional[str] = None
    purpose: Optional[str] = None
    status: str
    approved_at: Optional[datetime] = None


class StockOutReportSummary(BaseModel):
    total_transactions: int
    total_quantity: int
    pending: int
    approved: int
    rejected: int


class StockOutReport(BaseModel):
    data: List[StockOutReportRow]
    summary: StockOutReportSummary
