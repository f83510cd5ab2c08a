from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from warehouse.schemas.common import BlankToNone


class PartSummary(BaseModel):
    id: int
    code: str
    name: str
    unit: str
    current_stock: int

    model_config = ConfigDict(from_attributes=True)


class SupplierSummary(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class EquipmentSummary(BaseModel):
    id: int
    code: str
    name: str
    type: str

    model_config = ConfigDict(from_attributes=True)


class EmployeeSummary(BaseModel):
    id: int
    nik: str
    name: str
    position: str

    model_config = ConfigDict(from_attributes=True)


class StockInCreate(BaseModel):
    part_id: int = Field(validation_alias=AliasChoices("part_id", "partId", "sparepart_id", "sparepartId"))
    quantity: int = Field(strict=True)
    supplier_id: Annotated[Optional[int], BlankToNone] = Field(
        default=None,
        validation_alias=AliasChoices("supplier_id", "supplierId"),
    )
    invoice_number: Annotated[Optional[str], BlankToNone] = Field(
        default=None,
        max_length=100,
        validation_alias=AliasChoices("invoice_number", "invoiceNumber"),
    )
    purchase_price: Annotated[Optional[float], BlankToNone] = Field(
        default=None,
        allow_inf_nan=False,
        validation_alias=AliasChoices("purchase_price", "purchasePrice"),
    )
    warranty_expiry: Annotated[Optional[date], BlankToNone] = Field(
        default=None,
        validation_alias=AliasChoices("warranty_expiry", "warrantyExpiry"),
    )
    notes: Annotated[Optional[str], BlankToNone] = Field(default=None, max_length=500)

    model_config = ConfigDict(populate_by_name=True)


class WarrantySummary(BaseModel):
    id: int
    expiry_date: date
    claim_status: str

    model_config = ConfigDict(from_attributes=True)


class StockInRead(BaseModel):
    id: int
    part_id: int = Field(validation_alias="sparepart_id")
    quantity: int
    supplier_id: Optional[int] = None
    invoice_number: Optional[str] = None
    purchase_price: Optional[float] = None
    warranty_expiry: Optional[date] = None
    notes: Optional[str] = None
    source: str
    opname_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: datetime
    sparepart: Optional[PartSummary] = None
    supplier: Optional[SupplierSummary] = None
    warranty: Optional[WarrantySummary] = None

    model_config = ConfigDict(from_attributes=True)


class StockOutCreate(BaseModel):
    part_id: int = Field(validation_alias=AliasChoices("part_id", "partId", "sparepart_id", "sparepartId"))
    equipment_id: int = Field(validation_alias=AliasChoices("equipment_id", "equipmentId"))
    employee_id: int = Field(validation_alias=AliasChoices("employee_id", "employeeId"))
    quantity: int = Field(strict=True)
    purpose: Annotated[Optional[str], BlankToNone] = Field(default=None, max_length=500)
    scanned_barcode: Annotated[Optional[str], BlankToNone] = Field(
        default=None,
        max_length=100,
        validation_alias=AliasChoices("scanned_barcode", "scannedBarcode"),
    )

    model_config = ConfigDict(populate_by_name=True)


class StockOutRead(BaseModel):
    id: int
    part_id: int = Field(validation_alias="sparepart_id")
    equipment_id: Optional[int] = None
    employee_id: Optional[int] = None
    quantity: int
    purpose: Optional[str] = None
    scanned_barcode: Optional[str] = None
    status: str
    rejected_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    source: str
    opname_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: datetime
    sparepart: Optional[PartSummary] = None
    equipment: Optional[EquipmentSummary] = None
    employee: Optional[EmployeeSummary] = None

    model_config = ConfigDict(from_attributes=True)


class RejectRequest(BaseModel):
    reason: str


class ApprovalStats(BaseModel):
    total_pending: int
    approved_today: int
    rejected_today: int


class WarrantyClaimRequest(BaseModel):
    claim_notes: Optional[str] = Field(
        default=None,
        max_length=500,
        validation_alias=AliasChoices("claim_notes", "claimNotes", "claimReason", "claim_reason"),
    )

    model_config = ConfigDict(populate_by_name=True)


class WarrantyRead(BaseModel):
    id: int
    stock_in_id: int
    part_id: int = Field(validation_alias="sparepart_id")
    expiry_date: date
    claim_status: str
    claim_date: Optional[datetime] = None
    claim_notes: Optional[str] = None
    sparepart: Optional[PartSummary] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class WarrantyReportRow(WarrantyRead):
    days_remaining: int
    warranty_status: str


class WarrantyCounts(BaseModel):
    active: int
    expiring: int
    expired: int
    claimed: int


class WarrantyReport(BaseModel):
    data: list[WarrantyReportRow]
    counts: WarrantyCounts
