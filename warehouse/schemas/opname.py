from datetime import date, datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class OpnameItemIn(BaseModel):
    part_id: int = Field(validation_alias=AliasChoices("part_id", "partId", "sparepart_id", "sparepartId"))
    system_stock: int = Field(strict=True, validation_alias=AliasChoices("system_stock", "systemStock"))
    physical_stock: int = Field(strict=True, validation_alias=AliasChoices("physical_stock", "physicalStock"))
    notes: Optional[str] = Field(default=None, max_length=500)

    model_config = ConfigDict(populate_by_name=True)


class OpnameRequest(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=500)
    items: List[OpnameItemIn]


class OpnameResult(BaseModel):
    opname_id: int
    adjusted_count: int
    stock_in_created: int
    stock_out_created: int


class OpnameCandidate(BaseModel):
    id: int
    code: str
    name: str
    unit: str
    current_stock: int
    rack_location: Optional[str] = None
    category_name: Optional[str] = None


class OpnameItemRead(BaseModel):
    id: int
    part_id: int = Field(validation_alias="sparepart_id")
    part_code: Optional[str] = None
    part_name: Optional[str] = None
    system_stock: int
    physical_stock: int
    difference: int
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OpnameSummary(BaseModel):
    id: int
    opname_date: date
    notes: Optional[str] = None
    status: str
    created_by: Optional[str] = None
    created_at: datetime
    total_items: int
    total_difference: int
    total_plus: int
    total_minus: int


class OpnameDetail(OpnameSummary):
    items: List[OpnameItemRead]
