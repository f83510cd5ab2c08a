from datetime import datetime
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class CategoryRead(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class SparepartBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    category_id: int = Field(validation_alias=AliasChoices("category_id", "categoryId"))
    brand: Optional[str] = Field(default=None, max_length=50)
    unit: str = Field(min_length=1, max_length=20)
    min_stock: int = Field(default=0, ge=0, validation_alias=AliasChoices("min_stock", "minStock"))
    rack_location: Optional[str] = Field(
        default=None,
        max_length=50,
        validation_alias=AliasChoices("rack_location", "rackLocation"),
    )

    model_config = ConfigDict(populate_by_name=True)


class SparepartCreate(SparepartBase):
    pass


class SparepartUpdate(SparepartBase):
    pass


class SparepartRead(BaseModel):
    id: int
    code: str
    name: str
    category_id: int
    category: Optional[CategoryRead] = None
    brand: Optional[str] = None
    unit: str
    min_stock: int
    rack_location: Optional[str] = None
    current_stock: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SupplierBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, max_length=500)


class SupplierCreate(SupplierBase):
    pass


class SupplierRead(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class EquipmentBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    type: str = Field(min_length=1, max_length=50)
    brand: str = Field(min_length=1, max_length=100)
    model: str = Field(min_length=1, max_length=100)
    year: Optional[int] = None
    site: Optional[str] = Field(default=None, max_length=100)
    status: Literal["active", "maintenance", "inactive"] = "active"

    model_config = ConfigDict(protected_namespaces=())


class EquipmentCreate(EquipmentBase):
    pass


class EquipmentRead(BaseModel):
    id: int
    code: str
    name: str
    type: str
    brand: str
    model: str
    year: Optional[int] = None
    site: Optional[str] = None
    status: str

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class EmployeeBase(BaseModel):
    nik: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    position: str = Field(min_length=1, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    is_active: bool = Field(default=True, validation_alias=AliasChoices("is_active", "isActive"))

    model_config = ConfigDict(populate_by_name=True)


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeRead(BaseModel):
    id: int
    nik: str
    name: str
    position: str
    department: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
