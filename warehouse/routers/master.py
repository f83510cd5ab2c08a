from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from warehouse.core.security import Actor
from warehouse.dependencies import get_db, require_auth
from warehouse.schemas.common import MessageResponse, Page
from warehouse.schemas.master import (
    CategoryCreate,
    CategoryRead,
    EmployeeCreate,
    EmployeeRead,
    EquipmentCreate,
    EquipmentRead,
    SparepartCreate,
    SparepartRead,
    SparepartUpdate,
    SupplierCreate,
    SupplierRead,
)
from warehouse.services import master_service

router = APIRouter(prefix="/master", tags=["Master Data"])


# ==============================
# Categories
# ==============================

@router.get("/categories", response_model=list[CategoryRead])
def list_categories(search: Optional[str] = None, db: Session = Depends(get_db)):
    return master_service.list_categories(db, search=search)


@router.post("/categories", response_model=CategoryRead, status_code=201)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return master_service.create_category(db, payload, actor)


@router.get("/categories/{category_id}", response_model=CategoryRead)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return master_service.get_category(db, category_id)


@router.put("/categories/{category_id}", response_model=CategoryRead)
def update_category(
    category_id: int,
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return master_service.update_category(db, category_id, payload, actor)


@router.delete("/categories/{category_id}", response_model=MessageResponse)
def delete_category(category_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_auth)):
    master_service.delete_category(db, category_id, actor)
    return MessageResponse(message="Category deleted")


# ==============================
# Spareparts
# ==============================

@router.get("/spareparts", response_model=Page[SparepartRead])
def list_spareparts(
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    stock_status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    rows, meta = master_service.list_spareparts(
        db,
        search=search,
        category_id=category_id,
        stock_status=stock_status,
        page=page,
        limit=limit,
    )
    return {"data": rows, "meta": meta}


@router.post("/spareparts", response_model=SparepartRead, status_code=201)
def create_sparepart(
    payload: SparepartCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return master_service.create_sparepart(db, payload, actor)


@router.get("/spareparts/{part_id}", response_model=SparepartRead)
def get_sparepart(part_id: int, db: Session = Depends(get_db)):
    return master_service.get_sparepart(db, part_id)


@router.put("/spareparts/{part_id}", response_model=SparepartRead)
def update_sparepart(
    part_id: int,
    payload: SparepartUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return master_service.update_sparepart(db, part_id, payload, actor)


@router.delete("/spareparts/{part_id}", response_model=MessageResponse)
def delete_sparepart(part_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_auth)):
    master_service.delete_sparepart(db, part_id, actor)
    return MessageResponse(message="Sparepart deleted")


# ==============================
# Suppliers
# ==============================

@router.get("/suppliers", response_model=Page[SupplierRead])
def list_suppliers(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    rows, meta = master_service.list_suppliers(db, search=search, page=page, limit=limit)
    return {"data": rows, "meta": meta}


@router.post("/suppliers", response_model=SupplierRead, status_code=201)
def create_supplier(
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return master_service.create_supplier(db, payload, actor)


@router.get("/suppliers/{supplier_id}", response_model=SupplierRead)
def get_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return master_service.get_supplier(db, supplier_id)


@router.put("/suppliers/{supplier_id}", response_model=SupplierRead)
def update_supplier(
    supplier_id: int,
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return master_service.update_supplier(db, supplier_id, payload, actor)


@router.delete("/suppliers/{supplier_id}", response_model=MessageResponse)
def delete_supplier(supplier_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_auth)):
    master_service.delete_supplier(db, supplier_id, actor)
    return MessageResponse(message="Supplier deleted")


# ==============================
# Heavy equipment
# ==============================

@router.get("/equipment", response_model=Page[EquipmentRead])
def list_equipment(
    search: Optional[str] = None,
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    rows, meta = master_service.list_equipment(db, search=search, status=status, page=page, limit=limit)
    return {"data": rows, "meta": meta}


@router.post("/equipment", response_model=EquipmentRead, status_code=201)
def create_equipment(
    payload: EquipmentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return master_service.create_equipment(db, payload, actor)


@router.get("/equipment/{equipment_id}", response_model=EquipmentRead)
def get_equipment(equipment_id: int, db: Session = Depends(get_db)):
    return master_service.get_equipment(db, equipment_id)


@router.put("/equipment/{equipment_id}", response_model=EquipmentRead)
def update_equipment(
    equipment_id: int,
    payload: EquipmentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return master_service.update_equipment(db, equipment_id, payload, actor)


@router.delete("/equipment/{equipment_id}", response_model=MessageResponse)
def delete_equipment(equipment_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_auth)):
    master_service.delete_equipment(db, equipment_id, actor)
    return MessageResponse(message="Equipment deleted")


# ==============================
# Employees
# ==============================

@router.get("/employees", response_model=Page[EmployeeRead])
def list_employees(
    search: Optional[str] = None,
    active_only: bool = False,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    rows, meta = master_service.list_employees(
        db, search=search, active_only=active_only, page=page, limit=limit
    )
    return {"data": rows, "meta": meta}


@router.post("/employees", response_model=EmployeeRead, status_code=201)
def create_employee(
    payload: EmployeeCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return master_service.create_employee(db, payload, actor)


@router.get("/employees/{employee_id}", response_model=EmployeeRead)
def get_employee(employee_id: int, db: Session = Depends(get_db)):
    return master_service.get_employee(db, employee_id)


@router.put("/employees/{employee_id}", response_model=EmployeeRead)
def update_employee(
    employee_id: int,
    payload: EmployeeCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return master_service.update_employee(db, employee_id, payload, actor)


@router.delete("/employees/{employee_id}", response_model=MessageResponse)
def delete_employee(employee_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_auth)):
    master_service.delete_employee(db, employee_id, actor)
    return MessageResponse(message="Employee deleted")


__all__ = ["router"]
