"""Master data: categories, spareparts, suppliers, heavy equipment, employees."""

import logging
import re
from datetime import date
from typing import Optional

from sqlalchemy import exists, or_, select
from sqlalchemy.orm import Session

from warehouse.core.constants import EQUIPMENT_STATUSES, STOCK_STATUSES
from warehouse.core.errors import Conflict, NotFound, ValidationError
from warehouse.core.security import Actor
from warehouse.database.session import atomic
from warehouse.models.category import Category
from warehouse.models.employee import Employee
from warehouse.models.equipment import HeavyEquipment
from warehouse.models.sparepart import Sparepart
from warehouse.models.stock_in import StockIn
from warehouse.models.stock_out import StockOut
from warehouse.models.supplier import Supplier
from warehouse.schemas.master import (
    CategoryCreate,
    EmployeeCreate,
    EquipmentCreate,
    SparepartCreate,
    SupplierCreate,
)
from warehouse.services.audit_service import record_audit
from warehouse.services.pagination import contains, paginate

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    return text or None


def _require(value: Optional[str], field: str) -> str:
    text = _clean(value)
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def _get_or_404(db: Session, model, record_id: int, label: str):
    instance = db.get(model, record_id)
    if instance is None:
        raise NotFound(f"{label} {record_id} not found")
    return instance


def _is_referenced(db: Session, *clauses) -> bool:
    return any(db.scalar(select(exists().where(clause))) for clause in clauses)


# ==============================
# Categories
# ==============================

def list_categories(db: Session, search: Optional[str] = None) -> list[Category]:
    stmt = select(Category).order_by(Category.name.asc())
    if search:
        stmt = stmt.where(Category.name.ilike(contains(search), escape="\\"))
    return list(db.execute(stmt).scalars().all())


def get_category(db: Session, category_id: int) -> Category:
    return _get_or_404(db, Category, category_id, "Category")


def _ensure_category_name_free(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(Category.id).where(Category.name.ilike(name))
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    if db.scalar(stmt) is not None:
        raise Conflict(f"Category {name!r} already exists")


def create_category(db: Session, payload: CategoryCreate, actor: Actor) -> Category:
    name = _require(payload.name, "name")
    _ensure_category_name_free(db, name)
    with atomic(db):
        category = Category(name=name)
        db.add(category)
        db.flush()
        record_audit(db, actor, "CREATE", "Category", category.id, f"Created category: {name}")
    return category


def update_category(db: Session, category_id: int, payload: CategoryCreate, actor: Actor) -> Category:
    category = get_category(db, category_id)
    name = _require(payload.name, "name")
    _ensure_category_name_free(db, name, exclude_id=category.id)
    with atomic(db):
        before = {"name": category.name}
        category.name = name
        record_audit(
            db, actor, "UPDATE", "Category", category.id, f"Updated category: {name}",
            data_before=before, data_after={"name": name},
        )
    return category


def delete_category(db: Session, category_id: int, actor: Actor) -> None:
    category = get_category(db, category_id)
    if _is_referenced(db, Sparepart.category_id == category.id):
        raise Conflict("Category still has spareparts and cannot be deleted")
    with atomic(db):
        db.delete(category)
        record_audit(db, actor, "DELETE", "Category", category_id, f"Deleted category: {category.name}")


# ==============================
# Spareparts
# ==============================

def list_spareparts(
    db: Session,
    *,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    stock_status: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
):
    stmt = select(Sparepart)
    if search:
        pattern = contains(search)
        stmt = stmt.where(
            or_(
                Sparepart.code.ilike(pattern, escape="\\"),
                Sparepart.name.ilike(pattern, escape="\\"),
                Sparepart.brand.ilike(pattern, escape="\\"),
            )
        )
    if category_id:
        stmt = stmt.where(Sparepart.category_id == category_id)
    if stock_status and stock_status != "all":
        if stock_status not in STOCK_STATUSES:
            raise ValidationError(f"stock_status must be one of: all, {', '.join(STOCK_STATUSES)}")
        stmt = stmt.where(stock_status_clause(stock_status))
    stmt = stmt.order_by(Sparepart.code.asc())
    return paginate(db, stmt, page, limit)


def stock_status_clause(stock_status: str):
    if stock_status == "empty":
        return Sparepart.current_stock == 0
    if stock_status == "low":
        return (Sparepart.current_stock > 0) & (Sparepart.current_stock <= Sparepart.min_stock)
    return Sparepart.current_stock > Sparepart.min_stock


def classify_stock(current_stock: int, min_stock: int) -> str:
    if current_stock == 0:
        return "empty"
    if current_stock <= min_stock:
        return "low"
    return "normal"


def get_sparepart(db: Session, part_id: int) -> Sparepart:
    return _get_or_404(db, Sparepart, part_id, "Sparepart")


def find_sparepart_by_code(db: Session, code: str) -> Optional[Sparepart]:
    return db.execute(
        select(Sparepart).where(Sparepart.code == code.strip().upper())
    ).scalars().first()


def _sparepart_values(db: Session, payload: SparepartCreate) -> dict:
    get_category(db, payload.category_id)
    if payload.min_stock < 0:
        raise ValidationError("min_stock must not be negative")
    return {
        "code": _require(payload.code, "code").upper(),
        "name": _require(payload.name, "name"),
        "category_id": payload.category_id,
        "brand": _clean(payload.brand),
        "unit": _require(payload.unit, "unit").lower(),
        "min_stock": payload.min_stock,
        "rack_location": _clean(payload.rack_location),
    }


def _ensure_part_code_free(db: Session, code: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(Sparepart.id).where(Sparepart.code == code)
    if exclude_id is not None:
        stmt = stmt.where(Sparepart.id != exclude_id)
    if db.scalar(stmt) is not None:
        raise Conflict(f"Sparepart code {code!r} already exists")


def create_sparepart(db: Session, payload: SparepartCreate, actor: Actor) -> Sparepart:
    values = _sparepart_values(db, payload)
    _ensure_part_code_free(db, values["code"])
    with atomic(db):
        part = Sparepart(current_stock=0, **values)
        db.add(part)
        db.flush()
        record_audit(
            db, actor, "CREATE", "Sparepart", part.id,
            f"Created sparepart: {part.code} {part.name}", data_after=values,
        )
    db.refresh(part)
    return part


def update_sparepart(db: Session, part_id: int, payload: SparepartCreate, actor: Actor) -> Sparepart:
    part = get_sparepart(db, part_id)
    values = _sparepart_values(db, payload)
    _ensure_part_code_free(db, values["code"], exclude_id=part.id)
    with atomic(db):
        before = {key: getattr(part, key) for key in values}
        # current_stock is owned by the stock flows and never edited here.
        for key, value in values.items():
            setattr(part, key, value)
        record_audit(
            db, actor, "UPDATE", "Sparepart", part.id,
            f"Updated sparepart: {part.code} {part.name}", data_before=before, data_after=values,
        )
    db.refresh(part)
    return part


def delete_sparepart(db: Session, part_id: int, actor: Actor) -> None:
    part = get_sparepart(db, part_id)
    if _is_referenced(db, StockIn.sparepart_id == part.id, StockOut.sparepart_id == part.id):
        raise Conflict("Sparepart has stock transactions and cannot be deleted")
    with atomic(db):
        db.delete(part)
        record_audit(db, actor, "DELETE", "Sparepart", part_id, f"Deleted sparepart: {part.code}")
    logger.info("Sparepart %s deleted", part.code, extra={"actor": actor.name, "sparepart_id": part_id})


# ==============================
# Suppliers
# ==============================

def list_suppliers(db: Session, *, search: Optional[str] = None, page: int = 1, limit: Optional[int] = None):
    stmt = select(Supplier)
    if search:
        pattern = contains(search)
        stmt = stmt.where(
            or_(
                Supplier.name.ilike(pattern, escape="\\"),
                Supplier.phone.ilike(pattern, escape="\\"),
                Supplier.email.ilike(pattern, escape="\\"),
            )
        )
    stmt = stmt.order_by(Supplier.name.asc())
    return paginate(db, stmt, page, limit)


def get_supplier(db: Session, supplier_id: int) -> Supplier:
    return _get_or_404(db, Supplier, supplier_id, "Supplier")


def _supplier_values(payload: SupplierCreate) -> dict:
    email = _clean(payload.email)
    if email:
        email = email.lower()
        if not _EMAIL_PATTERN.match(email):
            raise ValidationError("email is not a valid address")
    return {
        "name": _require(payload.name, "name"),
        "phone": _clean(payload.phone),
        "email": email,
        "address": _clean(payload.address),
    }


def create_supplier(db: Session, payload: SupplierCreate, actor: Actor) -> Supplier:
    values = _supplier_values(payload)
    with atomic(db):
        supplier = Supplier(**values)
        db.add(supplier)
        db.flush()
        record_audit(db, actor, "CREATE", "Supplier", supplier.id, f"Created supplier: {supplier.name}")
    return supplier


def update_supplier(db: Session, supplier_id: int, payload: SupplierCreate, actor: Actor) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    values = _supplier_values(payload)
    with atomic(db):
        before = {key: getattr(supplier, key) for key in values}
        for key, value in values.items():
            setattr(supplier, key, value)
        record_audit(
            db, actor, "UPDATE", "Supplier", supplier.id, f"Updated supplier: {supplier.name}",
            data_before=before, data_after=values,
        )
    return supplier


def delete_supplier(db: Session, supplier_id: int, actor: Actor) -> None:
    supplier = get_supplier(db, supplier_id)
    if _is_referenced(db, StockIn.supplier_id == supplier.id):
        raise Conflict("Supplier has stock-in records and cannot be deleted")
    with atomic(db):
        db.delete(supplier)
        record_audit(db, actor, "DELETE", "Supplier", supplier_id, f"Deleted supplier: {supplier.name}")


# ==============================
# Heavy equipment
# ==============================

def list_equipment(
    db: Session,
    *,
    search: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
):
    stmt = select(HeavyEquipment)
    if search:
        pattern = contains(search)
        stmt = stmt.where(
            or_(
                HeavyEquipment.code.ilike(pattern, escape="\\"),
                HeavyEquipment.name.ilike(pattern, escape="\\"),
                HeavyEquipment.brand.ilike(pattern, escape="\\"),
            )
        )
    if status and status != "all":
        stmt = stmt.where(HeavyEquipment.status == status)
    stmt = stmt.order_by(HeavyEquipment.code.asc())
    return paginate(db, stmt, page, limit)


def get_equipment(db: Session, equipment_id: int) -> HeavyEquipment:
    return _get_or_404(db, HeavyEquipment, equipment_id, "Heavy equipment")


def validate_equipment_year(year: Optional[int]) -> Optional[int]:
    if year is None:
        return None
    if year < 1900 or year > date.today().year + 1:
        raise ValidationError(f"year must be between 1900 and {date.today().year + 1}")
    return year


def _equipment_values(payload: EquipmentCreate) -> dict:
    status = (payload.status or "active").strip().lower()
    if status not in EQUIPMENT_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(EQUIPMENT_STATUSES)}")
    return {
        "code": _require(payload.code, "code").upper(),
        "name": _require(payload.name, "name"),
        "type": _require(payload.type, "type"),
        "brand": _require(payload.brand, "brand"),
        "model": _require(payload.model, "model"),
        "year": validate_equipment_year(payload.year),
        "site": _clean(payload.site),
        "status": status,
    }


def _ensure_equipment_code_free(db: Session, code: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(HeavyEquipment.id).where(HeavyEquipment.code == code)
    if exclude_id is not None:
        stmt = stmt.where(HeavyEquipment.id != exclude_id)
    if db.scalar(stmt) is not None:
        raise Conflict(f"Equipment code {code!r} already exists")


def create_equipment(db: Session, payload: EquipmentCreate, actor: Actor) -> HeavyEquipment:
    values = _equipment_values(payload)
    _ensure_equipment_code_free(db, values["code"])
    with atomic(db):
        equipment = HeavyEquipment(**values)
        db.add(equipment)
        db.flush()
        record_audit(db, actor, "CREATE", "HeavyEquipment", equipment.id, f"Created equipment: {equipment.code}")
    return equipment


def update_equipment(db: Session, equipment_id: int, payload: EquipmentCreate, actor: Actor) -> HeavyEquipment:
    equipment = get_equipment(db, equipment_id)
    values = _equipment_values(payload)
    _ensure_equipment_code_free(db, values["code"], exclude_id=equipment.id)
    with atomic(db):
        before = {key: getattr(equipment, key) for key in values}
        for key, value in values.items():
            setattr(equipment, key, value)
        record_audit(
            db, actor, "UPDATE", "HeavyEquipment", equipment.id, f"Updated equipment: {equipment.code}",
            data_before=before, data_after=values,
        )
    return equipment


def delete_equipment(db: Session, equipment_id: int, actor: Actor) -> None:
    equipment = get_equipment(db, equipment_id)
    if _is_referenced(db, StockOut.equipment_id == equipment.id):
        raise Conflict("Equipment has stock-out records and cannot be deleted")
    with atomic(db):
        db.delete(equipment)
        record_audit(db, actor, "DELETE", "HeavyEquipment", equipment_id, f"Deleted equipment: {equipment.code}")


# ==============================
# Employees
# ==============================

def list_employees(
    db: Session,
    *,
    search: Optional[str] = None,
    active_only: bool = False,
    page: int = 1,
    limit: Optional[int] = None,
):
    stmt = select(Employee)
    if search:
        pattern = contains(search)
        stmt = stmt.where(
            or_(
                Employee.nik.ilike(pattern, escape="\\"),
                Employee.name.ilike(pattern, escape="\\"),
                Employee.position.ilike(pattern, escape="\\"),
            )
        )
    if active_only:
        stmt = stmt.where(Employee.is_active.is_(True))
    stmt = stmt.order_by(Employee.name.asc())
    return paginate(db, stmt, page, limit)


def get_employee(db: Session, employee_id: int) -> Employee:
    return _get_or_404(db, Employee, employee_id, "Employee")


def _employee_values(payload: EmployeeCreate) -> dict:
    return {
        "nik": _require(payload.nik, "nik"),
        "name": _require(payload.name, "name"),
        "position": _require(payload.position, "position"),
        "department": _clean(payload.department),
        "phone": _clean(payload.phone),
        "is_active": payload.is_active,
    }


def _ensure_nik_free(db: Session, nik: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(Employee.id).where(Employee.nik == nik)
    if exclude_id is not None:
        stmt = stmt.where(Employee.id != exclude_id)
    if db.scalar(stmt) is not None:
        raise Conflict(f"Employee NIK {nik!r} already exists")


def create_employee(db: Session, payload: EmployeeCreate, actor: Actor) -> Employee:
    values = _employee_values(payload)
    _ensure_nik_free(db, values["nik"])
    with atomic(db):
        employee = Employee(**values)
        db.add(employee)
        db.flush()
        record_audit(db, actor, "CREATE", "Employee", employee.id, f"Created employee: {employee.name}")
    return employee


def update_employee(db: Session, employee_id: int, payload: EmployeeCreate, actor: Actor) -> Employee:
    employee = get_employee(db, employee_id)
    values = _employee_values(payload)
    _ensure_nik_free(db, values["nik"], exclude_id=employee.id)
    with atomic(db):
        before = {key: getattr(employee, key) for key in values}
        for key, value in values.items():
            setattr(employee, key, value)
        record_audit(
            db, actor, "UPDATE", "Employee", employee.id, f"Updated employee: {employee.name}",
            data_before=before, data_after=values,
        )
    return employee


def delete_employee(db: Session, employee_id: int, actor: Actor) -> None:
    employee = get_employee(db, employee_id)
    if _is_referenced(db, StockOut.employee_id == employee.id):
        raise Conflict("Employee has stock-out requests and cannot be deleted")
    with atomic(db):
        db.delete(employee)
        record_audit(db, actor, "DELETE", "Employee", employee_id, f"Deleted employee: {employee.name}")
