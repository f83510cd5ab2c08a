"""Petty cash ledger: income, categorised expenses and period reports."""

import logging
import math
from datetime import date
from typing import Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from warehouse.core.constants import PETTY_CASH_IN, PETTY_CASH_OUT
from warehouse.core.dates import month_bounds, utcnow
from warehouse.core.errors import Conflict, NotFound, ValidationError
from warehouse.core.security import Actor
from warehouse.database.session import atomic
from warehouse.models.petty_cash import PettyCash, PettyCashCategory
from warehouse.schemas.petty_cash import (
    ExpenseByCategory,
    PettyCashCategoryCreate,
    PettyCashExpenseCreate,
    PettyCashIncomeCreate,
    PettyCashLedgerRow,
    PettyCashRead,
    PettyCashReport,
    ReportPeriod,
)
from warehouse.services.audit_service import record_audit
from warehouse.services.pagination import paginate

logger = logging.getLogger(__name__)

UNCATEGORISED = "Uncategorised"

_signed_amount = case(
    (PettyCash.type == PETTY_CASH_IN, PettyCash.amount),
    else_=-PettyCash.amount,
)


def current_balance(db: Session, before: Optional[date] = None) -> float:
    """Income minus expense over all entries, or only those dated before ``before``."""
    stmt = select(func.coalesce(func.sum(_signed_amount), 0))
    if before is not None:
        stmt = stmt.where(PettyCash.date < before)
    return float(db.scalar(stmt) or 0)


def list_categories(db: Session) -> list[PettyCashCategory]:
    return list(db.execute(select(PettyCashCategory).order_by(PettyCashCategory.name.asc())).scalars().all())


def create_category(db: Session, payload: PettyCashCategoryCreate, actor: Actor) -> PettyCashCategory:
    name = payload.name.strip()
    if not name:
        raise ValidationError("name is required")
    if db.scalar(select(PettyCashCategory.id).where(PettyCashCategory.name.ilike(name))) is not None:
        raise Conflict(f"Petty cash category {name!r} already exists")
    with atomic(db):
        category = PettyCashCategory(name=name)
        db.add(category)
        db.flush()
        record_audit(db, actor, "CREATE", "PettyCashCategory", category.id, f"Created petty cash category: {name}")
    return category


def _validate_amount(amount: float) -> float:
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise ValidationError("amount must be greater than zero")
    return float(amount)


def _add_entry(db: Session, actor: Actor, **values) -> PettyCash:
    with atomic(db):
        entry = PettyCash(created_by=actor.name, **values)
        db.add(entry)
        db.flush()
        record_audit(
            db,
            actor,
            "CREATE",
            "PettyCash",
            entry.id,
            f"Petty cash {values['type']}: {values['amount']:.2f} {values['description']}",
            data_after=values,
        )
    db.refresh(entry)
    logger.info("Petty cash %s recorded (%.2f)", values["type"], values["amount"], extra={"actor": actor.name})
    return entry


def record_income(db: Session, payload: PettyCashIncomeCreate, actor: Actor) -> PettyCash:
    return _add_entry(
        db,
        actor,
        date=payload.date,
        type=PETTY_CASH_IN,
        amount=_validate_amount(payload.amount),
        description=payload.description.strip(),
    )


def record_expense(db: Session, payload: PettyCashExpenseCreate, actor: Actor) -> PettyCash:
    amount = _validate_amount(payload.amount)
    if db.get(PettyCashCategory, payload.category_id) is None:
        raise NotFound(f"Petty cash category {payload.category_id} not found")
    return _add_entry(
        db,
        actor,
        date=payload.date,
        type=PETTY_CASH_OUT,
        amount=amount,
        description=payload.description.strip(),
        category_id=payload.category_id,
        receipt=payload.receipt,
    )


def delete_entry(db: Session, entry_id: int, actor: Actor) -> None:
    entry = db.get(PettyCash, entry_id)
    if entry is None:
        raise NotFound(f"Petty cash entry {entry_id} not found")
    with atomic(db):
        record_audit(
            db,
            actor,
            "DELETE",
            "PettyCash",
            entry.id,
            f"Deleted petty cash {entry.type}: {entry.amount:.2f}",
            data_before={"date": entry.date, "type": entry.type, "amount": entry.amount},
        )
        db.delete(entry)


def list_entries(
    db: Session,
    entry_type: str,
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = 1,
    limit: Optional[int] = None,
):
    """One page of income or expense entries plus the all-time balance."""
    if entry_type not in (PETTY_CASH_IN, PETTY_CASH_OUT):
        raise ValidationError("type must be 'in' or 'out'")
    stmt = select(PettyCash).where(PettyCash.type == entry_type)
    if date_from:
        stmt = stmt.where(PettyCash.date >= date_from)
    if date_to:
        stmt = stmt.where(PettyCash.date <= date_to)
    stmt = stmt.order_by(PettyCash.date.desc(), PettyCash.id.desc())
    rows, meta = paginate(db, stmt, page, limit)
    return rows, current_balance(db), meta


def resolve_period(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> tuple[date, date]:
    if date_from and date_to:
        if date_from > date_to:
            raise ValidationError("date_from must not be after date_to")
        return date_from, date_to
    today = utcnow().date()
    if month or year:
        month = month or today.month
        year = year or today.year
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12")
        return month_bounds(year, month)
    return month_bounds(today.year, today.month)


def petty_cash_report(
    db: Session,
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> PettyCashReport:
    start, end = resolve_period(date_from, date_to, month, year)
    opening = current_balance(db, before=start)

    entries = db.execute(
        select(PettyCash)
        .where(PettyCash.date >= start, PettyCash.date <= end)
        .order_by(PettyCash.date.asc(), PettyCash.id.asc())
    ).scalars().unique().all()

    running = opening
    total_income = 0.0
    total_expense = 0.0
    by_category: dict[str, float] = {}
    transactions = []
    for entry in entries:
        if entry.type == PETTY_CASH_IN:
            running += entry.amount
            total_income += entry.amount
        else:
            running -= entry.amount
            total_expense += entry.amount
            name = entry.category.name if entry.category else UNCATEGORISED
            by_category[name] = by_category.get(name, 0.0) + entry.amount
        base = PettyCashRead.model_validate(entry)
        transactions.append(PettyCashLedgerRow(**base.model_dump(), running_balance=running))

    return PettyCashReport(
        opening_balance=opening,
        total_income=total_income,
        total_expense=total_expense,
        closing_balance=opening + total_income - total_expense,
        transactions=transactions,
        expense_by_category=[
            ExpenseByCategory(name=name, value=value)
            for name, value in sorted(by_category.items(), key=lambda pair: pair[1], reverse=True)
        ],
        period=ReportPeriod(date_from=start, date_to=end),
    )
