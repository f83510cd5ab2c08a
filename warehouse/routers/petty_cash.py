from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from warehouse.core.constants import PETTY_CASH_IN, PETTY_CASH_OUT
from warehouse.core.security import Actor
from warehouse.dependencies import get_db, require_auth
from warehouse.schemas.common import MessageResponse
from warehouse.schemas.petty_cash import (
    PettyCashCategoryCreate,
    PettyCashCategoryRead,
    PettyCashExpenseCreate,
    PettyCashIncomeCreate,
    PettyCashPage,
    PettyCashRead,
    PettyCashReport,
)
from warehouse.services import petty_cash_service

router = APIRouter(prefix="/petty-cash", tags=["Petty Cash"])


def _page(db: Session, entry_type: str, date_from, date_to, page, limit):
    rows, balance, meta = petty_cash_service.list_entries(
        db, entry_type, date_from=date_from, date_to=date_to, page=page, limit=limit
    )
    return {"data": rows, "balance": balance, "meta": meta}


@router.get("/categories", response_model=list[PettyCashCategoryRead])
def list_categories(db: Session = Depends(get_db)):
    return petty_cash_service.list_categories(db)


@router.post("/categories", response_model=PettyCashCategoryRead, status_code=201)
def create_category(
    payload: PettyCashCategoryCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return petty_cash_service.create_category(db, payload, actor)


@router.get("/income", response_model=PettyCashPage)
def list_income(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    return _page(db, PETTY_CASH_IN, date_from, date_to, page, limit)


@router.post("/income", response_model=PettyCashRead, status_code=201)
def record_income(
    payload: PettyCashIncomeCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return petty_cash_service.record_income(db, payload, actor)


@router.get("/expense", response_model=PettyCashPage)
def list_expense(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    return _page(db, PETTY_CASH_OUT, date_from, date_to, page, limit)


@router.post("/expense", response_model=PettyCashRead, status_code=201)
def record_expense(
    payload: PettyCashExpenseCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return petty_cash_service.record_expense(db, payload, actor)


@router.get("/report", response_model=PettyCashReport)
def petty_cash_report(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return petty_cash_service.petty_cash_report(
        db, date_from=date_from, date_to=date_to, month=month, year=year
    )


@router.delete("/{entry_id}", response_model=MessageResponse)
def delete_entry(entry_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_auth)):
    petty_cash_service.delete_entry(db, entry_id, actor)
    return MessageResponse(message="Petty cash entry deleted")


__all__ = ["router"]
