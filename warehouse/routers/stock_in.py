from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from warehouse.core.security import Actor
from warehouse.dependencies import get_db, require_auth
from warehouse.schemas.common import MessageResponse, Page
from warehouse.schemas.stock import StockInCreate, StockInRead
from warehouse.services import stock_in_service

router = APIRouter(prefix="/transactions/stock-in", tags=["Stock In"])


@router.get("", response_model=Page[StockInRead])
def list_stock_ins(
    search: Optional[str] = None,
    supplier_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    rows, meta = stock_in_service.list_stock_ins(
        db,
        search=search,
        supplier_id=supplier_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    return {"data": rows, "meta": meta}


@router.post("", response_model=StockInRead, status_code=201)
def create_stock_in(
    payload: StockInCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return stock_in_service.create_stock_in(db, payload, actor)


@router.get("/{stock_in_id}", response_model=StockInRead)
def get_stock_in(stock_in_id: int, db: Session = Depends(get_db)):
    return stock_in_service.get_stock_in(db, stock_in_id)


@router.delete("/{stock_in_id}", response_model=MessageResponse)
def delete_stock_in(stock_in_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_auth)):
    stock_in_service.delete_stock_in(db, stock_in_id, actor)
    return MessageResponse(message="Stock-in deleted and stock reversed")


__all__ = ["router"]
