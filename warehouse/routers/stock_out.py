from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from warehouse.core.security import Actor
from warehouse.dependencies import get_db, require_auth
from warehouse.schemas.common import MessageResponse, Page
from warehouse.schemas.stock import ApprovalStats, RejectRequest, StockOutCreate, StockOutRead
from warehouse.services import stock_out_service

router = APIRouter(prefix="/transactions/stock-out", tags=["Stock Out"])


@router.get("", response_model=Page[StockOutRead])
def list_stock_outs(
    search: Optional[str] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    rows, meta = stock_out_service.list_stock_outs(
        db,
        search=search,
        status=status,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    return {"data": rows, "meta": meta}


@router.post("", response_model=StockOutRead, status_code=201)
def create_stock_out(
    payload: StockOutCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return stock_out_service.create_stock_out(db, payload, actor)


@router.get("/stats", response_model=ApprovalStats)
def approval_stats(db: Session = Depends(get_db)):
    return stock_out_service.approval_stats(db)


@router.get("/{stock_out_id}", response_model=StockOutRead)
def get_stock_out(stock_out_id: int, db: Session = Depends(get_db)):
    return stock_out_service.get_stock_out(db, stock_out_id)


@router.delete("/{stock_out_id}", response_model=MessageResponse)
def delete_stock_out(stock_out_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_auth)):
    stock_out_service.delete_stock_out(db, stock_out_id, actor)
    return MessageResponse(message="Stock-out request deleted")


@router.post("/{stock_out_id}/approve", response_model=StockOutRead)
def approve_stock_out(stock_out_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_auth)):
    return stock_out_service.approve_stock_out(db, stock_out_id, actor)


@router.post("/{stock_out_id}/reject", response_model=StockOutRead)
def reject_stock_out(
    stock_out_id: int,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return stock_out_service.reject_stock_out(db, stock_out_id, payload.reason, actor)


__all__ = ["router"]
