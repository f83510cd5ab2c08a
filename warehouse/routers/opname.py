from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from warehouse.core.security import Actor
from warehouse.dependencies import get_db, require_auth
from warehouse.schemas.common import Page
from warehouse.schemas.opname import OpnameCandidate, OpnameDetail, OpnameRequest, OpnameResult, OpnameSummary
from warehouse.services import opname_service

router = APIRouter(prefix="/stock-opname", tags=["Stock Opname"])


@router.get("", response_model=list[OpnameCandidate])
def list_candidates(
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return opname_service.list_opname_candidates(db, category_id=category_id, search=search)


@router.post("", response_model=OpnameResult, status_code=201)
def reconcile(
    payload: OpnameRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    return opname_service.reconcile(db, payload, actor)


@router.get("/history", response_model=Page[OpnameSummary])
def opname_history(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    rows, meta = opname_service.opname_history(db, page=page, limit=limit)
    return {"data": rows, "meta": meta}


@router.get("/history/{opname_id}", response_model=OpnameDetail)
def opname_detail(opname_id: int, db: Session = Depends(get_db)):
    return opname_service.opname_detail(db, opname_id)


__all__ = ["router"]
