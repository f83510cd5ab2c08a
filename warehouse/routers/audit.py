from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from warehouse.core.security import Actor
from warehouse.dependencies import get_db, require_auth
from warehouse.schemas.audit import AuditLogRead
from warehouse.schemas.common import Page
from warehouse.services.audit_service import list_audit_logs

router = APIRouter(tags=["Audit"])


@router.get("/audit-logs", response_model=Page[AuditLogRead])
def audit_logs(
    action: Optional[str] = None,
    table_name: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    _actor: Actor = Depends(require_auth),
):
    rows, meta = list_audit_logs(db, action=action, table_name=table_name, page=page, limit=limit)
    return {"data": rows, "meta": meta}


__all__ = ["router"]
