from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from warehouse.core.security import Actor
from warehouse.dependencies import get_db, require_auth
from warehouse.schemas.audit import ImportLogRead, ImportResult
from warehouse.schemas.common import Page
from warehouse.services import ingestion_service

router = APIRouter(prefix="/import", tags=["Import"])

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/logs", response_model=Page[ImportLogRead])
def list_import_logs(
    kind: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    rows, meta = ingestion_service.list_import_logs(db, kind=kind, page=page, limit=limit)
    return {"data": rows, "meta": meta}


@router.get("/templates/{kind}")
def download_template(kind: str):
    content = ingestion_service.build_template(kind)
    return Response(
        content=content,
        media_type=_XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="template_{kind}.xlsx"'},
    )


@router.post("/{kind}", response_model=ImportResult)
def import_excel(
    kind: str,
    file: UploadFile = File(...),
    dry_run: bool = False,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_auth),
):
    content = file.file.read()
    return ingestion_service.import_workbook(
        db,
        content,
        kind,
        actor,
        filename=file.filename,
        dry_run=dry_run,
    )


__all__ = ["router"]
