from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class AuditLogRead(BaseModel):
    id: int
    actor: str
    action: str
    table_name: str
    record_id: Optional[int] = None
    data_before: Optional[dict[str, Any]] = None
    data_after: Optional[dict[str, Any]] = None
    description: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ImportRowError(BaseModel):
    row: int
    data: dict[str, Any]
    errors: List[str]


class ImportResult(BaseModel):
    kind: str
    success: int
    skipped: int
    failed: int
    total: int
    errors: List[ImportRowError]


class ImportLogRead(BaseModel):
    id: int
    type: str
    filename: Optional[str] = None
    total_rows: int
    success_rows: int
    skipped_rows: int
    failed_rows: int
    errors: Optional[List[dict[str, Any]]] = None
    created_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
