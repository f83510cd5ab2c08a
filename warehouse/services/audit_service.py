from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from warehouse.core.security import Actor
from warehouse.models.audit_log import AuditLog
from warehouse.services.pagination import paginate

_SENSITIVE_KEYS = {"password", "token", "secret", "api_key", "apikey", "access_token"}


def _jsonable(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def sanitize_for_audit(data: Optional[dict]) -> Optional[dict]:
    if data is None:
        return None
    sanitized = {}
    for key, value in data.items():
        if str(key).lower() in _SENSITIVE_KEYS:
            sanitized[key] = "[REDACTED]"
        else:
            sanitized[key] = _jsonable(value)
    return sanitized


def record_audit(
    db: Session,
    actor: Actor,
    action: str,
    table_name: str,
    record_id: Optional[int],
    description: str,
    *,
    data_before: Optional[dict] = None,
    data_after: Optional[dict] = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction."""
    entry = AuditLog(
        actor=actor.name,
        action=action,
        table_name=table_name,
        record_id=record_id,
        description=description[:500],
        data_before=sanitize_for_audit(data_before),
        data_after=sanitize_for_audit(data_after),
    )
    db.add(entry)
    return entry


def list_audit_logs(
    db: Session,
    *,
    action: Optional[str] = None,
    table_name: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
):
    stmt = select(AuditLog)
    if action:
        stmt = stmt.where(AuditLog.action == action.upper())
    if table_name:
        stmt = stmt.where(AuditLog.table_name == table_name)
    stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    return paginate(db, stmt, page, limit)
