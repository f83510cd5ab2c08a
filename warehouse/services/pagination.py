from sqlalchemy import func, select
from sqlalchemy.orm import Session

from warehouse.config import get_settings
from warehouse.schemas.common import PageMeta, build_meta


def normalize_paging(page: int | None, limit: int | None) -> tuple[int, int]:
    settings = get_settings()
    page = max(1, int(page or 1))
    limit = int(limit or settings.DEFAULT_PAGE_SIZE)
    limit = max(1, min(limit, settings.MAX_PAGE_SIZE))
    return page, limit


def paginate(db: Session, stmt, page: int | None, limit: int | None) -> tuple[list, PageMeta]:
    page, limit = normalize_paging(page, limit)
    total = db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    rows = db.execute(stmt.offset((page - 1) * limit).limit(limit)).scalars().unique().all()
    return list(rows), build_meta(page, limit, total)


def contains(value: str) -> str:
    escaped = value.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
