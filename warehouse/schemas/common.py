from typing import Generic, List, TypeVar

from pydantic import BaseModel, BeforeValidator

T = TypeVar("T")


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class Page(BaseModel, Generic[T]):
    data: List[T]
    meta: PageMeta


class MessageResponse(BaseModel):
    message: str


def build_meta(page: int, limit: int, total: int) -> PageMeta:
    total_pages = (total + limit - 1) // limit if limit else 0
    return PageMeta(page=page, limit=limit, total=total, total_pages=total_pages)


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Form submissions send "" for untouched optional inputs.
BlankToNone = BeforeValidator(_blank_to_none)
