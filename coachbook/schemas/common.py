# coachbook/schemas/common.py

from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, *, total: int, page: int, limit: int) -> "PageMeta":
        pages = (total + limit - 1) // limit if limit else 0
        return cls(total=total, page=page, limit=limit, total_pages=pages)


class Page(BaseModel, Generic[T]):
    items: List[T] = Field(default_factory=list)
    meta: PageMeta
