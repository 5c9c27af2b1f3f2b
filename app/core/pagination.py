"""Pagination helpers."""

from typing import Generic, Sequence, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

MAX_PAGE_SIZE = 200


class Page(BaseModel, Generic[T]):
    items: list[T]
    limit: int
    offset: int
    total: int | None = None
    has_next_page: bool = False


def paginate(limit: int, offset: int, max_limit: int = MAX_PAGE_SIZE) -> tuple[int, int]:
    """Clamp limit/offset; return (limit, offset)."""
    limit = max(1, min(limit, max_limit))
    offset = max(0, offset)
    return limit, offset


def build_page(items: Sequence[T], limit: int, offset: int, total: int) -> Page[T]:
    return Page(
        items=list(items),
        limit=limit,
        offset=offset,
        total=total,
        has_next_page=offset + len(items) < total,
    )
