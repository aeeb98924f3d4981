from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Optional, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT

T = TypeVar("T")


@dataclass(frozen=True)
class PageParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    data: Sequence[T] = field(default_factory=tuple)
    total: Optional[int] = None


def normalize_pagination(page: Optional[int], limit: Optional[int]) -> PageParams:
    """Clean up raw page/limit inputs.

    Rules:
        - page < 1 or None -> DEFAULT_PAGE
        - limit < 1 or None -> DEFAULT_PAGE_LIMIT
        - limit > MAX_PAGE_LIMIT -> MAX_PAGE_LIMIT
    """
    if page is None or int(page) < 1:
        page = DEFAULT_PAGE
    if limit is None or int(limit) < 1:
        limit = DEFAULT_PAGE_LIMIT
    if int(limit) > MAX_PAGE_LIMIT:
        limit = MAX_PAGE_LIMIT
    return PageParams(page=int(page), limit=int(limit))


def paginate(items: Sequence[T], params: PageParams) -> Page[T]:
    """Slice an in-memory sequence (used by fakes and the local bill book)."""

    chunk = tuple(items[params.offset : params.offset + params.limit])
    return Page(data=chunk, total=len(items))
