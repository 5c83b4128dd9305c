"""
Listing search: WHERE-clause builder and pagination math.

Both are pure so they can be reasoned about (and tested) without a database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .schemas import ListingFilters, ListingStatus


@dataclass(frozen=True)
class SearchQuery:
    where_sql: str
    args: tuple[Any, ...]


@dataclass(frozen=True)
class PageMeta:
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @property
    def offset(self) -> int:
        return page_offset(self.page, self.page_size)

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNextPage": self.has_next_page,
            "hasPreviousPage": self.has_previous_page,
        }


def escape_like(text: str) -> str:
    """
    Escape LIKE wildcards so user text matches literally (default escape char `\\`).
    """
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_search_query(filters: ListingFilters) -> SearchQuery:
    """
    Translate filters into a WHERE clause over `listings l` with $n placeholders.

    Only ACTIVE listings are eligible. The text filter is a case-insensitive
    substring match on title OR description; price bounds are inclusive.
    """
    conditions: list[str] = []
    args: list[Any] = []

    def param(value: Any) -> str:
        args.append(value)
        return f"${len(args)}"

    conditions.append(f"l.status = {param(ListingStatus.ACTIVE.value)}")

    if filters.q:
        pattern = param(f"%{escape_like(filters.q)}%")
        conditions.append(f"(l.title ILIKE {pattern} OR l.description ILIKE {pattern})")

    if filters.category_id is not None:
        conditions.append(f"l.category_id = {param(filters.category_id)}")

    if filters.min_price is not None:
        conditions.append(f"l.price >= {param(filters.min_price)}")

    if filters.max_price is not None:
        conditions.append(f"l.price <= {param(filters.max_price)}")

    return SearchQuery(where_sql=" AND ".join(conditions), args=tuple(args))


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def total_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError("page_size must be positive.")
    # ceil(total / page_size) without floats
    return -(-total // page_size)


def page_meta(*, total: int, page: int, page_size: int) -> PageMeta:
    pages = total_pages(total, page_size)
    return PageMeta(
        page=page,
        page_size=page_size,
        total=total,
        total_pages=pages,
        has_next_page=page < pages,
        has_previous_page=page > 1,
    )
