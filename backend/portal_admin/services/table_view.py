"""
Client-side style table state: filters, free-text search, pagination.

All filtering happens in memory over the rows of one aggregation pass.
Filters are intersective: a row must pass every active filter. The
free-text search is a case-insensitive substring match over the screen's
search fields.

Pagination rules:
  • Any filter change resets to page 1.
  • The requested page is clamped into [1, total_pages].
  • A page never holds more than page_size rows.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar

from portal_admin.core.config import settings
from portal_admin.schemas.rows import Page

RowT = TypeVar("RowT")

ALL = "all"


@dataclass(frozen=True, slots=True)
class RowFilter:
    """Active filters; None, "" and "all" disable a filter."""

    project_id: str | None = None
    status: str | None = None
    search: str = ""


def _is_active(value: str | None) -> bool:
    return value not in (None, "", ALL)


def _matches_search(row: Any, term: str, fields: Sequence[str]) -> bool:
    for name in fields:
        value = getattr(row, name, None)
        if value is not None and term in str(value).lower():
            return True
    return False


def filter_rows(
    rows: Iterable[RowT],
    row_filter: RowFilter,
    search_fields: Sequence[str],
    project_field: str = "project_id",
    status_field: str = "status",
) -> list[RowT]:
    """Return the rows that pass every active filter, order preserved."""
    term = row_filter.search.strip().lower()
    result: list[RowT] = []
    for row in rows:
        if _is_active(row_filter.project_id) and getattr(row, project_field, None) != row_filter.project_id:
            continue
        if _is_active(row_filter.status) and getattr(row, status_field, None) != row_filter.status:
            continue
        if term and not _matches_search(row, term, search_fields):
            continue
        result.append(row)
    return result


def paginate(rows: Sequence[RowT], page: int, page_size: int) -> Page[RowT]:
    """Slice one page out of rows (page is 1-based and clamped)."""
    page_size = max(1, page_size)
    total = len(rows)
    total_pages = max(1, math.ceil(total / page_size))
    page = min(max(1, page), total_pages)
    start = (page - 1) * page_size
    return Page(
        items=list(rows[start:start + page_size]),
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


class TableView(Generic[RowT]):
    """
    Filter + page state over one screen's rows.

    Rows can be swapped underneath (a new aggregation pass) without
    touching the filter; the current page is clamped when read.
    """

    def __init__(
        self,
        rows: Iterable[RowT],
        search_fields: Sequence[str],
        page_size: int | None = None,
        project_field: str = "project_id",
    ) -> None:
        self._rows = list(rows)
        self._search_fields = tuple(search_fields)
        self._project_field = project_field
        self.filter = RowFilter()
        self.page = 1
        self.page_size = min(page_size or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)

    def set_filter(self, **changes: Any) -> None:
        """Update one or more filters; always returns to page 1."""
        self.filter = replace(self.filter, **changes)
        self.page = 1

    def set_page(self, page: int) -> None:
        self.page = max(1, page)

    def set_page_size(self, page_size: int) -> None:
        self.page_size = min(max(1, page_size), settings.MAX_PAGE_SIZE)
        self.page = 1

    def filtered(self) -> list[RowT]:
        return filter_rows(
            self._rows,
            self.filter,
            self._search_fields,
            project_field=self._project_field,
        )

    def current_page(self) -> Page[RowT]:
        return paginate(self.filtered(), self.page, self.page_size)
