"""Unit tests for portal_admin.services.table_view — filters and pages."""

from dataclasses import dataclass

from portal_admin.core.config import settings
from portal_admin.services.table_view import ALL, RowFilter, TableView, filter_rows, paginate


@dataclass
class Row:
    project_id: str
    status: str
    file_name: str
    customer_email: str = ""


ROWS = [
    Row("p1", "unread", "Report-Jan.pdf", "anna@example.com"),
    Row("p1", "read", "photo.jpg", "anna@example.com"),
    Row("p2", "unread", "report-feb.pdf", "ben@example.com"),
    Row("p2", "read", "invoice.pdf", "ben@example.com"),
]
FIELDS = ("file_name", "customer_email")


class TestFilterRows:
    def test_inactive_filters_keep_everything(self):
        assert filter_rows(ROWS, RowFilter(project_id=ALL, status="", search="  "), FIELDS) == ROWS

    def test_filters_are_intersective(self):
        result = filter_rows(ROWS, RowFilter(project_id="p2", search="REPORT"), FIELDS)
        assert [r.file_name for r in result] == ["report-feb.pdf"]

        result = filter_rows(ROWS, RowFilter(project_id="p1", status="unread", search="ben"), FIELDS)
        assert result == []

    def test_search_is_case_insensitive_substring(self):
        result = filter_rows(ROWS, RowFilter(search="Anna@"), FIELDS)
        assert [r.file_name for r in result] == ["Report-Jan.pdf", "photo.jpg"]


class TestPaginate:
    def test_page_never_exceeds_size(self):
        page = paginate(list(range(7)), 2, 3)
        assert page.items == [3, 4, 5]
        assert (page.total, page.total_pages) == (7, 3)

    def test_page_is_clamped(self):
        assert paginate(list(range(7)), 99, 3).page == 3
        assert paginate(list(range(7)), 0, 3).page == 1
        empty = paginate([], 4, 10)
        assert (empty.page, empty.total_pages, empty.items) == (1, 1, [])


class TestTableView:
    def test_filter_change_resets_page(self):
        view = TableView(ROWS, FIELDS, page_size=1)
        view.set_page(3)
        assert view.current_page().page == 3

        view.set_filter(status="read")
        assert view.page == 1
        assert [r.file_name for r in view.current_page().items] == ["photo.jpg"]

    def test_page_size_is_capped(self):
        view = TableView(ROWS, FIELDS, page_size=10_000)
        assert view.page_size == settings.MAX_PAGE_SIZE

        view.set_page(2)
        view.set_page_size(10_000)
        assert view.page_size == settings.MAX_PAGE_SIZE
        assert view.page == 1
