"""
Tests for offset and cursor pagination.
"""

import pytest

from catalog_backend.api.exceptions import BadRequestException
from catalog_backend.interface.books import BookQuery
from catalog_backend.services.book_service import query_books
from catalog_backend.services.pagination import page_metadata, parse_cursor
from catalog_backend.tests.fixtures import add_book


@pytest.mark.unit
class TestPageMetadata:

    def test_last_page_of_exact_multiple(self):
        pagination = page_metadata(BookQuery(page=2, limit=5), total=10, returned=5)

        assert pagination.total_pages == 2
        assert pagination.has_next is False
        assert pagination.has_prev is True

    def test_first_page(self):
        pagination = page_metadata(BookQuery(page=1, limit=5), total=11, returned=5)

        assert pagination.total_pages == 3
        assert pagination.has_next is True
        assert pagination.has_prev is False

    def test_empty_result(self):
        pagination = page_metadata(BookQuery(), total=0, returned=0)

        assert pagination.total_pages == 0
        assert pagination.has_next is False

    def test_cursor_mode_assumes_more_after_full_page(self):
        pagination = page_metadata(BookQuery(limit=5, cursor="7"), total=10, returned=5, cursor_id=7)

        assert pagination.has_next is True
        assert pagination.has_prev is True

    def test_cursor_mode_partial_page(self):
        pagination = page_metadata(BookQuery(limit=5, cursor="7"), total=10, returned=3, cursor_id=7)
        assert pagination.has_next is False

    def test_serialized_with_camel_case(self):
        dumped = page_metadata(BookQuery(), total=1, returned=1).model_dump(by_alias=True)
        assert set(dumped) == {"currentPage", "totalPages", "totalItems", "itemsPerPage", "hasNext", "hasPrev"}


@pytest.mark.unit
class TestParseCursor:

    def test_valid(self):
        assert parse_cursor(None) is None
        assert parse_cursor("42") == 42

    def test_invalid(self):
        with pytest.raises(BadRequestException):
            parse_cursor("abc")


@pytest.mark.unit
class TestPaginateStore:

    @pytest.fixture(autouse=True)
    def books(self, session):
        self.books = [add_book(session, f"BK-{i:02d}", grade_level=(i % 12) + 1) for i in range(1, 8)]

    def codes(self, response):
        return [book.book_code for book in response.data]

    def test_offset_pages(self, session):
        first = query_books(None, session, BookQuery(limit=3, sort_by="bookCode", sort_order="asc"))
        last = query_books(None, session, BookQuery(page=3, limit=3, sort_by="bookCode", sort_order="asc"))

        assert self.codes(first) == ["BK-01", "BK-02", "BK-03"]
        assert self.codes(last) == ["BK-07"]
        assert first.pagination.total_items == 7
        assert last.pagination.total_pages == 3
        assert last.pagination.has_next is False

    def test_cursor_ascending(self, session):
        cursor = str(self.books[2].id)
        response = query_books(None, session, BookQuery(limit=3, sort_by="bookCode", sort_order="asc", cursor=cursor, page=3))

        assert self.codes(response) == ["BK-04", "BK-05", "BK-06"]
        # Total ignores the cursor predicate
        assert response.pagination.total_items == 7
        assert response.pagination.has_next is True
        assert response.pagination.has_prev is True

    def test_cursor_descending(self, session):
        cursor = str(self.books[2].id)
        response = query_books(None, session, BookQuery(limit=5, sort_by="bookCode", sort_order="desc", cursor=cursor))

        assert self.codes(response) == ["BK-02", "BK-01"]
        assert response.pagination.has_next is False

    def test_invalid_cursor(self, session):
        with pytest.raises(BadRequestException):
            query_books(None, session, BookQuery(cursor="next-page"))

    def test_ties_broken_by_id(self, session):
        response = query_books(None, session, BookQuery(limit=10, sort_by="learningArea", sort_order="asc"))
        assert self.codes(response) == [f"BK-{i:02d}" for i in range(1, 8)]
