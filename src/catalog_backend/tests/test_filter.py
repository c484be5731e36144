"""
Tests for declarative filter expressions.
"""

import pytest

from catalog_backend.interface.filter import MATCH_ALL, and_filter, apply_filters, or_filter
from catalog_backend.model import Book
from catalog_backend.tests.fixtures import add_book


def matching_codes(session, filters):
    return sorted(book.book_code for book in session.query(Book).filter(apply_filters(Book, filters)).all())


@pytest.mark.unit
class TestCombinators:

    def test_and_drops_missing_conditions(self):
        assert and_filter(None, None) == MATCH_ALL
        assert and_filter({"a": 1}, None) == {"a": 1}
        assert and_filter({"a": 1}, {"b": 2}) == {"and": [{"a": 1}, {"b": 2}]}

    def test_or_single_condition(self):
        assert or_filter({"a": 1}) == {"a": 1}
        assert or_filter({"a": 1}, {"b": 2}) == {"or": [{"a": 1}, {"b": 2}]}


@pytest.mark.unit
class TestApplyFilters:

    @pytest.fixture(autouse=True)
    def books(self, session):
        add_book(session, "A", "Mathematics", 1, created_by="Leo")
        add_book(session, "B", "English", 2, created_by="pat")
        add_book(session, "C", "Science", 3, created_by=None)

    def test_match_all(self, session):
        assert matching_codes(session, MATCH_ALL) == ["A", "B", "C"]

    def test_empty_groups(self, session):
        assert matching_codes(session, {"or": []}) == []
        assert matching_codes(session, {"and": []}) == ["A", "B", "C"]

    def test_plain_equality(self, session):
        assert matching_codes(session, {"grade_level": 2}) == ["B"]

    def test_case_insensitive_equality(self, session):
        assert matching_codes(session, {"created_by": {"ieq": "LEO"}}) == ["A"]

    def test_membership(self, session):
        assert matching_codes(session, {"learning_area": {"in": ["English", "Science"]}}) == ["B", "C"]
        assert matching_codes(session, {"learning_area": {"not_in": ["Science"]}}) == ["A", "B"]
        assert matching_codes(session, {"learning_area": {"in": []}}) == []

    def test_ranges_and_nulls(self, session):
        assert matching_codes(session, {"grade_level": {"between": [2, 3]}}) == ["B", "C"]
        assert matching_codes(session, {"grade_level": {"geq": 2, "lt": 3}}) == ["B"]
        assert matching_codes(session, {"created_by": {"is_null": True}}) == ["C"]

    def test_nested(self, session):
        filters = {"or": [{"and": [{"grade_level": {"leq": 2}}, {"learning_area": "English"}]}, {"book_code": "C"}]}
        assert matching_codes(session, filters) == ["B", "C"]

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            apply_filters(Book, {"title": {"regex": ".*"}})
