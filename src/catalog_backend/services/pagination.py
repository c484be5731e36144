import math
from typing import Optional
from sqlalchemy.orm import Query

from catalog_backend.api.exceptions import ValidationException
from catalog_backend.interface.books import BookQuery, Pagination, SortOrder
from catalog_backend.model.book import Book


def parse_cursor(cursor: Optional[str]) -> Optional[int]:
    """Cursors are book ids as handed out in a previous page"""
    if cursor is None:
        return None

    try:
        return int(str(cursor).strip())
    except ValueError:
        raise ValidationException(detail=f"Invalid cursor [{cursor}]")


def sort_clauses(params: BookQuery):
    column = getattr(Book, params.sort_by)

    # Ties on the sort column are broken by id in the same direction
    if params.sort_order == SortOrder.ASC:
        return [column.asc(), Book.id.asc()]
    return [column.desc(), Book.id.desc()]


def cursor_condition(params: BookQuery, cursor_id: int):
    if params.sort_order == SortOrder.ASC:
        return Book.id > cursor_id
    return Book.id < cursor_id


def paginate(query: Query, params: BookQuery, cursor_id: Optional[int] = None) -> Query:
    """Sort, then window the query either after the cursor or by page offset"""

    query = query.order_by(*sort_clauses(params))

    if cursor_id is not None:
        query = query.filter(cursor_condition(params, cursor_id))
    else:
        query = query.offset((params.page - 1) * params.limit)

    return query.limit(params.limit)


def page_metadata(params: BookQuery, total: int, returned: int, cursor_id: Optional[int] = None) -> Pagination:

    total_pages = math.ceil(total / params.limit)

    if cursor_id is not None:
        # A full page may still be the last one
        has_next = returned == params.limit
        has_prev = True
    else:
        has_next = params.page * params.limit < total
        has_prev = params.page > 1

    return Pagination(
        current_page=params.page,
        total_pages=total_pages,
        total_items=total,
        items_per_page=params.limit,
        has_next=has_next,
        has_prev=has_prev,
    )
