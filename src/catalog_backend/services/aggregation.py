"""
Joins books with their remarks.

The remark count used for the ``has_remarks`` filter comes from a grouped
subquery that is outer-joined to the book table, so the filter runs in SQL
before pagination. The remark arrays for the page are loaded afterwards in
the same session and ``remarks_count`` is derived from them.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from catalog_backend.interface.books import BookGet, RemarkGet
from catalog_backend.model.book import Book, Remark


def remark_counts_subquery(db: Session):
    return (
        db.query(
            Remark.book_code.label("book_code"),
            func.count(Remark.id).label("remarks_count"),
        )
        .group_by(Remark.book_code)
        .subquery()
    )


def books_with_remark_counts(db: Session, filter_clause, has_remarks: Optional[bool] = None) -> Query:
    counts = remark_counts_subquery(db)
    remarks_count = func.coalesce(counts.c.remarks_count, 0)

    query = (
        db.query(Book, remarks_count.label("remarks_count"))
        .outerjoin(counts, counts.c.book_code == Book.book_code)
        .filter(filter_clause)
    )

    if has_remarks is True:
        query = query.filter(remarks_count > 0)
    elif has_remarks is False:
        query = query.filter(remarks_count == 0)

    return query


def remarks_by_book_code(db: Session, book_codes: Sequence[str]) -> Dict[str, List[Remark]]:
    """Newest remark first"""
    grouped: Dict[str, List[Remark]] = defaultdict(list)

    if len(book_codes) == 0:
        return grouped

    remarks = (
        db.query(Remark)
        .filter(Remark.book_code.in_(list(book_codes)))
        .order_by(Remark.timestamp.desc(), Remark.id.desc())
        .all()
    )

    for remark in remarks:
        grouped[remark.book_code].append(remark)

    return grouped


def to_book_get(book: Book, remarks: Sequence[Remark]) -> BookGet:
    remark_items = [RemarkGet.model_validate(remark, from_attributes=True) for remark in remarks]

    return BookGet.model_validate(book, from_attributes=True).model_copy(
        update={"remarks": remark_items, "remarks_count": len(remark_items)}
    )


def attach_remarks(db: Session, rows: Sequence[Tuple[Book, int]]) -> List[BookGet]:
    books = [row[0] for row in rows]
    grouped = remarks_by_book_code(db, [book.book_code for book in books])

    return [to_book_get(book, grouped.get(book.book_code, [])) for book in books]
