"""
Shared builders for test data.
"""

from catalog_backend.model import Book, Remark
from catalog_backend.permissions.principal import CatalogUser


def make_user(username, role="Facilitator", is_admin_access=False, rules=None, name=None) -> CatalogUser:
    """Build an acting user; ``rules`` is a list of (areas, grades) tuples"""
    return CatalogUser(
        username=username,
        name=name or username.title(),
        role=role,
        is_admin_access=is_admin_access,
        access_rules=[
            {"learning_areas": areas, "grade_levels": grades}
            for areas, grades in (rules or [])
        ],
    )


def add_book(session, book_code, learning_area="Mathematics", grade_level=1, created_by="system",
             publisher="Rex", title=None, status="For Evaluation") -> Book:
    book = Book(
        book_code=book_code,
        learning_area=learning_area,
        grade_level=grade_level,
        publisher=publisher,
        title=title or f"Book {book_code}",
        status=status,
        created_by=created_by,
    )
    session.add(book)
    session.commit()
    return book


def add_remark(session, book_code, text="Checked", **fields) -> Remark:
    remark = Remark(book_code=book_code, text=text, **fields)
    session.add(remark)
    session.commit()
    return remark


def auth(username):
    return {"X-Authenticated-User": username}
