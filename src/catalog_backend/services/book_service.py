import logging
import random
import string
import time
from enum import Enum
from typing import Optional
from sqlalchemy import exc
from sqlalchemy.orm import Session

from catalog_backend.api.cache import BookListCache
from catalog_backend.api.exceptions import (
    BadRequestException,
    ForbiddenException,
    InternalServerException,
    NotFoundException,
    ValidationException,
)
from catalog_backend.interface.books import (
    BookCreate,
    BookGet,
    BookListResponse,
    BookQuery,
    BookUpdate,
    FilterOptions,
    RemarkCreate,
    RemarkGet,
    RemarkUpdate,
)
from catalog_backend.interface.filter import apply_filters
from catalog_backend.model.book import Book, Remark, utcnow
from catalog_backend.permissions.core import AccessPolicy, get_access_policy
from catalog_backend.permissions.principal import CatalogUser
from catalog_backend.permissions.query_builders import BookFilterBuilder
from catalog_backend.services.aggregation import attach_remarks, books_with_remark_counts, to_book_get
from catalog_backend.services.pagination import page_metadata, paginate, parse_cursor

logger = logging.getLogger(__name__)

SYSTEM_USERNAME = "system"
SYSTEM_DISPLAY_NAME = "System"

# Columns that never take NULL from an update payload
_REQUIRED_BOOK_FIELDS = ["learning_area", "grade_level", "publisher", "title", "status", "is_new"]
_REQUIRED_REMARK_FIELDS = ["text", "timestamp"]


def _actor_username(user: Optional[CatalogUser]) -> str:
    return user.username if user is not None else SYSTEM_USERNAME


def _actor_display_name(user: Optional[CatalogUser]) -> str:
    return user.display_name if user is not None else SYSTEM_DISPLAY_NAME


def _column_value(value):
    return value.value if isinstance(value, Enum) else value


def _rollback(db: Session, message: str, e: Exception):
    db.rollback()
    logger.error(f"{message}: {e}")

    if isinstance(e, exc.IntegrityError):
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
        raise BadRequestException(detail=error_msg.split('\n')[0])

    raise InternalServerException(detail=message)


# Reads

def query_books(user: Optional[CatalogUser], db: Session, params: BookQuery,
                policy: Optional[AccessPolicy] = None) -> BookListResponse:
    """Filter, join, count and paginate one page of books for the acting user"""

    cursor_id = parse_cursor(params.cursor)

    filters = BookFilterBuilder(policy).build_filter(user, params)
    logger.debug(f"Book list filter for {_actor_username(user)}: {filters}")

    try:
        query = books_with_remark_counts(db, apply_filters(Book, filters), params.has_remarks)

        # Counted without the cursor predicate and window
        total = query.order_by(None).count()

        rows = paginate(query, params, cursor_id).all()

        data = attach_remarks(db, rows)
        filter_options = get_filter_options(db)

    except exc.SQLAlchemyError as e:
        logger.error(f"Error fetching books: {e}")
        raise InternalServerException(detail="Error fetching books")

    return BookListResponse(
        data=data,
        pagination=page_metadata(params, total, len(rows), cursor_id),
        filters=filter_options,
    )


async def list_books(user: Optional[CatalogUser], db: Session, params: BookQuery,
                     cache: Optional[BookListCache] = None) -> BookListResponse:

    if cache is not None:
        cached_response = await cache.get(params, user)
        if cached_response is not None:
            return cached_response

    response = query_books(user, db, params)

    if cache is not None:
        await cache.set(params, user, response)

    return response


def _distinct_values(db: Session, column) -> list:
    return [row[0] for row in db.query(column).distinct().all() if row[0] is not None]


def get_filter_options(db: Session) -> FilterOptions:
    """Distinct values over the whole catalog, independent of any filter"""
    return FilterOptions(
        available_statuses=sorted(_distinct_values(db, Book.status)),
        available_learning_areas=sorted(_distinct_values(db, Book.learning_area)),
        available_publishers=sorted(_distinct_values(db, Book.publisher)),
        grade_levels=sorted(_distinct_values(db, Book.grade_level)),
    )


def _get_book_or_404(db: Session, book_code: str) -> Book:
    book = db.query(Book).filter(Book.book_code == book_code).first()

    if book is None:
        raise NotFoundException(detail=f"Book with code {book_code} not found")

    return book


def get_book(db: Session, book_code: str) -> BookGet:
    book = _get_book_or_404(db, book_code)

    remarks = (
        db.query(Remark)
        .filter(Remark.book_code == book_code)
        .order_by(Remark.from_date.asc(), Remark.timestamp.asc(), Remark.id.asc())
        .all()
    )

    return to_book_get(book, remarks)


# Mutations

def generate_book_code() -> str:
    """Six trailing digits of the epoch milliseconds plus four random characters"""
    millis = str(int(time.time() * 1000))[-6:]
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"{millis}{suffix}"


def _book_code_exists(db: Session, book_code: str) -> bool:
    return db.query(Book.id).filter(Book.book_code == book_code).first() is not None


def _ensure_may_modify(policy: AccessPolicy, user: Optional[CatalogUser], book: Book, action: str, message: str):
    if user is None:
        return

    if not policy.may_modify(user, book.created_by, book.learning_area, book.grade_level):
        logger.warning(f"Unauthorized {action} attempt by user {user.username} for book {book.book_code}")
        raise ForbiddenException(detail=message)


def _new_remark(book_code: str, text: str, user: Optional[CatalogUser], **fields) -> Remark:
    remark = Remark(
        book_code=book_code,
        text=text,
        created_by=_actor_display_name(user),
        **fields,
    )

    if remark.timestamp is None:
        remark.timestamp = utcnow()

    return remark


async def create_book(user: Optional[CatalogUser], db: Session, entity: BookCreate,
                      cache: Optional[BookListCache] = None,
                      policy: Optional[AccessPolicy] = None) -> BookGet:

    policy = policy or get_access_policy()

    if user is not None and not policy.may_access(user, entity.learning_area, entity.grade_level):
        logger.warning(f"Unauthorized create attempt by user {user.username} for area {entity.learning_area}")
        raise ForbiddenException(detail="You do not have permission to create books in this learning area or grade level.")

    book_code = entity.book_code

    if book_code:
        if _book_code_exists(db, book_code):
            raise ForbiddenException(detail=f"Book code {book_code} already exists.")
    else:
        book_code = generate_book_code()
        while _book_code_exists(db, book_code):
            book_code = generate_book_code()

    book = Book(
        book_code=book_code,
        learning_area=entity.learning_area,
        grade_level=entity.grade_level,
        publisher=entity.publisher,
        title=entity.title,
        status=_column_value(entity.status),
        is_new=entity.is_new is not False,
        ntp_date=entity.ntp_date,
        created_by=_actor_username(user),
        updated_by=_actor_username(user),
    )

    try:
        db.add(book)

        if entity.remark:
            db.add(_new_remark(book_code, entity.remark, user))

        db.commit()
    except exc.SQLAlchemyError as e:
        _rollback(db, f"Error creating book {book_code}", e)

    logger.info(f"Book created successfully: {book_code} by {_actor_username(user)}")

    if cache is not None:
        await cache.invalidate()

    return get_book(db, book_code)


async def update_book(user: Optional[CatalogUser], db: Session, book_code: str, entity: BookUpdate,
                      cache: Optional[BookListCache] = None,
                      policy: Optional[AccessPolicy] = None) -> BookGet:

    policy = policy or get_access_policy()

    book = _get_book_or_404(db, book_code)

    _ensure_may_modify(policy, user, book, "update", "You do not have permission to update this book.")

    fields = entity.model_dump(exclude_unset=True, exclude={"book_code", "remark"})
    fields = {
        key: _column_value(value) for key, value in fields.items()
        if value is not None or key not in _REQUIRED_BOOK_FIELDS
    }

    new_area = fields.get("learning_area", book.learning_area)
    new_grade = fields.get("grade_level", book.grade_level)

    if not policy.may_relocate(user, book.created_by, new_area, new_grade):
        logger.warning(f"Unauthorized move of book {book_code} to {new_area}/{new_grade} by {user.username}")
        raise ForbiddenException(detail="You do not have permission to move this book to the specified learning area or grade level.")

    new_book_code = book_code
    if entity.book_code and entity.book_code != book_code:
        if _book_code_exists(db, entity.book_code):
            raise ForbiddenException(detail=f"Book code {entity.book_code} already exists.")
        new_book_code = entity.book_code

    old_status = book.status

    try:
        for key, value in fields.items():
            setattr(book, key, value)

        book.updated_by = _actor_username(user)

        if new_book_code != book_code:
            book.book_code = new_book_code
            db.flush()
            db.query(Remark).filter(Remark.book_code == book_code).update(
                {Remark.book_code: new_book_code}, synchronize_session=False
            )

        if entity.remark:
            db.add(_new_remark(new_book_code, entity.remark, user))

        db.commit()
    except exc.SQLAlchemyError as e:
        _rollback(db, f"Error updating book {book_code}", e)

    logger.info(f"Book updated successfully: {book_code} -> {new_book_code}")
    if "status" in fields and fields["status"] != old_status:
        logger.info(f"Status changed: {old_status} -> {fields['status']} for {new_book_code}")

    if cache is not None:
        await cache.invalidate()

    return get_book(db, new_book_code)


async def delete_book(user: Optional[CatalogUser], db: Session, book_code: str,
                      cache: Optional[BookListCache] = None,
                      policy: Optional[AccessPolicy] = None):

    policy = policy or get_access_policy()

    book = _get_book_or_404(db, book_code)

    _ensure_may_modify(policy, user, book, "delete", "You do not have permission to delete this book.")

    try:
        db.query(Remark).filter(Remark.book_code == book_code).delete(synchronize_session=False)
        db.delete(book)
        db.commit()
    except exc.SQLAlchemyError as e:
        _rollback(db, f"Error deleting book {book_code}", e)

    logger.info(f"Book deleted successfully: {book_code}")

    if cache is not None:
        await cache.invalidate()


# Remarks

def parse_remark_id(remark_id: str) -> int:
    if not str(remark_id).isdigit():
        raise ValidationException(detail="Invalid remarkId format")
    return int(remark_id)


def _get_book_remark(db: Session, book_code: str, remark_id: str) -> Remark:
    remark = db.query(Remark).filter(Remark.id == parse_remark_id(remark_id)).first()

    if remark is None:
        raise NotFoundException(detail=f"Remark with ID {remark_id} not found")

    if remark.book_code != book_code:
        raise ForbiddenException(detail="Remark does not belong to this book")

    return remark


async def add_remark(user: Optional[CatalogUser], db: Session, book_code: str, entity: RemarkCreate,
                     cache: Optional[BookListCache] = None,
                     policy: Optional[AccessPolicy] = None) -> RemarkGet:

    policy = policy or get_access_policy()

    book = _get_book_or_404(db, book_code)

    _ensure_may_modify(policy, user, book, "add remark", "You do not have permission to add remarks to this book.")

    remark = _new_remark(book_code, entity.text, user, **entity.model_dump(exclude={"text"}))

    try:
        db.add(remark)
        db.commit()
        db.refresh(remark)
    except exc.SQLAlchemyError as e:
        _rollback(db, f"Error adding remark to book {book_code}", e)

    logger.info(f"Remark added to book {book_code}")

    if cache is not None:
        await cache.invalidate()

    return RemarkGet.model_validate(remark, from_attributes=True)


async def update_remark(user: Optional[CatalogUser], db: Session, book_code: str, remark_id: str,
                        entity: RemarkUpdate,
                        cache: Optional[BookListCache] = None,
                        policy: Optional[AccessPolicy] = None) -> RemarkGet:

    policy = policy or get_access_policy()

    book = _get_book_or_404(db, book_code)
    remark = _get_book_remark(db, book_code, remark_id)

    _ensure_may_modify(policy, user, book, "update remark", "You do not have permission to update remarks on this book.")

    fields = {
        key: value for key, value in entity.model_dump(exclude_unset=True).items()
        if value is not None or key not in _REQUIRED_REMARK_FIELDS
    }

    try:
        for key, value in fields.items():
            setattr(remark, key, value)
        db.commit()
        db.refresh(remark)
    except exc.SQLAlchemyError as e:
        _rollback(db, f"Error updating remark {remark_id} for book {book_code}", e)

    logger.info(f"Remark {remark_id} updated for book {book_code}")

    if cache is not None:
        await cache.invalidate()

    return RemarkGet.model_validate(remark, from_attributes=True)


async def delete_remark(user: Optional[CatalogUser], db: Session, book_code: str, remark_id: str,
                        cache: Optional[BookListCache] = None,
                        policy: Optional[AccessPolicy] = None):

    policy = policy or get_access_policy()

    book = _get_book_or_404(db, book_code)
    remark = _get_book_remark(db, book_code, remark_id)

    _ensure_may_modify(policy, user, book, "delete remark", "You do not have permission to delete remarks on this book.")

    try:
        db.delete(remark)
        db.commit()
    except exc.SQLAlchemyError as e:
        _rollback(db, f"Error deleting remark {remark_id} from book {book_code}", e)

    logger.info(f"Remark {remark_id} deleted from book {book_code}")

    if cache is not None:
        await cache.invalidate()
