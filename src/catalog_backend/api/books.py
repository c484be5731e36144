import hashlib
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from catalog_backend.api.auth import get_current_user
from catalog_backend.api.cache import BookListCache, get_book_list_cache
from catalog_backend.database import get_db
from catalog_backend.interface.books import (
    BookCreate,
    BookListResponse,
    BookQuery,
    BookResponse,
    BookUpdate,
    MessageResponse,
    RemarkCreate,
    RemarkResponse,
    RemarkUpdate,
    SortOrder,
)
from catalog_backend.permissions.principal import CatalogUser
from catalog_backend.services import book_service

books_router = APIRouter()

LIST_CACHE_CONTROL = "public, max-age=120, stale-while-revalidate=600"


def etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    if not if_none_match:
        return False
    candidates = [candidate.strip() for candidate in if_none_match.split(",")]
    return "*" in candidates or etag in candidates


def conditional_json_response(request: Request, payload: str) -> Response:
    """Weak ETag over the serialized body; a matching If-None-Match yields 304"""

    etag = 'W/"' + hashlib.sha256(payload.encode()).hexdigest()[:32] + '"'
    headers = {"Cache-Control": LIST_CACHE_CONTROL, "ETag": etag}

    if etag_matches(request.headers.get("if-none-match"), etag):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)

    return Response(content=payload, media_type="application/json", headers=headers)


@books_router.get("", response_model=BookListResponse)
async def list_books(
    request: Request,
    user: Annotated[CatalogUser, Depends(get_current_user)],
    cache: Annotated[BookListCache, Depends(get_book_list_cache)],
    db: Session = Depends(get_db),
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.DESC, alias="sortOrder"),
    search: Optional[str] = Query(None),
    status_filter: Optional[List[str]] = Query(None, alias="status"),
    learning_area: Optional[List[str]] = Query(None, alias="learningArea"),
    grade_level: Optional[List[int]] = Query(None, alias="gradeLevel"),
    publisher: Optional[List[str]] = Query(None),
    has_remarks: Optional[bool] = Query(None, alias="hasRemarks"),
    admin_view: Optional[bool] = Query(None, alias="adminView"),
    cursor: Optional[str] = Query(None),
):
    try:
        params = BookQuery(
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
            search=search,
            status=status_filter,
            learning_area=learning_area,
            grade_level=grade_level,
            publisher=publisher,
            has_remarks=has_remarks,
            admin_view=admin_view,
            cursor=cursor,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))

    result = await book_service.list_books(user, db, params, cache)

    return conditional_json_response(request, result.model_dump_json(by_alias=True))


@books_router.get("/{book_code}", response_model=BookResponse)
async def get_book(
    request: Request,
    book_code: str,
    user: Annotated[CatalogUser, Depends(get_current_user)],
    db: Session = Depends(get_db),
):
    result = BookResponse(data=book_service.get_book(db, book_code), message="Book retrieved successfully")

    return conditional_json_response(request, result.model_dump_json(by_alias=True))


@books_router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    payload: BookCreate,
    user: Annotated[CatalogUser, Depends(get_current_user)],
    cache: Annotated[BookListCache, Depends(get_book_list_cache)],
    db: Session = Depends(get_db),
):
    book = await book_service.create_book(user, db, payload, cache)
    return BookResponse(data=book, message="Book created successfully")


@books_router.put("/{book_code}", response_model=BookResponse)
async def update_book(
    book_code: str,
    payload: BookUpdate,
    user: Annotated[CatalogUser, Depends(get_current_user)],
    cache: Annotated[BookListCache, Depends(get_book_list_cache)],
    db: Session = Depends(get_db),
):
    book = await book_service.update_book(user, db, book_code, payload, cache)
    return BookResponse(data=book, message="Book updated successfully")


@books_router.delete("/{book_code}", response_model=MessageResponse)
async def delete_book(
    book_code: str,
    user: Annotated[CatalogUser, Depends(get_current_user)],
    cache: Annotated[BookListCache, Depends(get_book_list_cache)],
    db: Session = Depends(get_db),
):
    await book_service.delete_book(user, db, book_code, cache)
    return MessageResponse(message="Book deleted successfully")


@books_router.post("/{book_code}/remarks", response_model=RemarkResponse, status_code=status.HTTP_201_CREATED)
async def add_remark(
    book_code: str,
    payload: RemarkCreate,
    user: Annotated[CatalogUser, Depends(get_current_user)],
    cache: Annotated[BookListCache, Depends(get_book_list_cache)],
    db: Session = Depends(get_db),
):
    remark = await book_service.add_remark(user, db, book_code, payload, cache)
    return RemarkResponse(data=remark, message="Remark added successfully")


@books_router.put("/{book_code}/remarks/{remark_id}", response_model=RemarkResponse)
async def update_remark(
    book_code: str,
    remark_id: str,
    payload: RemarkUpdate,
    user: Annotated[CatalogUser, Depends(get_current_user)],
    cache: Annotated[BookListCache, Depends(get_book_list_cache)],
    db: Session = Depends(get_db),
):
    remark = await book_service.update_remark(user, db, book_code, remark_id, payload, cache)
    return RemarkResponse(data=remark, message="Remark updated successfully")


@books_router.delete("/{book_code}/remarks/{remark_id}", response_model=MessageResponse)
async def delete_remark(
    book_code: str,
    remark_id: str,
    user: Annotated[CatalogUser, Depends(get_current_user)],
    cache: Annotated[BookListCache, Depends(get_book_list_cache)],
    db: Session = Depends(get_db),
):
    await book_service.delete_remark(user, db, book_code, remark_id, cache)
    return MessageResponse(message="Remark deleted successfully")
