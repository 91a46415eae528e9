"""
API endpoints for book metadata.

Backends are synchronous, so these are plain `def` routes and run in
FastAPI's thread pool.
"""

from fastapi import APIRouter, Depends, Query

from libfinder.api.v1 import schemas as api
from libfinder.api.v1.converters import domain_book_page_to_api, domain_book_to_api
from libfinder.api.v1.dependencies import get_book_search_service
from libfinder.api.v1.errors import to_http_exception
from libfinder.domain.errors import LibfinderError
from libfinder.domain.services import BookSearchService
from libfinder.domain.value_objects import PageRequest

router = APIRouter()


@router.get("/books", response_model=api.BookPage)
def search_books(
    q: str = Query(min_length=1, description="Free-text query"),
    backend: str = Query(default="ndl", description="ndl, google or rakuten"),
    page_size: int = Query(default=20, ge=1, le=100),
    page: int = Query(default=0, ge=0),
    service: BookSearchService = Depends(get_book_search_service),
) -> api.BookPage:
    """
    Search books on one metadata backend.

    Returns:
        BookPage whose total_count is the backend's hit count
    """
    try:
        result = service.search(backend, q, PageRequest(page_size=page_size, page=page))
    except (ValueError, LibfinderError) as e:
        raise to_http_exception(e) from e

    return domain_book_page_to_api(result)


@router.get("/books/{isbn}", response_model=api.Book)
def get_book(
    isbn: str,
    backend: str = Query(default="ndl", description="ndl, google or rakuten"),
    service: BookSearchService = Depends(get_book_search_service),
) -> api.Book:
    """
    Get one book by isbn.

    Raises:
        404: The backend has no record for the isbn
    """
    try:
        book = service.get(backend, isbn)
    except (ValueError, LibfinderError) as e:
        raise to_http_exception(e) from e

    return domain_book_to_api(book)
