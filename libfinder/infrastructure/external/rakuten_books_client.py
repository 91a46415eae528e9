"""
Rakuten Books Search API client implementing the BookMetadataProvider port.

Rakuten paginates by 1-based page number (`page`) with `hits` items per
page, and searches by title only.
"""

import logging
from typing import Any, List, Optional

import requests

from libfinder.domain.entities import Book, BookPage
from libfinder.domain.errors import NotFoundError, ParseError, TransportError
from libfinder.domain.ports import BookMetadataProvider

logger = logging.getLogger(__name__)


class RakutenBooksClient(BookMetadataProvider):
    """
    Rakuten Books client.

    Usage:
        client = RakutenBooksClient(application_id="...")
        page = client.search("ドメイン駆動設計", page_size=20, page=0)
    """

    BASE_URL = "https://app.rakuten.co.jp/services/api/BooksBook/Search/20170404"

    AUTHOR_SEPARATOR = "/"

    def __init__(
        self,
        application_id: str,
        session: Optional[Any] = None,
        timeout: float = 10.0,
    ) -> None:
        """
        Args:
            application_id: Rakuten application id (required by the API)
            session: Optional HTTP session for dependency injection
            timeout: Per-request timeout in seconds
        """
        self._application_id = application_id
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout

    def search(self, query_text: str, page_size: int, page: int) -> BookPage:
        """
        Title search.

        Args:
            query_text: Title text (sent as `title`)
            page_size: Items per page (`hits`)
            page: 0-based page number, sent as the 1-based `page`
        """
        if not query_text or not query_text.strip():
            raise ValueError("query cannot be empty")

        return self._fetch_page({
            "title": query_text.strip(),
            "hits": page_size,
            "page": page + 1,
        })

    def get(self, isbn: str) -> Book:
        page = self._fetch_page({"isbn": isbn, "hits": 1})

        if not page.items:
            raise NotFoundError(f"isbn '{isbn}' not found in Rakuten Books")
        return page.items[0]

    def get_source_name(self) -> str:
        return "rakuten"

    def _fetch_page(self, params: dict) -> BookPage:
        params["applicationId"] = self._application_id

        try:
            response = self._session.get(self.BASE_URL, params=params, timeout=self._timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning("Rakuten Books request failed: %s", e)
            raise TransportError(f"Rakuten Books API request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Invalid JSON response from Rakuten Books API: {e}") from e

        return self._parse_page(data)

    def _parse_page(self, data: Any) -> BookPage:
        if not isinstance(data, dict):
            raise ParseError("Rakuten Books response is not a JSON object")

        total_count = data.get("count")
        items = data.get("Items")
        if not isinstance(total_count, int) or not isinstance(items, list):
            raise ParseError("Rakuten Books response lacks count or Items")

        books: List[Book] = []
        for wrapper in items:
            # each entry is {"Item": {...}}
            item = wrapper.get("Item") if isinstance(wrapper, dict) else None
            book = self._parse_item(item)
            if book is None:
                logger.debug("Dropping Rakuten item without title")
                continue
            books.append(book)

        return BookPage(items=books, total_count=total_count)

    def _parse_item(self, item: Any) -> Optional[Book]:
        if not isinstance(item, dict):
            return None

        title = item.get("title")
        if not isinstance(title, str) or not title.strip():
            return None

        author = _string(item.get("author"))
        authors = [name for name in author.split(self.AUTHOR_SEPARATOR) if name] if author else []

        return Book(
            title=title,
            authors=authors,
            publishers=_listed(item.get("publisherName")),
            issued_at=_string(item.get("salesDate")),
            isbn=_string(item.get("isbn")),
            language=None,
            descriptions=_listed(item.get("itemCaption")),
            annotations=_listed(item.get("size")),
            image_url=_string(item.get("smallImageUrl")),
            source=self.get_source_name(),
        )


def _string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _listed(value: Any) -> List[str]:
    text = _string(value)
    return [text] if text else []
