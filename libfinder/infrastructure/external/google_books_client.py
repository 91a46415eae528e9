"""
Google Books API client implementing the BookMetadataProvider port.

=============================================================================
NOTES: Infrastructure Adapter Pattern
=============================================================================

This class is an ADAPTER in Hexagonal Architecture. It:
1. Implements a domain PORT (BookMetadataProvider)
2. Handles infrastructure concerns (HTTP, JSON parsing)
3. Translates the Google volume format into the shared Book shape

Pagination is Google's own: `startIndex` is a 0-based record offset,
`maxResults` the page size. It is converted here and nowhere else.

The constructor accepts an optional `session` parameter:
- In production: uses requests.Session() by default
- In tests: inject a fake session that returns canned responses
=============================================================================
"""

import logging
from typing import Any, List, Optional

import requests

from libfinder.domain.entities import Book, BookPage
from libfinder.domain.errors import NotFoundError, ParseError, TransportError
from libfinder.domain.ports import BookMetadataProvider

logger = logging.getLogger(__name__)


class GoogleBooksClient(BookMetadataProvider):
    """
    Google Books API client for fetching book metadata.

    Features:
    - Free-text search with 0-based record offset pagination
    - Fetch one book by isbn through an `isbn:` query
    - Graceful handling of missing/partial data from API
    - Dependency-injected HTTP session for testability

    Usage:
        # Production
        client = GoogleBooksClient(api_key="your-api-key")
        page = client.search("python programming", page_size=10, page=0)

        # Testing (with fake session)
        client = GoogleBooksClient(session=fake_session)
        book = client.get("9784798121963")
    """

    # Google Books API base URL
    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[Any] = None,
        timeout: float = 10.0,
    ) -> None:
        """
        Initialize the Google Books client.

        Args:
            api_key: Optional Google API key for higher rate limits.
                    Without a key, requests are limited but still work.
            session: Optional HTTP session for dependency injection.
                    If None, creates a new requests.Session().
            timeout: Per-request timeout in seconds
        """
        self._api_key = api_key
        # Dependency injection: use provided session or create default
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout

    def search(self, query_text: str, page_size: int, page: int) -> BookPage:
        """
        Search for books in Google Books API.

        Args:
            query_text: Search query (passed as `q`)
            page_size: Number of volumes per page
            page: 0-based page number

        Returns:
            BookPage with the parsed volumes and Google's totalItems

        Raises:
            ValueError: If query is empty or blank
            TransportError: If the API request fails
            ParseError: If the response is not a volumes listing
        """
        # Validate input
        if not query_text or not query_text.strip():
            raise ValueError("query cannot be empty")

        params = {
            "q": query_text.strip(),
            "startIndex": page * page_size,
            "maxResults": page_size,
        }
        return self._fetch_page(params)

    def get(self, isbn: str) -> Book:
        """
        Fetch a specific book by isbn.

        Raises:
            NotFoundError: If Google has no volume with this isbn
        """
        page = self._fetch_page({"q": f"isbn:{isbn}", "maxResults": 1})

        if not page.items:
            raise NotFoundError(f"isbn '{isbn}' not found in Google Books")
        return page.items[0]

    def get_source_name(self) -> str:
        """
        Get the source identifier for this provider.

        Returns:
            "google" - used as the `source` field in Book entities
        """
        return "google"

    # =========================================================================
    # Private helper methods
    # =========================================================================

    def _fetch_page(self, params: dict) -> BookPage:
        if self._api_key:
            params["key"] = self._api_key

        # Make API request
        try:
            response = self._session.get(self.BASE_URL, params=params, timeout=self._timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning("Google Books request failed: %s", e)
            raise TransportError(f"Google Books API request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Invalid JSON response from Google Books API: {e}") from e

        return self._parse_page(data)

    def _parse_page(self, data: Any) -> BookPage:
        """
        Parse a volumes listing.

        Google omits `items` entirely when nothing matched, so a missing
        list is an empty page. A missing `totalItems` is not.
        """
        if not isinstance(data, dict):
            raise ParseError("Google Books response is not a JSON object")

        total_count = data.get("totalItems")
        if not isinstance(total_count, int):
            raise ParseError("Google Books response has no totalItems")

        items = data.get("items") or []
        if not isinstance(items, list):
            raise ParseError("Google Books items is not a list")

        books: List[Book] = []
        for item in items:
            book = self._parse_volume(item)
            if book is not None:
                books.append(book)
            else:
                logger.debug("Dropping Google Books volume without title: %s", item.get("id") if isinstance(item, dict) else item)

        return BookPage(items=books, total_count=total_count)

    def _parse_volume(self, volume: Any) -> Optional[Book]:
        """
        Parse a Google Books volume JSON object into a Book entity.

        Handles missing fields gracefully - the API response structure
        is not always complete. A missing title drops the volume.

        Returns:
            Book entity if parsing succeeds, None if the title is missing
        """
        if not isinstance(volume, dict):
            return None

        volume_info = volume.get("volumeInfo") or {}

        # Required: title
        title = volume_info.get("title")
        if not isinstance(title, str) or not title.strip():
            return None

        # Optional fields - use None or empty list if missing
        authors = _strings(volume_info.get("authors"))
        publishers = _strings(volume_info.get("publisher"))
        descriptions = _strings(volume_info.get("description"))
        keywords = _strings(volume_info.get("categories"))
        issued_at = _string(volume_info.get("publishedDate"))
        language = _string(volume_info.get("language"))

        # Only ISBN-13 identifies the book across backends
        isbn = None
        for identifier in volume_info.get("industryIdentifiers") or []:
            if isinstance(identifier, dict) and identifier.get("type") == "ISBN_13":
                isbn = _string(identifier.get("identifier"))
                break

        image_links = volume_info.get("imageLinks") or {}
        image_url = _string(image_links.get("smallThumbnail")) if isinstance(image_links, dict) else None

        return Book(
            title=title,
            authors=authors,
            publishers=publishers,
            issued_at=issued_at,
            isbn=isbn,
            language=language,
            descriptions=descriptions,
            keywords=keywords,
            image_url=image_url,
            source=self.get_source_name(),
        )


def _string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _strings(value: Any) -> List[str]:
    """Normalize a string-or-list field to a list of non-blank strings."""
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str) and item.strip()]
    return []
