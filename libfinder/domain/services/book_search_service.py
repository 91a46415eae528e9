"""
Domain service selecting a book metadata backend by tag.
"""

import logging
from typing import Dict, List, Mapping

from libfinder.domain.entities import Book, BookPage
from libfinder.domain.ports import BookMetadataProvider
from libfinder.domain.value_objects import PageRequest

logger = logging.getLogger(__name__)


class BookSearchService:
    """
    Routes book searches to one of several interchangeable backends.

    Backends form a closed set keyed by tag; adding a backend means adding
    an entry to the mapping, never a branch at the call site.

    Usage:
        service = BookSearchService({"ndl": NdlClient(), "google": GoogleBooksClient()})
        page = service.search("ndl", "ドメイン駆動設計", PageRequest(page_size=20))
    """

    def __init__(self, providers: Mapping[str, BookMetadataProvider], default_backend: str = "ndl") -> None:
        if not providers:
            raise ValueError("at least one book metadata provider is required")
        if default_backend not in providers:
            raise ValueError(f"default backend '{default_backend}' is not registered")

        self._providers: Dict[str, BookMetadataProvider] = dict(providers)
        self._default_backend = default_backend

    @property
    def default_backend(self) -> str:
        return self._default_backend

    def backends(self) -> List[str]:
        """Registered backend tags, in registration order."""
        return list(self._providers)

    def search(self, backend: str, query_text: str, page: PageRequest) -> BookPage:
        """
        Free-text search against one backend.

        Raises:
            ValueError: If the backend tag is unknown or query_text is empty
        """
        if not query_text or not query_text.strip():
            raise ValueError("query cannot be empty")

        provider = self._provider(backend)
        logger.debug("Searching %s for %r (page=%s, page_size=%s)", backend, query_text, page.page, page.page_size)
        return provider.search(query_text.strip(), page.page_size, page.page)

    def get(self, backend: str, isbn: str) -> Book:
        """
        Fetch one book by isbn from one backend.

        Raises:
            ValueError: If the backend tag is unknown or isbn is empty
            NotFoundError: If the backend has no record for the isbn
        """
        if not isbn or not isbn.strip():
            raise ValueError("isbn cannot be empty")

        return self._provider(backend).get(isbn.strip())

    def _provider(self, backend: str) -> BookMetadataProvider:
        try:
            return self._providers[backend or self._default_backend]
        except KeyError:
            raise ValueError(
                f"unknown backend '{backend}', expected one of {sorted(self._providers)}"
            ) from None
