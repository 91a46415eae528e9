"""
Tests for BookSearchService backend routing.
"""

from typing import List

import pytest

from libfinder.domain.entities import Book, BookPage
from libfinder.domain.errors import NotFoundError
from libfinder.domain.services import BookSearchService
from libfinder.domain.value_objects import PageRequest


class FakeProvider:
    """Records calls and answers with one book tagged by its source."""

    def __init__(self, source: str):
        self._source = source
        self.searches: List[tuple] = []

    def get_source_name(self) -> str:
        return self._source

    def search(self, query_text: str, page_size: int, page: int) -> BookPage:
        self.searches.append((query_text, page_size, page))
        return BookPage(items=[Book(title=query_text, source=self._source)], total_count=1)

    def get(self, isbn: str) -> Book:
        if isbn == "0000000000000":
            raise NotFoundError(f"no book with isbn {isbn}")
        return Book(title="found", isbn=isbn, source=self._source)


@pytest.fixture
def providers():
    return {"ndl": FakeProvider("ndl"), "google": FakeProvider("google")}


class TestBookSearchService:
    """Tests for BookSearchService."""

    def test_search_routes_to_named_backend(self, providers):
        service = BookSearchService(providers)

        page = service.search("google", "  ドメイン駆動設計 ", PageRequest(page_size=5, page=2))

        assert page.items[0].source == "google"
        assert providers["google"].searches == [("ドメイン駆動設計", 5, 2)]
        assert providers["ndl"].searches == []

    def test_empty_backend_uses_default(self, providers):
        service = BookSearchService(providers, default_backend="ndl")

        page = service.search("", "本", PageRequest())

        assert page.items[0].source == "ndl"

    def test_unknown_backend_rejected(self, providers):
        service = BookSearchService(providers)

        with pytest.raises(ValueError, match="unknown backend 'amazon'"):
            service.search("amazon", "本", PageRequest())

    def test_empty_query_rejected(self, providers):
        service = BookSearchService(providers)

        with pytest.raises(ValueError, match="query cannot be empty"):
            service.search("ndl", "   ", PageRequest())

    def test_get_by_isbn(self, providers):
        service = BookSearchService(providers)

        book = service.get("google", "9784001141276")

        assert book.isbn == "9784001141276"
        assert book.source == "google"

    def test_get_empty_isbn_rejected(self, providers):
        service = BookSearchService(providers)

        with pytest.raises(ValueError, match="isbn cannot be empty"):
            service.get("ndl", "")

    def test_get_not_found_propagates(self, providers):
        service = BookSearchService(providers)

        with pytest.raises(NotFoundError):
            service.get("ndl", "0000000000000")

    def test_backends_in_registration_order(self, providers):
        assert BookSearchService(providers).backends() == ["ndl", "google"]

    def test_default_backend_must_be_registered(self, providers):
        with pytest.raises(ValueError, match="is not registered"):
            BookSearchService(providers, default_backend="rakuten")
