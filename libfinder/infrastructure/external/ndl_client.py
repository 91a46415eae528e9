"""
National Diet Library (NDL Search) SRU client implementing the
BookMetadataProvider port.

NDL speaks SRU: records are XML (`dcndl_simple` schema) and pagination
is by 1-based record position (`startRecord`). No API key is needed.
"""

import logging
from typing import Any, List, Optional

import requests
from lxml import etree

from libfinder.domain.entities import Book, BookPage
from libfinder.domain.errors import NotFoundError, ParseError, TransportError
from libfinder.domain.ports import BookMetadataProvider
from libfinder.infrastructure.external.xml_utils import (
    child_text,
    children_text,
    find_child,
    iter_children,
    node_text,
    parse_xml,
    xsi_type,
)

logger = logging.getLogger(__name__)

ISBN_TYPE = "dcndl:ISBN"
SORT_CLAUSE = 'sortBy="issued_date/sort.descending"'


class NdlClient(BookMetadataProvider):
    """
    NDL Search client.

    Usage:
        client = NdlClient()
        page = client.search("ドメイン駆動設計", page_size=20, page=0)
        book = client.get("9784798121963")
    """

    BASE_URL = "https://iss.ndl.go.jp/api/sru"
    THUMBNAIL_URL = "https://iss.ndl.go.jp/thumbnail/{isbn}"

    def __init__(self, session: Optional[Any] = None, timeout: float = 10.0) -> None:
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout

    def search(self, query_text: str, page_size: int, page: int) -> BookPage:
        """
        Search every field of books (mediatype=1), newest first.

        Args:
            query_text: Text matched against any field
            page_size: Records per page (`maximumRecords`)
            page: 0-based page number, sent as 1-based `startRecord`
        """
        if not query_text or not query_text.strip():
            raise ValueError("query cannot be empty")

        cql = f'mediatype=1 AND anywhere="{_quote(query_text.strip())}" AND {SORT_CLAUSE}'
        return self._fetch_page(cql, {
            "maximumRecords": page_size,
            "startRecord": page * page_size + 1,
        })

    def get(self, isbn: str) -> Book:
        cql = f'isbn="{_quote(isbn)}" AND {SORT_CLAUSE}'
        page = self._fetch_page(cql, {"maximumRecords": 1})

        if not page.items:
            raise NotFoundError(f"isbn '{isbn}' not found in NDL")
        return page.items[0]

    def get_source_name(self) -> str:
        return "ndl"

    def _fetch_page(self, cql: str, paging: dict) -> BookPage:
        params = {
            "operation": "searchRetrieve",
            "query": cql,
            **paging,
            "recordPacking": "xml",
            "recordSchema": "dcndl_simple",
        }

        try:
            response = self._session.get(self.BASE_URL, params=params, timeout=self._timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning("NDL request failed: %s", e)
            raise TransportError(f"NDL SRU request failed: {e}") from e

        root = parse_xml(response.content, "NDL")
        return self._parse_page(root)

    def _parse_page(self, root: etree._Element) -> BookPage:
        """
        Parse a searchRetrieveResponse.

        `numberOfRecords` is mandatory. `records` is absent when there are
        no hits, which is an empty page rather than an error.
        """
        total_text = child_text(root, "numberOfRecords")
        try:
            total_count = int(total_text) if total_text is not None else None
        except ValueError:
            total_count = None
        if total_count is None:
            raise ParseError("NDL response has no numberOfRecords")

        books: List[Book] = []
        records = find_child(root, "records")
        if records is not None:
            for record in iter_children(records, "record"):
                dc = find_child(find_child(record, "recordData"), "dc")
                book = self._parse_record(dc) if dc is not None else None
                if book is None:
                    logger.debug("Dropping NDL record without title")
                    continue
                books.append(book)

        return BookPage(items=books, total_count=total_count)

    def _parse_record(self, dc: etree._Element) -> Optional[Book]:
        title = child_text(dc, "title")
        if title is None:
            return None

        isbn = None
        for identifier in iter_children(dc, "identifier"):
            if xsi_type(identifier) == ISBN_TYPE:
                isbn = node_text(identifier)
                break

        return Book(
            title=title,
            authors=children_text(dc, "creator"),
            publishers=children_text(dc, "publisher"),
            issued_at=child_text(dc, "issued"),
            isbn=isbn,
            language=child_text(dc, "language"),
            descriptions=children_text(dc, "abstract"),
            keywords=children_text(dc, "subject"),
            annotations=children_text(dc, "description"),
            image_url=self.THUMBNAIL_URL.format(isbn=isbn) if isbn else None,
            source=self.get_source_name(),
        )


def _quote(text: str) -> str:
    """Escape a value for use inside a double-quoted CQL term."""
    return text.replace("\\", "\\\\").replace('"', '\\"')
