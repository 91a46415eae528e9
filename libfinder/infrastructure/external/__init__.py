# External service adapters
"""
Adapters for the external catalog services.

Book metadata (BookMetadataProvider, synchronous):
- NdlClient: NDL Search SRU, XML
- GoogleBooksClient: Google Books volumes, JSON
- RakutenBooksClient: Rakuten Books search, JSON

Holdings (HoldingsProvider, asynchronous):
- CalilHoldingsClient: Calil check job with session polling
- CiniiHoldingsClient: CiNii Books two-step holder lookup

Library list (LibraryCatalogSource):
- CalilLibraryClient: the nationwide Calil library list
"""

from .calil_client import CalilHoldingsClient, CalilLibraryClient
from .cinii_client import CiniiHoldingsClient
from .google_books_client import GoogleBooksClient
from .ndl_client import NdlClient
from .rakuten_books_client import RakutenBooksClient

__all__ = [
    "CalilHoldingsClient",
    "CalilLibraryClient",
    "CiniiHoldingsClient",
    "GoogleBooksClient",
    "NdlClient",
    "RakutenBooksClient",
]
