"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of adapters and services
for use with FastAPI's Depends() system.

Note: We use module-level singletons instead of @lru_cache with Depends()
parameters, which is an antipattern that can cause unexpected behavior.
"""

import os
from pathlib import Path
from typing import Optional

from libfinder.domain.services import (
    BookSearchService,
    HolderQueryService,
    ReservationService,
)
from libfinder.infrastructure.catalog.snapshot_store import CatalogSnapshotStore
from libfinder.infrastructure.db.sqlite_account_repository import SqliteAccountRepository
from libfinder.infrastructure.external import (
    CalilHoldingsClient,
    CalilLibraryClient,
    CiniiHoldingsClient,
    GoogleBooksClient,
    NdlClient,
    RakutenBooksClient,
)

# Configuration from environment
CALIL_APPKEY = os.getenv("CALIL_APPKEY", "")
CINII_APPKEY = os.getenv("CINII_APPKEY", "")
GOOGLE_APPKEY = os.getenv("GOOGLE_APPKEY", "")
RAKUTEN_APPKEY = os.getenv("RAKUTEN_APPKEY", "")
DB_PATH = Path(os.getenv("DB_PATH", "data/libfinder.db"))
HOLDER_QUERY_TIMEOUT_S = float(os.getenv("HOLDER_QUERY_TIMEOUT_S", "60"))
HOLDER_POLL_INTERVAL_S = float(os.getenv("HOLDER_POLL_INTERVAL_S", "2"))

# Module-level singletons (initialized lazily)
_catalog_store: Optional[CatalogSnapshotStore] = None
_book_search_service: Optional[BookSearchService] = None
_holder_query_service: Optional[HolderQueryService] = None
_account_repository: Optional[SqliteAccountRepository] = None
_reservation_service: Optional[ReservationService] = None


def get_catalog_store() -> CatalogSnapshotStore:
    """Provide the process-wide library catalog."""
    global _catalog_store
    if _catalog_store is None:
        _catalog_store = CatalogSnapshotStore(source=CalilLibraryClient(app_key=CALIL_APPKEY))
    return _catalog_store


def get_book_search_service() -> BookSearchService:
    """Provide the book search service with every metadata backend registered."""
    global _book_search_service
    if _book_search_service is None:
        _book_search_service = BookSearchService(
            {
                "ndl": NdlClient(),
                "google": GoogleBooksClient(api_key=GOOGLE_APPKEY or None),
                "rakuten": RakutenBooksClient(application_id=RAKUTEN_APPKEY),
            },
            default_backend="ndl",
        )
    return _book_search_service


def get_holder_query_service() -> HolderQueryService:
    """Provide the holder query service wired to the shared catalog."""
    global _holder_query_service
    if _holder_query_service is None:
        _holder_query_service = HolderQueryService(
            catalog=get_catalog_store(),
            holdings=CalilHoldingsClient(app_key=CALIL_APPKEY, poll_interval=HOLDER_POLL_INTERVAL_S),
            academic_holdings=CiniiHoldingsClient(app_id=CINII_APPKEY),
            timeout_s=HOLDER_QUERY_TIMEOUT_S,
        )
    return _holder_query_service


def get_account_repository() -> SqliteAccountRepository:
    """Provide a singleton instance of the account repository."""
    global _account_repository
    if _account_repository is None:
        _account_repository = SqliteAccountRepository(DB_PATH)
    return _account_repository


def get_reservation_service() -> ReservationService:
    global _reservation_service
    if _reservation_service is None:
        repo = get_account_repository()
        _reservation_service = ReservationService(accounts=repo, reservations=repo)
    return _reservation_service


def reset_dependencies() -> None:
    """
    Reset all singletons. Useful for testing.

    This allows tests to inject mock dependencies by resetting
    the module state between test cases.
    """
    global _catalog_store, _book_search_service, _holder_query_service
    global _account_repository, _reservation_service

    _catalog_store = None
    _book_search_service = None
    _holder_query_service = None
    _account_repository = None
    _reservation_service = None
