"""
In-memory Catalog Snapshot Store implementing the LibraryCatalog port.

=============================================================================
NOTES: Read-many / write-one
=============================================================================

The store holds exactly one immutable CatalogSnapshot. Refresh builds the
next snapshot completely (network fetch + parse) WITHOUT holding the lock,
then takes the lock only to swap the reference. Readers take the lock only
to grab the current reference and then work on that snapshot unlocked.

Consequences:
- readers never wait for a network fetch
- readers see the fully-old or fully-new snapshot, never a mix
- a failed refresh leaves the previous snapshot in place

The lock is a threading.Lock because readers run both on the event loop
(async endpoints) and in FastAPI's worker threads (sync endpoints).
=============================================================================
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from libfinder.domain.entities import Library, LibraryPage
from libfinder.domain.errors import (
    BackendError,
    NotFoundError,
    ParseError,
    StateCorruptionError,
)
from libfinder.domain.geo import rank_by_distance
from libfinder.domain.ports import LibraryCatalog, LibraryCatalogSource
from libfinder.domain.value_objects import Geocode, PageRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    """One complete, internally consistent copy of the library catalog."""

    libraries: Tuple[Library, ...] = ()

    fetched_at: Optional[datetime] = field(default=None, compare=False)
    """When the upstream list was fetched; None for the startup snapshot"""

    def __len__(self) -> int:
        return len(self.libraries)


class CatalogSnapshotStore(LibraryCatalog):
    """
    Process-wide library catalog, empty at startup, replaced by refresh().

    Usage:
        store = CatalogSnapshotStore(source=CalilLibraryClient(app_key="..."))
        await store.refresh()
        page = store.find_by_region("富山県", "射水市", PageRequest(page_size=20))
    """

    def __init__(self, source: LibraryCatalogSource, lock_timeout: float = 5.0) -> None:
        """
        Args:
            source: Upstream library list
            lock_timeout: Seconds to wait for the snapshot lock before
                giving up with StateCorruptionError
        """
        self._source = source
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout
        self._snapshot = CatalogSnapshot()

    async def refresh(self) -> int:
        """
        Replace the snapshot with a freshly fetched one.

        Returns:
            Number of libraries in the new snapshot

        Raises:
            TransportError / ParseError: The previous snapshot is kept
            StateCorruptionError: If the lock cannot be acquired for the swap
        """
        try:
            libraries = await self._source.fetch_libraries()
        except BackendError as e:
            logger.error("Catalog refresh failed, keeping %s libraries: %s", self.size(), e)
            raise

        if not libraries:
            logger.error("Catalog refresh produced no libraries, keeping %s", self.size())
            raise ParseError("library list contained no usable libraries")

        snapshot = CatalogSnapshot(
            libraries=tuple(libraries),
            fetched_at=datetime.now(timezone.utc),
        )

        self._acquire()
        try:
            self._snapshot = snapshot
        finally:
            self._lock.release()

        logger.info("Catalog refreshed with %s libraries", len(snapshot))
        return len(snapshot)

    def snapshot(self) -> CatalogSnapshot:
        """The current snapshot. Safe to use after the lock is released."""
        self._acquire()
        try:
            snapshot = self._snapshot
        finally:
            self._lock.release()

        if not isinstance(snapshot, CatalogSnapshot):
            raise StateCorruptionError(f"catalog holds {type(snapshot).__name__}, not a snapshot")
        return snapshot

    def find_by_region(self, prefecture: str, city: str, page: PageRequest) -> LibraryPage:
        filtered = [
            library
            for library in self.snapshot().libraries
            if library.prefecture == prefecture and library.city == city
        ]
        return LibraryPage(items=page.slice(filtered), total_count=len(filtered))

    def find_by_name(self, name: str) -> Library:
        # names are assumed unique; on duplicates the first entry wins
        for library in self.snapshot().libraries:
            if library.name == name:
                return library
        raise NotFoundError(f"library '{name}' not found")

    def rank_by_distance(self, origin: Geocode, limit: int) -> LibraryPage:
        items = rank_by_distance(self.snapshot().libraries, origin, limit)
        return LibraryPage(items=items, total_count=len(items))

    def resolve(self, names: Sequence[str]) -> List[Optional[Library]]:
        snapshot = self.snapshot()
        by_name = {}
        for library in snapshot.libraries:
            by_name.setdefault(library.name, library)
        return [by_name.get(name) for name in names]

    def is_ready(self) -> bool:
        return self.size() > 0

    def size(self) -> int:
        return len(self.snapshot())

    def _acquire(self) -> None:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise StateCorruptionError(
                f"catalog snapshot lock not acquired within {self._lock_timeout}s"
            )
