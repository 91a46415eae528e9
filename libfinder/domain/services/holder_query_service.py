"""
Domain service answering "which of these libraries hold this book?".

=============================================================================
Aggregation rules
=============================================================================

1. Every requested library name is resolved against ONE catalog snapshot.
   Unknown names are not sent to the backend but still get an answer.
2. System ids are deduplicated (first-seen order) so the holdings backend
   runs one job for the whole request instead of one per library.
3. The job runs to completion under a wall-clock budget.
4. Answers come back in the caller's order, duplicates included. A library
   the backend said nothing about is reported as NOTHING.

Each call owns its own backend session; concurrent queries for the same
isbn are not merged. Cancelling the calling task cancels the job.
=============================================================================
"""

import asyncio
import logging
from typing import Awaitable, Dict, Optional, Sequence

from libfinder.domain.entities import (
    Holder,
    HolderPage,
    HolderState,
    HoldingsResult,
)
from libfinder.domain.errors import BackendError, PollingTimeoutError
from libfinder.domain.ports import HoldingsProvider, LibraryCatalog
from libfinder.domain.value_objects import LibraryKey, PageRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 60.0


class HolderQueryService:
    """
    Joins catalog libraries with holdings backend answers.

    Usage:
        service = HolderQueryService(catalog=store, holdings=calil_client)
        page = await service.holder_query("9784001141276", ["LibA", "LibB"])
    """

    def __init__(
        self,
        catalog: LibraryCatalog,
        holdings: HoldingsProvider,
        academic_holdings: Optional[HoldingsProvider] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        """
        Args:
            catalog: Snapshot used to map library names to backend keys
            holdings: Backend keyed by (system_id, ingroup_key)
            academic_holdings: Optional backend answering by library name only
            timeout_s: Wall-clock budget for one backend job, in seconds
        """
        if timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got {timeout_s}")

        self._catalog = catalog
        self._holdings = holdings
        self._academic_holdings = academic_holdings
        self._timeout_s = timeout_s

    async def holder_query(self, isbn: str, library_names: Sequence[str]) -> HolderPage:
        """
        Availability of `isbn` at each requested library.

        Args:
            isbn: Book to look up
            library_names: Libraries to report on; order and duplicates are kept

        Returns:
            HolderPage with exactly one Holder per requested name, in input
            order. total_count equals len(library_names).

        Raises:
            ValueError: If isbn is empty
            PollingTimeoutError: If the backend job exceeds the time budget
            TransportError / ParseError: Propagated from the backend
            StateCorruptionError: If the catalog snapshot cannot be read
        """
        if not isbn or not isbn.strip():
            raise ValueError("isbn cannot be empty")
        isbn = isbn.strip()

        resolved = self._catalog.resolve(library_names)

        system_ids = list(dict.fromkeys(
            library.system_id for library in resolved if library is not None
        ))

        states: Dict[LibraryKey, HolderState] = {}
        if system_ids:
            result = await self._bounded(
                self._holdings.query_holdings(isbn, system_ids),
                source=self._holdings.get_source_name(),
            )
            for record in result.records:
                states.setdefault(record.key, record.state)
        else:
            logger.debug("No requested library resolved for isbn %s; skipping backend call", isbn)

        items = [
            Holder(
                isbn=isbn,
                library_name=name,
                state=(
                    states.get(library.key, HolderState.default())
                    if library is not None
                    else HolderState.default()
                ),
            )
            for name, library in zip(library_names, resolved)
        ]

        return HolderPage(items=items, total_count=len(items))

    async def academic_holder_query(self, isbn: str, page: PageRequest) -> HolderPage:
        """
        Libraries listed by the academic union catalog as holding `isbn`.

        Pagination is applied locally; total_count is the backend's count.

        Raises:
            ValueError: If isbn is empty
            BackendError: If no academic backend is configured
            NotFoundError: If the backend does not know the isbn
        """
        if not isbn or not isbn.strip():
            raise ValueError("isbn cannot be empty")
        if self._academic_holdings is None:
            raise BackendError("academic holdings backend is not configured")
        isbn = isbn.strip()

        result = await self._bounded(
            self._academic_holdings.query_holdings(isbn, ()),
            source=self._academic_holdings.get_source_name(),
        )

        items = [
            Holder(isbn=isbn, library_name=record.library_name or "", state=record.state)
            for record in page.slice(result.records)
        ]
        return HolderPage(items=items, total_count=result.total_count)

    async def _bounded(self, job: Awaitable[HoldingsResult], source: str) -> HoldingsResult:
        try:
            return await asyncio.wait_for(job, timeout=self._timeout_s)
        except asyncio.TimeoutError:
            logger.warning("%s holdings job exceeded %.1fs", source, self._timeout_s)
            raise PollingTimeoutError(
                f"{source} holdings query did not complete within {self._timeout_s:g}s"
            ) from None
