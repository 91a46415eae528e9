"""
Tests for HolderQueryService.

The catalog and holdings backends are replaced with in-memory fakes so the
aggregation rules can be checked without any network access.
"""

import asyncio
from typing import Dict, List, Optional, Sequence

import pytest

from libfinder.domain.entities import (
    HolderState,
    HoldingRecord,
    HoldingsResult,
    Library,
)
from libfinder.domain.errors import BackendError, PollingTimeoutError, TransportError
from libfinder.domain.services import HolderQueryService
from libfinder.domain.value_objects import Geocode, PageRequest


# =============================================================================
# Fake implementations for testing
# =============================================================================


def make_library(name: str, system_id: str, ingroup_key: str) -> Library:
    return Library(
        name=name,
        system_id=system_id,
        ingroup_key=ingroup_key,
        geocode=Geocode(lat=35.0, lng=135.0),
    )


class FakeCatalog:
    """Resolves names against a fixed list; first entry wins on duplicates."""

    def __init__(self, libraries: List[Library]):
        self._by_name: Dict[str, Library] = {}
        for library in libraries:
            self._by_name.setdefault(library.name, library)

    def resolve(self, names: Sequence[str]) -> List[Optional[Library]]:
        return [self._by_name.get(name) for name in names]


class FakeHoldings:
    """Returns canned records and remembers every call."""

    def __init__(self, records=(), total_count: Optional[int] = None, delay: float = 0.0, error=None):
        self._records = tuple(records)
        self._total = len(self._records) if total_count is None else total_count
        self._delay = delay
        self._error = error
        self.calls: List[tuple] = []

    def get_source_name(self) -> str:
        return "fake"

    async def query_holdings(self, isbn: str, system_ids: Sequence[str]) -> HoldingsResult:
        self.calls.append((isbn, list(system_ids)))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return HoldingsResult(records=self._records, total_count=self._total)


@pytest.fixture
def catalog():
    return FakeCatalog([
        make_library("LibA", "Tokyo_Pref", "中央"),
        make_library("LibB", "Tokyo_Pref", "多摩"),
        make_library("LibC", "Toyama_Imizu", "射水"),
    ])


# =============================================================================
# holder_query
# =============================================================================


class TestHolderQuery:
    """Tests for HolderQueryService.holder_query()."""

    @pytest.mark.asyncio
    async def test_one_answer_per_requested_name_in_order(self, catalog):
        """Duplicates and unknown names each get their own entry."""
        holdings = FakeHoldings([HoldingRecord("Tokyo_Pref", "中央", HolderState.EXISTS)])
        service = HolderQueryService(catalog=catalog, holdings=holdings)

        page = await service.holder_query("9784001141276", ["LibA", "LibA", "Unknown"])

        assert page.total_count == 3
        assert [h.library_name for h in page.items] == ["LibA", "LibA", "Unknown"]
        assert [h.state for h in page.items] == [
            HolderState.EXISTS,
            HolderState.EXISTS,
            HolderState.NOTHING,
        ]
        assert all(h.isbn == "9784001141276" for h in page.items)

    @pytest.mark.asyncio
    async def test_system_ids_deduplicated_in_first_seen_order(self, catalog):
        holdings = FakeHoldings()
        service = HolderQueryService(catalog=catalog, holdings=holdings)

        await service.holder_query("9784001141276", ["LibC", "LibA", "LibB", "LibC"])

        assert holdings.calls == [("9784001141276", ["Toyama_Imizu", "Tokyo_Pref"])]

    @pytest.mark.asyncio
    async def test_library_missing_from_response_is_nothing(self, catalog):
        holdings = FakeHoldings([HoldingRecord("Tokyo_Pref", "中央", HolderState.BORROWED)])
        service = HolderQueryService(catalog=catalog, holdings=holdings)

        page = await service.holder_query("9784001141276", ["LibA", "LibB"])

        assert [h.state for h in page.items] == [HolderState.BORROWED, HolderState.NOTHING]

    @pytest.mark.asyncio
    async def test_first_record_wins_for_repeated_key(self, catalog):
        holdings = FakeHoldings([
            HoldingRecord("Tokyo_Pref", "中央", HolderState.RESERVED),
            HoldingRecord("Tokyo_Pref", "中央", HolderState.EXISTS),
        ])
        service = HolderQueryService(catalog=catalog, holdings=holdings)

        page = await service.holder_query("9784001141276", ["LibA"])

        assert page.items[0].state is HolderState.RESERVED

    @pytest.mark.asyncio
    async def test_no_backend_call_when_nothing_resolves(self, catalog):
        holdings = FakeHoldings()
        service = HolderQueryService(catalog=catalog, holdings=holdings)

        page = await service.holder_query("9784001141276", ["Nowhere", "Elsewhere"])

        assert holdings.calls == []
        assert page.total_count == 2
        assert all(h.state is HolderState.NOTHING for h in page.items)

    @pytest.mark.asyncio
    async def test_empty_library_list(self, catalog):
        holdings = FakeHoldings()
        service = HolderQueryService(catalog=catalog, holdings=holdings)

        page = await service.holder_query("9784001141276", [])

        assert page.items == []
        assert page.total_count == 0
        assert holdings.calls == []

    @pytest.mark.asyncio
    async def test_empty_isbn_rejected(self, catalog):
        service = HolderQueryService(catalog=catalog, holdings=FakeHoldings())

        with pytest.raises(ValueError, match="isbn cannot be empty"):
            await service.holder_query("  ", ["LibA"])

    @pytest.mark.asyncio
    async def test_slow_backend_raises_polling_timeout(self, catalog):
        holdings = FakeHoldings(delay=1.0)
        service = HolderQueryService(catalog=catalog, holdings=holdings, timeout_s=0.01)

        with pytest.raises(PollingTimeoutError):
            await service.holder_query("9784001141276", ["LibA"])

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self, catalog):
        holdings = FakeHoldings(error=TransportError("boom"))
        service = HolderQueryService(catalog=catalog, holdings=holdings)

        with pytest.raises(TransportError):
            await service.holder_query("9784001141276", ["LibA"])

    def test_non_positive_timeout_rejected(self, catalog):
        with pytest.raises(ValueError, match="timeout_s must be > 0"):
            HolderQueryService(catalog=catalog, holdings=FakeHoldings(), timeout_s=0)


# =============================================================================
# academic_holder_query
# =============================================================================


class TestAcademicHolderQuery:
    """Tests for HolderQueryService.academic_holder_query()."""

    @pytest.fixture
    def academic(self):
        records = [
            HoldingRecord("", "", HolderState.EXISTS, library_name=f"大学{i}")
            for i in range(5)
        ]
        return FakeHoldings(records, total_count=42)

    @pytest.mark.asyncio
    async def test_paginates_locally_and_keeps_backend_total(self, catalog, academic):
        service = HolderQueryService(catalog=catalog, holdings=FakeHoldings(), academic_holdings=academic)

        page = await service.academic_holder_query("9784001141276", PageRequest(page_size=2, page=1))

        assert [h.library_name for h in page.items] == ["大学2", "大学3"]
        assert all(h.state is HolderState.EXISTS for h in page.items)
        assert page.total_count == 42

    @pytest.mark.asyncio
    async def test_page_past_end_is_empty(self, catalog, academic):
        service = HolderQueryService(catalog=catalog, holdings=FakeHoldings(), academic_holdings=academic)

        page = await service.academic_holder_query("9784001141276", PageRequest(page_size=10, page=3))

        assert page.items == []

    @pytest.mark.asyncio
    async def test_not_configured(self, catalog):
        service = HolderQueryService(catalog=catalog, holdings=FakeHoldings())

        with pytest.raises(BackendError, match="not configured"):
            await service.academic_holder_query("9784001141276", PageRequest())
