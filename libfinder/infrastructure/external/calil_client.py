r"""
Calil API clients: the nationwide library list and the holdings check job.

=============================================================================
NOTES: The check protocol
=============================================================================

A holdings check is a remote job, not a synchronous call:

    SUBMITTED --(response)--> POLLING --(continue=0)--> COMPLETE
        \__________________________\______(error)-----> FAILED

1. The first request sends the isbn and the comma-joined system ids.
   The response carries a session token, a continuation flag and a
   possibly partial set of holdings.
2. While the flag is set, wait `poll_interval` seconds WITHOUT blocking
   the event loop, then ask again with the session token only. Each
   response REPLACES the previous holdings; the latest one is
   authoritative.
3. Once the flag clears, the last holdings are the answer.

The protocol itself has no iteration cap. Callers bound the wall-clock
time (see HolderQueryService).
=============================================================================
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

import httpx
from lxml import etree

from libfinder.domain.entities import (
    HoldingRecord,
    HoldingsResult,
    Library,
    PollingSession,
)
from libfinder.domain.errors import BackendError, ParseError, TransportError
from libfinder.domain.ports import HoldingsProvider, LibraryCatalogSource
from libfinder.domain.value_objects import Geocode
from libfinder.infrastructure.external.holder_states import state_from_token
from libfinder.infrastructure.external.xml_utils import (
    child_text,
    find_child,
    iter_children,
    parse_xml,
)

logger = logging.getLogger(__name__)

MAX_LIBRARY_LIST_BYTES = 16 * 1024 * 1024
"""Upper bound on the library list body (16 MiB)"""

DEFAULT_POLL_INTERVAL_S = 2.0


class CalilLibraryClient(LibraryCatalogSource):
    """
    Fetches the complete Calil library list in one request.

    Usage:
        client = CalilLibraryClient(app_key="...")
        libraries = await client.fetch_libraries()
    """

    LIBRARY_URL = "https://api.calil.jp/library"

    def __init__(
        self,
        app_key: str,
        client: Optional[httpx.AsyncClient] = None,
        max_body_bytes: int = MAX_LIBRARY_LIST_BYTES,
        timeout: float = 60.0,
    ) -> None:
        """
        Args:
            app_key: Calil application key
            client: Optional httpx client for dependency injection
            max_body_bytes: Bodies larger than this are rejected
            timeout: Request timeout in seconds
        """
        self._app_key = app_key
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)
        self._max_body_bytes = max_body_bytes

    async def fetch_libraries(self) -> List[Library]:
        """
        Download and parse every library known to Calil.

        Raises:
            TransportError: If the request fails or the body exceeds the cap
            ParseError: If the document is malformed
        """
        body = await self._download()
        root = parse_xml(body, "Calil library list")
        return parse_library_list(root)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _download(self) -> bytes:
        chunks: List[bytes] = []
        size = 0
        try:
            async with self._client.stream(
                "GET", self.LIBRARY_URL, params={"appkey": self._app_key}
            ) as response:
                response.raise_for_status()
                async for chunk in response.aiter_bytes():
                    size += len(chunk)
                    if size > self._max_body_bytes:
                        raise TransportError(
                            f"Calil library list exceeds {self._max_body_bytes} bytes"
                        )
                    chunks.append(chunk)
        except httpx.HTTPError as e:
            logger.warning("Calil library list request failed: %s", e)
            raise TransportError(f"Calil library list request failed: {e}") from e

        return b"".join(chunks)


def parse_library_list(root: etree._Element) -> List[Library]:
    """
    Parse a `Libraries` document.

    A library lacking a name, system id, in-group key or a parsable
    geocode is skipped; every other field is optional.

    Raises:
        ParseError: If the root element is not `Libraries`
    """
    if etree.QName(root).localname != "Libraries":
        raise ParseError(f"unexpected Calil library list root <{root.tag}>")

    libraries: List[Library] = []
    for node in iter_children(root, "Library"):
        library = _parse_library(node)
        if library is None:
            logger.debug("Skipping incomplete Calil library entry: %s", child_text(node, "formal"))
            continue
        libraries.append(library)
    return libraries


def _parse_library(node: etree._Element) -> Optional[Library]:
    name = child_text(node, "formal")
    system_id = child_text(node, "systemid")
    ingroup_key = child_text(node, "libkey")
    geocode = _parse_geocode(child_text(node, "geocode"))

    if not (name and system_id and ingroup_key and geocode):
        return None

    return Library(
        name=name,
        system_id=system_id,
        ingroup_key=ingroup_key,
        geocode=geocode,
        address=child_text(node, "address"),
        prefecture=child_text(node, "pref"),
        city=child_text(node, "city"),
        postcode=child_text(node, "post"),
        tel=child_text(node, "tel"),
        url=child_text(node, "url_pc"),
        system_name=child_text(node, "systemname"),
        short_name=child_text(node, "short"),
    )


def _parse_geocode(text: Optional[str]) -> Optional[Geocode]:
    # Calil writes "lng,lat"
    if not text or "," not in text:
        return None
    lng, lat = text.split(",", 1)
    try:
        return Geocode(lat=float(lat), lng=float(lng))
    except ValueError:
        return None


class CalilHoldingsClient(HoldingsProvider):
    """
    Runs the Calil check job for one isbn across several systems.

    Usage:
        client = CalilHoldingsClient(app_key="...")
        result = await client.query_holdings("9784001141276", ["Tokyo_Pref", "Toyama_Imizu"])

        # Testing: no real delay between polls
        client = CalilHoldingsClient(app_key="k", client=fake_client, poll_interval=0)
    """

    CHECK_URL = "https://api.calil.jp/check"

    def __init__(
        self,
        app_key: str,
        client: Optional[httpx.AsyncClient] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        timeout: float = 10.0,
    ) -> None:
        """
        Args:
            app_key: Calil application key
            client: Optional httpx client for dependency injection
            poll_interval: Delay between polls in seconds
            sleep: Awaitable delay; must yield to the event loop
            timeout: Per-request timeout in seconds
        """
        if poll_interval < 0:
            raise ValueError(f"poll_interval must be >= 0, got {poll_interval}")

        self._app_key = app_key
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)
        self._poll_interval = poll_interval
        self._sleep = sleep

    def get_source_name(self) -> str:
        return "calil"

    async def query_holdings(self, isbn: str, system_ids: Sequence[str]) -> HoldingsResult:
        """
        Holdings of `isbn` in every requested system.

        Returns an empty result without any request when no system is given.
        """
        if not system_ids:
            return HoldingsResult()

        session = await self.run_session(isbn, system_ids)
        return HoldingsResult(records=session.records, total_count=len(session.records))

    async def run_session(
        self,
        isbn: str,
        system_ids: Sequence[str],
        session: Optional[PollingSession] = None,
    ) -> PollingSession:
        """
        Drive one check job to completion.

        Args:
            isbn: Book to look up
            system_ids: Systems to ask; duplicates are dropped
            session: Optional fresh session to drive, so callers can
                inspect its state after a failure

        Returns:
            The PollingSession in COMPLETE state

        Raises:
            TransportError / ParseError: The session is marked FAILED first
        """
        if session is None:
            session = PollingSession()
        params = {
            "appkey": self._app_key,
            "isbn": isbn,
            "systemid": ",".join(dict.fromkeys(system_ids)),
            "format": "xml",
        }

        try:
            while True:
                root = await self._request(params)
                token, has_next, records = parse_check_response(root)
                session.apply(token, has_next, records)

                if not session.has_next:
                    break

                logger.debug(
                    "Calil session %s still running after round %s; polling again in %ss",
                    session.session, session.rounds, self._poll_interval,
                )
                await self._sleep(self._poll_interval)
                params = {
                    "appkey": self._app_key,
                    "session": session.session,
                    "format": "xml",
                }
        except (BackendError, asyncio.CancelledError):
            session.fail()
            raise

        logger.info("Calil session %s complete after %s rounds", session.session, session.rounds)
        return session

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, params: dict) -> etree._Element:
        try:
            response = await self._client.get(self.CHECK_URL, params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Calil check request failed: %s", e)
            raise TransportError(f"Calil check request failed: {e}") from e

        return parse_xml(response.content, "Calil check")


def parse_check_response(root: etree._Element) -> Tuple[str, bool, Tuple[HoldingRecord, ...]]:
    """
    Parse one check response into (session, has_next, records).

    Raises:
        ParseError: If session, continue or books is missing
    """
    session = child_text(root, "session")
    flag = child_text(root, "continue")
    books = find_child(root, "books")

    if session is None or flag is None or books is None:
        raise ParseError("Calil check response lacks session, continue or books")

    records: List[HoldingRecord] = []
    book = find_child(books, "book")
    if book is not None:
        for system in iter_children(book, "system"):
            system_id = system.get("systemid")
            libkeys = find_child(system, "libkeys")
            if not system_id or libkeys is None:
                continue
            for libkey in iter_children(libkeys, "libkey"):
                ingroup_key = libkey.get("name")
                if not ingroup_key:
                    continue
                records.append(HoldingRecord(
                    system_id=system_id,
                    ingroup_key=ingroup_key,
                    state=state_from_token(libkey.text),
                ))

    return session, flag != "0", tuple(records)
