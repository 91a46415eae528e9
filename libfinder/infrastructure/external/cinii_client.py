"""
CiNii Books client implementing the HoldingsProvider port.

CiNii answers in two plain steps, no job and no polling:
1. OpenSearch by isbn -> the NCID of the first matching record
2. Holder listing by NCID -> one Atom entry per holding library

CiNii only lists holding libraries, so every record it returns is EXISTS.
"""

import logging
from typing import List, Optional, Sequence

import httpx
from lxml import etree

from libfinder.domain.entities import HolderState, HoldingRecord, HoldingsResult
from libfinder.domain.errors import NotFoundError, ParseError, TransportError
from libfinder.domain.ports import HoldingsProvider
from libfinder.infrastructure.external.xml_utils import (
    child_text,
    find_child,
    iter_children,
    parse_xml,
)

logger = logging.getLogger(__name__)


class CiniiHoldingsClient(HoldingsProvider):
    """
    Usage:
        client = CiniiHoldingsClient(app_id="...")
        result = await client.query_holdings("9784001141276", ())
    """

    SEARCH_URL = "https://ci.nii.ac.jp/books/opensearch/search"
    HOLDER_URL = "https://ci.nii.ac.jp/books/opensearch/holder"

    def __init__(
        self,
        app_id: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._app_id = app_id
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    def get_source_name(self) -> str:
        return "cinii"

    async def query_holdings(self, isbn: str, system_ids: Sequence[str] = ()) -> HoldingsResult:
        """
        Libraries holding `isbn`. `system_ids` is ignored.

        Raises:
            NotFoundError: If CiNii has no record for the isbn
        """
        search_root = await self._request(self.SEARCH_URL, {"appid": self._app_id, "isbn": isbn})
        ncid = parse_ncid(search_root)
        if ncid is None:
            raise NotFoundError(f"isbn '{isbn}' not found in CiNii Books")

        logger.debug("CiNii resolved isbn %s to NCID %s", isbn, ncid)
        holder_root = await self._request(self.HOLDER_URL, {"appid": self._app_id, "ncid": ncid})
        return parse_holders(holder_root)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, url: str, params: dict) -> etree._Element:
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("CiNii request to %s failed: %s", url, e)
            raise TransportError(f"CiNii request failed: {e}") from e

        return parse_xml(response.content, "CiNii")


def parse_ncid(root: etree._Element) -> Optional[str]:
    """NCID of the first entry: the last path segment of its id URL."""
    entry_id = child_text(find_child(root, "entry"), "id")
    if entry_id is None:
        return None
    ncid = entry_id.rstrip("/").rsplit("/", 1)[-1]
    return ncid or None


def parse_holders(root: etree._Element) -> HoldingsResult:
    """
    Parse a holder feed.

    Library names have their spaces removed so they line up with the
    formal names used elsewhere.

    Raises:
        ParseError: If totalResults is missing or not a number
    """
    total_text = child_text(root, "totalResults")
    try:
        total_count = int(total_text) if total_text is not None else None
    except ValueError:
        total_count = None
    if total_count is None:
        raise ParseError("CiNii holder feed has no totalResults")

    records: List[HoldingRecord] = []
    for entry in iter_children(root, "entry"):
        title = child_text(entry, "title")
        if title is None:
            continue
        records.append(HoldingRecord(
            system_id="",
            ingroup_key="",
            state=HolderState.EXISTS,
            library_name=title.replace(" ", ""),
        ))

    return HoldingsResult(records=tuple(records), total_count=total_count)
