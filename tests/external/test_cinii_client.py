"""
Tests for CiniiHoldingsClient.
"""

from typing import List

import httpx
import pytest

from libfinder.domain.entities import HolderState
from libfinder.domain.errors import NotFoundError, ParseError, TransportError
from libfinder.infrastructure.external.cinii_client import CiniiHoldingsClient


SEARCH_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom"
      xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/">
  <title>CiNii Books OpenSearch - isbn=9784001141276</title>
  <opensearch:totalResults>1</opensearch:totalResults>
  <entry>
    <title>はてしない物語</title>
    <id>https://ci.nii.ac.jp/ncid/BN01234567</id>
  </entry>
</feed>
""".encode("utf-8")

HOLDER_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom"
      xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/">
  <opensearch:totalResults>3</opensearch:totalResults>
  <entry><title>東京大学 総合図書館</title></entry>
  <entry><title>京都大学 附属図書館</title></entry>
  <entry><title>大阪大学 附属図書館</title></entry>
</feed>
""".encode("utf-8")

EMPTY_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom"
      xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/">
  <opensearch:totalResults>0</opensearch:totalResults>
</feed>
"""


def cinii_client(routes: dict, seen: List[httpx.Request]) -> CiniiHoldingsClient:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        status, body = routes[request.url.path]
        return httpx.Response(status, content=body)

    return CiniiHoldingsClient(
        app_id="cinii-app",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestCiniiHoldingsClient:
    """Tests for CiniiHoldingsClient.query_holdings()."""

    @pytest.mark.asyncio
    async def test_resolves_ncid_then_lists_holders(self):
        seen: List[httpx.Request] = []
        client = cinii_client({
            "/books/opensearch/search": (200, SEARCH_FEED),
            "/books/opensearch/holder": (200, HOLDER_FEED),
        }, seen)

        result = await client.query_holdings("9784001141276")

        assert result.total_count == 3
        assert [r.library_name for r in result.records] == [
            "東京大学総合図書館",
            "京都大学附属図書館",
            "大阪大学附属図書館",
        ]
        assert all(r.state is HolderState.EXISTS for r in result.records)

        search, holder = seen
        assert search.url.params["isbn"] == "9784001141276"
        assert search.url.params["appid"] == "cinii-app"
        assert holder.url.params["ncid"] == "BN01234567"
        assert holder.url.params["appid"] == "cinii-app"

    @pytest.mark.asyncio
    async def test_unknown_isbn_not_found(self):
        seen: List[httpx.Request] = []
        client = cinii_client({"/books/opensearch/search": (200, EMPTY_FEED)}, seen)

        with pytest.raises(NotFoundError):
            await client.query_holdings("0000000000000")

        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_holder_feed_without_total_is_parse_error(self):
        seen: List[httpx.Request] = []
        client = cinii_client({
            "/books/opensearch/search": (200, SEARCH_FEED),
            "/books/opensearch/holder": (200, b'<feed xmlns="http://www.w3.org/2005/Atom"/>'),
        }, seen)

        with pytest.raises(ParseError):
            await client.query_holdings("9784001141276")

    @pytest.mark.asyncio
    async def test_http_error_is_transport_error(self):
        seen: List[httpx.Request] = []
        client = cinii_client({"/books/opensearch/search": (502, b"bad gateway")}, seen)

        with pytest.raises(TransportError):
            await client.query_holdings("9784001141276")

    def test_source_name(self):
        assert cinii_client({}, []).get_source_name() == "cinii"
