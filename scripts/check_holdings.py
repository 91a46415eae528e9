#!/usr/bin/env python3
"""
Holdings check script.

Loads the Calil library list, then reports the availability of one isbn
at the given libraries.

Usage:
    CALIL_APPKEY=... python -m scripts.check_holdings --isbn 9784001141276 \
        --library 富山県立大学附属図書館射水館

Exits 0 when at least one requested library holds the book, 1 when none
does or the check fails, and 2 when CALIL_APPKEY is missing.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List

from libfinder.domain.errors import LibfinderError
from libfinder.domain.services import HolderQueryService
from libfinder.infrastructure.catalog.snapshot_store import CatalogSnapshotStore
from libfinder.infrastructure.external import CalilHoldingsClient, CalilLibraryClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def check(app_key: str, isbn: str, libraries: List[str], timeout_s: float) -> int:
    """
    Refresh the catalog and run one holder query.

    Returns:
        Number of requested libraries reported as holding the book
    """
    library_client = CalilLibraryClient(app_key=app_key)
    holdings_client = CalilHoldingsClient(app_key=app_key)
    try:
        store = CatalogSnapshotStore(source=library_client)
        count = await store.refresh()
        logger.info("Loaded %s libraries", count)

        service = HolderQueryService(catalog=store, holdings=holdings_client, timeout_s=timeout_s)
        page = await service.holder_query(isbn, libraries)
    finally:
        await library_client.aclose()
        await holdings_client.aclose()

    held = 0
    for holder in page.items:
        print(f"{holder.library_name}\t{holder.state.value}")
        if holder.state.value != "nothing":
            held += 1
    return held


def main(isbn: str, libraries: List[str], timeout_s: float = 60.0) -> int:
    app_key = os.getenv("CALIL_APPKEY")
    if not app_key:
        logger.error("CALIL_APPKEY is not set")
        sys.exit(2)

    try:
        return asyncio.run(check(app_key, isbn, libraries, timeout_s))
    except LibfinderError as e:
        logger.error(f"Holdings check failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Check library holdings of one book")
    parser.add_argument(
        "--isbn", "-i",
        type=str,
        required=True,
        help="ISBN of the book"
    )
    parser.add_argument(
        "--library", "-l",
        action="append",
        required=True,
        help="Formal library name (repeatable)"
    )
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=60.0,
        help="Wall-clock budget in seconds (default: 60)"
    )

    args = parser.parse_args()
    sys.exit(0 if main(args.isbn, args.library, args.timeout) else 1)
