"""
API endpoints for holdings.

These routes are `async def`: a holder query may poll the backend for
several seconds and must not tie up a worker thread while it waits.
While the query runs, the route checks every DISCONNECT_CHECK_INTERVAL_S
seconds whether the client is still connected. Once a disconnect is
seen, the query task is cancelled and polling stops.
"""

import asyncio
import logging
from typing import Awaitable, List, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from libfinder.api.v1 import schemas as api
from libfinder.api.v1.converters import domain_holder_page_to_api
from libfinder.api.v1.dependencies import get_holder_query_service
from libfinder.api.v1.errors import to_http_exception
from libfinder.domain.errors import LibfinderError
from libfinder.domain.services import HolderQueryService
from libfinder.domain.value_objects import PageRequest

logger = logging.getLogger(__name__)

router = APIRouter()

DISCONNECT_CHECK_INTERVAL_S = 0.5
CLIENT_CLOSED_REQUEST = 499

T = TypeVar("T")


async def run_until_disconnect(request: Request, job: Awaitable[T]) -> T:
    """
    Await `job`, cancelling it if the client goes away first.

    Raises:
        HTTPException: 499 when the client disconnected before the job finished
    """
    task = asyncio.ensure_future(job)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_CHECK_INTERVAL_S)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                logger.info("Client left %s; holder query cancelled", request.url.path)
                raise HTTPException(status_code=CLIENT_CLOSED_REQUEST, detail="client closed request")
    finally:
        if not task.done():
            task.cancel()


@router.get("/holders", response_model=api.HolderPage)
async def query_holders(
    request: Request,
    isbn: str = Query(min_length=1),
    library: List[str] = Query(description="Library name; repeat for several libraries"),
    service: HolderQueryService = Depends(get_holder_query_service),
) -> api.HolderPage:
    """
    Availability of one book at each requested library, in request order.
    """
    try:
        result = await run_until_disconnect(request, service.holder_query(isbn, library))
    except (ValueError, LibfinderError) as e:
        raise to_http_exception(e) from e

    return domain_holder_page_to_api(result)


@router.get("/holders/academic", response_model=api.HolderPage)
async def query_academic_holders(
    request: Request,
    isbn: str = Query(min_length=1),
    page_size: int = Query(default=20, ge=1, le=100),
    page: int = Query(default=0, ge=0),
    service: HolderQueryService = Depends(get_holder_query_service),
) -> api.HolderPage:
    """
    University libraries holding one book, according to CiNii Books.
    """
    try:
        result = await run_until_disconnect(
            request, service.academic_holder_query(isbn, PageRequest(page_size=page_size, page=page))
        )
    except (ValueError, LibfinderError) as e:
        raise to_http_exception(e) from e

    return domain_holder_page_to_api(result)
