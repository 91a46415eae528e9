"""
API endpoints for the library catalog.
"""

from fastapi import APIRouter, Depends, Query

from libfinder.api.v1 import schemas as api
from libfinder.api.v1.converters import domain_library_page_to_api, domain_library_to_api
from libfinder.api.v1.dependencies import get_catalog_store
from libfinder.api.v1.errors import to_http_exception
from libfinder.domain.errors import LibfinderError
from libfinder.domain.value_objects import Geocode, PageRequest
from libfinder.infrastructure.catalog.snapshot_store import CatalogSnapshotStore

router = APIRouter()


@router.get("/libraries", response_model=api.LibraryPage)
def search_libraries(
    prefecture: str = Query(description="Exact prefecture name, e.g. 富山県"),
    city: str = Query(description="Exact city name, e.g. 射水市"),
    page_size: int = Query(default=20, ge=1, le=100),
    page: int = Query(default=0, ge=0),
    catalog: CatalogSnapshotStore = Depends(get_catalog_store),
) -> api.LibraryPage:
    """
    Libraries in one prefecture and city.

    total_count is the number of matches before pagination.
    """
    try:
        result = catalog.find_by_region(prefecture, city, PageRequest(page_size=page_size, page=page))
    except (ValueError, LibfinderError) as e:
        raise to_http_exception(e) from e

    return domain_library_page_to_api(result)


@router.get("/libraries/nearby", response_model=api.LibraryPage)
def nearby_libraries(
    lat: float = Query(ge=-90, le=90),
    lng: float = Query(ge=-180, le=180),
    limit: int = Query(default=20, ge=0, le=100),
    catalog: CatalogSnapshotStore = Depends(get_catalog_store),
) -> api.LibraryPage:
    """
    Libraries nearest to a point, closest first.
    """
    try:
        result = catalog.rank_by_distance(Geocode(lat=lat, lng=lng), limit)
    except (ValueError, LibfinderError) as e:
        raise to_http_exception(e) from e

    return domain_library_page_to_api(result)


@router.post("/libraries/refresh", response_model=api.RefreshResponse)
async def refresh_libraries(
    catalog: CatalogSnapshotStore = Depends(get_catalog_store),
) -> api.RefreshResponse:
    """
    Reload the catalog from upstream.

    On failure the previous catalog keeps serving and the caller gets 500.
    """
    try:
        count = await catalog.refresh()
    except LibfinderError as e:
        raise to_http_exception(e) from e

    return api.RefreshResponse(library_count=count)


@router.get("/libraries/{name}", response_model=api.Library)
def get_library(
    name: str,
    catalog: CatalogSnapshotStore = Depends(get_catalog_store),
) -> api.Library:
    """
    Library by exact name.

    Raises:
        404: No library has this name
    """
    try:
        library = catalog.find_by_name(name)
    except LibfinderError as e:
        raise to_http_exception(e) from e

    return domain_library_to_api(library)


@router.get("/health")
def health_check(
    catalog: CatalogSnapshotStore = Depends(get_catalog_store),
) -> dict:
    """
    Report catalog readiness.

    The service is "degraded" until the first successful refresh.
    """
    try:
        size = catalog.size()
    except LibfinderError as e:
        raise to_http_exception(e) from e

    return {
        "status": "ok" if size > 0 else "degraded",
        "components": {
            "catalog": size > 0,
        },
        "library_count": size,
    }
