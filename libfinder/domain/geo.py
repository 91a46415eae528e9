"""
Geoproximity helpers.
"""

import math
from typing import Iterable, List

from .entities import Library
from .value_objects import Geocode

EARTH_RADIUS_M = 6_371_000.0
"""Mean Earth radius in meters"""


def haversine_distance(a: Geocode, b: Geocode) -> float:
    """
    Great-circle distance between two points, in meters.

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in meters along the surface of a sphere of mean Earth radius
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.lng - a.lng)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def rank_by_distance(
    libraries: Iterable[Library],
    origin: Geocode,
    limit: int,
) -> List[Library]:
    """
    Sort libraries by distance from `origin` and keep the nearest `limit`.

    Distances are compared truncated to whole meters. The sort is stable,
    so libraries at the same truncated distance keep their input order.

    Raises:
        ValueError: If limit is negative
    """
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")

    ranked = sorted(
        libraries,
        key=lambda library: int(haversine_distance(library.geocode, origin)),
    )
    return ranked[:limit]
