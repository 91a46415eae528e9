"""
Value objects for the domain layer.

Value objects are immutable objects that represent descriptive aspects
of the domain with no conceptual identity.
"""

from dataclasses import dataclass
from typing import Sequence, List, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Geocode:
    """
    A point on the Earth's surface in decimal degrees.
    """

    lat: float
    """Latitude, -90 to 90"""

    lng: float
    """Longitude, -180 to 180"""

    def __post_init__(self) -> None:
        """Validate coordinate ranges."""
        if not (-90.0 <= self.lat <= 90.0):
            raise ValueError(f"lat must be between -90 and 90, got {self.lat}")

        if not (-180.0 <= self.lng <= 180.0):
            raise ValueError(f"lng must be between -180 and 180, got {self.lng}")


@dataclass(frozen=True)
class PageRequest:
    """
    Offset pagination shared by every paginated query.

    Pages are 0-based: page 0 covers items [0, page_size). A page_size of 0
    yields an empty page; upper limits belong to the HTTP layer.
    Backends with other native conventions convert inside their adapter.
    """

    page_size: int = 20
    """Number of items per page (>= 0)"""

    page: int = 0
    """0-based page number"""

    def __post_init__(self) -> None:
        """Validate pagination bounds."""
        if self.page_size < 0:
            raise ValueError(f"page_size must be >= 0, got {self.page_size}")

        if self.page < 0:
            raise ValueError(f"page must be >= 0, got {self.page}")

    @property
    def offset(self) -> int:
        """Index of the first item on this page."""
        return self.page * self.page_size

    def slice(self, items: Sequence[T]) -> List[T]:
        """Return the window of `items` covered by this page."""
        return list(items[self.offset:self.offset + self.page_size])


@dataclass(frozen=True)
class LibraryKey:
    """
    Identifies one branch within the holdings backend.

    A system id groups libraries sharing one backend instance; the in-group
    key distinguishes branches inside that system.
    """

    system_id: str
    ingroup_key: str
