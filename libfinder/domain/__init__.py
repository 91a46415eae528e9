"""
Domain layer - Core business logic and entities.

This layer contains the business entities, value objects, and defines
the ports (interfaces) that the infrastructure layer must implement.

It has NO dependencies on external frameworks, databases, or APIs.
"""

from .entities import (
    Book,
    Holder,
    HolderState,
    HoldingRecord,
    HoldingsResult,
    Library,
    PollingSession,
    PollingState,
    Reservation,
    User,
)
from .value_objects import Geocode, LibraryKey, PageRequest

__all__ = [
    # Entities
    "Book",
    "Holder",
    "HolderState",
    "HoldingRecord",
    "HoldingsResult",
    "Library",
    "PollingSession",
    "PollingState",
    "Reservation",
    "User",
    # Value Objects
    "Geocode",
    "LibraryKey",
    "PageRequest",
]
