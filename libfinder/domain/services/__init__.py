"""
Domain services package.

Services orchestrate domain logic that doesn't naturally belong to a single
entity. They coordinate between entities and ports to implement use cases.

Following Hexagonal Architecture principles, services depend only on domain
entities, value objects, and port protocols (never on concrete implementations).
"""

from .book_search_service import BookSearchService
from .holder_query_service import HolderQueryService
from .reservation_service import ReservationService

__all__ = [
    "BookSearchService",
    "HolderQueryService",
    "ReservationService",
]
