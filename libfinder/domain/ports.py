"""
Port interfaces (protocols) for the domain layer.

Ports define the contracts between the domain and infrastructure layers.
They are implemented by adapters in the infrastructure layer, allowing
the domain to remain independent of technical details.

Following Hexagonal Architecture principles, the domain layer depends only
on these abstract protocols, never on concrete implementations.
"""

from typing import Protocol, List, Optional, Sequence

from .entities import (
    Book,
    BookPage,
    HoldingsResult,
    Library,
    LibraryPage,
    Reservation,
    ReservationPage,
    User,
)
from .value_objects import Geocode, PageRequest


class BookMetadataProvider(Protocol):
    """
    Port for one external book metadata backend.

    Each implementation owns its request construction (including its native
    pagination convention) and its response parsing. Implementations are
    synchronous and one-shot: one HTTP round-trip per call.
    """

    def search(self, query_text: str, page_size: int, page: int) -> BookPage:
        """
        Free-text search.

        Args:
            query_text: Search text, passed to the backend verbatim
            page_size: Items per page
            page: 0-based page number

        Returns:
            BookPage whose total_count is the backend's total hit count.
            Records lacking a title are dropped from items.

        Raises:
            ValueError: If query_text is empty
            TransportError: If the HTTP request fails
            ParseError: If the payload is malformed at the page level
        """
        ...

    def get(self, isbn: str) -> Book:
        """
        Fetch one book by isbn.

        Equivalent to an isbn search with page size 1 returning the first item.

        Raises:
            NotFoundError: If the backend has no record for the isbn
            TransportError: If the HTTP request fails
            ParseError: If the payload is malformed
        """
        ...

    def get_source_name(self) -> str:
        """Tag that selects this backend (e.g. 'ndl')."""
        ...


class HoldingsProvider(Protocol):
    """
    Port for one external holdings backend.

    Implementations may run a multi-round job internally; callers only
    see the final, complete result.
    """

    async def query_holdings(self, isbn: str, system_ids: Sequence[str]) -> HoldingsResult:
        """
        Fetch the current holdings of `isbn`.

        Args:
            isbn: Book to look up
            system_ids: Holdings systems to ask, already deduplicated.
                Backends without a notion of systems ignore this.

        Raises:
            NotFoundError: If the backend does not know the isbn
            TransportError: If any HTTP round-trip fails
            ParseError: If any response is malformed
        """
        ...

    def get_source_name(self) -> str:
        ...


class LibraryCatalogSource(Protocol):
    """
    Port for the upstream feed listing every known library.
    """

    async def fetch_libraries(self) -> List[Library]:
        """
        Fetch and parse the complete library list in one request.

        Raises:
            TransportError: If the request fails or the body is too large
            ParseError: If the document cannot be parsed
        """
        ...


class LibraryCatalog(Protocol):
    """
    Port for read access to the current library snapshot.
    """

    def find_by_region(self, prefecture: str, city: str, page: PageRequest) -> LibraryPage:
        """
        Libraries whose prefecture and city both match exactly.

        total_count is the filtered count before pagination.
        """
        ...

    def find_by_name(self, name: str) -> Library:
        """
        Library with exactly this name; first match wins.

        Raises:
            NotFoundError: If no library has this name
        """
        ...

    def rank_by_distance(self, origin: Geocode, limit: int) -> LibraryPage:
        """Nearest libraries first, at most `limit` of them."""
        ...

    def resolve(self, names: Sequence[str]) -> List[Optional[Library]]:
        """
        Resolve every name against one consistent snapshot.

        Returns:
            One entry per input name, None where the name is unknown
        """
        ...

    def is_ready(self) -> bool:
        """True once a non-empty snapshot has been loaded."""
        ...

    def size(self) -> int:
        ...


class AccountRepository(Protocol):
    """
    Port for user accounts and login sessions.
    """

    def create_user(self, email: str, password: str, fullname: str, address: str) -> User:
        """
        Raises:
            ValueError: If the email is already registered
        """
        ...

    def login(self, email: str, password: str) -> str:
        """
        Returns:
            A new opaque bearer token

        Raises:
            AuthenticationError: If the credentials do not match
        """
        ...

    def logout(self, token: str) -> None:
        ...

    def get_user_by_token(self, token: str) -> User:
        """
        Raises:
            AuthenticationError: If the token is unknown
        """
        ...


class ReservationRepository(Protocol):
    """
    Port for reservation persistence.
    """

    def create_reservation(self, user_id: int, isbn: str, library_name: str) -> Reservation:
        ...

    def list_reservations(self, user_id: int, page: PageRequest) -> ReservationPage:
        ...

    def get_reservation(self, user_id: int, reservation_id: int) -> Reservation:
        """
        Raises:
            NotFoundError: If the reservation does not exist or belongs to another user
        """
        ...
