"""
Domain entities for the library holdings aggregator.

Libraries come from one catalog snapshot and are immutable; books and
holders are built fresh for every query and carry no persistent identity.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Tuple

from .value_objects import Geocode, LibraryKey


@dataclass(frozen=True)
class Library:
    """
    A library known to the holdings backend.

    Names are assumed unique within one snapshot. The whole set of
    libraries is replaced atomically on refresh, never mutated in place.
    """

    name: str
    """Formal library name"""

    system_id: str
    """Holdings backend key shared by every branch of one system"""

    ingroup_key: str
    """Branch key within the system"""

    geocode: Geocode
    """Location of the library"""

    address: Optional[str] = None
    prefecture: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    tel: Optional[str] = None
    url: Optional[str] = None

    system_name: Optional[str] = None
    """Human-readable name of the system"""

    short_name: Optional[str] = None
    """Abbreviated library name"""

    def __post_init__(self) -> None:
        """Validate library identity fields."""
        if not self.name or not self.name.strip():
            raise ValueError("Library name cannot be empty")

        if not self.system_id:
            raise ValueError("Library system_id cannot be empty")

        if not self.ingroup_key:
            raise ValueError("Library ingroup_key cannot be empty")

    @property
    def key(self) -> LibraryKey:
        """The (system_id, ingroup_key) pair used by the holdings backend."""
        return LibraryKey(self.system_id, self.ingroup_key)


@dataclass
class Book:
    """
    Book metadata normalized from one of the metadata backends.
    """

    title: str
    """Book title"""

    authors: List[str] = field(default_factory=list)
    """Creators as listed by the backend"""

    publishers: List[str] = field(default_factory=list)

    issued_at: Optional[str] = None
    """Issue date exactly as the backend formats it (e.g. '2011-04', '2011年04月')"""

    isbn: Optional[str] = None

    language: Optional[str] = None

    descriptions: List[str] = field(default_factory=list)
    """Abstracts or captions"""

    keywords: List[str] = field(default_factory=list)
    """Subjects or categories"""

    annotations: List[str] = field(default_factory=list)
    """Free-form notes such as physical size"""

    image_url: Optional[str] = None
    """Cover thumbnail"""

    source: str = "unknown"
    """Backend tag that produced this record (e.g. 'ndl', 'google')"""

    def __post_init__(self) -> None:
        """Validate book data."""
        if not self.title or not self.title.strip():
            raise ValueError("Book title cannot be empty")


class HolderState(str, Enum):
    """Availability of one book at one library."""

    NOTHING = "nothing"
    EXISTS = "exists"
    RESERVED = "reserved"
    BORROWED = "borrowed"
    INPLACE = "inplace"

    @classmethod
    def default(cls) -> "HolderState":
        """State reported whenever a library/isbn pair is unmatched or unknown."""
        return cls.NOTHING


@dataclass(frozen=True)
class Holder:
    """
    Joins one requested book to one requested library's current status.
    """

    isbn: str
    library_name: str
    state: HolderState = HolderState.NOTHING


@dataclass(frozen=True)
class HoldingRecord:
    """
    One backend-native holdings row.

    Calil rows are keyed by (system_id, ingroup_key); CiNii rows carry
    only a library name.
    """

    system_id: str
    ingroup_key: str
    state: HolderState
    library_name: Optional[str] = None

    @property
    def key(self) -> LibraryKey:
        return LibraryKey(self.system_id, self.ingroup_key)


@dataclass(frozen=True)
class HoldingsResult:
    """Everything one holdings backend returned for a single isbn."""

    records: Tuple[HoldingRecord, ...] = ()
    total_count: int = 0


class PollingState(str, Enum):
    """Lifecycle of one asynchronous holdings job."""

    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class PollingSession:
    """
    State of one holdings job, scoped to a single holder query.

    `records` always holds the latest response only; every poll replaces
    it because the most recent answer is authoritative.
    """

    session: Optional[str] = None
    """Opaque token correlating polls with the original job"""

    has_next: bool = True
    """Continuation flag: more holder data arrives on a later poll"""

    records: Tuple[HoldingRecord, ...] = ()

    state: PollingState = PollingState.SUBMITTED

    rounds: int = 0
    """Number of requests issued so far"""

    def apply(self, session: str, has_next: bool, records: Tuple[HoldingRecord, ...]) -> None:
        """Take one response as the new authoritative state."""
        self.session = session
        self.has_next = has_next
        self.records = records
        self.rounds += 1
        self.state = PollingState.POLLING if has_next else PollingState.COMPLETE

    def fail(self) -> None:
        self.state = PollingState.FAILED

    def is_done(self) -> bool:
        return self.state in (PollingState.COMPLETE, PollingState.FAILED)


@dataclass(frozen=True)
class User:
    """A registered user. Password material never leaves the repository."""

    id: int
    email: str
    fullname: str
    address: str


@dataclass(frozen=True)
class Reservation:
    """A reservation request for one book at one library."""

    id: int
    user_id: int
    library_name: str
    isbn: str
    state: str
    staging_at: datetime
    staged_at: Optional[datetime] = None
    reserved_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass
class BookPage:
    items: List[Book] = field(default_factory=list)
    total_count: int = 0


@dataclass
class LibraryPage:
    items: List[Library] = field(default_factory=list)
    total_count: int = 0


@dataclass
class HolderPage:
    items: List[Holder] = field(default_factory=list)
    total_count: int = 0


@dataclass
class ReservationPage:
    items: List[Reservation] = field(default_factory=list)
    total_count: int = 0
