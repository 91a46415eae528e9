"""
Domain service for bearer-token scoped reservations.
"""

import logging

from libfinder.domain.entities import Reservation, ReservationPage, User
from libfinder.domain.errors import AuthenticationError
from libfinder.domain.ports import AccountRepository, ReservationRepository
from libfinder.domain.value_objects import PageRequest

logger = logging.getLogger(__name__)


class ReservationService:
    """
    Resolves bearer tokens to users and delegates to the reservation store.

    Every operation is scoped to the token's user; a reservation belonging
    to someone else is indistinguishable from a missing one.
    """

    def __init__(self, accounts: AccountRepository, reservations: ReservationRepository) -> None:
        self._accounts = accounts
        self._reservations = reservations

    def current_user(self, token: str) -> User:
        """
        Raises:
            AuthenticationError: If the token is empty or unknown
        """
        if not token:
            raise AuthenticationError("missing bearer token")
        return self._accounts.get_user_by_token(token)

    def reserve(self, token: str, isbn: str, library_name: str) -> Reservation:
        """Stage a reservation of `isbn` at `library_name`."""
        if not isbn or not isbn.strip():
            raise ValueError("isbn cannot be empty")
        if not library_name or not library_name.strip():
            raise ValueError("library_name cannot be empty")

        user = self.current_user(token)
        reservation = self._reservations.create_reservation(user.id, isbn.strip(), library_name.strip())
        logger.info("User %s staged reservation %s", user.id, reservation.id)
        return reservation

    def list(self, token: str, page: PageRequest) -> ReservationPage:
        user = self.current_user(token)
        return self._reservations.list_reservations(user.id, page)

    def get(self, token: str, reservation_id: int) -> Reservation:
        user = self.current_user(token)
        return self._reservations.get_reservation(user.id, reservation_id)
