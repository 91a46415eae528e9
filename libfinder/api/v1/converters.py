"""
Converters between domain entities and API schemas.

This module centralizes all conversion logic between the domain layer
and the API layer, maintaining clean separation of concerns.
"""

from dataclasses import asdict

from libfinder.domain import entities as domain
from libfinder.api.v1 import schemas as api


def domain_book_to_api(book: domain.Book) -> api.Book:
    """
    Convert a domain Book entity to an API Book model.
    """
    return api.Book(**asdict(book))


def domain_book_page_to_api(page: domain.BookPage) -> api.BookPage:
    return api.BookPage(
        items=[domain_book_to_api(book) for book in page.items],
        total_count=page.total_count,
    )


def domain_library_to_api(library: domain.Library) -> api.Library:
    """
    Convert a domain Library to its API model, dropping backend keys.
    """
    return api.Library(
        name=library.name,
        address=library.address,
        prefecture=library.prefecture,
        city=library.city,
        postcode=library.postcode,
        tel=library.tel,
        url=library.url,
        geocode=api.Geocode(lat=library.geocode.lat, lng=library.geocode.lng),
    )


def domain_library_page_to_api(page: domain.LibraryPage) -> api.LibraryPage:
    return api.LibraryPage(
        items=[domain_library_to_api(library) for library in page.items],
        total_count=page.total_count,
    )


def domain_holder_page_to_api(page: domain.HolderPage) -> api.HolderPage:
    return api.HolderPage(
        items=[
            api.Holder(isbn=holder.isbn, library_name=holder.library_name, state=holder.state.value)
            for holder in page.items
        ],
        total_count=page.total_count,
    )


def domain_user_to_api(user: domain.User) -> api.User:
    return api.User(**asdict(user))


def domain_reservation_to_api(reservation: domain.Reservation) -> api.Reservation:
    return api.Reservation(**asdict(reservation))


def domain_reservation_page_to_api(page: domain.ReservationPage) -> api.ReservationPage:
    return api.ReservationPage(
        items=[domain_reservation_to_api(reservation) for reservation in page.items],
        total_count=page.total_count,
    )
