"""
API endpoints for users, login sessions and reservations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from libfinder.api.v1 import schemas as api
from libfinder.api.v1.converters import (
    domain_reservation_page_to_api,
    domain_reservation_to_api,
    domain_user_to_api,
)
from libfinder.api.v1.dependencies import get_account_repository, get_reservation_service
from libfinder.api.v1.errors import to_http_exception
from libfinder.domain.errors import AuthenticationError, LibfinderError
from libfinder.domain.ports import AccountRepository
from libfinder.domain.services import ReservationService
from libfinder.domain.value_objects import PageRequest

router = APIRouter()

_bearer = HTTPBearer(auto_error=False)


def bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> str:
    """Extract the bearer token, answering 401 when it is missing."""
    if credentials is None or not credentials.credentials:
        raise to_http_exception(AuthenticationError("missing bearer token"))
    return credentials.credentials


@router.post("/users", response_model=api.User, status_code=status.HTTP_201_CREATED)
def create_user(
    request: api.UserCreateRequest,
    accounts: AccountRepository = Depends(get_account_repository),
) -> api.User:
    try:
        user = accounts.create_user(request.email, request.password, request.fullname, request.address)
    except (ValueError, LibfinderError) as e:
        raise to_http_exception(e) from e

    return domain_user_to_api(user)


@router.post("/sessions", response_model=api.LoginResponse)
def login(
    request: api.LoginRequest,
    accounts: AccountRepository = Depends(get_account_repository),
) -> api.LoginResponse:
    try:
        token = accounts.login(request.email, request.password)
    except LibfinderError as e:
        raise to_http_exception(e) from e

    return api.LoginResponse(token=token)


@router.delete("/sessions", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    token: str = Depends(bearer_token),
    accounts: AccountRepository = Depends(get_account_repository),
) -> Response:
    accounts.logout(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users/me", response_model=api.User)
def current_user(
    token: str = Depends(bearer_token),
    service: ReservationService = Depends(get_reservation_service),
) -> api.User:
    try:
        user = service.current_user(token)
    except LibfinderError as e:
        raise to_http_exception(e) from e

    return domain_user_to_api(user)


@router.post("/reservations", response_model=api.Reservation, status_code=status.HTTP_201_CREATED)
def create_reservation(
    request: api.ReservationCreateRequest,
    token: str = Depends(bearer_token),
    service: ReservationService = Depends(get_reservation_service),
) -> api.Reservation:
    try:
        reservation = service.reserve(token, request.isbn, request.library_name)
    except (ValueError, LibfinderError) as e:
        raise to_http_exception(e) from e

    return domain_reservation_to_api(reservation)


@router.get("/reservations", response_model=api.ReservationPage)
def list_reservations(
    page_size: int = Query(default=20, ge=1, le=100),
    page: int = Query(default=0, ge=0),
    token: str = Depends(bearer_token),
    service: ReservationService = Depends(get_reservation_service),
) -> api.ReservationPage:
    try:
        result = service.list(token, PageRequest(page_size=page_size, page=page))
    except (ValueError, LibfinderError) as e:
        raise to_http_exception(e) from e

    return domain_reservation_page_to_api(result)


@router.get("/reservations/{reservation_id}", response_model=api.Reservation)
def get_reservation(
    reservation_id: int,
    token: str = Depends(bearer_token),
    service: ReservationService = Depends(get_reservation_service),
) -> api.Reservation:
    try:
        reservation = service.get(token, reservation_id)
    except LibfinderError as e:
        raise to_http_exception(e) from e

    return domain_reservation_to_api(reservation)
