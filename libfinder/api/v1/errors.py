"""
Mapping from domain errors to HTTP errors.

Clients only ever see "bad request", "unauthorized", "not found",
"timeout" or "internal error"; backend details stay in the logs.
"""

import logging

from fastapi import HTTPException, status

from libfinder.domain.errors import (
    AuthenticationError,
    LibfinderError,
    NotFoundError,
    PollingTimeoutError,
)

logger = logging.getLogger(__name__)


def to_http_exception(error: Exception) -> HTTPException:
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))

    if isinstance(error, AuthenticationError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(error),
            headers={"WWW-Authenticate": "Bearer"},
        )

    if isinstance(error, PollingTimeoutError):
        return HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(error))

    if isinstance(error, ValueError) and not isinstance(error, LibfinderError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))

    logger.error("Request failed: %s: %s", type(error).__name__, error)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="internal error",
    )
