"""
Error taxonomy for the domain layer.

Adapters translate library-specific failures (requests, httpx, lxml, json)
into these types so that services and the API layer never depend on
infrastructure exception classes.
"""


class LibfinderError(Exception):
    """Root of all errors raised by this package."""


class BackendError(LibfinderError, RuntimeError):
    """Any failure while talking to an external catalog service."""


class TransportError(BackendError):
    """Network failure, non-2xx status, or an oversized response body."""


class ParseError(BackendError):
    """Malformed or schema-mismatched payload from an external service."""


class PollingTimeoutError(BackendError):
    """A holder query did not complete within its wall-clock budget."""


class NotFoundError(LibfinderError, LookupError):
    """An isbn, library, session token or reservation yields nothing."""


class StateCorruptionError(LibfinderError):
    """
    Internal snapshot state could not be read safely.

    Fatal for the in-flight request; never recovered silently.
    """


class AuthenticationError(LibfinderError):
    """Bad credentials or an unknown bearer token."""
