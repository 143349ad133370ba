"""
Relay error taxonomy.

Every failure the chat relay can report maps to one `ErrorKind`. Errors that
are detected before the first byte is streamed are rendered by the exception
handlers in `main.py` as the JSON envelope ``{"status": false, "error": kind,
"message": ...}``. A `StreamError` raised after streaming has begun escapes
the response body instead, which aborts the HTTP transfer.
"""

from enum import Enum


class ErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    UNCONFIGURED = "unconfigured"
    UPSTREAM_HTTP_ERROR = "upstream_http_error"
    UPSTREAM_EXCEPTION = "upstream_exception"
    STREAM_ERROR = "stream_error"


class RelayError(Exception):
    """Base exception for relay failures"""

    kind: ErrorKind = ErrorKind.STREAM_ERROR
    http_status: int = 500

    def __init__(self, message: str, **extra):
        self.message = message
        self.extra = extra
        super().__init__(message)

    def to_payload(self) -> dict:
        return {"status": False, "error": self.kind.value, "message": self.message}


class BadRequestError(RelayError):
    """Malformed or missing input."""

    kind = ErrorKind.BAD_REQUEST
    http_status = 400


class UnconfiguredError(RelayError):
    """A required credential or secret is missing."""

    kind = ErrorKind.UNCONFIGURED
    http_status = 500


class UpstreamHTTPError(RelayError):
    """External provider answered with a non-success status."""

    kind = ErrorKind.UPSTREAM_HTTP_ERROR
    http_status = 502

    def __init__(self, message: str, status_code: int | None = None, **extra):
        self.status_code = status_code
        super().__init__(message, **extra)


class UpstreamExceptionError(RelayError):
    """Network or transport failure while talking to a provider."""

    kind = ErrorKind.UPSTREAM_EXCEPTION
    http_status = 502


class StreamError(Exception):
    """
    Failure after the byte stream has begun.

    Not a RelayError: no exception handler may answer it, since the headers
    are already sent. It escapes the response body and aborts the transfer.
    """

    kind = ErrorKind.STREAM_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
