"""Domain exceptions for topic synchronization.

Every failure a top-level sync operation can report is a SyncError carrying
an ErrorKind. They should be caught at the application boundary (CLI) and
converted to user-facing error messages.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of sync failures."""

    REQUEST_CONSTRUCTION = "request_construction"
    TRANSPORT = "transport"
    DECODE = "decode"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"
    NOT_AUTHENTICATED = "not_authenticated"


class SyncError(Exception):
    """Base exception for all sync errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class RequestConstructionError(SyncError):
    """Raised when a request cannot be built (bad path, unencodable body)."""

    kind = ErrorKind.REQUEST_CONSTRUCTION


class TransportError(SyncError):
    """Raised when the remote call fails or answers with a non-2xx status.

    Attributes:
        status_code: HTTP status code, or None if no response was received.
    """

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code


class DecodeError(SyncError):
    """Raised when a response body does not decode to the expected shape."""

    kind = ErrorKind.DECODE


class NotFoundError(SyncError):
    """Raised when a requested record does not exist on the server."""

    kind = ErrorKind.NOT_FOUND


class PersistenceError(SyncError):
    """Raised when the terminal save of an operation fails."""

    kind = ErrorKind.PERSISTENCE


class NotAuthenticatedError(SyncError):
    """Raised when an operation needs a signed-in user and there is none."""

    kind = ErrorKind.NOT_AUTHENTICATED
