"""Store errors and their classification."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """How a failed read should be handled."""

    RETRYABLE = "retryable"
    FATAL = "fatal"


class StoreError(Exception):
    """Base class for store client failures."""


class StoreTransportError(StoreError):
    """The request never produced a response (connection refused, timeout, ...)."""


class StoreCancelledError(StoreError):
    """The request was abandoned because its cancel token fired."""


class StoreResponseError(StoreError):
    """The store answered with an unexpected status."""

    def __init__(self, status_code: int, body: str = ""):
        """Keep the status code and response body."""
        super().__init__(f"Unexpected response code: {status_code} ({body.strip()})")
        self.status_code = status_code
        self.body = body


def classify_error(err: BaseException) -> ErrorKind:
    """Classify a read failure.

    Transport failures, throttling and server-side errors are transient.
    Anything else, including errors that do not come from the store client,
    is fatal.
    """
    if isinstance(err, StoreTransportError):
        return ErrorKind.RETRYABLE
    if isinstance(err, StoreResponseError) and (err.status_code == 429 or err.status_code >= 500):
        return ErrorKind.RETRYABLE
    return ErrorKind.FATAL
