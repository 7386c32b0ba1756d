from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    QUOTA_EXHAUSTED = "quota_exhausted"
    UPSTREAM = "upstream"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"


# Boundary mapping; upstream errors carry their own status.
HTTP_STATUS = {
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.QUOTA_EXHAUSTED: 403,
    ErrorKind.UPSTREAM: 502,
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
}


class RelayError(Exception):
    """Base class for errors raised inside the relay."""


class StoreError(RelayError):
    """The record store could not be read or written. Fatal to the request."""


class UpstreamError(RelayError):
    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(f"Upstream error {status_code}: {message}")
        self.status_code = status_code
        self.message = message
