"""Exception hierarchy for page extraction."""

from __future__ import annotations

from pageqa.exceptions import PageQAError

# Cause classification carried by every ExtractionError
CAUSE_DNS = "dns"
CAUSE_REFUSED = "refused"
CAUSE_TIMEOUT = "timeout"
CAUSE_HTTP = "http"
CAUSE_UNKNOWN = "unknown"


class ExtractionError(PageQAError):
    """Base exception for all extraction errors.

    Aborts the task; the message becomes the task's ``error_message``.
    """

    cause = CAUSE_UNKNOWN

    def __init__(
        self,
        message: str,
        url: str | None = None,
        cause: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        if cause is not None:
            self.cause = cause
        self.status_code = status_code


class DNSResolutionError(ExtractionError):
    """Raised when the host name cannot be resolved."""

    cause = CAUSE_DNS


class RefusedConnectionError(ExtractionError):
    """Raised when the remote host refuses the connection."""

    cause = CAUSE_REFUSED


class FetchTimeoutError(ExtractionError):
    """Raised when the fetch exceeds the configured timeout."""

    cause = CAUSE_TIMEOUT


class HTTPStatusError(ExtractionError):
    """Raised for HTTP responses with status >= 400."""

    cause = CAUSE_HTTP


class EmptyContentError(ExtractionError):
    """Raised when the response body is empty."""

    pass
