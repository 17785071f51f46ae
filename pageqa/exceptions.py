"""Custom exceptions for the page-qa service.

Extraction failures live in ``pageqa.services.extractors.exceptions`` next
to the code that raises them; everything else the pipeline and the API
layer raise is defined here.
"""

from __future__ import annotations


class PageQAError(Exception):
    """Base exception for page-qa service errors."""

    pass


class ValidationError(PageQAError):
    """Raised when a URL or task identifier is malformed.

    Rejected at the boundary; never enters the pipeline.

    Error Code: INVALID_URL / INVALID_TASK_ID / INVALID_QUERY
    """

    def __init__(self, message: str, code: str = "INVALID_URL") -> None:
        self.code = code
        super().__init__(message)


# ---------------------------------------------------------------------------
# AI provider errors
# ---------------------------------------------------------------------------


class ProviderError(PageQAError):
    """Raised when a single provider invocation fails (timeout, HTTP, body).

    Error Code: PROVIDER_ERROR
    """

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProviderUnavailable(PageQAError):
    """Raised when no configured AI backend has credentials and is healthy.

    Error Code: PROVIDER_UNAVAILABLE
    """

    def __init__(self, message: str = "No AI provider is configured and available") -> None:
        super().__init__(message)


class ResponseParseError(PageQAError):
    """Raised when a provider response survives no repair stage.

    Error Code: RESPONSE_PARSE_ERROR
    """

    def __init__(self, detail: str = "", raw: str = "") -> None:
        self.raw = raw
        message = "Could not parse provider response as QA items"
        if detail:
            message = f"{message}. {detail}"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Persistence and task lookup errors
# ---------------------------------------------------------------------------


class PersistenceError(PageQAError):
    """Raised when writing task or QA records to the store fails.

    Fatal to the pipeline run; the task keeps its last durable state.

    Error Code: PERSISTENCE_ERROR
    """

    pass


class TaskNotFoundError(PageQAError):
    """Raised when a task identifier does not match any task.

    Error Code: TASK_NOT_FOUND
    """

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task '{task_id}' not found")


class TaskNotCompletedError(PageQAError):
    """Raised when QA data is requested for a task that has not completed.

    Error Code: TASK_NOT_COMPLETED
    """

    def __init__(self, task_id: str, status: str) -> None:
        self.task_id = task_id
        self.status = status
        super().__init__(f"Task '{task_id}' is not completed (status={status})")
