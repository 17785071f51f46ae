"""Tests for extraction exceptions."""

from __future__ import annotations

from pageqa.exceptions import PageQAError
from pageqa.services.extractors.exceptions import (
    CAUSE_DNS,
    CAUSE_HTTP,
    CAUSE_REFUSED,
    CAUSE_TIMEOUT,
    CAUSE_UNKNOWN,
    DNSResolutionError,
    EmptyContentError,
    ExtractionError,
    FetchTimeoutError,
    HTTPStatusError,
    RefusedConnectionError,
)


class TestExceptionHierarchy:
    """Test that all exceptions inherit from ExtractionError."""

    def test_subclasses_inherit_from_extraction_error(self) -> None:
        for exc_class in (
            DNSResolutionError,
            RefusedConnectionError,
            FetchTimeoutError,
            HTTPStatusError,
            EmptyContentError,
        ):
            assert issubclass(exc_class, ExtractionError)

    def test_extraction_error_is_service_error(self) -> None:
        assert issubclass(ExtractionError, PageQAError)


class TestCauses:
    """Each subclass carries its cause classification."""

    def test_cause_per_subclass(self) -> None:
        assert DNSResolutionError("x").cause == CAUSE_DNS
        assert RefusedConnectionError("x").cause == CAUSE_REFUSED
        assert FetchTimeoutError("x").cause == CAUSE_TIMEOUT
        assert HTTPStatusError("x").cause == CAUSE_HTTP
        assert EmptyContentError("x").cause == CAUSE_UNKNOWN
        assert ExtractionError("x").cause == CAUSE_UNKNOWN

    def test_explicit_cause_overrides_default(self) -> None:
        error = ExtractionError("boom", url="https://example.com", cause=CAUSE_TIMEOUT)

        assert error.cause == CAUSE_TIMEOUT
        assert error.url == "https://example.com"
        assert str(error) == "boom"

    def test_http_status_code_kept(self) -> None:
        error = HTTPStatusError("HTTP 404", status_code=404)

        assert error.status_code == 404
