"""Tests for URL validation and fingerprinting."""

from __future__ import annotations

import pytest

from pageqa.exceptions import ValidationError
from pageqa.services.url_utils import normalize_url, url_hash, validate_task_id, validate_url


class TestFingerprint:
    def test_case_and_whitespace_insensitive(self) -> None:
        assert url_hash("  HTTPS://Example.com/Page  ") == url_hash("https://example.com/page")

    def test_distinct_urls_differ(self) -> None:
        assert url_hash("https://example.com/a") != url_hash("https://example.com/b")

    def test_hash_is_md5_hex(self) -> None:
        digest = url_hash("https://example.com")

        assert len(digest) == 32
        int(digest, 16)

    def test_normalize(self) -> None:
        assert normalize_url(" HTTP://A.COM ") == "http://a.com"


class TestValidateUrl:
    def test_valid_url_trimmed(self) -> None:
        assert validate_url("  https://example.com/x ") == "https://example.com/x"

    @pytest.mark.parametrize(
        "url",
        ["", "   ", None, "ftp://example.com", "example.com", "https://", "javascript:alert(1)"],
    )
    def test_invalid_urls(self, url) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_url(url)

        assert exc_info.value.code == "INVALID_URL"


class TestValidateTaskId:
    def test_valid_uuid(self) -> None:
        value = "12345678-1234-5678-1234-567812345678"

        assert validate_task_id(value) == value

    def test_invalid_uuid(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_task_id("not-a-uuid")

        assert exc_info.value.code == "INVALID_TASK_ID"
