"""URL validation and fingerprinting helpers."""

from __future__ import annotations

import hashlib
from urllib.parse import urlparse
from uuid import UUID

from pageqa.exceptions import ValidationError

ALLOWED_SCHEMES = frozenset({"http", "https"})


def normalize_url(url: str) -> str:
    """Return the form of ``url`` used for dedup: trimmed and lowercased."""
    return url.strip().lower()


def url_hash(url: str) -> str:
    """Return the md5 fingerprint of the normalized URL."""
    return hashlib.md5(normalize_url(url).encode("utf-8")).hexdigest()


def validate_url(url: str | None) -> str:
    """Check that ``url`` is an absolute http(s) URL and return it trimmed.

    Raises:
        ValidationError: If the URL is missing, has another scheme, or no host.
    """
    if not url or not url.strip():
        raise ValidationError("A page URL is required", code="INVALID_URL")

    candidate = url.strip()
    try:
        parsed = urlparse(candidate)
    except ValueError as e:
        raise ValidationError(f"Invalid URL: {e}", code="INVALID_URL") from e

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise ValidationError(
            "Only http and https URLs are supported", code="INVALID_URL"
        )
    if not parsed.netloc or " " in parsed.netloc:
        raise ValidationError(f"Invalid URL: {candidate}", code="INVALID_URL")
    return candidate


def validate_task_id(task_id: str | None) -> str:
    """Check that ``task_id`` is a UUID string and return it canonicalized."""
    if not task_id:
        raise ValidationError("Missing task id", code="INVALID_TASK_ID")
    try:
        return str(UUID(task_id.strip()))
    except ValueError as e:
        raise ValidationError(
            f"Invalid task id format: {task_id}", code="INVALID_TASK_ID"
        ) from e
