"""Extraction pipeline: fetch a URL and reduce it to page text."""

from __future__ import annotations

import logging
import random
import time

import httpx

from pageqa.services.extractors.base import ExtractedPage, ExtractionConfig
from pageqa.services.extractors.exceptions import (
    DNSResolutionError,
    EmptyContentError,
    ExtractionError,
    FetchTimeoutError,
    HTTPStatusError,
    RefusedConnectionError,
)
from pageqa.services.extractors.html_extractor import HTMLExtractor

logger = logging.getLogger(__name__)

# Substrings seen in resolver errors across platforms
_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated",
    "name resolution",
)
_REFUSED_MARKERS = ("connection refused", "errno 111", "connect call failed")


class ExtractionPipeline:
    """Fetches pages over HTTP and hands the markup to the HTML extractor.

    Only static markup is processed; pages that need JavaScript to render
    their text come back with whatever the server sent.
    """

    def __init__(
        self,
        config: ExtractionConfig | None = None,
        extractor: HTMLExtractor | None = None,
    ) -> None:
        self.config = config or ExtractionConfig()
        self.html_extractor = extractor or HTMLExtractor(self.config)

    async def extract(self, url: str) -> ExtractedPage:
        """Fetch ``url`` and extract its title, text, keywords and language.

        Args:
            url: An http(s) URL that already passed validation

        Returns:
            ExtractedPage describing the page

        Raises:
            ExtractionError: On DNS failure, refused connection, timeout,
                HTTP status >= 400 or an empty body. ``cause`` tells which.
        """
        start_time = time.perf_counter()
        response = await self._fetch_url(url)

        html = response.text
        if not html or not html.strip():
            raise EmptyContentError(f"Empty response body from {url}", url=url)

        page = self.html_extractor.extract(html, url)
        page.final_url = str(getattr(response, "url", "") or url)
        page.status_code = response.status_code
        page.content_type = response.headers.get("content-type", "")
        page.elapsed_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            "Extracted %s: title=%r chars=%d language=%s (%.0fms)",
            url,
            page.title,
            len(page.content),
            page.language,
            page.elapsed_ms,
        )
        return page

    def pick_user_agent(self) -> str:
        """Return a user agent from the rotation pool."""
        return random.choice(self.config.user_agents)

    def _request_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.pick_user_agent(),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
        }

    async def _fetch_url(self, url: str) -> httpx.Response:
        """Fetch URL with timeout, rotated user agent and bounded redirects.

        Raises:
            ExtractionError: Sub-classified by cause
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                follow_redirects=True,
                max_redirects=self.config.max_redirects,
            ) as client:
                response = await client.get(url, headers=self._request_headers())
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(
                f"Timed out fetching {url} after {self.config.timeout_seconds}s",
                url=url,
            ) from e
        except httpx.TooManyRedirects as e:
            raise ExtractionError(
                f"Too many redirects fetching {url} (limit {self.config.max_redirects})",
                url=url,
            ) from e
        except httpx.RequestError as e:
            raise self._classify_request_error(url, e) from e

        if response.status_code >= 400:
            reason = getattr(response, "reason_phrase", "") or ""
            raise HTTPStatusError(
                f"HTTP {response.status_code} {reason}".strip() + f" from {url}",
                url=url,
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _classify_request_error(url: str, error: httpx.RequestError) -> ExtractionError:
        """Map a transport error onto dns/refused/unknown."""
        detail = str(error).lower()
        if any(marker in detail for marker in _DNS_MARKERS):
            return DNSResolutionError(
                f"DNS lookup failed for {url}; check that the address is correct",
                url=url,
            )
        if any(marker in detail for marker in _REFUSED_MARKERS):
            return RefusedConnectionError(
                f"Connection refused by {url}; the server may be down",
                url=url,
            )
        return ExtractionError(f"Network error fetching {url}: {error}", url=url)
