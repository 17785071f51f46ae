"""HTML page extractor using BeautifulSoup selector probing."""

from __future__ import annotations

import logging
import re
import time
from collections import Counter

from bs4 import BeautifulSoup

from pageqa.services.extractors.base import ExtractedPage, ExtractionConfig

logger = logging.getLogger(__name__)

# Non-content markup removed before any text is read
NOISE_SELECTORS = "script, style, noscript, nav, header, footer, aside, .advertisement, .ads, .sidebar"

# Probed in order; the first one with enough text wins
CONTENT_SELECTORS: tuple[str, ...] = (
    "article",
    ".content",
    ".post-content",
    ".entry-content",
    ".article-content",
    "main",
    ".main-content",
    "#content",
    ".post-body",
    ".article-body",
)

DEFAULT_TITLE = "Untitled"

_WHITESPACE_RE = re.compile(r"\s+")
# Keep CJK, word characters, whitespace and basic punctuation
_DISALLOWED_RE = re.compile(r"[^\u4e00-\u9fa5\w\s.,!?;:()\[\]{}\"'-]")
_KEYWORD_SPLIT_RE = re.compile(r"[^\u4e00-\u9fa5\w\s]")
_CJK_RE = re.compile(r"[\u4e00-\u9fa5]")
_LATIN_RE = re.compile(r"[a-zA-Z]")


class HTMLExtractor:
    """Reduce a fetched HTML document to title, text, keywords and language."""

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()

    def extract(self, html: str, url: str) -> ExtractedPage:
        """Extract readable content from HTML.

        Args:
            html: Raw HTML content to extract from
            url: Source URL, recorded on the result

        Returns:
            ExtractedPage with cleaned content (possibly empty)
        """
        start_time = time.perf_counter()
        soup = BeautifulSoup(html, "lxml")

        for element in soup.select(NOISE_SELECTORS):
            element.decompose()

        title = self._extract_title(soup)
        raw_text, method = self._select_body_text(soup)
        content = self.clean_text(raw_text)[: self.config.content_max_length]

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "Extracted %d chars from %s via %s in %.1fms",
            len(content),
            url,
            method,
            elapsed_ms,
        )

        return ExtractedPage(
            url=url,
            title=title,
            content=content,
            keywords=self.extract_keywords(content, self.config.keyword_count),
            language=self.detect_language(content),
            elapsed_ms=elapsed_ms,
        )

    def _extract_title(self, soup: BeautifulSoup) -> str:
        """Pick <title>, then the first <h1>, then og:title."""
        title = ""
        if soup.title is not None:
            title = soup.title.get_text(strip=True)
        if not title:
            h1 = soup.find("h1")
            if h1 is not None:
                title = h1.get_text(" ", strip=True)
        if not title:
            meta = soup.find("meta", attrs={"property": "og:title"})
            if meta is not None and meta.get("content"):
                title = str(meta["content"]).strip()
        title = _WHITESPACE_RE.sub(" ", title).strip() or DEFAULT_TITLE
        return title[: self.config.title_max_length]

    def _select_body_text(self, soup: BeautifulSoup) -> tuple[str, str]:
        """Return (text, method) using selector probing with fallbacks."""
        for selector in CONTENT_SELECTORS:
            elements = soup.select(selector)
            if not elements:
                continue
            text = " ".join(el.get_text(" ", strip=True) for el in elements).strip()
            if len(text) >= self.config.min_selector_length:
                return text, f"selector:{selector}"

        paragraphs = "\n".join(
            p.get_text(" ", strip=True) for p in soup.find_all("p")
        ).strip()
        if len(paragraphs) >= self.config.min_body_length:
            return paragraphs, "paragraphs"

        root = soup.body or soup
        return root.get_text(" ", strip=True), "body"

    @staticmethod
    def clean_text(text: str) -> str:
        """Collapse whitespace and drop characters outside the kept set."""
        text = _DISALLOWED_RE.sub("", text)
        return _WHITESPACE_RE.sub(" ", text).strip()

    @staticmethod
    def extract_keywords(content: str, limit: int = 10) -> list[str]:
        """Return the most frequent tokens longer than two characters.

        Ties keep first-seen order.
        """
        tokens = [
            token
            for token in _KEYWORD_SPLIT_RE.sub(" ", content.lower()).split()
            if len(token) > 2
        ]
        return [word for word, _ in Counter(tokens).most_common(limit)]

    @staticmethod
    def detect_language(content: str) -> str:
        """Classify content as zh, en or other by character-script ratios."""
        total = len(content)
        if total == 0:
            return "other"
        if len(_CJK_RE.findall(content)) / total > 0.3:
            return "zh"
        if len(_LATIN_RE.findall(content)) / total > 0.5:
            return "en"
        return "other"
