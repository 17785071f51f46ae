"""Base classes for page extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

DEFAULT_USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
)


@dataclass(frozen=True)
class ExtractionConfig:
    """Configuration for the extraction pipeline."""

    timeout_seconds: float = 30
    max_redirects: int = 5
    title_max_length: int = 200
    content_max_length: int = 50_000
    keyword_count: int = 10
    min_selector_length: int = 200  # Selector text must exceed this to win
    min_body_length: int = 100  # Below this, fall back to all body text
    user_agents: tuple[str, ...] = DEFAULT_USER_AGENTS


@dataclass
class ExtractedPage:
    """Result of extracting one page."""

    url: str
    title: str
    content: str
    keywords: list[str] = field(default_factory=list)
    language: str = "other"
    final_url: str = ""
    status_code: int | None = None
    content_type: str = ""
    word_count: int = 0  # Auto-calculated
    elapsed_ms: float = 0.0

    def __post_init__(self) -> None:
        if self.word_count == 0:
            self.word_count = len(self.content.split())
        if not self.final_url:
            self.final_url = self.url


class ContentExtractor(Protocol):
    """Protocol for turning fetched markup into an ExtractedPage."""

    def extract(self, html: str, url: str) -> ExtractedPage:
        """Extract title, body text, keywords and language from HTML.

        Args:
            html: Raw HTML content
            url: Source URL

        Returns:
            ExtractedPage with cleaned content
        """
        ...
