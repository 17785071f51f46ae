"""Page extraction for the QA pipeline.

Fetches a URL with httpx and reduces the static markup to a title, cleaned
body text, frequency keywords and a language guess.

Usage:
    from pageqa.services.extractors import ExtractionPipeline

    pipeline = ExtractionPipeline()
    page = await pipeline.extract("https://example.com")
    print(page.title, len(page.content))
"""

from pageqa.services.extractors.base import (
    ContentExtractor,
    ExtractedPage,
    ExtractionConfig,
)
from pageqa.services.extractors.exceptions import (
    DNSResolutionError,
    EmptyContentError,
    ExtractionError,
    FetchTimeoutError,
    HTTPStatusError,
    RefusedConnectionError,
)
from pageqa.services.extractors.html_extractor import HTMLExtractor
from pageqa.services.extractors.pipeline import ExtractionPipeline

__all__ = [
    # Base classes
    "ContentExtractor",
    "ExtractedPage",
    "ExtractionConfig",
    # Extractors
    "HTMLExtractor",
    "ExtractionPipeline",
    # Exceptions
    "ExtractionError",
    "DNSResolutionError",
    "RefusedConnectionError",
    "FetchTimeoutError",
    "HTTPStatusError",
    "EmptyContentError",
]
