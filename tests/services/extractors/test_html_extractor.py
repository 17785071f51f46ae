"""Tests for HTML content extraction."""

from __future__ import annotations

from pageqa.services.extractors.base import ExtractionConfig
from pageqa.services.extractors.html_extractor import DEFAULT_TITLE, HTMLExtractor


# Sample HTML fixtures
ARTICLE_HTML = """
<!DOCTYPE html>
<html>
<head><title>Test Article</title></head>
<body>
<nav>Navigation menu that should be ignored</nav>
<article>
<h1>Main Heading</h1>
<script>var tracking = true;</script>
<p>This is a substantial article with enough content to pass the minimum length requirement.
It contains multiple sentences and paragraphs to ensure proper extraction testing.</p>
<p>Second paragraph with more content for thorough testing of the extraction pipeline.
We need to make sure this has plenty of text to exceed the minimum threshold.</p>
<p>Third paragraph adds even more substantial content to guarantee we pass any
reasonable minimum content length requirements that might be configured.</p>
</article>
<footer>Footer content that should also be ignored</footer>
</body>
</html>
"""

PARAGRAPH_ONLY_HTML = """
<html>
<head><title>Paragraphs</title></head>
<body>
<div>
<p>The first paragraph lives in a plain div that no content selector matches.</p>
<p>The second paragraph makes the joined paragraph text longer than the fallback floor.</p>
</div>
</body>
</html>
"""

BODY_ONLY_HTML = """
<html><body><div>Short text only</div></body></html>
"""

HTML_WITHOUT_TITLE = """
<html>
<head></head>
<body><h1>Heading Title</h1><p>Some body text.</p></body>
</html>
"""

HTML_WITH_OG_TITLE = """
<html>
<head><meta property="og:title" content="Open Graph Title"></head>
<body><p>Some body text.</p></body>
</html>
"""


class TestHTMLExtractor:
    """Test suite for HTMLExtractor class."""

    def test_extract_article(self) -> None:
        """Article selector wins and noise elements are dropped."""
        page = HTMLExtractor().extract(ARTICLE_HTML, "https://example.com/article")

        assert page.title == "Test Article"
        assert "substantial article" in page.content
        assert "Third paragraph" in page.content
        assert "Navigation menu" not in page.content
        assert "Footer content" not in page.content
        assert "tracking" not in page.content
        assert page.language == "en"
        assert page.url == "https://example.com/article"

    def test_paragraph_fallback(self) -> None:
        page = HTMLExtractor().extract(PARAGRAPH_ONLY_HTML, "https://example.com")

        assert page.content.startswith("The first paragraph")
        assert "second paragraph" in page.content

    def test_body_fallback(self) -> None:
        page = HTMLExtractor().extract(BODY_ONLY_HTML, "https://example.com")

        assert page.content == "Short text only"

    def test_title_from_h1(self) -> None:
        page = HTMLExtractor().extract(HTML_WITHOUT_TITLE, "https://example.com")

        assert page.title == "Heading Title"

    def test_title_from_og_meta(self) -> None:
        page = HTMLExtractor().extract(HTML_WITH_OG_TITLE, "https://example.com")

        assert page.title == "Open Graph Title"

    def test_title_default(self) -> None:
        page = HTMLExtractor().extract(BODY_ONLY_HTML, "https://example.com")

        assert page.title == DEFAULT_TITLE

    def test_title_capped(self) -> None:
        html = f"<html><head><title>{'a' * 300}</title></head><body></body></html>"
        page = HTMLExtractor().extract(html, "https://example.com")

        assert len(page.title) == 200

    def test_content_capped(self) -> None:
        config = ExtractionConfig(content_max_length=50)
        page = HTMLExtractor(config).extract(ARTICLE_HTML, "https://example.com")

        assert len(page.content) <= 50

    def test_keywords_limited_by_config(self) -> None:
        config = ExtractionConfig(keyword_count=3)
        page = HTMLExtractor(config).extract(ARTICLE_HTML, "https://example.com")

        assert len(page.keywords) == 3


class TestTextHelpers:
    """Static helpers for cleaning, keywords and language."""

    def test_clean_text_drops_symbols_and_collapses_whitespace(self) -> None:
        assert HTMLExtractor.clean_text("Hello   <world> @#") == "Hello world"

    def test_clean_text_keeps_cjk_and_punctuation(self) -> None:
        assert HTMLExtractor.clean_text("你好, world!") == "你好, world!"

    def test_extract_keywords_by_frequency(self) -> None:
        content = "python python python code code api an of"

        assert HTMLExtractor.extract_keywords(content) == ["python", "code", "api"]
        assert HTMLExtractor.extract_keywords(content, limit=2) == ["python", "code"]

    def test_detect_language(self) -> None:
        assert HTMLExtractor.detect_language("这是一个中文句子") == "zh"
        assert HTMLExtractor.detect_language("This is English text") == "en"
        assert HTMLExtractor.detect_language("12345 67890") == "other"
        assert HTMLExtractor.detect_language("") == "other"
