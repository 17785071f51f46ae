"""Tests for keyword-based categorization."""

from __future__ import annotations

from pageqa.services.categorizer import categorize


class TestCategorize:
    def test_technology(self) -> None:
        assert categorize("Getting started with Python", ["python", "code", "api"]) == "technology"

    def test_science(self) -> None:
        assert categorize("New physics research", ["experiment", "scientists"]) == "science"

    def test_chinese_title_substring(self) -> None:
        assert categorize("前端开发入门指南", []) == "technology"

    def test_no_match_is_other(self) -> None:
        assert categorize("Untitled", ["lorem", "ipsum"]) == "other"
