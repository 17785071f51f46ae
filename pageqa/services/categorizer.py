"""Keyword-based page categorization."""

from __future__ import annotations

from typing import Iterable

from pageqa.models.task import Category

# Checked in declaration order; the category with the most hits wins
CATEGORY_TERMS: dict[Category, frozenset[str]] = {
    Category.TECHNOLOGY: frozenset(
        {
            "python", "javascript", "java", "golang", "rust", "api", "code",
            "software", "programming", "database", "server", "framework",
            "algorithm", "kubernetes", "docker", "cloud", "linux", "react",
            "frontend", "backend", "developer", "技术", "编程", "前端", "后端",
            "算法", "数据库", "开发", "框架",
        }
    ),
    Category.NEWS: frozenset(
        {"news", "breaking", "report", "reported", "today", "announced", "新闻", "报道", "快讯"}
    ),
    Category.EDUCATION: frozenset(
        {
            "course", "tutorial", "learn", "learning", "lesson", "student",
            "classroom", "university", "school", "exam", "教程", "教育", "学习",
            "课程", "考试",
        }
    ),
    Category.BUSINESS: frozenset(
        {
            "business", "market", "startup", "finance", "investment", "company",
            "revenue", "sales", "economy", "商业", "市场", "金融", "投资", "创业",
        }
    ),
    Category.ENTERTAINMENT: frozenset(
        {"movie", "music", "game", "games", "celebrity", "film", "show", "娱乐", "电影", "音乐", "游戏"}
    ),
    Category.SCIENCE: frozenset(
        {
            "science", "research", "physics", "biology", "chemistry", "study",
            "scientists", "experiment", "科学", "研究", "物理", "生物", "化学",
        }
    ),
}


def categorize(title: str, keywords: Iterable[str]) -> str:
    """Return the category value whose terms best match title and keywords."""
    tokens = [t.lower() for t in title.split()] + [k.lower() for k in keywords]
    haystack = " ".join(tokens)

    best = Category.OTHER
    best_hits = 0
    for category, terms in CATEGORY_TERMS.items():
        hits = sum(1 for token in tokens if token in terms)
        # CJK titles have no spaces, so also look for substrings
        hits += sum(1 for term in terms if not term.isascii() and term in haystack)
        if hits > best_hits:
            best, best_hits = category, hits
    return best.value
