"""Merge per-chunk QA items, drop duplicates and score the result."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from pageqa.services.response_repair import QAItem

_WHITESPACE_RE = re.compile(r"\s+")

EMPTY_AGGREGATE_SCORE = 2.0
HEALTHY_MIN = 5
HEALTHY_MAX = 15
LOW_MIN = 3
FAR_ABOVE_MAX = 20


@dataclass
class ScoredQA:
    """A deduplicated QA item with its final position and score."""

    order: int
    question: str
    answer: str
    type: str
    difficulty: str
    tags: list[str] = field(default_factory=list)
    quality_score: float = 3.0
    provider_score: float = 3.0


def dedup_key(question: str) -> str:
    """Identity of a question: case-folded, trimmed, inner whitespace collapsed."""
    return _WHITESPACE_RE.sub(" ", question.casefold().strip())


def merge_chunks(chunk_items: Iterable[Sequence[QAItem]]) -> list[QAItem]:
    """Concatenate items in chunk order, then intra-chunk order."""
    merged: list[QAItem] = []
    for items in chunk_items:
        merged.extend(items)
    return merged


def dedup(items: Iterable[QAItem]) -> list[QAItem]:
    """Keep the first occurrence of every question. Idempotent."""
    seen: set[str] = set()
    unique: list[QAItem] = []
    for item in items:
        key = dedup_key(item.question)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def score_item(question: str, answer: str, tags: Sequence[str]) -> float:
    """Heuristic 1–5 score from question shape, answer length and tags."""
    score = 3.0
    if len(question) > 10:
        score += 0.5
    if question.rstrip().endswith(("?", "？")):
        score += 0.3
    if len(answer) >= 50:
        score += 0.5
    if len(answer) >= 200:
        score += 0.5
    if tags:
        score += 0.2
    return round(max(1.0, min(5.0, score)), 1)


def score_aggregate(items: Sequence[QAItem] | Sequence[ScoredQA]) -> float:
    """Score a whole task's QA list on a 0–5 scale (half-point steps).

    An empty list scores the floor of 2.0.
    """
    count = len(items)
    if count == 0:
        return EMPTY_AGGREGATE_SCORE

    score = 3.0
    if HEALTHY_MIN <= count <= HEALTHY_MAX:
        score += 1.0
    elif LOW_MIN <= count < HEALTHY_MIN:
        score += 0.5
    elif count < LOW_MIN:
        score -= 1.0
    elif count > FAR_ABOVE_MAX:
        score -= 0.5

    valid = sum(1 for qa in items if qa.question.strip() and qa.answer.strip())
    ratio = valid / count
    if ratio >= 0.9:
        score += 0.5
    elif ratio < 0.7:
        score -= 0.5

    return max(0.0, min(5.0, round(score * 2) / 2))


def finalize(chunk_items: Iterable[Sequence[QAItem]]) -> list[ScoredQA]:
    """Merge, dedup, renumber from 1 and score every item."""
    unique = dedup(merge_chunks(chunk_items))
    return [
        ScoredQA(
            order=position,
            question=item.question,
            answer=item.answer,
            type=item.type,
            difficulty=item.difficulty,
            tags=list(item.tags),
            quality_score=score_item(item.question, item.answer, item.tags),
            provider_score=item.score,
        )
        for position, item in enumerate(unique, start=1)
    ]
