"""Repair and parse raw provider output into QA items.

Models are asked for a JSON array of ``{question, answer, type, difficulty,
tags, score}`` objects but routinely wrap it in code fences, add prose
around it, or get cut off at the token limit. Each repair stage below is
total (returns a candidate or None, never raises) and idempotent; stages
run in order until one candidate parses.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

from pageqa.exceptions import ResponseParseError
from pageqa.models.qa_record import ANSWER_MAX, QUESTION_MAX, TAG_MAX

logger = logging.getLogger(__name__)

DEFAULT_TYPE = "other"
DEFAULT_DIFFICULTY = "intermediate"
DEFAULT_SCORE = 3.0
MIN_SCORE = 1.0
MAX_SCORE = 5.0

TYPE_ALIASES: dict[str, str] = {
    "concept": "concept",
    "concepts": "concept",
    "概念": "concept",
    "概念理解": "concept",
    "implementation": "implementation",
    "技术实现": "implementation",
    "实现": "implementation",
    "application": "application",
    "applications": "application",
    "应用": "application",
    "应用场景": "application",
    "tradeoffs": "tradeoffs",
    "trade-offs": "tradeoffs",
    "tradeoff": "tradeoffs",
    "analysis": "tradeoffs",
    "分析": "tradeoffs",
    "优缺点分析": "tradeoffs",
    "comparison": "comparison",
    "对比分析": "comparison",
    "对比": "comparison",
    "experience": "experience",
    "实践经验": "experience",
    "实践": "experience",
    "other": "other",
    "其他": "other",
}

DIFFICULTY_ALIASES: dict[str, str] = {
    "basic": "basic",
    "easy": "basic",
    "beginner": "basic",
    "初级": "basic",
    "intermediate": "intermediate",
    "medium": "intermediate",
    "中级": "intermediate",
    "advanced": "advanced",
    "hard": "advanced",
    "expert": "advanced",
    "高级": "advanced",
}

_OPEN_FENCE_RE = re.compile(r"^```[a-zA-Z]*[ \t]*\n?")
_CLOSE_FENCE_RE = re.compile(r"\s*```$")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_TAG_SPLIT_RE = re.compile(r"[,，、;；]")

_CLOSERS = {"[": "]", "{": "}"}


@dataclass
class QAItem:
    """A normalized question/answer pair prior to dedup and persistence."""

    question: str
    answer: str
    type: str = DEFAULT_TYPE
    difficulty: str = DEFAULT_DIFFICULTY
    tags: list[str] = field(default_factory=list)
    score: float = DEFAULT_SCORE


# ---------------------------------------------------------------------------
# Stage 1: code fences
# ---------------------------------------------------------------------------


def strip_code_fences(text: str) -> str:
    """Remove fence markers wrapping the whole reply.

    Only a leading ```` ```lang ```` line and a trailing ```` ``` ```` are
    touched; fences inside answer strings stay as they are. A reply that
    was cut off keeps its body when the closing fence is missing.
    """
    text = text.strip()
    if not text.startswith("```"):
        return text
    text = _OPEN_FENCE_RE.sub("", text, count=1)
    return _CLOSE_FENCE_RE.sub("", text).strip()


# ---------------------------------------------------------------------------
# Stage 2: direct parse
# ---------------------------------------------------------------------------


def try_parse(text: str) -> tuple[bool, Any]:
    """Parse JSON, tolerating control characters and trailing commas."""
    if not text:
        return False, None
    for candidate in (text, _TRAILING_COMMA_RE.sub(r"\1", text)):
        try:
            return True, json.loads(candidate, strict=False)
        except ValueError:
            continue
    return False, None


# ---------------------------------------------------------------------------
# Stages 3 and 4: structural repair
# ---------------------------------------------------------------------------


def _scan(text: str) -> tuple[list[str], bool, list[tuple[int, tuple[str, ...]]]]:
    """Walk ``text`` tracking brackets outside of strings.

    Returns the still-open bracket stack, whether the text ends inside a
    string, and every position where an object closed as an array element
    together with the stack that remained open at that point.
    """
    stack: list[str] = []
    in_string = False
    escaped = False
    boundaries: list[tuple[int, tuple[str, ...]]] = []

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "[{":
            stack.append(ch)
        elif ch in "]}":
            if stack:
                stack.pop()
            if ch == "}" and stack and stack[-1] == "[":
                boundaries.append((i, tuple(stack)))

    return stack, in_string, boundaries


def _closing_for(stack: tuple[str, ...] | list[str]) -> str:
    return "".join(_CLOSERS[opener] for opener in reversed(stack))


def repair_truncated(text: str) -> str | None:
    """Close a reply that was cut off mid-array.

    Trims back to the last complete array element and closes the brackets
    left open. When no element is complete yet, closes the open brackets in
    place as long as the cut did not land inside a string. Returns None for
    text that already ends with a closing bracket or brace.
    """
    text = text.rstrip()
    if not text or text.endswith(("]", "}")):
        return None

    start = min((i for i in (text.find("["), text.find("{")) if i >= 0), default=-1)
    if start < 0:
        return None
    body = text[start:]

    stack, in_string, boundaries = _scan(body)
    if boundaries:
        end, open_at_end = boundaries[-1]
        return body[: end + 1] + _closing_for(open_at_end)

    if stack and not in_string:
        trimmed = body.rstrip().rstrip(",")
        if trimmed.endswith(":"):
            return None
        return trimmed + _closing_for(stack)
    return None


def extract_balanced_array(text: str) -> str | None:
    """Return the first balanced ``[...]`` substring, or None."""
    start = text.find("[")
    while start >= 0:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "[":
                depth += 1
            elif ch == "]":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        start = text.find("[", start + 1)
    return None


# ---------------------------------------------------------------------------
# Stage 5: item normalization
# ---------------------------------------------------------------------------


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(str(v) for v in value if v is not None).strip()
    return str(value).strip()


def coerce_tags(value: Any) -> list[str]:
    """Turn whatever the model put in ``tags`` into a list of short strings."""
    if value is None:
        return []
    if isinstance(value, str):
        raw = _TAG_SPLIT_RE.split(value)
    elif isinstance(value, (list, tuple, set)):
        raw = [str(v) for v in value if v is not None]
    else:
        raw = [str(value)]
    tags: list[str] = []
    for tag in raw:
        tag = tag.strip()[:TAG_MAX]
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def clamp_score(value: Any) -> float:
    """Clamp a model-provided score to [1, 5]; non-numeric values become 3."""
    if value is None or isinstance(value, bool):
        return DEFAULT_SCORE
    try:
        score = float(value)
    except (TypeError, ValueError):
        return DEFAULT_SCORE
    if math.isnan(score):
        return DEFAULT_SCORE
    return max(MIN_SCORE, min(MAX_SCORE, score))


def normalize_type(value: Any) -> str:
    return TYPE_ALIASES.get(_coerce_text(value).lower(), DEFAULT_TYPE)


def normalize_difficulty(value: Any) -> str:
    return DIFFICULTY_ALIASES.get(_coerce_text(value).lower(), DEFAULT_DIFFICULTY)


def _candidate_items(value: Any) -> list[Any]:
    """Find the list of QA objects inside a parsed value."""
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        if "question" in value or "answer" in value:
            return [value]
        for nested in value.values():
            if isinstance(nested, list) and any(isinstance(v, dict) for v in nested):
                return nested
    return []


def normalize_items(value: Any) -> list[QAItem]:
    """Validate parsed JSON item by item, dropping unusable entries."""
    items: list[QAItem] = []
    for raw in _candidate_items(value):
        if not isinstance(raw, dict):
            continue
        question = _coerce_text(raw.get("question"))[:QUESTION_MAX]
        answer = _coerce_text(raw.get("answer"))[:ANSWER_MAX]
        if not question or not answer:
            continue
        items.append(
            QAItem(
                question=question,
                answer=answer,
                type=normalize_type(raw.get("type")),
                difficulty=normalize_difficulty(raw.get("difficulty")),
                tags=coerce_tags(raw.get("tags")),
                score=clamp_score(raw.get("score")),
            )
        )
    return items


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse_qa_response(raw: str) -> list[QAItem]:
    """Run the repair stages in order and return the normalized items.

    Raises:
        ResponseParseError: If no stage produces parseable JSON.
    """
    original = (raw or "").strip()
    text = strip_code_fences(original)

    truncated = repair_truncated(text)
    candidates = (
        ("raw", original),
        ("direct", text),
        ("truncation", truncated),
        ("balanced", extract_balanced_array(text)),
        ("balanced-truncation", extract_balanced_array(truncated) if truncated else None),
    )
    for stage, candidate in candidates:
        if candidate is None:
            continue
        ok, value = try_parse(candidate)
        if ok:
            items = normalize_items(value)
            if stage not in ("raw", "direct"):
                logger.debug("Provider response repaired via %s stage", stage)
            return items

    raise ResponseParseError(
        f"no repair stage produced valid JSON ({len(text)} chars)", raw=raw or ""
    )
