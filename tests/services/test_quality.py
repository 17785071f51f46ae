"""Tests for dedup, renumbering and quality scoring."""

from __future__ import annotations

import pytest

from pageqa.services.quality import (
    dedup,
    dedup_key,
    finalize,
    score_aggregate,
    score_item,
)
from pageqa.services.response_repair import QAItem


def _item(question: str, answer: str = "An answer.") -> QAItem:
    return QAItem(question=question, answer=answer)


class TestDedup:
    def test_dedup_key_ignores_case_and_spacing(self) -> None:
        assert dedup_key("  What   is  HTTP? ") == dedup_key("what is http?")

    def test_first_occurrence_wins(self) -> None:
        items = [_item("What is X?", "first"), _item("what is x?", "second")]

        result = dedup(items)

        assert len(result) == 1
        assert result[0].answer == "first"

    def test_idempotent(self) -> None:
        items = [_item("A?"), _item("B?"), _item("a?"), _item("C?")]

        once = dedup(items)

        assert dedup(once) == once


class TestFinalize:
    def test_cross_chunk_duplicate_keeps_earlier_chunk(self) -> None:
        chunk_one = [_item("What is X?", "from chunk one"), _item("Why Y?")]
        chunk_two = [_item("WHAT IS X?", "from chunk two"), _item("How Z?")]

        result = finalize([chunk_one, chunk_two])

        assert [qa.question for qa in result] == ["What is X?", "Why Y?", "How Z?"]
        assert result[0].answer == "from chunk one"
        assert [qa.order for qa in result] == [1, 2, 3]

    def test_scores_each_item(self) -> None:
        result = finalize([[QAItem(question="Q", answer="A", tags=["t"])]])

        assert result[0].quality_score == score_item("Q", "A", ["t"])

    def test_keeps_provider_score(self) -> None:
        result = finalize([[QAItem(question="Q", answer="A", score=4.5)]])

        assert result[0].provider_score == 4.5
        assert result[0].quality_score == score_item("Q", "A", [])


class TestScoreItem:
    def test_base_score(self) -> None:
        assert score_item("Short", "A", []) == 3.0

    def test_all_bonuses_clamped(self) -> None:
        question = "What does this long question ask?"
        answer = "x" * 250

        # 3 + 0.5 + 0.3 + 0.5 + 0.5 + 0.2 = 5.0
        assert score_item(question, answer, ["tag"]) == 5.0

    def test_fullwidth_question_mark(self) -> None:
        assert score_item("什么？", "A", []) == 3.3


class TestScoreAggregate:
    def test_empty_list_floor(self) -> None:
        assert score_aggregate([]) == 2.0

    @pytest.mark.parametrize(
        ("count", "expected"),
        [(1, 2.5), (2, 2.5), (3, 4.0), (4, 4.0), (5, 4.5), (15, 4.5), (16, 3.5), (25, 3.0)],
    )
    def test_count_adjustments(self, count: int, expected: float) -> None:
        items = [_item(f"Question {i}?") for i in range(count)]

        assert score_aggregate(items) == expected

    def test_low_valid_ratio(self) -> None:
        items = [_item(f"Q{i}?") for i in range(2)] + [_item("Q?", "  ") for _ in range(3)]

        # 5 items (+1), 2/5 valid (-0.5)
        assert score_aggregate(items) == 3.5

    def test_always_in_range(self) -> None:
        for count in range(0, 40):
            score = score_aggregate([_item(f"Q{i}?") for i in range(count)])
            assert 0.0 <= score <= 5.0
            assert score * 2 == int(score * 2)
