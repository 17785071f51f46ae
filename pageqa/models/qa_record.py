"""SQLAlchemy ORM model for generated question/answer records."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from pageqa.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuestionType(str, enum.Enum):
    """Taxonomy of generated questions."""

    CONCEPT = "concept"
    IMPLEMENTATION = "implementation"
    APPLICATION = "application"
    TRADEOFFS = "tradeoffs"
    COMPARISON = "comparison"
    EXPERIENCE = "experience"
    OTHER = "other"


class Difficulty(str, enum.Enum):
    """Difficulty level of a generated question."""

    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


QUESTION_MAX = 1000
ANSWER_MAX = 5000
TAG_MAX = 50


class QARecord(Base):
    """A single generated question/answer pair owned by a task."""

    __tablename__ = "qa_records"

    id: str = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    task_id: str = Column(
        String(36),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
    )
    url_hash: str = Column(String(32), nullable=False)

    question: str = Column(Text, nullable=False)
    answer: str = Column(Text, nullable=False)

    # 1-based position after dedup; "order" is reserved in SQL
    order: int = Column("question_order", Integer, nullable=False)

    type: str = Column(String(32), nullable=False, default=QuestionType.OTHER.value)
    difficulty: str = Column(
        String(16), nullable=False, default=Difficulty.INTERMEDIATE.value
    )
    tags = Column(JSON, nullable=False, default=list)
    quality_score: float = Column(Float, nullable=False, default=3.0)
    # Self-assessed score returned by the provider, clamped to 1-5
    provider_score: float = Column(Float, nullable=False, default=3.0)

    created_at: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    task = relationship("Task", back_populates="qa_records")

    __table_args__ = (
        Index("idx_qa_task_order", "task_id", "question_order"),
        Index("idx_qa_url_hash", "url_hash"),
    )

    def to_dict(self) -> dict:
        """Serialise the record to a plain dictionary."""
        return {
            "id": self.id,
            "task_id": self.task_id,
            "order": self.order,
            "question": self.question,
            "answer": self.answer,
            "type": self.type,
            "difficulty": self.difficulty,
            "tags": list(self.tags or []),
            "quality_score": self.quality_score,
            "provider_score": self.provider_score,
        }

    def __repr__(self) -> str:
        return f"<QARecord {self.task_id}#{self.order}>"
