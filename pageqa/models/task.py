"""SQLAlchemy ORM model for page processing tasks."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from pageqa.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskStatus(str, enum.Enum):
    """Lifecycle status of a task."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    PARTIAL = "partial"


TERMINAL_STATUSES = frozenset(
    {TaskStatus.COMPLETED.value, TaskStatus.FAILED.value, TaskStatus.PARTIAL.value}
)


class Category(str, enum.Enum):
    """Coarse page category derived from title and keywords."""

    TECHNOLOGY = "technology"
    NEWS = "news"
    EDUCATION = "education"
    BUSINESS = "business"
    ENTERTAINMENT = "entertainment"
    SCIENCE = "science"
    OTHER = "other"


ERROR_MESSAGE_MAX = 500


class Task(Base):
    """One pipeline task per distinct normalized URL."""

    __tablename__ = "tasks"

    id: str = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    url: str = Column(String(2048), nullable=False)

    # md5 of the normalized URL; the create race is closed on this constraint
    url_hash: str = Column(String(32), nullable=False, unique=True)

    title: str = Column(String(512), nullable=False, default="")
    status: str = Column(String(20), nullable=False, default=TaskStatus.PENDING.value)
    qa_count: int = Column(Integer, nullable=False, default=0)
    keywords = Column(JSON, nullable=False, default=list)
    category: str = Column(String(32), nullable=False, default=Category.OTHER.value)
    language: str | None = Column(String(16), nullable=True)
    quality_score: float = Column(Float, nullable=False, default=0.0)
    error_message: str | None = Column(Text, nullable=True)

    # {"extract": ms, "synthesize": ms, "total": ms}
    processing_time = Column(JSON, nullable=False, default=dict)
    provider_used: str | None = Column(String(64), nullable=True)

    access_count: int = Column(Integer, nullable=False, default=0)
    last_accessed_at: datetime | None = Column(DateTime(timezone=True), nullable=True)
    created_at: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: datetime = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    qa_records = relationship(
        "QARecord",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QARecord.order",
    )

    __table_args__ = (
        Index("idx_task_status", "status"),
        Index("idx_task_created_at", "created_at"),
        Index("idx_task_category", "category"),
    )

    # ------------------------------------------------------------------
    # Instance helpers
    # ------------------------------------------------------------------

    def mark_accessed(self) -> None:
        """Bump the access counter and timestamp."""
        self.access_count = (self.access_count or 0) + 1
        self.last_accessed_at = _utcnow()

    def set_error(self, message: str | None) -> None:
        """Store an error message, truncated to the column budget."""
        if message is None:
            self.error_message = None
            return
        self.error_message = message[:ERROR_MESSAGE_MAX]

    def is_terminal(self) -> bool:
        """Return True once the task has reached completed/failed/partial."""
        return self.status in TERMINAL_STATUSES

    def to_public_dict(self) -> dict:
        """Serialise the public task fields (what the cache and API expose)."""
        return {
            "id": self.id,
            "url": self.url,
            "url_hash": self.url_hash,
            "title": self.title,
            "status": self.status,
            "qa_count": self.qa_count,
            "keywords": list(self.keywords or []),
            "category": self.category,
            "language": self.language,
            "quality_score": self.quality_score,
            "processing_time": dict(self.processing_time or {}),
            "provider_used": self.provider_used,
            "access_count": self.access_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Task {self.id}: status={self.status} url={self.url}>"
