"""Pydantic v2 schemas for task endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreateTaskRequest(BaseModel):
    """Body for POST /api/v1/tasks."""

    url: str = Field(..., max_length=2048, description="Absolute http(s) URL to process")


class CreateTaskResponse(BaseModel):
    task_id: str
    status: str
    message: str
    from_cache: bool = False


class QARecordResponse(BaseModel):
    """Single generated question/answer pair."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    order: int
    question: str
    answer: str
    type: str
    difficulty: str
    tags: list[str] = Field(default_factory=list)
    quality_score: float
    provider_score: float = 3.0


class TaskResponse(BaseModel):
    """Task detail returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    title: str
    status: str
    qa_count: int
    keywords: list[str] = Field(default_factory=list)
    category: str
    language: str | None = None
    quality_score: float
    error_message: str | None = None
    processing_time: dict[str, int] = Field(default_factory=dict)
    provider_used: str | None = None
    access_count: int
    created_at: datetime
    updated_at: datetime


class TaskStatusResponse(BaseModel):
    """Status polling payload; ``data`` only once completed."""

    task_id: str
    status: str
    url: str
    data: dict[str, Any] | None = None
    error_message: str | None = None


class QAListResponse(BaseModel):
    task_id: str
    items: list[QARecordResponse]
    count: int


class TaskListResponse(BaseModel):
    """Paginated list of completed tasks."""

    tasks: list[TaskResponse]
    count: int
    page: int
    limit: int
