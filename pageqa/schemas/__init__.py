"""Pydantic schemas package."""

from pageqa.schemas.common import ErrorResponse, HealthResponse, ProviderState  # noqa: F401
from pageqa.schemas.task import (  # noqa: F401
    CreateTaskRequest,
    CreateTaskResponse,
    QAListResponse,
    QARecordResponse,
    TaskListResponse,
    TaskResponse,
    TaskStatusResponse,
)
