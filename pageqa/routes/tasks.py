"""Task REST endpoints: submit URLs, poll status, read and export QA."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from pageqa.db.session import get_db
from pageqa.exceptions import TaskNotCompletedError, TaskNotFoundError, ValidationError
from pageqa.schemas.task import (
    CreateTaskRequest,
    CreateTaskResponse,
    QAListResponse,
    QARecordResponse,
    TaskListResponse,
    TaskResponse,
    TaskStatusResponse,
)
from pageqa.services.task_service import TaskService

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


def get_task_service(request: Request) -> TaskService:
    """Dependency returning the service built at startup."""
    return request.app.state.task_service


def _http_error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": {"code": code, "message": message}},
    )


def _to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, ValidationError):
        return _http_error(400, exc.code, str(exc))
    if isinstance(exc, TaskNotFoundError):
        return _http_error(404, "TASK_NOT_FOUND", str(exc))
    if isinstance(exc, TaskNotCompletedError):
        return _http_error(409, "TASK_NOT_COMPLETED", str(exc))
    return _http_error(500, "INTERNAL_ERROR", str(exc))


@router.post("/", response_model=CreateTaskResponse, status_code=202)
async def create_task(
    request: CreateTaskRequest,
    db: Session = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> CreateTaskResponse:
    """Submit a URL; processing continues in the background."""
    try:
        result = await service.submit(db, request.url)
    except ValidationError as e:
        raise _to_http(e)
    return CreateTaskResponse(
        task_id=result.task_id,
        status=result.status,
        message=result.message,
        from_cache=result.from_cache,
    )


@router.get("/", response_model=TaskListResponse)
def list_tasks(
    sort: str = "recent",
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    """List completed tasks, newest or most popular first."""
    try:
        result = service.list_tasks(db, sort=sort, page=page, limit=limit)
    except ValidationError as e:
        raise _to_http(e)
    return TaskListResponse(
        tasks=[TaskResponse.model_validate(task) for task in result.tasks],
        count=result.total,
        page=result.page,
        limit=result.limit,
    )


@router.get("/search", response_model=list[TaskResponse])
def search_tasks(
    q: str = Query("", description="Title or URL substring"),
    limit: int = 20,
    db: Session = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> list[TaskResponse]:
    try:
        tasks = service.search_tasks(db, q, limit=limit)
    except ValidationError as e:
        raise _to_http(e)
    return [TaskResponse.model_validate(task) for task in tasks]


@router.get("/{task_id}/status", response_model=TaskStatusResponse)
def get_task_status(
    task_id: str,
    db: Session = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskStatusResponse:
    """Poll a task; completed tasks include their QA list."""
    try:
        return TaskStatusResponse(**service.get_status(db, task_id))
    except (ValidationError, TaskNotFoundError) as e:
        raise _to_http(e)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    db: Session = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    try:
        task = service.get_task(db, task_id)
    except (ValidationError, TaskNotFoundError) as e:
        raise _to_http(e)
    return TaskResponse.model_validate(task)


@router.get("/{task_id}/qa", response_model=QAListResponse)
def get_task_qa(
    task_id: str,
    db: Session = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> QAListResponse:
    try:
        task, records = service.list_qa(db, task_id)
    except (ValidationError, TaskNotFoundError, TaskNotCompletedError) as e:
        raise _to_http(e)
    return QAListResponse(
        task_id=task.id,
        items=[QARecordResponse.model_validate(record) for record in records],
        count=len(records),
    )


@router.get("/{task_id}/export")
def export_task(
    task_id: str,
    db: Session = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> Response:
    """Download a completed task's QA list as Markdown."""
    try:
        export = service.export_markdown(db, task_id)
    except (ValidationError, TaskNotFoundError, TaskNotCompletedError) as e:
        raise _to_http(e)
    return Response(
        content=export.content,
        media_type=export.content_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> Response:
    """Delete a task and its QA records."""
    try:
        await service.delete_task(db, task_id)
    except (ValidationError, TaskNotFoundError) as e:
        raise _to_http(e)
    return Response(status_code=204)
