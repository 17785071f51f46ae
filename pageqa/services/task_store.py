"""Persistence adapter for task and QA records.

Every write commits before returning and turns SQLAlchemy failures into
``PersistenceError`` so the pipeline can stop without leaving a half
written run behind.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Sequence

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from pageqa.exceptions import PersistenceError
from pageqa.models.qa_record import QARecord
from pageqa.models.task import Task, TaskStatus
from pageqa.services.quality import ScoredQA

logger = logging.getLogger(__name__)

# Statuses a create call may move back to processing
RESTARTABLE_STATUSES: tuple[str, ...] = (
    TaskStatus.PENDING.value,
    TaskStatus.FAILED.value,
    TaskStatus.PARTIAL.value,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Task lookups
# ---------------------------------------------------------------------------


def find_by_id(db: DbSession, task_id: str) -> Task | None:
    # Pipeline runs write through their own sessions; always reload
    return db.query(Task).filter(Task.id == task_id).populate_existing().first()


def find_by_hash(db: DbSession, url_hash: str) -> Task | None:
    return db.query(Task).filter(Task.url_hash == url_hash).populate_existing().first()


def list_completed(
    db: DbSession, sort: str = "recent", limit: int = 10, offset: int = 0
) -> tuple[list[Task], int]:
    """Completed tasks, newest first or most accessed first."""
    query = db.query(Task).filter(Task.status == TaskStatus.COMPLETED.value)
    if sort == "popular":
        query = query.order_by(Task.access_count.desc(), Task.created_at.desc())
    else:
        query = query.order_by(Task.created_at.desc())
    total = query.count()
    return query.offset(offset).limit(limit).all(), total


def search_completed(db: DbSession, text: str, limit: int = 20) -> list[Task]:
    """Completed tasks whose title or URL contains ``text``."""
    escaped = (
        text.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )
    pattern = f"%{escaped}%"
    return (
        db.query(Task)
        .filter(
            Task.status == TaskStatus.COMPLETED.value,
            or_(
                Task.title.ilike(pattern, escape="\\"),
                Task.url.ilike(pattern, escape="\\"),
            ),
        )
        .order_by(Task.access_count.desc(), Task.created_at.desc())
        .limit(limit)
        .all()
    )


# ---------------------------------------------------------------------------
# Task writes
# ---------------------------------------------------------------------------


def create_or_get(db: DbSession, url: str, url_hash: str) -> tuple[Task, bool]:
    """Insert a pending task for ``url_hash`` or return the one that exists.

    The unique constraint on ``url_hash`` settles concurrent inserts: the
    loser rolls back and reads the winner's row.

    Returns:
        (task, created)
    """
    existing = find_by_hash(db, url_hash)
    if existing is not None:
        return existing, False

    task = Task(url=url, url_hash=url_hash, status=TaskStatus.PENDING.value)
    db.add(task)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = find_by_hash(db, url_hash)
        if existing is None:
            raise PersistenceError(f"Could not create or load task for {url}")
        logger.info("Concurrent create for %s resolved to task %s", url, existing.id)
        return existing, False
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to create task for {url}: {e}") from e

    db.refresh(task)
    return task, True


def claim_for_processing(
    db: DbSession,
    task_id: str,
    allowed_from: Sequence[str] = RESTARTABLE_STATUSES,
) -> bool:
    """Atomically move a task to processing if it is in ``allowed_from``.

    Clears the previous error message and QA records. Returns False when
    another caller already moved the task, so only one run starts.
    """
    try:
        result = db.execute(
            update(Task)
            .where(Task.id == task_id, Task.status.in_(list(allowed_from)))
            .values(
                status=TaskStatus.PROCESSING.value,
                error_message=None,
                updated_at=_utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            return False
        db.execute(
            delete(QARecord)
            .where(QARecord.task_id == task_id)
            .execution_options(synchronize_session=False)
        )
        db.execute(
            update(Task)
            .where(Task.id == task_id)
            .values(qa_count=0)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to claim task {task_id}: {e}") from e
    db.expire_all()
    return True


def save(db: DbSession, task: Task) -> Task:
    """Commit pending changes on ``task``."""
    try:
        db.add(task)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to save task {task.id}: {e}") from e
    db.refresh(task)
    return task


def increment_access(db: DbSession, task: Task) -> Task:
    task.mark_accessed()
    return save(db, task)


def delete_task(db: DbSession, task: Task) -> None:
    """Delete a task; its QA records go with it."""
    try:
        db.execute(delete(QARecord).where(QARecord.task_id == task.id))
        db.delete(task)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to delete task {task.id}: {e}") from e


# ---------------------------------------------------------------------------
# QA records
# ---------------------------------------------------------------------------


def find_qa_by_task_id(db: DbSession, task_id: str) -> list[QARecord]:
    return (
        db.query(QARecord)
        .filter(QARecord.task_id == task_id)
        .order_by(QARecord.order.asc())
        .all()
    )


def delete_qa_by_task_id(db: DbSession, task_id: str) -> int:
    try:
        result = db.execute(
            delete(QARecord)
            .where(QARecord.task_id == task_id)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to delete QA records of task {task_id}: {e}") from e
    db.expire_all()
    return result.rowcount or 0


def bulk_create_qa(db: DbSession, task: Task, items: Iterable[ScoredQA]) -> list[QARecord]:
    """Replace the task's QA records with ``items`` (kept in their order)."""
    records = [
        QARecord(
            task_id=task.id,
            url_hash=task.url_hash,
            question=item.question,
            answer=item.answer,
            order=item.order,
            type=item.type,
            difficulty=item.difficulty,
            tags=list(item.tags),
            quality_score=item.quality_score,
            provider_score=item.provider_score,
        )
        for item in items
    ]
    try:
        db.execute(
            delete(QARecord)
            .where(QARecord.task_id == task.id)
            .execution_options(synchronize_session=False)
        )
        db.add_all(records)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to write QA records for task {task.id}: {e}") from e
    logger.info("Stored %d QA record(s) for task %s", len(records), task.id)
    return records
