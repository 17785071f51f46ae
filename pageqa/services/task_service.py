"""Task lifecycle: submission, background pipeline runs and queries.

A task moves ``pending -> processing -> completed | partial | failed``.
Submissions for a URL that is already known reuse its task; only the
caller that wins the conditional status update starts a run.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy.orm import Session as DbSession

from pageqa.exceptions import (
    PersistenceError,
    ProviderUnavailable,
    TaskNotCompletedError,
    TaskNotFoundError,
    ValidationError,
)
from pageqa.models.task import Task, TaskStatus
from pageqa.services import task_store
from pageqa.services.cache import ResultCache, cache_key
from pageqa.services.categorizer import categorize
from pageqa.services.export import ExportMetadata, get_exporter
from pageqa.services.extractors import ExtractionError, ExtractionPipeline
from pageqa.services.qa_synthesizer import QASynthesizer
from pageqa.services.quality import finalize, score_aggregate
from pageqa.services.url_utils import url_hash, validate_task_id, validate_url

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 3600
MAX_PAGE_SIZE = 50
MIN_QUERY_LENGTH = 2
NO_ITEMS_MESSAGE = "No QA items could be generated from the page content"


@dataclass
class SubmitResult:
    """Outcome of a create call."""

    task_id: str
    status: str
    message: str
    from_cache: bool = False


@dataclass
class TaskPage:
    """One page of completed tasks."""

    tasks: list[Task]
    total: int
    page: int
    limit: int


@dataclass
class MarkdownExport:
    filename: str
    content: bytes
    content_type: str


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


def clamp_limit(limit: int, maximum: int = MAX_PAGE_SIZE) -> int:
    return max(1, min(maximum, limit))


def build_status(task: Task, records: list | None = None) -> dict[str, Any]:
    """Status payload: ``data`` only once completed, ``error_message`` when set."""
    status: dict[str, Any] = {
        "task_id": task.id,
        "status": task.status,
        "url": task.url,
    }
    if task.status == TaskStatus.COMPLETED.value:
        data = task.to_public_dict()
        data["qa_list"] = [record.to_dict() for record in records or []]
        status["data"] = data
    if task.error_message:
        status["error_message"] = task.error_message
    return status


class TaskService:
    """Orchestrates extraction, synthesis and persistence for URL tasks.

    Query methods take the caller's session; pipeline runs open their own
    session from ``session_factory`` since they outlive the request.
    """

    def __init__(
        self,
        session_factory: Callable[[], DbSession],
        extractor: ExtractionPipeline,
        synthesizer: QASynthesizer,
        cache: ResultCache | None = None,
        cache_ttl_seconds: int = DEFAULT_CACHE_TTL,
    ) -> None:
        self.session_factory = session_factory
        self.extractor = extractor
        self.synthesizer = synthesizer
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds
        self._background: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, db: DbSession, url: str | None) -> SubmitResult:
        """Create (or reuse) the task for ``url`` and start a run if needed.

        Raises:
            ValidationError: If the URL is not an absolute http(s) URL.
            PersistenceError: If the task row cannot be written.
        """
        clean_url = validate_url(url)
        fingerprint = url_hash(clean_url)

        cached = await self._cache_get(fingerprint)
        if cached is not None:
            task = task_store.find_by_id(db, cached.get("task_id", ""))
            if task is not None and task.status == TaskStatus.COMPLETED.value:
                task_store.increment_access(db, task)
                logger.info("Cache hit for %s (task %s)", clean_url, task.id)
                return SubmitResult(
                    task_id=task.id,
                    status=task.status,
                    message="Result served from cache",
                    from_cache=True,
                )
            await self._cache_delete(fingerprint)

        task, created = task_store.create_or_get(db, clean_url, fingerprint)

        if task.status == TaskStatus.COMPLETED.value:
            task_store.increment_access(db, task)
            await self._cache_result(db, task)
            return SubmitResult(
                task_id=task.id, status=task.status, message="Task already completed"
            )

        if task.status == TaskStatus.PROCESSING.value:
            return SubmitResult(
                task_id=task.id,
                status=task.status,
                message="Task is already being processed",
            )

        if not task_store.claim_for_processing(db, task.id):
            # Another submission moved it first
            current = task_store.find_by_id(db, task.id)
            status = current.status if current else TaskStatus.PROCESSING.value
            return SubmitResult(
                task_id=task.id, status=status, message="Task is already being processed"
            )

        self._start_run(task.id, clean_url)
        message = "Task created, processing started" if created else "Task restarted"
        logger.info("%s: task %s for %s", message, task.id, clean_url)
        return SubmitResult(
            task_id=task.id, status=TaskStatus.PROCESSING.value, message=message
        )

    def _start_run(self, task_id: str, url: str) -> None:
        run = asyncio.create_task(self.run_pipeline(task_id, url))
        self._background.add(run)
        run.add_done_callback(self._background.discard)

    @property
    def pending_runs(self) -> int:
        return len(self._background)

    async def wait_for_background(self) -> None:
        """Wait until every scheduled pipeline run has finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Pipeline run
    # ------------------------------------------------------------------

    async def run_pipeline(self, task_id: str, url: str) -> None:
        """Extract, synthesize and persist one task. Never raises."""
        try:
            await self._run(task_id, url)
        except PersistenceError:
            logger.exception("Persistence failure while processing task %s", task_id)
        except Exception as e:
            logger.exception("Unexpected error processing task %s", task_id)
            try:
                self._finish_failed(task_id, f"Unexpected error: {e}", {})
            except PersistenceError:
                logger.exception("Could not record failure for task %s", task_id)

    async def _run(self, task_id: str, url: str) -> None:
        total_start = time.perf_counter()
        timings: dict[str, int] = {}

        extract_start = time.perf_counter()
        try:
            page = await self.extractor.extract(url)
        except ExtractionError as e:
            timings["extract"] = _elapsed_ms(extract_start)
            timings["total"] = _elapsed_ms(total_start)
            logger.warning("Extraction failed for task %s (%s): %s", task_id, e.cause, e)
            self._finish_failed(task_id, str(e), timings)
            return
        timings["extract"] = _elapsed_ms(extract_start)

        category = categorize(page.title, page.keywords)
        page_fields = {
            "title": page.title,
            "keywords": list(page.keywords),
            "language": page.language,
            "category": category,
        }

        synth_start = time.perf_counter()
        try:
            synthesis = await self.synthesizer.synthesize(page.title, page.content)
        except ProviderUnavailable as e:
            timings["synthesize"] = _elapsed_ms(synth_start)
            timings["total"] = _elapsed_ms(total_start)
            logger.warning("No provider for task %s: %s", task_id, e)
            self._finish_partial(task_id, page_fields, str(e), timings, provider=None)
            return
        timings["synthesize"] = _elapsed_ms(synth_start)

        items = finalize(synthesis.item_lists)
        timings["total"] = _elapsed_ms(total_start)

        if not items:
            message = NO_ITEMS_MESSAGE
            if synthesis.failed_chunks:
                message = f"{message}: {synthesis.failed_chunks[0].error}"
            self._finish_partial(
                task_id, page_fields, message, timings, provider=synthesis.provider
            )
            return

        with self.session_factory() as db:
            task = task_store.find_by_id(db, task_id)
            if task is None:
                logger.warning("Task %s disappeared before completion", task_id)
                return
            for name, value in page_fields.items():
                setattr(task, name, value)
            task_store.bulk_create_qa(db, task, items)
            task.qa_count = len(items)
            task.quality_score = score_aggregate(items)
            task.provider_used = synthesis.provider
            task.processing_time = timings
            task.set_error(None)
            task.status = TaskStatus.COMPLETED.value
            task_store.save(db, task)
            logger.info(
                "Task %s completed: %d QA item(s), quality %.1f, %dms",
                task_id,
                task.qa_count,
                task.quality_score,
                timings["total"],
            )
            await self._cache_result(db, task)

    def _finish_failed(self, task_id: str, message: str, timings: dict[str, int]) -> None:
        with self.session_factory() as db:
            task = task_store.find_by_id(db, task_id)
            if task is None:
                return
            task_store.delete_qa_by_task_id(db, task_id)
            task = task_store.find_by_id(db, task_id)
            task.qa_count = 0
            task.quality_score = 0.0
            task.processing_time = timings
            task.set_error(message)
            task.status = TaskStatus.FAILED.value
            task_store.save(db, task)

    def _finish_partial(
        self,
        task_id: str,
        page_fields: dict[str, Any],
        message: str,
        timings: dict[str, int],
        provider: str | None,
    ) -> None:
        with self.session_factory() as db:
            task = task_store.find_by_id(db, task_id)
            if task is None:
                return
            for name, value in page_fields.items():
                setattr(task, name, value)
            task.qa_count = 0
            task.quality_score = score_aggregate([])
            task.provider_used = provider
            task.processing_time = timings
            task.set_error(message)
            task.status = TaskStatus.PARTIAL.value
            task_store.save(db, task)
            logger.info("Task %s finished partial: %s", task_id, message)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _get_or_raise(self, db: DbSession, task_id: str | None) -> Task:
        task_id = validate_task_id(task_id)
        task = task_store.find_by_id(db, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def _get_completed_or_raise(self, db: DbSession, task_id: str | None) -> Task:
        task = self._get_or_raise(db, task_id)
        if task.status != TaskStatus.COMPLETED.value:
            raise TaskNotCompletedError(task.id, task.status)
        return task

    def get_status(self, db: DbSession, task_id: str | None) -> dict[str, Any]:
        """Read-only status lookup."""
        task = self._get_or_raise(db, task_id)
        records = None
        if task.status == TaskStatus.COMPLETED.value:
            records = task_store.find_qa_by_task_id(db, task.id)
        return build_status(task, records)

    def get_task(self, db: DbSession, task_id: str | None) -> Task:
        """Task detail; counts as an access."""
        task = self._get_or_raise(db, task_id)
        return task_store.increment_access(db, task)

    def list_qa(self, db: DbSession, task_id: str | None) -> tuple[Task, list]:
        task = self._get_completed_or_raise(db, task_id)
        return task, task_store.find_qa_by_task_id(db, task.id)

    def list_tasks(
        self, db: DbSession, sort: str = "recent", page: int = 1, limit: int = 10
    ) -> TaskPage:
        if sort not in ("recent", "popular"):
            raise ValidationError(f"Unsupported sort order: {sort}", code="INVALID_QUERY")
        limit = clamp_limit(limit)
        page = max(1, page)
        tasks, total = task_store.list_completed(
            db, sort=sort, limit=limit, offset=(page - 1) * limit
        )
        return TaskPage(tasks=tasks, total=total, page=page, limit=limit)

    def search_tasks(self, db: DbSession, query: str | None, limit: int = 20) -> list[Task]:
        text = (query or "").strip()
        if len(text) < MIN_QUERY_LENGTH:
            raise ValidationError(
                f"Search query must be at least {MIN_QUERY_LENGTH} characters",
                code="INVALID_QUERY",
            )
        return task_store.search_completed(db, text, limit=clamp_limit(limit))

    async def delete_task(self, db: DbSession, task_id: str | None) -> None:
        """Delete a task with its QA records and evict its cached result."""
        task = self._get_or_raise(db, task_id)
        fingerprint = task.url_hash
        task_store.delete_task(db, task)
        await self._cache_delete(fingerprint)
        logger.info("Deleted task %s", task_id)

    def export_markdown(self, db: DbSession, task_id: str | None) -> MarkdownExport:
        task, records = self.list_qa(db, task_id)
        exporter = get_exporter("markdown")
        metadata = ExportMetadata(
            title=task.title,
            url=task.url,
            task_id=task.id,
            export_date=datetime.now(timezone.utc),
            qa_count=task.qa_count,
            quality_score=task.quality_score,
            category=task.category,
            keywords=list(task.keywords or []),
        )
        return MarkdownExport(
            filename=exporter.generate_filename(task.id),
            content=exporter.export(records, metadata),
            content_type=exporter.content_type,
        )

    # ------------------------------------------------------------------
    # Cache helpers
    # ------------------------------------------------------------------

    async def _cache_get(self, fingerprint: str) -> dict[str, Any] | None:
        if self.cache is None:
            return None
        value = await self.cache.get(cache_key(fingerprint))
        return value if isinstance(value, dict) else None

    async def _cache_delete(self, fingerprint: str) -> None:
        if self.cache is not None:
            await self.cache.delete(cache_key(fingerprint))

    async def _cache_result(self, db: DbSession, task: Task) -> None:
        if self.cache is None:
            return
        records = task_store.find_qa_by_task_id(db, task.id)
        await self.cache.set(
            cache_key(task.url_hash), build_status(task, records), self.cache_ttl_seconds
        )


def build_task_service(selector, cache: ResultCache | None = None) -> TaskService:
    """Wire a service from settings around an existing provider selector."""
    from pageqa.core.config import settings
    from pageqa.db.session import get_session_local
    from pageqa.services.extractors import ExtractionConfig
    from pageqa.services.providers import ProviderOptions

    extraction_config = ExtractionConfig(
        timeout_seconds=settings.url_fetch_timeout,
        max_redirects=settings.url_fetch_max_redirects,
        title_max_length=settings.title_max_length,
        content_max_length=settings.content_max_length,
        keyword_count=settings.keyword_count,
    )
    synthesizer = QASynthesizer(
        selector,
        options=ProviderOptions(
            max_tokens=settings.ai_max_tokens,
            temperature=settings.ai_temperature,
            timeout=settings.ai_timeout_seconds,
        ),
        segment_threshold=settings.segment_threshold,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
    )
    return TaskService(
        session_factory=get_session_local(),
        extractor=ExtractionPipeline(extraction_config),
        synthesizer=synthesizer,
        cache=cache,
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )
