"""FastAPI application entry point for page-qa-service.

Configures middleware, exception handlers, lifecycle hooks, and routes.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pageqa.core.config import settings
from pageqa.db.session import create_all_tables
from pageqa.routes import health
from pageqa.routes.tasks import router as tasks_router
from pageqa.services.cache import build_cache
from pageqa.services.providers import build_default_selector
from pageqa.services.task_service import build_task_service

# ---------------------------------------------------------------------------
# Logging Configuration
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=settings.get_log_level_int(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup / shutdown lifecycle."""
    # --- Startup ---
    logger.info(
        "Starting %s (env=%s, port=%d)",
        health.SERVICE_NAME,
        settings.service_env,
        settings.port,
    )

    # Import models so Base.metadata knows about them
    import pageqa.models  # noqa: F401

    create_all_tables()
    logger.info("Database tables ensured")

    selector = build_default_selector()
    configured = [p.name for p in selector.providers if p.has_credentials()]
    if configured:
        logger.info("AI providers configured: %s", ", ".join(configured))
    else:
        logger.warning(
            "No AI provider API key configured. "
            "Tasks will finish as partial without QA items."
        )

    cache = build_cache()
    app.state.selector = selector
    app.state.cache = cache
    app.state.task_service = build_task_service(selector, cache)

    yield

    # --- Shutdown ---
    logger.info("Shutting down %s", health.SERVICE_NAME)
    await app.state.task_service.wait_for_background()
    if cache is not None:
        await cache.close()


# ---------------------------------------------------------------------------
# App instance
# ---------------------------------------------------------------------------

app = FastAPI(
    title="page-qa API",
    version=health.SERVICE_VERSION,
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log every request with method, path, status, and duration."""
    start = time.monotonic()
    response = await call_next(request)
    duration_ms = (time.monotonic() - start) * 1000
    logger.info(
        "%s %s -> %d (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


# ---------------------------------------------------------------------------
# Global exception handler
# ---------------------------------------------------------------------------


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler that returns a structured JSON error."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
            }
        },
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

# Health check at /health (no prefix)
app.include_router(health.router)

# Task routes (prefixed with /api/v1/tasks)
app.include_router(tasks_router)


# Additional health endpoint under API prefix for consistency
@app.get("/api/v1/health", tags=["health"])
async def api_health_check(request: Request):
    """Health check under the /api/v1 prefix."""
    payload = health.build_health(request).model_dump()
    payload["environment"] = settings.service_env
    return payload
