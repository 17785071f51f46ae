"""Shared pytest fixtures for integration and unit tests.

The fixtures below are prefixed with ``shared_`` so they never collide with
per-module fixtures.

Usage in new test files:
    def test_something(shared_client, task_service):
        resp = shared_client.post("/api/v1/tasks/", json={"url": "https://example.com"})
        shared_client.portal.call(task_service.wait_for_background)
        ...
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import pageqa.models  # noqa: F401  -- ensure models registered with Base.metadata
from fakes import FakeExtractor, FakeProvider, make_page, qa_json
from pageqa.db.base import Base
from pageqa.db.session import enable_sqlite_foreign_keys, get_db, reset_engine
from pageqa.main import app
from pageqa.services.providers.selector import ProviderSelector
from pageqa.services.qa_synthesizer import QASynthesizer
from pageqa.services.task_service import TaskService


# ------------------------------------------------------------------
# Database fixtures (shared_ prefix to avoid collisions)
# ------------------------------------------------------------------


@pytest.fixture()
def shared_db_engine():
    """Create an in-memory SQLite engine shared across connections."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def shared_session_factory(shared_db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=shared_db_engine)


@pytest.fixture()
def shared_db(shared_session_factory):
    session = shared_session_factory()
    try:
        yield session
    finally:
        session.close()


# ------------------------------------------------------------------
# Service fixtures
# ------------------------------------------------------------------


@pytest.fixture()
def fake_provider() -> FakeProvider:
    """Healthy provider answering every prompt with three QA items."""
    return FakeProvider(
        "fake", reply=qa_json("What is Python?", "Why use an API?", "How do frameworks help?")
    )


@pytest.fixture()
def fake_extractor() -> FakeExtractor:
    return FakeExtractor(make_page())


@pytest.fixture()
def task_service(shared_session_factory, fake_extractor, fake_provider) -> TaskService:
    return TaskService(
        session_factory=shared_session_factory,
        extractor=fake_extractor,
        synthesizer=QASynthesizer(ProviderSelector([fake_provider])),
    )


@pytest.fixture()
def shared_client(shared_session_factory, task_service, tmp_path):
    """TestClient with overridden DB dependency and fake pipeline backends."""
    from pageqa.core.config import settings

    original_database_url = settings.database_url
    object.__setattr__(settings, "database_url", f"sqlite:///{tmp_path / 'startup.db'}")
    reset_engine()

    def _override_get_db():
        session = shared_session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as tc:
        app.state.task_service = task_service
        app.state.selector = task_service.synthesizer.selector
        yield tc
    app.dependency_overrides.clear()
    object.__setattr__(settings, "database_url", original_database_url)
    reset_engine()
