"""Pytest fixtures for integration tests.

Provides async database fixtures backed by an in-memory SQLite database,
a stored checklist template, started projects and an HTTP client for the
FastAPI app. The production system runs on PostgreSQL; the queries used
here (ON CONFLICT, UPDATE ... RETURNING) behave the same on both.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any
from uuid import UUID

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from reviewflow.config import ReviewflowConfig
from reviewflow.database.models.base import Base
from reviewflow.database.queries.project import create_project
from reviewflow.database.queries.template import save_template
from reviewflow.review.images import ImageJanitor
from reviewflow.review.lifecycle import start_project
from reviewflow.web.app import create_app

TEMPLATE_PHASES: dict[str, Any] = {
    "stage1": [
        {
            "name": "Drawings",
            "questions": [
                {"text": "Title block complete?"},
                {"text": "Revision table updated?"},
            ],
            "sections": [
                {"name": "Dimensions", "questions": [{"text": "Units stated?"}]},
            ],
        },
        {
            "name": "Calculations",
            "questions": [{"text": "Loads referenced?"}],
        },
    ],
    "stage2": [
        {"name": "Handover", "questions": [{"text": "Client sign-off attached?"}]},
    ],
}

TEMPLATE_STAGE_NAMES = {"stage1": "Design", "stage2": "Delivery"}


class RecordingImageStore:
    """Image store double that records every deletion request."""

    def __init__(self) -> None:
        self.deleted: list[str] = []

    async def delete_images(self, ids: list[str]) -> None:
        self.deleted.extend(ids)


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite async engine for testing.

    Yields:
        Configured AsyncEngine instance using in-memory SQLite.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the test engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a new async database session for each test.

    The session is rolled back after the test completes.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def template_document() -> dict[str, Any]:
    """The test template in its JSON file form."""
    return {
        "name": "Test Template",
        "phases": TEMPLATE_PHASES,
        "stage_names": TEMPLATE_STAGE_NAMES,
    }


@pytest_asyncio.fixture
async def template(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Store the two-phase test template."""
    async with session_factory() as session, session.begin():
        await save_template(
            session,
            name="Test Template",
            phases=TEMPLATE_PHASES,
            stage_names=TEMPLATE_STAGE_NAMES,
            defect_categories=[{"id": "doc", "name": "Documentation", "color": "#1e88e5"}],
        )


@pytest_asyncio.fixture
async def project_id(
    session_factory: async_sessionmaker[AsyncSession],
    template: None,
) -> UUID:
    """Create and start a project; phase 1 is in progress."""
    async with session_factory() as session, session.begin():
        project = await create_project(session, name="Bridge retrofit", created_by="lead-1")
        await start_project(session, project.id, actor="lead-1")
        return project.id


@pytest.fixture
def image_store() -> RecordingImageStore:
    return RecordingImageStore()


@pytest.fixture
def janitor(image_store: RecordingImageStore) -> ImageJanitor:
    return ImageJanitor(image_store)


@pytest.fixture
def app(
    session_factory: async_sessionmaker[AsyncSession],
    janitor: ImageJanitor,
) -> FastAPI:
    """Create the app wired to the test database.

    ASGITransport does not run the lifespan, so state is set directly.
    """
    test_app = create_app(ReviewflowConfig())
    test_app.state.session_factory = session_factory
    test_app.state.janitor = janitor
    return test_app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for the test app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
