"""FastAPI application factory for Reviewflow.

This module provides the application factory that creates and configures
a FastAPI application with:
- CORS middleware for the review front end
- Request logging middleware with correlation IDs
- Error handlers for the Reviewflow error hierarchy
- Database and image-store lifecycle management

Example usage:
    >>> from reviewflow.config import ReviewflowConfig
    >>> from reviewflow.web.app import create_app
    >>>
    >>> app = create_app(ReviewflowConfig())
    >>>
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reviewflow import __version__
from reviewflow.config import ReviewflowConfig
from reviewflow.database.connection import get_engine, get_session_factory
from reviewflow.logging import get_logger
from reviewflow.review.images import ImageJanitor, create_image_store
from reviewflow.review.state_machine import ApprovalStateMachine
from reviewflow.web.errors import register_error_handlers
from reviewflow.web.middleware import RequestLoggingMiddleware
from reviewflow.web.routes.analytics import create_analytics_router
from reviewflow.web.routes.approvals import create_approvals_router
from reviewflow.web.routes.checklists import create_checklists_router
from reviewflow.web.routes.health import create_health_router
from reviewflow.web.routes.projects import create_projects_router
from reviewflow.web.routes.template import create_template_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the engine and image janitor on startup, release them on shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        None after startup
    """
    config: ReviewflowConfig = app.state.config

    logger.info("app_startup_begin", host=config.web.host, port=config.web.port)

    engine = get_engine(config.database)
    app.state.engine = engine
    app.state.session_factory = get_session_factory(engine)
    app.state.janitor = ImageJanitor(create_image_store(config.images))

    logger.info(
        "database_pool_initialized",
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
        image_store=config.images.base_url,
    )

    yield

    logger.info("app_shutdown_begin")
    await app.state.janitor.close()
    await engine.dispose()
    logger.info("database_pool_disposed")


def create_app(config: ReviewflowConfig | None = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Args:
        config: Optional ReviewflowConfig. If None, creates default config.

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = ReviewflowConfig()

    app = FastAPI(
        title="Reviewflow",
        version=__version__,
        description="Quality review workflow tracker",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.state_machine = ApprovalStateMachine()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)

    app.include_router(create_health_router())
    app.include_router(create_projects_router())
    app.include_router(create_checklists_router())
    app.include_router(create_approvals_router())
    app.include_router(create_analytics_router())
    app.include_router(create_template_router())

    logger.info("app_created", cors_origins=config.web.cors_origins, version=__version__)

    return app
