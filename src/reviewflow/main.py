"""Main CLI entry point for Reviewflow.

This module provides the main Typer application with sub-commands for
template management, project lifecycle and phase inspection.

Usage:
    reviewflow template load template.json
    reviewflow project create "Plant retrofit"
    reviewflow project start <project-id>
    reviewflow phase status <project-id> 2
    reviewflow serve --port 8000
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Optional, TypeVar

import structlog
import typer
from rich.console import Console
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.cli import phase as phase_cli
from reviewflow.cli import project as project_cli
from reviewflow.cli import template as template_cli
from reviewflow.config import ReviewflowConfig, load_config
from reviewflow.database.connection import get_engine, get_session_factory

T = TypeVar("T")

app = typer.Typer(
    name="reviewflow",
    help="Reviewflow: quality review workflow tracker",
    no_args_is_help=True,
)

app.add_typer(template_cli.app, name="template", help="Manage the checklist template")
app.add_typer(project_cli.app, name="project", help="Manage projects")
app.add_typer(phase_cli.app, name="phase", help="Inspect project phases")

console = Console()


class AppContext:
    """Application context shared across CLI commands.

    Attributes:
        config: Loaded Reviewflow configuration
        engine: Async SQLAlchemy engine
        session_factory: Factory for creating database sessions
    """

    def __init__(self, config: ReviewflowConfig):
        self.config = config
        self.engine = get_engine(config.database)
        self.session_factory = get_session_factory(self.engine)

    def run(self, operation: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run one database operation in its own transaction and event loop.

        The engine's connections are released afterwards, since each command
        runs on a fresh event loop.
        """

        async def _run() -> T:
            try:
                async with self.session_factory() as session, session.begin():
                    return await operation(session)
            finally:
                await self.engine.dispose()

        return asyncio.run(_run())


# Global context holder
_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(config: ReviewflowConfig) -> AppContext:
    """Initialize the global application context."""
    global _app_context
    _app_context = AppContext(config)
    return _app_context


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to (default from config)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to (default from config)"),
    ] = None,
) -> None:
    """Start the Reviewflow API server."""
    import uvicorn

    from reviewflow.logging import setup_logging
    from reviewflow.web.app import create_app

    config = get_app_context().config
    bind_host = host or config.web.host
    bind_port = port or config.web.port

    console.print("[bold cyan]Starting Reviewflow API[/bold cyan]")
    console.print(f"[dim]Host:[/dim] {bind_host}")
    console.print(f"[dim]Port:[/dim] {bind_port}")
    console.print()

    setup_logging(config.logging)
    uvicorn.run(
        create_app(config),
        host=bind_host,
        port=bind_port,
        log_level=config.logging.level.lower(),
    )


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure global options and initialize application context."""
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(format="%(message)s", level=log_level, stream=sys.stderr)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1) from e

    initialize_context(config)

    if verbose:
        console.print("[dim]Debug logging enabled[/dim]")


if __name__ == "__main__":
    app()
