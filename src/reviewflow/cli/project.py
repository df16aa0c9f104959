"""Project management CLI commands."""

from __future__ import annotations

import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from reviewflow.database.models.project import ProjectStatus
from reviewflow.database.queries.project import create_project, list_projects
from reviewflow.errors import ReviewflowError
from reviewflow.review.lifecycle import list_stages, start_project

app = typer.Typer(help="Project management commands")
console = Console()

STATUS_COLORS = {
    "pending": "yellow",
    "in_progress": "green",
    "completed": "blue",
}


@app.command()
def create(
    name: Annotated[str, typer.Argument(help="Project name")],
    description: Annotated[
        Optional[str],
        typer.Option("--description", "-d", help="Project description"),
    ] = None,
    actor: Annotated[
        Optional[str],
        typer.Option("--actor", "-a", help="Actor id recorded as the creator"),
    ] = None,
) -> None:
    """Create a new pending project."""
    from reviewflow.main import get_app_context

    ctx = get_app_context()

    async def _create(session):
        return await create_project(
            session, name=name, description=description, created_by=actor
        )

    project = ctx.run(_create)

    panel = Panel(
        f"[green]Project created successfully![/green]\n\n"
        f"[bold]ID:[/bold] {project.id}\n"
        f"[bold]Name:[/bold] {project.name}\n"
        f"[bold]Status:[/bold] {project.status.value}",
        title="Project Created",
        border_style="green",
    )
    console.print(panel)


@app.command()
def start(
    project_id: Annotated[str, typer.Argument(help="Project UUID")],
    actor: Annotated[
        Optional[str],
        typer.Option("--actor", "-a", help="Actor id starting the project"),
    ] = None,
) -> None:
    """Start a pending project and lay out its phases from the template."""
    from reviewflow.main import get_app_context

    ctx = get_app_context()

    async def _start(session):
        project = await start_project(session, project_id, actor=actor)
        stages = await list_stages(session, project.id)
        return project, stages

    try:
        project, stages = ctx.run(_start)
    except ReviewflowError as e:
        console.print(f"[red]Cannot start project:[/red] {e.message}")
        raise typer.Exit(code=1) from e

    console.print(
        f"[green]Project started:[/green] {project.name} "
        f"({len(stages)} phases, status {project.status.value})"
    )


@app.command("list")
def list_command(
    status: Annotated[
        Optional[str],
        typer.Option("--status", "-s", help="Filter by status (pending, in_progress, completed)"),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List all projects."""
    from reviewflow.main import get_app_context

    ctx = get_app_context()

    status_filter = None
    if status is not None:
        try:
            status_filter = ProjectStatus(status)
        except ValueError:
            console.print(
                f"[red]Invalid status:[/red] {status}. "
                f"Valid values: {', '.join(s.value for s in ProjectStatus)}"
            )
            raise typer.Exit(code=1) from None

    async def _list(session):
        return await list_projects(session, status_filter=status_filter)

    projects = ctx.run(_list)

    if format == "json":
        output = [
            {
                "id": str(p.id),
                "name": p.name,
                "status": p.status.value,
                "created_at": p.created_at.isoformat(),
            }
            for p in projects
        ]
        console.print(json.dumps(output, indent=2))
        return

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Status", style="magenta")
    table.add_column("Created", style="dim")

    for p in projects:
        color = STATUS_COLORS.get(p.status.value, "white")
        table.add_row(
            str(p.id),
            p.name,
            f"[{color}]{p.status.value}[/{color}]",
            p.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)
