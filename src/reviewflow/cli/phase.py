"""Phase inspection CLI commands."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel

from reviewflow.database.queries.stage import get_stage_by_phase
from reviewflow.errors import ReviewflowError
from reviewflow.review.state_machine import ApprovalStateMachine
from reviewflow.review.validation import parse_phase, parse_project_id

app = typer.Typer(help="Phase inspection commands")
console = Console()


@app.command()
def status(
    project_id: Annotated[str, typer.Argument(help="Project UUID")],
    phase: Annotated[str, typer.Argument(help="Phase number")],
) -> None:
    """Show the stage, approval and iteration state of one phase."""
    from reviewflow.main import get_app_context

    ctx = get_app_context()
    machine = ApprovalStateMachine()

    try:
        project_uuid = parse_project_id(project_id)
        phase_number = parse_phase(phase)
    except ReviewflowError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(code=1) from e

    async def _status(session):
        stage = await get_stage_by_phase(session, project_uuid, phase_number)
        approval = await machine.get_approval_status(session, project_uuid, phase_number)
        iterations = await machine.get_iterations(session, project_uuid, phase_number)
        return stage, approval, iterations

    stage, approval, iterations = ctx.run(_status)

    if stage is None:
        console.print(f"[yellow]Phase {phase_number} has not been created[/yellow]")
        raise typer.Exit(code=1)

    lines = [
        f"[bold]Stage:[/bold] {stage.name} ({stage.stage_key})",
        f"[bold]Stage status:[/bold] {stage.status.value}",
        f"[bold]Conflicts:[/bold] {stage.conflict_count}",
        f"[bold]Current iteration:[/bold] {iterations['current_iteration']}",
        f"[bold]Archived iterations:[/bold] {iterations['total_iterations']}",
    ]
    if approval is None:
        lines.append("[bold]Approval:[/bold] [dim]no record[/dim]")
    else:
        lines.extend(
            [
                f"[bold]Approval:[/bold] {approval.status.value}",
                f"[bold]Executor submitted:[/bold] {approval.executor_submitted}",
                f"[bold]Reviewer submitted:[/bold] {approval.reviewer_submitted}",
            ]
        )

    console.print(Panel("\n".join(lines), title=f"Phase {phase_number}", border_style="cyan"))
