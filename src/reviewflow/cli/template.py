"""Template management CLI commands.

Templates are JSON documents of the form accepted by ``PUT /template``:
``{"name": ..., "phases": {"stage1": [...]}, "stage_names": {...},
"defect_categories": [...]}``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from reviewflow.database.queries.template import get_template, save_template
from reviewflow.review.template import TemplateDocument, groups_for_stage, phase_keys

app = typer.Typer(help="Checklist template commands")
console = Console()


@app.command()
def load(
    template_file: Annotated[
        Path,
        typer.Argument(
            help="Path to template JSON file",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    actor: Annotated[
        Optional[str],
        typer.Option("--actor", "-a", help="Actor id recorded as the modifier"),
    ] = None,
) -> None:
    """Create or replace the checklist template from a JSON file."""
    from reviewflow.main import get_app_context

    ctx = get_app_context()

    try:
        with open(template_file, "r", encoding="utf-8") as f:
            document = TemplateDocument.model_validate(json.load(f))
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Invalid template file:[/red] {e}")
        raise typer.Exit(code=1) from e

    payload = document.model_dump(mode="json")

    async def _save(session):
        template = await save_template(
            session,
            name=payload["name"],
            phases=payload["phases"],
            stage_names=payload["stage_names"],
            defect_categories=payload["defect_categories"],
            modified_by=actor,
        )
        return template.id

    template_id = ctx.run(_save)
    console.print(
        f"[green]Template saved[/green] ({len(payload['phases'])} phases) [dim]{template_id}[/dim]"
    )


@app.command()
def show() -> None:
    """Show the phases and question counts of the current template."""
    from reviewflow.main import get_app_context

    ctx = get_app_context()
    template = ctx.run(get_template)

    if template is None:
        console.print("[yellow]No template configured[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=template.name)
    table.add_column("Phase", justify="right", style="cyan")
    table.add_column("Key", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Groups", justify="right")
    table.add_column("Questions", justify="right")

    for phase_number, stage_key in phase_keys(template.phases):
        groups = groups_for_stage(template.phases, stage_key)
        questions = sum(
            len(g.questions) + sum(len(s.questions) for s in g.sections) for g in groups
        )
        table.add_row(
            str(phase_number),
            stage_key,
            (template.stage_names or {}).get(stage_key, f"Phase {phase_number}"),
            str(len(groups)),
            str(questions),
        )

    console.print(table)
