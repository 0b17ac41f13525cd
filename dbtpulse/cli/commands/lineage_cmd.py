"""``dbtpulse lineage UNIT`` — direct upstream and downstream of a unit."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from dbtpulse.cli.commands._project import load_index
from dbtpulse.config import config
from dbtpulse.monitor.renderer import RunRenderer

console = Console()


def lineage_cmd(
    unit: str = typer.Argument(
        ...,
        help="Unit unique_id, display name (schema.name) or bare name.",
    ),
    project_dir: Path = typer.Option(
        None,
        "--project-dir",
        "-p",
        help="dbt project directory.",
    ),
) -> None:
    """Show the units a unit reads from and the units that read from it."""
    project = project_dir or config.project_dir
    index = load_index(project / config.manifest_relpath, console)

    found = index.unit(unit) or index.by_display_name(unit)
    if found is None:
        candidates = [u for u in index.units if u.name == unit]
        if len(candidates) == 1:
            found = candidates[0]
        elif candidates:
            console.print(f"[bold red]Ambiguous unit name:[/bold red] {unit}")
            for c in candidates:
                console.print(f"  [cyan]{c.unique_id}[/cyan]")
            raise typer.Exit(code=1)

    if found is None:
        console.print(f"[bold red]Unit not found:[/bold red] {unit}")
        raise typer.Exit(code=1)

    RunRenderer(console=console).print_lineage(found, index)
