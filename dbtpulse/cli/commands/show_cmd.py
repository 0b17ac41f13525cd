"""``dbtpulse show UNIT`` — preview a unit's rows with ``dbt show``.

Runs on the session's preview supervisor, independent of any main run.
"""

from __future__ import annotations

import time
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from dbtpulse.config import config
from dbtpulse.core.command_builder import build_show_command
from dbtpulse.core.session import RunSession
from dbtpulse.models.run import RunStatus

console = Console()


def show_cmd(
    unit: str = typer.Argument(..., help="Unit name to preview."),
    limit: int = typer.Option(
        None,
        "--limit",
        "-n",
        help="Row limit (defaults to DBTPULSE_SHOW_LIMIT).",
    ),
    project_dir: Path = typer.Option(
        None,
        "--project-dir",
        "-p",
        help="dbt project directory.",
    ),
) -> None:
    """Preview the first rows a unit produces."""
    project = project_dir or config.project_dir
    full, display = build_show_command(
        config.dbt_binary, project, unit, limit or config.show_limit
    )

    session = RunSession(grammar=config.grammar, cwd=project)
    preview = session.launch_preview(full, display)

    with console.status(f"[bold cyan]{display}[/bold cyan]"):
        try:
            while preview.status == RunStatus.RUNNING:
                session.tick()
                time.sleep(config.tick_interval)
        except KeyboardInterrupt:
            session.dismiss_preview()
            raise typer.Exit(code=130)

    style = "green" if preview.status == RunStatus.SUCCEEDED else "red"
    console.print(
        Panel(
            Text(preview.output.rstrip() or "(no output)"),
            title=f"[bold]{display}[/bold]",
            border_style=style,
        )
    )
    session.dismiss_preview()
    if preview.status == RunStatus.FAILED:
        raise typer.Exit(code=1)
