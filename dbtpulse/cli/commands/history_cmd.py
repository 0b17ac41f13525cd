"""``dbtpulse history`` — list recorded runs, or reopen one.

Reopening a run re-parses its stored output against the current project
graph, so it renders exactly as it did live.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from dbtpulse.cli.commands._project import load_index
from dbtpulse.config import config
from dbtpulse.core.run_history import HistoryStoreError, RunHistoryStore
from dbtpulse.core.session import RunSession
from dbtpulse.models.run import ViewMode
from dbtpulse.monitor.renderer import RunRenderer

console = Console()


def history_cmd(
    show: str = typer.Option(
        None,
        "--show",
        "-s",
        help="Reopen a run by entry ID (a unique prefix is enough).",
    ),
    position: int = typer.Option(
        None,
        "--index",
        "-i",
        min=0,
        help="Reopen a run by its position in the listing (0 is newest).",
    ),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of runs to list."),
    raw: bool = typer.Option(False, "--raw", help="Show the raw log instead of the graph."),
    history_db: Path = typer.Option(
        None,
        "--db",
        help="Path to the history database (defaults to DBTPULSE_HISTORY_PATH).",
    ),
    project_dir: Path = typer.Option(
        None,
        "--project-dir",
        "-p",
        help="dbt project directory used to relayer reopened runs.",
    ),
) -> None:
    """List past runs, newest first."""
    db_path = history_db or config.history_path
    if not db_path.exists():
        console.print(f"[dim]No history yet at {db_path}.[/dim]")
        return

    try:
        store = RunHistoryStore(db_path, limit=config.history_limit)
        entries = store.recent()
    except HistoryStoreError as exc:
        console.print(f"[bold red]History unavailable:[/bold red] {exc}")
        raise typer.Exit(code=1)

    renderer = RunRenderer(console=console)

    if show is None and position is None:
        if not entries:
            console.print("[dim]No runs recorded.[/dim]")
            return
        renderer.print_history(entries[:limit])
        return

    if show is not None and position is not None:
        console.print("[bold red]Use either --show or --index, not both.[/bold red]")
        raise typer.Exit(code=2)

    if position is not None:
        matches = entries[position:position + 1]
        wanted = f"#{position}"
    else:
        matches = [e for e in entries if e.entry_id.startswith(show)]
        wanted = show
    if len(matches) != 1:
        reason = "not found" if not matches else "ambiguous"
        console.print(f"[bold red]Run {reason}:[/bold red] {escape(wanted)}")
        raise typer.Exit(code=1)

    project = project_dir or config.project_dir
    index = load_index(project / config.manifest_relpath, console)
    session = RunSession(index, grammar=config.grammar)
    execution = session.open_history(matches[0])
    if raw:
        execution.view_mode = ViewMode.RAW
    renderer.print_execution(execution)
