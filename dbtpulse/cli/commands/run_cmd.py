"""``dbtpulse run`` / ``dbtpulse exec`` — launch a command and watch it live.

``run`` assembles a dbt invocation from a subcommand, selector and flags;
``exec`` takes an already assembled shell command.  Both stream output into
the layered progress view, record the finished run to history and exit
non-zero if the command failed.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from dbtpulse.cli.commands._project import load_index, open_history
from dbtpulse.config import config
from dbtpulse.core.command_builder import build_dbt_command
from dbtpulse.core.session import RunSession
from dbtpulse.models.commands import DbtCommand, RunFlags, RunSelectMode
from dbtpulse.models.run import RunStatus, ViewMode
from dbtpulse.monitor.renderer import RunRenderer

console = Console()


def _watch(
    full_command: str,
    display_command: str,
    *,
    project_dir: Path,
    raw: bool,
    record: bool,
) -> None:
    index = load_index(project_dir / config.manifest_relpath, console)
    history = (
        open_history(config.history_path, config.history_limit, console)
        if record
        else None
    )
    session = RunSession(
        index, history=history, grammar=config.grammar, cwd=project_dir
    )
    renderer = RunRenderer(console=console)

    execution = session.launch(full_command, display_command)
    if raw:
        execution.view_mode = ViewMode.RAW
    renderer.render_live(session, tick_interval=config.tick_interval)

    status = execution.status
    entry = session.dismiss()
    if entry is not None:
        console.print(f"[dim]Saved to history as {entry.entry_id[:8]}[/dim]")

    if status == RunStatus.RUNNING:
        console.print("[yellow]Stopped watching; the command is still running.[/yellow]")
        raise typer.Exit(code=130)
    if status == RunStatus.FAILED:
        raise typer.Exit(code=1)


def run_cmd(
    command: DbtCommand = typer.Argument(
        DbtCommand.RUN,
        help="dbt subcommand to launch.",
    ),
    select: str = typer.Option(
        None,
        "--select",
        "-s",
        help="Unit name to select.",
    ),
    mode: RunSelectMode = typer.Option(
        RunSelectMode.SINGLE,
        "--mode",
        "-m",
        help="Graph operator applied to --select.",
    ),
    full_refresh: bool = typer.Option(False, "--full-refresh", help="Rebuild incremental models."),
    vars_: str = typer.Option("", "--vars", help="YAML/JSON dict passed as --vars."),
    exclude: str = typer.Option("", "--exclude", help="Exclusion selector."),
    project_dir: Path = typer.Option(
        None,
        "--project-dir",
        "-p",
        help="dbt project directory (defaults to DBTPULSE_PROJECT_DIR).",
    ),
    raw: bool = typer.Option(False, "--raw", help="Start in raw output view."),
    no_history: bool = typer.Option(False, "--no-history", help="Do not record this run."),
) -> None:
    """Launch a dbt command and watch its progress by dependency layer."""
    project = project_dir or config.project_dir
    console.print(f"[bold cyan]{command.label}[/bold cyan] [dim]{command.description}[/dim]")
    if select and command.supports_select:
        console.print(f"[dim]Selection:[/dim] {escape(select)} [dim]({mode.label})[/dim]")
    elif command.requires_selection:
        console.print(f"[dim]No --select given; {command.label} targets the whole project.[/dim]")

    selector = mode.selector(select) if select else None
    flags = RunFlags(full_refresh=full_refresh, vars=vars_, exclude=exclude)
    full, display = build_dbt_command(
        config.dbt_binary, project, command, selector, flags
    )
    _watch(full, display, project_dir=project, raw=raw, record=not no_history)


def exec_cmd(
    shell_command: str = typer.Argument(..., help="Shell command to run as-is."),
    project_dir: Path = typer.Option(
        None,
        "--project-dir",
        "-p",
        help="Working directory and manifest location.",
    ),
    raw: bool = typer.Option(False, "--raw", help="Start in raw output view."),
    no_history: bool = typer.Option(False, "--no-history", help="Do not record this run."),
) -> None:
    """Run an already assembled shell command and watch its progress."""
    project = project_dir or config.project_dir
    _watch(
        shell_command,
        shell_command,
        project_dir=project,
        raw=raw,
        record=not no_history,
    )
