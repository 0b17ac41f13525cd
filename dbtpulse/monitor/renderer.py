"""Rich terminal renderer for run progress.

Turns a ``RunExecution`` into Rich renderables: a layered graph view (one
block per dependency layer) or the tail of the raw log, plus a continuous
``Rich.Live`` loop that drives a ``RunSession`` at a fixed tick.

Color scheme
------------
- green     : succeeded
- red       : failed
- yellow    : running
- dim       : skipped
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from dbtpulse.models.run import RunExecution, RunStatus, UnitRunStatus, ViewMode

if TYPE_CHECKING:
    from dbtpulse.core.dependency_index import DependencyIndex
    from dbtpulse.core.session import RunSession
    from dbtpulse.models.history import RunHistoryEntry
    from dbtpulse.models.units import BuildUnit


# ---------------------------------------------------------------------------
# Status -> Rich style mapping
# ---------------------------------------------------------------------------

_UNIT_STYLES: dict[UnitRunStatus, str] = {
    UnitRunStatus.SUCCEEDED: "bold green",
    UnitRunStatus.FAILED: "bold red",
    UnitRunStatus.RUNNING: "bold yellow",
    UnitRunStatus.SKIPPED: "dim",
}

_UNIT_ICONS: dict[UnitRunStatus, str] = {
    UnitRunStatus.SUCCEEDED: "[green]OK[/green]",
    UnitRunStatus.FAILED: "[bold red]ERROR[/bold red]",
    UnitRunStatus.RUNNING: "[yellow]RUNNING[/yellow]",
    UnitRunStatus.SKIPPED: "[dim]SKIP[/dim]",
}

_RUN_ICONS: dict[RunStatus, str] = {
    RunStatus.RUNNING: "[yellow]running[/yellow]",
    RunStatus.SUCCEEDED: "[green]succeeded[/green]",
    RunStatus.FAILED: "[bold red]FAILED[/bold red]",
}


class RunRenderer:
    """Renders ``RunExecution`` as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    raw_tail:
        Number of trailing output lines shown in raw view.
    """

    def __init__(self, console: Console | None = None, *, raw_tail: int = 40) -> None:
        self.console = console or Console()
        self.raw_tail = raw_tail

    # ------------------------------------------------------------------
    # Single render
    # ------------------------------------------------------------------

    def render_execution(
        self, execution: RunExecution, *, elapsed: float | None = None
    ) -> Panel:
        """Render the current view of a run as a Panel."""
        if execution.view_mode == ViewMode.RAW or not execution.unit_runs:
            body = self._build_raw_view(execution)
        else:
            body = self._build_layer_table(execution)

        counts = execution.count_by_status()
        summary_parts: list[str] = [
            f"[bold]Status:[/bold] {_RUN_ICONS[execution.status]}",
            f"[bold]Units:[/bold] {len(execution.unit_runs)}",
            f"[green]{counts[UnitRunStatus.SUCCEEDED]} ok[/green]",
            f"[red]{counts[UnitRunStatus.FAILED]} error[/red]",
            f"[dim]{counts[UnitRunStatus.SKIPPED]} skip[/dim]",
        ]
        if elapsed is not None:
            summary_parts.append(f"[bold]Elapsed:[/bold] {elapsed:.1f}s")
        summary = "  |  ".join(summary_parts)

        return Panel(
            Group(body, Text(""), Text.from_markup(summary)),
            title=f"[bold]{escape(execution.command)}[/bold]",
            subtitle=f"view: {execution.view_mode.value}",
            border_style="blue",
            padding=(1, 2),
        )

    def _build_layer_table(self, execution: RunExecution) -> Table:
        table = Table(
            show_header=True,
            header_style="bold cyan",
            expand=True,
            show_lines=False,
            pad_edge=True,
        )

        table.add_column("Layer", style="dim", width=6, justify="right")
        table.add_column("Step", style="dim", justify="right")
        table.add_column("Unit", min_width=25)
        table.add_column("Type", width=12)
        table.add_column("Status", min_width=10, justify="center")
        table.add_column("Time", justify="right", width=8)
        table.add_column(
            "Result", style="dim", max_width=14, no_wrap=True, overflow="ellipsis"
        )
        table.add_column("Depends on", min_width=20)

        for layer_no, layer in enumerate(execution.units_by_layer()):
            for position, unit in enumerate(layer):
                style = _UNIT_STYLES.get(unit.status, "")
                duration = (
                    f"{unit.duration:.2f}s" if unit.duration is not None else "[dim]-[/dim]"
                )
                upstream = ", ".join(unit.upstream) if unit.upstream else "[dim]-[/dim]"
                table.add_row(
                    str(layer_no) if position == 0 else "",
                    unit.step or "",
                    f"[{style}]{escape(unit.name)}[/{style}]",
                    unit.unit_type,
                    _UNIT_ICONS.get(unit.status, unit.status.value),
                    duration,
                    escape(unit.result_info) if unit.result_info else "",
                    upstream,
                )

        return table

    def _build_raw_view(self, execution: RunExecution) -> Text:
        lines = execution.output.splitlines()[-self.raw_tail:]
        if not lines:
            return Text("Waiting for output...", style="dim")
        return Text("\n".join(lines))

    # ------------------------------------------------------------------
    # Continuous live rendering
    # ------------------------------------------------------------------

    def render_live(self, session: RunSession, *, tick_interval: float = 0.1) -> None:
        """Drive *session* until its run finishes, redrawing every tick.

        Press Ctrl+C to stop watching; the child process keeps running.
        """
        execution = session.execution
        if execution is None:
            return

        refresh_hz = 1.0 / max(tick_interval, 0.01)
        with Live(
            self.render_execution(execution, elapsed=0.0),
            console=self.console,
            refresh_per_second=min(refresh_hz, 30.0),
            transient=False,
        ) as live:
            try:
                while not execution.is_terminal:
                    if session.tick():
                        live.update(
                            self.render_execution(
                                execution, elapsed=session.supervisor.elapsed()
                            )
                        )
                    time.sleep(tick_interval)
            except KeyboardInterrupt:
                pass
            live.update(
                self.render_execution(execution, elapsed=session.supervisor.elapsed())
            )

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_execution(self, execution: RunExecution) -> None:
        self.console.print(self.render_execution(execution))

    def print_history(self, entries: list[RunHistoryEntry]) -> None:
        """Print stored runs, newest first."""
        table = Table(title="Run History", header_style="bold cyan")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Time")
        table.add_column("", width=2)
        table.add_column("Command", style="cyan")
        table.add_column("Duration", justify="right")
        table.add_column("ID", style="dim")

        for i, entry in enumerate(entries):
            table.add_row(
                str(i),
                entry.formatted_time,
                entry.status_icon,
                escape(entry.command),
                entry.formatted_duration,
                entry.entry_id[:8],
            )
        self.console.print(table)

    def print_lineage(self, unit: BuildUnit, index: DependencyIndex) -> None:
        """Print a unit's direct upstream and downstream neighbours."""
        table = Table(title=f"Lineage: {unit.display_name}", header_style="bold cyan")
        table.add_column("Upstream")
        table.add_column("Downstream")

        upstream = index.upstream_of(unit.unique_id)
        downstream = index.downstream_of(unit.unique_id)
        for i in range(max(len(upstream), len(downstream), 1)):
            up = upstream[i] if i < len(upstream) else None
            down = downstream[i] if i < len(downstream) else None
            table.add_row(
                f"{up.resource_type}: {up.name}" if up else "",
                f"{down.resource_type}: {down.name}" if down else "",
            )
        self.console.print(table)
