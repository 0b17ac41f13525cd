"""Run execution models — one ``RunExecution`` per launched command.

Unlike the frozen project models, these are mutated continuously while a
command is running.  All mutation happens on the polling (UI) thread; the
background reader thread never touches them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from dbtpulse.models.grammar import LineGrammar


class RunStatus(str, Enum):
    """Overall status of a launched command."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class UnitRunStatus(str, Enum):
    """Status of a single unit inside a run."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class ViewMode(str, Enum):
    """How the run output is displayed."""

    RAW = "raw"
    GRAPH = "graph"


class UnitRun(BaseModel):
    """Progress of one unit as reconstructed from the run log.

    ``name`` is the display name printed by the tool (``schema.name``);
    ``upstream`` holds only dependencies that are part of the same run.
    """

    name: str
    unit_type: str = "model"
    status: UnitRunStatus = UnitRunStatus.RUNNING
    duration: float | None = None
    result_info: str | None = None
    step: str | None = None
    upstream: list[str] = []
    layer: int = 0


class RunExecution(BaseModel):
    """A launched command, its raw output and its unit table."""

    command: str
    status: RunStatus = RunStatus.RUNNING
    output: str = ""
    view_mode: ViewMode = ViewMode.GRAPH
    unit_runs: list[UnitRun] = []
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def is_terminal(self) -> bool:
        """True once the command has succeeded or failed."""
        return self.status != RunStatus.RUNNING

    def toggle_view_mode(self) -> ViewMode:
        """Flip between raw text and the layered graph view."""
        self.view_mode = (
            ViewMode.RAW if self.view_mode == ViewMode.GRAPH else ViewMode.GRAPH
        )
        return self.view_mode

    def parse_line(self, line: str, grammar: LineGrammar | None = None) -> bool:
        """Apply one output line to the unit table.

        Uses dbt's default line format unless *grammar* is given.
        """
        from dbtpulse.core.progress import RunProgressModel

        return RunProgressModel(grammar).parse_line(self, line)

    def find_unit(self, name: str) -> UnitRun | None:
        for unit in self.unit_runs:
            if unit.name == name:
                return unit
        return None

    def units_by_layer(self) -> list[list[UnitRun]]:
        """Group unit runs by their assigned layer, in run order within a layer."""
        if not self.unit_runs:
            return []
        max_layer = max(u.layer for u in self.unit_runs)
        layers: list[list[UnitRun]] = [[] for _ in range(max_layer + 1)]
        for unit in self.unit_runs:
            layers[unit.layer].append(unit)
        return layers

    def count_by_status(self) -> dict[UnitRunStatus, int]:
        counts = {s: 0 for s in UnitRunStatus}
        for unit in self.unit_runs:
            counts[unit.status] += 1
        return counts
