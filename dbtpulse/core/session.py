"""RunSession — the dashboard's per-tick coordinator.

Wires two independent ``ProcessSupervisor`` instances (the main command
runner and the data-preview runner), the ``LayerAssigner`` and the optional
``RunHistoryStore``.  A UI loop calls ``tick()`` once per frame; nothing in
here blocks.
"""

from __future__ import annotations

import logging
from pathlib import Path

from dbtpulse.core.dependency_index import DependencyIndex
from dbtpulse.core.layer_assigner import LayerAssigner
from dbtpulse.core.process_supervisor import ProcessSupervisor
from dbtpulse.core.progress import RunProgressModel
from dbtpulse.core.run_history import RunHistoryStore, hydrate
from dbtpulse.models.grammar import LineGrammar
from dbtpulse.models.history import RunHistoryEntry
from dbtpulse.models.run import RunExecution, RunStatus

logger = logging.getLogger(__name__)


class RunSession:
    """Owns the current run (live or historical) and the preview run.

    Parameters
    ----------
    index:
        Project graph snapshot used for layering.
    history:
        Where finished live runs are recorded on ``dismiss()``.  Optional.
    grammar:
        Line grammar for both supervisors' parsers.
    cwd:
        Working directory for spawned commands.
    """

    def __init__(
        self,
        index: DependencyIndex | None = None,
        *,
        history: RunHistoryStore | None = None,
        grammar: LineGrammar | None = None,
        cwd: Path | None = None,
    ) -> None:
        self.progress = RunProgressModel(grammar)
        self.supervisor = ProcessSupervisor(self.progress, cwd=cwd)
        self.preview_supervisor = ProcessSupervisor(RunProgressModel(grammar), cwd=cwd)
        self.layers = LayerAssigner(index)
        self.history = history

        self.execution: RunExecution | None = None
        self.preview: RunExecution | None = None
        self._live = False

    # ------------------------------------------------------------------
    # Launching
    # ------------------------------------------------------------------

    def launch(self, command: str, display_command: str | None = None) -> RunExecution:
        """Start a command; the returned execution fills in on later ticks."""
        if self.execution is not None:
            self.dismiss()
        execution = self.supervisor.spawn(command)
        if display_command:
            execution.command = display_command
        self.execution = execution
        self._live = True
        logger.info("Launched: %s", execution.command)
        return execution

    def launch_preview(
        self, command: str, display_command: str | None = None
    ) -> RunExecution:
        """Start a data-preview command on the second supervisor."""
        preview = self.preview_supervisor.spawn(command)
        if display_command:
            preview.command = display_command
        self.preview = preview
        return preview

    def open_history(self, entry: RunHistoryEntry) -> RunExecution:
        """Show a stored run exactly as a live one would render."""
        if self.execution is not None:
            self.dismiss()
        self.execution = hydrate(entry, self.layers.index, self.progress)
        self._live = False
        return self.execution

    # ------------------------------------------------------------------
    # Per-tick work
    # ------------------------------------------------------------------

    def tick(self) -> bool:
        """Poll both supervisors and relayer; True if anything changed."""
        changed = False
        if self.execution is not None and self._live:
            if self.supervisor.poll(self.execution):
                self.layers.apply(self.execution)
                changed = True
        if self.preview is not None and self.preview.status == RunStatus.RUNNING:
            changed = self.preview_supervisor.poll(self.preview) or changed
        return changed

    def reload(self, index: DependencyIndex) -> None:
        """Swap in a freshly built project graph and relayer the current run."""
        self.layers.reload(index)
        if self.execution is not None:
            self.layers.apply(self.execution)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def dismiss(self) -> RunHistoryEntry | None:
        """Close the current run, recording it if it was live and finished."""
        entry = None
        if self.execution is not None and self._live and self.history is not None:
            entry = self.history.record_execution(
                self.execution, self.supervisor.elapsed()
            )
        self.supervisor.clear()
        self.execution = None
        self._live = False
        return entry

    def dismiss_preview(self) -> None:
        self.preview_supervisor.clear()
        self.preview = None
