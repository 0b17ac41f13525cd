"""dbtpulse data models — all Pydantic v2.

Project models (``BuildUnit``, ``LineGrammar``, ``RunHistoryEntry``) are
frozen; run models (``RunExecution``, ``UnitRun``) are mutated by the
polling thread while a command runs.
"""

from dbtpulse.models.commands import DbtCommand, RunFlags, RunSelectMode
from dbtpulse.models.grammar import DEFAULT_GRAMMAR, LineGrammar
from dbtpulse.models.history import RunHistoryEntry
from dbtpulse.models.run import (
    RunExecution,
    RunStatus,
    UnitRun,
    UnitRunStatus,
    ViewMode,
)
from dbtpulse.models.units import RESOURCE_TYPE_ORDER, BuildUnit

__all__ = [
    # units
    "BuildUnit",
    "RESOURCE_TYPE_ORDER",
    # run
    "RunStatus",
    "UnitRunStatus",
    "ViewMode",
    "UnitRun",
    "RunExecution",
    # grammar
    "LineGrammar",
    "DEFAULT_GRAMMAR",
    # history
    "RunHistoryEntry",
    # commands
    "DbtCommand",
    "RunSelectMode",
    "RunFlags",
]
