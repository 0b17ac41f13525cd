"""Persisted run record — what the history store keeps for each finished run."""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from dbtpulse.models.run import RunStatus

_STATUS_ICONS: dict[RunStatus, str] = {
    RunStatus.RUNNING: "⏳",
    RunStatus.SUCCEEDED: "✓",
    RunStatus.FAILED: "✗",
}


class RunHistoryEntry(BaseModel):
    """A finished run as stored in history.

    Only the raw output is kept; the unit table is rebuilt on load by
    re-parsing the output, so live and historical runs render identically.
    """

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    command: str
    status: RunStatus
    output: str = ""
    duration_secs: float = 0.0

    @property
    def status_icon(self) -> str:
        return _STATUS_ICONS[self.status]

    @property
    def formatted_time(self) -> str:
        return self.timestamp.astimezone().strftime("%H:%M:%S")

    @property
    def formatted_duration(self) -> str:
        """``12.3s`` under a minute, ``2m 5s`` above."""
        if self.duration_secs < 60.0:
            return f"{self.duration_secs:.1f}s"
        mins = math.floor(self.duration_secs / 60.0)
        secs = self.duration_secs % 60.0
        return f"{mins}m {secs:.0f}s"
