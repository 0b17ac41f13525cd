"""Run history backed by SQLite.

Each finished run is stored as a plain record: timestamp, command, status,
full raw output and duration.  The unit table is never stored; ``hydrate()``
rebuilds it by re-feeding the output through the same line parser used for
live runs, then recomputing layers against the current project graph.

Design:
- Newest-first queries; ``prune()`` keeps the most recent N entries.
- WAL journal mode so a second dashboard can read while one writes.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from dbtpulse.core.dependency_index import DependencyIndex
from dbtpulse.core.layer_assigner import compute_layers
from dbtpulse.core.progress import RunProgressModel
from dbtpulse.models.history import RunHistoryEntry
from dbtpulse.models.run import RunExecution, RunStatus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_HISTORY = """
CREATE TABLE IF NOT EXISTS run_history (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    entry_id       TEXT NOT NULL UNIQUE,
    timestamp_utc  TEXT NOT NULL,
    command        TEXT NOT NULL,
    status         TEXT NOT NULL,
    output         TEXT NOT NULL DEFAULT '',
    duration_secs  REAL NOT NULL DEFAULT 0
);
"""

_CREATE_IDX_TIME = """
CREATE INDEX IF NOT EXISTS idx_history_time ON run_history(timestamp_utc, id);
"""


class HistoryStoreError(RuntimeError):
    """Raised when the history database cannot be read or written."""


class RunHistoryStore:
    """Persistent list of finished runs.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Created if it does not exist.
    limit:
        Number of entries ``record()`` keeps after each insert.
    """

    def __init__(self, db_path: Path, *, limit: int = 100) -> None:
        self._db_path = Path(db_path)
        self._limit = limit
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_schema()
        except (OSError, sqlite3.Error) as exc:
            raise HistoryStoreError(
                f"Cannot open history at {self._db_path}: {exc}"
            ) from exc

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_HISTORY)
            conn.execute(_CREATE_IDX_TIME)
            conn.commit()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def record(self, entry: RunHistoryEntry) -> RunHistoryEntry:
        """Insert an entry, then prune to the configured limit."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO run_history
                        (entry_id, timestamp_utc, command, status, output, duration_secs)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        entry.entry_id,
                        entry.timestamp.isoformat(),
                        entry.command,
                        entry.status.value,
                        entry.output,
                        entry.duration_secs,
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise HistoryStoreError(f"Failed to write history entry: {exc}") from exc

        logger.info(
            "Recorded run %s (%s, %s)",
            entry.command,
            entry.status.value,
            entry.formatted_duration,
        )
        self.prune(self._limit)
        return entry

    def record_execution(
        self, execution: RunExecution, duration_secs: float
    ) -> RunHistoryEntry | None:
        """Record a finished execution; running executions are not stored."""
        if execution.status == RunStatus.RUNNING:
            return None
        return self.record(
            RunHistoryEntry(
                command=execution.command,
                status=execution.status,
                output=execution.output,
                duration_secs=duration_secs,
            )
        )

    def prune(self, keep: int) -> int:
        """Delete all but the newest *keep* entries; returns rows removed."""
        with self._connect() as conn:
            cur = conn.execute(
                """
                DELETE FROM run_history WHERE id NOT IN (
                    SELECT id FROM run_history ORDER BY id DESC LIMIT ?
                )
                """,
                (max(keep, 0),),
            )
            conn.commit()
        if cur.rowcount:
            logger.debug("Pruned %d history entries", cur.rowcount)
        return cur.rowcount

    # ------------------------------------------------------------------
    # Queries (read-only)
    # ------------------------------------------------------------------

    def recent(self, limit: int | None = None) -> list[RunHistoryEntry]:
        """Return entries newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM run_history ORDER BY id DESC LIMIT ?",
                (limit if limit is not None else -1,),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get(self, entry_id: str) -> RunHistoryEntry | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM run_history WHERE entry_id = ?", (entry_id,)
            ).fetchone()
        return self._row_to_entry(row) if row else None

    def __len__(self) -> int:
        with self._connect() as conn:
            (count,) = conn.execute("SELECT COUNT(*) FROM run_history").fetchone()
        return count

    @staticmethod
    def _row_to_entry(row: tuple) -> RunHistoryEntry:
        (_, entry_id, ts, command, status, output, duration) = row
        return RunHistoryEntry(
            entry_id=entry_id,
            timestamp=datetime.fromisoformat(ts),
            command=command,
            status=RunStatus(status),
            output=output,
            duration_secs=duration,
        )


def hydrate(
    entry: RunHistoryEntry,
    index: DependencyIndex,
    progress: RunProgressModel | None = None,
) -> RunExecution:
    """Rebuild a ``RunExecution`` (unit table and layers) from a stored entry."""
    progress = progress or RunProgressModel()
    execution = RunExecution(
        command=entry.command,
        status=entry.status,
        output=entry.output,
        started_at=entry.timestamp,
    )
    progress.replay(execution, entry.output)
    compute_layers(execution.unit_runs, index)
    return execution
