"""Non-blocking supervisor for one external command at a time.

Threading model
---------------
``spawn()`` starts the command through the host shell and hands its output
to a dedicated daemon reader thread.  The reader only ever writes messages
to a FIFO queue; it never touches the ``RunExecution``.  The UI thread calls
``poll()`` once per tick, which drains the queue without blocking and
applies every message to the execution it owns.

Messages
--------
``OutputMessage``
    One line of combined stdout/stderr, without its line terminator.
``CompletedMessage``
    Exit code of the child (``None`` if it could not be determined).
``ErrorMessage``
    The command could not be started, or reading its output failed.

If the reader thread ends without sending ``CompletedMessage`` the run is
treated as abnormally terminated and marked failed.

``clear()`` detaches the consumer only.  The child process is not killed;
it runs until it exits or the host application ends.
"""

from __future__ import annotations

import logging
import queue
import re
import subprocess
import threading
import time
from pathlib import Path
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

from dbtpulse.core.progress import RunProgressModel
from dbtpulse.models.run import RunExecution, RunStatus

logger = logging.getLogger(__name__)

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")


def strip_ansi(text: str) -> str:
    """Remove ANSI color/cursor escape sequences."""
    return _ANSI_RE.sub("", text)


# ---------------------------------------------------------------------------
# Channel messages
# ---------------------------------------------------------------------------


class OutputMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["output"] = "output"
    line: str


class CompletedMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["completed"] = "completed"
    exit_code: int | None


class ErrorMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str


JobMessage = Union[OutputMessage, CompletedMessage, ErrorMessage]


# ---------------------------------------------------------------------------
# Background job
# ---------------------------------------------------------------------------


class BackgroundJob:
    """Reader thread plus the consumer end of its channel."""

    def __init__(
        self,
        command: str,
        *,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        self.command = command
        self.channel: queue.SimpleQueue[JobMessage] = queue.SimpleQueue()
        self.detached = threading.Event()
        self.start_time = time.monotonic()
        self._thread = threading.Thread(
            target=_run_command,
            args=(command, self.channel, self.detached, cwd, env),
            name="dbtpulse-job",
            daemon=True,
        )

    def start(self) -> None:
        self._thread.start()

    @property
    def finished(self) -> bool:
        """True once the reader thread has exited."""
        return not self._thread.is_alive()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)


def _run_command(
    command: str,
    channel: queue.SimpleQueue[JobMessage],
    detached: threading.Event,
    cwd: Path | None,
    env: dict[str, str] | None,
) -> None:
    """Reader thread body: spawn, stream lines, report the exit code."""
    try:
        proc = subprocess.Popen(
            command,
            shell=True,
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        logger.error("Failed to spawn %r: %s", command, exc)
        channel.put(ErrorMessage(message=str(exc)))
        return

    logger.info("Spawned pid %d: %s", proc.pid, command)

    assert proc.stdout is not None
    try:
        for raw in proc.stdout:
            if detached.is_set():
                break
            channel.put(OutputMessage(line=raw.rstrip("\r\n")))
    except (OSError, ValueError) as exc:
        channel.put(ErrorMessage(message=f"Failed to read output: {exc}"))
    finally:
        # Closing our end lets a detached child fail on its next write
        # instead of blocking on a full pipe.
        proc.stdout.close()

    exit_code = proc.wait()
    logger.info("pid %d exited with code %s", proc.pid, exit_code)
    channel.put(CompletedMessage(exit_code=exit_code))


# ---------------------------------------------------------------------------
# Supervisor
# ---------------------------------------------------------------------------


class ProcessSupervisor:
    """Runs one external command at a time and relays its progress.

    Parameters
    ----------
    progress:
        Parser that receives every cleaned output line.  A default
        ``RunProgressModel`` is created if not provided.
    cwd:
        Working directory for spawned commands.
    """

    def __init__(
        self,
        progress: RunProgressModel | None = None,
        *,
        cwd: Path | None = None,
    ) -> None:
        self.progress = progress or RunProgressModel()
        self.cwd = cwd
        self._job: BackgroundJob | None = None

    @property
    def is_active(self) -> bool:
        return self._job is not None

    @property
    def start_time(self) -> float | None:
        """``time.monotonic()`` value at spawn, or None without a job."""
        return self._job.start_time if self._job else None

    def elapsed(self) -> float:
        """Seconds since the current job was spawned (0.0 without a job)."""
        if self._job is None:
            return 0.0
        return time.monotonic() - self._job.start_time

    def spawn(
        self, command: str, *, env: dict[str, str] | None = None
    ) -> RunExecution:
        """Launch *command* and return its execution record immediately.

        Any previous job is detached first.
        """
        if self._job is not None:
            self.clear()

        job = BackgroundJob(command, cwd=self.cwd, env=env)
        job.start()
        self._job = job
        return RunExecution(command=command)

    def poll(self, execution: RunExecution) -> bool:
        """Drain pending messages into *execution*; True if anything arrived.

        Never blocks.  Safe to call with no active job (returns False and
        leaves *execution* untouched).
        """
        job = self._job
        if job is None:
            return False

        # Sampled before draining: once the thread is gone every message it
        # sent is already in the queue.
        finished = job.finished
        had_updates = False

        while True:
            try:
                message = job.channel.get_nowait()
            except queue.Empty:
                break
            had_updates = True
            self._apply(execution, message)

        if finished and execution.status == RunStatus.RUNNING:
            logger.warning(
                "Job ended without an exit status; marking failed: %s",
                job.command,
            )
            execution.status = RunStatus.FAILED
            had_updates = True

        return had_updates

    def _apply(self, execution: RunExecution, message: JobMessage) -> None:
        if isinstance(message, OutputMessage):
            clean = strip_ansi(message.line)
            execution.output += clean + "\n"
            self.progress.parse_line(execution, clean)
        elif isinstance(message, CompletedMessage):
            execution.status = (
                RunStatus.SUCCEEDED if message.exit_code == 0 else RunStatus.FAILED
            )
        elif isinstance(message, ErrorMessage):
            execution.output += f"\nError: {message.message}\n"
            execution.status = RunStatus.FAILED

    def clear(self) -> None:
        """Detach from the current job without killing the child."""
        if self._job is not None:
            self._job.detached.set()
            logger.debug("Detached from job: %s", self._job.command)
        self._job = None
