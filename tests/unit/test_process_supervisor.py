"""Tests for the ProcessSupervisor — background execution and non-blocking poll.

These spawn real ``/bin/sh`` commands, so they exercise the reader thread,
the channel and exit-status handling end to end.
"""

from __future__ import annotations

import time
from pathlib import Path

import pytest

from dbtpulse.core.process_supervisor import (
    BackgroundJob,
    CompletedMessage,
    ErrorMessage,
    OutputMessage,
    ProcessSupervisor,
    strip_ansi,
)
from dbtpulse.models.run import RunExecution, RunStatus, UnitRunStatus


class TestStripAnsi:
    def test_removes_color_codes(self):
        assert strip_ansi("\x1b[32mOK\x1b[0m done") == "OK done"

    def test_plain_text_untouched(self):
        assert strip_ansi("plain [RUN]") == "plain [RUN]"


class TestSpawnAndPoll:
    def test_output_and_success(self, wait):
        sup = ProcessSupervisor()
        execution = sup.spawn("printf 'one\\ntwo\\n'")
        assert execution.status == RunStatus.RUNNING
        assert execution.command == "printf 'one\\ntwo\\n'"

        wait(sup, execution)
        assert execution.status == RunStatus.SUCCEEDED
        assert execution.output == "one\ntwo\n"

    def test_nonzero_exit_fails(self, wait):
        sup = ProcessSupervisor()
        execution = sup.spawn("echo partial; exit 3")
        wait(sup, execution)
        assert execution.status == RunStatus.FAILED
        assert "partial" in execution.output

    def test_stderr_is_captured(self, wait):
        sup = ProcessSupervisor()
        execution = sup.spawn("echo oops 1>&2")
        wait(sup, execution)
        assert "oops" in execution.output

    def test_ansi_stripped_before_buffering(self, wait):
        sup = ProcessSupervisor()
        execution = sup.spawn("printf '\\033[32mgreen\\033[0m\\n'")
        wait(sup, execution)
        assert execution.output == "green\n"

    def test_lifecycle_lines_update_unit_table(self, wait):
        sup = ProcessSupervisor()
        execution = sup.spawn(
            "echo '1 of 1 START sql table model marts.orders ... [RUN]'; "
            "echo '1 of 1 OK created sql table model marts.orders ... [SELECT 5 in 0.50s]'"
        )
        wait(sup, execution)
        (unit,) = execution.unit_runs
        assert unit.name == "marts.orders"
        assert unit.status == UnitRunStatus.SUCCEEDED
        assert unit.duration == pytest.approx(0.5)

    def test_poll_does_not_block(self):
        sup = ProcessSupervisor()
        execution = sup.spawn("sleep 2")
        started = time.monotonic()
        sup.poll(execution)
        assert time.monotonic() - started < 0.5
        assert execution.status == RunStatus.RUNNING
        sup.clear()

    def test_spawn_failure_reports_error(self, tmp_dir: Path, wait):
        sup = ProcessSupervisor(cwd=tmp_dir / "does-not-exist")
        execution = sup.spawn("echo hi")
        wait(sup, execution)
        assert execution.status == RunStatus.FAILED
        assert "\nError: " in execution.output

    def test_cwd_is_used(self, tmp_dir: Path, wait):
        (tmp_dir / "marker.txt").write_text("x")
        sup = ProcessSupervisor(cwd=tmp_dir)
        execution = sup.spawn("ls")
        wait(sup, execution)
        assert "marker.txt" in execution.output

    def test_elapsed_and_start_time(self, wait):
        sup = ProcessSupervisor()
        assert sup.start_time is None
        assert sup.elapsed() == 0.0
        execution = sup.spawn("true")
        assert sup.is_active
        assert sup.start_time is not None
        wait(sup, execution)
        assert sup.elapsed() >= 0.0


class TestPollEdgeCases:
    def test_poll_without_job_is_noop(self):
        sup = ProcessSupervisor()
        execution = RunExecution(command="never started")
        assert sup.poll(execution) is False
        assert execution.status == RunStatus.RUNNING
        assert execution.output == ""

    def test_reader_gone_without_exit_status_fails(self):
        sup = ProcessSupervisor()
        # Never started: the thread is not alive and nothing was sent.
        sup._job = BackgroundJob("true")
        execution = RunExecution(command="true")
        assert sup.poll(execution) is True
        assert execution.status == RunStatus.FAILED
        assert execution.output == ""

    def test_messages_applied_in_order(self):
        sup = ProcessSupervisor()
        job = BackgroundJob("fake")
        job.channel.put(OutputMessage(line="first"))
        job.channel.put(OutputMessage(line="second"))
        job.channel.put(CompletedMessage(exit_code=0))
        sup._job = job
        execution = RunExecution(command="fake")
        assert sup.poll(execution) is True
        assert execution.output == "first\nsecond\n"
        assert execution.status == RunStatus.SUCCEEDED

    def test_missing_exit_code_counts_as_failure(self):
        sup = ProcessSupervisor()
        job = BackgroundJob("fake")
        job.channel.put(CompletedMessage(exit_code=None))
        sup._job = job
        execution = RunExecution(command="fake")
        sup.poll(execution)
        assert execution.status == RunStatus.FAILED

    def test_error_message_appends_text(self):
        sup = ProcessSupervisor()
        job = BackgroundJob("fake")
        job.channel.put(OutputMessage(line="before"))
        job.channel.put(ErrorMessage(message="boom"))
        sup._job = job
        execution = RunExecution(command="fake")
        sup.poll(execution)
        assert execution.output == "before\n\nError: boom\n"
        assert execution.status == RunStatus.FAILED


class TestClear:
    def test_clear_drops_pending_messages(self):
        sup = ProcessSupervisor()
        execution = sup.spawn("printf 'a\\nb\\n'")
        sup._job.join(timeout=5.0)
        sup.clear()
        assert not sup.is_active
        assert sup.poll(execution) is False
        assert execution.output == ""
        assert execution.status == RunStatus.RUNNING

    def test_spawn_replaces_previous_job(self, wait):
        sup = ProcessSupervisor()
        first = sup.spawn("sleep 2")
        second = sup.spawn("echo second")
        wait(sup, second)
        assert second.status == RunStatus.SUCCEEDED
        assert second.output == "second\n"
        assert first.output == ""

    def test_two_supervisors_are_independent(self, wait):
        main, preview = ProcessSupervisor(), ProcessSupervisor()
        run = main.spawn("echo main")
        show = preview.spawn("echo preview")
        wait(main, run)
        wait(preview, show)
        assert run.output == "main\n"
        assert show.output == "preview\n"
