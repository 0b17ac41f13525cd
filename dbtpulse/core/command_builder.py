"""Assemble dbt shell commands.

Each builder returns ``(full_command, display_command)``: the full string is
what the supervisor runs; the display string omits the project/profile
plumbing and is what the dashboard shows and history stores.
"""

from __future__ import annotations

from pathlib import Path

from dbtpulse.models.commands import DbtCommand, RunFlags


def _dbt_binary(dbt_binary: str) -> str:
    return dbt_binary or "dbt"


def _project_args(project_dir: Path) -> str:
    """``--project-dir`` plus ``--profiles-dir`` when the project ships profiles.yml."""
    args = f'--project-dir "{project_dir}"'
    if (project_dir / "profiles.yml").exists():
        args += f' --profiles-dir "{project_dir}"'
    return args


def build_extra_flags(command: DbtCommand, flags: RunFlags) -> str:
    extra = ""
    if flags.full_refresh and command.supports_full_refresh:
        extra += " --full-refresh"
    if flags.vars and command.supports_select:
        extra += f" --vars '{flags.vars}'"
    if flags.exclude and command.supports_select:
        extra += f" --exclude {flags.exclude}"
    return extra


def build_dbt_command(
    dbt_binary: str,
    project_dir: Path,
    command: DbtCommand,
    selector: str | None = None,
    flags: RunFlags | None = None,
) -> tuple[str, str]:
    """Build a run/test/build/compile/deps invocation."""
    flags = flags or RunFlags()
    extra = build_extra_flags(command, flags)
    select = ""
    if selector and command.supports_select:
        select = f" --select {selector}"

    full = (
        f"{_dbt_binary(dbt_binary)} {command.value} "
        f"{_project_args(project_dir)}{select}{extra}"
    )
    display = f"dbt {command.value}{select}{extra}"
    return full, display


def build_show_command(
    dbt_binary: str, project_dir: Path, unit_name: str, limit: int
) -> tuple[str, str]:
    """Build a ``dbt show`` preview of a unit's rows."""
    full = (
        f"{_dbt_binary(dbt_binary)} show --select {unit_name} --limit {limit} "
        f"{_project_args(project_dir)}"
    )
    display = f"dbt show --select {unit_name} --limit {limit}"
    return full, display
