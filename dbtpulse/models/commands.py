"""dbt command vocabulary — subcommands, selector modes and run flags."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class DbtCommand(str, Enum):
    """dbt subcommands the dashboard can launch."""

    RUN = "run"
    TEST = "test"
    BUILD = "build"
    COMPILE = "compile"
    DEPS = "deps"

    @property
    def label(self) -> str:
        return f"dbt {self.value}"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def requires_selection(self) -> bool:
        """Whether the command is launched against selected units."""
        return self in (DbtCommand.RUN, DbtCommand.TEST, DbtCommand.BUILD)

    @property
    def supports_select(self) -> bool:
        return self != DbtCommand.DEPS

    @property
    def supports_full_refresh(self) -> bool:
        return self in (DbtCommand.RUN, DbtCommand.BUILD)


_DESCRIPTIONS: dict[DbtCommand, str] = {
    DbtCommand.RUN: "Execute selected model(s)",
    DbtCommand.TEST: "Run tests for selected model(s)",
    DbtCommand.BUILD: "Run + test in dependency order",
    DbtCommand.COMPILE: "Compile SQL without executing",
    DbtCommand.DEPS: "Install packages from packages.yml",
}


class RunSelectMode(str, Enum):
    """Graph operators applied to a selected unit name."""

    SINGLE = "single"
    DOWNSTREAM = "downstream"
    UPSTREAM = "upstream"
    BOTH = "both"

    @property
    def label(self) -> str:
        return {
            RunSelectMode.SINGLE: "Just this model",
            RunSelectMode.DOWNSTREAM: "This model + downstream",
            RunSelectMode.UPSTREAM: "Upstream + this model",
            RunSelectMode.BOTH: "Upstream + this + downstream",
        }[self]

    def selector(self, name: str) -> str:
        if self == RunSelectMode.DOWNSTREAM:
            return f"{name}+"
        if self == RunSelectMode.UPSTREAM:
            return f"+{name}"
        if self == RunSelectMode.BOTH:
            return f"+{name}+"
        return name


class RunFlags(BaseModel):
    """Optional flags appended to a dbt invocation."""

    model_config = ConfigDict(frozen=True)

    full_refresh: bool = False
    vars: str = ""
    exclude: str = ""
