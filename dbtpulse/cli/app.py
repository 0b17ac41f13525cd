"""Main Typer application — imports and registers all CLI commands.

Entry point: ``dbtpulse`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from dbtpulse.cli.commands._project import setup_logging
from dbtpulse.cli.commands.history_cmd import history_cmd
from dbtpulse.cli.commands.lineage_cmd import lineage_cmd
from dbtpulse.cli.commands.run_cmd import exec_cmd, run_cmd
from dbtpulse.cli.commands.show_cmd import show_cmd
from dbtpulse.config import config

app = typer.Typer(
    name="dbtpulse",
    help="dbtpulse: live, dependency-layered progress for dbt runs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _main_callback() -> None:
    setup_logging(config.log_level, config.debug)


# Register subcommands
app.command(name="run", help="Launch a dbt command and watch it live.")(run_cmd)
app.command(name="exec", help="Watch an arbitrary shell command live.")(exec_cmd)
app.command(name="history", help="List or reopen past runs.")(history_cmd)
app.command(name="show", help="Preview a unit's rows with dbt show.")(show_cmd)
app.command(name="lineage", help="Show a unit's direct dependencies.")(lineage_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
