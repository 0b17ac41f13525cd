"""dbtpulse CLI — Typer-based command-line interface.

Provides the ``dbtpulse`` command with subcommands for launching dbt runs,
watching arbitrary commands, browsing run history, previewing rows and
inspecting lineage.

All output uses Rich for formatted terminal display.
"""
