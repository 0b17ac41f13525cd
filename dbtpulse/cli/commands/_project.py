"""Shared CLI helpers: logging setup and project graph loading."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console

from dbtpulse.core.dependency_index import DependencyIndex
from dbtpulse.core.manifest import ManifestError, filter_units, load_manifest
from dbtpulse.core.run_history import HistoryStoreError, RunHistoryStore

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else level.upper(),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_index(manifest_path: Path, console: Console) -> DependencyIndex:
    """Build the project graph, or an empty one if the manifest is unusable.

    A missing manifest only costs the dependency edges; runs still render,
    every unit in layer 0.
    """
    if not manifest_path.exists():
        console.print(
            f"[yellow]No manifest at {manifest_path}; "
            "units will render without dependencies.[/yellow]"
        )
        console.print("[dim]Run `dbt compile` to generate it.[/dim]")
        return DependencyIndex([])
    try:
        return DependencyIndex(filter_units(load_manifest(manifest_path)))
    except ManifestError as exc:
        console.print(f"[yellow]Ignoring manifest:[/yellow] {exc}")
        return DependencyIndex([])


def open_history(db_path: Path, limit: int, console: Console) -> RunHistoryStore | None:
    try:
        return RunHistoryStore(db_path, limit=limit)
    except HistoryStoreError as exc:
        console.print(f"[yellow]History disabled:[/yellow] {exc}")
        return None
