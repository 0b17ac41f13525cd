"""Load build units from dbt's ``target/manifest.json``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from dbtpulse.models.units import RESOURCE_TYPE_ORDER, BuildUnit

logger = logging.getLogger(__name__)


class ManifestError(RuntimeError):
    """Raised when the manifest cannot be read or parsed."""


def unit_from_node(node: dict[str, Any]) -> BuildUnit:
    """Convert one manifest node dict into a ``BuildUnit``."""
    config = node.get("config") or {}
    depends_on = node.get("depends_on") or {}
    return BuildUnit(
        unique_id=node["unique_id"],
        name=node["name"],
        resource_type=node.get("resource_type", "model"),
        package_name=node.get("package_name", ""),
        schema_name=node.get("schema") or "",
        config_schema=config.get("schema"),
        depends_on=list(depends_on.get("nodes") or []),
        tags=list(config.get("tags") or []),
        description=node.get("description"),
        original_file_path=node.get("original_file_path"),
    )


def parse_manifest(data: dict[str, Any]) -> list[BuildUnit]:
    """Build units for every node in a decoded manifest."""
    nodes = data.get("nodes")
    if not isinstance(nodes, dict):
        raise ManifestError("Manifest has no 'nodes' mapping")
    try:
        return [unit_from_node(node) for node in nodes.values()]
    except (KeyError, TypeError, ValidationError) as exc:
        raise ManifestError(f"Malformed manifest node: {exc}") from exc


def load_manifest(path: Path) -> list[BuildUnit]:
    """Read and parse a ``manifest.json`` file."""
    try:
        contents = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Failed to read manifest.json: {exc}") from exc
    try:
        data = json.loads(contents)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Failed to parse manifest.json: {exc}") from exc

    units = parse_manifest(data)
    logger.info("Loaded %d nodes from %s", len(units), path)
    return units


def filter_units(units: list[BuildUnit]) -> list[BuildUnit]:
    """Keep models, tests, seeds and snapshots, sorted for display.

    Sort order: resource type, then group schema, then name.
    """
    kept = [u for u in units if u.resource_type in RESOURCE_TYPE_ORDER]
    kept.sort(
        key=lambda u: (RESOURCE_TYPE_ORDER[u.resource_type], u.group_schema, u.name)
    )
    return kept
