"""Dependency-ordered layering of the units in a single run.

Layer 0 holds units with no in-run dependencies; layer N holds units whose
in-run dependencies all sit in layers below N.  Dependencies on units that
are not part of the run are dropped, so a partial selection still renders
sensibly.

A pass that assigns nothing (a cycle, or a chain that cannot resolve) puts
every remaining unit into the current layer and stops.  Termination is
guaranteed in O(units x layers); exact layer numbers for malformed graphs
are secondary.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from dbtpulse.core.dependency_index import DependencyIndex
from dbtpulse.models.run import RunExecution, UnitRun

logger = logging.getLogger(__name__)


def in_run_dependencies(
    unit_runs: Sequence[UnitRun], index: DependencyIndex
) -> dict[str, list[str]]:
    """Map each run unit's display name to its upstream display names within the run.

    Units that cannot be resolved against the project graph get an empty
    list: they are treated as having no known dependencies.
    """
    run_names = {u.name for u in unit_runs}
    deps: dict[str, list[str]] = {}

    for unit_run in unit_runs:
        upstream: list[str] = []
        build_unit = index.by_display_name(unit_run.name)
        if build_unit is not None:
            for dep in index.upstream_of(build_unit.unique_id):
                if dep.unique_id not in index:
                    continue
                dep_name = dep.display_name
                if dep_name in run_names and dep_name not in upstream:
                    upstream.append(dep_name)
        deps[unit_run.name] = upstream

    return deps


def assign_layers(
    names: Sequence[str], deps: dict[str, list[str]]
) -> dict[str, int]:
    """Iterative layering with the stuck-pass flush rule."""
    layers: dict[str, int] = {}
    remaining = list(dict.fromkeys(names))
    current = 0

    while remaining:
        ready = [
            name
            for name in remaining
            if all(dep in layers for dep in deps.get(name, []))
        ]
        if not ready:
            logger.debug(
                "Dependency cycle among %d unit(s); flushing into layer %d: %s",
                len(remaining),
                current,
                ", ".join(remaining),
            )
            for name in remaining:
                layers[name] = current
            break

        for name in ready:
            layers[name] = current
        ready_set = set(ready)
        remaining = [name for name in remaining if name not in ready_set]
        current += 1

    return layers


def compute_layers(unit_runs: Sequence[UnitRun], index: DependencyIndex) -> None:
    """Assign ``layer`` and ``upstream`` on every unit run in place."""
    if not unit_runs:
        return

    deps = in_run_dependencies(unit_runs, index)
    layers = assign_layers([u.name for u in unit_runs], deps)

    for unit_run in unit_runs:
        unit_run.layer = layers.get(unit_run.name, 0)
        unit_run.upstream = list(deps.get(unit_run.name, []))


class LayerAssigner:
    """Recomputes layers for a run against a fixed project graph snapshot.

    Parameters
    ----------
    index:
        The ``DependencyIndex`` built from the currently loaded manifest.
        Replace it wholesale via ``reload()`` when the manifest changes.
    """

    def __init__(self, index: DependencyIndex | None = None) -> None:
        self._index = index or DependencyIndex([])

    @property
    def index(self) -> DependencyIndex:
        return self._index

    def reload(self, index: DependencyIndex) -> None:
        self._index = index

    def apply(self, execution: RunExecution) -> None:
        compute_layers(execution.unit_runs, self._index)
