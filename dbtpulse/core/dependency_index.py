"""Upstream/downstream index over the project's build units.

Built once per manifest load from an immutable snapshot of units and shared
read-only afterwards.  No cycle detection happens here: cycles are legal in
the data and are only a layering concern (see ``layer_assigner``).
"""

from __future__ import annotations

from collections.abc import Iterable

from dbtpulse.models.units import BuildUnit


class DependencyIndex:
    """O(1) "who does X depend on" / "who depends on X" lookups.

    Invariant: for every declared edge ``a depends on b``, ``b`` is in
    ``upstream_of(a)`` and ``a`` is in ``downstream_of(b)``.  Upstream ids
    that are not loaded units (sources, disabled nodes) are represented by
    placeholder units built from the id itself.
    """

    def __init__(self, units: Iterable[BuildUnit]) -> None:
        self._units: dict[str, BuildUnit] = {}
        for unit in units:
            self._units[unit.unique_id] = unit

        self._by_display_name: dict[str, BuildUnit] = {
            unit.display_name: unit for unit in self._units.values()
        }

        # Forward edges: unique_id -> units it depends on
        self._upstream: dict[str, list[BuildUnit]] = {}
        # Reverse edges: unique_id -> units that depend on it
        self._downstream: dict[str, list[BuildUnit]] = {}

        for unit in self._units.values():
            self._upstream[unit.unique_id] = [
                self._units.get(dep_id) or BuildUnit.from_unique_id(dep_id)
                for dep_id in unit.depends_on
            ]
        for unit in self._units.values():
            for dep_id in unit.depends_on:
                self._downstream.setdefault(dep_id, []).append(unit)

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def upstream_of(self, unique_id: str) -> list[BuildUnit]:
        """Direct dependencies of a unit; empty if the id is unknown."""
        return list(self._upstream.get(unique_id, []))

    def downstream_of(self, unique_id: str) -> list[BuildUnit]:
        """Direct dependents of a unit; empty if the id is unknown."""
        return list(self._downstream.get(unique_id, []))

    def unit(self, unique_id: str) -> BuildUnit | None:
        return self._units.get(unique_id)

    def by_display_name(self, display_name: str) -> BuildUnit | None:
        """Resolve a ``schema.name`` as printed in run output."""
        return self._by_display_name.get(display_name)

    @property
    def units(self) -> list[BuildUnit]:
        return list(self._units.values())

    def __len__(self) -> int:
        return len(self._units)

    def __contains__(self, unique_id: object) -> bool:
        return unique_id in self._units
