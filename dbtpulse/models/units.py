"""Build unit models — the project-wide dependency graph as loaded from the manifest.

A ``BuildUnit`` is created once per manifest load and never mutated.  The
``display_name`` is the ``schema.name`` form that dbt prints in its run log,
which is how run output is reconciled with the project graph.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Resource types shown in the dashboard, in display order.
RESOURCE_TYPE_ORDER: dict[str, int] = {
    "model": 0,
    "test": 1,
    "seed": 2,
    "snapshot": 3,
}


class BuildUnit(BaseModel):
    """A single node (model/test/seed/snapshot) in the project graph."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    unique_id: str
    name: str
    resource_type: str = "model"
    package_name: str = ""
    schema_name: str = Field(default="", alias="schema")
    config_schema: str | None = None
    depends_on: list[str] = []  # upstream unique_ids
    tags: list[str] = []
    description: str | None = None
    original_file_path: str | None = None

    @property
    def display_name(self) -> str:
        """The ``schema.name`` form used by the tool's own log output."""
        return f"{self.schema_name}.{self.name}"

    @property
    def group_schema(self) -> str:
        """Configured schema override, falling back to the target schema."""
        return self.config_schema or self.schema_name

    @classmethod
    def from_unique_id(cls, unique_id: str) -> BuildUnit:
        """Build a placeholder unit from a bare unique_id.

        Used for upstream references that are not loaded units themselves,
        e.g. ``source.shop.raw.customers`` or a disabled model.
        """
        parts = unique_id.split(".")
        if len(parts) >= 3:
            resource_type = parts[0]
            if resource_type == "source" and len(parts) >= 4:
                name = parts[3]
            else:
                name = ".".join(parts[2:])
            package_name = parts[1]
        else:
            resource_type = "unknown"
            name = unique_id
            package_name = ""
        return cls(
            unique_id=unique_id,
            name=name,
            resource_type=resource_type,
            package_name=package_name,
        )
