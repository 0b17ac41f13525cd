"""Tests for the DependencyIndex — upstream/downstream symmetry and lookups."""

from __future__ import annotations

from dbtpulse.core.dependency_index import DependencyIndex
from dbtpulse.models.units import BuildUnit


class TestDependencyIndex:
    def test_upstream_follows_declared_order(self, index: DependencyIndex):
        upstream = index.upstream_of("model.shop.customers")
        assert [u.unique_id for u in upstream] == [
            "model.shop.stg_customers",
            "model.shop.stg_orders",
        ]

    def test_downstream_is_reverse_of_upstream(self, index: DependencyIndex):
        downstream = {u.unique_id for u in index.downstream_of("model.shop.customers")}
        assert downstream == {
            "model.shop.customer_ltv",
            "test.shop.not_null_customers_id",
        }

    def test_every_edge_is_symmetric(self, index: DependencyIndex):
        for unit in index.units:
            for dep_id in unit.depends_on:
                assert dep_id in [u.unique_id for u in index.upstream_of(unit.unique_id)]
                assert unit.unique_id in [
                    u.unique_id for u in index.downstream_of(dep_id)
                ]

    def test_unknown_id_returns_empty(self, index: DependencyIndex):
        assert index.upstream_of("model.shop.nope") == []
        assert index.downstream_of("model.shop.nope") == []

    def test_unknown_upstream_becomes_placeholder(self, index: DependencyIndex):
        (source,) = index.upstream_of("model.shop.stg_customers")
        assert source.unique_id == "source.shop.raw.customers"
        assert source.resource_type == "source"
        assert source.name == "customers"
        assert "source.shop.raw.customers" not in index

    def test_source_has_downstream_even_if_not_loaded(self, index: DependencyIndex):
        downstream = index.downstream_of("source.shop.raw.orders")
        assert [u.unique_id for u in downstream] == ["model.shop.stg_orders"]

    def test_by_display_name(self, index: DependencyIndex):
        unit = index.by_display_name("staging.stg_orders")
        assert unit is not None
        assert unit.unique_id == "model.shop.stg_orders"
        assert index.by_display_name("stg_orders") is None

    def test_len_and_contains(self, index: DependencyIndex):
        # analysis nodes are filtered out on load
        assert len(index) == 5
        assert "model.shop.customers" in index
        assert "analysis.shop.adhoc" not in index

    def test_cycle_is_accepted(self, make_unit):
        index = DependencyIndex([make_unit("a", "b"), make_unit("b", "a")])
        assert [u.name for u in index.upstream_of("model.p.a")] == ["b"]
        assert [u.name for u in index.downstream_of("model.p.a")] == ["b"]

    def test_empty_index(self):
        index = DependencyIndex([])
        assert len(index) == 0
        assert index.units == []


class TestBuildUnit:
    def test_display_name(self):
        unit = BuildUnit(unique_id="model.p.x", name="x", schema="analytics")
        assert unit.display_name == "analytics.x"

    def test_group_schema_prefers_config(self):
        unit = BuildUnit(
            unique_id="model.p.x", name="x", schema_name="dev", config_schema="marts"
        )
        assert unit.group_schema == "marts"
        assert BuildUnit(unique_id="model.p.y", name="y", schema_name="dev").group_schema == "dev"

    def test_placeholder_from_model_id(self):
        unit = BuildUnit.from_unique_id("model.shop.orders")
        assert (unit.resource_type, unit.package_name, unit.name) == (
            "model",
            "shop",
            "orders",
        )

    def test_placeholder_from_short_id(self):
        unit = BuildUnit.from_unique_id("weird")
        assert unit.resource_type == "unknown"
        assert unit.name == "weird"
