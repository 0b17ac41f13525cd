"""Shared test fixtures for dbtpulse."""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from dbtpulse.core.dependency_index import DependencyIndex
from dbtpulse.core.process_supervisor import ProcessSupervisor
from dbtpulse.core.run_history import RunHistoryStore
from dbtpulse.models.run import RunExecution, RunStatus
from dbtpulse.models.units import BuildUnit

# A small jaffle-shop-like project:
#
#   source.shop.raw.customers -> stg_customers -+
#                                               +-> customers -> customer_ltv
#   source.shop.raw.orders    -> stg_orders ----+
#
SAMPLE_NODES: list[dict[str, Any]] = [
    {
        "unique_id": "model.shop.stg_customers",
        "name": "stg_customers",
        "resource_type": "model",
        "package_name": "shop",
        "schema": "staging",
        "depends_on": {"nodes": ["source.shop.raw.customers"]},
        "config": {"tags": ["staging"]},
    },
    {
        "unique_id": "model.shop.stg_orders",
        "name": "stg_orders",
        "resource_type": "model",
        "package_name": "shop",
        "schema": "staging",
        "depends_on": {"nodes": ["source.shop.raw.orders"]},
        "config": {"tags": ["staging"]},
    },
    {
        "unique_id": "model.shop.customers",
        "name": "customers",
        "resource_type": "model",
        "package_name": "shop",
        "schema": "marts",
        "depends_on": {
            "nodes": ["model.shop.stg_customers", "model.shop.stg_orders"]
        },
        "config": {"schema": "marts"},
    },
    {
        "unique_id": "model.shop.customer_ltv",
        "name": "customer_ltv",
        "resource_type": "model",
        "package_name": "shop",
        "schema": "marts",
        "depends_on": {"nodes": ["model.shop.customers"]},
        "config": {},
    },
    {
        "unique_id": "test.shop.not_null_customers_id",
        "name": "not_null_customers_id",
        "resource_type": "test",
        "package_name": "shop",
        "schema": "marts",
        "depends_on": {"nodes": ["model.shop.customers"]},
        "config": {},
    },
    {
        "unique_id": "analysis.shop.adhoc",
        "name": "adhoc",
        "resource_type": "analysis",
        "package_name": "shop",
        "schema": "marts",
        "depends_on": {"nodes": []},
        "config": {},
    },
]

# dbt-style console output for a full run of the four models above.
SAMPLE_RUN_OUTPUT = """\
12:00:00  Running with dbt=1.7.4
12:00:00  Found 4 models, 1 test, 2 sources
12:00:01  1 of 4 START sql view model staging.stg_customers ......... [RUN]
12:00:01  2 of 4 START sql view model staging.stg_orders ............ [RUN]
12:00:01  1 of 4 OK created sql view model staging.stg_customers .... [view model staging.stg_customers in 0.42s]
12:00:01  2 of 4 OK created sql view model staging.stg_orders ....... [CREATE VIEW in 0.12s]
12:00:02  3 of 4 START sql table model marts.customers .............. [RUN]
12:00:03  3 of 4 OK created sql table model marts.customers ......... [SELECT 100 in 1.05s]
12:00:03  4 of 4 START sql incremental model marts.customer_ltv ..... [RUN]
12:00:04  4 of 4 ERROR creating sql incremental model marts.customer_ltv  [ERROR in 0.30s]
12:00:04
12:00:04  Finished running 2 view models, 1 table model, 1 incremental model in 3.20s.
"""


def wait_for(
    supervisor: ProcessSupervisor,
    execution: RunExecution,
    timeout: float = 10.0,
) -> None:
    """Poll until the execution leaves RUNNING or the timeout expires."""
    deadline = time.monotonic() + timeout
    while execution.status == RunStatus.RUNNING and time.monotonic() < deadline:
        supervisor.poll(execution)
        time.sleep(0.01)


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def sample_nodes() -> list[dict[str, Any]]:
    return [dict(node) for node in SAMPLE_NODES]


@pytest.fixture
def sample_units(sample_nodes: list[dict[str, Any]]) -> list[BuildUnit]:
    from dbtpulse.core.manifest import filter_units, parse_manifest

    return filter_units(
        parse_manifest({"nodes": {n["unique_id"]: n for n in sample_nodes}})
    )


@pytest.fixture
def index(sample_units: list[BuildUnit]) -> DependencyIndex:
    """Provide a DependencyIndex over the sample project."""
    return DependencyIndex(sample_units)


@pytest.fixture
def project_dir(tmp_dir: Path, sample_nodes: list[dict[str, Any]]) -> Path:
    """A dbt project directory containing target/manifest.json."""
    target = tmp_dir / "project" / "target"
    target.mkdir(parents=True)
    manifest = {"nodes": {n["unique_id"]: n for n in sample_nodes}}
    (target / "manifest.json").write_text(json.dumps(manifest), encoding="utf-8")
    return tmp_dir / "project"


@pytest.fixture
def history_store(tmp_dir: Path) -> RunHistoryStore:
    """Provide a fresh RunHistoryStore backed by a temp SQLite database."""
    return RunHistoryStore(tmp_dir / "history.db", limit=5)


@pytest.fixture
def execution() -> RunExecution:
    return RunExecution(command="dbt run")


@pytest.fixture
def run_output() -> str:
    return SAMPLE_RUN_OUTPUT


@pytest.fixture
def make_unit() -> Callable[..., BuildUnit]:
    """Factory fixture: build a model BuildUnit in the ``s`` schema."""

    def _factory(name: str, *deps: str, schema: str = "s") -> BuildUnit:
        return BuildUnit(
            unique_id=f"model.p.{name}",
            name=name,
            schema_name=schema,
            depends_on=[f"model.p.{d}" for d in deps],
        )

    return _factory


@pytest.fixture
def wait() -> Callable[..., None]:
    """Provide ``wait_for`` to tests that drive a live supervisor."""
    return wait_for
