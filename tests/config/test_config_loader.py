"""Tests for YAML configuration loading and baseline generation."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from drift_service.analysis import compare_cluster, compare_instance
from drift_service.config import (
    ConfigError,
    ConfigLoader,
    dump_config,
    generate_gke_config,
    generate_sql_config,
)
from drift_service.models import (
    ClusterConfig,
    ClusterInstance,
    DatabaseConfig,
    DatabaseInstance,
    IPConfiguration,
    NodePoolConfig,
    Settings,
)


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "drift.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_full_configuration(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
projects:
  - payments-prod
  - billing-prod
sql_baselines:
  - name: ledger
    filter_labels:
      app: ledger
    config:
      database_version: POSTGRES_15
      tier: db-custom-4-15360
      disk_size_gb: 0
      database_flags:
        max_connections: 200
        cloudsql.iam_authentication: on
      settings:
        backup_enabled: true
        ip_configuration:
          require_ssl: true
          authorized_networks: ["10.0.0.0/8"]
      required_databases: [ledger]
gke_baselines:
  - name: platform
    cluster_config:
      master_version: "1.33"
      private_cluster: true
    nodepool_config:
      machine_type: e2-standard-4
""",
    )

    config = ConfigLoader().load(path)

    assert config.projects == ["payments-prod", "billing-prod"]
    baseline = config.sql_baselines[0]
    assert baseline.name == "ledger"
    assert baseline.filter_labels == {"app": "ledger"}
    assert baseline.config is not None
    assert baseline.config.disk_size_gb == 0
    assert baseline.config.database_flags == {"max_connections": "200", "cloudsql.iam_authentication": "on"}
    assert baseline.config.settings == Settings(
        backup_enabled=True,
        ip_configuration=IPConfiguration(require_ssl=True, authorized_networks=["10.0.0.0/8"]),
    )
    assert baseline.config.required_databases == ["ledger"]

    platform = config.gke_baselines[0]
    assert platform.cluster_config == ClusterConfig(master_version="1.33", private_cluster=True)
    assert platform.nodepool_config == NodePoolConfig(machine_type="e2-standard-4")
    assert config.database_connections == []


def test_legacy_single_baseline_layout(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
projects: [payments-prod]
filter_labels:
  role: primary
baseline:
  tier: db-custom-2-7680
""",
    )

    baselines = ConfigLoader().load(path).sql_baselines

    assert len(baselines) == 1
    assert baselines[0].name == "default"
    assert baselines[0].filter_labels == {"role": "primary"}
    assert baselines[0].config == DatabaseConfig(tier="db-custom-2-7680")


def test_generic_baselines_key_is_read_as_sql(tmp_path: Path) -> None:
    path = _write(tmp_path, "baselines:\n  - name: any\n    config:\n      tier: db-f1-micro\n")

    assert [baseline.name for baseline in ConfigLoader().load(path).sql_baselines] == ["any"]


def test_values_of_wrong_type_are_left_unset(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
sql_baselines:
  - name: loose
    config:
      disk_autoresize: "yes"
      disk_size_gb: large
      tier: 42
""",
    )

    config = ConfigLoader().load(path).sql_baselines[0].config

    assert config == DatabaseConfig(tier="42")


def test_database_connection_schema_file_is_relative_to_config(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
database_connections:
  - name: orders
    project: payments-prod
    region: europe-west1
    instance_name: ledger-db
    database: orders
    username: inspector
    schema_file: snapshots/orders.json
    schema_baseline:
      expected_views: 2
      required_tables: [public.orders]
      table_owner_exceptions:
        public.audit_log: auditor
""",
    )

    connection = ConfigLoader().load(path).database_connections[0]

    assert connection.connection_name == "payments-prod:europe-west1:ledger-db"
    assert connection.schema_file == str((tmp_path / "snapshots" / "orders.json").resolve())
    assert connection.schema_baseline is not None
    assert connection.schema_baseline.expected_views == 2
    assert connection.schema_baseline.table_owner_exceptions == {"public.audit_log": "auditor"}


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("- just\n- a list\n", "must be a mapping"),
        ("projects: [unterminated\n", "Invalid YAML"),
        ("projects: payments-prod\n", "'projects' must be a list"),
        ("sql_baselines:\n  - config: {}\n", "Invalid entry in 'sql_baselines': name is required"),
        ("gke_baselines:\n  - name: ''\n", "Invalid entry in 'gke_baselines': baseline name is required"),
        ("sql_baselines:\n  - just-a-string\n", r"'sql_baselines\[0\]' must be a mapping"),
        (
            "database_connections:\n  - name: orders\n    database: orders\n    username: inspector\n",
            "must provide either instance_connection_name",
        ),
    ],
)
def test_invalid_configuration_raises(tmp_path: Path, content: str, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        ConfigLoader().load(_write(tmp_path, content))


def test_missing_configuration_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        ConfigLoader().load(tmp_path / "absent.yaml")


def test_generated_sql_baseline_matches_its_source() -> None:
    instance = DatabaseInstance(
        project="payments-prod",
        name="ledger-db",
        config=DatabaseConfig(
            database_version="POSTGRES_15",
            tier="db-custom-2-7680",
            database_flags={"cloudsql.iam_authentication": "on", "max_connections": "200"},
            disk_type="PD_SSD",
            disk_size_gb=100,
            disk_autoresize=False,
            settings=Settings(
                backup_enabled=True,
                point_in_time_recovery=False,
                ip_configuration=IPConfiguration(ipv4_enabled=False, require_ssl=True),
            ),
        ),
        labels={"app": "ledger"},
        databases=["ledger", "postgres"],
    )

    rendered = dump_config(generate_sql_config(instance))
    config = ConfigLoader().load_mapping(yaml.safe_load(rendered))

    baseline = config.sql_baselines[0]
    assert config.projects == ["payments-prod"]
    assert baseline.name == "generated"
    assert baseline.filter_labels == {"app": "ledger"}
    assert baseline.config is not None
    assert baseline.config.required_databases == ["ledger", "postgres"]
    assert baseline.config.settings is not None
    assert baseline.config.settings.point_in_time_recovery is False
    assert compare_instance(instance, baseline) == []


def test_generated_gke_baseline_matches_its_source() -> None:
    cluster = ClusterInstance(
        project="platform-prod",
        name="apps",
        config=ClusterConfig(master_version="1.33.5-gke.1308000", private_cluster=True, workload_identity=True),
        node_pools=[NodePoolConfig(name="default-pool", machine_type="e2-standard-4", auto_repair=True)],
        labels={"env": "prod"},
    )

    generated = generate_gke_config(cluster, name="platform")
    config = ConfigLoader().load_mapping(yaml.safe_load(dump_config(generated)))

    baseline = config.gke_baselines[0]
    assert "name" not in generated["gke_baselines"][0]["nodepool_config"]
    assert baseline.nodepool_config == NodePoolConfig(machine_type="e2-standard-4", auto_repair=True)
    assert compare_cluster(cluster, baseline) == []
