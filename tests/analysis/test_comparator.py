"""Tests for the field-level drift comparators."""

from __future__ import annotations

import pytest

from drift_service.analysis import (
    FieldDriftComparator,
    InvalidSnapshotError,
    compare_cluster,
    compare_instance,
    format_value,
    major_minor,
)
from drift_service.analysis.comparator import compare_required_databases, is_unset
from drift_service.models import (
    ClusterConfig,
    ClusterInstance,
    DatabaseConfig,
    DatabaseInstance,
    Drift,
    DriftSeverity,
    GKEBaseline,
    IPConfiguration,
    NodePoolConfig,
    Settings,
    SQLBaseline,
)
from drift_service.rules import FieldKind, FieldRule


def _instance(**config: object) -> DatabaseInstance:
    defaults: dict[str, object] = {
        "database_version": "POSTGRES_15",
        "tier": "db-custom-2-7680",
        "disk_type": "PD_SSD",
        "disk_size_gb": 100,
        "disk_autoresize": False,
        "settings": Settings(
            availability_type="REGIONAL",
            backup_enabled=False,
            point_in_time_recovery=True,
            ip_configuration=IPConfiguration(
                ipv4_enabled=False,
                require_ssl=True,
                authorized_networks=["10.0.0.0/8", "0.0.0.0/0"],
            ),
        ),
    }
    defaults.update(config)
    return DatabaseInstance(
        project="payments-prod",
        name="ledger-db",
        state="RUNNABLE",
        region="europe-west1",
        config=DatabaseConfig(**defaults),  # type: ignore[arg-type]
        labels={"app": "ledger"},
        databases=["ledger", "postgres"],
    )


def _baseline(**config: object) -> SQLBaseline:
    return SQLBaseline(name="ledger", config=DatabaseConfig(**config))  # type: ignore[arg-type]


def test_empty_baseline_reports_no_drift() -> None:
    assert compare_instance(_instance(), _baseline()) == []
    assert compare_instance(_instance(), SQLBaseline(name="empty")) == []
    assert compare_instance(_instance(), None) == []


def test_scalar_mismatch_uses_severity_table() -> None:
    drifts = compare_instance(_instance(), _baseline(tier="db-custom-4-15360"))

    assert drifts == [Drift("tier", "db-custom-4-15360", "db-custom-2-7680", DriftSeverity.HIGH)]


def test_nested_boolean_is_rendered_lowercase() -> None:
    drifts = compare_instance(_instance(), _baseline(settings=Settings(backup_enabled=True)))

    assert drifts == [Drift("settings.backup_enabled", "true", "false", DriftSeverity.CRITICAL)]


def test_zero_numeric_baseline_is_not_checked() -> None:
    assert compare_instance(_instance(), _baseline(disk_size_gb=0)) == []

    drifts = compare_instance(_instance(), _baseline(disk_size_gb=250))
    assert drifts == [Drift("disk_size_gb", "250", "100", DriftSeverity.MEDIUM)]


def test_disk_autoresize_only_checked_with_disk_type() -> None:
    assert compare_instance(_instance(), _baseline(disk_autoresize=True)) == []

    drifts = compare_instance(_instance(), _baseline(disk_type="PD_SSD", disk_autoresize=True))
    assert drifts == [Drift("disk_autoresize", "true", "false", DriftSeverity.LOW)]


def test_missing_settings_on_either_side_skips_nested_fields() -> None:
    bare = _instance(settings=None)

    assert compare_instance(bare, _baseline(settings=Settings(backup_enabled=True))) == []
    assert compare_instance(_instance(), _baseline(settings=None, tier="db-custom-2-7680")) == []


def test_database_flags_report_missing_mismatched_and_extra_keys() -> None:
    instance = _instance(database_flags={"max_connections": "100", "cloudsql.iam_authentication": "on"})
    baseline = _baseline(database_flags={"max_connections": "200", "log_min_duration_statement": "1000"})

    drifts = compare_instance(instance, baseline)

    assert drifts == [
        Drift("database_flags.max_connections", "200", "100", DriftSeverity.MEDIUM),
        Drift("database_flags.log_min_duration_statement", "1000", "not set", DriftSeverity.MEDIUM),
        Drift("database_flags.cloudsql.iam_authentication", "not set", "on", DriftSeverity.LOW),
    ]


def test_authorized_networks_compare_as_sets() -> None:
    baseline = _baseline(
        settings=Settings(
            ip_configuration=IPConfiguration(authorized_networks=["10.0.0.0/8", "192.168.0.0/16"])
        )
    )

    drifts = compare_instance(_instance(), baseline)

    field = "settings.ip_configuration.authorized_networks"
    assert drifts == [
        Drift(field, "Required: [192.168.0.0/16]", "[10.0.0.0/8, 0.0.0.0/0]", DriftSeverity.HIGH),
        Drift(field, "[10.0.0.0/8, 192.168.0.0/16]", "Extra: [0.0.0.0/0]", DriftSeverity.MEDIUM),
    ]


def test_required_databases_report_missing_and_extra() -> None:
    drifts = compare_instance(_instance(), _baseline(required_databases=["ledger", "audit"]))

    assert drifts == [
        Drift("required_databases", "[ledger, audit]", "Missing: [audit]", DriftSeverity.HIGH),
        Drift("required_databases", "[ledger, audit]", "Extra: [postgres]", DriftSeverity.MEDIUM),
    ]


def test_required_databases_empty_requirement_is_vacuous() -> None:
    assert compare_required_databases(["ledger"], []) == []


def _cluster(master_version: str = "1.33.5-gke.1308000") -> ClusterInstance:
    return ClusterInstance(
        project="platform-prod",
        name="apps",
        location="europe-west1",
        status="RUNNING",
        config=ClusterConfig(
            master_version=master_version,
            release_channel="REGULAR",
            private_cluster=True,
            workload_identity=False,
        ),
        node_pools=[
            NodePoolConfig(name="default-pool", version="1.33.5-gke.1308000", machine_type="e2-standard-4"),
            NodePoolConfig(name="burst", version="1.32.9-gke.100", machine_type="n2-standard-8"),
        ],
        labels={"env": "prod"},
    )


def test_master_version_compares_major_minor_only() -> None:
    same = GKEBaseline(name="prod", cluster_config=ClusterConfig(master_version="1.33"))
    older = GKEBaseline(name="prod", cluster_config=ClusterConfig(master_version="1.32.1-gke.5"))

    assert compare_cluster(_cluster(), same) == []
    assert compare_cluster(_cluster(), older) == [
        Drift("cluster.master_version", "1.32.1-gke.5", "1.33.5-gke.1308000", DriftSeverity.HIGH)
    ]


def test_cluster_boolean_drift() -> None:
    baseline = GKEBaseline(name="prod", cluster_config=ClusterConfig(workload_identity=True, private_cluster=True))

    assert compare_cluster(_cluster(), baseline) == [
        Drift("cluster.workload_identity", "true", "false", DriftSeverity.HIGH)
    ]


def test_node_pool_drift_is_reported_per_pool() -> None:
    baseline = GKEBaseline(
        name="prod",
        nodepool_config=NodePoolConfig(version="1.33", machine_type="e2-standard-4"),
    )

    drifts = compare_cluster(_cluster(), baseline)

    assert drifts == [
        Drift("nodepool[burst].version", "1.33", "1.32.9-gke.100", DriftSeverity.MEDIUM),
        Drift("nodepool[burst].machine_type", "e2-standard-4", "n2-standard-8", DriftSeverity.HIGH),
    ]


def test_missing_snapshot_is_rejected() -> None:
    comparator = FieldDriftComparator([FieldRule("tier")])

    with pytest.raises(InvalidSnapshotError):
        comparator.compare(None, DatabaseConfig(tier="db-f1-micro"))


def test_custom_severity_table_and_unknown_paths() -> None:
    comparator = FieldDriftComparator(
        [FieldRule("tier"), FieldRule("database_version", FieldKind.VERSION)],
        severities={"tier": DriftSeverity.LOW},
    )

    drifts = comparator.compare(
        DatabaseConfig(tier="db-f1-micro", database_version="POSTGRES_14"),
        DatabaseConfig(tier="db-g1-small", database_version="POSTGRES_15"),
    )

    assert [drift.severity for drift in drifts] == [DriftSeverity.LOW, DriftSeverity.MEDIUM]


def test_value_helpers() -> None:
    assert major_minor("1.33.5-gke.1308000") == "1.33"
    assert major_minor("latest") == "latest"
    assert format_value(None) == "not set"
    assert format_value(True) == "true"
    assert format_value(["a", "b"]) == "[a, b]"
    assert is_unset("")
    assert is_unset([])
    assert not is_unset(0)
    assert is_unset(0, zero_is_unset=True)
    assert not is_unset(False, zero_is_unset=True)
