"""Tests for the ``drift-analysis`` command-line interface."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from drift_service.cli import app, load_report, render_table
from drift_service.models import DriftReport


def _sql_item(name: str, *, tier: str, backup: bool, labels: dict[str, str]) -> dict[str, Any]:
    return {
        "name": name,
        "project": "payments-prod",
        "databaseVersion": "POSTGRES_15",
        "region": "europe-west1",
        "state": "RUNNABLE",
        "databases": ["ledger"],
        "settings": {
            "tier": tier,
            "userLabels": labels,
            "backupConfiguration": {"enabled": backup},
            "ipConfiguration": {"ipv4Enabled": False, "requireSsl": True},
        },
    }


@pytest.fixture()
def instances_json(tmp_path: Path) -> Path:
    path = tmp_path / "instances.json"
    path.write_text(
        json.dumps(
            [
                _sql_item("ledger-db", tier="db-custom-2-7680", backup=True, labels={"role": "primary"}),
                _sql_item("reports-db", tier="db-f1-micro", backup=True, labels={"role": "replica"}),
            ]
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "drift.yaml"
    path.write_text(
        """
projects: [payments-prod]
sql_baselines:
  - name: standard
    config:
      tier: db-custom-2-7680
      settings:
        backup_enabled: true
""",
        encoding="utf-8",
    )
    return path


def test_sql_command_emits_json_and_fails_on_high_drift(
    instances_json: Path, config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = app.main(
        ["sql", "--config", str(config_path), "--instances-json", str(instances_json), "--format", "json"]
    )

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert payload["resource_kind"] == "sql_instance"
    assert payload["total_resources"] == 2
    assert payload["drifted_resources"] == 1
    assert payload["summary"]["highest_severity"] == "high"
    drifted = [resource for resource in payload["resources"] if resource["drifts"]]
    assert drifted[0]["name"] == "reports-db"
    assert drifted[0]["drifts"][0] == {
        "field": "tier",
        "expected": "db-custom-2-7680",
        "actual": "db-f1-micro",
        "severity": "high",
    }


def test_fail_on_threshold_above_highest_drift_passes(
    instances_json: Path, config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = app.main(
        ["sql", "--config", str(config_path), "--instances-json", str(instances_json), "--fail-on", "critical"]
    )

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "Analyzed 2 resource(s): 1 with drift, compliance 50.0%" in output
    assert "payments-prod/reports-db" in output


def test_role_filter_and_project_override(
    instances_json: Path, config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = app.main(
        [
            "sql",
            "--config",
            str(config_path),
            "--projects",
            "payments-prod",
            "--instances-json",
            str(instances_json),
            "--filter-role",
            "primary",
            "--format",
            "yaml",
        ]
    )

    payload = yaml.safe_load(capsys.readouterr().out)
    assert exit_code == 0
    assert [resource["name"] for resource in payload["resources"]] == ["ledger-db"]


def test_report_can_be_written_and_reloaded(
    tmp_path: Path, instances_json: Path, config_path: Path
) -> None:
    destination = tmp_path / "out" / "report.json"

    app.main(
        [
            "sql",
            "--config",
            str(config_path),
            "--instances-json",
            str(instances_json),
            "--format",
            "json",
            "--output",
            str(destination),
        ]
    )

    report = load_report(destination)
    assert isinstance(report, DriftReport)
    assert report.drifted_resources == 1
    assert "reports-db" in render_table(report)


def test_missing_projects_is_an_error(instances_json: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = app.main(["sql", "--instances-json", str(instances_json)])

    assert exit_code == 2
    assert "no projects given" in capsys.readouterr().err


def test_invalid_config_is_an_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = app.main(["gke", "--config", str(tmp_path / "absent.yaml"), "--projects", "p"])

    assert exit_code == 2
    assert "Configuration file not found" in capsys.readouterr().err


def test_malformed_filter_label_is_an_error(instances_json: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = app.main(
        ["sql", "--projects", "payments-prod", "--instances-json", str(instances_json), "--filter-label", "role"]
    )

    assert exit_code == 2
    assert "KEY=VALUE" in capsys.readouterr().err


def test_without_baselines_best_practice_advice_is_reported(
    instances_json: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = app.main(
        ["sql", "--projects", "payments-prod", "--instances-json", str(instances_json), "--format", "json"]
    )

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["drifted_resources"] == 0
    assert "HIGH: Enable point-in-time recovery for better RPO" in payload["resources"][0]["recommendations"]


def test_generate_config_writes_baseline(tmp_path: Path, instances_json: Path) -> None:
    destination = tmp_path / "generated.yaml"

    exit_code = app.main(
        [
            "sql",
            "--projects",
            "payments-prod",
            "--instances-json",
            str(instances_json),
            "--filter-label",
            "role=replica",
            "--generate-config",
            str(destination),
        ]
    )

    generated = yaml.safe_load(destination.read_text(encoding="utf-8"))
    assert exit_code == 0
    baseline = generated["sql_baselines"][0]
    assert baseline["filter_labels"] == {"role": "replica"}
    assert baseline["config"]["tier"] == "db-f1-micro"
    assert baseline["config"]["required_databases"] == ["ledger"]


def test_gke_command_reads_cluster_artifact(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    clusters = tmp_path / "clusters.json"
    clusters.write_text(
        json.dumps(
            {
                "platform-prod": [
                    {
                        "name": "apps",
                        "location": "europe-west1",
                        "status": "RUNNING",
                        "currentMasterVersion": "1.33.5-gke.1308000",
                        "privateClusterConfig": {"enablePrivateNodes": False},
                        "nodePools": [{"name": "default-pool", "config": {"machineType": "e2-standard-2"}}],
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    config = tmp_path / "gke.yaml"
    config.write_text(
        """
projects: [platform-prod]
gke_baselines:
  - name: prod
    cluster_config:
      private_cluster: true
    nodepool_config:
      machine_type: e2-standard-4
""",
        encoding="utf-8",
    )

    exit_code = app.main(["gke", "--config", str(config), "--clusters-json", str(clusters), "--format", "json"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    fields = [drift["field"] for drift in payload["resources"][0]["drifts"]]
    assert fields == ["cluster.private_cluster", "nodepool[default-pool].machine_type"]
    assert payload["summary"]["highest_severity"] == "critical"


def test_schema_command_prints_validation_text(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    snapshot = tmp_path / "orders.json"
    snapshot.write_text(
        json.dumps(
            {
                "DatabaseName": "orders",
                "Owner": "app_owner",
                "Tables": [{"Schema": "public", "Name": "customers", "Owner": "app_owner"}],
            }
        ),
        encoding="utf-8",
    )
    config = tmp_path / "schema.yaml"
    config.write_text(
        """
database_connections:
  - name: orders
    instance_connection_name: payments-prod:europe-west1:ledger-db
    database: orders
    username: inspector
    schema_file: orders.json
    schema_baseline:
      expected_views: 2
      required_tables: [public.orders]
""",
        encoding="utf-8",
    )

    exit_code = app.main(["schema", "--config", str(config)])

    output = capsys.readouterr().out
    assert exit_code == 1
    assert "SCHEMA DRIFT DETECTED:" in output
    assert "  Views: Expected 2, Found 0 (diff: -2)" in output
    assert "  [MISSING] Table: public.orders" in output


def test_markdown_format_uses_job_summary_layout(
    instances_json: Path, config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    app.main(
        ["sql", "--config", str(config_path), "--instances-json", str(instances_json), "--format", "markdown"]
    )

    output = capsys.readouterr().out
    assert output.startswith("# Drift Analysis Report")
    assert "| High | 1 |" in output


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert app.main([]) == 0
    assert "drift-analysis" in capsys.readouterr().out
