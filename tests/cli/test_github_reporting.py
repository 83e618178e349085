"""Tests for GitHub Actions reporting helpers."""

from __future__ import annotations

import json
from pathlib import Path

from drift_service.cli import github_reporting
from drift_service.cli.github_reporting import format_summary, iter_annotations


def _build_report() -> dict[str, object]:
    return {
        "timestamp": "2026-03-14T09:30:00+00:00",
        "resource_kind": "sql_instance",
        "total_resources": 3,
        "drifted_resources": 1,
        "summary": {
            "compliance_rate": 66.7,
            "highest_severity": "critical",
            "counts": {"critical": 1, "high": 0, "medium": 1, "low": 0},
        },
        "resources": [
            {
                "kind": "sql_instance",
                "project": "payments-prod",
                "name": "ledger-db",
                "baseline": "ledger",
                "drifts": [
                    {
                        "field": "settings.backup_enabled",
                        "expected": "true",
                        "actual": "false",
                        "severity": "critical",
                    },
                    {
                        "field": "database_flags.max_connections",
                        "expected": "200",
                        "actual": "100",
                        "severity": "medium",
                    },
                ],
            },
            {"kind": "sql_instance", "project": "payments-prod", "name": "reports-db", "drifts": []},
        ],
        "errors": [
            {"kind": "sql_instance", "project": "billing-prod", "name": "", "message": "Executable not found: gcloud"}
        ],
    }


def test_format_summary_includes_key_sections() -> None:
    """Rendered summaries should include totals, counts and drifted resources."""

    summary = format_summary(_build_report())

    assert "# Drift Analysis Report" in summary
    assert "**Resource kind:** sql instance" in summary
    assert "**Compliance rate:** 66.7%" in summary
    assert "**Highest severity:** Critical" in summary
    assert "| Critical | 1 |" in summary
    assert "| Medium | 1 |" in summary
    assert "- `payments-prod/ledger-db` (2 drift(s), baseline `ledger`)" in summary
    assert "expected `true`, found `false`" in summary
    assert "reports-db" not in summary
    assert "- `billing-prod`: Executable not found: gcloud" in summary


def test_iter_annotations_maps_severity_to_level() -> None:
    """Annotations should map severities to GitHub workflow command levels."""

    annotations = list(iter_annotations(_build_report()))

    assert annotations[0] == (
        "::error title=Critical - settings.backup_enabled::payments-prod/ledger-db: expected true, found false"
    )
    assert annotations[1].startswith("::warning title=Medium - database_flags.max_connections::")
    assert annotations[2] == "::error title=Analysis error::billing-prod: Executable not found: gcloud"


def test_main_appends_summary_file(tmp_path: Path, capsys, monkeypatch) -> None:
    report_path = tmp_path / "report.json"
    report_path.write_text(json.dumps(_build_report()), encoding="utf-8")
    summary_path = tmp_path / "summary.md"
    monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(summary_path))

    assert github_reporting.main([str(report_path)]) == 0

    assert summary_path.read_text(encoding="utf-8").startswith("# Drift Analysis Report")
    assert capsys.readouterr().out.count("::") >= 6
