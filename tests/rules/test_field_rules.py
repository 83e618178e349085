from __future__ import annotations

import pytest

from drift_service.models import DriftSeverity
from drift_service.rules import (
    GKE_CLUSTER_RULES,
    NODE_POOL_RULES,
    SEVERITY_TABLE,
    SQL_INSTANCE_RULES,
    FieldKind,
    severity_for,
)


@pytest.mark.parametrize("rule", SQL_INSTANCE_RULES + GKE_CLUSTER_RULES + NODE_POOL_RULES, ids=lambda rule: rule.path)
def test_every_rule_has_a_registered_severity(rule) -> None:
    assert rule.path in SEVERITY_TABLE
    if rule.kind in (FieldKind.SET, FieldKind.MAP):
        assert f"{rule.path}.extra" in SEVERITY_TABLE


def test_cluster_rules_resolve_on_cluster_config() -> None:
    paths = {rule.path: rule.attribute_path for rule in GKE_CLUSTER_RULES}

    assert paths["cluster.master_version"] == ("master_version",)
    assert paths["cluster.addons.http_load_balancing"] == ("addons", "http_load_balancing")


def test_security_fields_are_critical() -> None:
    assert severity_for("settings.backup_enabled") is DriftSeverity.CRITICAL
    assert severity_for("settings.ip_configuration.require_ssl") is DriftSeverity.CRITICAL
    assert severity_for("cluster.private_cluster") is DriftSeverity.CRITICAL
    assert severity_for("unregistered.field") is DriftSeverity.MEDIUM
