"""Declarative descriptions of the fields each comparator checks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class FieldKind(str, Enum):
    """How a baseline value is compared with the observed one."""

    SCALAR = "scalar"
    VERSION = "version"
    SET = "set"
    MAP = "map"


@dataclass(frozen=True, slots=True)
class FieldRule:
    """One checkable field.

    ``path`` is both the reported field name and the severity table key.
    ``attribute`` is the dotted attribute path on the configuration record and
    defaults to ``path``. ``gate`` names a baseline attribute that must be set
    for the rule to apply. ``zero_is_unset`` marks numeric fields where ``0``
    in the baseline means "not checked".
    """

    path: str
    kind: FieldKind = FieldKind.SCALAR
    attribute: str = ""
    gate: Optional[str] = None
    zero_is_unset: bool = False

    @property
    def attribute_path(self) -> Tuple[str, ...]:
        return tuple((self.attribute or self.path).split("."))


SCALAR = FieldKind.SCALAR
VERSION = FieldKind.VERSION
SET = FieldKind.SET
MAP = FieldKind.MAP


SQL_INSTANCE_RULES: Tuple[FieldRule, ...] = (
    FieldRule("database_version"),
    FieldRule("tier"),
    FieldRule("disk_type"),
    FieldRule("disk_size_gb", zero_is_unset=True),
    FieldRule("disk_autoresize", gate="disk_type"),
    FieldRule("database_flags", MAP),
    FieldRule("settings.availability_type"),
    FieldRule("settings.backup_enabled"),
    FieldRule("settings.point_in_time_recovery"),
    FieldRule("settings.backup_retention_days", zero_is_unset=True),
    FieldRule("settings.transaction_log_retention_days", zero_is_unset=True),
    FieldRule("settings.pricing_plan"),
    FieldRule("settings.replication_type"),
    FieldRule("settings.backup_start_time"),
    FieldRule("settings.ip_configuration.ipv4_enabled"),
    FieldRule("settings.ip_configuration.require_ssl"),
    FieldRule("settings.ip_configuration.authorized_networks", SET),
    FieldRule("settings.insights_config.query_insights_enabled"),
    FieldRule("settings.insights_config.query_plans_per_minute", zero_is_unset=True),
    FieldRule("settings.insights_config.query_string_length", zero_is_unset=True),
)


def _cluster(attribute: str, kind: FieldKind = SCALAR) -> FieldRule:
    return FieldRule(f"cluster.{attribute}", kind, attribute=attribute)


GKE_CLUSTER_RULES: Tuple[FieldRule, ...] = (
    _cluster("master_version", VERSION),
    _cluster("release_channel"),
    _cluster("private_cluster"),
    _cluster("workload_identity"),
    _cluster("network_policy"),
    _cluster("binary_authorization"),
    _cluster("network"),
    _cluster("subnetwork"),
    _cluster("datapath_provider"),
    _cluster("master_global_access"),
    _cluster("ip_allocation_policy.use_ip_aliases"),
    _cluster("ip_allocation_policy.stack_type"),
    _cluster("shielded_nodes"),
    _cluster("database_encryption"),
    _cluster("security_posture"),
    _cluster("addons.http_load_balancing"),
    _cluster("addons.horizontal_pod_autoscaling"),
    _cluster("addons.network_policy"),
    _cluster("logging_config.enable_system_logs"),
    _cluster("logging_config.enable_workload_logs"),
    _cluster("monitoring_config.enable_system_metrics"),
    _cluster("monitoring_config.enable_apiserver_metrics"),
    _cluster("monitoring_config.enable_controller_metrics"),
    _cluster("monitoring_config.enable_scheduler_metrics"),
    _cluster("master_authorized_networks", SET),
)


def _pool(attribute: str, kind: FieldKind = SCALAR, *, zero_is_unset: bool = False) -> FieldRule:
    return FieldRule(f"nodepool.{attribute}", kind, attribute=attribute, zero_is_unset=zero_is_unset)


NODE_POOL_RULES: Tuple[FieldRule, ...] = (
    _pool("version", VERSION),
    _pool("machine_type"),
    _pool("disk_size_gb", zero_is_unset=True),
    _pool("disk_type"),
    _pool("image_type"),
    _pool("auto_upgrade"),
    _pool("auto_repair"),
    _pool("service_account"),
)
