"""Static severity assignments for every field the comparators check.

Set-valued and map-valued fields have a second ``<field>.extra`` entry used
when the observed resource carries elements the baseline does not list.
Node pool fields are keyed by ``nodepool.<attribute>`` regardless of the pool
name that ends up in the reported field path.
"""

from __future__ import annotations

from typing import Mapping

from ..models import DriftSeverity

CRITICAL = DriftSeverity.CRITICAL
HIGH = DriftSeverity.HIGH
MEDIUM = DriftSeverity.MEDIUM
LOW = DriftSeverity.LOW

SQL_SEVERITIES: Mapping[str, DriftSeverity] = {
    "database_version": MEDIUM,
    "tier": HIGH,
    "disk_type": MEDIUM,
    "disk_size_gb": MEDIUM,
    "disk_autoresize": LOW,
    "database_flags": MEDIUM,
    "database_flags.extra": LOW,
    "required_databases": HIGH,
    "required_databases.extra": MEDIUM,
    "settings.availability_type": HIGH,
    "settings.backup_enabled": CRITICAL,
    "settings.point_in_time_recovery": HIGH,
    "settings.backup_retention_days": MEDIUM,
    "settings.transaction_log_retention_days": MEDIUM,
    "settings.pricing_plan": LOW,
    "settings.replication_type": MEDIUM,
    "settings.backup_start_time": LOW,
    "settings.ip_configuration.ipv4_enabled": MEDIUM,
    "settings.ip_configuration.require_ssl": CRITICAL,
    "settings.ip_configuration.authorized_networks": HIGH,
    "settings.ip_configuration.authorized_networks.extra": MEDIUM,
    "settings.insights_config.query_insights_enabled": LOW,
    "settings.insights_config.query_plans_per_minute": LOW,
    "settings.insights_config.query_string_length": LOW,
}

GKE_SEVERITIES: Mapping[str, DriftSeverity] = {
    "cluster.master_version": HIGH,
    "cluster.release_channel": MEDIUM,
    "cluster.private_cluster": CRITICAL,
    "cluster.workload_identity": HIGH,
    "cluster.network_policy": HIGH,
    "cluster.binary_authorization": HIGH,
    "cluster.network": MEDIUM,
    "cluster.subnetwork": MEDIUM,
    "cluster.datapath_provider": MEDIUM,
    "cluster.master_global_access": MEDIUM,
    "cluster.master_authorized_networks": HIGH,
    "cluster.master_authorized_networks.extra": MEDIUM,
    "cluster.ip_allocation_policy.use_ip_aliases": MEDIUM,
    "cluster.ip_allocation_policy.stack_type": HIGH,
    "cluster.shielded_nodes": HIGH,
    "cluster.database_encryption": CRITICAL,
    "cluster.security_posture": HIGH,
    "cluster.addons.http_load_balancing": MEDIUM,
    "cluster.addons.horizontal_pod_autoscaling": MEDIUM,
    "cluster.addons.network_policy": MEDIUM,
    "cluster.logging_config.enable_system_logs": MEDIUM,
    "cluster.logging_config.enable_workload_logs": LOW,
    "cluster.monitoring_config.enable_system_metrics": MEDIUM,
    "cluster.monitoring_config.enable_apiserver_metrics": LOW,
    "cluster.monitoring_config.enable_controller_metrics": LOW,
    "cluster.monitoring_config.enable_scheduler_metrics": LOW,
    "nodepool.version": MEDIUM,
    "nodepool.machine_type": HIGH,
    "nodepool.disk_size_gb": MEDIUM,
    "nodepool.disk_type": MEDIUM,
    "nodepool.image_type": MEDIUM,
    "nodepool.auto_upgrade": HIGH,
    "nodepool.auto_repair": HIGH,
    "nodepool.service_account": HIGH,
}

SEVERITY_TABLE: Mapping[str, DriftSeverity] = {**SQL_SEVERITIES, **GKE_SEVERITIES}

DEFAULT_SEVERITY = MEDIUM


def severity_for(path: str, table: Mapping[str, DriftSeverity] = SEVERITY_TABLE) -> DriftSeverity:
    """Return the severity registered for ``path``."""

    return table.get(path, DEFAULT_SEVERITY)
