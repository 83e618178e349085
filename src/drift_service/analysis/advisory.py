"""Advisory text attached to analysed resources."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from ..models import DatabaseInstance, Drift, DriftSeverity

NO_DRIFT_MESSAGE = "No drift detected - resource matches baseline"
CRITICAL_MESSAGE = "CRITICAL drifts detected - immediate action required"

# (field, prefix of the actual value or None for any value, message)
DRIFT_ADVICE: Tuple[Tuple[str, Optional[str], str], ...] = (
    ("settings.backup_enabled", "false", "Enable backups immediately to protect data"),
    ("settings.ip_configuration.require_ssl", "false", "Enable SSL requirement to secure connections"),
    ("tier", None, "Tier mismatch may affect performance and cost"),
    ("required_databases", "Missing", "Create the missing databases or update the baseline"),
    ("cluster.private_cluster", "false", "Enable private nodes to keep cluster nodes off the public internet"),
    ("cluster.database_encryption", "false", "Enable application-layer secrets encryption with Cloud KMS"),
    ("cluster.workload_identity", "false", "Enable Workload Identity instead of node service account keys"),
)


def recommendations_for(drifts: Sequence[Drift]) -> List[str]:
    if not drifts:
        return [NO_DRIFT_MESSAGE]

    recommendations: List[str] = []
    if any(drift.severity is DriftSeverity.CRITICAL for drift in drifts):
        recommendations.append(CRITICAL_MESSAGE)

    for drift in drifts:
        for field, actual, message in DRIFT_ADVICE:
            if drift.field != field:
                continue
            if actual is not None and not drift.actual.startswith(actual):
                continue
            if message not in recommendations:
                recommendations.append(message)
    return recommendations


_POSTGRES_MAJOR = re.compile(r"^POSTGRES_(\d+)")


def postgres_major(database_version: Optional[str]) -> Optional[int]:
    """Return the major version of a ``POSTGRES_<n>`` string."""

    if not database_version:
        return None
    match = _POSTGRES_MAJOR.match(database_version)
    if match is None:
        return None
    return int(match.group(1))


def best_practice_recommendations(instance: DatabaseInstance) -> List[str]:
    """Baseline-free advice for a Cloud SQL PostgreSQL instance."""

    config = instance.config
    settings = config.settings
    ip_config = settings.ip_configuration if settings else None
    insights = settings.insights_config if settings else None

    recommendations: List[str] = []
    if not (settings and settings.backup_enabled):
        recommendations.append("CRITICAL: Enable automated backups")
    if not (settings and settings.point_in_time_recovery):
        recommendations.append("HIGH: Enable point-in-time recovery for better RPO")
    if not (settings and settings.availability_type == "REGIONAL"):
        recommendations.append("HIGH: Consider REGIONAL availability for production workloads")
    if ip_config is not None and not ip_config.require_ssl:
        recommendations.append("CRITICAL: Enable SSL requirement for all connections")
    if ip_config is not None and ip_config.ipv4_enabled:
        recommendations.append("MEDIUM: Consider using private IP instead of public IPv4")
    if not config.disk_autoresize:
        recommendations.append("MEDIUM: Enable disk autoresize to prevent storage issues")
    if insights is None or not insights.query_insights_enabled:
        recommendations.append("LOW: Enable Query Insights for better performance monitoring")

    major = postgres_major(config.database_version)
    if major is not None and major < 14:
        recommendations.append("MEDIUM: Consider upgrading to PostgreSQL 14+ for better performance and features")

    if instance.maintenance_window is None:
        recommendations.append("LOW: Set a maintenance window for predictable updates")
    return recommendations


__all__ = [
    "CRITICAL_MESSAGE",
    "DRIFT_ADVICE",
    "NO_DRIFT_MESSAGE",
    "best_practice_recommendations",
    "postgres_major",
    "recommendations_for",
]
