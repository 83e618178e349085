"""Cloud SQL instance snapshots and configuration records.

The configuration records double as baseline records: a field left as
``None`` in a baseline is not checked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True, slots=True)
class IPConfiguration:
    """Network and transport security settings for database access."""

    ipv4_enabled: Optional[bool] = None
    private_network: Optional[str] = None
    require_ssl: Optional[bool] = None
    authorized_networks: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class InsightsConfig:
    """Query Insights configuration."""

    query_insights_enabled: Optional[bool] = None
    query_plans_per_minute: Optional[int] = None
    query_string_length: Optional[int] = None
    record_application_tags: Optional[bool] = None


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime and operational settings of an instance."""

    availability_type: Optional[str] = None
    backup_enabled: Optional[bool] = None
    backup_start_time: Optional[str] = None
    backup_retention_days: Optional[int] = None
    point_in_time_recovery: Optional[bool] = None
    transaction_log_retention_days: Optional[int] = None
    ip_configuration: Optional[IPConfiguration] = None
    location_preference: Optional[str] = None
    data_disk_size_gb: Optional[int] = None
    pricing_plan: Optional[str] = None
    replication_type: Optional[str] = None
    insights_config: Optional[InsightsConfig] = None


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Instance level configuration, observed or expected."""

    database_version: Optional[str] = None
    tier: Optional[str] = None
    database_flags: Dict[str, str] = field(default_factory=dict)
    settings: Optional[Settings] = None
    disk_size_gb: Optional[int] = None
    disk_type: Optional[str] = None
    disk_autoresize: Optional[bool] = None
    maintenance_denied_periods: List[str] = field(default_factory=list)
    required_databases: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class MaintenanceWindow:
    """Weekly maintenance window of a Cloud SQL instance."""

    day: int = 0
    hour: int = 0
    update_track: str = ""


@dataclass(frozen=True, slots=True)
class DatabaseInstance:
    """Observed state of one Cloud SQL PostgreSQL instance."""

    project: str
    name: str
    state: str = ""
    region: str = ""
    config: DatabaseConfig = field(default_factory=DatabaseConfig)
    maintenance_window: Optional[MaintenanceWindow] = None
    labels: Dict[str, str] = field(default_factory=dict)
    databases: List[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.project}/{self.name}"

    @property
    def location(self) -> str:
        return self.region
