"""GKE cluster snapshots and configuration records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True, slots=True)
class IPAllocationPolicy:
    use_ip_aliases: Optional[bool] = None
    cluster_ipv4_cidr: Optional[str] = None
    services_ipv4_cidr: Optional[str] = None
    stack_type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    enable_system_logs: Optional[bool] = None
    enable_workload_logs: Optional[bool] = None


@dataclass(frozen=True, slots=True)
class MonitoringConfig:
    enable_system_metrics: Optional[bool] = None
    enable_apiserver_metrics: Optional[bool] = None
    enable_controller_metrics: Optional[bool] = None
    enable_scheduler_metrics: Optional[bool] = None


@dataclass(frozen=True, slots=True)
class AddonsConfig:
    http_load_balancing: Optional[bool] = None
    horizontal_pod_autoscaling: Optional[bool] = None
    network_policy: Optional[bool] = None


@dataclass(frozen=True, slots=True)
class ClusterMaintenanceWindow:
    start_time: str = ""
    duration: str = ""


@dataclass(frozen=True, slots=True)
class ClusterConfig:
    """Cluster level configuration, observed or expected."""

    master_version: Optional[str] = None
    release_channel: Optional[str] = None

    network: Optional[str] = None
    subnetwork: Optional[str] = None
    private_cluster: Optional[bool] = None
    master_global_access: Optional[bool] = None
    master_authorized_networks: List[str] = field(default_factory=list)
    datapath_provider: Optional[str] = None
    ip_allocation_policy: Optional[IPAllocationPolicy] = None

    workload_identity: Optional[bool] = None
    network_policy: Optional[bool] = None
    binary_authorization: Optional[bool] = None
    shielded_nodes: Optional[bool] = None
    database_encryption: Optional[bool] = None
    security_posture: Optional[str] = None

    maintenance_window: Optional[ClusterMaintenanceWindow] = None
    addons: Optional[AddonsConfig] = None
    logging_config: Optional[LoggingConfig] = None
    monitoring_config: Optional[MonitoringConfig] = None


@dataclass(frozen=True, slots=True)
class AutoscalingConfig:
    enabled: Optional[bool] = None
    min_node_count: Optional[int] = None
    max_node_count: Optional[int] = None


@dataclass(frozen=True, slots=True)
class NodePoolConfig:
    """Node pool configuration, observed or expected."""

    name: str = ""
    version: Optional[str] = None
    machine_type: Optional[str] = None
    disk_size_gb: Optional[int] = None
    disk_type: Optional[str] = None
    image_type: Optional[str] = None
    initial_node_count: Optional[int] = None
    autoscaling: Optional[AutoscalingConfig] = None
    auto_upgrade: Optional[bool] = None
    auto_repair: Optional[bool] = None
    service_account: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)
    taints: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ClusterInstance:
    """Observed state of one GKE cluster."""

    project: str
    name: str
    location: str = ""
    status: str = ""
    config: ClusterConfig = field(default_factory=ClusterConfig)
    node_pools: List[NodePoolConfig] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return f"{self.project}/{self.name}"

    @property
    def state(self) -> str:
        return self.status
