"""Conversion helpers that turn raw GCP API JSON into snapshot models."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..models import (
    AddonsConfig,
    AutoscalingConfig,
    ClusterConfig,
    ClusterInstance,
    ClusterMaintenanceWindow,
    ColumnInfo,
    ConstraintInfo,
    DatabaseConfig,
    DatabaseInstance,
    DatabaseSchema,
    Extension,
    FunctionInfo,
    IndexInfo,
    InsightsConfig,
    IPAllocationPolicy,
    IPConfiguration,
    LoggingConfig,
    MaintenanceWindow,
    MonitoringConfig,
    NodePoolConfig,
    ProcedureInfo,
    Role,
    SequenceInfo,
    Settings,
    TableInfo,
    ViewInfo,
)

TEMPLATE_DATABASES = frozenset({"template0", "template1"})


def is_postgres(database_version: Optional[str]) -> bool:
    return bool(database_version) and str(database_version).startswith("POSTGRES")


def _as_int(value: Any) -> Optional[int]:
    # The Admin API serialises int64 fields as strings.
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class SnapshotShapeError(ValueError):
    """Raised when a schema snapshot document does not have the expected shape."""


class SnapshotNormalizer:
    """Normalize Cloud SQL Admin, GKE and schema inspector JSON into snapshots."""

    # Cloud SQL --------------------------------------------------------------
    def normalize_instances(
        self,
        payload: Iterable[Mapping[str, Any]],
        project: str = "",
        *,
        postgres_only: bool = True,
    ) -> List[DatabaseInstance]:
        """Return PostgreSQL instance snapshots from an instance list payload."""

        instances: List[DatabaseInstance] = []
        for item in payload or []:
            if postgres_only and not is_postgres(item.get("databaseVersion")):
                continue
            instances.append(self.normalize_instance(item, project))
        return instances

    def normalize_instance(
        self,
        item: Mapping[str, Any],
        project: str = "",
        databases: Optional[Iterable[str]] = None,
    ) -> DatabaseInstance:
        settings = _as_dict(item.get("settings"))
        return DatabaseInstance(
            project=item.get("project") or project,
            name=item.get("name", ""),
            state=item.get("state", ""),
            region=item.get("region", ""),
            config=self._database_config(item, settings),
            maintenance_window=self._maintenance_window(settings.get("maintenanceWindow")),
            labels=dict(settings.get("userLabels") or {}),
            databases=list(databases or []),
        )

    def normalize_databases(self, payload: Iterable[Mapping[str, Any]]) -> List[str]:
        """Return database names from a database list payload, without templates."""

        names: List[str] = []
        for item in payload or []:
            name = item.get("name")
            if name and name not in TEMPLATE_DATABASES:
                names.append(name)
        return names

    # ------------------------------------------------------------------
    def _database_config(self, item: Mapping[str, Any], settings: Mapping[str, Any]) -> DatabaseConfig:
        flags = {
            flag.get("name", ""): str(flag.get("value", ""))
            for flag in settings.get("databaseFlags") or []
            if flag.get("name")
        }
        denied = [
            f"{period.get('startDate', '')} to {period.get('endDate', '')}"
            for period in settings.get("denyMaintenancePeriods") or []
        ]

        return DatabaseConfig(
            database_version=item.get("databaseVersion"),
            tier=settings.get("tier"),
            database_flags=flags,
            settings=self._settings(settings),
            disk_size_gb=_as_int(settings.get("dataDiskSizeGb")),
            disk_type=settings.get("dataDiskType"),
            disk_autoresize=bool(settings.get("storageAutoResize", False)),
            maintenance_denied_periods=denied,
        )

    def _settings(self, settings: Mapping[str, Any]) -> Settings:
        backup = _as_dict(settings.get("backupConfiguration"))
        retention = _as_dict(backup.get("backupRetentionSettings"))
        location = _as_dict(settings.get("locationPreference"))

        return Settings(
            availability_type=settings.get("availabilityType"),
            backup_enabled=bool(backup.get("enabled", False)),
            backup_start_time=backup.get("startTime"),
            backup_retention_days=_as_int(retention.get("retainedBackups")),
            point_in_time_recovery=bool(backup.get("pointInTimeRecoveryEnabled", False)),
            transaction_log_retention_days=_as_int(backup.get("transactionLogRetentionDays")),
            ip_configuration=self._ip_configuration(settings.get("ipConfiguration")),
            location_preference=location.get("zone"),
            data_disk_size_gb=_as_int(settings.get("dataDiskSizeGb")),
            pricing_plan=settings.get("pricingPlan"),
            replication_type=settings.get("replicationType"),
            insights_config=self._insights(settings.get("insightsConfig")),
        )

    def _ip_configuration(self, payload: Any) -> Optional[IPConfiguration]:
        if not isinstance(payload, dict):
            return None

        require_ssl = payload.get("requireSsl")
        if require_ssl is None and payload.get("sslMode"):
            require_ssl = payload["sslMode"] != "ALLOW_UNENCRYPTED_AND_ENCRYPTED"

        return IPConfiguration(
            ipv4_enabled=bool(payload.get("ipv4Enabled", False)),
            private_network=payload.get("privateNetwork") or None,
            require_ssl=bool(require_ssl),
            authorized_networks=[
                network.get("value", "")
                for network in payload.get("authorizedNetworks") or []
                if network.get("value")
            ],
        )

    def _insights(self, payload: Any) -> Optional[InsightsConfig]:
        if not isinstance(payload, dict):
            return None
        return InsightsConfig(
            query_insights_enabled=bool(payload.get("queryInsightsEnabled", False)),
            query_plans_per_minute=_as_int(payload.get("queryPlansPerMinute")),
            query_string_length=_as_int(payload.get("queryStringLength")),
            record_application_tags=bool(payload.get("recordApplicationTags", False)),
        )

    def _maintenance_window(self, payload: Any) -> Optional[MaintenanceWindow]:
        if not isinstance(payload, dict):
            return None
        return MaintenanceWindow(
            day=_as_int(payload.get("day")) or 0,
            hour=_as_int(payload.get("hour")) or 0,
            update_track=payload.get("updateTrack", ""),
        )

    # GKE --------------------------------------------------------------------
    def normalize_clusters(self, payload: Iterable[Mapping[str, Any]], project: str = "") -> List[ClusterInstance]:
        return [self.normalize_cluster(item, project) for item in payload or []]

    def normalize_cluster(self, item: Mapping[str, Any], project: str = "") -> ClusterInstance:
        return ClusterInstance(
            project=project,
            name=item.get("name", ""),
            location=item.get("location", "") or item.get("zone", ""),
            status=item.get("status", ""),
            config=self._cluster_config(item),
            node_pools=[self._node_pool(pool) for pool in item.get("nodePools") or []],
            labels=dict(item.get("resourceLabels") or {}),
        )

    # ------------------------------------------------------------------
    def _cluster_config(self, item: Mapping[str, Any]) -> ClusterConfig:
        private = _as_dict(item.get("privateClusterConfig"))
        global_access = _as_dict(private.get("masterGlobalAccessConfig"))
        authorized = _as_dict(item.get("masterAuthorizedNetworksConfig"))
        workload = _as_dict(item.get("workloadIdentityConfig"))
        encryption = _as_dict(item.get("databaseEncryption"))
        posture = _as_dict(item.get("securityPostureConfig"))

        authorized_networks: List[str] = []
        if authorized.get("enabled"):
            authorized_networks = [
                block.get("cidrBlock", "") for block in authorized.get("cidrBlocks") or [] if block.get("cidrBlock")
            ]

        return ClusterConfig(
            master_version=item.get("currentMasterVersion"),
            release_channel=_as_dict(item.get("releaseChannel")).get("channel"),
            network=item.get("network"),
            subnetwork=item.get("subnetwork"),
            private_cluster=bool(private.get("enablePrivateNodes", False)),
            master_global_access=bool(global_access.get("enabled", False)),
            master_authorized_networks=authorized_networks,
            datapath_provider=_as_dict(item.get("networkConfig")).get("datapathProvider"),
            ip_allocation_policy=self._ip_allocation_policy(item.get("ipAllocationPolicy")),
            workload_identity=bool(workload.get("workloadPool")),
            network_policy=bool(_as_dict(item.get("networkPolicy")).get("enabled", False)),
            binary_authorization=bool(_as_dict(item.get("binaryAuthorization")).get("enabled", False)),
            shielded_nodes=bool(_as_dict(item.get("shieldedNodes")).get("enabled", False)),
            database_encryption=encryption.get("state") == "ENCRYPTED",
            security_posture=posture.get("mode"),
            maintenance_window=self._cluster_maintenance_window(item.get("maintenancePolicy")),
            addons=self._addons(item.get("addonsConfig")),
            logging_config=self._logging(item.get("loggingConfig")),
            monitoring_config=self._monitoring(item.get("monitoringConfig")),
        )

    def _ip_allocation_policy(self, payload: Any) -> Optional[IPAllocationPolicy]:
        if not isinstance(payload, dict):
            return None
        return IPAllocationPolicy(
            use_ip_aliases=bool(payload.get("useIpAliases", False)),
            cluster_ipv4_cidr=payload.get("clusterIpv4CidrBlock"),
            services_ipv4_cidr=payload.get("servicesIpv4CidrBlock"),
            stack_type=payload.get("stackType"),
        )

    def _cluster_maintenance_window(self, payload: Any) -> Optional[ClusterMaintenanceWindow]:
        window = _as_dict(_as_dict(payload).get("window"))
        daily = window.get("dailyMaintenanceWindow")
        if not isinstance(daily, dict):
            return None
        return ClusterMaintenanceWindow(start_time=daily.get("startTime", ""), duration=daily.get("duration", ""))

    def _addons(self, payload: Any) -> Optional[AddonsConfig]:
        if not isinstance(payload, dict):
            return None
        http = _as_dict(payload.get("httpLoadBalancing"))
        hpa = _as_dict(payload.get("horizontalPodAutoscaling"))
        policy = payload.get("networkPolicyConfig")
        return AddonsConfig(
            http_load_balancing=not http.get("disabled", False),
            horizontal_pod_autoscaling=not hpa.get("disabled", False),
            network_policy=isinstance(policy, dict) and not policy.get("disabled", False),
        )

    def _components(self, payload: Any) -> Optional[List[str]]:
        component_config = _as_dict(payload).get("componentConfig")
        if not isinstance(component_config, dict):
            return None
        return list(component_config.get("enableComponents") or [])

    def _logging(self, payload: Any) -> Optional[LoggingConfig]:
        components = self._components(payload)
        if components is None:
            return None
        return LoggingConfig(
            enable_system_logs="SYSTEM_COMPONENTS" in components,
            enable_workload_logs="WORKLOADS" in components,
        )

    def _monitoring(self, payload: Any) -> Optional[MonitoringConfig]:
        components = self._components(payload)
        if components is None:
            return None
        return MonitoringConfig(
            enable_system_metrics="SYSTEM_COMPONENTS" in components,
            enable_apiserver_metrics="APISERVER" in components,
            enable_controller_metrics="CONTROLLER_MANAGER" in components,
            enable_scheduler_metrics="SCHEDULER" in components,
        )

    def _node_pool(self, pool: Mapping[str, Any]) -> NodePoolConfig:
        config = _as_dict(pool.get("config"))
        management = _as_dict(pool.get("management"))
        autoscaling = _as_dict(pool.get("autoscaling"))

        scaling: Optional[AutoscalingConfig] = None
        if autoscaling.get("enabled"):
            scaling = AutoscalingConfig(
                enabled=True,
                min_node_count=_as_int(autoscaling.get("minNodeCount")),
                max_node_count=_as_int(autoscaling.get("maxNodeCount")),
            )

        taints = [
            f"{taint.get('key', '')}={taint.get('value', '')}:{taint.get('effect', '')}"
            for taint in config.get("taints") or []
        ]

        return NodePoolConfig(
            name=pool.get("name", ""),
            version=pool.get("version"),
            machine_type=config.get("machineType"),
            disk_size_gb=_as_int(config.get("diskSizeGb")),
            disk_type=config.get("diskType"),
            image_type=config.get("imageType"),
            initial_node_count=_as_int(pool.get("initialNodeCount")),
            autoscaling=scaling,
            auto_upgrade=bool(management.get("autoUpgrade", False)),
            auto_repair=bool(management.get("autoRepair", False)),
            service_account=config.get("serviceAccount"),
            labels=dict(config.get("labels") or {}),
            taints=taints,
        )

    # Schema -----------------------------------------------------------------
    def normalize_schema(self, payload: Mapping[str, Any]) -> DatabaseSchema:
        """Return a schema snapshot from an inspector JSON document.

        Keys are read in ``snake_case`` with a ``PascalCase`` fallback.
        Raises :class:`SnapshotShapeError` when a list or one of its entries
        has the wrong JSON type.
        """

        if not isinstance(payload, Mapping):
            raise SnapshotShapeError(f"schema snapshot must be an object, got {type(payload).__name__}")

        return DatabaseSchema(
            database_name=_field(payload, "database_name", ""),
            owner=_field(payload, "owner", ""),
            encoding=_field(payload, "encoding", ""),
            collation=_field(payload, "collation", ""),
            roles=[self._role(item) for item in _records(payload, "roles")],
            tables=[self._table(item) for item in _records(payload, "tables")],
            views=[
                ViewInfo(
                    schema=_field(item, "schema", "public"),
                    name=_field(item, "name", ""),
                    owner=_field(item, "owner", ""),
                    definition=_field(item, "definition", ""),
                )
                for item in _records(payload, "views")
            ],
            sequences=[self._sequence(item) for item in _records(payload, "sequences")],
            functions=[
                FunctionInfo(
                    schema=_field(item, "schema", "public"),
                    name=_field(item, "name", ""),
                    owner=_field(item, "owner", ""),
                    language=_field(item, "language", ""),
                    return_type=_field(item, "return_type", ""),
                    arguments=_field(item, "arguments", ""),
                    definition=_field(item, "definition", ""),
                )
                for item in _records(payload, "functions")
            ],
            procedures=[
                ProcedureInfo(
                    schema=_field(item, "schema", "public"),
                    name=_field(item, "name", ""),
                    owner=_field(item, "owner", ""),
                    language=_field(item, "language", ""),
                    arguments=_field(item, "arguments", ""),
                    definition=_field(item, "definition", ""),
                )
                for item in _records(payload, "procedures")
            ],
            extensions=[
                Extension(
                    name=_field(item, "name", ""),
                    version=_field(item, "version", ""),
                    schema=_field(item, "schema", ""),
                )
                for item in _records(payload, "extensions")
            ],
        )

    # ------------------------------------------------------------------
    def _role(self, item: Mapping[str, Any]) -> Role:
        return Role(
            name=_field(item, "name", ""),
            is_superuser=bool(_field(item, "is_superuser", False)),
            can_login=bool(_field(item, "can_login", False)),
            can_create_db=bool(_field(item, "can_create_db", False)),
            can_create_role=bool(_field(item, "can_create_role", False)),
            member_of=_names(item, "member_of"),
        )

    def _table(self, item: Mapping[str, Any]) -> TableInfo:
        return TableInfo(
            schema=_field(item, "schema", "public"),
            name=_field(item, "name", ""),
            owner=_field(item, "owner", ""),
            row_count=_as_int(_field(item, "row_count", 0)) or 0,
            size_bytes=_as_int(_field(item, "size_bytes", 0)) or 0,
            columns=[
                ColumnInfo(
                    name=_field(column, "name", ""),
                    data_type=_field(column, "data_type", ""),
                    is_nullable=bool(_field(column, "is_nullable", True)),
                    default_value=_field(column, "default_value", None),
                    is_identity=bool(_field(column, "is_identity", False)),
                )
                for column in _records(item, "columns")
            ],
            constraints=[
                ConstraintInfo(
                    name=_field(constraint, "name", ""),
                    type=_field(constraint, "type", ""),
                    definition=_field(constraint, "definition", ""),
                )
                for constraint in _records(item, "constraints")
            ],
            indexes=[
                IndexInfo(
                    name=_field(index, "name", ""),
                    columns=_names(index, "columns"),
                    is_unique=bool(_field(index, "is_unique", False)),
                    is_primary=bool(_field(index, "is_primary", False)),
                    definition=_field(index, "definition", ""),
                )
                for index in _records(item, "indexes")
            ],
        )

    def _sequence(self, item: Mapping[str, Any]) -> SequenceInfo:
        return SequenceInfo(
            schema=_field(item, "schema", "public"),
            name=_field(item, "name", ""),
            owner=_field(item, "owner", ""),
            data_type=_field(item, "data_type", ""),
            start_value=_as_int(_field(item, "start_value", 0)) or 0,
            min_value=_as_int(_field(item, "min_value", None)),
            max_value=_as_int(_field(item, "max_value", None)),
            increment=_as_int(_field(item, "increment", 1)) or 1,
        )


def _field(payload: Mapping[str, Any], name: str, default: Any) -> Any:
    if name in payload:
        return payload[name]
    pascal = "".join(part.capitalize() for part in name.split("_"))
    return payload.get(pascal, default)


def _records(payload: Mapping[str, Any], name: str) -> List[Mapping[str, Any]]:
    value = _field(payload, name, None)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SnapshotShapeError(f"'{name}' must be a list, got {type(value).__name__}")
    for index, item in enumerate(value):
        if not isinstance(item, Mapping):
            raise SnapshotShapeError(f"'{name}[{index}]' must be an object, got {type(item).__name__}")
    return value


def _names(payload: Mapping[str, Any], name: str) -> List[str]:
    value = _field(payload, name, None)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SnapshotShapeError(f"'{name}' must be a list, got {type(value).__name__}")
    return [str(item) for item in value]


__all__ = ["SnapshotNormalizer", "SnapshotShapeError", "TEMPLATE_DATABASES", "is_postgres"]
