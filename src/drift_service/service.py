"""Orchestration layer used by the CLI to execute drift analysis runs."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from .adapters import InventoryError, InventoryLoader
from .analysis import (
    InvalidSnapshotError,
    ReportAggregator,
    best_practice_recommendations,
    compare_cluster,
    compare_instance,
    filter_by_labels,
    match_baselines,
    recommendations_for,
    schema_drifts,
    validate_schema,
)
from .models import (
    ClusterInstance,
    DatabaseConnection,
    DatabaseInstance,
    DatabaseSchema,
    DriftReport,
    GKEBaseline,
    ResourceDrift,
    ResourceError,
    SQLBaseline,
)

logger = logging.getLogger(__name__)

SQL_KIND = "sql_instance"
GKE_KIND = "gke_cluster"
SCHEMA_KIND = "database_schema"

DEFAULT_MAX_WORKERS = 8

Task = Tuple[Any, Callable[[], ResourceDrift]]


class DriftAnalysisService:
    """High level service that discovers resources and evaluates them against baselines.

    Every ``analyze_*`` call returns its own report; the service keeps no
    state between runs.
    """

    def __init__(
        self,
        *,
        inventory: InventoryLoader | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self._inventory = inventory or InventoryLoader()
        self._max_workers = max(1, max_workers)

    # ------------------------------------------------------------------
    def scan_instances(
        self,
        projects: Sequence[str],
        baselines: Sequence[SQLBaseline],
        *,
        filter_labels: Mapping[str, str] | None = None,
    ) -> DriftReport:
        """Discover Cloud SQL instances in ``projects`` and analyse them."""

        instances, errors = self._discover(projects, SQL_KIND, self._inventory.load_instances)
        return self.analyze_instances(filter_by_labels(instances, filter_labels), baselines, errors=errors)

    def scan_clusters(
        self,
        projects: Sequence[str],
        baselines: Sequence[GKEBaseline],
        *,
        filter_labels: Mapping[str, str] | None = None,
    ) -> DriftReport:
        """Discover GKE clusters in ``projects`` and analyse them."""

        clusters, errors = self._discover(projects, GKE_KIND, self._inventory.load_clusters)
        return self.analyze_clusters(filter_by_labels(clusters, filter_labels), baselines, errors=errors)

    # ------------------------------------------------------------------
    def analyze_instances(
        self,
        instances: Sequence[DatabaseInstance],
        baselines: Sequence[SQLBaseline],
        *,
        errors: Iterable[ResourceError] = (),
    ) -> DriftReport:
        """Compare instances against the first baseline whose labels match.

        Without any baseline every instance gets best-practice advice instead.
        """

        tasks: List[Task] = []
        if not baselines:
            for instance in instances:
                tasks.append((instance, partial(self._advise_instance, instance)))
        else:
            matches = match_baselines(baselines, instances)
            for instance, baseline in matches.pairs:
                tasks.append((instance, partial(self._analyze_instance, instance, baseline)))
            for instance in matches.unmatched:
                logger.info("No baseline matches %s", instance.key)
                tasks.append((instance, partial(self._unmatched, SQL_KIND, instance)))

        return self._run(SQL_KIND, tasks, errors)

    def analyze_clusters(
        self,
        clusters: Sequence[ClusterInstance],
        baselines: Sequence[GKEBaseline],
        *,
        errors: Iterable[ResourceError] = (),
    ) -> DriftReport:
        matches = match_baselines(baselines, clusters)
        tasks: List[Task] = [
            (cluster, partial(self._analyze_cluster, cluster, baseline)) for cluster, baseline in matches.pairs
        ]
        for cluster in matches.unmatched:
            logger.info("No baseline matches %s", cluster.key)
            tasks.append((cluster, partial(self._unmatched, GKE_KIND, cluster)))

        return self._run(GKE_KIND, tasks, errors)

    def validate_schemas(
        self,
        connections: Sequence[DatabaseConnection],
        schemas: Mapping[str, DatabaseSchema] | None = None,
    ) -> DriftReport:
        """Validate each connection's schema snapshot against its schema baseline.

        Snapshots are taken from ``schemas`` keyed by connection name, falling
        back to the connection's ``schema_file``.
        """

        tasks: List[Task] = []
        for connection in connections:
            if connection.schema_baseline is None:
                logger.debug("Skipping %s: no schema baseline", connection.name)
                continue
            snapshot = (schemas or {}).get(connection.name)
            tasks.append((connection, partial(self._validate_connection, connection, snapshot)))

        return self._run(SCHEMA_KIND, tasks, ())

    # ------------------------------------------------------------------
    def _run(self, kind: str, tasks: Sequence[Task], errors: Iterable[ResourceError]) -> DriftReport:
        aggregator = ReportAggregator(kind)
        for error in errors:
            aggregator.add_error(error)

        if tasks:
            with ThreadPoolExecutor(max_workers=min(self._max_workers, len(tasks))) as executor:
                futures = [(resource, executor.submit(task)) for resource, task in tasks]
                for resource, future in futures:
                    try:
                        aggregator.add(future.result())
                    except InvalidSnapshotError:
                        raise
                    except (InventoryError, ValueError, OSError) as exc:
                        logger.error("Failed to analyse %s: %s", _describe(resource), exc)
                        aggregator.add_error(_resource_error(kind, resource, exc))
                    except Exception as exc:
                        logger.exception("Unexpected failure analysing %s", _describe(resource))
                        aggregator.add_error(_resource_error(kind, resource, exc))

        report = aggregator.build()
        logger.info(
            "%s analysis: %d resource(s), %d with drift, %d error(s)",
            kind,
            report.total_resources,
            report.drifted_resources,
            len(report.errors),
        )
        return report

    def _discover(
        self,
        projects: Sequence[str],
        kind: str,
        loader: Callable[[str], List[Any]],
    ) -> Tuple[List[Any], List[ResourceError]]:
        resources: List[Any] = []
        errors: List[ResourceError] = []
        for project in projects:
            try:
                found = loader(project)
            except InventoryError as exc:
                logger.error("Discovery failed for project %s: %s", project, exc)
                errors.append(ResourceError(kind=kind, project=project, name="", message=str(exc)))
                continue
            logger.info("Discovered %d %s resource(s) in %s", len(found), kind, project)
            resources.extend(found)
        return resources, errors

    # ------------------------------------------------------------------
    def _analyze_instance(self, instance: DatabaseInstance, baseline: SQLBaseline) -> ResourceDrift:
        drifts = compare_instance(instance, baseline)
        return ResourceDrift(
            kind=SQL_KIND,
            project=instance.project,
            name=instance.name,
            location=instance.region,
            state=instance.state,
            labels=dict(instance.labels),
            baseline=baseline.name,
            drifts=drifts,
            recommendations=recommendations_for(drifts),
            details={"databases": list(instance.databases)},
        )

    def _advise_instance(self, instance: DatabaseInstance) -> ResourceDrift:
        return ResourceDrift(
            kind=SQL_KIND,
            project=instance.project,
            name=instance.name,
            location=instance.region,
            state=instance.state,
            labels=dict(instance.labels),
            recommendations=best_practice_recommendations(instance),
            details={"databases": list(instance.databases)},
        )

    def _analyze_cluster(self, cluster: ClusterInstance, baseline: GKEBaseline) -> ResourceDrift:
        drifts = compare_cluster(cluster, baseline)
        return ResourceDrift(
            kind=GKE_KIND,
            project=cluster.project,
            name=cluster.name,
            location=cluster.location,
            state=cluster.status,
            labels=dict(cluster.labels),
            baseline=baseline.name,
            drifts=drifts,
            recommendations=recommendations_for(drifts),
            details={"node_pools": [pool.name for pool in cluster.node_pools]},
        )

    def _unmatched(self, kind: str, resource: Any) -> ResourceDrift:
        return ResourceDrift(
            kind=kind,
            project=resource.project,
            name=resource.name,
            location=resource.location,
            state=resource.state,
            labels=dict(resource.labels),
        )

    def _validate_connection(
        self,
        connection: DatabaseConnection,
        snapshot: Optional[DatabaseSchema],
    ) -> ResourceDrift:
        if snapshot is None:
            if not connection.schema_file:
                raise InventoryError(f"No schema snapshot available for {connection.name}")
            snapshot = self._inventory.load_schema(connection.schema_file)

        result = validate_schema(snapshot, connection.schema_baseline)
        drifts = schema_drifts(result)
        return ResourceDrift(
            kind=SCHEMA_KIND,
            project=_connection_project(connection),
            name=connection.name,
            location=connection.region,
            labels={},
            baseline=connection.name,
            drifts=drifts,
            recommendations=recommendations_for(drifts),
            details={
                "database": connection.database or snapshot.database_name,
                "instance_connection_name": connection.connection_name,
                "validation": result.to_dict(),
            },
        )


def _connection_project(connection: DatabaseConnection) -> str:
    if connection.project:
        return connection.project
    return connection.connection_name.split(":", 1)[0]


def _describe(resource: Any) -> str:
    key = getattr(resource, "key", None)
    return key or getattr(resource, "name", repr(resource))


def _resource_error(kind: str, resource: Any, exc: Exception) -> ResourceError:
    if isinstance(resource, DatabaseConnection):
        project = _connection_project(resource)
    else:
        project = getattr(resource, "project", "")
    return ResourceError(kind=kind, project=project, name=getattr(resource, "name", ""), message=str(exc))


__all__ = [
    "DEFAULT_MAX_WORKERS",
    "DriftAnalysisService",
    "GKE_KIND",
    "SCHEMA_KIND",
    "SQL_KIND",
]
