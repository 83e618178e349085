"""Field-level drift comparison driven by declarative rule tables."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Tuple

from ..models import (
    ClusterInstance,
    DatabaseConfig,
    DatabaseInstance,
    Drift,
    DriftSeverity,
    GKEBaseline,
    SQLBaseline,
)
from ..rules import (
    GKE_CLUSTER_RULES,
    NODE_POOL_RULES,
    SEVERITY_TABLE,
    SQL_INSTANCE_RULES,
    FieldKind,
    FieldRule,
    severity_for,
)

NOT_SET = "not set"

_SKIP = object()


class InvalidSnapshotError(ValueError):
    """Raised when an observed snapshot is missing entirely."""


def major_minor(version: Any) -> str:
    """Project a version string onto ``major.minor``.

    ``1.33.5-gke.1308000`` becomes ``1.33``. Strings without a minor part are
    returned unchanged.
    """

    text = "" if version is None else str(version)
    parts = text.split(".")
    if len(parts) < 2:
        return text
    return f"{parts[0]}.{parts[1]}"


def format_value(value: Any) -> str:
    if value is None:
        return NOT_SET
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    if isinstance(value, Mapping):
        return "{" + ", ".join(f"{key}: {format_value(item)}" for key, item in value.items()) + "}"
    return str(value)


def is_unset(value: Any, *, zero_is_unset: bool = False) -> bool:
    """Return ``True`` when a baseline value means "do not check"."""

    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)) and not value:
        return True
    if zero_is_unset and not isinstance(value, bool) and isinstance(value, (int, float)) and value == 0:
        return True
    return False


def _resolve(record: Any, path: Tuple[str, ...]) -> Any:
    """Walk ``path`` on ``record``; ``_SKIP`` when an intermediate record is ``None``."""

    current = record
    for name in path[:-1]:
        current = getattr(current, name, None)
        if current is None:
            return _SKIP
    return getattr(current, path[-1], None)


class FieldDriftComparator:
    """Compare an observed configuration record with a baseline record."""

    def __init__(
        self,
        rules: Sequence[FieldRule],
        severities: Mapping[str, DriftSeverity] = SEVERITY_TABLE,
    ) -> None:
        self._rules = tuple(rules)
        self._severities = severities

    # ------------------------------------------------------------------
    def compare(self, actual: Any, baseline: Any, *, field_prefix: Optional[str] = None) -> List[Drift]:
        """Return the drifts of ``actual`` against ``baseline``.

        A ``None`` baseline yields no drift. ``field_prefix`` replaces the
        reported field path with ``<prefix>.<attribute>`` while severities are
        still looked up by the rule path.
        """

        if actual is None:
            raise InvalidSnapshotError("cannot compare a missing snapshot")
        if baseline is None:
            return []

        drifts: List[Drift] = []
        for rule in self._rules:
            drifts.extend(self._compare_rule(rule, actual, baseline, field_prefix))
        return drifts

    # ------------------------------------------------------------------
    def _compare_rule(
        self,
        rule: FieldRule,
        actual: Any,
        baseline: Any,
        field_prefix: Optional[str],
    ) -> List[Drift]:
        if rule.gate and is_unset(getattr(baseline, rule.gate, None)):
            return []

        expected_value = _resolve(baseline, rule.attribute_path)
        if expected_value is _SKIP or is_unset(expected_value, zero_is_unset=rule.zero_is_unset):
            return []

        actual_value = _resolve(actual, rule.attribute_path)
        if actual_value is _SKIP:
            return []

        field = rule.path
        if field_prefix:
            field = f"{field_prefix}.{rule.attribute or rule.path}"

        if rule.kind is FieldKind.SET:
            return self._compare_set(rule, field, expected_value, actual_value)
        if rule.kind is FieldKind.MAP:
            return self._compare_map(rule, field, expected_value, actual_value)
        if rule.kind is FieldKind.VERSION:
            if major_minor(expected_value) == major_minor(actual_value):
                return []
        elif format_value(expected_value) == format_value(actual_value):
            return []

        return [
            Drift(
                field=field,
                expected=format_value(expected_value),
                actual=format_value(actual_value),
                severity=self._severity(rule.path),
            )
        ]

    def _compare_set(self, rule: FieldRule, field: str, expected: Any, actual: Any) -> List[Drift]:
        expected_items = [str(item) for item in _as_list(expected)]
        actual_items = [str(item) for item in _as_list(actual)]

        required = [item for item in expected_items if item not in actual_items]
        extra = [item for item in actual_items if item not in expected_items]

        drifts: List[Drift] = []
        if required:
            drifts.append(
                Drift(
                    field=field,
                    expected=f"Required: {format_value(required)}",
                    actual=format_value(actual_items),
                    severity=self._severity(rule.path),
                )
            )
        if extra:
            drifts.append(
                Drift(
                    field=field,
                    expected=format_value(expected_items),
                    actual=f"Extra: {format_value(extra)}",
                    severity=self._severity(f"{rule.path}.extra"),
                )
            )
        return drifts

    def _compare_map(self, rule: FieldRule, field: str, expected: Any, actual: Any) -> List[Drift]:
        if not isinstance(expected, Mapping):
            return []
        observed: Mapping[str, Any] = actual if isinstance(actual, Mapping) else {}

        drifts: List[Drift] = []
        for key, expected_value in expected.items():
            if key not in observed:
                drifts.append(
                    Drift(f"{field}.{key}", format_value(expected_value), NOT_SET, self._severity(rule.path))
                )
            elif format_value(observed[key]) != format_value(expected_value):
                drifts.append(
                    Drift(
                        f"{field}.{key}",
                        format_value(expected_value),
                        format_value(observed[key]),
                        self._severity(rule.path),
                    )
                )

        for key, actual_value in observed.items():
            if key not in expected:
                drifts.append(
                    Drift(
                        f"{field}.{key}",
                        NOT_SET,
                        format_value(actual_value),
                        self._severity(f"{rule.path}.extra"),
                    )
                )
        return drifts

    def _severity(self, path: str) -> DriftSeverity:
        return severity_for(path, self._severities)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


SQL_COMPARATOR = FieldDriftComparator(SQL_INSTANCE_RULES)
CLUSTER_COMPARATOR = FieldDriftComparator(GKE_CLUSTER_RULES)
NODE_POOL_COMPARATOR = FieldDriftComparator(NODE_POOL_RULES)


def compare_required_databases(
    databases: Sequence[str],
    required: Sequence[str],
    severities: Mapping[str, DriftSeverity] = SEVERITY_TABLE,
) -> List[Drift]:
    if not required:
        return []

    missing = [name for name in required if name not in databases]
    extra = [name for name in databases if name not in required]
    expected = format_value(list(required))

    drifts: List[Drift] = []
    if missing:
        drifts.append(
            Drift(
                "required_databases",
                expected,
                f"Missing: {format_value(missing)}",
                severity_for("required_databases", severities),
            )
        )
    if extra:
        drifts.append(
            Drift(
                "required_databases",
                expected,
                f"Extra: {format_value(extra)}",
                severity_for("required_databases.extra", severities),
            )
        )
    return drifts


def compare_instance(instance: DatabaseInstance, baseline: Optional[SQLBaseline]) -> List[Drift]:
    """Compare a Cloud SQL instance against a baseline."""

    if instance is None:
        raise InvalidSnapshotError("cannot compare a missing Cloud SQL instance")
    if baseline is None or baseline.config is None:
        return []

    config: DatabaseConfig = instance.config or DatabaseConfig()
    drifts = SQL_COMPARATOR.compare(config, baseline.config)
    drifts.extend(compare_required_databases(instance.databases, baseline.config.required_databases))
    return drifts


def compare_cluster(cluster: ClusterInstance, baseline: Optional[GKEBaseline]) -> List[Drift]:
    """Compare a GKE cluster and each of its node pools against a baseline."""

    if cluster is None:
        raise InvalidSnapshotError("cannot compare a missing GKE cluster")
    if baseline is None:
        return []

    drifts: List[Drift] = []
    if baseline.cluster_config is not None and cluster.config is not None:
        drifts.extend(CLUSTER_COMPARATOR.compare(cluster.config, baseline.cluster_config))

    if baseline.nodepool_config is not None:
        for pool in cluster.node_pools:
            drifts.extend(
                NODE_POOL_COMPARATOR.compare(
                    pool,
                    baseline.nodepool_config,
                    field_prefix=f"nodepool[{pool.name}]",
                )
            )
    return drifts


__all__ = [
    "CLUSTER_COMPARATOR",
    "FieldDriftComparator",
    "InvalidSnapshotError",
    "NODE_POOL_COMPARATOR",
    "NOT_SET",
    "SQL_COMPARATOR",
    "compare_cluster",
    "compare_instance",
    "compare_required_databases",
    "format_value",
    "is_unset",
    "major_minor",
]
