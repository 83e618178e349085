"""Load analysis configuration files and render generated baselines."""

from __future__ import annotations

import logging
import types
import typing
from dataclasses import MISSING, asdict, dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Type, TypeVar, Union

import yaml

from ..models import (
    BaselineValidationError,
    ClusterInstance,
    DatabaseConnection,
    DatabaseInstance,
    GKEBaseline,
    SQLBaseline,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")

_MISSING = object()


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be loaded or is invalid."""


@dataclass(slots=True)
class AnalysisConfig:
    """Projects to scan and the baselines they are compared against."""

    projects: List[str] = field(default_factory=list)
    sql_baselines: List[SQLBaseline] = field(default_factory=list)
    gke_baselines: List[GKEBaseline] = field(default_factory=list)
    database_connections: List[DatabaseConnection] = field(default_factory=list)


class ConfigLoader:
    """Parse YAML configuration into :class:`AnalysisConfig` records.

    Unknown keys are ignored and values of the wrong type are dropped, which
    leaves the corresponding baseline field unset.
    """

    def load(self, path: Path | str) -> AnalysisConfig:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        try:
            content = config_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Failed to read configuration file {config_path}") from exc

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in configuration file {config_path}") from exc

        if not isinstance(data, Mapping):
            raise ConfigError(f"Configuration file must be a mapping: {config_path}")

        config = self.load_mapping(data, base_dir=config_path.resolve().parent)
        logger.info(
            "Loaded %s: %d project(s), %d SQL baseline(s), %d GKE baseline(s), %d database connection(s)",
            config_path,
            len(config.projects),
            len(config.sql_baselines),
            len(config.gke_baselines),
            len(config.database_connections),
        )
        return config

    # ------------------------------------------------------------------
    def load_mapping(self, data: Mapping[str, Any], *, base_dir: Path | None = None) -> AnalysisConfig:
        projects = data.get("projects") or []
        if not isinstance(projects, list):
            raise ConfigError("'projects' must be a list of project ids")

        return AnalysisConfig(
            projects=[str(project) for project in projects if project],
            sql_baselines=self._sql_baselines(data),
            gke_baselines=[
                self._build(GKEBaseline, item, "gke_baselines")
                for item in self._section(data, "gke_baselines")
            ],
            database_connections=[
                self._connection(item, base_dir) for item in self._section(data, "database_connections")
            ],
        )

    # ------------------------------------------------------------------
    def _sql_baselines(self, data: Mapping[str, Any]) -> List[SQLBaseline]:
        if data.get("sql_baselines"):
            items = self._section(data, "sql_baselines")
        elif data.get("baselines"):
            items = self._section(data, "baselines")
        elif isinstance(data.get("baseline"), Mapping):
            items = [
                {
                    "name": "default",
                    "filter_labels": data.get("filter_labels") or {},
                    "config": data["baseline"],
                }
            ]
        else:
            items = []

        return [self._build(SQLBaseline, item, "sql_baselines") for item in items]

    def _connection(self, item: Mapping[str, Any], base_dir: Path | None) -> DatabaseConnection:
        connection = self._build(DatabaseConnection, item, "database_connections")
        if connection.schema_file and base_dir is not None and not Path(connection.schema_file).is_absolute():
            return replace(connection, schema_file=str((base_dir / connection.schema_file).resolve()))
        return connection

    def _section(self, data: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
        items = data.get(key) or []
        if not isinstance(items, list):
            raise ConfigError(f"'{key}' must be a list")
        for index, item in enumerate(items):
            if not isinstance(item, Mapping):
                raise ConfigError(f"'{key}[{index}]' must be a mapping")
        return items

    def _build(self, cls: Type[RecordT], item: Mapping[str, Any], section: str) -> RecordT:
        try:
            record = build_record(cls, item)
            record.validate()  # type: ignore[attr-defined]
        except BaselineValidationError as exc:
            raise ConfigError(f"Invalid entry in '{section}': {exc}") from exc
        return record


# ----------------------------------------------------------------------
def build_record(cls: Type[RecordT], data: Mapping[str, Any]) -> RecordT:
    """Build dataclass ``cls`` from ``data``, dropping values of the wrong type.

    Raises :class:`BaselineValidationError` when a field without a default is
    missing or unusable.
    """

    hints = typing.get_type_hints(cls)
    kwargs: Dict[str, Any] = {}
    for item in fields(cls):  # type: ignore[arg-type]
        value = _coerce(hints[item.name], data[item.name]) if item.name in data else _MISSING
        if value is not _MISSING:
            kwargs[item.name] = value
        elif item.default is MISSING and item.default_factory is MISSING:
            raise BaselineValidationError(f"{item.name} is required")
    return cls(**kwargs)


def _coerce(hint: Any, value: Any) -> Any:
    if value is None:
        return _MISSING

    origin = typing.get_origin(hint)
    if origin is Union or origin is types.UnionType:
        candidates = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        return _coerce(candidates[0], value) if len(candidates) == 1 else _MISSING
    if origin is list:
        if not isinstance(value, list):
            return _MISSING
        (item_hint,) = typing.get_args(hint) or (str,)
        coerced = [_coerce(item_hint, item) for item in value]
        return [item for item in coerced if item is not _MISSING]
    if origin is dict:
        if not isinstance(value, Mapping):
            return _MISSING
        return {str(key): _text(item) for key, item in value.items() if item is not None}
    if is_dataclass(hint):
        return build_record(hint, value) if isinstance(value, Mapping) else _MISSING
    if hint is bool:
        return value if isinstance(value, bool) else _MISSING
    if hint is int:
        return value if isinstance(value, int) and not isinstance(value, bool) else _MISSING
    if hint is str:
        return _text(value) if isinstance(value, (str, int, float)) else _MISSING
    return _MISSING


def _text(value: Any) -> str:
    # YAML 1.1 reads unquoted on/off flag values as booleans.
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


# ----------------------------------------------------------------------
def prune(value: Any) -> Any:
    """Drop unset values so a generated baseline only pins observed settings."""

    if isinstance(value, dict):
        pruned = {key: prune(item) for key, item in value.items()}
        return {key: item for key, item in pruned.items() if item not in (None, "", [], {})}
    if isinstance(value, list):
        return [prune(item) for item in value]
    return value


def generate_sql_config(instance: DatabaseInstance, *, name: str = "generated") -> Dict[str, Any]:
    """Return a config mapping whose single baseline pins ``instance``'s settings."""

    config = prune(asdict(instance.config))
    if instance.databases:
        config["required_databases"] = list(instance.databases)
    return {
        "projects": [instance.project],
        "sql_baselines": [{"name": name, "filter_labels": dict(instance.labels), "config": config}],
    }


def generate_gke_config(cluster: ClusterInstance, *, name: str = "generated") -> Dict[str, Any]:
    baseline: Dict[str, Any] = {
        "name": name,
        "filter_labels": dict(cluster.labels),
        "cluster_config": prune(asdict(cluster.config)),
    }
    if cluster.node_pools:
        nodepool = prune(asdict(cluster.node_pools[0]))
        nodepool.pop("name", None)
        baseline["nodepool_config"] = nodepool
    return {"projects": [cluster.project], "gke_baselines": [baseline]}


def dump_config(data: Mapping[str, Any]) -> str:
    return yaml.safe_dump(dict(data), sort_keys=False, default_flow_style=False)


__all__ = [
    "AnalysisConfig",
    "ConfigError",
    "ConfigLoader",
    "build_record",
    "dump_config",
    "generate_gke_config",
    "generate_sql_config",
    "prune",
]
