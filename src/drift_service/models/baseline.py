"""Baseline specifications and database connection descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .gke import ClusterConfig, NodePoolConfig
from .sql import DatabaseConfig


class BaselineValidationError(ValueError):
    """Raised when a baseline or connection descriptor is incomplete."""


@dataclass(frozen=True, slots=True)
class SQLBaseline:
    """Expected Cloud SQL instance configuration for instances matching ``filter_labels``."""

    name: str
    filter_labels: Dict[str, str] = field(default_factory=dict)
    config: Optional[DatabaseConfig] = None

    def validate(self) -> None:
        if not self.name:
            raise BaselineValidationError("baseline name is required")


@dataclass(frozen=True, slots=True)
class GKEBaseline:
    """Expected cluster and node pool configuration for matching clusters."""

    name: str
    filter_labels: Dict[str, str] = field(default_factory=dict)
    cluster_config: Optional[ClusterConfig] = None
    nodepool_config: Optional[NodePoolConfig] = None

    def validate(self) -> None:
        if not self.name:
            raise BaselineValidationError("baseline name is required")


@dataclass(frozen=True, slots=True)
class SchemaBaseline:
    """Expectations for the catalog objects of one database.

    Counts left as ``None``, empty lists and empty owner strings are not
    checked.
    """

    expected_tables: Optional[int] = None
    expected_views: Optional[int] = None
    expected_sequences: Optional[int] = None
    expected_functions: Optional[int] = None
    expected_procedures: Optional[int] = None
    expected_roles: Optional[int] = None
    expected_extensions: Optional[int] = None

    required_tables: List[str] = field(default_factory=list)
    required_views: List[str] = field(default_factory=list)
    required_extensions: List[str] = field(default_factory=list)
    required_functions: List[str] = field(default_factory=list)
    required_procedures: List[str] = field(default_factory=list)
    forbidden_tables: List[str] = field(default_factory=list)

    expected_database_owner: str = ""
    expected_table_owner: str = ""
    expected_view_owner: str = ""
    expected_sequence_owner: str = ""
    expected_function_owner: str = ""
    expected_procedure_owner: str = ""
    allowed_owners: List[str] = field(default_factory=list)
    forbidden_owners: List[str] = field(default_factory=list)

    table_owner_exceptions: Dict[str, str] = field(default_factory=dict)
    view_owner_exceptions: Dict[str, str] = field(default_factory=dict)
    sequence_owner_exceptions: Dict[str, str] = field(default_factory=dict)
    function_owner_exceptions: Dict[str, str] = field(default_factory=dict)
    procedure_owner_exceptions: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DatabaseConnection:
    """A database whose schema is inspected and validated."""

    name: str
    database: str = ""
    username: str = ""
    password: str = ""
    instance_connection_name: str = ""
    use_private_ip: bool = False
    project: str = ""
    region: str = ""
    instance_name: str = ""
    schema_file: Optional[str] = None
    schema_baseline: Optional[SchemaBaseline] = None

    @property
    def connection_name(self) -> str:
        """Return ``project:region:instance`` from the explicit name or its parts."""

        if self.instance_connection_name:
            return self.instance_connection_name
        if self.project and self.region and self.instance_name:
            return f"{self.project}:{self.region}:{self.instance_name}"
        return ""

    def validate(self) -> None:
        if not self.name:
            raise BaselineValidationError("connection name is required")
        if not self.connection_name:
            raise BaselineValidationError(
                "must provide either instance_connection_name or project+region+instance_name"
            )
        if not self.database:
            raise BaselineValidationError("database name is required")
        if not self.username:
            raise BaselineValidationError("username is required")
