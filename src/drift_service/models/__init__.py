"""Data models for resource snapshots, baselines and drift findings."""

from .baseline import (
    BaselineValidationError,
    DatabaseConnection,
    GKEBaseline,
    SchemaBaseline,
    SQLBaseline,
)
from .drift import Drift, DriftSeverity, SeverityCounts
from .gke import (
    AddonsConfig,
    AutoscalingConfig,
    ClusterConfig,
    ClusterInstance,
    ClusterMaintenanceWindow,
    IPAllocationPolicy,
    LoggingConfig,
    MonitoringConfig,
    NodePoolConfig,
)
from .report import DriftReport, ResourceDrift, ResourceError
from .schema import (
    ColumnInfo,
    ConstraintInfo,
    CountMismatch,
    DatabaseSchema,
    Extension,
    ForbiddenObject,
    FunctionInfo,
    IndexInfo,
    MissingObject,
    OwnershipViolation,
    OwnershipViolationKind,
    ProcedureInfo,
    Role,
    SchemaObjectType,
    SchemaValidationResult,
    SequenceInfo,
    TableInfo,
    ViewInfo,
)
from .sql import (
    DatabaseConfig,
    DatabaseInstance,
    InsightsConfig,
    IPConfiguration,
    MaintenanceWindow,
    Settings,
)

__all__ = [
    "AddonsConfig",
    "AutoscalingConfig",
    "BaselineValidationError",
    "ClusterConfig",
    "ClusterInstance",
    "ClusterMaintenanceWindow",
    "ColumnInfo",
    "ConstraintInfo",
    "CountMismatch",
    "DatabaseConfig",
    "DatabaseConnection",
    "DatabaseInstance",
    "DatabaseSchema",
    "Drift",
    "DriftReport",
    "DriftSeverity",
    "Extension",
    "ForbiddenObject",
    "FunctionInfo",
    "GKEBaseline",
    "IndexInfo",
    "InsightsConfig",
    "IPAllocationPolicy",
    "IPConfiguration",
    "LoggingConfig",
    "MaintenanceWindow",
    "MissingObject",
    "MonitoringConfig",
    "NodePoolConfig",
    "OwnershipViolation",
    "OwnershipViolationKind",
    "ProcedureInfo",
    "ResourceDrift",
    "ResourceError",
    "Role",
    "SchemaBaseline",
    "SchemaObjectType",
    "SchemaValidationResult",
    "SequenceInfo",
    "Settings",
    "SeverityCounts",
    "SQLBaseline",
    "TableInfo",
    "ViewInfo",
]
