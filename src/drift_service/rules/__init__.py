"""Static field rule and severity tables consulted by the comparators."""

from .field_rules import (
    GKE_CLUSTER_RULES,
    NODE_POOL_RULES,
    SQL_INSTANCE_RULES,
    FieldKind,
    FieldRule,
)
from .severity import SEVERITY_TABLE, severity_for

__all__ = [
    "FieldKind",
    "FieldRule",
    "GKE_CLUSTER_RULES",
    "NODE_POOL_RULES",
    "SEVERITY_TABLE",
    "SQL_INSTANCE_RULES",
    "severity_for",
]
