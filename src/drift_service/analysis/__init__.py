"""Drift detection engine: matching, comparison, schema validation and reporting."""

from .advisory import best_practice_recommendations, recommendations_for
from .aggregator import ReportAggregator
from .comparator import (
    FieldDriftComparator,
    InvalidSnapshotError,
    compare_cluster,
    compare_instance,
    format_value,
    major_minor,
)
from .matcher import MatchResult, filter_by_labels, match_baselines, match_labels
from .schema_validator import format_validation_result, schema_drifts, validate_schema

__all__ = [
    "FieldDriftComparator",
    "InvalidSnapshotError",
    "MatchResult",
    "ReportAggregator",
    "best_practice_recommendations",
    "compare_cluster",
    "compare_instance",
    "filter_by_labels",
    "format_validation_result",
    "format_value",
    "major_minor",
    "match_baselines",
    "match_labels",
    "recommendations_for",
    "schema_drifts",
    "validate_schema",
]
