"""Validate a database schema snapshot against a schema baseline."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..models import (
    CountMismatch,
    DatabaseSchema,
    Drift,
    DriftSeverity,
    ForbiddenObject,
    MissingObject,
    OwnershipViolation,
    OwnershipViolationKind,
    SchemaBaseline,
    SchemaObjectType,
    SchemaValidationResult,
)
from .comparator import InvalidSnapshotError, format_value

FORBIDDEN_OWNER_EXPECTATION = "(any non-forbidden owner)"

KeyStrategy = Callable[[Any], Optional[str]]


def _signature(obj: Any) -> Optional[str]:
    return getattr(obj, "signature", None)


def _qualified(obj: Any) -> Optional[str]:
    return getattr(obj, "qualified_name", None)


def _bare(obj: Any) -> Optional[str]:
    return getattr(obj, "name", None)


# Lookup keys are tried in order; the first strategy that yields a hit wins.
RELATION_STRATEGIES: Tuple[KeyStrategy, ...] = (_qualified, _bare)
ROUTINE_STRATEGIES: Tuple[KeyStrategy, ...] = (_signature, _qualified, _bare)
EXTENSION_STRATEGIES: Tuple[KeyStrategy, ...] = (_bare,)


def _lookup_keys(obj: Any, strategies: Sequence[KeyStrategy]) -> List[str]:
    keys: List[str] = []
    for strategy in strategies:
        key = strategy(obj)
        if key and key not in keys:
            keys.append(key)
    return keys


def _index(objects: Iterable[Any], strategies: Sequence[KeyStrategy]) -> set[str]:
    names: set[str] = set()
    for obj in objects:
        names.update(_lookup_keys(obj, strategies))
    return names


def _find_exception(obj: Any, exceptions: Mapping[str, str], strategies: Sequence[KeyStrategy]) -> Optional[str]:
    for key in _lookup_keys(obj, strategies):
        if key in exceptions:
            return exceptions[key]
    return None


# ----------------------------------------------------------------------
def validate_schema(schema: DatabaseSchema, baseline: Optional[SchemaBaseline]) -> SchemaValidationResult:
    """Run the count, required, forbidden and ownership passes.

    Every pass runs regardless of what earlier passes found. A ``None``
    baseline produces an empty result without drift.
    """

    if schema is None:
        raise InvalidSnapshotError("cannot validate a missing schema snapshot")
    if baseline is None:
        return SchemaValidationResult(has_drift=False)

    result = SchemaValidationResult()
    _check_counts(schema, baseline, result)
    _check_required(schema, baseline, result)
    _check_forbidden(schema, baseline, result)
    _check_ownership(schema, baseline, result)

    result.has_drift = bool(
        result.count_mismatches
        or result.missing_objects
        or result.forbidden_objects
        or result.ownership_violations
    )
    return result


def _check_counts(schema: DatabaseSchema, baseline: SchemaBaseline, result: SchemaValidationResult) -> None:
    checks = (
        (SchemaObjectType.TABLE, baseline.expected_tables, schema.tables),
        (SchemaObjectType.VIEW, baseline.expected_views, schema.views),
        (SchemaObjectType.SEQUENCE, baseline.expected_sequences, schema.sequences),
        (SchemaObjectType.FUNCTION, baseline.expected_functions, schema.functions),
        (SchemaObjectType.PROCEDURE, baseline.expected_procedures, schema.procedures),
        (SchemaObjectType.ROLE, baseline.expected_roles, schema.roles),
        (SchemaObjectType.EXTENSION, baseline.expected_extensions, schema.extensions),
    )
    for object_type, expected, objects in checks:
        if expected is None:
            continue
        actual = len(objects)
        if expected != actual:
            result.count_mismatches.append(CountMismatch(object_type.plural, expected, actual))


def _check_required(schema: DatabaseSchema, baseline: SchemaBaseline, result: SchemaValidationResult) -> None:
    checks = (
        (SchemaObjectType.TABLE, baseline.required_tables, schema.tables, RELATION_STRATEGIES),
        (SchemaObjectType.VIEW, baseline.required_views, schema.views, RELATION_STRATEGIES),
        (SchemaObjectType.EXTENSION, baseline.required_extensions, schema.extensions, EXTENSION_STRATEGIES),
        (SchemaObjectType.FUNCTION, baseline.required_functions, schema.functions, ROUTINE_STRATEGIES),
        (SchemaObjectType.PROCEDURE, baseline.required_procedures, schema.procedures, ROUTINE_STRATEGIES),
    )
    for object_type, required, objects, strategies in checks:
        if not required:
            continue
        present = _index(objects, strategies)
        for name in required:
            if name not in present:
                result.missing_objects.append(MissingObject(object_type, name))


def _check_forbidden(schema: DatabaseSchema, baseline: SchemaBaseline, result: SchemaValidationResult) -> None:
    if not baseline.forbidden_tables:
        return
    present = _index(schema.tables, RELATION_STRATEGIES)
    for name in baseline.forbidden_tables:
        if name in present:
            result.forbidden_objects.append(ForbiddenObject(SchemaObjectType.TABLE, name))


def _check_ownership(schema: DatabaseSchema, baseline: SchemaBaseline, result: SchemaValidationResult) -> None:
    if baseline.expected_database_owner and schema.owner != baseline.expected_database_owner:
        result.ownership_violations.append(
            OwnershipViolation(
                object_type=SchemaObjectType.DATABASE,
                object_name=schema.database_name,
                actual_owner=schema.owner,
                expected_owner=baseline.expected_database_owner,
                kind=OwnershipViolationKind.DATABASE_OWNER,
            )
        )

    categories = (
        (SchemaObjectType.TABLE, schema.tables, baseline.expected_table_owner,
         baseline.table_owner_exceptions, RELATION_STRATEGIES),
        (SchemaObjectType.VIEW, schema.views, baseline.expected_view_owner,
         baseline.view_owner_exceptions, RELATION_STRATEGIES),
        (SchemaObjectType.SEQUENCE, schema.sequences, baseline.expected_sequence_owner,
         baseline.sequence_owner_exceptions, RELATION_STRATEGIES),
        (SchemaObjectType.FUNCTION, schema.functions, baseline.expected_function_owner,
         baseline.function_owner_exceptions, ROUTINE_STRATEGIES),
        (SchemaObjectType.PROCEDURE, schema.procedures, baseline.expected_procedure_owner,
         baseline.procedure_owner_exceptions, ROUTINE_STRATEGIES),
    )
    forbidden = set(baseline.forbidden_owners)
    allowed = list(baseline.allowed_owners)

    for object_type, objects, expected_owner, exceptions, strategies in categories:
        for obj in objects:
            result.ownership_violations.extend(
                _owner_violations(object_type, obj, expected_owner, exceptions or {}, strategies, forbidden, allowed)
            )


def _owner_violations(
    object_type: SchemaObjectType,
    obj: Any,
    expected_owner: str,
    exceptions: Mapping[str, str],
    strategies: Sequence[KeyStrategy],
    forbidden: set[str],
    allowed: List[str],
) -> List[OwnershipViolation]:
    name = getattr(obj, "signature", None) or obj.qualified_name
    owner = obj.owner

    def violation(expected: str, kind: OwnershipViolationKind) -> OwnershipViolation:
        return OwnershipViolation(object_type, name, owner, expected, kind)

    violations: List[OwnershipViolation] = []
    exception_owner = _find_exception(obj, exceptions, strategies)
    if owner in forbidden:
        violations.append(violation(FORBIDDEN_OWNER_EXPECTATION, OwnershipViolationKind.FORBIDDEN_OWNER))
    elif exception_owner is not None:
        if owner != exception_owner:
            violations.append(violation(exception_owner, OwnershipViolationKind.WRONG_OWNER))
    elif expected_owner and owner != expected_owner:
        violations.append(violation(expected_owner, OwnershipViolationKind.WRONG_OWNER))

    # The whitelist is checked independently and may report the same object twice.
    if allowed and owner not in allowed:
        violations.append(violation(f"one of: {format_value(allowed)}", OwnershipViolationKind.WRONG_OWNER))
    return violations


# ----------------------------------------------------------------------
def format_validation_result(result: SchemaValidationResult) -> str:
    """Render a validation result as human-readable text."""

    if not result.has_drift:
        return "No schema drift detected - database matches baseline expectations"

    lines: List[str] = ["SCHEMA DRIFT DETECTED:", ""]

    if result.count_mismatches:
        lines.append("Count Mismatches:")
        for mismatch in result.count_mismatches:
            lines.append(
                f"  {mismatch.object_type}: Expected {mismatch.expected}, "
                f"Found {mismatch.actual} (diff: {mismatch.diff:+d})"
            )
        lines.append("")

    if result.missing_objects:
        lines.append("Missing Required Objects:")
        for missing in result.missing_objects:
            lines.append(f"  [MISSING] {missing.object_type.value}: {missing.name}")
        lines.append("")

    if result.forbidden_objects:
        lines.append("Forbidden Objects Found:")
        for forbidden in result.forbidden_objects:
            lines.append(f"  [ERROR] {forbidden.object_type.value}: {forbidden.name} (should not exist)")
        lines.append("")

    if result.ownership_violations:
        lines.append("Ownership Violations:")
        for item in result.ownership_violations:
            label = f"{item.object_type.value}: {item.object_name}"
            if item.kind is OwnershipViolationKind.FORBIDDEN_OWNER:
                lines.append(f"  [ERROR] {label} - Forbidden owner: {item.actual_owner}")
            elif item.kind is OwnershipViolationKind.DATABASE_OWNER:
                lines.append(f"  [ERROR] {label} - Owner: {item.actual_owner}, Expected: {item.expected_owner}")
            else:
                lines.append(f"  [WARNING] {label} - Owner: {item.actual_owner}, Expected: {item.expected_owner}")
        lines.append("")

    return "\n".join(lines)


_OWNERSHIP_SEVERITY: Dict[OwnershipViolationKind, DriftSeverity] = {
    OwnershipViolationKind.DATABASE_OWNER: DriftSeverity.HIGH,
    OwnershipViolationKind.FORBIDDEN_OWNER: DriftSeverity.HIGH,
    OwnershipViolationKind.WRONG_OWNER: DriftSeverity.MEDIUM,
}


def schema_drifts(result: SchemaValidationResult) -> List[Drift]:
    """Map schema findings onto drift records so they can be aggregated."""

    drifts: List[Drift] = []
    for mismatch in result.count_mismatches:
        drifts.append(
            Drift(
                field=f"schema.count.{mismatch.object_type.lower()}",
                expected=str(mismatch.expected),
                actual=str(mismatch.actual),
                severity=DriftSeverity.MEDIUM,
            )
        )
    for missing in result.missing_objects:
        drifts.append(
            Drift(
                field=f"schema.required.{missing.object_type.value.lower()}",
                expected=missing.name,
                actual="missing",
                severity=DriftSeverity.HIGH,
            )
        )
    for forbidden in result.forbidden_objects:
        drifts.append(
            Drift(
                field=f"schema.forbidden.{forbidden.object_type.value.lower()}",
                expected="absent",
                actual=forbidden.name,
                severity=DriftSeverity.HIGH,
            )
        )
    for violation in result.ownership_violations:
        drifts.append(
            Drift(
                field=f"schema.owner.{violation.object_type.value.lower()}.{violation.object_name}",
                expected=violation.expected_owner,
                actual=violation.actual_owner,
                severity=_OWNERSHIP_SEVERITY[violation.kind],
            )
        )
    return drifts


__all__ = [
    "FORBIDDEN_OWNER_EXPECTATION",
    "format_validation_result",
    "schema_drifts",
    "validate_schema",
]
