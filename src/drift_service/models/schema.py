"""Database schema snapshots and schema validation findings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class SchemaObjectType(str, Enum):
    """Catalog object categories inspected in a PostgreSQL database."""

    DATABASE = "Database"
    TABLE = "Table"
    VIEW = "View"
    SEQUENCE = "Sequence"
    FUNCTION = "Function"
    PROCEDURE = "Procedure"
    ROLE = "Role"
    EXTENSION = "Extension"

    @property
    def plural(self) -> str:
        return f"{self.value}s"


class OwnershipViolationKind(str, Enum):
    DATABASE_OWNER = "database_owner"
    FORBIDDEN_OWNER = "forbidden_owner"
    WRONG_OWNER = "wrong_owner"


# -- snapshot -----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Role:
    name: str
    is_superuser: bool = False
    can_login: bool = False
    can_create_db: bool = False
    can_create_role: bool = False
    member_of: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ColumnInfo:
    name: str
    data_type: str = ""
    is_nullable: bool = True
    default_value: Optional[str] = None
    is_identity: bool = False


@dataclass(frozen=True, slots=True)
class ConstraintInfo:
    name: str
    type: str = ""
    definition: str = ""


@dataclass(frozen=True, slots=True)
class IndexInfo:
    name: str
    columns: List[str] = field(default_factory=list)
    is_unique: bool = False
    is_primary: bool = False
    definition: str = ""


@dataclass(frozen=True, slots=True)
class TableInfo:
    schema: str
    name: str
    owner: str = ""
    row_count: int = 0
    size_bytes: int = 0
    columns: List[ColumnInfo] = field(default_factory=list)
    constraints: List[ConstraintInfo] = field(default_factory=list)
    indexes: List[IndexInfo] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"


@dataclass(frozen=True, slots=True)
class ViewInfo:
    schema: str
    name: str
    owner: str = ""
    definition: str = ""

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"


@dataclass(frozen=True, slots=True)
class SequenceInfo:
    schema: str
    name: str
    owner: str = ""
    data_type: str = ""
    start_value: int = 0
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    increment: int = 1

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"


@dataclass(frozen=True, slots=True)
class FunctionInfo:
    schema: str
    name: str
    owner: str = ""
    language: str = ""
    return_type: str = ""
    arguments: str = ""
    definition: str = ""

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"

    @property
    def signature(self) -> str:
        return f"{self.schema}.{self.name}({self.arguments})"


@dataclass(frozen=True, slots=True)
class ProcedureInfo:
    schema: str
    name: str
    owner: str = ""
    language: str = ""
    arguments: str = ""
    definition: str = ""

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"

    @property
    def signature(self) -> str:
        return f"{self.schema}.{self.name}({self.arguments})"


@dataclass(frozen=True, slots=True)
class Extension:
    name: str
    version: str = ""
    schema: str = ""


@dataclass(frozen=True, slots=True)
class DatabaseSchema:
    """Catalog snapshot of a single database."""

    database_name: str
    owner: str = ""
    encoding: str = ""
    collation: str = ""
    roles: List[Role] = field(default_factory=list)
    tables: List[TableInfo] = field(default_factory=list)
    views: List[ViewInfo] = field(default_factory=list)
    sequences: List[SequenceInfo] = field(default_factory=list)
    functions: List[FunctionInfo] = field(default_factory=list)
    procedures: List[ProcedureInfo] = field(default_factory=list)
    extensions: List[Extension] = field(default_factory=list)


# -- validation findings ------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CountMismatch:
    object_type: str
    expected: int
    actual: int

    @property
    def diff(self) -> int:
        return self.actual - self.expected

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object_type": self.object_type,
            "expected": self.expected,
            "actual": self.actual,
            "diff": self.diff,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CountMismatch":
        return cls(str(payload.get("object_type", "")), int(payload.get("expected", 0)), int(payload.get("actual", 0)))


@dataclass(frozen=True, slots=True)
class MissingObject:
    object_type: SchemaObjectType
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"object_type": self.object_type.value, "name": self.name}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "MissingObject":
        return cls(SchemaObjectType(payload["object_type"]), str(payload.get("name", "")))


@dataclass(frozen=True, slots=True)
class ForbiddenObject:
    object_type: SchemaObjectType
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"object_type": self.object_type.value, "name": self.name}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ForbiddenObject":
        return cls(SchemaObjectType(payload["object_type"]), str(payload.get("name", "")))


@dataclass(frozen=True, slots=True)
class OwnershipViolation:
    object_type: SchemaObjectType
    object_name: str
    actual_owner: str
    expected_owner: str
    kind: OwnershipViolationKind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object_type": self.object_type.value,
            "object_name": self.object_name,
            "actual_owner": self.actual_owner,
            "expected_owner": self.expected_owner,
            "kind": self.kind.value,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "OwnershipViolation":
        return cls(
            object_type=SchemaObjectType(payload["object_type"]),
            object_name=str(payload.get("object_name", "")),
            actual_owner=str(payload.get("actual_owner", "")),
            expected_owner=str(payload.get("expected_owner", "")),
            kind=OwnershipViolationKind(payload["kind"]),
        )


@dataclass(slots=True)
class SchemaValidationResult:
    """Findings of validating a schema snapshot against its baseline."""

    has_drift: bool = False
    count_mismatches: List[CountMismatch] = field(default_factory=list)
    missing_objects: List[MissingObject] = field(default_factory=list)
    forbidden_objects: List[ForbiddenObject] = field(default_factory=list)
    ownership_violations: List[OwnershipViolation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_drift": self.has_drift,
            "count_mismatches": [item.to_dict() for item in self.count_mismatches],
            "missing_objects": [item.to_dict() for item in self.missing_objects],
            "forbidden_objects": [item.to_dict() for item in self.forbidden_objects],
            "ownership_violations": [item.to_dict() for item in self.ownership_violations],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SchemaValidationResult":
        return cls(
            has_drift=bool(payload.get("has_drift", False)),
            count_mismatches=[CountMismatch.from_dict(item) for item in payload.get("count_mismatches") or []],
            missing_objects=[MissingObject.from_dict(item) for item in payload.get("missing_objects") or []],
            forbidden_objects=[ForbiddenObject.from_dict(item) for item in payload.get("forbidden_objects") or []],
            ownership_violations=[
                OwnershipViolation.from_dict(item) for item in payload.get("ownership_violations") or []
            ],
        )
