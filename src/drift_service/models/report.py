"""Drift report models produced by the aggregator and consumed by renderers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from .drift import Drift, DriftSeverity, SeverityCounts


@dataclass(slots=True)
class ResourceDrift:
    """Drift analysis outcome for one resource."""

    kind: str
    project: str
    name: str
    location: str = ""
    state: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    baseline: Optional[str] = None
    drifts: List[Drift] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return f"{self.project}/{self.name}"

    @property
    def has_drift(self) -> bool:
        return bool(self.drifts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "project": self.project,
            "name": self.name,
            "location": self.location,
            "state": self.state,
            "labels": dict(self.labels),
            "baseline": self.baseline,
            "drifts": [drift.to_dict() for drift in self.drifts],
            "recommendations": list(self.recommendations),
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ResourceDrift":
        return cls(
            kind=str(payload.get("kind", "")),
            project=str(payload.get("project", "")),
            name=str(payload.get("name", "")),
            location=str(payload.get("location") or ""),
            state=str(payload.get("state") or ""),
            labels=dict(payload.get("labels") or {}),
            baseline=payload.get("baseline"),
            drifts=[Drift.from_dict(item) for item in payload.get("drifts") or []],
            recommendations=[str(item) for item in payload.get("recommendations") or []],
            details=dict(payload.get("details") or {}),
        )


@dataclass(frozen=True, slots=True)
class ResourceError:
    """A resource that could not be analysed because a collaborator failed."""

    kind: str
    project: str
    name: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "project": self.project,
            "name": self.name,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ResourceError":
        return cls(
            kind=str(payload.get("kind", "")),
            project=str(payload.get("project", "")),
            name=str(payload.get("name", "")),
            message=str(payload.get("message", "")),
        )


@dataclass(slots=True)
class DriftReport:
    """Collection of per-resource drift results plus summary figures."""

    resource_kind: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    total_resources: int = 0
    drifted_resources: int = 0
    resources: List[ResourceDrift] = field(default_factory=list)
    errors: List[ResourceError] = field(default_factory=list)

    def severity_counts(self) -> SeverityCounts:
        counts = SeverityCounts()
        for resource in self.resources:
            counts.merge(SeverityCounts.from_drifts(resource.drifts))
        return counts

    @property
    def compliance_rate(self) -> float:
        if self.total_resources <= 0:
            return 100.0
        # Errored resources were never verified and cannot count as compliant.
        compliant = max(0, self.total_resources - self.drifted_resources - len(self.errors))
        return compliant / self.total_resources * 100

    @property
    def highest_severity(self) -> DriftSeverity | None:
        severities = [drift.severity for resource in self.resources for drift in resource.drifts]
        if not severities:
            return None
        return max(severities, key=lambda severity: severity.rank)

    def to_dict(self) -> Dict[str, Any]:
        highest = self.highest_severity
        return {
            "timestamp": self.timestamp.isoformat(),
            "resource_kind": self.resource_kind,
            "total_resources": self.total_resources,
            "drifted_resources": self.drifted_resources,
            "summary": {
                "compliance_rate": round(self.compliance_rate, 1),
                "highest_severity": highest.value if highest else None,
                "counts": self.severity_counts().to_dict(),
            },
            "resources": [resource.to_dict() for resource in self.resources],
            "errors": [error.to_dict() for error in self.errors],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DriftReport":
        raw_timestamp = payload.get("timestamp")
        if isinstance(raw_timestamp, datetime):
            timestamp = raw_timestamp
        elif isinstance(raw_timestamp, str) and raw_timestamp:
            timestamp = datetime.fromisoformat(raw_timestamp)
        else:
            timestamp = datetime.now(timezone.utc)

        return cls(
            resource_kind=str(payload.get("resource_kind", "")),
            timestamp=timestamp,
            total_resources=int(payload.get("total_resources", 0)),
            drifted_resources=int(payload.get("drifted_resources", 0)),
            resources=[ResourceDrift.from_dict(item) for item in payload.get("resources") or []],
            errors=[ResourceError.from_dict(item) for item in payload.get("errors") or []],
        )
