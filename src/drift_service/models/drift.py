"""Drift models shared by the comparators, aggregator and reporting layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional


class DriftSeverity(str, Enum):
    """Severity levels assigned to detected drift."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: object) -> Optional["DriftSeverity"]:
        """Return the severity named by ``value`` or ``None`` when unknown."""

        if isinstance(value, DriftSeverity):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


_SEVERITY_RANK = {
    DriftSeverity.LOW: 0,
    DriftSeverity.MEDIUM: 1,
    DriftSeverity.HIGH: 2,
    DriftSeverity.CRITICAL: 3,
}


@dataclass(frozen=True, slots=True)
class Drift:
    """A single difference between an observed value and its baseline."""

    field: str
    expected: str
    actual: str
    severity: DriftSeverity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "expected": self.expected,
            "actual": self.actual,
            "severity": self.severity.value,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Drift":
        severity = DriftSeverity.parse(payload.get("severity")) or DriftSeverity.LOW
        return cls(
            field=str(payload.get("field", "")),
            expected=str(payload.get("expected", "")),
            actual=str(payload.get("actual", "")),
            severity=severity,
        )


@dataclass(slots=True)
class SeverityCounts:
    """Tally of drifts per severity."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @classmethod
    def from_drifts(cls, drifts: Iterable[Drift]) -> "SeverityCounts":
        counts = cls()
        for drift in drifts:
            counts.add(drift.severity)
        return counts

    def add(self, severity: DriftSeverity, amount: int = 1) -> None:
        current = getattr(self, severity.value)
        setattr(self, severity.value, current + amount)

    def merge(self, other: "SeverityCounts") -> None:
        for severity in DriftSeverity:
            self.add(severity, getattr(other, severity.value))

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low

    def to_dict(self) -> Dict[str, int]:
        return {
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
        }
