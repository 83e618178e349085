"""Thread-safe accumulation of per-resource results into a drift report."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import List, Optional

from ..models import DriftReport, ResourceDrift, ResourceError


class ReportAggregator:
    """Collect resource results from worker threads and build a report.

    Tallies are derived from the collected results in :meth:`build`, never
    maintained incrementally.
    """

    def __init__(self, resource_kind: str) -> None:
        self.resource_kind = resource_kind
        self._lock = threading.Lock()
        self._resources: List[ResourceDrift] = []
        self._errors: List[ResourceError] = []

    # ------------------------------------------------------------------
    def add(self, resource: ResourceDrift) -> None:
        with self._lock:
            self._resources.append(resource)

    def add_error(self, error: ResourceError) -> None:
        with self._lock:
            self._errors.append(error)

    # ------------------------------------------------------------------
    def build(self, timestamp: Optional[datetime] = None) -> DriftReport:
        with self._lock:
            resources = sorted(self._resources, key=lambda item: (item.project, item.name))
            errors = sorted(self._errors, key=lambda item: (item.project, item.name))

        drifted = sum(1 for resource in resources if resource.has_drift)
        return DriftReport(
            resource_kind=self.resource_kind,
            timestamp=timestamp or datetime.now(timezone.utc),
            total_resources=len(resources) + len(errors),
            drifted_resources=drifted,
            resources=resources,
            errors=errors,
        )


__all__ = ["ReportAggregator"]
