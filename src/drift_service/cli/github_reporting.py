"""Helpers for publishing drift reports to GitHub Actions surfaces."""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Iterable, Mapping, MutableMapping, Sequence

SEVERITY_ORDER = ["critical", "high", "medium", "low"]
ANNOTATION_LEVELS = {
    "critical": "error",
    "high": "error",
    "medium": "warning",
    "low": "notice",
}
DISPLAY_LIMIT = 10


def _normalize_counts(raw_counts: Mapping[str, int] | None) -> MutableMapping[str, int]:
    counts: MutableMapping[str, int] = {severity: 0 for severity in SEVERITY_ORDER}
    if not raw_counts:
        return counts
    for severity, value in raw_counts.items():
        severity_key = str(severity).lower()
        if severity_key in counts:
            counts[severity_key] = int(value)
    return counts


def _resource_label(resource: Mapping[str, object]) -> str:
    project = str(resource.get("project", "")).strip()
    name = str(resource.get("name", "")).strip()
    if project and name:
        return f"{project}/{name}"
    return project or name


def format_summary(report: Mapping[str, object]) -> str:
    """Render a Markdown job summary for the provided drift report."""

    summary: Mapping[str, object] = report.get("summary") or {}
    resources: Sequence[Mapping[str, object]] = report.get("resources") or []
    errors: Sequence[Mapping[str, object]] = report.get("errors") or []

    total = int(report.get("total_resources", 0))
    drifted = int(report.get("drifted_resources", 0))
    compliance = float(summary.get("compliance_rate", 100.0))
    highest = summary.get("highest_severity")
    highest_display = str(highest).title() if highest else "None"
    kind = str(report.get("resource_kind", "")).replace("_", " ")

    counts = _normalize_counts(summary.get("counts"))

    lines: list[str] = [
        "# Drift Analysis Report",
        "",
        f"**Resource kind:** {kind or 'unknown'}",
        f"**Resources analysed:** {total}",
        f"**Resources with drift:** {drifted}",
        f"**Compliance rate:** {compliance:.1f}%",
        f"**Highest severity:** {highest_display}",
        "",
        "| Severity | Drifts |",
        "| --- | ---: |",
    ]

    for severity in SEVERITY_ORDER:
        lines.append(f"| {severity.title()} | {counts[severity]} |")

    drifted_resources = [resource for resource in resources if resource.get("drifts")]
    if drifted_resources:
        lines.extend(["", "## Drifted resources", ""])
        for resource in drifted_resources[:DISPLAY_LIMIT]:
            drifts: Sequence[Mapping[str, object]] = resource.get("drifts") or []
            baseline = resource.get("baseline")
            heading = f"- `{_resource_label(resource)}` ({len(drifts)} drift(s)"
            heading += f", baseline `{baseline}`)" if baseline else ")"
            lines.append(heading)
            for drift in drifts:
                severity = str(drift.get("severity", "low")).lower()
                lines.append(
                    f"  - **{severity.title()}** `{drift.get('field', '')}`: "
                    f"expected `{drift.get('expected', '')}`, found `{drift.get('actual', '')}`"
                )

        remaining = len(drifted_resources) - DISPLAY_LIMIT
        if remaining > 0:
            lines.append(f"- ...and {remaining} more resources with drift.")

    if errors:
        lines.extend(["", "## Errors", ""])
        for error in errors:
            lines.append(f"- `{_resource_label(error)}`: {error.get('message', '')}")

    lines.append("")
    return "\n".join(lines)


def iter_annotations(report: Mapping[str, object]) -> Iterable[str]:
    """Generate GitHub Actions workflow command annotations for each drift."""

    resources: Sequence[Mapping[str, object]] = report.get("resources") or []
    for resource in resources:
        label = _resource_label(resource)
        for drift in resource.get("drifts") or []:
            severity = str(drift.get("severity", "low")).lower()
            level = ANNOTATION_LEVELS.get(severity, "notice")
            field = str(drift.get("field", "")).strip()

            title_parts = [severity.title()]
            if field:
                title_parts.append(field)
            title = " - ".join(title_parts)

            body = (
                f"{label}: expected {drift.get('expected', '')}, found {drift.get('actual', '')}"
            )
            body = body.replace("%", "%25").replace("\r", "").replace("\n", "%0A")
            title = title.replace("%", "%25").replace(",", "%2C").replace(":", "%3A")

            yield f"::{level} title={title}::{body}"

    for error in report.get("errors") or []:
        message = str(error.get("message", "")).replace("%", "%25").replace("\n", "%0A")
        yield f"::error title=Analysis error::{_resource_label(error)}: {message}"


def _load_report(path: Path) -> Mapping[str, object]:
    raw = path.read_text(encoding="utf-8-sig")
    if not raw.strip():
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse report JSON from '{path}': {exc.msg}.") from exc

    if not isinstance(data, Mapping):
        raise ValueError("Report JSON must be an object.")
    return data


def _write_summary(report: Mapping[str, object], destination: Path | None) -> None:
    if destination is None:
        return

    content = format_summary(report)
    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("a", encoding="utf-8") as handle:
        handle.write(content)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Publish a drift report as GitHub job summary and annotations."
    )
    parser.add_argument("report", type=Path, help="Path to the drift report JSON file.")
    parser.add_argument(
        "--summary-path",
        type=Path,
        default=None,
        help="Optional explicit path for the GitHub job summary output.",
    )

    args = parser.parse_args(argv)

    summary_path = args.summary_path
    if summary_path is None:
        summary_env = os.getenv("GITHUB_STEP_SUMMARY")
        if summary_env:
            summary_path = Path(summary_env)

    report = _load_report(args.report)

    _write_summary(report, summary_path)

    for command in iter_annotations(report):
        print(command)

    return 0


def run() -> None:  # pragma: no cover - wrapper for console entry point
    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover - module execution guard
    run()
