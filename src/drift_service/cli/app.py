"""Command-line interface implementation for the drift analysis tooling."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Sequence

import yaml

from ..adapters import InventoryError, InventoryLoader
from ..analysis import filter_by_labels, format_validation_result
from ..config import (
    AnalysisConfig,
    ConfigError,
    ConfigLoader,
    dump_config,
    generate_gke_config,
    generate_sql_config,
)
from ..models import DriftReport, DriftSeverity, SchemaValidationResult
from ..service import DEFAULT_MAX_WORKERS, SCHEMA_KIND, DriftAnalysisService
from .github_reporting import format_summary

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("table", "json", "yaml", "markdown")


def render_table(report: DriftReport) -> str:
    """Render drifts as a simple text table for terminal output."""

    lines = [
        f"Analyzed {report.total_resources} resource(s): {report.drifted_resources} with drift, "
        f"compliance {report.compliance_rate:.1f}%"
    ]

    headers = ("Severity", "Resource", "Field", "Expected", "Actual")
    rows = [headers]
    for resource in report.resources:
        for drift in resource.drifts:
            rows.append((drift.severity.value, resource.key, drift.field, drift.expected, drift.actual))

    if len(rows) == 1:
        lines.append("No drift detected.")
    else:
        widths = [max(len(str(row[idx])) for row in rows) for idx in range(len(headers))]

        def format_row(values: tuple[str, str, str, str, str]) -> str:
            return "  ".join(value.ljust(width) for value, width in zip(values, widths, strict=True)).rstrip()

        lines.append("")
        lines.append(format_row(headers))
        lines.append("  ".join("=" * width for width in widths))
        for row in rows[1:]:
            lines.append(format_row(row))

    for resource in report.resources:
        if resource.kind == SCHEMA_KIND and resource.has_drift:
            validation = SchemaValidationResult.from_dict(resource.details.get("validation") or {})
            lines.extend(["", f"{resource.name}:", format_validation_result(validation)])

    if report.errors:
        lines.extend(["", "Errors:"])
        for error in report.errors:
            target = f"{error.project}/{error.name}" if error.name else error.project
            lines.append(f"  {target}: {error.message}")

    return "\n".join(lines)


def load_report(path: Path) -> DriftReport:
    """Read a JSON report written with ``--format json``."""

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse report JSON from '{path}': {exc.msg}.") from exc
    if not isinstance(data, Mapping):
        raise ValueError("Report JSON must be an object.")
    return DriftReport.from_dict(data)


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""

    parser = argparse.ArgumentParser(
        prog="drift-analysis",
        description="Detect configuration drift of GCP resources against declarative baselines.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v for info, -vv for debug). Logs go to stderr.",
    )
    subparsers = parser.add_subparsers(dest="command")

    sql_parser = subparsers.add_parser("sql", help="Analyse Cloud SQL PostgreSQL instances.")
    _add_common_arguments(sql_parser)
    sql_parser.add_argument(
        "--instances-json",
        type=Path,
        default=None,
        help="Pre-exported `gcloud sql instances list --format=json` output to analyse instead of calling gcloud.",
    )
    sql_parser.add_argument(
        "--generate-config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write a baseline config generated from the first discovered instance and exit.",
    )

    gke_parser = subparsers.add_parser("gke", help="Analyse GKE clusters and node pools.")
    _add_common_arguments(gke_parser)
    gke_parser.add_argument(
        "--clusters-json",
        type=Path,
        default=None,
        help="Pre-exported `gcloud container clusters list --format=json` output.",
    )
    gke_parser.add_argument(
        "--generate-config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write a baseline config generated from the first discovered cluster and exit.",
    )

    schema_parser = subparsers.add_parser(
        "schema", help="Validate database schema snapshots against schema baselines."
    )
    _add_output_arguments(schema_parser)
    schema_parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="YAML config file with database_connections and their schema baselines.",
    )
    schema_parser.add_argument(
        "--max-workers",
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help="Maximum number of resources analysed concurrently.",
    )

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file with projects and baselines.",
    )
    parser.add_argument(
        "--projects",
        default=None,
        help="Comma-separated project ids; overrides the projects listed in the config.",
    )
    parser.add_argument(
        "--filter-role",
        default=None,
        help="Only analyse resources whose 'role' label equals this value.",
    )
    parser.add_argument(
        "--filter-label",
        dest="filter_labels",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Only analyse resources carrying this label. May be repeated.",
    )
    parser.add_argument(
        "--gcloud-bin",
        default="gcloud",
        help="Name or path of the gcloud executable used for discovery.",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help="Maximum number of resources analysed concurrently.",
    )
    _add_output_arguments(parser)


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--fail-on",
        choices=[severity.value for severity in DriftSeverity],
        default=DriftSeverity.HIGH.value,
        help="Fail the run when drift at or above the provided severity is present.",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="table",
        help="Output format for the drift report.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the report to this file instead of stdout.",
    )


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_label_values(values: Sequence[str] | None, role: str | None) -> Dict[str, str]:
    labels: Dict[str, str] = {}
    for value in values or []:
        if "=" not in value:
            raise ValueError(f"Labels must be in KEY=VALUE form: {value}")
        key, raw = value.split("=", 1)
        labels[key] = raw
    if role:
        labels["role"] = role
    return labels


def _load_config(path: Path | None) -> AnalysisConfig:
    if path is None:
        return AnalysisConfig()
    return ConfigLoader().load(path)


def _resolve_projects(args: argparse.Namespace, config: AnalysisConfig) -> list[str]:
    if args.projects:
        return [project.strip() for project in args.projects.split(",") if project.strip()]
    return list(config.projects)


def _format_report(
    report: DriftReport,
    *,
    fail_on: DriftSeverity,
    output_format: str,
) -> tuple[str, bool]:
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"format must be one of {', '.join(OUTPUT_FORMATS)}")

    highest = report.highest_severity
    should_fail = highest is not None and highest.rank >= fail_on.rank

    if output_format == "json":
        output = json.dumps(report.to_dict(), indent=2)
    elif output_format == "yaml":
        output = yaml.safe_dump(report.to_dict(), sort_keys=False, default_flow_style=False)
    elif output_format == "markdown":
        output = format_summary(report.to_dict())
    else:
        output = render_table(report)

    return output, should_fail


def _emit(output: str, destination: Path | None) -> None:
    if destination is None:
        print(output)
        return
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(output if output.endswith("\n") else output + "\n", encoding="utf-8")
    logger.info("Report written to %s", destination)


def _write_generated(data: Mapping[str, Any], destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(dump_config(data), encoding="utf-8")
    print(f"Baseline config written to {destination}")


def _finish(report: DriftReport, args: argparse.Namespace) -> int:
    output, should_fail = _format_report(
        report,
        fail_on=DriftSeverity(args.fail_on),
        output_format=args.format,
    )
    _emit(output, args.output)
    return 1 if should_fail else 0


def _handle_sql(args: argparse.Namespace) -> int:
    try:
        labels = _parse_label_values(args.filter_labels, args.filter_role)
        config = _load_config(args.config)
    except (ValueError, ConfigError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    projects = _resolve_projects(args, config)
    if not projects:
        print("Error: no projects given; use --projects or list them in the config", file=sys.stderr)
        return 2

    inventory = InventoryLoader(gcloud_bin=args.gcloud_bin, instances_json_path=args.instances_json)
    service = DriftAnalysisService(inventory=inventory, max_workers=args.max_workers)

    if args.generate_config:
        return _generate(args.generate_config, projects, labels, inventory.load_instances, generate_sql_config)

    report = service.scan_instances(projects, config.sql_baselines, filter_labels=labels)
    return _finish(report, args)


def _handle_gke(args: argparse.Namespace) -> int:
    try:
        labels = _parse_label_values(args.filter_labels, args.filter_role)
        config = _load_config(args.config)
    except (ValueError, ConfigError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    projects = _resolve_projects(args, config)
    if not projects:
        print("Error: no projects given; use --projects or list them in the config", file=sys.stderr)
        return 2

    inventory = InventoryLoader(gcloud_bin=args.gcloud_bin, clusters_json_path=args.clusters_json)
    service = DriftAnalysisService(inventory=inventory, max_workers=args.max_workers)

    if args.generate_config:
        return _generate(args.generate_config, projects, labels, inventory.load_clusters, generate_gke_config)

    report = service.scan_clusters(projects, config.gke_baselines, filter_labels=labels)
    return _finish(report, args)


def _generate(
    destination: Path,
    projects: Sequence[str],
    labels: Mapping[str, str],
    loader: Callable[[str], Sequence[Any]],
    generator: Callable[[Any], Mapping[str, Any]],
) -> int:
    for project in projects:
        try:
            resources = filter_by_labels(loader(project), labels)
        except InventoryError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2
        if resources:
            _write_generated(generator(resources[0]), destination)
            return 0

    print("Error: no resources discovered to generate a baseline from", file=sys.stderr)
    return 2


def _handle_schema(args: argparse.Namespace) -> int:
    try:
        config = ConfigLoader().load(args.config)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if not config.database_connections:
        print("Error: no database_connections defined in the config", file=sys.stderr)
        return 2

    service = DriftAnalysisService(max_workers=args.max_workers)
    report = service.validate_schemas(config.database_connections)
    return _finish(report, args)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by tests and the ``python -m`` invocation."""

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "sql":
        return _handle_sql(args)
    if args.command == "gke":
        return _handle_gke(args)
    if args.command == "schema":
        return _handle_schema(args)

    parser.print_help()
    return 0


def run() -> None:  # pragma: no cover - thin wrapper for module execution
    """Execute the CLI and exit with the produced status code."""

    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover - module execution guard
    run()
