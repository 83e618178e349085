"""Command-line interface package for the drift analysis tooling."""

from .app import build_parser, load_report, main, render_table, run

__all__ = [
    "build_parser",
    "load_report",
    "main",
    "render_table",
    "run",
]
