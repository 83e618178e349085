"""Baseline-driven drift detection for Cloud SQL, GKE and PostgreSQL schemas."""

__version__ = "0.1.0"
