"""Normalization of raw GCP API and inspector payloads."""

from .snapshot_normalizer import SnapshotNormalizer, SnapshotShapeError, is_postgres

__all__ = ["SnapshotNormalizer", "SnapshotShapeError", "is_postgres"]
