"""Adapter layer package for resource discovery and snapshot ingestion."""

from .inventory_loader import InventoryError, InventoryLoader

__all__ = ["InventoryError", "InventoryLoader"]
