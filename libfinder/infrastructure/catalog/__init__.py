"""
In-memory library catalog.
"""

from .snapshot_store import CatalogSnapshot, CatalogSnapshotStore

__all__ = ["CatalogSnapshot", "CatalogSnapshotStore"]
